# SPDX-License-Identifier: BSD-2
import logging
import unittest

from tpm2_objauth import *
from tpm2_objauth.config import CONFIG, DEFAULT_NAME_ALG
from tpm2_objauth.log import objauth_loggers


class ExceptionTest(unittest.TestCase):
    def test_hierarchy(self):
        for exc in (
            InvalidName,
            NameNotSet,
            UnknownHandleType,
            UnsupportedScheme,
            UnsupportedWrappingScheme,
            UnsupportedInnerWrapper,
            UnsupportedParentScheme,
            TypeMismatch,
            IntegrityError,
            MarshalError,
        ):
            self.assertTrue(issubclass(exc, TPM2ObjAuthError))
            self.assertTrue(issubclass(exc, ValueError))

        self.assertTrue(issubclass(TypeMismatch, AttributeError))

    def test_handle_errors(self):
        e = InvalidName(0x01000001)
        self.assertEqual(e.handle, 0x01000001)
        self.assertEqual(str(e), "name does not match handle 0x01000001")

        e = InvalidName(0x01000001, "custom")
        self.assertEqual(str(e), "custom")

        e = NameNotSet(0x81000001)
        self.assertEqual(e.handle, 0x81000001)
        self.assertEqual(str(e), "name of handle 0x81000001 is not set")

        e = UnknownHandleType(0x7F000000)
        self.assertEqual(e.handle, 0x7F000000)
        self.assertEqual(
            str(e), "unknown handle type 0x7f for handle 0x7f000000"
        )

    def test_loggers(self):
        self.assertEqual(
            sorted(objauth_loggers), ["attest", "crypto", "envelope", "marshal", "naming"]
        )
        for name, logger in objauth_loggers.items():
            self.assertEqual(logger.name, f"TPM2.{name}")
            self.assertIs(logger, logging.getLogger(f"TPM2.{name}"))

    def test_envelope_logs_rejection(self):
        parent = TPMT_PUBLIC(type=TPM2_ALG.ECC, nameAlg=TPM2_ALG.SHA256)
        with self.assertLogs("TPM2.envelope", level="WARNING"):
            with self.assertRaises(UnsupportedWrappingScheme):
                make_credential(parent, b"cred", b"\x00\x0b" + b"\x00" * 32)

    def test_config(self):
        self.assertEqual(CONFIG["default_name_alg"], "sha256")
        self.assertEqual(DEFAULT_NAME_ALG, "sha256")


if __name__ == "__main__":
    unittest.main()
