# SPDX-License-Identifier: BSD-2
from tpm2_objauth import *
from tpm2_objauth.tsskey import _parent_rsa_template, _signer_rsa_template
from tpm2_objauth.internal.crypto import private_to_key
from .TSS2_BaseTest import TSS2_ObjAuthTest, ecc_public_key, rsa_private_key, rsa_public_key

from cryptography.exceptions import InvalidSignature
from cryptography.hazmat.primitives.asymmetric import padding, rsa
from cryptography.hazmat.primitives.serialization import load_pem_private_key

import unittest


class TSSKeyTest(TSS2_ObjAuthTest):
    def test_create_signer(self):
        key = self.signer
        self.assertEqual(key.public.type, TPM2_ALG.RSA)
        self.assertEqual(key.public.parameters.rsaDetail.keyBits, 2048)
        self.assertEqual(len(key.public.unique.rsa), 256)
        self.assertTrue(key.public.objectAttributes & TPMA_OBJECT.SIGN_ENCRYPT)
        self.assertEqual(get_signing_hash_alg(key.public), TPM2_ALG.SHA256)
        self.assertEqual(key.private.sensitiveType, TPM2_ALG.RSA)
        self.assertEqual(len(key.private.sensitive.rsa), 128)

        # the template is not modified
        self.assertEqual(len(_signer_rsa_template.unique.rsa), 0)

    def test_create_signer_sha384(self):
        key = TSSKey.create_signer(halg=TPM2_ALG.SHA384, key_bits=1024)
        self.assertEqual(get_signing_hash_alg(key.public), TPM2_ALG.SHA384)
        self.assertEqual(len(key.public.unique.rsa), 128)

        sig = key.sign(b"data")
        self.assertEqual(sig.signature.rsassa.hash, TPM2_ALG.SHA384)
        key.public.validate_signature(b"data", sig)

    def test_create_parent(self):
        key = TSSKey.create_parent(key_bits=1024, name_alg=TPM2_ALG.SHA384)
        self.assertEqual(key.public.nameAlg, TPM2_ALG.SHA384)
        symdef = key.public.parameters.rsaDetail.symmetric
        self.assertEqual(symdef.algorithm, TPM2_ALG.AES)
        self.assertEqual(symdef.keyBits.aes, 128)
        self.assertEqual(symdef.mode.aes, TPM2_ALG.CFB)
        self.assertEqual(bytes(key.get_name())[0:2], b"\x00\x0c")

        credblob, secret = make_credential(key.public, b"secret", self.signer.get_name())
        cred = activate_credential(
            key.private, key.public, self.signer.get_name(), credblob, secret
        )
        self.assertEqual(bytes(cred), b"secret")

        self.assertEqual(len(_parent_rsa_template.unique.rsa), 0)

    def test_sign(self):
        sig = self.signer.sign(b"falafel")
        self.assertEqual(sig.sigAlg, TPM2_ALG.RSASSA)
        self.assertEqual(sig.signature.rsassa.hash, TPM2_ALG.SHA256)
        self.assertEqual(len(sig.signature.rsassa.sig), 256)

        self.signer.public.validate_signature(b"falafel", sig)
        with self.assertRaises(InvalidSignature):
            self.signer.public.validate_signature(b"hummus", sig)

    def test_sign_scheme(self):
        scheme = TPMT_SIG_SCHEME(
            scheme=TPM2_ALG.RSASSA,
            details=TPMU_SIG_SCHEME(rsassa=TPMS_SCHEME_HASH(hashAlg=TPM2_ALG.SHA1)),
        )
        sig = self.signer.sign(b"falafel", scheme)
        self.assertEqual(sig.signature.rsassa.hash, TPM2_ALG.SHA1)
        self.signer.public.validate_signature(b"falafel", sig)

    def test_sign_bad_scheme(self):
        scheme = TPMT_SIG_SCHEME(
            scheme=TPM2_ALG.RSAPSS,
            details=TPMU_SIG_SCHEME(rsapss=TPMS_SCHEME_HASH(hashAlg=TPM2_ALG.SHA256)),
        )
        with self.assertRaises(UnsupportedScheme):
            self.signer.sign(b"falafel", scheme)

        with self.assertRaises(UnsupportedScheme):
            self.signer.sign(b"falafel", TPMT_SIG_SCHEME(scheme=TPM2_ALG.NULL))

    def test_existing_key(self):
        key = TSSKey(
            TPM2B_PUBLIC.from_pem(rsa_public_key),
            TPM2B_SENSITIVE.from_pem(rsa_private_key),
        )
        self.assertIsInstance(key.private_key(), rsa.RSAPrivateKey)
        self.assertEqual(key.to_sensitive(), TPM2B_SENSITIVE.from_pem(rsa_private_key))
        self.assertEqual(key.get_name(), TPM2B_PUBLIC.from_pem(rsa_public_key).get_name())

    def test_private_numbers_from_prime(self):
        expected = load_pem_private_key(rsa_private_key, password=None)
        key = private_to_key(
            TPM2B_SENSITIVE.from_pem(rsa_private_key),
            TPM2B_PUBLIC.from_pem(rsa_public_key),
        )
        nums = key.private_numbers()
        self.assertIs(type(nums), rsa.RSAPrivateNumbers)
        self.assertEqual(nums.public_numbers, expected.private_numbers().public_numbers)
        self.assertEqual(
            {nums.p, nums.q},
            {expected.private_numbers().p, expected.private_numbers().q},
        )

        # the rebuilt key decrypts what the original public key encrypted
        pad = padding.PKCS1v15()
        ct = expected.public_key().encrypt(b"falafel", pad)
        self.assertEqual(key.decrypt(ct, pad), b"falafel")

        generated = self.signer.private_key()
        self.assertEqual(
            generated.public_key().public_numbers().n,
            int.from_bytes(bytes(self.signer.public.unique.rsa), "big"),
        )

    def test_private_numbers_wrong_modulus(self):
        with self.assertRaises(ValueError):
            private_to_key(TPM2B_SENSITIVE.from_pem(rsa_private_key), self.signer.public)

    def test_no_private(self):
        key = TSSKey(TPM2B_PUBLIC.from_pem(rsa_public_key))
        self.assertIsNone(key.private)
        with self.assertRaises(ValueError):
            key.private_key()
        with self.assertRaises(ValueError):
            key.to_sensitive()

    def test_create_key_not_rsa(self):
        key = TSSKey(TPMT_PUBLIC.from_pem(ecc_public_key))
        with self.assertRaises(ValueError) as e:
            key.create_key()
        self.assertEqual(str(e.exception), "unsupported key type: ecc")


if __name__ == "__main__":
    unittest.main()
