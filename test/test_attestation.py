# SPDX-License-Identifier: BSD-2
import unittest

from tpm2_objauth import *
from .TSS2_BaseTest import TSS2_ObjAuthTest, rsa_public_key, ecc_public_key

from cryptography.hazmat.primitives import hashes


def _attest(kind, nonce, **attested):
    return TPMS_ATTEST(
        magic=TPM2_GENERATED_VALUE.VALUE,
        type=kind,
        qualifiedSigner=b"\x00\x0b" + b"\x5a" * 32,
        extraData=nonce,
        clockInfo=TPMS_CLOCK_INFO(clock=1000, resetCount=1, restartCount=2, safe=1),
        firmwareVersion=0x2000_0000_0000_0001,
        attested=TPMU_ATTEST(**attested),
    )


class AttestationTest(TSS2_ObjAuthTest):
    nonce = b"\x01\x02\x03\x04\x05\x06\x07\x08"

    def sign(self, attest):
        return self.signer.sign(attest.marshal())

    def quote(self, selection, values, nonce=None):
        h = hashes.Hash(hashes.SHA256())
        for v in values:
            h.update(v)
        attest = _attest(
            TPM2_ST.ATTEST_QUOTE,
            self.nonce if nonce is None else nonce,
            quote=TPMS_QUOTE_INFO(
                pcrSelect=TPML_PCR_SELECTION.parse(selection),
                pcrDigest=h.finalize(),
            ),
        )
        return attest, self.sign(attest)

    def test_signing_hash_alg(self):
        self.assertEqual(get_signing_hash_alg(self.signer.public), TPM2_ALG.SHA256)
        self.assertEqual(
            get_signing_hash_alg(TPM2B_PUBLIC(publicArea=self.signer.public)),
            TPM2_ALG.SHA256,
        )

    def test_unsupported_scheme(self):
        attest, sig = self.quote("sha256:0", [b"\x00" * 32])

        ecc = TPMT_PUBLIC.from_pem(ecc_public_key)
        with self.assertRaises(UnsupportedScheme):
            validate_quote(ecc, "sha256:0", [b"\x00" * 32], self.nonce, attest, sig)

        oaep = TPMT_PUBLIC.from_pem(rsa_public_key)
        oaep.parameters.rsaDetail.scheme = TPMT_RSA_SCHEME(
            scheme=TPM2_ALG.OAEP,
            details=TPMU_ASYM_SCHEME(oaep=TPMS_SCHEME_HASH(hashAlg=TPM2_ALG.SHA256)),
        )
        for key in (oaep, TPMT_PUBLIC.from_pem(rsa_public_key)):
            with self.assertRaises(UnsupportedScheme):
                validate_get_time(key, self.nonce, attest, sig)

        # raised even for a structure that fails every other check
        with self.assertRaises(UnsupportedScheme):
            validate_certify_nv(ecc, b"other", b"", 0, b"garbage", sig)

    def test_quote(self):
        values = [b"\x01" * 32, b"\x02" * 32, b"\x03" * 32]
        attest, sig = self.quote("sha256:0,1,2", values)
        signer = self.signer.public

        self.assertTrue(
            validate_quote(signer, "sha256:0,1,2", values, self.nonce, attest, sig)
        )
        sels = TPML_PCR_SELECTION.parse("sha256:0,1,2")
        self.assertTrue(validate_quote(signer, sels, values, self.nonce, attest, sig))
        self.assertTrue(
            validate_quote(
                signer,
                sels,
                [TPM2B_DIGEST(v) for v in values],
                self.nonce,
                TPM2B_ATTEST(attest.marshal()),
                sig,
            )
        )
        self.assertTrue(
            validate_quote(
                TPM2B_PUBLIC(publicArea=signer),
                sels,
                values,
                self.nonce,
                attest.marshal(),
                sig,
            )
        )

    def test_quote_mismatch(self):
        values = [b"\x01" * 32, b"\x02" * 32]
        attest, sig = self.quote("sha256:0,1", values)
        signer = self.signer.public

        self.assertFalse(
            validate_quote(signer, "sha256:0,2", values, self.nonce, attest, sig)
        )
        self.assertFalse(
            validate_quote(signer, "sha1:0,1", values, self.nonce, attest, sig)
        )
        self.assertFalse(
            validate_quote(
                signer, "sha256:0,1", list(reversed(values)), self.nonce, attest, sig
            )
        )
        self.assertFalse(
            validate_quote(signer, "sha256:0,1", values[:1], self.nonce, attest, sig)
        )
        self.assertFalse(
            validate_quote(signer, "sha256:0,1", values, b"other nonce", attest, sig)
        )

    def test_bad_magic(self):
        attest, _ = self.quote("sha256:0", [b"\x00" * 32])
        attest.magic = 0xFF544348
        sig = self.sign(attest)
        self.assertFalse(
            validate_quote(
                self.signer.public, "sha256:0", [b"\x00" * 32], self.nonce, attest, sig
            )
        )

    def test_wrong_kind(self):
        attest, sig = self.quote("sha256:0", [b"\x00" * 32])
        signer = self.signer.public
        self.assertFalse(validate_get_time(signer, self.nonce, attest, sig))
        self.assertFalse(
            validate_certify(
                signer, TPMT_PUBLIC.from_pem(rsa_public_key), self.nonce, attest, sig
            )
        )
        self.assertFalse(
            validate_command_audit(signer, b"\x00" * 32, self.nonce, attest, sig)
        )

    def test_bad_signature(self):
        values = [b"\x01" * 32]
        attest, sig = self.quote("sha256:0", values)
        signer = self.signer.public

        other = TSSKey.create_signer()
        sig2 = other.sign(attest.marshal())
        self.assertFalse(
            validate_quote(signer, "sha256:0", values, self.nonce, attest, sig2)
        )
        self.assertTrue(
            validate_quote(other.public, "sha256:0", values, self.nonce, attest, sig2)
        )

        # signature over a different structure
        attest2, _ = self.quote("sha256:0", values)
        attest2.clockInfo.clock = 1001
        self.assertFalse(
            validate_quote(signer, "sha256:0", values, self.nonce, attest2, sig)
        )

        bad = TPMT_SIGNATURE(sig)
        bad.signature.rsassa.hash = TPM2_ALG.SHA1
        self.assertFalse(
            validate_quote(signer, "sha256:0", values, self.nonce, attest, bad)
        )

        pss = TPMT_SIGNATURE(
            sigAlg=TPM2_ALG.RSAPSS,
            signature=TPMU_SIGNATURE(rsapss=sig.signature.rsassa),
        )
        self.assertFalse(
            validate_quote(signer, "sha256:0", values, self.nonce, attest, pss)
        )

    def test_signature_selector_mismatch(self):
        attest = _attest(
            TPM2_ST.ATTEST_TIME,
            self.nonce,
            time=TPMS_TIME_ATTEST_INFO(
                time=TPMS_TIME_INFO(time=5000, clockInfo=TPMS_CLOCK_INFO(clock=1000))
            ),
        )
        sig = self.sign(attest)
        signer = self.signer.public
        self.assertTrue(validate_get_time(signer, self.nonce, attest, sig))

        # RSASSA selector over an RSAPSS member
        mixed = TPMT_SIGNATURE(
            sigAlg=TPM2_ALG.RSASSA,
            signature=TPMU_SIGNATURE(rsapss=sig.signature.rsassa),
        )
        self.assertFalse(validate_get_time(signer, self.nonce, attest, mixed))

        empty = TPMT_SIGNATURE(sigAlg=TPM2_ALG.RSASSA)
        self.assertFalse(validate_get_time(signer, self.nonce, attest, empty))

    def test_malformed_attest(self):
        attest, sig = self.quote("sha256:0", [b"\x00" * 32])
        buf = attest.marshal()
        signer = self.signer.public
        for b in (b"", buf[:-1], buf + b"\x00"):
            self.assertFalse(
                validate_quote(signer, "sha256:0", [b"\x00" * 32], self.nonce, b, sig)
            )

    def test_certify(self):
        certified = TPMT_PUBLIC.from_pem(rsa_public_key)
        attest = _attest(
            TPM2_ST.ATTEST_CERTIFY,
            self.nonce,
            certify=TPMS_CERTIFY_INFO(
                name=certified.get_name(), qualifiedName=b"\x00\x0b" + b"\x00" * 32
            ),
        )
        sig = self.sign(attest)
        signer = self.signer.public

        self.assertTrue(validate_certify(signer, certified, self.nonce, attest, sig))
        self.assertTrue(
            validate_certify(
                signer, TPM2B_PUBLIC(publicArea=certified), self.nonce, attest, sig
            )
        )
        self.assertFalse(
            validate_certify(
                signer, TPMT_PUBLIC.from_pem(ecc_public_key), self.nonce, attest, sig
            )
        )
        self.assertFalse(validate_certify(signer, certified, b"", attest, sig))

    def test_certify_creation(self):
        creation_hash = b"\xc0" * 32
        attest = _attest(
            TPM2_ST.ATTEST_CREATION,
            self.nonce,
            creation=TPMS_CREATION_INFO(
                objectName=b"\x00\x0b" + b"\x01" * 32, creationHash=creation_hash
            ),
        )
        sig = self.sign(attest)
        signer = self.signer.public

        self.assertTrue(
            validate_certify_creation(signer, self.nonce, creation_hash, attest, sig)
        )
        self.assertTrue(
            validate_certify_creation(
                signer, self.nonce, TPM2B_DIGEST(creation_hash), attest, sig
            )
        )
        self.assertFalse(
            validate_certify_creation(signer, self.nonce, b"\xc1" * 32, attest, sig)
        )

    def test_get_time(self):
        attest = _attest(
            TPM2_ST.ATTEST_TIME,
            self.nonce,
            time=TPMS_TIME_ATTEST_INFO(
                time=TPMS_TIME_INFO(time=5000, clockInfo=TPMS_CLOCK_INFO(clock=4000)),
                firmwareVersion=7,
            ),
        )
        sig = self.sign(attest)
        signer = self.signer.public

        self.assertTrue(validate_get_time(signer, self.nonce, attest, sig))
        self.assertFalse(validate_get_time(signer, self.nonce[:-1], attest, sig))

        attest.attested.time.time.time = 5001
        self.assertFalse(validate_get_time(signer, self.nonce, attest, sig))

    def test_command_audit(self):
        digest = TPMT_HA(TPM2_ALG.SHA256).extend(b"\x01" * 32).extend(b"\x02" * 32)
        attest = _attest(
            TPM2_ST.ATTEST_COMMAND_AUDIT,
            self.nonce,
            commandAudit=TPMS_COMMAND_AUDIT_INFO(
                auditCounter=3,
                digestAlg=TPM2_ALG.SHA256,
                auditDigest=digest,
                commandDigest=b"\x00" * 32,
            ),
        )
        sig = self.sign(attest)
        signer = self.signer.public

        self.assertTrue(validate_command_audit(signer, digest, self.nonce, attest, sig))
        self.assertTrue(
            validate_command_audit(signer, digest.digest, self.nonce, attest, sig)
        )
        self.assertFalse(
            validate_command_audit(
                signer, TPMT_HA(TPM2_ALG.SHA256), self.nonce, attest, sig
            )
        )
        self.assertFalse(
            validate_session_audit(signer, digest, self.nonce, attest, sig)
        )

    def test_session_audit(self):
        digest = TPMT_HA(TPM2_ALG.SHA256).extend(b"session")
        attest = _attest(
            TPM2_ST.ATTEST_SESSION_AUDIT,
            self.nonce,
            sessionAudit=TPMS_SESSION_AUDIT_INFO(
                exclusiveSession=1, sessionDigest=digest
            ),
        )
        sig = self.sign(attest)
        signer = self.signer.public

        self.assertTrue(validate_session_audit(signer, digest, self.nonce, attest, sig))
        self.assertFalse(
            validate_session_audit(
                signer, TPMT_HA(TPM2_ALG.SHA256).extend(b"other"), self.nonce, attest, sig
            )
        )

    def test_certify_nv(self):
        attest = _attest(
            TPM2_ST.ATTEST_NV,
            self.nonce,
            nv=TPMS_NV_CERTIFY_INFO(
                indexName=b"\x00\x0b" + b"\x02" * 32,
                offset=4,
                nvContents=b"nv contents",
            ),
        )
        sig = self.sign(attest)
        signer = self.signer.public

        self.assertTrue(
            validate_certify_nv(signer, self.nonce, b"nv contents", 4, attest, sig)
        )
        self.assertFalse(
            validate_certify_nv(signer, self.nonce, b"nv contents", 0, attest, sig)
        )
        self.assertFalse(
            validate_certify_nv(signer, self.nonce, b"nv content", 4, attest, sig)
        )

    def test_validate_signature(self):
        data = b"data to sign"
        sig = self.signer.sign(data)
        self.assertEqual(sig.sigAlg, TPM2_ALG.RSASSA)
        self.assertEqual(sig.signature.rsassa.hash, TPM2_ALG.SHA256)
        self.signer.public.validate_signature(data, sig)
        sig.verify_signature(self.signer.public, data)

        from cryptography.exceptions import InvalidSignature

        with self.assertRaises(InvalidSignature):
            self.signer.public.validate_signature(b"other data", sig)


if __name__ == "__main__":
    unittest.main()
