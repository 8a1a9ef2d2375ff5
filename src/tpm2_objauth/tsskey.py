# SPDX-License-Identifier: BSD-2
from typing import Union

from .constants import TPM2_ALG, TPMA_OBJECT
from .exceptions import UnsupportedScheme
from .internal.crypto import (
    _generate_rsa_key,
    _hash,
    _int_to_bytes,
    _private_from_key,
    _sign_rsassa,
    private_to_key,
)
from .log import objauth_loggers
from .types import (
    TPM2B_PUBLIC,
    TPM2B_SENSITIVE,
    TPMS_RSA_PARMS,
    TPMS_SCHEME_HASH,
    TPMS_SIGNATURE_RSA,
    TPMT_PUBLIC,
    TPMT_RSA_SCHEME,
    TPMT_SENSITIVE,
    TPMT_SIG_SCHEME,
    TPMT_SIGNATURE,
    TPMT_SYM_DEF_OBJECT,
    TPMU_ASYM_SCHEME,
    TPMU_PUBLIC_PARMS,
    TPMU_SIGNATURE,
    TPMU_SYM_KEY_BITS,
    TPMU_SYM_MODE,
)

logger = objauth_loggers["crypto"]

_parent_rsa_template = TPMT_PUBLIC(
    type=TPM2_ALG.RSA,
    nameAlg=TPM2_ALG.SHA256,
    objectAttributes=TPMA_OBJECT.USERWITHAUTH
    | TPMA_OBJECT.RESTRICTED
    | TPMA_OBJECT.DECRYPT
    | TPMA_OBJECT.NODA
    | TPMA_OBJECT.FIXEDTPM
    | TPMA_OBJECT.FIXEDPARENT
    | TPMA_OBJECT.SENSITIVEDATAORIGIN,
    authPolicy=b"",
    parameters=TPMU_PUBLIC_PARMS(
        rsaDetail=TPMS_RSA_PARMS(
            symmetric=TPMT_SYM_DEF_OBJECT(
                algorithm=TPM2_ALG.AES,
                keyBits=TPMU_SYM_KEY_BITS(aes=128),
                mode=TPMU_SYM_MODE(aes=TPM2_ALG.CFB),
            ),
            scheme=TPMT_RSA_SCHEME(scheme=TPM2_ALG.NULL),
            keyBits=2048,
            exponent=0,
        ),
    ),
)

_signer_rsa_template = TPMT_PUBLIC(
    type=TPM2_ALG.RSA,
    nameAlg=TPM2_ALG.SHA256,
    objectAttributes=TPMA_OBJECT.USERWITHAUTH
    | TPMA_OBJECT.RESTRICTED
    | TPMA_OBJECT.SIGN_ENCRYPT
    | TPMA_OBJECT.FIXEDTPM
    | TPMA_OBJECT.FIXEDPARENT
    | TPMA_OBJECT.SENSITIVEDATAORIGIN,
    authPolicy=b"",
    parameters=TPMU_PUBLIC_PARMS(
        rsaDetail=TPMS_RSA_PARMS(
            symmetric=TPMT_SYM_DEF_OBJECT(algorithm=TPM2_ALG.NULL),
            scheme=TPMT_RSA_SCHEME(
                scheme=TPM2_ALG.RSASSA,
                details=TPMU_ASYM_SCHEME(
                    rsassa=TPMS_SCHEME_HASH(hashAlg=TPM2_ALG.SHA256)
                ),
            ),
            keyBits=2048,
            exponent=0,
        ),
    ),
)


class TSSKey(object):
    """A software RSA key described by TPM public and sensitive areas.

    Stands in for a TPM resident key where the private part has to be known,
    such as signing attestation structures or opening credential and
    duplication envelopes without a TPM.

    Args:
        public (TPMT_PUBLIC or TPM2B_PUBLIC): The public area, or the template used by create_key.
        private (TPMT_SENSITIVE or TPM2B_SENSITIVE) optional: The matching sensitive area.
    """

    def __init__(
        self,
        public: Union[TPMT_PUBLIC, TPM2B_PUBLIC],
        private: Union[TPMT_SENSITIVE, TPM2B_SENSITIVE] = None,
    ):
        if isinstance(public, TPM2B_PUBLIC):
            public = public.publicArea
        if isinstance(private, TPM2B_SENSITIVE):
            private = private.sensitiveArea
        self._public = TPMT_PUBLIC(public)
        self._private = private

    @property
    def public(self) -> TPMT_PUBLIC:
        return self._public

    @property
    def private(self) -> TPMT_SENSITIVE:
        return self._private

    @classmethod
    def create_parent(cls, key_bits: int = 2048, name_alg=TPM2_ALG.SHA256) -> "TSSKey":
        """Create a storage key usable as activation key or new parent."""
        key = cls(_parent_rsa_template)
        key.public.nameAlg = name_alg
        key.public.parameters.rsaDetail.keyBits = key_bits
        return key.create_key()

    @classmethod
    def create_signer(
        cls, halg=TPM2_ALG.SHA256, key_bits: int = 2048, name_alg=TPM2_ALG.SHA256
    ) -> "TSSKey":
        """Create a restricted RSASSA signing key, like an attestation key."""
        key = cls(_signer_rsa_template)
        key.public.nameAlg = name_alg
        key.public.parameters.rsaDetail.keyBits = key_bits
        key.public.parameters.rsaDetail.scheme.details.rsassa.hashAlg = halg
        return key.create_key()

    def create_key(self) -> "TSSKey":
        """Generate a key pair for the public template.

        The modulus size and exponent are taken from the template, zero meaning
        2048 bits and 65537 respectively. The unique field of the public area is
        replaced by the new modulus.

        Returns:
            Returns self.

        Raises:
            ValueError: If the template is not an RSA template.
        """
        if self._public.type != TPM2_ALG.RSA:
            raise ValueError(f"unsupported key type: {self._public.type}")
        parms = self._public.parameters.rsaDetail
        key_bits = parms.keyBits if parms.keyBits else 2048
        exponent = parms.exponent if parms.exponent else 65537

        key = _generate_rsa_key(key_bits, exponent)
        parms.keyBits = key_bits
        self._public.unique.rsa = _int_to_bytes(key.public_key().public_numbers().n)

        private = TPMT_SENSITIVE()
        _private_from_key(key, private)
        self._private = private
        return self

    def private_key(self):
        """Returns the private part as a cryptography RSA private key."""
        if self._private is None:
            raise ValueError("key has no private part")
        return private_to_key(self._private, self._public)

    def to_sensitive(self) -> TPM2B_SENSITIVE:
        if self._private is None:
            raise ValueError("key has no private part")
        return TPM2B_SENSITIVE(sensitiveArea=self._private)

    def get_name(self):
        return self._public.get_name()

    def sign(self, data: bytes, scheme: TPMT_SIG_SCHEME = None) -> TPMT_SIGNATURE:
        """Sign data with RSASSA over the digest of data.

        Args:
            data (bytes): The data to sign, for example a marshaled TPMS_ATTEST.
            scheme (TPMT_SIG_SCHEME) optional: The signing scheme, default is the scheme of the key.

        Returns:
            Returns a TPMT_SIGNATURE.

        Raises:
            UnsupportedScheme: If the scheme is not RSASSA.
        """
        if scheme is None:
            scheme = self._public.parameters.rsaDetail.scheme
        if scheme.scheme != TPM2_ALG.RSASSA:
            raise UnsupportedScheme(f"unsupported signing scheme: {scheme.scheme}")
        halg = scheme.details.rsassa.hashAlg

        digest = _hash(halg, bytes(data))
        sig = _sign_rsassa(self.private_key(), halg, digest)
        logger.debug("signed %d bytes with %s", len(data), halg)
        return TPMT_SIGNATURE(
            sigAlg=TPM2_ALG.RSASSA,
            signature=TPMU_SIGNATURE(rsassa=TPMS_SIGNATURE_RSA(hash=halg, sig=sig)),
        )
