# SPDX-License-Identifier: BSD-2
from collections import namedtuple
from typing import Optional, Tuple, Union

from cryptography.exceptions import InvalidSignature
from cryptography.hazmat.primitives.ciphers.algorithms import AES

from .constants import TPM2_ALG
from .exceptions import (
    IntegrityError,
    MarshalError,
    UnsupportedInnerWrapper,
    UnsupportedParentScheme,
    UnsupportedWrappingScheme,
)
from .internal.constants import (
    AES128_KEY_BYTES,
    DUPLICATE_LABEL,
    IDENTITY_LABEL,
    INTEGRITY_LABEL,
    STORAGE_LABEL,
)
from .internal.crypto import (
    _check_hmac,
    _compare,
    _decrypt,
    _encrypt,
    _hash,
    _hmac,
    _kdfa,
    _need_digest,
    _rsa_decrypt,
    _rsa_encrypt,
    private_to_key,
)
from .log import objauth_loggers
from .rand import _get_source
from .types import (
    TPM2B_DATA,
    TPM2B_DIGEST,
    TPM2B_ENCRYPTED_SECRET,
    TPM2B_ID_OBJECT,
    TPM2B_NAME,
    TPM2B_PRIVATE,
    TPM2B_PUBLIC,
    TPM2B_SENSITIVE,
    TPM2B_SIMPLE_OBJECT,
    TPMT_PUBLIC,
    TPMT_SENSITIVE,
    TPMT_SYM_DEF,
    TPMT_SYM_DEF_OBJECT,
)

logger = objauth_loggers["envelope"]

DuplicationBlob = namedtuple(
    "DuplicationBlob",
    ["duplicate", "encryption_key", "encrypted_seed", "inner_wrapper_key"],
)
DuplicationBlob.__doc__ = """The output of :func:`wrap`.

Attributes:
    duplicate (TPM2B_PRIVATE): The outer HMAC followed by the doubly wrapped sensitive area.
    encryption_key (TPM2B_DATA): The inner wrapper key if it was supplied by the caller, else empty.
    encrypted_seed (TPM2B_ENCRYPTED_SECRET): The seed encrypted to the new parent.
    inner_wrapper_key (TPM2B_DATA): The inner wrapper key used, empty without inner wrapping.
"""


def _is_aes128_cfb(symdef: Union[TPMT_SYM_DEF, TPMT_SYM_DEF_OBJECT]) -> bool:
    # any one of algorithm, key size or mode differing rejects the definition
    # unset union members are not read, reading would populate them
    return (
        symdef.algorithm == TPM2_ALG.AES
        and symdef.keyBits.holds("aes")
        and symdef.keyBits.aes == 128
        and symdef.mode.holds("aes")
        and symdef.mode.aes == TPM2_ALG.CFB
    )


def _is_rsa_aes128_cfb(public: TPMT_PUBLIC) -> bool:
    if public.type != TPM2_ALG.RSA:
        return False
    if not public.parameters.holds("rsaDetail"):
        return False
    return _is_aes128_cfb(public.parameters.rsaDetail.symmetric)


def _name_bytes(name) -> bytes:
    if isinstance(name, TPM2B_SIMPLE_OBJECT):
        return bytes(name)
    if isinstance(name, str):
        return name.encode()
    return bytes(name)


def make_credential(
    public: Union[TPMT_PUBLIC, TPM2B_PUBLIC],
    credential: bytes,
    name: Union[TPM2B_NAME, bytes],
    random=None,
) -> Tuple[TPM2B_ID_OBJECT, TPM2B_ENCRYPTED_SECRET]:
    """Encrypts credential for use with activate_credential

    Args:
        public (TPMT_PUBLIC or TPM2B_PUBLIC): The public area of the activation key
        credential (bytes): The credential to be encrypted
        name (TPM2B_NAME or bytes): The name of the key associated with the credential
        random (RandomSource) optional: The source of the seed, default is the local CSPRNG

    Returns:
        A tuple of (TPM2B_ID_OBJECT, TPM2B_ENCRYPTED_SECRET)

    Raises:
        UnsupportedWrappingScheme: If the key is not an RSA key with an AES-128-CFB symmetric definition
    """
    if isinstance(public, TPM2B_PUBLIC):
        public = public.publicArea
    if not _is_rsa_aes128_cfb(public):
        logger.warning("activation key is not an RSA key with AES-128-CFB protection")
        raise UnsupportedWrappingScheme(
            "Only RSA activation keys with an AES-128-CFB symmetric definition are supported"
        )
    if not isinstance(credential, TPM2B_DIGEST):
        credential = TPM2B_DIGEST(buffer=credential)
    name = _name_bytes(name)
    random = _get_source(random)

    seed = random.get_random(AES128_KEY_BYTES)
    enc_seed = _rsa_encrypt(public, seed, IDENTITY_LABEL)

    symkey = _kdfa(public.nameAlg, seed, STORAGE_LABEL, name, b"", 128)
    enc_cred = _encrypt(AES, symkey, credential.marshal())

    halg = _need_digest(public.nameAlg)
    hmackey = _kdfa(public.nameAlg, seed, INTEGRITY_LABEL, b"", b"", halg.digest_size * 8)
    outerhmac = _hmac(halg, hmackey, enc_cred, name)
    hmacdata = TPM2B_DIGEST(buffer=outerhmac).marshal()

    credblob = TPM2B_ID_OBJECT(credential=hmacdata + enc_cred)
    secret = TPM2B_ENCRYPTED_SECRET(secret=enc_seed)
    logger.debug("created credential blob of %d bytes", len(credblob))
    return (credblob, secret)


def activate_credential(
    private: Union[TPMT_SENSITIVE, TPM2B_SENSITIVE],
    public: Union[TPMT_PUBLIC, TPM2B_PUBLIC],
    name: Union[TPM2B_NAME, bytes],
    credblob: TPM2B_ID_OBJECT,
    secret: TPM2B_ENCRYPTED_SECRET,
) -> TPM2B_DIGEST:
    """Recover the credential from the output of make_credential with the activation key.

    This is what TPM2_ActivateCredential does inside the TPM, it is only possible
    in software when the private part of the activation key is known.

    Args:
        private (TPMT_SENSITIVE or TPM2B_SENSITIVE): The private part of the activation key
        public (TPMT_PUBLIC or TPM2B_PUBLIC): The public area of the activation key
        name (TPM2B_NAME or bytes): The name of the key associated with the credential
        credblob (TPM2B_ID_OBJECT): The encrypted credential
        secret (TPM2B_ENCRYPTED_SECRET): The encrypted seed

    Returns:
        The credential as TPM2B_DIGEST.

    Raises:
        IntegrityError: If the HMAC over the credential does not verify
    """
    if isinstance(public, TPM2B_PUBLIC):
        public = public.publicArea
    if not _is_rsa_aes128_cfb(public):
        raise UnsupportedWrappingScheme(
            "Only RSA activation keys with an AES-128-CFB symmetric definition are supported"
        )
    name = _name_bytes(name)

    key = private_to_key(private, public)
    seed = _rsa_decrypt(key, public.nameAlg, bytes(secret), IDENTITY_LABEL)

    halg = _need_digest(public.nameAlg)
    hmackey = _kdfa(public.nameAlg, seed, INTEGRITY_LABEL, b"", b"", halg.digest_size * 8)

    buffer = bytes(credblob)
    hmacdata, offset = TPM2B_DIGEST.unmarshal(buffer)
    enc_cred = buffer[offset:]
    try:
        _check_hmac(halg, hmackey, enc_cred, name, bytes(hmacdata))
    except InvalidSignature:
        logger.debug("credential HMAC does not verify")
        raise IntegrityError("credential integrity check failed")

    symkey = _kdfa(public.nameAlg, seed, STORAGE_LABEL, name, b"", 128)
    cred, _ = TPM2B_DIGEST.unmarshal(_decrypt(AES, symkey, enc_cred))
    return cred


def credential_to_tools(
    id_object: Union[TPM2B_ID_OBJECT, bytes],
    encrypted_secret: Union[TPM2B_ENCRYPTED_SECRET, bytes],
) -> bytes:
    """
    Converts an encrypted credential and an encrypted secret to a format that TPM2-tools can handle.

    The output can be used in the credential-blob parameter of the tpm2_activatecredential command.

    Args:
        id_object: The encrypted credential area.
        encrypted_secret: The encrypted secret.

    Returns:
        A credential blob in byte form that can be used by TPM2-tools.
    """
    data = bytearray()

    # magic and version
    data.extend(int(0xBADCC0DE).to_bytes(4, "big") + int(1).to_bytes(4, "big"))

    if isinstance(id_object, bytes):
        id_object = TPM2B_ID_OBJECT(id_object)
    if isinstance(encrypted_secret, bytes):
        encrypted_secret = TPM2B_ENCRYPTED_SECRET(encrypted_secret)

    data.extend(id_object.marshal())
    data.extend(encrypted_secret.marshal())

    return bytes(data)


def tools_to_credential(
    credential_blob: bytes,
) -> Tuple[TPM2B_ID_OBJECT, TPM2B_ENCRYPTED_SECRET]:
    """
    Convert a TPM2-tools compatible credential blob.

    Args:
        credential_blob: A TPM2-tools compatible credential blob.

    Returns:
        A tuple of (TPM2B_ID_OBJECT, TPM2B_ENCRYPTED_SECRET)
    """
    magic = int.from_bytes(credential_blob[0:4], byteorder="big")
    if magic != 0xBADCC0DE:
        raise ValueError(f"bad magic, expected 0xBADCC0DE, got 0x{magic:X}")
    version = int.from_bytes(credential_blob[4:8], byteorder="big")
    if version != 1:
        raise ValueError(f"bad version, expected 1, got {version}")

    id_object, id_object_len = TPM2B_ID_OBJECT.unmarshal(credential_blob[8:])
    encrypted_secret, _ = TPM2B_ENCRYPTED_SECRET.unmarshal(
        credential_blob[8 + id_object_len :]
    )

    return id_object, encrypted_secret


def _inner_wrapping(symdef) -> bool:
    if symdef is None or symdef.algorithm == TPM2_ALG.NULL:
        return False
    if not _is_aes128_cfb(symdef):
        logger.warning("inner wrapper %s is not supported", symdef.algorithm)
        raise UnsupportedInnerWrapper(
            "Only AES-128-CFB inner wrapping is supported"
        )
    return True


def wrap(
    newparent: Union[TPMT_PUBLIC, TPM2B_PUBLIC],
    public: Union[TPMT_PUBLIC, TPM2B_PUBLIC],
    sensitive: TPM2B_SENSITIVE,
    symdef: Optional[TPMT_SYM_DEF_OBJECT] = None,
    encryption_key: Optional[bytes] = None,
    random=None,
) -> DuplicationBlob:
    """Wraps key under a TPM key hierarchy

    A key is wrapped following the Duplication protections of the TPM Architecture specification.
    The architecture specification is found in "Part 1: Architecture" at the following link:
    - https://trustedcomputinggroup.org/resource/tpm-library-specification/

    At the time of this writing, spec 1.59 was most recent and it was under section 23.3,
    titled "Duplication".

    Args:
        newparent (TPMT_PUBLIC or TPM2B_PUBLIC): The public area of the parent
        public (TPMT_PUBLIC or TPM2B_PUBLIC): The public area of the key
        sensitive (TPM2B_SENSITIVE): The sensitive area of the key
        symdef (TPMT_SYM_DEF_OBJECT or None):
          Symmetric algorithm to be used for inner encryption, defaults to None.
          If None no inner wrapping is performed, else this must be set to aes128CFB since that is
          what the TPM supports. To set to aes128cfb, do:
          ::

            TPMT_SYM_DEF_OBJECT(
              algorithm=TPM2_ALG.AES,
              keyBits=TPMU_SYM_KEY_BITS(aes=128),
              mode=TPMU_SYM_MODE(aes=TPM2_ALG.CFB),
            )

        encryption_key (bytes or None):
          Symmetric key for inner encryption. Defaults to None.
          When None and symdef is defined a key will be drawn from random.
        random (RandomSource) optional: The source of keys and seeds, default is the local CSPRNG

    Returns:
        A DuplicationBlob of the wrapped duplicate, the caller supplied encryption key, the
        encrypted seed and the inner wrapper key.

    Raises:
        UnsupportedInnerWrapper: If symdef is neither NULL nor AES-128-CFB
        UnsupportedParentScheme: If the new parent is not an RSA key with an AES-128-CFB symmetric definition
    """
    if isinstance(newparent, TPM2B_PUBLIC):
        newparent = newparent.publicArea
    if isinstance(public, TPM2B_PUBLIC):
        public = public.publicArea
    if not isinstance(sensitive, TPM2B_SENSITIVE):
        sensitive = TPM2B_SENSITIVE(sensitiveArea=sensitive)

    inner = _inner_wrapping(symdef)
    if not _is_rsa_aes128_cfb(newparent):
        logger.warning("new parent is not an RSA key with AES-128-CFB protection")
        raise UnsupportedParentScheme(
            "Only RSA parents with an AES-128-CFB symmetric definition are supported"
        )
    random = _get_source(random)

    enckeyout = TPM2B_DATA()
    innerkey = TPM2B_DATA()
    sensb = sensitive.marshal()
    name = bytes(public.get_name())
    if inner:
        if encryption_key:
            symkey = bytes(encryption_key)
            enckeyout = TPM2B_DATA(symkey)
        else:
            symkey = random.get_random(AES128_KEY_BYTES)
        innerint = TPM2B_DIGEST(buffer=_hash(public.nameAlg, sensb, name)).marshal()
        encsens = _encrypt(AES, symkey, innerint + sensb)
        innerkey = TPM2B_DATA(symkey)
    else:
        encsens = sensb

    seed = random.get_random(AES128_KEY_BYTES)
    outsymseed = TPM2B_ENCRYPTED_SECRET(
        secret=_rsa_encrypt(newparent, seed, DUPLICATE_LABEL)
    )
    outerkey = _kdfa(newparent.nameAlg, seed, STORAGE_LABEL, name, b"", 128)
    dupsens = _encrypt(AES, outerkey, encsens)

    halg = _need_digest(newparent.nameAlg)
    hmackey = _kdfa(
        newparent.nameAlg, seed, INTEGRITY_LABEL, b"", b"", halg.digest_size * 8
    )
    outerhmac = _hmac(halg, hmackey, dupsens, name)
    hmacdata = TPM2B_DIGEST(buffer=outerhmac).marshal()

    duplicate = TPM2B_PRIVATE(buffer=hmacdata + dupsens)
    logger.debug("wrapped duplicate of %d bytes, inner wrapping %s", len(duplicate), inner)

    return DuplicationBlob(duplicate, enckeyout, outsymseed, innerkey)


def unwrap(
    newparentpub: Union[TPMT_PUBLIC, TPM2B_PUBLIC],
    newparentpriv: Union[TPMT_SENSITIVE, TPM2B_SENSITIVE],
    public: Union[TPMT_PUBLIC, TPM2B_PUBLIC],
    duplicate: TPM2B_PRIVATE,
    outsymseed: TPM2B_ENCRYPTED_SECRET,
    symkey: Optional[bytes] = None,
    symdef: Optional[TPMT_SYM_DEF_OBJECT] = None,
) -> TPM2B_SENSITIVE:
    """unwraps a key under a TPM key hierarchy. In essence, export key from TPM.

    This is the inverse function to the wrap() routine. This is usually performed by the TPM when importing
    objects, however, if an object is duplicated under a new parent where one has both the public and private
    keys, the object can be unwrapped.

    Args:
        newparentpub (TPMT_PUBLIC or TPM2B_PUBLIC): The public area of the parent the key was duplicated/wrapped under.
        newparentpriv (TPMT_SENSITIVE or TPM2B_SENSITIVE): The private key of the parent the key was duplicated/wrapped under.
        public (TPMT_PUBLIC or TPM2B_PUBLIC): The public area of the key to be unwrapped.
        duplicate (TPM2B_PRIVATE): The private or wrapped key to be unwrapped.
        outsymseed (TPM2B_ENCRYPTED_SECRET): The output symmetric seed from a wrap or duplicate call.
        symkey (bytes or None): Symmetric key of the inner wrapper, required when symdef is not NULL.
        symdef (TPMT_SYM_DEF_OBJECT or None): The inner wrapper used by wrap, defaults to None.

    Returns:
        A TPM2B_SENSITIVE which contains the raw key material.

    Raises:
        IntegrityError: If the outer HMAC or the inner integrity does not verify
        UnsupportedInnerWrapper: If symdef is neither NULL nor AES-128-CFB
        UnsupportedParentScheme: If the parent is not an RSA key with an AES-128-CFB symmetric definition
    """
    if isinstance(newparentpub, TPM2B_PUBLIC):
        newparentpub = newparentpub.publicArea
    if isinstance(public, TPM2B_PUBLIC):
        public = public.publicArea

    inner = _inner_wrapping(symdef)
    if not _is_rsa_aes128_cfb(newparentpub):
        raise UnsupportedParentScheme(
            "Only RSA parents with an AES-128-CFB symmetric definition are supported"
        )
    if inner and not symkey:
        raise ValueError(
            "Expected symkey when symdef is not None or symdef.algorithm is not TPM2_ALG.NULL"
        )

    halg = _need_digest(newparentpub.nameAlg)

    key = private_to_key(newparentpriv, newparentpub)
    seed = _rsa_decrypt(key, newparentpub.nameAlg, bytes(outsymseed), DUPLICATE_LABEL)
    hmackey = _kdfa(
        newparentpub.nameAlg, seed, INTEGRITY_LABEL, b"", b"", halg.digest_size * 8
    )

    buffer = bytes(duplicate)

    hmacdata, offset = TPM2B_DIGEST.unmarshal(buffer)
    outerhmac = bytes(hmacdata)

    dupsens = buffer[offset:]
    name = bytes(public.get_name())
    try:
        _check_hmac(halg, hmackey, dupsens, name, outerhmac)
    except InvalidSignature:
        logger.debug("outer HMAC of the duplicate does not verify")
        raise IntegrityError("outer integrity check failed")

    outerkey = _kdfa(newparentpub.nameAlg, seed, STORAGE_LABEL, name, b"", 128)

    sensb = _decrypt(AES, outerkey, dupsens)

    if inner:
        # unwrap the inner encryption which is the integrity + TPM2B_SENSITIVE
        innerint_and_decsens = _decrypt(AES, bytes(symkey), sensb)
        try:
            innerint, offset = TPM2B_DIGEST.unmarshal(innerint_and_decsens)
        except MarshalError:
            raise IntegrityError("inner integrity check failed")
        decsensb = innerint_and_decsens[offset:]

        integrity = _hash(public.nameAlg, decsensb, name)
        if not _compare(integrity, innerint):
            logger.debug("inner integrity of the duplicate does not verify")
            raise IntegrityError("inner integrity check failed")

        decsens = decsensb
    else:
        decsens = sensb

    s, l = TPM2B_SENSITIVE.unmarshal(decsens)
    if len(decsens) != l:
        raise IntegrityError(
            f"Expected the sensitive buffer to be size {l}, got: {len(decsens)}"
        )

    return s
