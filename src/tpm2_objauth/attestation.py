# SPDX-License-Identifier: BSD-2
"""Verification of signed TPM attestation structures.

Each ``validate_*`` function checks a TPMS_ATTEST produced by TPM2_Quote,
TPM2_Certify, TPM2_CertifyCreation, TPM2_GetTime, TPM2_GetCommandAuditDigest,
TPM2_GetSessionAuditDigest or TPM2_NV_Certify against the values the caller
expects, then verifies the signature of the signing key over it.

A structure that does not match, or a signature that does not verify, yields
False. A signing key that is not an RSA key with an RSASSA scheme is a caller
error and raises UnsupportedScheme.

Example:
    .. code-block:: python

        quoted, signature = ectx.quote(akh, pcrsel, nonce)
        validate_quote(akpub, pcrsel, pcrvalues, nonce, quoted, signature)
"""
from typing import Iterable, Union

from cryptography.exceptions import InvalidSignature

from .constants import TPM2_ALG, TPM2_GENERATED_VALUE, TPM2_ST
from .exceptions import MarshalError, UnsupportedScheme
from .internal.crypto import _compare, _hash, _verify_rsassa_digest, public_to_key
from .internal.utils import _to_bytes
from .log import objauth_loggers
from .types import (
    TPM2B_ATTEST,
    TPM2B_PUBLIC,
    TPML_PCR_SELECTION,
    TPMS_ATTEST,
    TPMT_HA,
    TPMT_PUBLIC,
    TPMT_SIGNATURE,
)

logger = objauth_loggers["attest"]

AttestInput = Union[TPMS_ATTEST, TPM2B_ATTEST, bytes]


def get_signing_hash_alg(signer: Union[TPMT_PUBLIC, TPM2B_PUBLIC]) -> TPM2_ALG:
    """Returns the hash algorithm of the RSASSA scheme of a signing key.

    Args:
        signer (TPMT_PUBLIC or TPM2B_PUBLIC): The public area of the signing key.

    Returns:
        The TPM2_ALG of the scheme digest.

    Raises:
        UnsupportedScheme: If the key is not an RSA key with an RSASSA scheme.
    """
    if isinstance(signer, TPM2B_PUBLIC):
        signer = signer.publicArea
    if signer.type != TPM2_ALG.RSA:
        logger.warning("signing key type %s is not supported", signer.type)
        raise UnsupportedScheme("Only RSA signature verification is supported")
    scheme = signer.parameters.rsaDetail.scheme
    if scheme.scheme != TPM2_ALG.RSASSA:
        logger.warning("signing scheme %s is not supported", scheme.scheme)
        raise UnsupportedScheme("only RSASSA is supported")
    return scheme.details.rsassa.hashAlg


def _to_attest(attest: AttestInput) -> TPMS_ATTEST:
    if isinstance(attest, TPMS_ATTEST):
        return attest
    buf = _to_bytes(attest)
    obj, offset = TPMS_ATTEST.unmarshal(buf)
    if offset != len(buf):
        raise MarshalError(f"{len(buf) - offset} trailing bytes after TPMS_ATTEST")
    return obj


def _check_header(attest: AttestInput, nonce: bytes, kind: TPM2_ST, arm: str):
    """Parse attest and check nonce, magic and attestation kind.

    Returns:
        The parsed TPMS_ATTEST, or None if a check failed.
    """
    try:
        attest = _to_attest(attest)
    except MarshalError as e:
        logger.debug("malformed attestation structure: %s", e)
        return None

    if not _compare(attest.extraData, _to_bytes(nonce)):
        logger.debug("extraData does not match the nonce")
        return None

    if attest.magic != TPM2_GENERATED_VALUE.VALUE:
        logger.debug("magic 0x%08x is not TPM2_GENERATED_VALUE", attest.magic)
        return None

    if attest.type != kind or not attest.attested.holds(arm):
        logger.debug("attestation type %s, expected %s", attest.type, kind)
        return None

    return attest


def _check_signature(
    signer, halg: TPM2_ALG, attest: TPMS_ATTEST, signature: TPMT_SIGNATURE
) -> bool:
    if signature.sigAlg != TPM2_ALG.RSASSA:
        logger.debug("signature algorithm %s is not RSASSA", signature.sigAlg)
        return False
    if not signature.signature.holds("rsassa"):
        logger.debug("signature union does not hold an RSASSA signature")
        return False
    sig = signature.signature.rsassa
    if sig.hash != halg:
        logger.debug("signature hash %s, expected %s", sig.hash, halg)
        return False

    digest = _hash(halg, attest.marshal())
    try:
        _verify_rsassa_digest(public_to_key(signer), halg, bytes(sig.sig), digest)
    except InvalidSignature:
        logger.debug("signature does not verify")
        return False
    return True


def validate_quote(
    signer: Union[TPMT_PUBLIC, TPM2B_PUBLIC],
    pcr_selection: TPML_PCR_SELECTION,
    pcr_values: Iterable,
    nonce: bytes,
    quoted: AttestInput,
    signature: TPMT_SIGNATURE,
) -> bool:
    """Validate the result of TPM2_Quote.

    Args:
        signer (TPMT_PUBLIC or TPM2B_PUBLIC): The public area of the signing key.
        pcr_selection (TPML_PCR_SELECTION or str): The expected PCR selection.
        pcr_values (iterable of TPM2B_DIGEST, TPMT_HA or bytes): The expected PCR values in selection order.
        nonce (bytes): The qualifying data passed to the TPM.
        quoted (TPMS_ATTEST, TPM2B_ATTEST or bytes): The attestation structure.
        signature (TPMT_SIGNATURE): The signature over quoted.

    Returns:
        True if the quote matches and the signature verifies, False otherwise.

    Raises:
        UnsupportedScheme: If the signing key is not an RSA key with an RSASSA scheme.
    """
    halg = get_signing_hash_alg(signer)
    attest = _check_header(quoted, nonce, TPM2_ST.ATTEST_QUOTE, "quote")
    if attest is None:
        return False

    if isinstance(pcr_selection, str):
        pcr_selection = TPML_PCR_SELECTION.parse(pcr_selection)
    info = attest.attested.quote
    if info.pcrSelect != pcr_selection:
        logger.debug("PCR selection does not match")
        return False

    pcr_digest = _hash(halg, *[_to_bytes(v) for v in pcr_values])
    if not _compare(info.pcrDigest, pcr_digest):
        logger.debug("PCR digest does not match")
        return False

    return _check_signature(signer, halg, attest, signature)


def validate_certify(
    signer: Union[TPMT_PUBLIC, TPM2B_PUBLIC],
    certified: Union[TPMT_PUBLIC, TPM2B_PUBLIC],
    nonce: bytes,
    certify_info: AttestInput,
    signature: TPMT_SIGNATURE,
) -> bool:
    """Validate the result of TPM2_Certify.

    Args:
        signer (TPMT_PUBLIC or TPM2B_PUBLIC): The public area of the signing key.
        certified (TPMT_PUBLIC or TPM2B_PUBLIC): The public area of the certified object.
        nonce (bytes): The qualifying data passed to the TPM.
        certify_info (TPMS_ATTEST, TPM2B_ATTEST or bytes): The attestation structure.
        signature (TPMT_SIGNATURE): The signature over certify_info.

    Returns:
        True if the certification matches and the signature verifies, False otherwise.
    """
    halg = get_signing_hash_alg(signer)
    attest = _check_header(
        certify_info, nonce, TPM2_ST.ATTEST_CERTIFY, "certify"
    )
    if attest is None:
        return False

    if not _compare(attest.attested.certify.name, certified.get_name()):
        logger.debug("certified name does not match")
        return False

    return _check_signature(signer, halg, attest, signature)


def validate_certify_creation(
    signer: Union[TPMT_PUBLIC, TPM2B_PUBLIC],
    nonce: bytes,
    creation_hash: bytes,
    certify_info: AttestInput,
    signature: TPMT_SIGNATURE,
) -> bool:
    """Validate the result of TPM2_CertifyCreation.

    Args:
        signer (TPMT_PUBLIC or TPM2B_PUBLIC): The public area of the signing key.
        nonce (bytes): The qualifying data passed to the TPM.
        creation_hash (bytes): The creation hash returned when the object was created.
        certify_info (TPMS_ATTEST, TPM2B_ATTEST or bytes): The attestation structure.
        signature (TPMT_SIGNATURE): The signature over certify_info.

    Returns:
        True if the creation hash matches and the signature verifies, False otherwise.
    """
    halg = get_signing_hash_alg(signer)
    attest = _check_header(
        certify_info, nonce, TPM2_ST.ATTEST_CREATION, "creation"
    )
    if attest is None:
        return False

    if not _compare(attest.attested.creation.creationHash, _to_bytes(creation_hash)):
        logger.debug("creation hash does not match")
        return False

    return _check_signature(signer, halg, attest, signature)


def validate_get_time(
    signer: Union[TPMT_PUBLIC, TPM2B_PUBLIC],
    nonce: bytes,
    time_info: AttestInput,
    signature: TPMT_SIGNATURE,
) -> bool:
    """Validate the result of TPM2_GetTime.

    Returns:
        True if the structure is a signed time attestation over nonce, False otherwise.
    """
    halg = get_signing_hash_alg(signer)
    attest = _check_header(time_info, nonce, TPM2_ST.ATTEST_TIME, "time")
    if attest is None:
        return False

    return _check_signature(signer, halg, attest, signature)


def _expected_digest(expected) -> bytes:
    if isinstance(expected, TPMT_HA):
        return expected.digest
    return _to_bytes(expected)


def validate_command_audit(
    signer: Union[TPMT_PUBLIC, TPM2B_PUBLIC],
    expected_digest: Union[TPMT_HA, bytes],
    nonce: bytes,
    audit_info: AttestInput,
    signature: TPMT_SIGNATURE,
) -> bool:
    """Validate the result of TPM2_GetCommandAuditDigest.

    Args:
        signer (TPMT_PUBLIC or TPM2B_PUBLIC): The public area of the signing key.
        expected_digest (TPMT_HA or bytes): The audit digest computed by the caller.
        nonce (bytes): The qualifying data passed to the TPM.
        audit_info (TPMS_ATTEST, TPM2B_ATTEST or bytes): The attestation structure.
        signature (TPMT_SIGNATURE): The signature over audit_info.

    Returns:
        True if the audit digest matches and the signature verifies, False otherwise.
    """
    halg = get_signing_hash_alg(signer)
    attest = _check_header(
        audit_info, nonce, TPM2_ST.ATTEST_COMMAND_AUDIT, "commandAudit"
    )
    if attest is None:
        return False

    if not _compare(
        attest.attested.commandAudit.auditDigest, _expected_digest(expected_digest)
    ):
        logger.debug("command audit digest does not match")
        return False

    return _check_signature(signer, halg, attest, signature)


def validate_session_audit(
    signer: Union[TPMT_PUBLIC, TPM2B_PUBLIC],
    expected_digest: Union[TPMT_HA, bytes],
    nonce: bytes,
    audit_info: AttestInput,
    signature: TPMT_SIGNATURE,
) -> bool:
    """Validate the result of TPM2_GetSessionAuditDigest.

    Args:
        signer (TPMT_PUBLIC or TPM2B_PUBLIC): The public area of the signing key.
        expected_digest (TPMT_HA or bytes): The session digest computed by the caller.
        nonce (bytes): The qualifying data passed to the TPM.
        audit_info (TPMS_ATTEST, TPM2B_ATTEST or bytes): The attestation structure.
        signature (TPMT_SIGNATURE): The signature over audit_info.

    Returns:
        True if the session digest matches and the signature verifies, False otherwise.
    """
    halg = get_signing_hash_alg(signer)
    attest = _check_header(
        audit_info, nonce, TPM2_ST.ATTEST_SESSION_AUDIT, "sessionAudit"
    )
    if attest is None:
        return False

    if not _compare(
        attest.attested.sessionAudit.sessionDigest, _expected_digest(expected_digest)
    ):
        logger.debug("session audit digest does not match")
        return False

    return _check_signature(signer, halg, attest, signature)


def validate_certify_nv(
    signer: Union[TPMT_PUBLIC, TPM2B_PUBLIC],
    nonce: bytes,
    expected_contents: bytes,
    offset: int,
    certify_info: AttestInput,
    signature: TPMT_SIGNATURE,
) -> bool:
    """Validate the result of TPM2_NV_Certify.

    Args:
        signer (TPMT_PUBLIC or TPM2B_PUBLIC): The public area of the signing key.
        nonce (bytes): The qualifying data passed to the TPM.
        expected_contents (bytes): The expected NV contents.
        offset (int): The offset of the certified contents in the NV index.
        certify_info (TPMS_ATTEST, TPM2B_ATTEST or bytes): The attestation structure.
        signature (TPMT_SIGNATURE): The signature over certify_info.

    Returns:
        True if the contents and offset match and the signature verifies, False otherwise.
    """
    halg = get_signing_hash_alg(signer)
    attest = _check_header(certify_info, nonce, TPM2_ST.ATTEST_NV, "nv")
    if attest is None:
        return False

    info = attest.attested.nv
    if not _compare(info.nvContents, _to_bytes(expected_contents)):
        logger.debug("NV contents do not match")
        return False

    if info.offset != offset:
        logger.debug("NV offset %d, expected %d", info.offset, offset)
        return False

    return _check_signature(signer, halg, attest, signature)
