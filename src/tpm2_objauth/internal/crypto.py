# SPDX-License-Identifier: BSD-2

from math import ceil
from ..constants import TPM2_ALG, TPM2_ECC
from ..log import objauth_loggers
from cryptography.hazmat.primitives.asymmetric import rsa, ec, padding
from cryptography.hazmat.primitives.asymmetric.utils import (
    Prehashed,
    encode_dss_signature,
)
from cryptography.hazmat.primitives import hashes, constant_time
from cryptography.hazmat.primitives.hmac import HMAC
from cryptography.hazmat.primitives.serialization import (
    load_pem_private_key,
    load_der_private_key,
    load_pem_public_key,
    load_der_public_key,
    load_ssh_public_key,
    load_ssh_private_key,
    Encoding,
    PublicFormat,
    PrivateFormat,
    NoEncryption,
    BestAvailableEncryption,
)
from cryptography.x509 import load_pem_x509_certificate, load_der_x509_certificate
from cryptography.hazmat.primitives.kdf.kbkdf import CounterLocation, KBKDFHMAC, Mode
from cryptography.hazmat.primitives.ciphers.algorithms import AES
from cryptography.hazmat.primitives.ciphers import modes, Cipher
from cryptography.hazmat.backends import default_backend
from cryptography.exceptions import UnsupportedAlgorithm, InvalidSignature
from typing import Type

logger = objauth_loggers["crypto"]

_curvetable = (
    (TPM2_ECC.NIST_P192, ec.SECP192R1),
    (TPM2_ECC.NIST_P224, ec.SECP224R1),
    (TPM2_ECC.NIST_P256, ec.SECP256R1),
    (TPM2_ECC.NIST_P384, ec.SECP384R1),
    (TPM2_ECC.NIST_P521, ec.SECP521R1),
)

_digesttable = (
    (TPM2_ALG.SHA1, hashes.SHA1),
    (TPM2_ALG.SHA256, hashes.SHA256),
    (TPM2_ALG.SHA384, hashes.SHA384),
    (TPM2_ALG.SHA512, hashes.SHA512),
    (TPM2_ALG.SHA3_256, hashes.SHA3_256),
    (TPM2_ALG.SHA3_384, hashes.SHA3_384),
    (TPM2_ALG.SHA3_512, hashes.SHA3_512),
)


def _get_curveid(curve):
    for (algid, c) in _curvetable:
        if isinstance(curve, c):
            return algid
    return None


def _get_curve(curveid):
    for (algid, c) in _curvetable:
        if algid == curveid:
            return c
    return None


def _get_digest(digestid):
    for (algid, d) in _digesttable:
        if algid == digestid:
            return d
    return None


def _need_digest(digestid):
    dt = _get_digest(digestid)
    if dt is None:
        raise ValueError(f"unsupported digest algorithm: {digestid}")
    return dt


def _get_digest_size(alg):
    return _need_digest(alg).digest_size


def _hash(alg, *chunks) -> bytes:
    dt = _need_digest(alg)
    d = hashes.Hash(dt(), backend=default_backend())
    for c in chunks:
        d.update(c)
    return d.finalize()


def _int_to_bytes(i: int) -> bytes:
    s = ceil(i.bit_length() / 8)
    return i.to_bytes(length=s, byteorder="big")


def _compare(a: bytes, b: bytes) -> bool:
    return constant_time.bytes_eq(bytes(a), bytes(b))


def key_from_encoding(data, password=None):
    try:
        cert = load_pem_x509_certificate(data, backend=default_backend())
        key = cert.public_key()
        return key
    except ValueError:
        pass
    try:
        key = load_pem_public_key(data, backend=default_backend())
        return key
    except ValueError:
        pass
    try:
        pkey = load_pem_private_key(data, password=password, backend=default_backend())
        key = pkey.public_key()
        return key
    except ValueError:
        pass
    try:
        key = load_ssh_public_key(data, backend=default_backend())
        return key
    except (ValueError, UnsupportedAlgorithm):
        pass
    try:
        cert = load_der_x509_certificate(data, backend=default_backend())
        key = cert.public_key()
        return key
    except ValueError:
        pass
    try:
        key = load_der_public_key(data, backend=default_backend())
        return key
    except ValueError:
        pass
    try:
        pkey = load_der_private_key(data, password=password, backend=default_backend())
        key = pkey.public_key()
        return key
    except ValueError:
        pass

    raise ValueError("Unsupported key format")


def private_key_from_encoding(data, password=None):
    try:
        key = load_pem_private_key(data, password=password, backend=default_backend())
        return key
    except ValueError:
        pass
    try:
        key = load_ssh_private_key(data, password=password, backend=default_backend())
        return key
    except ValueError:
        pass
    try:
        key = load_der_private_key(data, password=password, backend=default_backend())
        return key
    except ValueError:
        pass

    raise ValueError("Unsupported key format")


def _public_from_key(key, obj):
    """Fill the type, parameters and unique fields of a public area from a cryptography key."""
    nums = key.public_numbers()
    if isinstance(key, rsa.RSAPublicKey):
        obj.type = TPM2_ALG.RSA
        obj.parameters.rsaDetail.keyBits = key.key_size
        obj.unique.rsa = _int_to_bytes(nums.n)
        if nums.e != 65537:
            obj.parameters.rsaDetail.exponent = nums.e
        else:
            obj.parameters.rsaDetail.exponent = 0
    elif isinstance(key, ec.EllipticCurvePublicKey):
        obj.type = TPM2_ALG.ECC
        curveid = _get_curveid(key.curve)
        if curveid is None:
            raise ValueError(f"unsupported curve: {key.curve.name}")
        obj.parameters.eccDetail.curveID = curveid
        obj.unique.ecc.x = _int_to_bytes(nums.x)
        obj.unique.ecc.y = _int_to_bytes(nums.y)
    else:
        raise ValueError(f"unsupported key type: {key.__class__.__name__}")


def _public_from_encoding(data, obj, password=None):
    key = key_from_encoding(data, password)
    _public_from_key(key, obj)


def _private_from_key(key, obj):
    nums = key.private_numbers()
    if isinstance(key, rsa.RSAPrivateKey):
        obj.sensitiveType = TPM2_ALG.RSA
        obj.sensitive.rsa = _int_to_bytes(nums.p)
    elif isinstance(key, ec.EllipticCurvePrivateKey):
        obj.sensitiveType = TPM2_ALG.ECC
        obj.sensitive.ecc = _int_to_bytes(nums.private_value)
    else:
        raise ValueError(f"unsupported key type: {key.__class__.__name__}")


def _private_from_encoding(data, obj, password=None):
    key = private_key_from_encoding(data, password)
    _private_from_key(key, obj)


def _rsa_exponent(public) -> int:
    e = public.parameters.rsaDetail.exponent
    return e if e != 0 else 65537


def public_to_key(obj):
    if hasattr(obj, "publicArea"):
        obj = obj.publicArea
    key = None
    if obj.type == TPM2_ALG.RSA:
        n = int.from_bytes(bytes(obj.unique.rsa), byteorder="big")
        nums = rsa.RSAPublicNumbers(_rsa_exponent(obj), n)
        key = nums.public_key(backend=default_backend())
    elif obj.type == TPM2_ALG.ECC:
        curve = _get_curve(obj.parameters.eccDetail.curveID)
        if curve is None:
            raise ValueError(f"unsupported curve: {obj.parameters.eccDetail.curveID}")
        x = int.from_bytes(bytes(obj.unique.ecc.x), byteorder="big")
        y = int.from_bytes(bytes(obj.unique.ecc.y), byteorder="big")
        nums = ec.EllipticCurvePublicNumbers(x, y, curve())
        key = nums.public_key(backend=default_backend())
    else:
        raise ValueError(f"unsupported key type: {obj.type}")

    return key


def _rsa_private_numbers(p: int, n: int, e: int) -> rsa.RSAPrivateNumbers:
    """Rebuild the full private numbers from the prime kept in a sensitive area."""
    q = n // p
    if p * q != n:
        raise ValueError("prime does not divide the public modulus")

    d = pow(e, -1, (p - 1) * (q - 1))

    dmp1 = rsa.rsa_crt_dmp1(d, p)
    dmq1 = rsa.rsa_crt_dmq1(d, q)
    iqmp = rsa.rsa_crt_iqmp(p, q)

    return rsa.RSAPrivateNumbers(p, q, d, dmp1, dmq1, iqmp, rsa.RSAPublicNumbers(e, n))


def private_to_key(private, public):
    if hasattr(private, "sensitiveArea"):
        private = private.sensitiveArea
    if hasattr(public, "publicArea"):
        public = public.publicArea
    key = None
    if private.sensitiveType == TPM2_ALG.RSA:

        p = int.from_bytes(bytes(private.sensitive.rsa), byteorder="big")
        n = int.from_bytes(bytes(public.unique.rsa), byteorder="big")
        e = _rsa_exponent(public)

        key = _rsa_private_numbers(p, n, e).private_key(backend=default_backend())
    elif private.sensitiveType == TPM2_ALG.ECC:

        curve = _get_curve(public.parameters.eccDetail.curveID)
        if curve is None:
            raise ValueError(
                f"unsupported curve: {public.parameters.eccDetail.curveID}"
            )

        p = int.from_bytes(bytes(private.sensitive.ecc), byteorder="big")
        x = int.from_bytes(bytes(public.unique.ecc.x), byteorder="big")
        y = int.from_bytes(bytes(public.unique.ecc.y), byteorder="big")

        key = ec.EllipticCurvePrivateNumbers(
            p, ec.EllipticCurvePublicNumbers(x, y, curve())
        ).private_key(backend=default_backend())
    else:
        raise ValueError(f"unsupported key type: {private.sensitiveType}")

    return key


def _public_to_pem(obj, encoding="pem"):
    encoding = encoding.lower()
    key = public_to_key(obj)
    if encoding == "pem":
        return key.public_bytes(Encoding.PEM, PublicFormat.SubjectPublicKeyInfo)
    elif encoding == "der":
        return key.public_bytes(Encoding.DER, PublicFormat.SubjectPublicKeyInfo)
    elif encoding == "ssh":
        return key.public_bytes(Encoding.OpenSSH, PublicFormat.OpenSSH)
    else:
        raise ValueError(f"unsupported encoding: {encoding}")


def _private_to_pem(private, public, password=None):
    key = private_to_key(private, public)
    enc_alg = NoEncryption() if password is None else BestAvailableEncryption(password)
    return key.private_bytes(
        encoding=Encoding.PEM,
        format=PrivateFormat.PKCS8,
        encryption_algorithm=enc_alg,
    )


def _getname(obj):
    b = _hash(obj.nameAlg, obj.marshal())
    db = obj.nameAlg.to_bytes(length=2, byteorder="big")
    name = db + b
    return name


def _kdfa(hashAlg, key, label, contextU, contextV, bits):
    halg = _need_digest(hashAlg)
    if bits % 8:
        raise ValueError(f"bad key length {bits}, not a multiple of 8")
    klen = int(bits / 8)
    context = contextU + contextV
    kdf = KBKDFHMAC(
        algorithm=halg(),
        mode=Mode.CounterMode,
        length=klen,
        rlen=4,
        llen=4,
        location=CounterLocation.BeforeFixed,
        label=label,
        context=context,
        fixed=None,
        backend=default_backend(),
    )
    return kdf.derive(key)


def _oaep(hashAlg, label: bytes):
    halg = _need_digest(hashAlg)
    return padding.OAEP(padding.MGF1(halg()), halg(), label)


def _rsa_encrypt(public, data: bytes, label: bytes) -> bytes:
    """RSA-OAEP encrypt data to a public area, the OAEP hash is the name algorithm."""
    key = public_to_key(public)
    if not isinstance(key, rsa.RSAPublicKey):
        raise ValueError(f"unsupported key type: {key.__class__.__name__}")
    return key.encrypt(bytes(data), _oaep(public.nameAlg, label))


def _rsa_decrypt(key: rsa.RSAPrivateKey, hashAlg, data: bytes, label: bytes) -> bytes:
    return key.decrypt(bytes(data), _oaep(hashAlg, label))


def _hmac(
    halg: hashes.HashAlgorithm, hmackey: bytes, enc_cred: bytes, name: bytes
) -> bytes:
    h = HMAC(hmackey, halg(), backend=default_backend())
    h.update(enc_cred)
    h.update(name)
    return h.finalize()


def _check_hmac(
    halg: hashes.HashAlgorithm,
    hmackey: bytes,
    enc_cred: bytes,
    name: bytes,
    expected: bytes,
):
    h = HMAC(hmackey, halg(), backend=default_backend())
    h.update(enc_cred)
    h.update(name)
    h.verify(expected)


def _encrypt(cipher: Type[AES], key: bytes, data: bytes) -> bytes:
    iv = len(key) * b"\x00"
    ci = cipher(key)
    ciph = Cipher(ci, modes.CFB(iv), backend=default_backend())
    encr = ciph.encryptor()
    encdata = encr.update(data) + encr.finalize()
    return encdata


def _decrypt(cipher: Type[AES], key: bytes, data: bytes) -> bytes:
    iv = len(key) * b"\x00"
    ci = cipher(key)
    ciph = Cipher(ci, modes.CFB(iv), backend=default_backend())
    decr = ciph.decryptor()
    plaintextdata = decr.update(data) + decr.finalize()
    return plaintextdata


def _sign_rsassa(key: rsa.RSAPrivateKey, hashAlg, digest: bytes) -> bytes:
    dt = _need_digest(hashAlg)
    return key.sign(bytes(digest), padding.PKCS1v15(), Prehashed(dt()))


def _verify_rsassa_digest(key: rsa.RSAPublicKey, hashAlg, sig: bytes, digest: bytes):
    """Verify a PKCS#1 v1.5 signature over an already computed digest.

    Raises:
        InvalidSignature: when the signature doesn't match the digest.
    """
    dt = _need_digest(hashAlg)
    key.verify(bytes(sig), bytes(digest), padding.PKCS1v15(), Prehashed(dt()))


def verify_signature_rsa(signature, key, data):
    if signature.sigAlg == TPM2_ALG.RSASSA:
        sigdata = signature.signature.rsassa
        pad = padding.PKCS1v15()
        mpad = None
    elif signature.sigAlg == TPM2_ALG.RSAPSS:
        sigdata = signature.signature.rsapss
        dt = _need_digest(sigdata.hash)
        pad = padding.PSS(mgf=padding.MGF1(dt()), salt_length=dt.digest_size)
        mpad = padding.PSS(mgf=padding.MGF1(dt()), salt_length=padding.PSS.MAX_LENGTH)
    else:
        raise ValueError(f"unsupported RSA signature algorithm: {signature.sigAlg}")

    dt = _need_digest(sigdata.hash)
    sig = bytes(sigdata.sig)
    try:
        key.verify(sig, data, pad, dt())
    except InvalidSignature:
        if mpad is None:
            raise
        key.verify(sig, data, mpad, dt())


def verify_signature_ecc(signature, key, data):
    dt = _need_digest(signature.signature.ecdsa.hash)
    r = int.from_bytes(bytes(signature.signature.ecdsa.signatureR), byteorder="big")
    s = int.from_bytes(bytes(signature.signature.ecdsa.signatureS), byteorder="big")
    sig = encode_dss_signature(r, s)
    key.verify(sig, data, ec.ECDSA(dt()))


def _verify_signature(signature, key, data):
    if hasattr(key, "publicArea"):
        key = key.publicArea
    kt = getattr(key, "type", None)
    if kt in (TPM2_ALG.RSA, TPM2_ALG.ECC):
        key = public_to_key(key)
    if signature.sigAlg in (TPM2_ALG.RSASSA, TPM2_ALG.RSAPSS):
        if not isinstance(key, rsa.RSAPublicKey):
            raise ValueError(
                f"bad key type for {signature.sigAlg}, expected RSA public key, got {key.__class__.__name__}"
            )
        verify_signature_rsa(signature, key, data)
    elif signature.sigAlg == TPM2_ALG.ECDSA:
        if not isinstance(key, ec.EllipticCurvePublicKey):
            raise ValueError(
                f"bad key type for {signature.sigAlg}, expected ECC public key, got {key.__class__.__name__}"
            )
        verify_signature_ecc(signature, key, data)
    else:
        raise ValueError(f"unsupported signature algorithm: {signature.sigAlg}")


def _generate_rsa_key(key_bits: int, exponent: int) -> rsa.RSAPrivateKey:
    logger.debug("generating %d bit RSA key", key_bits)
    return rsa.generate_private_key(
        public_exponent=exponent, key_size=key_bits, backend=default_backend()
    )
