# SPDX-License-Identifier: BSD-2
"""Errors raised by the object authentication layer.

Structural rejections during attestation verification are reported as a
False return value, the exceptions here are for caller errors and for
configurations the layer does not support.
"""


class TPM2ObjAuthError(ValueError):
    """Base class of all errors raised by tpm2_objauth."""


class InvalidName(TPM2ObjAuthError):
    """A name does not match the one derived from, or already held by, a handle."""

    def __init__(self, handle: int, msg: str = None):
        if msg is None:
            msg = f"name does not match handle 0x{handle:08x}"
        super(InvalidName, self).__init__(msg)
        self._handle = handle

    @property
    def handle(self):
        """int: The handle the name was set on."""
        return self._handle


class NameNotSet(TPM2ObjAuthError):
    """The name of an entity with an externally asserted name was requested before being set."""

    def __init__(self, handle: int):
        super(NameNotSet, self).__init__(f"name of handle 0x{handle:08x} is not set")
        self._handle = handle

    @property
    def handle(self):
        """int: The handle without a name."""
        return self._handle


class UnknownHandleType(TPM2ObjAuthError):
    """The handle type (most significant octet) has no naming rule."""

    def __init__(self, handle: int):
        super(UnknownHandleType, self).__init__(
            f"unknown handle type 0x{handle >> 24:02x} for handle 0x{handle:08x}"
        )
        self._handle = handle

    @property
    def handle(self):
        """int: The offending handle."""
        return self._handle


class UnsupportedScheme(TPM2ObjAuthError):
    """The signing key is not an RSA key with an RSASSA scheme."""


class UnsupportedWrappingScheme(TPM2ObjAuthError):
    """The credential protector is not an RSA key with an AES-128-CFB symmetric definition."""


class UnsupportedInnerWrapper(TPM2ObjAuthError):
    """The inner wrapper of a duplication is neither NULL nor AES-128-CFB."""


class UnsupportedParentScheme(TPM2ObjAuthError):
    """The new parent of a duplication is not an RSA key with an AES-128-CFB symmetric definition."""


class TypeMismatch(TPM2ObjAuthError, AttributeError):
    """A union arm other than the populated one was read."""


class IntegrityError(TPM2ObjAuthError):
    """An HMAC or inner integrity check failed while opening an envelope."""


class MarshalError(TPM2ObjAuthError):
    """A buffer could not be marshaled or unmarshaled."""
