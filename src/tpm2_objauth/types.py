# SPDX-License-Identifier: BSD-2
"""
The types module contains types for each of the corresponding TPM types from the following TCG specification:

- https://trustedcomputinggroup.org/resource/tpm-library-specification/. See Part 2 "Structures".

The classes contained within can be initialized based on named argument value pairs where the
keys are the names of the associated fields, and are marshaled to and unmarshaled from the
canonical TPM wire format (big endian integers, size prefixed TPM2B buffers, count prefixed
TPML lists and unions selected by a field of the enclosing structure).
"""
import binascii
import copy
from typing import List, Tuple, Union

from tpm2_objauth.constants import (
    TPM2_ALG,
    TPM2_ECC,
    TPM2_GENERATED_VALUE,
    TPM2_HR,
    TPM2_HT,
    TPM2_ST,
    TPMA_NV,
    TPMA_OBJECT,
)
from tpm2_objauth.config import DEFAULT_NAME_ALG
from tpm2_objauth.exceptions import (
    InvalidName,
    MarshalError,
    NameNotSet,
    TypeMismatch,
    UnknownHandleType,
)
from tpm2_objauth.internal.constants import SECRET_LABEL
from tpm2_objauth.internal.crypto import (
    _get_digest_size,
    _getname,
    _hash,
    _private_from_encoding,
    _private_to_pem,
    _public_from_encoding,
    _public_to_pem,
    _rsa_encrypt,
    _verify_signature,
)
from tpm2_objauth.internal.utils import _to_bytes
from tpm2_objauth.log import objauth_loggers

logger = objauth_loggers["naming"]
marshal_logger = objauth_loggers["marshal"]


class UINT8(int):
    _SIZE = 1


class UINT16(int):
    _SIZE = 2


class UINT32(int):
    _SIZE = 4


class UINT64(int):
    _SIZE = 8


TPMI_YES_NO = UINT8


def _read(buf: bytes, offset: int, size: int) -> Tuple[bytes, int]:
    end = offset + size
    if end > len(buf):
        raise MarshalError(f"buffer too short, need {end} bytes, got {len(buf)}")
    return buf[offset:end], end


def _marshal_int(tipe, value) -> bytes:
    try:
        return int(value).to_bytes(tipe._SIZE, byteorder="big")
    except OverflowError:
        raise MarshalError(f"value {int(value)} does not fit in {tipe.__name__}")


def _unpack_int(tipe, buf: bytes, offset: int):
    b, offset = _read(buf, offset, tipe._SIZE)
    return tipe(int.from_bytes(b, byteorder="big")), offset


def _coerce(tipe, value):
    """Convert value into an instance of tipe, copying structures."""
    if isinstance(value, tipe):
        if isinstance(value, (TPM_OBJECT, TPMU_OBJECT)):
            return copy.deepcopy(value)
        return value
    if issubclass(tipe, int):
        if isinstance(value, str) and hasattr(tipe, "parse"):
            return tipe(tipe.parse(value))
        if isinstance(value, int):
            return tipe(value)
    elif issubclass(tipe, TPM2B_SIMPLE_OBJECT):
        if isinstance(value, (bytes, bytearray, str, TPM2B_SIMPLE_OBJECT, TPMT_HA)):
            return tipe(value)
    elif issubclass(tipe, TPML_OBJECT):
        if isinstance(value, (list, tuple, TPML_OBJECT)):
            return tipe(value)
    elif issubclass(tipe, TPM_OBJECT):
        if isinstance(value, TPM_OBJECT) and value._fields == tipe._fields:
            return tipe(value)
    raise TypeError(f"expected {tipe.__name__}, got {type(value).__name__}")


_DERIVED_NAME_TYPES = (
    TPM2_HT.PCR,
    TPM2_HT.HMAC_SESSION,
    TPM2_HT.POLICY_SESSION,
    TPM2_HT.PERMANENT,
)

_ASSERTED_NAME_TYPES = (
    TPM2_HT.NV_INDEX,
    TPM2_HT.TRANSIENT,
    TPM2_HT.PERSISTENT,
)


class TPM2_HANDLE(int):
    """A handle to a TPM address.

    The name of PCR, session and permanent handles is the handle value itself.
    NV indices and loaded or persistent objects have a name that is the digest of
    their public area, which has to be supplied with :meth:`set_name` and cannot be
    replaced afterwards.
    """

    _SIZE = 4

    @property
    def handle_type(self) -> TPM2_HT:
        """TPM2_HT: The most significant octet of the handle."""
        return TPM2_HT(int(self) >> TPM2_HR.SHIFT)

    def get_name(self) -> "TPM2B_NAME":
        """Get the name of the entity referenced by the handle.

        Returns:
            Returns TPM2B_NAME.

        Raises:
            NameNotSet: The handle has an asserted name which has not been set.
            UnknownHandleType: The handle type has no naming rule.
        """
        ht = self.handle_type
        name = self.__dict__.get("_name")
        if ht in _DERIVED_NAME_TYPES:
            if name is None:
                name = int(self).to_bytes(4, byteorder="big")
                self._name = name
            return TPM2B_NAME(name)
        elif ht in _ASSERTED_NAME_TYPES:
            if name is None:
                raise NameNotSet(self)
            return TPM2B_NAME(name)
        raise UnknownHandleType(self)

    def set_name(self, name: Union["TPM2B_NAME", bytes]) -> None:
        """Associate a name with the handle.

        Args:
            name (TPM2B_NAME or bytes): The name of the entity.

        Raises:
            InvalidName: The name differs from the handle derived name, or from the name set previously.
            UnknownHandleType: The handle type has no naming rule.
        """
        name = _to_bytes(name)
        ht = self.handle_type
        if ht in _DERIVED_NAME_TYPES:
            if name != bytes(self.get_name()):
                logger.warning("name mismatch for handle 0x%08x", self)
                raise InvalidName(self)
            return
        elif ht in _ASSERTED_NAME_TYPES:
            current = self.__dict__.get("_name")
            if current is not None and current != name:
                logger.warning("name of handle 0x%08x is already set", self)
                raise InvalidName(self, f"name of handle 0x{self:08x} is already set")
            self._name = name
            return
        raise UnknownHandleType(self)

    def __eq__(self, value):
        # handles with the same value but different explicitly set names differ
        if isinstance(value, TPM2_HANDLE):
            mine = self.__dict__.get("_name")
            theirs = value.__dict__.get("_name")
            if mine is not None and theirs is not None and mine != theirs:
                return False
        return int.__eq__(self, value)

    def __ne__(self, value):
        eq = self.__eq__(value)
        if eq is NotImplemented:
            return eq
        return not eq

    __hash__ = int.__hash__


class TPM_OBJECT(object):
    """ Abstract Base class for all TPM Objects. Not suitable for direct instantiation.

    Subclasses list their fields in wire order in ``_fields`` as ``(name, type)``
    tuples, union fields carry a third element naming the selector field.
    """

    _fields = ()
    _field_map = {}
    # a TPM2B wrapping a structure, prefixed with its marshaled size
    _sized = False

    def __init_subclass__(cls, **kwargs):
        super().__init_subclass__(**kwargs)
        cls._field_map = {f[0]: f for f in cls._fields}

    def __init__(self, _obj=None, **kwargs):
        object.__setattr__(self, "_values", {f[0]: f[1]() for f in self._fields})

        if _obj is not None:
            if isinstance(_obj, TPM_OBJECT) and _obj._fields == self._fields:
                for k, v in _obj._values.items():
                    self._values[k] = copy.deepcopy(v)
            elif len(self._fields) == 1:
                setattr(self, self._fields[0][0], _obj)
            else:
                raise TypeError(
                    f"{self.__class__.__name__} cannot be initialized from {type(_obj).__name__}"
                )

        for k, v in kwargs.items():
            setattr(self, k, v)

    def __getattr__(self, key):
        if key.startswith("_"):
            raise AttributeError(key)
        try:
            return self._values[key]
        except KeyError:
            raise AttributeError(
                f"{self.__class__.__name__} has no field by the name of {key}"
            ) from None

    def __setattr__(self, key, value):
        if key.startswith("_") or isinstance(getattr(type(self), key, None), property):
            object.__setattr__(self, key, value)
            return
        field = self._field_map.get(key)
        if field is None:
            raise AttributeError(
                f"{self.__class__.__name__} has no field by the name of {key}"
            )
        self._values[key] = _coerce(field[1], value)

    def __eq__(self, value):
        if not isinstance(value, TPM_OBJECT) or type(value)._fields != self._fields:
            return NotImplemented
        return self.marshal() == value.marshal()

    def __repr__(self):
        fields = ", ".join(f"{k}={v!r}" for k, v in self._values.items())
        return f"{self.__class__.__name__}({fields})"

    def _marshal_fields(self) -> bytes:
        out = []
        for f in self._fields:
            v = self._values[f[0]]
            if len(f) == 3:
                out.append(v.marshal(self._values[f[2]]))
            elif issubclass(f[1], int):
                out.append(_marshal_int(f[1], v))
            else:
                out.append(v.marshal())
        return b"".join(out)

    def marshal(self) -> bytes:
        """Marshal instance into bytes.

        Returns:
            Returns the marshaled type as bytes.

        Raises:
            MarshalError: If a field value cannot be represented.
        """
        data = self._marshal_fields()
        if self._sized:
            if len(data) > 0xFFFF:
                raise MarshalError(f"{self.__class__.__name__} is too large")
            return _marshal_int(UINT16, len(data)) + data
        return data

    @classmethod
    def _unpack(cls, buf: bytes, offset: int):
        if cls._sized:
            size, offset = _unpack_int(UINT16, buf, offset)
            if size == 0:
                return cls(), offset
            end = offset + size
            if end > len(buf):
                raise MarshalError(
                    f"{cls.__name__} claims {size} bytes, only {len(buf) - offset} left"
                )
            buf = buf[:end]

        obj = cls()
        for f in cls._fields:
            if len(f) == 3:
                v, offset = f[1]._unpack(buf, offset, obj._values[f[2]])
            elif issubclass(f[1], int):
                v, offset = _unpack_int(f[1], buf, offset)
            else:
                v, offset = f[1]._unpack(buf, offset)
            obj._values[f[0]] = v

        if cls._sized and offset != end:
            raise MarshalError(f"{cls.__name__} size {size} does not match its contents")
        return obj, offset

    @classmethod
    def unmarshal(cls, buf):
        """Unmarshal bytes into type instance.

        Args:
            buf (bytes): The bytes to be unmarshaled.

        Returns:
            Returns an instance of the current type and the number of bytes consumed.

        Raises:
            MarshalError: If the buffer is truncated or inconsistent.
        """
        try:
            return cls._unpack(_to_bytes(buf), 0)
        except MarshalError as e:
            marshal_logger.debug("unmarshal of %s failed: %s", cls.__name__, e)
            raise


class TPM2B_SIMPLE_OBJECT(TPM_OBJECT):
    """ Abstract Base class for all TPM2B Simple Objects. A Simple object contains only
    a size and byte buffer fields. This is not suitable for direct instantiation."""

    _bytefield = "buffer"

    def __init__(self, _obj=None, **kwargs):
        object.__setattr__(self, "_values", {})
        object.__setattr__(self, "_buffer", b"")

        for k, v in kwargs.items():
            if k == "size":
                raise AttributeError(f"{k} is read only")
            if k != self._bytefield:
                raise AttributeError(f"{self.__class__.__name__} has no field {k}")
            _obj = v

        if _obj is not None:
            self._set_buffer(_obj)

    def _set_buffer(self, value):
        if isinstance(value, str):
            value = value.encode()
        value = _to_bytes(value)
        if len(value) > 0xFFFF:
            raise MarshalError(
                f"{self.__class__.__name__} buffer too large, got {len(value)} bytes"
            )
        object.__setattr__(self, "_buffer", value)

    def __getattr__(self, key):
        if key == self._bytefield:
            return self._buffer
        return super().__getattr__(key)

    def __setattr__(self, key, value):
        if key == "size":
            raise AttributeError(f"{key} is read only")
        if key == self._bytefield:
            self._set_buffer(value)
        elif key.startswith("_"):
            object.__setattr__(self, key, value)
        else:
            raise AttributeError(f"{self.__class__.__name__} has no field {key}")

    @property
    def size(self) -> int:
        return len(self._buffer)

    def marshal(self) -> bytes:
        return _marshal_int(UINT16, len(self._buffer)) + self._buffer

    @classmethod
    def _unpack(cls, buf: bytes, offset: int):
        size, offset = _unpack_int(UINT16, buf, offset)
        data, offset = _read(buf, offset, size)
        return cls(data), offset

    def __len__(self):
        return len(self._buffer)

    def __getitem__(self, index):
        if isinstance(index, (int, slice)):
            return self._buffer[index]
        raise TypeError("index must an int or a slice")

    def __bytes__(self):
        return self._buffer

    def __str__(self) -> str:
        """Returns a hex string representation of the underlying buffer.

        This is the same as:

        .. code-block:: python

            bytes(tpm2b_type).hex()

        Returns (str):
            A hex encoded string of the buffer.
        """
        return binascii.hexlify(self._buffer).decode()

    def __repr__(self):
        return f"{self.__class__.__name__}({self._buffer!r})"

    def __eq__(self, value):
        if isinstance(value, (TPM2B_SIMPLE_OBJECT, bytearray, memoryview)):
            value = bytes(value)
        return self._buffer == value

    def __hash__(self):
        return hash(self._buffer)


class TPML_OBJECT(TPM_OBJECT):
    """ Abstract Base class for all TPML Objects. A TPML object is an object that
    contains a list of objects. This is not suitable for direct instantiation."""

    _listfield = None
    _element = None

    def __init__(self, _obj=None, **kwargs):
        object.__setattr__(self, "_values", {})
        object.__setattr__(self, "_items", [])

        for k, v in kwargs.items():
            if k != self._listfield:
                raise AttributeError(
                    f"{self.__class__.__name__} has no field by the name of {k}"
                )
            _obj = v

        if _obj is not None:
            self._set_items(_obj)

    def _set_items(self, items):
        if isinstance(items, TPM_OBJECT) and not isinstance(items, TPML_OBJECT):
            items = [items]
        if not isinstance(items, (list, tuple, TPML_OBJECT)):
            raise TypeError(
                "Expected initializer for TPML data types to be a list or tuple"
            )
        items = [_coerce(self._element, x) for x in items]
        object.__setattr__(self, "_items", items)

    def __getattr__(self, key):
        if key == self._listfield:
            return self._items
        return super().__getattr__(key)

    def __setattr__(self, key, value):
        if key == "count":
            raise AttributeError(f"{key} is read only")
        if key == self._listfield:
            self._set_items(value)
        elif key.startswith("_"):
            object.__setattr__(self, key, value)
        else:
            raise AttributeError(
                f"{self.__class__.__name__} has no field by the name of {key}"
            )

    @property
    def count(self) -> int:
        return len(self._items)

    def __len__(self):
        return len(self._items)

    def __getitem__(self, index):
        return self._items[index]

    def __iter__(self):
        return iter(self._items)

    def __repr__(self):
        return f"{self.__class__.__name__}({self._items!r})"

    def marshal(self) -> bytes:
        data = b"".join(_coerce(self._element, x).marshal() for x in self._items)
        return _marshal_int(UINT32, len(self._items)) + data

    @classmethod
    def _unpack(cls, buf: bytes, offset: int):
        count, offset = _unpack_int(UINT32, buf, offset)
        items = []
        for _ in range(count):
            x, offset = cls._element._unpack(buf, offset)
            items.append(x)
        obj = cls()
        object.__setattr__(obj, "_items", items)
        return obj, offset


class TPMU_OBJECT(object):
    """ Abstract Base class for all TPMU Objects.

    A union holds a single member at a time, the selector held by the enclosing
    structure decides which member is marshaled. Reading a member other than the
    populated one raises TypeMismatch.

    ``_arms`` lists ``(name, type, selectors)``, ``_aliases`` maps alternative member
    names to the members able to serve them and ``_empty`` the selectors for which
    the union marshals to nothing.
    """

    _arms = ()
    _aliases = {}
    _empty = (TPM2_ALG.NULL,)

    def __init__(self, **kwargs):
        object.__setattr__(self, "_arm", None)
        object.__setattr__(self, "_value", None)
        for k, v in kwargs.items():
            setattr(self, k, v)

    @classmethod
    def _get_arm(cls, name):
        for arm in cls._arms:
            if arm[0] == name:
                return arm
        return None

    def _resolve(self, key) -> tuple:
        if self._get_arm(key) is not None:
            return (key,)
        names = self._aliases.get(key)
        if names is None:
            raise AttributeError(
                f"{self.__class__.__name__} has no field by the name of {key}"
            )
        return names

    def __getattr__(self, key):
        if key.startswith("_"):
            raise AttributeError(key)
        names = self._resolve(key)
        if self._arm is None:
            arm = self._get_arm(names[0])
            object.__setattr__(self, "_value", arm[1]())
            object.__setattr__(self, "_arm", arm[0])
        elif self._arm not in names:
            raise TypeMismatch(
                f"{self.__class__.__name__} holds {self._arm}, not {key}"
            )
        return self._value

    def __setattr__(self, key, value):
        if key.startswith("_"):
            object.__setattr__(self, key, value)
            return
        names = self._resolve(key)
        name = self._arm if self._arm in names else names[0]
        arm = self._get_arm(name)
        object.__setattr__(self, "_value", _coerce(arm[1], value))
        object.__setattr__(self, "_arm", name)

    def holds(self, key: str) -> bool:
        """Indicates if the union currently holds the member key."""
        try:
            names = self._resolve(key)
        except AttributeError:
            return False
        return self._arm in names

    def __eq__(self, value):
        if not isinstance(value, type(self)):
            return NotImplemented
        return self._arm == value._arm and self._value == value._value

    def __repr__(self):
        if self._arm is None:
            return f"{self.__class__.__name__}()"
        return f"{self.__class__.__name__}({self._arm}={self._value!r})"

    @classmethod
    def _select(cls, selector):
        if selector in cls._empty:
            return None
        for arm in cls._arms:
            if selector in arm[2]:
                return arm
        raise MarshalError(f"{cls.__name__} has no member for selector {selector}")

    def marshal(self, selector) -> bytes:
        """Marshal the member chosen by selector into bytes."""
        arm = self._select(selector)
        if arm is None:
            return b""
        name, tipe = arm[0], arm[1]
        if self._arm is None:
            value = tipe()
        elif self._arm == name or type(self._value) is tipe:
            value = self._value
        else:
            raise MarshalError(
                f"{self.__class__.__name__} holds {self._arm}, selector {selector} requires {name}"
            )
        if issubclass(tipe, int):
            return _marshal_int(tipe, value)
        return value.marshal()

    @classmethod
    def _unpack(cls, buf: bytes, offset: int, selector):
        obj = cls()
        arm = cls._select(selector)
        if arm is None:
            return obj, offset
        if issubclass(arm[1], int):
            v, offset = _unpack_int(arm[1], buf, offset)
        else:
            v, offset = arm[1]._unpack(buf, offset)
        object.__setattr__(obj, "_arm", arm[0])
        object.__setattr__(obj, "_value", v)
        return obj, offset


class TPM2B_ATTEST(TPM2B_SIMPLE_OBJECT):
    _bytefield = "attestationData"


class TPM2B_AUTH(TPM2B_SIMPLE_OBJECT):
    pass


class TPM2B_DATA(TPM2B_SIMPLE_OBJECT):
    pass


class TPM2B_DIGEST(TPM2B_SIMPLE_OBJECT):
    pass


class TPM2B_ECC_PARAMETER(TPM2B_SIMPLE_OBJECT):
    pass


class TPM2B_ENCRYPTED_SECRET(TPM2B_SIMPLE_OBJECT):
    _bytefield = "secret"


class TPM2B_ID_OBJECT(TPM2B_SIMPLE_OBJECT):
    _bytefield = "credential"


class TPM2B_MAX_NV_BUFFER(TPM2B_SIMPLE_OBJECT):
    pass


class TPM2B_NAME(TPM2B_SIMPLE_OBJECT):
    _bytefield = "name"


class TPM2B_NONCE(TPM2B_SIMPLE_OBJECT):
    pass


class TPM2B_PRIVATE(TPM2B_SIMPLE_OBJECT):
    pass


class TPM2B_PRIVATE_KEY_RSA(TPM2B_SIMPLE_OBJECT):
    pass


class TPM2B_PUBLIC_KEY_RSA(TPM2B_SIMPLE_OBJECT):
    pass


class TPM2B_SENSITIVE_DATA(TPM2B_SIMPLE_OBJECT):
    pass


class TPM2B_SYM_KEY(TPM2B_SIMPLE_OBJECT):
    pass


class TPMT_HA(TPM_OBJECT):
    """A digest tagged with its hash algorithm.

    The digest is always exactly as long as the digest size of hashAlg, the
    NULL algorithm has an empty digest.

    Args:
        hashAlg (TPM2_ALG, int or str): The hash algorithm, default is TPM2_ALG.NULL.
        digest (bytes) optional: The initial digest, default is all zero.

    Raises:
        ValueError: If the algorithm is unsupported or the digest has the wrong size.

    Example:
        .. code-block:: python

            ha = TPMT_HA(TPM2_ALG.SHA256)
            ha.extend(b"\\x01" * 32)
    """

    def __init__(self, hashAlg=TPM2_ALG.NULL, digest=None):
        hashAlg = _coerce(TPM2_ALG, hashAlg)
        object.__setattr__(self, "_values", {})
        object.__setattr__(self, "_hashAlg", hashAlg)
        object.__setattr__(self, "_digest", b"")
        if digest is None:
            digest = b"\x00" * self.get_digest_size(hashAlg)
        self.digest = digest

    @classmethod
    def get_digest_size(cls, alg) -> int:
        """Returns the digest size in bytes of alg, 0 for TPM2_ALG.NULL.

        Raises:
            ValueError: If alg is not a supported digest algorithm.
        """
        if alg == TPM2_ALG.NULL:
            return 0
        return _get_digest_size(alg)

    @classmethod
    def from_hash(cls, alg, data: bytes) -> "TPMT_HA":
        """Create a TPMT_HA holding the digest of data."""
        alg = _coerce(TPM2_ALG, alg)
        return cls(alg, _hash(alg, _to_bytes(data)))

    @classmethod
    def from_hash_of_string(cls, alg, text: Union[str, bytes]) -> "TPMT_HA":
        """Create a TPMT_HA holding the digest of the bytes of text.

        A str is hashed as its UTF-8 encoding.
        """
        if isinstance(text, str):
            text = text.encode("utf-8")
        return cls.from_hash(alg, text)

    @property
    def hashAlg(self) -> TPM2_ALG:
        return self._hashAlg

    @property
    def digest(self) -> bytes:
        return self._digest

    @digest.setter
    def digest(self, value):
        value = _to_bytes(value)
        ds = self.get_digest_size(self._hashAlg)
        if len(value) != ds:
            raise ValueError(
                f"digest length for {self._hashAlg} must be {ds}, got {len(value)}"
            )
        object.__setattr__(self, "_digest", value)

    def digest_size(self) -> int:
        return len(self._digest)

    def extend(self, data) -> "TPMT_HA":
        """Replace the digest by H(digest || data) and return self."""
        self.digest = _hash(self._hashAlg, self._digest, _to_bytes(data))
        return self

    def event(self, data) -> "TPMT_HA":
        """Replace the digest by H(digest || H(data)) and return self."""
        self.digest = _hash(
            self._hashAlg, self._digest, _hash(self._hashAlg, _to_bytes(data))
        )
        return self

    def reset(self) -> "TPMT_HA":
        """Zero the digest, keeping the algorithm."""
        object.__setattr__(self, "_digest", b"\x00" * len(self._digest))
        return self

    def __bytes__(self) -> bytes:
        """Returns the digest field as bytes.

        If the hashAlg field is TPM2_ALG.NULL, it returns
        bytes object of len 0.

        Return:
            The digest field as bytes.
        """
        return self._digest

    def __repr__(self):
        return f"TPMT_HA(hashAlg={self._hashAlg!r}, digest={self._digest!r})"

    def marshal(self) -> bytes:
        return _marshal_int(TPM2_ALG, self._hashAlg) + self._digest

    @classmethod
    def _unpack(cls, buf: bytes, offset: int):
        alg, offset = _unpack_int(TPM2_ALG, buf, offset)
        try:
            ds = cls.get_digest_size(alg)
        except ValueError as e:
            raise MarshalError(str(e))
        digest, offset = _read(buf, offset, ds)
        return cls(alg, digest), offset

    def __eq__(self, value):
        if not isinstance(value, TPMT_HA):
            return NotImplemented
        return self._hashAlg == value._hashAlg and self._digest == value._digest


class TPMS_PCR_SELECTION(TPM_OBJECT):
    """A PCR bank and a bitmap of the selected PCRs of that bank.

    Args:
        pcrs (list of int or "all") optional: The PCRs to select.
        hash (TPM2_ALG): The PCR bank.
        pcrSelect (bytes) optional: The raw bitmap, mutually exclusive with pcrs.
    """

    _fields = (("hash", TPM2_ALG),)
    PCR_LAST = 23
    PCR_SELECT_SIZE = 3

    def __init__(self, pcrs=None, **kwargs):
        object.__setattr__(self, "_pcrSelect", b"")
        super().__init__(**kwargs)

        if not pcrs:
            return

        if bool(self.hash) != bool(pcrs):
            raise ValueError("hash and pcrs MUST be specified")

        select = bytearray(self.PCR_SELECT_SIZE)
        if pcrs == "all" or (len(pcrs) == 1 and pcrs[0] == "all"):
            select = bytearray(b"\xff" * self.PCR_SELECT_SIZE)
        else:
            for pcr in pcrs:
                if pcr < 0 or pcr > self.PCR_LAST:
                    raise ValueError(f"PCR Index out of range, got {pcr}")
                select[pcr // 8] |= 1 << (pcr % 8)
        self.pcrSelect = bytes(select)

    @property
    def pcrSelect(self) -> bytes:
        return self._pcrSelect

    @pcrSelect.setter
    def pcrSelect(self, value):
        value = _to_bytes(value)
        if len(value) > 0xFF:
            raise MarshalError(f"pcrSelect too large, got {len(value)} bytes")
        object.__setattr__(self, "_pcrSelect", value)

    @property
    def sizeofSelect(self) -> int:
        return len(self._pcrSelect)

    def pcrs(self) -> List[int]:
        """Returns the selected PCR indexes."""
        select = self._pcrSelect
        return [i for i in range(len(select) * 8) if select[i // 8] & (1 << (i % 8))]

    @staticmethod
    def parse(selection: str) -> "TPMS_PCR_SELECTION":
        """Given a PCR selection string populate a TPMS_PCR_SELECTION structure.

        A PCR Bank selection lists: ::

        <BANK>:<PCR>[,<PCR>] or <BANK>:all

        For Example "sha1:3,4", will select PCRs 3 and 4 from the SHA1 bank.

        Args:
            selection(str): A PCR selection string.

        Returns:
            A populated TPMS_PCR_SELECTION

        Raises:
            ValueError: Invalid PCR specification.

        Example:
            .. code-block:: python

                TPMS_PCR_SELECTION.parse("sha256:1,3,5,7")
                TPMS_PCR_SELECTION.parse("sha1:all")
        """

        if selection is None or len(selection) == 0:
            raise ValueError(
                f'Expected selection to be not None and len > 0, got: "{selection}"'
            )

        hunks = [x.strip() for x in selection.split(":")]
        if len(hunks) != 2:
            raise ValueError(f"PCR Selection malformed, got {selection}")

        try:
            halg = int(hunks[0], 0)
        except ValueError:
            halg = TPM2_ALG.parse(hunks[0])

        if hunks[1] != "all":
            try:
                pcrs = [int(x.strip(), 0) for x in hunks[1].split(",")]
            except ValueError:
                raise ValueError(f"Expected PCR number, got {hunks[1]}")
        else:
            pcrs = hunks[1]

        return TPMS_PCR_SELECTION(hash=halg, pcrs=pcrs)

    def __repr__(self):
        return f"TPMS_PCR_SELECTION(hash={self.hash!r}, pcrSelect={self._pcrSelect!r})"

    def marshal(self) -> bytes:
        return (
            _marshal_int(TPM2_ALG, self.hash)
            + _marshal_int(UINT8, len(self._pcrSelect))
            + self._pcrSelect
        )

    @classmethod
    def _unpack(cls, buf: bytes, offset: int):
        halg, offset = _unpack_int(TPM2_ALG, buf, offset)
        size, offset = _unpack_int(UINT8, buf, offset)
        select, offset = _read(buf, offset, size)
        return cls(hash=halg, pcrSelect=select), offset


class TPML_PCR_SELECTION(TPML_OBJECT):
    _listfield = "pcrSelections"
    _element = TPMS_PCR_SELECTION
    NUM_PCR_BANKS = 16

    @staticmethod
    def parse(selections: str) -> "TPML_PCR_SELECTION":
        """Convert a PCR selection string into the TPML_PCR_SELECTION data structure.

        PCR Bank Selection lists follow the below specification: ::

        <BANK>:<PCR>[,<PCR>] or <BANK>:all

        multiple banks may be separated by '+'.

        For Example "sha1:3,4+sha256:all", will select PCRs 3 and 4 from the SHA1 bank
        and PCRs 0 to 23 from the SHA256 bank.

        Args:
            selections(str): A PCR selection string.

        Returns:
            A populated TPML_PCR_SELECTION

        Raises:
            ValueError: Invalid selection list.

        Example:
            .. code-block:: python

                TPML_PCR_SELECTION.parse("sha256:1,3,5,7")
                TPML_PCR_SELECTION.parse("sha1:3,4+sha256:all")
        """

        if selections is None or len(selections) == 0:
            return TPML_PCR_SELECTION()

        selectors = selections.split("+")

        for x in selectors:
            if len(x) == 0:
                raise ValueError(
                    f"Malformed PCR bank selection list (unbalanced +), got: {selections}"
                )

        if len(selectors) > TPML_PCR_SELECTION.NUM_PCR_BANKS:
            raise ValueError(
                f"PCR Selection list greater than {TPML_PCR_SELECTION.NUM_PCR_BANKS}, "
                f"got {len(selectors)}"
            )

        return TPML_PCR_SELECTION([TPMS_PCR_SELECTION.parse(x) for x in selectors])


class TPML_DIGEST(TPML_OBJECT):
    _listfield = "digests"
    _element = TPM2B_DIGEST


class TPMS_EMPTY(TPM_OBJECT):
    pass


class TPMS_SCHEME_HASH(TPM_OBJECT):
    _fields = (("hashAlg", TPM2_ALG),)


class TPMS_SCHEME_ECDAA(TPM_OBJECT):
    _fields = (("hashAlg", TPM2_ALG), ("count", UINT16))


class TPMS_SCHEME_XOR(TPM_OBJECT):
    _fields = (("hashAlg", TPM2_ALG), ("kdf", TPM2_ALG))


_SYM_BLOCK_CIPHERS = (TPM2_ALG.AES, TPM2_ALG.SM4, TPM2_ALG.CAMELLIA, TPM2_ALG.TDES)


class TPMU_SYM_KEY_BITS(TPMU_OBJECT):
    _arms = (
        ("sym", UINT16, _SYM_BLOCK_CIPHERS),
        ("exclusiveOr", TPM2_ALG, (TPM2_ALG.XOR,)),
    )
    _aliases = {
        "aes": ("sym",),
        "sm4": ("sym",),
        "camellia": ("sym",),
        "tdes": ("sym",),
    }


class TPMU_SYM_MODE(TPMU_OBJECT):
    _arms = (("sym", TPM2_ALG, _SYM_BLOCK_CIPHERS),)
    _aliases = {
        "aes": ("sym",),
        "sm4": ("sym",),
        "camellia": ("sym",),
        "tdes": ("sym",),
    }
    _empty = (TPM2_ALG.NULL, TPM2_ALG.XOR)


class TPMT_SYM_DEF(TPM_OBJECT):
    _fields = (
        ("algorithm", TPM2_ALG),
        ("keyBits", TPMU_SYM_KEY_BITS, "algorithm"),
        ("mode", TPMU_SYM_MODE, "algorithm"),
    )


class TPMT_SYM_DEF_OBJECT(TPM_OBJECT):
    _fields = TPMT_SYM_DEF._fields


_SIG_SCHEME_ARMS = (
    ("rsassa", TPMS_SCHEME_HASH, (TPM2_ALG.RSASSA,)),
    ("rsapss", TPMS_SCHEME_HASH, (TPM2_ALG.RSAPSS,)),
    ("ecdsa", TPMS_SCHEME_HASH, (TPM2_ALG.ECDSA,)),
    ("ecdaa", TPMS_SCHEME_ECDAA, (TPM2_ALG.ECDAA,)),
    ("sm2", TPMS_SCHEME_HASH, (TPM2_ALG.SM2,)),
    ("ecschnorr", TPMS_SCHEME_HASH, (TPM2_ALG.ECSCHNORR,)),
)


class TPMU_ASYM_SCHEME(TPMU_OBJECT):
    _arms = _SIG_SCHEME_ARMS + (
        ("ecdh", TPMS_SCHEME_HASH, (TPM2_ALG.ECDH,)),
        ("ecmqv", TPMS_SCHEME_HASH, (TPM2_ALG.ECMQV,)),
        ("oaep", TPMS_SCHEME_HASH, (TPM2_ALG.OAEP,)),
    )
    _aliases = {
        "anySig": ("rsassa", "rsapss", "ecdsa", "ecdaa", "sm2", "ecschnorr"),
    }
    _empty = (TPM2_ALG.NULL, TPM2_ALG.RSAES)


class TPMT_ASYM_SCHEME(TPM_OBJECT):
    _fields = (("scheme", TPM2_ALG), ("details", TPMU_ASYM_SCHEME, "scheme"))


class TPMT_RSA_SCHEME(TPM_OBJECT):
    _fields = TPMT_ASYM_SCHEME._fields


class TPMT_ECC_SCHEME(TPM_OBJECT):
    _fields = TPMT_ASYM_SCHEME._fields


class TPMU_SIG_SCHEME(TPMU_OBJECT):
    _arms = _SIG_SCHEME_ARMS + (("hmac", TPMS_SCHEME_HASH, (TPM2_ALG.HMAC,)),)
    _aliases = {
        "any": ("rsassa", "rsapss", "ecdsa", "ecdaa", "sm2", "ecschnorr", "hmac"),
    }


class TPMT_SIG_SCHEME(TPM_OBJECT):
    _fields = (("scheme", TPM2_ALG), ("details", TPMU_SIG_SCHEME, "scheme"))


class TPMU_KDF_SCHEME(TPMU_OBJECT):
    _arms = (
        ("mgf1", TPMS_SCHEME_HASH, (TPM2_ALG.MGF1,)),
        ("kdf1_sp800_56a", TPMS_SCHEME_HASH, (TPM2_ALG.KDF1_SP800_56A,)),
        ("kdf2", TPMS_SCHEME_HASH, (TPM2_ALG.KDF2,)),
        ("kdf1_sp800_108", TPMS_SCHEME_HASH, (TPM2_ALG.KDF1_SP800_108,)),
    )


class TPMT_KDF_SCHEME(TPM_OBJECT):
    _fields = (("scheme", TPM2_ALG), ("details", TPMU_KDF_SCHEME, "scheme"))


class TPMU_SCHEME_KEYEDHASH(TPMU_OBJECT):
    _arms = (
        ("hmac", TPMS_SCHEME_HASH, (TPM2_ALG.HMAC,)),
        ("exclusiveOr", TPMS_SCHEME_XOR, (TPM2_ALG.XOR,)),
    )


class TPMT_KEYEDHASH_SCHEME(TPM_OBJECT):
    _fields = (("scheme", TPM2_ALG), ("details", TPMU_SCHEME_KEYEDHASH, "scheme"))


class TPMS_KEYEDHASH_PARMS(TPM_OBJECT):
    _fields = (("scheme", TPMT_KEYEDHASH_SCHEME),)


class TPMS_SYMCIPHER_PARMS(TPM_OBJECT):
    _fields = (("sym", TPMT_SYM_DEF_OBJECT),)


class TPMS_RSA_PARMS(TPM_OBJECT):
    _fields = (
        ("symmetric", TPMT_SYM_DEF_OBJECT),
        ("scheme", TPMT_RSA_SCHEME),
        ("keyBits", UINT16),
        ("exponent", UINT32),
    )


class TPMS_ECC_PARMS(TPM_OBJECT):
    _fields = (
        ("symmetric", TPMT_SYM_DEF_OBJECT),
        ("scheme", TPMT_ECC_SCHEME),
        ("curveID", TPM2_ECC),
        ("kdf", TPMT_KDF_SCHEME),
    )


class TPMU_PUBLIC_PARMS(TPMU_OBJECT):
    _arms = (
        ("keyedHashDetail", TPMS_KEYEDHASH_PARMS, (TPM2_ALG.KEYEDHASH,)),
        ("symDetail", TPMS_SYMCIPHER_PARMS, (TPM2_ALG.SYMCIPHER,)),
        ("rsaDetail", TPMS_RSA_PARMS, (TPM2_ALG.RSA,)),
        ("eccDetail", TPMS_ECC_PARMS, (TPM2_ALG.ECC,)),
    )
    _aliases = {"asymDetail": ("rsaDetail", "eccDetail")}
    _empty = ()


class TPMS_ECC_POINT(TPM_OBJECT):
    _fields = (("x", TPM2B_ECC_PARAMETER), ("y", TPM2B_ECC_PARAMETER))


class TPMU_PUBLIC_ID(TPMU_OBJECT):
    _arms = (
        ("keyedHash", TPM2B_DIGEST, (TPM2_ALG.KEYEDHASH,)),
        ("sym", TPM2B_DIGEST, (TPM2_ALG.SYMCIPHER,)),
        ("rsa", TPM2B_PUBLIC_KEY_RSA, (TPM2_ALG.RSA,)),
        ("ecc", TPMS_ECC_POINT, (TPM2_ALG.ECC,)),
    )
    _empty = ()


class TPMT_PUBLIC(TPM_OBJECT):
    _fields = (
        ("type", TPM2_ALG),
        ("nameAlg", TPM2_ALG),
        ("objectAttributes", TPMA_OBJECT),
        ("authPolicy", TPM2B_DIGEST),
        ("parameters", TPMU_PUBLIC_PARMS, "type"),
        ("unique", TPMU_PUBLIC_ID, "type"),
    )

    @classmethod
    def from_pem(
        cls,
        data: bytes,
        nameAlg: Union[TPM2_ALG, int] = None,
        objectAttributes: Union[TPMA_OBJECT, int] = (
            TPMA_OBJECT.DECRYPT | TPMA_OBJECT.SIGN_ENCRYPT | TPMA_OBJECT.USERWITHAUTH
        ),
        symmetric: TPMT_SYM_DEF_OBJECT = None,
        scheme: TPMT_ASYM_SCHEME = None,
        password: bytes = None,
    ) -> "TPMT_PUBLIC":
        """Decode the public part from standard key encodings.

        Currently supports PEM, DER and SSH encoded public keys.

        Args:
            data (bytes): The encoded public key.
            nameAlg (TPM2_ALG, int): The name algorithm for the public area, default is the configured default name algorithm.
            objectAttributes (TPMA_OBJECT, int): The object attributes for the public area, default is (TPMA_OBJECT.DECRYPT | TPMA_OBJECT.SIGN_ENCRYPT | TPMA_OBJECT.USERWITHAUTH).
            symmetric (TPMT_SYM_DEF_OBJECT) optional: The symmetric definition to use for the public area, default is None.
            scheme (TPMT_ASYM_SCHEME) optional: The signing/key exchange scheme to use for the public area, default is None.
            password (bytes) optional: The password used to decrypt the key, default is None.

        Returns:
            Returns a TPMT_PUBLIC instance.

        Raises:
            ValueError: If key parameters are not supported.

        Example:
            .. code-block:: python

                ecc_key_pem = open('path/to/myecckey.pem').read().encode()
                TPMT_PUBLIC.from_pem(ecc_key_pem)
        """
        p = cls()
        _public_from_encoding(data, p, password=password)
        p.nameAlg = nameAlg if nameAlg is not None else DEFAULT_NAME_ALG
        p.objectAttributes = objectAttributes
        if symmetric is None:
            p.parameters.asymDetail.symmetric.algorithm = TPM2_ALG.NULL
        else:
            p.parameters.asymDetail.symmetric = symmetric
        if scheme is None:
            p.parameters.asymDetail.scheme.scheme = TPM2_ALG.NULL
        else:
            p.parameters.asymDetail.scheme = scheme
        if p.type == TPM2_ALG.ECC:
            p.parameters.eccDetail.kdf.scheme = TPM2_ALG.NULL
        return p

    def to_pem(self) -> bytes:
        """Encode the public key as PEM encoded ASN.1.

        Returns:
            Returns the PEM encoded key as bytes.

        Raises:
            ValueError: If key type is not supported.
        """

        return _public_to_pem(self, "pem")

    def to_der(self) -> bytes:
        """Encode the public key as DER encoded ASN.1."""

        return _public_to_pem(self, "der")

    def to_ssh(self) -> bytes:
        """Encode the public key in OpenSSH format."""

        return _public_to_pem(self, "ssh")

    def get_name(self) -> TPM2B_NAME:
        """Get the TPM name of the public area.

        This function requires a populated TPMT_PUBLIC and will NOT go to the TPM
        to retrieve the name, and instead calculates it manually.

        Returns:
            Returns TPM2B_NAME.

        Raises:
            ValueError: Unsupported name digest algorithm.
        """
        name = _getname(self)
        return TPM2B_NAME(name)

    def get_alg(self) -> TPM2_ALG:
        """Returns the algorithm of the public area, for example TPM2_ALG.RSA."""
        return self.type

    def encrypt(self, data: bytes, label: bytes = b"") -> bytes:
        """RSA-OAEP encrypt data to this key.

        The OAEP hash is the name algorithm of the key, the label is used as is so
        TPM labels must include their terminating NUL octet.

        Args:
            data (bytes): The data to encrypt.
            label (bytes): The OAEP label.

        Returns:
            The encrypted data as bytes.

        Raises:
            ValueError: If the key is not an RSA key.
        """
        if self.type != TPM2_ALG.RSA:
            raise ValueError(f"unsupported key type: {self.type}")
        return _rsa_encrypt(self, _to_bytes(data), label)

    def encrypt_session_salt(self, secret: bytes) -> TPM2B_ENCRYPTED_SECRET:
        """Encrypt a session salt to this key, as used by TPM2_StartAuthSession."""
        return TPM2B_ENCRYPTED_SECRET(self.encrypt(secret, SECRET_LABEL))

    def validate_signature(self, data: bytes, signature: "TPMT_SIGNATURE") -> None:
        """Verify a signature made by this key.

        Raises:
            InvalidSignature: when the signature doesn't match the data.
        """
        signature.verify_signature(self, data)


class TPM2B_PUBLIC(TPM_OBJECT):
    _fields = (("publicArea", TPMT_PUBLIC),)
    _sized = True

    @classmethod
    def from_pem(
        cls,
        data: bytes,
        nameAlg: Union[TPM2_ALG, int] = None,
        objectAttributes: Union[TPMA_OBJECT, int] = (
            TPMA_OBJECT.DECRYPT | TPMA_OBJECT.SIGN_ENCRYPT | TPMA_OBJECT.USERWITHAUTH
        ),
        symmetric: TPMT_SYM_DEF_OBJECT = None,
        scheme: TPMT_ASYM_SCHEME = None,
        password: bytes = None,
    ) -> "TPM2B_PUBLIC":
        """Decode the public part from standard key encodings.

        See :meth:`TPMT_PUBLIC.from_pem` for the arguments.

        Returns:
            Returns a TPM2B_PUBLIC instance.
        """

        pa = TPMT_PUBLIC.from_pem(
            data, nameAlg, objectAttributes, symmetric, scheme, password
        )
        p = cls(publicArea=pa)
        return p

    def to_pem(self) -> bytes:
        """Encode the public key as PEM encoded ASN.1."""

        return self.publicArea.to_pem()

    def get_name(self) -> TPM2B_NAME:
        """Get the TPM name of the public area.

        Returns:
            Returns TPM2B_NAME.
        """
        return self.publicArea.get_name()


class TPMU_SENSITIVE_COMPOSITE(TPMU_OBJECT):
    _arms = (
        ("rsa", TPM2B_PRIVATE_KEY_RSA, (TPM2_ALG.RSA,)),
        ("ecc", TPM2B_ECC_PARAMETER, (TPM2_ALG.ECC,)),
        ("bits", TPM2B_SENSITIVE_DATA, (TPM2_ALG.KEYEDHASH,)),
        ("sym", TPM2B_SYM_KEY, (TPM2_ALG.SYMCIPHER,)),
    )
    _aliases = {"any": ("rsa", "ecc", "bits", "sym")}
    _empty = ()


class TPMT_SENSITIVE(TPM_OBJECT):
    _fields = (
        ("sensitiveType", TPM2_ALG),
        ("authValue", TPM2B_AUTH),
        ("seedValue", TPM2B_DIGEST),
        ("sensitive", TPMU_SENSITIVE_COMPOSITE, "sensitiveType"),
    )

    @classmethod
    def from_pem(cls, data, password=None):
        """Decode the private part from standard key encodings.

        Currently supports PEM, DER and SSH encoded private keys.

        Args:
            data (bytes): The encoded key as bytes.
            password (bytes, optional): The password used to decrypt the key, default is None.

        Returns:
            Returns an instance of TPMT_SENSITIVE.
        """
        p = cls()
        _private_from_encoding(data, p, password)
        return p

    def to_pem(self, public: TPMT_PUBLIC, password: bytes = None):
        """Encode the key as PEM encoded ASN.1.

        public(TPMT_PUBLIC): The corresponding public key.
        password(bytes): An optional password for encrypting the PEM with.

        Returns:
            Returns the PEM encoding as bytes.
        """
        return _private_to_pem(self, public, password)


class TPM2B_SENSITIVE(TPM_OBJECT):
    _fields = (("sensitiveArea", TPMT_SENSITIVE),)
    _sized = True

    @classmethod
    def from_pem(cls, data: bytes, password: bytes = None) -> "TPM2B_SENSITIVE":
        """Decode the private part from standard key encodings.

        Args:
            data (bytes): The encoded key as bytes.
            password (bytes, optional): The password used to decrypt the key, default is None.

        Returns:
            Returns an instance of TPM2B_SENSITIVE.

        Example:
            .. code-block:: python

                rsa_private_key = open('path/to/my/rsaprivatekey.pem').read().encode()
                TPM2B_SENSITIVE.from_pem(rsa_private_key)
        """
        p = TPMT_SENSITIVE.from_pem(data, password)
        return cls(sensitiveArea=p)

    def to_pem(self, public: TPMT_PUBLIC, password=None) -> bytes:
        """Encode the key as PEM encoded ASN.1.

        Args:
            public(TPMT_PUBLIC): The corresponding public key.
            password(bytes): An optional password for encrypting the PEM with.

        Returns:
            Returns the PEM encoding as bytes.
        """
        if hasattr(public, "publicArea"):
            public = public.publicArea
        return self.sensitiveArea.to_pem(public, password)


class TPMS_NV_PUBLIC(TPM_OBJECT):
    _fields = (
        ("nvIndex", TPM2_HANDLE),
        ("nameAlg", TPM2_ALG),
        ("attributes", TPMA_NV),
        ("authPolicy", TPM2B_DIGEST),
        ("dataSize", UINT16),
    )

    def get_name(self) -> TPM2B_NAME:
        """Get the TPM name of the NV public area.

        Returns:
            Returns TPM2B_NAME.

        Raises:
            ValueError: Unsupported name digest algorithm.
        """
        name = _getname(self)
        return TPM2B_NAME(name)


class TPM2B_NV_PUBLIC(TPM_OBJECT):
    _fields = (("nvPublic", TPMS_NV_PUBLIC),)
    _sized = True

    def get_name(self) -> TPM2B_NAME:
        return self.nvPublic.get_name()


class TPMS_CLOCK_INFO(TPM_OBJECT):
    _fields = (
        ("clock", UINT64),
        ("resetCount", UINT32),
        ("restartCount", UINT32),
        ("safe", TPMI_YES_NO),
    )


class TPMS_CERTIFY_INFO(TPM_OBJECT):
    _fields = (("name", TPM2B_NAME), ("qualifiedName", TPM2B_NAME))


class TPMS_QUOTE_INFO(TPM_OBJECT):
    _fields = (("pcrSelect", TPML_PCR_SELECTION), ("pcrDigest", TPM2B_DIGEST))


class TPMS_COMMAND_AUDIT_INFO(TPM_OBJECT):
    _fields = (
        ("auditCounter", UINT64),
        ("digestAlg", TPM2_ALG),
        ("auditDigest", TPM2B_DIGEST),
        ("commandDigest", TPM2B_DIGEST),
    )


class TPMS_SESSION_AUDIT_INFO(TPM_OBJECT):
    _fields = (("exclusiveSession", TPMI_YES_NO), ("sessionDigest", TPM2B_DIGEST))


class TPMS_CREATION_INFO(TPM_OBJECT):
    _fields = (("objectName", TPM2B_NAME), ("creationHash", TPM2B_DIGEST))


class TPMS_TIME_INFO(TPM_OBJECT):
    _fields = (("time", UINT64), ("clockInfo", TPMS_CLOCK_INFO))


class TPMS_TIME_ATTEST_INFO(TPM_OBJECT):
    _fields = (("time", TPMS_TIME_INFO), ("firmwareVersion", UINT64))


class TPMS_NV_CERTIFY_INFO(TPM_OBJECT):
    _fields = (
        ("indexName", TPM2B_NAME),
        ("offset", UINT16),
        ("nvContents", TPM2B_MAX_NV_BUFFER),
    )


class TPMU_ATTEST(TPMU_OBJECT):
    _arms = (
        ("certify", TPMS_CERTIFY_INFO, (TPM2_ST.ATTEST_CERTIFY,)),
        ("creation", TPMS_CREATION_INFO, (TPM2_ST.ATTEST_CREATION,)),
        ("quote", TPMS_QUOTE_INFO, (TPM2_ST.ATTEST_QUOTE,)),
        ("commandAudit", TPMS_COMMAND_AUDIT_INFO, (TPM2_ST.ATTEST_COMMAND_AUDIT,)),
        ("sessionAudit", TPMS_SESSION_AUDIT_INFO, (TPM2_ST.ATTEST_SESSION_AUDIT,)),
        ("time", TPMS_TIME_ATTEST_INFO, (TPM2_ST.ATTEST_TIME,)),
        ("nv", TPMS_NV_CERTIFY_INFO, (TPM2_ST.ATTEST_NV,)),
    )
    _empty = ()


class TPMS_ATTEST(TPM_OBJECT):
    _fields = (
        ("magic", TPM2_GENERATED_VALUE),
        ("type", TPM2_ST),
        ("qualifiedSigner", TPM2B_NAME),
        ("extraData", TPM2B_DATA),
        ("clockInfo", TPMS_CLOCK_INFO),
        ("firmwareVersion", UINT64),
        ("attested", TPMU_ATTEST, "type"),
    )


class TPMS_SIGNATURE_RSA(TPM_OBJECT):
    _fields = (("hash", TPM2_ALG), ("sig", TPM2B_PUBLIC_KEY_RSA))


class TPMS_SIGNATURE_ECC(TPM_OBJECT):
    _fields = (
        ("hash", TPM2_ALG),
        ("signatureR", TPM2B_ECC_PARAMETER),
        ("signatureS", TPM2B_ECC_PARAMETER),
    )


class TPMU_SIGNATURE(TPMU_OBJECT):
    _arms = (
        ("rsassa", TPMS_SIGNATURE_RSA, (TPM2_ALG.RSASSA,)),
        ("rsapss", TPMS_SIGNATURE_RSA, (TPM2_ALG.RSAPSS,)),
        ("ecdsa", TPMS_SIGNATURE_ECC, (TPM2_ALG.ECDSA,)),
        ("ecdaa", TPMS_SIGNATURE_ECC, (TPM2_ALG.ECDAA,)),
        ("sm2", TPMS_SIGNATURE_ECC, (TPM2_ALG.SM2,)),
        ("ecschnorr", TPMS_SIGNATURE_ECC, (TPM2_ALG.ECSCHNORR,)),
        ("hmac", TPMT_HA, (TPM2_ALG.HMAC,)),
    )


class TPMT_SIGNATURE(TPM_OBJECT):
    _fields = (("sigAlg", TPM2_ALG), ("signature", TPMU_SIGNATURE, "sigAlg"))

    def verify_signature(self, key, data):
        """
        Verify a TPM generated signature against a key.

        Args:
            key (TPMT_PUBLIC, TPM2B_PUBLIC or cryptography public key): The key to verify against.
            data (bytes): The signed data to verify.

        Raises:
            InvalidSignature: when the signature doesn't match the data.
        """
        _verify_signature(self, key, _to_bytes(data))
