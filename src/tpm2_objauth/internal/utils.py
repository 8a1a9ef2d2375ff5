# SPDX-License-Identifier: BSD-2
from typing import Dict, Optional, Union


def _CLASS_INT_ATTRS_from_string(
    cls: object, str_value: str, fixup_map: Optional[Dict[str, str]] = None
) -> int:
    """
    Given a class, lookup int attributes by name and return that attribute value.
    :param cls: The class to search.
    :param str_value: The key for the attribute in the class.
    """

    friendly = {
        key.upper(): value
        for (key, value) in vars(cls).items()
        if isinstance(value, int) and not key.startswith("_")
    }

    if fixup_map is not None and str_value.upper() in fixup_map:
        str_value = fixup_map[str_value.upper()]

    return friendly[str_value.upper()]


def _to_bytes(value: Union[bytes, bytearray, str, object]) -> bytes:
    """Return the raw bytes of value.

    Objects exposing __bytes__ (TPM2B types, TPMT_HA) are converted through it,
    str is taken one code point per byte.
    """
    if isinstance(value, bytes):
        return value
    if isinstance(value, (bytearray, memoryview)):
        return bytes(value)
    if isinstance(value, str):
        return value.encode("latin-1")
    if hasattr(value, "__bytes__"):
        return bytes(value)
    raise TypeError(f"expected a bytes like object, got {type(value).__name__}")
