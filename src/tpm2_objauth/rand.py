# SPDX-License-Identifier: BSD-2
"""Sources of random octets for seeds and wrapping keys.

Anything with a ``get_random(length) -> bytes`` method can be used as a source.
"""
import secrets

from .log import objauth_loggers

logger = objauth_loggers["crypto"]


class RandomSource(object):
    """ Abstract Base class for random sources. Not suitable for direct instantiation."""

    def get_random(self, length: int) -> bytes:
        raise NotImplementedError()


class LocalRandom(RandomSource):
    """Random octets from the operating system CSPRNG."""

    def get_random(self, length: int) -> bytes:
        return secrets.token_bytes(length)


class TpmRandom(RandomSource):
    """Random octets from a TPM.

    Wraps an object with a TPM2_GetRandom style method, such as an ESAPI
    context, which may return fewer octets than requested per call.

    Args:
        ectx: The object providing get_random(bytes_requested) returning a sized buffer.
    """

    def __init__(self, ectx):
        self._ectx = ectx

    def get_random(self, length: int) -> bytes:
        data = b""
        while len(data) < length:
            chunk = bytes(self._ectx.get_random(length - len(data)))
            if len(chunk) == 0:
                raise RuntimeError("TPM returned no random octets")
            data += chunk
        return data


class FixedRandom(RandomSource):
    """Serve predetermined octets in order, for reproducible envelopes in tests.

    Args:
        data (bytes): The octets to hand out.

    Raises:
        ValueError: When more octets are requested than remain.
    """

    def __init__(self, data: bytes):
        self._data = bytes(data)
        self._offset = 0

    @property
    def remaining(self) -> int:
        return len(self._data) - self._offset

    def get_random(self, length: int) -> bytes:
        if length > self.remaining:
            raise ValueError(
                f"requested {length} random octets, only {self.remaining} left"
            )
        chunk = self._data[self._offset : self._offset + length]
        self._offset += length
        logger.debug("handing out %d fixed octets", length)
        return chunk


def _get_source(random) -> RandomSource:
    if random is None:
        return LocalRandom()
    return random
