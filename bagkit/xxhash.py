"""32-bit xxHash, as a one-shot function and as an incremental hasher."""

from __future__ import annotations

import struct

__all__ = ["xxh32", "XXH32"]

PRIME32_1 = 2654435761
PRIME32_2 = 2246822519
PRIME32_3 = 3266489917
PRIME32_4 = 668265263
PRIME32_5 = 374761393

_MASK = 0xFFFFFFFF
_STRIPE = 16


def _rotl(value: int, bits: int) -> int:
    return ((value << bits) | (value >> (32 - bits))) & _MASK


def _round(acc: int, lane: int) -> int:
    acc = (acc + lane * PRIME32_2) & _MASK
    return (_rotl(acc, 13) * PRIME32_1) & _MASK


def _finalize(h32: int, tail: bytes) -> int:
    """Mix the trailing (< 16) bytes into ``h32`` and apply the avalanche."""
    whole = len(tail) // 4 * 4
    for (lane,) in struct.iter_unpack("<I", tail[:whole]):
        h32 = (h32 + lane * PRIME32_3) & _MASK
        h32 = (_rotl(h32, 17) * PRIME32_4) & _MASK
    for byte in tail[whole:]:
        h32 = (h32 + byte * PRIME32_5) & _MASK
        h32 = (_rotl(h32, 11) * PRIME32_1) & _MASK

    h32 ^= h32 >> 15
    h32 = (h32 * PRIME32_2) & _MASK
    h32 ^= h32 >> 13
    h32 = (h32 * PRIME32_3) & _MASK
    h32 ^= h32 >> 16
    return h32


def _as_bytes(data) -> bytes:
    """Return the raw bytes of any bytes-like object."""
    if isinstance(data, bytes):
        return data
    return memoryview(data).cast("B").tobytes()


def _check_seed(seed: int) -> int:
    if not 0 <= seed <= _MASK:
        raise ValueError(f"seed must be an unsigned 32-bit value, got {seed}")
    return seed


class XXH32:
    """Incremental 32-bit xxHash.

    ``digest`` returns the final hash and closes the hasher; ``reset``
    makes it usable again. ``intermediate_digest`` leaves the state intact.
    """

    def __init__(self, seed: int = 0) -> None:
        self.reset(seed)

    def reset(self, seed: int = 0) -> None:
        """Start a fresh hash computation with the given seed."""
        seed = _check_seed(seed)
        self._seed = seed
        self._v1 = (seed + PRIME32_1 + PRIME32_2) & _MASK
        self._v2 = (seed + PRIME32_2) & _MASK
        self._v3 = seed
        self._v4 = (seed - PRIME32_1) & _MASK
        self._total_len = 0
        self._pending = b""
        self._closed = False

    def _ensure_open(self) -> None:
        if self._closed:
            raise ValueError("hasher has already produced its final digest")

    def update(self, data) -> None:
        """Feed more bytes into the hash."""
        self._ensure_open()
        data = _as_bytes(data)
        self._total_len += len(data)

        buffer = self._pending + data
        usable = len(buffer) // _STRIPE * _STRIPE
        if usable:
            v1, v2, v3, v4 = self._v1, self._v2, self._v3, self._v4
            for a, b, c, d in struct.iter_unpack("<IIII", buffer[:usable]):
                v1 = _round(v1, a)
                v2 = _round(v2, b)
                v3 = _round(v3, c)
                v4 = _round(v4, d)
            self._v1, self._v2, self._v3, self._v4 = v1, v2, v3, v4
        self._pending = buffer[usable:]

    def intermediate_digest(self) -> int:
        """Hash of everything fed so far; more data may follow."""
        self._ensure_open()
        if self._total_len >= _STRIPE:
            h32 = (
                _rotl(self._v1, 1)
                + _rotl(self._v2, 7)
                + _rotl(self._v3, 12)
                + _rotl(self._v4, 18)
            ) & _MASK
        else:
            h32 = (self._seed + PRIME32_5) & _MASK
        h32 = (h32 + self._total_len) & _MASK
        return _finalize(h32, self._pending)

    def digest(self) -> int:
        """Final hash of everything fed; the hasher is closed afterwards."""
        value = self.intermediate_digest()
        self._closed = True
        return value


def xxh32(data, seed: int = 0) -> int:
    """Return the 32-bit xxHash of ``data``."""
    hasher = XXH32(seed)
    hasher.update(data)
    return hasher.digest()