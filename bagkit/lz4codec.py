"""Stateful LZ4 frame compressor and decompressor objects.

Both classes work like the ``bz2`` and ``zlib`` codec objects.  Data is fed
in pieces and each call returns whatever output is ready.  Failures surface
as ``OSError``.
"""

from __future__ import annotations

from bagkit.lz4s import (
    DEFAULT_BLOCK_SIZE_ID,
    FrameCompressor,
    FrameDecompressor,
    LZ4DataError,
    LZ4ParamError,
    LZ4StreamError,
)

__all__ = ["LZ4Compressor", "LZ4Decompressor"]


def _as_bytes(data) -> bytes:
    if isinstance(data, str):
        return data.encode("utf-8")
    if isinstance(data, bytes):
        return data
    return memoryview(data).cast("B").tobytes()


class LZ4Compressor:
    """Compresses a stream of data into a single LZ4 frame."""

    def __init__(self) -> None:
        try:
            self._frame = FrameCompressor(DEFAULT_BLOCK_SIZE_ID)
        except LZ4StreamError as exc:
            raise RuntimeError("error initializing roslz4 stream") from exc

    def _run(self, step):
        try:
            return step()
        except LZ4ParamError as exc:
            raise OSError("bad block size parameter") from exc
        except LZ4StreamError as exc:
            raise OSError("error compressing") from exc

    def compress(self, data) -> bytes:
        """Feed data and return the compressed bytes that are ready."""
        data = _as_bytes(data)
        if not data:
            return b""
        return self._run(lambda: self._frame.compress(data))

    def flush(self) -> bytes:
        """Finish the frame and return the remaining compressed bytes."""
        return self._run(self._frame.finish)


class LZ4Decompressor:
    """Decompresses a single LZ4 frame fed in pieces of any size."""

    def __init__(self) -> None:
        try:
            self._frame = FrameDecompressor()
        except LZ4StreamError as exc:
            raise RuntimeError("error initializing roslz4 stream") from exc

    def decompress(self, data) -> bytes:
        """Feed compressed data and return the uncompressed bytes it yields."""
        data = _as_bytes(data)
        if not data:
            return b""
        try:
            return self._frame.decompress(data)
        except LZ4DataError as exc:
            raise OSError("malformed data to decompress") from exc
        except LZ4StreamError as exc:
            raise OSError("error decompressing") from exc