"""Streaming LZ4 frame compression with independent blocks and a stream checksum.

The frame layout is the standard LZ4 frame: a 7-byte header (magic number,
descriptor flags, block-size byte and header checksum), a sequence of blocks
each prefixed by its little-endian size, an end mark of four zero bytes and
the 32-bit xxHash of all uncompressed data.  A block whose size has the high
bit set is stored uncompressed.
"""

from __future__ import annotations

import struct

import lz4.block

from bagkit.xxhash import XXH32, xxh32

__all__ = [
    "LZ4StreamError",
    "LZ4DataError",
    "LZ4ParamError",
    "block_size_from_index",
    "FrameCompressor",
    "FrameDecompressor",
    "compress_frame",
    "decompress_frame",
]

MAGIC_NUMBER = 0x184D2204
END_OF_STREAM = 0x00000000
HEADER_SIZE = 7
DEFAULT_BLOCK_SIZE_ID = 6

_UNCOMPRESSED_FLAG = 0x80000000
_SIZE_MASK = 0x7FFFFFFF
_U32 = struct.Struct("<I")


class LZ4StreamError(Exception):
    """A stream was used wrongly or ended in the wrong place."""


class LZ4DataError(LZ4StreamError):
    """The compressed data is malformed or fails its checksum."""


class LZ4ParamError(LZ4StreamError, ValueError):
    """A parameter, such as the block size index, is out of range."""


def block_size_from_index(block_id: int) -> int:
    """Return the block size in bytes for a block size index (4 to 7)."""
    return 1 << (8 + 2 * block_id)


def _check_block_size_id(block_size_id: int) -> int:
    if not 4 <= block_size_id <= 7:
        raise LZ4ParamError(f"invalid block size index {block_size_id}; must be 4 to 7")
    return block_size_id


def _as_bytes(data) -> bytes:
    if isinstance(data, bytes):
        return data
    return memoryview(data).cast("B").tobytes()


def _header_checksum(descriptor: bytes) -> int:
    return (xxh32(descriptor, 0) >> 8) & 0xFF


class FrameCompressor:
    """Incremental frame compressor.

    ``compress`` returns whatever output is ready; ``finish`` flushes the
    buffered data and terminates the frame.
    """

    def __init__(self, block_size_id: int = DEFAULT_BLOCK_SIZE_ID) -> None:
        self.block_size_id = _check_block_size_id(block_size_id)
        self.block_size = block_size_from_index(block_size_id)
        self._buffer = bytearray()
        self._hasher = XXH32(0)
        self._wrote_header = False
        self.finished = False

    def _header(self) -> bytes:
        version = 1
        block_independence = 1
        block_checksum = 0
        stream_checksum = 1
        flags = (
            (version & 0x03) << 6
            | (block_independence & 0x01) << 5
            | (block_checksum & 0x01) << 4
            | (stream_checksum & 0x01) << 2
        )
        descriptor = bytes([flags, (self.block_size_id & 0x07) << 4])
        return _U32.pack(MAGIC_NUMBER) + descriptor + bytes([_header_checksum(descriptor)])

    def _start(self, out: bytearray) -> None:
        if self.finished:
            raise LZ4StreamError("cannot compress into a finished stream")
        if not self._wrote_header:
            out += self._header()
            self._wrote_header = True

    @staticmethod
    def _encode_block(block: bytes) -> bytes:
        compressed = lz4.block.compress(block, store_size=False)
        # Only keep the compressed form if it is strictly smaller.
        if 0 < len(compressed) < len(block):
            return _U32.pack(len(compressed)) + compressed
        return _U32.pack(len(block) | _UNCOMPRESSED_FLAG) + block

    def compress(self, data) -> bytes:
        """Feed data; return the frame bytes produced so far."""
        out = bytearray()
        self._start(out)
        data = _as_bytes(data)
        self._hasher.update(data)
        self._buffer += data
        while len(self._buffer) >= self.block_size:
            block = bytes(self._buffer[: self.block_size])
            del self._buffer[: self.block_size]
            out += self._encode_block(block)
        return bytes(out)

    def finish(self) -> bytes:
        """Flush buffered data and write the end of the frame."""
        out = bytearray()
        self._start(out)
        if self._buffer:
            out += self._encode_block(bytes(self._buffer))
            self._buffer.clear()
        out += _U32.pack(END_OF_STREAM)
        out += _U32.pack(self._hasher.digest())
        self.finished = True
        return bytes(out)


class FrameDecompressor:
    """Incremental frame decompressor.

    Input may arrive in pieces of any size.  Once the end of the frame has
    been read, ``finished`` is true and any bytes after it are kept in
    ``unused_data``.
    """

    def __init__(self) -> None:
        self.block_size_id: int | None = None
        self.block_size: int | None = None
        self._pending = bytearray()
        self._hasher = XXH32(0)
        self._block_header: tuple[int, bool] | None = None
        self.finished = False
        self.unused_data = b""

    def _parse_header(self, header: bytes) -> None:
        (magic,) = _U32.unpack_from(header, 0)
        if magic != MAGIC_NUMBER:
            raise LZ4DataError("stream does not start with the LZ4 magic number")
        flags, bd = header[4], header[5]
        version = (flags >> 6) & 0x03
        block_independence = (flags >> 5) & 0x01
        block_checksum = (flags >> 4) & 0x01
        stream_size = (flags >> 3) & 0x01
        stream_checksum = (flags >> 2) & 0x01
        reserved1 = (flags >> 1) & 0x01
        preset_dictionary = flags & 0x01
        reserved2 = (bd >> 7) & 0x01
        block_max_id = (bd >> 4) & 0x07
        reserved3 = bd & 0x0F

        if version != 1:
            raise LZ4DataError("wrong frame version")
        if reserved1 or reserved2 or reserved3:
            raise LZ4DataError("reserved bits must be zero")
        if not 4 <= block_max_id <= 7:
            raise LZ4DataError("invalid block size")
        if stream_size:
            raise LZ4DataError("stream size is not supported")
        if preset_dictionary:
            raise LZ4DataError("preset dictionaries are not supported")
        if block_independence != 1:
            raise LZ4DataError("dependent blocks are not supported")
        if block_checksum:
            raise LZ4DataError("block checksums are not supported")
        if stream_checksum != 1:
            raise LZ4DataError("a stream checksum is required")
        if _header_checksum(header[4:6]) != header[6]:
            raise LZ4DataError("header checksum does not match")

        self.block_size_id = block_max_id
        self.block_size = block_size_from_index(block_max_id)

    def _decode_block(self, block: bytes, uncompressed: bool) -> bytes:
        if uncompressed:
            return block
        try:
            return lz4.block.decompress(block, uncompressed_size=self.block_size)
        except lz4.block.LZ4BlockError as exc:
            raise LZ4DataError("malformed compressed block") from exc

    def decompress(self, data) -> bytes:
        """Feed compressed data; return the uncompressed bytes it completes."""
        if self.finished:
            raise LZ4StreamError("already reached the end of the stream")
        self._pending += _as_bytes(data)
        out = bytearray()
        pending = self._pending

        if self.block_size is None:
            if len(pending) < HEADER_SIZE:
                return b""
            self._parse_header(bytes(pending[:HEADER_SIZE]))
            del pending[:HEADER_SIZE]

        while True:
            if self._block_header is None:
                if len(pending) < 4:
                    break
                (raw_size,) = _U32.unpack_from(pending, 0)
                del pending[:4]
                if raw_size == END_OF_STREAM:
                    self._block_header = (END_OF_STREAM, False)
                else:
                    size = raw_size & _SIZE_MASK
                    if size > self.block_size:
                        raise LZ4DataError("block is larger than the frame block size")
                    self._block_header = (size, bool(raw_size & _UNCOMPRESSED_FLAG))

            size, uncompressed = self._block_header
            if size == END_OF_STREAM:
                if len(pending) < 4:
                    break
                (stored,) = _U32.unpack_from(pending, 0)
                del pending[:4]
                self.finished = True
                self.unused_data = bytes(pending)
                pending.clear()
                if self._hasher.digest() != stored:
                    raise LZ4DataError("stream checksum does not match")
                break

            if len(pending) < size:
                break
            block = bytes(pending[:size])
            del pending[:size]
            self._block_header = None
            decoded = self._decode_block(block, uncompressed)
            self._hasher.update(decoded)
            out += decoded

        return bytes(out)


def compress_frame(data, block_size_id: int = DEFAULT_BLOCK_SIZE_ID) -> bytes:
    """Compress ``data`` into one complete frame."""
    data = _as_bytes(data)
    compressor = FrameCompressor(block_size_id)
    if not data:
        raise LZ4StreamError("no input to compress")
    return compressor.compress(data) + compressor.finish()


def decompress_frame(data) -> bytes:
    """Decompress one complete frame that must span exactly ``data``."""
    data = _as_bytes(data)
    decompressor = FrameDecompressor()
    if not data:
        raise LZ4StreamError("no input to decompress")
    output = decompressor.decompress(data)
    if not decompressor.finished:
        raise LZ4StreamError("input ended before the end of the stream")
    if decompressor.unused_data:
        raise LZ4StreamError("input continues after the end of the stream")
    return output