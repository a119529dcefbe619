import random
import struct

import lz4.frame
import pytest

from bagkit.lz4s import (
    FrameCompressor,
    FrameDecompressor,
    LZ4DataError,
    LZ4ParamError,
    LZ4StreamError,
    block_size_from_index,
    compress_frame,
    decompress_frame,
)
from bagkit.xxhash import xxh32

INPUT_A = b"a" * 1024


def _random_bytes(n, seed=0):
    rng = random.Random(seed)
    return bytes(rng.getrandbits(8) for _ in range(n))


def test_stream_round_trip_of_a_block():
    compressor = FrameCompressor(4)
    compressed = compressor.compress(INPUT_A) + compressor.finish()
    assert compressor.finished is True

    decompressor = FrameDecompressor()
    assert decompressor.decompress(compressed) == INPUT_A
    assert decompressor.finished is True


def test_oneshot_round_trip():
    compressed = compress_frame(INPUT_A, 4)
    result = decompress_frame(compressed)
    assert len(result) == len(INPUT_A)
    assert result == INPUT_A


def test_oneshot_data_corruption():
    compressed = bytearray(compress_frame(INPUT_A, 4))
    compressed[20] = (compressed[20] + 1) & 0xFF
    with pytest.raises(LZ4DataError):
        decompress_frame(bytes(compressed))


def test_block_sizes():
    assert block_size_from_index(4) == 65536
    assert block_size_from_index(5) == 262144
    assert block_size_from_index(6) == 1048576
    assert block_size_from_index(7) == 4194304


@pytest.mark.parametrize("bad_id", [0, 3, 8])
def test_invalid_block_size_id(bad_id):
    with pytest.raises(LZ4ParamError):
        FrameCompressor(bad_id)


@pytest.mark.parametrize(
    "block_id, header",
    [
        (4, bytes.fromhex("04224d186440a7")),
        (7, bytes.fromhex("04224d186470b9")),
    ],
)
def test_header_bytes(block_id, header):
    assert compress_frame(INPUT_A, block_id)[:7] == header


def test_trailer_holds_end_mark_and_checksum():
    compressed = compress_frame(INPUT_A, 4)
    assert compressed[-8:-4] == b"\x00\x00\x00\x00"
    assert struct.unpack("<I", compressed[-4:])[0] == xxh32(INPUT_A)


def test_incompressible_block_is_stored_raw():
    data = _random_bytes(100)
    compressed = compress_frame(data, 4)
    (size_field,) = struct.unpack("<I", compressed[7:11])
    assert size_field == 100 | 0x80000000
    assert compressed[11:111] == data
    assert decompress_frame(compressed) == data


def test_compress_returns_only_header_until_block_is_full():
    compressor = FrameCompressor(4)
    assert len(compressor.compress(b"x" * 100)) == 7
    assert compressor.compress(b"y" * 100) == b""


def test_multiple_blocks_round_trip():
    data = _random_bytes(3000, seed=1) * 70  # about 210 kB, several 64 kB blocks
    compressor = FrameCompressor(4)
    pieces = [compressor.compress(data[i : i + 50000]) for i in range(0, len(data), 50000)]
    compressed = b"".join(pieces) + compressor.finish()
    assert decompress_frame(compressed) == data


def test_byte_by_byte_decompression():
    data = b"hello world " * 500
    compressed = compress_frame(data, 5)
    decompressor = FrameDecompressor()
    output = b"".join(decompressor.decompress(compressed[i : i + 1]) for i in range(len(compressed)))
    assert output == data
    assert decompressor.finished is True
    assert decompressor.block_size_id == 5


def test_standard_lz4_reader_accepts_frames():
    data = b"abcdefgh" * 4000 + _random_bytes(500)
    assert lz4.frame.decompress(compress_frame(data, 4)) == data


def test_reads_standard_independent_frames():
    data = b"0123456789" * 3000
    frame = lz4.frame.compress(
        data,
        block_size=lz4.frame.BLOCKSIZE_MAX64KB,
        block_linked=False,
        content_checksum=True,
        store_size=False,
    )
    assert decompress_frame(frame) == data


def test_rejects_frames_with_content_size():
    frame = lz4.frame.compress(b"payload", content_checksum=True, block_linked=False, store_size=True)
    with pytest.raises(LZ4DataError):
        decompress_frame(frame)


def test_bad_magic_number():
    compressed = bytearray(compress_frame(INPUT_A, 4))
    compressed[0] ^= 0xFF
    with pytest.raises(LZ4DataError):
        decompress_frame(bytes(compressed))


def test_bad_header_checksum():
    compressed = bytearray(compress_frame(INPUT_A, 4))
    compressed[6] ^= 0x01
    with pytest.raises(LZ4DataError):
        decompress_frame(bytes(compressed))


def test_bad_stream_checksum():
    compressed = bytearray(compress_frame(INPUT_A, 4))
    compressed[-1] ^= 0x01
    with pytest.raises(LZ4DataError):
        decompress_frame(bytes(compressed))


def test_truncated_stream():
    compressed = compress_frame(INPUT_A, 4)
    with pytest.raises(LZ4StreamError):
        decompress_frame(compressed[:-3])


def test_trailing_data_in_oneshot():
    compressed = compress_frame(INPUT_A, 4)
    with pytest.raises(LZ4StreamError):
        decompress_frame(compressed + b"extra")


def test_trailing_data_kept_by_stream():
    compressed = compress_frame(INPUT_A, 4)
    decompressor = FrameDecompressor()
    assert decompressor.decompress(compressed + b"extra") == INPUT_A
    assert decompressor.unused_data == b"extra"


def test_decompress_after_end_raises():
    decompressor = FrameDecompressor()
    decompressor.decompress(compress_frame(INPUT_A, 4))
    with pytest.raises(LZ4StreamError):
        decompressor.decompress(b"\x00")


def test_compress_after_finish_raises():
    compressor = FrameCompressor(4)
    compressor.finish()
    with pytest.raises(LZ4StreamError):
        compressor.compress(b"more")
    with pytest.raises(LZ4StreamError):
        compressor.finish()


def test_empty_stream_via_streaming_api():
    compressor = FrameCompressor(4)
    compressed = compressor.finish()
    assert len(compressed) == 15
    decompressor = FrameDecompressor()
    assert decompressor.decompress(compressed) == b""
    assert decompressor.finished is True


def test_oneshot_requires_input():
    with pytest.raises(LZ4StreamError):
        compress_frame(b"", 4)
    with pytest.raises(LZ4StreamError):
        decompress_frame(b"")


def test_accepts_bytearray_and_memoryview():
    data = bytearray(b"memory" * 300)
    compressed = compress_frame(memoryview(data), 4)
    assert decompress_frame(bytearray(compressed)) == bytes(data)