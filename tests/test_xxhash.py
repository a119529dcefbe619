import pytest

from bagkit.xxhash import XXH32, xxh32

SAMPLE = bytes(range(256)) * 3 + b"tail-bytes"


def test_empty_input_seed_zero():
    assert xxh32(b"", 0) == 0x02CC5D05


def test_abc_seed_zero():
    assert xxh32(b"abc") == 0x32D153FF


def test_lz4_frame_header_checksum_byte():
    # Descriptor bytes of a frame with independent blocks, content checksum
    # and 64 KiB blocks; the header checksum byte is the hash's second byte.
    assert (xxh32(b"\x64\x40", 0) >> 8) & 0xFF == 0xA7


@pytest.mark.parametrize("chunk", [1, 3, 4, 15, 16, 17, 31, 64, 1000])
def test_streaming_matches_one_shot(chunk):
    hasher = XXH32(0)
    for start in range(0, len(SAMPLE), chunk):
        hasher.update(SAMPLE[start:start + chunk])
    assert hasher.digest() == xxh32(SAMPLE)


@pytest.mark.parametrize("length", range(0, 40))
def test_result_is_32_bit_and_byte_streaming_agrees(length):
    data = SAMPLE[:length]
    hasher = XXH32(7)
    for byte in data:
        hasher.update(bytes([byte]))
    value = hasher.digest()
    assert 0 <= value <= 0xFFFFFFFF
    assert value == xxh32(data, 7)


def test_intermediate_digest_keeps_state():
    hasher = XXH32()
    hasher.update(SAMPLE[:50])
    middle = hasher.intermediate_digest()
    assert middle == xxh32(SAMPLE[:50])
    assert hasher.intermediate_digest() == middle
    hasher.update(SAMPLE[50:])
    assert hasher.digest() == xxh32(SAMPLE)


def test_digest_closes_hasher():
    hasher = XXH32()
    hasher.update(b"data")
    hasher.digest()
    with pytest.raises(ValueError):
        hasher.update(b"more")
    with pytest.raises(ValueError):
        hasher.digest()


def test_reset_reopens_with_new_seed():
    hasher = XXH32(0)
    hasher.update(b"something")
    hasher.digest()
    hasher.reset(5)
    hasher.update(SAMPLE)
    assert hasher.digest() == xxh32(SAMPLE, 5)


def test_seed_changes_result():
    assert xxh32(SAMPLE, 1) != xxh32(SAMPLE, 0)
    assert xxh32(SAMPLE, 1) == xxh32(SAMPLE, 1)


def test_max_seed_is_accepted():
    hasher = XXH32(0xFFFFFFFF)
    hasher.update(SAMPLE[:20])
    hasher.update(SAMPLE[20:])
    assert hasher.digest() == xxh32(SAMPLE, 0xFFFFFFFF)


@pytest.mark.parametrize("seed", [-1, 0x100000000])
def test_seed_out_of_range(seed):
    with pytest.raises(ValueError):
        XXH32(seed)
    with pytest.raises(ValueError):
        xxh32(b"x", seed)


def test_bytes_like_inputs_agree():
    expected = xxh32(SAMPLE)
    assert xxh32(bytearray(SAMPLE)) == expected
    assert xxh32(memoryview(SAMPLE)) == expected


def test_text_input_rejected():
    with pytest.raises(TypeError):
        xxh32("abc")