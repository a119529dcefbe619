# bagkit

This package provides compression, hashing and timekeeping primitives for recorded message logs:

- **`bagkit.xxhash`**: 32-bit xxHash. Use `xxh32` to hash in one call, or `XXH32` to hash incrementally.
- **`bagkit.lz4s`**: LZ4 frame streams. Blocks are independent and the whole stream carries an xxHash32 checksum. Use `FrameCompressor` and `FrameDecompressor` for streaming, or `compress_frame` and `decompress_frame` for one call.
- **`bagkit.lz4codec`**: `LZ4Compressor` and `LZ4Decompressor`. They work like the standard library's `bz2` codec objects.
- **`bagkit.clock`**: the clock state shared by the whole process: simulated time, wall and steady clock readings, and sleeping.
- **`bagkit.durations`**: `Duration` and `WallDuration`, signed spans stored as 32-bit seconds plus nanoseconds.
- **`bagkit.times`**: `Time`, `WallTime` and `SteadyTime`, unsigned points in time stored as 32-bit seconds plus nanoseconds.
- **`bagkit.rate`**: `Rate` and `WallRate`, which keep a loop running at a fixed frequency.

## Install

```
pip install bagkit
```

## Compression

```python
from bagkit.lz4s import compress_frame, decompress_frame

payload = b"a" * 1024
frame = compress_frame(payload, 4)   # block size index 4 to 7
assert decompress_frame(frame) == payload
```

`bagkit.lz4s` raises these errors:

- `LZ4DataError` for malformed frames and for checksum mismatches.
- `LZ4ParamError` for a block size index outside 4 to 7.
- `LZ4StreamError` for misuse of a stream, such as feeding a finished one, or a frame that is truncated or has trailing bytes.

`FrameDecompressor` accepts input in pieces of any size. After the end mark, `finished` becomes true and any bytes that follow the frame are kept in `unused_data`.

To compress data that arrives in chunks:

```python
from bagkit.lz4codec import LZ4Compressor, LZ4Decompressor

comp = LZ4Compressor()
data = comp.compress(b"first chunk ") + comp.compress(b"second chunk") + comp.flush()

decomp = LZ4Decompressor()
assert decomp.decompress(data) == b"first chunk second chunk"
```

The codec objects always use block size index 6. They report failures as `OSError`.

## Hashing

```python
from bagkit.xxhash import xxh32, XXH32

h = XXH32(0)
h.update(b"hello ")
h.update(b"world")
assert h.digest() == xxh32(b"hello world", 0)
```

Calling `digest()` closes the hasher, and `reset()` makes it usable again. `intermediate_digest()` returns the hash so far and leaves the state unchanged.

## Time and durations

```python
from bagkit.durations import Duration
from bagkit.times import Time

t = Time(100, 2000003000)            # normalised to 102.000003000
d = Duration(10, 2000003000)         # 12.000003000
print(t - d)                         # 90.000000000
print(Duration.from_sec(-0.5))       # -0.500000000
```

Any result outside the 32-bit second range raises `OverflowError`. You can convert with `to_sec`, `to_nsec`, `from_sec` and `from_nsec`, and with `Duration.to_timedelta` and `Time.to_datetime` / `Time.from_datetime`, which work at microsecond resolution.

The clock starts in simulated mode and has not been initialised. Calling `Time.now()` in that state raises `TimeNotInitializedError`.

- `Time.init()` switches to the system clock.
- `Time.set_now(...)` drives simulated time yourself.
- `Time.shutdown()` stops the clock, so that sleeps report `False`.

## Loop rates

```python
from bagkit.rate import Rate
from bagkit.times import Time

Time.init()
rate = Rate(10.0)          # 10 Hz; or Rate.from_duration(Duration(0, 100_000_000))
for _ in range(3):
    ...                    # work
    rate.sleep()           # True if the cycle kept to the rate
```

## What it does not do

bagkit does not read or write recorded log files, and it does not index their messages or query them. It supplies the compression, checksum and time types that such a reader or writer would use. It has no command-line tool.

## Tests

The test suite uses pytest. Install it with the `test` extra:

```
pip install bagkit[test]
```