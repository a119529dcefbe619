"""LZ4 frame streams, xxHash32, a process-wide clock, and second/nanosecond time, duration and loop-rate types."""

__version__ = "0.1.0"

__all__ = ["xxhash", "lz4s", "lz4codec", "clock", "durations", "times", "rate"]