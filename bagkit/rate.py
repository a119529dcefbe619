"""Helpers for running loops at a fixed frequency."""

from __future__ import annotations

from bagkit.durations import Duration, DurationBase, WallDuration
from bagkit.times import Time, TimeBase, WallTime

__all__ = ["Rate", "WallRate"]


class _LoopRate:
    """Shared cycle bookkeeping for a clock and its duration type."""

    _time_type: type[TimeBase] = TimeBase
    _duration_type: type[DurationBase] = DurationBase

    def __init__(self, frequency: float) -> None:
        self._begin(self._duration_type.from_sec(1.0 / frequency))

    @classmethod
    def from_duration(cls, duration: DurationBase):
        """Create a rate whose cycle lasts ``duration``."""
        rate = cls.__new__(cls)
        rate._begin(cls._duration_type(duration.sec, duration.nsec))
        return rate

    def _begin(self, expected: DurationBase) -> None:
        self._start = self._time_type.now()
        self._expected_cycle_time = expected
        self._actual_cycle_time = self._duration_type(0, 0)

    def sleep(self) -> bool:
        """Sleep for what is left of the cycle.

        Returns False if the cycle already overran its expected length,
        otherwise whatever the underlying sleep reports.
        """
        expected = self._expected_cycle_time
        expected_end = self._start + expected
        actual_end = self._time_type.now()

        # Time jumped backwards: measure the cycle from now on.
        if actual_end < self._start:
            expected_end = actual_end + expected

        sleep_time = expected_end - actual_end
        self._actual_cycle_time = actual_end - self._start
        self._start = expected_end

        if sleep_time <= self._duration_type(0, 0):
            # Jumped forward, or lost more than a whole extra cycle: restart.
            if actual_end > expected_end + expected:
                self._start = actual_end
            return False

        return sleep_time.sleep()

    def reset(self) -> None:
        """Start the current cycle now."""
        self._start = self._time_type.now()

    def cycle_time(self):
        """How long the last cycle actually ran, from its start to ``sleep``."""
        return self._actual_cycle_time

    def expected_cycle_time(self):
        """The intended length of one cycle."""
        return self._expected_cycle_time

    def __repr__(self) -> str:
        return f"{type(self).__name__}(expected_cycle_time={self._expected_cycle_time!r})"


class Rate(_LoopRate):
    """Runs loops at a desired frequency on the possibly simulated clock."""

    _time_type = Time
    _duration_type = Duration

    def __init__(self, frequency: float) -> None:
        super().__init__(frequency)

    @classmethod
    def from_duration(cls, duration: DurationBase) -> Rate:
        """Create a rate whose cycle lasts ``duration``."""
        return super().from_duration(duration)

    def sleep(self) -> bool:
        """Sleep for the rest of the cycle; False if the rate was not met."""
        return super().sleep()

    def reset(self) -> None:
        """Start the current cycle now."""
        super().reset()

    def cycle_time(self) -> Duration:
        """How long the last cycle actually ran."""
        return super().cycle_time()

    def expected_cycle_time(self) -> Duration:
        """The intended length of one cycle."""
        return super().expected_cycle_time()


class WallRate(_LoopRate):
    """Runs loops at a desired frequency, always on the wall clock."""

    _time_type = WallTime
    _duration_type = WallDuration

    def __init__(self, frequency: float) -> None:
        super().__init__(frequency)

    @classmethod
    def from_duration(cls, duration: DurationBase) -> WallRate:
        """Create a rate whose cycle lasts ``duration``."""
        return super().from_duration(duration)

    def sleep(self) -> bool:
        """Sleep for the rest of the cycle; False if the rate was not met."""
        return super().sleep()

    def reset(self) -> None:
        """Start the current cycle now."""
        super().reset()

    def cycle_time(self) -> WallDuration:
        """How long the last cycle actually ran."""
        return super().cycle_time()

    def expected_cycle_time(self) -> WallDuration:
        """The intended length of one cycle."""
        return super().expected_cycle_time()