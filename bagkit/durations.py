"""Signed second/nanosecond durations for the simulated and the wall clock."""

from __future__ import annotations

import datetime
import math
import operator

from bagkit import clock

__all__ = [
    "normalize_sec_nsec_signed",
    "DurationBase",
    "Duration",
    "WallDuration",
    "DURATION_MAX",
    "DURATION_MIN",
]

NSEC_PER_SEC = 1_000_000_000
INT32_MIN = -(2**31)
INT32_MAX = 2**31 - 1
_TIME_MAX_NSEC = (2**32) * NSEC_PER_SEC - 1
_POLL_NSEC = 1_000_000


def normalize_sec_nsec_signed(sec: int, nsec: int) -> tuple[int, int]:
    """Carry nanoseconds into seconds so that ``0 <= nsec < 1e9``.

    Raises ``OverflowError`` if the seconds leave the signed 32-bit range.
    """
    carry, nsec_part = divmod(nsec, NSEC_PER_SEC)
    sec_part = sec + carry
    if not INT32_MIN <= sec_part <= INT32_MAX:
        raise OverflowError("Duration is out of dual 32-bit range")
    return sec_part, nsec_part


def _round_half_away(value: float) -> int:
    if value < 0:
        return -_round_half_away(-value)
    whole = math.floor(value)
    return whole + 1 if value - whole >= 0.5 else whole


class DurationBase:
    """A span of time stored as whole seconds plus non-negative nanoseconds."""

    __slots__ = ("_sec", "_nsec")

    def __init__(self, sec: int = 0, nsec: int = 0) -> None:
        self._sec, self._nsec = normalize_sec_nsec_signed(
            operator.index(sec), operator.index(nsec)
        )

    @property
    def sec(self) -> int:
        return self._sec

    @property
    def nsec(self) -> int:
        return self._nsec

    @classmethod
    def from_sec(cls, t: float):
        """Build from floating-point seconds, rounding to the nearest nanosecond."""
        sec = math.floor(t)
        if not INT32_MIN <= sec <= INT32_MAX:
            raise OverflowError("Duration is out of dual 32-bit range")
        nsec = _round_half_away((t - sec) * 1e9)
        carry, nsec = divmod(nsec, NSEC_PER_SEC)
        return cls(sec + carry, nsec)

    @classmethod
    def from_nsec(cls, t: int):
        """Build from a signed count of nanoseconds."""
        return cls(0, operator.index(t))

    def to_sec(self) -> float:
        return float(self._sec) + 1e-9 * float(self._nsec)

    def to_nsec(self) -> int:
        return self._sec * NSEC_PER_SEC + self._nsec

    def is_zero(self) -> bool:
        return self._sec == 0 and self._nsec == 0

    def to_timedelta(self) -> datetime.timedelta:
        """Convert to a ``timedelta`` with microsecond resolution."""
        return datetime.timedelta(seconds=self._sec, microseconds=self._nsec // 1000)

    def _same_kind(self, other) -> bool:
        return type(other) is type(self)

    def __add__(self, other):
        if not self._same_kind(other):
            return NotImplemented
        return type(self).from_nsec(self.to_nsec() + other.to_nsec())

    def __sub__(self, other):
        if not self._same_kind(other):
            return NotImplemented
        return type(self).from_nsec(self.to_nsec() - other.to_nsec())

    def __neg__(self):
        return type(self).from_nsec(-self.to_nsec())

    def __mul__(self, scale):
        if not isinstance(scale, (int, float)):
            return NotImplemented
        return type(self).from_sec(self.to_sec() * scale)

    def __rmul__(self, scale):
        return self.__mul__(scale)

    def _key(self) -> tuple[int, int]:
        return (self._sec, self._nsec)

    def __eq__(self, other):
        if not self._same_kind(other):
            return NotImplemented
        return self._key() == other._key()

    def __lt__(self, other):
        if not self._same_kind(other):
            return NotImplemented
        return self._key() < other._key()

    def __le__(self, other):
        if not self._same_kind(other):
            return NotImplemented
        return self._key() <= other._key()

    def __gt__(self, other):
        if not self._same_kind(other):
            return NotImplemented
        return self._key() > other._key()

    def __ge__(self, other):
        if not self._same_kind(other):
            return NotImplemented
        return self._key() >= other._key()

    def __hash__(self):
        return hash((type(self).__name__, self._sec, self._nsec))

    def __str__(self) -> str:
        if self._sec >= 0 or self._nsec == 0:
            return f"{self._sec}.{self._nsec:09d}"
        sign = "-" if self._sec == -1 else ""
        return f"{sign}{self._sec + 1}.{NSEC_PER_SEC - self._nsec:09d}"

    def __repr__(self) -> str:
        return f"{type(self).__name__}(sec={self._sec}, nsec={self._nsec})"


def _time_plus(start_nsec: int, span_nsec: int) -> int:
    end = start_nsec + span_nsec
    if not 0 <= end <= _TIME_MAX_NSEC:
        raise OverflowError("Time is out of dual 32-bit range")
    return end


class Duration(DurationBase):
    """Duration measured on the clock that may be simulated."""

    __slots__ = ()

    def sleep(self) -> bool:
        """Sleep for this long; return True if the full span was waited out."""
        if not clock.uses_sim_time():
            return clock.wall_sleep(self._sec, self._nsec)

        span = self.to_nsec()
        start = clock.now_nsec()
        end = _TIME_MAX_NSEC if start == 0 else _time_plus(start, span)

        slept = False
        while not clock.is_stopped() and clock.now_nsec() < end:
            clock.wall_sleep(0, _POLL_NSEC)
            slept = True
            # Starting at time zero: wait for the first real time before timing.
            if start == 0:
                start = clock.now_nsec()
                end = _time_plus(start, span)
            if clock.now_nsec() < start:
                return False
        return slept and not clock.is_stopped()


class WallDuration(DurationBase):
    """Duration measured on the wall clock."""

    __slots__ = ()

    def sleep(self) -> bool:
        """Sleep on the wall clock; return True unless the clock was stopped."""
        return clock.wall_sleep(self._sec, self._nsec)


DURATION_MAX = Duration(INT32_MAX, 999_999_999)
DURATION_MIN = Duration(INT32_MIN, 0)