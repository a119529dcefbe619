"""Unsigned second/nanosecond time points for the simulated, wall and steady clocks."""

from __future__ import annotations

import datetime
import math
import operator

from bagkit import clock
from bagkit.durations import Duration, DurationBase, WallDuration

__all__ = [
    "normalize_sec_nsec",
    "normalize_sec_nsec_unsigned",
    "TimeBase",
    "Time",
    "WallTime",
    "SteadyTime",
    "TIME_MAX",
    "TIME_MIN",
]

NSEC_PER_SEC = 1_000_000_000
UINT32_MAX = 0xFFFFFFFF
_POLL_NSEC = 1_000_000
_EPOCH = datetime.datetime(1970, 1, 1, tzinfo=datetime.timezone.utc)


def normalize_sec_nsec(sec: int, nsec: int) -> tuple[int, int]:
    """Carry non-negative nanoseconds into seconds so that ``nsec < 1e9``.

    Raises ``OverflowError`` if either part is negative or the seconds
    leave the unsigned 32-bit range.
    """
    if sec < 0 or nsec < 0:
        raise OverflowError("Time is out of dual 32-bit range")
    carry, nsec_part = divmod(nsec, NSEC_PER_SEC)
    if sec + carry > UINT32_MAX:
        raise OverflowError("Time is out of dual 32-bit range")
    return sec + carry, nsec_part


def normalize_sec_nsec_unsigned(sec: int, nsec: int) -> tuple[int, int]:
    """Normalise signed parts into a valid unsigned ``(sec, nsec)`` pair.

    Raises ``OverflowError`` if the result leaves the unsigned 32-bit range.
    """
    carry, nsec_part = divmod(nsec, NSEC_PER_SEC)
    sec_part = sec + carry
    if not 0 <= sec_part <= UINT32_MAX:
        raise OverflowError("Time is out of dual 32-bit range")
    return sec_part, nsec_part


def _round_half_up(value: float) -> int:
    whole = math.floor(value)
    return whole + 1 if value - whole >= 0.5 else whole


class TimeBase:
    """A point in time stored as unsigned seconds plus nanoseconds."""

    __slots__ = ("_sec", "_nsec")

    _duration_type: type[DurationBase] = DurationBase

    def __init__(self, sec: int = 0, nsec: int = 0) -> None:
        self._sec, self._nsec = normalize_sec_nsec(operator.index(sec), operator.index(nsec))

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
        if not 0 <= sec <= UINT32_MAX:
            raise OverflowError("Time is out of dual 32-bit range")
        nsec = _round_half_up((t - sec) * 1e9)
        carry, nsec = divmod(nsec, NSEC_PER_SEC)
        return cls(sec + carry, nsec)

    @classmethod
    def from_nsec(cls, t: int):
        """Build from a count of nanoseconds since the epoch."""
        return cls(*normalize_sec_nsec(0, operator.index(t)))

    def to_sec(self) -> float:
        return float(self._sec) + 1e-9 * float(self._nsec)

    def to_nsec(self) -> int:
        return self._sec * NSEC_PER_SEC + self._nsec

    def is_zero(self) -> bool:
        return self._sec == 0 and self._nsec == 0

    def to_datetime(self) -> datetime.datetime:
        """Convert to an aware UTC ``datetime`` with microsecond resolution."""
        return _EPOCH + datetime.timedelta(seconds=self._sec, microseconds=self._nsec // 1000)

    @classmethod
    def from_datetime(cls, value: datetime.datetime):
        """Build from a ``datetime``; naive values are taken as UTC."""
        epoch = _EPOCH if value.tzinfo is not None else _EPOCH.replace(tzinfo=None)
        diff = value - epoch
        if diff < datetime.timedelta(0):
            raise OverflowError("datetime is out of dual 32-bit range")
        sec = diff.days * 86400 + diff.seconds
        if sec > UINT32_MAX:
            raise OverflowError("datetime is out of dual 32-bit range")
        return cls(sec, diff.microseconds * 1000)

    def __add__(self, other):
        if type(other) is not self._duration_type:
            return NotImplemented
        sec, nsec = normalize_sec_nsec_unsigned(self._sec + other.sec, self._nsec + other.nsec)
        return type(self)(sec, nsec)

    def __sub__(self, other):
        if type(other) is type(self):
            return self._duration_type.from_nsec(self.to_nsec() - other.to_nsec())
        if type(other) is self._duration_type:
            return self + (-other)
        return NotImplemented

    def _key(self) -> tuple[int, int]:
        return (self._sec, self._nsec)

    def __eq__(self, other):
        if type(other) is not type(self):
            return NotImplemented
        return self._key() == other._key()

    def __lt__(self, other):
        if type(other) is not type(self):
            return NotImplemented
        return self._key() < other._key()

    def __le__(self, other):
        if type(other) is not type(self):
            return NotImplemented
        return self._key() <= other._key()

    def __gt__(self, other):
        if type(other) is not type(self):
            return NotImplemented
        return self._key() > other._key()

    def __ge__(self, other):
        if type(other) is not type(self):
            return NotImplemented
        return self._key() >= other._key()

    def __hash__(self):
        return hash((type(self).__name__, self._sec, self._nsec))

    def __str__(self) -> str:
        return f"{self._sec}.{self._nsec:09d}"

    def __repr__(self) -> str:
        return f"{type(self).__name__}(sec={self._sec}, nsec={self._nsec})"


class Time(TimeBase):
    """Time on the clock that may be simulated."""

    __slots__ = ()
    _duration_type = Duration

    @classmethod
    def now(cls) -> Time:
        """Current time: simulated if in use, otherwise wall-clock time."""
        return cls.from_nsec(clock.now_nsec())

    @classmethod
    def sleep_until(cls, end: Time) -> bool:
        """Sleep until ``end``; return False if time jumped backwards."""
        if Time.use_system_time():
            remaining = end - cls.now()
            if remaining > Duration(0, 0):
                return remaining.sleep()
            return True

        start = cls.now()
        while not clock.is_stopped() and cls.now() < end:
            clock.wall_sleep(0, _POLL_NSEC)
            if cls.now() < start:
                return False
        return True

    @staticmethod
    def init() -> None:
        """Initialise the clock to use system time."""
        clock.init()

    @staticmethod
    def shutdown() -> None:
        """Stop the clock so that sleeps end early."""
        clock.shutdown()

    @staticmethod
    def set_now(new_now: Time) -> None:
        """Set the simulated time and switch to simulated time."""
        clock.set_sim_nsec(new_now.to_nsec())

    @staticmethod
    def use_system_time() -> bool:
        return not clock.uses_sim_time()

    @staticmethod
    def is_sim_time() -> bool:
        return clock.uses_sim_time()

    @staticmethod
    def is_system_time() -> bool:
        return not Time.is_sim_time()

    @staticmethod
    def is_valid() -> bool:
        """Simulated time is valid once it is non-zero; system time always is."""
        return not clock.uses_sim_time() or clock.sim_nsec() != 0

    @staticmethod
    def wait_for_valid(timeout: WallDuration | None = None) -> bool:
        """Wait until the time source is valid; a zero timeout waits forever."""
        if timeout is None:
            timeout = WallDuration(0, 0)
        start = WallTime.now()
        poll = WallDuration.from_sec(0.01)
        while not Time.is_valid() and not clock.is_stopped():
            poll.sleep()
            if timeout > WallDuration(0, 0) and WallTime.now() - start > timeout:
                return False
        return not clock.is_stopped()


class WallTime(TimeBase):
    """Time on the wall clock."""

    __slots__ = ()
    _duration_type = WallDuration

    @classmethod
    def now(cls) -> WallTime:
        return cls(*clock.wall_time())

    @classmethod
    def sleep_until(cls, end: WallTime) -> bool:
        remaining = end - cls.now()
        if remaining > WallDuration(0, 0):
            return remaining.sleep()
        return True

    @staticmethod
    def is_system_time() -> bool:
        return True


class SteadyTime(TimeBase):
    """Time on the monotonic clock, unaffected by simulated time."""

    __slots__ = ()
    _duration_type = WallDuration

    @classmethod
    def now(cls) -> SteadyTime:
        return cls(*clock.steady_time())

    @classmethod
    def sleep_until(cls, end: SteadyTime) -> bool:
        remaining = end - cls.now()
        if remaining > WallDuration(0, 0):
            return remaining.sleep()
        return True

    @staticmethod
    def is_system_time() -> bool:
        return True


TIME_MAX = Time(UINT32_MAX, 999_999_999)
TIME_MIN = Time(0, 1)