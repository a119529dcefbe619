"""Process-wide clock state: simulated time, wall and steady clocks, sleeping.

Until ``init`` is called the clock is in simulated-time mode and reading the
current time is an error.  ``init`` switches to system time; ``set_sim_nsec``
switches (back) to simulated time.  ``shutdown`` marks the clock stopped,
which makes pending and future sleeps report failure.
"""

from __future__ import annotations

import threading
import time
from dataclasses import dataclass

__all__ = [
    "TimeNotInitializedError",
    "init",
    "shutdown",
    "is_stopped",
    "is_initialized",
    "uses_sim_time",
    "set_sim_nsec",
    "sim_nsec",
    "now_nsec",
    "wall_time",
    "steady_time",
    "wall_sleep",
]

NSEC_PER_SEC = 1_000_000_000
UINT32_MAX = 0xFFFFFFFF


class TimeNotInitializedError(RuntimeError):
    """Raised when the current time is read before the clock was initialised."""

    def __init__(self) -> None:
        super().__init__(
            "Cannot use Time.now() before the clock has been initialised. "
            "If this is a standalone app or test, call Time.init() first."
        )


@dataclass
class _ClockState:
    stopped: bool = False
    initialized: bool = False
    use_sim_time: bool = True
    sim_nsec: int = 0


_state = _ClockState()
_sim_lock = threading.Lock()


def init() -> None:
    """Initialise the clock to use system time."""
    _state.stopped = False
    _state.use_sim_time = False
    _state.initialized = True


def shutdown() -> None:
    """Mark the clock stopped; sleeps then report that they were cut short."""
    _state.stopped = True


def is_stopped() -> bool:
    """Whether ``shutdown`` has been called since the last ``init``."""
    return _state.stopped


def is_initialized() -> bool:
    """Whether ``init`` has ever been called."""
    return _state.initialized


def uses_sim_time() -> bool:
    """Whether the current time comes from the simulated clock."""
    return _state.use_sim_time


def set_sim_nsec(nsec: int) -> None:
    """Set the simulated time in nanoseconds and switch to simulated time."""
    if nsec < 0:
        raise ValueError(f"simulated time must not be negative, got {nsec}")
    with _sim_lock:
        _state.sim_nsec = int(nsec)
        _state.use_sim_time = True


def sim_nsec() -> int:
    """The simulated time in nanoseconds."""
    with _sim_lock:
        return _state.sim_nsec


def wall_time() -> tuple[int, int]:
    """Current wall-clock time as ``(sec, nsec)`` since the epoch."""
    sec, nsec = divmod(time.time_ns(), NSEC_PER_SEC)
    if sec < 0 or sec > UINT32_MAX:
        raise OverflowError("Timespec is out of dual 32-bit range")
    return sec, nsec


def steady_time() -> tuple[int, int]:
    """Current monotonic clock reading as ``(sec, nsec)``."""
    return divmod(time.monotonic_ns(), NSEC_PER_SEC)


def now_nsec() -> int:
    """Current time in nanoseconds: simulated if in use, otherwise wall time."""
    if not _state.initialized:
        raise TimeNotInitializedError()
    if _state.use_sim_time:
        return sim_nsec()
    sec, nsec = wall_time()
    return sec * NSEC_PER_SEC + nsec


def wall_sleep(sec: int, nsec: int) -> bool:
    """Sleep on the wall clock; return False if the clock has been stopped."""
    total = sec * NSEC_PER_SEC + nsec
    if total > 0:
        time.sleep(total / NSEC_PER_SEC)
    return not _state.stopped