"""
Time utilities for interval alignment and wall-clock access.

All wall-clock reads go through this module so that tests can patch a single
place. Candle boundary arithmetic uses floor division, which is defined for
negative times as well.
"""

import math
from datetime import datetime, timezone
from typing import Any

from ..errors import InvalidIntervalError, InvalidTimeError


def wall_clock_millis() -> int:
    """Current wall-clock time in integer milliseconds since the epoch."""
    return int(datetime.now(timezone.utc).timestamp() * 1000)


def wall_clock_seconds() -> float:
    """Current wall-clock time in fractional seconds since the epoch."""
    return datetime.now(timezone.utc).timestamp()


def ensure_finite_time(value: Any, argument: str = "time_seconds") -> float:
    """
    Validate a time argument.

    Args:
        value: Candidate time value
        argument: Argument name used in the error message

    Returns:
        The value as a float

    Raises:
        InvalidTimeError: If the value is not a finite real number
    """
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise InvalidTimeError(value, argument=argument)
    if not math.isfinite(value):
        raise InvalidTimeError(value, argument=argument)
    return float(value)


def ensure_interval(interval_seconds: Any) -> int:
    """
    Validate a candle interval.

    Raises:
        InvalidIntervalError: If the interval is not a positive integer
    """
    if isinstance(interval_seconds, bool) or not isinstance(interval_seconds, int):
        raise InvalidIntervalError(interval_seconds)
    if interval_seconds <= 0:
        raise InvalidIntervalError(interval_seconds)
    return interval_seconds


def align_to_interval(time_seconds: float, interval_seconds: int) -> int:
    """Left edge of the interval containing time_seconds."""
    return int(math.floor(time_seconds / interval_seconds)) * interval_seconds


def candle_index(candle_time: int, interval_seconds: int) -> int:
    """Absolute index of a candle boundary on the interval grid."""
    return candle_time // interval_seconds


def seconds_until_next_candle(now_seconds: float, interval_seconds: int) -> int:
    """
    Whole seconds remaining until the next candle boundary.

    Args:
        now_seconds: Current time
        interval_seconds: Candle interval

    Returns:
        Remaining seconds in [1, interval_seconds]
    """
    elapsed = int(math.floor(now_seconds)) % interval_seconds
    return interval_seconds - elapsed


def format_countdown(remaining_seconds: int) -> str:
    """Format a candle countdown as "m:ss" from one minute upwards, else "Ns"."""
    if remaining_seconds >= 60:
        minutes, seconds = divmod(remaining_seconds, 60)
        return f"{minutes}:{seconds:02d}"
    return f"{remaining_seconds}s"


def format_candle_time(candle_time: int) -> str:
    """ISO8601 representation of a candle boundary."""
    return datetime.fromtimestamp(candle_time, tz=timezone.utc).isoformat()
