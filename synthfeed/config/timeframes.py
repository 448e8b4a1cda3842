"""Chart timeframe table."""

from dataclasses import dataclass

from ..errors import InvalidIntervalError


@dataclass(frozen=True)
class Timeframe:
    """A selectable chart interval."""
    label: str
    seconds: int


TIMEFRAMES: tuple[Timeframe, ...] = (
    Timeframe("1s", 1),
    Timeframe("5s", 5),
    Timeframe("10s", 10),
    Timeframe("30s", 30),
    Timeframe("1m", 60),
    Timeframe("5m", 300),
    Timeframe("15m", 900),
    Timeframe("30m", 1800),
    Timeframe("1h", 3600),
    Timeframe("4h", 14400),
    Timeframe("1D", 86400),
)

_UNIT_SECONDS = {"s": 1, "m": 60, "h": 3600, "d": 86400}


def parse_timeframe(label: str) -> int:
    """
    Convert a timeframe label such as "5s", "15m", "4h" or "1D" to seconds.

    Raises:
        InvalidIntervalError: If the label is malformed or not positive
    """
    text = label.strip()
    if len(text) < 2 or not text[:-1].isdigit():
        raise InvalidIntervalError(label)

    unit = _UNIT_SECONDS.get(text[-1].lower())
    amount = int(text[:-1])
    if unit is None or amount <= 0:
        raise InvalidIntervalError(label)
    return amount * unit


def timeframe_label(seconds: int) -> str:
    """Label of a known timeframe, or "<n>s" for anything else."""
    for timeframe in TIMEFRAMES:
        if timeframe.seconds == seconds:
            return timeframe.label
    return f"{seconds}s"
