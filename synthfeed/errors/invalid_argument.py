"""
Invalid argument errors for the oracle and candle synthesizer.

These represent caller programming errors. They are raised immediately and
never clamped, since a silently corrected argument would produce a price path
other callers cannot reproduce.
"""

from typing import Optional, Dict, Any


class InvalidArgumentError(ValueError):
    """Base class for arguments rejected by the engine."""

    def __init__(self, message: str, argument: Optional[str] = None,
                 value: Any = None, context: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.argument = argument
        self.value = value
        self.context = context or {}
        self.recoverable = False


class InvalidIntervalError(InvalidArgumentError):
    """Candle interval is not a positive number of seconds."""

    def __init__(self, value: Any, **kwargs):
        super().__init__(
            f"interval_seconds must be a positive integer, got {value!r}",
            argument="interval_seconds", value=value, **kwargs
        )


class InvalidCountError(InvalidArgumentError):
    """Candle count is below one."""

    def __init__(self, value: Any, **kwargs):
        super().__init__(
            f"count must be an integer >= 1, got {value!r}",
            argument="count", value=value, **kwargs
        )


class InvalidTimeError(InvalidArgumentError):
    """Time value is NaN, infinite or not a number."""

    def __init__(self, value: Any, argument: str = "time_seconds", **kwargs):
        super().__init__(
            f"{argument} must be a finite number, got {value!r}",
            argument=argument, value=value, **kwargs
        )


class InvalidDirectionError(InvalidArgumentError):
    """Trade direction is neither up nor down."""

    def __init__(self, value: Any, **kwargs):
        super().__init__(
            f"direction must be 'up' or 'down', got {value!r}",
            argument="direction", value=value, **kwargs
        )


class InvalidPriceError(InvalidArgumentError):
    """Settlement price is not a positive finite number."""

    def __init__(self, value: Any, argument: str = "price", **kwargs):
        super().__init__(
            f"{argument} must be a positive finite number, got {value!r}",
            argument=argument, value=value, **kwargs
        )
