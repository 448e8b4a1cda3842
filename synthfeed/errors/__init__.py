"""
Error classification for the synthetic price engine.

The oracle is pure arithmetic, so the taxonomy is small: caller programming
errors (invalid arguments) are raised synchronously, and feed driver failures
cover misuse of subscriptions and invalid configuration.
"""

from .invalid_argument import (
    InvalidArgumentError,
    InvalidIntervalError,
    InvalidCountError,
    InvalidTimeError,
    InvalidDirectionError,
    InvalidPriceError,
)
from .feed_failures import (
    FeedError,
    SubscriptionClosedError,
    ConfigurationError,
)

__all__ = [
    # Invalid Arguments
    "InvalidArgumentError",
    "InvalidIntervalError",
    "InvalidCountError",
    "InvalidTimeError",
    "InvalidDirectionError",
    "InvalidPriceError",
    # Feed Failures
    "FeedError",
    "SubscriptionClosedError",
    "ConfigurationError",
]
