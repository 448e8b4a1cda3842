"""
Feed driver error classifications.

These cover misuse of live subscriptions and configuration that would break
the boundedness guarantees of the price function.
"""

from typing import Optional, Dict, Any


class FeedError(Exception):
    """Base class for feed driver failures."""

    def __init__(self, message: str, context: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.context = context or {}


class SubscriptionClosedError(FeedError):
    """Operation attempted on a subscription that was already cancelled."""

    def __init__(self, message: str, subscription_id: Optional[str] = None, **kwargs):
        super().__init__(message, **kwargs)
        self.subscription_id = subscription_id


class ConfigurationError(FeedError):
    """Engine configuration failed validation."""

    def __init__(self, message: str, errors: Optional[list] = None, **kwargs):
        super().__init__(message, **kwargs)
        self.errors = errors or []
