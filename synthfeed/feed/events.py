"""Events published by the feed driver."""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Optional

from ..candles.models import Candle


class FeedEventType(str, Enum):
    """Kinds of feed events."""
    CANDLE_CLOSED = "candle_closed"
    CANDLE_OPENED = "candle_opened"
    CANDLE_UPDATED = "candle_updated"
    PRICE = "price"


@dataclass(frozen=True)
class FeedEvent:
    """A candle or price update delivered to a subscriber."""
    type: FeedEventType
    symbol: str
    interval: int
    timestamp_ms: int
    candle: Optional[Candle] = None
    price: Optional[float] = None

    @property
    def is_candle(self) -> bool:
        return self.candle is not None

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "type": self.type.value,
            "symbol": self.symbol,
            "interval": self.interval,
            "timestamp_ms": self.timestamp_ms,
        }
        if self.candle is not None:
            data["candle"] = self.candle.to_dict()
        if self.price is not None:
            data["price"] = self.price
        return data
