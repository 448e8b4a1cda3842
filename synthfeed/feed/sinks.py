"""Subscriber sinks for feed events."""

import json
import sys
from abc import ABC, abstractmethod
from collections import deque
from datetime import datetime, timezone
from typing import Any, Optional, TextIO

from ..logging.config import get_logger
from .events import FeedEvent, FeedEventType


class BaseSink(ABC):
    """Callable feed subscriber that counts deliveries and failures."""

    def __init__(self, name: str):
        self.name = name
        self.logger = get_logger(f"feed.sink.{name}")
        self._delivered_count = 0
        self._error_count = 0

    def __call__(self, event: FeedEvent) -> None:
        try:
            self.deliver(event)
        except Exception as e:
            self._error_count += 1
            self.logger.warning(
                "Sink delivery failed",
                sink=self.name,
                event_type=event.type.value,
                symbol=event.symbol,
                error=str(e),
            )
            raise
        self._delivered_count += 1

    @abstractmethod
    def deliver(self, event: FeedEvent) -> None:
        """Handle one feed event."""

    def get_stats(self) -> dict[str, Any]:
        """Get delivery statistics."""
        return {
            "name": self.name,
            "delivered_count": self._delivered_count,
            "error_count": self._error_count,
        }

    def reset_stats(self) -> None:
        """Reset delivery statistics."""
        self._delivered_count = 0
        self._error_count = 0


class StdoutSink(BaseSink):
    """Prints feed events as JSON lines or a short human-readable form."""

    def __init__(
        self,
        name: str = "stdout",
        format: str = "json",
        include_timestamp: bool = False,
        include_prices: bool = True,
        stream: Optional[TextIO] = None,
    ):
        super().__init__(name)
        if format not in ("json", "pretty"):
            raise ValueError(f"format must be 'json' or 'pretty', got {format!r}")
        self.format = format
        self.include_timestamp = include_timestamp
        self.include_prices = include_prices
        self.stream = stream

    def deliver(self, event: FeedEvent) -> None:
        if event.type == FeedEventType.PRICE and not self.include_prices:
            return
        print(self._format_event(event), file=self.stream or sys.stdout, flush=True)

    def _format_event(self, event: FeedEvent) -> str:
        if self.format == "pretty":
            output = f"{event.symbol} {event.interval}s {event.type.value}"
            if event.candle is not None:
                c = event.candle
                output += f" t={c.time} O={c.open:.5f} H={c.high:.5f} L={c.low:.5f} C={c.close:.5f}"
            if event.price is not None:
                output += f" price={event.price:.5f}"
            return output

        data = event.to_dict()
        if self.include_timestamp:
            data["stdout_timestamp"] = datetime.now(timezone.utc).isoformat()
        return json.dumps(data)


class CollectingSink(BaseSink):
    """Keeps the most recent events in memory."""

    def __init__(self, name: str = "collector", maxlen: Optional[int] = None):
        super().__init__(name)
        self.events: deque[FeedEvent] = deque(maxlen=maxlen)

    def deliver(self, event: FeedEvent) -> None:
        self.events.append(event)

    def of_type(self, event_type: FeedEventType) -> list[FeedEvent]:
        return [event for event in self.events if event.type == event_type]

    def clear(self) -> None:
        self.events.clear()
