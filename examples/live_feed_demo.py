#!/usr/bin/env python3
"""
Live Feed Demo - SynthFeed market engine

Subscribes two charts on an asyncio event loop and prints every feed event
with a StdoutSink. A 5 second interval is used so that a few candle
rollovers happen within the demo window.

Run: python examples/live_feed_demo.py [seconds]
"""

import asyncio
import sys

from synthfeed.engine import MarketEngine
from synthfeed.feed.events import FeedEventType
from synthfeed.feed.sinks import CollectingSink, StdoutSink
from synthfeed.logging.config import configure_logging


async def run_feed(duration_seconds: float) -> CollectingSink:
    engine = MarketEngine()
    printer = StdoutSink(format="pretty", include_prices=False)
    collector = CollectingSink()

    def on_event(event):
        printer(event)
        collector(event)

    euro = engine.subscribe("EUR/USD", 5, on_event, history_count=20)
    bitcoin = engine.subscribe("BTC/USD (OTC)", 5, on_event, history_count=20)
    print(f"📡 Subscribed {euro.id} and {bitcoin.id}, seeded {len(euro.history)} candles each")

    await asyncio.sleep(duration_seconds)

    euro.unsubscribe()
    engine.stop()
    return collector


def main(duration_seconds: float = 6.0) -> None:
    configure_logging(level="INFO")

    print("🚀 SynthFeed live feed demo")
    print("=" * 60)

    collector = asyncio.run(run_feed(duration_seconds))

    closed = collector.of_type(FeedEventType.CANDLE_CLOSED)
    updates = collector.of_type(FeedEventType.CANDLE_UPDATED)
    print("\n📋 Summary")
    print(f"  events received : {len(collector.events)}")
    print(f"  candle updates  : {len(updates)}")
    print(f"  candles closed  : {len(closed)}")


if __name__ == "__main__":
    main(float(sys.argv[1]) if len(sys.argv) > 1 else 6.0)
