#!/usr/bin/env python3
"""
Basic Usage Example - SynthFeed market engine

This script demonstrates the deterministic parts of the engine. It shows how to:
- Sample the continuous oracle price
- Backfill a chart and continue it candle by candle
- Open a timed trade and settle it at expiry

Run: python examples/basic_usage.py
"""

from synthfeed.config.timeframes import parse_timeframe
from synthfeed.engine import MarketEngine
from synthfeed.feed.ticker import ManualTicker
from synthfeed.logging.config import configure_logging
from synthfeed.utils.time import format_candle_time, format_countdown, seconds_until_next_candle

# Fixed reference time so the output is reproducible
NOW_MS = 1_700_000_000_000


def show_prices(engine: MarketEngine) -> None:
    """Print the oracle price of a few symbols at the reference time."""
    print("\n💱 Oracle prices")
    for symbol in ("EUR/USD", "EUR/USD (OTC)", "BTC/USD", "XAU/USD", "UNKNOWN/SYMBOL"):
        point = engine.price_point(symbol)
        profile = engine.profile(symbol)
        print(f"  {symbol:<16} {point.price:>14.5f}  (base {profile.base_price}, {profile.tier})")


def show_chart(engine: MarketEngine, symbol: str, timeframe: str) -> None:
    """Backfill a chart and extend it by one candle."""
    interval = parse_timeframe(timeframe)
    candles = engine.generate_candles(symbol, interval, 10)

    print(f"\n🕯️  Last {len(candles)} closed {timeframe} candles for {symbol}")
    for candle in candles:
        direction = "▲" if candle.is_bullish else "▼"
        print(f"  {format_candle_time(candle.time)} {direction} "
              f"O={candle.open:.5f} H={candle.high:.5f} L={candle.low:.5f} C={candle.close:.5f}")

    following = engine.next_candle(candles[-1], interval, symbol)
    print(f"  next candle opens at {following.open:.5f} and closes at {following.close:.5f}")

    remaining = seconds_until_next_candle(NOW_MS / 1000.0, interval)
    print(f"  current candle closes in {format_countdown(remaining)}")


def run_trade(engine: MarketEngine, clock: "FixedClock") -> None:
    """Open a one minute trade, move the clock past expiry and settle."""
    ticket = engine.open_trade("EUR/USD", "up", 10, 60)
    print(f"\n📈 Opened {ticket.id}: {ticket.direction.value} {ticket.symbol} "
          f"at {ticket.entry_price:.5f}, payout {ticket.payout}%")

    clock.now_ms += 60_000
    for result in engine.evaluate_expiries():
        print(f"  settled at {result.exit_price:.5f}: {result.outcome.value} "
              f"(profit {result.profit:+.2f}, credit {result.credit:.2f})")


class FixedClock:
    """Millisecond clock advanced by hand."""

    def __init__(self, now_ms: int):
        self.now_ms = now_ms

    def __call__(self) -> int:
        return self.now_ms


def main() -> None:
    configure_logging(level="WARNING")

    print("🚀 SynthFeed basic usage")
    print("=" * 60)

    clock = FixedClock(NOW_MS)
    engine = MarketEngine(ticker=ManualTicker(), clock=clock)

    show_prices(engine)
    show_chart(engine, "EUR/USD", "1m")
    show_chart(engine, "BTC/USD", "5m")
    run_trade(engine, clock)

    print("\n✅ Done")


if __name__ == "__main__":
    main()
