"""Unit tests for the market engine facade."""

import pytest

from synthfeed.candles.synthesizer import CandleSynthesizer
from synthfeed.engine import MarketEngine
from synthfeed.errors import ConfigurationError
from synthfeed.feed.events import FeedEventType
from synthfeed.feed.sinks import CollectingSink
from synthfeed.feed.ticker import ManualTicker
from synthfeed.oracle.price import price_at
from synthfeed.settlement.rules import TradeOutcome

NOW_MS = 1_700_000_000_000


class StaticClock:
    """Clock pinned to a settable millisecond value."""

    def __init__(self, now_ms: int = NOW_MS):
        self.now_ms = now_ms

    def __call__(self) -> int:
        return self.now_ms


class TestMarketEngine:
    """Test suite for MarketEngine."""

    def setup_method(self):
        self.clock = StaticClock()
        self.ticker = ManualTicker()
        self.engine = MarketEngine(ticker=self.ticker, clock=self.clock)

    def test_engine_initialization(self):
        assert self.engine.config_loader is not None
        assert self.engine.profile("AUD/JPY").base_price == 97.85
        assert self.engine.driver.ticker is self.ticker

    def test_components_cached_per_symbol(self):
        assert self.engine.synthesizer("EUR/USD") is self.engine.synthesizer("EUR/USD")
        assert self.engine.oracle("EUR/USD") is self.engine.synthesizer("EUR/USD").oracle
        assert self.engine.synthesizer("EUR/USD") is not self.engine.synthesizer("BTC/USD")

    def test_component_cache_is_bounded(self):
        engine = MarketEngine(ticker=self.ticker, clock=self.clock, max_cached_symbols=2)
        first = engine.synthesizer("EUR/USD")
        for symbol in ("GBP/USD", "BTC/USD", "XAU/USD", "AAPL"):
            engine.synthesizer(symbol)

        assert engine._components.cache_info().currsize == 2
        rebuilt = engine.synthesizer("EUR/USD")
        assert rebuilt is not first
        assert rebuilt.config == first.config
        assert engine.oracle("EUR/USD") is rebuilt.oracle
        assert (engine.generate_candles("EUR/USD", 60, 20)
                == first.generate_candles("EUR/USD", 60, 20, NOW_MS / 1000.0))

    def test_symbol_config_applied(self):
        assert self.engine.config_for("BTC/USD").reversion.threshold_pct == 0.04
        assert self.engine.config_for("EUR/USD").reversion.threshold_pct == 0.025

    def test_price_matches_module_oracle(self):
        assert self.engine.price_at("EUR/USD", 1_700_000_000.0) == price_at("EUR/USD", 1_700_000_000.0)

    def test_price_point_uses_clock(self):
        point = self.engine.price_point("EUR/USD")
        assert point.time == NOW_MS / 1000.0
        assert point.price == self.engine.price_at("EUR/USD", NOW_MS / 1000.0)

    def test_generate_candles_defaults(self):
        candles = self.engine.generate_candles("EUR/USD", 60)
        assert len(candles) == 500
        assert candles[-1].time == (NOW_MS // 60_000) * 60 - 60

    def test_generate_candles_matches_synthesizer(self):
        candles = self.engine.generate_candles("GBP/USD", 300, 20, 1_700_000_000.0)
        assert candles == CandleSynthesizer().generate_candles("GBP/USD", 300, 20, 1_700_000_000.0)

    def test_next_candle_continues_history(self):
        candles = self.engine.generate_candles("EUR/USD", 60, 5)
        following = self.engine.next_candle(candles[-1], 60, "EUR/USD")
        assert following.time == candles[-1].time + 60
        assert following.open == candles[-1].close

    def test_overrides_validated(self):
        engine = MarketEngine(
            overrides={"candle": {"doji_probability": 2.0}}, ticker=ManualTicker(), clock=self.clock)
        with pytest.raises(ConfigurationError):
            engine.generate_candles("EUR/USD", 60, 5)

    def test_overrides_applied(self):
        engine = MarketEngine(
            overrides={"feed": {"history_count": 25}}, ticker=ManualTicker(), clock=self.clock)
        assert len(engine.generate_candles("EUR/USD", 60)) == 25

    def test_subscribe_and_stop(self):
        sink = CollectingSink()
        subscription = self.engine.subscribe("EUR/USD", 60, sink, history_count=10)

        assert len(subscription.history) == 10
        assert [e.type for e in sink.events][0] == FeedEventType.CANDLE_OPENED
        assert self.ticker.active_count == 1

        self.engine.stop()
        assert self.ticker.active_count == 0
        assert not subscription.active

    def test_settle_passthrough(self):
        assert MarketEngine.settle("up", 1.0, 1.1) == TradeOutcome.WIN
        assert MarketEngine.settle("down", 1.0, 1.0) == TradeOutcome.LOSS


class TestEngineTrades:
    """Trades opened through the engine settle against its oracle."""

    def setup_method(self):
        self.clock = StaticClock()
        self.engine = MarketEngine(ticker=ManualTicker(), clock=self.clock)

    def test_open_trade_uses_engine_clock(self):
        ticket = self.engine.open_trade("EUR/USD", "up", 10, 60)
        assert ticket.entry_ms == NOW_MS
        assert ticket.entry_price == self.engine.price_at("EUR/USD", NOW_MS / 1000.0)
        assert [t.id for t in self.engine.evaluator.pending] == [ticket.id]

    def test_payout_from_configured_symbols(self):
        ticket = self.engine.open_trade("AUD/JPY", "down", 10, 60, track=False)
        assert ticket.payout == 88
        assert self.engine.evaluator.pending == []

    def test_settle_trade_at_expiry_price(self):
        ticket = self.engine.open_trade("BTC/USD", "up", 10, 60, track=False)
        result = self.engine.settle_trade(ticket)
        assert result.exit_price == self.engine.price_at("BTC/USD", (NOW_MS + 60_000) / 1000.0)
        assert result.outcome == MarketEngine.settle("up", ticket.entry_price, result.exit_price)

    def test_evaluate_expiries_follows_clock(self):
        ticket = self.engine.open_trade("EUR/USD", "down", 10, 60)
        assert self.engine.evaluate_expiries() == []

        self.clock.now_ms += 60_000
        results = self.engine.evaluate_expiries()
        assert [r.ticket.id for r in results] == [ticket.id]
        assert results[0] == self.engine.settle_trade(ticket)
