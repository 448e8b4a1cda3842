"""Tests for the feed driver state machine, driven by a manual ticker and fake clock."""

import pytest

from synthfeed.candles.synthesizer import CandleSynthesizer
from synthfeed.errors import (
    FeedError,
    InvalidCountError,
    InvalidIntervalError,
    SubscriptionClosedError,
)
from synthfeed.feed.driver import FeedDriver, FeedSubscription, SubscriptionState
from synthfeed.feed.events import FeedEventType
from synthfeed.feed.sinks import CollectingSink

SYMBOL = "EUR/USD"


@pytest.fixture
def driver(synthesizer, manual_ticker, fake_clock) -> FeedDriver:
    return FeedDriver(synthesizer, manual_ticker, clock=fake_clock)


@pytest.fixture
def sink() -> CollectingSink:
    return CollectingSink()


def types(sink: CollectingSink) -> list[FeedEventType]:
    return [event.type for event in sink.events]


class TestSubscribe:
    """Idle -> Seeding -> Running."""

    def test_seeds_history(self, driver, sink, synthesizer, fixed_now):
        subscription = driver.subscribe(SYMBOL, 60, sink, history_count=50)

        assert subscription.state == SubscriptionState.RUNNING
        assert subscription.history == synthesizer.generate_candles(SYMBOL, 60, 50, fixed_now)
        assert subscription.history[-1].time == 1_699_999_980 - 60

    def test_first_tick_opens_current_candle(self, driver, sink, synthesizer, fixed_now):
        subscription = driver.subscribe(SYMBOL, 60, sink, history_count=50)

        assert types(sink) == [
            FeedEventType.CANDLE_OPENED,
            FeedEventType.CANDLE_UPDATED,
            FeedEventType.PRICE,
        ]
        opened = sink.events[0].candle
        assert opened.time == 1_699_999_980
        assert opened.open == subscription.history[-1].close
        assert subscription.last_candle_time == 1_699_999_980

    def test_price_event_is_oracle_price(self, driver, sink, synthesizer, fake_clock):
        driver.subscribe(SYMBOL, 60, sink, history_count=10)
        price_event = sink.of_type(FeedEventType.PRICE)[0]
        assert price_event.price == synthesizer.oracle.price_at(SYMBOL, fake_clock() / 1000.0)
        assert price_event.timestamp_ms == fake_clock()

    def test_schedules_one_ticker(self, driver, sink, manual_ticker):
        driver.subscribe(SYMBOL, 60, sink, history_count=10)
        assert manual_ticker.active_count == 1
        assert len(driver.subscriptions) == 1

    def test_default_history_count(self, driver, sink):
        subscription = driver.subscribe(SYMBOL, 60, sink)
        assert len(subscription.history) == 500

    def test_invalid_arguments(self, driver, sink, manual_ticker):
        with pytest.raises(InvalidIntervalError):
            driver.subscribe(SYMBOL, 0, sink)
        with pytest.raises(InvalidCountError):
            driver.subscribe(SYMBOL, 60, sink, history_count=0)
        assert driver.subscriptions == []
        assert manual_ticker.active_count == 0

    def test_cannot_restart(self, driver, sink, manual_ticker):
        subscription = driver.subscribe(SYMBOL, 60, sink, history_count=10)
        with pytest.raises(SubscriptionClosedError):
            subscription.start(manual_ticker)

    def test_accepts_synthesizer_resolver(self, manual_ticker, fake_clock, sink):
        requested = []

        def resolve(symbol):
            requested.append(symbol)
            return CandleSynthesizer()

        driver = FeedDriver(resolve, manual_ticker, clock=fake_clock)
        driver.subscribe("BTC/USD", 60, sink, history_count=5)
        assert requested == ["BTC/USD"]


class TestRunning:
    """Running ticks: updates, rollovers and gaps."""

    def test_same_candle_tick_updates(self, driver, sink, fake_clock, manual_ticker):
        subscription = driver.subscribe(SYMBOL, 60, sink, history_count=10)
        sink.clear()

        fake_clock.advance(300)
        assert manual_ticker.fire() == 1

        assert types(sink) == [FeedEventType.CANDLE_UPDATED, FeedEventType.PRICE]
        assert sink.events[0].candle.time == subscription.last_candle_time

    def test_updates_widen_monotonically(self, driver, sink, fake_clock, manual_ticker):
        driver.subscribe(SYMBOL, 60, sink, history_count=10)
        for _ in range(100):
            fake_clock.advance(300)
            manual_ticker.fire()

        updates = [e.candle for e in sink.of_type(FeedEventType.CANDLE_UPDATED)]
        for previous, current in zip(updates, updates[1:]):
            assert current.high >= previous.high
            assert current.low <= previous.low
            assert current.open == previous.open

    def test_rollover_publishes_canonical_closed_candle(
            self, driver, sink, fake_clock, manual_ticker, synthesizer):
        subscription = driver.subscribe(SYMBOL, 60, sink, history_count=10)
        sink.clear()

        fake_clock.set_seconds(1_699_999_980 + 60.1)
        manual_ticker.fire()

        assert types(sink) == [
            FeedEventType.CANDLE_CLOSED,
            FeedEventType.CANDLE_OPENED,
            FeedEventType.CANDLE_UPDATED,
            FeedEventType.PRICE,
        ]
        closed = sink.events[0].candle
        assert closed == synthesizer.candle_at(SYMBOL, 60, 1_699_999_980)
        assert closed == synthesizer.generate_candles(SYMBOL, 60, 1, fake_clock() / 1000.0)[-1]

        opened = sink.events[1].candle
        assert opened.time == 1_699_999_980 + 60
        assert opened.open == closed.close
        assert subscription.last_candle_time == opened.time
        assert subscription.history[-1] == closed
        assert len(subscription.history) == 10

    def test_live_feed_matches_backfill(self, driver, sink, fake_clock, manual_ticker, synthesizer):
        driver.subscribe(SYMBOL, 60, sink, history_count=10)
        for _ in range(5 * 200):
            fake_clock.advance(300)
            manual_ticker.fire()

        closed = [e.candle for e in sink.of_type(FeedEventType.CANDLE_CLOSED)]
        assert len(closed) == 5
        backfill = synthesizer.generate_candles(SYMBOL, 60, len(closed), fake_clock() / 1000.0)
        assert closed == backfill

    def test_gap_publishes_missed_candles(self, driver, sink, fake_clock, manual_ticker, synthesizer):
        subscription = driver.subscribe(SYMBOL, 60, sink, history_count=10)
        sink.clear()

        fake_clock.set_seconds(1_699_999_980 + 5 * 60 + 1)
        manual_ticker.fire()

        closed = [e.candle for e in sink.of_type(FeedEventType.CANDLE_CLOSED)]
        assert [c.time for c in closed] == [1_699_999_980 + i * 60 for i in range(5)]
        assert closed == synthesizer.generate_candles(SYMBOL, 60, 5, fake_clock() / 1000.0)
        assert sink.of_type(FeedEventType.CANDLE_OPENED)[0].candle.time == 1_699_999_980 + 300
        assert subscription.last_candle_time == 1_699_999_980 + 300

    def test_long_gap_capped_at_history_count(self, driver, sink, fake_clock, manual_ticker):
        subscription = driver.subscribe(SYMBOL, 60, sink, history_count=10)
        sink.clear()

        fake_clock.set_seconds(1_699_999_980 + 3600 + 1)
        manual_ticker.fire()

        closed = sink.of_type(FeedEventType.CANDLE_CLOSED)
        assert len(closed) == 11
        assert closed[-1].candle.time == 1_699_999_980 + 3600 - 60
        assert len(subscription.history) == 10

    def test_clock_moving_backwards(self, driver, sink, fake_clock, manual_ticker):
        subscription = driver.subscribe(SYMBOL, 60, sink, history_count=10)
        fake_clock.set_seconds(1_699_999_980 + 60.5)
        manual_ticker.fire()
        last_candle_time = subscription.last_candle_time
        sink.clear()

        fake_clock.set_seconds(1_699_999_980 + 30)
        manual_ticker.fire()

        assert types(sink) == [FeedEventType.CANDLE_UPDATED, FeedEventType.PRICE]
        assert subscription.last_candle_time == last_candle_time
        assert sink.events[0].candle.time == last_candle_time

    def test_independent_subscriptions(self, driver, fake_clock, manual_ticker):
        euro, bitcoin = CollectingSink(), CollectingSink()
        driver.subscribe("EUR/USD", 60, euro, history_count=5)
        driver.subscribe("BTC/USD", 300, bitcoin, history_count=5)

        fake_clock.advance(300)
        assert manual_ticker.fire() == 2
        assert {e.symbol for e in euro.events} == {"EUR/USD"}
        assert {e.symbol for e in bitcoin.events} == {"BTC/USD"}
        assert {e.interval for e in bitcoin.events} == {300}


class TestUnsubscribe:
    """Running -> Closed, with no publishes afterwards."""

    def test_stops_ticker_synchronously(self, driver, sink, fake_clock, manual_ticker):
        subscription = driver.subscribe(SYMBOL, 60, sink, history_count=10)
        subscription.unsubscribe()

        assert manual_ticker.active_count == 0
        assert subscription.state == SubscriptionState.CLOSED
        assert subscription.history == []
        assert subscription.running_candle is None
        assert driver.subscriptions == []

        count = len(sink.events)
        fake_clock.advance(60_000)
        assert manual_ticker.fire() == 0
        subscription.tick()
        assert len(sink.events) == count

    def test_idempotent(self, driver, sink):
        subscription = driver.subscribe(SYMBOL, 60, sink, history_count=10)
        subscription.unsubscribe()
        subscription.unsubscribe()
        assert subscription.state == SubscriptionState.CLOSED

    def test_unsubscribe_from_callback_stops_publishing(self, driver, fake_clock, manual_ticker):
        received = []
        holder = {}

        def on_event(event):
            received.append(event.type)
            if event.type == FeedEventType.CANDLE_UPDATED and "sub" in holder:
                holder["sub"].unsubscribe()

        holder["sub"] = driver.subscribe(SYMBOL, 60, on_event, history_count=10)
        received.clear()

        fake_clock.advance(300)
        manual_ticker.fire()

        assert received == [FeedEventType.CANDLE_UPDATED]
        assert manual_ticker.active_count == 0

    def test_stop_all(self, driver, sink, manual_ticker):
        driver.subscribe("EUR/USD", 60, sink, history_count=5)
        driver.subscribe("GBP/USD", 60, sink, history_count=5)
        driver.stop()
        assert manual_ticker.active_count == 0
        assert driver.subscriptions == []

    def test_resubscribe_on_interval_change(self, driver, sink, manual_ticker):
        subscription = driver.subscribe(SYMBOL, 60, sink, history_count=5)
        replacement = driver.resubscribe(subscription, interval_seconds=300)

        assert subscription.state == SubscriptionState.CLOSED
        assert replacement.interval == 300
        assert replacement.symbol == SYMBOL
        assert manual_ticker.active_count == 1

    def test_resubscribe_on_symbol_change(self, driver, sink, manual_ticker):
        subscription = driver.subscribe(SYMBOL, 60, sink, history_count=5)
        replacement = driver.resubscribe(subscription, symbol="GBP/USD")

        assert replacement.symbol == "GBP/USD"
        assert replacement.interval == 60
        assert replacement.history_count == 5
        assert manual_ticker.active_count == 1

    @pytest.mark.parametrize("interval", [0, -5, 1.5])
    def test_resubscribe_rejects_invalid_interval(self, driver, sink, manual_ticker, interval):
        subscription = driver.subscribe(SYMBOL, 60, sink, history_count=5)

        with pytest.raises(InvalidIntervalError):
            driver.resubscribe(subscription, interval_seconds=interval)

        assert subscription.state == SubscriptionState.RUNNING
        assert subscription.interval == 60
        assert manual_ticker.active_count == 1
        assert driver.subscriptions == [subscription]

    def test_resubscribe_keeps_empty_symbol(self, driver, sink):
        subscription = driver.subscribe(SYMBOL, 60, sink, history_count=5)
        replacement = driver.resubscribe(subscription, symbol="")
        assert replacement.symbol == ""


class TestResilience:
    """Overlapping ticks and failing subscribers."""

    def test_overlapping_tick_skipped(self, driver, fake_clock, manual_ticker):
        holder = {}
        updates = []

        def on_event(event):
            if event.type == FeedEventType.CANDLE_UPDATED:
                updates.append(event.candle)
                if "sub" in holder:
                    holder["sub"].tick()

        holder["sub"] = driver.subscribe(SYMBOL, 60, on_event, history_count=5)
        updates.clear()

        fake_clock.advance(300)
        manual_ticker.fire()

        assert len(updates) == 1
        assert holder["sub"].skipped_ticks == 1
        assert holder["sub"].active

    def test_failing_subscriber_does_not_stop_feed(self, driver, fake_clock, manual_ticker):
        calls = []

        def on_event(event):
            calls.append(event.type)
            raise RuntimeError("subscriber failure")

        subscription = driver.subscribe(SYMBOL, 60, on_event, history_count=5)
        fake_clock.advance(300)
        manual_ticker.fire()

        assert subscription.active
        assert subscription.callback_errors == len(calls) == 5
        assert calls[-1] == FeedEventType.PRICE

    def test_rollover_before_seeding_raises(self, synthesizer, fake_clock, sink):
        subscription = FeedSubscription(
            symbol=SYMBOL,
            interval=60,
            on_event=sink,
            synthesizer=synthesizer,
            clock=fake_clock,
            params=synthesizer.config.feed,
            history_count=5,
        )

        with pytest.raises(FeedError) as exc_info:
            subscription._roll_over(1_699_999_980, fake_clock())

        assert exc_info.value.context["subscription_id"] == subscription.id
        assert subscription.state == SubscriptionState.IDLE
        assert list(sink.events) == []
