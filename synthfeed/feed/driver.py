"""
Feed driver.

Runs one independent candle feed per subscription:

    IDLE -> SEEDING   backfill history, remember the newest candle time
    SEEDING -> RUNNING   schedule the periodic tick
    RUNNING, each tick   roll over when a boundary was crossed, otherwise
                         advance the running candle; always publish the
                         oracle price
    RUNNING -> CLOSED    unsubscribe: cancel the tick, drop candle state

Ticks are single-flight per subscription: a tick that starts while another
is still running for the same subscription is skipped.
"""

import itertools
from enum import Enum
from typing import Callable, Optional, Union

from ..candles.models import Candle, RunningCandle, SynthesisStep
from ..candles.synthesizer import CandleSynthesizer
from ..config.defaults import FeedParams
from ..errors import FeedError, SubscriptionClosedError
from ..logging.config import get_feed_logger, log_candle_rollover
from ..utils.time import align_to_interval, ensure_interval, wall_clock_millis
from .events import FeedEvent, FeedEventType
from .ticker import Ticker, TickerHandle

logger = get_feed_logger(__name__)

EventCallback = Callable[[FeedEvent], None]
SynthesizerResolver = Callable[[str], CandleSynthesizer]

_subscription_ids = itertools.count(1)


class SubscriptionState(str, Enum):
    """Lifecycle of a feed subscription."""
    IDLE = "idle"
    SEEDING = "seeding"
    RUNNING = "running"
    CLOSED = "closed"


class FeedSubscription:
    """A live candle feed for one (symbol, interval) pair."""

    def __init__(
        self,
        symbol: str,
        interval: int,
        on_event: EventCallback,
        synthesizer: CandleSynthesizer,
        clock: Callable[[], int],
        params: FeedParams,
        history_count: int,
        on_close: Optional[Callable[["FeedSubscription"], None]] = None,
    ):
        self.id = f"sub-{next(_subscription_ids)}"
        self.symbol = symbol
        self.interval = interval
        self.synthesizer = synthesizer
        self.params = params
        self.history_count = history_count
        self.state = SubscriptionState.IDLE
        self.logger = logger.bind(subscription_id=self.id, symbol=symbol, interval=interval)

        self._on_event = on_event
        self._clock = clock
        self._on_close = on_close
        self._handle: Optional[TickerHandle] = None
        self._in_tick = False

        self.history: list[Candle] = []
        self.last_candle_time: Optional[int] = None
        self._last_closed: Optional[SynthesisStep] = None
        self._running: Optional[RunningCandle] = None
        self._last_tick_ms: Optional[int] = None
        self.skipped_ticks = 0
        self.callback_errors = 0

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    @property
    def active(self) -> bool:
        return self.state == SubscriptionState.RUNNING

    @property
    def running_candle(self) -> Optional[Candle]:
        return self._running.candle if self._running is not None else None

    def start(self, ticker: Ticker) -> None:
        """Seed history, publish the opening tick and schedule the periodic tick."""
        if self.state != SubscriptionState.IDLE:
            raise SubscriptionClosedError(
                f"subscription {self.id} cannot start from state {self.state.value}",
                subscription_id=self.id,
            )

        self.state = SubscriptionState.SEEDING
        now_ms = self._clock()
        steps = self.synthesizer.generate_steps(
            self.symbol, self.interval, self.history_count, now_ms / 1000.0)
        self.history = [step.candle for step in steps]
        self._last_closed = steps[-1]
        self.last_candle_time = steps[-1].time
        self._last_tick_ms = now_ms

        self.logger.info(
            "Seeded feed history",
            count=len(self.history),
            last_candle_time=self.last_candle_time,
        )

        self.state = SubscriptionState.RUNNING
        self.tick()
        if self.state == SubscriptionState.RUNNING:
            self._handle = ticker.schedule(self.params.tick_interval_ms, self.tick)

    def unsubscribe(self) -> None:
        """
        Stop the feed.

        The periodic tick is cancelled before this returns and nothing is
        published afterwards. Calling it more than once is harmless.
        """
        if self.state == SubscriptionState.CLOSED:
            return

        self.state = SubscriptionState.CLOSED
        if self._handle is not None:
            self._handle.cancel()
            self._handle = None

        self.history = []
        self._running = None
        self._last_closed = None
        self.last_candle_time = None

        self.logger.info("Unsubscribed feed")
        if self._on_close is not None:
            self._on_close(self)

    # ------------------------------------------------------------------
    # Ticking
    # ------------------------------------------------------------------

    def tick(self) -> None:
        """One driver tick; skipped if inactive or if a tick is in flight."""
        if not self.active:
            return
        if self._in_tick:
            self.skipped_ticks += 1
            self.logger.warning("Skipped overlapping tick", skipped_ticks=self.skipped_ticks)
            return

        self._in_tick = True
        try:
            self._tick(self._clock())
        finally:
            self._in_tick = False

    def _tick(self, now_ms: int) -> None:
        if self._last_tick_ms is not None and now_ms < self._last_tick_ms:
            self.logger.warning(
                "Clock moved backwards",
                now_ms=now_ms,
                last_tick_ms=self._last_tick_ms,
            )
        self._last_tick_ms = max(now_ms, self._last_tick_ms or now_ms)

        current_time = align_to_interval(now_ms / 1000.0, self.interval)
        if self.last_candle_time is not None and current_time > self.last_candle_time:
            self._roll_over(current_time, now_ms)
            if not self.active:
                return

        if self._running is not None:
            self._running = self.synthesizer.advance_running_candle(
                self._running, now_ms, self.symbol, self.interval)
            self._publish(FeedEventType.CANDLE_UPDATED, now_ms, candle=self._running.candle)
            if not self.active:
                return

        price = self.synthesizer.oracle.price_at(self.symbol, now_ms / 1000.0)
        self._publish(FeedEventType.PRICE, now_ms, price=price)

    def _roll_over(self, current_time: int, now_ms: int) -> None:
        """Close the running candle, fill any skipped intervals, open the current one."""
        if self._last_closed is None:
            raise FeedError(
                "Rollover before the feed was seeded",
                context={"subscription_id": self.id, "symbol": self.symbol},
            )

        if self._running is not None:
            closed = SynthesisStep(candle=self._running.target, regime=self._running.regime)
            self._running = None
            self._last_closed = closed
            self._append_history(closed.candle)
            self._publish(FeedEventType.CANDLE_CLOSED, now_ms, candle=closed.candle)
            if not self.active:
                return

        previous_time = self._last_closed.time
        missed = (current_time - previous_time) // self.interval - 1
        if missed > 0:
            # Woke up after more than one interval: publish the skipped closed candles
            first_index = max(previous_time // self.interval + 1,
                              current_time // self.interval - self.history_count)
            steps = self.synthesizer.synthesize_range(
                self.symbol, self.interval, first_index, current_time // self.interval)
            for step in steps[:-1]:
                self._last_closed = step
                self._append_history(step.candle)
                self._publish(FeedEventType.CANDLE_CLOSED, now_ms, candle=step.candle)
                if not self.active:
                    return
            opening = steps[-1]
        else:
            opening = self.synthesizer.next_step(
                self._last_closed.candle, self.interval, self.symbol,
                regime=self._last_closed.regime)

        self._running = self.synthesizer.open_running_candle(self.symbol, self.interval, opening)
        log_candle_rollover(
            self.logger, self.symbol, self.interval,
            closed_time=self._last_closed.time,
            opened_time=opening.time,
            context={"missed": max(missed, 0)} if missed > 0 else None,
        )
        self.last_candle_time = opening.time
        self._publish(FeedEventType.CANDLE_OPENED, now_ms, candle=self._running.candle)

    def _append_history(self, candle: Candle) -> None:
        self.history.append(candle)
        if len(self.history) > self.history_count:
            del self.history[:len(self.history) - self.history_count]

    def _publish(
        self,
        event_type: FeedEventType,
        now_ms: int,
        candle: Optional[Candle] = None,
        price: Optional[float] = None,
    ) -> None:
        if not self.active:
            return

        event = FeedEvent(
            type=event_type,
            symbol=self.symbol,
            interval=self.interval,
            timestamp_ms=now_ms,
            candle=candle,
            price=price,
        )
        try:
            self._on_event(event)
        except Exception:
            self.callback_errors += 1
            self.logger.error(
                "Subscriber callback failed",
                event_type=event_type.value,
                callback_errors=self.callback_errors,
                exc_info=True,
            )


class FeedDriver:
    """Creates and tracks independent feed subscriptions."""

    def __init__(
        self,
        synthesizer: Union[CandleSynthesizer, SynthesizerResolver],
        ticker: Ticker,
        clock: Callable[[], int] = wall_clock_millis,
        params: Optional[FeedParams] = None,
    ):
        if isinstance(synthesizer, CandleSynthesizer):
            self._resolve: SynthesizerResolver = lambda _symbol: synthesizer
        else:
            self._resolve = synthesizer
        self.ticker = ticker
        self.clock = clock
        self.params = params
        self.logger = logger
        self._subscriptions: dict[str, FeedSubscription] = {}

    def subscribe(
        self,
        symbol: str,
        interval_seconds: int,
        on_event: EventCallback,
        history_count: Optional[int] = None,
    ) -> FeedSubscription:
        """
        Start a live feed.

        Returns the running subscription; call its unsubscribe() to stop it.
        Its `history` holds the backfilled candles.

        Raises:
            InvalidIntervalError: If interval_seconds is not a positive integer
            InvalidCountError: If history_count is below one
        """
        interval = ensure_interval(interval_seconds)
        synthesizer = self._resolve(symbol)
        params = self.params or synthesizer.config.feed
        subscription = FeedSubscription(
            symbol=symbol,
            interval=interval,
            on_event=on_event,
            synthesizer=synthesizer,
            clock=self.clock,
            params=params,
            history_count=history_count if history_count is not None else params.history_count,
            on_close=self._forget,
        )
        self._subscriptions[subscription.id] = subscription

        self.logger.info(
            "Subscribing feed",
            subscription_id=subscription.id,
            symbol=symbol,
            interval=interval,
        )
        try:
            subscription.start(self.ticker)
        except Exception:
            self._subscriptions.pop(subscription.id, None)
            raise
        return subscription

    def resubscribe(
        self,
        subscription: FeedSubscription,
        symbol: Optional[str] = None,
        interval_seconds: Optional[int] = None,
    ) -> FeedSubscription:
        """
        Replace a subscription after a symbol or interval change.

        The new interval is checked before the old feed is torn down, so a
        rejected change leaves the old subscription running.

        Raises:
            InvalidIntervalError: If interval_seconds is not a positive integer
        """
        on_event = subscription._on_event
        history_count = subscription.history_count
        new_symbol = symbol if symbol is not None else subscription.symbol
        new_interval = ensure_interval(
            interval_seconds if interval_seconds is not None else subscription.interval)
        subscription.unsubscribe()
        return self.subscribe(new_symbol, new_interval, on_event, history_count)

    def _forget(self, subscription: FeedSubscription) -> None:
        self._subscriptions.pop(subscription.id, None)

    @property
    def subscriptions(self) -> list[FeedSubscription]:
        return list(self._subscriptions.values())

    def stop(self) -> None:
        """Unsubscribe every active feed."""
        for subscription in list(self._subscriptions.values()):
            subscription.unsubscribe()
