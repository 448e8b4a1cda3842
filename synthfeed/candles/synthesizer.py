"""
Candle synthesizer.

Generates OHLC candles for a symbol on an interval grid. Every candle is a
pure function of its absolute index (time // interval): the chain of candles
is re-anchored to the continuous price every `anchor_span` candles, and any
requested window is produced by replaying from the anchor at or before its
first candle. Backfilling more history therefore never changes the recent
tail, and extending a feed one candle at a time yields the same candles as a
fresh backfill.

Per candle, from oldest to newest:
  1. Seed from (candle time, interval, symbol seed).
  2. Roll a new regime when the current one has expired.
  3. Open at the previous close (at an anchor: at the continuous price),
     size the body from the volatility tier, regime and a seeded draw, pick
     bullish or bearish by the regime's bias.
  4. Add asymmetric seeded wicks.
  5. Occasionally inject an engulfing shape, or a doji in consolidation.
  6. Pull the close back toward the base price when it drifted past the
     threshold, and toward the continuous price (fully on the span's last
     candle, so the next anchor opens where this span closed).
"""

import math
from typing import Optional

from ..config.defaults import DefaultConfig, get_default_config
from ..config.symbols import SymbolProfile
from ..errors import InvalidCountError
from ..logging.config import get_synth_logger, log_regime_change
from ..oracle.price import DEFAULT_ORACLE, PriceOracle
from ..oracle.seeded import derive_seed, seeded_random
from ..oracle.symbol_hash import symbol_seed
from ..utils.time import align_to_interval, ensure_finite_time, ensure_interval
from .models import Candle, CandlePattern, RegimeState, RegimeType, RunningCandle, SynthesisStep
from .patterns import classify_pattern, doji_shape, engulfing_shape, is_doji, shaped_candle
from .regime import (
    advance_regime,
    body_multiplier,
    bullish_probability,
    reversion_pull,
    wick_multiplier,
)

logger = get_synth_logger(__name__)

# Offsets added to a candle seed for the per-candle draws
BODY_DRAW = 1
DIRECTION_DRAW = 2
BODY_JITTER_DRAW = 3
UPPER_WICK_DRAW = 4
LOWER_WICK_DRAW = 5
ENGULFING_DRAW = 6
DOJI_DRAW = 7
DOJI_DIRECTION_DRAW = 8

TICK_AMOUNT_DRAW = 1


def candle_seed(candle_time: int, interval_seconds: int, symbol: str) -> int:
    """Seed of the candle starting at candle_time."""
    return derive_seed(candle_time, interval_seconds, symbol_seed(symbol))


def _ensure_count(count: object) -> int:
    if isinstance(count, bool) or not isinstance(count, int) or count < 1:
        raise InvalidCountError(count)
    return count


class CandleSynthesizer:
    """Deterministic OHLC generator bound to an oracle and engine configuration."""

    def __init__(
        self,
        oracle: PriceOracle = DEFAULT_ORACLE,
        config: Optional[DefaultConfig] = None,
    ):
        self.oracle = oracle
        self.config = config or get_default_config()
        self.logger = logger

    @property
    def anchor_span(self) -> int:
        return self.config.reversion.anchor_span

    def anchor_index(self, index: int) -> int:
        """Absolute index of the anchor at or before index."""
        return index - (index % self.anchor_span)

    # ------------------------------------------------------------------
    # Single step
    # ------------------------------------------------------------------

    def _step(
        self,
        symbol: str,
        profile: SymbolProfile,
        interval: int,
        index: int,
        previous: Optional[Candle],
        regime: Optional[RegimeState],
    ) -> SynthesisStep:
        """Synthesize the candle at absolute index from the chain state before it."""
        regime_params = self.config.regime
        shape = self.config.candle
        reversion = self.config.reversion

        candle_time = index * interval
        seed = candle_seed(candle_time, interval, symbol)
        base = profile.base_price
        position = index - self.anchor_index(index)
        is_anchor = position == 0
        is_span_end = position == self.anchor_span - 1

        if is_anchor or previous is None:
            open_price = self.oracle.price_at(symbol, candle_time)
            previous = None
            if is_anchor:
                regime = None
        else:
            open_price = previous.close

        prior = regime
        if prior is not None:
            prior = prior.consumed()
        regime, rolled = advance_regime(prior, seed, open_price, candle_time, regime_params)
        if rolled:
            log_regime_change(
                self.logger, symbol, interval,
                from_regime=prior.regime.value if prior is not None else None,
                to_regime=regime.regime.value,
                candle_time=candle_time,
                duration=regime.remaining,
            )

        # Body
        base_body = profile.volatility.body * base * body_multiplier(
            regime, seeded_random(seed + BODY_DRAW), shape)
        bullish = seeded_random(seed + DIRECTION_DRAW) < bullish_probability(
            regime, open_price, regime_params)
        body = base_body * (shape.body_jitter_min
                            + seeded_random(seed + BODY_JITTER_DRAW) * shape.body_jitter_span)
        close = open_price + body if bullish else open_price - body

        # Wicks
        wick_mult = wick_multiplier(regime, shape)
        wick_base = abs(close - open_price) * shape.wick_base_ratio
        high = max(open_price, close) + wick_base * seeded_random(seed + UPPER_WICK_DRAW) * wick_mult
        low = min(open_price, close) - wick_base * seeded_random(seed + LOWER_WICK_DRAW) * wick_mult

        # Pattern injection, never on the span's last candle
        pattern = CandlePattern.NONE
        if previous is not None and not is_span_end:
            shaped = None
            if (seeded_random(seed + ENGULFING_DRAW) < shape.engulfing_probability
                    and bullish != previous.is_bullish
                    and not is_doji(previous, shape.doji_threshold)):
                shaped = shaped_candle(candle_time, open_price, *engulfing_shape(
                    previous, open_price, close, high, low, body, shape.engulfing_extension))
            elif (regime.regime == RegimeType.CONSOLIDATION
                  and seeded_random(seed + DOJI_DRAW) < shape.doji_probability):
                shaped = shaped_candle(candle_time, open_price, *doji_shape(
                    open_price, body,
                    bullish=seeded_random(seed + DOJI_DIRECTION_DRAW) < 0.5,
                    body_ratio=shape.doji_body_ratio,
                    wick_ratio=shape.doji_wick_ratio,
                ))
            # The label is whatever the shaped candle forms; a shape that forms
            # nothing is dropped and the regular candle stands.
            if shaped is not None:
                pattern = classify_pattern(shaped, previous, shape.doji_threshold)
                if pattern != CandlePattern.NONE:
                    close, high, low = shaped.close, shaped.high, shaped.low

        if pattern == CandlePattern.NONE:
            # Mean reversion toward the base price
            deviation = (open_price - base) / base
            if abs(deviation) > reversion.threshold_pct:
                close -= deviation * reversion_pull(regime, reversion) * base

            # Track the continuous price, bridging fully at the span's end
            target = self.oracle.price_at(symbol, candle_time + interval)
            progress = (position + 1) / self.anchor_span
            weight = reversion.fair_value_pull + (1 - reversion.fair_value_pull) * progress ** 3
            if is_span_end:
                close = target
            else:
                close += (target - close) * weight

        candle = shaped_candle(candle_time, open_price, close, high, low)
        return SynthesisStep(
            candle=candle,
            regime=regime,
            pattern=pattern,
            regime_rolled=rolled,
            anchor=is_anchor,
        )

    # ------------------------------------------------------------------
    # Ranges
    # ------------------------------------------------------------------

    def synthesize_range(
        self,
        symbol: str,
        interval_seconds: int,
        first_index: int,
        last_index: int,
    ) -> list[SynthesisStep]:
        """
        Steps for absolute candle indexes first_index..last_index inclusive.

        Replays from the anchor at or before first_index so the result does
        not depend on where the window starts.
        """
        interval = ensure_interval(interval_seconds)
        if last_index < first_index:
            return []

        profile = self.oracle.symbols.resolve(symbol)
        steps: list[SynthesisStep] = []
        previous: Optional[Candle] = None
        regime: Optional[RegimeState] = None

        for index in range(self.anchor_index(first_index), last_index + 1):
            step = self._step(symbol, profile, interval, index, previous, regime)
            previous, regime = step.candle, step.regime
            if index >= first_index:
                steps.append(step)

        return steps

    def candle_at(self, symbol: str, interval_seconds: int, candle_time: int) -> Candle:
        """Canonical candle starting at candle_time (aligned down to the grid)."""
        interval = ensure_interval(interval_seconds)
        index = align_to_interval(candle_time, interval) // interval
        return self.synthesize_range(symbol, interval, index, index)[0].candle

    # ------------------------------------------------------------------
    # Bulk backfill
    # ------------------------------------------------------------------

    def generate_steps(
        self,
        symbol: str,
        interval_seconds: int,
        count: int,
        now_seconds: float,
    ) -> list[SynthesisStep]:
        """Steps for the `count` closed candles ending before now's interval."""
        interval = ensure_interval(interval_seconds)
        count = _ensure_count(count)
        now = ensure_finite_time(now_seconds, argument="now_seconds")

        last_index = align_to_interval(now, interval) // interval - 1
        return self.synthesize_range(symbol, interval, last_index - count + 1, last_index)

    def generate_candles(
        self,
        symbol: str,
        interval_seconds: int,
        count: int,
        now_seconds: float,
    ) -> list[Candle]:
        """
        Ordered history of `count` closed candles.

        The last candle is the most recent fully closed interval: its time is
        floor(now / interval) * interval - interval.

        Raises:
            InvalidIntervalError: If interval_seconds is not a positive integer
            InvalidCountError: If count is below one
            InvalidTimeError: If now_seconds is not finite
        """
        steps = self.generate_steps(symbol, interval_seconds, count, now_seconds)
        self.logger.debug(
            "Generated candle history",
            symbol=symbol,
            interval=interval_seconds,
            count=len(steps),
            first_time=steps[0].time,
            last_time=steps[-1].time,
        )
        return [step.candle for step in steps]

    # ------------------------------------------------------------------
    # Incremental extension
    # ------------------------------------------------------------------

    def regime_before(self, symbol: str, interval_seconds: int, index: int) -> Optional[RegimeState]:
        """Regime in force after candle index - 1, or None at an anchor."""
        if index == self.anchor_index(index):
            return None
        return self.synthesize_range(symbol, interval_seconds, index - 1, index - 1)[0].regime

    def next_step(
        self,
        last_candle: Candle,
        interval_seconds: int,
        symbol: str,
        regime: Optional[RegimeState] = None,
    ) -> SynthesisStep:
        """
        Step following last_candle.

        The new candle opens at last_candle.close (at an anchor boundary: at
        the continuous price, which equals the close of a generated candle).
        When regime is omitted it is recovered by replaying from the anchor.
        """
        interval = ensure_interval(interval_seconds)
        index = last_candle.time // interval + 1
        if regime is None:
            regime = self.regime_before(symbol, interval, index)
        profile = self.oracle.symbols.resolve(symbol)
        return self._step(symbol, profile, interval, index, last_candle, regime)

    def next_candle(
        self,
        last_candle: Candle,
        interval_seconds: int,
        symbol: str,
        regime: Optional[RegimeState] = None,
    ) -> Candle:
        """Candle following last_candle; equals the backfilled candle at that time."""
        return self.next_step(last_candle, interval_seconds, symbol, regime).candle

    # ------------------------------------------------------------------
    # Live tick update
    # ------------------------------------------------------------------

    def tick_price(
        self,
        candle: Candle,
        target: Candle,
        now_millis: int,
        symbol: str,
        interval_seconds: int,
    ) -> float:
        """
        Tip of the running candle at now_millis.

        Moves along the line from the open to the canonical close, with
        bucketed seeded jitter that decays to zero at the candle's end, and
        stays inside the canonical range.
        """
        feed = self.config.feed
        elapsed = now_millis / 1000.0 - candle.time
        progress = min(max(elapsed / interval_seconds, 0.0), 1.0)
        path = candle.open + (target.close - candle.open) * progress

        bucket_seed = derive_seed(now_millis // feed.tick_bucket_ms, symbol_seed(symbol))
        direction = 1.0 if seeded_random(bucket_seed) > 0.5 else -1.0
        tick_size = self.oracle.symbols.volatility(symbol).tick * candle.open * feed.tick_size_ratio
        jitter = direction * seeded_random(bucket_seed + TICK_AMOUNT_DRAW) * tick_size
        price = path + jitter * math.sqrt(1.0 - progress)

        return min(max(price, target.low), target.high)

    def update_running_candle(
        self,
        candle: Candle,
        now_millis: int,
        symbol: str,
        interval_seconds: int,
        target: Optional[Candle] = None,
    ) -> Candle:
        """
        Advance the in-progress candle to now_millis.

        Only close, high and low change; high and low never narrow. Passing
        the canonical target avoids replaying the chain on every tick.
        """
        interval = ensure_interval(interval_seconds)
        ensure_finite_time(now_millis, argument="now_millis")
        if target is None:
            target = self.candle_at(symbol, interval, candle.time)
        price = self.tick_price(candle, target, int(now_millis), symbol, interval)
        return candle.with_close(price)

    def open_running_candle(
        self,
        symbol: str,
        interval_seconds: int,
        step: SynthesisStep,
    ) -> RunningCandle:
        """Running candle for a freshly opened interval, flat at its open."""
        return RunningCandle(
            candle=Candle.flat(step.candle.time, step.candle.open),
            target=step.candle,
            regime=step.regime,
        )

    def advance_running_candle(
        self,
        running: RunningCandle,
        now_millis: int,
        symbol: str,
        interval_seconds: int,
    ) -> RunningCandle:
        """RunningCandle after a tick at now_millis."""
        candle = self.update_running_candle(
            running.candle, now_millis, symbol, interval_seconds, target=running.target)
        return RunningCandle(
            candle=candle,
            target=running.target,
            regime=running.regime,
            last_tick_ms=int(now_millis),
        )


DEFAULT_SYNTHESIZER = CandleSynthesizer()


def generate_candles(
    symbol: str,
    interval_seconds: int,
    count: int,
    now_seconds: float,
) -> list[Candle]:
    """Backfill with the default synthesizer."""
    return DEFAULT_SYNTHESIZER.generate_candles(symbol, interval_seconds, count, now_seconds)


def next_candle(last_candle: Candle, interval_seconds: int, symbol: str) -> Candle:
    """Incremental extension with the default synthesizer."""
    return DEFAULT_SYNTHESIZER.next_candle(last_candle, interval_seconds, symbol)


def update_running_candle(
    last_candle: Candle,
    now_millis: int,
    symbol: str,
    interval_seconds: int,
) -> Candle:
    """Live tick update with the default synthesizer."""
    return DEFAULT_SYNTHESIZER.update_running_candle(
        last_candle, now_millis, symbol, interval_seconds)
