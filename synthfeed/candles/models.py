"""
Candle and regime data models.

This module defines immutable data structures for synthesized candles and the
regime state threaded through the synthesizer from one candle to the next.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Optional


@dataclass(frozen=True)
class Candle:
    """OHLC summary of one interval; time is the interval's left edge in seconds."""
    time: int
    open: float
    high: float
    low: float
    close: float

    @property
    def is_bullish(self) -> bool:
        return self.close > self.open

    @property
    def is_bearish(self) -> bool:
        return self.close < self.open

    @property
    def body(self) -> float:
        return abs(self.close - self.open)

    @property
    def range(self) -> float:
        return self.high - self.low

    def is_consistent(self) -> bool:
        """True when high and low enclose both open and close."""
        return (self.low <= min(self.open, self.close)
                and self.high >= max(self.open, self.close)
                and self.high >= self.low)

    def with_close(self, price: float) -> "Candle":
        """Same candle with a new close; high and low only ever widen."""
        return Candle(
            time=self.time,
            open=self.open,
            high=max(self.high, price),
            low=min(self.low, price),
            close=price,
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "time": self.time,
            "open": self.open,
            "high": self.high,
            "low": self.low,
            "close": self.close,
        }

    @classmethod
    def flat(cls, time: int, price: float) -> "Candle":
        """Candle whose four prices all equal price (a freshly opened candle)."""
        return cls(time=time, open=price, high=price, low=price, close=price)


class RegimeType(str, Enum):
    """Latent market regimes governing candle direction and size."""
    RANGING = "ranging"
    UPTREND = "uptrend"
    DOWNTREND = "downtrend"
    VOLATILE = "volatile"
    CONSOLIDATION = "consolidation"

    @property
    def is_trending(self) -> bool:
        return self in (RegimeType.UPTREND, RegimeType.DOWNTREND)

    @property
    def is_quiet(self) -> bool:
        """Regimes with the stronger mean reversion pull."""
        return self in (RegimeType.RANGING, RegimeType.CONSOLIDATION)


@dataclass(frozen=True)
class RegimeState:
    """Regime carried from one candle to the next."""

    regime: RegimeType
    strength: float
    remaining: int                      # Candles left including the current one
    consolidation_center: float
    started_at: int                     # Boundary time of the candle that rolled it

    @property
    def expired(self) -> bool:
        return self.remaining <= 0

    def consumed(self) -> "RegimeState":
        """State after one more candle has been generated under it."""
        return RegimeState(
            regime=self.regime,
            strength=self.strength,
            remaining=self.remaining - 1,
            consolidation_center=self.consolidation_center,
            started_at=self.started_at,
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "regime": self.regime.value,
            "strength": self.strength,
            "remaining": self.remaining,
            "consolidation_center": self.consolidation_center,
            "started_at": self.started_at,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "RegimeState":
        return cls(
            regime=RegimeType(data["regime"]),
            strength=float(data["strength"]),
            remaining=int(data["remaining"]),
            consolidation_center=float(data["consolidation_center"]),
            started_at=int(data["started_at"]),
        )


class CandlePattern(str, Enum):
    """Shapes the synthesizer can inject over a regular candle."""
    NONE = "none"
    BULLISH_ENGULFING = "bullish_engulfing"
    BEARISH_ENGULFING = "bearish_engulfing"
    DOJI = "doji"


@dataclass(frozen=True)
class SynthesisStep:
    """One synthesized candle with the regime in force after it."""
    candle: Candle
    regime: RegimeState
    pattern: CandlePattern = CandlePattern.NONE
    regime_rolled: bool = False
    anchor: bool = False                # First candle of an anchored span

    @property
    def time(self) -> int:
        return self.candle.time


@dataclass(frozen=True)
class RunningCandle:
    """The in-progress candle of a live feed with its canonical final shape."""
    candle: Candle
    target: Candle
    regime: RegimeState
    last_tick_ms: Optional[int] = None

    @property
    def time(self) -> int:
        return self.candle.time
