"""Default configuration parameters for the synthetic price engine."""

from dataclasses import dataclass


@dataclass(frozen=True)
class OscillatorParams:
    """Periods (seconds / 2pi) and weights of the price oscillators."""
    # Slow trend
    trend_period: float = 5039.0
    trend_weight: float = 30.0

    # Medium swing
    swing_period: float = 827.0
    swing_weight: float = 12.0

    # Fast noise
    noise_period: float = 197.0
    noise_weight: float = 4.0

    # Very fast jitter
    jitter_period: float = 41.0
    jitter_weight: float = 2.0

    # Sub-minute texture
    micro_period: float = 7.0
    micro_weight: float = 1.2
    rapid_period: float = 1.3
    rapid_weight: float = 0.6

    def terms(self) -> tuple[tuple[float, float], ...]:
        """(period, weight) pairs from slowest to fastest."""
        return (
            (self.trend_period, self.trend_weight),
            (self.swing_period, self.swing_weight),
            (self.noise_period, self.noise_weight),
            (self.jitter_period, self.jitter_weight),
            (self.micro_period, self.micro_weight),
            (self.rapid_period, self.rapid_weight),
        )

    @property
    def total_weight(self) -> float:
        """Largest possible absolute oscillator sum."""
        return sum(abs(weight) for _, weight in self.terms())


@dataclass(frozen=True)
class RegimeParams:
    """Regime roll and direction bias parameters."""
    # Duration in candles, inclusive range
    min_duration: int = 8
    max_duration: int = 33

    # Cumulative roll thresholds: ranging < uptrend < downtrend < volatile < consolidation
    ranging_threshold: float = 0.25
    uptrend_threshold: float = 0.45
    downtrend_threshold: float = 0.65
    volatile_threshold: float = 0.80

    # Probability of a bullish candle
    uptrend_bias: float = 0.65
    downtrend_bias: float = 0.35
    consolidation_above_bias: float = 0.40    # Price above center, lean bearish
    consolidation_below_bias: float = 0.60    # Price below center, lean bullish

    # Trend strength
    ranging_strength: float = 0.2
    trend_strength_min: float = 0.4
    trend_strength_span: float = 0.5
    volatile_strength: float = 0.1
    consolidation_strength: float = 0.3


@dataclass(frozen=True)
class CandleShapeParams:
    """Candle body, wick and pattern injection parameters."""
    # Body size multipliers
    body_min: float = 0.5
    body_span: float = 1.2
    volatile_body_min: float = 1.5
    volatile_body_span: float = 2.0
    body_jitter_min: float = 0.3
    body_jitter_span: float = 1.2

    # Wicks
    wick_base_ratio: float = 0.6
    wick_multiplier: float = 0.8
    volatile_wick_multiplier: float = 1.5

    # Engulfing injection
    engulfing_probability: float = 0.10
    engulfing_extension: float = 0.2        # Fraction of body past the previous candle

    # Doji injection (consolidation only)
    doji_probability: float = 0.15
    doji_body_ratio: float = 0.05
    doji_wick_ratio: float = 0.4
    doji_threshold: float = 0.1             # Doji when body <= this share of range


@dataclass(frozen=True)
class MeanReversionParams:
    """Pull-back forces keeping the candle chain near its anchors."""
    threshold_pct: float = 0.025            # Drift from base price that triggers reversion
    ranging_pull: float = 0.15              # Ranging and consolidation regimes
    trending_pull: float = 0.05             # Trending and volatile regimes
    fair_value_pull: float = 0.25           # Per-candle pull toward the continuous price
    anchor_span: int = 96                   # Candles between chain anchors


@dataclass(frozen=True)
class FeedParams:
    """Live feed driver parameters."""
    tick_interval_ms: int = 300
    tick_bucket_ms: int = 100
    tick_size_ratio: float = 0.3            # Running-candle jitter, fraction of tick volatility
    history_count: int = 500
    default_interval: int = 60


@dataclass(frozen=True)
class DefaultConfig:
    """Complete default configuration."""
    oscillator: OscillatorParams
    regime: RegimeParams
    candle: CandleShapeParams
    reversion: MeanReversionParams
    feed: FeedParams


def get_default_config() -> DefaultConfig:
    """Get the default configuration instance."""
    return DefaultConfig(
        oscillator=OscillatorParams(),
        regime=RegimeParams(),
        candle=CandleShapeParams(),
        reversion=MeanReversionParams(),
        feed=FeedParams(),
    )
