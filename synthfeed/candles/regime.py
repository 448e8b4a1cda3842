"""
Regime state machine for the candle synthesizer.

A regime lasts a seed-derived number of candles, then a new one is rolled
from the seed of the candle at which the old one expired. Each regime carries a
bullish-candle probability, a body size multiplier and a mean reversion pull.
"""

from typing import Optional

from ..config.defaults import CandleShapeParams, MeanReversionParams, RegimeParams
from ..oracle.seeded import seeded_random
from .models import RegimeState, RegimeType

# Offsets added to a candle seed for the regime draws
ROLL_DRAW = 500
STRENGTH_DRAW = 100
DURATION_DRAW = 200


def roll_regime(
    seed: int,
    price: float,
    candle_time: int,
    params: RegimeParams,
) -> RegimeState:
    """
    Roll a fresh regime for the candle with the given seed.

    Args:
        seed: Candle seed
        price: Current price, remembered as the consolidation center
        candle_time: Boundary time of the candle
        params: Regime parameters

    Returns:
        New RegimeState with its full duration remaining
    """
    roll = seeded_random(seed + ROLL_DRAW)
    strength_draw = seeded_random(seed + STRENGTH_DRAW)

    if roll < params.ranging_threshold:
        regime, strength = RegimeType.RANGING, params.ranging_strength
    elif roll < params.uptrend_threshold:
        regime = RegimeType.UPTREND
        strength = params.trend_strength_min + strength_draw * params.trend_strength_span
    elif roll < params.downtrend_threshold:
        regime = RegimeType.DOWNTREND
        strength = params.trend_strength_min + strength_draw * params.trend_strength_span
    elif roll < params.volatile_threshold:
        regime, strength = RegimeType.VOLATILE, params.volatile_strength
    else:
        regime, strength = RegimeType.CONSOLIDATION, params.consolidation_strength

    span = params.max_duration - params.min_duration + 1
    duration = params.min_duration + int(seeded_random(seed + DURATION_DRAW) * span)

    return RegimeState(
        regime=regime,
        strength=strength,
        remaining=duration,
        consolidation_center=price,
        started_at=candle_time,
    )


def advance_regime(
    state: Optional[RegimeState],
    seed: int,
    price: float,
    candle_time: int,
    params: RegimeParams,
) -> tuple[RegimeState, bool]:
    """
    Regime in force for the next candle.

    Returns:
        (state, rolled) where rolled is True if a new regime was rolled
    """
    if state is None or state.expired:
        return roll_regime(seed, price, candle_time, params), True
    return state, False


def bullish_probability(state: RegimeState, price: float, params: RegimeParams) -> float:
    """Probability that the next candle closes above its open."""
    if state.regime == RegimeType.UPTREND:
        return params.uptrend_bias
    if state.regime == RegimeType.DOWNTREND:
        return params.downtrend_bias
    if state.regime == RegimeType.CONSOLIDATION:
        if price > state.consolidation_center:
            return params.consolidation_above_bias
        return params.consolidation_below_bias
    return 0.5


def body_multiplier(state: RegimeState, draw: float, shape: CandleShapeParams) -> float:
    """Body size multiplier; the volatile regime produces larger bodies."""
    if state.regime == RegimeType.VOLATILE:
        return shape.volatile_body_min + draw * shape.volatile_body_span
    multiplier = shape.body_min + draw * shape.body_span
    if state.regime.is_trending:
        multiplier *= 0.75 + 0.5 * state.strength
    return multiplier


def wick_multiplier(state: RegimeState, shape: CandleShapeParams) -> float:
    if state.regime == RegimeType.VOLATILE:
        return shape.volatile_wick_multiplier
    return shape.wick_multiplier


def reversion_pull(state: RegimeState, params: MeanReversionParams) -> float:
    """Fraction of the base-price deviation removed per candle."""
    if state.regime.is_quiet:
        return params.ranging_pull
    return params.trending_pull
