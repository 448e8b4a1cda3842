"""Candle pattern classification and pattern shapes."""

from .models import Candle, CandlePattern


def body_fraction(candle: Candle) -> float:
    """Body as a fraction of the high-low range; 0.0 for a flat candle."""
    if candle.range <= 0:
        return 0.0
    return candle.body / candle.range


def is_doji(candle: Candle, threshold: float) -> bool:
    """True when the body is at most threshold of the range."""
    return body_fraction(candle) <= threshold


def is_engulfing(candle: Candle, previous: Candle) -> bool:
    """True if candle's range contains previous's range and its body opposes it."""
    contains = candle.high >= previous.high and candle.low <= previous.low
    opposite = (candle.is_bullish and previous.is_bearish) or (
        candle.is_bearish and previous.is_bullish)
    return contains and opposite


def shaped_candle(time: int, open_price: float, close: float, high: float, low: float) -> Candle:
    """Candle from a shape, with high and low widened to cover open and close."""
    return Candle(
        time=time,
        open=open_price,
        high=max(high, open_price, close),
        low=min(low, open_price, close),
        close=close,
    )


def classify_pattern(candle: Candle, previous: Candle, doji_threshold: float) -> CandlePattern:
    """Pattern formed by candle after previous; engulfing takes precedence over doji."""
    if not is_doji(previous, doji_threshold) and is_engulfing(candle, previous):
        return (CandlePattern.BULLISH_ENGULFING if candle.is_bullish
                else CandlePattern.BEARISH_ENGULFING)
    if is_doji(candle, doji_threshold):
        return CandlePattern.DOJI
    return CandlePattern.NONE


def engulfing_shape(
    previous: Candle,
    open_price: float,
    close: float,
    high: float,
    low: float,
    body: float,
    extension: float,
) -> tuple[float, float, float]:
    """
    Stretch a candle so it engulfs the previous one in its own direction.

    The open stays at the previous close; the close is pushed past the
    previous open by extension * body, and the range is widened to contain
    the previous range.

    Returns:
        (close, high, low)
    """
    if close > open_price:
        close = max(close, previous.open + body * extension, previous.high + body * extension)
        high = max(high, close)
        low = min(low, previous.low)
    else:
        close = min(close, previous.open - body * extension, previous.low - body * extension)
        low = min(low, close)
        high = max(high, previous.high)
    return close, high, low


def doji_shape(
    open_price: float,
    body: float,
    bullish: bool,
    body_ratio: float,
    wick_ratio: float,
) -> tuple[float, float, float]:
    """
    Tiny-bodied candle with symmetric wicks around its open.

    Returns:
        (close, high, low)
    """
    tiny = body * body_ratio
    close = open_price + tiny if bullish else open_price - tiny
    center = (open_price + close) / 2
    high = max(center + body * wick_ratio, open_price, close)
    low = min(center - body * wick_ratio, open_price, close)
    return close, high, low
