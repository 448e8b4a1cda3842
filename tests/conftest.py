"""Pytest configuration and shared fixtures."""

import pytest

from synthfeed.candles.synthesizer import CandleSynthesizer
from synthfeed.feed.ticker import ManualTicker
from synthfeed.oracle.price import PriceOracle

# 2023-11-14T22:13:00Z, a minute boundary
CANDLE_BOUNDARY = 1_699_999_980


class FakeClock:
    """Millisecond clock that only moves when told to."""

    def __init__(self, now_ms: int):
        self.now_ms = now_ms

    def __call__(self) -> int:
        return self.now_ms

    def advance(self, millis: int) -> None:
        self.now_ms += millis

    def set_seconds(self, seconds: float) -> None:
        self.now_ms = int(seconds * 1000)


@pytest.fixture
def fixed_now() -> float:
    """Reference time 15 seconds into a one-minute candle."""
    return CANDLE_BOUNDARY + 15.0


@pytest.fixture
def fake_clock(fixed_now: float) -> FakeClock:
    return FakeClock(int(fixed_now * 1000))


@pytest.fixture
def manual_ticker() -> ManualTicker:
    return ManualTicker()


@pytest.fixture
def oracle() -> PriceOracle:
    return PriceOracle()


@pytest.fixture
def synthesizer(oracle: PriceOracle) -> CandleSynthesizer:
    return CandleSynthesizer(oracle=oracle)
