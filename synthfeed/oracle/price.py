"""
Continuous price function.

price_at(symbol, t) is the settlement oracle: a sum of sinusoidal oscillators
of (t + phase) layered on the symbol's base price. It is smooth in t, bounded
away from zero by the configured weights and volatility tiers, and returns the
identical float for identical arguments in every process.
"""

import math
from dataclasses import dataclass

from ..config.defaults import OscillatorParams
from ..config.symbols import DEFAULT_SYMBOL_TABLE, SymbolTable
from ..utils.time import ensure_finite_time
from .symbol_hash import symbol_seed

PHASE_MODULUS = 1_000_000


@dataclass(frozen=True)
class PricePoint:
    """Oracle price sampled at one instant."""
    time: float
    price: float


def oscillator_move(time_seconds: float, phase: int, params: OscillatorParams) -> float:
    """Dimensionless sum of weighted oscillators at time_seconds."""
    t = time_seconds + phase
    return sum(weight * math.sin(t / period) for period, weight in params.terms())


class PriceOracle:
    """Continuous price function bound to a symbol table and oscillator set."""

    def __init__(
        self,
        symbols: SymbolTable = DEFAULT_SYMBOL_TABLE,
        params: OscillatorParams = OscillatorParams(),
    ):
        self.symbols = symbols
        self.params = params

    def phase(self, symbol: str) -> int:
        """Time offset decorrelating symbols that share the same clock."""
        return symbol_seed(symbol) % PHASE_MODULUS

    def price_at(self, symbol: str, time_seconds: float) -> float:
        """
        Instantaneous synthetic price.

        Args:
            symbol: Any symbol string; unknown symbols use the default profile
            time_seconds: Seconds since the epoch, any finite real

        Returns:
            Positive price

        Raises:
            InvalidTimeError: If time_seconds is NaN, infinite or not a number
        """
        t = ensure_finite_time(time_seconds)
        profile = self.symbols.resolve(symbol)
        total_move = oscillator_move(t, self.phase(symbol), self.params)
        return profile.base_price * (1 + total_move * profile.volatility.oscillator)

    def sample(self, symbol: str, time_seconds: float) -> PricePoint:
        """Price at time_seconds as a PricePoint."""
        return PricePoint(time=time_seconds, price=self.price_at(symbol, time_seconds))

    def max_deviation(self, symbol: str) -> float:
        """Largest fractional distance the price can reach from the base price."""
        tier = self.symbols.volatility(symbol)
        return self.params.total_weight * tier.oscillator


DEFAULT_ORACLE = PriceOracle()


def price_at(symbol: str, time_seconds: float) -> float:
    """Oracle price using the default symbol table and oscillators."""
    return DEFAULT_ORACLE.price_at(symbol, time_seconds)
