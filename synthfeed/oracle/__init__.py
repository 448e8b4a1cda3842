"""
Pure price oracle functions.

Seeded random source, symbol identity hash and the continuous price
function. Everything here is side-effect free and safe to call from any
thread without locking.
"""
from .price import PriceOracle, PricePoint, price_at
from .seeded import derive_seed, seeded_random
from .symbol_hash import symbol_seed

__all__ = ["PriceOracle", "PricePoint", "price_at", "derive_seed", "seeded_random", "symbol_seed"]
