"""Symbol identity hash."""

from functools import lru_cache

_MASK32 = 0xFFFFFFFF


@lru_cache(maxsize=1024)
def symbol_seed(symbol: str) -> int:
    """
    Stable non-negative integer identifying a symbol.

    Polynomial rolling hash (multiplier 31) over the code points, kept to 32
    bits. Order-sensitive, so "EUR/USD" and "USD/EUR" get different seeds.
    """
    h = 0
    for char in symbol:
        h = (h * 31 + ord(char)) & _MASK32
    return h
