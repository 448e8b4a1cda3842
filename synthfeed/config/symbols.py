"""
Static symbol table: reference base prices, volatility tiers and payouts.

The base price is the long-run anchor of a symbol's synthetic path. Symbols
never change these attributes at runtime; the YAML loader may extend or
override entries at startup only.
"""

from dataclasses import dataclass, replace
from typing import Iterable, Optional

OTC_SUFFIX = " (OTC)"

DEFAULT_BASE_PRICE = 100.0
DEFAULT_TIER = "default"
DEFAULT_CATEGORY = "other"
DEFAULT_PAYOUT = 80


@dataclass(frozen=True)
class VolatilityTier:
    """Asset-class volatility coefficients."""
    name: str
    oscillator: float       # Price function move per unit of oscillator weight
    body: float             # Candle body size as a fraction of base price
    tick: float             # Running-candle tick size as a fraction of price


VOLATILITY_TIERS: dict[str, VolatilityTier] = {
    "crypto": VolatilityTier("crypto", oscillator=0.0025, body=0.004, tick=0.0015),
    "stock": VolatilityTier("stock", oscillator=0.0020, body=0.0015, tick=0.0008),
    "energy": VolatilityTier("energy", oscillator=0.0015, body=0.0012, tick=0.0007),
    "index": VolatilityTier("index", oscillator=0.0015, body=0.0010, tick=0.0006),
    "metal": VolatilityTier("metal", oscillator=0.0012, body=0.0010, tick=0.0006),
    "forex": VolatilityTier("forex", oscillator=0.0007, body=0.0006, tick=0.0004),
    "yen": VolatilityTier("yen", oscillator=0.0005, body=0.0012, tick=0.0004),
    "default": VolatilityTier("default", oscillator=0.0010, body=0.0008, tick=0.0005),
}


@dataclass(frozen=True)
class SymbolProfile:
    """Immutable attributes of a tradable symbol."""
    symbol: str
    base_price: float
    tier: str = DEFAULT_TIER
    category: str = DEFAULT_CATEGORY
    payout: int = DEFAULT_PAYOUT        # Percent of stake paid on a win
    payout_5min: Optional[int] = None   # Payout for trades of five minutes or longer

    @property
    def volatility(self) -> VolatilityTier:
        return VOLATILITY_TIERS.get(self.tier, VOLATILITY_TIERS[DEFAULT_TIER])

    @property
    def is_otc(self) -> bool:
        return self.symbol.endswith(OTC_SUFFIX)

    def payout_for(self, duration_seconds: int) -> int:
        """Payout percent for a trade of the given duration."""
        if duration_seconds >= 300 and self.payout_5min is not None:
            return self.payout_5min
        return self.payout


def _p(symbol: str, base: float, tier: str, category: str,
       payout: int, payout_5min: Optional[int] = None) -> SymbolProfile:
    return SymbolProfile(symbol, base, tier, category, payout, payout_5min)


BASE_PROFILES: tuple[SymbolProfile, ...] = (
    # Currencies
    _p("EUR/USD", 1.0875, "forex", "currencies", 92, 92),
    _p("GBP/USD", 1.2650, "forex", "currencies", 90, 90),
    _p("USD/JPY", 148.50, "yen", "currencies", 90, 90),
    _p("AUD/USD", 0.6720, "forex", "currencies", 89, 89),
    _p("USD/CAD", 1.3420, "forex", "currencies", 88, 88),
    _p("EUR/GBP", 0.8590, "forex", "currencies", 88, 88),
    _p("EUR/JPY", 161.50, "yen", "currencies", 89, 89),
    _p("GBP/JPY", 187.85, "yen", "currencies", 91, 91),
    _p("USD/CHF", 0.8920, "forex", "currencies", 87, 87),
    _p("NZD/USD", 0.6125, "forex", "currencies", 88, 88),
    _p("USD/INR", 83.25, "forex", "currencies", 85, 85),
    _p("EUR/INR", 90.45, "forex", "currencies", 84, 84),
    # Crypto
    _p("BTC/USD", 43250.0, "crypto", "crypto", 95, 95),
    _p("ETH/USD", 2280.0, "crypto", "crypto", 95, 95),
    _p("BNB/USD", 315.50, "crypto", "crypto", 93, 93),
    _p("XRP/USD", 0.6235, "crypto", "crypto", 92, 92),
    _p("SOL/USD", 98.45, "crypto", "crypto", 94, 94),
    _p("DOGE/USD", 0.0825, "crypto", "crypto", 91, 91),
    _p("ADA/USD", 0.58, "crypto", "crypto", 90, 90),
    _p("AVAX/USD", 35.20, "crypto", "crypto", 92, 92),
    _p("MATIC/USD", 0.92, "crypto", "crypto", 91, 91),
    _p("DOT/USD", 7.85, "crypto", "crypto", 90, 90),
    # Commodities
    _p("XAU/USD", 2035.0, "metal", "commodities", 88, 88),
    _p("XAG/USD", 23.45, "metal", "commodities", 87, 87),
    _p("COPPER/USD", 3.95, "metal", "commodities", 83, 83),
    _p("OIL/USD", 72.35, "energy", "commodities", 85, 85),
    _p("BRENT/USD", 76.80, "energy", "commodities", 85, 85),
    _p("GAS/USD", 2.85, "energy", "commodities", 84, 84),
    # Stocks
    _p("AAPL", 185.50, "stock", "stocks", 85, 85),
    _p("TSLA", 245.80, "stock", "stocks", 85, 85),
    _p("AMZN", 155.20, "stock", "stocks", 84, 84),
    _p("GOOGL", 141.80, "stock", "stocks", 84, 84),
    _p("META", 375.40, "stock", "stocks", 83, 83),
    _p("MSFT", 378.90, "stock", "stocks", 84, 84),
    _p("NVDA", 485.50, "stock", "stocks", 86, 86),
    _p("AMD", 142.30, "stock", "stocks", 85, 85),
    _p("NFLX", 485.20, "stock", "stocks", 83, 83),
    _p("V", 268.50, "stock", "stocks", 82, 82),
    # Indices
    _p("US30", 39210.0, "index", "indices", 85, 85),
    _p("NAS100", 18305.0, "index", "indices", 85, 85),
)

# OTC variants keep the underlying base price under their own symbol string,
# so their seed (and therefore their path) differs from the regular market.
OTC_PROFILES: tuple[SymbolProfile, ...] = (
    _p("EUR/USD (OTC)", 1.0875, "forex", "otc", 92, 90),
    _p("GBP/USD (OTC)", 1.2650, "forex", "otc", 90, 88),
    _p("USD/JPY (OTC)", 148.50, "yen", "otc", 91, 89),
    _p("AUD/USD (OTC)", 0.6720, "forex", "otc", 89, 87),
    _p("USD/CAD (OTC)", 1.3420, "forex", "otc", 88, 86),
    _p("EUR/GBP (OTC)", 0.8590, "forex", "otc", 88, 86),
    _p("USD/INR (OTC)", 83.25, "forex", "otc", 85, 83),
    _p("EUR/INR (OTC)", 90.45, "forex", "otc", 84, 82),
    _p("GBP/JPY (OTC)", 187.85, "yen", "otc", 91, 89),
    _p("BTC/USD (OTC)", 43250.0, "crypto", "otc", 95, 93),
    _p("ETH/USD (OTC)", 2280.0, "crypto", "otc", 94, 92),
    _p("XAU/USD (OTC)", 2035.0, "metal", "otc", 88, 86),
)

_CRYPTO_MARKERS = ("BTC", "ETH", "SOL")


def classify_tier(symbol: str) -> str:
    """Best-effort volatility tier for a symbol missing from the table."""
    upper = symbol.upper()
    if any(marker in upper for marker in _CRYPTO_MARKERS):
        return "crypto"
    if "JPY" in upper:
        return "yen"
    return DEFAULT_TIER


def _compact(symbol: str) -> str:
    """Strip venue prefix, OTC suffix, separators and USDT quoting."""
    name = symbol.replace(OTC_SUFFIX, "")
    if ":" in name:
        name = name.split(":", 1)[1]
    name = name.replace("/", "").upper()
    if name.endswith("USDT"):
        name = name[:-1]
    return name


class SymbolTable:
    """Lookup of symbol profiles with a documented default fallback."""

    def __init__(self, profiles: Iterable[SymbolProfile] = BASE_PROFILES + OTC_PROFILES):
        self._profiles: dict[str, SymbolProfile] = {}
        self._aliases: dict[str, str] = {}
        for profile in profiles:
            self._add(profile)

    def _add(self, profile: SymbolProfile) -> None:
        self._profiles[profile.symbol] = profile
        if not profile.is_otc:
            self._aliases.setdefault(_compact(profile.symbol), profile.symbol)

    def with_profiles(self, profiles: Iterable[SymbolProfile]) -> "SymbolTable":
        """New table with the given profiles added or replaced."""
        table = SymbolTable(self._profiles.values())
        for profile in profiles:
            table._add(profile)
        return table

    def is_known(self, symbol: str) -> bool:
        return self._find(symbol) is not None

    def _find(self, symbol: str) -> Optional[SymbolProfile]:
        profile = self._profiles.get(symbol)
        if profile is not None:
            return profile

        canonical = self._aliases.get(_compact(symbol))
        if canonical is None:
            return None

        underlying = self._profiles[canonical]
        if symbol.endswith(OTC_SUFFIX) or symbol.upper().startswith("OTC:"):
            return replace(underlying, symbol=symbol, category="otc")
        return replace(underlying, symbol=symbol)

    def resolve(self, symbol: str) -> SymbolProfile:
        """
        Profile for a symbol, falling back to defaults for unknown symbols.

        Aliases such as "FX:EURUSD" or "BINANCE:BTCUSDT" resolve to the
        attributes of the canonical entry but keep the caller's symbol string.
        """
        profile = self._find(symbol)
        if profile is not None:
            return profile
        return SymbolProfile(
            symbol=symbol,
            base_price=DEFAULT_BASE_PRICE,
            tier=classify_tier(symbol),
            category=DEFAULT_CATEGORY,
            payout=DEFAULT_PAYOUT,
        )

    def base_price(self, symbol: str) -> float:
        return self.resolve(symbol).base_price

    def volatility(self, symbol: str) -> VolatilityTier:
        return self.resolve(symbol).volatility

    def symbols(self, category: Optional[str] = None) -> list[str]:
        """Known symbols, optionally filtered by category, in table order."""
        return [
            profile.symbol for profile in self._profiles.values()
            if category is None or profile.category == category
        ]

    def __len__(self) -> int:
        return len(self._profiles)

    def __contains__(self, symbol: object) -> bool:
        return isinstance(symbol, str) and self.is_known(symbol)


DEFAULT_SYMBOL_TABLE = SymbolTable()


def get_symbol_profile(symbol: str) -> SymbolProfile:
    """Profile from the default table."""
    return DEFAULT_SYMBOL_TABLE.resolve(symbol)


def base_price(symbol: str) -> float:
    """Reference base price from the default table."""
    return DEFAULT_SYMBOL_TABLE.base_price(symbol)
