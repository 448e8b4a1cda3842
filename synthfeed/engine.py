"""
Market engine facade.

Binds the price oracle, candle synthesizer, settlement rule and feed driver to
one configuration directory. Per-symbol parameters from config/symbols.yaml
are resolved once per symbol and kept in a bounded LRU cache; everything
downstream of them is a pure function of (symbol, time).
"""

from functools import lru_cache
from pathlib import Path
from typing import Any, Callable, Optional, Union

import structlog

from .candles.models import Candle, RegimeState
from .candles.synthesizer import CandleSynthesizer
from .config.defaults import DefaultConfig
from .config.loader import ConfigLoader
from .config.symbols import SymbolProfile, SymbolTable
from .feed.driver import EventCallback, FeedDriver, FeedSubscription
from .feed.ticker import AsyncioTicker, Ticker
from .oracle.price import PriceOracle, PricePoint
from .settlement.rules import TradeDirection, TradeOutcome, settle
from .settlement.trades import ExpiryEvaluator, TradeResult, TradeTicket, open_trade, settle_trade
from .utils.time import wall_clock_millis

logger = structlog.get_logger(__name__)

DEFAULT_MAX_CACHED_SYMBOLS = 256


class MarketEngine:
    """
    Entry point for collaborators of the synthetic market.

    Exposes the continuous price, candle backfill, live subscriptions and
    trade settlement.
    """

    def __init__(
        self,
        config_dir: Optional[Union[str, Path]] = None,
        overrides: Optional[dict[str, Any]] = None,
        ticker: Optional[Ticker] = None,
        clock: Callable[[], int] = wall_clock_millis,
        max_cached_symbols: int = DEFAULT_MAX_CACHED_SYMBOLS,
    ) -> None:
        self.logger = logger
        self.config_loader = ConfigLoader.create(Path(config_dir) if config_dir else None)
        self.overrides = overrides or {}
        self.symbols: SymbolTable = self.config_loader.build_symbol_table()
        self.clock = clock

        # Least recently used symbols are rebuilt on demand
        self._components = lru_cache(maxsize=max_cached_symbols)(self._build_components)

        self.driver = FeedDriver(self.synthesizer, ticker or AsyncioTicker(), clock=clock)
        self.evaluator = ExpiryEvaluator(oracle_for=self.oracle)

        self.logger.info(
            "Market engine initialized",
            config_dir=str(self.config_loader.config_dir),
            symbols=len(self.symbols),
        )

    # ------------------------------------------------------------------
    # Per-symbol components
    # ------------------------------------------------------------------

    def _build_components(self, symbol: str) -> tuple[DefaultConfig, PriceOracle, CandleSynthesizer]:
        profile = self.symbols.resolve(symbol)
        config = self.config_loader.build_engine_config(
            symbol,
            self.overrides,
            max_oscillator_volatility=profile.volatility.oscillator,
        )
        oracle = PriceOracle(self.symbols, config.oscillator)
        return config, oracle, CandleSynthesizer(oracle=oracle, config=config)

    def config_for(self, symbol: str) -> DefaultConfig:
        """Engine configuration for symbol (defaults < symbols.yaml < overrides)."""
        return self._components(symbol)[0]

    def oracle(self, symbol: str) -> PriceOracle:
        return self._components(symbol)[1]

    def synthesizer(self, symbol: str) -> CandleSynthesizer:
        return self._components(symbol)[2]

    def profile(self, symbol: str) -> SymbolProfile:
        return self.symbols.resolve(symbol)

    # ------------------------------------------------------------------
    # Price oracle
    # ------------------------------------------------------------------

    def price_at(self, symbol: str, time_seconds: float) -> float:
        """Continuous synthetic price of symbol at time_seconds."""
        return self.oracle(symbol).price_at(symbol, time_seconds)

    def price_point(self, symbol: str, time_seconds: Optional[float] = None) -> PricePoint:
        """PricePoint at time_seconds, or at the engine clock's current time."""
        if time_seconds is None:
            time_seconds = self.clock() / 1000.0
        return self.oracle(symbol).sample(symbol, time_seconds)

    # ------------------------------------------------------------------
    # Candles
    # ------------------------------------------------------------------

    def generate_candles(
        self,
        symbol: str,
        interval_seconds: int,
        count: Optional[int] = None,
        now_seconds: Optional[float] = None,
    ) -> list[Candle]:
        """
        Closed candle history ending at the last fully closed interval.

        Args:
            symbol: Symbol to synthesize
            interval_seconds: Candle interval
            count: Number of candles, defaults to the configured history count
            now_seconds: Reference time, defaults to the engine clock
        """
        synthesizer = self.synthesizer(symbol)
        if count is None:
            count = synthesizer.config.feed.history_count
        if now_seconds is None:
            now_seconds = self.clock() / 1000.0
        return synthesizer.generate_candles(symbol, interval_seconds, count, now_seconds)

    def next_candle(
        self,
        last_candle: Candle,
        interval_seconds: int,
        symbol: str,
        regime: Optional[RegimeState] = None,
    ) -> Candle:
        return self.synthesizer(symbol).next_candle(last_candle, interval_seconds, symbol, regime)

    def update_running_candle(
        self,
        candle: Candle,
        now_millis: int,
        symbol: str,
        interval_seconds: int,
    ) -> Candle:
        return self.synthesizer(symbol).update_running_candle(
            candle, now_millis, symbol, interval_seconds)

    # ------------------------------------------------------------------
    # Live feed
    # ------------------------------------------------------------------

    def subscribe(
        self,
        symbol: str,
        interval_seconds: int,
        on_event: EventCallback,
        history_count: Optional[int] = None,
    ) -> FeedSubscription:
        """Start a live feed; stop it with the returned subscription's unsubscribe()."""
        return self.driver.subscribe(symbol, interval_seconds, on_event, history_count)

    def stop(self) -> None:
        """Unsubscribe every live feed."""
        self.driver.stop()

    # ------------------------------------------------------------------
    # Settlement
    # ------------------------------------------------------------------

    @staticmethod
    def settle(
        direction: Union[TradeDirection, str],
        entry_price: float,
        exit_price: float,
    ) -> TradeOutcome:
        return settle(direction, entry_price, exit_price)

    def open_trade(
        self,
        symbol: str,
        direction: Union[TradeDirection, str],
        amount: float,
        duration_seconds: int,
        now_ms: Optional[int] = None,
        track: bool = True,
    ) -> TradeTicket:
        """Open a trade at the current oracle price and, by default, track it for expiry."""
        ticket = open_trade(
            symbol,
            direction,
            amount,
            duration_seconds,
            now_ms if now_ms is not None else self.clock(),
            oracle=self.oracle(symbol),
        )
        if track:
            self.evaluator.add(ticket)
        return ticket

    def settle_trade(self, ticket: TradeTicket) -> TradeResult:
        """Settle ticket at the oracle price of its expiry instant."""
        exit_price = self.price_at(ticket.symbol, ticket.expiry_ms / 1000.0)
        return settle_trade(ticket, exit_price)

    def evaluate_expiries(self, now_ms: Optional[int] = None) -> list[TradeResult]:
        """Settle every tracked trade whose expiry has been reached."""
        return self.evaluator.evaluate(now_ms if now_ms is not None else self.clock())
