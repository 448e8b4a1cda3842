"""
Trade tickets and expiry evaluation.

Entry and exit prices are sampled directly from the price oracle at the
trade's entry and expiry instants; there is no cached "current price" shared
between components.
"""

import itertools
from dataclasses import dataclass
from typing import Callable, Optional, Union

import structlog

from ..config.symbols import SymbolTable
from ..errors import InvalidArgumentError
from ..oracle.price import DEFAULT_ORACLE, PriceOracle
from ..utils.time import ensure_finite_time
from .rules import TradeDirection, TradeOutcome, parse_direction, settle

logger = structlog.get_logger(__name__)

_ticket_ids = itertools.count(1)


@dataclass(frozen=True)
class TradeTicket:
    """An open timed trade with its frozen entry price."""
    id: str
    symbol: str
    direction: TradeDirection
    amount: float
    entry_price: float
    payout: int                 # Percent of amount paid on a win
    entry_ms: int
    expiry_ms: int

    @property
    def duration_seconds(self) -> float:
        return (self.expiry_ms - self.entry_ms) / 1000.0

    @property
    def potential_profit(self) -> float:
        return self.amount * self.payout / 100.0

    def is_expired(self, now_ms: int) -> bool:
        return now_ms >= self.expiry_ms


@dataclass(frozen=True)
class TradeResult:
    """Settled trade."""
    ticket: TradeTicket
    outcome: TradeOutcome
    exit_price: float
    profit: float               # Net: payout on a win, minus the stake on a loss

    @property
    def credit(self) -> float:
        """Amount returned to the balance: stake plus profit on a win, else nothing."""
        if self.outcome == TradeOutcome.WIN:
            return self.ticket.amount + self.profit
        return 0.0


def open_trade(
    symbol: str,
    direction: Union[TradeDirection, str],
    amount: float,
    duration_seconds: int,
    now_ms: int,
    oracle: PriceOracle = DEFAULT_ORACLE,
    symbols: Optional[SymbolTable] = None,
    trade_id: Optional[str] = None,
) -> TradeTicket:
    """
    Open a trade, capturing the oracle price at now_ms as its entry price.

    Raises:
        InvalidArgumentError: If amount or duration is not positive
        InvalidDirectionError: If direction is not up or down
    """
    side = parse_direction(direction)
    entry_seconds = ensure_finite_time(now_ms, argument="now_ms") / 1000.0
    if isinstance(amount, bool) or not isinstance(amount, (int, float)) or not amount > 0:
        raise InvalidArgumentError(
            f"amount must be a positive number, got {amount!r}", argument="amount", value=amount)
    if isinstance(duration_seconds, bool) or not isinstance(duration_seconds, int) \
            or duration_seconds <= 0:
        raise InvalidArgumentError(
            f"duration_seconds must be a positive integer, got {duration_seconds!r}",
            argument="duration_seconds", value=duration_seconds)

    profile = (symbols or oracle.symbols).resolve(symbol)
    entry_ms = int(now_ms)
    ticket = TradeTicket(
        id=trade_id or f"trade-{next(_ticket_ids)}",
        symbol=symbol,
        direction=side,
        amount=float(amount),
        entry_price=oracle.price_at(symbol, entry_seconds),
        payout=profile.payout_for(duration_seconds),
        entry_ms=entry_ms,
        expiry_ms=entry_ms + duration_seconds * 1000,
    )

    logger.info(
        "Opened trade",
        trade_id=ticket.id,
        symbol=symbol,
        direction=side.value,
        amount=ticket.amount,
        entry_price=ticket.entry_price,
        expiry_ms=ticket.expiry_ms,
    )
    return ticket


def settle_trade(ticket: TradeTicket, exit_price: float) -> TradeResult:
    """Settle a ticket at exit_price."""
    outcome = settle(ticket.direction, ticket.entry_price, exit_price)
    profit = ticket.potential_profit if outcome == TradeOutcome.WIN else -ticket.amount
    return TradeResult(ticket=ticket, outcome=outcome, exit_price=exit_price, profit=profit)


class ExpiryEvaluator:
    """Settles pending trades once their expiry time is reached."""

    def __init__(
        self,
        oracle: PriceOracle = DEFAULT_ORACLE,
        oracle_for: Optional[Callable[[str], PriceOracle]] = None,
    ):
        self.oracle = oracle
        self.oracle_for = oracle_for
        self.logger = logger
        self._pending: dict[str, TradeTicket] = {}

    def add(self, ticket: TradeTicket) -> None:
        if ticket.id in self._pending:
            raise InvalidArgumentError(
                f"trade {ticket.id!r} is already pending", argument="ticket", value=ticket.id)
        self._pending[ticket.id] = ticket

    def cancel(self, trade_id: str) -> Optional[TradeTicket]:
        return self._pending.pop(trade_id, None)

    @property
    def pending(self) -> list[TradeTicket]:
        return list(self._pending.values())

    def evaluate(self, now_ms: int) -> list[TradeResult]:
        """
        Settle every trade whose expiry is at or before now_ms.

        The exit price is the oracle price at the trade's own expiry instant,
        so a late evaluation settles exactly like a punctual one. Each trade
        is settled once and then dropped from the pending set.
        """
        expired = [t for t in self._pending.values() if t.is_expired(now_ms)]
        results = []

        for ticket in sorted(expired, key=lambda t: (t.expiry_ms, t.id)):
            del self._pending[ticket.id]
            oracle = self.oracle_for(ticket.symbol) if self.oracle_for else self.oracle
            exit_price = oracle.price_at(ticket.symbol, ticket.expiry_ms / 1000.0)
            result = settle_trade(ticket, exit_price)
            results.append(result)

            self.logger.info(
                "Settled trade",
                trade_id=ticket.id,
                symbol=ticket.symbol,
                direction=ticket.direction.value,
                entry_price=ticket.entry_price,
                exit_price=exit_price,
                outcome=result.outcome.value,
                profit=result.profit,
            )

        return results
