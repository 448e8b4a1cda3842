"""Settlement rule for timed up/down trades."""

import math
from enum import Enum
from typing import Union

from ..errors import InvalidDirectionError, InvalidPriceError


class TradeDirection(str, Enum):
    """Direction a trader predicts for the price."""
    UP = "up"
    DOWN = "down"


class TradeOutcome(str, Enum):
    """Settled result of a trade."""
    WIN = "win"
    LOSS = "loss"


def parse_direction(direction: Union[TradeDirection, str]) -> TradeDirection:
    """
    Normalize a direction given as enum or case-insensitive string.

    Raises:
        InvalidDirectionError: If direction is not up or down
    """
    if isinstance(direction, TradeDirection):
        return direction
    if isinstance(direction, str):
        try:
            return TradeDirection(direction.strip().lower())
        except ValueError:
            pass
    raise InvalidDirectionError(direction)


def _check_price(value: object, argument: str) -> float:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise InvalidPriceError(value, argument=argument)
    if not math.isfinite(value) or value <= 0:
        raise InvalidPriceError(value, argument=argument)
    return float(value)


def settle(
    direction: Union[TradeDirection, str],
    entry_price: float,
    exit_price: float,
) -> TradeOutcome:
    """
    Settle a trade from its entry and exit prices.

    "up" wins only if exit > entry and "down" wins only if exit < entry.
    An unchanged price is a loss in both directions.

    Raises:
        InvalidDirectionError: If direction is not up or down
        InvalidPriceError: If either price is not a positive finite number
    """
    side = parse_direction(direction)
    entry = _check_price(entry_price, "entry_price")
    exit_ = _check_price(exit_price, "exit_price")

    if side == TradeDirection.UP:
        return TradeOutcome.WIN if exit_ > entry else TradeOutcome.LOSS
    return TradeOutcome.WIN if exit_ < entry else TradeOutcome.LOSS
