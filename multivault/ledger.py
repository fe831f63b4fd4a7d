"""Position ledger and its read accessors."""
from __future__ import annotations

from collections.abc import Iterable

from .constants import INFINITE_HEALTH, LIQUIDATION_THRESHOLD, PERCENT
from .fixed_point import checked_add, checked_mul, mul_div
from .models import Position
from .scaling import asset_value

_EMPTY = Position()


def max_mintable(position: Position, decimals: int, price: int) -> int:
    """Debt ceiling of a position at its chosen margin ratio."""
    if position.collateral_amount == 0 or position.margin_ratio == 0:
        return 0
    value = asset_value(position.collateral_amount, decimals, price)
    return mul_div(value, PERCENT, position.margin_ratio)


def health_ratio(position: Position, decimals: int, price: int) -> int:
    """Collateral value over debt, in whole percent.

    A position without debt reports ``INFINITE_HEALTH``.
    """
    if position.debt == 0:
        return INFINITE_HEALTH
    value = asset_value(position.collateral_amount, decimals, price)
    return mul_div(value, PERCENT, position.debt)


def liquidation_price(
    position: Position,
    decimals: int,
    threshold: int = LIQUIDATION_THRESHOLD,
) -> int:
    """Normalized price at which the health ratio reaches ``threshold``."""
    if position.debt == 0 or position.collateral_amount == 0:
        return 0
    required = mul_div(position.debt, threshold, PERCENT)
    return mul_div(required, 10**decimals, position.collateral_amount)


def covers(position: Position, collateral_amount: int, ratio: int, decimals: int, price: int) -> bool:
    """True when ``collateral_amount`` backs the position's debt at ``ratio``."""
    value = asset_value(collateral_amount, decimals, price)
    return checked_mul(value, PERCENT) >= checked_mul(position.debt, ratio)


class PositionLedger:
    """Per-(user, asset) positions.

    Positions are immutable; ``commit`` replaces the stored record in a
    single assignment. Unseen pairs read as an all-zero position and a
    committed position is never removed.
    """

    def __init__(self) -> None:
        self._positions: dict[tuple[str, str], Position] = {}

    def get(self, user: str, asset: str) -> Position:
        return self._positions.get((user, asset), _EMPTY)

    def commit(self, user: str, asset: str, position: Position) -> None:
        self._positions[(user, asset)] = position

    def users(self) -> list[str]:
        seen: dict[str, None] = {}
        for user, _ in self._positions:
            seen.setdefault(user, None)
        return list(seen)

    def total_debt(self, user: str, assets: Iterable[str]) -> int:
        total = 0
        for asset in assets:
            total = checked_add(total, self.get(user, asset).debt)
        return total
