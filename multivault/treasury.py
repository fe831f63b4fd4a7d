"""Protocol fee accrual per asset."""
from __future__ import annotations

from .errors import InsufficientTreasuryError, InvalidInputError
from .fixed_point import checked_add


class Treasury:
    """Fee balances owed to the protocol, in each asset's native precision.

    Credited only from liquidation fees, debited only by owner withdrawal.
    """

    def __init__(self) -> None:
        self._balances: dict[str, int] = {}

    def balance(self, asset: str) -> int:
        return self._balances.get(asset, 0)

    def credit(self, asset: str, amount: int) -> None:
        if amount < 0:
            raise InvalidInputError("Treasury credit must be non-negative")
        self._balances[asset] = checked_add(self.balance(asset), amount)

    def check_debit(self, asset: str, amount: int) -> None:
        if amount <= 0:
            raise InvalidInputError("Amount must be greater than zero")
        held = self.balance(asset)
        if amount > held:
            raise InsufficientTreasuryError(
                f"Treasury holds {held} of {asset}, cannot release {amount}"
            )

    def debit(self, asset: str, amount: int) -> None:
        self.check_debit(asset, amount)
        self._balances[asset] = self.balance(asset) - amount
