"""In-memory token contract used for collateral assets and the stablecoin."""
from __future__ import annotations

import logging

from .errors import (
    InsufficientAllowanceError,
    InsufficientBalanceError,
    InvalidInputError,
)
from .fixed_point import checked_add

logger = logging.getLogger(__name__)


class InMemoryToken:
    """Balance and allowance book with transfer-on-behalf semantics.

    Failed transfers raise (insufficient balance or allowance) instead of
    returning ``False``; the engine handles both styles.
    """

    def __init__(self, address: str, symbol: str, decimals: int = 18) -> None:
        if decimals < 0:
            raise InvalidInputError(f"Invalid decimals {decimals}")
        self._address = address
        self._symbol = symbol
        self._decimals = decimals
        self._balances: dict[str, int] = {}
        self._allowances: dict[tuple[str, str], int] = {}
        self.total_supply = 0

    def __repr__(self) -> str:
        return f"InMemoryToken({self._symbol!r}, {self._address!r})"

    @property
    def address(self) -> str:
        return self._address

    @property
    def symbol(self) -> str:
        return self._symbol

    async def decimals(self) -> int:
        return self._decimals

    async def balance_of(self, account: str) -> int:
        return self._balances.get(account, 0)

    async def allowance(self, owner: str, spender: str) -> int:
        return self._allowances.get((owner, spender), 0)

    async def approve(self, owner: str, spender: str, amount: int) -> bool:
        if amount < 0:
            raise InvalidInputError("Allowance must be non-negative")
        self._allowances[(owner, spender)] = amount
        return True

    def _move(self, sender: str, to: str, amount: int) -> None:
        if amount < 0:
            raise InvalidInputError("Transfer amount must be non-negative")
        balance = self._balances.get(sender, 0)
        if balance < amount:
            raise InsufficientBalanceError(
                f"{self._symbol}: balance {balance} of {sender} below {amount}"
            )
        self._balances[sender] = balance - amount
        self._balances[to] = checked_add(self._balances.get(to, 0), amount)

    async def transfer(self, sender: str, to: str, amount: int) -> bool:
        self._move(sender, to, amount)
        return True

    async def transfer_from(self, spender: str, owner: str, to: str, amount: int) -> bool:
        allowed = self._allowances.get((owner, spender), 0)
        if allowed < amount:
            raise InsufficientAllowanceError(
                f"{self._symbol}: allowance {allowed} of {spender} over {owner} below {amount}"
            )
        self._move(owner, to, amount)
        self._allowances[(owner, spender)] = allowed - amount
        return True

    async def mint(self, to: str, amount: int) -> None:
        if amount < 0:
            raise InvalidInputError("Mint amount must be non-negative")
        self._balances[to] = checked_add(self._balances.get(to, 0), amount)
        self.total_supply = checked_add(self.total_supply, amount)
        logger.debug("%s minted %d to %s", self._symbol, amount, to)

    async def burn(self, owner: str, amount: int) -> None:
        balance = self._balances.get(owner, 0)
        if amount < 0 or balance < amount:
            raise InsufficientBalanceError(
                f"{self._symbol}: cannot burn {amount} from {owner} holding {balance}"
            )
        self._balances[owner] = balance - amount
        self.total_supply -= amount
        logger.debug("%s burned %d from %s", self._symbol, amount, owner)
