"""Token protocols — movable value with owner-authorized transfer-on-behalf."""
from typing import Protocol


class Token(Protocol):
    """Abstract interface for a fungible token contract."""

    @property
    def address(self) -> str: ...

    @property
    def symbol(self) -> str: ...

    async def decimals(self) -> int: ...

    async def balance_of(self, account: str) -> int: ...

    async def allowance(self, owner: str, spender: str) -> int: ...

    async def transfer(self, sender: str, to: str, amount: int) -> bool: ...

    async def transfer_from(
        self, spender: str, owner: str, to: str, amount: int
    ) -> bool: ...

    async def approve(self, owner: str, spender: str, amount: int) -> bool: ...


class MintableToken(Token, Protocol):
    """Token whose supply the engine controls (the accounting unit)."""

    async def mint(self, to: str, amount: int) -> None: ...

    async def burn(self, owner: str, amount: int) -> None: ...
