"""Price source protocol — aggregator-style price feed abstraction."""
from typing import Protocol

from ..models import RoundData


class PriceSource(Protocol):
    """Abstract interface for reading the latest price of one asset."""

    async def latest_round_data(self) -> RoundData: ...

    async def decimals(self) -> int: ...
