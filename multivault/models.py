"""Data models — all frozen (immutable)."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Union


@dataclass(frozen=True)
class Asset:
    """A supported collateral asset, identified by its token address."""

    address: str
    symbol: str
    decimals: int


@dataclass(frozen=True)
class RoundData:
    """Raw answer of a price source (aggregator round layout)."""

    round_id: int
    answer: int
    started_at: int
    updated_at: int
    answered_in_round: int


@dataclass(frozen=True)
class PriceQuote:
    """Price of one whole asset unit, ``value / 10**decimals`` USD."""

    value: int
    decimals: int
    observed_at: int = 0


@dataclass(frozen=True)
class Position:
    """Per-(user, asset) record.

    ``collateral_amount`` is in the asset's native precision, ``debt`` in
    accounting precision and ``margin_ratio`` in whole percent (0 = unset).
    """

    collateral_amount: int = 0
    debt: int = 0
    margin_ratio: int = 0


@dataclass(frozen=True)
class LiquidationResult:
    repaid_amount: int
    collateral_taken: int
    fee_amount: int
    net_to_liquidator: int
    capped: bool = False


@dataclass(frozen=True)
class PositionHealth:
    """Valuation snapshot of one open position."""

    user: str
    asset: str
    symbol: str
    collateral_amount: int
    collateral_value: int
    debt: int
    health_ratio: int
    liquidation_price: int
    status: str


# ---------------------------------------------------------------------------
# Emitted records
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class Deposit:
    user: str
    asset: str
    amount: int


@dataclass(frozen=True)
class Withdraw:
    user: str
    asset: str
    amount: int


@dataclass(frozen=True)
class RatioSet:
    user: str
    asset: str
    ratio: int


@dataclass(frozen=True)
class Minted:
    user: str
    amount: int


@dataclass(frozen=True)
class Repaid:
    user: str
    amount: int


@dataclass(frozen=True)
class Liquidated:
    user: str
    asset: str
    liquidator: str
    repaid_amount: int
    collateral_taken: int
    fee_amount: int


@dataclass(frozen=True)
class AssetAdded:
    asset: str
    symbol: str
    decimals: int


@dataclass(frozen=True)
class AssetRemoved:
    asset: str


@dataclass(frozen=True)
class TreasuryWithdrawn:
    asset: str
    to: str
    amount: int


@dataclass(frozen=True)
class Swept:
    asset: str
    to: str
    amount: int


@dataclass(frozen=True)
class Paused:
    account: str


@dataclass(frozen=True)
class Unpaused:
    account: str


@dataclass(frozen=True)
class OwnershipTransferred:
    previous_owner: str
    new_owner: str


Event = Union[
    Deposit,
    Withdraw,
    RatioSet,
    Minted,
    Repaid,
    Liquidated,
    AssetAdded,
    AssetRemoved,
    TreasuryWithdrawn,
    Swept,
    Paused,
    Unpaused,
    OwnershipTransferred,
]
