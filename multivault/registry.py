"""Supported-asset registry with oracle bindings."""
from __future__ import annotations

import logging
from dataclasses import dataclass

from .constants import MAX_ASSET_DECIMALS
from .errors import (
    AssetAlreadyRegisteredError,
    AssetNotRegisteredError,
    PrecisionUnsupportedError,
    UnsupportedAssetError,
)
from .interfaces import PriceSource, Token
from .models import Asset, PriceQuote
from .scaling import normalize_price

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RegistryEntry:
    asset: Asset
    token: Token
    price_source: PriceSource


class AssetRegistry:
    """Ordered set of supported assets.

    Iteration order is insertion order until a removal, which moves the
    last asset into the removed slot. Repayment splitting depends on this
    order, so it must stay deterministic.
    """

    def __init__(self) -> None:
        self._order: list[str] = []
        self._index: dict[str, int] = {}
        self._entries: dict[str, RegistryEntry] = {}

    def __len__(self) -> int:
        return len(self._order)

    def __contains__(self, asset: object) -> bool:
        return asset in self._entries

    async def add(self, token: Token, price_source: PriceSource) -> Asset:
        address = token.address
        if address in self._entries:
            raise AssetAlreadyRegisteredError(f"Asset {address} already registered")

        decimals = await token.decimals()
        if not 0 <= decimals <= MAX_ASSET_DECIMALS:
            raise PrecisionUnsupportedError(
                f"Asset {address} has unsupported precision {decimals}"
            )

        asset = Asset(address=address, symbol=token.symbol, decimals=decimals)
        self._index[address] = len(self._order)
        self._order.append(address)
        self._entries[address] = RegistryEntry(asset, token, price_source)
        logger.info("Registered asset %s (%s, %d decimals)", asset.symbol, address, decimals)
        return asset

    def remove(self, address: str) -> Asset:
        if address not in self._entries:
            raise AssetNotRegisteredError(f"Asset {address} is not registered")

        slot = self._index.pop(address)
        last = self._order.pop()
        if last != address:
            self._order[slot] = last
            self._index[last] = slot

        entry = self._entries.pop(address)
        logger.info("Removed asset %s (%s)", entry.asset.symbol, address)
        return entry.asset

    def is_supported(self, address: str) -> bool:
        return address in self._entries

    def assets(self) -> list[str]:
        return list(self._order)

    def entry(self, address: str) -> RegistryEntry:
        try:
            return self._entries[address]
        except KeyError:
            raise UnsupportedAssetError(f"Asset {address} is not supported") from None

    def asset(self, address: str) -> Asset:
        return self.entry(address).asset

    def find(self, symbol: str) -> Asset:
        """Look up a supported asset by symbol (case-insensitive)."""
        for address in self._order:
            asset = self._entries[address].asset
            if asset.symbol.upper() == symbol.upper():
                return asset
        raise UnsupportedAssetError(f"No supported asset with symbol {symbol}")

    async def quote(self, address: str) -> PriceQuote:
        source = self.entry(address).price_source
        round_data = await source.latest_round_data()
        decimals = await source.decimals()
        return PriceQuote(
            value=round_data.answer,
            decimals=decimals,
            observed_at=round_data.updated_at,
        )

    async def price(self, address: str) -> int:
        """Current price of ``address`` in accounting precision."""
        return normalize_price(await self.quote(address))
