"""Pyth Network price source (Hermes latest-price endpoint)."""
from __future__ import annotations

import logging
import ssl
from typing import Any

import aiohttp
import certifi

from ..config import PythConfig
from ..errors import PriceSourceError
from ..models import RoundData

logger = logging.getLogger(__name__)


class PythPriceSource:
    """Fetch the latest price of one Pyth feed.

    Pyth publishes ``price * 10^expo``; the answer is ``price`` and the
    precision is ``-expo`` decimals.
    """

    def __init__(self, config: PythConfig, feed_id: str) -> None:
        self.hermes_url = config.hermes_url
        self.feed_id = feed_id
        self._decimals: int | None = None

    async def _fetch(self) -> dict[str, Any]:
        url = f"{self.hermes_url}?ids[]={self.feed_id}"

        ssl_context = ssl.create_default_context(cafile=certifi.where())
        connector = aiohttp.TCPConnector(ssl=ssl_context)

        try:
            async with aiohttp.ClientSession(connector=connector) as session:
                async with session.get(url) as response:
                    if response.status != 200:
                        raise PriceSourceError(
                            f"Error fetching Pyth feed {self.feed_id}: HTTP {response.status}"
                        )
                    data = await response.json()
        except aiohttp.ClientError as e:
            raise PriceSourceError(f"Error fetching Pyth feed {self.feed_id}: {e}") from e

        for item in data.get("parsed", []):
            if item.get("id") == self.feed_id:
                return item.get("price", {})

        raise PriceSourceError(f"Pyth response has no entry for feed {self.feed_id}")

    async def latest_round_data(self) -> RoundData:
        price_data = await self._fetch()
        answer = int(price_data.get("price", 0))
        expo = int(price_data.get("expo", 0))
        publish_time = int(price_data.get("publish_time", 0))

        self._decimals = -expo
        logger.debug("Pyth %s: %d (expo %d)", self.feed_id, answer, expo)

        return RoundData(
            round_id=publish_time,
            answer=answer,
            started_at=publish_time,
            updated_at=publish_time,
            answered_in_round=publish_time,
        )

    async def decimals(self) -> int:
        if self._decimals is None:
            await self.latest_round_data()
        if self._decimals is None:
            raise PriceSourceError(f"Pyth feed {self.feed_id} reported no exponent")
        return self._decimals
