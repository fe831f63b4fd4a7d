"""Unit tests for the Pyth price source — response parsing and error handling."""
from __future__ import annotations

from unittest.mock import AsyncMock, MagicMock, patch

import aiohttp
import pytest

from multivault.config import PythConfig
from multivault.errors import PriceSourceError
from multivault.oracles.pyth import PythPriceSource


@pytest.fixture()
def source() -> PythPriceSource:
    return PythPriceSource(
        PythConfig(hermes_url="https://hermes.example.com/v2/updates/price/latest"),
        feed_id="bbb222",
    )


def _mock_session(status: int = 200, data: dict | None = None) -> AsyncMock:
    mock_response = AsyncMock()
    mock_response.status = status
    mock_response.json = AsyncMock(return_value=data or {})
    mock_response.__aenter__ = AsyncMock(return_value=mock_response)
    mock_response.__aexit__ = AsyncMock(return_value=None)

    mock_session = AsyncMock()
    mock_session.get = MagicMock(return_value=mock_response)
    mock_session.__aenter__ = AsyncMock(return_value=mock_session)
    mock_session.__aexit__ = AsyncMock(return_value=None)
    return mock_session


class TestPythLatestRoundData:
    @pytest.mark.asyncio
    async def test_parses_response_correctly(self, source: PythPriceSource) -> None:
        mock_session = _mock_session(
            data={
                "parsed": [
                    {"id": "aaa111", "price": {"price": "350000000", "expo": -8}},
                    {
                        "id": "bbb222",
                        "price": {
                            "price": "3000000000000",
                            "expo": -8,
                            "publish_time": 1700000000,
                        },
                    },
                ]
            }
        )

        with patch("multivault.oracles.pyth.aiohttp.ClientSession", return_value=mock_session):
            with patch("multivault.oracles.pyth.aiohttp.TCPConnector"):
                round_data = await source.latest_round_data()
                decimals = await source.decimals()

        assert round_data.answer == 3_000_000_000_000
        assert round_data.updated_at == 1700000000
        assert decimals == 8
        url = mock_session.get.call_args[0][0]
        assert url.endswith("?ids[]=bbb222")

    @pytest.mark.asyncio
    async def test_decimals_fetches_when_unknown(self, source: PythPriceSource) -> None:
        mock_session = _mock_session(
            data={"parsed": [{"id": "bbb222", "price": {"price": "1", "expo": -6}}]}
        )

        with patch("multivault.oracles.pyth.aiohttp.ClientSession", return_value=mock_session):
            with patch("multivault.oracles.pyth.aiohttp.TCPConnector"):
                assert await source.decimals() == 6

        mock_session.get.assert_called_once()

    @pytest.mark.asyncio
    async def test_decimals_cached_after_first_fetch(self, source: PythPriceSource) -> None:
        mock_session = _mock_session(
            data={"parsed": [{"id": "bbb222", "price": {"price": "1", "expo": -6}}]}
        )

        with patch("multivault.oracles.pyth.aiohttp.ClientSession", return_value=mock_session):
            with patch("multivault.oracles.pyth.aiohttp.TCPConnector"):
                assert await source.decimals() == 6
                assert await source.decimals() == 6

        mock_session.get.assert_called_once()

    @pytest.mark.asyncio
    async def test_decimals_error_when_round_leaves_no_exponent(
        self, source: PythPriceSource
    ) -> None:
        with patch.object(source, "latest_round_data", AsyncMock()):
            with pytest.raises(PriceSourceError, match="no exponent"):
                await source.decimals()

    @pytest.mark.asyncio
    async def test_decimals_propagates_fetch_error(self, source: PythPriceSource) -> None:
        mock_session = _mock_session(status=503)

        with patch("multivault.oracles.pyth.aiohttp.ClientSession", return_value=mock_session):
            with patch("multivault.oracles.pyth.aiohttp.TCPConnector"):
                with pytest.raises(PriceSourceError, match="HTTP 503"):
                    await source.decimals()

    @pytest.mark.asyncio
    async def test_handles_http_error(self, source: PythPriceSource) -> None:
        mock_session = _mock_session(status=500)

        with patch("multivault.oracles.pyth.aiohttp.ClientSession", return_value=mock_session):
            with patch("multivault.oracles.pyth.aiohttp.TCPConnector"):
                with pytest.raises(PriceSourceError, match="HTTP 500"):
                    await source.latest_round_data()

    @pytest.mark.asyncio
    async def test_handles_network_error(self, source: PythPriceSource) -> None:
        mock_session = _mock_session()
        mock_session.get = MagicMock(side_effect=aiohttp.ClientConnectionError("timeout"))

        with patch("multivault.oracles.pyth.aiohttp.ClientSession", return_value=mock_session):
            with patch("multivault.oracles.pyth.aiohttp.TCPConnector"):
                with pytest.raises(PriceSourceError, match="timeout"):
                    await source.latest_round_data()

    @pytest.mark.asyncio
    async def test_missing_feed(self, source: PythPriceSource) -> None:
        mock_session = _mock_session(
            data={"parsed": [{"id": "aaa111", "price": {"price": "1", "expo": -8}}]}
        )

        with patch("multivault.oracles.pyth.aiohttp.ClientSession", return_value=mock_session):
            with patch("multivault.oracles.pyth.aiohttp.TCPConnector"):
                with pytest.raises(PriceSourceError, match="no entry"):
                    await source.latest_round_data()
