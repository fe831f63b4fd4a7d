"""Unit tests for notification services and event sinks."""
from __future__ import annotations

import logging
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from multivault.config import TelegramConfig
from multivault.models import Deposit, Liquidated, Minted
from multivault.notifications import (
    EventLog,
    LoggingEventSink,
    TelegramNotifier,
    describe_event,
)


def _mock_session(status: int) -> AsyncMock:
    mock_response = AsyncMock()
    mock_response.status = status
    mock_response.__aenter__ = AsyncMock(return_value=mock_response)
    mock_response.__aexit__ = AsyncMock(return_value=None)

    mock_session = AsyncMock()
    mock_session.post = MagicMock(return_value=mock_response)
    mock_session.__aenter__ = AsyncMock(return_value=mock_session)
    mock_session.__aexit__ = AsyncMock(return_value=None)
    return mock_session


# ---------------------------------------------------------------------------
# TelegramNotifier
# ---------------------------------------------------------------------------


@pytest.fixture()
def telegram_notifier() -> TelegramNotifier:
    return TelegramNotifier(
        TelegramConfig(
            enabled=True,
            alert_bot_token="alert-tok",
            log_bot_token="log-tok",
            chat_id="12345",
        )
    )


@pytest.fixture()
def telegram_notifier_unconfigured() -> TelegramNotifier:
    return TelegramNotifier(
        TelegramConfig(enabled=True, alert_bot_token="", log_bot_token="", chat_id="")
    )


class TestTelegramNotifier:
    @pytest.mark.asyncio
    async def test_send_alert_success(self, telegram_notifier: TelegramNotifier) -> None:
        mock_session = _mock_session(200)

        with patch("multivault.notifications.telegram.aiohttp.ClientSession", return_value=mock_session):
            with patch("multivault.notifications.telegram.aiohttp.TCPConnector"):
                result = await telegram_notifier.send_alert("test alert", subject="Low health")

        assert result is True
        url = mock_session.post.call_args[0][0]
        payload = mock_session.post.call_args[1]["json"]
        assert "botalert-tok" in url
        assert payload["text"].startswith("Low health\n\n")
        assert payload["disable_notification"] is False

    @pytest.mark.asyncio
    async def test_send_alert_failure(self, telegram_notifier: TelegramNotifier) -> None:
        mock_session = _mock_session(403)

        with patch("multivault.notifications.telegram.aiohttp.ClientSession", return_value=mock_session):
            with patch("multivault.notifications.telegram.aiohttp.TCPConnector"):
                result = await telegram_notifier.send_alert("test alert")

        assert result is False

    @pytest.mark.asyncio
    async def test_send_log_success(self, telegram_notifier: TelegramNotifier) -> None:
        mock_session = _mock_session(200)

        with patch("multivault.notifications.telegram.aiohttp.ClientSession", return_value=mock_session):
            with patch("multivault.notifications.telegram.aiohttp.TCPConnector"):
                result = await telegram_notifier.send_log("test log")

        assert result is True
        assert "botlog-tok" in mock_session.post.call_args[0][0]

    @pytest.mark.asyncio
    async def test_unconfigured_returns_false(
        self, telegram_notifier_unconfigured: TelegramNotifier
    ) -> None:
        result = await telegram_notifier_unconfigured.send_alert("test")
        assert result is False

        result = await telegram_notifier_unconfigured.send_log("test")
        assert result is False

    @pytest.mark.asyncio
    async def test_publish_routes_liquidations_to_alert_bot(
        self, telegram_notifier: TelegramNotifier
    ) -> None:
        telegram_notifier.send_alert = AsyncMock(return_value=True)  # type: ignore[method-assign]
        telegram_notifier.send_log = AsyncMock(return_value=True)  # type: ignore[method-assign]

        await telegram_notifier.publish(
            Liquidated(
                user="alice",
                asset="WETH",
                liquidator="bob",
                repaid_amount=10,
                collateral_taken=3,
                fee_amount=1,
            )
        )
        await telegram_notifier.publish(Minted(user="alice", amount=5))

        telegram_notifier.send_alert.assert_awaited_once()
        assert telegram_notifier.send_alert.call_args[1]["subject"] == "Liquidation"
        telegram_notifier.send_log.assert_awaited_once_with("Minted user=alice amount=5")


# ---------------------------------------------------------------------------
# In-process sinks
# ---------------------------------------------------------------------------


class TestEventSinks:
    def test_describe_event(self) -> None:
        event = Deposit(user="alice", asset="WETH", amount=10)
        assert describe_event(event) == "Deposit user=alice asset=WETH amount=10"

    @pytest.mark.asyncio
    async def test_event_log_keeps_order(self) -> None:
        log = EventLog()
        await log.publish(Deposit("alice", "WETH", 1))
        await log.publish(Minted("alice", 2))
        await log.publish(Deposit("bob", "WBTC", 3))

        assert [type(e).__name__ for e in log.events] == ["Deposit", "Minted", "Deposit"]
        assert log.of_type(Deposit) == [Deposit("alice", "WETH", 1), Deposit("bob", "WBTC", 3)]

    @pytest.mark.asyncio
    async def test_logging_sink(self, caplog: pytest.LogCaptureFixture) -> None:
        with caplog.at_level(logging.INFO, logger="multivault.events"):
            await LoggingEventSink().publish(Minted("alice", 2))
        assert "Minted user=alice amount=2" in caplog.text
