"""Integration tests for the PositionMonitor — scanning and alerting over a live engine."""
from __future__ import annotations

from collections.abc import Awaitable, Callable
from unittest.mock import AsyncMock

import pytest
import pytest_asyncio

from multivault.bootstrap import EngineContext
from multivault.constants import INFINITE_HEALTH
from multivault.engine import Engine
from multivault.models import Position
from multivault.services import PositionMonitor
from multivault.services.monitor import HEALTHY, LIQUIDATABLE, WARNING

E18 = 10**18

OpenPosition = Callable[..., Awaitable[Position]]
Fund = Callable[[str, str, int], Awaitable[None]]


def _set_price(ctx: EngineContext, symbol: str, answer: int) -> None:
    ctx.price_sources[symbol].set_answer(answer)  # type: ignore[attr-defined]


@pytest_asyncio.fixture()
async def book(
    ctx: EngineContext, engine: Engine, open_position: OpenPosition, fund: Fund
) -> EngineContext:
    """alice borrows against WETH, bob against WBTC, carol only holds USDC."""
    await open_position("alice", "WETH", 100 * E18, 150, 100_000 * E18)
    await open_position("bob", "WBTC", 10**8, 150, 20_000 * E18)
    await fund("carol", "USDC", 500 * 10**6)
    await engine.deposit("carol", "USDC", 500 * 10**6)
    return ctx


class TestScan:
    @pytest.mark.asyncio
    async def test_snapshots_every_open_position(
        self, book: EngineContext, engine: Engine
    ) -> None:
        monitor = PositionMonitor(engine)
        snapshots = await monitor.scan()

        assert [(s.user, s.symbol) for s in snapshots] == [
            ("alice", "WETH"),
            ("bob", "WBTC"),
            ("carol", "USDC"),
        ]
        alice, bob, carol = snapshots
        assert alice.collateral_value == 200_000 * E18
        assert alice.health_ratio == 200
        assert alice.liquidation_price == 1_000 * E18
        assert bob.health_ratio == 150
        assert carol.health_ratio == INFINITE_HEALTH
        assert carol.liquidation_price == 0
        assert {s.status for s in snapshots} == {HEALTHY}

    @pytest.mark.asyncio
    async def test_statuses_follow_prices(self, book: EngineContext, engine: Engine) -> None:
        _set_price(book, "WETH", 900 * 10**8)
        _set_price(book, "WBTC", 22_000 * 10**8)

        snapshots = await PositionMonitor(engine, health_warning=120).scan()
        statuses = {s.user: s.status for s in snapshots}

        assert statuses == {"alice": LIQUIDATABLE, "bob": WARNING, "carol": HEALTHY}

    @pytest.mark.asyncio
    async def test_unpriceable_asset_skipped(self, book: EngineContext, engine: Engine) -> None:
        _set_price(book, "USDC", 0)
        snapshots = await PositionMonitor(engine).scan()
        assert [s.user for s in snapshots] == ["alice", "bob"]

    @pytest.mark.asyncio
    async def test_empty_book(self, engine: Engine) -> None:
        assert await PositionMonitor(engine).scan() == []


class TestCheckAndAlert:
    @pytest.mark.asyncio
    async def test_healthy_book_sends_nothing(self, book: EngineContext, engine: Engine) -> None:
        mock_notifier = AsyncMock()
        await PositionMonitor(engine, [mock_notifier]).check_and_alert()
        mock_notifier.send_alert.assert_not_called()

    @pytest.mark.asyncio
    async def test_alerts_on_risky_positions(self, book: EngineContext, engine: Engine) -> None:
        _set_price(book, "WETH", 900 * 10**8)
        _set_price(book, "WBTC", 22_000 * 10**8)
        mock_notifier = AsyncMock()

        await PositionMonitor(engine, [mock_notifier], health_warning=120).check_and_alert()

        assert mock_notifier.send_alert.call_count == 2
        subjects = [c.kwargs["subject"] for c in mock_notifier.send_alert.call_args_list]
        assert subjects == ["Liquidatable position", "Low health"]
        first_message = mock_notifier.send_alert.call_args_list[0][0][0]
        assert "alice" in first_message
        assert "Health: 90%" in first_message

    @pytest.mark.asyncio
    async def test_notifier_failure_does_not_stop_scan(
        self, book: EngineContext, engine: Engine
    ) -> None:
        _set_price(book, "WETH", 900 * 10**8)
        failing = AsyncMock()
        failing.send_alert.side_effect = RuntimeError("bot down")
        working = AsyncMock()

        snapshots = await PositionMonitor(engine, [failing, working]).check_and_alert()

        assert len(snapshots) == 3
        working.send_alert.assert_called_once()


class TestFormatHealth:
    def test_infinite(self) -> None:
        assert PositionMonitor.format_health(INFINITE_HEALTH) == "∞"

    def test_percent(self) -> None:
        assert PositionMonitor.format_health(135) == "135%"
