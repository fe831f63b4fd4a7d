"""Health scanning over every open position, with alerting."""
from __future__ import annotations

import logging
from collections.abc import Iterable
from datetime import datetime, timezone

from ..constants import INFINITE_HEALTH
from ..engine import Engine
from ..errors import InvalidPriceError
from ..interfaces.notifier import Notifier
from ..ledger import health_ratio, liquidation_price
from ..models import PositionHealth
from ..scaling import asset_value

logger = logging.getLogger(__name__)

HEALTHY = "HEALTHY"
WARNING = "WARNING"
LIQUIDATABLE = "LIQUIDATABLE"


class PositionMonitor:
    """Values every open position and alerts on risky ones."""

    def __init__(
        self,
        engine: Engine,
        notifiers: Iterable[Notifier] = (),
        health_warning: int = 120,
    ) -> None:
        self._engine = engine
        self._notifiers = list(notifiers)
        self._health_warning = health_warning

    # ------------------------------------------------------------------
    # Formatting helpers
    # ------------------------------------------------------------------

    def _get_status(self, health: int) -> str:
        if health < self._engine.risk.liquidation_threshold:
            return LIQUIDATABLE
        if health < self._health_warning:
            return WARNING
        return HEALTHY

    @staticmethod
    def _now_str() -> str:
        return datetime.now(timezone.utc).strftime("%Y-%m-%d %H:%M:%S")

    @staticmethod
    def format_health(health: int) -> str:
        return "∞" if health == INFINITE_HEALTH else f"{health}%"

    def _build_alert(self, snapshot: PositionHealth) -> str:
        return (
            f"{snapshot.status} — {snapshot.user} · {snapshot.symbol}\n"
            f"\n"
            f"Collateral: {snapshot.collateral_amount} (value {snapshot.collateral_value})\n"
            f"Debt: {snapshot.debt}\n"
            f"Health: {self.format_health(snapshot.health_ratio)}\n"
            f"Liquidation price: {snapshot.liquidation_price}\n"
            f"\n"
            f"{self._now_str()} UTC"
        )

    # ------------------------------------------------------------------
    # Core workflows
    # ------------------------------------------------------------------

    async def scan(self) -> list[PositionHealth]:
        """Snapshot every position with collateral or debt in a supported asset."""
        engine = self._engine
        prices: dict[str, int] = {}
        snapshots: list[PositionHealth] = []

        for user in engine.ledger.users():
            for asset in engine.registry.assets():
                position = engine.ledger.get(user, asset)
                if position.collateral_amount == 0 and position.debt == 0:
                    continue

                if asset not in prices:
                    try:
                        prices[asset] = await engine.registry.price(asset)
                    except InvalidPriceError as e:
                        logger.error("Skipping %s: %s", asset, e)
                        prices[asset] = 0
                price = prices[asset]
                if price == 0:
                    continue

                meta = engine.registry.asset(asset)
                health = health_ratio(position, meta.decimals, price)
                snapshots.append(
                    PositionHealth(
                        user=user,
                        asset=asset,
                        symbol=meta.symbol,
                        collateral_amount=position.collateral_amount,
                        collateral_value=asset_value(
                            position.collateral_amount, meta.decimals, price
                        ),
                        debt=position.debt,
                        health_ratio=health,
                        liquidation_price=liquidation_price(
                            position, meta.decimals, engine.risk.liquidation_threshold
                        ),
                        status=self._get_status(health),
                    )
                )

        return snapshots

    async def check_and_alert(self) -> list[PositionHealth]:
        """Scan and send one alert per warning or liquidatable position."""
        snapshots = await self.scan()

        for snapshot in snapshots:
            logger.info(
                "Position — %s · %s · Debt: %d  Health: %s  Status: %s",
                snapshot.user,
                snapshot.symbol,
                snapshot.debt,
                self.format_health(snapshot.health_ratio),
                snapshot.status,
            )
            if snapshot.status == HEALTHY:
                continue

            subject = (
                "Liquidatable position" if snapshot.status == LIQUIDATABLE else "Low health"
            )
            message = self._build_alert(snapshot)
            for notifier in self._notifiers:
                try:
                    await notifier.send_alert(message, subject=subject)
                except Exception as e:
                    logger.error("Notifier send_alert failed: %s", e)

        return snapshots
