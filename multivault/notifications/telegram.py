"""Telegram notification service."""
import logging
import ssl

import aiohttp
import certifi

from ..config import TelegramConfig
from ..models import Event, Liquidated
from .event_log import describe_event

logger = logging.getLogger(__name__)


class TelegramNotifier:
    """Send alerts and engine records via Telegram bots.

    Liquidations go to the (unmuted) alert bot, every other record to the
    log bot.
    """

    def __init__(self, config: TelegramConfig) -> None:
        self.alert_bot_token = config.alert_bot_token
        self.log_bot_token = config.log_bot_token
        self.chat_id = config.chat_id

    async def _send_message(
        self, message: str, bot_token: str, silent: bool = False
    ) -> bool:
        """Send Telegram message using specified bot."""
        if not bot_token or not self.chat_id:
            logger.warning("Telegram credentials not configured")
            return False

        url = f"https://api.telegram.org/bot{bot_token}/sendMessage"
        payload = {
            "chat_id": self.chat_id,
            "text": message,
            "disable_notification": silent,
        }

        ssl_context = ssl.create_default_context(cafile=certifi.where())
        connector = aiohttp.TCPConnector(ssl=ssl_context)

        async with aiohttp.ClientSession(connector=connector) as session:
            async with session.post(url, json=payload) as response:
                if response.status == 200:
                    return True
                else:
                    logger.error(
                        "Failed to send Telegram message: %s", response.status
                    )
                    return False

    async def send_alert(self, message: str, subject: str = "") -> bool:
        """Send critical alert (unmuted bot)."""
        text = f"{subject}\n\n{message}" if subject else message
        if await self._send_message(text, self.alert_bot_token, silent=False):
            logger.info("Telegram alert sent")
            return True
        return False

    async def send_log(self, message: str, silent: bool = True) -> bool:
        """Send log message (logs bot)."""
        if await self._send_message(message, self.log_bot_token, silent=silent):
            logger.info("Telegram log sent")
            return True
        return False

    async def publish(self, event: Event) -> None:
        if isinstance(event, Liquidated):
            await self.send_alert(
                f"Position of {event.user} in {event.asset} liquidated by {event.liquidator}\n"
                f"Repaid: {event.repaid_amount}\n"
                f"Collateral taken: {event.collateral_taken}\n"
                f"Protocol fee: {event.fee_amount}",
                subject="Liquidation",
            )
        else:
            await self.send_log(describe_event(event))
