"""
Operator alerts.

send_alert() is fire-and-forget: it schedules delivery on the running loop
and returns. Delivery failures are logged here and never reach the caller.
"""

import asyncio
import logging
from typing import Optional, Set

import aiohttp

logger = logging.getLogger(__name__)

TELEGRAM_API_URL = "https://api.telegram.org"
SEND_TIMEOUT_SECONDS = 10.0


class LogNotifier:
    """Notifier that only writes alerts to the log."""

    def send_alert(self, text: str) -> None:
        logger.warning(f"ALERT: {text}")

    async def flush(self) -> None:
        return None

    async def close(self) -> None:
        return None


class TelegramNotifier:
    """Posts alerts to a Telegram chat through the Bot API sendMessage call."""

    def __init__(
        self,
        bot_token: Optional[str],
        chat_id: Optional[str],
        session: Optional[aiohttp.ClientSession] = None,
        api_url: str = TELEGRAM_API_URL,
    ):
        self.bot_token = bot_token
        self.chat_id = chat_id
        self.api_url = api_url
        self._session = session
        self._owns_session = session is None
        self._pending: Set[asyncio.Task] = set()
        self.sent = 0
        self.failed = 0

        if not self.enabled:
            logger.warning("Telegram token or chat id not configured. Alerts will not be sent.")

    @property
    def enabled(self) -> bool:
        return bool(self.bot_token and self.chat_id)

    def send_alert(self, text: str) -> None:
        if not self.enabled:
            logger.info(f"Alert (not sent): {text}")
            return

        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            logger.error(f"No running event loop, alert dropped: {text}")
            return

        task = loop.create_task(self._deliver(text))
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)

    async def flush(self) -> None:
        """Wait for every alert scheduled so far."""
        if self._pending:
            await asyncio.gather(*list(self._pending), return_exceptions=True)

    async def close(self) -> None:
        await self.flush()
        if self._owns_session and self._session is not None and not self._session.closed:
            await self._session.close()

    async def _deliver(self, text: str):
        url = f"{self.api_url}/bot{self.bot_token}/sendMessage"
        payload = {"chat_id": self.chat_id, "text": text, "parse_mode": "Markdown"}

        try:
            if self._session is None:
                self._session = aiohttp.ClientSession()
            async with self._session.post(
                url,
                json=payload,
                timeout=aiohttp.ClientTimeout(total=SEND_TIMEOUT_SECONDS),
            ) as resp:
                if resp.status != 200:
                    body = await resp.text()
                    self.failed += 1
                    logger.error(f"Telegram alert rejected ({resp.status}): {body[:200]}")
                    return
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            self.failed += 1
            logger.error(f"Error sending Telegram alert: {e}")
            return
        except Exception as e:
            self.failed += 1
            logger.error(f"Unexpected error sending Telegram alert: {e}")
            return

        self.sent += 1
        logger.info("Telegram alert sent.")
