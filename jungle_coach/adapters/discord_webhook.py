"""Discord-compatible webhook adapter for coaching alerts.

Posts ``{"content": ...}`` to the configured webhook URL. Without a URL the
adapter is a no-op that reports ``False``; delivery failures are logged and
never raised to the caller.
"""

import asyncio
import logging

import aiohttp

from jungle_coach.contracts import Alert
from jungle_coach.core.ports import AlertPort

logger = logging.getLogger(__name__)

ALERT_HEADER = "🎮 **LoL Coach Alert**"


class DiscordAlertWebhook(AlertPort):
    REQUEST_TIMEOUT = 10  # seconds

    def __init__(self, webhook_url: str | None) -> None:
        self.webhook_url = webhook_url
        self._session: aiohttp.ClientSession | None = None
        self._session_loop: asyncio.AbstractEventLoop | None = None

    async def _ensure_session(self) -> aiohttp.ClientSession:
        loop = asyncio.get_running_loop()
        if self._session is None or self._session.closed or self._session_loop is not loop:
            self._session = aiohttp.ClientSession(
                timeout=aiohttp.ClientTimeout(total=self.REQUEST_TIMEOUT)
            )
            self._session_loop = loop
        return self._session

    async def close(self) -> None:
        if self._session and not self._session.closed:
            await self._session.close()
        self._session = None
        self._session_loop = None

    @staticmethod
    def format_content(alert: Alert) -> str:
        return f"{ALERT_HEADER}\n{alert.message}"

    async def send(self, alert: Alert) -> bool:
        if not self.webhook_url:
            logger.debug("Alert webhook not configured, dropping alert")
            return False

        payload = {"content": self.format_content(alert)}
        try:
            session = await self._ensure_session()
            async with session.post(self.webhook_url, json=payload) as response:
                if response.status >= 400:
                    body = await response.text()
                    logger.error(f"Alert webhook returned {response.status}: {body}")
                    return False
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            logger.error(f"Alert webhook delivery failed: {e}")
            return False

        logger.info(f"Alert sent: {alert.message}")
        return True
