"""
Keep-alive ping for hosted instances that sleep when idle.

A cron trigger fires at midnight on days 1, 7, 13, 19, 25 and 31 of every month
and sends a single GET to the configured URL. Failures are logged only: no
retry, no backoff.
"""

from __future__ import annotations

import logging
from typing import Optional

import httpx
from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.cron import CronTrigger

logger = logging.getLogger(__name__)

PING_DAYS = "1,7,13,19,25,31"
TIMEOUT = 30.0


def build_trigger() -> CronTrigger:
    return CronTrigger(day=PING_DAYS, hour=0, minute=0, second=0, timezone="UTC")


async def ping(url: str, transport: Optional[httpx.AsyncBaseTransport] = None) -> Optional[int]:
    """Send one GET to ``url``; returns the status code, or None on a transport error."""
    try:
        async with httpx.AsyncClient(timeout=TIMEOUT, transport=transport) as client:
            resp = await client.get(url)
    except httpx.HTTPError as e:
        logger.error("Error while sending keep-alive request to %s: %s", url, e)
        return None

    if resp.status_code == 200:
        logger.info("Keep-alive GET request sent successfully")
    else:
        logger.warning("Keep-alive GET request failed with status %d", resp.status_code)
    return resp.status_code


class KeepAliveJob:
    """Periodic keep-alive ping, independent of request handling."""

    def __init__(self, url: str):
        self.url = url
        self._scheduler: Optional[AsyncIOScheduler] = None
        self._running = False

    def start(self) -> None:
        self._scheduler = AsyncIOScheduler()
        self._scheduler.add_job(
            ping,
            build_trigger(),
            args=[self.url],
            id="keep_alive",
            name="Keep-alive ping",
            replace_existing=True,
        )
        self._scheduler.start()
        self._running = True
        logger.info("Keep-alive job scheduled for %s (days %s)", self.url, PING_DAYS)

    def stop(self) -> None:
        if self._scheduler:
            self._scheduler.shutdown(wait=False)
            self._running = False
            logger.info("Keep-alive job stopped")

    @property
    def is_running(self) -> bool:
        return self._running
