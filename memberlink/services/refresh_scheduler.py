"""Background loop that runs the credential refresher on a fixed period."""

from __future__ import annotations

import asyncio
import logging
from typing import Awaitable, Callable, Optional

from memberlink.services.credential_refresher import CredentialRefresher, RefreshReport

logger = logging.getLogger(__name__)


class RefreshScheduler:
    """Run a refresh pass after an initial delay, then every interval."""

    def __init__(
        self,
        refresher: CredentialRefresher,
        *,
        interval_seconds: float,
        initial_delay_seconds: float = 60.0,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        self._refresher = refresher
        self._interval = interval_seconds
        self._initial_delay = initial_delay_seconds
        self._sleep = sleep
        self._task: Optional[asyncio.Task] = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    async def run_forever(self) -> None:
        await self._sleep(self._initial_delay)
        while True:
            await self.run_once()
            await self._sleep(self._interval)

    async def run_once(self) -> Optional[RefreshReport]:
        try:
            return await self._refresher.refresh_all()
        except Exception:
            logger.exception("Scheduled token refresh failed")
            return None

    def start(self) -> asyncio.Task:
        if not self.running:
            self._task = asyncio.create_task(self.run_forever())
            logger.info(
                "Token refresh scheduled every %ss (first run in %ss)",
                self._interval,
                self._initial_delay,
            )
        return self._task

    async def stop(self) -> None:
        if self._task is None:
            return
        self._task.cancel()
        try:
            await self._task
        except asyncio.CancelledError:
            pass
        self._task = None


__all__ = ["RefreshScheduler"]
