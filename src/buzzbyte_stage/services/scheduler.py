"""Background task running the expiration sweep on a fixed cadence."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable

from buzzbyte_stage.core.errors import SweepTimeoutError
from buzzbyte_stage.core.settings import settings
from buzzbyte_stage.services.sweeper import ExpirationSweeper, SweepResult

logger = logging.getLogger(__name__)


class SweepScheduler:
    """Periodically runs :class:`ExpirationSweeper` off the event loop.

    A run that times out is retried up to ``sweep_max_attempts`` times with
    ``sweep_retry_delay_seconds`` between attempts before the failure is
    logged and the scheduler waits for the next interval.
    """

    def __init__(
        self,
        sweeper_factory: Callable[[], ExpirationSweeper] | None = None,
        *,
        interval_seconds: float | None = None,
        max_attempts: int | None = None,
        retry_delay_seconds: float | None = None,
    ) -> None:
        self._sweeper_factory = sweeper_factory or ExpirationSweeper
        self.interval = interval_seconds or settings.sweep_interval_seconds
        self.max_attempts = max_attempts or settings.sweep_max_attempts
        self.retry_delay = (
            settings.sweep_retry_delay_seconds
            if retry_delay_seconds is None
            else retry_delay_seconds
        )
        self._task: asyncio.Task[None] | None = None
        self._stopping = asyncio.Event()

    async def start(self) -> None:
        """Start the background sweep loop."""
        if self._task is None or self._task.done():
            self._stopping.clear()
            self._task = asyncio.create_task(self._run())

    async def stop(self) -> None:
        """Stop the background sweep loop and wait for it to finish."""
        if self._task is None:
            return

        self._stopping.set()
        await self._task
        self._task = None

    async def _run(self) -> None:
        while not self._stopping.is_set():
            await self.run_with_retries()
            await self._sleep(self.interval)

    async def run_with_retries(self) -> SweepResult | None:
        """Run one sweep, retrying on timeout; return None when every attempt failed."""
        for attempt in range(1, self.max_attempts + 1):
            try:
                sweeper = self._sweeper_factory()
                return await asyncio.to_thread(sweeper.run_once)
            except SweepTimeoutError as exc:
                logger.warning(
                    "Expiration sweep attempt %d/%d timed out: %s",
                    attempt,
                    self.max_attempts,
                    exc,
                )
                if attempt < self.max_attempts:
                    await self._sleep(self.retry_delay)
            except Exception:
                logger.exception("Expiration sweep failed")
                return None

        logger.error("Expiration sweep gave up after %d attempts", self.max_attempts)
        return None

    async def _sleep(self, seconds: float) -> None:
        # Wake early when stop() is requested.
        try:
            await asyncio.wait_for(self._stopping.wait(), timeout=seconds)
        except TimeoutError:
            pass


__all__ = ["SweepScheduler"]
