"""Tests for the background sweep scheduler."""

import asyncio
from unittest.mock import MagicMock

import pytest

from buzzbyte_stage.core.errors import SweepTimeoutError
from buzzbyte_stage.services.scheduler import SweepScheduler
from buzzbyte_stage.services.sweeper import SweepResult


def _factory_for(sweeper: MagicMock):
    return lambda: sweeper


@pytest.mark.asyncio
async def test_returns_result_of_successful_run() -> None:
    sweeper = MagicMock()
    sweeper.run_once.return_value = SweepResult(purged=3, batches=1)
    scheduler = SweepScheduler(_factory_for(sweeper), max_attempts=3, retry_delay_seconds=0)

    result = await scheduler.run_with_retries()

    assert result.purged == 3
    sweeper.run_once.assert_called_once()


@pytest.mark.asyncio
async def test_retries_timeouts_up_to_max_attempts() -> None:
    sweeper = MagicMock()
    sweeper.run_once.side_effect = [
        SweepTimeoutError("slow"),
        SweepTimeoutError("slow"),
        SweepResult(purged=1),
    ]
    scheduler = SweepScheduler(_factory_for(sweeper), max_attempts=3, retry_delay_seconds=0)

    result = await scheduler.run_with_retries()

    assert result.purged == 1
    assert sweeper.run_once.call_count == 3


@pytest.mark.asyncio
async def test_gives_up_after_max_attempts(caplog) -> None:
    sweeper = MagicMock()
    sweeper.run_once.side_effect = SweepTimeoutError("slow")
    scheduler = SweepScheduler(_factory_for(sweeper), max_attempts=2, retry_delay_seconds=0)

    assert await scheduler.run_with_retries() is None
    assert sweeper.run_once.call_count == 2
    assert "gave up after 2 attempts" in caplog.text


@pytest.mark.asyncio
async def test_unexpected_errors_are_not_retried() -> None:
    sweeper = MagicMock()
    sweeper.run_once.side_effect = RuntimeError("database gone")
    scheduler = SweepScheduler(_factory_for(sweeper), max_attempts=3, retry_delay_seconds=0)

    assert await scheduler.run_with_retries() is None
    sweeper.run_once.assert_called_once()


@pytest.mark.asyncio
async def test_start_and_stop_background_loop() -> None:
    sweeper = MagicMock()
    sweeper.run_once.return_value = SweepResult()
    scheduler = SweepScheduler(_factory_for(sweeper), interval_seconds=60)

    await scheduler.start()
    for _ in range(50):
        if sweeper.run_once.called:
            break
        await asyncio.sleep(0.01)
    await scheduler.stop()

    sweeper.run_once.assert_called_once()
    assert scheduler._task is None
