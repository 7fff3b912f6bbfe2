try:
    from . import _bootstrap  # noqa: F401
except Exception:  # pragma: no cover
    import _bootstrap  # type: ignore # noqa: F401

import asyncio

import pytest

from memberlink.services.credential_refresher import RefreshReport
from memberlink.services.refresh_scheduler import RefreshScheduler


class StopLoop(Exception):
    pass


class ScriptedRefresher:
    def __init__(self, outcomes: list) -> None:
        self.outcomes = list(outcomes)
        self.calls = 0

    async def refresh_all(self) -> RefreshReport:
        self.calls += 1
        outcome = self.outcomes.pop(0)
        if isinstance(outcome, Exception):
            raise outcome
        return outcome


@pytest.mark.asyncio
async def test_loop_waits_initial_delay_then_interval_and_survives_failures() -> None:
    refresher = ScriptedRefresher(
        [RuntimeError("disk full"), RefreshReport(refreshed=1)]
    )
    delays: list[float] = []

    async def fake_sleep(delay: float) -> None:
        delays.append(delay)
        if len(delays) == 3:
            raise StopLoop()

    scheduler = RefreshScheduler(
        refresher, interval_seconds=18000, initial_delay_seconds=60, sleep=fake_sleep
    )

    with pytest.raises(StopLoop):
        await scheduler.run_forever()

    assert delays == [60, 18000, 18000]
    assert refresher.calls == 2


@pytest.mark.asyncio
async def test_run_once_swallows_errors() -> None:
    scheduler = RefreshScheduler(
        ScriptedRefresher([RuntimeError("boom")]), interval_seconds=1
    )

    assert await scheduler.run_once() is None


@pytest.mark.asyncio
async def test_start_and_stop_manage_the_task() -> None:
    gate = asyncio.Event()

    async def blocking_sleep(delay: float) -> None:
        await gate.wait()

    scheduler = RefreshScheduler(
        ScriptedRefresher([]), interval_seconds=1, sleep=blocking_sleep
    )

    task = scheduler.start()
    assert scheduler.running
    assert scheduler.start() is task

    await scheduler.stop()
    assert not scheduler.running
    assert task.cancelled()
