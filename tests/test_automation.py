import asyncio
from decimal import Decimal

import pytest

from paycore.core.config import SchedulerSettings
from paycore.core.container import ApplicationContainer
from paycore.modules.automation import PeriodicJob


async def test_run_once_counts_failures_without_raising():
    calls = []

    async def flaky():
        calls.append(1)
        if len(calls) == 2:
            raise RuntimeError("boom")
        return len(calls)

    job = PeriodicJob("flaky", 60, flaky)

    assert await job.run_once() == 1
    assert await job.run_once() is None
    assert (job.runs, job.failures) == (2, 1)


async def test_loop_runs_until_stopped():
    ticks = asyncio.Event()

    async def tick():
        ticks.set()

    job = PeriodicJob("tick", 0.01, tick)
    job.start()
    await asyncio.wait_for(ticks.wait(), timeout=1)
    assert job.running

    await job.stop()

    assert not job.running
    assert job.runs >= 1
    await job.stop()


def test_interval_must_be_positive():
    with pytest.raises(ValueError):
        PeriodicJob("never", 0, asyncio.sleep)


async def test_container_jobs_follow_settings(settings, clock, sleep, storage):
    enabled = settings.model_copy(update={"scheduler": SchedulerSettings(enabled=True, process_interval_seconds=3600)})
    container = ApplicationContainer(settings=enabled, clock=clock, sleep=sleep, storage=storage)
    container.init_infrastructure()

    container.start_jobs()
    try:
        assert [job.name for job in container.jobs] == ["recurring-payments"]
        assert container.jobs[0].running
    finally:
        await container.dispose()
    assert not container.jobs[0].running


async def test_process_recurring_uses_its_own_unit_of_work(container, clock):
    async with container.unit_of_work() as services:
        await services.wallet.deposit(100)
        vendor = await services.vendors.create("Fresh Farms", "ap@fresh.pk", "03211234567")
        await services.recurring.create("Veg", vendor.id, 30, "weekly", start_date=clock.now)

    result = await container.process_recurring()

    assert result.successful == 1
    async with container.unit_of_work() as services:
        assert await services.wallet.balance() == Decimal("70.00")
