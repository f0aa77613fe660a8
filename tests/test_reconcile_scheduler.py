import pytest

from scheduler import reconcile_scheduler
from scheduler.reconcile_scheduler import (
    RECONCILE_JOB_ID,
    run_reconcile_job,
    schedule_reconciler,
    shutdown_scheduler,
)


@pytest.mark.asyncio
async def test_reconciler_job_is_registered_once(settings, gateway):
    try:
        schedule_reconciler(settings, gateway)
        schedule_reconciler(settings, gateway)

        sch = reconcile_scheduler.get_scheduler(settings)
        jobs = sch.get_jobs()
        assert [j.id for j in jobs] == [RECONCILE_JOB_ID]
        assert jobs[0].trigger.interval.total_seconds() == settings.reconcile_interval_seconds
    finally:
        shutdown_scheduler()


@pytest.mark.asyncio
async def test_job_swallows_failures(settings, gateway, monkeypatch):
    async def boom(*args, **kwargs):
        raise RuntimeError("db gone")

    monkeypatch.setattr(reconcile_scheduler, "reconcile_missed_calls", boom)

    await run_reconcile_job(settings, gateway)
