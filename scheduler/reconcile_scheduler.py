# scheduler/reconcile_scheduler.py
import logging
from typing import Optional

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.interval import IntervalTrigger

from helpers.missed_call_reconciler import reconcile_missed_calls
from helpers.settings import Settings
from helpers.twilio_gateway import TwilioGateway

RECONCILE_JOB_ID = "missed-call-reconciler"

logger = logging.getLogger("reconcile_scheduler")

_scheduler: Optional[AsyncIOScheduler] = None


def get_scheduler(settings: Settings) -> AsyncIOScheduler:
    """
    Global singleton AsyncIOScheduler. One reconcile run at a time per
    process; overlapping ticks are coalesced.
    """
    global _scheduler
    if _scheduler and _scheduler.running:
        return _scheduler

    _scheduler = AsyncIOScheduler(
        timezone=settings.aps_timezone,
        job_defaults={
            "coalesce": True,
            "max_instances": 1,
            "misfire_grace_time": settings.reconcile_interval_seconds,
        },
    )
    _scheduler.start()
    return _scheduler


async def run_reconcile_job(settings: Settings, gateway: TwilioGateway) -> None:
    try:
        summary = await reconcile_missed_calls(settings, gateway)
        if summary.checked:
            logger.info("[reconcile-scheduler] tick %s", summary.as_dict())
    except Exception as e:
        logger.exception("[reconcile-scheduler] tick failed: %s", e)


def schedule_reconciler(settings: Settings, gateway: TwilioGateway) -> None:
    """Run the reconciler every `reconcile_interval_seconds`."""
    sch = get_scheduler(settings)
    sch.add_job(
        run_reconcile_job,
        IntervalTrigger(seconds=settings.reconcile_interval_seconds, timezone=settings.aps_timezone),
        args=[settings, gateway],
        id=RECONCILE_JOB_ID,
        replace_existing=True,
    )
    logger.info(
        "[reconcile-scheduler] every %ss, stale after %ss",
        settings.reconcile_interval_seconds, settings.stale_after_seconds,
    )


def shutdown_scheduler(wait: bool = False) -> None:
    global _scheduler
    if _scheduler and _scheduler.running:
        _scheduler.shutdown(wait=wait)
    _scheduler = None
