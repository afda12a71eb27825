"""
Daily trigger for the application batch.

Runs on an APScheduler BackgroundScheduler with a cron trigger taken from
settings (default: midnight, Asia/Kathmandu). The batch itself knows nothing
about the scheduler; it is handed in as a zero-argument callable.
"""

from collections.abc import Callable
from typing import Any, Optional

import structlog
from apscheduler.schedulers.background import BackgroundScheduler
from apscheduler.triggers.cron import CronTrigger

from app.config import settings

logger = structlog.get_logger(__name__)

APPLY_JOB_ID = "apply_ipo_daily"

_scheduler: Optional[BackgroundScheduler] = None


def build_trigger(expression: str | None = None, timezone: str | None = None) -> CronTrigger:
    return CronTrigger.from_crontab(
        expression or settings.apply_cron,
        timezone=timezone or settings.scheduler_timezone,
    )


def start_scheduler(job: Callable[[], Any]) -> BackgroundScheduler:
    """Register ``job`` on the daily trigger and start the scheduler."""
    global _scheduler
    scheduler = BackgroundScheduler(timezone=settings.scheduler_timezone)
    scheduler.add_job(
        job,
        build_trigger(),
        id=APPLY_JOB_ID,
        replace_existing=True,
        max_instances=1,
        coalesce=True,
    )
    scheduler.start()
    _scheduler = scheduler
    logger.info("scheduler.started", jobs=[j.id for j in scheduler.get_jobs()], cron=settings.apply_cron)
    return scheduler


def stop_scheduler() -> None:
    global _scheduler
    if _scheduler is not None and _scheduler.running:
        _scheduler.shutdown(wait=False)
        logger.info("scheduler.stopped")
    _scheduler = None
