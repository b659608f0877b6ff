"""Background jobs (APScheduler).

Every job is a plain service method, so the same work can be triggered from
the admin endpoints or a test without a scheduler.
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Callable, Optional

from apscheduler.schedulers.background import BackgroundScheduler
from apscheduler.triggers.cron import CronTrigger

from .container import Container

logger = logging.getLogger(__name__)

JOB_AUTO_CHECKOUT = "attendance_auto_checkout"
JOB_OT_AUTO_CLOSE = "ot_auto_close"
JOB_SITE_VISIT_AUTO_CLOSE = "site_visit_auto_close"


def _guarded(name: str, job: Callable[[], object]) -> Callable[[], None]:
    def run() -> None:
        try:
            result = job()
            logger.info("Job %s finished: %s", name, result)
        except Exception:
            logger.exception("Job %s failed", name)

    return run


def register_jobs(scheduler: BackgroundScheduler, container: Container) -> None:
    scheduler.add_job(
        _guarded(JOB_AUTO_CHECKOUT, container.auto_checkout_service.process),
        CronTrigger(minute="*/5"),
        id=JOB_AUTO_CHECKOUT,
        name="Auto-complete forgotten checkouts",
        replace_existing=True,
    )
    ot_job = _guarded(JOB_OT_AUTO_CLOSE, container.ot_auto_close.process)
    scheduler.add_job(
        ot_job,
        CronTrigger(minute=5),
        id=JOB_OT_AUTO_CLOSE,
        name="Auto-close forgotten OT sessions",
        replace_existing=True,
    )
    # one catch-up pass at startup for sessions left open while the app was down
    scheduler.add_job(
        ot_job,
        next_run_time=datetime.now(scheduler.timezone),
        id=f"{JOB_OT_AUTO_CLOSE}_startup",
        replace_existing=True,
    )
    scheduler.add_job(
        _guarded(JOB_SITE_VISIT_AUTO_CLOSE, container.site_visit_auto_close.process),
        CronTrigger(hour=0, minute=5),
        id=JOB_SITE_VISIT_AUTO_CLOSE,
        name="Auto-close stale site visits",
        replace_existing=True,
    )


def start_scheduler(container: Container, *, timezone: Optional[str] = None) -> BackgroundScheduler:
    kwargs = {"job_defaults": {"coalesce": True, "max_instances": 1, "misfire_grace_time": 300}}
    if timezone:
        kwargs["timezone"] = timezone
    scheduler = BackgroundScheduler(**kwargs)
    register_jobs(scheduler, container)
    scheduler.start()
    logger.info("Scheduler started with jobs: %s", ", ".join(job.id for job in scheduler.get_jobs()))
    return scheduler
