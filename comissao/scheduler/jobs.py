"""APScheduler job definitions and scheduler management.

Initializes a BackgroundScheduler with an IntervalTrigger that recomputes the
nomination order, and provides start/shutdown/status helpers for the FastAPI
lifespan.
"""

from __future__ import annotations

import logging

from apscheduler.schedulers.background import BackgroundScheduler
from apscheduler.triggers.interval import IntervalTrigger

from comissao.core.config import settings
from comissao.services.nomination import recompute_nomination_order

logger = logging.getLogger(__name__)

# Module-level scheduler instance (singleton)
scheduler = BackgroundScheduler()


def _recompute_job() -> None:
    """Wrapper that APScheduler calls on each interval tick."""
    try:
        recompute_nomination_order(trigger="scheduler")
    except Exception as exc:
        logger.error(
            "scheduled_recompute_failed",
            extra={"error_message": str(exc)},
        )


def start_scheduler() -> None:
    """Add the recomputation job and start the scheduler.

    A zero ``ORDER_RECOMPUTE_INTERVAL_MINUTES`` leaves the scheduler stopped.
    """
    interval = settings.ORDER_RECOMPUTE_INTERVAL_MINUTES
    if interval <= 0:
        logger.info("scheduler_disabled")
        return

    scheduler.add_job(
        _recompute_job,
        IntervalTrigger(minutes=interval),
        id="recompute_nomination_order",
        replace_existing=True,
    )
    scheduler.start()
    logger.info(
        "scheduler_started",
        extra={"interval_minutes": interval},
    )


def shutdown_scheduler() -> None:
    """Shutdown the scheduler gracefully (FastAPI lifespan cleanup)."""
    if scheduler.running:
        scheduler.shutdown(wait=False)
        logger.info("scheduler_stopped")


def is_scheduler_running() -> bool:
    """Check if the scheduler is currently running."""
    return scheduler.running
