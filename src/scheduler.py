"""Gigmarket background scheduler.

Runs the auto-completion sweep on a fixed interval in its own process.
Each run pushes the marketplace domain context and processes
AutoCompleteDeliveredOrders. Overlapping runs are prevented by
max_instances=1 and missed runs are coalesced into one.

Usage:
    python src/scheduler.py
    AUTO_COMPLETE_INTERVAL_MINUTES=1 python src/scheduler.py
"""

import os

import structlog
from apscheduler.schedulers.blocking import BlockingScheduler
from apscheduler.triggers.interval import IntervalTrigger

from marketplace.domain import marketplace
from marketplace.order.auto_completion import AutoCompleteDeliveredOrders
from marketplace.utils.logging import configure_logging

logger = structlog.get_logger(__name__)

DEFAULT_INTERVAL_MINUTES = 5


def run_auto_complete_sweep() -> int:
    """Process one sweep. Failures are logged so the next run still fires."""
    with marketplace.domain_context():
        try:
            completed = marketplace.process(AutoCompleteDeliveredOrders(), asynchronous=False)
        except Exception:
            logger.exception("Auto-completion sweep failed")
            return 0

    logger.info("Auto-completion sweep ran", completed=completed)
    return completed


def build_scheduler(interval_minutes: int | None = None) -> BlockingScheduler:
    minutes = interval_minutes or int(os.environ.get("AUTO_COMPLETE_INTERVAL_MINUTES", DEFAULT_INTERVAL_MINUTES))

    scheduler = BlockingScheduler(timezone="UTC")
    scheduler.add_job(
        run_auto_complete_sweep,
        trigger=IntervalTrigger(minutes=minutes),
        id="auto_complete_orders",
        name="Auto-complete delivered orders",
        max_instances=1,
        coalesce=True,
        misfire_grace_time=60,
        replace_existing=True,
    )
    return scheduler


def main():
    configure_logging()
    marketplace.init()

    scheduler = build_scheduler()
    logger.info("Scheduler starting", jobs=[job.id for job in scheduler.get_jobs()])
    try:
        scheduler.start()
    except (KeyboardInterrupt, SystemExit):
        logger.info("Scheduler stopped")


if __name__ == "__main__":
    main()
