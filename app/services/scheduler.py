import logging

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.cron import CronTrigger

logger = logging.getLogger(__name__)

scheduler = AsyncIOScheduler()


def register_jobs():
    """Add the recurring maintenance jobs. Safe to call more than once."""
    from app.jobs.storage_monitor import check_storage_usage

    scheduler.add_job(
        check_storage_usage,
        CronTrigger(hour=2, minute=0),
        id="storage_usage_check",
        replace_existing=True,
    )


def start_scheduler():
    """Start the background job scheduler."""
    if not scheduler.running:
        register_jobs()
        scheduler.start()
        logger.info(f"Background scheduler started | jobs={[job.id for job in scheduler.get_jobs()]}")


def stop_scheduler():
    """Stop the background job scheduler."""
    if scheduler.running:
        scheduler.shutdown(wait=False)
        logger.info("Background scheduler stopped")
