"""
Background scheduler for academic stats maintenance.

Uses APScheduler to recompute every student's stored academic stats once a
night, so the CGPA served from the user profile never drifts from the
semesters it is derived from.
"""

import logging
from datetime import timezone, timedelta

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.cron import CronTrigger

from studenthub.config import get_settings
from studenthub.core.database import get_supabase_admin_client
from studenthub.features.gpa.service import GPAService

logger = logging.getLogger(__name__)

# Bangladesh timezone (UTC+6)
BD_TZ = timezone(timedelta(hours=6))

STATS_REFRESH_JOB_ID = "academic_stats_refresh_job"

# Singleton scheduler instance
scheduler = AsyncIOScheduler(timezone=BD_TZ)


def parse_time(time_str: str) -> tuple[int, int] | None:
    """Parse "HH:MM". Returns None when the value is not a valid time of day."""
    try:
        hour, minute = map(int, time_str.split(":"))
    except (ValueError, AttributeError):
        return None
    if not (0 <= hour < 24 and 0 <= minute < 60):
        return None
    return hour, minute


async def refresh_all_academic_stats() -> dict:
    """Callback for the nightly job."""
    logger.info("Refreshing academic stats for all students...")
    try:
        result = GPAService(get_supabase_admin_client()).refresh_all_academic_stats()
    except Exception as e:
        logger.error(f"Academic stats refresh failed: {e}", exc_info=True)
        return {"updated": 0}
    logger.info(f"Academic stats refreshed for {result['updated']} student(s).")
    return result


def schedule_stats_refresh(time_str: str | None) -> bool:
    """Add, update, or remove the nightly refresh job.

    Args:
        time_str: Time in "HH:MM" format, or None to disable.
    """
    if not time_str:
        if scheduler.get_job(STATS_REFRESH_JOB_ID):
            scheduler.remove_job(STATS_REFRESH_JOB_ID)
            logger.info(f"Removed scheduled job: {STATS_REFRESH_JOB_ID}")
        return False

    parsed = parse_time(time_str)
    if parsed is None:
        logger.error(f"Invalid time format '{time_str}', expected HH:MM")
        return False
    hour, minute = parsed

    scheduler.add_job(
        func=refresh_all_academic_stats,
        trigger=CronTrigger(hour=hour, minute=minute, timezone=BD_TZ),
        id=STATS_REFRESH_JOB_ID,
        replace_existing=True,
    )
    logger.info(f"Scheduled {STATS_REFRESH_JOB_ID} at {time_str} (Asia/Dhaka)")
    return True


def init_scheduler():
    """Start the scheduler. Called during FastAPI lifespan startup."""
    settings = get_settings()
    if not settings.STATS_REFRESH_ENABLED:
        logger.info("Academic stats refresh disabled, scheduler not started.")
        return

    schedule_stats_refresh(settings.STATS_REFRESH_TIME)
    scheduler.start()

    for job in scheduler.get_jobs():
        logger.info(f"   - {job.id}: next run at {job.next_run_time}")


def shutdown_scheduler():
    """Gracefully shutdown the scheduler."""
    if scheduler.running:
        scheduler.shutdown(wait=False)
        logger.info("Scheduler shut down.")
