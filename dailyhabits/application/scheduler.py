"""
Background scheduler: runs periodic jobs inside the FastAPI process.

Jobs (local time, TIMEZONE setting):
  - Stats cache purge (00:05)
  - Public holiday sync for the current and next year (03:00, HOLIDAYS_SYNC_ENABLED)
"""
import logging

from apscheduler.schedulers.background import BackgroundScheduler
from apscheduler.triggers.cron import CronTrigger

from dailyhabits.application.stats_cache import StatsCache
from dailyhabits.config import get_settings

logger = logging.getLogger(__name__)

scheduler = BackgroundScheduler(daemon=True)


def _run_cache_purge(cache: StatsCache):
    from dailyhabits.application.common import local_today

    try:
        cache.purge_stale(local_today())
    except Exception:
        logger.exception("Stats cache purge job failed")


def _run_holiday_sync(cache: StatsCache):
    from dailyhabits.infrastructure.db.session import get_session_factory
    from dailyhabits.application.calendar import sync_holidays
    from dailyhabits.application.common import local_today

    year = local_today().year
    Session = get_session_factory()
    db = Session()
    added = 0
    try:
        for y in (year, year + 1):
            added += sync_holidays(db, y)
    except Exception:
        logger.exception("Holiday sync job failed")
    finally:
        db.close()
        # Holidays feed every account's streaks
        if added:
            cache.clear()
            logger.info("Stats cache cleared after holiday sync (%d new)", added)


def start_scheduler(cache: StatsCache):
    """Start the background scheduler with all periodic jobs."""
    settings = get_settings()
    scheduler.configure(timezone=settings.TIMEZONE)

    # Stats cache purge at 00:05, right after the local day rolls over
    scheduler.add_job(
        _run_cache_purge,
        CronTrigger(hour=0, minute=5),
        args=[cache],
        id="stats_cache_purge",
        replace_existing=True,
    )
    jobs = ["stats_cache_purge (00:05)"]

    if settings.HOLIDAYS_SYNC_ENABLED:
        scheduler.add_job(
            _run_holiday_sync,
            CronTrigger(hour=3, minute=0),
            args=[cache],
            id="holiday_sync",
            replace_existing=True,
        )
        jobs.append("holiday_sync (03:00)")

    scheduler.start()
    logger.info("Scheduler started (%s): %s", settings.TIMEZONE, ", ".join(jobs))


def shutdown_scheduler():
    """Gracefully stop the scheduler."""
    if scheduler.running:
        scheduler.shutdown(wait=False)
        logger.info("Scheduler stopped")
