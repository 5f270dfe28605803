import logging
from datetime import date, datetime, timedelta

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.cron import CronTrigger

from app.services.epg_cache_service import EPGCacheService
from app.services.errors import CacheError
from app.utils.date_converter import utc_today


logger = logging.getLogger(__name__)


async def prefetch_days(cache_service: EPGCacheService, first_day: date, extra_days: int) -> dict:
    """
    Warm the cache for first_day and the extra_days that follow it.

    Days already cached are served from cache. A failing day is logged and
    skipped; it does not stop the others.

    Returns:
        Dictionary with the days that were warmed and the days that failed
    """
    warmed: list[str] = []
    failed: dict[str, str] = {}

    for offset in range(extra_days + 1):
        day = first_day + timedelta(days=offset)
        try:
            await cache_service.get_raw_data(day)
            warmed.append(day.isoformat())
        except CacheError as exc:
            logger.warning("Prefetch for %s failed: %s (%s)", day.isoformat(), exc, exc.kind.value)
            failed[day.isoformat()] = str(exc)

    logger.info("Prefetch finished: %s warmed, %s failed", len(warmed), len(failed))
    return {"warmed": warmed, "failed": failed}


class EPGScheduler:
    """Scheduler for automatic EPG prefetching"""

    def __init__(self, cache_service: EPGCacheService, cron: str, prefetch_days: int, misfire_grace_sec: int):
        self.cache_service = cache_service
        self.cron = cron
        self.prefetch_days = prefetch_days
        self.misfire_grace_sec = misfire_grace_sec
        self.scheduler: AsyncIOScheduler | None = None

    @classmethod
    def from_settings(cls, cache_service: EPGCacheService, settings) -> "EPGScheduler":
        return cls(
            cache_service,
            settings.epg_prefetch_cron,
            settings.epg_prefetch_days,
            settings.epg_prefetch_misfire_grace_sec,
        )

    async def _prefetch_job(self) -> None:
        """Background job that warms today and the following days"""
        logger.info("Scheduled EPG prefetch triggered")
        try:
            await prefetch_days(self.cache_service, utc_today(), self.prefetch_days)
        except Exception as e:
            logger.error(f"Exception in scheduled prefetch: {e}", exc_info=True)

    def start(self) -> None:
        """Start the scheduler with the EPG prefetch job"""
        if not self.cron:
            logger.info("EPG prefetch disabled (no cron configured)")
            return

        if self.scheduler and self.scheduler.running:
            logger.warning("Scheduler already running")
            return

        try:
            trigger = CronTrigger.from_crontab(self.cron, timezone='UTC')
        except (ValueError, KeyError) as exc:
            logger.error("Invalid cron expression '%s': %s", self.cron, exc)
            raise

        self.scheduler = AsyncIOScheduler(timezone='UTC')
        self.scheduler.add_job(
            self._prefetch_job,
            trigger=trigger,
            id='epg_prefetch',
            max_instances=1,
            coalesce=True,
            misfire_grace_time=self.misfire_grace_sec
        )

        self.scheduler.start()
        next_time = self.get_next_run_time()
        logger.info(
            "Scheduler started. Next prefetch: %s",
            next_time.isoformat() if next_time else "unknown"
        )

    def shutdown(self) -> None:
        """Shutdown the scheduler"""
        if self.scheduler and self.scheduler.running:
            self.scheduler.shutdown()
            logger.info("Scheduler stopped")
            self.scheduler = None

    @property
    def running(self) -> bool:
        return bool(self.scheduler and self.scheduler.running)

    def get_next_run_time(self) -> datetime | None:
        """Get next scheduled prefetch time"""
        if not self.scheduler:
            return None
        job = self.scheduler.get_job('epg_prefetch')
        return job.next_run_time if job else None
