"""
Scrape scheduler: daily cron trigger plus on-demand runs
"""
import os
import logging
import asyncio
from datetime import datetime, timezone
from typing import Dict, Optional, Set

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.cron import CronTrigger

from crawler.errors import ScrapeCancelled
from pipeline.integration import ScrapePipeline, ScrapeResult
from metrics import record_run

logger = logging.getLogger(__name__)

JOB_ID = "daily-scrape"
SCHEDULE_TIMEZONE = "Africa/Kigali"
DEFAULT_HOUR = 2
DEFAULT_MINUTE = 0
STOP_TIMEOUT_SECONDS = 5.0


def scheduler_disabled() -> bool:
    return os.getenv("DYPSE_DISABLE_SCHEDULER", "false").lower() == "true"


class ScrapeScheduler:
    """
    Owns the daily scrape trigger and any manually started runs.

    Created and torn down by the application lifespan. Every run, scheduled
    or manual, goes through _run_job, which logs and swallows failures so a
    bad run never takes down the process or the next tick.
    """

    def __init__(self, pipeline: ScrapePipeline, hour: int = DEFAULT_HOUR, minute: int = DEFAULT_MINUTE,
                 enabled: Optional[bool] = None):
        self.pipeline = pipeline
        self.hour = hour
        self.minute = minute
        self.enabled = (not scheduler_disabled()) if enabled is None else enabled
        self.scheduler = AsyncIOScheduler(timezone=SCHEDULE_TIMEZONE)
        self._cancel_event = asyncio.Event()
        self._tasks: Set[asyncio.Task] = set()
        self.last_run_at: Optional[datetime] = None
        self.last_result: Optional[ScrapeResult] = None
        self.last_error: Optional[str] = None

    def _trigger(self) -> CronTrigger:
        return CronTrigger(hour=self.hour, minute=self.minute, timezone=SCHEDULE_TIMEZONE)

    def start(self):
        """Register the daily job and start the scheduler. Safe to call twice."""
        if not self.enabled:
            logger.info("[orchestrator] Scheduler disabled (DYPSE_DISABLE_SCHEDULER=true)")
            return
        if self.scheduler.running:
            return

        self._cancel_event.clear()
        self.scheduler.add_job(
            self._scheduled_run,
            self._trigger(),
            id=JOB_ID,
            replace_existing=True,
            coalesce=True,
        )
        self.scheduler.start()
        logger.info(
            f"[orchestrator] Scheduler started: daily scrape at "
            f"{self.hour:02d}:{self.minute:02d} {SCHEDULE_TIMEZONE}"
        )

    def reschedule(self, hour: int, minute: int = 0):
        """Move the daily run to a new time of day, replacing the pending trigger."""
        if not (0 <= hour <= 23 and 0 <= minute <= 59):
            raise ValueError(f"Invalid schedule time {hour}:{minute}")
        self.hour = hour
        self.minute = minute
        if self.scheduler.get_job(JOB_ID) is not None:
            self.scheduler.reschedule_job(JOB_ID, trigger=self._trigger())
        logger.info(f"[orchestrator] Daily scrape rescheduled to {hour:02d}:{minute:02d} {SCHEDULE_TIMEZONE}")

    def next_run_time(self) -> Optional[datetime]:
        job = self.scheduler.get_job(JOB_ID)
        # Jobs added before start() have no next_run_time yet
        return getattr(job, 'next_run_time', None) if job else None

    def _spawn(self, trigger: str) -> asyncio.Task:
        task = asyncio.create_task(self._run_job(trigger=trigger))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    def trigger_now(self) -> asyncio.Task:
        """Start a run in the background and return without waiting for it."""
        task = self._spawn("manual")
        logger.info("[orchestrator] Manual scrape triggered")
        return task

    async def _scheduled_run(self) -> Optional[ScrapeResult]:
        # Tracked like manual runs so stop() waits for or cancels it
        return await self._spawn("scheduled")

    async def _run_job(self, trigger: str = "scheduled") -> Optional[ScrapeResult]:
        logger.info(f"[orchestrator] Running {trigger} scrape")
        self.last_run_at = datetime.now(timezone.utc)
        try:
            result = await self.pipeline.run(cancel_event=self._cancel_event)
        except ScrapeCancelled:
            logger.warning(f"[orchestrator] {trigger.capitalize()} scrape cancelled")
            self.last_error = "cancelled"
            record_run("cancelled")
            return None
        except Exception as e:
            logger.error(f"[orchestrator] {trigger.capitalize()} scrape failed: {e}", exc_info=True)
            self.last_error = str(e)
            record_run("failed")
            return None

        self.last_result = result
        self.last_error = None
        record_run("success")
        return result

    async def stop(self, timeout: float = STOP_TIMEOUT_SECONDS):
        """Cancel in-flight runs and shut the scheduler down."""
        logger.info("[orchestrator] Scheduler stopping...")
        self._cancel_event.set()
        if self.scheduler.running:
            self.scheduler.shutdown(wait=False)

        pending = list(self._tasks)
        if pending:
            done, still_running = await asyncio.wait(pending, timeout=timeout)
            for task in still_running:
                task.cancel()
            if still_running:
                await asyncio.gather(*still_running, return_exceptions=True)
        logger.info("[orchestrator] Scheduler stopped")

    @property
    def active_runs(self) -> int:
        return len(self._tasks)

    def status(self) -> Dict:
        next_run = self.next_run_time()
        return {
            "enabled": self.enabled,
            "running": self.scheduler.running,
            "next_run_time": next_run.isoformat() if next_run else None,
            "last_run_at": self.last_run_at.isoformat() if self.last_run_at else None,
            "last_result": self.last_result.to_dict() if self.last_result else None,
            "last_error": self.last_error,
            "active_runs": self.active_runs,
        }
