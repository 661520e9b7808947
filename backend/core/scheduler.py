"""Collector scheduler: APScheduler-driven Stopped/Running state machine."""

import logging
from datetime import datetime, timezone
from enum import Enum

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.interval import IntervalTrigger

from services.collector import CollectorService

logger = logging.getLogger(__name__)

COLLECTOR_JOB_ID = "collector"


class CollectorState(str, Enum):
    STOPPED = "stopped"
    RUNNING = "running"


class CollectorScheduler:
    """Owns the recurring collection job.

    start() and stop() are the only state transitions and both are idempotent.
    Stopping removes the job; a cycle already in flight runs to completion.
    """

    def __init__(self, collector_svc: CollectorService, interval_minutes: int = 5):
        self.collector_svc = collector_svc
        self.interval_minutes = interval_minutes
        self.scheduler = AsyncIOScheduler(timezone=timezone.utc)
        self.state = CollectorState.STOPPED

    async def start(self) -> bool:
        """Schedule the collector and fire the first cycle right away."""
        if self.state == CollectorState.RUNNING:
            logger.info("Data collector is already running")
            return False

        if not self.scheduler.running:
            self.scheduler.start()

        self.scheduler.add_job(
            self._run_collector,
            trigger=IntervalTrigger(minutes=self.interval_minutes),
            id=COLLECTOR_JOB_ID,
            name="Market Collector",
            replace_existing=True,
            next_run_time=datetime.now(timezone.utc),
            max_instances=1,
            coalesce=True,
            misfire_grace_time=60,
        )
        self.state = CollectorState.RUNNING
        logger.info("Started data collector: interval=%dm", self.interval_minutes)
        return True

    async def stop(self) -> bool:
        """Cancel future cycles without interrupting one in progress."""
        if self.state == CollectorState.STOPPED:
            return False

        if self.scheduler.get_job(COLLECTOR_JOB_ID):
            self.scheduler.remove_job(COLLECTOR_JOB_ID)
        self.state = CollectorState.STOPPED
        logger.info("Stopped data collector")
        return True

    async def shutdown(self):
        """Stop the collector and the underlying scheduler."""
        await self.stop()
        if self.scheduler.running:
            self.scheduler.shutdown(wait=False)
            logger.info("Scheduler shut down")

    async def run_now(self) -> dict:
        """Trigger an immediate collection cycle."""
        return await self._run_collector()

    def get_status(self) -> dict:
        job = self.scheduler.get_job(COLLECTOR_JOB_ID) if self.scheduler.running else None
        return {
            "state": self.state.value,
            "interval_minutes": self.interval_minutes,
            "next_run_time": (
                job.next_run_time.isoformat() if job and job.next_run_time else None
            ),
            "last_run_utc": (
                self.collector_svc.last_run_utc.isoformat()
                if self.collector_svc.last_run_utc
                else None
            ),
            "last_run_stats": self.collector_svc.last_run_stats,
            "is_collecting": self.collector_svc.is_running,
        }

    async def _run_collector(self) -> dict:
        logger.info("Starting collector run")
        return await self.collector_svc.run()
