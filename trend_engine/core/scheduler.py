"""
Refresh scheduler for collaborator pollers.

Each poller gets one interval job. Jobs never overlap (max_instances=1) and
missed runs collapse into one (coalesce); within a job the poller itself
guarantees that a new fetch supersedes any fetch still in flight.

Scheduler: APScheduler (AsyncIOScheduler)
"""
import asyncio
import logging
from dataclasses import dataclass
from typing import Awaitable, Callable, List, Optional, Sequence

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.interval import IntervalTrigger

from trend_engine.services.ingest.poller import CollaboratorPoller, Snapshot

logger = logging.getLogger(__name__)

RefreshCallback = Callable[[str, Snapshot], Optional[Awaitable[None]]]


@dataclass(frozen=True)
class RefreshJob:
    """A poller and how often to refresh it."""
    poller: CollaboratorPoller
    interval_seconds: int


class RefreshScheduler:
    """
    Periodically refresh collaborator pollers.

    Usage:
        scheduler = RefreshScheduler([RefreshJob(schedule_poller, 60)], on_refresh=log_board)
        await scheduler.start()
        ...
        await scheduler.stop()
    """

    def __init__(
        self,
        jobs: Sequence[RefreshJob],
        on_refresh: Optional[RefreshCallback] = None,
        timezone: str = "America/Chicago",
    ):
        self.jobs: List[RefreshJob] = list(jobs)
        self.on_refresh = on_refresh
        self.timezone = timezone
        self.scheduler: Optional[AsyncIOScheduler] = None
        self.running = False

    async def start(self):
        """Start the scheduler (must be called from a running event loop)."""
        if self.running:
            logger.warning("Refresh scheduler already running")
            return

        self.scheduler = AsyncIOScheduler(
            timezone=self.timezone,
            job_defaults={
                'coalesce': True,  # Combine missed runs into one
                'max_instances': 1,  # Only one instance of each job
                'misfire_grace_time': 60,
            }
        )
        for job in self.jobs:
            self.scheduler.add_job(
                self.tick,
                trigger=IntervalTrigger(seconds=job.interval_seconds),
                args=[job.poller],
                id=f"refresh_{job.poller.name}",
                name=f"Refresh {job.poller.name}",
            )
            logger.info(f"📅 Scheduled: {job.poller.name} refresh (every {job.interval_seconds}s)")

        self.scheduler.start()
        self.running = True
        logger.info("✅ Refresh scheduler started with %d jobs", len(self.scheduler.get_jobs()))

    async def stop(self):
        """Stop the scheduler and cancel any fetch still in flight."""
        if not self.running:
            return
        self.scheduler.shutdown(wait=False)
        self.running = False
        for job in self.jobs:
            await job.poller.close()
        logger.info("✅ Refresh scheduler stopped")

    async def tick(self, poller: CollaboratorPoller) -> Snapshot:
        """Refresh one poller and report the snapshot."""
        snapshot = await poller.refresh()
        if snapshot.available:
            logger.info(f"✅ {poller.name} refreshed")
        else:
            logger.warning(f"❌ {poller.name} unavailable: {snapshot.error}")
        if self.on_refresh is not None:
            result = self.on_refresh(poller.name, snapshot)
            if asyncio.iscoroutine(result):
                await result
        return snapshot

    async def refresh_all(self) -> List[Snapshot]:
        """Refresh every poller once, concurrently."""
        return list(await asyncio.gather(*(self.tick(job.poller) for job in self.jobs)))
