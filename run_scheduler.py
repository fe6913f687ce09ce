#!/usr/bin/env python3
"""
Background runner for the trend board refresh scheduler.

Polls the trend catalogue store and the schedule provider on their own
intervals and logs the matched board after every refresh.

Usage:
    python run_scheduler.py              # Run in foreground
    python run_scheduler.py --once       # Refresh once, log the board, exit
    python run_scheduler.py --list-jobs  # Show the refresh jobs and exit
    python run_scheduler.py --init-db    # Create catalogue tables, then run
"""
import asyncio
import argparse
import signal
import sys
import logging

from trend_engine.core.config import settings
from trend_engine.core.database import get_session_factory, init_db
from trend_engine.core.logging import configure_logging
from trend_engine.core.scheduler import RefreshJob, RefreshScheduler
from trend_engine.repositories.trend_repository import load_catalogue
from trend_engine.services.ingest.circuit_breaker import get_all_breaker_states
from trend_engine.services.ingest.poller import CollaboratorPoller, Snapshot
from trend_engine.services.ingest.schedule_client import ScheduleClient
from trend_engine.services.ingest.validator import IngestValidator
from trend_engine.services.trends.board import LiveBoard
from trend_engine.services.trends.engine import EngineOptions
from trend_engine.utils.timezone import central_today, iso_date_key

logger = logging.getLogger(__name__)


def build_board() -> tuple[LiveBoard, RefreshScheduler, ScheduleClient]:
    """Wire the catalogue and schedule pollers into a live board."""
    validator = IngestValidator.from_settings()
    client = ScheduleClient.from_settings(validator=validator)

    async def fetch_catalogue():
        return await asyncio.to_thread(load_catalogue, get_session_factory(), validator)

    async def fetch_schedule():
        return await client.fetch_schedule(settings.SCHEDULE_SPORTS, iso_date_key(central_today()))

    catalogue_poller = CollaboratorPoller("catalogue", fetch_catalogue)
    schedule_poller = CollaboratorPoller("schedule", fetch_schedule)
    board = LiveBoard(catalogue_poller, schedule_poller, EngineOptions.from_settings())

    def log_board(name: str, snapshot: Snapshot):
        view = board.view()
        if not view.available:
            logger.warning(f"Board unavailable after {name} refresh: waiting on {', '.join(view.unavailable)}")
            logger.warning(f"Circuit breakers: {get_all_breaker_states()}")
            return
        logger.info(f"Board: {view.matched_game_count}/{len(view.games)} games with matching trends")
        for game in view.games:
            result = view.results[game.id]
            if result.top_pick is not None:
                pick = result.top_pick
                logger.info(
                    f"{game.matchup}: {pick.selection} backed by {pick.supporting_trends} trend(s)"
                    f" at {pick.confidence:.0f} (all matches {result.aggregate_confidence:.0f})"
                )
            for match in result.matches:
                logger.debug(
                    f"{game.matchup}: {match.trend.name} -> {match.recommendation}"
                    f" (edge {match.edge_score})"
                )

    scheduler = RefreshScheduler(
        [
            RefreshJob(catalogue_poller, settings.CATALOGUE_POLL_SECONDS),
            RefreshJob(schedule_poller, settings.SCHEDULE_POLL_SECONDS),
        ],
        on_refresh=log_board,
        timezone=settings.SCHEDULE_TIMEZONE,
    )
    return board, scheduler, client


class SchedulerRunner:
    """Runner for the refresh scheduler."""

    def __init__(self, scheduler: RefreshScheduler, client: ScheduleClient):
        self.scheduler = scheduler
        self.client = client
        self.shutdown = asyncio.Event()

    async def start(self):
        """Start the scheduler and run until shutdown."""
        logger.info("🚀 Starting scheduler runner...")

        await self.scheduler.refresh_all()
        await self.scheduler.start()

        logger.info("✅ Scheduler is now running")
        logger.info("Press Ctrl+C to stop")

        # Setup signal handlers for graceful shutdown
        loop = asyncio.get_running_loop()
        for sig in (signal.SIGTERM, signal.SIGINT):
            loop.add_signal_handler(sig, self._set_shutdown)

        await self.shutdown.wait()

        await self.scheduler.stop()
        await self.client.close()
        logger.info("✅ Scheduler runner stopped")

    def _set_shutdown(self):
        logger.info("⏹️  Shutdown signal received")
        self.shutdown.set()


async def run_once(scheduler: RefreshScheduler, client: ScheduleClient) -> bool:
    """Refresh every collaborator once; True when all of them answered."""
    try:
        snapshots = await scheduler.refresh_all()
    finally:
        for job in scheduler.jobs:
            await job.poller.close()
        await client.close()
    return all(snapshot.available for snapshot in snapshots)


def list_jobs(scheduler: RefreshScheduler):
    print("=" * 60)
    print("REFRESH JOBS")
    print("=" * 60)
    for job in scheduler.jobs:
        print(f"📋 Refresh {job.poller.name}")
        print(f"   ID: refresh_{job.poller.name}")
        print(f"   Every: {job.interval_seconds}s")
    print()
    for name, state in get_all_breaker_states().items():
        print(f"🔌 Breaker {name}: {state}")
    print("=" * 60)


def main():
    """Main entry point."""
    parser = argparse.ArgumentParser(
        description='Run the trend board refresh scheduler'
    )
    parser.add_argument(
        '--once',
        action='store_true',
        help='Refresh every collaborator once, log the board and exit'
    )
    parser.add_argument(
        '--list-jobs',
        action='store_true',
        help='List the refresh jobs and exit'
    )
    parser.add_argument(
        '--init-db',
        action='store_true',
        help='Create the historical_trends table if it does not exist'
    )
    args = parser.parse_args()

    configure_logging(settings.LOG_LEVEL, settings.LOG_JSON)
    missing = settings.validate_required_settings()
    if missing:
        logger.error(f"❌ Missing settings: {', '.join(missing)}")
        return 1

    if args.init_db:
        init_db()
        logger.info("✅ Catalogue tables ready")

    _, scheduler, client = build_board()

    if args.list_jobs:
        list_jobs(scheduler)
        return 0

    if args.once:
        return 0 if asyncio.run(run_once(scheduler, client)) else 1

    runner = SchedulerRunner(scheduler, client)
    try:
        asyncio.run(runner.start())
    except KeyboardInterrupt:
        logger.info("🛑 Received interrupt, shutting down...")
        return 0
    except Exception as e:
        logger.error(f"❌ Scheduler error: {e}")
        return 1
    return 0


if __name__ == '__main__':
    sys.exit(main())
