"""Tests for collaborator pollers, the refresh scheduler and the live board."""
import asyncio
from unittest.mock import AsyncMock

import pytest

from trend_engine.core.exceptions import ProviderUnavailableError
from trend_engine.core.logging import get_refresh_id
from trend_engine.core.scheduler import RefreshJob, RefreshScheduler
from trend_engine.services.ingest.poller import CollaboratorPoller
from trend_engine.services.trends.board import LiveBoard


class TestCollaboratorPoller:
    """Supersede, cancel and snapshot behaviour."""

    @pytest.mark.asyncio
    async def test_initial_snapshot_unavailable(self):
        """Should start without a usable snapshot."""
        poller = CollaboratorPoller("schedule", AsyncMock(return_value=[]))

        assert not poller.snapshot.available
        assert poller.snapshot.value is None

    @pytest.mark.asyncio
    async def test_successful_refresh(self):
        """Should store the fetched value with a timestamp."""
        fetch = AsyncMock(return_value=["game"])
        poller = CollaboratorPoller("schedule", fetch)

        snapshot = await poller.refresh()

        assert snapshot.available
        assert snapshot.value == ["game"]
        assert snapshot.fetched_at is not None
        assert poller.snapshot is snapshot
        fetch.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_failed_refresh_marks_unavailable(self):
        """Should mark the snapshot unavailable instead of storing an empty value."""
        fetch = AsyncMock(side_effect=[["game"], ProviderUnavailableError("schedule", "503")])
        poller = CollaboratorPoller("schedule", fetch)

        await poller.refresh()
        snapshot = await poller.refresh()

        assert not snapshot.available
        assert snapshot.value is None
        assert "503" in snapshot.error

    @pytest.mark.asyncio
    async def test_unexpected_error_marks_unavailable(self):
        """Should turn an error the fetch did not anticipate into an unavailable snapshot."""
        fetch = AsyncMock(side_effect=[["game"], AttributeError("'str' object has no attribute 'get'")])
        poller = CollaboratorPoller("schedule", fetch)

        await poller.refresh()
        snapshot = await poller.refresh()

        assert not snapshot.available
        assert snapshot.value is None
        assert snapshot.error.startswith("AttributeError")
        assert poller.snapshot is snapshot
        assert not poller.in_flight

    @pytest.mark.asyncio
    async def test_new_refresh_supersedes_in_flight(self):
        """Should cancel the running fetch when a new refresh starts."""
        started = asyncio.Event()
        release = asyncio.Event()
        calls = []

        async def fetch():
            calls.append(len(calls))
            if len(calls) == 1:
                started.set()
                await release.wait()
                return "stale"
            return "fresh"

        poller = CollaboratorPoller("catalogue", fetch)
        first = asyncio.create_task(poller.refresh())
        await started.wait()

        second = await poller.refresh()
        release.set()
        first_result = await first

        assert second.value == "fresh"
        assert first_result.value != "stale"
        assert poller.snapshot.value == "fresh"
        assert not poller.in_flight

    @pytest.mark.asyncio
    async def test_close_cancels_in_flight(self):
        """Should cancel a running fetch on close."""
        started = asyncio.Event()
        cancelled = []

        async def fetch():
            started.set()
            try:
                await asyncio.sleep(60)
            except asyncio.CancelledError:
                cancelled.append(True)
                raise

        poller = CollaboratorPoller("schedule", fetch)
        pending = asyncio.create_task(poller.refresh())
        await started.wait()

        await poller.close()
        snapshot = await pending

        assert cancelled == [True]
        assert not snapshot.available
        assert not poller.in_flight

    @pytest.mark.asyncio
    async def test_close_when_idle(self):
        """Should be safe to close without a fetch in flight."""
        poller = CollaboratorPoller("schedule", AsyncMock(return_value=[]))

        await poller.close()
        await poller.close()

    @pytest.mark.asyncio
    async def test_refresh_id_scoped_to_fetch(self):
        """Should stamp a refresh id during the fetch only."""
        seen = []

        async def fetch():
            seen.append(get_refresh_id())
            return []

        await CollaboratorPoller("schedule", fetch).refresh()

        assert seen[0] != ""
        assert get_refresh_id() == ""


class TestRefreshScheduler:
    """Interval jobs over pollers."""

    @pytest.mark.asyncio
    async def test_jobs_never_overlap(self):
        """Should register one non-overlapping, coalescing job per poller."""
        pollers = [
            CollaboratorPoller("catalogue", AsyncMock(return_value=[])),
            CollaboratorPoller("schedule", AsyncMock(return_value=[])),
        ]
        scheduler = RefreshScheduler([RefreshJob(pollers[0], 300), RefreshJob(pollers[1], 60)])

        await scheduler.start()
        try:
            jobs = {job.id: job for job in scheduler.scheduler.get_jobs()}
            assert set(jobs) == {"refresh_catalogue", "refresh_schedule"}
            assert all(job.max_instances == 1 and job.coalesce for job in jobs.values())
        finally:
            await scheduler.stop()

        assert not scheduler.running

    @pytest.mark.asyncio
    async def test_refresh_all_reports_each_snapshot(self):
        """Should refresh every poller and hand each snapshot to the callback."""
        reported = []
        pollers = [
            CollaboratorPoller("catalogue", AsyncMock(return_value=["trend"])),
            CollaboratorPoller("schedule", AsyncMock(side_effect=ProviderUnavailableError("schedule", "down"))),
        ]
        scheduler = RefreshScheduler(
            [RefreshJob(p, 60) for p in pollers],
            on_refresh=lambda name, snapshot: reported.append((name, snapshot.available)),
        )

        snapshots = await scheduler.refresh_all()

        assert [s.available for s in snapshots] == [True, False]
        assert sorted(reported) == [("catalogue", True), ("schedule", False)]


class TestLiveBoard:
    """Board assembly from poller snapshots."""

    @pytest.mark.asyncio
    async def test_unavailable_until_both_succeed(self, sample_catalogue, make_game, today):
        """Should refuse to build a board from a failed or missing fetch."""
        catalogue = CollaboratorPoller("catalogue", AsyncMock(return_value=sample_catalogue))
        schedule = CollaboratorPoller(
            "schedule",
            AsyncMock(side_effect=[ProviderUnavailableError("schedule", "timeout"), [make_game()]]),
        )
        board = LiveBoard(catalogue, schedule, today=today)

        assert board.view().unavailable == ("catalogue", "schedule")

        await catalogue.refresh()
        await schedule.refresh()
        view = board.view()
        assert not view.available
        assert view.unavailable == ("schedule",)
        assert view.matches == {}

        await schedule.refresh()
        view = board.view()
        assert view.available
        assert list(view.matches) == ["401"]
        assert view.matches["401"][0].is_primary
        assert view.matched_game_count == 1
        assert view.results["401"].primary is view.matches["401"][0]
        assert view.results["401"].top_pick is not None

    @pytest.mark.asyncio
    async def test_engine_rebuilt_on_new_catalogue(self, sample_catalogue, make_trend, today):
        """Should rebuild the engine only when a new catalogue snapshot arrives."""
        fetch = AsyncMock(side_effect=[sample_catalogue, [make_trend("only")]])
        catalogue = CollaboratorPoller("catalogue", fetch)
        board = LiveBoard(catalogue, CollaboratorPoller("schedule", AsyncMock(return_value=[])), today=today)

        await catalogue.refresh()
        first = board.engine()
        assert board.engine() is first

        await catalogue.refresh()
        second = board.engine()
        assert second is not first
        assert [t.id for t in second.catalogue] == ["only"]
        assert second.cache is first.cache
