"""
Collaborator poller.

Wraps one collaborator fetch so that at most one fetch is in flight: a new
refresh cancels the one still running instead of queueing behind it, and
close() cancels whatever is running on teardown. The outcome of the latest
completed fetch is kept as a Snapshot. Any error other than cancellation leaves
an unavailable snapshot behind, never a crashed job.
"""
import asyncio
import logging
import uuid
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Awaitable, Callable, Generic, Optional, TypeVar

from trend_engine.core.exceptions import ProviderUnavailableError
from trend_engine.core.logging import clear_refresh_id, set_refresh_id
from trend_engine.core.metrics import (
    provider_fetch_failure_total,
    provider_fetch_success_total,
    provider_fetch_superseded_total,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass(frozen=True)
class Snapshot(Generic[T]):
    """Result of the latest completed fetch."""
    available: bool
    value: Optional[T] = None
    fetched_at: Optional[datetime] = None
    error: Optional[str] = None


class CollaboratorPoller(Generic[T]):
    """
    Supersede-on-refresh wrapper around an async fetch.

    Usage:
        poller = CollaboratorPoller("schedule", lambda: client.fetch_schedule(sports, day))
        snapshot = await poller.refresh()
        if snapshot.available:
            games = snapshot.value
        await poller.close()
    """

    def __init__(self, name: str, fetch: Callable[[], Awaitable[T]]):
        """
        Initialize the poller.

        Args:
            name: Collaborator name used in logs and metrics
            fetch: Coroutine factory; must raise ProviderUnavailableError on
                   failure rather than return an empty value
        """
        self.name = name
        self._fetch = fetch
        self._task: Optional[asyncio.Task] = None
        self._snapshot: Snapshot[T] = Snapshot(available=False, error="not fetched yet")

    @property
    def snapshot(self) -> Snapshot[T]:
        return self._snapshot

    @property
    def in_flight(self) -> bool:
        return self._task is not None and not self._task.done()

    async def _run(self) -> Snapshot[T]:
        token = set_refresh_id(uuid.uuid4().hex[:12])
        try:
            value = await self._fetch()
        except ProviderUnavailableError as e:
            provider_fetch_failure_total.labels(provider=self.name, error_type="unavailable").inc()
            logger.warning(f"{self.name} fetch failed: {e}")
            return self._mark_unavailable(str(e))
        except Exception as e:
            provider_fetch_failure_total.labels(provider=self.name, error_type="unexpected").inc()
            logger.error(f"{self.name} fetch raised {type(e).__name__}: {e}", exc_info=True)
            return self._mark_unavailable(f"{type(e).__name__}: {e}")
        finally:
            clear_refresh_id(token)

        provider_fetch_success_total.labels(provider=self.name).inc()
        self._snapshot = Snapshot(available=True, value=value, fetched_at=datetime.now(timezone.utc))
        return self._snapshot

    def _mark_unavailable(self, error: str) -> Snapshot[T]:
        self._snapshot = Snapshot(available=False, fetched_at=datetime.now(timezone.utc), error=error)
        return self._snapshot

    def _supersede(self) -> None:
        if self.in_flight:
            self._task.cancel()
            provider_fetch_superseded_total.labels(provider=self.name).inc()
            logger.info(f"{self.name} fetch superseded by a newer refresh")

    async def refresh(self) -> Snapshot[T]:
        """
        Start a fresh fetch, cancelling any fetch still in flight.

        Returns:
            The new snapshot, or the current one if this fetch was itself
            superseded before finishing
        """
        self._supersede()
        task = asyncio.create_task(self._run())
        self._task = task
        await asyncio.wait({task})
        if task.cancelled():
            return self._snapshot
        return task.result()

    async def close(self) -> None:
        """Cancel the in-flight fetch, if any, and wait for it to unwind."""
        task = self._task
        if task is not None and not task.done():
            task.cancel()
            await asyncio.wait({task})
            logger.debug(f"{self.name} poller closed with a fetch in flight")
        self._task = None
