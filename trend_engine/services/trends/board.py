"""
Live board: the latest catalogue and schedule snapshots, matched.

The board never feeds the engine data from a failed fetch. If either
collaborator has no successful snapshot it reports itself unavailable, and
callers show "nothing available right now" instead of an empty board.
"""
import logging
from dataclasses import dataclass, field
from datetime import date
from typing import Dict, List, Optional, Sequence

from trend_engine.models.results import GameMatchResult, MatchedTrend
from trend_engine.models.schedule import ScheduledGame
from trend_engine.models.trends import TrendSummary
from trend_engine.services.ingest.poller import CollaboratorPoller, Snapshot
from trend_engine.services.trends.cache import AnalysisCache
from trend_engine.services.trends.engine import EngineOptions, TrendEngine

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class BoardView:
    """One rendering of the live board."""
    available: bool
    matches: Dict[str, List[MatchedTrend]] = field(default_factory=dict)
    results: Dict[str, GameMatchResult] = field(default_factory=dict)  # matches plus consensus
    games: Sequence[ScheduledGame] = ()
    unavailable: Sequence[str] = ()  # collaborators without a usable snapshot

    @property
    def matched_game_count(self) -> int:
        return sum(1 for matches in self.matches.values() if matches)


class LiveBoard:
    """
    Combine the catalogue and schedule pollers into per-game matches.

    The engine is rebuilt only when a new catalogue snapshot arrives; the
    analysis cache is shared across rebuilds.
    """

    def __init__(
        self,
        catalogue_poller: CollaboratorPoller[Sequence[TrendSummary]],
        schedule_poller: CollaboratorPoller[Sequence[ScheduledGame]],
        options: Optional[EngineOptions] = None,
        cache: Optional[AnalysisCache] = None,
        today: Optional[date] = None,
    ):
        self.catalogue_poller = catalogue_poller
        self.schedule_poller = schedule_poller
        self.options = options or EngineOptions()
        self.cache = cache if cache is not None else AnalysisCache(self.options.cache_ttl_seconds)
        self._today = today
        self._engine: Optional[TrendEngine] = None
        self._engine_snapshot: Optional[Snapshot] = None

    def engine(self) -> Optional[TrendEngine]:
        """Engine over the latest successful catalogue, None while unavailable."""
        snapshot = self.catalogue_poller.snapshot
        if not snapshot.available:
            return None
        if self._engine is None or self._engine_snapshot is not snapshot:
            self._engine = TrendEngine(snapshot.value, self.options, self.cache, self._today)
            self._engine_snapshot = snapshot
            logger.info(f"Trend engine rebuilt with {len(self._engine.catalogue)} trends")
        return self._engine

    def view(self) -> BoardView:
        """Match the latest schedule against the latest catalogue."""
        unavailable = [
            poller.name
            for poller in (self.catalogue_poller, self.schedule_poller)
            if not poller.snapshot.available
        ]
        if unavailable:
            logger.info(f"Live board unavailable: no data from {', '.join(unavailable)}")
            return BoardView(available=False, unavailable=tuple(unavailable))

        engine = self.engine()
        games = tuple(self.schedule_poller.snapshot.value)
        results = engine.match_schedule_results(games)
        return BoardView(
            available=True,
            matches={game_id: list(result.matches) for game_id, result in results.items()},
            results=results,
            games=games,
        )
