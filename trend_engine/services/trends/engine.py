"""
Trend engine query surface.

TrendEngine wraps a validated catalogue and answers the five engine queries
(list, reconstruct, windowed stats, roll-up, game matches) plus a per-game
consensus summary and a whole-schedule match. It performs no I/O: the
catalogue, the options and the reference date are handed in by the caller.

Unknown trend ids are not errors. Links to deleted trends stay shareable, so
they come back as found=False with empty games and zero stats.
"""
import logging
from dataclasses import dataclass
from datetime import date
from typing import Dict, Iterable, List, Optional, Tuple, Union

from trend_engine.models.results import (
    GameMatchResult,
    MatchedTrend,
    ReconstructedGame,
    ReconstructionResult,
    RollupStats,
    TimeWindow,
    WindowedStatsResult,
    WindowStats,
)
from trend_engine.models.schedule import ScheduledGame
from trend_engine.models.trends import Sport, TrendSummary
from trend_engine.services.trends.aggregator import aggregate, rollup
from trend_engine.services.trends.cache import AnalysisCache
from trend_engine.services.trends.matcher import TrendMatcher
from trend_engine.services.trends.random_stream import (
    DEFAULT_MAX_GAMES,
    DEFAULT_PUSH_RATE,
    generate,
    push_rate_for,
    reconstruct_count,
)
from trend_engine.services.trends.synthesizer import (
    DEFAULT_LOOKBACK_DAYS,
    DEFAULT_WIN_UNITS,
    synthesize,
)
from trend_engine.utils.timezone import central_today

logger = logging.getLogger(__name__)

WindowArg = Union[TimeWindow, str]


@dataclass(frozen=True)
class EngineOptions:
    """Engine knobs, passed in explicitly instead of read from globals."""
    max_games: int = DEFAULT_MAX_GAMES
    lookback_days: int = DEFAULT_LOOKBACK_DAYS
    push_rate: float = DEFAULT_PUSH_RATE
    win_units: float = DEFAULT_WIN_UNITS
    match_limit: int = 4
    hot_streak_bonus: int = 10
    match_stats_window: TimeWindow = TimeWindow.LAST_30_DAYS
    cache_ttl_seconds: int = 3600

    @classmethod
    def from_settings(cls, settings=None) -> "EngineOptions":
        """Build options from application settings (module settings by default)."""
        if settings is None:
            from trend_engine.core.config import settings
        return cls(
            max_games=settings.RECONSTRUCT_MAX_GAMES,
            lookback_days=settings.LOOKBACK_DAYS,
            push_rate=settings.PUSH_RATE,
            win_units=settings.WIN_UNITS,
            match_limit=settings.MATCH_LIMIT,
            hot_streak_bonus=settings.HOT_STREAK_BONUS,
            match_stats_window=TimeWindow(settings.MATCH_STATS_WINDOW),
            cache_ttl_seconds=settings.ANALYSIS_CACHE_TTL_SECONDS,
        )


class TrendEngine:
    """
    Deterministic analytics over a trend catalogue.

    Usage:
        engine = TrendEngine(catalogue, today=date(2026, 10, 19))
        result = engine.reconstruct_games("t1", 24)
        stats = engine.windowed_stats("t1", "30d").stats
        matches = engine.matched_trends_for_game(game)
    """

    def __init__(
        self,
        catalogue: Iterable[TrendSummary],
        options: Optional[EngineOptions] = None,
        cache: Optional[AnalysisCache] = None,
        today: Optional[date] = None,
    ):
        """
        Initialize the engine.

        Args:
            catalogue: Validated trend summaries; order is preserved
            options: Engine knobs (defaults match the -110 convention)
            cache: Analysis cache to share across engines; a private one is
                   created when omitted
            today: Fixed reference date; Central Time today when omitted
        """
        self.options = options or EngineOptions()
        self.cache = cache if cache is not None else AnalysisCache(self.options.cache_ttl_seconds)
        self._today = today

        self._catalogue: Tuple[TrendSummary, ...] = ()
        self._by_id: Dict[str, TrendSummary] = {}
        trends = []
        for trend in catalogue:
            if trend.id in self._by_id:
                logger.warning(f"Duplicate trend id {trend.id} in catalogue - keeping the first")
                continue
            self._by_id[trend.id] = trend
            trends.append(trend)
        self._catalogue = tuple(trends)

        self._matcher = TrendMatcher(
            stats_for=self._match_stats,
            limit=self.options.match_limit,
            hot_streak_bonus=self.options.hot_streak_bonus,
        )

    @property
    def catalogue(self) -> Tuple[TrendSummary, ...]:
        return self._catalogue

    def today(self) -> date:
        return self._today if self._today is not None else central_today()

    def get_trend(self, trend_id: str) -> Optional[TrendSummary]:
        return self._by_id.get(trend_id)

    # ========================================================================
    # Catalogue queries
    # ========================================================================

    def list_trends(
        self,
        sport: Optional[Union[Sport, str]] = None,
        *,
        category: Optional[str] = None,
        hot_only: bool = False,
        min_confidence: int = 0,
        team: Optional[str] = None,
    ) -> List[TrendSummary]:
        """
        Filter the catalogue without re-sorting it.

        Args:
            sport: Exact sport match (Sport.ALL selects sport-agnostic trends)
            category: Exact category match
            hot_only: Only trends flagged as on a hot streak
            min_confidence: Minimum confidence score
            team: Case-insensitive text searched in name and description

        Returns:
            Matching trends in catalogue order
        """
        if isinstance(sport, str):
            sport = Sport(sport.strip().upper())
        needle = team.strip().lower() if team else None

        trends = []
        for trend in self._catalogue:
            if sport is not None and trend.sport is not sport:
                continue
            if category is not None and trend.category != category:
                continue
            if hot_only and not trend.hot_streak:
                continue
            if trend.confidence_score < min_confidence:
                continue
            if needle and needle not in f"{trend.name} {trend.description}".lower():
                continue
            trends.append(trend)
        return trends

    # ========================================================================
    # Reconstruction and windowed statistics
    # ========================================================================

    def _full_history(self, trend: TrendSummary, today: date) -> Tuple[ReconstructedGame, ...]:
        """
        Every game the trend can show, in generation order.

        Outcome streams are prefix-stable, so any smaller reconstruction is a
        prefix of this one and a single cache entry serves every count.
        """
        key = (
            trend.id,
            str(trend.all_time_record),
            trend.all_time_sample_size,
            trend.sport,
            trend.bet_type,
            trend.name,
            today,
            self.options,
        )
        cached = self.cache.get(trend.id, key)
        if cached is not None:
            return cached

        draws = generate(
            trend.id,
            self.options.max_games,
            trend.all_time_record,
            push_rate_for(trend.bet_type, self.options.push_rate),
            sample_size=trend.all_time_sample_size,
            cap=self.options.max_games,
        )
        games = tuple(
            synthesize(trend, draw, today, self.options.lookback_days, self.options.win_units)
            for draw in draws
        )
        self.cache.put(trend.id, key, games)
        return games

    def _history(self, trend: TrendSummary, requested: int, today: date) -> List[ReconstructedGame]:
        count = reconstruct_count(requested, trend.all_time_sample_size, self.options.max_games)
        games = self._full_history(trend, today)[:count]
        # stable sort keeps generation order among same-day games
        return sorted(games, key=lambda game: game.date, reverse=True)

    def reconstruct_games(self, trend_id: str, count: int) -> ReconstructionResult:
        """
        Rebuild a trend's game history, newest first.

        Args:
            trend_id: Trend identifier
            count: Requested number of games; clamped to the trend's sample
                   size and the engine's cap

        Returns:
            ReconstructionResult; found is False for unknown ids
        """
        trend = self._by_id.get(trend_id)
        if trend is None:
            logger.debug(f"reconstruct_games: unknown trend {trend_id}")
            return ReconstructionResult(trend_id=trend_id, found=False)
        games = self._history(trend, count, self.today())
        return ReconstructionResult(trend_id=trend_id, found=True, games=tuple(games))

    def _stats_for(self, trend: TrendSummary, window: TimeWindow, today: date) -> WindowStats:
        # same games, same order as reconstruct_games, so ROI sums identically
        games = self._history(trend, self.options.max_games, today)
        return aggregate(games, window, today)

    def windowed_stats(self, trend_id: str, window: WindowArg) -> WindowedStatsResult:
        """
        Statistics of a trend's reconstructed history over a trailing window.

        Args:
            trend_id: Trend identifier
            window: TimeWindow or its value ("30d", "1y", "all", ...)

        Returns:
            WindowedStatsResult; found is False (zero stats) for unknown ids

        Raises:
            ValueError: if window is not a known window value
        """
        window = TimeWindow(window)
        trend = self._by_id.get(trend_id)
        if trend is None:
            logger.debug(f"windowed_stats: unknown trend {trend_id}")
            return WindowedStatsResult(trend_id=trend_id, window=window, found=False)
        stats = self._stats_for(trend, window, self.today())
        return WindowedStatsResult(trend_id=trend_id, window=window, found=True, stats=stats)

    def system_rollup(self, window: WindowArg) -> RollupStats:
        """Pick-weighted totals across the whole catalogue for one window."""
        window = TimeWindow(window)
        today = self.today()
        return rollup(self._stats_for(trend, window, today) for trend in self._catalogue)

    # ========================================================================
    # Live matching
    # ========================================================================

    def _match_stats(self, trend: TrendSummary) -> WindowStats:
        return self._stats_for(trend, self.options.match_stats_window, self.today())

    def matched_trends_for_game(self, game: ScheduledGame) -> List[MatchedTrend]:
        """Ranked trend matches for one game, primary first (at most match_limit)."""
        return self._matcher.match(game, self._catalogue)

    def match_schedule(self, games: Iterable[ScheduledGame]) -> Dict[str, List[MatchedTrend]]:
        """Matches for every game on a schedule, keyed by game id."""
        return {game.id: self.matched_trends_for_game(game) for game in games}

    def match_result_for_game(self, game: ScheduledGame) -> GameMatchResult:
        """
        Matches for one game with their consensus: mean confidence, the top
        pick and its supporting count, and the matches grouped by bet type.
        """
        return self._matcher.match_result(game, self._catalogue)

    def match_schedule_results(self, games: Iterable[ScheduledGame]) -> Dict[str, GameMatchResult]:
        """match_result_for_game for every game on a schedule, keyed by game id."""
        return {game.id: self.match_result_for_game(game) for game in games}
