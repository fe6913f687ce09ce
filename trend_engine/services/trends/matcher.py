"""
Live game matcher.

Applies the catalogue to one scheduled game: picks the candidate trends,
ranks them by their externally assigned confidence, and writes a concrete
recommendation for each on the game's own teams. summarize_matches() adds the
consensus: mean confidence and the recommendation most trends agree on.
"""
import logging
from typing import Callable, Dict, Iterable, List, Optional, Sequence, Tuple

from trend_engine.models.results import GameMatchResult, MatchedTrend, TopPick, WindowStats
from trend_engine.models.schedule import ScheduledGame
from trend_engine.models.trends import TrendSummary
from trend_engine.services.trends.random_stream import next_draw, seed_from_id
from trend_engine.services.trends.sport_config import get_profile
from trend_engine.services.trends.synthesizer import pick_text

logger = logging.getLogger(__name__)

DEFAULT_MATCH_LIMIT = 4
DEFAULT_HOT_STREAK_BONUS = 10

StatsProvider = Callable[[TrendSummary], WindowStats]


def candidate_pool(game: ScheduledGame, catalogue: Iterable[TrendSummary]) -> List[TrendSummary]:
    """Trends for the game's sport plus sport-agnostic proprietary trends, in catalogue order."""
    return [
        trend for trend in catalogue
        if trend.sport == game.sport or trend.is_proprietary
    ]


def edge_score(trend: TrendSummary, hot_streak_bonus: int = DEFAULT_HOT_STREAK_BONUS) -> int:
    """Confidence plus a bonus for trends on a hot streak."""
    return trend.confidence_score + (hot_streak_bonus if trend.hot_streak else 0)


def game_line_and_total(trend: TrendSummary, game: ScheduledGame) -> Tuple[float, float]:
    """
    Line and total to phrase a recommendation with.

    The game's quoted numbers are used when present. Missing ones are drawn
    from the sport band with a stream seeded from trend id plus game id, so the
    same trend on the same game always reads the same.
    """
    profile = get_profile(game.sport)
    state = seed_from_id(trend.id + game.id)
    line_value, state = next_draw(state)
    total_value, _ = next_draw(state)
    line = game.spread if game.spread is not None else profile.pick_line(line_value)
    total = game.total if game.total is not None else profile.pick_total(total_value)
    return line, total


def recommend(trend: TrendSummary, game: ScheduledGame) -> str:
    line, total = game_line_and_total(trend, game)
    return pick_text(trend, game.home.name, game.away.name, line, total)


def summarize_matches(game_id: str, matches: Sequence[MatchedTrend]) -> GameMatchResult:
    """
    Consensus over one game's matches.

    Recommendations are tallied in match order, so on a tied count the one
    seen first (the primary's, when it is in the tie) is the top pick.
    """
    if not matches:
        return GameMatchResult(game_id=game_id)

    tallies: Dict[str, List[int]] = {}
    for match in matches:
        tallies.setdefault(match.recommendation, []).append(match.trend.confidence_score)
    selection, scores = max(tallies.items(), key=lambda item: len(item[1]))

    return GameMatchResult(
        game_id=game_id,
        matches=tuple(matches),
        aggregate_confidence=sum(m.trend.confidence_score for m in matches) / len(matches),
        top_pick=TopPick(selection, sum(scores) / len(scores), len(scores)),
    )


class TrendMatcher:
    """
    Match trends to scheduled games.

    Usage:
        matcher = TrendMatcher(stats_for=lambda trend: WindowStats())
        matches = matcher.match(game, catalogue)
        primary = matches[0] if matches else None
    """

    def __init__(
        self,
        stats_for: StatsProvider,
        limit: int = DEFAULT_MATCH_LIMIT,
        hot_streak_bonus: int = DEFAULT_HOT_STREAK_BONUS,
    ):
        """
        Initialize the matcher.

        Args:
            stats_for: Windowed statistics shown with each match
            limit: Maximum matches per game
            hot_streak_bonus: Edge bonus for hot trends when choosing the primary
        """
        self.stats_for = stats_for
        self.limit = limit
        self.hot_streak_bonus = hot_streak_bonus

    def rank(self, game: ScheduledGame, catalogue: Iterable[TrendSummary]) -> List[TrendSummary]:
        """Top candidates by confidence; ties keep catalogue order."""
        pool = candidate_pool(game, catalogue)
        ranked = sorted(pool, key=lambda trend: trend.confidence_score, reverse=True)
        return ranked[:max(0, self.limit)]

    def match(self, game: ScheduledGame, catalogue: Iterable[TrendSummary]) -> List[MatchedTrend]:
        """
        Match one game against the catalogue.

        Args:
            game: Scheduled game
            catalogue: Trend summaries to choose from

        Returns:
            Primary match first, then the secondaries in rank order. Empty
            when nothing applies, which is a normal "no trends" result.
        """
        ranked = self.rank(game, catalogue)
        if not ranked:
            logger.debug(f"No trends apply to {game.sport.value} game {game.id}")
            return []

        primary_index: Optional[int] = None
        best_edge = None
        for index, trend in enumerate(ranked):
            score = edge_score(trend, self.hot_streak_bonus)
            if best_edge is None or score > best_edge:
                primary_index, best_edge = index, score

        ordered = [ranked[primary_index]] + ranked[:primary_index] + ranked[primary_index + 1:]
        return [
            MatchedTrend(
                trend=trend,
                game_id=game.id,
                recommendation=recommend(trend, game),
                stats=self.stats_for(trend),
                edge_score=edge_score(trend, self.hot_streak_bonus),
                is_primary=position == 0,
            )
            for position, trend in enumerate(ordered)
        ]

    def match_result(self, game: ScheduledGame, catalogue: Iterable[TrendSummary]) -> GameMatchResult:
        """match() plus the consensus over the matches."""
        return summarize_matches(game.id, self.match(game, catalogue))
