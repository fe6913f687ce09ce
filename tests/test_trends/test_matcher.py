"""Tests for the live game matcher."""
import pytest

from trend_engine.models.results import MatchedTrend, TopPick, WindowStats
from trend_engine.services.trends.matcher import (
    TrendMatcher,
    candidate_pool,
    edge_score,
    game_line_and_total,
    recommend,
    summarize_matches,
)
from trend_engine.services.trends.sport_config import get_profile
from trend_engine.models.trends import Sport


def _matcher(**kwargs) -> TrendMatcher:
    return TrendMatcher(stats_for=lambda trend: WindowStats(), **kwargs)


class TestCandidatePool:
    """Which trends apply to a game."""

    def test_sport_and_proprietary(self, sample_catalogue, make_game):
        """Should take same-sport trends plus proprietary sport-agnostic ones."""
        pool = candidate_pool(make_game(sport="NFL"), sample_catalogue)

        assert [t.id for t in pool] == ["t1", "nfl-primetime-unders", "nfl-road-dogs", "all-prop"]

    def test_non_proprietary_all_trends_excluded(self, sample_catalogue, make_game):
        """Should leave out sport-agnostic trends outside the proprietary category."""
        pool = candidate_pool(make_game(sport="NHL"), sample_catalogue)

        assert [t.id for t in pool] == ["all-prop"]


class TestTrendMatcher:
    """Ranking, primary selection and recommendations."""

    # Ranking
    # ─────────────────────────────────────────────────────────────

    def test_ranked_by_confidence_and_limited(self, make_trend, make_game):
        """Should keep the four most confident trends."""
        catalogue = [make_trend(f"n{i}", confidenceScore=50 + i) for i in range(6)]

        matches = _matcher().match(make_game(), catalogue)

        assert len(matches) == 4
        assert [m.trend.id for m in matches] == ["n5", "n4", "n3", "n2"]

    def test_ties_keep_catalogue_order(self, make_trend, make_game):
        """Should rank equal confidence in catalogue order."""
        catalogue = [make_trend("a", confidenceScore=80), make_trend("b", confidenceScore=80)]

        matches = _matcher().match(make_game(), catalogue)

        assert [m.trend.id for m in matches] == ["a", "b"]
        assert matches[0].is_primary

    def test_limit_is_configurable(self, sample_catalogue, make_game):
        """Should honor a smaller match limit."""
        assert len(_matcher(limit=2).match(make_game(), sample_catalogue)) == 2

    # Primary selection
    # ─────────────────────────────────────────────────────────────

    def test_hot_streak_bonus_picks_primary(self, make_trend, make_game):
        """Should surface the best confidence-plus-hot-bonus trend first."""
        catalogue = [
            make_trend("steady", confidenceScore=80),
            make_trend("hot", confidenceScore=75, hotStreak=True),
            make_trend("cold", confidenceScore=60),
        ]

        matches = _matcher().match(make_game(), catalogue)

        assert [m.trend.id for m in matches] == ["hot", "steady", "cold"]
        assert [m.is_primary for m in matches] == [True, False, False]
        assert matches[0].edge_score == 85
        assert matches[1].edge_score == 80

    def test_edge_score(self, make_trend):
        """Should add the bonus only for hot trends."""
        assert edge_score(make_trend(confidenceScore=70, hotStreak=True)) == 80
        assert edge_score(make_trend(confidenceScore=70)) == 70
        assert edge_score(make_trend(confidenceScore=70, hotStreak=True), hot_streak_bonus=5) == 75

    def test_exactly_one_primary(self, sample_catalogue, make_game):
        """Should mark exactly one match as primary."""
        matches = _matcher().match(make_game(), sample_catalogue)

        assert sum(m.is_primary for m in matches) == 1

    # Totality
    # ─────────────────────────────────────────────────────────────

    def test_no_candidates(self, make_trend, make_game):
        """Should return an empty list when nothing applies."""
        catalogue = [make_trend("nba-only", sport="NBA"), make_trend("any", sport="ALL", category="rest")]

        assert _matcher().match(make_game(sport="NHL"), catalogue) == []
        assert _matcher().match(make_game(), []) == []

    def test_proprietary_only(self, make_trend, make_game):
        """Should match a lone proprietary trend as the primary."""
        catalogue = [
            make_trend("prop", sport="ALL", category="matchups_proprietary"),
            make_trend("nba", sport="NBA"),
        ]

        matches = _matcher().match(make_game(sport="NFL"), catalogue)

        assert len(matches) == 1
        assert matches[0].trend.id == "prop"
        assert matches[0].is_primary

    def test_stats_come_from_provider(self, make_trend, make_game):
        """Should attach the stats reported for each trend."""
        stats = WindowStats(wins=3, losses=1, win_rate=0.75, roi=44.0, total_units=1.73)
        matcher = TrendMatcher(stats_for=lambda trend: stats)

        matches = matcher.match(make_game(), [make_trend()])

        assert matches[0].stats is stats
        assert matches[0].game_id == "401"


class TestRecommendation:
    """Recommendation text on a real game."""

    def test_uses_quoted_spread(self, make_trend, make_game):
        """Should phrase the pick with the game's own teams and quoted line."""
        game = make_game(spread=-3.5, total=48.5)

        assert recommend(make_trend(name="Home teams after a bye"), game) == "Kansas City Chiefs -3.5"
        assert recommend(make_trend(name="Road dogs"), game) == "Buffalo Bills +3.5"
        assert recommend(make_trend(betType="total", name="Unders in wind"), game) == "Under 48.5"
        assert recommend(make_trend(betType="moneyline"), game) == "Kansas City Chiefs"

    def test_draws_missing_numbers_from_band(self, make_trend, make_game):
        """Should draw a line and total from the sport band when none are quoted."""
        game = make_game()
        trend = make_trend()
        profile = get_profile(Sport.NFL)

        line, total = game_line_and_total(trend, game)

        assert line in profile.lines
        assert total in profile.totals
        assert game_line_and_total(trend, game) == (line, total)

    def test_quoted_total_with_drawn_line(self, make_trend, make_game):
        """Should mix a quoted total with a drawn line."""
        line, total = game_line_and_total(make_trend(), make_game(total=44.0))

        assert total == 44.0
        assert line in get_profile(Sport.NFL).lines

    @pytest.mark.parametrize("sport", ["NFL", "NBA", "MLB", "NHL", "NCAAF", "NCAAB"])
    def test_every_sport(self, make_trend, make_game, sport):
        """Should produce a recommendation for every concrete sport."""
        trend = make_trend("prop", sport="ALL", category="matchups_proprietary", betType="total")

        matches = _matcher().match(make_game(sport=sport), [trend])

        assert matches[0].recommendation.startswith("Over ")


class TestSummarizeMatches:
    """Consensus over one game's matches."""

    @staticmethod
    def _match(trend, recommendation, primary=False):
        return MatchedTrend(
            trend=trend,
            game_id="401",
            recommendation=recommendation,
            stats=WindowStats(),
            edge_score=trend.confidence_score,
            is_primary=primary,
        )

    def test_most_common_recommendation_wins(self, make_trend):
        """Should pick the recommendation with the most supporting trends."""
        matches = [
            self._match(make_trend("a", confidenceScore=90), "Kansas City Chiefs -3", primary=True),
            self._match(make_trend("b", betType="total", confidenceScore=80), "Over 47"),
            self._match(make_trend("c", betType="total", confidenceScore=70), "Over 47"),
            self._match(make_trend("d", betType="moneyline", confidenceScore=60), "Kansas City Chiefs"),
        ]

        result = summarize_matches("401", matches)

        assert result.game_id == "401"
        assert result.primary is matches[0]
        assert result.aggregate_confidence == 75.0
        assert result.top_pick == TopPick("Over 47", 75.0, 2)
        assert [m.trend.id for m in result.spread_trends] == ["a"]
        assert [m.trend.id for m in result.total_trends] == ["b", "c"]
        assert [m.trend.id for m in result.moneyline_trends] == ["d"]

    def test_tie_goes_to_first_seen(self, make_trend):
        """Should keep the earlier recommendation on a tied count."""
        matches = [
            self._match(make_trend("a", confidenceScore=72), "Buffalo Bills +3", primary=True),
            self._match(make_trend("b", betType="total", confidenceScore=95), "Under 47"),
        ]

        assert summarize_matches("401", matches).top_pick == TopPick("Buffalo Bills +3", 72.0, 1)

    def test_no_matches(self):
        """Should report zero confidence and no top pick for an unmatched game."""
        result = summarize_matches("401", [])

        assert result.matches == ()
        assert result.primary is None
        assert result.aggregate_confidence == 0.0
        assert result.top_pick is None
        assert result.spread_trends == result.total_trends == result.moneyline_trends == ()

    def test_match_result_wraps_match(self, sample_catalogue, make_game):
        """Should summarize exactly what match() returns."""
        matcher = _matcher()
        game = make_game()

        result = matcher.match_result(game, sample_catalogue)

        assert list(result.matches) == matcher.match(game, sample_catalogue)
        assert result.top_pick.supporting_trends >= 1
