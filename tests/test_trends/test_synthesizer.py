"""Tests for game synthesis and pick text."""
from datetime import timedelta

import pytest

from trend_engine.models.results import Outcome
from trend_engine.models.trends import BetType, CONCRETE_SPORTS, Record, Sport
from trend_engine.services.trends.random_stream import generate, push_rate_for
from trend_engine.services.trends.sport_config import SPORT_PROFILES, get_profile
from trend_engine.services.trends.synthesizer import (
    PickSide,
    format_line,
    pick_side,
    pick_text,
    resolve_teams,
    settle_box_score,
    synthesize,
    synthesize_all,
    units_for,
)


def _games(trend, today, count=None):
    count = trend.all_time_sample_size if count is None else count
    draws = generate(trend.id, count, trend.all_time_record, push_rate_for(trend.bet_type))
    return synthesize_all(trend, draws, today)


def _grade(trend, game) -> Outcome:
    """Grade a game's pick against its own box score."""
    if trend.bet_type is BetType.TOTAL:
        side, number = game.pick.split(" ")
        edge = game.home_score + game.away_score - float(number)
        if side == "Under":
            edge = -edge
    elif trend.bet_type is BetType.MONEYLINE:
        edge = game.home_score - game.away_score
    else:
        team, line = game.pick.rsplit(" ", 1)
        points = 0.0 if line == "PK" else float(line)
        if team == game.home_team:
            edge = game.home_score - game.away_score + points
        else:
            edge = game.away_score - game.home_score + points
    if edge > 0:
        return Outcome.WIN
    if edge < 0:
        return Outcome.LOSS
    return Outcome.PUSH


class TestSportProfiles:
    """Per-sport bands."""

    def test_every_concrete_sport_has_a_profile(self):
        """Should cover every sport except the ALL sentinel."""
        assert set(SPORT_PROFILES) == set(CONCRETE_SPORTS)
        with pytest.raises(KeyError):
            get_profile(Sport.ALL)

    def test_nfl_bands(self):
        """Should use half-point spreads within a touchdown and 42-51 totals."""
        profile = get_profile(Sport.NFL)

        assert profile.lines[0] == -7 and profile.lines[-1] == 7
        assert 0.0 in profile.lines and 3.5 in profile.lines
        assert profile.totals[0] == 42 and profile.totals[-1] == 51

    def test_nhl_puck_line(self):
        """Should only offer the 1.5 puck line."""
        assert get_profile(Sport.NHL).lines == (-1.5, 1.5)

    def test_picks_stay_in_range(self):
        """Should map draws just below 1 onto the last choice."""
        profile = get_profile(Sport.NBA)

        assert profile.pick_line(0.999999) == 12
        assert profile.pick_total(0.0) == 210
        assert profile.pick_score(0.999999, profile.home_score) == 129


class TestPickText:
    """Pick text rules."""

    @pytest.mark.parametrize("name,side", [
        ("Home underdogs after a loss", PickSide.UNDERDOG),
        ("Road dogs in the snow", PickSide.UNDERDOG),
        ("Big favorites at home", PickSide.FAVORITE),
        ("Fade road teams on short rest", PickSide.HOME),
        ("Fade home teams after a blowout", PickSide.AWAY),
        ("Road teams off a bye", PickSide.AWAY),
        ("Division revenge spots", PickSide.HOME),
    ])
    def test_pick_side_keywords(self, name, side):
        """Should read the backed side from the trend name."""
        assert pick_side(name) is side

    def test_format_line(self):
        """Should sign lines and render zero as a pick'em."""
        assert format_line(3.5) == "+3.5"
        assert format_line(-7.0) == "-7"
        assert format_line(0.0) == "PK"

    def test_spread_underdog_takes_the_points(self, make_trend):
        """Should back whichever side is getting points."""
        trend = make_trend(name="Home underdogs")

        assert pick_text(trend, "Home", "Away", -3.5, 45) == "Away +3.5"
        assert pick_text(trend, "Home", "Away", 6.0, 45) == "Home +6"

    def test_spread_favorite_lays_the_points(self, make_trend):
        """Should back whichever side is laying points."""
        trend = make_trend(name="Road favorites")

        assert pick_text(trend, "Home", "Away", 2.5, 45) == "Away -2.5"
        assert pick_text(trend, "Home", "Away", -2.5, 45) == "Home -2.5"

    def test_spread_road_side(self, make_trend):
        """Should flip the home line for the away side."""
        trend = make_trend(name="Road teams off a bye")

        assert pick_text(trend, "Home", "Away", -4.0, 45) == "Away +4"

    def test_totals(self, make_trend):
        """Should pick Under only when the name says so."""
        under = make_trend(betType="total", name="Primetime UNDERS")
        over = make_trend(betType="total", name="Dome totals")

        assert pick_text(under, "Home", "Away", -3.0, 47.5) == "Under 47.5"
        assert pick_text(over, "Home", "Away", -3.0, 47.0) == "Over 47"

    def test_moneyline_backs_home(self, make_trend):
        """Should name the home team for moneylines."""
        trend = make_trend(betType="moneyline", name="Road dogs")

        assert pick_text(trend, "Home", "Away", 3.0, 45) == "Home"

    def test_units(self):
        """Should pay 0.91 on a win, lose one unit, and return nothing on a push."""
        assert units_for(Outcome.WIN) == 0.91
        assert units_for(Outcome.LOSS) == -1.0
        assert units_for(Outcome.PUSH) == 0.0


class TestSynthesize:
    """Whole reconstructed games."""

    def test_collision_shifts_away_team(self):
        """Should move the away index by one on a collision, wrapping around."""
        assert resolve_teams(10, 0.35, 0.31) == (3, 4)
        assert resolve_teams(10, 0.95, 0.99) == (9, 0)
        assert resolve_teams(10, 0.1, 0.5) == (1, 5)

    def test_game_fields(self, make_trend, today):
        """Should build plausible, internally consistent games."""
        trend = make_trend()
        profile = get_profile(Sport.NFL)

        for game in _games(trend, today):
            assert game.sport is Sport.NFL
            assert game.home_team != game.away_team
            assert game.home_team in profile.teams and game.away_team in profile.teams
            assert game.home_score >= 0 and game.away_score >= 0
            assert game.line in profile.lines and game.total in profile.totals
            assert today - timedelta(days=1095) < game.date <= today
            assert game.units_won == units_for(game.result)
            assert game.trend_id == "t1"

    def test_ids_follow_generation_index(self, make_trend, today):
        """Should name each game after its trend and draw index."""
        trend = make_trend()
        draws = generate(trend.id, 3, trend.all_time_record)

        assert [synthesize(trend, draw, today).id for draw in draws] == ["t1-0", "t1-1", "t1-2"]

    def test_sorted_newest_first(self, make_trend, today):
        """Should order games by date descending."""
        games = _games(make_trend(), today)
        dates = [game.date for game in games]

        assert dates == sorted(dates, reverse=True)

    def test_all_sport_trend_draws_concrete_sports(self, make_trend, today):
        """Should give every game of a sport-agnostic trend a concrete sport."""
        trend = make_trend("any-sport", sport="ALL", allTimeRecord="100-100", allTimeSampleSize=200)
        games = _games(trend, today)

        assert all(game.sport is not Sport.ALL for game in games)
        assert len({game.sport for game in games}) > 1
        for game in games:
            assert game.home_team in get_profile(game.sport).teams

    def test_results_follow_outcome_draws(self, make_trend, today):
        """Should carry each draw's outcome onto its game."""
        trend = make_trend()
        draws = generate(trend.id, 24, Record(wins=18, losses=6), 0.02)
        games = [synthesize(trend, draw, today) for draw in draws]

        assert [game.result for game in games] == [draw.result for draw in draws]


class TestBoxScoreSettlement:
    """Box scores that agree with the graded result."""

    def test_spread_home_side(self, make_trend):
        """Should give the backed favorite a covering, pushing or losing margin."""
        trend = make_trend(name="Big favorites at home")

        assert settle_box_score(trend, Outcome.WIN, 17, 33, -3.0, 45.0) == (17, 13, -3.0, 45.0)
        assert settle_box_score(trend, Outcome.LOSS, 17, 33, -3.0, 45.0) == (17, 33, -3.0, 45.0)
        assert settle_box_score(trend, Outcome.PUSH, 17, 33, -3.5, 45.0) == (17, 14, -3.0, 45.0)

    def test_spread_away_side(self, make_trend):
        """Should let the road side lose by less than the points it gets."""
        trend = make_trend(name="Road teams off a bye")

        assert settle_box_score(trend, Outcome.WIN, 30, 10, -4.0, 45.0) == (30, 27, -4.0, 45.0)

    def test_spread_scores_stay_non_negative(self, make_trend):
        """Should shift both scores up rather than post a negative score."""
        trend = make_trend(name="Home teams")

        assert settle_box_score(trend, Outcome.WIN, 1, 5, -7.0, 45.0) == (8, 0, -7.0, 45.0)

    def test_totals(self, make_trend):
        """Should move the point sum under, onto or over the total."""
        under = make_trend(betType="total", name="Primetime UNDERS")

        assert settle_box_score(under, Outcome.WIN, 30, 24, -3.0, 47.5) == (30, 17, -3.0, 47.5)
        assert settle_box_score(under, Outcome.PUSH, 30, 24, -3.0, 47.5) == (30, 17, -3.0, 47.0)
        assert settle_box_score(under, Outcome.WIN, 50, 20, -3.0, 47.5) == (24, 23, -3.0, 47.5)

    def test_moneyline(self, make_trend):
        """Should make the home team win outright on a win and lose on a loss."""
        trend = make_trend(betType="moneyline", name="Model edge plays")

        assert settle_box_score(trend, Outcome.WIN, 2, 4, 1.5, 8.0) == (2, 1, 1.5, 8.0)
        assert settle_box_score(trend, Outcome.LOSS, 5, 1, 1.5, 8.0) == (5, 6, 1.5, 8.0)

    @pytest.mark.parametrize("overrides", [
        {},
        {"name": "Road dogs off a loss", "allTimeRecord": "55-40", "allTimeSampleSize": 95},
        {"betType": "total", "name": "Primetime UNDERS", "allTimeRecord": "40-30-2", "allTimeSampleSize": 72},
        {"betType": "total", "name": "Dome overs", "sport": "NBA", "allTimeRecord": "30-30", "allTimeSampleSize": 60},
        {"betType": "moneyline", "sport": "ALL", "allTimeRecord": "300-200", "allTimeSampleSize": 500},
        {"sport": "ALL", "name": "Fade the public", "allTimeRecord": "100-100", "allTimeSampleSize": 200},
    ])
    def test_every_game_grades_as_its_result(self, make_trend, today, overrides):
        """Should grade each displayed pick, from its own score and line, as the game's result."""
        trend = make_trend("settle", **overrides)

        for game in _games(trend, today, min(trend.all_time_sample_size, 200)):
            assert game.home_score >= 0 and game.away_score >= 0
            assert _grade(trend, game) is game.result, game
