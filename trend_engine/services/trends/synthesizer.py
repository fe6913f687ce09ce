"""
Game synthesizer.

Dresses each generated outcome as a plausible game: date, matchup, box score,
line, total and pick text. Every value comes from the outcome's block of the
seeded stream, so a reconstructed game is re-derivable from the trend summary
and the reference date alone. The box score is settled against the pick so
the displayed game grades the way its result says.
"""
import math
import re
from datetime import date, timedelta
from enum import Enum
from typing import FrozenSet, List, Optional, Tuple

from trend_engine.models.results import Outcome, ReconstructedGame
from trend_engine.models.trends import BetType, CONCRETE_SPORTS, Sport, TrendSummary
from trend_engine.services.trends.random_stream import (
    OutcomeDraw,
    SYNTHESIS_DRAWS,
    take,
)
from trend_engine.services.trends.sport_config import get_profile

DEFAULT_LOOKBACK_DAYS = 1095
DEFAULT_WIN_UNITS = 0.91

_WORD = re.compile(r"[a-z]+")

_UNDERDOG_WORDS = frozenset({"dog", "dogs", "underdog", "underdogs"})
_FAVORITE_WORDS = frozenset({"fav", "favs", "favorite", "favorites", "favourite", "favourites"})
_FADE_WORDS = frozenset({"fade", "fades", "fading"})
_ROAD_WORDS = frozenset({"road", "away", "visitor", "visitors", "visiting"})
_HOME_WORDS = frozenset({"home"})


class PickSide(str, Enum):
    """Which side of a spread a trend backs."""
    HOME = "home"
    AWAY = "away"
    UNDERDOG = "underdog"
    FAVORITE = "favorite"


def _words(text: str) -> FrozenSet[str]:
    return frozenset(_WORD.findall(text.lower()))


def pick_side(trend_name: str) -> PickSide:
    """
    Read the backed side from a trend's name.

    Underdog and favorite keywords win over venue keywords. Fading the road
    side backs home and fading home backs the road; without keywords the home
    side is backed.
    """
    words = _words(trend_name)
    if words & _UNDERDOG_WORDS:
        return PickSide.UNDERDOG
    if words & _FAVORITE_WORDS:
        return PickSide.FAVORITE
    if words & _FADE_WORDS:
        if words & _ROAD_WORDS:
            return PickSide.HOME
        if words & _HOME_WORDS:
            return PickSide.AWAY
        return PickSide.HOME
    if words & _ROAD_WORDS:
        return PickSide.AWAY
    return PickSide.HOME


def _backs_under(trend_name: str) -> bool:
    """True when the name mentions unders (underdogs do not count)."""
    return any(
        word.startswith("under") and not word.startswith("underdog")
        for word in _words(trend_name)
    )


def format_line(line: float) -> str:
    """Signed spread text: "+3.5", "-7", "PK" for a pick'em."""
    if line == 0:
        return "PK"
    return format(line, "+g")


def format_total(total: float) -> str:
    return format(total, "g")


def pick_text(
    trend: TrendSummary,
    home_team: str,
    away_team: str,
    line: float,
    total: float,
) -> str:
    """
    Build the pick for a trend on one matchup.

    Args:
        trend: Trend being applied
        home_team: Home team name
        away_team: Away team name
        line: Home line (negative = home favored)
        total: Game total

    Returns:
        "<team> <signed line>" for spreads, "Over/Under <total>" for totals,
        the home team for moneylines
    """
    if trend.bet_type is BetType.TOTAL:
        side = "Under" if _backs_under(trend.name) else "Over"
        return f"{side} {format_total(total)}"
    if trend.bet_type is BetType.MONEYLINE:
        return home_team

    if backs_home(trend.name, line):
        return f"{home_team} {format_line(line)}"
    return f"{away_team} {format_line(-line)}"


def backs_home(trend_name: str, line: float) -> bool:
    """Whether a spread trend backs the home side at this home line."""
    side = pick_side(trend_name)
    if side is PickSide.UNDERDOG:
        return line >= 0
    if side is PickSide.FAVORITE:
        return line <= 0
    return side is PickSide.HOME


def units_for(result: Outcome, win_units: float = DEFAULT_WIN_UNITS) -> float:
    """Units returned by a one-unit bet at -110."""
    if result is Outcome.WIN:
        return win_units
    if result is Outcome.LOSS:
        return -1.0
    return 0.0


def resolve_sport(trend_sport: Sport, value: float) -> Sport:
    """Sport-agnostic trends get a concrete sport per game."""
    if trend_sport is Sport.ALL:
        return CONCRETE_SPORTS[int(value * len(CONCRETE_SPORTS))]
    return trend_sport


def resolve_teams(team_count: int, home_value: float, away_value: float) -> Tuple[int, int]:
    """Home and away indices; a collision shifts the away index by one."""
    home = int(home_value * team_count)
    away = int(away_value * team_count)
    if away == home:
        away = (away + 1) % team_count
    return home, away


def _settle(value: int, threshold: float, above: Optional[bool]) -> int:
    """
    Move value to the side of threshold it has to land on.

    above=True needs value > threshold, False needs value < threshold and None
    needs value == threshold (threshold is then a whole number). A value
    already on the right side is kept.
    """
    if above is None:
        return int(threshold)
    if above and value <= threshold:
        return math.floor(threshold) + 1
    if not above and value >= threshold:
        return math.ceil(threshold) - 1
    return value


def settle_box_score(
    trend: TrendSummary,
    result: Outcome,
    home_score: int,
    away_score: int,
    line: float,
    total: float,
) -> Tuple[int, int, float, float]:
    """
    Adjust a drawn box score so it grades the trend's pick as result.

    A push needs a whole number to land on, so a half-point line moves half a
    point toward zero and a half-point total moves down. Scores never go
    negative; the losing margin or the point sum is kept when shifting.

    Returns:
        (home_score, away_score, line, total)
    """
    covers = None if result is Outcome.PUSH else result is Outcome.WIN

    if trend.bet_type is BetType.TOTAL:
        if covers is None:
            total = float(math.floor(total))
        over = None if covers is None else covers != _backs_under(trend.name)
        points = _settle(home_score + away_score, total, over)
        away_score = points - home_score
        if away_score < 0:
            home_score, away_score = points - points // 2, points // 2
        return home_score, away_score, line, total

    if trend.bet_type is BetType.MONEYLINE:
        margin = _settle(home_score - away_score, 0, covers)
    else:
        if covers is None:
            line = float(math.trunc(line))
        if backs_home(trend.name, line):
            margin = _settle(home_score - away_score, -line, covers)
        else:
            margin = -_settle(away_score - home_score, line, covers)

    away_score = home_score - margin
    if away_score < 0:
        home_score, away_score = margin, 0
    return home_score, away_score, line, total


def synthesize(
    trend: TrendSummary,
    draw: OutcomeDraw,
    today: date,
    lookback_days: int = DEFAULT_LOOKBACK_DAYS,
    win_units: float = DEFAULT_WIN_UNITS,
) -> ReconstructedGame:
    """
    Build the game behind one outcome draw.

    Args:
        trend: Trend the game belongs to
        draw: Outcome draw; the synthesis draws follow draw.state
        today: Reference date, the newest possible game date
        lookback_days: Width of the date window
        win_units: Units returned on a win

    Returns:
        ReconstructedGame with id "<trend id>-<draw index>"
    """
    values, _ = take(draw.state, SYNTHESIS_DRAWS)
    (date_value, sport_value, home_value, away_value,
     home_score_value, away_score_value, line_value, total_value) = values

    sport = resolve_sport(trend.sport, sport_value)
    profile = get_profile(sport)
    home_index, away_index = resolve_teams(len(profile.teams), home_value, away_value)
    home_team = profile.teams[home_index]
    away_team = profile.teams[away_index]
    line = profile.pick_line(line_value)
    total = profile.pick_total(total_value)
    home_score, away_score, line, total = settle_box_score(
        trend,
        draw.result,
        profile.pick_score(home_score_value, profile.home_score),
        profile.pick_score(away_score_value, profile.away_score),
        line,
        total,
    )

    return ReconstructedGame(
        id=f"{trend.id}-{draw.index}",
        trend_id=trend.id,
        date=today - timedelta(days=int(date_value * lookback_days)),
        sport=sport,
        home_team=home_team,
        away_team=away_team,
        home_score=home_score,
        away_score=away_score,
        line=line,
        total=total,
        pick=pick_text(trend, home_team, away_team, line, total),
        result=draw.result,
        units_won=units_for(draw.result, win_units),
    )


def synthesize_all(
    trend: TrendSummary,
    draws: List[OutcomeDraw],
    today: date,
    lookback_days: int = DEFAULT_LOOKBACK_DAYS,
    win_units: float = DEFAULT_WIN_UNITS,
) -> List[ReconstructedGame]:
    """Synthesize every draw and order the games newest first."""
    games = [synthesize(trend, draw, today, lookback_days, win_units) for draw in draws]
    # sorted() is stable, so same-day games keep generation order
    return sorted(games, key=lambda game: game.date, reverse=True)
