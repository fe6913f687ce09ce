"""
Sport profiles for game synthesis and schedule fetching.

Each profile holds a fixed team list and the score, line and total bands used
to dress up reconstructed games. The bands follow each sport's real scoring
scale for display plausibility only; they are not a statistical model.
"""
from dataclasses import dataclass
from typing import Dict, Tuple

from trend_engine.models.trends import Sport


def _half_points(low: float, high: float) -> Tuple[float, ...]:
    """Every half point from low to high inclusive."""
    steps = int(round((high - low) * 2))
    return tuple(low + i * 0.5 for i in range(steps + 1))


@dataclass(frozen=True)
class SportProfile:
    """
    Synthesis bands and provider path for one sport.

    Score ranges are inclusive. lines are home lines (negative = home
    favored); every choice in lines and totals is equally likely.
    """
    sport: Sport
    teams: Tuple[str, ...]
    home_score: Tuple[int, int]
    away_score: Tuple[int, int]
    lines: Tuple[float, ...]
    totals: Tuple[float, ...]
    schedule_path: str  # scoreboard path, e.g. "football/nfl"

    def pick_line(self, value: float) -> float:
        return self.lines[int(value * len(self.lines))]

    def pick_total(self, value: float) -> float:
        return self.totals[int(value * len(self.totals))]

    @staticmethod
    def pick_score(value: float, band: Tuple[int, int]) -> int:
        low, high = band
        return low + int(value * (high - low + 1))


# =============================================================================
# SPORT PROFILES
# =============================================================================

NFL_PROFILE = SportProfile(
    sport=Sport.NFL,
    teams=(
        "Kansas City Chiefs", "Buffalo Bills", "Philadelphia Eagles",
        "San Francisco 49ers", "Dallas Cowboys", "Baltimore Ravens",
        "Detroit Lions", "Green Bay Packers", "Miami Dolphins",
        "Cincinnati Bengals",
    ),
    home_score=(17, 36),
    away_score=(14, 33),
    lines=_half_points(-7, 7),
    totals=_half_points(42, 51),
    schedule_path="football/nfl",
)

NBA_PROFILE = SportProfile(
    sport=Sport.NBA,
    teams=(
        "Boston Celtics", "Denver Nuggets", "Milwaukee Bucks",
        "Los Angeles Lakers", "Golden State Warriors", "Phoenix Suns",
        "Miami Heat", "Dallas Mavericks", "Oklahoma City Thunder",
        "New York Knicks",
    ),
    home_score=(100, 129),
    away_score=(95, 124),
    lines=_half_points(-12, 12),
    totals=_half_points(210, 235),
    schedule_path="basketball/nba",
)

MLB_PROFILE = SportProfile(
    sport=Sport.MLB,
    teams=(
        "Los Angeles Dodgers", "New York Yankees", "Atlanta Braves",
        "Houston Astros", "Philadelphia Phillies", "Texas Rangers",
        "Baltimore Orioles", "Tampa Bay Rays", "Seattle Mariners",
        "Chicago Cubs",
    ),
    home_score=(2, 8),
    away_score=(1, 7),
    lines=(-1.5, 1.5),  # run line
    totals=_half_points(7, 10),
    schedule_path="baseball/mlb",
)

NHL_PROFILE = SportProfile(
    sport=Sport.NHL,
    teams=(
        "Boston Bruins", "Colorado Avalanche", "Edmonton Oilers",
        "Vegas Golden Knights", "Florida Panthers", "New York Rangers",
        "Dallas Stars", "Toronto Maple Leafs", "Carolina Hurricanes",
        "Tampa Bay Lightning",
    ),
    home_score=(2, 5),
    away_score=(1, 4),
    lines=(-1.5, 1.5),  # puck line
    totals=_half_points(5.5, 7.5),
    schedule_path="hockey/nhl",
)

NCAAF_PROFILE = SportProfile(
    sport=Sport.NCAAF,
    teams=(
        "Georgia Bulldogs", "Michigan Wolverines", "Alabama Crimson Tide",
        "Ohio State Buckeyes", "Texas Longhorns", "Oregon Ducks",
        "Penn State Nittany Lions", "Clemson Tigers", "LSU Tigers",
        "Notre Dame Fighting Irish",
    ),
    home_score=(20, 44),
    away_score=(14, 38),
    lines=_half_points(-14, 14),
    totals=_half_points(48, 62),
    schedule_path="football/college-football",
)

NCAAB_PROFILE = SportProfile(
    sport=Sport.NCAAB,
    teams=(
        "Duke Blue Devils", "Kansas Jayhawks", "North Carolina Tar Heels",
        "Kentucky Wildcats", "Gonzaga Bulldogs", "UConn Huskies",
        "Houston Cougars", "Purdue Boilermakers", "Arizona Wildcats",
        "Villanova Wildcats",
    ),
    home_score=(65, 84),
    away_score=(60, 79),
    lines=_half_points(-10, 10),
    totals=_half_points(130, 150),
    schedule_path="basketball/mens-college-basketball",
)


SPORT_PROFILES: Dict[Sport, SportProfile] = {
    Sport.NFL: NFL_PROFILE,
    Sport.NBA: NBA_PROFILE,
    Sport.MLB: MLB_PROFILE,
    Sport.NHL: NHL_PROFILE,
    Sport.NCAAF: NCAAF_PROFILE,
    Sport.NCAAB: NCAAB_PROFILE,
}


def get_profile(sport: Sport) -> SportProfile:
    """
    Get the profile for a concrete sport.

    Raises:
        KeyError: for Sport.ALL, which has no bands of its own
    """
    return SPORT_PROFILES[sport]
