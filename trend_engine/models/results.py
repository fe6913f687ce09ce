"""
Values derived by the engine.

Everything here is a frozen dataclass: derived views are filtered and
aggregated into new values, never mutated in place.
"""
from dataclasses import dataclass, field
from datetime import date, timedelta
from enum import Enum
from typing import Optional, Tuple

from trend_engine.models.trends import BetType, Sport, TrendSummary


class Outcome(str, Enum):
    """Settled result of a single pick."""
    WIN = "win"
    LOSS = "loss"
    PUSH = "push"


class TimeWindow(str, Enum):
    """Trailing look-back windows for windowed statistics."""
    LAST_30_DAYS = "30d"
    LAST_90_DAYS = "90d"
    LAST_YEAR = "1y"
    LAST_5_YEARS = "5y"
    LAST_10_YEARS = "10y"
    LAST_20_YEARS = "20y"
    ALL = "all"

    @property
    def days(self) -> Optional[int]:
        """Length of the window in days, None for all-time."""
        return _WINDOW_DAYS[self]

    def cutoff(self, today: date) -> Optional[date]:
        """Earliest date inside the window, None when unbounded."""
        if self.days is None:
            return None
        return today - timedelta(days=self.days)


_WINDOW_DAYS = {
    TimeWindow.LAST_30_DAYS: 30,
    TimeWindow.LAST_90_DAYS: 90,
    TimeWindow.LAST_YEAR: 365,
    TimeWindow.LAST_5_YEARS: 1825,
    TimeWindow.LAST_10_YEARS: 3650,
    TimeWindow.LAST_20_YEARS: 7300,
    TimeWindow.ALL: None,
}


@dataclass(frozen=True)
class ReconstructedGame:
    """One synthetic historical game behind a trend's record."""
    id: str
    trend_id: str
    date: date
    sport: Sport
    home_team: str
    away_team: str
    home_score: int
    away_score: int
    line: float
    total: float
    pick: str
    result: Outcome
    units_won: float


@dataclass(frozen=True)
class WindowStats:
    """Record, rates and units over one time window."""
    wins: int = 0
    losses: int = 0
    pushes: int = 0
    win_rate: float = 0.0
    roi: float = 0.0
    total_units: float = 0.0

    @property
    def settled(self) -> int:
        return self.wins + self.losses + self.pushes

    @property
    def record(self) -> str:
        if self.pushes:
            return f"{self.wins}-{self.losses}-{self.pushes}"
        return f"{self.wins}-{self.losses}"


@dataclass(frozen=True)
class RollupStats:
    """System-wide totals across a catalogue for one window."""
    total_picks: int = 0
    wins: int = 0
    losses: int = 0
    pushes: int = 0
    win_rate: float = 0.0
    roi: float = 0.0
    total_units: float = 0.0
    trend_count: int = 0


@dataclass(frozen=True)
class ReconstructionResult:
    """Reconstructed games for a trend; found is False for unknown IDs."""
    trend_id: str
    found: bool
    games: Tuple[ReconstructedGame, ...] = ()


@dataclass(frozen=True)
class WindowedStatsResult:
    """Windowed statistics for a trend; found is False for unknown IDs."""
    trend_id: str
    window: TimeWindow
    found: bool
    stats: WindowStats = field(default_factory=WindowStats)


@dataclass(frozen=True)
class MatchedTrend:
    """A trend applied to one scheduled game."""
    trend: TrendSummary
    game_id: str
    recommendation: str
    stats: WindowStats
    edge_score: int
    is_primary: bool = False

    def __repr__(self):
        role = "primary" if self.is_primary else "secondary"
        return (f"MatchedTrend({self.trend.id} -> {self.recommendation} | "
                f"{self.trend.confidence_score} conf | {role})")


@dataclass(frozen=True)
class TopPick:
    """The selection most of a game's matched trends agree on."""
    selection: str
    confidence: float  # mean confidence of the supporting trends
    supporting_trends: int


@dataclass(frozen=True)
class GameMatchResult:
    """
    All matches for one game plus their consensus.

    Attributes:
        game_id: Scheduled game the matches apply to
        matches: Primary first, then the secondaries in rank order
        aggregate_confidence: Mean confidence of the matched trends (0 without matches)
        top_pick: Most common recommendation, None without matches
    """
    game_id: str
    matches: Tuple[MatchedTrend, ...] = ()
    aggregate_confidence: float = 0.0
    top_pick: Optional[TopPick] = None

    @property
    def primary(self) -> Optional[MatchedTrend]:
        return self.matches[0] if self.matches else None

    def by_bet_type(self, bet_type: BetType) -> Tuple[MatchedTrend, ...]:
        return tuple(match for match in self.matches if match.trend.bet_type is bet_type)

    @property
    def spread_trends(self) -> Tuple[MatchedTrend, ...]:
        return self.by_bet_type(BetType.SPREAD)

    @property
    def total_trends(self) -> Tuple[MatchedTrend, ...]:
        return self.by_bet_type(BetType.TOTAL)

    @property
    def moneyline_trends(self) -> Tuple[MatchedTrend, ...]:
        return self.by_bet_type(BetType.MONEYLINE)
