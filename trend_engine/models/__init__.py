"""
Trend engine models.

- trends: catalogue ingest records (pydantic)
- schedule: scheduled game ingest records (pydantic)
- results: values derived by the engine (frozen dataclasses)
- tables: SQLAlchemy tables of the catalogue store
"""
from trend_engine.models.trends import (
    BetType,
    CONCRETE_SPORTS,
    MonthlyPerformance,
    PROPRIETARY_CATEGORY,
    Record,
    Sport,
    TrendSummary,
)
from trend_engine.models.schedule import GameStatus, ScheduledGame, TeamInfo
from trend_engine.models.results import (
    MatchedTrend,
    Outcome,
    ReconstructedGame,
    ReconstructionResult,
    RollupStats,
    TimeWindow,
    WindowedStatsResult,
    WindowStats,
)

__all__ = [
    "BetType",
    "CONCRETE_SPORTS",
    "GameStatus",
    "MatchedTrend",
    "MonthlyPerformance",
    "Outcome",
    "PROPRIETARY_CATEGORY",
    "ReconstructedGame",
    "ReconstructionResult",
    "Record",
    "RollupStats",
    "ScheduledGame",
    "Sport",
    "TeamInfo",
    "TimeWindow",
    "TrendSummary",
    "WindowedStatsResult",
    "WindowStats",
]
