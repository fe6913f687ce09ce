"""Scheduled game ingest records."""
from datetime import datetime
from enum import Enum
from typing import Any, Optional

from pydantic import Field, field_validator, model_validator

from trend_engine.models.trends import IngestModel, Sport

_STATUS_ALIASES = {
    "pre": "scheduled",
    "pending": "scheduled",
    "in": "live",
    "in_progress": "live",
    "post": "final",
    "completed": "final",
}


class GameStatus(str, Enum):
    """Lifecycle of a scheduled game."""
    SCHEDULED = "scheduled"
    LIVE = "live"
    FINAL = "final"


class TeamInfo(IngestModel):
    """Team identity and season record as reported by the schedule provider."""
    id: str = Field(min_length=1)
    name: str = Field(min_length=1)
    abbreviation: Optional[str] = None
    record: Optional[str] = None

    @field_validator("id", mode="before")
    @classmethod
    def _stringify_id(cls, value: Any) -> Any:
        if isinstance(value, int):
            return str(value)
        return value


class ScheduledGame(IngestModel):
    """
    A game on today's schedule.

    spread is the home line (negative = home favored); spread and total are
    optional because not every provider quotes them.
    """
    id: str = Field(min_length=1)
    sport: Sport
    start_time: datetime
    home: TeamInfo
    away: TeamInfo
    status: GameStatus = GameStatus.SCHEDULED
    spread: Optional[float] = None
    total: Optional[float] = None

    @field_validator("id", mode="before")
    @classmethod
    def _stringify_id(cls, value: Any) -> Any:
        if isinstance(value, int):
            return str(value)
        return value

    @field_validator("sport", mode="before")
    @classmethod
    def _normalize_sport(cls, value: Any) -> Any:
        if isinstance(value, str):
            value = value.strip().upper()
            if value == Sport.ALL.value:
                raise ValueError("a scheduled game needs a concrete sport")
        return value

    @field_validator("status", mode="before")
    @classmethod
    def _normalize_status(cls, value: Any) -> Any:
        if isinstance(value, str):
            value = value.strip().lower()
            return _STATUS_ALIASES.get(value, value)
        return value

    @model_validator(mode="after")
    def _check_teams(self) -> "ScheduledGame":
        if self.home.id == self.away.id:
            raise ValueError("home and away teams must be different")
        return self

    @property
    def matchup(self) -> str:
        return f"{self.away.name} @ {self.home.name}"
