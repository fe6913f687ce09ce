"""
Trend catalogue ingest records.

Provider payloads (camelCase) and store rows (snake_case) are both accepted and
validated here before anything reaches the engine. Records are frozen once
loaded.
"""
import logging
import re
from enum import Enum
from typing import Any, Optional, Tuple

from pydantic import (
    AliasChoices,
    BaseModel,
    ConfigDict,
    Field,
    ValidationInfo,
    field_validator,
    model_validator,
)
from pydantic.alias_generators import to_camel

logger = logging.getLogger(__name__)

PROPRIETARY_CATEGORY = "matchups_proprietary"
DEFAULT_CONFIDENCE = 70

_RECORD_PATTERN = re.compile(r"^\s*(\d+)\s*-\s*(\d+)(?:\s*-\s*(\d+))?\s*$")


class Sport(str, Enum):
    """Sports covered by the catalogue. ALL marks a sport-agnostic trend."""
    NFL = "NFL"
    NBA = "NBA"
    MLB = "MLB"
    NHL = "NHL"
    NCAAF = "NCAAF"
    NCAAB = "NCAAB"
    ALL = "ALL"


CONCRETE_SPORTS: Tuple[Sport, ...] = tuple(s for s in Sport if s is not Sport.ALL)


class BetType(str, Enum):
    """Bet types a trend can back."""
    SPREAD = "spread"
    TOTAL = "total"
    MONEYLINE = "moneyline"


class IngestModel(BaseModel):
    """Base for provider records: frozen, camelCase or snake_case keys."""
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        frozen=True,
        extra="ignore",
    )


class Record(BaseModel):
    """A wins-losses(-pushes) record."""
    model_config = ConfigDict(frozen=True)

    wins: int = Field(default=0, ge=0)
    losses: int = Field(default=0, ge=0)
    pushes: int = Field(default=0, ge=0)

    @classmethod
    def parse(cls, value: Any) -> "Record":
        """
        Parse "W-L", "W-L-P", a mapping or a Record.

        Raises:
            ValueError: if the value cannot be read as a record
        """
        if isinstance(value, Record):
            return value
        if isinstance(value, dict):
            return cls.model_validate(value)
        if isinstance(value, str):
            match = _RECORD_PATTERN.match(value)
            if match:
                wins, losses, pushes = match.groups()
                return cls(wins=int(wins), losses=int(losses), pushes=int(pushes or 0))
        raise ValueError(f"Unreadable record: {value!r}")

    @property
    def decided(self) -> int:
        """Wins plus losses."""
        return self.wins + self.losses

    @property
    def settled(self) -> int:
        """Wins, losses and pushes."""
        return self.wins + self.losses + self.pushes

    @property
    def win_rate(self) -> float:
        """Win fraction of decided bets, 0.5 for an empty record."""
        if self.decided == 0:
            return 0.5
        return self.wins / self.decided

    def __add__(self, other: "Record") -> "Record":
        return Record(
            wins=self.wins + other.wins,
            losses=self.losses + other.losses,
            pushes=self.pushes + other.pushes,
        )

    def __str__(self) -> str:
        if self.pushes:
            return f"{self.wins}-{self.losses}-{self.pushes}"
        return f"{self.wins}-{self.losses}"


def _record_or_empty(value: Any, context: str) -> Record:
    """Malformed records degrade to 0-0 instead of failing the whole summary."""
    if value is None:
        return Record()
    try:
        return Record.parse(value)
    except ValueError:
        logger.warning(f"Malformed record for {context}: {value!r} - treating as 0-0")
        return Record()


def expected_roi(record: Record, win_units: float = 0.91) -> float:
    """ROI implied by a record under the -110 convention, in percent."""
    if record.decided == 0:
        return 0.0
    return (record.wins * win_units - record.losses) / record.decided * 100


class MonthlyPerformance(IngestModel):
    """One month of a trend's results."""
    month: int = Field(ge=1, le=12)
    year: int = Field(ge=1900)
    record: Record = Field(default_factory=Record)
    units: float = 0.0

    @field_validator("record", mode="before")
    @classmethod
    def _coerce_record(cls, value: Any) -> Record:
        return _record_or_empty(value, "monthly performance")


class TrendSummary(IngestModel):
    """
    Statistical summary of one betting trend.

    Confidence score, hot streak and cold streak are assigned upstream and
    passed through untouched.
    """
    id: str = Field(min_length=1)
    sport: Sport
    bet_type: BetType
    name: str
    description: str = ""
    category: str = "situational"
    all_time_record: Record = Field(default_factory=Record)
    all_time_sample_size: Optional[int] = Field(default=None, validate_default=True)
    all_time_roi: float = Field(
        default=0.0,
        validation_alias=AliasChoices("all_time_roi", "allTimeROI", "allTimeRoi"),
    )
    all_time_units: Optional[float] = None
    monthly_performance: Tuple[MonthlyPerformance, ...] = ()
    last30_record: Optional[Record] = None
    last30_roi: Optional[float] = Field(
        default=None,
        validation_alias=AliasChoices("last30_roi", "last30ROI", "last30Roi"),
    )
    last90_record: Optional[Record] = None
    last90_roi: Optional[float] = Field(
        default=None,
        validation_alias=AliasChoices("last90_roi", "last90ROI", "last90Roi"),
    )
    confidence_score: int = Field(default=DEFAULT_CONFIDENCE, ge=0, le=100)
    hot_streak: bool = False
    cold_streak: bool = False

    @field_validator("sport", mode="before")
    @classmethod
    def _normalize_sport(cls, value: Any) -> Any:
        if isinstance(value, str):
            return value.strip().upper()
        return value

    @field_validator("bet_type", mode="before")
    @classmethod
    def _normalize_bet_type(cls, value: Any) -> Any:
        if isinstance(value, str):
            return value.strip().lower()
        return value

    @field_validator("all_time_record", mode="before")
    @classmethod
    def _coerce_all_time_record(cls, value: Any, info: ValidationInfo) -> Record:
        return _record_or_empty(value, f"trend {info.data.get('id', '?')}")

    @field_validator("last30_record", "last90_record", mode="before")
    @classmethod
    def _coerce_recent_record(cls, value: Any) -> Optional[Record]:
        if value is None:
            return None
        try:
            return Record.parse(value)
        except ValueError:
            return None

    @field_validator("all_time_sample_size", mode="before")
    @classmethod
    def _default_sample_size(cls, value: Any, info: ValidationInfo) -> Any:
        if value is None:
            record = info.data.get("all_time_record")
            return record.settled if record is not None else 0
        return value

    @field_validator("confidence_score", mode="before")
    @classmethod
    def _default_confidence(cls, value: Any) -> Any:
        if value is None:
            return DEFAULT_CONFIDENCE
        if isinstance(value, float):
            return round(value)
        return value

    @field_validator("hot_streak", "cold_streak", mode="before")
    @classmethod
    def _none_is_false(cls, value: Any) -> Any:
        return False if value is None else value

    @field_validator("monthly_performance", mode="before")
    @classmethod
    def _none_is_empty(cls, value: Any) -> Any:
        return () if value is None else value

    @model_validator(mode="after")
    def _check_sample_size(self) -> "TrendSummary":
        if self.all_time_sample_size < self.all_time_record.decided:
            raise ValueError(
                f"all_time_sample_size {self.all_time_sample_size} is below "
                f"the {self.all_time_record.decided} decided games in the record"
            )
        return self

    @property
    def is_proprietary(self) -> bool:
        """Sport-agnostic proprietary trend, offered for every game."""
        return self.sport is Sport.ALL and self.category == PROPRIETARY_CATEGORY

    def monthly_total(self) -> Record:
        """Sum of the monthly records."""
        total = Record()
        for month in self.monthly_performance:
            total = total + month.record
        return total
