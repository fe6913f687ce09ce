"""
Ingest boundary validation.

Every provider record passes through here before it can reach the engine.
Schema problems (missing fields, sample size below the record, unknown sport)
reject the record; consistency problems (ROI that does not match the record
under -110, monthly records that do not add up) are warnings unless strict
monthly checking is switched on.

A rejected record is skipped and logged so one bad summary never blocks the
rest of the catalogue.
"""
import logging
from dataclasses import dataclass, field
from typing import Any, Iterable, List, Mapping, Optional, Union

from pydantic import ValidationError

from trend_engine.core.exceptions import IngestValidationError
from trend_engine.core.metrics import ingest_rejected_total
from trend_engine.models.schedule import ScheduledGame
from trend_engine.models.trends import TrendSummary, expected_roi

logger = logging.getLogger(__name__)

DEFAULT_ROI_TOLERANCE = 5.0

Payload = Union[Mapping[str, Any], TrendSummary, ScheduledGame]


@dataclass
class ValidationResult:
    """Result of validating one provider record."""
    is_valid: bool
    errors: List[str] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)
    entity_id: Optional[str] = None
    value: Any = None

    def add_error(self, error: str):
        """Add an error to the result."""
        self.errors.append(error)
        self.is_valid = False

    def add_warning(self, warning: str):
        """Add a warning to the result."""
        self.warnings.append(warning)

    def __repr__(self):
        return (f"ValidationResult(id={self.entity_id}, valid={self.is_valid}, "
                f"errors={len(self.errors)}, warnings={len(self.warnings)})")


def _entity_id(payload: Payload) -> Optional[str]:
    if isinstance(payload, Mapping):
        value = payload.get("id")
        return str(value) if value is not None else None
    return payload.id


def _schema_errors(error: ValidationError) -> List[str]:
    messages = []
    for detail in error.errors():
        location = ".".join(str(part) for part in detail["loc"]) or "record"
        messages.append(f"{location}: {detail['msg']}")
    return messages


class IngestValidator:
    """
    Validate trend summaries and scheduled games at the ingest boundary.

    Usage:
        validator = IngestValidator(strict_monthly_check=True)
        trends = validator.ingest_trends(rows)
        result = validator.validate_trend(payload)
        if not result.is_valid:
            print(result.errors)
    """

    def __init__(
        self,
        strict_monthly_check: bool = False,
        roi_tolerance: float = DEFAULT_ROI_TOLERANCE,
        win_units: float = 0.91,
    ):
        """
        Initialize the validator.

        Args:
            strict_monthly_check: Reject summaries whose monthly records do
                                  not sum to the all-time record
            roi_tolerance: Allowed gap, in ROI points, between the stated ROI
                           and the ROI implied by the record
            win_units: Units returned on a win under the vig convention
        """
        self.strict_monthly_check = strict_monthly_check
        self.roi_tolerance = roi_tolerance
        self.win_units = win_units

    @classmethod
    def from_settings(cls, settings=None) -> "IngestValidator":
        if settings is None:
            from trend_engine.core.config import settings
        return cls(
            strict_monthly_check=settings.STRICT_MONTHLY_CHECK,
            roi_tolerance=settings.ROI_CONSISTENCY_TOLERANCE,
            win_units=settings.WIN_UNITS,
        )

    # ==================== Trend Validation ====================

    def validate_trend(self, payload: Payload) -> ValidationResult:
        """
        Validate one trend summary.

        Args:
            payload: camelCase provider payload, snake_case store row, or an
                     already built TrendSummary

        Returns:
            ValidationResult whose value is the TrendSummary when valid
        """
        result = ValidationResult(is_valid=True, entity_id=_entity_id(payload))

        try:
            trend = payload if isinstance(payload, TrendSummary) else TrendSummary.model_validate(payload)
        except ValidationError as e:
            for message in _schema_errors(e):
                result.add_error(message)
            return result

        implied = expected_roi(trend.all_time_record, self.win_units)
        if trend.all_time_record.decided and abs(trend.all_time_roi - implied) > self.roi_tolerance:
            result.add_warning(
                f"allTimeROI {trend.all_time_roi:.1f}% does not match {implied:.1f}% "
                f"implied by record {trend.all_time_record}"
            )

        if trend.monthly_performance:
            monthly = trend.monthly_total()
            if (monthly.wins, monthly.losses) != (trend.all_time_record.wins, trend.all_time_record.losses):
                message = (f"monthly records sum to {monthly}, "
                           f"all-time record is {trend.all_time_record}")
                if self.strict_monthly_check:
                    result.add_error(message)
                else:
                    result.add_warning(message)

        if result.is_valid:
            result.value = trend
        return result

    def require_trend(self, payload: Payload) -> TrendSummary:
        """
        Validate one trend summary or raise.

        Raises:
            IngestValidationError: if the summary is rejected
        """
        result = self.validate_trend(payload)
        if not result.is_valid:
            raise IngestValidationError(
                f"Trend {result.entity_id or '?'} rejected: {'; '.join(result.errors)}",
                record_id=result.entity_id,
                errors=result.errors,
            )
        return result.value

    def ingest_trends(self, payloads: Iterable[Payload]) -> List[TrendSummary]:
        """Validate a catalogue, skipping (and logging) rejected summaries."""
        trends = []
        for payload in payloads:
            result = self.validate_trend(payload)
            for warning in result.warnings:
                logger.warning(f"Trend {result.entity_id}: {warning}")
            if not result.is_valid:
                ingest_rejected_total.labels(record_type="trend").inc()
                logger.error(f"Skipping trend {result.entity_id}: {'; '.join(result.errors)}")
                continue
            trends.append(result.value)
        return trends

    # ==================== Schedule Validation ====================

    def validate_game(self, payload: Payload) -> ValidationResult:
        """Validate one scheduled game."""
        result = ValidationResult(is_valid=True, entity_id=_entity_id(payload))
        try:
            game = payload if isinstance(payload, ScheduledGame) else ScheduledGame.model_validate(payload)
        except ValidationError as e:
            for message in _schema_errors(e):
                result.add_error(message)
            return result
        result.value = game
        return result

    def ingest_games(self, payloads: Iterable[Payload]) -> List[ScheduledGame]:
        """Validate a schedule, skipping (and logging) rejected games."""
        games = []
        for payload in payloads:
            result = self.validate_game(payload)
            if not result.is_valid:
                ingest_rejected_total.labels(record_type="game").inc()
                logger.error(f"Skipping game {result.entity_id}: {'; '.join(result.errors)}")
                continue
            games.append(result.value)
        return games
