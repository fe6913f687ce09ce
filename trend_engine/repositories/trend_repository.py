"""
Trend catalogue repository.

Reads active rows of historical_trends and validates them into TrendSummary.
Rows that fail validation are skipped by the validator; store errors are
raised as ProviderUnavailableError so a failed read is never mistaken for an
empty catalogue.
"""
import logging
from typing import Callable, List, Optional

from sqlalchemy import func
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from trend_engine.core.exceptions import ProviderUnavailableError
from trend_engine.models.tables import HistoricalTrend
from trend_engine.models.trends import DEFAULT_CONFIDENCE, TrendSummary
from trend_engine.repositories.base import BaseRepository
from trend_engine.services.ingest.validator import IngestValidator

logger = logging.getLogger(__name__)

PROVIDER_NAME = "catalogue"


class TrendRepository(BaseRepository[HistoricalTrend]):
    """Read access to the trend catalogue store."""

    def __init__(self, db: Session, validator: Optional[IngestValidator] = None):
        super().__init__(HistoricalTrend, db)
        self.validator = validator or IngestValidator()

    def find_by_trend_id(self, trend_id: str) -> Optional[HistoricalTrend]:
        return self.where_first(HistoricalTrend.trend_id == trend_id)

    def find_active(self, sport: Optional[str] = None, bet_type: Optional[str] = None) -> List[HistoricalTrend]:
        """
        Active rows, highest confidence first.

        Args:
            sport: Optional sport filter ('NFL', ..., 'ALL')
            bet_type: Optional bet type filter

        Returns:
            Rows ordered by confidence (missing confidence ranks as the
            default score), then trend_id
        """
        query = self.query().filter(HistoricalTrend.is_active.is_(True))
        if sport:
            query = query.filter(HistoricalTrend.sport == sport.upper())
        if bet_type:
            query = query.filter(HistoricalTrend.bet_type == bet_type.lower())
        confidence = func.coalesce(HistoricalTrend.confidence_score, DEFAULT_CONFIDENCE)
        return query.order_by(confidence.desc(), HistoricalTrend.trend_id).all()

    def load_catalogue(self, sport: Optional[str] = None, bet_type: Optional[str] = None) -> List[TrendSummary]:
        """
        Validated catalogue of active trends.

        Raises:
            ProviderUnavailableError: if the store cannot be read
        """
        try:
            rows = self.find_active(sport, bet_type)
        except SQLAlchemyError as e:
            logger.error(f"Trend catalogue read failed: {e}")
            raise ProviderUnavailableError(PROVIDER_NAME, f"catalogue read failed: {e}") from e

        trends = self.validator.ingest_trends(row.to_payload() for row in rows)
        logger.info(f"Loaded {len(trends)}/{len(rows)} active trends")
        return trends


def load_catalogue(session_factory: Callable[[], Session], validator: Optional[IngestValidator] = None) -> List[TrendSummary]:
    """
    Open a session, load the catalogue, close the session.

    Blocking; the poller runs it on a worker thread.
    """
    db = session_factory()
    try:
        return TrendRepository(db, validator).load_catalogue()
    except SQLAlchemyError as e:
        raise ProviderUnavailableError(PROVIDER_NAME, f"catalogue session failed: {e}") from e
    finally:
        db.close()
