"""
Base repository class for data access layer.

Example:
    class TrendRepository(BaseRepository[HistoricalTrend]):
        def find_by_trend_id(self, trend_id: str) -> Optional[HistoricalTrend]:
            return self.where_first(HistoricalTrend.trend_id == trend_id)
"""
from abc import ABC
from typing import Any, Dict, Generic, List, Optional, Type, TypeVar

from sqlalchemy import func
from sqlalchemy.orm import Query, Session

T = TypeVar("T")


class BaseRepository(Generic[T], ABC):
    """
    Base repository class providing common data access methods.

    Attributes:
        model_type: The SQLAlchemy model class this repository manages
        db: The database session
    """

    def __init__(self, model_type: Type[T], db: Session):
        self.model_type = model_type
        self.db = db

    # ========================================================================
    # Reads
    # ========================================================================

    def query(self) -> Query:
        """Get a new query object for this model."""
        return self.db.query(self.model_type)

    def where_first(self, *criterion) -> Optional[T]:
        """Filter records using SQLAlchemy expressions and return first match."""
        return self.query().filter(*criterion).first()

    def count(self, *criterion) -> int:
        """Count records matching optional criterion."""
        query = self.db.query(func.count(self.model_type.id))
        if criterion:
            query = query.filter(*criterion)
        return query.scalar() or 0

    # ========================================================================
    # Writes
    # ========================================================================

    def create_many(self, items: List[Dict[str, Any]]) -> List[T]:
        """Create multiple records in bulk (not yet committed)."""
        instances = [self.model_type(**item) for item in items]
        self.db.add_all(instances)
        return instances
