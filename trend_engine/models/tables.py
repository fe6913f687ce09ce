"""
Database models for the trend catalogue store.

The historical_trends table is owned by the catalogue pipeline; this engine
only reads it. Records and ROI columns are stored the way the pipeline writes
them ("18-6" strings, percentages), and are validated into TrendSummary on
the way out.
"""
from sqlalchemy import Column, String, Float, Integer, DateTime, Boolean, Text, Index, JSON
from sqlalchemy.orm import declarative_base

Base = declarative_base()


class HistoricalTrend(Base):
    """One catalogued betting trend."""
    __tablename__ = "historical_trends"

    id = Column(Integer, primary_key=True, autoincrement=True)
    trend_id = Column(String(100), unique=True, nullable=False, index=True)

    sport = Column(String(10), nullable=False, index=True)  # 'NFL', ..., 'ALL'
    category = Column(String(50), nullable=True, index=True)
    bet_type = Column(String(20), nullable=False)  # spread, total, moneyline
    trend_name = Column(String(255), nullable=False)
    trend_description = Column(Text, nullable=True)
    trend_criteria = Column(JSON, nullable=True)

    # All-time performance
    all_time_record = Column(String(30), nullable=True)  # "W-L" or "W-L-P"
    all_time_roi = Column(Float, nullable=True)
    all_time_sample_size = Column(Integer, nullable=True)
    all_time_units = Column(Float, nullable=True)

    # Recent performance
    l30_record = Column(String(30), nullable=True)
    l30_roi = Column(Float, nullable=True)
    l90_record = Column(String(30), nullable=True)
    l90_roi = Column(Float, nullable=True)
    monthly_performance = Column(JSON, nullable=True)  # most-recent-first list

    # Externally assigned classification
    confidence_score = Column(Integer, nullable=True)
    hot_streak = Column(Boolean, nullable=True, default=False)
    cold_streak = Column(Boolean, nullable=True, default=False)

    is_active = Column(Boolean, nullable=False, default=True, index=True)
    last_updated = Column(DateTime, nullable=True)

    __table_args__ = (
        Index('ix_historical_trends_sport_bet_type', 'sport', 'bet_type'),
    )

    def to_payload(self) -> dict:
        """Row as a snake_case payload for TrendSummary validation."""
        return {
            'id': self.trend_id,
            'sport': self.sport,
            'bet_type': self.bet_type,
            'name': self.trend_name,
            'description': self.trend_description or "",
            'category': self.category or "situational",
            'all_time_record': self.all_time_record,
            'all_time_sample_size': self.all_time_sample_size,
            'all_time_roi': self.all_time_roi or 0.0,
            'all_time_units': self.all_time_units,
            'monthly_performance': self.monthly_performance or (),
            'last30_record': self.l30_record,
            'last30_roi': self.l30_roi,
            'last90_record': self.l90_record,
            'last90_roi': self.l90_roi,
            'confidence_score': self.confidence_score,
            'hot_streak': self.hot_streak,
            'cold_streak': self.cold_streak,
        }
