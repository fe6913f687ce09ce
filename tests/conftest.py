"""Shared pytest fixtures for trend engine tests."""
from datetime import date, datetime, timezone
from typing import Callable, Generator, List

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, Session

from trend_engine.models.schedule import ScheduledGame
from trend_engine.models.trends import TrendSummary
from trend_engine.services.trends.cache import AnalysisCache
from trend_engine.services.trends.engine import EngineOptions, TrendEngine

REFERENCE_DATE = date(2026, 10, 19)


@pytest.fixture
def today() -> date:
    """Fixed reference date for reconstructions."""
    return REFERENCE_DATE


@pytest.fixture(scope="function")
def db_session() -> Generator[Session, None, None]:
    """Create fresh test database session with isolated in-memory database."""
    from trend_engine.models.tables import Base

    engine = create_engine(
        "sqlite:///:memory:",
        connect_args={"check_same_thread": False}
    )
    Base.metadata.create_all(bind=engine)

    TestSessionLocal = sessionmaker(bind=engine)
    session = TestSessionLocal()

    yield session

    session.close()
    engine.dispose()


@pytest.fixture
def make_trend() -> Callable[..., TrendSummary]:
    """Factory for trend summaries with sensible defaults."""
    def _make(trend_id: str = "t1", **overrides) -> TrendSummary:
        payload = {
            "id": trend_id,
            "sport": "NFL",
            "betType": "spread",
            "name": "Home teams after a bye",
            "allTimeRecord": "18-6",
            "allTimeSampleSize": 24,
            "allTimeROI": 43.3,
            "confidenceScore": 70,
            "hotStreak": False,
        }
        payload.update(overrides)
        return TrendSummary.model_validate(payload)
    return _make


@pytest.fixture
def make_game() -> Callable[..., ScheduledGame]:
    """Factory for scheduled games."""
    def _make(game_id: str = "401", sport: str = "NFL", **overrides) -> ScheduledGame:
        payload = {
            "id": game_id,
            "sport": sport,
            "startTime": datetime(2026, 10, 19, 17, 0, tzinfo=timezone.utc),
            "home": {"id": "12", "name": "Kansas City Chiefs", "abbreviation": "KC", "record": "5-1"},
            "away": {"id": "2", "name": "Buffalo Bills", "abbreviation": "BUF", "record": "4-2"},
            "status": "scheduled",
        }
        payload.update(overrides)
        return ScheduledGame.model_validate(payload)
    return _make


@pytest.fixture
def sample_catalogue(make_trend) -> List[TrendSummary]:
    """A small mixed catalogue across sports, bet types and categories."""
    return [
        make_trend("t1"),
        make_trend(
            "nfl-primetime-unders", betType="total", name="Primetime unders",
            allTimeRecord="40-30-2", allTimeSampleSize=72, confidenceScore=82,
            category="totals", allTimeROI=5.0,
        ),
        make_trend(
            "nfl-road-dogs", name="Road dogs off a loss", allTimeRecord="55-40",
            allTimeSampleSize=95, confidenceScore=75, hotStreak=True, category="situational",
            allTimeROI=10.0,
        ),
        make_trend(
            "nba-rest", sport="NBA", name="Rested home favorites", allTimeRecord="120-80",
            allTimeSampleSize=200, confidenceScore=88, category="rest", allTimeROI=14.6,
        ),
        make_trend(
            "all-prop", sport="ALL", betType="moneyline", name="Model edge plays",
            allTimeRecord="300-200", allTimeSampleSize=500, confidenceScore=65,
            category="matchups_proprietary", hotStreak=True, allTimeROI=14.6,
        ),
        make_trend(
            "all-public-fade", sport="ALL", name="Fade the public",
            allTimeRecord="60-50", allTimeSampleSize=110, confidenceScore=90,
            category="public_fade", allTimeROI=0.1,
        ),
    ]


@pytest.fixture
def engine(sample_catalogue, today) -> TrendEngine:
    """Engine over the sample catalogue with a fixed reference date."""
    return TrendEngine(sample_catalogue, EngineOptions(), AnalysisCache(), today=today)
