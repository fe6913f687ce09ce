"""
Database configuration and session management for the trend catalogue store.
"""
import os
from typing import Optional

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker

_engine: Optional[Engine] = None
_SessionLocal: Optional[sessionmaker] = None


def get_engine() -> Engine:
    """Get or create the database engine."""
    global _engine, _SessionLocal

    if _engine is None:
        from trend_engine.core.config import settings

        engine_kwargs = {
            "pool_pre_ping": True,  # Verify connections before using
            "echo": os.getenv("SQL_ECHO", "false").lower() == "true",
        }
        if not settings.DATABASE_URL.startswith("sqlite"):
            engine_kwargs.update(pool_size=5, max_overflow=10)

        _engine = create_engine(settings.DATABASE_URL, **engine_kwargs)
        _SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=_engine)

    return _engine


def get_session_factory() -> sessionmaker:
    """Get the session factory, creating the engine on first use."""
    get_engine()
    return _SessionLocal


def init_db() -> None:
    """Initialize database tables."""
    from trend_engine.models.tables import Base
    # checkfirst=True will only create tables that don't exist
    Base.metadata.create_all(bind=get_engine(), checkfirst=True)
