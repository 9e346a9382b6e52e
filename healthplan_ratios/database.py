"""
Database configuration and session management.

Provides the SQLAlchemy engine, session factory and declarative base.
"""

from sqlalchemy import create_engine
from sqlalchemy.orm import declarative_base, sessionmaker

from healthplan_ratios.config import get_settings

settings = get_settings()

# Create SQLAlchemy engine
# SQLite doesn't support pool_size/max_overflow
if settings.database_url.startswith("sqlite"):
    engine = create_engine(
        settings.database_url,
        connect_args={"check_same_thread": False},
    )
else:
    engine = create_engine(
        settings.database_url,
        pool_pre_ping=True,
        pool_size=10,
        max_overflow=20,
    )

# Create session factory
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

# Create declarative base for models
Base = declarative_base()


def init_db() -> None:
    """Initialize database tables."""
    # Import models to ensure they're registered with Base
    from healthplan_ratios.models import operator  # noqa: F401
    from healthplan_ratios.models import ledger_entry  # noqa: F401
    from healthplan_ratios.models import covered_individuals  # noqa: F401

    Base.metadata.create_all(bind=engine)
