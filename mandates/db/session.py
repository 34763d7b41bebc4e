"""Engine and session factory.

The engine is created on first use so that importing the application does
not require the database driver to be importable.
"""

import logging
from functools import lru_cache

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker

from mandates.core.config import get_settings
from mandates.db.base import Base

logger = logging.getLogger(__name__)


@lru_cache
def get_engine() -> Engine:
    settings = get_settings()
    return create_engine(settings.database_url, pool_pre_ping=True)


@lru_cache
def get_session_factory() -> sessionmaker:
    return sessionmaker(autocommit=False, autoflush=False, bind=get_engine())


def init_db(engine: Engine = None) -> None:
    """Create all tables that do not exist yet (development and tests; deployments run `alembic upgrade head`)."""
    # Register every model on the metadata
    import mandates.db.models  # noqa: F401

    engine = engine or get_engine()
    Base.metadata.create_all(bind=engine)
    logger.info("Database schema ready (%d tables)", len(Base.metadata.tables))
