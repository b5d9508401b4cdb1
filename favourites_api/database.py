"""Database engine, session factory and schema setup."""

import logging

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import declarative_base, sessionmaker

logger = logging.getLogger(__name__)

# Base class for declarative models
Base = declarative_base()


def create_db_engine(settings) -> Engine:
    """Create a database engine with a bounded connection pool.

    Args:
        settings: Application settings supplying the URL and pool limits

    Returns:
        Engine: SQLAlchemy engine. No connection is opened until first use.

    Example:
        ```python
        from favourites_api.config import get_settings
        from favourites_api.database import create_db_engine

        engine = create_db_engine(get_settings())
        ```
    """
    url = settings.database_url
    if url.startswith("sqlite"):
        # SQLite manages its own connections; pool sizing does not apply
        return create_engine(url, connect_args={"check_same_thread": False})

    return create_engine(
        url,
        pool_pre_ping=True,  # Verify connections before using
        pool_size=settings.db_pool_size,  # Connections kept open
        max_overflow=settings.db_max_overflow,  # Connections allowed beyond pool_size
        pool_recycle=settings.db_pool_recycle_seconds,  # Maximum connection lifetime
        pool_timeout=settings.db_pool_timeout_seconds,
        echo=False,  # Set to True for SQL query logging in development
    )


def create_session_factory(engine: Engine) -> sessionmaker:
    """Create a session factory bound to ``engine``."""
    return sessionmaker(
        autocommit=False,
        autoflush=False,
        expire_on_commit=False,
        bind=engine,
    )


def init_schema(engine: Engine) -> None:
    """Create missing tables. There is no migration tooling; existing tables are left as they are."""
    # Import models so they register on Base.metadata
    import favourites_api.models  # noqa: F401

    Base.metadata.create_all(bind=engine)
    logger.info("Database schema ready")
