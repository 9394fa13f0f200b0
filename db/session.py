# WORKFLOW: Database session management and connection handling.
# Used by: All database operations throughout the import
# Functions:
# 1. configure_engine() - Bind the engine to a connection string from the command line
# 2. get_db() - Yield a session and close it after use
# 3. init_db() - Create missing import tables
# 4. check_db_connection() - Connectivity check before running stages
#
# Database lifecycle:
# Startup: configure_engine() -> check_db_connection() -> (optional) init_db()
# Runtime: get_db() -> Session -> Query -> Close session

import logging
from typing import Any, Dict, Optional

from sqlalchemy import create_engine, text
from sqlalchemy.engine import Engine, make_url
from sqlalchemy.orm import sessionmaker

from core.config import settings

logger = logging.getLogger(__name__)

# Lazy-loaded database engine and session factory
_engine = None
_SessionLocal = None


def _connect_args(database_url: str) -> Dict[str, Any]:
    """Connection options for the target dialect."""
    if make_url(database_url).get_backend_name() != "postgresql":
        return {}

    options = "-c timezone=utc"
    if settings.statement_timeout_ms > 0:
        options += f" -c statement_timeout={settings.statement_timeout_ms}"
    return {"options": options}


def configure_engine(database_url: Optional[str] = None) -> Engine:
    """
    Create the engine for a connection string, replacing any previous one.

    Args:
        database_url: SQLAlchemy URL; defaults to settings.database_url
    """
    global _engine, _SessionLocal
    url = database_url or settings.database_url

    if _engine is not None:
        _engine.dispose()

    _engine = create_engine(
        url,
        pool_pre_ping=True,
        echo=settings.debug,
        connect_args=_connect_args(url),
    )
    _SessionLocal = None
    logger.info(f"Database engine configured for {make_url(url).render_as_string(hide_password=True)}")
    return _engine


def get_engine() -> Engine:
    """Get database engine (lazy-loaded)."""
    if _engine is None:
        configure_engine()
    return _engine


def get_session_factory():
    """Get session factory (lazy-loaded)."""
    global _SessionLocal
    if _SessionLocal is None:
        _SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=get_engine())
    return _SessionLocal


def get_db():
    """
    Yield a database session and ensure it's closed after use.
    """
    SessionLocal = get_session_factory()
    db = SessionLocal()
    try:
        yield db
    except Exception as e:
        logger.error(f"Database session error: {e}")
        db.rollback()
        raise
    finally:
        db.close()


def init_db() -> None:
    """
    Create the import tables that do not exist yet.
    """
    from db.models import Base

    try:
        Base.metadata.create_all(bind=get_engine())
        logger.info("Database tables created successfully")
    except Exception as e:
        logger.error(f"Database initialization failed: {e}")
        raise


def check_db_connection() -> bool:
    """
    Check if database connection is working.
    """
    try:
        with get_engine().connect() as conn:
            conn.execute(text("SELECT 1")).fetchone()
        return True
    except Exception as e:
        logger.error(f"Database connection check failed: {e}")
        return False
