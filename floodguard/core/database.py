"""
Database configuration and session management.
"""

import logging
import time

from sqlalchemy import create_engine
from sqlalchemy.exc import OperationalError, ProgrammingError
from sqlalchemy.orm import declarative_base, sessionmaker
from sqlalchemy.pool import QueuePool

from floodguard.core.config import settings
from floodguard.core.exceptions import PersistenceException

logger = logging.getLogger(__name__)

# SQLite connections are shared between the API thread pool and the worker
connect_args = (
    {"check_same_thread": False} if settings.database_url.startswith("sqlite") else {}
)

engine = create_engine(
    settings.database_url,
    poolclass=QueuePool,
    pool_size=settings.database_pool_size,
    max_overflow=settings.database_max_overflow,
    pool_pre_ping=True,
    echo=settings.debug,
    connect_args=connect_args,
)


SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


Base = declarative_base()


def init_db(max_retries: int = 30, retry_interval: float = 2) -> None:
    """
    Initialize database tables.
    Creates tables if they don't exist, retrying while the database is unreachable.
    """
    from floodguard.models import FloodRiskRecord  # noqa: F401

    for attempt in range(max_retries):
        try:
            logger.info(
                f"Targeting tables for creation: {list(Base.metadata.tables.keys())}"
            )
            Base.metadata.create_all(bind=engine, checkfirst=True)
            logger.info("Database tables initialized successfully")
            return
        except (ProgrammingError, OperationalError) as e:
            error_str = str(e).lower()
            if "already exists" in error_str or "duplicate" in error_str:
                logger.warning(
                    f"Some database objects already exist (this is normal): {e}"
                )
                return
            elif isinstance(e, OperationalError) and "connection refused" in error_str:
                logger.warning(
                    f"Database connection refused (Attempt {attempt + 1}/{max_retries}). Retrying in {retry_interval}s..."
                )
                time.sleep(retry_interval)
            else:
                logger.error(f"Database initialization exception details: {e}")
                raise

    logger.error("Max retries exceeded. Could not connect to database.")
    raise PersistenceException(
        "Could not connect to database", {"attempts": max_retries}
    )
