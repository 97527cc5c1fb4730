"""
Database initialization and session management
Provides connection pooling, session lifecycle and the atomic write scope
"""
from sqlalchemy.exc import OperationalError
from sqlmodel import SQLModel, create_engine, Session
from contextlib import contextmanager
from typing import Callable, Generator, Optional, TypeVar
import logging

from src.config import get_config
from src.errors import StoreConflict
from src import db_models  # noqa: F401  registers tables on SQLModel.metadata

logger = logging.getLogger(__name__)

T = TypeVar("T")

# Global engine instance
_engine = None


def create_db_engine(
    database_url: str, busy_timeout: float = 5.0, echo: bool = False
):
    """Create an engine; SQLite connections get a busy timeout for lock waits"""
    connect_args = {}
    if database_url.startswith("sqlite"):
        connect_args = {
            "check_same_thread": False,  # Sessions may be used from worker threads
            "timeout": busy_timeout,
        }
    return create_engine(database_url, echo=echo, connect_args=connect_args)


def get_engine():
    """Get or create the global database engine"""
    global _engine
    if _engine is None:
        config = get_config()
        _engine = create_db_engine(
            config.database_url,
            busy_timeout=config.sqlite_busy_timeout,
            echo=config.sql_echo,
        )
        logger.info(f"Database engine created: {_engine.url.render_as_string()}")

    return _engine


def init_database() -> None:
    """
    Initialize database tables
    Creates all tables if they don't exist
    """
    engine = get_engine()

    # Create all tables
    SQLModel.metadata.create_all(engine)

    logger.info("Database tables initialized")


@contextmanager
def get_session() -> Generator[Session, None, None]:
    """
    Get a database session with automatic commit/rollback

    Usage:
        with get_session() as session:
            ledger = QuotaLedger(session)
            ...

    Yields:
        Session: SQLModel session
    """
    engine = get_engine()
    session = Session(engine)

    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()


@contextmanager
def atomic(session: Session) -> Generator[Session, None, None]:
    """
    Run the enclosed statements as one transaction

    Commits on success. On any exception the transaction is rolled back;
    lock timeouts and serialization failures are re-raised as StoreConflict.
    """
    try:
        yield session
        session.commit()
    except OperationalError as e:
        session.rollback()
        logger.error(f"Transaction rolled back after store error: {e.orig}")
        raise StoreConflict(
            "Store could not complete the operation", reason=str(e.orig)
        ) from e
    except Exception:
        session.rollback()
        raise


def retry_on_conflict(
    operation: Callable[[], T], attempts: Optional[int] = None
) -> T:
    """
    Call operation, re-running it from scratch after a StoreConflict

    Args:
        operation: A complete atomic operation (never a partial step)
        attempts: Extra attempts after the first; defaults to config.conflict_retries
    """
    if attempts is None:
        attempts = get_config().conflict_retries

    retries = 0
    while True:
        try:
            return operation()
        except StoreConflict:
            if retries >= attempts:
                raise
            retries += 1
            logger.warning(f"Store conflict, retrying operation ({retries}/{attempts})")


def close_database() -> None:
    """Close database connections"""
    global _engine
    if _engine:
        _engine.dispose()
        _engine = None
        logger.info("Database connections closed")
