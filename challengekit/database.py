"""
Database engine, sessions, and retry policy for the account directory.

SQLite for local use and tests, PostgreSQL when deployed. Lookups that hit
a transient error are retried with backoff before the directory reports the
database as unavailable.
"""
import logging
import random
import time
from contextlib import contextmanager
from functools import wraps

from sqlalchemy import create_engine
from sqlalchemy.exc import DBAPIError, IntegrityError, OperationalError
from sqlalchemy.orm import declarative_base, sessionmaker
from sqlalchemy.pool import StaticPool

from .config import settings

logger = logging.getLogger("challengekit.database")

Base = declarative_base()

IN_MEMORY_URLS = ("sqlite://", "sqlite:///:memory:")
MAX_RETRY_DELAY = 2.0


def create_app_engine(database_url: str = None):
    """
    Create an engine for the accounts database.

    In-memory SQLite shares one connection so every session sees the same
    tables. File SQLite waits on locks for the pool timeout. Other backends
    get a bounded, pre-pinged pool.
    """
    url = database_url or settings.database_url

    if url in IN_MEMORY_URLS:
        return create_engine(url, connect_args={"check_same_thread": False}, poolclass=StaticPool)

    if url.startswith("sqlite"):
        return create_engine(
            url,
            connect_args={"check_same_thread": False, "timeout": settings.db_pool_timeout},
        )

    engine = create_engine(
        url,
        pool_size=settings.db_pool_size,
        max_overflow=settings.db_max_overflow,
        pool_timeout=settings.db_pool_timeout,
        pool_pre_ping=True,
        pool_recycle=settings.db_pool_recycle,
    )
    logger.info("Created pooled engine for %s", engine.url.get_backend_name())
    return engine


engine = create_app_engine()
# Accounts outlive their session: the challenge flows read them after the
# lookup session has closed.
SessionLocal = sessionmaker(autocommit=False, autoflush=False, expire_on_commit=False, bind=engine)


def is_transient_error(exc: Exception) -> bool:
    """Connection drops and lock timeouts are worth retrying; constraint violations are not."""
    if isinstance(exc, IntegrityError):
        return False
    return isinstance(exc, (OperationalError, DBAPIError))


def with_retry(func):
    """Retry ``func`` on transient database errors with exponential backoff and jitter."""
    @wraps(func)
    def wrapper(*args, **kwargs):
        attempts = settings.db_retry_max_attempts
        for attempt in range(attempts):
            try:
                return func(*args, **kwargs)
            except Exception as exc:
                if not is_transient_error(exc) or attempt == attempts - 1:
                    raise
                delay = min(settings.db_retry_base_delay * (2 ** attempt), MAX_RETRY_DELAY)
                delay += random.uniform(0, delay * 0.5)
                logger.warning(
                    "Transient DB error in %s (attempt %d/%d), retrying in %.2fs: %s",
                    func.__name__, attempt + 1, attempts, delay, exc
                )
                time.sleep(delay)

    return wrapper


@contextmanager
def session_scope(session_factory=None):
    """
    One unit of work: commit on success, roll back on any error.

    Usage:
        with session_scope() as db:
            db.query(...)
    """
    db = (session_factory or SessionLocal)()
    try:
        yield db
        db.commit()
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()


def init_db(bind=None):
    """Create the accounts table."""
    from .auth import models  # noqa: F401

    Base.metadata.create_all(bind=bind or engine)
