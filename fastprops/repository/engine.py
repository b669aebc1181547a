"""
Database engine configuration for the content store.
"""
import logging
import os
from contextlib import contextmanager
from typing import Iterator

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine, make_url
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from .models import Base

engine = None
SessionLocal = None
logger = logging.getLogger(__name__)


def _create_engine(db_url: str) -> Engine:
    url = make_url(db_url)
    if url.get_backend_name() == "sqlite":
        database = url.database
        if not database or database == ":memory:":
            # One shared connection, otherwise every session sees its own empty database
            return create_engine(
                db_url,
                connect_args={"check_same_thread": False},
                poolclass=StaticPool,
                future=True,
            )
        directory = os.path.dirname(os.path.abspath(database))
        os.makedirs(directory, exist_ok=True)
    return create_engine(db_url, pool_pre_ping=True, future=True)


def create_session_factory(db_url: str) -> sessionmaker:
    """Create an engine for ``db_url`` and return a session factory bound to it."""
    bind = _create_engine(db_url)
    return sessionmaker(
        bind=bind,
        autocommit=False,
        autoflush=False,
        expire_on_commit=False,
    )


def init_db(db_url: str) -> sessionmaker:
    """Initializes the module-level engine and session factory."""
    global engine, SessionLocal
    logger.info("Initializing content store at %s", make_url(db_url).render_as_string(hide_password=True))
    SessionLocal = create_session_factory(db_url)
    engine = SessionLocal.kw["bind"]
    logger.info("Database engine initialized")
    return SessionLocal


def ensure_schema(session_factory: sessionmaker | None = None) -> None:
    """Create database tables if they do not exist yet.

    Safe to run repeatedly.
    """
    factory = session_factory or SessionLocal
    if factory is None:
        raise RuntimeError("Content store is not initialized; call init_db() first")
    Base.metadata.create_all(factory.kw["bind"])
    logger.info("Database schema ensured (create_all executed)")


@contextmanager
def get_session(session_factory: sessionmaker | None = None) -> Iterator[Session]:
    """Context manager for read/write sessions.

    Commits on success, rolls back and re-raises on error, always closes.
    """
    factory = session_factory or SessionLocal
    if factory is None:
        raise RuntimeError("Content store is not initialized; call init_db() first")
    session = factory()
    try:
        logger.debug("DB session opened")
        yield session
        session.commit()
        logger.debug("DB session committed")
    except Exception:
        session.rollback()
        logger.exception("DB session rolled back due to error")
        raise
    finally:
        session.close()
        logger.debug("DB session closed")
