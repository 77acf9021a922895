"""Database setup and session management using SQLAlchemy 2.0.

This module configures the database engine, session factory, and base class
for all ORM models using modern SQLAlchemy 2.0 patterns.
"""

from contextlib import contextmanager
from typing import Generator, Optional

from sqlalchemy import Engine, create_engine
from sqlalchemy.orm import DeclarativeBase, Session, sessionmaker
from sqlalchemy.pool import StaticPool

from survey_forms.config import Settings, get_settings


class Base(DeclarativeBase):
    """Base class for all ORM models.

    Uses SQLAlchemy 2.0's DeclarativeBase for modern type-safe models.
    All models should inherit from this class.
    """
    pass


def build_engine(settings: Optional[Settings] = None) -> Engine:
    """Create an engine for the configured form store.

    Args:
        settings: Settings to read the URL and pool options from
            (defaults to the cached application settings)

    Returns:
        Engine: SQLAlchemy engine
    """
    settings = settings or get_settings()

    engine_kwargs = {
        "pool_pre_ping": True,  # Verify connections before using
    }

    if settings.is_sqlite:
        # Sessions may be used from worker threads
        engine_kwargs["connect_args"] = {"check_same_thread": False}
        if settings.database_url in ("sqlite://", "sqlite:///:memory:"):
            # One shared connection, otherwise every checkout sees an empty database
            engine_kwargs["poolclass"] = StaticPool
    else:
        engine_kwargs["pool_size"] = settings.database_pool_size
        engine_kwargs["max_overflow"] = settings.database_max_overflow

    return create_engine(settings.database_url, **engine_kwargs)


engine = build_engine()

SessionLocal = sessionmaker(
    bind=engine,
    autocommit=False,
    autoflush=False,
    expire_on_commit=False,  # Published forms stay readable after commit
)


def init_db(bind: Optional[Engine] = None) -> None:
    """Create all form store tables that do not exist yet.

    Args:
        bind: Engine to create tables on (defaults to the module engine)
    """
    # Register every model on Base.metadata
    from survey_forms import models  # noqa: F401

    Base.metadata.create_all(bind or engine)


def get_db() -> Generator[Session, None, None]:
    """Provide a database session that is closed when the caller is done.

    Yields:
        Session: SQLAlchemy database session

    Note:
        The session is automatically closed afterwards,
        even if an exception occurs.
    """
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


@contextmanager
def session_scope() -> Generator[Session, None, None]:
    """Context manager wrapper around get_db().

    Example:
        with session_scope() as db:
            form = FormService(db).create_form(...)
    """
    yield from get_db()
