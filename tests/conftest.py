"""Pytest configuration and shared fixtures.

This module provides fixtures and configuration used across all tests.
"""

import os
from typing import Generator

import pytest
from sqlalchemy import create_engine, event
from sqlalchemy.orm import Session, sessionmaker

# Set environment variables for tests BEFORE importing package modules
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("ENVIRONMENT", "development")
os.environ.setdefault("LOG_LEVEL", "DEBUG")

from survey_forms.config import Settings
from survey_forms.models import Base
from survey_forms.services.locks import EntityLockRegistry


def _enable_sqlite_foreign_keys(engine) -> None:
    @event.listens_for(engine, "connect")
    def set_sqlite_pragma(dbapi_conn, connection_record):
        cursor = dbapi_conn.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()


@pytest.fixture(scope="function")
def db_engine():
    """Create a test database engine with SQLite in-memory database.

    Yields:
        Engine: SQLAlchemy engine for testing

    Note:
        Database is created fresh for each test function.
    """
    engine = create_engine(
        "sqlite:///:memory:",
        echo=False,  # Set to True for SQL debugging
    )
    _enable_sqlite_foreign_keys(engine)

    Base.metadata.create_all(engine)

    yield engine

    Base.metadata.drop_all(engine)
    engine.dispose()


@pytest.fixture(scope="function")
def db_session(db_engine) -> Generator[Session, None, None]:
    """Create a test database session.

    Args:
        db_engine: Test database engine fixture

    Yields:
        Session: SQLAlchemy session for testing
    """
    TestSessionLocal = sessionmaker(
        bind=db_engine,
        autocommit=False,
        autoflush=False,
        expire_on_commit=False,
    )

    session = TestSessionLocal()

    yield session

    session.rollback()
    session.close()


@pytest.fixture(scope="function")
def file_session_factory(tmp_path):
    """Session factory on a file-backed SQLite database.

    Sessions from this factory use their own connections, which lets tests
    drive the same form from several sessions or threads.
    """
    engine = create_engine(
        f"sqlite:///{tmp_path / 'forms.db'}",
        connect_args={"check_same_thread": False, "timeout": 30},
    )
    _enable_sqlite_foreign_keys(engine)
    Base.metadata.create_all(engine)

    yield sessionmaker(
        bind=engine,
        autocommit=False,
        autoflush=False,
        expire_on_commit=False,
    )

    engine.dispose()


@pytest.fixture
def atomic_settings() -> Settings:
    """Settings with all-or-nothing submissions (the default)."""
    return Settings(atomic_submissions=True)


@pytest.fixture
def legacy_settings() -> Settings:
    """Settings with in-order, per-question commits."""
    return Settings(atomic_submissions=False)


@pytest.fixture
def strict_settings() -> Settings:
    """Settings that reject duplicate question keys."""
    return Settings(enforce_unique_question_keys=True)


@pytest.fixture
def locks() -> EntityLockRegistry:
    """Fresh lock registry, isolated from the process-wide one."""
    return EntityLockRegistry()


@pytest.fixture
def owner() -> str:
    """Identity of a form owner."""
    return "0xa11ce0000000000000000000000000000000000a"


@pytest.fixture
def respondent() -> str:
    """Identity of a respondent."""
    return "0xb0b0000000000000000000000000000000000b0b"


@pytest.fixture
def other_identity() -> str:
    """Identity that neither owns forms nor answered anything."""
    return "0xc4a2100000000000000000000000000000000c4a"
