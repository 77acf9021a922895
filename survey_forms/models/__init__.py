"""Database models and session management.

This package contains all SQLAlchemy ORM models and database utilities.
"""

from survey_forms.models.database import (
    Base,
    engine,
    SessionLocal,
    build_engine,
    get_db,
    init_db,
    session_scope,
)
from survey_forms.models.form import Form
from survey_forms.models.question import Question, Answer
from survey_forms.models.respondent import RespondentMapping, RespondentEntry

__all__ = [
    "Base",
    "engine",
    "SessionLocal",
    "build_engine",
    "get_db",
    "init_db",
    "session_scope",
    "Form",
    "Question",
    "Answer",
    "RespondentMapping",
    "RespondentEntry",
]
