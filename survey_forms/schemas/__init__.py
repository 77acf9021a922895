"""Pydantic schemas for data validation.

This package contains the input and read-view models for forms.
"""

from survey_forms.schemas.form import (
    QuestionCreate,
    FormCreate,
    AnswerSubmission,
    QuestionView,
    FormView,
    RespondentMappingView,
)

__all__ = [
    "QuestionCreate",
    "FormCreate",
    "AnswerSubmission",
    "QuestionView",
    "FormView",
    "RespondentMappingView",
]
