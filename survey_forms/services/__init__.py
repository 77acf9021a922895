"""Form operations: publishing, question management, submission and
respondent tracking."""

from survey_forms.services.form_service import FormService
from survey_forms.services.question_registry import create_question, create_question_from
from survey_forms.services.respondent_mapping import RespondentMappingService
from survey_forms.services.submission import SubmissionService

__all__ = [
    "FormService",
    "RespondentMappingService",
    "SubmissionService",
    "create_question",
    "create_question_from",
]
