"""Exceptions raised by form operations.

Every failure a caller can see derives from FormError. All of them are
raised before or instead of the requested change, except AlreadyAnsweredError
in non-atomic submission mode (see SubmissionService).
"""

from typing import Optional


class FormError(Exception):
    """Base class for form operation failures."""
    pass


class FormNotFoundError(FormError):
    """Raised when a form id does not resolve to a published form."""

    def __init__(self, form_id: int):
        self.form_id = form_id
        super().__init__(f"Form {form_id} not found")


class RespondentMappingNotFoundError(FormError):
    """Raised when a mapping id does not resolve to a respondent mapping."""

    def __init__(self, mapping_id: int):
        self.mapping_id = mapping_id
        super().__init__(f"Respondent mapping {mapping_id} not found")


class NotOwnerError(FormError):
    """Raised when someone other than the form owner changes its questions."""

    def __init__(self, form_id: int, caller: str):
        self.form_id = form_id
        self.caller = caller
        super().__init__(f"Caller is not the owner of form {form_id}")


class QuestionAttachedError(FormError):
    """Raised when a question that already belongs to a form is added again."""

    def __init__(self, question_key: str, form_id: Optional[int]):
        self.question_key = question_key
        self.form_id = form_id
        super().__init__(
            f"Question '{question_key}' already belongs to form {form_id}"
        )


class DuplicateQuestionKeyError(FormError):
    """Raised when unique question keys are enforced and a key repeats."""

    def __init__(self, question_key: str, form_id: Optional[int] = None):
        self.question_key = question_key
        self.form_id = form_id
        super().__init__(f"Question key '{question_key}' already used in form")


class QuestionAnswerMismatchError(FormError):
    """Raised when the number of answers differs from the number of questions."""

    def __init__(self, form_id: int, expected: int, received: int):
        self.form_id = form_id
        self.expected = expected
        self.received = received
        super().__init__(
            f"Form {form_id} has {expected} questions but {received} answers were submitted"
        )


class AlreadyAnsweredError(FormError):
    """Raised when the respondent already answered the question at ``index``."""

    def __init__(self, form_id: int, index: int, question_key: str):
        self.form_id = form_id
        self.index = index
        self.question_key = question_key
        super().__init__(
            f"Question {index} ('{question_key}') of form {form_id} already answered"
        )
