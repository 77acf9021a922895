"""Question construction and read-only access.

Questions are built here without touching the database. They become part of
the store only once FormService attaches them to a form, at which point the
form owns them.
"""

from typing import Optional, Sequence, Union

from survey_forms.models.question import Question
from survey_forms.schemas.form import QuestionCreate, QuestionView
from survey_forms.logging_config import get_logger

logger = get_logger(__name__)

QuestionInput = Union[Question, QuestionCreate]


def create_question(
    key: str,
    type: str,
    prompt: str,
    options: Optional[Sequence[str]] = None,
) -> Question:
    """Create a detached question with an empty answer map.

    No checks are made against existing forms; the same key may be used by
    many questions.

    Args:
        key: Question identifier
        type: Free-form answer shape tag (not checked against options)
        prompt: Display text
        options: Ordered choices for choice-type questions

    Returns:
        Question: New question, not yet attached to any form

    Example:
        >>> q = create_question("Q1", "single-choice", "Do you cycle?", ["yes", "no"])
        >>> q.answer_count
        0
    """
    question = Question(
        key=key,
        type=type,
        prompt=prompt,
        options=list(options) if options is not None else None,
    )
    logger.debug(f"Created question {key} ({type})")
    return question


def create_question_from(definition: QuestionCreate) -> Question:
    """Create a detached question from a QuestionCreate schema."""
    return create_question(
        key=definition.key,
        type=definition.type,
        prompt=definition.prompt,
        options=definition.options,
    )


def to_question(item: QuestionInput) -> Question:
    """Return ``item`` as a Question, building one from a schema if needed."""
    if isinstance(item, QuestionCreate):
        return create_question_from(item)
    return item


def view_question(question: Question) -> QuestionView:
    """Read-only snapshot of a question."""
    return QuestionView.from_question(question)
