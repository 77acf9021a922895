"""Answer submission for forms.

A submission is one respondent's answer vector: answer ``i`` belongs to
question ``i``. Each respondent may answer each question once. The
submission runs under the form's lock so concurrent submissions to the same
form are applied one after another.

Two modes are supported, chosen by ``Settings.atomic_submissions``:

- atomic (default): every question is checked before anything is written,
  so a submission either records all of its answers or none of them.
- non-atomic: questions are walked in order and each answer is committed as
  soon as it is written. When question ``k`` turns out to be answered
  already, answers for questions ``0..k-1`` stay recorded.
"""

from typing import Optional, Sequence, Union

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from survey_forms.config import Settings, get_settings
from survey_forms.errors import (
    AlreadyAnsweredError,
    FormError,
    QuestionAnswerMismatchError,
)
from survey_forms.logging_config import get_logger, truncate_identity
from survey_forms.models.question import Answer, Question
from survey_forms.schemas.form import AnswerSubmission
from survey_forms.services.form_service import FORM_LOCK, load_form
from survey_forms.services.locks import ENTITY_LOCKS, EntityLockRegistry

logger = get_logger(__name__)


class SubmissionService:
    """Service for recording respondents' answers against a form."""

    def __init__(
        self,
        db: Session,
        settings: Optional[Settings] = None,
        locks: Optional[EntityLockRegistry] = None,
    ):
        """Initialize submission service.

        Args:
            db: SQLAlchemy database session
            settings: Behaviour settings (defaults to application settings)
            locks: Lock registry (defaults to the process-wide registry)
        """
        self.db = db
        self.settings = settings or get_settings()
        self.locks = locks or ENTITY_LOCKS

    def submit_answer(
        self,
        form_id: int,
        answers: Union[Sequence[str], AnswerSubmission],
        caller: str,
    ) -> list[Answer]:
        """Record ``caller``'s answers to every question of a form.

        Args:
            form_id: Form identity
            answers: One answer per question, in question order
            caller: Respondent identity

        Returns:
            list[Answer]: The recorded answers, in question order

        Raises:
            FormNotFoundError: If the form does not exist
            QuestionAnswerMismatchError: If the answer count differs from the
                question count; nothing is written
            AlreadyAnsweredError: If ``caller`` already answered a question.
                In atomic mode nothing is written; otherwise answers for
                earlier questions remain recorded.
        """
        if isinstance(answers, AnswerSubmission):
            answers = answers.answers
        answers = list(answers)

        with self.locks.hold(FORM_LOCK, form_id):
            try:
                form = load_form(self.db, form_id, for_update=True)
                questions = list(form.questions)

                if len(answers) != len(questions):
                    logger.warning(
                        f"Rejected submission from {truncate_identity(caller)}: "
                        f"{len(answers)} answers for {len(questions)} questions",
                        extra={"form_id": form_id},
                    )
                    raise QuestionAnswerMismatchError(form_id, len(questions), len(answers))

                if self.settings.atomic_submissions:
                    recorded = self._submit_atomic(form_id, questions, answers, caller)
                else:
                    recorded = self._submit_in_order(form_id, questions, answers, caller)
            except FormError:
                self.db.rollback()
                raise
            except Exception as e:
                logger.error(f"Unexpected error submitting answers to form {form_id}: {e}")
                self.db.rollback()
                raise

        logger.info(
            f"Recorded {len(recorded)} answers from {truncate_identity(caller)}",
            extra={"form_id": form_id, "respondent": truncate_identity(caller)},
        )
        return recorded

    def _submit_atomic(
        self,
        form_id: int,
        questions: list[Question],
        answers: list[str],
        caller: str,
    ) -> list[Answer]:
        """Check every question, then write all answers in one commit."""
        for index, question in enumerate(questions):
            if question.has_answer(caller):
                self._reject_answered(form_id, index, question, caller)

        recorded = [
            question.record_answer(caller, answer)
            for question, answer in zip(questions, answers)
        ]

        try:
            self.db.commit()
        except IntegrityError:
            # Another process recorded an answer after our check
            self.db.rollback()
            index = self._first_answered_index(questions, caller)
            if index is None:
                raise
            self._reject_answered(form_id, index, questions[index], caller)

        return recorded

    def _submit_in_order(
        self,
        form_id: int,
        questions: list[Question],
        answers: list[str],
        caller: str,
    ) -> list[Answer]:
        """Walk the questions, committing each answer as it is written."""
        recorded = []
        for index, (question, answer) in enumerate(zip(questions, answers)):
            if question.has_answer(caller):
                if recorded:
                    logger.warning(
                        f"Submission stopped at question {index}; "
                        f"{len(recorded)} earlier answers remain recorded",
                        extra={"form_id": form_id},
                    )
                self._reject_answered(form_id, index, question, caller)

            recorded.append(question.record_answer(caller, answer))
            try:
                self.db.commit()
            except IntegrityError:
                self.db.rollback()
                self.db.expire(question, ["answers"])
                if not question.has_answer(caller):
                    raise
                self._reject_answered(form_id, index, question, caller)

            logger.debug(
                f"Recorded answer for question {index} ('{question.key}')",
                extra={"form_id": form_id},
            )

        return recorded

    def _first_answered_index(self, questions: list[Question], caller: str) -> Optional[int]:
        """Index of the first question ``caller`` has answered in the store, if any."""
        for index, question in enumerate(questions):
            self.db.expire(question, ["answers"])
            if question.has_answer(caller):
                return index
        return None

    def _reject_answered(
        self,
        form_id: int,
        index: int,
        question: Question,
        caller: str,
    ) -> None:
        logger.warning(
            f"Question {index} ('{question.key}') already answered by "
            f"{truncate_identity(caller)}",
            extra={"form_id": form_id},
        )
        raise AlreadyAnsweredError(form_id, index, question.key)
