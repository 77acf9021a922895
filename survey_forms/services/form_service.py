"""Form service for publishing forms and extending their question lists.

Only the form owner may add questions, questions are only ever appended,
and every write to a form happens under that form's lock.
"""

from typing import Iterable, Optional

from sqlalchemy import select
from sqlalchemy.orm import Session

from survey_forms.config import Settings, get_settings
from survey_forms.errors import (
    DuplicateQuestionKeyError,
    FormError,
    FormNotFoundError,
    NotOwnerError,
    QuestionAttachedError,
)
from survey_forms.logging_config import get_logger, truncate_identity
from survey_forms.models.form import Form
from survey_forms.models.question import Question
from survey_forms.schemas.form import FormCreate, FormView, QuestionView
from survey_forms.services.locks import ENTITY_LOCKS, EntityLockRegistry
from survey_forms.services.question_registry import QuestionInput, to_question

logger = get_logger(__name__)

FORM_LOCK = "form"


def load_form(db: Session, form_id: int, for_update: bool = False) -> Form:
    """Load a published form.

    With ``for_update`` the row is locked (on databases that support it)
    and the form's questions and their answers are reloaded, so the caller
    sees every write committed before it took the form lock.

    Args:
        db: Database session
        form_id: Form identity
        for_update: Lock the row and refresh cached state

    Returns:
        Form: The stored form

    Raises:
        FormNotFoundError: If no form has this id
    """
    stmt = select(Form).where(Form.id == form_id)
    if for_update:
        stmt = stmt.with_for_update().execution_options(populate_existing=True)

    form = db.execute(stmt).scalar_one_or_none()
    if form is None:
        raise FormNotFoundError(form_id)

    if for_update:
        db.expire(form, ["questions"])
        for question in form.questions:
            db.expire(question, ["answers"])
    return form


class FormService:
    """Service for creating forms and managing their questions.

    Example:
        >>> service = FormService(db)
        >>> form = service.create_form("cyclists", "survey", "planning", "adults",
        ...                            [create_question("Q1", "text", "Route?")], "alice")
        >>> service.get_owner(form.id)
        'alice'
    """

    def __init__(
        self,
        db: Session,
        settings: Optional[Settings] = None,
        locks: Optional[EntityLockRegistry] = None,
    ):
        """Initialize form service.

        Args:
            db: SQLAlchemy database session
            settings: Behaviour settings (defaults to application settings)
            locks: Lock registry (defaults to the process-wide registry)
        """
        self.db = db
        self.settings = settings or get_settings()
        self.locks = locks or ENTITY_LOCKS

    def create_form(
        self,
        audience: str,
        data_type: str,
        purpose: str,
        demographic: str,
        questions: Iterable[QuestionInput],
        creator: str,
    ) -> Form:
        """Create and publish a form owned by ``creator``.

        Args:
            audience: Descriptive metadata
            data_type: Descriptive metadata
            purpose: Descriptive metadata
            demographic: Descriptive metadata
            questions: Initial questions in order, as detached Question
                objects or QuestionCreate definitions
            creator: Identity that will own the form

        Returns:
            Form: The published form; its ``id`` is the handle used by every
            other operation

        Raises:
            QuestionAttachedError: If a question already belongs to a form
            DuplicateQuestionKeyError: If keys repeat and uniqueness is enforced
        """
        form = Form(
            owner=creator,
            audience=audience,
            data_type=data_type,
            purpose=purpose,
            demographic=demographic,
        )

        # Check every question before any of them is moved into the form
        built = [to_question(item) for item in questions]
        keys: list[str] = []
        for index, question in enumerate(built):
            if any(earlier is question for earlier in built[:index]):
                raise QuestionAttachedError(question.key, form.id)
            self._check_attachable(question, keys, form.id)
            keys.append(question.key)

        for question in built:
            form.append_question(question)

        try:
            self.db.add(form)
            self.db.commit()
        except Exception:
            self.db.rollback()
            for question in built:
                question.form = None
            raise

        logger.info(
            f"Published form {form.id} with {form.question_count} questions "
            f"for {truncate_identity(creator)}",
            extra={"form_id": form.id},
        )
        return form

    def create_form_from(self, definition: FormCreate, creator: str) -> Form:
        """Create and publish a form from a FormCreate schema."""
        return self.create_form(
            audience=definition.audience,
            data_type=definition.data_type,
            purpose=definition.purpose,
            demographic=definition.demographic,
            questions=definition.questions,
            creator=creator,
        )

    def add_question(self, form_id: int, question: QuestionInput, caller: str) -> Question:
        """Append a question to a form.

        Args:
            form_id: Form identity
            question: Detached Question or a QuestionCreate definition
            caller: Identity making the change

        Returns:
            Question: The attached question, positioned last

        Raises:
            FormNotFoundError: If the form does not exist
            NotOwnerError: If ``caller`` is not the form owner; the form is
                left unchanged
            QuestionAttachedError: If the question already belongs to a form
            DuplicateQuestionKeyError: If keys repeat and uniqueness is enforced
        """
        question = to_question(question)

        with self.locks.hold(FORM_LOCK, form_id):
            try:
                form = load_form(self.db, form_id, for_update=True)

                if not form.is_owned_by(caller):
                    logger.warning(
                        f"Rejected question '{question.key}' from non-owner "
                        f"{truncate_identity(caller)}",
                        extra={"form_id": form_id},
                    )
                    raise NotOwnerError(form_id, caller)

                self._attach(form, question)
                self.db.commit()
            except FormError:
                self.db.rollback()
                raise
            except Exception as e:
                logger.error(f"Unexpected error adding question to form {form_id}: {e}")
                self.db.rollback()
                raise

        logger.info(
            f"Added question '{question.key}' at position {question.position}",
            extra={"form_id": form_id},
        )
        return question

    def get_form(self, form_id: int) -> Form:
        """Get a published form by id.

        Raises:
            FormNotFoundError: If the form does not exist
        """
        return load_form(self.db, form_id)

    def get_form_view(self, form_id: int) -> FormView:
        """Read-only snapshot of a form and its questions."""
        return FormView.from_form(self.get_form(form_id))

    def get_owner(self, form_id: int) -> str:
        """Identity that created the form."""
        return self.get_form(form_id).owner

    def get_questions(self, form_id: int) -> tuple[QuestionView, ...]:
        """Read-only snapshots of the form's questions, in order."""
        return self.get_form_view(form_id).questions

    def _attach(self, form: Form, question: Question) -> None:
        """Move a detached question to the end of ``form``."""
        self._check_attachable(question, form.question_keys, form.id)
        form.append_question(question)

    def _check_attachable(
        self,
        question: Question,
        existing_keys: list[str],
        form_id: Optional[int],
    ) -> None:
        """Raise if ``question`` cannot join a form holding ``existing_keys``."""
        if question.is_attached:
            raise QuestionAttachedError(question.key, question.form_id)

        if question.key in existing_keys:
            if self.settings.enforce_unique_question_keys:
                raise DuplicateQuestionKeyError(question.key, form_id)
            logger.warning(
                f"Question key '{question.key}' is used more than once",
                extra={"form_id": form_id},
            )
