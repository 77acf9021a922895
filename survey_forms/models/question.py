"""Question and Answer models.

A question carries an opaque key, a free-form type tag, the prompt text, an
optional list of choices and the answers given to it, keyed by respondent.
Each respondent answers a question at most once; the unique constraint on
(question_id, respondent) enforces this at the storage layer.
"""

from datetime import datetime
from typing import TYPE_CHECKING, Optional

from sqlalchemy import (
    JSON,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
    text as sql_text,
)
from sqlalchemy.orm import Mapped, attribute_keyed_dict, mapped_column, relationship

from survey_forms.models.database import Base

if TYPE_CHECKING:
    from survey_forms.models.form import Form


class Question(Base):
    """Model for a single form question.

    Questions are built on their own (form_id is NULL) and then moved into
    exactly one form, which assigns their position.

    Attributes:
        id: Primary key
        form_id: Owning form, NULL until the question is attached
        position: Zero-based index within the form
        key: Caller-supplied question identifier (not required to be unique)
        type: Free-form tag for the expected answer shape
        prompt: Display text
        options: Ordered choices for choice-type questions, or None
        created_at: When the question was created
        answers: Answers keyed by respondent identity
    """

    __tablename__ = "questions"

    # Primary Key
    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)

    # Placement
    form_id: Mapped[Optional[int]] = mapped_column(
        Integer,
        ForeignKey("forms.id", ondelete="CASCADE"),
        nullable=True,
        index=True,
        comment="Form this question belongs to"
    )
    position: Mapped[Optional[int]] = mapped_column(
        Integer,
        nullable=True,
        comment="Zero-based index within the form"
    )

    # Content
    key: Mapped[str] = mapped_column(
        String(100),
        nullable=False,
        comment="Caller-supplied question identifier"
    )
    type: Mapped[str] = mapped_column(
        String(50),
        nullable=False,
        comment="Free-form answer shape tag, e.g. single-choice or text"
    )
    prompt: Mapped[str] = mapped_column(Text, nullable=False)
    options: Mapped[Optional[list]] = mapped_column(
        JSON,
        nullable=True,
        comment="Ordered choices for choice-type questions"
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        server_default=sql_text("CURRENT_TIMESTAMP"),
    )

    form: Mapped[Optional["Form"]] = relationship(
        "Form",
        back_populates="questions",
    )
    answers: Mapped[dict[str, "Answer"]] = relationship(
        "Answer",
        back_populates="question",
        collection_class=attribute_keyed_dict("respondent"),
        cascade="all, delete-orphan",
    )

    __table_args__ = (
        Index("idx_questions_form_position", "form_id", "position"),
    )

    @property
    def is_attached(self) -> bool:
        """Whether the question has been moved into a form."""
        return self.form is not None or self.form_id is not None

    @property
    def answer_count(self) -> int:
        """Number of respondents who answered this question."""
        return len(self.answers)

    @property
    def answer_map(self) -> dict[str, str]:
        """Copy of the answers as respondent -> answer text."""
        return {respondent: answer.text for respondent, answer in self.answers.items()}

    def has_answer(self, respondent: str) -> bool:
        """Check whether a respondent already answered this question."""
        return respondent in self.answers

    def record_answer(self, respondent: str, answer_text: str) -> "Answer":
        """Record a respondent's answer.

        Args:
            respondent: Identity of the respondent
            answer_text: Answer as submitted

        Returns:
            Answer: The new answer row (pending until flushed)

        Raises:
            ValueError: If the respondent already answered; answers are
                never overwritten
        """
        if respondent in self.answers:
            raise ValueError(
                f"Respondent already answered question '{self.key}'"
            )
        answer = Answer(respondent=respondent, text=answer_text)
        self.answers[respondent] = answer
        return answer

    def __repr__(self) -> str:
        """String representation for debugging."""
        return (
            f"<Question(id={self.id}, "
            f"key={self.key}, "
            f"form_id={self.form_id}, "
            f"position={self.position})>"
        )


class Answer(Base):
    """Model for one respondent's answer to one question.

    Attributes:
        id: Primary key
        question_id: Foreign key to questions table
        respondent: Identity of the respondent
        text: Answer text, stored as submitted
        answered_at: When the answer was recorded
    """

    __tablename__ = "answers"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)

    question_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("questions.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    respondent: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
        comment="Identity of the respondent"
    )
    text: Mapped[str] = mapped_column(
        Text,
        nullable=False,
        comment="Answer text as submitted"
    )
    answered_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        server_default=sql_text("CURRENT_TIMESTAMP"),
    )

    question: Mapped["Question"] = relationship(
        "Question",
        back_populates="answers",
    )

    __table_args__ = (
        UniqueConstraint("question_id", "respondent", name="uq_answer_question_respondent"),
    )

    def __repr__(self) -> str:
        """String representation for debugging."""
        return (
            f"<Answer(id={self.id}, "
            f"question_id={self.question_id}, "
            f"respondent={self.respondent})>"
        )
