"""Form model: an owned, ordered collection of questions.

A form is created once by its owner and is then shared by the whole system.
Only the owner may extend its question list, and the list only grows.
"""

from datetime import datetime
from typing import TYPE_CHECKING

from sqlalchemy import DateTime, Index, String, Text, text
from sqlalchemy.ext.orderinglist import ordering_list
from sqlalchemy.orm import Mapped, mapped_column, relationship, validates

from survey_forms.models.database import Base

if TYPE_CHECKING:
    from survey_forms.models.question import Question


class Form(Base):
    """Model for a published survey form.

    Attributes:
        id: Primary key, the form's identity throughout the system
        owner: Identity of the creator; immutable after creation
        audience: Descriptive metadata, stored as given
        data_type: Descriptive metadata, stored as given
        purpose: Descriptive metadata, stored as given
        demographic: Descriptive metadata, stored as given
        created_at: When the form was published
        questions: Questions in display order (append-only)
    """

    __tablename__ = "forms"

    # Primary Key
    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)

    # Ownership
    owner: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
        comment="Identity of the form creator"
    )

    # Descriptive Metadata (opaque, never validated)
    audience: Mapped[str] = mapped_column(Text, nullable=False, default="")
    data_type: Mapped[str] = mapped_column(Text, nullable=False, default="")
    purpose: Mapped[str] = mapped_column(Text, nullable=False, default="")
    demographic: Mapped[str] = mapped_column(Text, nullable=False, default="")

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        server_default=text("CURRENT_TIMESTAMP"),
        comment="When the form was published"
    )

    # Ordered questions; ordering_list keeps Question.position in step with list order
    questions: Mapped[list["Question"]] = relationship(
        "Question",
        back_populates="form",
        order_by="Question.position",
        collection_class=ordering_list("position"),
        cascade="all, delete-orphan",
    )

    __table_args__ = (
        Index("idx_forms_owner", "owner"),
    )

    @validates("owner")
    def _validate_owner(self, key: str, value: str) -> str:
        """Allow the owner to be set once."""
        if self.owner is not None and value != self.owner:
            raise ValueError("Form owner cannot be changed")
        return value

    def is_owned_by(self, identity: str) -> bool:
        """Check whether an identity created this form."""
        return self.owner == identity

    def append_question(self, question: "Question") -> None:
        """Append a question at the end of the form.

        Args:
            question: Question to attach; its position is assigned from
                the current question count

        Note:
            Ownership checks belong to the caller (see FormService).
        """
        self.questions.append(question)

    @property
    def question_count(self) -> int:
        """Number of questions currently attached."""
        return len(self.questions)

    @property
    def question_keys(self) -> list[str]:
        """Question keys in form order."""
        return [question.key for question in self.questions]

    def __repr__(self) -> str:
        """String representation for debugging."""
        return (
            f"<Form(id={self.id}, "
            f"owner={self.owner}, "
            f"questions={len(self.questions)})>"
        )
