"""RespondentMapping model for tracking who engaged with a form.

The mapping is a side table bound to one form by reference. It is updated
independently of answer submission: an identity can be recorded without
having answered, and answers can exist for identities never recorded here.
"""

from datetime import datetime
from typing import TYPE_CHECKING

from sqlalchemy import DateTime, ForeignKey, Index, Integer, String, text
from sqlalchemy.ext.orderinglist import ordering_list
from sqlalchemy.orm import Mapped, mapped_column, relationship

from survey_forms.models.database import Base

if TYPE_CHECKING:
    from survey_forms.models.form import Form


class RespondentMapping(Base):
    """Model for the respondent log of a single form.

    Attributes:
        id: Primary key
        form_id: Form being tracked (a reference, the form does not own it)
        created_at: When the mapping was created
        entries: Recorded identities in insertion order, duplicates allowed
    """

    __tablename__ = "respondent_mappings"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)

    form_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("forms.id"),
        nullable=False,
        index=True,
        comment="Form this mapping tracks"
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        server_default=text("CURRENT_TIMESTAMP"),
    )

    form: Mapped["Form"] = relationship("Form")
    entries: Mapped[list["RespondentEntry"]] = relationship(
        "RespondentEntry",
        back_populates="mapping",
        order_by="RespondentEntry.position",
        collection_class=ordering_list("position"),
        cascade="all, delete-orphan",
    )

    @property
    def respondents(self) -> list[str]:
        """Recorded identities in the order they were added."""
        return [entry.identity for entry in self.entries]

    def add_respondent(self, identity: str) -> "RespondentEntry":
        """Append an identity to the log.

        No existence check is made; recording the same identity twice
        yields two entries.

        Args:
            identity: Respondent identity

        Returns:
            RespondentEntry: The new entry (pending until flushed)
        """
        entry = RespondentEntry(identity=identity)
        self.entries.append(entry)
        return entry

    def __repr__(self) -> str:
        """String representation for debugging."""
        return (
            f"<RespondentMapping(id={self.id}, "
            f"form_id={self.form_id}, "
            f"respondents={len(self.entries)})>"
        )


class RespondentEntry(Base):
    """A single identity recorded in a respondent mapping."""

    __tablename__ = "respondent_entries"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)

    mapping_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("respondent_mappings.id", ondelete="CASCADE"),
        nullable=False,
    )
    position: Mapped[int] = mapped_column(Integer, nullable=False)
    identity: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
        comment="Respondent identity"
    )
    recorded_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        server_default=text("CURRENT_TIMESTAMP"),
    )

    mapping: Mapped["RespondentMapping"] = relationship(
        "RespondentMapping",
        back_populates="entries",
    )

    __table_args__ = (
        Index("idx_entries_mapping_position", "mapping_id", "position"),
        Index("idx_entries_identity", "identity"),
    )

    def __repr__(self) -> str:
        """String representation for debugging."""
        return (
            f"<RespondentEntry(mapping_id={self.mapping_id}, "
            f"position={self.position}, "
            f"identity={self.identity})>"
        )
