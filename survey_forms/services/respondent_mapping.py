"""Respondent mapping service.

Tracks which identities engaged with a form. The mapping is written
independently of answer submission and never together with its form in one
transaction; each has its own lock.
"""

from typing import Optional

from sqlalchemy import select
from sqlalchemy.orm import Session

from survey_forms.errors import FormError, RespondentMappingNotFoundError
from survey_forms.logging_config import get_logger, truncate_identity
from survey_forms.models.respondent import RespondentEntry, RespondentMapping
from survey_forms.schemas.form import RespondentMappingView
from survey_forms.services.form_service import load_form
from survey_forms.services.locks import ENTITY_LOCKS, EntityLockRegistry

logger = get_logger(__name__)

MAPPING_LOCK = "respondent_mapping"


class RespondentMappingService:
    """Service for creating and appending to respondent mappings."""

    def __init__(self, db: Session, locks: Optional[EntityLockRegistry] = None):
        """Initialize respondent mapping service.

        Args:
            db: SQLAlchemy database session
            locks: Lock registry (defaults to the process-wide registry)
        """
        self.db = db
        self.locks = locks or ENTITY_LOCKS

    def create_respondent_mapping(self, form_id: int) -> RespondentMapping:
        """Create an empty respondent mapping for a form.

        Args:
            form_id: Form to track

        Returns:
            RespondentMapping: New, empty mapping

        Raises:
            FormNotFoundError: If the form does not exist
        """
        try:
            load_form(self.db, form_id)
            mapping = RespondentMapping(form_id=form_id)
            self.db.add(mapping)
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise

        logger.info(
            f"Created respondent mapping {mapping.id}",
            extra={"form_id": form_id, "mapping_id": mapping.id},
        )
        return mapping

    def add_respondent(self, mapping_id: int, identity: str) -> RespondentEntry:
        """Append an identity to a mapping.

        The identity is appended even when it is already present.

        Args:
            mapping_id: Mapping identity
            identity: Respondent identity to record

        Returns:
            RespondentEntry: The new entry

        Raises:
            RespondentMappingNotFoundError: If the mapping does not exist
        """
        with self.locks.hold(MAPPING_LOCK, mapping_id):
            try:
                mapping = self._load(mapping_id, for_update=True)
                entry = mapping.add_respondent(identity)
                self.db.commit()
            except FormError:
                self.db.rollback()
                raise
            except Exception as e:
                logger.error(f"Unexpected error adding respondent to mapping {mapping_id}: {e}")
                self.db.rollback()
                raise

        logger.info(
            f"Recorded respondent {truncate_identity(identity)} at position {entry.position}",
            extra={"mapping_id": mapping_id},
        )
        return entry

    def get_mapping(self, mapping_id: int) -> RespondentMapping:
        """Get a respondent mapping by id.

        Raises:
            RespondentMappingNotFoundError: If the mapping does not exist
        """
        return self._load(mapping_id)

    def get_mapping_view(self, mapping_id: int) -> RespondentMappingView:
        """Read-only snapshot of a mapping."""
        return RespondentMappingView.from_mapping(self.get_mapping(mapping_id))

    def get_respondents(self, mapping_id: int) -> tuple[str, ...]:
        """Recorded identities in the order they were added."""
        return self.get_mapping_view(mapping_id).respondents

    def list_mappings(self, form_id: int) -> list[RespondentMapping]:
        """All mappings that track a form, oldest first."""
        stmt = (
            select(RespondentMapping)
            .where(RespondentMapping.form_id == form_id)
            .order_by(RespondentMapping.id)
        )
        return list(self.db.execute(stmt).scalars())

    def _load(self, mapping_id: int, for_update: bool = False) -> RespondentMapping:
        stmt = select(RespondentMapping).where(RespondentMapping.id == mapping_id)
        if for_update:
            stmt = stmt.with_for_update().execution_options(populate_existing=True)

        mapping = self.db.execute(stmt).scalar_one_or_none()
        if mapping is None:
            raise RespondentMappingNotFoundError(mapping_id)

        if for_update:
            self.db.expire(mapping, ["entries"])
        return mapping
