"""Settings domain service."""

import logging
from dataclasses import replace
from typing import Iterable, Optional

from bookkeeper.database.base import Database
from bookkeeper.domain.entities import Settings
from bookkeeper.domain.errors import ValidationError

logger = logging.getLogger(__name__)

DEFAULT_OWNER = "default"

CONDITION_HAS_RECEIPT = "hasReceipt"
CONDITION_REQUIRED_DOCUMENTS = "requiredDocuments"
CONDITION_IS_REVIEWED = "isReviewed"
CONDITION_IS_APPROVED = "isApproved"

RECONCILIATION_CONDITIONS = (
    CONDITION_HAS_RECEIPT,
    CONDITION_REQUIRED_DOCUMENTS,
    CONDITION_IS_REVIEWED,
    CONDITION_IS_APPROVED,
)


class SettingsService:
    """Service for the per-owner settings record."""

    def __init__(self, db: Database, owner_id: str = DEFAULT_OWNER):
        """Initialize settings service.

        Args:
            db: Database instance
            owner_id: Owning identity every query is scoped to
        """
        self.db = db
        self.owner_id = owner_id

    def get_settings(self) -> Settings:
        """Load the owner's settings, falling back to defaults when none are stored."""
        settings = self.db.get_settings(self.owner_id)
        if settings is None:
            return Settings(owner_id=self.owner_id)
        return settings

    def update_settings(
        self,
        double_entry_mode: Optional[bool] = None,
        auto_draft_to_pending: Optional[bool] = None,
        min_required_documents: Optional[int] = None,
        reconciliation_conditions: Optional[Iterable[str]] = None,
    ) -> Settings:
        """Update settings fields that are not None.

        Returns:
            The stored settings record

        Raises:
            ValidationError: If a value is out of range or a condition is unknown
        """
        settings = self.get_settings()
        changes = {}
        if double_entry_mode is not None:
            changes["double_entry_mode"] = double_entry_mode
        if auto_draft_to_pending is not None:
            changes["auto_draft_to_pending"] = auto_draft_to_pending
        if min_required_documents is not None:
            if min_required_documents < 0:
                raise ValidationError("Minimum required documents cannot be negative")
            changes["min_required_documents"] = min_required_documents
        if reconciliation_conditions is not None:
            conditions = tuple(dict.fromkeys(reconciliation_conditions))
            unknown = [c for c in conditions if c not in RECONCILIATION_CONDITIONS]
            if unknown:
                raise ValidationError(
                    f"Unknown reconciliation condition(s): {', '.join(unknown)}. "
                    f"Valid conditions: {', '.join(RECONCILIATION_CONDITIONS)}"
                )
            changes["reconciliation_conditions"] = conditions

        updated = replace(settings, **changes)
        self.db.save_settings(updated)
        logger.info("Updated settings for owner %s: %s", self.owner_id, sorted(changes))
        return updated

    def required_document_type_ids(self) -> frozenset[int]:
        """IDs of document types flagged as required."""
        return frozenset(
            t.id for t in self.db.list_document_types(self.owner_id, required_only=True)
        )
