"""Document gate and document metadata service.

Only document metadata is handled here; file storage is someone else's job.
"""

import logging
from dataclasses import dataclass
from typing import Iterable, Optional

from bookkeeper.database.base import Database
from bookkeeper.domain.entities import Document, DocumentType, TransactionStatus
from bookkeeper.domain.errors import (
    NotFoundError,
    StateConflictError,
    ValidationError,
    document_type_not_found,
    transaction_not_found,
)
from bookkeeper.domain.settings import DEFAULT_OWNER, SettingsService

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DocumentRequirement:
    """Required document types and the configured minimum (0 means all)."""

    required_type_ids: frozenset[int]
    min_required: int = 0

    @property
    def threshold(self) -> int:
        required = len(self.required_type_ids)
        if self.min_required == 0:
            return required
        return min(self.min_required, required)


@dataclass(frozen=True)
class DocumentCompleteness:
    required_count: int
    attached_count: int
    threshold: int

    @property
    def is_complete(self) -> bool:
        return self.attached_count >= self.threshold

    @property
    def missing(self) -> int:
        return max(self.threshold - self.attached_count, 0)


def evaluate_document_requirement(
    requirement: DocumentRequirement, attached_type_ids: Iterable[int]
) -> DocumentCompleteness:
    """Count distinct required types attached and compare with the threshold.

    With no required types the requirement is met vacuously.

    Examples:
        >>> req = DocumentRequirement(frozenset({1, 2, 3}), min_required=2)
        >>> evaluate_document_requirement(req, [1, 1, 4]).is_complete
        False
        >>> evaluate_document_requirement(req, [1, 3]).is_complete
        True
    """
    attached = set(attached_type_ids) & requirement.required_type_ids
    return DocumentCompleteness(
        required_count=len(requirement.required_type_ids),
        attached_count=len(attached),
        threshold=requirement.threshold,
    )


class DocumentService:
    """Service for document types and documents attached to transactions."""

    def __init__(self, db: Database, owner_id: str = DEFAULT_OWNER):
        self.db = db
        self.owner_id = owner_id

    def create_document_type(
        self, name: str, description: Optional[str] = None, is_required: bool = False
    ) -> int:
        """Create a document type.

        Raises:
            ValidationError: If name is empty or already used
        """
        name = name.strip()
        if not name:
            raise ValidationError("Document type name is required")
        for existing in self.db.list_document_types(self.owner_id):
            if existing.name.lower() == name.lower():
                raise ValidationError(f"Document type '{name}' already exists")
        return self.db.create_document_type(
            self.owner_id, name=name, description=description, is_required=is_required
        )

    def list_document_types(self, required_only: bool = False) -> list[DocumentType]:
        return self.db.list_document_types(self.owner_id, required_only=required_only)

    def attach_document(
        self, transaction_id: int, document_type_id: int, file_name: str, uploaded_by: str
    ) -> int:
        """Record a document attached to a transaction.

        Raises:
            NotFoundError: If the transaction or document type does not exist
            ValidationError: If the file name is empty
        """
        txn = self.db.get_transaction(self.owner_id, transaction_id)
        if txn is None:
            raise NotFoundError(transaction_not_found(transaction_id))
        if self.db.get_document_type(self.owner_id, document_type_id) is None:
            raise NotFoundError(document_type_not_found(document_type_id))
        if not file_name.strip():
            raise ValidationError("File name is required")

        document_id = self.db.create_document(
            self.owner_id,
            transaction_id=transaction_id,
            document_type_id=document_type_id,
            file_name=file_name.strip(),
            uploaded_by=uploaded_by,
        )
        logger.info("Attached document %s to transaction %s", document_id, transaction_id)
        return document_id

    def detach_document(self, document_id: int) -> None:
        """Soft-delete a document. Documents of reconciled transactions stay."""
        document = self.db.get_document(self.owner_id, document_id)
        if document is None or document.is_deleted:
            raise NotFoundError(f"Document {document_id} not found")
        txn = self.db.get_transaction(self.owner_id, document.transaction_id)
        if txn is not None and txn.status == TransactionStatus.RECONCILED:
            raise StateConflictError(
                "Documents of a reconciled transaction cannot be removed.",
                current_state=txn.status.value,
            )
        self.db.mark_document_deleted(self.owner_id, document_id)
        logger.info("Detached document %s", document_id)

    def list_documents(self, transaction_id: int) -> list[Document]:
        return self.db.list_documents(self.owner_id, transaction_id)

    def document_requirement(self) -> DocumentRequirement:
        settings = SettingsService(self.db, self.owner_id)
        return DocumentRequirement(
            required_type_ids=settings.required_document_type_ids(),
            min_required=settings.get_settings().min_required_documents,
        )

    def check_completeness(self, transaction_id: int) -> DocumentCompleteness:
        """Evaluate the document requirement for one transaction."""
        documents = self.db.list_documents(self.owner_id, transaction_id)
        return evaluate_document_requirement(
            self.document_requirement(), (d.document_type_id for d in documents)
        )
