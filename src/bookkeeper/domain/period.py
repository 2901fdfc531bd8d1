"""Accounting period domain service."""

import logging
from datetime import date, datetime, UTC
from typing import Optional

from bookkeeper.database.base import Database
from bookkeeper.domain.entities import AccountingPeriod, PeriodStatus
from bookkeeper.domain.errors import (
    NotFoundError,
    StateConflictError,
    ValidationError,
    period_not_found,
)
from bookkeeper.domain.settings import DEFAULT_OWNER

logger = logging.getLogger(__name__)


def describe_period(period: AccountingPeriod) -> str:
    return f"{period.start_date.isoformat()} to {period.end_date.isoformat()}"


class PeriodService:
    """Service for accounting periods.

    Periods of one owner never overlap. Once closed, no transaction dated
    inside the period can be created, changed or deleted; the check itself
    lives in the database layer so it runs in the same transaction as the
    write.
    """

    def __init__(self, db: Database, owner_id: str = DEFAULT_OWNER):
        self.db = db
        self.owner_id = owner_id

    def create_period(
        self, start_date: date, end_date: date, notes: Optional[str] = None
    ) -> int:
        """Create an open accounting period.

        Raises:
            ValidationError: If the end date is before the start date
            PeriodOverlapError: If the range overlaps existing periods; the
                conflicting periods are attached to the error
        """
        if end_date < start_date:
            raise ValidationError("End date must be on or after start date.")
        period_id = self.db.create_period(self.owner_id, start_date, end_date, notes=notes)
        logger.info(
            "Created accounting period %s (%s to %s)", period_id, start_date, end_date
        )
        return period_id

    def get_period(self, period_id: int) -> Optional[AccountingPeriod]:
        return self.db.get_period(self.owner_id, period_id)

    def require_period(self, period_id: int) -> AccountingPeriod:
        period = self.get_period(period_id)
        if period is None:
            raise NotFoundError(period_not_found(period_id))
        return period

    def list_periods(self, status: Optional[PeriodStatus] = None) -> list[AccountingPeriod]:
        """Periods newest first by start date."""
        return self.db.list_periods(self.owner_id, status=status)

    def find_overlapping(self, start_date: date, end_date: date) -> list[AccountingPeriod]:
        return self.db.find_overlapping_periods(self.owner_id, start_date, end_date)

    def closed_period_for(self, day: date) -> Optional[AccountingPeriod]:
        """Closed period containing ``day``, if any."""
        return self.db.get_closed_period_for_date(self.owner_id, day)

    def close_period(
        self, period_id: int, closed_by: Optional[str] = None, notes: Optional[str] = None
    ) -> AccountingPeriod:
        """Lock a period against further transaction changes.

        Raises:
            NotFoundError: If the period does not exist
            StateConflictError: If the period is already closed
        """
        period = self.require_period(period_id)
        if period.is_closed:
            raise StateConflictError("Period is already closed.", current_state=period.status.value)
        closed = self.db.set_period_status(
            self.owner_id,
            period_id,
            expected_status=PeriodStatus.OPEN,
            new_status=PeriodStatus.CLOSED,
            changed_by=closed_by or self.owner_id,
            changed_at=datetime.now(UTC),
            notes=notes,
        )
        logger.info("Closed accounting period %s (%s)", period_id, describe_period(closed))
        return closed

    def reopen_period(self, period_id: int) -> AccountingPeriod:
        """Reopen a closed period for administrative correction.

        Raises:
            NotFoundError: If the period does not exist
            StateConflictError: If the period is already open
        """
        period = self.require_period(period_id)
        if not period.is_closed:
            raise StateConflictError("Period is already open.", current_state=period.status.value)
        reopened = self.db.set_period_status(
            self.owner_id,
            period_id,
            expected_status=PeriodStatus.CLOSED,
            new_status=PeriodStatus.OPEN,
        )
        logger.warning("Reopened accounting period %s (%s)", period_id, describe_period(reopened))
        return reopened

    def delete_period(self, period_id: int) -> int:
        """Delete an open period along with the closing entries created for it.

        Returns:
            Number of closing entries removed

        Raises:
            NotFoundError: If the period does not exist
            DependencyError: If the period is closed or a closing entry is reconciled
        """
        removed = self.db.delete_period(self.owner_id, period_id)
        logger.info("Deleted accounting period %s and %d closing entries", period_id, removed)
        return removed
