"""
Account status writes.

The status row is keyed by the owner identity itself, so creating it is
a conditional insert and there is never more than one per owner.
Updates are last-write-wins.
"""

import logging
from typing import Optional

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from sales_ledger.app.core.exceptions import PersistenceError, ResourceNotFoundError
from sales_ledger.app.domain.ledger.recorder import (
    TransactionRecorder, utc_now, validate_amount, validate_identity
)
from sales_ledger.app.models.account_status import AccountStatus

logger = logging.getLogger(__name__)


class AccountStatusService:

    def __init__(self, db: AsyncSession, clock=utc_now):
        self.db = db
        self.clock = clock

    async def create(self, owner: str, initial_unapproved_invoice_value, acting_identity: Optional[str] = None) -> AccountStatus:
        """Create the status row for `owner`; ConflictError if it already exists."""
        owner = validate_identity(owner)
        value = validate_amount(initial_unapproved_invoice_value, allow_zero=True)

        now = self.clock()
        values = {
            "id": owner,
            "owner": owner,
            "total_unapproved_invoice_value": value,
            "created_by_admin": acting_identity if acting_identity and acting_identity != owner else None,
            "created_at": now,
            "updated_at": now,
        }
        await TransactionRecorder(self.db, clock=self.clock).insert_once(AccountStatus, values)
        return AccountStatus(**values)

    async def update(self, status_id: str, total_unapproved_invoice_value) -> AccountStatus:
        """Overwrite the unapproved invoice value of an existing status row."""
        status_id = validate_identity(status_id, field="id")
        value = validate_amount(total_unapproved_invoice_value, allow_zero=True)

        try:
            result = await self.db.execute(select(AccountStatus).where(AccountStatus.id == status_id))
            account_status = result.scalar_one_or_none()
            if not account_status:
                raise ResourceNotFoundError("AccountStatus", status_id)

            account_status.total_unapproved_invoice_value = value
            account_status.updated_at = self.clock()
            await self.db.commit()
            await self.db.refresh(account_status)
        except SQLAlchemyError as e:
            await self.db.rollback()
            logger.error("Failed to update AccountStatus %s: %s", status_id, e)
            raise PersistenceError("Failed to update AccountStatus", details={"id": status_id})

        return account_status
