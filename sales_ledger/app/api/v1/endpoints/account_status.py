"""
Account Status API Endpoints.

Owner-scoped reads plus the admin-only create and update of the
unapproved invoice value.
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Path, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from sales_ledger.app.core.config import Settings, get_settings
from sales_ledger.app.core.dependencies import get_current_user
from sales_ledger.app.core.exceptions import ResourceNotFoundError
from sales_ledger.app.core.guards import OwnershipGuard, get_ownership_guard, require_admin
from sales_ledger.app.core.pagination import resolve_page_size
from sales_ledger.app.db.session import get_db
from sales_ledger.app.domain.ledger.account_status import AccountStatusService
from sales_ledger.app.models.account_status import AccountStatus
from sales_ledger.app.schemas.account_status import (
    AccountStatusCreate, AccountStatusUpdate, AccountStatusResponse, AccountStatusPage
)
from sales_ledger.app.services.records import list_by_owner, get_by_id

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Account Status"])
admin_router = APIRouter(prefix="/admin", tags=["Admin - Account Status"])


@router.get("/account-statuses", response_model=AccountStatusPage)
async def list_account_statuses(
    owner: Optional[str] = Query(None, description="Owner to list (defaults to caller)"),
    page_size: Optional[int] = Query(None, ge=1),
    page_token: Optional[str] = Query(None),
    current_user: dict = Depends(get_current_user),
    guard: OwnershipGuard = Depends(get_ownership_guard),
    settings: Settings = Depends(get_settings),
    db: AsyncSession = Depends(get_db)
):
    """List account statuses for an owner (at most one)."""
    owner = guard.resolve_owner(owner, current_user, resource_name="account status")
    items, next_token = await list_by_owner(
        db, AccountStatus, owner, resolve_page_size(page_size, settings.default_page_size, settings.max_page_size), page_token
    )
    return AccountStatusPage(
        items=[AccountStatusResponse.model_validate(item) for item in items],
        next_token=next_token
    )


@router.get("/account-statuses/{status_id}", response_model=AccountStatusResponse)
async def get_account_status(
    status_id: str = Path(..., description="Account status ID (the owner identity)"),
    current_user: dict = Depends(get_current_user),
    guard: OwnershipGuard = Depends(get_ownership_guard),
    db: AsyncSession = Depends(get_db)
):
    """Get the account status of one owner."""
    guard.resolve_owner(status_id, current_user, resource_name="account status")

    account_status = await get_by_id(db, AccountStatus, status_id)
    if not account_status:
        raise ResourceNotFoundError("AccountStatus", status_id)
    return account_status


@admin_router.post("/account-statuses", response_model=AccountStatusResponse, status_code=status.HTTP_201_CREATED)
async def create_account_status(
    request: AccountStatusCreate,
    admin: dict = Depends(require_admin),
    db: AsyncSession = Depends(get_db)
):
    """
    Create the account status of an owner (admin-only).

    Fails with 409 if the owner already has one.
    """
    account_status = await AccountStatusService(db).create(
        owner=request.owner,
        initial_unapproved_invoice_value=request.initial_unapproved_invoice_value,
        acting_identity=admin["sub"],
    )

    logger.info(
        "Account status created",
        extra={"admin": admin["sub"], "owner": request.owner}
    )
    return account_status


@admin_router.put("/account-statuses/{status_id}", response_model=AccountStatusResponse)
async def update_account_status(
    request: AccountStatusUpdate,
    status_id: str = Path(..., description="Account status ID (the owner identity)"),
    admin: dict = Depends(require_admin),
    db: AsyncSession = Depends(get_db)
):
    """Set the total unapproved invoice value of an owner (admin-only, last write wins)."""
    account_status = await AccountStatusService(db).update(
        status_id, request.total_unapproved_invoice_value
    )

    logger.info(
        "Account status updated",
        extra={
            "admin": admin["sub"],
            "owner": status_id,
            "total_unapproved_invoice_value": str(account_status.total_unapproved_invoice_value),
        }
    )
    return account_status
