"""
Sales Ledger API Endpoints.

Ledger entry creation and owner-scoped reads: entry listing, balance and
availability summary, monthly statistics.
"""

from datetime import datetime, timezone
from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from sales_ledger.app.core.config import Settings, get_settings
from sales_ledger.app.core.dependencies import get_current_user
from sales_ledger.app.core.guards import OwnershipGuard, get_ownership_guard
from sales_ledger.app.core.pagination import resolve_page_size
from sales_ledger.app.db.session import get_db
from sales_ledger.app.domain.ledger.availability import AvailabilityCalculator
from sales_ledger.app.domain.ledger.balance import compute_balance, compute_current_account_balance
from sales_ledger.app.domain.ledger.recorder import TransactionRecorder
from sales_ledger.app.domain.ledger.statistics import compute_monthly_statistics
from sales_ledger.app.models.account_status import AccountStatus
from sales_ledger.app.models.current_account_transaction import CurrentAccountTransaction
from sales_ledger.app.models.ledger_entry import LedgerEntry
from sales_ledger.app.schemas.ledger import (
    LedgerEntryCreate, LedgerEntryResponse, LedgerEntryPage,
    LedgerSummaryResponse, MonthlyStatisticsItem, MonthlyStatisticsResponse
)
from sales_ledger.app.services.records import list_by_owner, fetch_all_for_owner, get_by_id

router = APIRouter(tags=["Sales Ledger"])


@router.post("/ledger-entries", response_model=LedgerEntryResponse, status_code=status.HTTP_201_CREATED)
async def create_ledger_entry(
    entry: LedgerEntryCreate,
    current_user: dict = Depends(get_current_user),
    guard: OwnershipGuard = Depends(get_ownership_guard),
    db: AsyncSession = Depends(get_db)
):
    """
    Record a ledger entry.

    Customers record on their own ledger. Admins may name another owner;
    the entry then carries `created_by_admin`.
    """
    owner = guard.resolve_owner(entry.owner, current_user, resource_name="ledger")

    recorder = TransactionRecorder(db)
    return await recorder.record(
        LedgerEntry,
        owner=owner,
        type=entry.type,
        amount=entry.amount,
        description=entry.description,
        acting_identity=current_user["sub"],
    )


@router.get("/ledger-entries", response_model=LedgerEntryPage)
async def list_ledger_entries(
    owner: Optional[str] = Query(None, description="Owner to list (defaults to caller)"),
    page_size: Optional[int] = Query(None, ge=1, description="Items per page"),
    page_token: Optional[str] = Query(None, description="Token from the previous page"),
    current_user: dict = Depends(get_current_user),
    guard: OwnershipGuard = Depends(get_ownership_guard),
    settings: Settings = Depends(get_settings),
    db: AsyncSession = Depends(get_db)
):
    """List ledger entries for an owner, oldest first."""
    owner = guard.resolve_owner(owner, current_user, resource_name="ledger")
    items, next_token = await list_by_owner(
        db, LedgerEntry, owner, resolve_page_size(page_size, settings.default_page_size, settings.max_page_size), page_token
    )
    return LedgerEntryPage(
        items=[LedgerEntryResponse.model_validate(item) for item in items],
        next_token=next_token
    )


@router.get("/ledger/summary", response_model=LedgerSummaryResponse)
async def get_ledger_summary(
    owner: Optional[str] = Query(None, description="Owner to summarise (defaults to caller)"),
    current_user: dict = Depends(get_current_user),
    guard: OwnershipGuard = Depends(get_ownership_guard),
    settings: Settings = Depends(get_settings),
    db: AsyncSession = Depends(get_db)
):
    """
    Balance and availability overview.

    Balances are recomputed from the full history on every call. An
    owner without an account status has no unapproved invoices.
    """
    owner = guard.resolve_owner(owner, current_user, resource_name="ledger")

    entries = await fetch_all_for_owner(db, LedgerEntry, owner)
    transactions = await fetch_all_for_owner(db, CurrentAccountTransaction, owner)
    account_status = await get_by_id(db, AccountStatus, owner)

    ledger_balance = compute_balance(entries)
    account_balance = compute_current_account_balance(transactions)
    unapproved = account_status.total_unapproved_invoice_value if account_status else 0

    calculator = AvailabilityCalculator(settings.advance_rate)
    availability = calculator.compute(ledger_balance, unapproved, account_balance)

    return LedgerSummaryResponse(
        owner=owner,
        sales_ledger_balance=ledger_balance,
        total_unapproved_invoice_value=unapproved,
        current_account_balance=account_balance,
        advance_rate=calculator.advance_rate,
        gross_availability=availability.gross,
        net_availability=availability.net,
    )


@router.get("/ledger/statistics", response_model=MonthlyStatisticsResponse)
async def get_monthly_statistics(
    owner: Optional[str] = Query(None, description="Owner to report on (defaults to caller)"),
    months: int = Query(12, ge=1, le=24, description="Number of calendar months"),
    current_user: dict = Depends(get_current_user),
    guard: OwnershipGuard = Depends(get_ownership_guard),
    db: AsyncSession = Depends(get_db)
):
    """Monthly totals and month-end balances, oldest month first."""
    owner = guard.resolve_owner(owner, current_user, resource_name="ledger")

    entries = await fetch_all_for_owner(db, LedgerEntry, owner)
    transactions = await fetch_all_for_owner(db, CurrentAccountTransaction, owner)

    statistics = compute_monthly_statistics(
        entries, transactions, as_of=datetime.now(timezone.utc), months=months
    )
    return MonthlyStatisticsResponse(
        owner=owner,
        months=[MonthlyStatisticsItem.model_validate(month) for month in statistics]
    )
