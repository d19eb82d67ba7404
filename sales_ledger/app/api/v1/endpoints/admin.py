"""
Admin API Endpoints.

Directory user listing, admin-only current account actions and the
monthly report run.
"""

import logging
from datetime import datetime, timezone
from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from sales_ledger.app.core.config import Settings, get_settings
from sales_ledger.app.core.exceptions import DirectoryError
from sales_ledger.app.core.guards import require_admin
from sales_ledger.app.db.session import get_db
from sales_ledger.app.domain.ledger.admin_gate import AdminGate
from sales_ledger.app.domain.ledger.recorder import TransactionRecorder
from sales_ledger.app.models.current_account_transaction import CurrentAccountTransaction
from sales_ledger.app.models.enums import CurrentAccountTransactionType
from sales_ledger.app.schemas.admin import (
    CashReceiptCreate, AdminPaymentRequestCreate, AdminPaymentRequestResponse,
    DirectoryUserItem, MonthlyReportResponse, UserAttribute, UserListResponse
)
from sales_ledger.app.schemas.current_account import CurrentAccountTransactionResponse
from sales_ledger.app.services.directory import DirectoryClient, get_directory
from sales_ledger.app.services.email_service import EmailService, get_email_service
from sales_ledger.app.services.monthly_report import MonthlyReportMailer
from sales_ledger.app.services.payment_requests import PaymentRequestService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/admin", tags=["Admin"])


@router.get("/users", response_model=UserListResponse)
async def list_users(
    page_size: Optional[int] = Query(None, ge=1, le=60, description="Users per page"),
    page_token: Optional[str] = Query(None, description="Token from the previous page"),
    admin: dict = Depends(require_admin),
    settings: Settings = Depends(get_settings),
    directory: DirectoryClient = Depends(get_directory)
):
    """
    List directory users with their group memberships (admin-only).

    A failed group lookup leaves that user's groups empty instead of
    failing the page.
    """
    users, next_token = await directory.list_users(page_size or settings.default_page_size, page_token)

    items = []
    for user in users:
        try:
            groups = sorted(await directory.groups_for_user(user.sub))
        except DirectoryError as e:
            logger.warning("Group lookup failed for %s: %s", user.sub, e.message)
            groups = []

        items.append(DirectoryUserItem(
            username=user.username,
            sub=user.sub,
            status=user.status,
            enabled=user.enabled,
            created_at=user.created_at,
            updated_at=user.updated_at,
            attributes=[UserAttribute(name=name, value=value) for name, value in user.attributes.items()],
            groups=groups,
        ))

    return UserListResponse(users=items, next_token=next_token)


@router.post("/cash-receipts", response_model=CurrentAccountTransactionResponse, status_code=status.HTTP_201_CREATED)
async def add_cash_receipt(
    receipt: CashReceiptCreate,
    admin: dict = Depends(require_admin),
    db: AsyncSession = Depends(get_db)
):
    """
    Record a cash receipt on a customer's current account (admin-only).

    Only the current account is written.
    """
    recorder = TransactionRecorder(db)
    transaction = await recorder.record(
        CurrentAccountTransaction,
        owner=receipt.target_owner,
        type=CurrentAccountTransactionType.CASH_RECEIPT,
        amount=receipt.amount,
        description=receipt.description or f"Cash Receipt - {receipt.target_owner}",
        acting_identity=admin["sub"],
    )

    logger.info(
        "Cash receipt recorded",
        extra={"admin": admin["sub"], "owner": receipt.target_owner, "transaction_id": transaction.id}
    )
    return transaction


@router.post("/payment-requests", response_model=AdminPaymentRequestResponse, status_code=status.HTTP_201_CREATED)
async def request_payment_for_user(
    request: AdminPaymentRequestCreate,
    admin: dict = Depends(require_admin),
    email_service: EmailService = Depends(get_email_service),
    settings: Settings = Depends(get_settings),
    db: AsyncSession = Depends(get_db)
):
    """Record a payment request on behalf of a customer (admin-only)."""
    service = PaymentRequestService(db, email_service, settings.payment_request_recipient)
    outcome = await service.request_payment_for_user(
        admin, request.target_owner, request.amount, request.description
    )
    return AdminPaymentRequestResponse(
        success=True,
        message=outcome.message,
        transaction_id=outcome.transaction_id
    )


@router.post("/monthly-reports", response_model=MonthlyReportResponse)
async def send_monthly_reports(
    as_of: Optional[datetime] = Query(None, description="Reports cover the month before this instant (default: now)"),
    admin: dict = Depends(require_admin),
    email_service: EmailService = Depends(get_email_service),
    settings: Settings = Depends(get_settings),
    directory: DirectoryClient = Depends(get_directory),
    db: AsyncSession = Depends(get_db)
):
    """Email every verified customer last month's ledger and current account CSVs (admin-only)."""
    mailer = MonthlyReportMailer(db, directory, email_service, AdminGate(settings.admin_group_name))
    summary = await mailer.run(as_of or datetime.now(timezone.utc))

    logger.info("Monthly reports triggered", extra={"admin": admin["sub"], "month": summary.month})
    return MonthlyReportResponse(**summary.to_dict())
