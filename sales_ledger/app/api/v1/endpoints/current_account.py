"""
Current Account API Endpoints.

Owner-scoped transaction listing and the self-service payment request.
"""

from typing import Optional

from fastapi import APIRouter, Depends, Query, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from sales_ledger.app.core.config import Settings, get_settings
from sales_ledger.app.core.dependencies import get_current_user
from sales_ledger.app.core.guards import OwnershipGuard, get_ownership_guard
from sales_ledger.app.core.pagination import resolve_page_size
from sales_ledger.app.db.session import get_db
from sales_ledger.app.models.current_account_transaction import CurrentAccountTransaction
from sales_ledger.app.schemas.current_account import (
    CurrentAccountTransactionResponse, CurrentAccountTransactionPage,
    PaymentRequestCreate, PaymentRequestResponse
)
from sales_ledger.app.services.email_service import EmailService, get_email_service
from sales_ledger.app.services.payment_requests import PaymentRequestService
from sales_ledger.app.services.records import list_by_owner

router = APIRouter(prefix="/current-account", tags=["Current Account"])


@router.get("/transactions", response_model=CurrentAccountTransactionPage)
async def list_current_account_transactions(
    owner: Optional[str] = Query(None, description="Owner to list (defaults to caller)"),
    page_size: Optional[int] = Query(None, ge=1),
    page_token: Optional[str] = Query(None),
    current_user: dict = Depends(get_current_user),
    guard: OwnershipGuard = Depends(get_ownership_guard),
    settings: Settings = Depends(get_settings),
    db: AsyncSession = Depends(get_db)
):
    """List current account transactions for an owner, oldest first."""
    owner = guard.resolve_owner(owner, current_user, resource_name="current account")
    items, next_token = await list_by_owner(
        db, CurrentAccountTransaction, owner, resolve_page_size(page_size, settings.default_page_size, settings.max_page_size), page_token
    )
    return CurrentAccountTransactionPage(
        items=[CurrentAccountTransactionResponse.model_validate(item) for item in items],
        next_token=next_token
    )


@router.post("/payment-requests", response_model=PaymentRequestResponse, status_code=status.HTTP_201_CREATED)
async def send_payment_request(
    request: PaymentRequestCreate,
    response: Response,
    current_user: dict = Depends(get_current_user),
    email_service: EmailService = Depends(get_email_service),
    settings: Settings = Depends(get_settings),
    db: AsyncSession = Depends(get_db)
):
    """
    Request a payment against the caller's availability.

    Emails the payment request recipient, then records a PAYMENT_REQUEST
    on the caller's current account. If the email went out but the
    record failed, the response is a 200 carrying a `warning`.
    """
    service = PaymentRequestService(db, email_service, settings.payment_request_recipient)
    outcome = await service.send_payment_request(current_user, request.amount)
    if outcome.warning:
        response.status_code = status.HTTP_200_OK
    return PaymentRequestResponse(
        message=outcome.message,
        transaction_id=outcome.transaction_id,
        warning=outcome.warning
    )
