"""
Current Account Schemas.
"""

from pydantic import BaseModel, Field
from datetime import datetime
from decimal import Decimal
from typing import Optional, List
from sales_ledger.app.models.enums import CurrentAccountTransactionType


class CurrentAccountTransactionResponse(BaseModel):
    id: str
    owner: str
    type: CurrentAccountTransactionType
    amount: Decimal
    description: Optional[str] = None
    created_by_admin: Optional[str] = None
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class CurrentAccountTransactionPage(BaseModel):
    items: List[CurrentAccountTransactionResponse]
    next_token: Optional[str] = None


class PaymentRequestCreate(BaseModel):
    """Self-service payment request."""
    amount: Decimal = Field(..., gt=0, max_digits=14, decimal_places=2)


class PaymentRequestResponse(BaseModel):
    """
    Result of a payment request.

    `warning` is set when the email went out but the transaction could
    not be recorded; `transaction_id` is then absent.
    """
    message: str
    transaction_id: Optional[str] = None
    warning: Optional[str] = None
