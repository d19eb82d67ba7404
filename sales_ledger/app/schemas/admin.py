"""
Admin API Schema Definitions.

Pydantic schemas for admin endpoints.
"""

from pydantic import BaseModel, Field
from datetime import datetime
from decimal import Decimal
from typing import Optional, List


class CashReceiptCreate(BaseModel):
    """Schema for recording a cash receipt against a customer's current account."""
    target_owner: str = Field(..., min_length=1, max_length=128)
    amount: Decimal = Field(..., gt=0, max_digits=14, decimal_places=2)
    description: Optional[str] = Field(None, max_length=255)


class AdminPaymentRequestCreate(BaseModel):
    """Schema for requesting a payment on behalf of a customer."""
    target_owner: str = Field(..., min_length=1, max_length=128)
    amount: Decimal = Field(..., gt=0, max_digits=14, decimal_places=2)
    description: Optional[str] = Field(None, max_length=255)


class AdminPaymentRequestResponse(BaseModel):
    success: bool
    message: str
    transaction_id: Optional[str] = None


class UserAttribute(BaseModel):
    name: str
    value: Optional[str] = None


class DirectoryUserItem(BaseModel):
    """Schema for user in list response."""
    username: str
    sub: str
    status: Optional[str] = None
    enabled: Optional[bool] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    attributes: List[UserAttribute] = []
    groups: List[str] = []


class UserListResponse(BaseModel):
    """Schema for list users response."""
    users: List[DirectoryUserItem]
    next_token: Optional[str] = None


class MonthlyReportResponse(BaseModel):
    """Outcome of a monthly report run."""
    month: str
    users_scanned: int
    reports_attempted: int
    reports_sent: int
    reports_skipped: int
    errors: int
