"""
Sales Ledger Schemas.
"""

from pydantic import BaseModel, Field
from datetime import datetime
from decimal import Decimal
from typing import Optional, List
from sales_ledger.app.models.enums import LedgerEntryType


class LedgerEntryCreate(BaseModel):
    """
    Schema for recording a ledger entry.

    `owner` defaults to the caller; naming another owner requires admin.
    """
    type: LedgerEntryType
    amount: Decimal = Field(..., gt=0, max_digits=14, decimal_places=2, description="Positive magnitude")
    description: Optional[str] = Field(None, max_length=255)
    owner: Optional[str] = Field(None, min_length=1, max_length=128, description="Target owner (admin only)")


class LedgerEntryResponse(BaseModel):
    """Schema for displaying a ledger entry."""
    id: str
    owner: str
    type: LedgerEntryType
    amount: Decimal
    description: Optional[str] = None
    created_by_admin: Optional[str] = None
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class LedgerEntryPage(BaseModel):
    items: List[LedgerEntryResponse]
    next_token: Optional[str] = None


class LedgerSummaryResponse(BaseModel):
    """Balance and availability overview for one owner."""
    owner: str
    sales_ledger_balance: Decimal
    total_unapproved_invoice_value: Decimal
    current_account_balance: Decimal
    advance_rate: Decimal
    gross_availability: Decimal
    net_availability: Decimal


class MonthlyStatisticsItem(BaseModel):
    month: str
    total_invoices: Decimal
    total_credit_notes: Decimal
    total_increase_adjustments: Decimal
    total_decrease_adjustments: Decimal
    total_payment_requests: Decimal
    total_cash_receipts: Decimal
    month_end_sales_ledger_balance: Decimal
    month_end_current_account_balance: Decimal
    days_sales_outstanding: Optional[Decimal] = None

    class Config:
        from_attributes = True


class MonthlyStatisticsResponse(BaseModel):
    owner: str
    months: List[MonthlyStatisticsItem]
