"""
Account Status Schemas.
"""

from pydantic import BaseModel, Field
from datetime import datetime
from decimal import Decimal
from typing import Optional, List


class AccountStatusCreate(BaseModel):
    """Schema for creating the account status of an owner."""
    owner: str = Field(..., min_length=1, max_length=128)
    initial_unapproved_invoice_value: Decimal = Field(..., ge=0, max_digits=14, decimal_places=2)


class AccountStatusUpdate(BaseModel):
    """Schema for setting the unapproved invoice value."""
    total_unapproved_invoice_value: Decimal = Field(..., ge=0, max_digits=14, decimal_places=2)


class AccountStatusResponse(BaseModel):
    id: str
    owner: str
    total_unapproved_invoice_value: Decimal
    created_by_admin: Optional[str] = None
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class AccountStatusPage(BaseModel):
    items: List[AccountStatusResponse]
    next_token: Optional[str] = None
