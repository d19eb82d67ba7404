"""
API v1 Router.

Aggregates all v1 API endpoints.
"""

from fastapi import APIRouter
from sales_ledger.app.api.v1.endpoints import (
    auth, admin, ledger, account_status, current_account
)

router = APIRouter()

# Authentication endpoints
router.include_router(auth.router)

# Sales ledger endpoints
router.include_router(ledger.router)

# Account status endpoints
router.include_router(account_status.router)
router.include_router(account_status.admin_router)

# Current account endpoints
router.include_router(current_account.router)

# Admin endpoints
router.include_router(admin.router)
