"""
Security guards for group-based and ownership-based access control.

Provides dependencies for protecting endpoints.
"""

from typing import Optional
from fastapi import Depends
from sales_ledger.app.core.config import Settings, get_settings
from sales_ledger.app.core.dependencies import get_current_user
from sales_ledger.app.core.exceptions import AuthorizationError
from sales_ledger.app.domain.ledger.admin_gate import AdminGate


def get_admin_gate(settings: Settings = Depends(get_settings)) -> AdminGate:
    """Build the admin gate from the configured admin group name."""
    return AdminGate(settings.admin_group_name)


def require_admin(
    current_user: dict = Depends(get_current_user),
    gate: AdminGate = Depends(get_admin_gate)
) -> dict:
    """
    Dependency for admin-only endpoints.

    Usage:
        @router.post("/admin/cash-receipts")
        async def add_cash_receipt(
            receipt: CashReceiptCreate,
            admin: dict = Depends(require_admin)
        ):
            ...

    Runs before the handler body, so a rejected caller never reaches
    any read or write.

    Args:
        current_user: Authenticated user from JWT
        gate: Admin gate for the configured group

    Returns:
        User payload if admin, raises AuthorizationError otherwise
    """
    gate.enforce(current_user.get("groups"))
    return current_user


class OwnershipGuard:
    """
    Resolves which owner partition a caller may act on.

    Usage:
        @router.get("/ledger-entries")
        async def list_entries(
            owner: Optional[str] = None,
            current_user: dict = Depends(get_current_user),
            guard: OwnershipGuard = Depends(get_ownership_guard)
        ):
            owner = guard.resolve_owner(owner, current_user)
            ...
    """

    def __init__(self, gate: AdminGate):
        self.gate = gate

    def resolve_owner(
        self,
        requested_owner: Optional[str],
        current_user: dict,
        resource_name: str = "resource"
    ) -> str:
        """
        Get the owner to scope a read or write to.

        Callers default to their own partition. Only admins may name
        another owner.

        Raises:
            AuthorizationError if a non-admin names another owner
        """
        caller = current_user["sub"]
        if not requested_owner or requested_owner == caller:
            return caller

        if not self.gate.is_admin(current_user.get("groups")):
            raise AuthorizationError(
                message=f"Access denied. You do not have permission to access this {resource_name}.",
                details={"owner": requested_owner}
            )

        return requested_owner


def get_ownership_guard(gate: AdminGate = Depends(get_admin_gate)) -> OwnershipGuard:
    return OwnershipGuard(gate)
