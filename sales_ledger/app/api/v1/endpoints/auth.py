"""
Authentication API endpoints.

Identity of the caller and logout.
"""

from fastapi import APIRouter, Depends

from sales_ledger.app.core.dependencies import get_current_user
from sales_ledger.app.core.guards import get_admin_gate
from sales_ledger.app.core.redis_client import get_redis
from sales_ledger.app.core.token_revocation import revoke_token
from sales_ledger.app.domain.ledger.admin_gate import AdminGate
from sales_ledger.app.schemas.auth import CurrentUserResponse, LogoutResponse

router = APIRouter(prefix="/auth", tags=["Authentication"])


@router.get("/me", response_model=CurrentUserResponse)
async def me(
    current_user: dict = Depends(get_current_user),
    gate: AdminGate = Depends(get_admin_gate)
):
    """Return the identity carried by the bearer token."""
    return CurrentUserResponse(
        sub=current_user["sub"],
        username=current_user["username"],
        email=current_user.get("email"),
        groups=current_user["groups"],
        is_admin=gate.is_admin(current_user["groups"]),
    )


@router.post("/logout", response_model=LogoutResponse)
async def logout(
    current_user: dict = Depends(get_current_user),
    redis=Depends(get_redis)
):
    """
    Revoke the presented token.

    Later requests with the same token receive 401.
    """
    revoked = await revoke_token(redis, current_user["token"], current_user["sub"])
    return LogoutResponse(
        message="Logged out" if revoked else "Logout could not be recorded",
        revoked=revoked
    )
