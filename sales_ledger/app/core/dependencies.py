"""
Authentication dependencies for FastAPI.

This module provides dependencies for protecting routes with JWT authentication.
"""

from fastapi import Depends
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sales_ledger.app.core.exceptions import AuthenticationError, TokenRevokedError
from sales_ledger.app.core.jwt import decode_access_token
from sales_ledger.app.core.redis_client import get_redis
from sales_ledger.app.core.token_revocation import is_token_revoked

# HTTP Bearer security scheme
security = HTTPBearer()


async def get_current_user(
    credentials: HTTPAuthorizationCredentials = Depends(security),
    redis=Depends(get_redis)
) -> dict:
    """
    FastAPI dependency for JWT authentication.

    Checks:
    1. Validates JWT token signature and expiry
    2. Requires a subject (the owner identity)
    3. Rejects tokens revoked through logout

    Args:
        credentials: HTTP Bearer token from request header
        redis: Redis client holding the token blacklist

    Returns:
        Caller identity: sub, username, email, groups and the raw token

    Raises:
        AuthenticationError: 401 if the token is invalid or has no subject
        TokenRevokedError: 401 if the token has been revoked
    """
    token = credentials.credentials

    # 1. Decode and validate JWT
    payload = decode_access_token(token)
    if payload is None:
        raise AuthenticationError("Could not validate credentials")

    sub = payload.get("sub")
    if not sub:
        raise AuthenticationError("Invalid token payload")

    # 2. Check if this specific token has been revoked
    if await is_token_revoked(redis, token):
        raise TokenRevokedError()

    return {
        "sub": sub,
        "username": payload.get("username") or sub,
        "email": payload.get("email"),
        "groups": payload.get("groups") or [],
        "token": token,
    }
