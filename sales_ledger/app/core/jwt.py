"""
JWT token utilities for authentication.

Tokens are issued by the identity provider sharing `secret_key`; this
service only needs to verify them. `create_access_token` serves the seed
script and tests.
"""

from datetime import datetime, timedelta, timezone
from typing import Optional, Dict, Any
from jose import JWTError, jwt
from sales_ledger.app.core.config import settings

REQUIRED_CLAIMS = {"require_exp": True, "require_sub": True}


def create_access_token(data: Dict[str, Any], expires_delta: Optional[timedelta] = None) -> str:
    """
    Create a signed access token.

    Args:
        data: Claims to encode (sub, and optionally username, email, groups)
        expires_delta: Lifetime; defaults to access_token_expire_minutes

    Example payload:
        {
            "sub": "01J9Z0M3V8Q2X6T4N5R7W1Y3KA",
            "username": "acme-ltd",
            "email": "accounts@acme.example",
            "groups": ["Admin"],
            "exp": 1234567890
        }
    """
    lifetime = expires_delta or timedelta(minutes=settings.access_token_expire_minutes)
    claims = {**data, "exp": datetime.now(timezone.utc) + lifetime}
    return jwt.encode(claims, settings.secret_key, algorithm=settings.algorithm)


def decode_access_token(token: str) -> Optional[Dict[str, Any]]:
    """
    Verify signature, expiry and subject of an access token.

    Returns:
        The claims if the token is valid, None otherwise
    """
    try:
        return jwt.decode(
            token,
            settings.secret_key,
            algorithms=[settings.algorithm],
            options=REQUIRED_CLAIMS,
        )
    except JWTError:
        return None
