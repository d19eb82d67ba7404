"""
Authentication Pydantic schemas.
"""

from pydantic import BaseModel
from typing import Optional, List


class CurrentUserResponse(BaseModel):
    """
    Schema for caller identity.

    Used by GET /auth/me endpoint.
    """
    sub: str
    username: str
    email: Optional[str] = None
    groups: List[str] = []
    is_admin: bool


class LogoutResponse(BaseModel):
    message: str
    revoked: bool
