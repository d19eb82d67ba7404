"""
Identity directory lookups.

The ledger consumes the directory through two calls: a forward-only
paginated user listing and a group lookup per identity. `SqlDirectory`
serves both from the `directory_users` mirror.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Dict, List, Optional, Set, Tuple

from fastapi import Depends
from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from sales_ledger.app.core.exceptions import DirectoryError
from sales_ledger.app.core.pagination import encode_page_token, decode_page_token
from sales_ledger.app.db.session import get_db
from sales_ledger.app.models.user import DirectoryUser

logger = logging.getLogger(__name__)


@dataclass
class DirectoryEntry:
    """A user as the directory describes it."""
    sub: str
    username: str
    status: Optional[str] = None
    enabled: Optional[bool] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    attributes: Dict[str, Optional[str]] = field(default_factory=dict)


class DirectoryClient:
    """Interface of the identity directory."""

    async def list_users(self, page_size: int, page_token: Optional[str] = None) -> Tuple[List[DirectoryEntry], Optional[str]]:
        raise NotImplementedError

    async def groups_for_user(self, identity: str) -> Set[str]:
        raise NotImplementedError


class SqlDirectory(DirectoryClient):
    """Directory backed by the local `directory_users` table."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def list_users(self, page_size: int, page_token: Optional[str] = None) -> Tuple[List[DirectoryEntry], Optional[str]]:
        last_username = decode_page_token(page_token)

        query = select(DirectoryUser)
        if last_username:
            query = query.where(DirectoryUser.username > last_username)
        query = query.order_by(DirectoryUser.username).limit(page_size + 1)

        try:
            result = await self.db.execute(query)
        except SQLAlchemyError as e:
            await self.db.rollback()
            logger.error("Directory listing failed: %s", e)
            raise DirectoryError("Failed to list users from the directory")

        users = list(result.scalars().all())
        next_token = None
        if len(users) > page_size:
            users = users[:page_size]
            next_token = encode_page_token(users[-1].username)

        return [self._to_entry(user) for user in users], next_token

    async def groups_for_user(self, identity: str) -> Set[str]:
        try:
            result = await self.db.execute(
                select(DirectoryUser.groups).where(DirectoryUser.sub == identity)
            )
        except SQLAlchemyError as e:
            # keep the session usable for the next user in the page
            await self.db.rollback()
            logger.error("Group lookup failed for %s: %s", identity, e)
            raise DirectoryError(f"Failed to look up groups for {identity}")

        groups = result.scalar_one_or_none()
        return set(groups or [])

    @staticmethod
    def _to_entry(user: DirectoryUser) -> DirectoryEntry:
        attributes = dict(user.attributes or {})
        attributes.setdefault("sub", user.sub)
        if user.email:
            attributes.setdefault("email", user.email)
        return DirectoryEntry(
            sub=user.sub,
            username=user.username,
            status=user.status,
            enabled=user.enabled,
            created_at=user.created_at,
            updated_at=user.updated_at,
            attributes=attributes,
        )


def get_directory(db: AsyncSession = Depends(get_db)) -> DirectoryClient:
    """FastAPI dependency for the identity directory."""
    return SqlDirectory(db)
