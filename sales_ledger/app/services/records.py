"""
Owner-partitioned record queries.

Read side shared by the ledger, account status and current account
endpoints.
"""

import logging
from datetime import datetime
from typing import Optional, Tuple, List

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from sales_ledger.app.core.exceptions import PersistenceError
from sales_ledger.app.core.pagination import encode_page_token, decode_page_token

logger = logging.getLogger(__name__)


async def list_by_owner(
    db: AsyncSession,
    model,
    owner: str,
    page_size: int,
    page_token: Optional[str] = None
) -> Tuple[List, Optional[str]]:
    """
    One page of `model` records for `owner`, ordered by id.

    Returns:
        (records, next_page_token); the token is None on the last page
    """
    last_id = decode_page_token(page_token)

    query = select(model).where(model.owner == owner)
    if last_id:
        query = query.where(model.id > last_id)
    query = query.order_by(model.id).limit(page_size + 1)

    try:
        result = await db.execute(query)
    except SQLAlchemyError as e:
        await db.rollback()
        logger.error("Failed to list %s for %s: %s", model.__name__, owner, e)
        raise PersistenceError(f"Failed to list {model.__name__}", details={"owner": owner})

    records = list(result.scalars().all())
    next_token = None
    if len(records) > page_size:
        records = records[:page_size]
        next_token = encode_page_token(records[-1].id)

    return records, next_token


async def fetch_all_for_owner(db: AsyncSession, model, owner: str) -> List:
    """Complete history of `model` records for `owner`."""
    try:
        result = await db.execute(select(model).where(model.owner == owner).order_by(model.id))
    except SQLAlchemyError as e:
        await db.rollback()
        logger.error("Failed to fetch %s for %s: %s", model.__name__, owner, e)
        raise PersistenceError(f"Failed to fetch {model.__name__}", details={"owner": owner})
    return list(result.scalars().all())


async def fetch_for_owner_between(db: AsyncSession, model, owner: str, start: datetime, end: datetime) -> List:
    """Records of `model` for `owner` created in [start, end), ordered by id."""
    query = (
        select(model)
        .where(model.owner == owner, model.created_at >= start, model.created_at < end)
        .order_by(model.id)
    )
    try:
        result = await db.execute(query)
    except SQLAlchemyError as e:
        await db.rollback()
        logger.error("Failed to fetch %s for %s: %s", model.__name__, owner, e)
        raise PersistenceError(f"Failed to fetch {model.__name__}", details={"owner": owner})
    return list(result.scalars().all())


async def get_by_id(db: AsyncSession, model, record_id: str):
    try:
        result = await db.execute(select(model).where(model.id == record_id))
    except SQLAlchemyError as e:
        await db.rollback()
        logger.error("Failed to read %s %s: %s", model.__name__, record_id, e)
        raise PersistenceError(f"Failed to read {model.__name__}", details={"id": record_id})
    return result.scalar_one_or_none()
