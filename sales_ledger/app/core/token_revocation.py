"""
Token Revocation System using Redis.

Implements token blacklisting to immediately invalidate JWT tokens
when users log out.
"""

import logging
from redis.exceptions import RedisError
from sales_ledger.app.core.config import settings

logger = logging.getLogger(__name__)


# Redis key prefix for blacklisted tokens
TOKEN_BLACKLIST_PREFIX = "blacklist:token:"


async def revoke_token(redis, token: str, owner: str) -> bool:
    """
    Revoke a specific JWT token by adding it to the blacklist.

    Args:
        redis: Redis client
        token: The JWT token string to revoke
        owner: Identity (sub) of the token holder

    Returns:
        True if successfully revoked, False otherwise
    """
    try:
        # Tokens auto-expire anyway, so the entry only has to outlive them
        ttl_seconds = settings.access_token_expire_minutes * 60

        key = f"{TOKEN_BLACKLIST_PREFIX}{token}"
        await redis.set(key, owner, ex=ttl_seconds)

        return True
    except (RedisError, OSError) as e:
        logger.error("Error revoking token for %s: %s", owner, e)
        return False


async def is_token_revoked(redis, token: str) -> bool:
    """
    Check if a token has been revoked.

    Args:
        redis: Redis client
        token: JWT token string to check

    Returns:
        True if token is revoked, False otherwise
    """
    try:
        key = f"{TOKEN_BLACKLIST_PREFIX}{token}"
        exists = await redis.exists(key)
        return exists > 0
    except (RedisError, OSError) as e:
        # Redis down: the request is allowed (availability over strict logout)
        logger.warning("Error checking token revocation: %s", e)
        return False
