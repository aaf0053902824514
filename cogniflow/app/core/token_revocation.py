"""
Token revocation on logout.

Revoked bearer tokens are kept in Redis under a digest of the token until the
token would have expired anyway.
"""

import hashlib
import logging
from datetime import datetime, timezone
from typing import Optional

from cogniflow.app.core.redis_client import get_redis
from cogniflow.app.core.config import settings

logger = logging.getLogger(__name__)

REVOKED_TOKEN_PREFIX = "cogniflow:revoked:"


def revoked_token_key(token: str) -> str:
    return REVOKED_TOKEN_PREFIX + hashlib.sha256(token.encode("utf-8")).hexdigest()


def remaining_lifetime(expires_at: Optional[int]) -> int:
    """Seconds until the `exp` claim, never below one. Falls back to the full token lifetime."""
    if expires_at is None:
        return settings.access_token_expire_minutes * 60
    now = int(datetime.now(timezone.utc).timestamp())
    return max(int(expires_at) - now, 1)


async def revoke_token(token: str, user_id: int, expires_at: Optional[int] = None) -> bool:
    """
    Blacklist a token.

    Returns False when Redis is unreachable; logout still succeeds but the
    token stays usable until it expires.
    """
    try:
        client = await get_redis()
        await client.setex(revoked_token_key(token), remaining_lifetime(expires_at), str(user_id))
        return True
    except Exception as e:
        logger.warning("Could not revoke token for user %s: %s", user_id, e)
        return False


async def is_token_revoked(token: str) -> bool:
    """Fails open: if Redis is unreachable the token is treated as valid."""
    try:
        client = await get_redis()
        return await client.exists(revoked_token_key(token)) > 0
    except Exception as e:
        logger.warning("Could not check token revocation: %s", e)
        return False
