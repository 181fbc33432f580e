"""
Token Revocation System using Redis.

Implements token blacklisting to immediately invalidate JWT tokens
when accounts are suspended.
"""

import logging
from redis.exceptions import RedisError
from haulhub.app.core import redis_client as redis_client_module
from haulhub.app.core.config import settings

logger = logging.getLogger(__name__)

# Redis key prefix for blacklisted tokens
TOKEN_BLACKLIST_PREFIX = "blacklist:token:"
USER_TOKENS_PREFIX = "user:tokens:"


def _client():
    # Looked up per call so the client can be swapped (tests, reconnects)
    return redis_client_module.redis_client


async def revoke_token(token: str, user_id: int) -> bool:
    """
    Revoke a specific JWT token by adding it to the blacklist.

    Args:
        token: The JWT token string to revoke
        user_id: User ID who owns the token

    Returns:
        True if successfully revoked, False otherwise
    """
    try:
        # Tokens auto-expire anyway, so the blacklist entry only has to outlive them
        ttl_seconds = settings.access_token_expire_minutes * 60
        key = f"{TOKEN_BLACKLIST_PREFIX}{token}"
        await _client().set(key, str(user_id), ex=ttl_seconds)
        return True
    except RedisError:
        logger.exception("Error revoking token for user %s", user_id)
        return False


async def is_token_revoked(token: str) -> bool:
    """
    Check if a token has been revoked.

    Fails open when Redis is unreachable; the per-request account status
    check in get_current_user still blocks suspended accounts.
    """
    try:
        key = f"{TOKEN_BLACKLIST_PREFIX}{token}"
        exists = await _client().exists(key)
        return exists > 0
    except RedisError:
        logger.exception("Error checking token revocation")
        return False


async def revoke_all_user_tokens(user_id: int) -> bool:
    """
    Revoke all active tokens for a specific user.

    Called when an account is suspended to terminate all sessions.

    Args:
        user_id: User ID whose tokens should be revoked

    Returns:
        True if successful
    """
    try:
        key = f"{USER_TOKENS_PREFIX}{user_id}:revoked"
        ttl_seconds = settings.access_token_expire_minutes * 60
        await _client().set(key, "1", ex=ttl_seconds)
        return True
    except RedisError:
        logger.exception("Error revoking all tokens for user %s", user_id)
        return False


async def are_user_tokens_revoked(user_id: int) -> bool:
    """Check if all tokens for a user have been revoked."""
    try:
        key = f"{USER_TOKENS_PREFIX}{user_id}:revoked"
        exists = await _client().exists(key)
        return exists > 0
    except RedisError:
        logger.exception("Error checking user token revocation for user %s", user_id)
        return False


async def clear_user_token_revocation(user_id: int) -> bool:
    """
    Clear the global token revocation flag for a user.

    Called when a suspended account is reinstated.
    """
    try:
        key = f"{USER_TOKENS_PREFIX}{user_id}:revoked"
        await _client().delete(key)
        return True
    except RedisError:
        logger.exception("Error clearing token revocation for user %s", user_id)
        return False
