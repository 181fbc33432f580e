"""
Authentication dependencies for FastAPI.

This module provides dependencies for protecting routes with JWT authentication.
"""

from typing import Optional
from fastapi import Depends, Header, HTTPException, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.ext.asyncio import AsyncSession
from haulhub.app.core.jwt import decode_access_token
from haulhub.app.core.token_revocation import is_token_revoked, are_user_tokens_revoked
from haulhub.app.db.session import get_db
from haulhub.app.models.enums import AccountStatus
from haulhub.app.models.user import User

# HTTP Bearer security scheme
security = HTTPBearer()


def parse_role_header(raw: Optional[str]) -> list[str]:
    """Split an X-User-Roles header ("TRUCK_OWNER, DRIVER") into role names."""
    if not raw:
        return []
    return [part.strip().upper().replace(" ", "_") for part in raw.split(",") if part.strip()]


async def get_current_user(
    credentials: HTTPAuthorizationCredentials = Depends(security),
    x_user_roles: Optional[str] = Header(None, alias="X-User-Roles"),
    db: AsyncSession = Depends(get_db)
) -> dict:
    """
    FastAPI dependency for JWT authentication.

    Security checks:
    1. Validates JWT token signature and expiry
    2. Checks if token has been explicitly revoked
    3. Checks if all user tokens have been revoked (account suspended)
    4. Verifies the account is still approved (real-time check)

    The X-User-Roles header selects the active roles for this request. It
    can only narrow the roles the account holds, never add to them.

    Returns:
        Decoded token payload with "roles" replaced by the active roles

    Raises:
        HTTPException: 401 if authentication fails, 403 if the account is
        not approved or the requested roles are not held
    """
    token = credentials.credentials

    # 1. Decode and validate JWT
    payload = decode_access_token(token)
    if payload is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Could not validate credentials",
            headers={"WWW-Authenticate": "Bearer"},
        )

    user_id = payload.get("user_id")
    if not user_id:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid token payload",
            headers={"WWW-Authenticate": "Bearer"},
        )

    # 2. Check if this specific token has been revoked
    if await is_token_revoked(token):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Token has been revoked",
            headers={"WWW-Authenticate": "Bearer"},
        )

    # 3. Check if all user tokens have been revoked (account suspended)
    if await are_user_tokens_revoked(user_id):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="User access has been revoked",
            headers={"WWW-Authenticate": "Bearer"},
        )

    # 4. Real-time database check: account must still be approved
    user = await db.get(User, user_id)

    if not user:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="User not found",
            headers={"WWW-Authenticate": "Bearer"},
        )

    if user.account_status != AccountStatus.APPROVED:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail=f"User account is {user.account_status.value.lower()}",
        )

    held_roles = list(user.roles or [])
    requested_roles = parse_role_header(x_user_roles)
    if requested_roles:
        not_held = [role for role in requested_roles if role not in held_roles]
        if not_held:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail=f"Roles not held by this account: {', '.join(not_held)}",
            )
        active_roles = requested_roles
    else:
        active_roles = held_roles

    return {**payload, "roles": active_roles}
