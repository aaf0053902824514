"""
Authentication dependencies for FastAPI.

`get_current_user` returns the decoded token payload, refreshed from the
users table, as the caller identity. Services record it as creator and
audit actor.
"""

from typing import Optional

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.ext.asyncio import AsyncSession
from cogniflow.app.core.jwt import decode_access_token
from cogniflow.app.core.token_revocation import is_token_revoked
from cogniflow.app.db.session import get_db
from cogniflow.app.models.user import User

security = HTTPBearer()


def client_ip(request: Request) -> Optional[str]:
    return request.client.host if request.client else None


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


async def get_current_user(
    request: Request,
    credentials: HTTPAuthorizationCredentials = Depends(security),
    db: AsyncSession = Depends(get_db)
) -> dict:
    """
    Resolve the caller from a bearer token.

    The token must have a valid signature, be unexpired and not revoked, and
    name an existing active user. Username and role are taken from the user
    row, so a role change applies to tokens already issued.

    Raises:
        HTTPException: 401 if authentication fails, 403 if the account is inactive
    """
    token = credentials.credentials

    payload = decode_access_token(token)
    if payload is None:
        raise _unauthorized("Could not validate credentials")

    user_id = payload.get("user_id")
    if not user_id:
        raise _unauthorized("Invalid token payload")

    if await is_token_revoked(token):
        raise _unauthorized("Token has been revoked")

    user = await db.get(User, user_id)
    if not user:
        raise _unauthorized("User not found")

    if not user.is_active:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="User account is inactive",
        )

    payload.update({
        "sub": user.username,
        "role": user.role.value,
        "token": token,
        "ip_address": client_ip(request),
    })
    return payload
