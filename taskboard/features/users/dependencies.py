"""
FastAPI dependencies for authentication.
"""
from typing import Annotated
from fastapi import Depends
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from taskboard.core.database.engine import get_db
from taskboard.core.errors import AuthenticationError
from taskboard.features.access.snapshots import UserSnapshot
from taskboard.features.users.models import User
from taskboard.features.users.auth import verify_jwt_token


security = HTTPBearer(auto_error=False)


async def get_current_user(
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(security)],
    db: Annotated[AsyncSession, Depends(get_db)]
) -> User:
    """
    Get the current authenticated user from a bearer token.

    This dependency:
    1. Extracts JWT from Authorization header
    2. Verifies signature and expiry
    3. Loads the user (with home organization) from the local database

    Usage:
        @router.get("/me")
        async def get_me(user: Annotated[User, Depends(get_current_user)]):
            return user
    """
    if credentials is None:
        raise AuthenticationError("Not authenticated")

    payload = verify_jwt_token(credentials.credentials)
    user_id = payload.get("sub")

    if not user_id:
        raise AuthenticationError("Invalid token payload")

    user = await db.scalar(select(User).where(User.id == user_id))

    if user is None:
        raise AuthenticationError("User not found")

    if not user.is_active:
        raise AuthenticationError("User account is deactivated")

    return user


async def get_current_snapshot(
    user: Annotated[User, Depends(get_current_user)]
) -> UserSnapshot:
    """The authenticated user as a plain snapshot for the access policy."""
    return UserSnapshot.from_user(user)


def get_authorization_header(request) -> str:
    """
    Extract authorization header for rate limiting.
    Used with slowapi Limiter.
    """
    auth = request.headers.get("Authorization", "")
    return auth or "anonymous"
