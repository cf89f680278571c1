"""
FastAPI dependencies for authentication.
"""

from typing import Optional

from fastapi import Depends, HTTPException, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from src.auth.jwt import get_token_from_request, verify_token
from src.db import get_db
from src.models import User, UserRole


async def get_current_user_optional(
    request: Request,
    db: AsyncSession = Depends(get_db),
) -> Optional[User]:
    """
    Get current user from the request token if present.

    Returns None if no valid token found (doesn't raise error).
    """
    token = get_token_from_request(request)
    if not token:
        return None

    payload = verify_token(token)
    if not payload:
        return None

    user = await db.get(User, payload["user_id"])
    if not user or not user.is_active:
        return None

    return user


async def get_current_user(
    request: Request,
    db: AsyncSession = Depends(get_db),
) -> User:
    """
    Get current authenticated user.

    Raises 401 if not authenticated, 403 if the account is disabled.
    """
    token = get_token_from_request(request)
    if not token:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
        )

    payload = verify_token(token)
    if not payload:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or expired token",
        )

    user = await db.get(User, payload["user_id"])

    if not user:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="User not found",
        )

    if not user.is_active:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="User account is disabled",
        )

    return user


async def require_admin(
    current_user: User = Depends(get_current_user),
) -> User:
    """
    Require the current user to be an admin.

    Raises 403 otherwise.
    """
    if current_user.role != UserRole.ADMIN:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Admin access required",
        )
    return current_user


async def require_attendant(
    current_user: User = Depends(get_current_user),
) -> User:
    """
    Require the current user to be an attendant.

    Admins have no wallet, so they are refused here too.
    """
    if current_user.role != UserRole.ATTENDANT:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Attendant access required",
        )
    return current_user
