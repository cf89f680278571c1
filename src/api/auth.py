"""
Authentication API endpoints.
"""

from datetime import datetime, timezone

from fastapi import APIRouter, Depends, HTTPException, Request, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from src.auth.dependencies import get_current_user_optional
from src.auth.jwt import COOKIE_NAME, create_access_token
from src.auth.passwords import authenticate
from src.config import settings
from src.db import get_db
from src.models import AuditAction, User
from src.schemas.auth import LoginRequest, LoginResponse
from src.utils.audit import AuditContext

router = APIRouter(prefix="/auth", tags=["Authentication"])


@router.post("/login", response_model=LoginResponse)
async def login(
    request: Request,
    response: Response,
    credentials: LoginRequest,
    db: AsyncSession = Depends(get_db),
):
    """
    Authenticate user and set JWT cookie.

    The token is also returned in the body for clients that send it as a
    Bearer header.
    """
    user = await authenticate(db, credentials.email, credentials.password)
    if not user:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid email or password",
        )

    if not user.is_active:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Account is disabled",
        )

    token = create_access_token(user.id, user.role.value)

    response.set_cookie(
        key=COOKIE_NAME,
        value=token,
        httponly=True,
        secure=settings.is_production,
        samesite="lax",
        max_age=settings.jwt_expire_hours * 3600,
    )

    user.last_active_at = datetime.now(timezone.utc)

    await AuditContext.from_request(request, user).record(db, AuditAction.LOGIN)

    return LoginResponse(
        success=True,
        message="Login successful",
        token=token,
        role=user.role.value,
    )


@router.post("/logout")
async def logout(
    request: Request,
    response: Response,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user_optional),
):
    """
    Clear JWT cookie and log out.
    """
    await AuditContext.from_request(request, current_user).record(db, AuditAction.LOGOUT)

    response.delete_cookie(
        key=COOKIE_NAME,
        httponly=True,
        secure=settings.is_production,
        samesite="lax",
    )

    return {"success": True, "message": "Logged out"}
