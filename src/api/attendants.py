"""Attendant account endpoints (admin only)."""

import logging

from fastapi import APIRouter, Depends, HTTPException, Query, Request, status
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from src.auth.dependencies import require_admin
from src.auth.passwords import get_user_by_email, hash_password, normalize_email
from src.db import get_db
from src.models import AuditAction, User, UserRole
from src.schemas.user import AttendantCreate, AttendantResponse
from src.services.wallet_ledger import get_or_create_wallet
from src.utils.audit import AuditContext

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/attendants", tags=["Attendants"])


@router.post("", response_model=AttendantResponse, status_code=status.HTTP_201_CREATED)
async def create_attendant(
    request: Request,
    data: AttendantCreate,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_admin),
):
    """Create an attendant account together with an empty wallet."""
    email = normalize_email(data.email)
    if await get_user_by_email(db, email):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Email already exists",
        )

    attendant = User(
        email=email,
        name=data.name.strip(),
        password_hash=hash_password(data.password),
        role=UserRole.ATTENDANT,
        is_active=True,
    )
    db.add(attendant)
    await db.flush()
    await get_or_create_wallet(db, attendant.id)

    await AuditContext.from_request(request, current_user).record(
        db, AuditAction.CREATE_ATTENDANT, "attendant", attendant.id, email=email
    )
    await db.commit()

    logger.info(f"Attendant {attendant.id} created: {email}")
    return AttendantResponse.model_validate(attendant)


@router.get("")
async def list_attendants(
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_admin),
    active_only: bool = Query(False),
):
    """List attendants."""
    query = select(User).where(User.role == UserRole.ATTENDANT)
    if active_only:
        query = query.where(User.is_active.is_(True))

    result = await db.execute(query.order_by(User.name))
    attendants = result.scalars().all()

    return {
        "results": len(attendants),
        "attendants": [AttendantResponse.model_validate(a) for a in attendants],
    }
