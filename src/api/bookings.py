"""
Booking endpoints.

Every write goes through the booking service, which keeps the attendant
wallets and the system wallet in step inside the same transaction; the
unit of work is replayed on wallet version conflicts.
"""

from typing import Optional

from fastapi import APIRouter, Depends, Query, Request, status
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from src.auth.dependencies import get_current_user, require_admin
from src.db import get_db
from src.models import AuditAction, Booking, BookingStatus, User, UserRole
from src.schemas.booking import BookingCreate, BookingResponse, BookingUpdate
from src.services import bookings as booking_service
from src.services.concurrency import run_with_retry
from src.services.wallet_ledger import get_attendant
from src.utils.audit import AuditContext

router = APIRouter(prefix="/bookings", tags=["Bookings"])


def _booking_list(bookings) -> dict:
    return {
        "results": len(bookings),
        "bookings": [BookingResponse.model_validate(b) for b in bookings],
    }


@router.get("")
async def list_bookings(
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
    status_filter: Optional[BookingStatus] = Query(None, alias="status"),
    limit: int = Query(100, ge=1, le=500),
    offset: int = Query(0, ge=0),
):
    """
    List bookings, newest first.

    Attendants only see their own bookings.
    """
    query = select(Booking)
    if current_user.role == UserRole.ATTENDANT:
        query = query.where(Booking.attendant_id == current_user.id)
    if status_filter:
        query = query.where(Booking.status == status_filter)

    query = query.order_by(Booking.created_at.desc(), Booking.id.desc())
    result = await db.execute(query.offset(offset).limit(limit))
    return _booking_list(result.scalars().all())


@router.post("", response_model=BookingResponse, status_code=status.HTTP_201_CREATED)
async def create_booking(
    request: Request,
    data: BookingCreate,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_admin),
):
    """Create a booking; completed bookings are posted to the ledger."""
    audit = AuditContext.from_request(request, current_user)

    async def unit_of_work():
        booking = await booking_service.create_booking(
            db, data.to_model_fields(), actor_id=audit.actor_id
        )
        await audit.record(
            db,
            AuditAction.CREATE_BOOKING,
            "booking",
            booking.id,
            attendant_id=booking.attendant_id,
            amount=booking.amount,
            payment_method=booking.payment_method.value,
            status=booking.status.value,
        )
        return BookingResponse.model_validate(booking)

    return await run_with_retry(db, unit_of_work)


@router.get("/attendant/{attendant_id}")
async def list_attendant_bookings(
    attendant_id: int,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_admin),
):
    """All bookings of one attendant."""
    await get_attendant(db, attendant_id)
    result = await db.execute(
        select(Booking)
        .where(Booking.attendant_id == attendant_id)
        .order_by(Booking.created_at.desc(), Booking.id.desc())
    )
    return _booking_list(result.scalars().all())


@router.get("/status/{booking_status}")
async def list_bookings_by_status(
    booking_status: BookingStatus,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_admin),
):
    """All bookings in one status."""
    result = await db.execute(
        select(Booking)
        .where(Booking.status == booking_status)
        .order_by(Booking.created_at.desc(), Booking.id.desc())
    )
    return _booking_list(result.scalars().all())


@router.get("/{booking_id}", response_model=BookingResponse)
async def get_booking(
    booking_id: int,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_admin),
):
    booking = await booking_service.get_booking(db, booking_id)
    return BookingResponse.model_validate(booking)


@router.patch("/{booking_id}", response_model=BookingResponse)
async def update_booking(
    booking_id: int,
    request: Request,
    data: BookingUpdate,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_admin),
):
    """
    Partially update a booking.

    Amount, payment method, attendant and status changes re-post the
    booking's ledger contribution.
    """
    audit = AuditContext.from_request(request, current_user)
    changes = data.to_changes()

    async def unit_of_work():
        booking = await booking_service.update_booking(
            db, booking_id, changes, actor_id=audit.actor_id
        )
        await audit.record(
            db, AuditAction.UPDATE_BOOKING, "booking", booking.id, fields=sorted(changes)
        )
        return BookingResponse.model_validate(booking)

    return await run_with_retry(db, unit_of_work)


@router.delete("/{booking_id}")
async def delete_booking(
    booking_id: int,
    request: Request,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_admin),
):
    """Delete a booking, reversing its ledger contribution first."""
    audit = AuditContext.from_request(request, current_user)

    async def unit_of_work():
        booking = await booking_service.delete_booking(
            db, booking_id, actor_id=audit.actor_id
        )
        await audit.record(
            db,
            AuditAction.DELETE_BOOKING,
            "booking",
            booking_id,
            attendant_id=booking.attendant_id,
            amount=booking.amount,
        )

    await run_with_retry(db, unit_of_work)
    return {"success": True, "message": "Booking deleted successfully"}
