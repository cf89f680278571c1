"""Revenue stats endpoint (admin only)."""

from fastapi import APIRouter, Depends
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from src.auth.dependencies import require_admin
from src.db import get_db
from src.models import Booking, BookingStatus, User
from src.schemas.dashboard import StatsResponse
from src.services.commission import COMPANY_SHARE_RATE, to_money
from src.utils.dates import day_bounds

router = APIRouter(prefix="/stats", tags=["Stats"])


@router.get("", response_model=StatsResponse)
async def get_stats(
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_admin),
):
    """
    Company revenue (its 60% share of completed bookings), overall and
    for today, plus today's booking count across all statuses.
    """
    start, end = day_bounds()
    completed_total = func.coalesce(func.sum(Booking.amount), 0)

    total_amount = await db.scalar(
        select(completed_total).where(Booking.status == BookingStatus.COMPLETED)
    )
    today_amount = await db.scalar(
        select(completed_total).where(
            Booking.status == BookingStatus.COMPLETED,
            Booking.created_at >= start,
            Booking.created_at < end,
        )
    )
    today_bookings = await db.scalar(
        select(func.count(Booking.id)).where(
            Booking.created_at >= start,
            Booking.created_at < end,
        )
    )

    return StatsResponse(
        total_revenue=to_money(to_money(total_amount or 0) * COMPANY_SHARE_RATE),
        today_revenue=to_money(to_money(today_amount or 0) * COMPANY_SHARE_RATE),
        today_total_bookings=today_bookings or 0,
    )
