"""
Wallet endpoints.

Attendants read their own wallet; everything else is admin only. Reads
return the stored (cached) figures; a ``date`` query adds a read-only
projection of that day's open bookings.
"""

from datetime import date
from decimal import Decimal
from typing import List, Optional

from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from src.auth.dependencies import require_admin, require_attendant
from src.db import get_db
from src.models import (
    AdjustmentType,
    AuditAction,
    Booking,
    BookingStatus,
    LedgerEntry,
    PaymentMethod,
    User,
    UserRole,
    Wallet,
)
from src.schemas.booking import BookingResponse
from src.schemas.dashboard import (
    DailyAttendantSummary,
    DailySummaryResponse,
    WalletSummaryResponse,
)
from src.schemas.wallet import (
    AdjustmentRequest,
    AdjustmentResponse,
    AttendantDebtResponse,
    DatedWallet,
    DateBalance,
    DebtListResponse,
    DebtSummary,
    LedgerEntryResponse,
    MarkPaidResponse,
    MyWalletResponse,
    SettleRequest,
    SettleResponse,
    SystemWalletResponse,
    SystemWalletSummaryResponse,
    WalletListResponse,
    wallet_response,
)
from src.services import bookings as booking_service
from src.services import settlement
from src.services.commission import split_booking, to_money
from src.services.concurrency import run_with_retry
from src.services.system_wallet import get_or_create_system_wallet
from src.services.wallet_ledger import (
    adjust_wallet,
    get_attendant,
    get_or_create_wallet,
    project_wallet_for_date,
    rebuild_wallet,
)
from src.utils.audit import AuditContext
from src.utils.dates import day_bounds

router = APIRouter(prefix="/wallets", tags=["Wallets"])


def _today() -> date:
    return day_bounds()[0].date()


async def _wallets_with_attendants(db: AsyncSession, *criteria, order_by=None):
    """(wallet, attendant) rows for attendant wallets."""
    query = (
        select(Wallet, User)
        .join(User, User.id == Wallet.attendant_id)
        .where(User.role == UserRole.ATTENDANT, *criteria)
    )
    if order_by is not None:
        query = query.order_by(order_by)
    else:
        query = query.order_by(Wallet.created_at.desc(), Wallet.id.desc())
    result = await db.execute(query)
    return result.all()


async def _attendants_with_open_bookings(db: AsyncSession, day: date) -> List[int]:
    start, end = day_bounds(day)
    result = await db.execute(
        select(Booking.attendant_id)
        .where(
            Booking.status == BookingStatus.COMPLETED,
            Booking.attendant_paid.is_(False),
            Booking.created_at >= start,
            Booking.created_at < end,
        )
        .distinct()
    )
    return list(result.scalars().all())


async def _dated_wallets(db: AsyncSession, day: date, unpaid_only: bool = False) -> List[DatedWallet]:
    attendant_ids = await _attendants_with_open_bookings(db, day)
    if not attendant_ids:
        return []

    items = []
    for wallet, attendant in await _wallets_with_attendants(
        db, Wallet.attendant_id.in_(attendant_ids)
    ):
        date_balance = DateBalance(**await project_wallet_for_date(db, attendant.id, day))
        if date_balance.total_earnings <= 0:
            continue
        if unpaid_only and date_balance.balance <= 0:
            continue
        items.append(
            DatedWallet(wallet=wallet_response(wallet, attendant), date_balance=date_balance)
        )
    return items


# =============================================================================
# Attendant
# =============================================================================


@router.get("/my-wallet", response_model=MyWalletResponse)
async def get_my_wallet(
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_attendant),
    day: Optional[date] = Query(None, alias="date", description="YYYY-MM-DD"),
):
    """Own wallet plus the open-booking figures of one day (default today)."""
    day = day or _today()
    wallet = await get_or_create_wallet(db, current_user.id)
    projection = await project_wallet_for_date(db, current_user.id, day)

    return MyWalletResponse(
        wallet=wallet_response(wallet, current_user),
        date=day,
        date_balance=DateBalance(**projection),
    )


@router.get("/my-wallet/bookings")
async def get_my_bookings(
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_attendant),
):
    """Own booking history, newest first."""
    result = await db.execute(
        select(Booking)
        .where(Booking.attendant_id == current_user.id)
        .order_by(Booking.created_at.desc(), Booking.id.desc())
    )
    bookings = result.scalars().all()
    return {
        "results": len(bookings),
        "bookings": [BookingResponse.model_validate(b) for b in bookings],
    }


# =============================================================================
# Admin: listings and reports
# =============================================================================


@router.get("", response_model=WalletListResponse)
async def list_wallets(
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_admin),
    day: Optional[date] = Query(None, alias="date", description="YYYY-MM-DD"),
):
    """
    All attendant wallets.

    With a date, only wallets with open bookings that day are listed, each
    with that day's figures.
    """
    if day:
        items = await _dated_wallets(db, day)
    else:
        day = _today()
        items = [
            DatedWallet(wallet=wallet_response(wallet, attendant))
            for wallet, attendant in await _wallets_with_attendants(db)
        ]
    return WalletListResponse(results=len(items), wallets=items, date=day)


@router.get("/summary", response_model=WalletSummaryResponse)
async def get_wallet_summary(
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_admin),
):
    """Totals across all wallets."""
    result = await db.execute(
        select(
            func.count(Wallet.id).label("total"),
            func.count().filter(Wallet.is_paid.is_(False)).label("unpaid"),
            func.coalesce(func.sum(Wallet.balance), 0).label("balance"),
            func.coalesce(func.sum(Wallet.total_earnings), 0).label("earnings"),
            func.coalesce(func.sum(Wallet.total_commission), 0).label("commission"),
            func.coalesce(func.sum(Wallet.total_company_share), 0).label("company_share"),
        ).select_from(Wallet)
    )
    row = result.one()

    return WalletSummaryResponse(
        total_wallets=row.total,
        unpaid_wallets=row.unpaid,
        paid_wallets=row.total - row.unpaid,
        total_balance=to_money(row.balance),
        total_earnings=to_money(row.earnings),
        total_commission=to_money(row.commission),
        total_company_share=to_money(row.company_share),
    )


@router.get("/daily-summary", response_model=DailySummaryResponse)
async def get_daily_summary(
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_admin),
    day: Optional[date] = Query(None, alias="date", description="YYYY-MM-DD"),
):
    """Per-attendant totals of the open bookings created on one day."""
    day = day or _today()
    start, end = day_bounds(day)

    result = await db.execute(
        select(Booking, User)
        .join(User, User.id == Booking.attendant_id)
        .where(
            Booking.status == BookingStatus.COMPLETED,
            Booking.attendant_paid.is_(False),
            Booking.created_at >= start,
            Booking.created_at < end,
        )
        .order_by(User.name, Booking.id)
    )

    per_attendant: dict[int, DailyAttendantSummary] = {}
    for booking, attendant in result.all():
        split = split_booking(booking.amount, booking.payment_method)
        item = per_attendant.get(attendant.id)
        if item is None:
            item = DailyAttendantSummary(
                attendant_id=attendant.id,
                attendant_name=attendant.name,
                attendant_email=attendant.email,
                total_bookings=0,
                total_amount=Decimal("0.00"),
                total_commission=Decimal("0.00"),
                total_company_share=Decimal("0.00"),
                attendant_cash_bookings=0,
                attendant_cash_amount=Decimal("0.00"),
                company_debt=Decimal("0.00"),
            )
            per_attendant[attendant.id] = item

        item.total_bookings += 1
        item.total_amount += split.amount
        item.total_commission += split.commission
        item.total_company_share += split.company_share
        item.company_debt += split.debt_delta
        if booking.payment_method == PaymentMethod.ATTENDANT_CASH:
            item.attendant_cash_bookings += 1
            item.attendant_cash_amount += split.amount

    attendants = list(per_attendant.values())
    return DailySummaryResponse(
        date=day,
        total_attendants=len(attendants),
        total_bookings=sum(a.total_bookings for a in attendants),
        total_amount=sum((a.total_amount for a in attendants), Decimal("0.00")),
        total_commission=sum((a.total_commission for a in attendants), Decimal("0.00")),
        total_company_share=sum((a.total_company_share for a in attendants), Decimal("0.00")),
        attendants=attendants,
    )


@router.get("/unpaid", response_model=WalletListResponse)
async def list_unpaid_wallets(
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_admin),
    day: Optional[date] = Query(None, alias="date", description="YYYY-MM-DD"),
):
    """
    Wallets the company owes money on (positive balance), largest first.

    With a date, the day's projected balance decides instead.
    """
    if day:
        items = await _dated_wallets(db, day, unpaid_only=True)
    else:
        day = _today()
        rows = await _wallets_with_attendants(
            db,
            Wallet.is_paid.is_(False),
            Wallet.balance > 0,
            order_by=Wallet.balance.desc(),
        )
        items = [DatedWallet(wallet=wallet_response(w, a)) for w, a in rows]
    return WalletListResponse(results=len(items), wallets=items, date=day)


@router.get("/debt-summary", response_model=DebtListResponse)
async def get_debt_summary(
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_admin),
):
    """Wallets holding company money (attendant-collected cash), largest first."""
    rows = await _wallets_with_attendants(
        db, Wallet.company_debt > 0, order_by=Wallet.company_debt.desc()
    )
    wallets = [wallet_response(w, a) for w, a in rows]
    return DebtListResponse(
        results=len(wallets),
        wallets=wallets,
        total_debt=sum((w.company_debt for w in wallets), Decimal("0.00")),
    )


@router.get("/system", response_model=SystemWalletResponse)
async def get_system_wallet(
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_admin),
):
    system_wallet = await get_or_create_system_wallet(db)
    return SystemWalletResponse.model_validate(system_wallet)


@router.get("/system/summary", response_model=SystemWalletSummaryResponse)
async def get_system_wallet_summary(
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_admin),
):
    """System wallet against the cash still held by attendants."""
    system_wallet = await get_or_create_system_wallet(db)
    total_debt = to_money(
        await db.scalar(select(func.coalesce(func.sum(Wallet.company_debt), 0))) or 0
    )
    return SystemWalletSummaryResponse(
        system_wallet=SystemWalletResponse.model_validate(system_wallet),
        total_attendant_debts=total_debt,
        net_company_balance=system_wallet.current_balance - total_debt,
    )


@router.get("/bookings/{booking_id}")
async def get_booking_details(
    booking_id: int,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_admin),
):
    """A booking together with the ledger entries it produced."""
    booking = await booking_service.get_booking(db, booking_id)
    result = await db.execute(
        select(LedgerEntry)
        .where(LedgerEntry.booking_id == booking_id)
        .order_by(LedgerEntry.id)
    )
    return {
        "booking": BookingResponse.model_validate(booking),
        "ledger": [LedgerEntryResponse.model_validate(e) for e in result.scalars().all()],
    }


@router.post("/settle", response_model=SettleResponse)
async def settle_wallets(
    request: Request,
    data: SettleRequest,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_admin),
):
    """
    Settle several attendants at once.

    Each attendant is settled in its own transaction; failures are
    reported in ``errors`` and do not undo the others.
    """
    audit = AuditContext.from_request(request, current_user)
    settled, errors = await settlement.settle_many(db, data.attendant_ids, audit=audit)

    return SettleResponse(
        message=f"Settled {len(settled)} attendant(s)",
        settled=settled,
        errors=errors,
    )


# =============================================================================
# Admin: one attendant
# =============================================================================


@router.get("/{attendant_id}", response_model=MyWalletResponse)
async def get_attendant_wallet(
    attendant_id: int,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_admin),
    day: Optional[date] = Query(None, alias="date", description="YYYY-MM-DD"),
):
    """An attendant's wallet, with a date projection when a date is given."""
    attendant = await get_attendant(db, attendant_id)
    wallet = await get_or_create_wallet(db, attendant_id)

    date_balance = None
    if day:
        date_balance = DateBalance(**await project_wallet_for_date(db, attendant_id, day))

    return MyWalletResponse(
        wallet=wallet_response(wallet, attendant),
        date=day or _today(),
        date_balance=date_balance,
    )


@router.get("/{attendant_id}/debt", response_model=AttendantDebtResponse)
async def get_attendant_debt(
    attendant_id: int,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_admin),
):
    attendant = await get_attendant(db, attendant_id)
    wallet = await get_or_create_wallet(db, attendant_id)

    return AttendantDebtResponse(
        wallet=wallet_response(wallet, attendant),
        debt_summary=DebtSummary(
            attendant_name=attendant.name,
            attendant_email=attendant.email,
            company_debt=wallet.company_debt,
            attendant_balance=wallet.balance,
            total_earnings=wallet.total_earnings,
            total_commission=wallet.total_commission,
            total_company_share=wallet.total_company_share,
        ),
    )


@router.get("/{attendant_id}/bookings")
async def get_attendant_bookings(
    attendant_id: int,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_admin),
):
    await get_attendant(db, attendant_id)
    result = await db.execute(
        select(Booking)
        .where(Booking.attendant_id == attendant_id)
        .order_by(Booking.created_at.desc(), Booking.id.desc())
    )
    bookings = result.scalars().all()
    return {
        "results": len(bookings),
        "bookings": [BookingResponse.model_validate(b) for b in bookings],
    }


@router.get("/{attendant_id}/ledger")
async def get_attendant_ledger(
    attendant_id: int,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_admin),
    limit: int = Query(200, ge=1, le=1000),
):
    """Wallet trail, newest first."""
    await get_attendant(db, attendant_id)
    result = await db.execute(
        select(LedgerEntry)
        .where(LedgerEntry.attendant_id == attendant_id)
        .order_by(LedgerEntry.id.desc())
        .limit(limit)
    )
    entries = result.scalars().all()
    return {
        "results": len(entries),
        "entries": [LedgerEntryResponse.model_validate(e) for e in entries],
    }


@router.patch("/{attendant_id}/mark-paid", response_model=MarkPaidResponse)
async def mark_attendant_paid(
    attendant_id: int,
    request: Request,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_admin),
):
    """Settle one attendant."""
    audit = AuditContext.from_request(request, current_user)
    item = await settlement.mark_paid(db, attendant_id, audit=audit)

    return MarkPaidResponse(
        message="Attendant marked as paid successfully",
        wallet=item.wallet,
        bookings_updated=item.bookings_updated,
    )


@router.patch("/{attendant_id}/rebuild", response_model=MarkPaidResponse)
async def rebuild_attendant_wallet(
    attendant_id: int,
    request: Request,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_admin),
):
    """Replay the attendant's open bookings into the wallet."""
    audit = AuditContext.from_request(request, current_user)

    async def unit_of_work():
        attendant = await get_attendant(db, attendant_id)
        wallet = await rebuild_wallet(db, attendant_id, actor_id=audit.actor_id)
        await audit.record(
            db,
            AuditAction.REBUILD_WALLET,
            "wallet",
            wallet.id,
            attendant_id=attendant_id,
            balance=wallet.balance,
        )
        await db.flush()
        return wallet_response(wallet, attendant)

    wallet = await run_with_retry(db, unit_of_work)
    return MarkPaidResponse(
        message="Wallet balance rebuilt successfully",
        wallet=wallet,
        bookings_updated=0,
    )


@router.post("/{attendant_id}/adjust", response_model=AdjustmentResponse)
async def adjust_attendant_wallet(
    attendant_id: int,
    request: Request,
    data: AdjustmentRequest,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_admin),
):
    """Add a tip or deduction to an attendant's balance."""
    audit = AuditContext.from_request(request, current_user)
    actor_name = current_user.name

    async def unit_of_work():
        attendant = await get_attendant(db, attendant_id)
        wallet = await adjust_wallet(
            db,
            attendant_id,
            data.type,
            data.amount,
            reason=data.reason,
            actor_id=audit.actor_id,
            actor_name=actor_name,
        )
        await audit.record(
            db,
            AuditAction.ADJUST_WALLET,
            "wallet",
            wallet.id,
            attendant_id=attendant_id,
            type=data.type.value,
            amount=data.amount,
            reason=data.reason,
        )
        await db.flush()
        return wallet_response(wallet, attendant)

    wallet = await run_with_retry(db, unit_of_work)
    verb = "Tip added to" if data.type == AdjustmentType.TIP else "Deduction applied to"
    return AdjustmentResponse(message=f"{verb} wallet successfully", wallet=wallet)
