"""
Attendant wallet ledger.

The Wallet row is a cache: it is updated incrementally as bookings are
completed, edited or deleted, and never recomputed on read. The ground
truth is the booking history, which ``rebuild_wallet`` replays on demand
to repair drift.

Every change to a wallet's figures writes one LedgerEntry in the same
transaction.
"""

import logging
from datetime import date
from decimal import Decimal
from typing import Iterable, Optional, Tuple

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from src.models import (
    AdjustmentType,
    Booking,
    BookingStatus,
    LedgerEntry,
    LedgerEntryType,
    PaymentMethod,
    User,
    UserRole,
    Wallet,
    WalletAdjustment,
)
from src.services.commission import CommissionSplit, split_booking, to_money
from src.services.exceptions import AttendantNotFound, InvalidLedgerOperation, NotAnAttendant
from src.utils.dates import day_bounds

logger = logging.getLogger(__name__)

ZERO = Decimal("0.00")


async def get_attendant(db: AsyncSession, attendant_id: int) -> User:
    """Load a user and make sure it is an attendant."""
    user = await db.get(User, attendant_id)
    if not user:
        raise AttendantNotFound(attendant_id)
    if user.role != UserRole.ATTENDANT:
        raise NotAnAttendant(attendant_id)
    return user


async def get_wallet(db: AsyncSession, attendant_id: int) -> Optional[Wallet]:
    result = await db.execute(
        select(Wallet).where(Wallet.attendant_id == attendant_id)
    )
    return result.scalar_one_or_none()


async def get_or_create_wallet(db: AsyncSession, attendant_id: int) -> Wallet:
    """
    Return the attendant's wallet, creating a zeroed one on first use.

    The stored figures are returned as-is; use rebuild_wallet to repair.
    """
    wallet = await get_wallet(db, attendant_id)
    if wallet is None:
        wallet = Wallet.empty(attendant_id)
        db.add(wallet)
        await db.flush()
        logger.info(f"Created wallet {wallet.id} for attendant {attendant_id}")
    return wallet


def _record_entry(
    db: AsyncSession,
    wallet: Wallet,
    entry_type: LedgerEntryType,
    amount: Decimal,
    balance_delta: Decimal,
    debt_delta: Decimal,
    booking_id: Optional[int] = None,
    actor_id: Optional[int] = None,
    note: Optional[str] = None,
) -> LedgerEntry:
    entry = LedgerEntry(
        wallet_id=wallet.id,
        attendant_id=wallet.attendant_id,
        booking_id=booking_id,
        entry_type=entry_type,
        amount=amount,
        balance_delta=balance_delta,
        debt_delta=debt_delta,
        balance_after=wallet.balance,
        created_by_id=actor_id,
        note=note,
    )
    db.add(entry)
    return entry


async def _post_split(
    db: AsyncSession,
    attendant_id: int,
    split: CommissionSplit,
    entry_type: LedgerEntryType,
    booking_id: Optional[int],
    actor_id: Optional[int],
) -> Wallet:
    wallet = await get_or_create_wallet(db, attendant_id)
    wallet.apply_split(split)
    _record_entry(
        db,
        wallet,
        entry_type,
        amount=abs(split.amount),
        balance_delta=split.balance_delta,
        debt_delta=split.debt_delta,
        booking_id=booking_id,
        actor_id=actor_id,
    )
    logger.info(
        f"Wallet {wallet.id} ({entry_type.value}): balance {split.balance_delta:+} "
        f"-> {wallet.balance}, debt {split.debt_delta:+}"
    )
    return wallet


async def apply_booking(
    db: AsyncSession,
    attendant_id: int,
    amount: Decimal,
    payment_method: PaymentMethod,
    booking_id: Optional[int] = None,
    actor_id: Optional[int] = None,
) -> Wallet:
    """Add a completed booking's commission split to the attendant's wallet."""
    split = split_booking(amount, payment_method)
    return await _post_split(
        db, attendant_id, split, LedgerEntryType.BOOKING_APPLIED, booking_id, actor_id
    )


async def reverse_booking(
    db: AsyncSession,
    attendant_id: int,
    amount: Decimal,
    payment_method: PaymentMethod,
    booking_id: Optional[int] = None,
    actor_id: Optional[int] = None,
) -> Wallet:
    """Take a booking's split back out of the attendant's wallet."""
    split = split_booking(amount, payment_method).reversed()
    return await _post_split(
        db, attendant_id, split, LedgerEntryType.BOOKING_REVERSED, booking_id, actor_id
    )


async def settle_wallet(
    db: AsyncSession,
    attendant_id: int,
    actor_id: Optional[int] = None,
) -> Wallet:
    """
    Zero the wallet and start a new cycle.

    Marking the covered bookings as attendant-paid is the caller's job
    (see src.services.settlement), in the same transaction.
    """
    wallet = await get_or_create_wallet(db, attendant_id)
    balance_before = wallet.balance
    debt_before = wallet.company_debt
    earnings_before = wallet.total_earnings

    wallet.settle()
    _record_entry(
        db,
        wallet,
        LedgerEntryType.SETTLEMENT,
        amount=earnings_before,
        balance_delta=-balance_before,
        debt_delta=-debt_before,
        actor_id=actor_id,
        note=f"Settled balance {balance_before}",
    )
    logger.info(
        f"Wallet {wallet.id} settled for attendant {attendant_id}: "
        f"balance {balance_before}, debt {debt_before}, cycle {wallet.cycle}"
    )
    return wallet


def replay(
    bookings: Iterable[Booking],
    adjustments: Iterable[WalletAdjustment] = (),
) -> dict:
    """
    Recompute wallet figures from scratch.

    Args:
        bookings: Contributing bookings (completed, not attendant-paid)
        adjustments: Tips and deductions to layer on top of the balance

    Returns:
        Dict with the same keys as Wallet.figures()
    """
    figures = {
        "balance": ZERO,
        "total_earnings": ZERO,
        "total_commission": ZERO,
        "total_company_share": ZERO,
        "company_debt": ZERO,
    }
    for booking in bookings:
        split = split_booking(booking.amount, booking.payment_method)
        figures["balance"] += split.balance_delta
        figures["total_earnings"] += split.amount
        figures["total_commission"] += split.commission
        figures["total_company_share"] += split.company_share
        figures["company_debt"] += split.debt_delta

    for adjustment in adjustments:
        figures["balance"] += adjustment.balance_delta

    return figures


async def _contributing_bookings(
    db: AsyncSession,
    attendant_id: int,
    day: Optional[date] = None,
) -> list[Booking]:
    query = select(Booking).where(
        Booking.attendant_id == attendant_id,
        Booking.status == BookingStatus.COMPLETED,
        Booking.attendant_paid.is_(False),
    )
    if day is not None:
        start, end = day_bounds(day)
        query = query.where(Booking.created_at >= start, Booking.created_at < end)

    result = await db.execute(query.order_by(Booking.id))
    return list(result.scalars().all())


async def expected_figures(db: AsyncSession, wallet: Wallet) -> Tuple[dict, int, int]:
    """
    What the wallet should hold according to the booking history.

    Returns:
        (figures, bookings replayed, adjustments replayed)
    """
    bookings = await _contributing_bookings(db, wallet.attendant_id)
    result = await db.execute(
        select(WalletAdjustment)
        .where(
            WalletAdjustment.wallet_id == wallet.id,
            WalletAdjustment.cycle == wallet.cycle,
        )
        .order_by(WalletAdjustment.id)
    )
    adjustments = result.scalars().all()
    return replay(bookings, adjustments), len(bookings), len(adjustments)


async def rebuild_wallet(
    db: AsyncSession,
    attendant_id: int,
    actor_id: Optional[int] = None,
) -> Wallet:
    """
    Discard the cached aggregate and replay the booking history.

    Replays all completed, not-yet-paid bookings of the attendant plus the
    adjustments of the wallet's current cycle. Idempotent: when the cache
    already matches, nothing is written.
    """
    wallet = await get_or_create_wallet(db, attendant_id)
    rebuilt, bookings_count, adjustments_count = await expected_figures(db, wallet)
    cached = wallet.figures()

    if rebuilt == cached:
        wallet.sync_paid_flag()
        logger.info(f"Wallet {wallet.id} already consistent with {bookings_count} bookings")
        return wallet

    logger.warning(
        f"Wallet {wallet.id} drift for attendant {attendant_id}: "
        f"cached balance {cached['balance']}, rebuilt {rebuilt['balance']}; "
        f"cached debt {cached['company_debt']}, rebuilt {rebuilt['company_debt']}"
    )
    balance_delta = rebuilt["balance"] - cached["balance"]
    debt_delta = rebuilt["company_debt"] - cached["company_debt"]

    wallet.replace_figures(**rebuilt)
    _record_entry(
        db,
        wallet,
        LedgerEntryType.REBUILD,
        amount=rebuilt["total_earnings"],
        balance_delta=balance_delta,
        debt_delta=debt_delta,
        actor_id=actor_id,
        note=f"Rebuilt from {bookings_count} bookings and {adjustments_count} adjustments",
    )
    return wallet


async def adjust_wallet(
    db: AsyncSession,
    attendant_id: int,
    kind: AdjustmentType,
    amount: Decimal,
    reason: Optional[str] = None,
    actor_id: Optional[int] = None,
    actor_name: Optional[str] = None,
) -> Wallet:
    """
    Add a tip or deduction to the attendant's balance.

    The adjustment is stored separately from booking-derived earnings so
    rebuild_wallet can replay it; totals and company debt are untouched.
    """
    if amount is None or amount <= 0:
        raise InvalidLedgerOperation("Amount must be a positive number")
    try:
        kind = AdjustmentType(kind)
    except ValueError:
        raise InvalidLedgerOperation('Type must be either "tip" or "deduction"')
    amount = to_money(amount)

    wallet = await get_or_create_wallet(db, attendant_id)
    db.add(
        WalletAdjustment(
            wallet_id=wallet.id,
            type=kind,
            amount=amount,
            reason=reason,
            adjusted_by=actor_name,
            adjusted_by_id=actor_id,
            cycle=wallet.cycle,
        )
    )
    delta = wallet.apply_adjustment(kind, amount)
    _record_entry(
        db,
        wallet,
        LedgerEntryType.ADJUSTMENT,
        amount=amount,
        balance_delta=delta,
        debt_delta=ZERO,
        actor_id=actor_id,
        note=f"{kind.value}: {reason}" if reason else kind.value,
    )
    logger.info(f"Wallet {wallet.id} {kind.value} of {amount} by {actor_name or actor_id}")
    return wallet


async def project_wallet_for_date(
    db: AsyncSession,
    attendant_id: int,
    day: date,
) -> dict:
    """
    Figures for the attendant's open bookings created on one day.

    Read-only: the stored wallet is not touched.
    """
    bookings = await _contributing_bookings(db, attendant_id, day)
    figures = replay(bookings)
    figures["date"] = day
    figures["bookings_count"] = len(bookings)
    return figures
