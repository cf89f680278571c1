"""
Attendant settlement (mark-paid).

Settling an attendant pays out (or collects) the wallet balance, flags
every completed, unpaid booking of that attendant as ``attendant_paid``
and zeroes the wallet, all in one transaction. Batches commit per
attendant: one failure is reported and the others still go through.
"""

import logging
from decimal import Decimal
from typing import Iterable, List, Tuple

from sqlalchemy import func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from src.models import AuditAction, Booking, BookingStatus
from src.schemas.wallet import SettledWallet, wallet_response
from src.services.concurrency import run_with_retry
from src.services.exceptions import AlreadySettled, LedgerError
from src.services.system_wallet import post_settlement
from src.services.wallet_ledger import get_attendant, get_or_create_wallet, settle_wallet
from src.utils.audit import SYSTEM, AuditContext

logger = logging.getLogger(__name__)


def _open_bookings(attendant_id: int):
    return (
        Booking.attendant_id == attendant_id,
        Booking.status == BookingStatus.COMPLETED,
        Booking.attendant_paid.is_(False),
    )


async def count_open_bookings(db: AsyncSession, attendant_id: int) -> int:
    return await db.scalar(
        select(func.count(Booking.id)).where(*_open_bookings(attendant_id))
    )


async def mark_bookings_paid(db: AsyncSession, attendant_id: int) -> int:
    """Flag the attendant's open bookings as paid. Returns the row count."""
    result = await db.execute(
        update(Booking)
        .where(*_open_bookings(attendant_id))
        # version_id_col is not applied to bulk UPDATEs
        .values(attendant_paid=True, version=Booking.version + 1)
        .execution_options(synchronize_session="fetch")
    )
    return result.rowcount or 0


async def settle_attendant(
    db: AsyncSession,
    attendant_id: int,
    audit: AuditContext = SYSTEM,
) -> SettledWallet:
    """
    Settle one attendant inside the caller's transaction.

    A wallet is settleable while it has a balance, company debt or open
    bookings. Bookings can net to a zero balance (admin-collected
    commission offsetting attendant-held cash); settling such a wallet
    clears the debt and closes the bookings without moving any cash.

    Raises:
        AttendantNotFound / NotAnAttendant: bad id
        AlreadySettled: the wallet has nothing outstanding
    """
    attendant = await get_attendant(db, attendant_id)
    wallet = await get_or_create_wallet(db, attendant_id)
    if (
        wallet.is_paid
        and wallet.company_debt == 0
        and not await count_open_bookings(db, attendant_id)
    ):
        raise AlreadySettled(attendant_id)

    amount_settled = Decimal(wallet.balance)
    bookings_updated = await mark_bookings_paid(db, attendant_id)
    await post_settlement(db, amount_settled)
    wallet = await settle_wallet(db, attendant_id, actor_id=audit.actor_id)
    await audit.record(
        db,
        AuditAction.SETTLE_WALLET,
        "wallet",
        wallet.id,
        attendant_id=attendant_id,
        amount_settled=amount_settled,
        bookings_updated=bookings_updated,
    )
    await db.flush()

    logger.info(
        f"Settled attendant {attendant_id} ({attendant.email}): "
        f"{amount_settled} over {bookings_updated} bookings"
    )
    return SettledWallet(
        attendant_id=attendant.id,
        attendant_name=attendant.name,
        attendant_email=attendant.email,
        amount_settled=amount_settled,
        bookings_updated=bookings_updated,
        wallet=wallet_response(wallet, attendant),
    )


async def mark_paid(
    db: AsyncSession,
    attendant_id: int,
    audit: AuditContext = SYSTEM,
) -> SettledWallet:
    """Settle a single attendant and commit."""
    return await run_with_retry(
        db, lambda: settle_attendant(db, attendant_id, audit=audit)
    )


async def settle_many(
    db: AsyncSession,
    attendant_ids: Iterable[int],
    audit: AuditContext = SYSTEM,
) -> Tuple[List[SettledWallet], List[str]]:
    """
    Settle several attendants, committing each one separately.

    Returns:
        (settled, errors) where errors are human-readable messages for the
        attendants that could not be settled
    """
    settled: List[SettledWallet] = []
    errors: List[str] = []

    for attendant_id in dict.fromkeys(attendant_ids):
        try:
            settled.append(await mark_paid(db, attendant_id, audit=audit))
        except LedgerError as e:
            await db.rollback()
            logger.warning(f"Settlement skipped for attendant {attendant_id}: {e.message}")
            errors.append(e.message)

    logger.info(f"Settlement batch: {len(settled)} settled, {len(errors)} errors")
    return settled, errors
