"""
Booking lifecycle and its effect on the ledger.

A booking contributes to its attendant's wallet while it is completed and
not yet paid out. Every create, update and delete compares the booking's
contribution before and after the change: the old contribution is
reversed on the original attendant and the new one applied on the
(possibly different) current attendant. The booking, wallet, ledger trail
and system wallet writes share the caller's transaction.
"""

import logging
from decimal import Decimal
from typing import Any, NamedTuple, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from src.models import Booking, BookingCategory, PaymentMethod
from src.schemas.booking import CARPET_FIELDS, VEHICLE_FIELDS, category_error
from src.services.exceptions import BookingNotFound, InvalidLedgerOperation
from src.services.system_wallet import post_booking
from src.services.wallet_ledger import apply_booking, get_attendant, reverse_booking

logger = logging.getLogger(__name__)


class Contribution(NamedTuple):
    """What one booking adds to one wallet."""

    attendant_id: int
    amount: Decimal
    payment_method: PaymentMethod


def contribution_of(booking: Booking) -> Optional[Contribution]:
    """The booking's current ledger contribution, or None."""
    if not booking.contributes_to_wallet:
        return None
    return Contribution(
        attendant_id=booking.attendant_id,
        amount=Decimal(booking.amount),
        payment_method=PaymentMethod(booking.payment_method),
    )


async def _post(
    db: AsyncSession,
    contribution: Contribution,
    booking_id: Optional[int],
    actor_id: Optional[int],
    reverse: bool = False,
) -> None:
    post = reverse_booking if reverse else apply_booking
    await post(
        db,
        contribution.attendant_id,
        contribution.amount,
        contribution.payment_method,
        booking_id=booking_id,
        actor_id=actor_id,
    )
    await post_booking(db, contribution.amount, contribution.payment_method, reverse=reverse)


async def sync_contribution(
    db: AsyncSession,
    booking: Booking,
    before: Optional[Contribution],
    actor_id: Optional[int] = None,
) -> bool:
    """
    Move the ledger from ``before`` to the booking's current contribution.

    Returns:
        True if the ledger changed
    """
    after = contribution_of(booking)
    if before == after:
        return False
    if before is not None:
        await _post(db, before, booking.id, actor_id, reverse=True)
    if after is not None:
        await _post(db, after, booking.id, actor_id)
    return True


def _apply_changes(booking: Booking, changes: dict[str, Any]) -> None:
    for field, value in changes.items():
        setattr(booking, field, value)

    if "category" in changes:
        stale = CARPET_FIELDS if booking.category == BookingCategory.VEHICLE else VEHICLE_FIELDS
        for field in stale:
            setattr(booking, field, None)

    error = category_error(
        booking.category,
        {field: getattr(booking, field) for field in VEHICLE_FIELDS + CARPET_FIELDS},
    )
    if error:
        raise InvalidLedgerOperation(error)


async def get_booking(db: AsyncSession, booking_id: int) -> Booking:
    booking = await db.get(Booking, booking_id)
    if not booking:
        raise BookingNotFound(booking_id)
    return booking


async def create_booking(
    db: AsyncSession,
    data: dict[str, Any],
    actor_id: Optional[int] = None,
) -> Booking:
    """
    Create a booking and, if it is already completed, post it to the ledger.

    Args:
        db: Database session
        data: Validated booking fields (see schemas.booking.BookingCreate)
        actor_id: Admin performing the action
    """
    await get_attendant(db, data["attendant_id"])

    booking = Booking(**data)
    booking.attendant_paid = False
    db.add(booking)
    await db.flush()

    await sync_contribution(db, booking, None, actor_id)
    logger.info(
        f"Booking {booking.id} created for attendant {booking.attendant_id}: "
        f"{booking.amount} ({booking.payment_method.value}, {booking.status.value})"
    )
    return booking


async def update_booking(
    db: AsyncSession,
    booking_id: int,
    changes: dict[str, Any],
    actor_id: Optional[int] = None,
) -> Booking:
    """
    Apply a partial update and re-post the booking's ledger contribution.

    Edits that leave the contribution unchanged (customer details, or any
    edit of a booking that is not completed or already paid) have no
    ledger effect. The merged booking must still carry the fields its
    category requires; switching category drops the other category's
    fields.

    Raises:
        BookingNotFound: unknown id
        InvalidLedgerOperation: the edit leaves the booking incomplete
    """
    booking = await get_booking(db, booking_id)
    if "attendant_id" in changes and changes["attendant_id"] != booking.attendant_id:
        await get_attendant(db, changes["attendant_id"])

    before = contribution_of(booking)
    _apply_changes(booking, changes)

    moved = await sync_contribution(db, booking, before, actor_id)
    await db.flush()

    if moved:
        logger.info(f"Booking {booking.id} updated with ledger effect: {sorted(changes)}")
    return booking


async def delete_booking(
    db: AsyncSession,
    booking_id: int,
    actor_id: Optional[int] = None,
) -> Booking:
    """Reverse the booking's contribution, then delete it."""
    booking = await get_booking(db, booking_id)

    before = contribution_of(booking)
    if before is not None:
        await _post(db, before, booking.id, actor_id, reverse=True)
        # Reversal rows must reach the database before the booking row goes
        await db.flush()

    await db.delete(booking)
    await db.flush()
    logger.info(f"Booking {booking_id} deleted")
    return booking
