"""
Company-wide system wallet postings.

Pairing rule: every apply or reversal of an admin-collected booking posts
exactly one credit or reversal of the full amount here. Attendant-cash
bookings move no company cash until settlement, when the attendant's net
balance is either remitted (credit) or paid out.
"""

import logging
from decimal import Decimal

from sqlalchemy.ext.asyncio import AsyncSession

from src.models import SYSTEM_WALLET_ID, CollectionSource, PaymentMethod, SystemWallet
from src.services.commission import split_booking

logger = logging.getLogger(__name__)


async def get_or_create_system_wallet(db: AsyncSession) -> SystemWallet:
    """Return the singleton system wallet, creating it on first access."""
    system_wallet = await db.get(SystemWallet, SYSTEM_WALLET_ID)
    if system_wallet is None:
        system_wallet = SystemWallet.empty()
        db.add(system_wallet)
        await db.flush()
        logger.info("Created system wallet")
    return system_wallet


async def post_booking(
    db: AsyncSession,
    amount: Decimal,
    payment_method: PaymentMethod,
    reverse: bool = False,
) -> SystemWallet:
    """
    Mirror a booking entering (or leaving) the ledger.

    Args:
        db: Database session
        amount: Booking amount
        payment_method: Who collected the money
        reverse: True when the booking stops contributing
    """
    split = split_booking(amount, payment_method)
    system_wallet = await get_or_create_system_wallet(db)

    if reverse:
        system_wallet.track_company_share(-split.company_share)
        if not PaymentMethod(payment_method).collected_by_attendant:
            system_wallet.reverse(split.amount, CollectionSource.ADMIN_COLLECTION)
    else:
        system_wallet.track_company_share(split.company_share)
        if not PaymentMethod(payment_method).collected_by_attendant:
            system_wallet.credit(split.amount, CollectionSource.ADMIN_COLLECTION)

    return system_wallet


async def post_settlement(db: AsyncSession, balance: Decimal) -> SystemWallet:
    """
    Record the cash side of settling one attendant.

    A negative balance is what the attendant hands over; a positive one is
    what the company pays out.
    """
    system_wallet = await get_or_create_system_wallet(db)
    if balance < 0:
        system_wallet.credit(-balance, CollectionSource.ATTENDANT_SUBMISSION)
    elif balance > 0:
        system_wallet.record_payout(balance)
    return system_wallet
