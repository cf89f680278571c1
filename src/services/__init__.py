"""Business logic services."""

from src.services.bookings import create_booking, delete_booking, update_booking
from src.services.exceptions import LedgerConflictError, LedgerError
from src.services.settlement import mark_paid, settle_many
from src.services.wallet_ledger import (
    adjust_wallet,
    apply_booking,
    get_or_create_wallet,
    rebuild_wallet,
    reverse_booking,
    settle_wallet,
)

__all__ = [
    "LedgerError",
    "LedgerConflictError",
    "create_booking",
    "update_booking",
    "delete_booking",
    "get_or_create_wallet",
    "apply_booking",
    "reverse_booking",
    "settle_wallet",
    "rebuild_wallet",
    "adjust_wallet",
    "mark_paid",
    "settle_many",
]
