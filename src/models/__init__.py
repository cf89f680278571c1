"""
Database models for the car-wash ledger.

All models are exported here for convenient imports:
    from src.models import User, Booking, Wallet, etc.
"""

from src.models.audit import AuditAction, AuditLog
from src.models.base import Base, TimestampMixin
from src.models.booking import (
    Booking,
    BookingCategory,
    BookingStatus,
    PaymentMethod,
    ServiceType,
)
from src.models.ledger import LedgerEntry, LedgerEntryType
from src.models.system_wallet import SYSTEM_WALLET_ID, CollectionSource, SystemWallet
from src.models.user import User, UserRole
from src.models.wallet import AdjustmentType, Wallet, WalletAdjustment

__all__ = [
    # Base
    "Base",
    "TimestampMixin",
    # User
    "User",
    "UserRole",
    # Booking
    "Booking",
    "BookingCategory",
    "BookingStatus",
    "PaymentMethod",
    "ServiceType",
    # Wallet
    "Wallet",
    "WalletAdjustment",
    "AdjustmentType",
    # System wallet
    "SystemWallet",
    "CollectionSource",
    "SYSTEM_WALLET_ID",
    # Ledger
    "LedgerEntry",
    "LedgerEntryType",
    # Audit
    "AuditLog",
    "AuditAction",
]
