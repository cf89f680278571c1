"""
Ledger model for wallet movement tracking.
"""

from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import TYPE_CHECKING, Optional

from sqlalchemy import DateTime, ForeignKey, Numeric, String
from sqlalchemy import Enum as SQLAlchemyEnum
from sqlalchemy.orm import Mapped, mapped_column, relationship

from src.models.base import Base, utcnow

if TYPE_CHECKING:
    from src.models.wallet import Wallet


class LedgerEntryType(str, Enum):
    """Kinds of wallet movement."""
    BOOKING_APPLIED = "booking_applied"
    BOOKING_REVERSED = "booking_reversed"
    ADJUSTMENT = "adjustment"
    SETTLEMENT = "settlement"
    REBUILD = "rebuild"


class LedgerEntry(Base):
    """
    One movement of an attendant wallet.

    Append-only trail: every change to a wallet's cached figures writes
    exactly one entry in the same transaction.
    """

    __tablename__ = "ledger_entries"

    id: Mapped[int] = mapped_column(primary_key=True)
    wallet_id: Mapped[int] = mapped_column(
        ForeignKey("wallets.id"),
        nullable=False,
        index=True,
    )
    attendant_id: Mapped[int] = mapped_column(
        ForeignKey("users.id"),
        nullable=False,
        index=True,
    )
    booking_id: Mapped[Optional[int]] = mapped_column(
        ForeignKey("bookings.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )
    entry_type: Mapped[LedgerEntryType] = mapped_column(
        SQLAlchemyEnum(
            LedgerEntryType,
            values_callable=lambda x: [e.value for e in x],
        ),
        nullable=False,
    )
    amount: Mapped[Decimal] = mapped_column(
        Numeric(12, 2),
        nullable=False,
        comment="Booking or adjustment amount behind the movement",
    )
    balance_delta: Mapped[Decimal] = mapped_column(
        Numeric(12, 2),
        nullable=False,
    )
    debt_delta: Mapped[Decimal] = mapped_column(
        Numeric(12, 2),
        nullable=False,
    )
    balance_after: Mapped[Decimal] = mapped_column(
        Numeric(12, 2),
        nullable=False,
    )
    created_by_id: Mapped[Optional[int]] = mapped_column(
        ForeignKey("users.id"),
        nullable=True,
    )
    note: Mapped[Optional[str]] = mapped_column(
        String(500),
        nullable=True,
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utcnow,
        nullable=False,
        index=True,
    )

    # Relationships
    wallet: Mapped["Wallet"] = relationship(
        "Wallet",
        back_populates="entries",
    )

    def __repr__(self) -> str:
        return (
            f"<LedgerEntry(id={self.id}, wallet_id={self.wallet_id}, "
            f"type={self.entry_type}, balance_delta={self.balance_delta})>"
        )
