"""
Company-wide wallet aggregate.
"""

from datetime import datetime
from decimal import Decimal
from enum import Enum

from sqlalchemy import DateTime, Integer, Numeric
from sqlalchemy.orm import Mapped, mapped_column

from src.models.base import Base, TimestampMixin, utcnow

ZERO = Decimal("0.00")
SYSTEM_WALLET_ID = 1


def _clamp(value: Decimal) -> Decimal:
    return value if value > 0 else ZERO


class CollectionSource(str, Enum):
    """Where money reaching the company came from."""
    ADMIN_COLLECTION = "admin_collection"          # Paid at the counter / till
    ATTENDANT_SUBMISSION = "attendant_submission"  # Remitted by an attendant at settlement


class SystemWallet(Base, TimestampMixin):
    """
    Singleton (id = 1) company wallet.

    Every monetary field stays at or above zero: reversals that arrive
    out of order are clamped rather than producing negative totals.
    """

    __tablename__ = "system_wallet"

    id: Mapped[int] = mapped_column(primary_key=True)
    total_revenue: Mapped[Decimal] = mapped_column(
        Numeric(14, 2),
        default=ZERO,
        nullable=False,
    )
    total_company_share: Mapped[Decimal] = mapped_column(
        Numeric(14, 2),
        default=ZERO,
        nullable=False,
    )
    total_attendant_payments: Mapped[Decimal] = mapped_column(
        Numeric(14, 2),
        default=ZERO,
        nullable=False,
        comment="Positive balances paid out to attendants at settlement",
    )
    total_admin_collections: Mapped[Decimal] = mapped_column(
        Numeric(14, 2),
        default=ZERO,
        nullable=False,
    )
    total_attendant_collections: Mapped[Decimal] = mapped_column(
        Numeric(14, 2),
        default=ZERO,
        nullable=False,
        comment="Cash remitted by attendants at settlement",
    )
    current_balance: Mapped[Decimal] = mapped_column(
        Numeric(14, 2),
        default=ZERO,
        nullable=False,
    )
    last_updated: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utcnow,
        onupdate=utcnow,
        nullable=False,
    )
    version: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
    )

    __mapper_args__ = {"version_id_col": version}

    @classmethod
    def empty(cls) -> "SystemWallet":
        return cls(
            id=SYSTEM_WALLET_ID,
            total_revenue=ZERO,
            total_company_share=ZERO,
            total_attendant_payments=ZERO,
            total_admin_collections=ZERO,
            total_attendant_collections=ZERO,
            current_balance=ZERO,
        )

    def credit(self, amount: Decimal, source: CollectionSource) -> None:
        """Money reached the company."""
        source = CollectionSource(source)
        self.total_revenue = self.total_revenue + amount
        self.current_balance = self.current_balance + amount
        if source == CollectionSource.ADMIN_COLLECTION:
            self.total_admin_collections = self.total_admin_collections + amount
        else:
            self.total_attendant_collections = self.total_attendant_collections + amount

    def reverse(self, amount: Decimal, source: CollectionSource) -> None:
        """Undo a credit; every field is clamped at zero."""
        source = CollectionSource(source)
        self.total_revenue = _clamp(self.total_revenue - amount)
        self.current_balance = _clamp(self.current_balance - amount)
        if source == CollectionSource.ADMIN_COLLECTION:
            self.total_admin_collections = _clamp(self.total_admin_collections - amount)
        else:
            self.total_attendant_collections = _clamp(self.total_attendant_collections - amount)

    def track_company_share(self, delta: Decimal) -> None:
        self.total_company_share = _clamp(self.total_company_share + delta)

    def record_payout(self, amount: Decimal) -> None:
        """An attendant's positive balance was paid out."""
        self.total_attendant_payments = self.total_attendant_payments + amount
        self.current_balance = _clamp(self.current_balance - amount)

    def __repr__(self) -> str:
        return f"<SystemWallet(current_balance={self.current_balance}, revenue={self.total_revenue})>"
