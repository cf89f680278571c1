"""
Attendant wallet: the cached ledger aggregate and its adjustments.
"""

from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import TYPE_CHECKING, List, Optional

from sqlalchemy import Boolean, DateTime, ForeignKey, Integer, Numeric, String
from sqlalchemy import Enum as SQLAlchemyEnum
from sqlalchemy.orm import Mapped, mapped_column, relationship

from src.models.base import Base, TimestampMixin, utcnow

if TYPE_CHECKING:
    from src.models.ledger import LedgerEntry
    from src.models.user import User
    from src.services.commission import CommissionSplit

ZERO = Decimal("0.00")


def _clamp(value: Decimal) -> Decimal:
    return value if value > 0 else ZERO


class AdjustmentType(str, Enum):
    """Manual wallet adjustments made by an admin."""
    TIP = "tip"
    DEDUCTION = "deduction"


class Wallet(Base, TimestampMixin):
    """
    Per-attendant wallet.

    The stored figures are a cache of the attendant's open ledger: they
    must always equal the commission policy replayed over the attendant's
    completed, unpaid bookings plus the adjustments of the current cycle.
    Writes are guarded by the ``version`` column (compare-and-set on
    every UPDATE).

    balance < 0 means the attendant owes the company.
    """

    __tablename__ = "wallets"

    id: Mapped[int] = mapped_column(primary_key=True)
    attendant_id: Mapped[int] = mapped_column(
        ForeignKey("users.id"),
        unique=True,
        nullable=False,
    )
    balance: Mapped[Decimal] = mapped_column(
        Numeric(12, 2),
        default=ZERO,
        nullable=False,
    )
    total_earnings: Mapped[Decimal] = mapped_column(
        Numeric(12, 2),
        default=ZERO,
        nullable=False,
    )
    total_commission: Mapped[Decimal] = mapped_column(
        Numeric(12, 2),
        default=ZERO,
        nullable=False,
    )
    total_company_share: Mapped[Decimal] = mapped_column(
        Numeric(12, 2),
        default=ZERO,
        nullable=False,
    )
    company_debt: Mapped[Decimal] = mapped_column(
        Numeric(12, 2),
        default=ZERO,
        nullable=False,
        comment="Company share collected in cash by the attendant, not yet remitted",
    )
    is_paid: Mapped[bool] = mapped_column(
        Boolean,
        default=True,
        nullable=False,
        index=True,
    )
    last_payment_date: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
    )
    cycle: Mapped[int] = mapped_column(
        Integer,
        default=0,
        nullable=False,
        comment="Settlement counter; adjustments belong to one cycle",
    )
    version: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
    )

    __mapper_args__ = {"version_id_col": version}

    # Relationships
    attendant: Mapped["User"] = relationship(
        "User",
        back_populates="wallet",
    )
    adjustments: Mapped[List["WalletAdjustment"]] = relationship(
        "WalletAdjustment",
        back_populates="wallet",
        order_by="WalletAdjustment.id",
    )
    entries: Mapped[List["LedgerEntry"]] = relationship(
        "LedgerEntry",
        back_populates="wallet",
        order_by="LedgerEntry.id",
    )

    @classmethod
    def empty(cls, attendant_id: int) -> "Wallet":
        """A zeroed wallet with every figure set before the first flush."""
        return cls(
            attendant_id=attendant_id,
            balance=ZERO,
            total_earnings=ZERO,
            total_commission=ZERO,
            total_company_share=ZERO,
            company_debt=ZERO,
            is_paid=True,
            cycle=0,
        )

    def sync_paid_flag(self) -> None:
        """is_paid holds exactly when nothing is owed either way."""
        self.is_paid = self.balance == 0

    def apply_split(self, split: "CommissionSplit") -> None:
        """Add one booking's deltas (or their inverse) to the aggregate.

        Totals and company debt never drop below zero; the balance is signed.
        """
        self.balance = self.balance + split.balance_delta
        self.total_earnings = _clamp(self.total_earnings + split.amount)
        self.total_commission = _clamp(self.total_commission + split.commission)
        self.total_company_share = _clamp(self.total_company_share + split.company_share)
        self.company_debt = _clamp(self.company_debt + split.debt_delta)
        self.sync_paid_flag()

    def apply_adjustment(self, kind: AdjustmentType, amount: Decimal) -> Decimal:
        """Move the balance by a tip or deduction. Returns the balance delta."""
        delta = amount if AdjustmentType(kind) == AdjustmentType.TIP else -amount
        self.balance = self.balance + delta
        self.sync_paid_flag()
        return delta

    def replace_figures(
        self,
        balance: Decimal,
        total_earnings: Decimal,
        total_commission: Decimal,
        total_company_share: Decimal,
        company_debt: Decimal,
    ) -> None:
        """Overwrite the cached aggregate (used by rebuild)."""
        self.balance = balance
        self.total_earnings = _clamp(total_earnings)
        self.total_commission = _clamp(total_commission)
        self.total_company_share = _clamp(total_company_share)
        self.company_debt = _clamp(company_debt)
        self.sync_paid_flag()

    def settle(self) -> None:
        """Zero the wallet and open a new cycle."""
        self.balance = ZERO
        self.total_earnings = ZERO
        self.total_commission = ZERO
        self.total_company_share = ZERO
        self.company_debt = ZERO
        self.is_paid = True
        self.last_payment_date = utcnow()
        self.cycle = self.cycle + 1

    def figures(self) -> dict:
        """Snapshot of the cached aggregate."""
        return {
            "balance": self.balance,
            "total_earnings": self.total_earnings,
            "total_commission": self.total_commission,
            "total_company_share": self.total_company_share,
            "company_debt": self.company_debt,
        }

    def __repr__(self) -> str:
        return (
            f"<Wallet(id={self.id}, attendant_id={self.attendant_id}, "
            f"balance={self.balance}, company_debt={self.company_debt})>"
        )


class WalletAdjustment(Base):
    """
    Tip or deduction applied to a wallet by an admin.

    Rows are never updated or deleted; ``rebuild`` replays the rows of the
    wallet's current cycle.
    """

    __tablename__ = "wallet_adjustments"

    id: Mapped[int] = mapped_column(primary_key=True)
    wallet_id: Mapped[int] = mapped_column(
        ForeignKey("wallets.id"),
        nullable=False,
        index=True,
    )
    type: Mapped[AdjustmentType] = mapped_column(
        SQLAlchemyEnum(
            AdjustmentType,
            values_callable=lambda x: [e.value for e in x],
        ),
        nullable=False,
    )
    amount: Mapped[Decimal] = mapped_column(
        Numeric(12, 2),
        nullable=False,
    )
    reason: Mapped[Optional[str]] = mapped_column(
        String(500),
        nullable=True,
    )
    adjusted_by: Mapped[Optional[str]] = mapped_column(
        String(100),
        nullable=True,
        comment="Display name of the admin at the time of the adjustment",
    )
    adjusted_by_id: Mapped[Optional[int]] = mapped_column(
        ForeignKey("users.id"),
        nullable=True,
    )
    cycle: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
        index=True,
    )
    adjusted_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utcnow,
        nullable=False,
    )

    # Relationships
    wallet: Mapped["Wallet"] = relationship(
        "Wallet",
        back_populates="adjustments",
    )

    @property
    def balance_delta(self) -> Decimal:
        return self.amount if self.type == AdjustmentType.TIP else -self.amount

    def __repr__(self) -> str:
        return f"<WalletAdjustment(id={self.id}, type={self.type}, amount={self.amount})>"
