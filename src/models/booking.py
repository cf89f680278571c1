"""
Booking model: one wash job and the revenue event it produces.
"""

from decimal import Decimal
from enum import Enum
from typing import TYPE_CHECKING, Optional

from sqlalchemy import Boolean, ForeignKey, Integer, Numeric, String, Text
from sqlalchemy import Enum as SQLAlchemyEnum
from sqlalchemy.orm import Mapped, mapped_column, relationship

from src.models.base import Base, TimestampMixin

if TYPE_CHECKING:
    from src.models.user import User


class BookingCategory(str, Enum):
    """What is being washed."""
    VEHICLE = "vehicle"
    CARPET = "carpet"


class ServiceType(str, Enum):
    """Vehicle wash level."""
    FULL_WASH = "full wash"
    HALF_WASH = "half wash"


class PaymentMethod(str, Enum):
    """Who collected the customer's money."""
    ATTENDANT_CASH = "attendant_cash"  # Attendant holds the cash, owes company share
    ADMIN_CASH = "admin_cash"
    ADMIN_TILL = "admin_till"          # Card / mobile money through the till

    @property
    def collected_by_attendant(self) -> bool:
        return self is PaymentMethod.ATTENDANT_CASH


class BookingStatus(str, Enum):
    """Booking lifecycle."""
    PENDING = "pending"
    IN_PROGRESS = "in progress"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class Booking(Base, TimestampMixin):
    """
    A single booking.

    Only completed bookings that have not yet been paid out to the
    attendant contribute to the attendant's wallet. Edits are guarded by
    the ``version`` column, so an edit based on a stale read of the
    booking fails instead of posting the wrong contribution.
    """

    __tablename__ = "bookings"

    id: Mapped[int] = mapped_column(primary_key=True)

    attendant_id: Mapped[int] = mapped_column(
        ForeignKey("users.id"),
        nullable=False,
        index=True,
    )
    amount: Mapped[Decimal] = mapped_column(
        Numeric(12, 2),
        nullable=False,
    )
    category: Mapped[BookingCategory] = mapped_column(
        SQLAlchemyEnum(
            BookingCategory,
            values_callable=lambda x: [e.value for e in x],
        ),
        nullable=False,
        index=True,
    )
    payment_method: Mapped[PaymentMethod] = mapped_column(
        SQLAlchemyEnum(
            PaymentMethod,
            values_callable=lambda x: [e.value for e in x],
        ),
        nullable=False,
    )
    status: Mapped[BookingStatus] = mapped_column(
        SQLAlchemyEnum(
            BookingStatus,
            values_callable=lambda x: [e.value for e in x],
        ),
        default=BookingStatus.COMPLETED,
        nullable=False,
        index=True,
    )
    attendant_paid: Mapped[bool] = mapped_column(
        Boolean,
        default=False,
        nullable=False,
        index=True,
    )

    # Vehicle bookings
    car_registration_number: Mapped[Optional[str]] = mapped_column(
        String(20),
        nullable=True,
        index=True,
    )
    service_type: Mapped[Optional[ServiceType]] = mapped_column(
        SQLAlchemyEnum(
            ServiceType,
            values_callable=lambda x: [e.value for e in x],
        ),
        nullable=True,
    )
    vehicle_type: Mapped[Optional[str]] = mapped_column(
        String(50),
        nullable=True,
    )

    # Carpet bookings
    phone_number: Mapped[Optional[str]] = mapped_column(
        String(30),
        nullable=True,
        index=True,
    )
    color: Mapped[Optional[str]] = mapped_column(
        String(50),
        nullable=True,
    )

    note: Mapped[Optional[str]] = mapped_column(
        Text,
        nullable=True,
    )

    version: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
    )

    __mapper_args__ = {"version_id_col": version}

    # Relationships
    attendant: Mapped["User"] = relationship(
        "User",
        back_populates="bookings",
    )

    @property
    def contributes_to_wallet(self) -> bool:
        """Whether this booking is part of the attendant's open balance."""
        return self.status == BookingStatus.COMPLETED and not self.attendant_paid

    def __repr__(self) -> str:
        return (
            f"<Booking(id={self.id}, attendant_id={self.attendant_id}, "
            f"amount={self.amount}, status={self.status})>"
        )
