"""Booking request/response schemas."""

from datetime import datetime
from decimal import Decimal
from typing import Any, Mapping, Optional

from pydantic import BaseModel, Field, model_validator

from src.models.booking import BookingCategory, BookingStatus, PaymentMethod, ServiceType

VEHICLE_FIELDS = ("car_registration_number", "service_type", "vehicle_type")
CARPET_FIELDS = ("phone_number", "color")


def category_error(category: BookingCategory, fields: Mapping[str, Any]) -> Optional[str]:
    """Why a booking lacks the fields its category requires, or None."""
    if category == BookingCategory.VEHICLE:
        if not all(fields.get(name) for name in VEHICLE_FIELDS):
            return (
                "For vehicle bookings: car_registration_number, service_type "
                "and vehicle_type are required"
            )
    elif not fields.get("color"):
        return "For carpet bookings: color is required"
    return None


def _clean(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    value = value.strip()
    return value or None


class BookingCreate(BaseModel):
    """Create a booking (admin only)."""

    attendant_id: int = Field(..., gt=0)
    amount: Decimal = Field(..., gt=0, max_digits=12, decimal_places=2)
    category: BookingCategory
    payment_method: PaymentMethod
    status: BookingStatus = BookingStatus.COMPLETED

    car_registration_number: Optional[str] = Field(None, max_length=20)
    service_type: Optional[ServiceType] = None
    vehicle_type: Optional[str] = Field(None, max_length=50)

    phone_number: Optional[str] = Field(None, max_length=30)
    color: Optional[str] = Field(None, max_length=50)

    note: Optional[str] = Field(None, max_length=2000)

    @model_validator(mode="after")
    def check_category_fields(self) -> "BookingCreate":
        self.car_registration_number = _clean(self.car_registration_number)
        if self.car_registration_number:
            self.car_registration_number = self.car_registration_number.upper()
        self.vehicle_type = _clean(self.vehicle_type)
        self.phone_number = _clean(self.phone_number)
        self.color = _clean(self.color)

        error = category_error(self.category, self.model_dump())
        if error:
            raise ValueError(error)
        return self

    def to_model_fields(self) -> dict[str, Any]:
        """Booking columns, keeping only the fields of the booking's category."""
        skipped = CARPET_FIELDS if self.category == BookingCategory.VEHICLE else VEHICLE_FIELDS
        return self.model_dump(exclude=set(skipped))


class BookingUpdate(BaseModel):
    """Partial booking update (admin only)."""

    attendant_id: Optional[int] = Field(None, gt=0)
    amount: Optional[Decimal] = Field(None, gt=0, max_digits=12, decimal_places=2)
    category: Optional[BookingCategory] = None
    payment_method: Optional[PaymentMethod] = None
    status: Optional[BookingStatus] = None

    car_registration_number: Optional[str] = Field(None, max_length=20)
    service_type: Optional[ServiceType] = None
    vehicle_type: Optional[str] = Field(None, max_length=50)
    phone_number: Optional[str] = Field(None, max_length=30)
    color: Optional[str] = Field(None, max_length=50)
    note: Optional[str] = Field(None, max_length=2000)

    def to_changes(self) -> dict[str, Any]:
        """Only the fields the client actually sent, normalized."""
        changes = self.model_dump(exclude_unset=True, exclude_none=True)
        for field in ("vehicle_type", "phone_number", "color"):
            if field in changes:
                changes[field] = changes[field].strip()
        if "car_registration_number" in changes:
            changes["car_registration_number"] = changes["car_registration_number"].strip().upper()
        return changes


class BookingResponse(BaseModel):
    """Booking as returned by the API."""

    id: int
    attendant_id: int
    amount: Decimal
    category: BookingCategory
    payment_method: PaymentMethod
    status: BookingStatus
    attendant_paid: bool

    car_registration_number: Optional[str] = None
    service_type: Optional[ServiceType] = None
    vehicle_type: Optional[str] = None
    phone_number: Optional[str] = None
    color: Optional[str] = None
    note: Optional[str] = None

    created_at: datetime
    updated_at: Optional[datetime] = None

    model_config = {"from_attributes": True}
