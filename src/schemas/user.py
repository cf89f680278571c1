"""User and attendant schemas."""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field

from src.models.user import UserRole


class AttendantCreate(BaseModel):
    """Create a new attendant account."""

    email: str = Field(..., min_length=3, max_length=255, pattern=r"^[^@\s]+@[^@\s]+$")
    password: str = Field(..., min_length=8, max_length=100)
    name: str = Field(..., min_length=1, max_length=100)


class UserBrief(BaseModel):
    """Short user reference embedded in other responses."""

    id: int
    name: str
    email: str

    model_config = {"from_attributes": True}


class AttendantResponse(BaseModel):
    """Attendant information for admin view."""

    id: int
    email: str
    name: str
    role: UserRole
    is_active: bool
    created_at: datetime
    last_active_at: Optional[datetime] = None

    model_config = {"from_attributes": True}
