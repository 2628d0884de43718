"""Booking schemas for request/response validation."""

from datetime import date, datetime, time
from enum import Enum
from uuid import UUID

from pydantic import BaseModel, Field

from oneclick.schemas.common import Toast
from oneclick.schemas.volunteers import VolunteerProfile


class BookingStatus(str, Enum):
    """Booking status enumeration."""

    PENDING = "pending"
    CONFIRMED = "confirmed"
    COMPLETED = "completed"
    CANCELLED = "cancelled"
    DECLINED = "declined"


class Booking(BaseModel):
    """Booking as held by pages and the state container."""

    model_config = {"frozen": True}

    id: UUID
    volunteer_id: UUID
    client_id: str
    client_name: str | None = None
    date: date
    time: time
    duration: int
    status: BookingStatus
    total_amount: int
    message: str | None = None
    created_at: datetime | None = None


class VolunteerSummary(BaseModel):
    """Volunteer fields shown next to a booking."""

    id: UUID
    name: str
    hourly_rate: int
    profile_photo: str | None = None


class BookingWithVolunteer(Booking):
    """Booking joined with its volunteer."""

    volunteer: VolunteerSummary | None = None


class BookingCreate(BaseModel):
    """Booking form submitted by a client."""

    volunteer_id: UUID
    date: date
    time: time
    duration: int = Field(default=1, ge=1, le=8)
    message: str | None = Field(None, max_length=1000)


class BookingListResponse(BaseModel):
    """Bookings for the signed-in user."""

    total: int
    items: list[BookingWithVolunteer]


class BookingActionResponse(BaseModel):
    """Result of creating or transitioning a booking."""

    booking: Booking
    toast: Toast
    next_path: str | None = None
    profile: VolunteerProfile | None = None
