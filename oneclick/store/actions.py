"""Actions accepted by the application store."""

from typing import Any, Literal, Union
from uuid import UUID

from pydantic import BaseModel

from oneclick.schemas.bookings import Booking
from oneclick.schemas.users import Role, User
from oneclick.schemas.volunteers import VolunteerProfile


class SetUser(BaseModel):
    """Replace the current user; ``None`` means signed out."""

    type: Literal["SET_USER"] = "SET_USER"
    payload: User | None


class SetRole(BaseModel):
    """Set the role of the current user."""

    type: Literal["SET_ROLE"] = "SET_ROLE"
    payload: Role


class UpdateVolunteerProfile(BaseModel):
    """Replace the cached volunteer profile wholesale."""

    type: Literal["UPDATE_VOLUNTEER_PROFILE"] = "UPDATE_VOLUNTEER_PROFILE"
    payload: VolunteerProfile


class AddBooking(BaseModel):
    """Append a booking to the local list (no de-duplication)."""

    type: Literal["ADD_BOOKING"] = "ADD_BOOKING"
    payload: Booking


class UpdateBooking(BaseModel):
    """Merge fields into the booking with ``id``."""

    type: Literal["UPDATE_BOOKING"] = "UPDATE_BOOKING"
    id: UUID
    updates: dict[str, Any]


AppAction = Union[SetUser, SetRole, UpdateVolunteerProfile, AddBooking, UpdateBooking]
