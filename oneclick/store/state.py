"""Application state held by the store."""

from pydantic import BaseModel

from oneclick.schemas.bookings import Booking
from oneclick.schemas.users import User
from oneclick.schemas.volunteers import VolunteerProfile


class AppState(BaseModel):
    """Who is signed in, their role and profile, and locally known bookings."""

    model_config = {"frozen": True}

    user: User | None = None
    is_authenticated: bool = False
    bookings: tuple[Booking, ...] = ()
    current_user_profile: VolunteerProfile | None = None


INITIAL_STATE = AppState()
