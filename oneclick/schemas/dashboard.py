"""Volunteer dashboard schemas."""

from pydantic import BaseModel

from oneclick.schemas.bookings import Booking
from oneclick.schemas.volunteers import VolunteerProfile


class DashboardStat(BaseModel):
    """One tile on the volunteer dashboard."""

    title: str
    value: str


class VolunteerDashboardResponse(BaseModel):
    """Volunteer dashboard view.

    ``profile`` is ``None`` until the volunteer saves a profile, in which case
    ``next_path`` points at the profile editor.
    """

    profile: VolunteerProfile | None
    pending: list[Booking] = []
    total_earnings: int = 0
    stats: list[DashboardStat] = []
    next_path: str | None = None
