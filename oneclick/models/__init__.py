"""Remote store table definitions."""

from oneclick.models.bookings import bookings
from oneclick.models.feedback import feedback
from oneclick.models.metadata import metadata
from oneclick.models.volunteers import skills, volunteer_skills, volunteers

__all__ = [
    "bookings",
    "feedback",
    "metadata",
    "skills",
    "volunteer_skills",
    "volunteers",
]
