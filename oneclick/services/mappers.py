"""Typed adapter between remote store rows and application entities.

Every page goes through these functions instead of reshaping rows itself,
so remote column names (``hourly_rate``, ``profile_photo_url``, ...) are
only spelled out here and in the table definitions.
"""

from collections.abc import Iterable, Mapping
from datetime import UTC, datetime
from typing import Any

from oneclick.schemas.bookings import Booking, BookingWithVolunteer, VolunteerSummary
from oneclick.schemas.volunteers import (
    Skill,
    VolunteerProfile,
    VolunteerProfileUpdate,
    VolunteerProfileUpsert,
)

# Columns of the volunteer profile that a partial update may touch
UPDATABLE_PROFILE_FIELDS = ("name", "phone", "bio", "hourly_rate", "availability")


def as_utc(value: datetime | None) -> datetime | None:
    """Attach UTC to naive timestamps returned by drivers without tz support."""
    if value is None or value.tzinfo is not None:
        return value
    return value.replace(tzinfo=UTC)


def skill_from_row(row: Mapping[str, Any]) -> Skill:
    """Map a ``skills`` row."""
    return Skill(id=row["id"], name=row["name"])


def volunteer_from_row(
    row: Mapping[str, Any],
    skill_rows: Iterable[Mapping[str, Any]] = (),
) -> VolunteerProfile:
    """Map a ``volunteers`` row and its skill rows to a profile."""
    return VolunteerProfile(
        id=row["id"],
        user_id=row["user_id"],
        name=row["name"],
        email=row["email"],
        phone=row["phone"] or "",
        bio=row["bio"] or "",
        hourly_rate=row["hourly_rate"],
        availability=row["availability"] or "",
        is_verified=bool(row["is_verified"]),
        rating=float(row["rating"] or 0),
        total_bookings=row["total_bookings"] or 0,
        profile_photo=row["profile_photo_url"],
        skills=tuple(sorted((skill_from_row(s) for s in skill_rows), key=lambda s: s.name)),
        created_at=as_utc(row["created_at"]),
        updated_at=as_utc(row["updated_at"]),
    )


def booking_from_row(row: Mapping[str, Any]) -> Booking:
    """Map a ``bookings`` row."""
    return Booking(
        id=row["id"],
        volunteer_id=row["volunteer_id"],
        client_id=row["client_id"],
        client_name=row["client_name"],
        date=row["date"],
        time=row["time"],
        duration=row["duration"],
        status=row["status"],
        total_amount=row["total_amount"],
        message=row["message"],
        created_at=as_utc(row["created_at"]),
    )


def booking_with_volunteer_from_row(row: Mapping[str, Any]) -> BookingWithVolunteer:
    """Map a bookings row joined with ``volunteer_*`` labelled columns."""
    booking = booking_from_row(row)
    volunteer = None
    if row.get("volunteer_name") is not None:
        volunteer = VolunteerSummary(
            id=row["volunteer_id"],
            name=row["volunteer_name"],
            hourly_rate=row["volunteer_hourly_rate"],
            profile_photo=row["volunteer_profile_photo_url"],
        )
    return BookingWithVolunteer(**booking.model_dump(), volunteer=volunteer)


def volunteer_values_from_upsert(
    data: VolunteerProfileUpsert,
    user_id: str,
    existing: VolunteerProfile | None = None,
) -> dict[str, Any]:
    """Column values for an upsert keyed on ``user_id``.

    New profiles start at a 5.0 rating and zero bookings. The reputation
    values only apply to the insert; an existing row keeps its own.
    """
    return {
        "user_id": user_id,
        "name": data.name,
        "email": data.email,
        "phone": data.phone,
        "bio": data.bio,
        "hourly_rate": data.hourly_rate,
        "availability": data.availability,
        "is_verified": data.is_verified,
        "profile_photo_url": data.profile_photo_url
        or (existing.profile_photo if existing else None),
        "rating": 5.0,
        "total_bookings": 0,
    }


def volunteer_values_from_update(data: VolunteerProfileUpdate) -> dict[str, Any]:
    """Column values for a partial update; unset fields are left alone."""
    provided = data.model_dump(exclude_unset=True)
    return {
        field: provided[field]
        for field in UPDATABLE_PROFILE_FIELDS
        if field in provided and provided[field] is not None
    }
