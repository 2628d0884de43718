"""Booking status state machine and transition authority.

    pending ──accept──▶ confirmed ──(operator)──▶ completed
       │                    │
       ├──decline──▶ declined
       └──cancel───▶ cancelled ◀──cancel──┘

``declined``, ``cancelled`` and ``completed`` are terminal.
"""

from uuid import UUID

import structlog
from pydantic import BaseModel

from oneclick.core.exceptions import ForbiddenException, InvalidTransitionException
from oneclick.schemas.bookings import Booking, BookingStatus
from oneclick.schemas.users import Role
from oneclick.schemas.volunteers import VolunteerProfile
from oneclick.services.booking_service import BookingService
from oneclick.services.volunteer_service import VolunteerService

logger = structlog.get_logger(__name__)

ALLOWED_TRANSITIONS: dict[BookingStatus, frozenset[BookingStatus]] = {
    BookingStatus.PENDING: frozenset(
        {BookingStatus.CONFIRMED, BookingStatus.DECLINED, BookingStatus.CANCELLED}
    ),
    BookingStatus.CONFIRMED: frozenset({BookingStatus.COMPLETED, BookingStatus.CANCELLED}),
    BookingStatus.COMPLETED: frozenset(),
    BookingStatus.CANCELLED: frozenset(),
    BookingStatus.DECLINED: frozenset(),
}

# Which side of the booking may request each target status from the app.
# Completion is not exposed; it only happens through direct data changes.
TRANSITION_AUTHORITY: dict[BookingStatus, Role] = {
    BookingStatus.CONFIRMED: Role.VOLUNTEER,
    BookingStatus.DECLINED: Role.VOLUNTEER,
    BookingStatus.CANCELLED: Role.CLIENT,
}


class Actor(BaseModel):
    """Who is asking for a transition."""

    user_id: str
    role: Role | None
    volunteer_id: UUID | None = None


class TransitionResult(BaseModel):
    """Outcome of a transition."""

    booking: Booking
    profile: VolunteerProfile | None = None


def can_transition(current: BookingStatus, target: BookingStatus) -> bool:
    """Whether the state machine has an edge from ``current`` to ``target``."""
    return target in ALLOWED_TRANSITIONS[current]


def authorize_transition(booking: Booking, target: BookingStatus, actor: Actor) -> None:
    """
    Check that ``actor`` may move ``booking`` to ``target``.

    Raises:
        InvalidTransitionException: If the edge does not exist or is not exposed
        ForbiddenException: If the actor is not the owning side of the booking
    """
    if not can_transition(booking.status, target) or target not in TRANSITION_AUTHORITY:
        raise InvalidTransitionException(booking.status.value, target.value)

    required_role = TRANSITION_AUTHORITY[target]
    if actor.role != required_role:
        raise ForbiddenException(f"Only the {required_role.value} can mark this booking {target.value}")

    if required_role is Role.VOLUNTEER:
        owns = actor.volunteer_id is not None and actor.volunteer_id == booking.volunteer_id
    else:
        owns = actor.user_id == booking.client_id

    if not owns:
        raise ForbiddenException("Access denied to this booking")


async def apply_transition(
    booking_service: BookingService,
    volunteer_service: VolunteerService,
    booking_id: UUID,
    target: BookingStatus,
    actor: Actor,
) -> TransitionResult:
    """
    Load, authorize and persist a status transition.

    The write is conditional on the status that was authorized; if another
    transition committed first, InvalidTransitionException is raised and
    nothing else happens. Accepting a booking also adds one to the
    volunteer's ``total_bookings`` and returns the re-fetched profile.
    """
    booking = await booking_service.require_booking(booking_id)
    authorize_transition(booking, target, actor)

    updated = await booking_service.set_status(booking_id, target, expected=booking.status)
    logger.info(
        "booking_transitioned",
        booking_id=str(booking_id),
        from_status=booking.status.value,
        to_status=target.value,
        actor=actor.user_id,
    )

    profile = None
    if target is BookingStatus.CONFIRMED:
        profile = await volunteer_service.increment_total_bookings(booking.volunteer_id)

    return TransitionResult(booking=updated, profile=profile)
