"""Booking operations against the remote store."""

from uuid import UUID

import structlog
from sqlalchemy import func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from oneclick.core.exceptions import InvalidTransitionException, NotFoundException
from oneclick.core.realtime import RealtimeChannel
from oneclick.models.bookings import bookings
from oneclick.models.volunteers import volunteers
from oneclick.schemas.bookings import (
    Booking,
    BookingCreate,
    BookingStatus,
    BookingWithVolunteer,
)
from oneclick.schemas.users import User
from oneclick.schemas.volunteers import VolunteerProfile
from oneclick.services.errors import remote_call
from oneclick.services.mappers import booking_from_row, booking_with_volunteer_from_row

logger = structlog.get_logger(__name__)

# Statuses whose amounts count towards a volunteer's earnings
EARNING_STATUSES = (BookingStatus.CONFIRMED.value, BookingStatus.COMPLETED.value)


def compute_total_amount(hourly_rate: int, duration: int) -> int:
    """Total charged for a booking, fixed at creation time."""
    return hourly_rate * duration


class BookingService:
    """Service for managing bookings."""

    def __init__(self, db: AsyncSession, realtime: RealtimeChannel | None = None):
        """Initialize service with database session and optional change channel."""
        self.db = db
        self.realtime = realtime

    async def create_booking(
        self,
        client: User,
        volunteer: VolunteerProfile,
        data: BookingCreate,
    ) -> Booking:
        """
        Create a pending booking.

        The total amount is computed from the volunteer's current hourly rate
        and stored; later rate changes never touch it.

        Args:
            client: Signed-in client making the booking
            volunteer: Volunteer being booked
            data: Booking form data

        Returns:
            Created booking
        """
        values = {
            "volunteer_id": volunteer.id,
            "client_id": client.id,
            "client_name": client.name,
            "client_email": client.email,
            "date": data.date,
            "time": data.time,
            "duration": data.duration,
            "status": BookingStatus.PENDING.value,
            "total_amount": compute_total_amount(volunteer.hourly_rate, data.duration),
            "message": data.message,
        }

        async with remote_call(self.db, "create_booking", volunteer_id=str(volunteer.id)):
            result = await self.db.execute(bookings.insert().values(**values).returning(bookings))
            row = result.mappings().one()
            await self.db.commit()

        booking = booking_from_row(row)
        logger.info(
            "booking_created",
            booking_id=str(booking.id),
            volunteer_id=str(volunteer.id),
            total_amount=booking.total_amount,
        )

        if self.realtime is not None:
            await self.realtime.publish("bookings", "INSERT", booking.model_dump(mode="json"))

        return booking

    async def get_booking(self, booking_id: UUID) -> Booking | None:
        """Booking by id, or None."""
        async with remote_call(self.db, "load_booking", booking_id=str(booking_id)):
            result = await self.db.execute(select(bookings).where(bookings.c.id == booking_id))
            row = result.mappings().first()
        return booking_from_row(row) if row else None

    async def require_booking(self, booking_id: UUID) -> Booking:
        """
        Booking by id.

        Raises:
            NotFoundException: If booking not found
        """
        booking = await self.get_booking(booking_id)
        if booking is None:
            raise NotFoundException("Booking not found", back_to="/my-bookings")
        return booking

    async def _list(
        self,
        column: str,
        value: object,
        status: BookingStatus | None = None,
    ) -> list[BookingWithVolunteer]:
        stmt = (
            select(
                bookings,
                volunteers.c.name.label("volunteer_name"),
                volunteers.c.hourly_rate.label("volunteer_hourly_rate"),
                volunteers.c.profile_photo_url.label("volunteer_profile_photo_url"),
            )
            .join(volunteers, volunteers.c.id == bookings.c.volunteer_id)
            .where(bookings.c[column] == value)
            .order_by(bookings.c.created_at.desc())
        )
        if status is not None:
            stmt = stmt.where(bookings.c.status == status.value)

        async with remote_call(self.db, "load_bookings", column=column):
            result = await self.db.execute(stmt)
            return [booking_with_volunteer_from_row(row) for row in result.mappings()]

    async def list_for_client(
        self,
        client_id: str,
        status: BookingStatus | None = None,
    ) -> list[BookingWithVolunteer]:
        """Bookings made by a client, newest first."""
        return await self._list("client_id", client_id, status)

    async def list_for_volunteer(
        self,
        volunteer_id: UUID,
        status: BookingStatus | None = None,
    ) -> list[BookingWithVolunteer]:
        """Bookings received by a volunteer, newest first."""
        return await self._list("volunteer_id", volunteer_id, status)

    async def set_status(
        self,
        booking_id: UUID,
        status: BookingStatus,
        expected: BookingStatus | None = None,
    ) -> Booking:
        """
        Write a booking status.

        No legality check happens here; see ``booking_workflow``. With
        ``expected`` the write only lands while the stored status still
        equals it, so a decision made on a stale read cannot overwrite a
        transition that committed in between.

        Raises:
            NotFoundException: If booking not found
            InvalidTransitionException: If the stored status is no longer ``expected``
        """
        stmt = update(bookings).where(bookings.c.id == booking_id)
        if expected is not None:
            stmt = stmt.where(bookings.c.status == expected.value)

        async with remote_call(self.db, "update_booking_status", booking_id=str(booking_id)):
            result = await self.db.execute(stmt.values(status=status.value).returning(bookings))
            row = result.mappings().first()
            await self.db.commit()

        if row is None:
            current = await self.require_booking(booking_id)
            logger.warning(
                "booking_status_changed_concurrently",
                booking_id=str(booking_id),
                expected=expected.value if expected else None,
                current=current.status.value,
                target=status.value,
            )
            raise InvalidTransitionException(current.status.value, status.value)

        logger.info("booking_status_updated", booking_id=str(booking_id), status=status.value)
        return booking_from_row(row)

    async def total_earnings(self, volunteer_id: UUID) -> int:
        """Sum of amounts over a volunteer's confirmed and completed bookings."""
        async with remote_call(self.db, "load_earnings", volunteer_id=str(volunteer_id)):
            result = await self.db.execute(
                select(func.coalesce(func.sum(bookings.c.total_amount), 0)).where(
                    bookings.c.volunteer_id == volunteer_id,
                    bookings.c.status.in_(EARNING_STATUSES),
                )
            )
            return int(result.scalar() or 0)
