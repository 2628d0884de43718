"""Booking endpoints: create, list, transitions and the live pending feed."""

import asyncio
from uuid import UUID

import structlog
from fastapi import APIRouter, Depends, Query, WebSocket, WebSocketDisconnect, status
from starlette.websockets import WebSocketState

from oneclick.core.exceptions import ForbiddenException
from oneclick.core.security import decode_session_token
from oneclick.dependencies import DatabaseSession, Realtime, current_user, require_page
from oneclick.schemas.bookings import (
    BookingActionResponse,
    BookingCreate,
    BookingListResponse,
    BookingStatus,
    BookingWithVolunteer,
)
from oneclick.schemas.common import Toast, ToastVariant
from oneclick.schemas.users import Role
from oneclick.services.booking_service import BookingService
from oneclick.services.booking_workflow import Actor, apply_transition
from oneclick.services.live_bookings import PendingBookingsFeed
from oneclick.services.volunteer_service import VolunteerService
from oneclick.store import AddBooking, AppStore, UpdateBooking, UpdateVolunteerProfile

logger = structlog.get_logger(__name__)

router = APIRouter()

# Close codes for the live feed: callers that are not volunteers with a
# profile, and feeds whose refresh failed
POLICY_VIOLATION = 1008
INTERNAL_ERROR = 1011


@router.post(
    "",
    response_model=BookingActionResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Request a booking",
)
async def create_booking(
    data: BookingCreate,
    db: DatabaseSession,
    realtime: Realtime,
    store: AppStore = Depends(require_page("/book/{id}")),
) -> BookingActionResponse:
    """
    Create a pending booking with a volunteer.

    The total amount is the volunteer's hourly rate times the duration at
    the moment of booking.

    Raises:
        ForbiddenException: If the caller is not a client
        NotFoundException: If the volunteer does not exist
    """
    user = current_user(store)
    if user.role is not Role.CLIENT:
        raise ForbiddenException("Only clients can book volunteers")

    volunteer = await VolunteerService(db).require_volunteer(data.volunteer_id, back_to="/client-dashboard")
    booking = await BookingService(db, realtime).create_booking(user, volunteer, data)
    await store.dispatch(AddBooking(payload=booking))

    return BookingActionResponse(
        booking=booking,
        toast=Toast(
            title="Booking Request Sent!",
            description=f"Your booking request has been sent to {volunteer.name}.",
        ),
        next_path="/my-bookings",
    )


@router.get(
    "",
    response_model=BookingListResponse,
    status_code=status.HTTP_200_OK,
    summary="My bookings",
)
async def list_bookings(
    db: DatabaseSession,
    store: AppStore = Depends(require_page("/my-bookings")),
    status_filter: BookingStatus | None = Query(None, alias="status"),
) -> BookingListResponse:
    """
    Bookings for the signed-in user, newest first.

    Clients see the bookings they made. Volunteers see the bookings made
    with their profile, or nothing before a profile exists.
    """
    user = current_user(store)
    service = BookingService(db)

    if user.role is Role.CLIENT:
        items = await service.list_for_client(user.id, status_filter)
    elif store.state.current_user_profile is not None:
        items = await service.list_for_volunteer(store.state.current_user_profile.id, status_filter)
    else:
        items = []

    return BookingListResponse(total=len(items), items=items)


async def _transition(
    booking_id: UUID,
    target: BookingStatus,
    db: DatabaseSession,
    store: AppStore,
    toast: Toast,
) -> BookingActionResponse:
    user = current_user(store)
    profile = store.state.current_user_profile
    actor = Actor(
        user_id=user.id,
        role=user.role,
        volunteer_id=profile.id if profile is not None else None,
    )

    result = await apply_transition(BookingService(db), VolunteerService(db), booking_id, target, actor)

    await store.dispatch(UpdateBooking(id=booking_id, updates={"status": result.booking.status}))
    if result.profile is not None:
        await store.dispatch(UpdateVolunteerProfile(payload=result.profile))

    return BookingActionResponse(booking=result.booking, toast=toast, profile=result.profile)


@router.post(
    "/{booking_id}/accept",
    response_model=BookingActionResponse,
    status_code=status.HTTP_200_OK,
    summary="Accept a booking request",
)
async def accept_booking(
    booking_id: UUID,
    db: DatabaseSession,
    store: AppStore = Depends(require_page("/volunteer-dashboard")),
) -> BookingActionResponse:
    """Volunteer confirms a pending booking; their booking count goes up by one."""
    return await _transition(
        booking_id,
        BookingStatus.CONFIRMED,
        db,
        store,
        Toast(title="Booking Accepted!", description="The client has been notified."),
    )


@router.post(
    "/{booking_id}/decline",
    response_model=BookingActionResponse,
    status_code=status.HTTP_200_OK,
    summary="Decline a booking request",
)
async def decline_booking(
    booking_id: UUID,
    db: DatabaseSession,
    store: AppStore = Depends(require_page("/volunteer-dashboard")),
) -> BookingActionResponse:
    """Volunteer declines a pending booking."""
    return await _transition(
        booking_id,
        BookingStatus.DECLINED,
        db,
        store,
        Toast(
            title="Booking Declined",
            description="The booking request has been declined.",
            variant=ToastVariant.DESTRUCTIVE,
        ),
    )


@router.post(
    "/{booking_id}/cancel",
    response_model=BookingActionResponse,
    status_code=status.HTTP_200_OK,
    summary="Cancel a booking",
)
async def cancel_booking(
    booking_id: UUID,
    db: DatabaseSession,
    store: AppStore = Depends(require_page("/my-bookings")),
) -> BookingActionResponse:
    """Client cancels a pending or confirmed booking."""
    return await _transition(
        booking_id,
        BookingStatus.CANCELLED,
        db,
        store,
        Toast(title="Booking Cancelled", description="Your booking has been cancelled."),
    )


@router.websocket("/live")
async def live_pending_bookings(
    websocket: WebSocket,
    db: DatabaseSession,
    realtime: Realtime,
    token: str = Query(...),
) -> None:
    """
    Push the caller's pending bookings, then a fresh list after every new booking.

    The session token travels as a query parameter since browsers cannot set
    headers on websocket handshakes. If a refresh fails the socket is closed
    with 1011 so the page can reconnect.
    """
    provider_user = decode_session_token(token)
    if provider_user is None:
        await websocket.close(code=POLICY_VIOLATION)
        return

    volunteer_service = VolunteerService(db)
    profile = await volunteer_service.get_volunteer_by_user_id(provider_user.id)
    if profile is None:
        await websocket.close(code=POLICY_VIOLATION)
        return

    booking_service = BookingService(db)

    async def load_pending() -> list[BookingWithVolunteer]:
        return await booking_service.list_for_volunteer(profile.id, BookingStatus.PENDING)

    async def send_pending(items: list[BookingWithVolunteer]) -> None:
        await websocket.send_json(
            BookingListResponse(total=len(items), items=items).model_dump(mode="json")
        )

    async def push_updates() -> None:
        while True:
            await send_pending(await feed.next_refresh())

    async def receive_until_disconnect() -> None:
        while True:
            await websocket.receive_text()

    await websocket.accept()
    feed = PendingBookingsFeed(realtime, profile.id, load_pending)

    async with feed:
        await send_pending(await load_pending())

        tasks = {
            asyncio.create_task(receive_until_disconnect()),
            asyncio.create_task(push_updates()),
        }
        try:
            done, pending = await asyncio.wait(tasks, return_when=asyncio.FIRST_COMPLETED)
        finally:
            for task in tasks:
                task.cancel()
        await asyncio.gather(*pending, return_exceptions=True)

        for task in done:
            error = task.exception()
            if isinstance(error, WebSocketDisconnect):
                logger.info("live_bookings_disconnected", volunteer_id=str(profile.id))
            elif error is not None:
                logger.error("live_bookings_failed", volunteer_id=str(profile.id), error=str(error))
                if (
                    websocket.client_state is WebSocketState.CONNECTED
                    and websocket.application_state is WebSocketState.CONNECTED
                ):
                    await websocket.close(code=INTERNAL_ERROR)
