"""Live pending-bookings feed for the volunteer dashboard."""

import asyncio
from collections.abc import Awaitable, Callable
from uuid import UUID

import structlog

from oneclick.core.realtime import ChangeEvent, RealtimeChannel, Subscription
from oneclick.schemas.bookings import Booking

logger = structlog.get_logger(__name__)

PendingLoader = Callable[[], Awaitable[list[Booking]]]


class PendingBookingsFeed:
    """
    Re-fetch a volunteer's pending bookings whenever one is inserted for them.

    Inserts for other volunteers are ignored. Each matching insert yields a
    full re-fetch, never an incremental merge.
    """

    def __init__(self, realtime: RealtimeChannel, volunteer_id: UUID, load_pending: PendingLoader):
        self.realtime = realtime
        self.volunteer_id = volunteer_id
        self.load_pending = load_pending
        self._inserts: asyncio.Queue[dict] = asyncio.Queue()
        self._subscription: Subscription | None = None

    def start(self) -> None:
        """Subscribe to booking inserts."""
        if self._subscription is None:
            self._subscription = self.realtime.subscribe("bookings", "INSERT", self._on_insert)
            logger.info("live_bookings_started", volunteer_id=str(self.volunteer_id))

    def stop(self) -> None:
        """Unsubscribe. Safe to call more than once."""
        if self._subscription is not None:
            self._subscription.unsubscribe()
            self._subscription = None
            logger.info("live_bookings_stopped", volunteer_id=str(self.volunteer_id))

    async def _on_insert(self, event: ChangeEvent) -> None:
        if str(event.new.get("volunteer_id")) == str(self.volunteer_id):
            await self._inserts.put(event.new)

    async def next_refresh(self) -> list[Booking]:
        """Wait for the next matching insert and return the re-fetched pending list."""
        await self._inserts.get()
        return await self.load_pending()

    async def __aenter__(self) -> "PendingBookingsFeed":
        self.start()
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        self.stop()
