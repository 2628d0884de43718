"""Tests for the application store and its reducer."""

from datetime import date, time
from unittest.mock import AsyncMock
from uuid import uuid4

import pytest

from oneclick.core.exceptions import UnauthorizedException
from oneclick.core.redis_client import LocalStorage, role_key
from oneclick.schemas.bookings import Booking, BookingStatus
from oneclick.schemas.users import IdentitySession, ProviderUser, Role, User
from oneclick.schemas.volunteers import VolunteerProfile
from oneclick.store import (
    INITIAL_STATE,
    AddBooking,
    AppStore,
    SetRole,
    SetUser,
    UpdateBooking,
    UpdateVolunteerProfile,
    reduce,
)


def make_user(user_id: str = "u1", role: Role | None = None) -> User:
    return User(id=user_id, email=f"{user_id}@example.com", name="Test User", role=role)


def make_profile(user_id: str = "u1") -> VolunteerProfile:
    return VolunteerProfile(
        id=uuid4(),
        user_id=user_id,
        name="Vera",
        email="vera@example.com",
        hourly_rate=500,
        rating=5.0,
    )


def make_booking(**overrides) -> Booking:
    values = {
        "id": uuid4(),
        "volunteer_id": uuid4(),
        "client_id": "c1",
        "date": date(2026, 11, 20),
        "time": time(10, 0),
        "duration": 1,
        "status": BookingStatus.PENDING,
        "total_amount": 500,
    }
    values.update(overrides)
    return Booking(**values)


def test_set_user_marks_authenticated():
    state = reduce(INITIAL_STATE, SetUser(payload=make_user()))
    assert state.is_authenticated is True
    assert state.user.id == "u1"


def test_sign_out_clears_cached_profile_and_bookings():
    state = reduce(INITIAL_STATE, SetUser(payload=make_user()))
    state = reduce(state, UpdateVolunteerProfile(payload=make_profile()))
    state = reduce(state, AddBooking(payload=make_booking()))

    state = reduce(state, SetUser(payload=None))

    assert state.user is None
    assert state.is_authenticated is False
    assert state.current_user_profile is None
    assert state.bookings == ()


def test_switching_user_clears_previous_user_data():
    state = reduce(INITIAL_STATE, SetUser(payload=make_user("u1")))
    state = reduce(state, UpdateVolunteerProfile(payload=make_profile("u1")))

    state = reduce(state, SetUser(payload=make_user("u2")))

    assert state.user.id == "u2"
    assert state.current_user_profile is None


def test_same_user_refresh_keeps_cache():
    state = reduce(INITIAL_STATE, SetUser(payload=make_user("u1")))
    state = reduce(state, UpdateVolunteerProfile(payload=make_profile("u1")))

    state = reduce(state, SetUser(payload=make_user("u1", Role.VOLUNTEER)))

    assert state.current_user_profile is not None
    assert state.user.role is Role.VOLUNTEER


def test_set_role_without_user_is_noop():
    assert reduce(INITIAL_STATE, SetRole(payload=Role.CLIENT)) is INITIAL_STATE


def test_add_booking_appends_without_dedup():
    booking = make_booking()
    state = reduce(INITIAL_STATE, AddBooking(payload=booking))
    state = reduce(state, AddBooking(payload=booking))
    assert len(state.bookings) == 2


def test_update_booking_merges_only_matching_id():
    first, second = make_booking(), make_booking()
    state = reduce(INITIAL_STATE, AddBooking(payload=first))
    state = reduce(state, AddBooking(payload=second))

    state = reduce(state, UpdateBooking(id=first.id, updates={"status": BookingStatus.CONFIRMED}))

    assert state.bookings[0].status is BookingStatus.CONFIRMED
    assert state.bookings[1].status is BookingStatus.PENDING


def test_update_unknown_booking_changes_nothing():
    booking = make_booking()
    state = reduce(INITIAL_STATE, AddBooking(payload=booking))
    state = reduce(state, UpdateBooking(id=uuid4(), updates={"status": BookingStatus.CANCELLED}))
    assert state.bookings == (booking,)


@pytest.mark.asyncio
async def test_set_role_persists_to_local_storage(local_storage: LocalStorage):
    store = AppStore(local_storage)
    await store.dispatch(SetUser(payload=make_user("u1")))

    await store.dispatch(SetRole(payload=Role.CLIENT))

    assert local_storage.get_item(role_key("u1")) == "client"
    assert store.state.user.role is Role.CLIENT


@pytest.mark.asyncio
async def test_set_role_without_user_raises(local_storage: LocalStorage):
    store = AppStore(local_storage)
    with pytest.raises(UnauthorizedException):
        await store.dispatch(SetRole(payload=Role.CLIENT))


@pytest.mark.asyncio
async def test_volunteer_role_loads_profile(local_storage: LocalStorage):
    profile = make_profile("u1")
    loader = AsyncMock(return_value=profile)
    store = AppStore(local_storage, loader)
    await store.dispatch(SetUser(payload=make_user("u1")))

    await store.dispatch(SetRole(payload=Role.VOLUNTEER))

    loader.assert_awaited_once_with("u1")
    assert store.state.current_user_profile == profile


@pytest.mark.asyncio
async def test_client_role_does_not_load_profile(local_storage: LocalStorage):
    loader = AsyncMock()
    store = AppStore(local_storage, loader)
    await store.dispatch(SetUser(payload=make_user("u1")))
    await store.dispatch(SetRole(payload=Role.CLIENT))
    loader.assert_not_awaited()


@pytest.mark.asyncio
async def test_missing_profile_leaves_cache_empty(local_storage: LocalStorage):
    store = AppStore(local_storage, AsyncMock(return_value=None))
    await store.dispatch(SetUser(payload=make_user("u1", Role.VOLUNTEER)))
    assert store.state.current_user_profile is None


@pytest.mark.asyncio
async def test_profile_load_failure_is_logged_not_raised(local_storage: LocalStorage):
    store = AppStore(local_storage, AsyncMock(side_effect=RuntimeError("store down")))
    state = await store.dispatch(SetUser(payload=make_user("u1", Role.VOLUNTEER)))
    assert state.current_user_profile is None
    assert state.is_authenticated is True


@pytest.mark.asyncio
async def test_listeners_notified_and_unsubscribed(local_storage: LocalStorage):
    store = AppStore(local_storage)
    seen = []
    unsubscribe = store.subscribe(seen.append)

    await store.dispatch(SetUser(payload=make_user()))
    unsubscribe()
    await store.dispatch(SetUser(payload=None))

    assert len(seen) == 1
    assert seen[0].user.id == "u1"


@pytest.mark.asyncio
async def test_sync_identity_reads_stored_role(local_storage: LocalStorage):
    local_storage.set_item(role_key("u1"), "volunteer")
    store = AppStore(local_storage)

    await store.sync_identity(
        IdentitySession(is_loaded=True, is_signed_in=True, user=ProviderUser(id="u1"))
    )

    assert store.state.user.role is Role.VOLUNTEER
    assert store.state.user.name == "User"
    guard = store.guard_state()
    assert guard.session_loaded and guard.signed_in and guard.role_resolved


@pytest.mark.asyncio
async def test_unknown_stored_role_is_ignored(local_storage: LocalStorage):
    local_storage.set_item(role_key("u1"), "admin")
    store = AppStore(local_storage)
    await store.sync_identity(
        IdentitySession(is_loaded=True, is_signed_in=True, user=ProviderUser(id="u1"))
    )
    assert store.state.user.role is None


@pytest.mark.asyncio
async def test_sync_identity_signed_out(local_storage: LocalStorage):
    store = AppStore(local_storage)
    state = await store.sync_identity(IdentitySession(is_loaded=True, is_signed_in=False))
    assert state.is_authenticated is False
    assert store.guard_state().signed_in is False
