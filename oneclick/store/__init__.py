"""Application state container."""

from oneclick.store.actions import (
    AddBooking,
    AppAction,
    SetRole,
    SetUser,
    UpdateBooking,
    UpdateVolunteerProfile,
)
from oneclick.store.reducer import reduce
from oneclick.store.state import INITIAL_STATE, AppState
from oneclick.store.store import AppStore

__all__ = [
    "INITIAL_STATE",
    "AddBooking",
    "AppAction",
    "AppState",
    "AppStore",
    "SetRole",
    "SetUser",
    "UpdateBooking",
    "UpdateVolunteerProfile",
    "reduce",
]
