"""Pure reducer for the application store."""

from oneclick.store.actions import (
    AddBooking,
    AppAction,
    SetRole,
    SetUser,
    UpdateBooking,
    UpdateVolunteerProfile,
)
from oneclick.store.state import AppState


def reduce(state: AppState, action: AppAction) -> AppState:
    """Return the state that results from applying ``action`` to ``state``."""
    if isinstance(action, SetUser):
        user = action.payload
        same_user = user is not None and state.user is not None and state.user.id == user.id
        if same_user:
            return state.model_copy(update={"user": user, "is_authenticated": True})
        # Sign-out or a different account: drop everything cached for the old one
        return AppState(user=user, is_authenticated=user is not None)

    if isinstance(action, SetRole):
        if state.user is None:
            return state
        return state.model_copy(
            update={"user": state.user.model_copy(update={"role": action.payload})}
        )

    if isinstance(action, UpdateVolunteerProfile):
        return state.model_copy(update={"current_user_profile": action.payload})

    if isinstance(action, AddBooking):
        return state.model_copy(update={"bookings": (*state.bookings, action.payload)})

    if isinstance(action, UpdateBooking):
        return state.model_copy(
            update={
                "bookings": tuple(
                    booking.model_copy(update=action.updates) if booking.id == action.id else booking
                    for booking in state.bookings
                )
            }
        )

    return state
