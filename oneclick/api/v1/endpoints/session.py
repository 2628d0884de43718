"""Session snapshot, role selection and route resolution."""

from fastapi import APIRouter, Depends, Query, status

from oneclick.dependencies import Store, current_user, require_page
from oneclick.routing.guard import ROLE_SELECTION_PATH, resolve_route
from oneclick.schemas.common import Toast
from oneclick.schemas.routes import RouteDecision
from oneclick.schemas.users import Role, RoleSelect, RoleSelectResponse
from oneclick.store import AppState, AppStore, SetRole

router = APIRouter()

# Where each role goes straight after choosing it
NEXT_AFTER_ROLE = {
    Role.VOLUNTEER: "/volunteer-profile",
    Role.CLIENT: "/client-dashboard",
}


@router.get(
    "/session",
    response_model=AppState,
    status_code=status.HTTP_200_OK,
    summary="Current application state",
)
async def get_session_state(store: Store) -> AppState:
    """Snapshot of the state container for the calling user."""
    return store.state


@router.get(
    "/routes/resolve",
    response_model=RouteDecision,
    status_code=status.HTTP_200_OK,
    summary="Resolve a page path through the guard",
)
async def resolve(store: Store, path: str = Query("/", min_length=1)) -> RouteDecision:
    """Render, redirect, loading or not-found decision for ``path``."""
    return resolve_route(path, store.guard_state())


@router.post(
    "/role",
    response_model=RoleSelectResponse,
    status_code=status.HTTP_200_OK,
    summary="Choose a role",
)
async def select_role(
    data: RoleSelect,
    store: AppStore = Depends(require_page(ROLE_SELECTION_PATH)),
) -> RoleSelectResponse:
    """
    Set the signed-in user's role.

    The role is stored on this device only and drives every later route
    decision for this user.
    """
    await store.dispatch(SetRole(payload=data.role))
    label = "Volunteer" if data.role is Role.VOLUNTEER else "Client"

    return RoleSelectResponse(
        user=current_user(store),
        next_path=NEXT_AFTER_ROLE[data.role],
        toast=Toast(
            title=f"Welcome {label}!",
            description=f"You've joined as a {data.role.value}. Let's get started!",
        ),
    )
