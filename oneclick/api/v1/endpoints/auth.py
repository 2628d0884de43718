"""Sign-in and sign-out endpoints."""

from fastapi import APIRouter, status

from oneclick.core.exceptions import UnauthorizedException
from oneclick.core.security import create_session_token
from oneclick.dependencies import DeviceStorage, Identity, current_user
from oneclick.schemas.users import IdentitySession, SessionCreate, SessionResponse
from oneclick.store import AppState, AppStore

router = APIRouter()


@router.post(
    "/session",
    response_model=SessionResponse,
    status_code=status.HTTP_200_OK,
    summary="Exchange a provider ID token for a session token",
)
async def create_session(
    request: SessionCreate,
    identity: Identity,
    local_storage: DeviceStorage,
) -> SessionResponse:
    """
    Verify the identity provider's ID token and open a session.

    The returned user already carries the role stored on this device, so
    the caller can route straight to the dashboard or to role selection.
    """
    try:
        provider_user = await identity.verify(request.id_token)
    except ValueError as e:
        raise UnauthorizedException(f"Authentication failed: {e!s}")

    store = AppStore(local_storage)
    await store.sync_identity(IdentitySession(is_loaded=True, is_signed_in=True, user=provider_user))

    return SessionResponse(
        session_token=create_session_token(provider_user),
        user=current_user(store),
    )


@router.post(
    "/sign-out",
    response_model=AppState,
    status_code=status.HTTP_200_OK,
    summary="Sign out",
)
async def sign_out(local_storage: DeviceStorage) -> AppState:
    """
    Clear the signed-in state.

    The session token is discarded by the caller; the role preference stays
    on the device for the next sign-in.
    """
    store = AppStore(local_storage)
    return await store.sync_identity(IdentitySession(is_loaded=True, is_signed_in=False))
