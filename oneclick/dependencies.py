"""FastAPI dependencies.

Every request gets its own application store, synchronised from the
identity session and injected into the page handlers.
"""

from collections.abc import Awaitable, Callable
from typing import Annotated

import redis
from fastapi import Depends, Header
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from oneclick.core.exceptions import NotFoundException, RouteRedirect, UnauthorizedException
from oneclick.core.firebase import FirebaseIdentityProvider, get_identity_provider
from oneclick.core.realtime import RealtimeChannel, get_realtime_channel
from oneclick.core.redis_client import DEFAULT_DEVICE_ID, LocalStorage, get_redis_client
from oneclick.core.security import decode_session_token
from oneclick.core.storage import FileStorage, get_file_storage
from oneclick.database import get_db
from oneclick.routing.guard import resolve_route
from oneclick.schemas.routes import DecisionKind
from oneclick.schemas.users import IdentitySession, User
from oneclick.services.volunteer_service import VolunteerService
from oneclick.store import AppStore

# Security
security = HTTPBearer(auto_error=False)


async def get_identity_session(
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(security)],
) -> IdentitySession:
    """
    Rebuild the identity session from the bearer session token.

    No token means a loaded, signed-out session.

    Raises:
        UnauthorizedException: If a token is present but invalid or expired
    """
    if credentials is None:
        return IdentitySession(is_loaded=True, is_signed_in=False)

    provider_user = decode_session_token(credentials.credentials)
    if provider_user is None:
        raise UnauthorizedException("Could not validate credentials")

    return IdentitySession(is_loaded=True, is_signed_in=True, user=provider_user)


def get_local_storage(
    redis_client: Annotated[redis.Redis, Depends(get_redis_client)],
    x_device_id: Annotated[str | None, Header()] = None,
) -> LocalStorage:
    """Device-local storage for the calling browser."""
    return LocalStorage(redis_client, x_device_id or DEFAULT_DEVICE_ID)


async def get_app_store(
    session: Annotated[IdentitySession, Depends(get_identity_session)],
    db: Annotated[AsyncSession, Depends(get_db)],
    local_storage: Annotated[LocalStorage, Depends(get_local_storage)],
) -> AppStore:
    """Build a store for this request and sync it from the identity session."""
    store = AppStore(local_storage, VolunteerService(db).get_volunteer_by_user_id)
    await store.sync_identity(session)
    return store


def require_page(path: str) -> Callable[[AppStore], Awaitable[AppStore]]:
    """
    Dependency factory running the route guard for ``path``.

    Raises:
        RouteRedirect: If the guard redirects
        NotFoundException: If ``path`` is not in the route table
    """

    async def guard(store: Annotated[AppStore, Depends(get_app_store)]) -> AppStore:
        decision = resolve_route(path, store.guard_state())
        if decision.kind is DecisionKind.REDIRECT and decision.target:
            raise RouteRedirect(decision.target)
        if decision.kind is DecisionKind.NOT_FOUND:
            raise NotFoundException("Page not found")
        return store

    return guard


def current_user(store: AppStore) -> User:
    """
    Signed-in user of a store.

    Raises:
        UnauthorizedException: If nobody is signed in
    """
    if store.state.user is None:
        raise UnauthorizedException("You must be logged in")
    return store.state.user


# Type aliases for dependency injection
DatabaseSession = Annotated[AsyncSession, Depends(get_db)]
CurrentSession = Annotated[IdentitySession, Depends(get_identity_session)]
Store = Annotated[AppStore, Depends(get_app_store)]
DeviceStorage = Annotated[LocalStorage, Depends(get_local_storage)]
Realtime = Annotated[RealtimeChannel, Depends(get_realtime_channel)]
Files = Annotated[FileStorage, Depends(get_file_storage)]
Identity = Annotated[FirebaseIdentityProvider, Depends(get_identity_provider)]
