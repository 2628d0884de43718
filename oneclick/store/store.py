"""Application store: state, dispatch, and the effects that sync it.

A store is an explicit object. Each request (or test) builds its own and
passes it where it is needed; there is no module-level instance.
"""

from collections.abc import Awaitable, Callable

import structlog

from oneclick.core.exceptions import UnauthorizedException
from oneclick.core.redis_client import LocalStorage, role_key
from oneclick.schemas.routes import GuardState
from oneclick.schemas.users import IdentitySession, ProviderUser, Role, User
from oneclick.schemas.volunteers import VolunteerProfile
from oneclick.store.actions import AppAction, SetRole, SetUser, UpdateVolunteerProfile
from oneclick.store.reducer import reduce
from oneclick.store.state import INITIAL_STATE, AppState

logger = structlog.get_logger(__name__)

ProfileLoader = Callable[[str], Awaitable[VolunteerProfile | None]]
Listener = Callable[[AppState], None]


def _identity_key(state: AppState) -> tuple[str | None, Role | None]:
    """The values the persistence and profile effects observe."""
    if state.user is None:
        return None, None
    return state.user.id, state.user.role


class AppStore:
    """Reducer-based store for one signed-in client."""

    def __init__(
        self,
        local_storage: LocalStorage,
        profile_loader: ProfileLoader | None = None,
        state: AppState = INITIAL_STATE,
    ):
        """
        Initialize the store.

        Args:
            local_storage: Device-local storage holding the role preference
            profile_loader: Fetches a volunteer profile by owning user id
            state: Initial state
        """
        self.local_storage = local_storage
        self.profile_loader = profile_loader
        self.state = state
        self.session_loaded = False
        self._listeners: list[Listener] = []

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Call ``listener`` after every state change; returns an unsubscribe function."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    async def dispatch(self, action: AppAction) -> AppState:
        """
        Apply an action, notify listeners, then run effects.

        Raises:
            UnauthorizedException: If a role is set with nobody signed in
        """
        if isinstance(action, SetRole) and self.state.user is None:
            raise UnauthorizedException("Sign in before choosing a role")

        previous = self.state
        self.state = reduce(previous, action)

        if self.state is not previous:
            for listener in list(self._listeners):
                listener(self.state)

        if _identity_key(previous) != _identity_key(self.state):
            self._persist_role()
            await self._load_volunteer_profile()

        return self.state

    def _persist_role(self) -> None:
        user = self.state.user
        if user is not None and user.role is not None:
            self.local_storage.set_item(role_key(user.id), user.role.value)

    async def _load_volunteer_profile(self) -> None:
        user = self.state.user
        if user is None or user.role is not Role.VOLUNTEER or self.profile_loader is None:
            return

        try:
            profile = await self.profile_loader(user.id)
        except Exception as e:
            logger.error("volunteer_profile_load_failed", user_id=user.id, error=str(e))
            return

        # The user may have changed while the profile was loading
        if profile is None or self.state.user is None or self.state.user.id != user.id:
            return
        await self.dispatch(UpdateVolunteerProfile(payload=profile))

    def stored_role(self, user_id: str) -> Role | None:
        """Role persisted on this device for ``user_id``."""
        value = self.local_storage.get_item(role_key(user_id))
        try:
            return Role(value) if value else None
        except ValueError:
            logger.warning("unknown_stored_role", user_id=user_id, value=value)
            return None

    def user_from_provider(self, provider_user: ProviderUser) -> User:
        """Derive the application user, reading the role from local storage."""
        return User(
            id=provider_user.id,
            email=provider_user.email or "",
            name=provider_user.name or "User",
            role=self.stored_role(provider_user.id),
            image_url=provider_user.image_url,
        )

    async def sync_identity(self, session: IdentitySession) -> AppState:
        """Mirror the identity provider's session into the store."""
        self.session_loaded = session.is_loaded
        if session.is_signed_in and session.user is not None:
            return await self.dispatch(SetUser(payload=self.user_from_provider(session.user)))
        return await self.dispatch(SetUser(payload=None))

    def guard_state(self) -> GuardState:
        """Conditions the route guard evaluates."""
        return GuardState(
            session_loaded=self.session_loaded,
            signed_in=self.state.is_authenticated,
            role=self.state.user.role if self.state.user else None,
        )
