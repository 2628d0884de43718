"""Route guard schemas."""

from enum import Enum

from pydantic import BaseModel

from oneclick.schemas.users import Role


class GuardState(BaseModel):
    """The three conditions the guard evaluates, plus the resolved role."""

    session_loaded: bool
    signed_in: bool
    role: Role | None = None

    @property
    def role_resolved(self) -> bool:
        """Whether a role is known for the signed-in user."""
        return self.role is not None


class DecisionKind(str, Enum):
    """Outcome of resolving a path."""

    LOADING = "loading"
    RENDER = "render"
    REDIRECT = "redirect"
    NOT_FOUND = "not_found"


class RouteDecision(BaseModel):
    """What to show for a requested path."""

    kind: DecisionKind
    path: str
    target: str | None = None
    page: str | None = None
