"""User, role and identity session schemas."""

from enum import Enum

from pydantic import BaseModel, Field

from oneclick.schemas.common import Toast


class Role(str, Enum):
    """Marketplace role, persisted on the device only."""

    VOLUNTEER = "volunteer"
    CLIENT = "client"


class ProviderUser(BaseModel):
    """User object as reported by the identity provider."""

    id: str
    email: str = ""
    name: str | None = None
    image_url: str | None = None


class IdentitySession(BaseModel):
    """Reactive session value reported by the identity provider."""

    is_loaded: bool = True
    is_signed_in: bool = False
    user: ProviderUser | None = None


class User(BaseModel):
    """Application identity derived from the provider user."""

    model_config = {"frozen": True}

    id: str
    email: str
    name: str
    role: Role | None = None
    image_url: str | None = None


class SessionCreate(BaseModel):
    """Provider ID token exchanged for a session token."""

    id_token: str = Field(..., min_length=1)


class SessionResponse(BaseModel):
    """Session token plus the derived application user."""

    session_token: str
    token_type: str = "bearer"
    user: User


class RoleSelect(BaseModel):
    """Role chosen on the role selection page."""

    role: Role


class RoleSelectResponse(BaseModel):
    """Result of choosing a role."""

    user: User
    next_path: str
    toast: Toast
