"""Volunteer profile schemas for request/response validation."""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, Field, field_validator

from oneclick.schemas.common import Toast


class Skill(BaseModel):
    """Name-identified skill tag."""

    model_config = {"frozen": True}

    id: UUID
    name: str


class VolunteerProfile(BaseModel):
    """Volunteer profile as held by pages and the state container."""

    model_config = {"frozen": True}

    id: UUID
    user_id: str
    name: str
    email: str
    phone: str = ""
    bio: str = ""
    hourly_rate: int
    availability: str = ""
    is_verified: bool = False
    rating: float = 0.0
    total_bookings: int = 0
    profile_photo: str | None = None
    skills: tuple[Skill, ...] = ()
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @property
    def skill_names(self) -> list[str]:
        """Names of this volunteer's skills."""
        return [skill.name for skill in self.skills]


def _clean_skill_names(names: list[str]) -> list[str]:
    """Trim names, drop blanks and keep the first occurrence of each."""
    cleaned: list[str] = []
    for name in names:
        name = name.strip()
        if name and name not in cleaned:
            cleaned.append(name)
    return cleaned


class VolunteerProfileUpsert(BaseModel):
    """Full profile submitted by the profile editor."""

    name: str = Field(..., min_length=1, max_length=200)
    email: str = Field(..., min_length=3, max_length=320)
    phone: str = Field(default="", max_length=30)
    bio: str = Field(default="", max_length=2000)
    hourly_rate: int = Field(default=500, gt=0)
    availability: str = Field(default="", max_length=500)
    is_verified: bool = False
    profile_photo_url: str | None = None
    skills: list[str] = Field(default_factory=list)

    @field_validator("skills")
    @classmethod
    def clean_skills(cls, v: list[str]) -> list[str]:
        """Normalize skill names."""
        return _clean_skill_names(v)


class VolunteerProfileUpdate(BaseModel):
    """Partial profile update from the profile page."""

    name: str | None = Field(None, min_length=1, max_length=200)
    phone: str | None = Field(None, max_length=30)
    bio: str | None = Field(None, max_length=2000)
    hourly_rate: int | None = Field(None, gt=0)
    availability: str | None = Field(None, max_length=500)
    skills: list[str] | None = None
    expected_updated_at: datetime | None = Field(
        None,
        description="Concurrency token; the update is rejected if the stored profile changed",
    )

    @field_validator("skills")
    @classmethod
    def clean_skills(cls, v: list[str] | None) -> list[str] | None:
        """Normalize skill names."""
        return None if v is None else _clean_skill_names(v)


class VolunteerListing(BaseModel):
    """Client dashboard listing."""

    items: list[VolunteerProfile]
    skills: list[str]
    total: int
    archived: bool


class HiddenVolunteersResponse(BaseModel):
    """Volunteer ids hidden on this device."""

    hidden: list[str]


class ProfileSaveResponse(BaseModel):
    """Result of saving a volunteer profile."""

    profile: VolunteerProfile
    toast: Toast


class PhotoUploadResponse(BaseModel):
    """Public URL of an uploaded profile photo."""

    url: str
    path: str
    # Replacement session token carrying the new picture, when the avatar changed
    session_token: str | None = None


class ClientProfileUpdate(BaseModel):
    """Client profile form; acknowledged only, not persisted remotely."""

    name: str = Field(..., min_length=1, max_length=200)
    email: str = Field(..., min_length=3, max_length=320)
    phone: str = Field(default="", max_length=30)
