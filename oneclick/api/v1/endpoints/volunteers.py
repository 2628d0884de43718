"""Volunteer listing, detail and profile editing endpoints."""

from uuid import UUID

import structlog
from fastapi import APIRouter, Depends, File, Query, UploadFile, status

from oneclick.config import settings
from oneclick.core.exceptions import ForbiddenException, NotFoundException, ValidationException
from oneclick.core.security import create_session_token
from oneclick.core.storage import build_photo_path
from oneclick.dependencies import (
    CurrentSession,
    DatabaseSession,
    DeviceStorage,
    Files,
    Identity,
    current_user,
    require_page,
)
from oneclick.schemas.common import Toast
from oneclick.schemas.users import Role
from oneclick.schemas.volunteers import (
    ClientProfileUpdate,
    HiddenVolunteersResponse,
    PhotoUploadResponse,
    ProfileSaveResponse,
    VolunteerListing,
    VolunteerProfile,
    VolunteerProfileUpdate,
    VolunteerProfileUpsert,
)
from oneclick.services.discovery import HiddenVolunteers, distinct_skills, filter_volunteers
from oneclick.services.mappers import volunteer_values_from_update
from oneclick.services.volunteer_service import VolunteerService
from oneclick.store import AppStore, UpdateVolunteerProfile

logger = structlog.get_logger(__name__)

router = APIRouter()


def _require_volunteer_role(store: AppStore) -> None:
    user = current_user(store)
    if user.role is not Role.VOLUNTEER:
        raise ForbiddenException("Only volunteers have a volunteer profile")


@router.get(
    "",
    response_model=VolunteerListing,
    status_code=status.HTTP_200_OK,
    summary="Browse volunteers",
)
async def list_volunteers(
    db: DatabaseSession,
    local_storage: DeviceStorage,
    store: AppStore = Depends(require_page("/client-dashboard")),
    search: str = Query("", max_length=200),
    skill: str = Query("", max_length=200),
    archived: bool = Query(False),
) -> VolunteerListing:
    """
    Volunteer listing for the client dashboard.

    Volunteers hidden on this device are left out, or shown alone when
    ``archived`` is set. Skill chips come from every loaded volunteer.
    """
    volunteers = await VolunteerService(db).list_volunteers()
    hidden = HiddenVolunteers(local_storage).ids()
    items = filter_volunteers(volunteers, set(hidden), archived=archived, search=search, skill=skill)

    return VolunteerListing(
        items=items,
        skills=distinct_skills(volunteers),
        total=len(items),
        archived=archived,
    )


@router.get(
    "/hidden",
    response_model=HiddenVolunteersResponse,
    status_code=status.HTTP_200_OK,
    summary="Volunteers hidden on this device",
)
async def list_hidden(
    local_storage: DeviceStorage,
    store: AppStore = Depends(require_page("/client-dashboard")),
) -> HiddenVolunteersResponse:
    """Hidden volunteer ids."""
    return HiddenVolunteersResponse(hidden=HiddenVolunteers(local_storage).ids())


@router.put(
    "/hidden/{volunteer_id}",
    response_model=HiddenVolunteersResponse,
    status_code=status.HTTP_200_OK,
    summary="Hide a volunteer",
)
async def hide_volunteer(
    volunteer_id: UUID,
    local_storage: DeviceStorage,
    store: AppStore = Depends(require_page("/client-dashboard")),
) -> HiddenVolunteersResponse:
    """Hide a volunteer from this device's default listing."""
    hidden = HiddenVolunteers(local_storage).hide(str(volunteer_id))
    logger.info("volunteer_hidden", volunteer_id=str(volunteer_id))
    return HiddenVolunteersResponse(hidden=hidden)


@router.delete(
    "/hidden/{volunteer_id}",
    response_model=HiddenVolunteersResponse,
    status_code=status.HTTP_200_OK,
    summary="Unhide a volunteer",
)
async def unhide_volunteer(
    volunteer_id: UUID,
    local_storage: DeviceStorage,
    store: AppStore = Depends(require_page("/client-dashboard")),
) -> HiddenVolunteersResponse:
    """Show a hidden volunteer in the default listing again."""
    hidden = HiddenVolunteers(local_storage).unhide(str(volunteer_id))
    logger.info("volunteer_unhidden", volunteer_id=str(volunteer_id))
    return HiddenVolunteersResponse(hidden=hidden)


@router.get(
    "/me",
    response_model=VolunteerProfile,
    status_code=status.HTTP_200_OK,
    summary="Own volunteer profile",
)
async def get_own_profile(
    store: AppStore = Depends(require_page("/volunteer-profile")),
) -> VolunteerProfile:
    """The profile cached in the state container for the signed-in volunteer."""
    _require_volunteer_role(store)
    if store.state.current_user_profile is None:
        raise NotFoundException("You have not created a volunteer profile yet", back_to="/volunteer-profile")
    return store.state.current_user_profile


@router.put(
    "/me",
    response_model=ProfileSaveResponse,
    status_code=status.HTTP_200_OK,
    summary="Create or replace own volunteer profile",
)
async def save_own_profile(
    data: VolunteerProfileUpsert,
    db: DatabaseSession,
    store: AppStore = Depends(require_page("/volunteer-profile")),
) -> ProfileSaveResponse:
    """
    Save the profile editor form.

    Upserts the profile on the owning user id, replaces the skill set, then
    re-fetches the profile and stores it in the state container.
    """
    _require_volunteer_role(store)
    user = current_user(store)
    service = VolunteerService(db)

    is_new = store.state.current_user_profile is None
    if data.profile_photo_url is None and is_new and user.image_url:
        data = data.model_copy(update={"profile_photo_url": user.image_url})

    saved = await service.upsert_volunteer(user.id, data)
    profile = await service.replace_skills(saved.id, data.skills)
    await store.dispatch(UpdateVolunteerProfile(payload=profile))

    return ProfileSaveResponse(
        profile=profile,
        toast=Toast(title="Profile Posted Successfully!", description="Your profile is now live."),
    )


@router.patch(
    "/me",
    response_model=ProfileSaveResponse,
    status_code=status.HTTP_200_OK,
    summary="Update own volunteer profile",
)
async def update_own_profile(
    data: VolunteerProfileUpdate,
    db: DatabaseSession,
    store: AppStore = Depends(require_page("/profile")),
) -> ProfileSaveResponse:
    """
    Save the profile page form.

    Writes the changed fields by id, replaces skills when given, and
    re-fetches. ``expected_updated_at`` turns the write into a conditional
    one that fails with 409 if someone else saved in between.
    """
    _require_volunteer_role(store)
    current = store.state.current_user_profile
    if current is None:
        raise NotFoundException("You have not created a volunteer profile yet", back_to="/volunteer-profile")

    service = VolunteerService(db)
    profile = await service.update_volunteer(
        current.id,
        volunteer_values_from_update(data),
        expected_updated_at=data.expected_updated_at,
    )
    if data.skills is not None:
        profile = await service.replace_skills(current.id, data.skills)

    await store.dispatch(UpdateVolunteerProfile(payload=profile))

    return ProfileSaveResponse(
        profile=profile,
        toast=Toast(
            title="Profile updated successfully!",
            description="Your volunteer profile has been saved.",
        ),
    )


@router.put(
    "/client-profile",
    response_model=Toast,
    status_code=status.HTTP_200_OK,
    summary="Acknowledge client profile edits",
)
async def save_client_profile(
    data: ClientProfileUpdate,
    store: AppStore = Depends(require_page("/profile")),
) -> Toast:
    """Client profile details live with the identity provider; nothing is stored here."""
    current_user(store)
    return Toast(
        title="Profile updated successfully!",
        description="Your profile information has been saved.",
    )


@router.post(
    "/me/photo",
    response_model=PhotoUploadResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Upload a profile photo",
)
async def upload_photo(
    files: Files,
    identity: Identity,
    session: CurrentSession,
    photo: UploadFile = File(...),
    store: AppStore = Depends(require_page("/volunteer-profile")),
) -> PhotoUploadResponse:
    """
    Store a profile photo under the user's folder and return its public URL.

    The provider avatar is pointed at the new photo as well, and a session
    token carrying the new picture is returned so the caller's user image
    is current without signing in again. Failing to update the avatar is
    logged and does not fail the upload; no new token is issued then.
    """
    user = current_user(store)
    # At most one byte past the limit is buffered
    data = await photo.read(settings.max_photo_bytes + 1)
    if len(data) > settings.max_photo_bytes:
        limit_mb = settings.max_photo_bytes // (1024 * 1024)
        raise ValidationException(f"File too large. Please select a file smaller than {limit_mb}MB.")
    if not data:
        raise ValidationException("Please select a photo to upload")

    path = build_photo_path(user.id, photo.filename or "photo")
    await files.upload(path, data, photo.content_type)
    url = files.public_url(path)

    session_token = None
    try:
        await identity.update_avatar(user.id, url)
    except Exception as e:
        logger.warning("provider_avatar_update_failed", user_id=user.id, error=str(e))
    else:
        if session.user is not None:
            session_token = create_session_token(session.user.model_copy(update={"image_url": url}))

    return PhotoUploadResponse(url=url, path=path, session_token=session_token)


@router.get(
    "/{volunteer_id}",
    response_model=VolunteerProfile,
    status_code=status.HTTP_200_OK,
    summary="Volunteer detail",
)
async def get_volunteer(
    volunteer_id: UUID,
    db: DatabaseSession,
    store: AppStore = Depends(require_page("/volunteer/{id}")),
) -> VolunteerProfile:
    """Public volunteer profile; a missing one yields the not-found view."""
    return await VolunteerService(db).require_volunteer(volunteer_id, back_to="/client-dashboard")
