"""Volunteer dashboard."""

from fastapi import APIRouter, Depends, status

from oneclick.core.exceptions import ForbiddenException
from oneclick.dependencies import DatabaseSession, current_user, require_page
from oneclick.schemas.bookings import BookingStatus
from oneclick.schemas.dashboard import DashboardStat, VolunteerDashboardResponse
from oneclick.schemas.users import Role
from oneclick.services.booking_service import BookingService
from oneclick.store import AppStore

router = APIRouter()


@router.get(
    "/volunteer",
    response_model=VolunteerDashboardResponse,
    status_code=status.HTTP_200_OK,
    summary="Volunteer dashboard",
)
async def volunteer_dashboard(
    db: DatabaseSession,
    store: AppStore = Depends(require_page("/volunteer-dashboard")),
) -> VolunteerDashboardResponse:
    """
    Profile, pending requests, earnings and stat tiles for a volunteer.

    Without a saved profile the response only points at the profile editor.
    """
    user = current_user(store)
    if user.role is not Role.VOLUNTEER:
        raise ForbiddenException("Only volunteers have a dashboard")

    profile = store.state.current_user_profile
    if profile is None:
        return VolunteerDashboardResponse(profile=None, next_path="/volunteer-profile")

    service = BookingService(db)
    pending = await service.list_for_volunteer(profile.id, BookingStatus.PENDING)
    earnings = await service.total_earnings(profile.id)

    return VolunteerDashboardResponse(
        profile=profile,
        pending=pending,
        total_earnings=earnings,
        stats=[
            DashboardStat(title="Total Earnings", value=f"₹{earnings:,}"),
            DashboardStat(title="Accepted Bookings", value=str(profile.total_bookings)),
            DashboardStat(title="Average Rating", value=f"{profile.rating:.1f}"),
        ],
    )
