"""API v1 router configuration."""

from fastapi import APIRouter

from oneclick.api.v1.endpoints import (
    auth,
    bookings,
    dashboard,
    feedback,
    health,
    session,
    volunteers,
)

api_router = APIRouter()

# Include routers
api_router.include_router(health.router, tags=["Health"])
api_router.include_router(auth.router, prefix="/auth", tags=["Authentication"])
api_router.include_router(session.router, tags=["Session"])
api_router.include_router(volunteers.router, prefix="/volunteers", tags=["Volunteers"])
api_router.include_router(bookings.router, prefix="/bookings", tags=["Bookings"])
api_router.include_router(dashboard.router, prefix="/dashboard", tags=["Dashboard"])
api_router.include_router(feedback.router, prefix="/feedback", tags=["Feedback"])
