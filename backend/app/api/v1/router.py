"""
API v1 router - aggregates all endpoint routers.
"""

from fastapi import APIRouter

from app.api.v1.endpoints import (
    activities,
    audit,
    auth,
    health,
    jobs,
    messages,
    notifications,
    platform,
    providers,
    quotes,
    requests,
    reviews,
    services,
    vehicles,
)

api_router = APIRouter()

# Include all endpoint routers
api_router.include_router(
    auth.router,
    prefix="/auth",
    tags=["Authentication"],
)

api_router.include_router(
    vehicles.router,
    prefix="/vehicles",
    tags=["Vehicles"],
)

api_router.include_router(
    vehicles.maintenance_router,
    prefix="/maintenance",
    tags=["Vehicles"],
)

api_router.include_router(
    requests.router,
    prefix="/requests",
    tags=["Service Requests"],
)

api_router.include_router(
    quotes.router,
    prefix="/quotes",
    tags=["Quotes"],
)

api_router.include_router(
    jobs.router,
    prefix="/jobs",
    tags=["Jobs"],
)

api_router.include_router(
    messages.router,
    prefix="/messages",
    tags=["Messages"],
)

api_router.include_router(
    notifications.router,
    prefix="/notifications",
    tags=["Notifications"],
)

api_router.include_router(
    reviews.router,
    prefix="/reviews",
    tags=["Reviews"],
)

api_router.include_router(
    providers.router,
    prefix="/providers",
    tags=["Providers"],
)

api_router.include_router(
    services.router,
    prefix="/services",
    tags=["Services"],
)

api_router.include_router(
    activities.router,
    prefix="/activities",
    tags=["Activities"],
)

api_router.include_router(
    platform.router,
    prefix="/platform",
    tags=["Platform"],
)

api_router.include_router(
    audit.router,
    prefix="/audit",
    tags=["Audit"],
)

api_router.include_router(
    health.router,
    prefix="/health",
    tags=["Health"],
)
