from fastapi import APIRouter

from app.routers.events import events_router
from app.routers.health import health_router
from app.routers.jobs import jobs_router
from app.routers.notifications import notifications_router
from app.routers.settings import settings_router

main_router = APIRouter()
main_router.include_router(health_router, prefix="/health", tags=["health"])
main_router.include_router(settings_router, prefix="/settings", tags=["settings"])
main_router.include_router(
    notifications_router, prefix="/notifications", tags=["notifications"]
)
main_router.include_router(events_router, prefix="/events", tags=["events"])
main_router.include_router(jobs_router, prefix="/jobs", tags=["jobs"])
