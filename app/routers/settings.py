from typing import Optional

from fastapi import APIRouter, Depends, Request, status

from app.routers.dependencies import get_optional_job_scheduler
from app.scheduler.job_scheduler import JobScheduler
from app.schemas.settings_schemas import SettingsResponse, UpdateTimezoneRequest
from app.services.notifications.time_provider import TimeProvider
from app.services.settings_service import SettingsService, get_settings_service
from app.utils.responses import ResponseBuilder

settings_router = APIRouter()


def _settings_response(settings_service: SettingsService) -> SettingsResponse:
    reading = TimeProvider(settings_service).now()
    return SettingsResponse(
        timezone=settings_service.get_timezone(),
        current_time=reading.datetime,
    )


@settings_router.get(
    "/",
    response_model=None,
    status_code=status.HTTP_200_OK,
    summary="Get system settings",
    description="Return the configured timezone and the current time in that timezone.",
)
async def get_settings(
    request: Request,
    settings_service: SettingsService = Depends(get_settings_service),
):
    return ResponseBuilder.success(
        request=request,
        data=_settings_response(settings_service).model_dump(by_alias=True),
        message="Settings retrieved successfully",
    )


@settings_router.put(
    "/timezone",
    response_model=None,
    status_code=status.HTTP_200_OK,
    summary="Change the scheduler timezone",
    description="Validate and persist an IANA timezone, then re-register all jobs in it.",
)
async def update_timezone(
    request: Request,
    payload: UpdateTimezoneRequest,
    settings_service: SettingsService = Depends(get_settings_service),
    job_scheduler: Optional[JobScheduler] = Depends(get_optional_job_scheduler),
):
    settings_service.set_timezone(payload.timezone)

    if job_scheduler is not None:
        job_scheduler.restart_all()

    return ResponseBuilder.success(
        request=request,
        data=_settings_response(settings_service).model_dump(by_alias=True),
        message="Timezone updated successfully",
    )
