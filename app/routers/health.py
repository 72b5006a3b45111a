from fastapi import APIRouter, Request

from app.config.settings import settings
from app.utils.responses import ResponseBuilder

health_router = APIRouter()


@health_router.get("/")
async def health_check(request: Request):
    """
    Basic health check endpoint

    Returns application status and whether the job scheduler is active
    """
    job_scheduler = getattr(request.app.state, "job_scheduler", None)
    return ResponseBuilder.success(
        request=request,
        data={
            "status": "healthy",
            "service": settings.NAME,
            "version": settings.VERSION,
            "scheduler": "running"
            if job_scheduler is not None and job_scheduler.scheduler.running
            else "stopped",
        },
        message="Service is running",
    )
