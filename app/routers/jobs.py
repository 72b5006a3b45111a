from fastapi import APIRouter, Depends, Path, Request, status
from fastapi.concurrency import run_in_threadpool

from app.routers.dependencies import get_job_scheduler
from app.scheduler.job_scheduler import JobScheduler
from app.schemas.job_schemas import JobInfo, JobRunResponse
from app.utils.responses import ResponseBuilder

jobs_router = APIRouter()


@jobs_router.get(
    "/",
    response_model=None,
    status_code=status.HTTP_200_OK,
    summary="List scheduled jobs",
)
async def list_jobs(
    request: Request,
    job_scheduler: JobScheduler = Depends(get_job_scheduler),
):
    jobs = [
        JobInfo(**job).model_dump(by_alias=True) for job in job_scheduler.list_jobs()
    ]
    return ResponseBuilder.success(
        request=request,
        data=jobs,
        message=f"Retrieved {len(jobs)} jobs",
    )


@jobs_router.post(
    "/{name}/run",
    response_model=None,
    status_code=status.HTTP_200_OK,
    summary="Run a job now",
    description="Run a scheduled job immediately and return its result.",
)
async def run_job(
    request: Request,
    name: str = Path(..., min_length=1),
    job_scheduler: JobScheduler = Depends(get_job_scheduler),
):
    # Job bodies start their own event loop, so they run off the server loop
    result = await run_in_threadpool(job_scheduler.run_now, name)
    return ResponseBuilder.success(
        request=request,
        data=JobRunResponse(name=name, result=result).model_dump(by_alias=True),
        message=f"Job {name} executed",
    )
