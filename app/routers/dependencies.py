from typing import Optional

from fastapi import Request

from app.scheduler.job_scheduler import JobScheduler
from app.utils.errors import BusinessLogicError


def get_optional_job_scheduler(request: Request) -> Optional[JobScheduler]:
    return getattr(request.app.state, "job_scheduler", None)


def get_job_scheduler(request: Request) -> JobScheduler:
    job_scheduler = get_optional_job_scheduler(request)
    if job_scheduler is None:
        raise BusinessLogicError("Job scheduler is disabled", "SCHEDULER_DISABLED")
    return job_scheduler
