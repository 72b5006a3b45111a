from .job_scheduler import (
    JobScheduler,
    JobDefinition,
    DatabaseTimezoneSource,
    default_job_definitions,
    NOTIFICATION_DISPATCHER,
    FAILED_NOTIFICATION_RETRIER,
    EVENT_EXPIRATION,
)

__all__ = [
    "JobScheduler",
    "JobDefinition",
    "DatabaseTimezoneSource",
    "default_job_definitions",
    "NOTIFICATION_DISPATCHER",
    "FAILED_NOTIFICATION_RETRIER",
    "EVENT_EXPIRATION",
]
