from .cron import *

__all__ = [
    # Scheduled/Cron Tasks
    "notification_dispatcher_task",
    "failed_notification_retrier_task",
    "event_expiration_task",
]
