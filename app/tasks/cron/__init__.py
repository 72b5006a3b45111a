from .notification_dispatcher import notification_dispatcher_task
from .failed_notification_retrier import failed_notification_retrier_task
from .event_expiration import event_expiration_task

__all__ = [
    "notification_dispatcher_task",
    "failed_notification_retrier_task",
    "event_expiration_task",
]
