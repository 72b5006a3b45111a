from .schedule_generator import generate_notification_dates, is_reminder_day
from .time_provider import ClockReading, TimeProvider
from .notification_store import NotificationStore
from .event_store import EventStore
from .webhook_resolver import WebhookResolver
from .webhook_sender import SendResult, WebhookSender
from .delivery_dispatcher import DeliveryDispatcher, DispatchSummary
from .retry_coordinator import RetryCoordinator
from .expiry_job import ExpiryJob

__all__ = [
    "generate_notification_dates",
    "is_reminder_day",
    "ClockReading",
    "TimeProvider",
    "NotificationStore",
    "EventStore",
    "WebhookResolver",
    "SendResult",
    "WebhookSender",
    "DeliveryDispatcher",
    "DispatchSummary",
    "RetryCoordinator",
    "ExpiryJob",
]
