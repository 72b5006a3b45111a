import asyncio
from dataclasses import dataclass, field
from datetime import date
from typing import Awaitable, Callable, List, Optional, Sequence

from sqlalchemy.orm import Session

from app.config.settings import settings
from app.db.models import Notification, NotificationStatus
from app.utils.datetime_utils import days_between
from app.utils.logging import get_logger

from .event_store import EventStore
from .notification_store import NotificationStore
from .time_provider import TimeProvider
from .webhook_resolver import WebhookResolver
from .webhook_sender import SendResult, WebhookSender

EVENT_NOT_FOUND_MESSAGE = "Related event not found"
NO_WEBHOOK_MESSAGE = "No webhook configured"
NOTIFICATION_NOT_FOUND_MESSAGE = "Notification not found"
NOT_PENDING_MESSAGE = "Notification is no longer pending"


@dataclass
class DispatchSummary:
    total: int = 0
    sent: int = 0
    failed: int = 0
    skipped: int = 0
    failed_ids: List[int] = field(default_factory=list)

    def record(self, notification_id: int, success: bool, skipped: bool = False):
        if skipped:
            self.skipped += 1
            return
        if success:
            self.sent += 1
        else:
            self.failed += 1
            self.failed_ids.append(notification_id)

    def as_dict(self):
        return {
            "total": self.total,
            "sent": self.sent,
            "failed": self.failed,
            "skipped": self.skipped,
            "failed_ids": list(self.failed_ids),
        }


class DeliveryDispatcher:
    """
    Sends due reminders through the resolved webhook and records the outcome.

    Sends are strictly sequential with a fixed pause between them. A failure
    on one notification (including an unexpected exception) is written to
    that row and never stops the rest of the batch.
    """

    def __init__(
        self,
        db_session: Session,
        time_provider: TimeProvider,
        sender: Optional[WebhookSender] = None,
        send_delay: Optional[float] = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
        request_id: Optional[str] = None,
    ):
        self.db = db_session
        self.time_provider = time_provider
        self.sender = sender or WebhookSender()
        self.send_delay = (
            send_delay if send_delay is not None else settings.SEND_DELAY_SECONDS
        )
        self.sleep = sleep
        self.notification_store = NotificationStore(db_session)
        self.event_store = EventStore(db_session)
        self.webhook_resolver = WebhookResolver(db_session)
        self.logger = get_logger().bind(request_id=request_id or "app")

    async def process_due(self) -> DispatchSummary:
        """Send every pending notification scheduled for the current minute"""
        reading = self.time_provider.now()
        due = self.notification_store.find_due(reading.today, reading.time)

        if due:
            self.logger.info(
                f"Found {len(due)} notifications due at {reading.datetime} ({reading.timezone})"
            )

        return await self.send_batch(due, today=reading.today)

    async def process_pending_for_date(
        self, target_day: Optional[date] = None
    ) -> DispatchSummary:
        """Send all of a day's pending notifications regardless of their minute"""
        today = self.time_provider.today()
        day = target_day or today
        pending = self.notification_store.find_pending_for_date(day)

        self.logger.info(
            f"Sending {len(pending)} pending notifications for {day.isoformat()}"
        )
        return await self.send_batch(pending, today=today)

    async def send_batch(
        self,
        notifications: Sequence[Notification],
        today: Optional[date] = None,
        delay: Optional[float] = None,
        reset_first: bool = False,
    ) -> DispatchSummary:
        pause = self.send_delay if delay is None else delay
        notification_ids = [notification.id for notification in notifications]
        summary = DispatchSummary(total=len(notification_ids))

        for index, notification_id in enumerate(notification_ids):
            try:
                if reset_first:
                    self.notification_store.reset_to_pending(notification_id)
                result = await self.send_notification(notification_id, today=today)
                summary.record(notification_id, result.success, skipped=result.skipped)
            except Exception as e:
                self.logger.exception(
                    f"Unexpected error sending notification {notification_id}: {e}"
                )
                self._record_failure(notification_id, str(e) or e.__class__.__name__)
                summary.record(notification_id, False)

            if index < len(notification_ids) - 1 and pause > 0:
                await self.sleep(pause)

        if summary.total:
            self.logger.info(
                f"Dispatch finished: {summary.sent} sent, {summary.failed} failed, "
                f"{summary.skipped} skipped of {summary.total}"
            )
        return summary

    async def send_notification(
        self, notification_id: int, today: Optional[date] = None
    ) -> SendResult:
        """
        Deliver a single notification and persist the result.

        The row is re-read so that a notification deleted since it was
        selected is reported rather than resurrected, and one another run
        has already sent or failed is skipped rather than sent twice.
        Retry paths reset the row to pending before calling this.
        """
        notification = self.notification_store.find_by_id(notification_id)
        if notification is None:
            self.logger.warning(f"Notification {notification_id} disappeared before sending")
            return SendResult(success=False, error=NOTIFICATION_NOT_FOUND_MESSAGE)

        if notification.status != NotificationStatus.PENDING:
            self.logger.info(
                f"Skipping notification {notification_id}, already {notification.status.value}"
            )
            return SendResult(success=False, error=NOT_PENDING_MESSAGE, skipped=True)

        event = self.event_store.find_by_id(notification.event_id)
        if event is None:
            self.logger.warning(
                f"Notification {notification_id} references missing event {notification.event_id}"
            )
            self.notification_store.mark_failed(notification_id, EVENT_NOT_FOUND_MESSAGE)
            return SendResult(success=False, error=EVENT_NOT_FOUND_MESSAGE)

        webhook_url = self.webhook_resolver.resolve_webhook_for_event(event)
        if not webhook_url:
            self.logger.warning(
                f"No webhook configured for event {event.id}, notification {notification_id}"
            )
            self.notification_store.mark_failed(notification_id, NO_WEBHOOK_MESSAGE)
            return SendResult(success=False, error=NO_WEBHOOK_MESSAGE)

        current_day = today or self.time_provider.today()
        days_remaining = days_between(current_day, event.target_date)

        result = await self.sender.send(
            webhook_url,
            event.title,
            event.content,
            days_remaining,
            event.message_format,
        )

        if result.success:
            self.notification_store.mark_sent(notification_id)
            self.logger.info(
                f"Sent notification {notification_id} for event {event.id} "
                f"({days_remaining} days remaining)"
            )
        else:
            self.notification_store.mark_failed(notification_id, result.error)
            self.logger.warning(
                f"Failed to send notification {notification_id}: {result.error}"
            )

        return result

    def _record_failure(self, notification_id: int, error_message: str):
        try:
            self.notification_store.mark_failed(notification_id, error_message)
        except Exception as e:
            self.logger.error(
                f"Could not record failure for notification {notification_id}: {e}"
            )
