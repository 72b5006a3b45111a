from typing import Any, Dict, List, Optional, Tuple

from fastapi import Depends
from sqlalchemy.orm import Session

from app.db.models import Notification, NotificationStatus
from app.db.session import get_sync_session
from app.schemas.notification_schemas import (
    NotificationItem,
    NotificationListQueryParams,
    NotificationStatsResponse,
)
from app.services.notifications.delivery_dispatcher import (
    DeliveryDispatcher,
    DispatchSummary,
)
from app.services.notifications.notification_store import NotificationStore
from app.services.notifications.time_provider import TimeProvider
from app.services.notifications.webhook_sender import WebhookSender
from app.services.settings_service import SettingsService
from app.utils.errors import BusinessLogicError, NotFoundError, WebhookDeliveryError
from app.utils.logging import get_logger

logger = get_logger()


class NotificationService:
    """Read access to notification rows plus the manual delivery operations"""

    def __init__(
        self,
        db_session: Session,
        sender: Optional[WebhookSender] = None,
        time_provider: Optional[TimeProvider] = None,
    ):
        self.db = db_session
        self.store = NotificationStore(db_session)
        self.time_provider = time_provider or TimeProvider(SettingsService(db_session))
        self.sender = sender

    def _dispatcher(self) -> DeliveryDispatcher:
        return DeliveryDispatcher(self.db, self.time_provider, sender=self.sender)

    async def list_notifications(
        self, query_params: NotificationListQueryParams
    ) -> Tuple[List[Dict[str, Any]], int]:
        rows, total = self.store.list_notifications(
            status=query_params.status,
            page=query_params.page,
            limit=query_params.limit,
        )
        items = [
            self._create_notification_item(row).model_dump(by_alias=True)
            for row in rows
        ]
        return items, total

    async def get_notification(self, notification_id: int) -> NotificationItem:
        notification = self.store.find_by_id(notification_id)
        if not notification:
            raise NotFoundError(
                f"Notification {notification_id} not found", "NOTIFICATION_NOT_FOUND"
            )
        return self._create_notification_item(notification)

    async def get_stats(self) -> NotificationStatsResponse:
        return NotificationStatsResponse(**self.store.get_stats())

    async def retry_notification(self, notification_id: int) -> str:
        """
        Resend one failed notification immediately.

        Unlike the periodic retrier this ignores the retry ceiling and the
        scheduled date. A failed resend is recorded on the row (retry count
        included) and reported as ``WebhookDeliveryError``.
        """
        notification = self.store.find_by_id(notification_id)
        if not notification:
            raise NotFoundError(
                f"Notification {notification_id} not found", "NOTIFICATION_NOT_FOUND"
            )
        if notification.status != NotificationStatus.FAILED:
            raise BusinessLogicError(
                "Only failed notifications can be retried", "NOTIFICATION_NOT_FAILED"
            )

        self.store.reset_to_pending(notification_id)
        result = await self._dispatcher().send_notification(notification_id)

        if not result.success:
            raise WebhookDeliveryError(result.error or "Send failed")

        logger.info(f"Manually resent notification {notification_id}")
        return "Notification sent successfully"

    async def send_pending_for_today(self) -> DispatchSummary:
        """Send every pending notification for today, whatever its scheduled minute"""
        return await self._dispatcher().process_pending_for_date()

    @staticmethod
    def _create_notification_item(notification: Notification) -> NotificationItem:
        return NotificationItem(
            id=notification.id,
            event_id=notification.event_id,
            event_title=notification.event.title if notification.event else None,
            scheduled_date=notification.scheduled_date,
            scheduled_time=notification.scheduled_time,
            status=notification.status,
            sent_at=notification.sent_at,
            error_message=notification.error_message,
            retry_count=notification.retry_count,
            created_at=notification.created_at,
        )


def get_notification_service(
    db: Session = Depends(get_sync_session),
) -> NotificationService:
    """Dependency to provide NotificationService instance"""
    return NotificationService(db)
