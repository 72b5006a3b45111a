import asyncio

from app.celery import celery
from app.config.settings import settings
from app.db.session import get_sync_session
from app.services.notifications.delivery_dispatcher import DeliveryDispatcher
from app.services.notifications.retry_coordinator import RetryCoordinator
from app.services.notifications.time_provider import TimeProvider
from app.services.notifications.webhook_sender import WebhookSender
from app.services.settings_service import SettingsService
from app.utils.logging import get_logger


@celery.task(bind=True)
def failed_notification_retrier_task(self, request_id: str):
    """
    Periodic task that re-sends today's failed reminders that are still
    below the retry ceiling.

    Args:
        request_id: Tracking id for this run (generated by the job scheduler)
    """
    return asyncio.run(_async_failed_notification_retrier(request_id))


async def _async_failed_notification_retrier(request_id: str):
    logger = get_logger().bind(request_id=request_id)

    for db_session in get_sync_session():
        try:
            time_provider = TimeProvider(SettingsService(db_session))
            dispatcher = DeliveryDispatcher(
                db_session,
                time_provider,
                sender=WebhookSender(),
                request_id=request_id,
            )
            coordinator = RetryCoordinator(
                dispatcher,
                max_retries=settings.MAX_RETRIES,
                retry_delay=settings.RETRY_SEND_DELAY_SECONDS,
                request_id=request_id,
            )
            summary = await coordinator.retry_failed()

            return {
                "success": True,
                **summary.as_dict(),
                "request_id": request_id,
            }

        except Exception as e:
            logger.exception(f"Failed notification retrier run failed: {e}")
            return {
                "success": False,
                "error": str(e),
                "request_id": request_id,
            }
