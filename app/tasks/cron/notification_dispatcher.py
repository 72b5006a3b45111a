import asyncio

from app.celery import celery
from app.db.session import get_sync_session
from app.services.notifications.delivery_dispatcher import DeliveryDispatcher
from app.services.notifications.time_provider import TimeProvider
from app.services.notifications.webhook_sender import WebhookSender
from app.services.settings_service import SettingsService
from app.utils.logging import get_logger


@celery.task(bind=True)
def notification_dispatcher_task(self, request_id: str):
    """
    Minute task that sends every pending reminder due at the current
    wall-clock minute in the configured timezone.

    Args:
        request_id: Tracking id for this run (generated by the job scheduler)
    """
    return asyncio.run(_async_notification_dispatcher(request_id))


async def _async_notification_dispatcher(request_id: str):
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
            summary = await dispatcher.process_due()

            return {
                "success": True,
                **summary.as_dict(),
                "request_id": request_id,
            }

        except Exception as e:
            logger.exception(f"Notification dispatcher run failed: {e}")
            return {
                "success": False,
                "error": str(e),
                "request_id": request_id,
            }
