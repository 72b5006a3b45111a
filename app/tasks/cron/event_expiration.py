import asyncio

from app.celery import celery
from app.db.session import get_sync_session
from app.services.notifications.event_store import EventStore
from app.services.notifications.expiry_job import ExpiryJob
from app.services.notifications.time_provider import TimeProvider
from app.services.settings_service import SettingsService
from app.utils.logging import get_logger


@celery.task(bind=True)
def event_expiration_task(self, request_id: str):
    """
    Daily task that marks active events past their target date as expired.

    Args:
        request_id: Tracking id for this run (generated by the job scheduler)
    """
    return asyncio.run(_async_event_expiration(request_id))


async def _async_event_expiration(request_id: str):
    logger = get_logger().bind(request_id=request_id)

    for db_session in get_sync_session():
        try:
            time_provider = TimeProvider(SettingsService(db_session))
            expired_count = ExpiryJob(
                EventStore(db_session), time_provider, request_id=request_id
            ).run()

            return {
                "success": True,
                "expired_count": expired_count,
                "current_date": time_provider.today().isoformat(),
                "request_id": request_id,
            }

        except Exception as e:
            logger.exception(f"Event expiration run failed: {e}")
            return {
                "success": False,
                "error": str(e),
                "request_id": request_id,
            }
