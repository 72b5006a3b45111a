from typing import Optional

from app.config.settings import settings
from app.utils.logging import get_logger

from .delivery_dispatcher import DeliveryDispatcher, DispatchSummary


class RetryCoordinator:
    """
    Re-sends today's failed notifications until they reach the retry ceiling.

    Each candidate is reset to pending and pushed through the normal send
    path, so a second failure increments ``retry_count`` again. Rows at the
    ceiling are left alone; only a manual retry sends them.
    """

    def __init__(
        self,
        dispatcher: DeliveryDispatcher,
        max_retries: Optional[int] = None,
        retry_delay: Optional[float] = None,
        request_id: Optional[str] = None,
    ):
        self.dispatcher = dispatcher
        self.max_retries = max_retries if max_retries is not None else settings.MAX_RETRIES
        self.retry_delay = (
            retry_delay if retry_delay is not None else settings.RETRY_SEND_DELAY_SECONDS
        )
        self.logger = get_logger().bind(request_id=request_id or "app")

    async def retry_failed(self) -> DispatchSummary:
        store = self.dispatcher.notification_store
        today = self.dispatcher.time_provider.today()
        candidates = store.find_failed_for_retry(self.max_retries, today)

        if not candidates:
            return DispatchSummary()

        self.logger.info(
            f"Retrying {len(candidates)} failed notifications for {today.isoformat()}"
        )

        return await self.dispatcher.send_batch(
            candidates, today=today, delay=self.retry_delay, reset_first=True
        )
