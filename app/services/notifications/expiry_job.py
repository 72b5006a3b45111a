from typing import Optional

from app.utils.logging import get_logger

from .event_store import EventStore
from .time_provider import TimeProvider


class ExpiryJob:
    """Marks active events whose target date has passed as expired"""

    def __init__(
        self,
        event_store: EventStore,
        time_provider: TimeProvider,
        request_id: Optional[str] = None,
    ):
        self.event_store = event_store
        self.time_provider = time_provider
        self.logger = get_logger().bind(request_id=request_id or "app")

    def run(self) -> int:
        today = self.time_provider.today()
        expired = self.event_store.mark_expired(today)

        if expired:
            self.logger.info(f"Marked {expired} events as expired (before {today.isoformat()})")
        else:
            self.logger.debug("No events to expire")
        return expired
