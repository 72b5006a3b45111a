from typing import Optional

from sqlalchemy import select
from sqlalchemy.orm import Session

from app.db.models import Event, Group, Webhook


class WebhookResolver:
    """Picks the webhook URL an event's reminders are posted to"""

    def __init__(self, db_session: Session):
        self.db = db_session

    def resolve_webhook_for_event(self, event: Event) -> Optional[str]:
        # The group's own webhook wins, otherwise the system default
        if event.group_id is not None:
            url = self.db.scalar(
                select(Webhook.url)
                .join(Group, Group.webhook_id == Webhook.id)
                .where(Group.id == event.group_id)
            )
            if url:
                return url

        return self.get_default_webhook_url()

    def get_default_webhook_url(self) -> Optional[str]:
        return self.db.scalar(
            select(Webhook.url)
            .where(Webhook.is_default.is_(True))
            .order_by(Webhook.id.asc())
            .limit(1)
        )
