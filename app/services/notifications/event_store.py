from datetime import date
from typing import List, Optional

from sqlalchemy import select, update, and_
from sqlalchemy.orm import Session, selectinload

from app.db.models import Event, EventStatus, Group, Notification, NotificationStatus
from app.utils.logging import get_logger

logger = get_logger()


class EventStore:
    """Event lookups needed by the delivery and expiry jobs"""

    def __init__(self, db_session: Session):
        self.db = db_session

    def find_by_id(self, event_id: int) -> Optional[Event]:
        return self.db.scalar(
            select(Event)
            .options(selectinload(Event.group).selectinload(Group.webhook))
            .where(Event.id == event_id)
        )

    def find_due_today(self, today: date) -> List[Event]:
        """Distinct events that still have a pending reminder scheduled for ``today``"""
        return list(
            self.db.scalars(
                select(Event)
                .join(Notification, Notification.event_id == Event.id)
                .where(
                    and_(
                        Notification.scheduled_date == today,
                        Notification.status == NotificationStatus.PENDING,
                    )
                )
                .distinct()
                .order_by(Event.target_date.asc())
            ).all()
        )

    def mark_expired(self, today: date) -> int:
        """
        Flip every active event whose target date is before ``today`` to expired.

        Returns:
            Number of events updated; zero on a second run for the same day
        """
        try:
            result = self.db.execute(
                update(Event)
                .where(
                    and_(
                        Event.status == EventStatus.ACTIVE,
                        Event.target_date < today,
                    )
                )
                .values(status=EventStatus.EXPIRED)
                .execution_options(synchronize_session=False)
            )
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise

        return result.rowcount or 0
