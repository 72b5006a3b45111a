from datetime import date
from typing import Dict, List, Optional, Tuple

from sqlalchemy import select, delete, func, and_
from sqlalchemy.orm import Session, selectinload

from app.db.models import Event, Notification, NotificationStatus
from app.utils.datetime_utils import naive_utc_now
from app.utils.logging import get_logger

from .schedule_generator import generate_notification_dates

logger = get_logger()


class NotificationStore:
    """Persistence for per-event notification rows"""

    def __init__(self, db_session: Session):
        self.db = db_session

    # Queries
    def find_by_id(self, notification_id: int) -> Optional[Notification]:
        return self.db.scalar(
            select(Notification)
            .options(selectinload(Notification.event))
            .where(Notification.id == notification_id)
            .execution_options(populate_existing=True)
        )

    def find_by_event(self, event_id: int) -> List[Notification]:
        return list(
            self.db.scalars(
                select(Notification)
                .where(Notification.event_id == event_id)
                .order_by(Notification.scheduled_date.asc())
            ).all()
        )

    def find_due(self, scheduled_date: date, scheduled_time: str) -> List[Notification]:
        """
        Pending notifications scheduled for exactly this date and minute.

        This is an equality match, not a range: a minute the scheduler did
        not tick for is not caught up later.
        """
        return list(
            self.db.scalars(
                select(Notification)
                .join(Event, Notification.event_id == Event.id)
                .where(
                    and_(
                        Notification.scheduled_date == scheduled_date,
                        Notification.scheduled_time == scheduled_time,
                        Notification.status == NotificationStatus.PENDING,
                    )
                )
                .order_by(Event.target_date.asc(), Notification.id.asc())
            ).all()
        )

    def find_pending_for_date(self, scheduled_date: date) -> List[Notification]:
        return list(
            self.db.scalars(
                select(Notification)
                .join(Event, Notification.event_id == Event.id)
                .where(
                    and_(
                        Notification.scheduled_date == scheduled_date,
                        Notification.status == NotificationStatus.PENDING,
                    )
                )
                .order_by(
                    Notification.scheduled_time.asc(),
                    Event.target_date.asc(),
                    Notification.id.asc(),
                )
            ).all()
        )

    def find_failed_for_retry(self, max_retries: int, today: date) -> List[Notification]:
        """Failed notifications scheduled for ``today`` that are still under the retry ceiling"""
        return list(
            self.db.scalars(
                select(Notification)
                .where(
                    and_(
                        Notification.status == NotificationStatus.FAILED,
                        Notification.retry_count < max_retries,
                        Notification.scheduled_date == today,
                    )
                )
                .order_by(Notification.created_at.asc(), Notification.id.asc())
            ).all()
        )

    def list_notifications(
        self,
        status: Optional[NotificationStatus] = None,
        page: int = 1,
        limit: int = 20,
    ) -> Tuple[List[Notification], int]:
        query = select(Notification).options(selectinload(Notification.event))
        count_query = select(func.count(Notification.id))

        if status:
            query = query.where(Notification.status == status)
            count_query = count_query.where(Notification.status == status)

        total = self.db.scalar(count_query) or 0
        rows = self.db.scalars(
            query.order_by(Notification.scheduled_date.desc(), Notification.id.desc())
            .limit(limit)
            .offset((page - 1) * limit)
        ).all()

        return list(rows), total

    def get_stats(self) -> Dict[str, int]:
        counts = {status.value: 0 for status in NotificationStatus}
        rows = self.db.execute(
            select(Notification.status, func.count(Notification.id)).group_by(
                Notification.status
            )
        ).all()
        for status, count in rows:
            counts[status.value] = count

        counts["total"] = sum(counts.values())
        return counts

    # Mutations, each committed as one transaction
    def regenerate(
        self, event_id: int, target_date: date, target_time: str, today: date
    ) -> List[Notification]:
        """
        Replace an event's notifications with a freshly generated schedule.

        Old rows are deleted first, including already sent ones, so history
        for dates outside the new schedule is discarded.
        """
        try:
            rows = self.replace_schedule(event_id, target_date, target_time, today)
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise

        logger.info(
            f"Generated {len(rows)} notifications for event {event_id} "
            f"(target {target_date.isoformat()} {target_time})"
        )
        return rows

    def replace_schedule(
        self, event_id: int, target_date: date, target_time: str, today: date
    ) -> List[Notification]:
        """Delete and re-insert without committing, for use inside a wider transaction"""
        self.db.execute(delete(Notification).where(Notification.event_id == event_id))
        # Drop stale identity-map entries left behind by the bulk delete
        self.db.expire_all()

        rows = [
            Notification(
                event_id=event_id,
                scheduled_date=scheduled_date,
                scheduled_time=target_time,
                status=NotificationStatus.PENDING,
                retry_count=0,
            )
            for scheduled_date in generate_notification_dates(target_date, today)
        ]
        self.db.add_all(rows)
        self.db.flush()
        return rows

    def delete_by_event(self, event_id: int) -> int:
        try:
            result = self.db.execute(
                delete(Notification).where(Notification.event_id == event_id)
            )
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise
        return result.rowcount or 0

    def mark_sent(self, notification_id: int) -> bool:
        return self._update(
            notification_id,
            status=NotificationStatus.SENT,
            sent_at=naive_utc_now(),
        )

    def mark_failed(self, notification_id: int, error_message: Optional[str]) -> bool:
        return self._update(
            notification_id,
            status=NotificationStatus.FAILED,
            error_message=error_message,
            increment_retry=True,
        )

    def reset_to_pending(self, notification_id: int) -> bool:
        return self._update(
            notification_id,
            status=NotificationStatus.PENDING,
            error_message=None,
        )

    def _update(
        self,
        notification_id: int,
        status: NotificationStatus,
        increment_retry: bool = False,
        **values,
    ) -> bool:
        try:
            notification = self.db.get(Notification, notification_id)
            if notification is None:
                return False

            notification.status = status
            for key, value in values.items():
                setattr(notification, key, value)
            if increment_retry:
                notification.retry_count = (notification.retry_count or 0) + 1

            self.db.commit()
            return True
        except Exception:
            self.db.rollback()
            raise
