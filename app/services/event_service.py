from typing import Optional

from fastapi import Depends
from sqlalchemy import select, func
from sqlalchemy.orm import Session
from sqlalchemy.exc import IntegrityError

from app.db.models import Event, EventStatus, Group, Notification
from app.db.session import get_sync_session
from app.schemas.event_schemas import (
    CreateEventRequest,
    UpdateEventRequest,
    EventResponse,
)
from app.services.notifications.notification_store import NotificationStore
from app.services.notifications.time_provider import TimeProvider
from app.services.settings_service import SettingsService
from app.utils.datetime_utils import days_between
from app.utils.errors import DatabaseError, NotFoundError
from app.utils.logging import get_logger

logger = get_logger()

# Editing any of these fields rebuilds the reminder schedule
SCHEDULE_FIELDS = ("target_date", "target_time", "remind_days")


class EventService:
    """Event lifecycle with reminder schedule maintenance"""

    def __init__(self, db_session: Session, time_provider: Optional[TimeProvider] = None):
        self.db = db_session
        self.time_provider = time_provider or TimeProvider(SettingsService(db_session))
        self.notification_store = NotificationStore(db_session)

    # Core CRUD Operations
    async def get_event_by_id(self, event_id: int) -> Optional[Event]:
        return self.db.get(Event, event_id)

    async def get_event(self, event_id: int) -> EventResponse:
        event = await self.get_event_by_id(event_id)
        if not event:
            raise NotFoundError(f"Event {event_id} not found", "EVENT_NOT_FOUND")
        return self._create_event_response(event)

    async def create_event(
        self, event_data: CreateEventRequest, user_id: Optional[int] = None
    ) -> EventResponse:
        """Create an event and its reminder schedule in one transaction"""
        await self._ensure_group_exists(event_data.group_id)

        try:
            event = Event(
                title=event_data.title,
                content=event_data.content,
                target_date=event_data.target_date,
                target_time=event_data.target_time,
                message_format=event_data.message_format,
                group_id=event_data.group_id,
                user_id=user_id,
                status=EventStatus.ACTIVE,
            )
            self.db.add(event)
            self.db.flush()

            rows = self.notification_store.replace_schedule(
                event.id,
                event.target_date,
                event.target_time,
                self.time_provider.today(),
            )
            self.db.commit()
        except IntegrityError as e:
            self.db.rollback()
            raise DatabaseError(
                "Event violates a database constraint", "EVENT_CONSTRAINT_VIOLATION"
            ) from e
        except Exception:
            self.db.rollback()
            raise

        logger.info(f"Created event {event.id} with {len(rows)} reminders")
        return self._create_event_response(event)

    async def update_event(
        self, event_id: int, event_data: UpdateEventRequest
    ) -> EventResponse:
        """
        Apply a partial update.

        Only fields present in the request are written. Touching the target
        date, target time or the deprecated ``remind_days`` discards the old
        schedule (sent rows included) and regenerates it from today.
        """
        event = await self.get_event_by_id(event_id)
        if not event:
            raise NotFoundError(f"Event {event_id} not found", "EVENT_NOT_FOUND")

        changes = {
            field: getattr(event_data, field) for field in event_data.model_fields_set
        }
        if "group_id" in changes:
            await self._ensure_group_exists(changes["group_id"])

        regenerate = any(field in changes for field in SCHEDULE_FIELDS)

        try:
            for field, value in changes.items():
                setattr(event, field, value)
            self.db.flush()

            if regenerate:
                self.notification_store.replace_schedule(
                    event.id,
                    event.target_date,
                    event.target_time,
                    self.time_provider.today(),
                )
            self.db.commit()
            self.db.refresh(event)
        except IntegrityError as e:
            self.db.rollback()
            raise DatabaseError(
                "Event violates a database constraint", "EVENT_CONSTRAINT_VIOLATION"
            ) from e
        except Exception:
            self.db.rollback()
            raise

        logger.info(
            f"Updated event {event.id}"
            + (" and regenerated reminders" if regenerate else "")
        )
        return self._create_event_response(event)

    async def delete_event(self, event_id: int) -> None:
        """Delete an event; its notifications go with it"""
        event = await self.get_event_by_id(event_id)
        if not event:
            raise NotFoundError(f"Event {event_id} not found", "EVENT_NOT_FOUND")

        try:
            self.db.delete(event)
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise

        logger.info(f"Deleted event {event_id}")

    # Helper Methods
    async def _ensure_group_exists(self, group_id: Optional[int]) -> None:
        if group_id is not None and self.db.get(Group, group_id) is None:
            raise NotFoundError(f"Group {group_id} not found", "GROUP_NOT_FOUND")

    def _create_event_response(self, event: Event) -> EventResponse:
        notification_count = self.db.scalar(
            select(func.count(Notification.id)).where(Notification.event_id == event.id)
        )
        return EventResponse(
            id=event.id,
            title=event.title,
            content=event.content,
            target_date=event.target_date,
            target_time=event.target_time,
            message_format=event.message_format,
            group_id=event.group_id,
            status=event.status,
            days_remaining=days_between(self.time_provider.today(), event.target_date),
            notification_count=notification_count or 0,
            created_at=event.created_at,
            updated_at=event.updated_at,
        )


def get_event_service(db: Session = Depends(get_sync_session)) -> EventService:
    """Dependency to provide EventService instance"""
    return EventService(db)
