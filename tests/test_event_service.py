import pytest
from datetime import date
from pydantic import ValidationError

from app.db.models import MessageFormat, Notification, NotificationStatus
from app.schemas.event_schemas import CreateEventRequest, UpdateEventRequest
from app.services.event_service import EventService
from app.services.notifications.notification_store import NotificationStore
from app.services.notifications.schedule_generator import generate_notification_dates
from app.utils.errors import DatabaseError, NotFoundError

from conftest import TODAY, TARGET_DATE


@pytest.fixture
def event_service(db_session, time_provider):
    return EventService(db_session, time_provider=time_provider)


def _create_request(**overrides):
    data = {
        "title": "Passport expiry",
        "content": "Renew at the consulate",
        "targetDate": TARGET_DATE.isoformat(),
        "targetTime": "10:00",
        "messageFormat": "markdown",
    }
    data.update(overrides)
    return CreateEventRequest(**data)


class TestCreateEvent:
    @pytest.mark.asyncio
    async def test_creates_schedule(self, db_session, event_service):
        response = await event_service.create_event(_create_request())

        rows = NotificationStore(db_session).find_by_event(response.id)
        assert [row.scheduled_date for row in rows] == generate_notification_dates(
            TARGET_DATE, TODAY
        )
        assert all(row.scheduled_time == "10:00" for row in rows)
        assert response.days_remaining == 10
        assert response.notification_count == len(rows)
        assert response.message_format == MessageFormat.MARKDOWN

    @pytest.mark.asyncio
    async def test_unknown_group_rejected(self, event_service):
        with pytest.raises(NotFoundError):
            await event_service.create_event(_create_request(groupId=42))

    def test_invalid_time_rejected(self):
        with pytest.raises(ValueError):
            _create_request(targetTime="25:00")


class TestUpdateEvent:
    @pytest.mark.asyncio
    async def test_title_change_keeps_schedule(self, db_session, event_service):
        created = await event_service.create_event(_create_request())
        store = NotificationStore(db_session)
        first_id = store.find_by_event(created.id)[0].id
        store.mark_sent(first_id)

        updated = await event_service.update_event(
            created.id, UpdateEventRequest(title="Passport renewal")
        )

        assert updated.title == "Passport renewal"
        assert db_session.get(Notification, first_id).status == NotificationStatus.SENT

    @pytest.mark.asyncio
    async def test_date_change_regenerates(self, db_session, event_service):
        created = await event_service.create_event(_create_request())
        store = NotificationStore(db_session)
        store.mark_sent(store.find_by_event(created.id)[0].id)

        new_target = date(2025, 4, 1)
        updated = await event_service.update_event(
            created.id, UpdateEventRequest(targetDate=new_target.isoformat())
        )

        rows = store.find_by_event(created.id)
        assert [row.scheduled_date for row in rows] == generate_notification_dates(
            new_target, TODAY
        )
        assert all(row.status == NotificationStatus.PENDING for row in rows)
        assert updated.notification_count == len(rows)

    @pytest.mark.asyncio
    async def test_time_change_moves_reminders(self, db_session, event_service):
        created = await event_service.create_event(_create_request())

        await event_service.update_event(created.id, UpdateEventRequest(targetTime="18:30"))

        rows = NotificationStore(db_session).find_by_event(created.id)
        assert {row.scheduled_time for row in rows} == {"18:30"}

    @pytest.mark.asyncio
    async def test_missing_event(self, event_service):
        with pytest.raises(NotFoundError):
            await event_service.update_event(999, UpdateEventRequest(title="x"))

    @pytest.mark.parametrize(
        "field", ["targetDate", "targetTime", "title", "messageFormat", "status"]
    )
    def test_null_for_required_field_rejected(self, field):
        with pytest.raises(ValidationError) as exc_info:
            UpdateEventRequest(**{field: None})

        assert "cannot be null" in str(exc_info.value)

    def test_null_for_optional_fields_accepted(self):
        request = UpdateEventRequest(content=None, groupId=None, remindDays=None)

        assert request.model_fields_set == {"content", "group_id", "remind_days"}

    @pytest.mark.asyncio
    async def test_constraint_violation_raises_database_error(
        self, db_session, event_service
    ):
        created = await event_service.create_event(_create_request())
        unvalidated = UpdateEventRequest.model_construct(
            _fields_set={"target_date"}, target_date=None
        )

        with pytest.raises(DatabaseError) as exc_info:
            await event_service.update_event(created.id, unvalidated)

        assert exc_info.value.error_code == "EVENT_CONSTRAINT_VIOLATION"
        event = await event_service.get_event(created.id)
        assert event.target_date == TARGET_DATE
        assert event.notification_count == created.notification_count


class TestDeleteEvent:
    @pytest.mark.asyncio
    async def test_delete_removes_notifications(self, db_session, event_service):
        created = await event_service.create_event(_create_request())

        await event_service.delete_event(created.id)

        store = NotificationStore(db_session)
        assert store.find_by_event(created.id) == []
        assert store.find_due(TODAY, "10:00") == []
        with pytest.raises(NotFoundError):
            await event_service.get_event(created.id)
