from datetime import timedelta

from app.db.models import Event, EventStatus
from app.services.notifications.event_store import EventStore
from app.services.notifications.expiry_job import ExpiryJob

from conftest import TODAY


class TestExpiryJob:
    """Test expiring events whose target date has passed."""

    def test_expires_only_past_active_events(self, db_session, make_event, time_provider):
        past = make_event(title="Past", target_date=TODAY - timedelta(days=1))
        due_today = make_event(title="Today", target_date=TODAY)
        future = make_event(title="Future", target_date=TODAY + timedelta(days=5))
        completed = make_event(
            title="Done",
            target_date=TODAY - timedelta(days=10),
            status=EventStatus.COMPLETED,
        )

        expired = ExpiryJob(EventStore(db_session), time_provider).run()

        assert expired == 1
        db_session.expire_all()
        assert db_session.get(Event, past.id).status == EventStatus.EXPIRED
        assert db_session.get(Event, due_today.id).status == EventStatus.ACTIVE
        assert db_session.get(Event, future.id).status == EventStatus.ACTIVE
        assert db_session.get(Event, completed.id).status == EventStatus.COMPLETED

    def test_is_idempotent(self, db_session, make_event, time_provider):
        make_event(title="Old", target_date=TODAY - timedelta(days=30))
        make_event(title="Older", target_date=TODAY - timedelta(days=300))
        job = ExpiryJob(EventStore(db_session), time_provider)

        assert job.run() == 2
        assert job.run() == 0

    def test_find_due_today_returns_distinct_events(
        self, db_session, make_event, make_notification
    ):
        event = make_event()
        make_notification(event, scheduled_time="09:00")
        make_notification(make_event(title="Quiet"), scheduled_date=TODAY + timedelta(days=1))

        events = EventStore(db_session).find_due_today(TODAY)

        assert [e.id for e in events] == [event.id]
