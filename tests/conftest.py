from datetime import datetime, timezone, date
from typing import Generator, List, Optional

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from app.db.models import (
    Base,
    Event,
    EventStatus,
    Group,
    MessageFormat,
    Notification,
    NotificationStatus,
    Webhook,
)
from app.db.session import enable_sqlite_foreign_keys
from app.services.notifications.time_provider import TimeProvider
from app.services.notifications.webhook_sender import SendResult


# Test database setup
TEST_DATABASE_URL = "sqlite://"

# 2025-01-01 09:00 in Asia/Shanghai
FIXED_NOW = datetime(2025, 1, 1, 1, 0, tzinfo=timezone.utc)
TODAY = date(2025, 1, 1)
TARGET_DATE = date(2025, 1, 11)


class FakeTimezoneSource:
    """Settings stand-in whose timezone can be changed mid-test"""

    def __init__(self, timezone_name: str = "Asia/Shanghai"):
        self.timezone_name = timezone_name

    def get_timezone(self) -> str:
        return self.timezone_name


class FakeSender:
    """Records every send; answers from a queue of results (or exceptions to raise)"""

    def __init__(self, results: Optional[List] = None):
        self.results = list(results or [])
        self.calls = []

    async def send(
        self,
        url,
        title,
        content,
        days_remaining,
        message_format=MessageFormat.TEXT,
    ):
        self.calls.append(
            {
                "url": url,
                "title": title,
                "content": content,
                "days_remaining": days_remaining,
                "message_format": message_format,
            }
        )
        if self.results:
            result = self.results.pop(0)
            if isinstance(result, Exception):
                raise result
            return result
        return SendResult(success=True)


class RecordingSleep:
    def __init__(self):
        self.delays = []

    async def __call__(self, seconds: float):
        self.delays.append(seconds)


@pytest.fixture
def test_engine():
    """Create an in-memory database with foreign keys enforced."""
    engine = create_engine(
        TEST_DATABASE_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
        echo=False,
    )
    enable_sqlite_foreign_keys(engine)
    Base.metadata.create_all(engine)

    yield engine
    engine.dispose()


@pytest.fixture
def db_session(test_engine) -> Generator[Session, None, None]:
    """Create a database session for each test."""
    session_maker = sessionmaker(bind=test_engine, class_=Session, expire_on_commit=False)

    with session_maker() as session:
        yield session
        session.rollback()


@pytest.fixture
def timezone_source() -> FakeTimezoneSource:
    return FakeTimezoneSource()


@pytest.fixture
def time_provider(timezone_source) -> TimeProvider:
    return TimeProvider(timezone_source, clock=lambda: FIXED_NOW)


@pytest.fixture
def fake_sender() -> FakeSender:
    return FakeSender()


@pytest.fixture
def recording_sleep() -> RecordingSleep:
    return RecordingSleep()


# Test data factories
@pytest.fixture
def default_webhook(db_session: Session) -> Webhook:
    webhook = Webhook(
        name="Default robot",
        url="https://qyapi.weixin.qq.com/cgi-bin/webhook/send?key=default",
        is_default=True,
    )
    db_session.add(webhook)
    db_session.commit()
    return webhook


@pytest.fixture
def team_group(db_session: Session) -> Group:
    """A group routed to its own webhook."""
    webhook = Webhook(
        name="Team robot",
        url="https://qyapi.weixin.qq.com/cgi-bin/webhook/send?key=team",
        is_default=False,
    )
    db_session.add(webhook)
    db_session.flush()

    group = Group(name="Team", webhook_id=webhook.id)
    db_session.add(group)
    db_session.commit()
    return group


@pytest.fixture
def make_event(db_session: Session):
    def _make_event(
        title: str = "Contract renewal",
        target_date: date = TARGET_DATE,
        target_time: str = "09:00",
        status: EventStatus = EventStatus.ACTIVE,
        group_id: Optional[int] = None,
        content: Optional[str] = "Renew before it lapses",
        message_format: MessageFormat = MessageFormat.TEXT,
    ) -> Event:
        event = Event(
            title=title,
            content=content,
            target_date=target_date,
            target_time=target_time,
            status=status,
            group_id=group_id,
            message_format=message_format,
        )
        db_session.add(event)
        db_session.commit()
        return event

    return _make_event


@pytest.fixture
def make_notification(db_session: Session):
    def _make_notification(
        event: Event,
        scheduled_date: date = TODAY,
        scheduled_time: str = "09:00",
        status: NotificationStatus = NotificationStatus.PENDING,
        retry_count: int = 0,
        error_message: Optional[str] = None,
    ) -> Notification:
        notification = Notification(
            event_id=event.id,
            scheduled_date=scheduled_date,
            scheduled_time=scheduled_time,
            status=status,
            retry_count=retry_count,
            error_message=error_message,
        )
        db_session.add(notification)
        db_session.commit()
        return notification

    return _make_notification
