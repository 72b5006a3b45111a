from typing import List, Optional
from datetime import datetime, date
from sqlalchemy import (
    String,
    Boolean,
    Integer,
    Text,
    ForeignKey,
    Enum,
    Index,
    UniqueConstraint,
    CheckConstraint,
    DateTime,
    Date,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship
import enum

from app.utils.datetime_utils import naive_utc_now


class Base(DeclarativeBase):
    pass


# Enums
class EventStatus(enum.Enum):
    ACTIVE = "active"
    EXPIRED = "expired"
    COMPLETED = "completed"


class NotificationStatus(enum.Enum):
    PENDING = "pending"
    SENT = "sent"
    FAILED = "failed"


class MessageFormat(enum.Enum):
    TEXT = "text"
    MARKDOWN = "markdown"


DEFAULT_TARGET_TIME = "09:00"
DEFAULT_GROUP_COLOR = "#3B82F6"
TIMEZONE_SETTING_KEY = "timezone"


# Base model with common audit fields
class AuditMixin:
    """Mixin for common audit fields"""

    created_at: Mapped[datetime] = mapped_column(
        DateTime, default=naive_utc_now, nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, default=naive_utc_now, onupdate=naive_utc_now
    )


# Models
class Webhook(Base, AuditMixin):
    """Chat robot endpoint a reminder is posted to"""

    __tablename__ = "webhooks"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    url: Mapped[str] = mapped_column(String(500), nullable=False)
    is_default: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)

    # Relationships
    groups: Mapped[List["Group"]] = relationship(back_populates="webhook")

    __table_args__ = (Index("idx_webhooks_is_default", "is_default"),)


class Group(Base, AuditMixin):
    """Routing metadata: events in a group are delivered to the group's webhook"""

    __tablename__ = "groups"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    color: Mapped[str] = mapped_column(
        String(16), default=DEFAULT_GROUP_COLOR, nullable=False
    )
    webhook_id: Mapped[Optional[int]] = mapped_column(
        Integer, ForeignKey("webhooks.id", ondelete="SET NULL")
    )

    # Relationships
    webhook: Mapped[Optional["Webhook"]] = relationship(back_populates="groups")
    events: Mapped[List["Event"]] = relationship(back_populates="group")


class Event(Base, AuditMixin):
    __tablename__ = "events"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    title: Mapped[str] = mapped_column(String(200), nullable=False)
    content: Mapped[Optional[str]] = mapped_column(Text)
    target_date: Mapped[date] = mapped_column(Date, nullable=False)
    target_time: Mapped[str] = mapped_column(
        String(5), default=DEFAULT_TARGET_TIME, nullable=False
    )
    # Deprecated: kept for stored rows, the reminder schedule ignores it
    remind_days: Mapped[Optional[int]] = mapped_column(Integer)
    message_format: Mapped[MessageFormat] = mapped_column(
        Enum(MessageFormat), default=MessageFormat.TEXT, nullable=False
    )
    group_id: Mapped[Optional[int]] = mapped_column(
        Integer, ForeignKey("groups.id", ondelete="SET NULL")
    )
    user_id: Mapped[Optional[int]] = mapped_column(Integer)
    status: Mapped[EventStatus] = mapped_column(
        Enum(EventStatus), default=EventStatus.ACTIVE, nullable=False
    )

    # Relationships
    group: Mapped[Optional["Group"]] = relationship(back_populates="events")
    notifications: Mapped[List["Notification"]] = relationship(
        back_populates="event", cascade="all, delete-orphan"
    )

    __table_args__ = (
        Index("idx_events_status_target_date", "status", "target_date"),
        Index("idx_events_group_id", "group_id"),
        Index("idx_events_user_id", "user_id"),
    )


class Notification(Base):
    __tablename__ = "notifications"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    event_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("events.id", ondelete="CASCADE"), nullable=False
    )
    scheduled_date: Mapped[date] = mapped_column(Date, nullable=False)
    scheduled_time: Mapped[str] = mapped_column(
        String(5), default=DEFAULT_TARGET_TIME, nullable=False
    )
    sent_at: Mapped[Optional[datetime]] = mapped_column(DateTime)
    status: Mapped[NotificationStatus] = mapped_column(
        Enum(NotificationStatus), default=NotificationStatus.PENDING, nullable=False
    )
    error_message: Mapped[Optional[str]] = mapped_column(Text)
    retry_count: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime, default=naive_utc_now, nullable=False
    )

    # Relationships
    event: Mapped["Event"] = relationship(back_populates="notifications")

    # Constraints
    __table_args__ = (
        UniqueConstraint("event_id", "scheduled_date", name="uq_notif_event_date"),
        CheckConstraint("retry_count >= 0", name="ck_notif_retry_count_positive"),
        Index("idx_notif_due", "scheduled_date", "scheduled_time", "status"),
        Index("idx_notif_status", "status"),
    )


class Setting(Base):
    """Process-wide key/value settings (currently only ``timezone``)"""

    __tablename__ = "settings"

    key: Mapped[str] = mapped_column(String(100), primary_key=True)
    value: Mapped[str] = mapped_column(String(255), nullable=False)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, default=naive_utc_now, onupdate=naive_utc_now, nullable=False
    )
