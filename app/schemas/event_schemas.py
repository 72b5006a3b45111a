from datetime import date, datetime
from typing import Optional

from pydantic import Field, field_validator, model_validator

from app.db.models import DEFAULT_TARGET_TIME, EventStatus, MessageFormat
from app.schemas.camel_base_model import CamelCaseBaseModel as BaseModel


def _validate_hhmm(value: Optional[str]) -> Optional[str]:
    if value is None:
        return value
    parts = value.split(":")
    if (
        len(parts) != 2
        or not all(part.isdigit() and len(part) == 2 for part in parts)
        or int(parts[0]) > 23
        or int(parts[1]) > 59
    ):
        raise ValueError("Time must be in HH:MM format")
    return value


NON_NULLABLE_UPDATE_FIELDS = (
    "title",
    "target_date",
    "target_time",
    "message_format",
    "status",
)


class CreateEventRequest(BaseModel):
    """Request schema for creating an event"""

    title: str = Field(..., min_length=1, max_length=200, description="Event title")
    content: Optional[str] = Field(None, description="Reminder message body")
    target_date: date = Field(..., description="Date the event is due")
    target_time: str = Field(
        DEFAULT_TARGET_TIME, description="Local time reminders are sent (HH:MM)"
    )
    message_format: MessageFormat = Field(
        MessageFormat.TEXT, description="Robot message format"
    )
    group_id: Optional[int] = Field(None, description="Routing group")

    @field_validator("target_time")
    @classmethod
    def validate_target_time(cls, value):
        return _validate_hhmm(value)


class UpdateEventRequest(BaseModel):
    """Request schema for a partial event update"""

    title: Optional[str] = Field(None, min_length=1, max_length=200)
    content: Optional[str] = None
    target_date: Optional[date] = None
    target_time: Optional[str] = None
    remind_days: Optional[int] = Field(
        None, ge=0, description="Deprecated, accepted for compatibility"
    )
    message_format: Optional[MessageFormat] = None
    group_id: Optional[int] = None
    status: Optional[EventStatus] = None

    @field_validator("target_time")
    @classmethod
    def validate_target_time(cls, value):
        return _validate_hhmm(value)

    @model_validator(mode="after")
    def reject_null_required_fields(self):
        nulled = sorted(
            field
            for field in NON_NULLABLE_UPDATE_FIELDS
            if field in self.model_fields_set and getattr(self, field) is None
        )
        if nulled:
            raise ValueError(f"Fields cannot be null: {', '.join(nulled)}")
        return self


class EventResponse(BaseModel):
    id: int
    title: str
    content: Optional[str] = None
    target_date: date
    target_time: str
    message_format: MessageFormat
    group_id: Optional[int] = None
    status: EventStatus
    days_remaining: int = Field(..., description="Days left until the target date")
    notification_count: int = Field(0, description="Scheduled reminder rows")
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
