from datetime import date, datetime
from typing import Optional

from pydantic import Field

from app.db.models import NotificationStatus
from app.schemas.camel_base_model import CamelCaseBaseModel as BaseModel


class NotificationListQueryParams(BaseModel):
    """Query parameters for listing notifications"""

    status: Optional[NotificationStatus] = Field(None, description="Filter by status")
    page: int = Field(1, ge=1, description="Page number")
    limit: int = Field(20, ge=1, le=100, description="Page size")


class NotificationItem(BaseModel):
    id: int
    event_id: int
    event_title: Optional[str] = Field(None, description="Title of the related event")
    scheduled_date: date
    scheduled_time: str
    status: NotificationStatus
    sent_at: Optional[datetime] = None
    error_message: Optional[str] = None
    retry_count: int
    created_at: Optional[datetime] = None


class NotificationStatsResponse(BaseModel):
    total: int = 0
    pending: int = 0
    sent: int = 0
    failed: int = 0


class RetryNotificationResponse(BaseModel):
    message: str


class DispatchSummaryResponse(BaseModel):
    total: int = 0
    sent: int = 0
    failed: int = 0
    skipped: int = 0
