from pydantic import Field

from app.schemas.camel_base_model import CamelCaseBaseModel as BaseModel


class SettingsResponse(BaseModel):
    timezone: str = Field(..., description="IANA timezone used by the scheduler")
    current_time: str = Field(
        ..., description="Current wall-clock time in that timezone (YYYY-MM-DD HH:MM)"
    )


class UpdateTimezoneRequest(BaseModel):
    timezone: str = Field(..., min_length=1, description="IANA timezone name")
