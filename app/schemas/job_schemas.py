from datetime import datetime
from typing import Any, Dict, Optional

from pydantic import Field

from app.schemas.camel_base_model import CamelCaseBaseModel as BaseModel


class JobInfo(BaseModel):
    name: str
    cron: str
    timezone: str
    running: bool
    next_run_time: Optional[datetime] = None


class JobRunResponse(BaseModel):
    name: str
    result: Dict[str, Any] = Field(default_factory=dict)
