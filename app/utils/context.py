import uuid
from contextvars import ContextVar
from typing import Optional

request_id_context: ContextVar[Optional[str]] = ContextVar("request_id", default=None)


def get_request_id() -> Optional[str]:
    """Get the current request ID from context."""
    return request_id_context.get()


def set_request_id(request_id: str) -> None:
    """Set the request ID in context."""
    request_id_context.set(request_id)


def new_job_request_id(job_name: str) -> str:
    """Build a request ID for a scheduled job run, e.g. ``event-expiration-3f2a9c1d``."""
    return f"{job_name}-{uuid.uuid4().hex[:8]}"
