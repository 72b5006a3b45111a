from datetime import datetime, date, timezone
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError


def utc_now() -> datetime:
    """
    Get current UTC datetime as a timezone-aware datetime.

    Returns:
        datetime: Current UTC datetime with timezone info
    """
    return datetime.now(timezone.utc)


def naive_utc_now() -> datetime:
    """
    Get current UTC datetime as a naive datetime (no timezone info).
    Audit columns are stored as naive UTC.

    Returns:
        datetime: Current UTC datetime without timezone info
    """
    return datetime.now(timezone.utc).replace(tzinfo=None)


def load_zone(name: str) -> ZoneInfo:
    """
    Resolve an IANA timezone name.

    Raises:
        ValueError: If the name is empty or not a known zone
    """
    if not name or not isinstance(name, str):
        raise ValueError("Timezone name must be a non-empty string")
    try:
        return ZoneInfo(name)
    # Directory names such as "America" surface as IsADirectoryError
    except (ZoneInfoNotFoundError, ValueError, OSError) as e:
        raise ValueError(f"Unknown timezone: {name}") from e


def is_valid_timezone(name: str) -> bool:
    try:
        load_zone(name)
        return True
    except ValueError:
        return False


def parse_date(value: str) -> date:
    """Parse a ``YYYY-MM-DD`` string."""
    return date.fromisoformat(value)


def format_date(value: date) -> str:
    return value.strftime("%Y-%m-%d")


def format_hhmm(value: datetime) -> str:
    return value.strftime("%H:%M")


def days_between(start: date, end: date) -> int:
    """
    Whole calendar days from ``start`` to ``end``; negative when ``end`` is earlier.

    Both arguments are dates (midnight-aligned), so the ceiling of the
    day difference is the plain day count.
    """
    return (end - start).days
