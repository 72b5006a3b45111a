from dataclasses import dataclass
from datetime import date, datetime
from typing import Callable, Optional, Protocol
from zoneinfo import ZoneInfo

from app.config.settings import settings
from app.utils.datetime_utils import (
    utc_now,
    load_zone,
    is_valid_timezone,
    format_date,
    format_hhmm,
    parse_date,
)
from app.utils.logging import get_logger

logger = get_logger()

FALLBACK_TIMEZONE = "Asia/Shanghai"


class TimezoneSource(Protocol):
    def get_timezone(self) -> str: ...


@dataclass(frozen=True)
class ClockReading:
    """Wall-clock reading in the configured timezone"""

    date: str  # YYYY-MM-DD
    time: str  # HH:MM
    datetime: str  # YYYY-MM-DD HH:MM
    timezone: str

    @property
    def today(self) -> date:
        return parse_date(self.date)


class TimeProvider:
    """
    Resolves "now" in the timezone held by the settings store.

    The timezone is looked up on every call so that an admin change is
    picked up on the next tick without restarting anything.
    """

    def __init__(
        self,
        timezone_source: TimezoneSource,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        self.timezone_source = timezone_source
        self.clock = clock or utc_now

    def resolve_zone(self) -> ZoneInfo:
        tz_name = self.timezone_source.get_timezone()
        try:
            return load_zone(tz_name)
        except ValueError:
            fallback = (
                settings.DEFAULT_TIMEZONE
                if is_valid_timezone(settings.DEFAULT_TIMEZONE)
                else FALLBACK_TIMEZONE
            )
            logger.debug(f"Timezone {tz_name!r} is not a known zone, using {fallback}")
            return ZoneInfo(fallback)

    def now(self) -> ClockReading:
        zone = self.resolve_zone()
        local_now = self.clock().astimezone(zone)

        date_str = format_date(local_now)
        time_str = format_hhmm(local_now)

        return ClockReading(
            date=date_str,
            time=time_str,
            datetime=f"{date_str} {time_str}",
            timezone=zone.key,
        )

    def today(self) -> date:
        return self.now().today
