from typing import Dict

from fastapi import Depends
from sqlalchemy import select
from sqlalchemy.orm import Session

from app.config.settings import settings
from app.db.models import Setting, TIMEZONE_SETTING_KEY
from app.db.session import get_sync_session
from app.utils.datetime_utils import is_valid_timezone
from app.utils.errors import BusinessLogicError
from app.utils.logging import get_logger

logger = get_logger()


class SettingsService:
    """Reads and writes the process-wide settings rows"""

    def __init__(self, db_session: Session):
        self.db = db_session

    def get(self, key: str):
        # Always hit the database so changes committed elsewhere are seen
        return self.db.scalar(select(Setting.value).where(Setting.key == key))

    def get_all(self) -> Dict[str, str]:
        rows = self.db.execute(select(Setting.key, Setting.value)).all()
        return {key: value for key, value in rows}

    def set(self, key: str, value: str) -> None:
        try:
            setting = self.db.get(Setting, key)
            if setting is None:
                self.db.add(Setting(key=key, value=value))
            else:
                setting.value = value
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise

    def get_timezone(self) -> str:
        return self.get(TIMEZONE_SETTING_KEY) or settings.DEFAULT_TIMEZONE

    def set_timezone(self, timezone_name: str) -> str:
        """
        Persist a new timezone.

        The caller is responsible for re-registering the job scheduler so the
        new zone is used for cron triggers.

        Raises:
            BusinessLogicError: If the name is not a valid IANA timezone
        """
        timezone_name = (timezone_name or "").strip()
        if not is_valid_timezone(timezone_name):
            raise BusinessLogicError(
                f"Invalid timezone: {timezone_name or '<empty>'}",
                error_code="INVALID_TIMEZONE",
            )

        previous = self.get_timezone()
        self.set(TIMEZONE_SETTING_KEY, timezone_name)
        logger.info(f"Timezone changed from {previous} to {timezone_name}")
        return timezone_name

    def get_settings(self) -> Dict[str, str]:
        return {"timezone": self.get_timezone()}


def get_settings_service(db: Session = Depends(get_sync_session)) -> SettingsService:
    """Dependency to provide SettingsService instance"""
    return SettingsService(db)
