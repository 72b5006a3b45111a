import pytest
from unittest.mock import patch

from app.db.models import Setting, TIMEZONE_SETTING_KEY
from app.services.settings_service import SettingsService
from app.utils.errors import BusinessLogicError


class TestSettingsService:
    """Test timezone persistence and validation."""

    def test_timezone_defaults_when_unset(self, db_session):
        service = SettingsService(db_session)

        with patch("app.services.settings_service.settings.DEFAULT_TIMEZONE", "UTC"):
            assert service.get_timezone() == "UTC"

    def test_set_timezone_persists(self, db_session):
        service = SettingsService(db_session)

        assert service.set_timezone("America/New_York") == "America/New_York"
        assert service.get_timezone() == "America/New_York"
        assert db_session.get(Setting, TIMEZONE_SETTING_KEY).value == "America/New_York"

    def test_set_timezone_overwrites_existing_row(self, db_session):
        db_session.add(Setting(key=TIMEZONE_SETTING_KEY, value="Asia/Shanghai"))
        db_session.commit()
        service = SettingsService(db_session)

        service.set_timezone("  Europe/Paris ")

        assert service.get_all() == {TIMEZONE_SETTING_KEY: "Europe/Paris"}

    @pytest.mark.parametrize("bad_value", ["", "   ", "Mars/Olympus", "GMT+25", "America", "Etc"])
    def test_invalid_timezone_rejected(self, db_session, bad_value):
        service = SettingsService(db_session)

        with pytest.raises(BusinessLogicError) as exc_info:
            service.set_timezone(bad_value)

        assert exc_info.value.error_code == "INVALID_TIMEZONE"
        assert service.get(TIMEZONE_SETTING_KEY) is None

    def test_get_settings(self, db_session):
        service = SettingsService(db_session)
        service.set_timezone("Asia/Tokyo")

        assert service.get_settings() == {"timezone": "Asia/Tokyo"}
