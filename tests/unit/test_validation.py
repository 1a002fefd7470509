"""Tests for settings validation and the partial-update model."""
from datetime import time

import pytest
from pydantic import ValidationError

from hydration.models.reminder import Channel, ReminderSettings, SettingsUpdate
from hydration.reminders.errors import SettingsValidationError
from hydration.reminders.validation import settings_errors, validate_settings


def settings(**overrides) -> ReminderSettings:
    return ReminderSettings(user_id=1, **overrides)


class TestSettingsErrors:
    def test_defaults_are_valid(self):
        assert settings_errors(settings()) == []

    @pytest.mark.parametrize("interval,valid", [
        (29, False), (30, True), (240, True), (480, True), (481, False),
    ])
    def test_interval_range(self, interval, valid):
        errors = settings_errors(settings(interval_minutes=interval))
        assert (errors == []) is valid

    def test_end_before_start(self):
        errors = settings_errors(settings(start_time=time(20, 0), end_time=time(9, 0)))
        assert any("later than start_time" in e for e in errors)

    def test_active_window_shorter_than_an_hour(self):
        errors = settings_errors(settings(start_time=time(9, 0), end_time=time(9, 45)))
        assert any("at least 1 hour" in e for e in errors)

    def test_active_window_of_exactly_an_hour(self):
        assert settings_errors(settings(start_time=time(9, 0), end_time=time(10, 0))) == []

    def test_zero_length_quiet_window(self):
        errors = settings_errors(settings(quiet_start=time(23, 0), quiet_end=time(23, 0)))
        assert any("quiet_start and quiet_end" in e for e in errors)

    def test_quiet_window_covering_whole_day_is_allowed(self):
        assert settings_errors(settings(quiet_start=time(0, 0), quiet_end=time(23, 59))) == []

    def test_empty_channels(self):
        assert any("at least one" in e for e in settings_errors(settings(channels=[])))

    def test_unknown_channel(self):
        errors = settings_errors(settings(channels=["push", "sms"]))
        assert any("sms" in e for e in errors)

    def test_duplicate_channels(self):
        errors = settings_errors(settings(channels=["push", "push"]))
        assert any("repeat" in e for e in errors)

    def test_unknown_timezone(self):
        errors = settings_errors(settings(timezone="Mars/Olympus_Mons"))
        assert any("timezone" in e for e in errors)

    def test_collects_every_problem(self):
        errors = settings_errors(settings(interval_minutes=5, channels=[]))
        assert len(errors) == 2


class TestValidateSettings:
    def test_raises_with_messages(self):
        with pytest.raises(SettingsValidationError) as exc_info:
            validate_settings(settings(interval_minutes=10))
        assert len(exc_info.value.errors) == 1
        assert isinstance(exc_info.value, ValueError)

    def test_valid_passes(self):
        validate_settings(settings(timezone="Asia/Shanghai"))


class TestSettingsUpdate:
    def test_unknown_field_rejected(self):
        with pytest.raises(ValidationError):
            SettingsUpdate(strategy_type="smart_adaptive")

    @pytest.mark.parametrize("text,expected", [("07:30", time(7, 30)), ("07:30:00", time(7, 30))])
    def test_time_formats(self, text, expected):
        assert SettingsUpdate(start_time=text).start_time == expected

    def test_bad_time_rejected(self):
        with pytest.raises(ValidationError):
            SettingsUpdate(start_time="25:00")

    def test_unknown_channel_rejected(self):
        with pytest.raises(ValidationError):
            SettingsUpdate(channels=["pager"])

    def test_changes_only_include_provided_fields(self):
        update = SettingsUpdate(interval_minutes=60, channels=["email", Channel.PUSH])
        assert update.changes() == {"interval_minutes": 60, "channels": ["email", "push"]}

    def test_empty_update(self):
        assert SettingsUpdate().changes() == {}
