"""Tests for SQLModel reminder and hydration models."""
from datetime import datetime, time

from sqlmodel import Session, select

from hydration.models.hydration import HydrationGoal, HydrationRecord
from hydration.models.reminder import (
    Channel,
    Intensity,
    ReminderLog,
    ReminderSettings,
    ReminderStatus,
    ResponseAction,
)
from hydration.reminders.time_window import TimeWindow


class TestReminderSettings:
    def test_defaults(self):
        s = ReminderSettings(user_id=5)
        assert s.enabled is True
        assert s.interval_minutes == 120
        assert s.smart_mode is True
        assert s.weekend_enabled is True
        assert s.channels == ["push", "sound"]
        assert s.intensity == Intensity.MEDIUM
        assert s.timezone == "UTC"

    def test_windows(self):
        s = ReminderSettings(user_id=5)
        assert s.active_window == TimeWindow(time(8, 0), time(22, 0))
        assert s.quiet_window == TimeWindow(time(22, 0), time(8, 0))
        assert s.quiet_window.wraps

    def test_default_channel_lists_not_shared(self):
        a, b = ReminderSettings(user_id=1), ReminderSettings(user_id=2)
        a.channels.append("email")
        assert b.channels == ["push", "sound"]

    def test_persist_round_trip(self, test_session: Session):
        test_session.add(ReminderSettings(
            user_id=3,
            start_time=time(7, 30),
            quiet_start=time(23, 0),
            quiet_end=time(6, 30),
            channels=["vibration", "email"],
            intensity=Intensity.HIGH,
        ))
        test_session.commit()

        loaded = test_session.exec(
            select(ReminderSettings).where(ReminderSettings.user_id == 3)
        ).one()
        assert loaded.start_time == time(7, 30)
        assert loaded.quiet_end == time(6, 30)
        assert loaded.channels == ["vibration", "email"]
        assert loaded.intensity == Intensity.HIGH


class TestReminderLog:
    def test_defaults(self):
        row = ReminderLog(user_id=1, scheduled_at=datetime(2025, 1, 15, 12), message="hi")
        assert row.status == ReminderStatus.SCHEDULED
        assert row.channel == Channel.PUSH
        assert row.response_action is None
        assert row.deleted_at is None

    def test_persist_enums(self, test_session: Session):
        row = ReminderLog(
            user_id=1,
            scheduled_at=datetime(2025, 1, 15, 12),
            message="hi",
            status=ReminderStatus.RESPONDED,
            channel=Channel.EMAIL,
            response_action=ResponseAction.DRINK_LOGGED,
            amount_logged=300.0,
        )
        test_session.add(row)
        test_session.commit()

        loaded = test_session.exec(select(ReminderLog)).one()
        assert loaded.status == ReminderStatus.RESPONDED
        assert loaded.channel == Channel.EMAIL
        assert loaded.response_action == ResponseAction.DRINK_LOGGED

    def test_enum_values_are_wire_strings(self):
        assert ReminderStatus.SENT == "sent"
        assert ResponseAction.SNOOZE.value == "snooze"
        assert [c.value for c in Channel] == ["push", "sound", "vibration", "email"]


class TestHydrationModels:
    def test_record_defaults(self):
        r = HydrationRecord(amount_ml=250.0, recorded_at=datetime(2025, 1, 15, 9))
        assert r.drink_type == "water"
        assert r.source == "manual"

    def test_goal_defaults(self):
        g = HydrationGoal()
        assert g.daily_goal_ml == 2000
        assert g.is_active is True
