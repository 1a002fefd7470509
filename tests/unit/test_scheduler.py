"""Tests for APScheduler job configuration and the reminder job bodies."""
from datetime import datetime, timedelta
from unittest.mock import MagicMock, patch

import pytest
from apscheduler.schedulers.asyncio import AsyncIOScheduler

from hydration.models.reminder import ReminderStatus, SettingsUpdate
from hydration.scheduler.jobs import _reminder_cleanup, _reminder_tick, build_scheduler


class TestBuildScheduler:
    def test_returns_scheduler(self):
        engine = MagicMock()
        scheduler = build_scheduler(engine)
        assert isinstance(scheduler, AsyncIOScheduler)

    def test_jobs_registered(self):
        engine = MagicMock()
        scheduler = build_scheduler(engine)
        job_ids = {job.id for job in scheduler.get_jobs()}
        assert job_ids == {"reminder_tick", "reminder_cleanup"}

    def test_tick_is_interval(self):
        engine = MagicMock()
        with patch("hydration.scheduler.jobs.get_settings") as mock_settings:
            mock_settings.return_value.reminder_tick_minutes = 5
            mock_settings.return_value.cleanup_hour = 2
            scheduler = build_scheduler(engine)

        job = next(j for j in scheduler.get_jobs() if j.id == "reminder_tick")
        assert job.trigger.__class__.__name__ == "IntervalTrigger"
        assert job.trigger.interval == timedelta(minutes=5)

    def test_cleanup_hour_from_settings(self):
        """Scheduler respects the CLEANUP_HOUR setting."""
        engine = MagicMock()
        with patch("hydration.scheduler.jobs.get_settings") as mock_settings:
            mock_settings.return_value.reminder_tick_minutes = 5
            mock_settings.return_value.cleanup_hour = 4
            scheduler = build_scheduler(engine)

        job = next(j for j in scheduler.get_jobs() if j.id == "reminder_cleanup")
        assert job.trigger.__class__.__name__ == "CronTrigger"
        fields = {f.name: f for f in job.trigger.fields}
        assert str(fields["hour"]) == "4"

    def test_default_notifier(self):
        from hydration.delivery.notifier import LogNotifier

        scheduler = build_scheduler(MagicMock())
        job = next(j for j in scheduler.get_jobs() if j.id == "reminder_tick")
        assert isinstance(job.kwargs["notifier"], LogNotifier)

    def test_scheduler_not_running_on_creation(self):
        """build_scheduler should not auto-start."""
        scheduler = build_scheduler(MagicMock())
        assert not scheduler.running


# ─── _reminder_tick job body ───────────────────────────────────────────────────

class TestReminderTickJob:
    """build_reminder_service is lazily imported inside the job, so it is
    patched at its source module path."""

    @pytest.mark.asyncio
    async def test_ticks_every_enabled_user(self):
        service = MagicMock()
        service.settings_store.enabled_user_ids.return_value = [1, 2]
        service.tick.return_value = None
        notifier = MagicMock()

        with patch("hydration.reminders.service.build_reminder_service", return_value=service):
            await _reminder_tick(engine=MagicMock(), notifier=notifier)

        assert service.tick.call_count == 2
        service.tick.assert_any_call(1, notifier)
        service.tick.assert_any_call(2, notifier)

    @pytest.mark.asyncio
    async def test_one_user_failing_does_not_stop_others(self):
        service = MagicMock()
        service.settings_store.enabled_user_ids.return_value = [1, 2]
        service.tick.side_effect = [Exception("db locked"), None]

        with patch("hydration.reminders.service.build_reminder_service", return_value=service):
            await _reminder_tick(engine=MagicMock(), notifier=MagicMock())

        assert service.tick.call_count == 2

    @pytest.mark.asyncio
    async def test_delivers_due_reminder_and_schedules_next(self, engine, clock, service):
        """End to end on the in-memory DB: a due reminder is sent and a new one scheduled."""
        service.settings_store.update(1, SettingsUpdate(smart_mode=False))
        first = service.schedule_next(1)
        clock.set(first.scheduled_at)
        notifier = MagicMock()

        with patch("hydration.reminders.service.build_reminder_service", return_value=service):
            await _reminder_tick(engine=engine, notifier=notifier)

        notifier.send.assert_called_once()
        assert service.lifecycle.get(first.id).status == ReminderStatus.SENT
        pending = service.reminder_store.pending(1)
        assert len(pending) == 1
        assert pending[0].scheduled_at == datetime(2025, 1, 15, 14, 0)

    @pytest.mark.asyncio
    async def test_notifier_failure_marks_reminder_failed(self, engine, clock, service):
        service.settings_store.update(1, SettingsUpdate(smart_mode=False))
        first = service.schedule_next(1)
        clock.set(first.scheduled_at)
        notifier = MagicMock()
        notifier.send.side_effect = ConnectionError("push gateway down")

        with patch("hydration.reminders.service.build_reminder_service", return_value=service):
            await _reminder_tick(engine=engine, notifier=notifier)

        row = service.lifecycle.get(first.id)
        assert row.status == ReminderStatus.FAILED
        assert row.failure_reason == "push gateway down"


# ─── _reminder_cleanup job body ────────────────────────────────────────────────

class TestReminderCleanupJob:
    @pytest.mark.asyncio
    async def test_purges_with_configured_retention(self):
        service = MagicMock()
        service.purge_expired.return_value = 3

        with patch("hydration.reminders.service.build_reminder_service", return_value=service), \
             patch("hydration.scheduler.jobs.get_settings") as mock_settings:
            mock_settings.return_value.reminder_retention_days = 90
            await _reminder_cleanup(engine=MagicMock())

        service.purge_expired.assert_called_once_with(90)

    @pytest.mark.asyncio
    async def test_cutoff_uses_user_local_clock(self, engine, clock, service):
        """Rows just inside the window in user-local time survive."""
        service.get_settings(1)
        service.trigger_now(1)  # scheduled 2025-01-15 10:00 user-local
        clock.set(datetime(2025, 4, 15, 9, 30))  # 89 days 23.5 hours later

        with patch("hydration.reminders.service.build_reminder_service", return_value=service), \
             patch("hydration.scheduler.jobs.get_settings") as mock_settings:
            mock_settings.return_value.reminder_retention_days = 90
            await _reminder_cleanup(engine=engine)

        assert service.reminder_store.query(1).total == 1

        clock.set(datetime(2025, 4, 15, 10, 30))
        with patch("hydration.reminders.service.build_reminder_service", return_value=service), \
             patch("hydration.scheduler.jobs.get_settings") as mock_settings:
            mock_settings.return_value.reminder_retention_days = 90
            await _reminder_cleanup(engine=engine)

        assert service.reminder_store.query(1).total == 0

    @pytest.mark.asyncio
    async def test_exception_does_not_propagate(self):
        """Cleanup catches all exceptions so the scheduler stays alive."""
        service = MagicMock()
        service.purge_expired.side_effect = Exception("disk full")

        with patch("hydration.reminders.service.build_reminder_service", return_value=service), \
             patch("hydration.scheduler.jobs.get_settings") as mock_settings:
            mock_settings.return_value.reminder_retention_days = 90
            # Should not raise
            await _reminder_cleanup(engine=MagicMock())
