"""
ReminderService: the entry points the API and background jobs call.

Wires the stores, clock, ScheduleEngine and ReminderLifecycle together and
adds the behavior that sits around them: snooze follow-ups, switching
reminders off from a reminder, superseding pending reminders when settings
change, manual triggers, and delivery of due reminders.
"""
import logging
import random
from datetime import date, timedelta
from typing import List, Optional, Tuple

from hydration.config import get_settings
from hydration.models.reminder import (
    ReminderLog,
    ReminderSettings,
    ResponseAction,
    SettingsUpdate,
)
from hydration.reminders.clock import SystemClock
from hydration.reminders.engine import ScheduleEngine, pick_channel
from hydration.reminders.errors import RemindersDisabledError
from hydration.reminders.lifecycle import ReminderLifecycle, ReminderStatistics, ResponseOutcome
from hydration.reminders.patterns import Suggestion, suggest_times

logger = logging.getLogger(__name__)

MANUAL_MESSAGE = "💧 Here's the water reminder you asked for!"


class ReminderService:
    """Facade over scheduling, lifecycle and suggestions for one deployment."""

    def __init__(
        self,
        settings_store,
        consumption_store,
        reminder_store,
        clock,
        rng: Optional[random.Random] = None,
        snooze_minutes: int = 15,
        lookback_days: int = 30,
    ):
        self.settings_store = settings_store
        self.consumption_store = consumption_store
        self.reminder_store = reminder_store
        self.clock = clock
        self.snooze_minutes = snooze_minutes
        self.lookback_days = lookback_days
        self.lifecycle = ReminderLifecycle(reminder_store, clock)
        self.engine = ScheduleEngine(
            settings_store,
            consumption_store,
            self.lifecycle,
            clock,
            rng=rng,
            lookback_days=lookback_days,
        )

    # ─── Scheduling ───────────────────────────────────────────────────────────

    def schedule_next(self, user_id: int) -> Optional[ReminderLog]:
        """Schedule the next reminder; None when the user has reminders off."""
        return self.engine.compute(user_id)

    def trigger_now(self, user_id: int) -> ReminderLog:
        """
        Create a reminder for right now and mark it sent immediately.

        Raises:
            RemindersDisabledError: the user has reminders switched off.
        """
        settings = self.settings_store.get(user_id)
        if settings is None or not settings.enabled:
            raise RemindersDisabledError(f"Reminders are disabled for user {user_id}")

        reminder_id = self.lifecycle.create(
            user_id, self.clock.now(user_id), MANUAL_MESSAGE, pick_channel(settings)
        )
        self.lifecycle.mark_sent(reminder_id)
        logger.info("Manual reminder %s triggered for user %s", reminder_id, user_id)
        return self.lifecycle.get(reminder_id)

    # ─── Delivery and response events ─────────────────────────────────────────

    def on_delivered(self, reminder_id: int) -> None:
        self.lifecycle.mark_sent(reminder_id)

    def on_delivery_failed(self, reminder_id: int, reason: str) -> None:
        self.lifecycle.mark_failed(reminder_id, reason)

    def on_user_response(
        self,
        reminder_id: int,
        action: ResponseAction,
        amount_logged: Optional[float] = None,
    ) -> ResponseOutcome:
        """
        Record the user's reaction to a sent reminder.

        `snooze` replaces any queued reminder with a follow-up snooze_minutes
        later; `disabled` switches reminders off and cancels anything still
        pending.
        """
        outcome = self.lifecycle.record_response(reminder_id, action, amount_logged)
        user_id = self.lifecycle.get(reminder_id).user_id

        if outcome.action == ResponseAction.SNOOZE:
            # the follow-up replaces whatever regular reminder was already queued
            self.lifecycle.supersede_pending(user_id)
            self.engine.snooze(user_id, self.snooze_minutes)
        elif outcome.action == ResponseAction.DISABLED:
            self.update_settings(user_id, SettingsUpdate(enabled=False))

        return outcome

    def deliver_due(self, user_id: int, notifier) -> Tuple[int, int]:
        """
        Hand every due reminder to the notifier.

        Returns:
            (sent, failed) counts.
        """
        sent = failed = 0
        for reminder in self.reminder_store.due(user_id, self.clock.now(user_id)):
            try:
                notifier.send(reminder)
            except Exception as exc:
                logger.warning("Delivery of reminder %s failed: %s", reminder.id, exc)
                self.on_delivery_failed(reminder.id, str(exc) or exc.__class__.__name__)
                failed += 1
            else:
                self.on_delivered(reminder.id)
                sent += 1
        return sent, failed

    def tick(self, user_id: int, notifier) -> Optional[ReminderLog]:
        """Deliver what is due, then make sure one reminder is pending."""
        self.deliver_due(user_id, notifier)
        if self.reminder_store.pending(user_id):
            return None
        return self.schedule_next(user_id)

    # ─── Settings ─────────────────────────────────────────────────────────────

    def get_settings(self, user_id: int) -> ReminderSettings:
        return self.settings_store.get_or_create(user_id)

    def update_settings(self, user_id: int, update: SettingsUpdate) -> ReminderSettings:
        """Patch settings; pending reminders computed under the old settings are superseded."""
        settings = self.settings_store.update(user_id, update)
        self.lifecycle.supersede_pending(user_id)
        return settings

    # ─── Read side ────────────────────────────────────────────────────────────

    def get_suggestions(self, user_id: int, day: Optional[date] = None) -> List[Suggestion]:
        """Candidate reminder times for `day` (default: the user's today)."""
        settings = self.settings_store.get(user_id)
        if settings is None:
            return []

        day = day or self.clock.now(user_id).date()
        if not settings.weekend_enabled and day.weekday() >= 5:
            return []

        samples = self.consumption_store.recent_samples(user_id, self.lookback_days)
        return list(suggest_times(samples, settings.active_window, settings.interval_minutes))

    def get_statistics(self, user_id: int, period_days: int) -> ReminderStatistics:
        return self.lifecycle.statistics(user_id, period_days)

    def get_history(self, user_id: int, filters=None, page: int = 1, limit: int = 20):
        return self.reminder_store.query(user_id, filters, page=page, limit=limit)

    # ─── Retention ────────────────────────────────────────────────────────────

    def purge_expired(self, retention_days: int) -> int:
        """
        Soft-delete reminders older than `retention_days`.

        scheduled_at is user-local, so each user's cutoff comes from their own clock.

        Returns:
            Number of rows hidden across all users.
        """
        hidden = 0
        for user_id in self.settings_store.user_ids():
            cutoff = self.clock.now(user_id) - timedelta(days=retention_days)
            hidden += self.reminder_store.soft_delete_before(cutoff, user_id=user_id)
        return hidden


def build_reminder_service(engine, clock=None, rng: Optional[random.Random] = None) -> ReminderService:
    """
    Build a ReminderService backed by the SQL stores.

    Args:
        engine: SQLAlchemy engine (SQLModel create_engine result).
        clock: optional clock override; defaults to SystemClock in each user's timezone.
        rng: optional random source for message selection.
    """
    from hydration.db.stores import SqlConsumptionStore, SqlReminderStore, SqlSettingsStore

    settings = get_settings()
    settings_store = SqlSettingsStore(engine, default_timezone=settings.default_timezone)
    clock = clock or SystemClock(settings_store.timezone_for, settings.default_timezone)
    return ReminderService(
        settings_store=settings_store,
        consumption_store=SqlConsumptionStore(
            engine, clock, default_goal_ml=settings.default_daily_goal_ml
        ),
        reminder_store=SqlReminderStore(engine),
        clock=clock,
        rng=rng,
        snooze_minutes=settings.snooze_minutes,
        lookback_days=settings.pattern_lookback_days,
    )
