"""
ScheduleEngine: decides when the next reminder fires and emits it.

Pipeline for one computation, all times user-local:

  1. Disabled settings         -> no reminder (not an error)
  2. Quiet hours all day       -> next day's window start (steps 3-5 skipped)
     `now` inside quiet window -> anchor moves to the end of the quiet window
  3. Candidate selection       -> smart mode: next pattern time after the
                                  anchor's hour; otherwise anchor + interval
  4. Candidate in quiet window -> pushed to the end of that quiet window, once;
                                  if the anchor already moved, next day's window start
  5. Active-window clamp       -> before start: start; at/after end: next day's start
  6. Weekend rule              -> weekend dates move to Monday's window start
  7. Message + channel         -> handed to ReminderLifecycle.create

Settings are read once at the start of a computation. The engine assumes
validated settings; anything out of range is a collaborator bug and raises
ScheduleConsistencyError without writing a row.
"""
import logging
import random
from datetime import date, datetime, time, timedelta
from typing import Iterable, Optional

from hydration.models.reminder import Channel, ReminderLog, ReminderSettings
from hydration.reminders.errors import ScheduleConsistencyError
from hydration.reminders.messages import generate_message, progress_ratio
from hydration.reminders.patterns import ConsumptionSample, suggest_times
from hydration.reminders.time_window import (
    at,
    clamp_forward,
    covers_day,
    is_quiet,
    window_end_after,
)
from hydration.reminders.validation import interval_in_range

logger = logging.getLogger(__name__)

_SATURDAY = 5


def check_consistency(settings: ReminderSettings) -> None:
    """Reject settings that should never have passed the validator."""
    problems = []
    if not interval_in_range(settings.interval_minutes):
        problems.append(f"interval_minutes={settings.interval_minutes}")
    if settings.start_time >= settings.end_time:
        problems.append(f"active window {settings.start_time}-{settings.end_time}")
    if not settings.channels:
        problems.append("no channels")
    if problems:
        logger.error(
            "Unvalidated reminder settings for user %s: %s",
            settings.user_id, ", ".join(problems),
        )
        raise ScheduleConsistencyError(
            f"Reminder settings for user {settings.user_id} out of range: "
            + ", ".join(problems)
        )


def next_reminder_time(
    settings: ReminderSettings,
    now: datetime,
    samples: Iterable[ConsumptionSample] = (),
) -> datetime:
    """
    Compute the next reminder instant from `now`.

    Args:
        settings: validated ReminderSettings.
        now: user-local current time.
        samples: recent consumption samples (used only in smart mode).

    Returns:
        Naive user-local datetime of the next reminder.
    """
    check_consistency(settings)

    if covers_day(settings.quiet_window):
        logger.debug("User %s has quiet hours all day; pausing until tomorrow", settings.user_id)
        return _next_day_start(settings, now)

    anchor = now
    if is_quiet(settings.quiet_window, now.time()):
        anchor = window_end_after(settings.quiet_window, now)
        logger.debug("User %s in quiet hours; anchoring at %s", settings.user_id, anchor)

    candidate = _select_candidate(settings, anchor, samples)
    if anchor != now and is_quiet(settings.quiet_window, candidate.time()):
        # quiet end already used once; no second push past another quiet window
        return _next_day_start(settings, now)
    return settle(settings, candidate)


def settle(settings: ReminderSettings, candidate: datetime) -> datetime:
    """Apply the quiet, active-window and weekend rules to a raw candidate."""
    if covers_day(settings.quiet_window):
        return _next_day_start(settings, candidate)
    if is_quiet(settings.quiet_window, candidate.time()):
        candidate = window_end_after(settings.quiet_window, candidate)

    clamped = clamp_forward(settings.active_window, candidate.time())
    day = candidate.date()
    if clamped.next_day:
        day += timedelta(days=1)
    return _skip_weekend(settings, day, clamped.time)


def _next_day_start(settings: ReminderSettings, moment: datetime) -> datetime:
    return _skip_weekend(settings, moment.date() + timedelta(days=1), settings.start_time)


def _skip_weekend(settings: ReminderSettings, day: date, t: time) -> datetime:
    if not settings.weekend_enabled and day.weekday() >= _SATURDAY:
        day += timedelta(days=7 - day.weekday())
        return at(day, settings.start_time)
    return at(day, t)


def pick_channel(settings: ReminderSettings) -> Channel:
    """First enabled channel in push, sound, vibration, email order."""
    enabled = {str(getattr(c, "value", c)) for c in settings.channels}
    for channel in Channel:
        if channel.value in enabled:
            return channel
    raise ScheduleConsistencyError(f"User {settings.user_id} has no usable channel")


def _select_candidate(
    settings: ReminderSettings,
    anchor: datetime,
    samples: Iterable[ConsumptionSample],
) -> datetime:
    if settings.smart_mode:
        times = sorted({
            s.time for s in suggest_times(
                samples, settings.active_window, settings.interval_minutes
            )
        })
        later = [t for t in times if t.hour > anchor.hour]
        if later:
            return at(anchor.date(), later[0])
        if times:
            return at(anchor.date() + timedelta(days=1), times[0])
    return anchor + timedelta(minutes=settings.interval_minutes)


class ScheduleEngine:
    """Computes and emits the next reminder for a user."""

    def __init__(
        self,
        settings_store,
        consumption_store,
        lifecycle,
        clock,
        rng: Optional[random.Random] = None,
        lookback_days: int = 30,
    ):
        """
        Args:
            settings_store: object with get(user_id) -> ReminderSettings | None.
            consumption_store: object with recent_samples(user_id, days),
                today_intake(user_id, day) and daily_goal(user_id).
            lifecycle: ReminderLifecycle used to persist the emitted reminder.
            clock: object with now(user_id) -> user-local datetime.
            rng: random source for message selection.
            lookback_days: history window for pattern analysis.
        """
        self.settings_store = settings_store
        self.consumption_store = consumption_store
        self.lifecycle = lifecycle
        self.clock = clock
        self.rng = rng
        self.lookback_days = lookback_days

    def compute(self, user_id: int) -> Optional[ReminderLog]:
        """
        Schedule the user's next reminder.

        Returns:
            The new ReminderLog row, or None when reminders are disabled.
        """
        settings = self.settings_store.get(user_id)
        if settings is None or not settings.enabled:
            logger.debug("Reminders disabled for user %s; nothing scheduled", user_id)
            return None

        now = self.clock.now(user_id)
        samples = []
        if settings.smart_mode:
            samples = list(self.consumption_store.recent_samples(user_id, self.lookback_days))

        scheduled_at = next_reminder_time(settings, now, samples)
        return self._emit(settings, scheduled_at, now)

    def snooze(self, user_id: int, minutes: int) -> Optional[ReminderLog]:
        """Schedule a follow-up `minutes` from now, still honoring quiet/active/weekend rules."""
        settings = self.settings_store.get(user_id)
        if settings is None or not settings.enabled:
            return None

        check_consistency(settings)
        now = self.clock.now(user_id)
        scheduled_at = settle(settings, now + timedelta(minutes=minutes))
        return self._emit(settings, scheduled_at, now)

    def _emit(self, settings: ReminderSettings, scheduled_at: datetime, now: datetime) -> ReminderLog:
        user_id = settings.user_id
        ratio = progress_ratio(
            self.consumption_store.today_intake(user_id, now.date()),
            self.consumption_store.daily_goal(user_id),
        )
        message = generate_message(ratio, self.rng)
        channel = pick_channel(settings)

        reminder_id = self.lifecycle.create(user_id, scheduled_at, message, channel)
        logger.info(
            "Scheduled reminder %s for user %s at %s via %s (progress %.0f%%)",
            reminder_id, user_id, scheduled_at.isoformat(), channel.value, ratio * 100,
        )
        return self.lifecycle.get(reminder_id)
