"""
Reminder delivery adapters.

Push/email transport lives outside this service. A notifier only needs a
send(reminder) method that raises on failure; LogNotifier is the default
hand-off and records each delivery in the application log.
"""
import logging

from hydration.models.reminder import ReminderLog

logger = logging.getLogger(__name__)


class LogNotifier:
    """Delivers reminders by logging them."""

    def send(self, reminder: ReminderLog) -> None:
        channel = getattr(reminder.channel, "value", reminder.channel)
        logger.info(
            "Reminder %s -> user %s via %s: %s",
            reminder.id, reminder.user_id, channel, reminder.message,
        )
