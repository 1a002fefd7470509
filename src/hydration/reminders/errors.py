"""
Reminder error taxonomy.

    SettingsValidationError   bad settings at the update boundary (400)
    ReminderNotFoundError     unknown reminder id (404)
    InvalidStateTransition    out-of-order or duplicate lifecycle event (409)
    RemindersDisabledError    manual trigger while reminders are off (400)
    ScheduleConsistencyError  unvalidated settings reached the engine (fatal)

Storage errors are not wrapped; they propagate from SQLAlchemy unchanged.
"""
from typing import List, Optional


class SettingsValidationError(ValueError):
    """Raised when a settings update would leave the settings invalid."""

    def __init__(self, errors: List[str]):
        self.errors = list(errors)
        super().__init__("; ".join(self.errors))


class ReminderNotFoundError(LookupError):
    """Raised when a reminder id does not exist (or was soft-deleted)."""

    def __init__(self, reminder_id: int):
        self.reminder_id = reminder_id
        super().__init__(f"Reminder {reminder_id} not found")


class InvalidStateTransition(RuntimeError):
    """Raised when a lifecycle event does not apply to the reminder's current state."""

    def __init__(self, reminder_id: int, current: Optional[str], attempted: str):
        self.reminder_id = reminder_id
        self.current = current
        self.attempted = attempted
        super().__init__(
            f"Reminder {reminder_id}: cannot move from {current!r} to {attempted!r}"
        )


class RemindersDisabledError(RuntimeError):
    """Raised when a reminder is requested for a user who switched reminders off."""


class ScheduleConsistencyError(RuntimeError):
    """Raised when the engine receives settings the validator should have rejected."""
