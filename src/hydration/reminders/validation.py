"""
Settings validation.

Runs at the update boundary on the merged result (stored row + patch), so a
patch touching only `start_time` is still checked against the stored
`end_time`. The engine re-checks only the cheap numeric invariants.
"""
from datetime import timedelta
from typing import List
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from hydration.models.reminder import Channel, Intensity, ReminderSettings
from hydration.reminders.errors import SettingsValidationError

MIN_INTERVAL_MINUTES = 30
MAX_INTERVAL_MINUTES = 480
MIN_ACTIVE_WINDOW = timedelta(hours=1)

_VALID_CHANNELS = {c.value for c in Channel}
_VALID_INTENSITIES = {i.value for i in Intensity}


def interval_in_range(minutes: int) -> bool:
    return MIN_INTERVAL_MINUTES <= minutes <= MAX_INTERVAL_MINUTES


def settings_errors(settings: ReminderSettings) -> List[str]:
    """
    Collect every invariant violation in a settings row.

    Args:
        settings: ReminderSettings (persisted or not).

    Returns:
        Human-readable messages; empty when the settings are valid.
    """
    errors = []

    if not interval_in_range(settings.interval_minutes):
        errors.append(
            f"interval_minutes must be between {MIN_INTERVAL_MINUTES} "
            f"and {MAX_INTERVAL_MINUTES}"
        )

    active = settings.active_window
    if active.start >= active.end:
        errors.append("end_time must be later than start_time")
    elif active.duration_minutes < MIN_ACTIVE_WINDOW.total_seconds() / 60:
        errors.append("active window must span at least 1 hour")

    if settings.quiet_start == settings.quiet_end:
        errors.append("quiet_start and quiet_end must differ")

    channels = list(settings.channels or [])
    if not channels:
        errors.append("at least one reminder channel is required")
    invalid = [c for c in channels if str(getattr(c, "value", c)) not in _VALID_CHANNELS]
    if invalid:
        errors.append(f"invalid reminder channels: {', '.join(map(str, invalid))}")
    if len(set(channels)) != len(channels):
        errors.append("reminder channels must not repeat")

    if str(getattr(settings.intensity, "value", settings.intensity)) not in _VALID_INTENSITIES:
        errors.append(f"invalid intensity: {settings.intensity}")

    try:
        ZoneInfo(settings.timezone)
    except (ZoneInfoNotFoundError, ValueError):
        errors.append(f"unknown timezone: {settings.timezone}")

    return errors


def validate_settings(settings: ReminderSettings) -> None:
    """Raise SettingsValidationError if the settings break any invariant."""
    errors = settings_errors(settings)
    if errors:
        raise SettingsValidationError(errors)
