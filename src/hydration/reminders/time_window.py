"""
Time-of-day window arithmetic for reminder scheduling.

A window is a pair of wall-clock times with no date or timezone attached;
callers pass user-local times. Two shapes exist:

    non-wrapping   start <= end     covers [start, end]
    wrapping       start >  end     covers [start, 24:00) + [00:00, end]

Active windows never wrap (validated at settings-update time). Quiet
windows may wrap past midnight, e.g. 22:00 -> 07:00.
"""
from dataclasses import dataclass
from datetime import date, datetime, time, timedelta


@dataclass(frozen=True)
class TimeWindow:
    """A daily [start, end] range of wall-clock times."""
    start: time
    end: time

    @property
    def wraps(self) -> bool:
        """True when the window runs past midnight into the next day."""
        return self.start > self.end

    @property
    def duration_minutes(self) -> int:
        minutes = _minutes(self.end) - _minutes(self.start)
        if self.wraps:
            minutes += 24 * 60
        return minutes


@dataclass(frozen=True)
class ClampResult:
    """Outcome of clamp_forward: the time, and whether it rolled to tomorrow."""
    time: time
    next_day: bool = False


def contains(window: TimeWindow, t: time) -> bool:
    """
    Check whether a time of day falls inside the window (both ends inclusive).

    Args:
        window: TimeWindow, possibly wrapping past midnight.
        t: time of day to test.

    Returns:
        True if t is inside the window.
    """
    if window.wraps:
        return t >= window.start or t <= window.end
    return window.start <= t <= window.end


def is_quiet(quiet_window: TimeWindow, t: time) -> bool:
    """True if reminders must be suppressed at time t."""
    return contains(quiet_window, t)


def covers_day(window: TimeWindow) -> bool:
    """True if the window leaves no minute of the day uncovered (e.g. 00:00-23:59)."""
    return window.duration_minutes >= 24 * 60 - 1


def clamp_forward(active_window: TimeWindow, t: time) -> ClampResult:
    """
    Move a time forward into the active window.

    - Before the window start: snap to the start, same day.
    - At or after the window end: snap to the start of the next day.
    - Otherwise unchanged.

    The result always satisfies contains(active_window, result.time).
    """
    if t < active_window.start:
        return ClampResult(time=active_window.start)
    if t >= active_window.end:
        return ClampResult(time=active_window.start, next_day=True)
    return ClampResult(time=t)


def window_end_after(window: TimeWindow, moment: datetime) -> datetime:
    """
    Return the instant the window containing `moment` ends.

    For a wrapping window entered before midnight the end falls on the
    following calendar day.
    """
    end_date = moment.date()
    if window.wraps and moment.time() >= window.start:
        end_date += timedelta(days=1)
    return at(end_date, window.end)


def at(day: date, t: time) -> datetime:
    """Combine a date and a time of day into a naive datetime."""
    return datetime.combine(day, t.replace(second=0, microsecond=0))


def format_time(t: time) -> str:
    """Format a time of day as "HH:MM"."""
    return f"{t.hour:02d}:{t.minute:02d}"


def _minutes(t: time) -> int:
    return t.hour * 60 + t.minute
