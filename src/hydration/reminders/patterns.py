"""
Drinking-pattern analysis for smart reminders.

Groups a user's recent drink records by hour of day. Hours the user
reliably drinks at (>= 3 records in the lookback window) become candidate
reminder times, most frequent first. With no reliable hour the analyzer
falls back to evenly spaced times across the active window.

suggest_times() is a generator: each call recomputes from the samples it
is given and holds no state between calls.
"""
from collections import Counter
from dataclasses import dataclass
from datetime import datetime, time
from typing import Dict, Iterable, Iterator

from hydration.reminders.time_window import TimeWindow, contains

MIN_OCCURRENCES = 3
MAX_SUGGESTIONS = 8
DEFAULT_CONFIDENCE = 0.5
CONFIDENCE_SATURATION = 10  # occurrences at which confidence reaches 1.0

HISTORICAL_PATTERN = "historical_pattern"
DEFAULT_INTERVAL = "default_interval"


@dataclass(frozen=True)
class ConsumptionSample:
    """One drink record reduced to what pattern analysis needs."""
    hour: int  # 0-23, user-local
    amount: float
    timestamp: datetime


@dataclass(frozen=True)
class Suggestion:
    """A candidate reminder time of day."""
    time: time
    confidence: float  # 0.0-1.0
    reason: str        # HISTORICAL_PATTERN or DEFAULT_INTERVAL
    frequency: int = 0  # samples observed at this hour (0 for interval fallback)


def hourly_frequency(samples: Iterable[ConsumptionSample]) -> Dict[int, int]:
    """Count samples per hour of day."""
    return dict(Counter(s.hour for s in samples))


def suggest_times(
    samples: Iterable[ConsumptionSample],
    active_window: TimeWindow,
    interval_minutes: int,
) -> Iterator[Suggestion]:
    """
    Yield candidate reminder times for a user.

    Args:
        samples: ConsumptionSamples from the lookback window (normally 30 days).
        active_window: the user's active window; pattern hours outside it are skipped.
        interval_minutes: step used by the fallback sequence.

    Yields:
        Suggestions ordered by descending frequency, ties broken by earlier
        hour; or, without a reliable pattern, stepped times from the window
        start to the window end.
    """
    counts = hourly_frequency(samples)
    reliable = [
        (hour, n) for hour, n in counts.items() if n >= MIN_OCCURRENCES
    ]

    if not reliable:
        yield from _interval_steps(active_window, interval_minutes)
        return

    reliable.sort(key=lambda item: (-item[1], item[0]))
    for hour, n in reliable[:MAX_SUGGESTIONS]:
        candidate = time(hour, 0)
        if contains(active_window, candidate):
            yield Suggestion(
                time=candidate,
                confidence=min(n / CONFIDENCE_SATURATION, 1.0),
                reason=HISTORICAL_PATTERN,
                frequency=n,
            )


def _interval_steps(active_window: TimeWindow, interval_minutes: int) -> Iterator[Suggestion]:
    if interval_minutes <= 0:
        raise ValueError(f"interval_minutes must be positive, got {interval_minutes}")

    start = active_window.start.hour * 60 + active_window.start.minute
    end = active_window.end.hour * 60 + active_window.end.minute
    for minute in range(start, end + 1, interval_minutes):
        yield Suggestion(
            time=time(minute // 60, minute % 60),
            confidence=DEFAULT_CONFIDENCE,
            reason=DEFAULT_INTERVAL,
        )
