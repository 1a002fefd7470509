"""
ReminderLifecycle: the per-reminder state machine and its statistics.

    scheduled ──> sent ──> responded
        │           │
        └──> failed <┘

Every transition is a conditional update on the current status, so two
concurrent events for the same reminder cannot both win: the loser sees
the row already moved and is rejected (or ignored, for idempotent events).

Event handling per current status:

    event            scheduled   sent        responded   failed
    mark_sent        -> sent     no-op       no-op       no-op (warn)
    mark_failed      -> failed   -> failed   rejected    no-op
    record_response  rejected    -> responded rejected   rejected
"""
import logging
from dataclasses import asdict, dataclass
from datetime import datetime, timedelta
from typing import Iterable, Optional

from hydration.models.reminder import (
    Channel,
    ReminderLog,
    ReminderStatus,
    ResponseAction,
)
from hydration.reminders.errors import InvalidStateTransition, ReminderNotFoundError

logger = logging.getLogger(__name__)

SUPERSEDED = "superseded"


@dataclass
class ReminderStatistics:
    """Effectiveness of a user's reminders over a trailing period."""
    period_days: int
    total: int
    scheduled: int
    sent: int        # ever handed to delivery: currently sent or responded
    responded: int
    failed: int
    response_rate: float  # responded / sent, 0 when nothing was sent
    success_rate: float   # sent / total, 0 when there are no reminders
    avg_response_delay_minutes: Optional[float]
    total_amount_logged: float

    def as_dict(self) -> dict:
        return asdict(self)


@dataclass
class ResponseOutcome:
    reminder_id: int
    action: ResponseAction
    response_delay_minutes: int


def summarize(rows: Iterable[ReminderLog], period_days: int) -> ReminderStatistics:
    """
    Aggregate reminder rows into statistics.

    Division by zero is defined as 0 for both rates.
    """
    rows = list(rows)
    by_status = {status: 0 for status in ReminderStatus}
    for row in rows:
        by_status[ReminderStatus(row.status)] += 1

    responded = by_status[ReminderStatus.RESPONDED]
    sent = by_status[ReminderStatus.SENT] + responded
    total = len(rows)

    delays = [r.response_delay_minutes for r in rows if r.response_delay_minutes is not None]
    amount = sum(r.amount_logged or 0.0 for r in rows)

    return ReminderStatistics(
        period_days=period_days,
        total=total,
        scheduled=by_status[ReminderStatus.SCHEDULED],
        sent=sent,
        responded=responded,
        failed=by_status[ReminderStatus.FAILED],
        response_rate=responded / sent if sent else 0.0,
        success_rate=sent / total if total else 0.0,
        avg_response_delay_minutes=sum(delays) / len(delays) if delays else None,
        total_amount_logged=amount,
    )


class ReminderLifecycle:
    """Drives ReminderLog rows through their states via a reminder store."""

    def __init__(self, store, clock):
        """
        Args:
            store: SqlReminderStore (or any object with insert/get/update_status/rows_since/pending).
            clock: object with now(user_id) -> user-local datetime.
        """
        self.store = store
        self.clock = clock

    def get(self, reminder_id: int) -> ReminderLog:
        row = self.store.get(reminder_id)
        if row is None:
            raise ReminderNotFoundError(reminder_id)
        return row

    def create(
        self,
        user_id: int,
        scheduled_at: datetime,
        message: str,
        channel: Channel,
    ) -> int:
        """Insert a reminder in the scheduled state and return its id."""
        row = ReminderLog(
            user_id=user_id,
            scheduled_at=scheduled_at,
            message=message,
            channel=channel,
            status=ReminderStatus.SCHEDULED,
        )
        return self.store.insert(row)

    def mark_sent(self, reminder_id: int) -> None:
        """scheduled -> sent. Repeated calls are no-ops so delivery retries are safe."""
        row = self.get(reminder_id)
        if row.status != ReminderStatus.SCHEDULED:
            self._log_ignored(row, ReminderStatus.SENT)
            return

        moved = self.store.update_status(
            reminder_id,
            expected=[ReminderStatus.SCHEDULED],
            status=ReminderStatus.SENT,
            sent_at=self.clock.now(row.user_id),
        )
        if moved:
            logger.info("Reminder %s sent", reminder_id)
        else:
            self._log_ignored(self.get(reminder_id), ReminderStatus.SENT)

    def mark_failed(self, reminder_id: int, reason: str) -> None:
        """scheduled|sent -> failed."""
        row = self.get(reminder_id)
        if row.status == ReminderStatus.FAILED:
            logger.debug("Reminder %s already failed; ignoring", reminder_id)
            return

        moved = self.store.update_status(
            reminder_id,
            expected=[ReminderStatus.SCHEDULED, ReminderStatus.SENT],
            status=ReminderStatus.FAILED,
            failure_reason=reason,
        )
        if not moved:
            current = self.get(reminder_id).status
            if current == ReminderStatus.FAILED:
                return
            raise InvalidStateTransition(reminder_id, _value(current), ReminderStatus.FAILED.value)
        logger.info("Reminder %s failed: %s", reminder_id, reason)

    def record_response(
        self,
        reminder_id: int,
        action: ResponseAction,
        amount_logged: Optional[float] = None,
    ) -> ResponseOutcome:
        """
        sent -> responded.

        Raises:
            InvalidStateTransition: the reminder is not in the sent state,
                including when a concurrent response got there first.
        """
        row = self.get(reminder_id)
        action = ResponseAction(action)
        if row.status != ReminderStatus.SENT:
            raise InvalidStateTransition(reminder_id, _value(row.status), ReminderStatus.RESPONDED.value)

        responded_at = self.clock.now(row.user_id)
        delay = 0
        if row.sent_at is not None:
            delay = max(int((responded_at - row.sent_at) / timedelta(minutes=1)), 0)
        if action != ResponseAction.DRINK_LOGGED:
            amount_logged = None

        moved = self.store.update_status(
            reminder_id,
            expected=[ReminderStatus.SENT],
            status=ReminderStatus.RESPONDED,
            responded_at=responded_at,
            response_action=action,
            amount_logged=amount_logged,
            response_delay_minutes=delay,
        )
        if not moved:
            current = self.get(reminder_id).status
            raise InvalidStateTransition(reminder_id, _value(current), ReminderStatus.RESPONDED.value)

        logger.info(
            "Reminder %s responded with %s after %d min", reminder_id, action.value, delay
        )
        return ResponseOutcome(reminder_id=reminder_id, action=action, response_delay_minutes=delay)

    def supersede_pending(self, user_id: int) -> int:
        """Fail every still-scheduled reminder of a user. Returns how many were cancelled."""
        cancelled = 0
        for row in self.store.pending(user_id):
            moved = self.store.update_status(
                row.id,
                expected=[ReminderStatus.SCHEDULED],
                status=ReminderStatus.FAILED,
                failure_reason=SUPERSEDED,
            )
            cancelled += int(moved)
        if cancelled:
            logger.info("Superseded %d pending reminder(s) for user %s", cancelled, user_id)
        return cancelled

    def statistics(self, user_id: int, period_days: int) -> ReminderStatistics:
        since = self.clock.now(user_id) - timedelta(days=period_days)
        return summarize(self.store.rows_since(user_id, since), period_days)

    def _log_ignored(self, row: ReminderLog, attempted: ReminderStatus) -> None:
        if row.status in (ReminderStatus.SENT, ReminderStatus.RESPONDED):
            logger.debug("Reminder %s already %s; ignoring", row.id, _value(row.status))
        else:
            logger.warning(
                "Reminder %s is %s; cannot mark %s", row.id, _value(row.status), attempted.value
            )


def _value(status) -> str:
    return getattr(status, "value", status)
