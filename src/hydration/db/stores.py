"""
SQLModel-backed stores consumed by the reminder core.

Each store owns an engine and opens a short-lived Session per call, the same
way the sync services do. Nothing here retries: SQLAlchemy errors propagate
to the caller unchanged.

Reminder status changes go through update_status(), a single conditional
UPDATE ... WHERE status IN (expected). Concurrent transitions on the same
row are therefore serialized by the database; the loser sees rowcount 0.
"""
import logging
import math
from dataclasses import dataclass, field
from datetime import date, datetime, time, timedelta
from typing import List, Optional, Sequence

from sqlalchemy import func, update
from sqlmodel import Session, select

from hydration.models.hydration import HydrationGoal, HydrationRecord
from hydration.models.reminder import (
    Channel,
    ReminderLog,
    ReminderSettings,
    ReminderStatus,
    SettingsUpdate,
)
from hydration.reminders.patterns import ConsumptionSample
from hydration.reminders.validation import validate_settings

logger = logging.getLogger(__name__)

MAX_PAGE_SIZE = 100


# ─── Settings ─────────────────────────────────────────────────────────────────

class SqlSettingsStore:
    """Per-user ReminderSettings rows."""

    def __init__(self, engine, default_timezone: str = "UTC"):
        self.engine = engine
        self.default_timezone = default_timezone

    def get(self, user_id: int) -> Optional[ReminderSettings]:
        with Session(self.engine) as s:
            return s.exec(
                select(ReminderSettings).where(ReminderSettings.user_id == user_id)
            ).first()

    def create_default(self, user_id: int) -> ReminderSettings:
        """Insert the registration-time defaults for a user."""
        settings = ReminderSettings(user_id=user_id, timezone=self.default_timezone)
        with Session(self.engine) as s:
            s.add(settings)
            s.commit()
            s.refresh(settings)
        logger.info("Default reminder settings created for user %s", user_id)
        return settings

    def get_or_create(self, user_id: int) -> ReminderSettings:
        return self.get(user_id) or self.create_default(user_id)

    def update(self, user_id: int, patch: SettingsUpdate) -> ReminderSettings:
        """
        Apply a partial update and persist it.

        The merged row is validated before commit; on failure nothing is written.

        Raises:
            SettingsValidationError: the merged settings break an invariant.
        """
        changes = patch.changes()
        with Session(self.engine) as s:
            settings = s.exec(
                select(ReminderSettings).where(ReminderSettings.user_id == user_id)
            ).first()
            if settings is None:
                settings = ReminderSettings(user_id=user_id, timezone=self.default_timezone)

            for key, value in changes.items():
                setattr(settings, key, value)
            validate_settings(settings)

            settings.updated_at = datetime.utcnow()
            s.add(settings)
            s.commit()
            s.refresh(settings)

        logger.info("Reminder settings updated for user %s: %s", user_id, sorted(changes))
        return settings

    def timezone_for(self, user_id: int) -> Optional[str]:
        settings = self.get(user_id)
        return settings.timezone if settings else None

    def user_ids(self) -> List[int]:
        """Every user with settings on file, enabled or not."""
        with Session(self.engine) as s:
            return list(s.exec(select(ReminderSettings.user_id)).all())

    def enabled_user_ids(self) -> List[int]:
        with Session(self.engine) as s:
            return list(s.exec(
                select(ReminderSettings.user_id).where(ReminderSettings.enabled == True)  # noqa: E712
            ).all())


# ─── Consumption ──────────────────────────────────────────────────────────────

class SqlConsumptionStore:
    """Read side of drink records and goals, plus the reminder-response write path."""

    def __init__(self, engine, clock, default_goal_ml: float = 2000):
        self.engine = engine
        self.clock = clock
        self.default_goal_ml = default_goal_ml

    def recent_samples(self, user_id: int, days: int) -> List[ConsumptionSample]:
        since = self.clock.now(user_id) - timedelta(days=days)
        with Session(self.engine) as s:
            records = s.exec(
                select(HydrationRecord)
                .where(HydrationRecord.user_id == user_id)
                .where(HydrationRecord.recorded_at >= since)
                .where(HydrationRecord.deleted_at == None)  # noqa: E711
                .order_by(HydrationRecord.recorded_at)
            ).all()
        return [
            ConsumptionSample(hour=r.recorded_at.hour, amount=r.amount_ml, timestamp=r.recorded_at)
            for r in records
        ]

    def today_intake(self, user_id: int, day: date) -> float:
        start = datetime.combine(day, time.min)
        with Session(self.engine) as s:
            total = s.exec(
                select(func.coalesce(func.sum(HydrationRecord.amount_ml), 0.0))
                .where(HydrationRecord.user_id == user_id)
                .where(HydrationRecord.recorded_at >= start)
                .where(HydrationRecord.recorded_at < start + timedelta(days=1))
                .where(HydrationRecord.deleted_at == None)  # noqa: E711
            ).one()
        return float(total)

    def daily_goal(self, user_id: int) -> float:
        with Session(self.engine) as s:
            goal = s.exec(
                select(HydrationGoal)
                .where(HydrationGoal.user_id == user_id)
                .where(HydrationGoal.is_active == True)  # noqa: E712
                .order_by(HydrationGoal.created_at.desc(), HydrationGoal.id.desc())
            ).first()
        if goal is None or goal.daily_goal_ml <= 0:
            return float(self.default_goal_ml)
        return float(goal.daily_goal_ml)

    def set_daily_goal(self, user_id: int, daily_goal_ml: int) -> HydrationGoal:
        """Deactivate the current goal(s) and make `daily_goal_ml` the active one."""
        with Session(self.engine) as s:
            for old in s.exec(
                select(HydrationGoal)
                .where(HydrationGoal.user_id == user_id)
                .where(HydrationGoal.is_active == True)  # noqa: E712
            ).all():
                old.is_active = False
                s.add(old)

            goal = HydrationGoal(user_id=user_id, daily_goal_ml=daily_goal_ml)
            s.add(goal)
            s.commit()
            s.refresh(goal)
        logger.info("Daily goal for user %s set to %d ml", user_id, daily_goal_ml)
        return goal

    def add_record(
        self,
        user_id: int,
        amount_ml: float,
        *,
        source: str = "manual",
        drink_type: str = "water",
        recorded_at: Optional[datetime] = None,
    ) -> HydrationRecord:
        record = HydrationRecord(
            user_id=user_id,
            amount_ml=amount_ml,
            source=source,
            drink_type=drink_type,
            recorded_at=recorded_at or self.clock.now(user_id),
        )
        with Session(self.engine) as s:
            s.add(record)
            s.commit()
            s.refresh(record)
        return record


# ─── Reminder log ─────────────────────────────────────────────────────────────

@dataclass
class HistoryFilters:
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    status: Optional[ReminderStatus] = None
    channel: Optional[Channel] = None


@dataclass
class Page:
    items: List[ReminderLog] = field(default_factory=list)
    page: int = 1
    limit: int = 20
    total: int = 0

    @property
    def pages(self) -> int:
        return math.ceil(self.total / self.limit) if self.limit else 0


class SqlReminderStore:
    """ReminderLog persistence. Soft-deleted rows are invisible to every read."""

    def __init__(self, engine):
        self.engine = engine

    def insert(self, row: ReminderLog) -> int:
        with Session(self.engine) as s:
            s.add(row)
            s.commit()
            s.refresh(row)
            return row.id

    def get(self, reminder_id: int) -> Optional[ReminderLog]:
        with Session(self.engine) as s:
            row = s.get(ReminderLog, reminder_id)
        if row is None or row.deleted_at is not None:
            return None
        return row

    def update_status(
        self,
        reminder_id: int,
        *,
        expected: Sequence[ReminderStatus],
        status: ReminderStatus,
        **changes,
    ) -> bool:
        """
        Move a reminder to `status` only if it is currently in one of `expected`.

        Returns:
            True if the row was updated, False if its status had already moved.
        """
        stmt = (
            update(ReminderLog)
            .where(ReminderLog.id == reminder_id)
            .where(ReminderLog.status.in_(list(expected)))
            .where(ReminderLog.deleted_at == None)  # noqa: E711
            .values(status=status, updated_at=datetime.utcnow(), **changes)
        )
        with self.engine.begin() as conn:
            result = conn.execute(stmt)
        return result.rowcount == 1

    def query(
        self,
        user_id: int,
        filters: Optional[HistoryFilters] = None,
        page: int = 1,
        limit: int = 20,
    ) -> Page:
        """Newest-first page of a user's reminders."""
        filters = filters or HistoryFilters()
        page = max(page, 1)
        limit = max(1, min(limit, MAX_PAGE_SIZE))

        conditions = [ReminderLog.user_id == user_id, ReminderLog.deleted_at == None]  # noqa: E711
        if filters.start_date:
            conditions.append(ReminderLog.scheduled_at >= datetime.combine(filters.start_date, time.min))
        if filters.end_date:
            conditions.append(
                ReminderLog.scheduled_at < datetime.combine(filters.end_date + timedelta(days=1), time.min)
            )
        if filters.status:
            conditions.append(ReminderLog.status == filters.status)
        if filters.channel:
            conditions.append(ReminderLog.channel == filters.channel)

        with Session(self.engine) as s:
            total = s.exec(select(func.count(ReminderLog.id)).where(*conditions)).one()
            items = s.exec(
                select(ReminderLog)
                .where(*conditions)
                .order_by(ReminderLog.scheduled_at.desc(), ReminderLog.id.desc())
                .offset((page - 1) * limit)
                .limit(limit)
            ).all()
        return Page(items=list(items), page=page, limit=limit, total=total)

    def rows_since(self, user_id: int, since: datetime) -> List[ReminderLog]:
        with Session(self.engine) as s:
            return list(s.exec(
                select(ReminderLog)
                .where(ReminderLog.user_id == user_id)
                .where(ReminderLog.scheduled_at >= since)
                .where(ReminderLog.deleted_at == None)  # noqa: E711
            ).all())

    def pending(self, user_id: int) -> List[ReminderLog]:
        """Reminders still waiting to be delivered, earliest first."""
        with Session(self.engine) as s:
            return list(s.exec(
                select(ReminderLog)
                .where(ReminderLog.user_id == user_id)
                .where(ReminderLog.status == ReminderStatus.SCHEDULED)
                .where(ReminderLog.deleted_at == None)  # noqa: E711
                .order_by(ReminderLog.scheduled_at)
            ).all())

    def due(self, user_id: int, now: datetime) -> List[ReminderLog]:
        return [r for r in self.pending(user_id) if r.scheduled_at <= now]

    def soft_delete_before(self, cutoff: datetime, user_id: Optional[int] = None) -> int:
        """Hide reminders scheduled before `cutoff`, optionally for one user only.

        Returns:
            The number of rows hidden.
        """
        stmt = (
            update(ReminderLog)
            .where(ReminderLog.scheduled_at < cutoff)
            .where(ReminderLog.deleted_at == None)  # noqa: E711
            .values(deleted_at=datetime.utcnow())
        )
        if user_id is not None:
            stmt = stmt.where(ReminderLog.user_id == user_id)
        with self.engine.begin() as conn:
            result = conn.execute(stmt)
        return result.rowcount
