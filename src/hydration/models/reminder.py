"""Reminder data models: per-user settings, reminder log rows, and the settings patch."""
from datetime import datetime, time
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, ConfigDict
from sqlalchemy import JSON, Column
from sqlmodel import Field, SQLModel

from hydration.reminders.time_window import TimeWindow


class Channel(str, Enum):
    PUSH = "push"
    SOUND = "sound"
    VIBRATION = "vibration"
    EMAIL = "email"


class Intensity(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class ReminderStatus(str, Enum):
    SCHEDULED = "scheduled"
    SENT = "sent"
    FAILED = "failed"
    RESPONDED = "responded"


class ResponseAction(str, Enum):
    DRINK_LOGGED = "drink_logged"
    SNOOZE = "snooze"
    DISMISS = "dismiss"
    DISABLED = "disabled"


DEFAULT_CHANNELS = [Channel.PUSH.value, Channel.SOUND.value]


class ReminderSettings(SQLModel, table=True):
    """One row per user. Created with defaults at registration, patched afterwards."""

    id: Optional[int] = Field(default=None, primary_key=True)
    user_id: int = Field(default=1, unique=True, index=True)

    enabled: bool = True
    start_time: time = Field(default=time(8, 0))
    end_time: time = Field(default=time(22, 0))
    quiet_start: time = Field(default=time(22, 0))
    quiet_end: time = Field(default=time(8, 0))  # may be earlier than quiet_start (wraps midnight)
    interval_minutes: int = 120
    smart_mode: bool = True
    weekend_enabled: bool = True
    channels: List[str] = Field(
        default_factory=lambda: list(DEFAULT_CHANNELS),
        sa_column=Column(JSON, nullable=False),
    )
    intensity: Intensity = Intensity.MEDIUM
    timezone: str = "UTC"  # IANA zone used by the clock to produce user-local "now"

    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: Optional[datetime] = None

    @property
    def active_window(self) -> TimeWindow:
        return TimeWindow(self.start_time, self.end_time)

    @property
    def quiet_window(self) -> TimeWindow:
        return TimeWindow(self.quiet_start, self.quiet_end)


class ReminderLog(SQLModel, table=True):
    """
    One row per reminder. Status only moves forward:
    scheduled -> sent -> responded, with failed reachable from scheduled or sent.
    """

    id: Optional[int] = Field(default=None, primary_key=True)
    user_id: int = Field(default=1, index=True)

    scheduled_at: datetime = Field(index=True)  # user-local
    sent_at: Optional[datetime] = None
    responded_at: Optional[datetime] = None

    status: ReminderStatus = Field(default=ReminderStatus.SCHEDULED, index=True)
    channel: Channel = Channel.PUSH
    message: str

    response_action: Optional[ResponseAction] = None
    amount_logged: Optional[float] = None  # ml; only set for drink_logged
    response_delay_minutes: Optional[int] = None
    failure_reason: Optional[str] = None

    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: Optional[datetime] = None
    deleted_at: Optional[datetime] = None  # retention soft delete


class SettingsUpdate(BaseModel):
    """Partial update: exactly the mutable settings fields, unknown keys rejected."""

    model_config = ConfigDict(extra="forbid")

    enabled: Optional[bool] = None
    start_time: Optional[time] = None
    end_time: Optional[time] = None
    quiet_start: Optional[time] = None
    quiet_end: Optional[time] = None
    interval_minutes: Optional[int] = None
    smart_mode: Optional[bool] = None
    weekend_enabled: Optional[bool] = None
    channels: Optional[List[Channel]] = None
    intensity: Optional[Intensity] = None
    timezone: Optional[str] = None

    def changes(self) -> dict:
        """Fields explicitly provided by the caller, with enums flattened to values."""
        data = self.model_dump(exclude_unset=True, exclude_none=True)
        if "channels" in data and data["channels"] is not None:
            data["channels"] = [Channel(c).value for c in data["channels"]]
        return data
