"""Drink records and daily goals: the consumption data reminders are personalized from."""
from datetime import datetime
from typing import Optional

from sqlmodel import Field, SQLModel


class HydrationRecord(SQLModel, table=True):
    """One logged drink."""

    id: Optional[int] = Field(default=None, primary_key=True)
    user_id: int = Field(default=1, index=True)
    amount_ml: float
    drink_type: str = "water"
    source: str = "manual"  # "manual", "quick_add", "reminder_response"
    recorded_at: datetime = Field(index=True)  # user-local
    note: Optional[str] = None

    created_at: datetime = Field(default_factory=datetime.utcnow)
    deleted_at: Optional[datetime] = None


class HydrationGoal(SQLModel, table=True):
    """Daily intake target. Only the newest active row per user counts."""

    id: Optional[int] = Field(default=None, primary_key=True)
    user_id: int = Field(default=1, index=True)
    daily_goal_ml: int = 2000
    is_active: bool = True
    created_at: datetime = Field(default_factory=datetime.utcnow)
