"""Drink record and daily goal routes."""
from datetime import date, datetime, time, timedelta
from typing import List, Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field
from sqlmodel import Session, select

from hydration.api.routes.reminders import get_reminder_service, get_user_id
from hydration.db.engine import get_session
from hydration.models.hydration import HydrationGoal, HydrationRecord
from hydration.reminders.messages import progress_ratio
from hydration.reminders.service import ReminderService

router = APIRouter()


class RecordRequest(BaseModel):
    amount_ml: float = Field(gt=0, le=5000)
    drink_type: str = "water"
    source: str = "manual"
    recorded_at: Optional[datetime] = None  # user-local; defaults to now
    note: Optional[str] = None


class GoalRequest(BaseModel):
    daily_goal_ml: int = Field(ge=500, le=10000)


class TodayResponse(BaseModel):
    date: date
    total_ml: float
    daily_goal_ml: int
    progress: float


@router.post("/records", response_model=HydrationRecord)
def add_record(
    request: RecordRequest,
    session: Session = Depends(get_session),
    service: ReminderService = Depends(get_reminder_service),
    user_id: int = Depends(get_user_id),
):
    """Log a drink."""
    record = HydrationRecord(
        user_id=user_id,
        amount_ml=request.amount_ml,
        drink_type=request.drink_type,
        source=request.source,
        recorded_at=request.recorded_at or service.clock.now(user_id),
        note=request.note,
    )
    session.add(record)
    session.commit()
    session.refresh(record)
    return record


@router.get("/records", response_model=List[HydrationRecord])
def list_records(
    day: Optional[date] = None,
    limit: int = 50,
    offset: int = 0,
    session: Session = Depends(get_session),
    user_id: int = Depends(get_user_id),
):
    """List drink records, newest first, optionally for a single day."""
    query = (
        select(HydrationRecord)
        .where(HydrationRecord.user_id == user_id)
        .where(HydrationRecord.deleted_at == None)  # noqa: E711
    )
    if day:
        start = datetime.combine(day, time.min)
        query = query.where(HydrationRecord.recorded_at >= start).where(
            HydrationRecord.recorded_at < start + timedelta(days=1)
        )
    return session.exec(
        query.order_by(HydrationRecord.recorded_at.desc()).offset(offset).limit(limit)
    ).all()


@router.get("/today", response_model=TodayResponse)
def today_progress(
    day: Optional[date] = None,
    service: ReminderService = Depends(get_reminder_service),
    user_id: int = Depends(get_user_id),
):
    """Total intake for a day against the active goal."""
    day = day or service.clock.now(user_id).date()
    total = service.consumption_store.today_intake(user_id, day)
    goal = service.consumption_store.daily_goal(user_id)
    return TodayResponse(
        date=day,
        total_ml=total,
        daily_goal_ml=int(goal),
        progress=progress_ratio(total, goal),
    )


@router.put("/goal", response_model=HydrationGoal)
def set_goal(
    request: GoalRequest,
    service: ReminderService = Depends(get_reminder_service),
    user_id: int = Depends(get_user_id),
):
    """Replace the active daily goal."""
    return service.consumption_store.set_daily_goal(user_id, request.daily_goal_ml)
