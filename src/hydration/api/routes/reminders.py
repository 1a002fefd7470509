"""Reminder settings, scheduling, delivery callbacks, responses and statistics."""
from datetime import date
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from pydantic import BaseModel, Field, model_validator

from hydration.config import get_settings
from hydration.db.engine import get_engine
from hydration.db.stores import HistoryFilters
from hydration.models.reminder import (
    Channel,
    ReminderLog,
    ReminderSettings,
    ReminderStatus,
    ResponseAction,
    SettingsUpdate,
)
from hydration.reminders.errors import (
    InvalidStateTransition,
    ReminderNotFoundError,
    RemindersDisabledError,
    SettingsValidationError,
)
from hydration.reminders.service import ReminderService, build_reminder_service
from hydration.reminders.time_window import format_time

router = APIRouter()

STATISTICS_PERIODS = {"7d": 7, "30d": 30, "3m": 90}


def get_reminder_service() -> ReminderService:
    """FastAPI dependency: service bound to the app engine."""
    return build_reminder_service(get_engine())


def get_user_id() -> int:
    return get_settings().user_id


class RespondRequest(BaseModel):
    response_action: ResponseAction
    amount_logged: Optional[float] = Field(default=None, ge=0, le=5000)

    @model_validator(mode="after")
    def _amount_required_for_drink(self):
        if self.response_action == ResponseAction.DRINK_LOGGED and not self.amount_logged:
            raise ValueError("amount_logged is required when response_action is drink_logged")
        return self


class RespondResponse(BaseModel):
    response_action: ResponseAction
    response_delay_minutes: int


class FailureRequest(BaseModel):
    reason: str = "delivery_failed"


class SuggestionResponse(BaseModel):
    time: str
    confidence: float
    reason: str


class HistoryResponse(BaseModel):
    data: List[ReminderLog]
    page: int
    limit: int
    total: int
    pages: int


@router.get("/settings", response_model=ReminderSettings)
def read_settings(
    service: ReminderService = Depends(get_reminder_service),
    user_id: int = Depends(get_user_id),
):
    """Current reminder settings; defaults are created on first read."""
    return service.get_settings(user_id)


@router.put("/settings", response_model=ReminderSettings)
def update_settings(
    update: SettingsUpdate,
    service: ReminderService = Depends(get_reminder_service),
    user_id: int = Depends(get_user_id),
):
    """Patch reminder settings. Pending reminders are superseded."""
    if not update.changes():
        raise HTTPException(status_code=400, detail="No settings to update")
    try:
        return service.update_settings(user_id, update)
    except SettingsValidationError as exc:
        raise HTTPException(status_code=400, detail=exc.errors)


@router.get("/history", response_model=HistoryResponse)
def reminder_history(
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=20, ge=1, le=100),
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
    status: Optional[ReminderStatus] = None,
    channel: Optional[Channel] = None,
    service: ReminderService = Depends(get_reminder_service),
    user_id: int = Depends(get_user_id),
):
    """Paginated reminder log, newest first."""
    filters = HistoryFilters(
        start_date=start_date, end_date=end_date, status=status, channel=channel
    )
    result = service.get_history(user_id, filters, page=page, limit=limit)
    return HistoryResponse(
        data=result.items,
        page=result.page,
        limit=result.limit,
        total=result.total,
        pages=result.pages,
    )


@router.post("/schedule", response_model=Optional[ReminderLog])
def schedule_next(
    service: ReminderService = Depends(get_reminder_service),
    user_id: int = Depends(get_user_id),
):
    """Schedule the next reminder. Returns null when reminders are disabled."""
    return service.schedule_next(user_id)


@router.post("/trigger", response_model=ReminderLog)
def trigger_reminder(
    service: ReminderService = Depends(get_reminder_service),
    user_id: int = Depends(get_user_id),
):
    """Send a reminder right now."""
    try:
        return service.trigger_now(user_id)
    except RemindersDisabledError as exc:
        raise HTTPException(status_code=400, detail=str(exc))


@router.post("/{reminder_id}/delivered")
def reminder_delivered(
    reminder_id: int,
    service: ReminderService = Depends(get_reminder_service),
):
    """Delivery callback. Safe to repeat."""
    try:
        service.on_delivered(reminder_id)
    except ReminderNotFoundError as exc:
        raise HTTPException(status_code=404, detail=str(exc))
    return {"reminder_id": reminder_id, "status": ReminderStatus.SENT.value}


@router.post("/{reminder_id}/failed")
def reminder_failed(
    reminder_id: int,
    request: FailureRequest,
    service: ReminderService = Depends(get_reminder_service),
):
    """Delivery failure callback."""
    try:
        service.on_delivery_failed(reminder_id, request.reason)
    except ReminderNotFoundError as exc:
        raise HTTPException(status_code=404, detail=str(exc))
    except InvalidStateTransition as exc:
        raise HTTPException(status_code=409, detail=str(exc))
    return {"reminder_id": reminder_id, "status": ReminderStatus.FAILED.value}


@router.post("/{reminder_id}/respond", response_model=RespondResponse)
def respond_to_reminder(
    reminder_id: int,
    request: RespondRequest,
    service: ReminderService = Depends(get_reminder_service),
):
    """Record the user's response to a sent reminder."""
    try:
        outcome = service.on_user_response(
            reminder_id, request.response_action, request.amount_logged
        )
    except ReminderNotFoundError as exc:
        raise HTTPException(status_code=404, detail=str(exc))
    except InvalidStateTransition as exc:
        raise HTTPException(status_code=409, detail=str(exc))

    if outcome.action == ResponseAction.DRINK_LOGGED:
        reminder = service.lifecycle.get(reminder_id)
        service.consumption_store.add_record(
            reminder.user_id,
            request.amount_logged,
            source="reminder_response",
            recorded_at=reminder.responded_at,
        )

    return RespondResponse(
        response_action=outcome.action,
        response_delay_minutes=outcome.response_delay_minutes,
    )


@router.get("/smart-suggestions", response_model=List[SuggestionResponse])
def smart_suggestions(
    day: Optional[date] = Query(default=None, alias="date"),
    service: ReminderService = Depends(get_reminder_service),
    user_id: int = Depends(get_user_id),
):
    """Suggested reminder times from the user's drinking pattern."""
    return [
        SuggestionResponse(
            time=format_time(s.time), confidence=s.confidence, reason=s.reason
        )
        for s in service.get_suggestions(user_id, day)
    ]


@router.get("/statistics")
def reminder_statistics(
    period: str = "30d",
    service: ReminderService = Depends(get_reminder_service),
    user_id: int = Depends(get_user_id),
):
    """Reminder effectiveness over 7d, 30d or 3m."""
    if period not in STATISTICS_PERIODS:
        raise HTTPException(
            status_code=400,
            detail=f"period must be one of {', '.join(STATISTICS_PERIODS)}",
        )
    stats = service.get_statistics(user_id, STATISTICS_PERIODS[period])
    return {"period": period, **stats.as_dict()}
