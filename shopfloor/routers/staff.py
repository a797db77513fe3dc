from __future__ import annotations

from datetime import date

from fastapi import APIRouter, Depends, HTTPException
from pydantic import AwareDatetime, BaseModel
from sqlalchemy.orm import Session

from shopfloor.config import settings
from shopfloor.db import get_db
from shopfloor.services.attendance_data_service import (
    delete_clock_event,
    get_clock_events,
    get_time_segments,
    get_weekly_minutes,
    list_public_holidays,
    recompute_daily_summary,
    update_clock_event,
)
from shopfloor.services.attendance_service import (
    payroll_week_bounds,
    summarize_display_hours,
    summarize_week,
    valid_segments,
)

router = APIRouter(prefix='/staff', tags=['staff'])


class ClockEventUpdate(BaseModel):
    event_time: AwareDatetime | None = None
    event_type: str | None = None
    break_type: str | None = None
    actor: str | None = None


@router.get('/{staff_id}/attendance/{date_worked}')
def day_attendance(staff_id: int, date_worked: date, db: Session = Depends(get_db)):
    events = get_clock_events(db, staff_id=staff_id, date_worked=date_worked)
    segments = get_time_segments(db, staff_id=staff_id, date_worked=date_worked)
    hours = summarize_display_hours(segments, events, regular_day_minutes=settings.regular_day_minutes)
    return {
        'staff_id': staff_id,
        'date_worked': date_worked,
        'events': events,
        'segments': valid_segments(segments),
        'total_minutes': hours.total_minutes,
        'regular_minutes': hours.regular_minutes,
        'overtime_minutes': hours.overtime_minutes,
        'break_minutes': hours.break_minutes,
        'missing_clock_out': hours.missing_clock_out,
        'verification_method': hours.verification_method,
    }


@router.post('/{staff_id}/attendance/{date_worked}/recompute')
def recompute_day(staff_id: int, date_worked: date, db: Session = Depends(get_db)):
    return recompute_daily_summary(db, staff_id=staff_id, date_worked=date_worked)


@router.patch('/clock-events/{event_id}')
def edit_clock_event(event_id: int, payload: ClockEventUpdate, db: Session = Depends(get_db)):
    try:
        return update_clock_event(
            db,
            event_id=event_id,
            event_time=payload.event_time,
            event_type=payload.event_type,
            break_type=payload.break_type,
            actor=payload.actor,
        )
    except ValueError as exc:
        code = 404 if str(exc) == 'Clock event not found' else 400
        raise HTTPException(status_code=code, detail=str(exc)) from exc


@router.delete('/clock-events/{event_id}')
def remove_clock_event(event_id: int, actor: str | None = None, db: Session = Depends(get_db)):
    try:
        return delete_clock_event(db, event_id=event_id, actor=actor)
    except ValueError as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc


@router.get('/{staff_id}/weekly/{day}')
def weekly_hours(staff_id: int, day: date, db: Session = Depends(get_db)):
    week_start, week_end = payroll_week_bounds(day, settings.payroll_week_start_weekday)
    minutes = get_weekly_minutes(db, staff_id=staff_id, start_date=week_start, end_date=week_end)
    holidays = list_public_holidays(db, start_date=week_start, end_date=week_end)
    week = summarize_week(
        minutes,
        week_start=week_start,
        holidays=holidays,
        weekly_regular_minutes=settings.weekly_regular_minutes,
    )
    return {
        'staff_id': staff_id,
        'week_start': week.week_start,
        'week_end': week.week_end,
        'regular_minutes': week.regular_minutes,
        'overtime_minutes': week.overtime_minutes,
        'double_time_minutes': week.double_time_minutes,
        'total_minutes': week.total_minutes,
        'daily_minutes': [{'date': key, 'minutes': value} for key, value in sorted(week.daily_minutes.items())],
    }
