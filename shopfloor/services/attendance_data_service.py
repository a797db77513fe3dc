from __future__ import annotations

import logging
from datetime import date, datetime, time, timedelta, timezone

from sqlalchemy import delete, func, select
from sqlalchemy.dialects.postgresql import insert
from sqlalchemy.orm import Session

from shopfloor.config import settings
from shopfloor.models import ClockEvent, ClockEventType, PublicHoliday, SegmentType, TimeDailySummary, TimeSegment
from shopfloor.services.attendance_service import (
    ClockEventInput,
    DailySummary,
    SegmentInput,
    build_daily_summary,
    derive_segments,
    is_double_time_day,
)
from shopfloor.services.audit_service import log_audit

logger = logging.getLogger(__name__)


def _now() -> datetime:
    return datetime.now(tz=timezone.utc)


def _day_window(date_worked: date) -> tuple[datetime, datetime]:
    start = datetime.combine(date_worked, time.min, tzinfo=timezone.utc)
    return start, start + timedelta(days=1)


def get_clock_events(db: Session, *, staff_id: int, date_worked: date) -> list[ClockEventInput]:
    start, end = _day_window(date_worked)
    rows = db.execute(
        select(ClockEvent)
        .where(
            ClockEvent.staff_id == staff_id,
            ClockEvent.event_time >= start,
            ClockEvent.event_time < end,
        )
        .order_by(ClockEvent.event_time.asc(), ClockEvent.id.asc())
    ).scalars().all()
    return [
        ClockEventInput(
            event_type=row.event_type.value,
            event_time=row.event_time,
            break_type=row.break_type,
            verification_method=row.verification_method,
            event_id=row.id,
        )
        for row in rows
    ]


def get_time_segments(db: Session, *, staff_id: int, date_worked: date) -> list[SegmentInput]:
    rows = db.execute(
        select(TimeSegment)
        .where(TimeSegment.staff_id == staff_id, TimeSegment.date_worked == date_worked)
        .order_by(TimeSegment.start_time.asc())
    ).scalars().all()
    return [
        SegmentInput(
            start_time=row.start_time,
            end_time=row.end_time,
            segment_type=row.segment_type.value,
            break_type=row.break_type,
            duration_minutes=row.duration_minutes,
        )
        for row in rows
    ]


def list_public_holidays(db: Session, *, start_date: date, end_date: date) -> set[date]:
    return set(
        db.execute(
            select(PublicHoliday.holiday_date).where(
                PublicHoliday.holiday_date >= start_date,
                PublicHoliday.holiday_date <= end_date,
            )
        ).scalars().all()
    )


def replace_time_segments(db: Session, *, staff_id: int, date_worked: date, segments: list[SegmentInput]) -> None:
    db.execute(delete(TimeSegment).where(TimeSegment.staff_id == staff_id, TimeSegment.date_worked == date_worked))
    for segment in segments:
        db.add(
            TimeSegment(
                staff_id=staff_id,
                date_worked=date_worked,
                start_time=segment.start_time,
                end_time=segment.end_time,
                segment_type=SegmentType(segment.segment_type),
                break_type=segment.break_type,
                duration_minutes=segment.duration_minutes,
            )
        )
    db.flush()


def upsert_daily_summary(db: Session, summary: DailySummary) -> None:
    values = {
        'staff_id': summary.staff_id,
        'date_worked': summary.date_worked,
        'first_clock_in': summary.first_clock_in,
        'last_clock_out': summary.last_clock_out,
        'total_work_minutes': summary.total_work_minutes,
        'total_break_minutes': summary.total_break_minutes,
        'lunch_break_minutes': summary.lunch_break_minutes,
        'other_breaks_minutes': summary.other_breaks_minutes,
        'regular_minutes': summary.regular_minutes,
        'ot_minutes': summary.overtime_minutes,
        'dt_minutes': summary.double_time_minutes,
        'is_complete': summary.is_complete,
    }
    stmt = insert(TimeDailySummary).values(**values)
    updates = {key: stmt.excluded[key] for key in values if key not in ('staff_id', 'date_worked')}
    updates['updated_at'] = func.now()
    db.execute(stmt.on_conflict_do_update(index_elements=['staff_id', 'date_worked'], set_=updates))


def recompute_daily_summary(db: Session, *, staff_id: int, date_worked: date) -> DailySummary:
    """Rebuild the day's segments and summary from its clock events; never patched incrementally."""
    events = get_clock_events(db, staff_id=staff_id, date_worked=date_worked)
    segments = derive_segments(events)
    replace_time_segments(db, staff_id=staff_id, date_worked=date_worked, segments=segments)
    holidays = list_public_holidays(db, start_date=date_worked, end_date=date_worked)
    summary = build_daily_summary(
        staff_id=staff_id,
        date_worked=date_worked,
        segments=segments,
        events=events,
        is_double_time_day=is_double_time_day(date_worked, holidays),
        regular_day_minutes=settings.regular_day_minutes,
    )
    upsert_daily_summary(db, summary)
    logger.info(
        'Recomputed daily summary for staff %s on %s: %s work minutes across %s segments',
        staff_id,
        date_worked,
        summary.total_work_minutes,
        len(segments),
    )
    return summary


def _get_event(db: Session, event_id: int) -> ClockEvent:
    row = db.execute(select(ClockEvent).where(ClockEvent.id == event_id)).scalar_one_or_none()
    if row is None:
        raise ValueError('Clock event not found')
    return row


def update_clock_event(
    db: Session,
    *,
    event_id: int,
    event_time: datetime | None = None,
    event_type: str | None = None,
    break_type: str | None = None,
    actor: str | None = None,
) -> DailySummary:
    row = _get_event(db, event_id)
    previous_day = row.event_time.astimezone(timezone.utc).date()
    before = {'event_time': row.event_time.isoformat(), 'event_type': row.event_type.value}

    if event_type is not None:
        try:
            row.event_type = ClockEventType(event_type)
        except ValueError as exc:
            raise ValueError(f'Invalid event type: {event_type}') from exc
    if event_time is not None:
        row.event_time = event_time
    if break_type is not None:
        row.break_type = break_type
    elif row.event_type != ClockEventType.BREAK_START:
        row.break_type = None
    row.verification_method = 'manual'
    db.flush()

    log_audit(
        db,
        actor=actor,
        action='clock_event.update',
        entity_id=event_id,
        metadata={'before': before, 'after': {'event_time': row.event_time.isoformat(), 'event_type': row.event_type.value}},
    )
    logger.info('Clock event %s updated by %s', event_id, actor or 'unknown')

    new_day = row.event_time.astimezone(timezone.utc).date()
    if new_day != previous_day:
        recompute_daily_summary(db, staff_id=row.staff_id, date_worked=previous_day)
    return recompute_daily_summary(db, staff_id=row.staff_id, date_worked=new_day)


def delete_clock_event(db: Session, *, event_id: int, actor: str | None = None) -> DailySummary:
    row = _get_event(db, event_id)
    staff_id = row.staff_id
    date_worked = row.event_time.astimezone(timezone.utc).date()
    log_audit(
        db,
        actor=actor,
        action='clock_event.delete',
        entity_id=event_id,
        metadata={'event_time': row.event_time.isoformat(), 'event_type': row.event_type.value},
    )
    db.delete(row)
    db.flush()
    logger.info('Clock event %s deleted by %s', event_id, actor or 'unknown')
    return recompute_daily_summary(db, staff_id=staff_id, date_worked=date_worked)


def get_weekly_minutes(db: Session, *, staff_id: int, start_date: date, end_date: date) -> dict[date, int]:
    rows = db.execute(
        select(TimeDailySummary.date_worked, TimeDailySummary.total_work_minutes).where(
            TimeDailySummary.staff_id == staff_id,
            TimeDailySummary.date_worked >= start_date,
            TimeDailySummary.date_worked <= end_date,
        )
    ).all()
    return {row.date_worked: int(row.total_work_minutes or 0) for row in rows}
