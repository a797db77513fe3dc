from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime, timedelta

from shopfloor.models import ClockEventType, SegmentType

REGULAR_DAY_MINUTES = 480
WEEKLY_REGULAR_MINUTES = 44 * 60
FRIDAY = 4
SUNDAY = 6
LUNCH_BREAK = 'lunch'


@dataclass(frozen=True)
class ClockEventInput:
    event_type: str
    event_time: datetime
    break_type: str | None = None
    verification_method: str | None = None
    event_id: int | None = None


@dataclass(frozen=True)
class SegmentInput:
    start_time: datetime
    end_time: datetime
    segment_type: str
    break_type: str | None = None
    duration_minutes: int | None = None


@dataclass(frozen=True)
class DisplayHours:
    total_minutes: int
    regular_minutes: int
    overtime_minutes: int
    break_minutes: int
    missing_clock_out: bool
    verification_method: str

    @property
    def total_hours(self) -> float:
        return self.total_minutes / 60

    @property
    def regular_hours(self) -> float:
        return self.regular_minutes / 60

    @property
    def overtime_hours(self) -> float:
        return self.overtime_minutes / 60


@dataclass(frozen=True)
class DailySummary:
    staff_id: int
    date_worked: date
    first_clock_in: datetime | None
    last_clock_out: datetime | None
    total_work_minutes: int
    total_break_minutes: int
    lunch_break_minutes: int
    other_breaks_minutes: int
    regular_minutes: int
    overtime_minutes: int
    double_time_minutes: int
    is_complete: bool


@dataclass(frozen=True)
class WeeklyHours:
    week_start: date
    week_end: date
    regular_minutes: int
    overtime_minutes: int
    double_time_minutes: int
    total_minutes: int
    daily_minutes: dict[date, int]


def _kind(value) -> str:
    return str(getattr(value, 'value', value) or '').strip().lower()


def _sorted_events(events: list[ClockEventInput]) -> list[ClockEventInput]:
    return sorted(events, key=lambda event: event.event_time)


def has_missing_clock_out(events: list[ClockEventInput]) -> bool:
    ordered = _sorted_events(events)
    if not ordered:
        return False
    return _kind(ordered[-1].event_type) == ClockEventType.CLOCK_IN.value


def is_day_complete(events: list[ClockEventInput]) -> bool:
    clock_ins = [event.event_time for event in events if _kind(event.event_type) == ClockEventType.CLOCK_IN.value]
    if not clock_ins:
        return False
    last_in = max(clock_ins)
    return any(
        _kind(event.event_type) == ClockEventType.CLOCK_OUT.value and event.event_time > last_in
        for event in events
    )


def segment_minutes(segment: SegmentInput) -> int:
    if segment.end_time <= segment.start_time:
        return 0
    if segment.duration_minutes is not None:
        return max(int(segment.duration_minutes), 0)
    return round((segment.end_time - segment.start_time).total_seconds() / 60)


def valid_segments(segments: list[SegmentInput]) -> list[SegmentInput]:
    return sorted(
        (segment for segment in segments if segment.end_time > segment.start_time),
        key=lambda segment: segment.start_time,
    )


def split_regular_overtime(total_minutes: int, threshold_minutes: int = REGULAR_DAY_MINUTES) -> tuple[int, int]:
    total = max(int(total_minutes), 0)
    return min(total, threshold_minutes), max(total - threshold_minutes, 0)


def summarize_display_hours(
    segments: list[SegmentInput],
    events: list[ClockEventInput] | None = None,
    *,
    regular_day_minutes: int = REGULAR_DAY_MINUTES,
) -> DisplayHours:
    """
    Day totals for the attendance timeline. Only work segments count toward worked minutes;
    break minutes are reported alongside rather than folded into the total.
    """
    events = events or []
    work_minutes = 0
    break_minutes = 0
    for segment in valid_segments(segments):
        if _kind(segment.segment_type) == SegmentType.BREAK.value:
            break_minutes += segment_minutes(segment)
        else:
            work_minutes += segment_minutes(segment)
    regular, overtime = split_regular_overtime(work_minutes, regular_day_minutes)
    ordered = _sorted_events(events)
    verification = (ordered[0].verification_method if ordered else None) or 'manual'
    return DisplayHours(
        total_minutes=work_minutes,
        regular_minutes=regular,
        overtime_minutes=overtime,
        break_minutes=break_minutes,
        missing_clock_out=has_missing_clock_out(events),
        verification_method=verification,
    )


def derive_segments(events: list[ClockEventInput]) -> list[SegmentInput]:
    """
    Pair raw clock events into work and break segments.

    A clock-in opens work, break_start closes work and opens a break, break_end closes the
    break and reopens work, clock-out closes whatever is open. Repeated opens keep the first
    timestamp, unmatched closes are ignored and an interval still open at the end of the day
    produces no segment.
    """
    segments: list[SegmentInput] = []
    work_start: datetime | None = None
    break_start: datetime | None = None
    break_type: str | None = None

    def _close(start: datetime, end: datetime, kind: SegmentType, brk: str | None = None) -> None:
        if end <= start:
            return
        segments.append(
            SegmentInput(
                start_time=start,
                end_time=end,
                segment_type=kind.value,
                break_type=brk,
                duration_minutes=round((end - start).total_seconds() / 60),
            )
        )

    for event in _sorted_events(events):
        kind = _kind(event.event_type)
        at = event.event_time
        if kind == ClockEventType.CLOCK_IN.value:
            if work_start is None and break_start is None:
                work_start = at
        elif kind == ClockEventType.BREAK_START.value:
            if work_start is not None:
                _close(work_start, at, SegmentType.WORK)
                work_start = None
            if break_start is None:
                break_start = at
                break_type = event.break_type
        elif kind == ClockEventType.BREAK_END.value:
            if break_start is not None:
                _close(break_start, at, SegmentType.BREAK, break_type)
                break_start = None
                break_type = None
                work_start = at
        elif kind == ClockEventType.CLOCK_OUT.value:
            if break_start is not None:
                _close(break_start, at, SegmentType.BREAK, break_type)
            if work_start is not None:
                _close(work_start, at, SegmentType.WORK)
            work_start = None
            break_start = None
            break_type = None
        else:
            raise ValueError(f'Unknown clock event type: {event.event_type}')
    return segments


def build_daily_summary(
    *,
    staff_id: int,
    date_worked: date,
    segments: list[SegmentInput],
    events: list[ClockEventInput] | None = None,
    is_double_time_day: bool = False,
    regular_day_minutes: int = REGULAR_DAY_MINUTES,
) -> DailySummary:
    total_work = 0
    total_break = 0
    lunch = 0
    other_breaks = 0
    first_clock_in: datetime | None = None
    last_clock_out: datetime | None = None

    for segment in valid_segments(segments):
        minutes = segment_minutes(segment)
        if _kind(segment.segment_type) == SegmentType.BREAK.value:
            total_break += minutes
            if _kind(segment.break_type) == LUNCH_BREAK:
                lunch += minutes
            else:
                other_breaks += minutes
            continue
        total_work += minutes
        if first_clock_in is None or segment.start_time < first_clock_in:
            first_clock_in = segment.start_time
        if last_clock_out is None or segment.end_time > last_clock_out:
            last_clock_out = segment.end_time

    if is_double_time_day:
        regular, overtime, double_time = 0, 0, total_work
    else:
        regular, overtime = split_regular_overtime(total_work, regular_day_minutes)
        double_time = 0

    complete = is_day_complete(events) if events is not None else last_clock_out is not None
    return DailySummary(
        staff_id=staff_id,
        date_worked=date_worked,
        first_clock_in=first_clock_in,
        last_clock_out=last_clock_out,
        total_work_minutes=total_work,
        total_break_minutes=total_break,
        lunch_break_minutes=lunch,
        other_breaks_minutes=other_breaks,
        regular_minutes=regular,
        overtime_minutes=overtime,
        double_time_minutes=double_time,
        is_complete=complete,
    )


def is_double_time_day(day: date, holidays: set[date] | frozenset[date]) -> bool:
    return day.weekday() == SUNDAY or day in holidays


def payroll_week_bounds(day: date, week_start_weekday: int = FRIDAY) -> tuple[date, date]:
    start = day - timedelta(days=(day.weekday() - week_start_weekday) % 7)
    return start, start + timedelta(days=6)


def summarize_week(
    minutes_by_date: dict[date, int],
    *,
    week_start: date,
    holidays: set[date] | frozenset[date] = frozenset(),
    weekly_regular_minutes: int = WEEKLY_REGULAR_MINUTES,
) -> WeeklyHours:
    days = [week_start + timedelta(days=offset) for offset in range(7)]
    daily = {day: max(int(minutes_by_date.get(day, 0) or 0), 0) for day in days}
    double_time = sum(minutes for day, minutes in daily.items() if is_double_time_day(day, holidays))
    ordinary = sum(minutes for day, minutes in daily.items() if not is_double_time_day(day, holidays))
    regular, overtime = split_regular_overtime(ordinary, weekly_regular_minutes)
    return WeeklyHours(
        week_start=days[0],
        week_end=days[-1],
        regular_minutes=regular,
        overtime_minutes=overtime,
        double_time_minutes=double_time,
        total_minutes=ordinary + double_time,
        daily_minutes=daily,
    )
