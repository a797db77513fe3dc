from __future__ import annotations

import unittest
from datetime import date, datetime, timezone
from types import SimpleNamespace
from unittest.mock import MagicMock, patch

from sqlalchemy.dialects import postgresql

from shopfloor.models import ClockEventType
from shopfloor.services.attendance_data_service import (
    delete_clock_event,
    recompute_daily_summary,
    update_clock_event,
    upsert_daily_summary,
)
from shopfloor.services.attendance_service import ClockEventInput, DailySummary

MODULE = 'shopfloor.services.attendance_data_service'
SUNDAY = date(2026, 3, 8)
WEDNESDAY = date(2026, 3, 11)


def _event(kind: str, day: date, hour: int) -> ClockEventInput:
    return ClockEventInput(event_type=kind, event_time=datetime(day.year, day.month, day.day, hour, tzinfo=timezone.utc))


class RecomputeDailySummaryTests(unittest.TestCase):
    @patch(f'{MODULE}.upsert_daily_summary')
    @patch(f'{MODULE}.list_public_holidays')
    @patch(f'{MODULE}.replace_time_segments')
    @patch(f'{MODULE}.get_clock_events')
    def test_rebuilds_segments_and_upserts_summary(
        self,
        events_mock,
        replace_mock,
        holidays_mock,
        upsert_mock,
    ) -> None:
        events_mock.return_value = [_event('clock_in', WEDNESDAY, 7), _event('clock_out', WEDNESDAY, 17)]
        holidays_mock.return_value = set()

        summary = recompute_daily_summary(SimpleNamespace(), staff_id=4, date_worked=WEDNESDAY)

        replaced = replace_mock.call_args.kwargs['segments']
        self.assertEqual([(s.segment_type, s.duration_minutes) for s in replaced], [('work', 600)])
        upsert_mock.assert_called_once()
        self.assertIs(upsert_mock.call_args.args[1], summary)
        self.assertEqual(summary.regular_minutes, 480)
        self.assertEqual(summary.overtime_minutes, 120)
        self.assertTrue(summary.is_complete)

    @patch(f'{MODULE}.upsert_daily_summary')
    @patch(f'{MODULE}.list_public_holidays')
    @patch(f'{MODULE}.replace_time_segments')
    @patch(f'{MODULE}.get_clock_events')
    def test_sunday_is_double_time(self, events_mock, replace_mock, holidays_mock, upsert_mock) -> None:
        events_mock.return_value = [_event('clock_in', SUNDAY, 8), _event('clock_out', SUNDAY, 12)]
        holidays_mock.return_value = set()

        summary = recompute_daily_summary(SimpleNamespace(), staff_id=4, date_worked=SUNDAY)

        self.assertEqual(summary.double_time_minutes, 240)
        self.assertEqual(summary.regular_minutes, 0)


class ClockEventEditTests(unittest.TestCase):
    def _row(self, day: date, hour: int) -> SimpleNamespace:
        return SimpleNamespace(
            id=31,
            staff_id=4,
            event_time=datetime(day.year, day.month, day.day, hour, tzinfo=timezone.utc),
            event_type=ClockEventType.CLOCK_IN,
            break_type=None,
            verification_method='facial',
        )

    @patch(f'{MODULE}.log_audit')
    @patch(f'{MODULE}.recompute_daily_summary')
    @patch(f'{MODULE}._get_event')
    def test_moving_event_to_another_day_recomputes_both_days(self, get_mock, recompute_mock, audit_mock) -> None:
        get_mock.return_value = self._row(WEDNESDAY, 8)
        db = MagicMock()

        update_clock_event(
            db,
            event_id=31,
            event_time=datetime(2026, 3, 12, 8, 15, tzinfo=timezone.utc),
            actor='supervisor',
        )

        days = [call.kwargs['date_worked'] for call in recompute_mock.call_args_list]
        self.assertEqual(days, [WEDNESDAY, date(2026, 3, 12)])
        self.assertEqual(get_mock.return_value.verification_method, 'manual')
        self.assertEqual(audit_mock.call_args.kwargs['action'], 'clock_event.update')

    @patch(f'{MODULE}.log_audit')
    @patch(f'{MODULE}.recompute_daily_summary')
    @patch(f'{MODULE}._get_event')
    def test_invalid_event_type_is_rejected(self, get_mock, recompute_mock, audit_mock) -> None:
        get_mock.return_value = self._row(WEDNESDAY, 8)

        with self.assertRaises(ValueError):
            update_clock_event(MagicMock(), event_id=31, event_type='lunch')

        recompute_mock.assert_not_called()

    @patch(f'{MODULE}.log_audit')
    @patch(f'{MODULE}.recompute_daily_summary')
    @patch(f'{MODULE}._get_event')
    def test_delete_recomputes_the_events_day(self, get_mock, recompute_mock, audit_mock) -> None:
        row = self._row(WEDNESDAY, 8)
        get_mock.return_value = row
        db = MagicMock()

        delete_clock_event(db, event_id=31)

        db.delete.assert_called_once_with(row)
        recompute_mock.assert_called_once_with(db, staff_id=4, date_worked=WEDNESDAY)


class UpsertDailySummaryTests(unittest.TestCase):
    def test_upsert_targets_staff_and_date(self) -> None:
        db = MagicMock()
        summary = DailySummary(
            staff_id=4,
            date_worked=WEDNESDAY,
            first_clock_in=None,
            last_clock_out=None,
            total_work_minutes=0,
            total_break_minutes=0,
            lunch_break_minutes=0,
            other_breaks_minutes=0,
            regular_minutes=0,
            overtime_minutes=0,
            double_time_minutes=0,
            is_complete=False,
        )

        upsert_daily_summary(db, summary)

        stmt = db.execute.call_args.args[0]
        sql = str(stmt.compile(dialect=postgresql.dialect()))
        self.assertIn('ON CONFLICT (staff_id, date_worked) DO UPDATE', sql)


if __name__ == '__main__':
    unittest.main()
