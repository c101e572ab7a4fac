"""Tests for due-date handling."""

from datetime import date, datetime

from gradetrack.core.assessments import (
    dated_assessments,
    is_completed,
    normalize_due_date,
    upcoming_assessments,
)
from gradetrack.core.entities import GradeItem

OWNER = "student-1"


def _row(row_id, due_date=None, grade=None, weight="10"):
    return GradeItem("course-1", row_id, OWNER, label=row_id, grade_input=grade,
                     weight_input=weight, due_date=due_date)


class TestNormalizeDueDate:
    def test_formats(self):
        assert normalize_due_date("2026-03-01") == date(2026, 3, 1)
        assert normalize_due_date("2026-03-01T23:59:00Z") == date(2026, 3, 1)
        assert normalize_due_date(datetime(2026, 3, 1, 8, 30)) == date(2026, 3, 1)
        assert normalize_due_date(date(2026, 3, 1)) == date(2026, 3, 1)

    def test_unreadable(self):
        assert normalize_due_date(None) is None
        assert normalize_due_date("  ") is None
        assert normalize_due_date("next friday") is None


class TestIsCompleted:
    def test_needs_grade_and_weight(self):
        assert is_completed(_row("a", grade="90"))
        assert not is_completed(_row("b"))
        assert not is_completed(_row("c", grade="90", weight="0"))


class TestDatedAssessments:
    def test_only_dated_rows_earliest_first(self):
        rows = [_row("late", "2026-05-01"), _row("none"), _row("early", "2026-02-01")]
        assert [r.client_row_id for r in dated_assessments(rows)] == ["early", "late"]


class TestUpcomingAssessments:
    def test_window_is_inclusive_and_skips_overdue_and_graded(self):
        today = date(2026, 3, 1)
        rows = [
            _row("overdue", "2026-02-28"),
            _row("today", "2026-03-01"),
            _row("edge", "2026-03-08"),
            _row("beyond", "2026-03-09"),
            _row("graded", "2026-03-03", grade="88"),
        ]
        upcoming = upcoming_assessments(rows, today, days=7)
        assert [r.client_row_id for r in upcoming] == ["today", "edge"]

    def test_zero_day_window(self):
        rows = [_row("today", "2026-03-01"), _row("tomorrow", "2026-03-02")]
        upcoming = upcoming_assessments(rows, date(2026, 3, 1), days=0)
        assert [r.client_row_id for r in upcoming] == ["today"]

    def test_window_past_last_calendar_day(self):
        rows = [_row("last", "9999-12-31"), _row("late", "9999-12-20", grade="90")]
        upcoming = upcoming_assessments(rows, date(9999, 12, 1), days=10 ** 6)
        assert [r.client_row_id for r in upcoming] == ["last"]
