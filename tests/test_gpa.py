"""Tests for GPA aggregation."""

import pytest

from gradetrack.core.entities import Course, GradeItem, Semester
from gradetrack.core.enums import GradeType, SemesterStatus
from gradetrack.core.gpa import (
    GpaEntry,
    calculate_gpa,
    course_standing,
    cumulative_summary,
    grade_points,
)
from gradetrack.core.grading import LetterThreshold

OWNER = "student-1"


def _item(course, row_id, grade, weight):
    return GradeItem(course.id, row_id, OWNER, grade_input=grade, weight_input=weight,
                     grade_type=course.grade_type)


class TestGradePoints:
    def test_table_lookup(self):
        assert grade_points("A+") == 4.0
        assert grade_points(" b+ ") == 3.3
        assert grade_points("F") == 0.0

    def test_unknown_letter(self):
        assert grade_points("E") is None
        assert grade_points(None) is None


class TestCalculateGpa:
    def test_credit_weighted(self):
        result = calculate_gpa([GpaEntry("A", 3), GpaEntry("B+", 4)])
        assert result.gpa == pytest.approx(3.6)
        assert result.total_credits == 7
        assert result.total_points == pytest.approx(25.2)

    def test_skips_unusable_entries(self):
        """Zero, negative or unparsable credits and unknown letters do not count."""
        result = calculate_gpa([
            GpaEntry("A", "3"),
            GpaEntry("F", 0),
            GpaEntry("F", -2),
            GpaEntry("F", "lots"),
            GpaEntry("Q", 4),
        ])
        assert result.gpa == 4.0
        assert result.total_credits == 3

    def test_nothing_counts(self):
        assert calculate_gpa([]) is None
        assert calculate_gpa([GpaEntry("Q", 3)]) is None


class TestCourseStanding:
    def test_ungraded_course_has_no_letter(self):
        course = Course("History", OWNER, credit_hours=3)
        standing = course_standing(course, [])
        assert standing.percent is None
        assert standing.letter is None
        assert standing.grade_points is None

    def test_uses_course_scale_and_grade_type(self):
        course = Course("Writing", OWNER, grade_type=GradeType.LETTERS,
                        letter_thresholds=[LetterThreshold(90, "A"), LetterThreshold(0, "F")])
        standing = course_standing(course, [_item(course, "r1", "A", "100")])
        assert standing.percent == 93
        assert standing.letter == "A"
        assert standing.to_dict()["grade_points"] == 4.0


class TestCumulativeSummary:
    def test_terms_and_unassigned_courses(self):
        fall = Semester("Fall", OWNER, status=SemesterStatus.COMPLETED)
        spring = Semester("Spring", OWNER, is_current=True)
        c1 = Course("Calculus", OWNER, credit_hours=4, semester_id=fall.id)
        c2 = Course("Physics", OWNER, credit_hours=3, semester_id=spring.id)
        c3 = Course("Seminar", OWNER, credit_hours=3)
        items = [_item(c1, "final", "95", "100"), _item(c2, "final", "85", "100")]

        summary = cumulative_summary([fall, spring], [c1, c2, c3], items)

        assert summary.gpa == pytest.approx(25 / 7)
        assert summary.credits == 10
        assert summary.semesters_completed == 1
        assert [t.name for t in summary.terms] == ["Fall", "Spring"]
        assert summary.terms[0].gpa == 4.0
        assert summary.terms[1].gpa == 3.0
        assert summary.terms[1].is_current
        assert [s.name for s in summary.unassigned] == ["Seminar"]
        assert summary.unassigned[0].letter is None

    def test_course_in_unknown_semester_is_unassigned(self):
        course = Course("Orphan", OWNER, semester_id="gone")
        summary = cumulative_summary([], [course], [])
        assert [s.course_id for s in summary.unassigned] == [course.id]
        assert summary.gpa is None

    def test_to_dict(self):
        fall = Semester("Fall", OWNER)
        course = Course("Calculus", OWNER, credit_hours=4, semester_id=fall.id)
        data = cumulative_summary([fall], [course], [_item(course, "r", "91", "50")]).to_dict()
        term = data["terms"][0]
        assert term["status"] == "completed"
        assert term["courses"][0]["letter"] == "A-"
        assert data["gpa"] == pytest.approx(3.7)
