"""
GPA aggregation across courses, terms and a whole transcript.
"""

from collections import defaultdict
from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Optional, Sequence

from .enums import SemesterStatus
from .grading import GradeEntry, RawValue, parse_number, resolve_letter, weighted_average


LETTER_TO_GPA: Dict[str, float] = {
    'A+': 4.0,
    'A': 4.0,
    'A-': 3.7,
    'B+': 3.3,
    'B': 3.0,
    'B-': 2.7,
    'C+': 2.3,
    'C': 2.0,
    'C-': 1.7,
    'D+': 1.3,
    'D': 1.0,
    'D-': 0.7,
    'F': 0.0,
}


@dataclass(frozen=True)
class GpaEntry:
    letter_grade: str
    credit_hours: RawValue


@dataclass(frozen=True)
class GpaResult:
    gpa: float
    total_credits: float
    total_points: float

    def to_dict(self) -> Dict[str, Any]:
        return {'gpa': self.gpa, 'total_credits': self.total_credits, 'total_points': self.total_points}


@dataclass(frozen=True)
class CourseStanding:
    """Where a course stands: percentage on graded work and its letter on the course scale."""
    course_id: str
    name: str
    credit_hours: float
    percent: Optional[float]
    letter: Optional[str]

    @property
    def grade_points(self) -> Optional[float]:
        if self.letter is None:
            return None
        return grade_points(self.letter)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'course_id': self.course_id,
            'name': self.name,
            'credit_hours': self.credit_hours,
            'percent': self.percent,
            'letter': self.letter,
            'grade_points': self.grade_points,
        }


@dataclass(frozen=True)
class TermSummary:
    semester_id: str
    name: str
    status: SemesterStatus
    is_current: bool
    credits: float
    gpa: Optional[float]
    courses: List[CourseStanding]

    def to_dict(self) -> Dict[str, Any]:
        return {
            'semester_id': self.semester_id,
            'name': self.name,
            'status': self.status.value,
            'is_current': self.is_current,
            'credits': self.credits,
            'gpa': self.gpa,
            'courses': [c.to_dict() for c in self.courses],
        }


@dataclass(frozen=True)
class CumulativeSummary:
    gpa: Optional[float]
    credits: float
    semesters_completed: int
    terms: List[TermSummary]
    unassigned: List[CourseStanding]

    def to_dict(self) -> Dict[str, Any]:
        return {
            'gpa': self.gpa,
            'credits': self.credits,
            'semesters_completed': self.semesters_completed,
            'terms': [t.to_dict() for t in self.terms],
            'unassigned': [c.to_dict() for c in self.unassigned],
        }


def grade_points(letter: str) -> Optional[float]:
    """Grade points for a letter, or None when the letter is not on the 4.0 table."""
    if letter is None:
        return None
    return LETTER_TO_GPA.get(str(letter).strip().upper())


def calculate_gpa(entries: Iterable[GpaEntry]) -> Optional[GpaResult]:
    """Credit-weighted GPA.

    Entries with unusable credit hours or a letter outside the table are
    skipped; None when nothing counts.
    """
    total_points = 0.0
    total_credits = 0.0

    for entry in entries:
        credits = parse_number(entry.credit_hours)
        if credits is None or credits <= 0:
            continue
        points = grade_points(entry.letter_grade)
        if points is None:
            continue
        total_points += points * credits
        total_credits += credits

    if total_credits == 0:
        return None

    return GpaResult(
        gpa=total_points / total_credits,
        total_credits=total_credits,
        total_points=total_points
    )


def group_items_by_course(items: Iterable[Any]) -> Dict[str, List[Any]]:
    grouped: Dict[str, List[Any]] = defaultdict(list)
    for item in items:
        grouped[item.course_id].append(item)
    return grouped


def course_percent(course: Any, items: Iterable[Any]) -> Optional[float]:
    """Weighted average on the course's graded work, under the course's grade type."""
    entries = [GradeEntry(grade=item.grade_input, weight=item.weight_input) for item in items]
    aggregate = weighted_average(entries, course.grade_type)
    return aggregate.average if aggregate is not None else None


def course_standing(course: Any, items: Iterable[Any]) -> CourseStanding:
    percent = course_percent(course, items)
    return CourseStanding(
        course_id=course.id,
        name=course.name,
        credit_hours=course.credit_hours,
        percent=percent,
        letter=resolve_letter(percent, course.thresholds) if percent is not None else None
    )


def standings_gpa(standings: Sequence[CourseStanding]) -> Optional[GpaResult]:
    """GPA over the courses that have a computable percentage."""
    return calculate_gpa(
        GpaEntry(letter_grade=s.letter, credit_hours=s.credit_hours)
        for s in standings if s.letter is not None
    )


def term_summary(semester: Any, courses: Iterable[Any], items_by_course: Dict[str, List[Any]]) -> TermSummary:
    standings = [
        course_standing(course, items_by_course.get(course.id, []))
        for course in courses if course.semester_id == semester.id
    ]
    result = standings_gpa(standings)
    return TermSummary(
        semester_id=semester.id,
        name=semester.name,
        status=semester.status,
        is_current=semester.is_current,
        credits=sum(s.credit_hours for s in standings),
        gpa=result.gpa if result else None,
        courses=standings
    )


def cumulative_summary(semesters: Sequence[Any], courses: Sequence[Any], items: Iterable[Any]) -> CumulativeSummary:
    """Per-term GPAs plus the GPA across every course, assigned to a term or not."""
    items_by_course = group_items_by_course(items)
    semester_ids = {semester.id for semester in semesters}

    terms = [term_summary(semester, courses, items_by_course) for semester in semesters]
    unassigned = [
        course_standing(course, items_by_course.get(course.id, []))
        for course in courses if course.semester_id not in semester_ids
    ]

    all_standings = [s for term in terms for s in term.courses] + unassigned
    result = standings_gpa(all_standings)

    return CumulativeSummary(
        gpa=result.gpa if result else None,
        credits=sum(s.credit_hours for s in all_standings),
        semesters_completed=sum(1 for s in semesters if s.status == SemesterStatus.COMPLETED),
        terms=terms,
        unassigned=unassigned
    )
