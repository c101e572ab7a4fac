"""
Report service: computed views over stored records.
"""

import logging
from dataclasses import dataclass
from typing import List, Optional

from ..core.entities import Course, GradeItem
from ..core.exceptions import ValidationError
from ..core.gpa import CourseStanding, CumulativeSummary, course_standing, cumulative_summary
from ..core.grading import CalculationResult, Number, calculate, parse_number
from .base import OwnerScopedService

logger = logging.getLogger(__name__)

DEFAULT_TARGET_GRADE = 80.0


@dataclass
class CourseSummary:
    """A course with its rows, its standing and the full grade-table calculation."""
    course: Course
    items: List[GradeItem]
    standing: CourseStanding
    target: float
    calculation: Optional[CalculationResult]


class ReportService(OwnerScopedService):
    """Read-only calculations over a user's courses and semesters."""

    def __init__(self, *args, default_target: Number = DEFAULT_TARGET_GRADE, **kwargs):
        super().__init__(*args, **kwargs)
        self._default_target = float(default_target)

    def course_summary(self, owner_id: Optional[str], course_id: str,
                       target: Optional[Number] = None) -> CourseSummary:
        if target is None:
            goal = self._default_target
        else:
            goal = parse_number(target)
            if goal is None:
                raise ValidationError(f"Invalid target grade: {target}")

        with self._read(owner_id):
            course = self._owned(self._courses, course_id, owner_id)
            items = self._grades.find_by_course(owner_id, course_id)
        calculation = calculate(
            [item.as_entry() for item in items],
            grade_type=course.grade_type,
            target=goal,
            thresholds=course.thresholds
        )
        return CourseSummary(
            course=course,
            items=items,
            standing=course_standing(course, items),
            target=goal,
            calculation=calculation
        )

    def overview_summary(self, owner_id: Optional[str]) -> CumulativeSummary:
        """Per-term and cumulative GPA; an empty summary without an identity."""
        if not owner_id:
            return cumulative_summary([], [], [])
        with self._read(owner_id):
            summary = cumulative_summary(
                self._semesters.find_by_owner(owner_id),
                self._courses.find_by_owner(owner_id),
                self._grades.find_by_owner(owner_id)
            )
        logger.debug("Overview for owner %s: gpa=%s over %s credits", owner_id, summary.gpa, summary.credits)
        return summary
