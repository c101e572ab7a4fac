"""
Course service: course records, their grading configuration and cascading deletes.
"""

import logging
from typing import Any, Dict, Iterable, List, Optional

from ..core.entities import DEFAULT_CREDIT_HOURS, Course
from ..core.enums import GradeType
from ..core.exceptions import ValidationError
from .base import DeletionResult, OwnerScopedService

logger = logging.getLogger(__name__)

COURSE_FIELDS = {"name", "credit_hours", "grade_type", "semester_id"}


class CourseService(OwnerScopedService):
    """Service for managing a user's courses."""

    def list_courses(self, owner_id: Optional[str]) -> List[Course]:
        """A user's courses, newest first; empty without an identity."""
        if not owner_id:
            return []
        return self._courses.find_by_owner(owner_id)

    def get_course(self, owner_id: Optional[str], course_id: str) -> Course:
        return self._owned(self._courses, course_id, owner_id)

    def create_course(self, owner_id: Optional[str], name: str,
                      credit_hours: Optional[float] = None,
                      grade_type: GradeType = GradeType.PERCENTAGE,
                      semester_id: Optional[str] = None,
                      letter_thresholds: Optional[Iterable[Any]] = None) -> Course:
        """Create a course, optionally inside one of the user's semesters."""
        owner_id = self._require_identity(owner_id, "create course")
        with self._write(owner_id) as work:
            if semester_id:
                self._owned(self._semesters, semester_id, owner_id)
            course = Course(
                name=name,
                owner_id=owner_id,
                credit_hours=DEFAULT_CREDIT_HOURS if credit_hours is None else credit_hours,
                grade_type=grade_type,
                semester_id=semester_id,
                letter_thresholds=list(letter_thresholds) if letter_thresholds else None
            )
            work.add(self._courses.save_statement(course))

        logger.info("Created course %s for owner %s", course.id, owner_id)
        return course

    def update_course(self, owner_id: Optional[str], course_id: str, changes: Dict[str, Any]) -> Course:
        """Apply several course edits as one command.

        Recognised keys are ``name``, ``credit_hours``, ``grade_type`` and
        ``semester_id`` (None moves the course out of its semester). Either
        every change is stored or none is.
        """
        unknown = set(changes) - COURSE_FIELDS
        if unknown:
            raise ValidationError(f"Unknown course fields: {', '.join(sorted(unknown))}")
        owner_id = self._require_identity(owner_id, "update course")

        with self._write(owner_id) as work:
            course = self._owned(self._courses, course_id, owner_id)
            previous_type = course.grade_type

            if 'semester_id' in changes:
                semester_id = changes['semester_id'] or None
                if semester_id:
                    self._owned(self._semesters, semester_id, owner_id)
                course.assign_semester(semester_id)
            if 'name' in changes:
                course.rename(changes['name'])
            if 'credit_hours' in changes:
                course.set_credit_hours(changes['credit_hours'])
            if 'grade_type' in changes:
                course.set_grade_type(changes['grade_type'])
            work.add(self._courses.save_statement(course))

            rederived = 0
            if course.grade_type != previous_type:
                for item in self._grades.find_by_course(owner_id, course_id):
                    item.update_row(
                        label=item.label,
                        grade_input=item.grade_input,
                        weight_input=item.weight_input,
                        grade_type=course.grade_type,
                        due_date=item.due_date
                    )
                    work.add(self._grades.save_statement(item))
                    rederived += 1

        logger.info("Updated %s on course %s (%d rows re-derived) for owner %s",
                    ', '.join(sorted(changes)), course_id, rederived, owner_id)
        return course

    def rename_course(self, owner_id: Optional[str], course_id: str, name: str) -> Course:
        return self.update_course(owner_id, course_id, {'name': name})

    def update_credits(self, owner_id: Optional[str], course_id: str, credit_hours: float) -> Course:
        return self.update_course(owner_id, course_id, {'credit_hours': credit_hours})

    def update_grade_type(self, owner_id: Optional[str], course_id: str, grade_type: GradeType) -> Course:
        """Switch how the course's grade cells are read; stored rows are re-derived."""
        return self.update_course(owner_id, course_id, {'grade_type': grade_type})

    def assign_semester(self, owner_id: Optional[str], course_id: str, semester_id: Optional[str]) -> Course:
        return self.update_course(owner_id, course_id, {'semester_id': semester_id})

    def set_letter_thresholds(self, owner_id: Optional[str], course_id: str,
                              thresholds: Iterable[Any]) -> Course:
        owner_id = self._require_identity(owner_id, "set letter thresholds")
        with self._write(owner_id) as work:
            course = self._owned(self._courses, course_id, owner_id)
            course.set_letter_thresholds(list(thresholds))
            work.add(self._courses.save_statement(course))
        logger.info("Set custom letter scale on course %s for owner %s", course_id, owner_id)
        return course

    def reset_letter_thresholds(self, owner_id: Optional[str], course_id: str) -> Course:
        owner_id = self._require_identity(owner_id, "reset letter thresholds")
        with self._write(owner_id) as work:
            course = self._owned(self._courses, course_id, owner_id)
            course.reset_letter_thresholds()
            work.add(self._courses.save_statement(course))
        logger.info("Reset letter scale on course %s for owner %s", course_id, owner_id)
        return course

    def delete_course(self, owner_id: Optional[str], course_id: str) -> DeletionResult:
        """Delete a course together with all of its grade rows."""
        owner_id = self._require_identity(owner_id, "delete course")
        with self._write(owner_id) as work:
            self._owned(self._courses, course_id, owner_id)
            items = self._grades.find_by_course(owner_id, course_id)
            for item in items:
                work.add(self._grades.delete_statement(item.id))
            work.add(self._courses.delete_statement(course_id))

        logger.info("Deleted course %s and %d grade rows for owner %s", course_id, len(items), owner_id)
        return DeletionResult(deleted_id=course_id, courses_removed=1, grades_removed=len(items))
