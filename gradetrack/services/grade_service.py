"""
Grade service: grade rows addressed by (course, caller-assigned row id).
"""

import logging
from datetime import date
from typing import List, Optional

from ..core.assessments import (
    DEFAULT_UPCOMING_DAYS, MAX_UPCOMING_DAYS, dated_assessments, upcoming_assessments
)
from ..core.entities import GradeItem
from ..core.exceptions import ResourceNotFoundError, ValidationError
from .base import DeletionResult, OwnerScopedService

logger = logging.getLogger(__name__)


class GradeService(OwnerScopedService):
    """Service for reading and editing a user's grade rows."""

    def __init__(self, *args, upcoming_days: int = DEFAULT_UPCOMING_DAYS, **kwargs):
        super().__init__(*args, **kwargs)
        self._upcoming_days = upcoming_days

    def list_grades(self, owner_id: Optional[str]) -> List[GradeItem]:
        """Every grade row of a user, newest first; empty without an identity."""
        if not owner_id:
            return []
        return self._grades.find_by_owner(owner_id)

    def list_by_course(self, owner_id: Optional[str], course_id: str) -> List[GradeItem]:
        if not owner_id:
            return []
        return self._grades.find_by_course(owner_id, course_id)

    def list_dated(self, owner_id: Optional[str]) -> List[GradeItem]:
        """Rows with a due date, earliest first."""
        return dated_assessments(self.list_grades(owner_id))

    def list_upcoming(self, owner_id: Optional[str], today: Optional[date] = None,
                      days: Optional[int] = None) -> List[GradeItem]:
        """Ungraded rows due within the upcoming window."""
        days = self._upcoming_days if days is None else days
        if not 0 <= days <= MAX_UPCOMING_DAYS:
            raise ValidationError(
                f"Upcoming window must be between 0 and {MAX_UPCOMING_DAYS} days",
                details={'days': days}
            )
        return upcoming_assessments(self.list_grades(owner_id), today or date.today(), days)

    def upsert_row(self, owner_id: Optional[str], course_id: str, client_row_id: str,
                   label: Optional[str] = None, grade_input: Optional[str] = None,
                   weight_input: Optional[str] = None, due_date: Optional[str] = None) -> GradeItem:
        """Create or replace the row with this key; repeating a call changes nothing further."""
        owner_id = self._require_identity(owner_id, "upsert grade row")
        with self._write(owner_id) as work:
            course = self._owned(self._courses, course_id, owner_id)
            item = self._grades.find_by_row_key(owner_id, course_id, client_row_id)
            if item is None:
                item = GradeItem(
                    course_id=course_id,
                    client_row_id=client_row_id,
                    owner_id=owner_id,
                    label=label,
                    grade_input=grade_input,
                    weight_input=weight_input,
                    grade_type=course.grade_type,
                    due_date=due_date
                )
                action = "Created"
            else:
                item.update_row(
                    label=label,
                    grade_input=grade_input,
                    weight_input=weight_input,
                    grade_type=course.grade_type,
                    due_date=due_date
                )
                action = "Updated"
            work.add(self._grades.save_statement(item))

        logger.info("%s grade row %s/%s for owner %s", action, course_id, client_row_id, owner_id)
        return item

    def remove_row(self, owner_id: Optional[str], course_id: str, client_row_id: str) -> DeletionResult:
        """Delete the row with this key."""
        owner_id = self._require_identity(owner_id, "remove grade row")
        with self._write(owner_id) as work:
            self._owned(self._courses, course_id, owner_id)
            item = self._grades.find_by_row_key(owner_id, course_id, client_row_id)
            if item is None:
                raise ResourceNotFoundError("Grade row not found", details={'row_id': client_row_id})
            work.add(self._grades.delete_statement(item.id))

        logger.info("Removed grade row %s/%s for owner %s", course_id, client_row_id, owner_id)
        return DeletionResult(deleted_id=item.id, grades_removed=1)

    def remove_by_course(self, owner_id: Optional[str], course_id: str) -> int:
        """Delete every row of a course and return how many went."""
        owner_id = self._require_identity(owner_id, "remove course grades")
        with self._write(owner_id) as work:
            self._owned(self._courses, course_id, owner_id)
            items = self._grades.find_by_course(owner_id, course_id)
            for item in items:
                work.add(self._grades.delete_statement(item.id))

        logger.info("Removed %d grade rows of course %s for owner %s", len(items), course_id, owner_id)
        return len(items)
