"""
Semester service: terms, the single current term and cascading deletes.
"""

import logging
from dataclasses import dataclass, field
from typing import List, Optional

from ..core.entities import Course, GradeItem, Semester
from ..core.enums import SemesterStatus
from .base import DeletionResult, OwnerScopedService, UnitOfWork

logger = logging.getLogger(__name__)


@dataclass
class SemesterOverview:
    """Everything a user has, grouped the way the semesters page reads it."""
    semesters: List[Semester] = field(default_factory=list)
    courses: List[Course] = field(default_factory=list)
    grades: List[GradeItem] = field(default_factory=list)


class SemesterService(OwnerScopedService):
    """Service for managing a user's semesters.

    A user has at most one current semester and it is the only one in
    progress. Every command that could break that demotes the others in the
    same transaction that writes the winner.
    """

    def list_semesters(self, owner_id: Optional[str]) -> List[Semester]:
        """A user's semesters, newest first; empty without an identity."""
        if not owner_id:
            return []
        return self._semesters.find_by_owner(owner_id)

    def get_semester(self, owner_id: Optional[str], semester_id: str) -> Semester:
        return self._owned(self._semesters, semester_id, owner_id)

    def _demote_others(self, owner_id: str, keep_id: Optional[str], work: UnitOfWork) -> List[str]:
        demoted = []
        for other in self._semesters.find_by_owner(owner_id):
            if other.id == keep_id or not other.is_active:
                continue
            other.complete()
            work.add(self._semesters.save_statement(other))
            demoted.append(other.id)
        return demoted

    def create_semester(self, owner_id: Optional[str], name: str,
                        status: SemesterStatus = SemesterStatus.COMPLETED,
                        make_current: bool = False) -> Semester:
        """Create a semester; one created in progress or as current becomes the current one."""
        owner_id = self._require_identity(owner_id, "create semester")
        status = Semester.coerce_status(status)
        becomes_current = make_current or status == SemesterStatus.IN_PROGRESS

        with self._write(owner_id) as work:
            semester = Semester(name=name, owner_id=owner_id, status=status, is_current=becomes_current)
            demoted = self._demote_others(owner_id, semester.id, work) if becomes_current else []
            work.add(self._semesters.save_statement(semester))

        logger.info("Created semester %s (current=%s, demoted %d) for owner %s",
                    semester.id, semester.is_current, len(demoted), owner_id)
        return semester

    def rename_semester(self, owner_id: Optional[str], semester_id: str, name: str) -> Semester:
        owner_id = self._require_identity(owner_id, "rename semester")
        with self._write(owner_id) as work:
            semester = self._owned(self._semesters, semester_id, owner_id)
            semester.rename(name)
            work.add(self._semesters.save_statement(semester))
        logger.info("Renamed semester %s for owner %s", semester_id, owner_id)
        return semester

    def set_current(self, owner_id: Optional[str], semester_id: str) -> Semester:
        """Make a semester the current one and complete every other active semester."""
        owner_id = self._require_identity(owner_id, "set current semester")
        with self._write(owner_id) as work:
            semester = self._owned(self._semesters, semester_id, owner_id)
            demoted = self._demote_others(owner_id, semester.id, work)
            semester.make_current()
            work.add(self._semesters.save_statement(semester))

        logger.info("Semester %s is now current (demoted %d) for owner %s", semester_id, len(demoted), owner_id)
        return semester

    def update_status(self, owner_id: Optional[str], semester_id: str, status: SemesterStatus) -> Semester:
        """Mark a semester in progress, which makes it current, or completed."""
        owner_id = self._require_identity(owner_id, "update semester status")
        status = Semester.coerce_status(status)
        if status == SemesterStatus.IN_PROGRESS:
            return self.set_current(owner_id, semester_id)

        with self._write(owner_id) as work:
            semester = self._owned(self._semesters, semester_id, owner_id)
            semester.complete()
            work.add(self._semesters.save_statement(semester))

        logger.info("Completed semester %s for owner %s", semester_id, owner_id)
        return semester

    def delete_semester(self, owner_id: Optional[str], semester_id: str) -> DeletionResult:
        """Delete a semester with its courses and their grade rows.

        When the deleted semester was current, the newest remaining semester
        still in progress takes over.
        """
        owner_id = self._require_identity(owner_id, "delete semester")
        result = DeletionResult(deleted_id=semester_id)

        with self._write(owner_id) as work:
            semester = self._owned(self._semesters, semester_id, owner_id)

            for course in self._courses.find_by_semester(owner_id, semester_id):
                items = self._grades.find_by_course(owner_id, course.id)
                for item in items:
                    work.add(self._grades.delete_statement(item.id))
                work.add(self._courses.delete_statement(course.id))
                result.courses_removed += 1
                result.grades_removed += len(items)

            if semester.is_current:
                successor = next(
                    (s for s in self._semesters.find_by_owner(owner_id)
                     if s.id != semester_id and s.status == SemesterStatus.IN_PROGRESS),
                    None
                )
                if successor is not None:
                    successor.make_current()
                    work.add(self._semesters.save_statement(successor))
                    result.promoted_semester_id = successor.id

            work.add(self._semesters.delete_statement(semester_id))

        logger.info("Deleted semester %s with %d courses and %d grade rows for owner %s",
                    semester_id, result.courses_removed, result.grades_removed, owner_id)
        return result

    def overview(self, owner_id: Optional[str]) -> SemesterOverview:
        """Semesters and courses newest first, plus every grade row."""
        if not owner_id:
            return SemesterOverview()
        with self._read(owner_id):
            return SemesterOverview(
                semesters=self._semesters.find_by_owner(owner_id),
                courses=self._courses.find_by_owner(owner_id),
                grades=self._grades.find_by_owner(owner_id)
            )
