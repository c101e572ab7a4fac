"""
Shared plumbing for the owner-scoped record services.
"""

import logging
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import List, Optional, TypeVar

from ..core.entities import AbstractEntity
from ..core.exceptions import AuthenticationError, GradeTrackException, ResourceNotFoundError
from ..persistence.database import DatabaseManager
from ..persistence.repositories import (
    BaseRepository, CourseRepository, GradeItemRepository, SemesterRepository, Statement
)
from .concurrency_manager import ConcurrencyManager, LockType, owner_resource

logger = logging.getLogger(__name__)

E = TypeVar('E', bound=AbstractEntity)


@dataclass
class DeletionResult:
    """Result of a delete command and what it took with it."""
    deleted_id: str
    courses_removed: int = 0
    grades_removed: int = 0
    promoted_semester_id: Optional[str] = None

    def to_dict(self):
        return {
            'deleted_id': self.deleted_id,
            'courses_removed': self.courses_removed,
            'grades_removed': self.grades_removed,
            'promoted_semester_id': self.promoted_semester_id,
        }


@dataclass
class UnitOfWork:
    """Statements collected by one command, applied in a single transaction."""
    statements: List[Statement] = field(default_factory=list)

    def add(self, statement: Statement) -> None:
        self.statements.append(statement)


class OwnerScopedService:
    """Base class for services whose records all belong to one user."""

    def __init__(self, database: DatabaseManager, courses: CourseRepository,
                 grades: GradeItemRepository, semesters: SemesterRepository,
                 concurrency_manager: ConcurrencyManager):
        self._database = database
        self._courses = courses
        self._grades = grades
        self._semesters = semesters
        self._concurrency_manager = concurrency_manager

    @staticmethod
    def _require_identity(owner_id: Optional[str], action: str) -> str:
        if not owner_id:
            logger.warning("Rejected %s without an identity", action)
            raise AuthenticationError("Not authenticated", details={'action': action})
        return owner_id

    @staticmethod
    def _owned(repository: BaseRepository[E], entity_id: Optional[str], owner_id: Optional[str]) -> E:
        """Load a record the caller owns; missing and foreign records look the same."""
        entity = repository.find_by_id(entity_id) if entity_id else None
        if entity is None or not entity.is_owned_by(owner_id):
            label = repository.entity_type.replace('_', ' ').capitalize()
            raise ResourceNotFoundError(
                f"{label} not found",
                details={'id': entity_id}
            )
        return entity

    def _read(self, owner_id: str):
        """Hold the owner's read lock so reads spanning several queries see one state."""
        return self._concurrency_manager.lock(owner_resource(owner_id), LockType.READ)

    @contextmanager
    def _write(self, owner_id: str):
        """Hold the owner's write lock and commit the collected statements on exit."""
        with self._concurrency_manager.lock(owner_resource(owner_id), LockType.WRITE):
            work = UnitOfWork()
            try:
                yield work
            except GradeTrackException as e:
                logger.warning("Rejected command for owner %s: %s", owner_id, e)
                raise
            if work.statements:
                self._database.execute_transaction(work.statements)
