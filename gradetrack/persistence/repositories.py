"""
Repository pattern implementations for data access.
"""

import json
import logging
import threading
from abc import abstractmethod
from datetime import datetime
from typing import Any, Dict, List, Optional, Tuple, TypeVar, Generic

from ..core.entities import AbstractEntity, Course, GradeItem, Semester
from ..core.enums import GradeType, SemesterStatus
from ..core.exceptions import GradeTrackException, PersistenceError
from ..core.grading import LetterThreshold
from ..core.interfaces import Repository
from .database import DatabaseManager

logger = logging.getLogger(__name__)

T = TypeVar('T', bound=AbstractEntity)

Statement = Tuple[str, tuple]


class BaseRepository(Repository[T], Generic[T]):
    """Base repository storing each entity as a JSON document.

    Besides the direct ``save``/``delete`` calls, the ``*_statement`` builders
    return ``(query, params)`` pairs so a service can apply several writes in
    one ``execute_transaction`` call.
    """

    def __init__(self, database: DatabaseManager, entity_type: str):
        self._database = database
        self._entity_type = entity_type
        self._lock = threading.RLock()

    @property
    def entity_type(self) -> str:
        return self._entity_type

    def save_statement(self, entity: T) -> Statement:
        """Insert-or-update statement for an entity; the row keeps its insertion order."""
        query = """
            INSERT INTO entities (id, type, owner_id, data, created_at, updated_at, version)
            VALUES (?, ?, ?, ?, ?, ?, ?)
            ON CONFLICT(id) DO UPDATE SET
                data = excluded.data,
                updated_at = excluded.updated_at,
                version = excluded.version
        """
        params = (
            entity.id,
            self._entity_type,
            entity.owner_id,
            json.dumps(entity.to_dict()),
            entity.created_at.isoformat(),
            entity.updated_at.isoformat(),
            entity.version
        )
        return query, params

    def delete_statement(self, entity_id: str) -> Statement:
        return "DELETE FROM entities WHERE id = ? AND type = ?", (entity_id, self._entity_type)

    def save(self, entity: T) -> T:
        """Save an entity."""
        with self._lock:
            query, params = self.save_statement(entity)
            self._database.execute_update(query, params)
            return entity

    def find_by_id(self, entity_id: str) -> Optional[T]:
        """Find entity by ID."""
        with self._lock:
            query = "SELECT data FROM entities WHERE id = ? AND type = ?"
            results = self._database.execute_query(query, (entity_id, self._entity_type))
            if results:
                return self._load(results[0]["data"])
            return None

    def find_by_owner(self, owner_id: str) -> List[T]:
        """Find every entity belonging to a user, newest first."""
        return self.find_all({"owner_id": owner_id})

    def find_all(self, filters: Optional[Dict[str, Any]] = None) -> List[T]:
        """Find all entities matching filters."""
        with self._lock:
            query = "SELECT data FROM entities WHERE type = ?"
            params: List[Any] = [self._entity_type]

            if filters and "owner_id" in filters:
                query += " AND owner_id = ?"
                params.append(filters["owner_id"])

            query += " ORDER BY created_at DESC, rowid DESC"

            results = self._database.execute_query(query, tuple(params))
            return [self._load(row["data"]) for row in results]

    def delete(self, entity_id: str) -> bool:
        """Delete an entity by ID."""
        with self._lock:
            query, params = self.delete_statement(entity_id)
            affected_rows = self._database.execute_update(query, params)
            return affected_rows > 0

    def _load(self, raw: str) -> T:
        try:
            data = json.loads(raw)
            entity = self._entity_from_dict(data)
            self._restore_common(entity, data)
            return entity
        except (GradeTrackException, KeyError, TypeError, ValueError) as e:
            logger.error("Unreadable %s document: %s", self._entity_type, e)
            raise PersistenceError(f"Failed to load {self._entity_type}: {str(e)}")

    @staticmethod
    def _restore_common(entity: AbstractEntity, data: Dict[str, Any]) -> None:
        entity._created_at = datetime.fromisoformat(data["created_at"])
        entity._updated_at = datetime.fromisoformat(data["updated_at"])
        entity._version = data["version"]

    @abstractmethod
    def _entity_from_dict(self, data: Dict[str, Any]) -> T:
        """Convert dictionary to entity instance."""
        pass


class CourseRepository(BaseRepository[Course]):
    """Repository for Course entities."""

    def __init__(self, database: DatabaseManager):
        super().__init__(database, "course")

    def _entity_from_dict(self, data: Dict[str, Any]) -> Course:
        """Convert dictionary to Course instance."""
        thresholds = data.get("letter_thresholds")
        return Course(
            name=data["name"],
            owner_id=data["owner_id"],
            credit_hours=data["credit_hours"],
            grade_type=GradeType(data["grade_type"]),
            semester_id=data.get("semester_id"),
            letter_thresholds=[LetterThreshold.from_dict(t) for t in thresholds] if thresholds else None,
            entity_id=data["id"]
        )

    def find_by_semester(self, owner_id: str, semester_id: str) -> List[Course]:
        """Find a user's courses assigned to a semester."""
        return [c for c in self.find_by_owner(owner_id) if c.semester_id == semester_id]


class GradeItemRepository(BaseRepository[GradeItem]):
    """Repository for GradeItem entities."""

    def __init__(self, database: DatabaseManager):
        super().__init__(database, "grade_item")

    def _entity_from_dict(self, data: Dict[str, Any]) -> GradeItem:
        """Convert dictionary to GradeItem instance."""
        return GradeItem(
            course_id=data["course_id"],
            client_row_id=data["client_row_id"],
            owner_id=data["owner_id"],
            label=data.get("label"),
            grade_input=data.get("grade_input"),
            weight_input=data.get("weight_input"),
            grade_type=GradeType(data.get("grade_type", GradeType.PERCENTAGE.value)),
            due_date=data.get("due_date"),
            entity_id=data["id"]
        )

    def find_by_course(self, owner_id: str, course_id: str) -> List[GradeItem]:
        """Find a user's grade rows for one course."""
        return [g for g in self.find_by_owner(owner_id) if g.course_id == course_id]

    def find_by_row_key(self, owner_id: str, course_id: str, client_row_id: str) -> Optional[GradeItem]:
        """Find the grade row addressed by its caller-assigned key."""
        for item in self.find_by_course(owner_id, course_id):
            if item.client_row_id == client_row_id:
                return item
        return None


class SemesterRepository(BaseRepository[Semester]):
    """Repository for Semester entities."""

    def __init__(self, database: DatabaseManager):
        super().__init__(database, "semester")

    def _entity_from_dict(self, data: Dict[str, Any]) -> Semester:
        """Convert dictionary to Semester instance."""
        return Semester(
            name=data["name"],
            owner_id=data["owner_id"],
            status=SemesterStatus(data["status"]),
            is_current=data.get("is_current", False),
            entity_id=data["id"]
        )
