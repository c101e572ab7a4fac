"""
Core entities for the GradeTrack service.
"""

import uuid
from abc import ABC
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Sequence

from .enums import GradeType, SemesterStatus
from .exceptions import ValidationError
from .grading import (
    DEFAULT_LETTER_THRESHOLDS, GradeEntry, LetterThreshold,
    is_blank, parse_number, resolve_grade_value, validate_thresholds
)
from .assessments import normalize_due_date


DEFAULT_CREDIT_HOURS = 3.0


def _clean_name(name: str, what: str) -> str:
    if not isinstance(name, str) or not name.strip():
        raise ValidationError(f"{what} name cannot be empty")
    return name.strip()


def _coerce_grade_type(grade_type: Any) -> GradeType:
    if isinstance(grade_type, GradeType):
        return grade_type
    try:
        return GradeType(grade_type)
    except ValueError:
        raise ValidationError(f"Invalid grade type: {grade_type}")


class AbstractEntity(ABC):
    """Base entity with an id, an owning user, timestamps and a version counter."""

    def __init__(self, owner_id: str, entity_id: Optional[str] = None):
        if not owner_id:
            raise ValidationError("Entities must belong to a user")
        self._id = entity_id or str(uuid.uuid4())
        self._owner_id = owner_id
        self._created_at = datetime.now(timezone.utc)
        self._updated_at = self._created_at
        self._version = 1

    @property
    def id(self) -> str:
        return self._id

    @property
    def owner_id(self) -> str:
        return self._owner_id

    @property
    def created_at(self) -> datetime:
        return self._created_at

    @property
    def updated_at(self) -> datetime:
        return self._updated_at

    @property
    def version(self) -> int:
        return self._version

    def is_owned_by(self, owner_id: Optional[str]) -> bool:
        return owner_id is not None and self._owner_id == owner_id

    def touch(self) -> None:
        """Record a modification."""
        self._updated_at = datetime.now(timezone.utc)
        self._version += 1

    def to_dict(self) -> Dict[str, Any]:
        """Convert entity to dictionary."""
        return {
            'id': self._id,
            'owner_id': self._owner_id,
            'created_at': self._created_at.isoformat(),
            'updated_at': self._updated_at.isoformat(),
            'version': self._version,
        }

    def __str__(self) -> str:
        return f"{self.__class__.__name__}(id={self._id})"

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(id={self._id}, owner_id={self._owner_id}, version={self._version})"


class Course(AbstractEntity):
    """A course with its grading configuration. Owns its grade items."""

    def __init__(self, name: str, owner_id: str, credit_hours: float = DEFAULT_CREDIT_HOURS,
                 grade_type: GradeType = GradeType.PERCENTAGE, semester_id: Optional[str] = None,
                 letter_thresholds: Optional[Sequence[LetterThreshold]] = None, **kwargs):
        super().__init__(owner_id, **kwargs)
        self._name = _clean_name(name, "Course")
        self._credit_hours = self._validate_credit_hours(credit_hours)
        self._grade_type = _coerce_grade_type(grade_type)
        self._semester_id = semester_id
        self._letter_thresholds: Optional[List[LetterThreshold]] = (
            validate_thresholds(letter_thresholds) if letter_thresholds else None
        )

    @staticmethod
    def _validate_credit_hours(credit_hours: Any) -> float:
        value = parse_number(credit_hours)
        if value is None or value <= 0:
            raise ValidationError("Credit hours must be a positive number")
        return value

    @property
    def name(self) -> str:
        return self._name

    @property
    def credit_hours(self) -> float:
        return self._credit_hours

    @property
    def grade_type(self) -> GradeType:
        return self._grade_type

    @property
    def semester_id(self) -> Optional[str]:
        return self._semester_id

    @property
    def letter_thresholds(self) -> Optional[List[LetterThreshold]]:
        """The custom scale, or None when the course uses the default one."""
        return list(self._letter_thresholds) if self._letter_thresholds else None

    @property
    def thresholds(self) -> List[LetterThreshold]:
        """The scale in effect for this course."""
        return list(self._letter_thresholds or DEFAULT_LETTER_THRESHOLDS)

    @property
    def has_custom_scale(self) -> bool:
        return self._letter_thresholds is not None

    def rename(self, name: str) -> None:
        self._name = _clean_name(name, "Course")
        self.touch()

    def set_credit_hours(self, credit_hours: float) -> None:
        self._credit_hours = self._validate_credit_hours(credit_hours)
        self.touch()

    def set_grade_type(self, grade_type: GradeType) -> None:
        self._grade_type = _coerce_grade_type(grade_type)
        self.touch()

    def assign_semester(self, semester_id: Optional[str]) -> None:
        self._semester_id = semester_id
        self.touch()

    def set_letter_thresholds(self, thresholds: Sequence[LetterThreshold]) -> None:
        """Replace the custom scale; an invalid scale leaves the current one untouched."""
        self._letter_thresholds = validate_thresholds(thresholds)
        self.touch()

    def reset_letter_thresholds(self) -> None:
        self._letter_thresholds = None
        self.touch()

    def to_dict(self) -> Dict[str, Any]:
        base_dict = super().to_dict()
        base_dict.update({
            'name': self._name,
            'credit_hours': self._credit_hours,
            'grade_type': self._grade_type.value,
            'semester_id': self._semester_id,
            'letter_thresholds': (
                [t.to_dict() for t in self._letter_thresholds] if self._letter_thresholds else None
            ),
        })
        return base_dict


class GradeItem(AbstractEntity):
    """One graded component of a course, keyed by a caller-assigned row id.

    The raw cells are kept as entered; the numeric grade and weight are
    derived from them on every edit.
    """

    def __init__(self, course_id: str, client_row_id: str, owner_id: str,
                 label: Optional[str] = None, grade_input: Optional[str] = None,
                 weight_input: Optional[str] = None, grade_type: GradeType = GradeType.PERCENTAGE,
                 due_date: Optional[str] = None, **kwargs):
        super().__init__(owner_id, **kwargs)
        if not client_row_id:
            raise ValidationError("Grade rows need a row id")
        self._course_id = course_id
        self._client_row_id = client_row_id
        self._label: Optional[str] = None
        self._grade_input: Optional[str] = None
        self._weight_input: Optional[str] = None
        self._grade_type = GradeType.PERCENTAGE
        self._due_date: Optional[str] = None
        self._grade: Optional[float] = None
        self._weight = 0.0
        self._apply(label, grade_input, weight_input, grade_type, due_date)

    def _apply(self, label, grade_input, weight_input, grade_type, due_date) -> None:
        due = None
        if not is_blank(due_date):
            parsed = normalize_due_date(due_date)
            if parsed is None:
                raise ValidationError(f"Invalid due date: {due_date}")
            due = parsed.isoformat()
        grade_type = _coerce_grade_type(grade_type)

        self._label = label.strip() if isinstance(label, str) and label.strip() else None
        self._grade_input = None if is_blank(grade_input) else str(grade_input).strip()
        self._weight_input = None if is_blank(weight_input) else str(weight_input).strip()
        self._grade_type = grade_type
        self._due_date = due

        self._grade = resolve_grade_value(self._grade_input, self._grade_type)
        weight = parse_number(self._weight_input)
        self._weight = weight if weight is not None and weight > 0 else 0.0

    @property
    def course_id(self) -> str:
        return self._course_id

    @property
    def client_row_id(self) -> str:
        return self._client_row_id

    @property
    def label(self) -> Optional[str]:
        return self._label

    @property
    def grade_input(self) -> Optional[str]:
        return self._grade_input

    @property
    def weight_input(self) -> Optional[str]:
        return self._weight_input

    @property
    def grade_type(self) -> GradeType:
        return self._grade_type

    @property
    def due_date(self) -> Optional[str]:
        return self._due_date

    @property
    def grade(self) -> Optional[float]:
        """Percentage resolved from the raw grade cell, None when it does not resolve."""
        return self._grade

    @property
    def weight(self) -> float:
        return self._weight

    def update_row(self, label: Optional[str] = None, grade_input: Optional[str] = None,
                   weight_input: Optional[str] = None, grade_type: GradeType = GradeType.PERCENTAGE,
                   due_date: Optional[str] = None) -> None:
        """Replace every cell of the row."""
        self._apply(label, grade_input, weight_input, grade_type, due_date)
        self.touch()

    def as_entry(self) -> GradeEntry:
        return GradeEntry(grade=self._grade_input, weight=self._weight_input)

    def to_dict(self) -> Dict[str, Any]:
        base_dict = super().to_dict()
        base_dict.update({
            'course_id': self._course_id,
            'client_row_id': self._client_row_id,
            'label': self._label,
            'grade_input': self._grade_input,
            'weight_input': self._weight_input,
            'grade_type': self._grade_type.value,
            'due_date': self._due_date,
            'grade': self._grade,
            'weight': self._weight,
        })
        return base_dict


class Semester(AbstractEntity):
    """A term grouping courses. At most one semester per user is current."""

    def __init__(self, name: str, owner_id: str, status: SemesterStatus = SemesterStatus.COMPLETED,
                 is_current: bool = False, **kwargs):
        super().__init__(owner_id, **kwargs)
        self._name = _clean_name(name, "Semester")
        self._status = self.coerce_status(status)
        self._is_current = bool(is_current)
        if self._is_current:
            self._status = SemesterStatus.IN_PROGRESS

    @staticmethod
    def coerce_status(status: Any) -> SemesterStatus:
        if isinstance(status, SemesterStatus):
            return status
        try:
            return SemesterStatus(status)
        except ValueError:
            raise ValidationError(f"Invalid semester status: {status}")

    @property
    def name(self) -> str:
        return self._name

    @property
    def status(self) -> SemesterStatus:
        return self._status

    @property
    def is_current(self) -> bool:
        return self._is_current

    @property
    def is_active(self) -> bool:
        """Current or in progress; either one blocks another semester from being current."""
        return self._is_current or self._status == SemesterStatus.IN_PROGRESS

    def rename(self, name: str) -> None:
        self._name = _clean_name(name, "Semester")
        self.touch()

    def make_current(self) -> None:
        self._status = SemesterStatus.IN_PROGRESS
        self._is_current = True
        self.touch()

    def complete(self) -> None:
        self._status = SemesterStatus.COMPLETED
        self._is_current = False
        self.touch()

    def to_dict(self) -> Dict[str, Any]:
        base_dict = super().to_dict()
        base_dict.update({
            'name': self._name,
            'status': self._status.value,
            'is_current': self._is_current,
        })
        return base_dict

