"""
Services module containing the owner-scoped record services.
"""

from .concurrency_manager import ConcurrencyManager, LockType
from .base import DeletionResult, OwnerScopedService
from .course_service import CourseService
from .grade_service import GradeService
from .semester_service import SemesterOverview, SemesterService
from .report_service import CourseSummary, ReportService

__all__ = [
    "ConcurrencyManager",
    "LockType",
    "DeletionResult",
    "OwnerScopedService",
    "CourseService",
    "GradeService",
    "SemesterOverview",
    "SemesterService",
    "CourseSummary",
    "ReportService",
]
