"""
Persistence module for document storage.
"""

from .database import DatabaseManager, SQLiteDatabase
from .repositories import (
    BaseRepository, CourseRepository, GradeItemRepository, SemesterRepository
)

__all__ = [
    "DatabaseManager",
    "SQLiteDatabase",
    "BaseRepository",
    "CourseRepository",
    "GradeItemRepository",
    "SemesterRepository",
]
