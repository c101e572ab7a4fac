"""Shared fixtures: a throwaway SQLite file per test."""

from types import SimpleNamespace

import pytest
from fastapi.testclient import TestClient

from gradetrack.config import PlatformConfig
from gradetrack.main import GradeTrackPlatform
from gradetrack.persistence import (
    CourseRepository, GradeItemRepository, SemesterRepository, SQLiteDatabase
)
from gradetrack.services import (
    ConcurrencyManager, CourseService, GradeService, ReportService, SemesterService
)


@pytest.fixture
def database(tmp_path):
    return SQLiteDatabase(str(tmp_path / "gradetrack.db"))


@pytest.fixture
def repos(database):
    return SimpleNamespace(
        courses=CourseRepository(database),
        grades=GradeItemRepository(database),
        semesters=SemesterRepository(database),
    )


@pytest.fixture
def services(database, repos):
    shared = (database, repos.courses, repos.grades, repos.semesters, ConcurrencyManager(default_timeout=2))
    return SimpleNamespace(
        courses=CourseService(*shared),
        grades=GradeService(*shared),
        semesters=SemesterService(*shared),
        reports=ReportService(*shared),
        repos=repos,
    )


@pytest.fixture
def platform(tmp_path):
    return GradeTrackPlatform(PlatformConfig(database_path=str(tmp_path / "api.db"), lock_timeout=2))


@pytest.fixture
def client(platform):
    return TestClient(platform.app)
