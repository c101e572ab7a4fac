"""Tests for the SQLite document store and its repositories."""

import pytest

from gradetrack.core.entities import Course, GradeItem, Semester
from gradetrack.core.enums import GradeType, SemesterStatus
from gradetrack.core.exceptions import PersistenceError
from gradetrack.core.grading import LetterThreshold

OWNER = "student-1"
OTHER = "student-2"


class TestSQLiteDatabase:
    def test_creates_entities_table(self, database):
        tables = database.execute_query("SELECT name FROM sqlite_master WHERE type = 'table'")
        assert {"name": "entities"} in tables

    def test_creates_parent_directory(self, tmp_path):
        from gradetrack.persistence import SQLiteDatabase

        path = tmp_path / "nested" / "dir" / "grades.db"
        SQLiteDatabase(str(path))
        assert path.exists()

    def test_failed_transaction_applies_nothing(self, database, repos):
        """A bad statement rolls back the statements before it."""
        course = Course("Calculus", OWNER)
        with pytest.raises(PersistenceError):
            database.execute_transaction([
                repos.courses.save_statement(course),
                ("INSERT INTO no_such_table VALUES (?)", (1,)),
            ])
        assert repos.courses.find_by_id(course.id) is None
        assert repos.courses.find_all() == []


class TestCourseRepository:
    def test_round_trip_keeps_fields(self, repos):
        scale = [LetterThreshold(85, "A"), LetterThreshold(0, "F")]
        course = Course("Writing", OWNER, credit_hours=4, grade_type=GradeType.LETTERS,
                        semester_id="sem-1", letter_thresholds=scale)
        course.rename("Writing II")
        repos.courses.save(course)

        loaded = repos.courses.find_by_id(course.id)
        assert loaded.name == "Writing II"
        assert loaded.credit_hours == 4.0
        assert loaded.grade_type == GradeType.LETTERS
        assert loaded.semester_id == "sem-1"
        assert loaded.letter_thresholds == scale
        assert loaded.version == 2
        assert loaded.created_at == course.created_at

    def test_save_twice_is_an_update(self, repos):
        course = repos.courses.save(Course("Calculus", OWNER))
        course.set_credit_hours(5)
        repos.courses.save(course)
        assert len(repos.courses.find_by_owner(OWNER)) == 1
        assert repos.courses.find_by_id(course.id).credit_hours == 5.0

    def test_find_by_owner_newest_first(self, repos):
        first = repos.courses.save(Course("First", OWNER))
        second = repos.courses.save(Course("Second", OWNER))
        repos.courses.save(Course("Elsewhere", OTHER))
        # updating the older course does not move it
        first.rename("First again")
        repos.courses.save(first)

        assert [c.id for c in repos.courses.find_by_owner(OWNER)] == [second.id, first.id]
        assert [c.name for c in repos.courses.find_by_owner(OTHER)] == ["Elsewhere"]
        assert repos.courses.find_by_owner("nobody") == []

    def test_find_by_semester(self, repos):
        kept = repos.courses.save(Course("Kept", OWNER, semester_id="sem-1"))
        repos.courses.save(Course("Other term", OWNER, semester_id="sem-2"))
        repos.courses.save(Course("Foreign", OTHER, semester_id="sem-1"))
        assert [c.id for c in repos.courses.find_by_semester(OWNER, "sem-1")] == [kept.id]

    def test_delete(self, repos):
        course = repos.courses.save(Course("Calculus", OWNER))
        assert repos.courses.delete(course.id)
        assert not repos.courses.delete(course.id)
        assert repos.courses.find_by_id(course.id) is None

    def test_types_do_not_mix(self, repos):
        course = repos.courses.save(Course("Calculus", OWNER))
        assert repos.semesters.find_by_id(course.id) is None
        assert not repos.semesters.delete(course.id)

    def test_unreadable_document(self, database, repos):
        database.execute_update(
            "INSERT INTO entities (id, type, owner_id, data) VALUES (?, ?, ?, ?)",
            ("broken", "course", OWNER, '{"name": "no owner"}')
        )
        with pytest.raises(PersistenceError):
            repos.courses.find_by_id("broken")


class TestGradeItemRepository:
    def test_row_key_lookup(self, repos):
        row = repos.grades.save(GradeItem("c1", "row-1", OWNER, grade_input="B", grade_type=GradeType.LETTERS))
        repos.grades.save(GradeItem("c2", "row-1", OWNER))
        repos.grades.save(GradeItem("c1", "row-1", OTHER))

        found = repos.grades.find_by_row_key(OWNER, "c1", "row-1")
        assert found.id == row.id
        assert found.grade == 83.0
        assert repos.grades.find_by_row_key(OWNER, "c1", "row-2") is None
        assert len(repos.grades.find_by_course(OWNER, "c1")) == 1

    def test_statements_apply_together(self, database, repos):
        rows = [GradeItem("c1", f"row-{i}", OWNER) for i in range(3)]
        database.execute_transaction([repos.grades.save_statement(r) for r in rows])
        assert len(repos.grades.find_by_course(OWNER, "c1")) == 3

        database.execute_transaction([repos.grades.delete_statement(r.id) for r in rows[:2]])
        assert [r.client_row_id for r in repos.grades.find_by_owner(OWNER)] == ["row-2"]


class TestSemesterRepository:
    def test_current_flag_round_trips(self, repos):
        repos.semesters.save(Semester("Fall", OWNER))
        spring = repos.semesters.save(Semester("Spring", OWNER, is_current=True))
        current = [s for s in repos.semesters.find_by_owner(OWNER) if s.is_current]
        assert [s.id for s in current] == [spring.id]
        assert current[0].status == SemesterStatus.IN_PROGRESS
