"""
Student Hub GPA - Test Configuration and Fixtures
"""
import copy
import os
from typing import AsyncGenerator

import pytest
from httpx import AsyncClient, ASGITransport

# Set testing environment before settings are first read
os.environ.setdefault("SUPABASE_URL", "http://supabase.test")
os.environ.setdefault("SUPABASE_KEY", "test-anon-key")
os.environ.setdefault("JWT_SECRET_KEY", "test-jwt-secret-key-for-testing")

from studenthub.main import app
from studenthub.core.dependencies import get_db, get_current_student_id
from studenthub.features.gpa.calculator import calculate_semester
from studenthub.features.gpa.grading import grade_point
from studenthub.features.gpa.schemas import CourseEntry, SemesterRecord, StoredCourse

STUDENT_ID = "student-1"


# ── In-memory Supabase ───────────────────────────────────

class FakeResult:
    def __init__(self, data: list[dict]):
        self.data = data


class FakeQuery:
    """The subset of the Supabase query builder the service uses."""

    def __init__(self, db: "FakeSupabase", table: str):
        self._db = db
        self._table = table
        self._op = "select"
        self._columns: tuple[str, ...] = ("*",)
        self._payload = None
        self._filters: list[tuple[str, object]] = []

    def select(self, *columns: str):
        self._op = "select"
        self._columns = columns or ("*",)
        return self

    def insert(self, row: dict):
        self._op, self._payload = "insert", row
        return self

    def update(self, values: dict):
        self._op, self._payload = "update", values
        return self

    def delete(self):
        self._op = "delete"
        return self

    def eq(self, column: str, value):
        self._filters.append((column, value))
        return self

    def execute(self) -> FakeResult:
        if self._db.fail_on == self._table:
            raise RuntimeError(f"table {self._table} unavailable")

        rows = self._db.tables.setdefault(self._table, [])
        matched = [r for r in rows if all(r.get(c) == v for c, v in self._filters)]

        if self._op == "insert":
            rows.append(copy.deepcopy(self._payload))
            return FakeResult([copy.deepcopy(self._payload)])
        if self._op == "update":
            for r in matched:
                r.update(copy.deepcopy(self._payload))
            return FakeResult(copy.deepcopy(matched))
        if self._op == "delete":
            self._db.tables[self._table] = [r for r in rows if r not in matched]
            return FakeResult(copy.deepcopy(matched))

        if self._columns == ("*",):
            return FakeResult(copy.deepcopy(matched))
        return FakeResult([{c: copy.deepcopy(r.get(c)) for c in self._columns} for r in matched])


class FakeSupabase:
    def __init__(self):
        self.tables: dict[str, list[dict]] = {}
        self.fail_on: str | None = None

    def table(self, name: str) -> FakeQuery:
        return FakeQuery(self, name)


# ── Builders ─────────────────────────────────────────────

def make_semester(semester_id: str, semester: str, year: int, *courses: tuple[str, int, str],
                  student_id: str = STUDENT_ID) -> SemesterRecord:
    """courses: (code, credit_hours, grade)"""
    entries = [CourseEntry(course_code=c, credit_hours=cr, grade=g) for c, cr, g in courses]
    calc = calculate_semester(entries)
    return SemesterRecord(
        id=semester_id,
        student_id=student_id,
        semester=semester,
        year=year,
        courses=[
            StoredCourse(course_code=c, credit_hours=cr, grade=g, grade_point=float(grade_point(g)))
            for c, cr, g in courses
        ],
        semester_gpa=calc.semester_gpa,
        total_credits=calc.total_credits,
    )


# ── Fixtures ─────────────────────────────────────────────

@pytest.fixture
def fake_db() -> FakeSupabase:
    db = FakeSupabase()
    db.tables["users"] = [
        {"id": STUDENT_ID, "role": "student", "academic_stats": None},
        {"id": "student-2", "role": "student", "academic_stats": None},
        {"id": "admin-1", "role": "admin", "academic_stats": None},
    ]
    db.tables["course_grades"] = []
    return db


@pytest.fixture
async def client(fake_db: FakeSupabase) -> AsyncGenerator[AsyncClient, None]:
    """Test client authenticated as STUDENT_ID, backed by the in-memory database."""
    app.dependency_overrides[get_db] = lambda: fake_db
    app.dependency_overrides[get_current_student_id] = lambda: STUDENT_ID

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()
