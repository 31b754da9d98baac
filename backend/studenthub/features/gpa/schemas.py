"""
GPA feature: Schemas for request/response models.

Attributes are snake_case; the wire format is camelCase (courseCode, creditHours, ...).
"""

from datetime import datetime
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from studenthub.features.gpa.grading import Semester


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_wire(self) -> dict:
        return self.model_dump(by_alias=True, mode="json")


# ── Course rows ──────────────────────────────────────────

class CourseEntry(CamelModel):
    """One course row of a semester form.

    Intentionally lenient: a row may be incomplete while the student is typing.
    The calculator validates rows and raises InvalidCourseInput.
    """
    course_code: str = ""
    course_name: str | None = ""
    credit_hours: int | None = 3
    grade: str | None = "A"

    def normalized(self) -> "CourseEntry":
        """Copy with trimmed code and name (the shape that gets saved)."""
        return self.model_copy(update={
            "course_code": (self.course_code or "").strip(),
            "course_name": (self.course_name or "").strip(),
        })


class StoredCourse(CamelModel):
    """A course as persisted inside a semester record."""
    course_code: str
    course_name: str = ""
    credit_hours: int
    grade: str
    grade_point: float = 0.0


# ── Calculation results ──────────────────────────────────

class SemesterCalculation(CamelModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

    semester_gpa: float = Field(default=0.0, alias="semesterGPA")
    total_credits: int = 0
    total_points: float = 0.0
    course_count: int = 0


class AcademicState(CamelModel):
    """The student's record before the new semester. Read-only input to projection."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

    existing_cgpa: float = Field(default=0.0, ge=0, alias="existingCGPA")
    existing_credits: int = Field(default=0, ge=0)
    existing_semesters_count: int = Field(default=0, ge=0)


class ProjectionKind(str, Enum):
    FIRST_SEMESTER = "first_semester"
    INCONSISTENT_STATE = "inconsistent_state"
    NO_CREDITS = "no_credits"
    WEIGHTED = "weighted"


class Trend(str, Enum):
    IMPROVE = "improve"
    LOWER = "lower"
    MAINTAIN = "maintain"


class CGPAProjection(CamelModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

    projected_cgpa: float = Field(alias="projectedCGPA")
    kind: ProjectionKind
    note: str
    trend: Trend | None = None


# ── Retakes ──────────────────────────────────────────────

class RetakeInfo(CamelModel):
    course_code: str
    new_grade: str | None = None
    previous_grade: str
    previous_semester: str
    previous_year: int
    will_replace: bool


class RetakeCheckRequest(CamelModel):
    courses: list[CourseEntry] = []
    semester: Semester | None = None
    year: int | None = None


class RetakeCheckResult(CamelModel):
    has_retakes: bool = False
    retake_count: int = 0
    retakes: list[RetakeInfo] = []


class RetakeWarning(RetakeCheckResult):
    """Banner shown above the form while the course list has retakes."""
    message: str = ""


# ── Semesters ────────────────────────────────────────────

class SemesterSubmission(CamelModel):
    """Body of POST /semesters. Checked by the service, not by the schema."""
    semester: Semester | None = None
    year: int | None = None
    courses: list[CourseEntry] = []


class PreviewRequest(CamelModel):
    courses: list[CourseEntry] = []
    semester: Semester | None = None
    year: int | None = None


class SemesterRecord(CamelModel):
    id: str
    student_id: str
    semester: Semester
    year: int
    courses: list[StoredCourse] = []
    semester_gpa: float = Field(default=0.0, alias="semesterGPA")
    total_credits: int = 0
    created_at: datetime | None = None


class AcademicStats(CamelModel):
    cumulative_cgpa: float = Field(default=0.0, ge=0, le=4, alias="cumulativeCGPA")
    total_credits: int = 0  # unique credits, latest attempt of each course only
    total_semesters: int = 0
    current_semester_gpa: float = Field(default=0.0, ge=0, le=4, alias="currentSemesterGPA")
    last_calculated: datetime | None = None

    def to_state(self) -> AcademicState:
        return AcademicState(
            existing_cgpa=self.cumulative_cgpa,
            existing_credits=self.total_credits,
            existing_semesters_count=self.total_semesters,
        )


class CGPAMethod(str, Enum):
    ACCUMULATED = "accumulated"
    SEQUENTIAL = "sequential"


# ── Course history ───────────────────────────────────────

class CourseAttempt(StoredCourse):
    semester: Semester
    year: int
    semester_id: str
    semester_gpa: float = Field(default=0.0, alias="semesterGPA")


class CourseHistory(CamelModel):
    course_code: str
    attempts: list[CourseAttempt] = []
    attempt_count: int = 0
    latest_attempt: CourseAttempt | None = None


# ── Form preview ─────────────────────────────────────────

class FormPreview(CamelModel):
    semester: Semester
    year: int
    calculation: SemesterCalculation
    projection: CGPAProjection
    existing_cgpa: float = Field(default=0.0, alias="existingCGPA")
    semester_standing: str
    projected_standing: str
