"""
GPA feature: one in-progress semester form (edit → preview → submit).

The session owns the rows, the existing academic state it projects against,
and a RetakeChecker. It lives on an asyncio event loop: edits made outside
preview mode schedule a debounced retake check.
"""

import logging
from datetime import date

import httpx

from studenthub.core.exceptions import InvalidCourseInput, SubmissionFailed
from studenthub.features.gpa.calculator import calculate_semester
from studenthub.features.gpa.client import GPAAPIClient
from studenthub.features.gpa.grading import Semester, gpa_standing
from studenthub.features.gpa.projection import project_cgpa
from studenthub.features.gpa.retakes import RetakeChecker
from studenthub.features.gpa.schemas import (
    AcademicState,
    CourseEntry,
    FormPreview,
    RetakeWarning,
    SemesterSubmission,
)

logger = logging.getLogger(__name__)


def blank_course() -> CourseEntry:
    return CourseEntry(course_code="", course_name="", credit_hours=3, grade="A")


class GPAFormSession:
    """State machine behind the "Calculate & Preview" / "Save" semester form."""

    def __init__(
        self,
        client: GPAAPIClient,
        state: AcademicState | None = None,
        retake_checker: RetakeChecker | None = None,
    ):
        self.client = client
        self.state = state or AcademicState()
        self.retakes = retake_checker or RetakeChecker(client)
        self._reset_fields()

    def _reset_fields(self) -> None:
        self.semester: Semester = Semester.FALL
        self.year: int = date.today().year
        self.courses: list[CourseEntry] = [blank_course()]
        self.preview: FormPreview | None = None
        self.preview_mode = False
        self.error = ""

    def reset(self) -> None:
        self._reset_fields()
        self.retakes.invalidate()

    @property
    def retake_warning(self) -> RetakeWarning | None:
        return self.retakes.warning

    async def load_existing_state(self) -> AcademicState:
        """Fetch the student's stored stats. Falls back to an empty record when unavailable."""
        try:
            stats = await self.client.get_academic_stats()
        except (httpx.HTTPError, ValueError) as e:
            logger.warning(f"Academic stats unavailable, projecting from an empty record: {e}")
            self.state = AcademicState()
        else:
            self.state = stats.to_state()
        return self.state

    # ── Editing ──────────────────────────────────────────

    def _inputs_changed(self) -> None:
        if self.preview_mode:
            self.retakes.invalidate()
        else:
            self.retakes.schedule(self.courses, self.semester, self.year)

    def set_semester(self, semester: Semester | str) -> None:
        self.semester = Semester(semester)
        self._inputs_changed()

    def set_year(self, year: int) -> None:
        self.year = int(year)
        self._inputs_changed()

    def add_course(self) -> None:
        self.courses.append(blank_course())
        self._inputs_changed()

    def remove_course(self, index: int) -> bool:
        """Remove a row. The last remaining row is kept."""
        if len(self.courses) <= 1:
            return False
        del self.courses[index]
        self._inputs_changed()
        return True

    def update_course(self, index: int, **fields) -> CourseEntry:
        """Change fields of one row, e.g. update_course(0, course_code="CSE220", grade="A-")."""
        row = CourseEntry.model_validate({**self.courses[index].model_dump(), **fields})
        self.courses[index] = row
        self._inputs_changed()
        return row

    # ── Preview / submit ─────────────────────────────────

    def calculate(self) -> FormPreview | None:
        """Validate rows and build the preview. On invalid rows set `error` and return None."""
        try:
            calculation = calculate_semester(self.courses)
        except InvalidCourseInput as e:
            logger.debug(f"Preview rejected: {e.detail}")
            self.error = e.message
            return None

        projection = project_cgpa(self.state, calculation)
        self.preview = FormPreview(
            semester=self.semester,
            year=self.year,
            calculation=calculation,
            projection=projection,
            existing_cgpa=self.state.existing_cgpa,
            semester_standing=gpa_standing(calculation.semester_gpa),
            projected_standing=gpa_standing(projection.projected_cgpa),
        )
        self.error = ""
        self.preview_mode = True
        return self.preview

    def submission(self) -> SemesterSubmission:
        return SemesterSubmission(
            semester=self.semester,
            year=self.year,
            courses=[c.normalized() for c in self.courses],
        )

    async def submit(self) -> dict | None:
        """Save the semester.

        On success the form is reset and the server response returned. On
        failure the server's message becomes `error`, rows and preview are
        kept for a retry, and None is returned.
        """
        if self.calculate() is None:
            return None

        try:
            response = await self.client.submit_semester(self.submission())
        except SubmissionFailed as e:
            logger.warning(f"Semester submission failed: {e.message}")
            self.error = e.message
            return None

        self.reset()
        return response

    def discard(self) -> None:
        self.preview_mode = False
        self.preview = None
        self.error = ""

    def edit(self) -> None:
        self.preview_mode = False
