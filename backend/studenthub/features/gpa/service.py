"""
GPA feature: Service layer for semester grades and academic stats.
"""

import logging
import uuid
from datetime import datetime, timezone, timedelta

from supabase import Client

from studenthub.config import get_settings
from studenthub.core.exceptions import MissingRequiredFields, SemesterAlreadyExists, SemesterNotFound
from studenthub.features.gpa import history
from studenthub.features.gpa.calculator import calculate_semester
from studenthub.features.gpa.grading import grade_point
from studenthub.features.gpa.projection import project_cgpa
from studenthub.features.gpa.schemas import (
    AcademicStats,
    CGPAMethod,
    CourseHistory,
    PreviewRequest,
    RetakeCheckRequest,
    RetakeCheckResult,
    RetakeInfo,
    SemesterRecord,
    SemesterSubmission,
    StoredCourse,
)

logger = logging.getLogger(__name__)

SEMESTERS_TABLE = "course_grades"
USERS_TABLE = "users"


class GPAService:
    """
    Stores semesters and keeps each student's academic stats in sync.

    Flow: save/delete semester → recompute stats from all semesters → store on the user row
    """

    def __init__(self, db: Client):
        self.db = db
        self.settings = get_settings()

    # ── Semesters ────────────────────────────────────────

    def _load_semesters(self, student_id: str) -> list[SemesterRecord]:
        result = (
            self.db.table(SEMESTERS_TABLE)
            .select("*")
            .eq("student_id", student_id)
            .execute()
        )
        return history.chronological(
            SemesterRecord.model_validate(row) for row in (result.data or [])
        )

    def list_semesters(self, student_id: str) -> list[SemesterRecord]:
        return self._load_semesters(student_id)

    def get_semester(self, student_id: str, semester_id: str) -> SemesterRecord:
        result = (
            self.db.table(SEMESTERS_TABLE)
            .select("*")
            .eq("id", semester_id)
            .eq("student_id", student_id)
            .execute()
        )
        if not result.data:
            raise SemesterNotFound()
        return SemesterRecord.model_validate(result.data[0])

    def add_semester(
        self, student_id: str, submission: SemesterSubmission
    ) -> tuple[SemesterRecord, AcademicStats, list[RetakeInfo]]:
        """Validate and save a semester, then refresh the student's stats.

        Retakes never block saving; they are returned so the caller can warn.

        Raises:
            MissingRequiredFields: If semester, year or courses are missing.
            InvalidCourseInput: If any course row is invalid.
            SemesterAlreadyExists: If the term is already saved for this student.
        """
        if not submission.semester or not submission.year or not submission.courses:
            raise MissingRequiredFields("Semester, year, and at least one course are required.")

        courses = [c.normalized() for c in submission.courses]
        calculation = calculate_semester(courses)

        existing = self._load_semesters(student_id)
        if any(s.semester == submission.semester and s.year == submission.year for s in existing):
            raise SemesterAlreadyExists(submission.semester.value, submission.year)

        retakes = history.detect_retakes(existing, courses, submission.semester, submission.year)
        if retakes:
            logger.info(f"Student {student_id}: {len(retakes)} retake(s) in {submission.semester.value} {submission.year}")

        record = SemesterRecord(
            id=str(uuid.uuid4()),
            student_id=student_id,
            semester=submission.semester,
            year=submission.year,
            courses=[
                StoredCourse(
                    course_code=c.course_code,
                    course_name=c.course_name or "",
                    credit_hours=c.credit_hours,
                    grade=c.grade,
                    grade_point=float(grade_point(c.grade)),
                )
                for c in courses
            ],
            semester_gpa=calculation.semester_gpa,
            total_credits=calculation.total_credits,
            created_at=datetime.now(timezone.utc),
        )
        self.db.table(SEMESTERS_TABLE).insert(record.model_dump(mode="json")).execute()

        stats = self.refresh_academic_stats(student_id)
        return record, stats, retakes

    def delete_semester(self, student_id: str, semester_id: str) -> AcademicStats:
        result = (
            self.db.table(SEMESTERS_TABLE)
            .delete()
            .eq("id", semester_id)
            .eq("student_id", student_id)
            .execute()
        )
        if not result.data:
            raise SemesterNotFound()
        return self.refresh_academic_stats(student_id)

    # ── Academic stats ───────────────────────────────────

    def get_stored_stats(self, student_id: str) -> AcademicStats | None:
        result = (
            self.db.table(USERS_TABLE)
            .select("academic_stats")
            .eq("id", student_id)
            .execute()
        )
        if not result.data or not result.data[0].get("academic_stats"):
            return None
        return AcademicStats.model_validate(result.data[0]["academic_stats"])

    def refresh_academic_stats(self, student_id: str) -> AcademicStats:
        """Recompute stats from every stored semester and save them on the user row."""
        stats = history.build_academic_stats(self._load_semesters(student_id))
        self.db.table(USERS_TABLE).update(
            {"academic_stats": stats.model_dump(mode="json")}
        ).eq("id", student_id).execute()
        return stats

    def _is_stale(self, stats: AcademicStats) -> bool:
        if stats.last_calculated is None:
            return True
        last = stats.last_calculated
        if last.tzinfo is None:
            last = last.replace(tzinfo=timezone.utc)
        ttl = timedelta(minutes=self.settings.ACADEMIC_STATS_TTL_MINUTES)
        return datetime.now(timezone.utc) - last >= ttl

    def get_academic_stats(self, student_id: str) -> tuple[AcademicStats, bool]:
        """Stored stats, recomputed first when missing or stale.

        Returns:
            (stats, freshly_calculated)
        """
        stats = self.get_stored_stats(student_id)
        if stats is None or self._is_stale(stats):
            return self.refresh_academic_stats(student_id), True
        return stats, False

    def calculate_cgpa(
        self,
        student_id: str,
        method: CGPAMethod = CGPAMethod.ACCUMULATED,
        force: bool = False,
    ) -> dict:
        """CGPA from the stored stats, or computed from semesters when forced or missing."""
        stats = self.get_stored_stats(student_id)

        if force or stats is None or not stats.cumulative_cgpa:
            semesters = self._load_semesters(student_id)
            if method == CGPAMethod.SEQUENTIAL:
                cgpa = history.sequential_cgpa(semesters)
            else:
                cgpa = history.accumulated_cgpa(semesters)
            source = "Calculated fresh from semester data"

            if stats is not None and abs(stats.cumulative_cgpa - cgpa) > 0.01:
                stats = self.refresh_academic_stats(student_id)
        else:
            cgpa = stats.cumulative_cgpa
            source = "Using stored CGPA from user profile"

        return {
            "cgpa": cgpa,
            "method": method.value,
            "source": source,
            "lastCalculated": stats.last_calculated.isoformat() if stats and stats.last_calculated else None,
            "totalCredits": stats.total_credits if stats else None,
            "totalSemesters": stats.total_semesters if stats else None,
        }

    def refresh_all_academic_stats(self) -> dict:
        """Recompute stats for every student. Used by the nightly background job."""
        result = self.db.table(USERS_TABLE).select("id").eq("role", "student").execute()
        updated = 0
        for row in result.data or []:
            try:
                self.refresh_academic_stats(row["id"])
                updated += 1
            except Exception as e:
                logger.error(f"Failed to refresh academic stats for {row['id']}: {e}")
        return {"updated": updated}

    # ── Preview, retakes, history ────────────────────────

    def preview(self, student_id: str, request: PreviewRequest) -> dict:
        """Semester GPA of unsaved courses plus the projected CGPA against stored stats.

        Raises:
            MissingRequiredFields: If no courses were sent.
            InvalidCourseInput: If any course row is invalid.
        """
        if not request.courses:
            raise MissingRequiredFields("Courses array is required")

        calculation = calculate_semester(request.courses)
        stats = self.get_stored_stats(student_id) or AcademicStats()
        projection = project_cgpa(stats.to_state(), calculation)

        return {
            **calculation.to_wire(),
            "semester": request.semester.value if request.semester else None,
            "year": request.year,
            "projection": projection.to_wire(),
        }

    def check_retakes(self, student_id: str, request: RetakeCheckRequest) -> RetakeCheckResult:
        retakes = history.detect_retakes(
            self._load_semesters(student_id), request.courses, request.semester, request.year
        )
        return RetakeCheckResult(
            has_retakes=bool(retakes),
            retake_count=len(retakes),
            retakes=retakes,
        )

    def get_course_history(self, student_id: str, course_code: str) -> CourseHistory:
        if not course_code or not course_code.strip():
            raise MissingRequiredFields("Course code is required")
        return history.course_history(self._load_semesters(student_id), course_code)
