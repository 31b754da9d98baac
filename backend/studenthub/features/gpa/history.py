"""
GPA feature: course history across stored semesters.

Retake rule: when a course code appears in more than one semester, only the
chronologically latest attempt counts towards the cumulative CGPA.
Codes are compared trimmed and upper-cased.
"""

from datetime import datetime, timezone
from decimal import Decimal
from typing import Iterable

from studenthub.features.gpa.grading import (
    grade_point,
    normalize_code,
    parse_grade,
    round2,
    semester_key,
    to_decimal,
)
from studenthub.features.gpa.schemas import (
    AcademicStats,
    CourseAttempt,
    CourseEntry,
    CourseHistory,
    RetakeInfo,
    SemesterRecord,
    StoredCourse,
)


def chronological(semesters: Iterable[SemesterRecord]) -> list[SemesterRecord]:
    """Oldest first. Stable for records sharing the same term."""
    return sorted(semesters, key=lambda s: semester_key(s.semester, s.year))


def _point_of(course: StoredCourse) -> Decimal:
    if parse_grade(course.grade) is not None:
        return grade_point(course.grade)
    return to_decimal(course.grade_point)


def _attempt(course: StoredCourse, sem: SemesterRecord) -> CourseAttempt:
    return CourseAttempt(
        **course.model_dump(),
        semester=sem.semester,
        year=sem.year,
        semester_id=sem.id,
        semester_gpa=sem.semester_gpa,
    )


def latest_attempts(semesters: Iterable[SemesterRecord]) -> dict[str, CourseAttempt]:
    """One attempt per course code: the most recent one.

    An attempt in the same or an older term never replaces the one already kept.
    """
    latest: dict[str, tuple[int, CourseAttempt]] = {}
    for sem in chronological(semesters):
        key = semester_key(sem.semester, sem.year)
        for course in sem.courses:
            code = normalize_code(course.course_code)
            existing = latest.get(code)
            if existing is None or key > existing[0]:
                latest[code] = (key, _attempt(course, sem))
    return {code: attempt for code, (_, attempt) in latest.items()}


def accumulated_cgpa(semesters: Iterable[SemesterRecord]) -> float:
    """Credit-weighted CGPA over the latest attempt of every course."""
    total_points = Decimal("0")
    total_credits = 0
    for attempt in latest_attempts(semesters).values():
        total_points += _point_of(attempt) * attempt.credit_hours
        total_credits += attempt.credit_hours
    return round2(total_points / total_credits) if total_credits > 0 else 0.0


def sequential_cgpa(semesters: Iterable[SemesterRecord]) -> float:
    """Running mean of semester GPAs, oldest first. Ignores credits and retakes."""
    ordered = chronological(semesters)
    if not ordered:
        return 0.0

    cumulative = Decimal("0")
    for index, sem in enumerate(ordered):
        gpa = to_decimal(sem.semester_gpa)
        cumulative = gpa if index == 0 else (cumulative * index + gpa) / (index + 1)
    return round2(cumulative)


def unique_credits(semesters: Iterable[SemesterRecord]) -> int:
    return sum(a.credit_hours for a in latest_attempts(semesters).values())


def detect_retakes(
    semesters: Iterable[SemesterRecord],
    courses: Iterable[CourseEntry],
    semester: str | None,
    year: int | None,
) -> list[RetakeInfo]:
    """Courses in `courses` that the student already took in a stored semester.

    The previous attempt reported is the latest stored one. `will_replace` is
    True only when the new term is strictly later than that attempt; without a
    term and year nothing is reported as replacing.
    """
    previous: dict[str, tuple[int, str, SemesterRecord]] = {}
    for sem in chronological(semesters):
        key = semester_key(sem.semester, sem.year)
        for course in sem.courses:
            previous[normalize_code(course.course_code)] = (key, course.grade, sem)

    new_key = semester_key(semester, year) if semester and year else None

    retakes = []
    for course in courses:
        code = normalize_code(course.course_code)
        if not code or code not in previous:
            continue
        prev_key, prev_grade, prev_sem = previous[code]
        retakes.append(RetakeInfo(
            course_code=course.course_code.strip(),
            new_grade=course.grade,
            previous_grade=prev_grade,
            previous_semester=prev_sem.semester.value,
            previous_year=prev_sem.year,
            will_replace=new_key is not None and new_key > prev_key,
        ))
    return retakes


def course_history(semesters: Iterable[SemesterRecord], course_code: str) -> CourseHistory:
    """Every attempt of `course_code`, oldest first."""
    code = normalize_code(course_code)
    attempts = [
        _attempt(course, sem)
        for sem in chronological(semesters)
        for course in sem.courses
        if normalize_code(course.course_code) == code
    ]
    return CourseHistory(
        course_code=course_code.strip(),
        attempts=attempts,
        attempt_count=len(attempts),
        latest_attempt=attempts[-1] if attempts else None,
    )


def build_academic_stats(
    semesters: Iterable[SemesterRecord],
    now: datetime | None = None,
) -> AcademicStats:
    ordered = chronological(semesters)
    return AcademicStats(
        cumulative_cgpa=accumulated_cgpa(ordered),
        total_credits=unique_credits(ordered),
        total_semesters=len(ordered),
        current_semester_gpa=ordered[-1].semester_gpa if ordered else 0.0,
        last_calculated=now or datetime.now(timezone.utc),
    )
