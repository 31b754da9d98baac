"""
GPA feature: semester GPA calculator.

semester_gpa = Σ(grade_point × credit_hours) / Σ(credit_hours), rounded to 2 places.
"""

from decimal import Decimal
from typing import Iterable

from studenthub.core.exceptions import InvalidCourseInput
from studenthub.features.gpa.grading import (
    GRADE_POINTS,
    MAX_CREDIT_HOURS,
    MIN_CREDIT_HOURS,
    parse_grade,
    round2,
)
from studenthub.features.gpa.schemas import CourseEntry, SemesterCalculation


def validate_course(course: CourseEntry, row: int) -> None:
    """Raise InvalidCourseInput if the row cannot take part in a GPA calculation."""
    if not (course.course_code or "").strip():
        raise InvalidCourseInput(row, "courseCode")
    if parse_grade(course.grade) is None:
        raise InvalidCourseInput(row, "grade", f"must be one of the 13 letter grades, got {course.grade!r}")
    credits = course.credit_hours
    if isinstance(credits, bool) or not isinstance(credits, int):
        raise InvalidCourseInput(row, "creditHours")
    if not MIN_CREDIT_HOURS <= credits <= MAX_CREDIT_HOURS:
        raise InvalidCourseInput(
            row, "creditHours", f"must be between {MIN_CREDIT_HOURS} and {MAX_CREDIT_HOURS}, got {credits}"
        )


def validate_courses(courses: Iterable[CourseEntry]) -> list[CourseEntry]:
    """Validate every row before any arithmetic. Rows are numbered from 1."""
    rows = list(courses)
    for index, course in enumerate(rows, start=1):
        validate_course(course, index)
    return rows


def _totals(courses: list[CourseEntry]) -> tuple[Decimal, int]:
    total_points = Decimal("0")
    total_credits = 0
    for course in courses:
        total_points += GRADE_POINTS[parse_grade(course.grade)] * course.credit_hours
        total_credits += course.credit_hours
    return total_points, total_credits


def calculate_semester(courses: Iterable[CourseEntry]) -> SemesterCalculation:
    """Compute the semester GPA of a list of course rows.

    An empty list gives an all-zero calculation. Invalid rows are never
    skipped: the whole calculation is rejected.

    Raises:
        InvalidCourseInput: On the first row with a blank code, an unknown
            grade, or credit hours outside 1-5.
    """
    rows = validate_courses(courses)
    total_points, total_credits = _totals(rows)

    semester_gpa = round2(total_points / total_credits) if total_credits > 0 else 0.0

    return SemesterCalculation(
        semester_gpa=semester_gpa,
        total_credits=total_credits,
        total_points=float(total_points),
        course_count=len(rows),
    )
