"""
GPA feature: grade point table, semester ordering and rounding helpers.
"""

from decimal import Decimal, ROUND_HALF_UP
from enum import Enum
from types import MappingProxyType


class Grade(str, Enum):
    A_PLUS = "A+"
    A = "A"
    A_MINUS = "A-"
    B_PLUS = "B+"
    B = "B"
    B_MINUS = "B-"
    C_PLUS = "C+"
    C = "C"
    C_MINUS = "C-"
    D_PLUS = "D+"
    D = "D"
    D_MINUS = "D-"
    F = "F"


class Semester(str, Enum):
    SPRING = "Spring"
    SUMMER = "Summer"
    FALL = "Fall"


# 4.0 scale. Decimal keeps Σ(points × credits) exact.
GRADE_POINTS: MappingProxyType = MappingProxyType({
    Grade.A_PLUS: Decimal("4.0"),
    Grade.A: Decimal("4.0"),
    Grade.A_MINUS: Decimal("3.7"),
    Grade.B_PLUS: Decimal("3.3"),
    Grade.B: Decimal("3.0"),
    Grade.B_MINUS: Decimal("2.7"),
    Grade.C_PLUS: Decimal("2.3"),
    Grade.C: Decimal("2.0"),
    Grade.C_MINUS: Decimal("1.7"),
    Grade.D_PLUS: Decimal("1.3"),
    Grade.D: Decimal("1.0"),
    Grade.D_MINUS: Decimal("0.7"),
    Grade.F: Decimal("0.0"),
})

GRADE_OPTIONS: tuple[str, ...] = tuple(g.value for g in Grade)

SEMESTER_ORDER: MappingProxyType = MappingProxyType({
    Semester.SPRING: 1,
    Semester.SUMMER: 2,
    Semester.FALL: 3,
})

MIN_CREDIT_HOURS = 1
MAX_CREDIT_HOURS = 5

_TWO_PLACES = Decimal("0.01")


def parse_grade(value: str | None) -> Grade | None:
    """Map a grade string to `Grade`, or None if it is not exactly one of the 13 symbols."""
    if value is None:
        return None
    try:
        return Grade(value)
    except ValueError:
        return None


def grade_point(grade: Grade | str) -> Decimal:
    """Point value of a letter grade.

    Raises:
        KeyError: If the grade is not in the table.
    """
    parsed = parse_grade(grade.value if isinstance(grade, Grade) else grade)
    if parsed is None:
        raise KeyError(f"Unknown grade: {grade!r}")
    return GRADE_POINTS[parsed]


def semester_key(semester: Semester | str, year: int) -> int:
    """Chronological sort key: year * 10 + (Spring=1, Summer=2, Fall=3)."""
    return int(year) * 10 + SEMESTER_ORDER[Semester(semester)]


def to_decimal(value: float | int | Decimal) -> Decimal:
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))


def round2(value: float | int | Decimal) -> float:
    """Round half-up to 2 decimal places and return a float."""
    return float(to_decimal(value).quantize(_TWO_PLACES, rounding=ROUND_HALF_UP))


def normalize_code(code: str) -> str:
    """Key used to match course codes across semesters."""
    return (code or "").strip().upper()


STANDING_BANDS: tuple[tuple[float, str], ...] = (
    (3.7, "Excellent"),
    (3.3, "Very Good"),
    (3.0, "Good"),
    (2.7, "Satisfactory"),
)


def gpa_standing(gpa: float) -> str:
    """Label shown next to a GPA in the preview."""
    for threshold, label in STANDING_BANDS:
        if gpa >= threshold:
            return label
    return "Needs Improvement"
