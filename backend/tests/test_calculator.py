"""
Unit tests for the grade point table and the semester GPA calculator.
"""

import pytest

from studenthub.core.exceptions import InvalidCourseInput
from studenthub.features.gpa.calculator import calculate_semester
from studenthub.features.gpa.grading import (
    GRADE_OPTIONS,
    GRADE_POINTS,
    Grade,
    gpa_standing,
    grade_point,
    parse_grade,
    semester_key,
)
from studenthub.features.gpa.schemas import CourseEntry


def course(code="CSE110", credits=3, grade="A", name=""):
    return CourseEntry(course_code=code, course_name=name, credit_hours=credits, grade=grade)


# -- grade table --

class TestGradeTable:
    def test_has_thirteen_grades(self):
        assert len(GRADE_POINTS) == 13
        assert GRADE_OPTIONS == ("A+", "A", "A-", "B+", "B", "B-", "C+", "C", "C-", "D+", "D", "D-", "F")

    @pytest.mark.parametrize("letter,points", [
        ("A+", 4.0), ("A", 4.0), ("A-", 3.7), ("B+", 3.3), ("B", 3.0), ("B-", 2.7),
        ("C+", 2.3), ("C", 2.0), ("C-", 1.7), ("D+", 1.3), ("D", 1.0), ("D-", 0.7), ("F", 0.0),
    ])
    def test_points(self, letter, points):
        assert float(grade_point(letter)) == points

    def test_table_is_read_only(self):
        with pytest.raises(TypeError):
            GRADE_POINTS[Grade.F] = 1

    def test_parse_grade_matches_symbols_exactly(self):
        assert parse_grade("B+") is Grade.B_PLUS
        assert parse_grade("b+") is None
        assert parse_grade(" B+ ") is None
        assert parse_grade("E") is None
        assert parse_grade(None) is None

    def test_unknown_grade_point_raises(self):
        with pytest.raises(KeyError):
            grade_point("E")

    def test_semester_key_orders_terms_within_a_year(self):
        assert semester_key("Spring", 2024) < semester_key("Summer", 2024) < semester_key("Fall", 2024)
        assert semester_key("Fall", 2023) < semester_key("Spring", 2024)

    @pytest.mark.parametrize("gpa,label", [
        (4.0, "Excellent"), (3.7, "Excellent"), (3.65, "Very Good"), (3.0, "Good"),
        (2.7, "Satisfactory"), (2.69, "Needs Improvement"),
    ])
    def test_standing(self, gpa, label):
        assert gpa_standing(gpa) == label


# -- calculate_semester --

class TestCalculateSemester:
    def test_worked_example(self):
        result = calculate_semester([course("CSE220", 3, "A"), course("MAT215", 3, "B+")])
        assert result.total_points == pytest.approx(21.9)
        assert result.total_credits == 6
        assert result.semester_gpa == 3.65
        assert result.course_count == 2

    def test_weighted_by_credits(self):
        result = calculate_semester([course("CSE110", 3, "A-"), course("PHY111", 4, "B")])
        # (3.7*3 + 3.0*4) / 7 = 23.1 / 7
        assert result.semester_gpa == 3.3

    def test_rounds_half_up(self):
        # (4.0*3 + 2.7*1) / 4 = 3.675
        result = calculate_semester([course("CSE110", 3, "A"), course("HUM103", 1, "B-")])
        assert result.semester_gpa == 3.68

    def test_empty_list_is_zero(self):
        result = calculate_semester([])
        assert result.semester_gpa == 0
        assert result.total_credits == 0
        assert result.total_points == 0
        assert result.course_count == 0

    def test_order_independent(self):
        rows = [course("A1", 1, "F"), course("B2", 4, "A"), course("C3", 2, "C+")]
        assert calculate_semester(rows) == calculate_semester(list(reversed(rows)))

    def test_idempotent(self):
        rows = [course("CSE220", 3, "A"), course("MAT215", 3, "B+")]
        assert calculate_semester(rows) == calculate_semester(rows)

    def test_minus_grade(self):
        assert calculate_semester([course(grade="A-")]).semester_gpa == 3.7

    def test_all_fail(self):
        assert calculate_semester([course(grade="F"), course("X", 2, "F")]).semester_gpa == 0.0


class TestInvalidCourseInput:
    @pytest.mark.parametrize("code", ["", "   "])
    def test_blank_code_rejected(self, code):
        with pytest.raises(InvalidCourseInput) as exc:
            calculate_semester([course(), course(code=code)])
        assert exc.value.row == 2
        assert exc.value.field == "courseCode"

    @pytest.mark.parametrize("grade", [None, "", "E", "A++", "a", " B+"])
    def test_bad_grade_rejected(self, grade):
        with pytest.raises(InvalidCourseInput) as exc:
            calculate_semester([course(grade=grade)])
        assert exc.value.field == "grade"

    @pytest.mark.parametrize("credits", [None, 0, -1, 6])
    def test_bad_credits_rejected(self, credits):
        with pytest.raises(InvalidCourseInput) as exc:
            calculate_semester([course(credits=credits)])
        assert exc.value.field == "creditHours"

    def test_message_is_form_level(self):
        with pytest.raises(InvalidCourseInput) as exc:
            calculate_semester([course(code=" ")])
        assert exc.value.message.startswith("Each course must have a valid course code")
        assert "Course #1" in exc.value.detail

    def test_course_name_is_optional(self):
        assert calculate_semester([CourseEntry(course_code="CSE110", course_name=None, credit_hours=3, grade="B")]).semester_gpa == 3.0
