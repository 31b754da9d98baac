"""
Unit tests for retake detection and retake-aware cumulative GPA.
"""

from datetime import datetime, timezone

from studenthub.features.gpa import history
from studenthub.features.gpa.schemas import CourseEntry
from conftest import make_semester


SPRING_23 = make_semester("s1", "Spring", 2023, ("CSE110", 3, "C"), ("MAT110", 3, "B"))
FALL_23 = make_semester("s2", "Fall", 2023, ("cse110 ", 3, "A"), ("PHY111", 3, "B+"))


class TestLatestAttempts:
    def test_latest_attempt_wins(self):
        latest = history.latest_attempts([SPRING_23, FALL_23])
        assert set(latest) == {"CSE110", "MAT110", "PHY111"}
        assert latest["CSE110"].grade == "A"
        assert latest["CSE110"].semester_id == "s2"

    def test_input_order_does_not_matter(self):
        assert history.latest_attempts([FALL_23, SPRING_23]) == history.latest_attempts([SPRING_23, FALL_23])

    def test_same_term_does_not_replace(self):
        first = make_semester("a", "Summer", 2024, ("ENG101", 3, "B"))
        second = make_semester("b", "Summer", 2024, ("ENG101", 3, "A"))
        assert history.latest_attempts([first, second])["ENG101"].grade == "B"


class TestCumulative:
    def test_accumulated_uses_latest_attempts(self):
        # CSE110 A (4.0*3) + MAT110 B (3.0*3) + PHY111 B+ (3.3*3) = 30.9 / 9
        assert history.accumulated_cgpa([SPRING_23, FALL_23]) == 3.43
        assert history.unique_credits([SPRING_23, FALL_23]) == 9

    def test_sequential_is_running_mean_of_semester_gpas(self):
        assert SPRING_23.semester_gpa == 2.5
        assert FALL_23.semester_gpa == 3.65
        assert history.sequential_cgpa([FALL_23, SPRING_23]) == 3.08

    def test_no_semesters(self):
        assert history.accumulated_cgpa([]) == 0.0
        assert history.sequential_cgpa([]) == 0.0

    def test_academic_stats(self):
        now = datetime(2024, 1, 5, tzinfo=timezone.utc)
        stats = history.build_academic_stats([FALL_23, SPRING_23], now=now)
        assert stats.cumulative_cgpa == 3.43
        assert stats.total_credits == 9
        assert stats.total_semesters == 2
        assert stats.current_semester_gpa == 3.65
        assert stats.last_calculated == now

    def test_empty_stats(self):
        stats = history.build_academic_stats([])
        assert stats.cumulative_cgpa == 0.0
        assert stats.total_semesters == 0
        assert stats.current_semester_gpa == 0.0


class TestDetectRetakes:
    def test_retake_in_later_term_replaces(self):
        courses = [
            CourseEntry(course_code=" Cse110", credit_hours=3, grade="B"),
            CourseEntry(course_code="CSE220", credit_hours=3, grade="A"),
        ]
        retakes = history.detect_retakes([SPRING_23, FALL_23], courses, "Spring", 2024)

        assert len(retakes) == 1
        info = retakes[0]
        assert info.course_code == "Cse110"
        assert info.new_grade == "B"
        assert info.previous_grade == "A"
        assert (info.previous_semester, info.previous_year) == ("Fall", 2023)
        assert info.will_replace is True

    def test_earlier_term_does_not_replace(self):
        courses = [CourseEntry(course_code="PHY111", credit_hours=3, grade="A")]
        retakes = history.detect_retakes([SPRING_23, FALL_23], courses, "Spring", 2023)
        assert retakes[0].will_replace is False

    def test_without_term_nothing_replaces(self):
        courses = [CourseEntry(course_code="MAT110", credit_hours=3, grade="A")]
        retakes = history.detect_retakes([SPRING_23], courses, None, None)
        assert len(retakes) == 1
        assert retakes[0].will_replace is False

    def test_blank_codes_and_new_courses_ignored(self):
        courses = [CourseEntry(course_code="  "), CourseEntry(course_code="BIO101")]
        assert history.detect_retakes([SPRING_23, FALL_23], courses, "Fall", 2024) == []


class TestCourseHistory:
    def test_all_attempts_oldest_first(self):
        result = history.course_history([FALL_23, SPRING_23], "cse110")
        assert result.attempt_count == 2
        assert [a.grade for a in result.attempts] == ["C", "A"]
        assert result.latest_attempt.semester_id == "s2"
        assert result.latest_attempt.semester_gpa == 3.65

    def test_unknown_course(self):
        result = history.course_history([SPRING_23], "XYZ999")
        assert result.attempt_count == 0
        assert result.latest_attempt is None
