"""
GPA feature: projected CGPA after adding a new semester.

Decision table, first match wins:
  1. no prior semesters          -> semester GPA (first semester)
  2. CGPA 0 with prior semesters -> semester GPA, flagged as inconsistent
  3. no credits at all           -> semester GPA, cannot project
  4. otherwise                   -> credit-weighted average of old CGPA and new GPA
"""

from studenthub.features.gpa.grading import round2, to_decimal
from studenthub.features.gpa.schemas import (
    AcademicState,
    CGPAProjection,
    ProjectionKind,
    SemesterCalculation,
    Trend,
)

FIRST_SEMESTER_NOTE = "This is your first semester. Your CGPA will be the same as your semester GPA."
INCONSISTENT_STATE_NOTE = (
    "Note: Current CGPA is 0 but you have existing semesters. Projection may be inaccurate."
)
NO_CREDITS_NOTE = "No credits found. Projection cannot be calculated."


def _trend(projected: float, existing: float) -> Trend:
    if projected > existing:
        return Trend.IMPROVE
    if projected < existing:
        return Trend.LOWER
    return Trend.MAINTAIN


def project_cgpa(state: AcademicState, calculation: SemesterCalculation) -> CGPAProjection:
    """Project the cumulative GPA if `calculation` is accepted on top of `state`."""
    semester_gpa = calculation.semester_gpa
    new_credits = calculation.total_credits

    if state.existing_semesters_count == 0:
        return CGPAProjection(
            projected_cgpa=semester_gpa,
            kind=ProjectionKind.FIRST_SEMESTER,
            note=FIRST_SEMESTER_NOTE,
        )

    if state.existing_cgpa == 0:
        return CGPAProjection(
            projected_cgpa=semester_gpa,
            kind=ProjectionKind.INCONSISTENT_STATE,
            note=INCONSISTENT_STATE_NOTE,
        )

    total_credits = state.existing_credits + new_credits
    if total_credits == 0:
        return CGPAProjection(
            projected_cgpa=semester_gpa,
            kind=ProjectionKind.NO_CREDITS,
            note=NO_CREDITS_NOTE,
        )

    weighted = (
        to_decimal(state.existing_cgpa) * state.existing_credits
        + to_decimal(semester_gpa) * new_credits
    ) / total_credits
    projected = round2(weighted)
    trend = _trend(projected, state.existing_cgpa)

    return CGPAProjection(
        projected_cgpa=projected,
        kind=ProjectionKind.WEIGHTED,
        trend=trend,
        note=(
            f"Based on {state.existing_credits} existing credits and {new_credits} new credits. "
            f"This will {trend.value} your CGPA."
        ),
    )
