"""
GPA feature: API routes for semesters, CGPA, academic stats and retakes.
"""

import logging

from fastapi import APIRouter, Depends, HTTPException, status
from supabase import Client

from studenthub.core.dependencies import get_db, get_current_student_id
from studenthub.core.exceptions import (
    InvalidCourseInput,
    MissingRequiredFields,
    SemesterAlreadyExists,
    SemesterNotFound,
    app_error_to_http,
)
from studenthub.features.gpa.schemas import (
    CGPAMethod,
    PreviewRequest,
    RetakeCheckRequest,
    SemesterSubmission,
)
from studenthub.features.gpa.service import GPAService

logger = logging.getLogger(__name__)

router = APIRouter()


def _server_error(action: str, e: Exception) -> HTTPException:
    logger.exception(f"Error while {action}: {e}")
    return HTTPException(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        detail=f"Server error while {action}.",
    )


@router.post("/semesters", status_code=status.HTTP_201_CREATED)
async def add_semester(
    data: SemesterSubmission,
    student_id: str = Depends(get_current_student_id),
    db: Client = Depends(get_db),
):
    """Save a semester's grades. Retakes are reported as a warning, not an error."""
    service = GPAService(db)
    try:
        record, stats, retakes = service.add_semester(student_id, data)
    except (MissingRequiredFields, InvalidCourseInput, SemesterAlreadyExists) as e:
        raise app_error_to_http(e, status.HTTP_400_BAD_REQUEST)
    except Exception as e:
        raise _server_error("saving semester", e)

    response = {
        "success": True,
        "message": "Semester saved successfully to your profile.",
        "data": {
            "semester": record.to_wire(),
            "academicStats": stats.to_wire(),
            "studentId": student_id,
        },
    }
    if retakes:
        response["warning"] = {
            "message": f"{len(retakes)} course(s) are being retaken. "
                       f"Latest grades will be used for CGPA calculation.",
            "retakes": [r.to_wire() for r in retakes],
            "retakeCount": len(retakes),
        }
    return response


@router.get("/semesters")
async def list_semesters(
    student_id: str = Depends(get_current_student_id),
    db: Client = Depends(get_db),
):
    """All semesters of the current student, oldest first."""
    try:
        semesters = GPAService(db).list_semesters(student_id)
    except Exception as e:
        raise _server_error("loading semesters", e)
    return {
        "success": True,
        "data": [s.to_wire() for s in semesters],
        "count": len(semesters),
    }


@router.get("/semesters/{semester_id}")
async def get_semester(
    semester_id: str,
    student_id: str = Depends(get_current_student_id),
    db: Client = Depends(get_db),
):
    try:
        semester = GPAService(db).get_semester(student_id, semester_id)
    except SemesterNotFound as e:
        raise app_error_to_http(e, status.HTTP_404_NOT_FOUND)
    except Exception as e:
        raise _server_error("loading semester", e)
    return {"success": True, "data": semester.to_wire()}


@router.delete("/semesters/{semester_id}")
async def delete_semester(
    semester_id: str,
    student_id: str = Depends(get_current_student_id),
    db: Client = Depends(get_db),
):
    try:
        stats = GPAService(db).delete_semester(student_id, semester_id)
    except SemesterNotFound as e:
        raise app_error_to_http(e, status.HTTP_404_NOT_FOUND)
    except Exception as e:
        raise _server_error("deleting semester", e)
    return {
        "success": True,
        "message": "Semester deleted successfully.",
        "data": {"academicStats": stats.to_wire()},
    }


@router.get("/calculate")
async def calculate_cgpa(
    method: CGPAMethod = CGPAMethod.ACCUMULATED,
    force: bool = False,
    student_id: str = Depends(get_current_student_id),
    db: Client = Depends(get_db),
):
    """Cumulative GPA of the current student.

    Args:
        method: 'accumulated' (credit-weighted, latest attempt of each course) or
            'sequential' (running mean of semester GPAs).
        force: Recompute from semesters even when a stored CGPA exists.
    """
    try:
        data = GPAService(db).calculate_cgpa(student_id, method, force)
    except Exception as e:
        raise _server_error("calculating CGPA", e)
    return {"success": True, "data": data, "message": "CGPA calculated successfully"}


@router.get("/stats")
async def get_academic_stats(
    student_id: str = Depends(get_current_student_id),
    db: Client = Depends(get_db),
):
    try:
        stats, fresh = GPAService(db).get_academic_stats(student_id)
    except Exception as e:
        raise _server_error("loading academic stats", e)
    return {
        "success": True,
        "data": stats.to_wire(),
        "message": "Academic stats (freshly calculated)" if fresh else "Academic stats (from cache)",
    }


@router.post("/stats/update")
async def force_update_academic_stats(
    student_id: str = Depends(get_current_student_id),
    db: Client = Depends(get_db),
):
    try:
        stats = GPAService(db).refresh_academic_stats(student_id)
    except Exception as e:
        raise _server_error("updating academic stats", e)
    return {
        "success": True,
        "data": stats.to_wire(),
        "message": "Academic stats updated successfully",
    }


@router.post("/preview")
async def preview_gpa(
    data: PreviewRequest,
    student_id: str = Depends(get_current_student_id),
    db: Client = Depends(get_db),
):
    """Semester GPA and projected CGPA for courses that are not saved yet."""
    try:
        result = GPAService(db).preview(student_id, data)
    except (MissingRequiredFields, InvalidCourseInput) as e:
        raise app_error_to_http(e, status.HTTP_400_BAD_REQUEST)
    except Exception as e:
        raise _server_error("calculating preview", e)
    return {"success": True, "data": result, "message": "GPA calculated successfully"}


@router.post("/check-retakes")
async def check_retakes(
    data: RetakeCheckRequest,
    student_id: str = Depends(get_current_student_id),
    db: Client = Depends(get_db),
):
    try:
        result = GPAService(db).check_retakes(student_id, data)
    except Exception as e:
        raise _server_error("checking retakes", e)
    return {
        "success": True,
        "data": result.to_wire(),
        "message": f"Found {result.retake_count} retake(s)" if result.has_retakes else "No retakes found",
    }


@router.get("/course-history")
async def get_course_history(
    courseCode: str | None = None,
    student_id: str = Depends(get_current_student_id),
    db: Client = Depends(get_db),
):
    try:
        result = GPAService(db).get_course_history(student_id, courseCode or "")
    except MissingRequiredFields as e:
        raise app_error_to_http(e, status.HTTP_400_BAD_REQUEST)
    except Exception as e:
        raise _server_error("loading course history", e)
    return {
        "success": True,
        "data": result.to_wire(),
        "message": f"Found {result.attempt_count} attempt(s) for {result.course_code}",
    }
