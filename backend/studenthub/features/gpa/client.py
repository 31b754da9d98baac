"""
GPA feature: async HTTP client for the GPA API, used by form sessions.

ENDPOINTS (relative to GPA_API_BASE_URL, bearer JWT on every call):
  1. Check retakes:   POST /check-retakes   body: {courses, semester, year}
  2. Save semester:   POST /semesters       body: {semester, year, courses}
  3. Academic stats:  GET  /stats

Every response is {"success": bool, "data": ..., "message": str}.
"""

import logging

import httpx
from pydantic import ValidationError

from studenthub.config import get_settings
from studenthub.core.exceptions import RetakeCheckUnavailable, SubmissionFailed
from studenthub.features.gpa.schemas import (
    AcademicStats,
    CourseEntry,
    RetakeCheckRequest,
    RetakeCheckResult,
    SemesterSubmission,
)

logger = logging.getLogger(__name__)

SUBMISSION_FALLBACK_MESSAGE = "Failed to save semester"


class GPAAPIClient:
    """Client for the student-hub GPA API.

    Usage:
        async with GPAAPIClient(token) as client:
            result = await client.check_retakes(courses, "Fall", 2025)
    """

    def __init__(
        self,
        access_token: str | None = None,
        base_url: str | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        settings = get_settings()
        self.base_url = (base_url or settings.GPA_API_BASE_URL).rstrip("/")
        self._timeout = settings.GPA_API_TIMEOUT

        headers = {
            "Accept": "application/json",
            "Content-Type": "application/json",
        }
        if access_token:
            headers["Authorization"] = f"Bearer {access_token}"

        self._client = httpx.AsyncClient(
            timeout=float(self._timeout),
            headers=headers,
            transport=transport,
        )

    async def __aenter__(self) -> "GPAAPIClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.close()

    async def close(self):
        """Close the HTTP client."""
        await self._client.aclose()

    # ── Retakes ──────────────────────────────────────────

    async def check_retakes(
        self,
        courses: list[CourseEntry],
        semester: str | None,
        year: int | None,
    ) -> RetakeCheckResult:
        """Ask the server which courses repeat an earlier attempt.

        Raises:
            RetakeCheckUnavailable: On timeout, transport error, non-2xx status,
                a non-JSON or malformed body, or a response with success=false.
        """
        body = RetakeCheckRequest(courses=courses, semester=semester, year=year).to_wire()
        try:
            response = await self._client.post(f"{self.base_url}/check-retakes", json=body)
            response.raise_for_status()
            payload = self._json_or_empty(response)
        except httpx.HTTPError as e:
            raise RetakeCheckUnavailable(f"Retake check failed: {e}") from e

        if not payload.get("success"):
            raise RetakeCheckUnavailable(payload.get("message") or "Retake check failed")
        try:
            return RetakeCheckResult.model_validate(payload.get("data") or {})
        except ValidationError as e:
            raise RetakeCheckUnavailable(f"Malformed retake check response: {e}") from e

    # ── Semesters ────────────────────────────────────────

    async def submit_semester(self, submission: SemesterSubmission) -> dict:
        """Save a semester. Returns the server's JSON body.

        Raises:
            SubmissionFailed: With the server's message verbatim when it sent one,
                otherwise the generic fallback message.
        """
        try:
            response = await self._client.post(
                f"{self.base_url}/semesters", json=submission.to_wire()
            )
        except httpx.HTTPError as e:
            logger.error(f"Semester submission failed: {e}")
            raise SubmissionFailed(SUBMISSION_FALLBACK_MESSAGE) from e

        payload = self._json_or_empty(response)
        if response.is_error or not payload.get("success"):
            raise SubmissionFailed(
                payload.get("message") or SUBMISSION_FALLBACK_MESSAGE,
                status_code=response.status_code,
            )
        return payload

    # ── Stats ────────────────────────────────────────────

    async def get_academic_stats(self) -> AcademicStats:
        """Stored academic stats of the authenticated student.

        Raises:
            httpx.HTTPError: On transport errors or a non-2xx status.
            ValueError: If the body is not JSON or the stats are out of range.
        """
        response = await self._client.get(f"{self.base_url}/stats")
        response.raise_for_status()
        payload = response.json()
        data = payload.get("data") if isinstance(payload, dict) else None
        return AcademicStats.model_validate(data or {})

    @staticmethod
    def _json_or_empty(response: httpx.Response) -> dict:
        try:
            data = response.json()
        except ValueError:
            return {}
        return data if isinstance(data, dict) else {}
