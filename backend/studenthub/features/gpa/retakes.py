"""
GPA feature: debounced retake check with latest-wins semantics.

Every input change bumps a generation counter and restarts the debounce timer.
A response is applied only if its generation is still current and the input
signature it was computed from still matches; anything else is dropped.
Failures are logged and leave no warning behind.
"""

import asyncio
import logging
from typing import Protocol

from studenthub.config import get_settings
from studenthub.core.exceptions import RetakeCheckUnavailable
from studenthub.features.gpa.grading import normalize_code
from studenthub.features.gpa.schemas import CourseEntry, RetakeCheckResult, RetakeWarning

logger = logging.getLogger(__name__)


class RetakeLookup(Protocol):
    async def check_retakes(
        self, courses: list[CourseEntry], semester: str | None, year: int | None
    ) -> RetakeCheckResult: ...


Signature = tuple[tuple[tuple[str, str], ...], str | None, int | None]


def input_signature(courses: list[CourseEntry], semester: str | None, year: int | None) -> Signature:
    codes = tuple((normalize_code(c.course_code), c.grade or "") for c in courses)
    return codes, getattr(semester, "value", semester), year


def warning_message(count: int) -> str:
    return f"{count} course(s) are being retaken. The latest grade will be used for CGPA calculation."


class RetakeChecker:
    """Debounced, cancellable retake lookup for one form session."""

    def __init__(self, lookup: RetakeLookup, delay: float | None = None):
        self._lookup = lookup
        if delay is None:
            delay = get_settings().RETAKE_CHECK_DEBOUNCE_MS / 1000
        self.delay = delay

        self.warning: RetakeWarning | None = None
        self.is_checking = False

        self._generation = 0
        self._signature: Signature | None = None
        self._timer: asyncio.Task | None = None
        self._in_flight: set[asyncio.Task] = set()

    @property
    def generation(self) -> int:
        return self._generation

    def invalidate(self) -> None:
        """Drop the current warning and any pending or in-flight result."""
        self._generation += 1
        self._signature = None
        self.warning = None
        self.is_checking = False
        self._cancel_timer()

    def schedule(self, courses: list[CourseEntry], semester: str | None, year: int | None) -> None:
        """(Re)start the debounce window for these inputs. Needs a running event loop."""
        self.invalidate()
        snapshot = [c.model_copy() for c in courses]
        signature = input_signature(snapshot, semester, year)
        self._signature = signature

        task = asyncio.get_running_loop().create_task(
            self._debounced(self._generation, signature, snapshot, semester, year)
        )
        self._timer = task
        self._in_flight.add(task)
        task.add_done_callback(self._in_flight.discard)

    async def wait(self) -> None:
        """Wait for the pending timer and any in-flight lookups to finish."""
        while True:
            pending = [t for t in self._in_flight if not t.done()]
            if not pending:
                return
            await asyncio.gather(*pending, return_exceptions=True)

    async def close(self) -> None:
        self.invalidate()
        for task in list(self._in_flight):
            task.cancel()
        await self.wait()

    def _cancel_timer(self) -> None:
        if self._timer is not None and not self._timer.done():
            self._timer.cancel()
        self._timer = None

    def _is_current(self, generation: int, signature: Signature) -> bool:
        return generation == self._generation and signature == self._signature

    async def _debounced(
        self,
        generation: int,
        signature: Signature,
        courses: list[CourseEntry],
        semester: str | None,
        year: int | None,
    ) -> None:
        await asyncio.sleep(self.delay)

        # Past the window: from here on a newer change only discards the result.
        if self._timer is asyncio.current_task():
            self._timer = None

        if not any((c.course_code or "").strip() for c in courses):
            return

        self.is_checking = True
        try:
            result = await self._lookup.check_retakes(courses, semester, year)
        except RetakeCheckUnavailable as e:
            logger.warning(f"Retake check unavailable: {e.message}")
            if self._is_current(generation, signature):
                self.warning = None
            return
        finally:
            if generation == self._generation:
                self.is_checking = False

        if not self._is_current(generation, signature):
            logger.debug(f"Discarding stale retake result (generation {generation})")
            return

        if result.has_retakes:
            self.warning = RetakeWarning(
                **result.model_dump(),
                message=warning_message(result.retake_count),
            )
        else:
            self.warning = None
