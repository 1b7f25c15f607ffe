"""Per-(user, course) progress record: creation, bookmark and percentage.

The tracker knows that a record carries a percentage, not how that
percentage is derived; completion mechanics live in
``editverse.progress.completion``. State transitions are pure and return new
records; persisting them is the caller's job.
"""

from datetime import UTC, datetime
from typing import TYPE_CHECKING
from uuid import UUID

import structlog

from editverse.core.exceptions import ConflictError, InvalidDataError
from editverse.progress.models import ProgressRecord, ProgressState


if TYPE_CHECKING:
    from editverse.storage.base import ProgressStore

logger = structlog.get_logger(__name__)


def progress_state(record: ProgressRecord | None) -> ProgressState:
    """State of a course for a learner, NOT_STARTED only when no record exists."""
    if record is None:
        return ProgressState.NOT_STARTED
    return record.state


def record_lesson_view(
    record: ProgressRecord, lesson_id: UUID, now: datetime
) -> ProgressRecord:
    """Bookmark ``lesson_id`` as the lesson to resume from."""
    if lesson_id is None:
        raise InvalidDataError("lesson_id is required")
    return record.with_changes(last_lesson_id=lesson_id, last_accessed_at=now)


def apply_completion_change(
    record: ProgressRecord, new_percentage: int
) -> ProgressRecord:
    """Set the course percentage on a record.

    Raises:
        InvalidDataError: If the percentage is not an integer in 0..100
    """
    if isinstance(new_percentage, bool) or not isinstance(new_percentage, int):
        raise InvalidDataError(f"Percentage must be an integer, got {new_percentage!r}")
    if not 0 <= new_percentage <= 100:
        raise InvalidDataError(f"Percentage must be within 0..100, got {new_percentage}")
    return record.with_changes(progress_percentage=new_percentage)


class EnrollmentTracker:
    """Owns the single progress record per (user, course)."""

    def __init__(self, store: "ProgressStore"):
        self.store = store

    def ensure_started(
        self,
        user_id: UUID,
        course_id: UUID,
        now: datetime | None = None,
    ) -> ProgressRecord:
        """Return the learner's record, creating a 0% one on first open.

        Safe on every course open. When another session inserted the record
        between our read and our insert, the store's uniqueness check fails
        the insert and the existing record is returned instead.
        """
        existing = self.store.fetch_progress_record(user_id, course_id)
        if existing is not None:
            return existing

        now = now or datetime.now(UTC)
        record = ProgressRecord(
            user_id=user_id,
            course_id=course_id,
            progress_percentage=0,
            started_at=now,
            last_accessed_at=now,
        )

        try:
            created = self.store.insert_progress_record(record)
        except ConflictError:
            logger.info("course_start_raced", course_id=str(course_id))
            existing = self.store.fetch_progress_record(user_id, course_id)
            if existing is None:
                raise
            return existing

        logger.info(
            "course_started",
            user_id=str(user_id),
            course_id=str(course_id),
        )
        return created
