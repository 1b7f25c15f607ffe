"""Database models for learner progress.

Cassandra table definitions for:
- User progress: one row per (user, course) with percentage and bookmark
- Lesson completions: one row per (user, lesson), existence = completed

Completions are partitioned by user so a single (user, lesson) pair can be
inserted or deleted on its own. course_id is denormalized onto each completion
to list a course's completions without joining through lessons.
"""

from datetime import UTC, datetime
from enum import Enum
from typing import Any
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from editverse.core.rows import ensure_utc_aware, parse_row


class ProgressState(str, Enum):
    """Course progress state for one learner."""

    NOT_STARTED = "not_started"  # No progress record
    IN_PROGRESS = "in_progress"  # Record exists, below 100% (0% included)
    COMPLETED = "completed"  # 100%


# ==============================================================================
# CQL Table Definitions
# ==============================================================================

USER_PROGRESS_TABLE_CQL = """
CREATE TABLE IF NOT EXISTS {keyspace}.user_progress (
    user_id UUID,
    course_id UUID,
    progress_percentage INT,
    last_lesson_id UUID,
    started_at TIMESTAMP,
    last_accessed_at TIMESTAMP,
    PRIMARY KEY ((user_id, course_id))
)
"""

# Lookup for per-course statistics (admin dashboard)
USER_PROGRESS_BY_COURSE_TABLE_CQL = """
CREATE TABLE IF NOT EXISTS {keyspace}.user_progress_by_course (
    course_id UUID,
    user_id UUID,
    progress_percentage INT,
    PRIMARY KEY (course_id, user_id)
)
"""

# Lookup for a learner's course list
USER_PROGRESS_BY_USER_TABLE_CQL = """
CREATE TABLE IF NOT EXISTS {keyspace}.user_progress_by_user (
    user_id UUID,
    course_id UUID,
    progress_percentage INT,
    last_lesson_id UUID,
    started_at TIMESTAMP,
    last_accessed_at TIMESTAMP,
    PRIMARY KEY (user_id, course_id)
)
"""

LESSON_COMPLETIONS_TABLE_CQL = """
CREATE TABLE IF NOT EXISTS {keyspace}.lesson_completions (
    user_id UUID,
    lesson_id UUID,
    course_id UUID,
    completed_at TIMESTAMP,
    PRIMARY KEY (user_id, lesson_id)
)
"""

PROGRESS_TABLES_CQL = [
    USER_PROGRESS_TABLE_CQL,
    USER_PROGRESS_BY_COURSE_TABLE_CQL,
    USER_PROGRESS_BY_USER_TABLE_CQL,
    LESSON_COMPLETIONS_TABLE_CQL,
]


# ==============================================================================
# Row Schemas
# ==============================================================================


class ProgressRow(BaseModel):
    """Validated shape of a stored progress row."""

    model_config = ConfigDict(from_attributes=True)

    user_id: UUID
    course_id: UUID
    progress_percentage: int | None = Field(default=None, ge=0, le=100)
    last_lesson_id: UUID | None = None
    started_at: datetime | None = None
    last_accessed_at: datetime | None = None


class CompletionRow(BaseModel):
    """Validated shape of a stored completion row."""

    model_config = ConfigDict(from_attributes=True)

    user_id: UUID
    lesson_id: UUID
    course_id: UUID
    completed_at: datetime | None = None


# ==============================================================================
# Entity Classes
# ==============================================================================


class ProgressRecord:
    """Per-(user, course) progress record.

    Its existence alone marks the course as started; a record at 0% is
    different from no record at all.

    Attributes:
        user_id: Learner UUID
        course_id: Course UUID
        progress_percentage: Completed share of lessons (0-100)
        last_lesson_id: Last viewed lesson (resume bookmark)
        started_at: When the learner first opened the course
        last_accessed_at: Last time the learner touched the course
    """

    def __init__(
        self,
        user_id: UUID,
        course_id: UUID,
        progress_percentage: int = 0,
        last_lesson_id: UUID | None = None,
        started_at: datetime | None = None,
        last_accessed_at: datetime | None = None,
    ):
        self.user_id = user_id
        self.course_id = course_id
        self.progress_percentage = progress_percentage
        self.last_lesson_id = last_lesson_id
        self.started_at = ensure_utc_aware(started_at) or datetime.now(UTC)
        self.last_accessed_at = ensure_utc_aware(last_accessed_at) or self.started_at

    @property
    def state(self) -> ProgressState:
        """Current state of the course for this learner."""
        if self.progress_percentage >= 100:
            return ProgressState.COMPLETED
        return ProgressState.IN_PROGRESS

    @property
    def is_completed(self) -> bool:
        """Check if every lesson of the course is completed."""
        return self.state == ProgressState.COMPLETED

    def with_changes(self, **changes: Any) -> "ProgressRecord":
        """Return a copy with the given fields replaced."""
        data = self.to_dict()
        data.update(changes)
        return ProgressRecord(**data)

    @classmethod
    def from_row(cls, row: Any) -> "ProgressRecord":
        """Create ProgressRecord instance from a storage row."""
        data = parse_row(ProgressRow, row)
        return cls(
            user_id=data.user_id,
            course_id=data.course_id,
            progress_percentage=data.progress_percentage or 0,
            last_lesson_id=data.last_lesson_id,
            started_at=data.started_at,
            last_accessed_at=data.last_accessed_at,
        )

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {
            "user_id": self.user_id,
            "course_id": self.course_id,
            "progress_percentage": self.progress_percentage,
            "last_lesson_id": self.last_lesson_id,
            "started_at": self.started_at,
            "last_accessed_at": self.last_accessed_at,
        }

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, ProgressRecord):
            return NotImplemented
        return self.to_dict() == other.to_dict()

    __hash__ = None  # type: ignore[assignment]

    def __repr__(self) -> str:
        return (
            f"<ProgressRecord user={self.user_id} course={self.course_id} "
            f"{self.progress_percentage}%>"
        )


class CompletionRecord:
    """A lesson a learner has marked done."""

    def __init__(
        self,
        user_id: UUID,
        lesson_id: UUID,
        course_id: UUID,
        completed_at: datetime | None = None,
    ):
        self.user_id = user_id
        self.lesson_id = lesson_id
        self.course_id = course_id
        self.completed_at = ensure_utc_aware(completed_at) or datetime.now(UTC)

    @classmethod
    def from_row(cls, row: Any) -> "CompletionRecord":
        """Create CompletionRecord instance from a storage row."""
        data = parse_row(CompletionRow, row)
        return cls(
            user_id=data.user_id,
            lesson_id=data.lesson_id,
            course_id=data.course_id,
            completed_at=data.completed_at,
        )

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {
            "user_id": self.user_id,
            "lesson_id": self.lesson_id,
            "course_id": self.course_id,
            "completed_at": self.completed_at,
        }

    def __repr__(self) -> str:
        return f"<CompletionRecord user={self.user_id} lesson={self.lesson_id}>"
