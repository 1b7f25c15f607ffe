"""Pydantic schemas for learner progress.

Response models returned by the progress service to the presentation layer.
"""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from editverse.progress.models import ProgressRecord, ProgressState


class ProgressResponse(BaseModel):
    """Progress record as seen by the presentation layer."""

    model_config = ConfigDict(from_attributes=True)

    user_id: UUID
    course_id: UUID
    progress_percentage: int = Field(ge=0, le=100)
    last_lesson_id: UUID | None = None
    started_at: datetime
    last_accessed_at: datetime
    state: ProgressState

    @classmethod
    def from_entity(cls, entity: ProgressRecord) -> "ProgressResponse":
        """Create response from entity."""
        return cls(
            user_id=entity.user_id,
            course_id=entity.course_id,
            progress_percentage=entity.progress_percentage,
            last_lesson_id=entity.last_lesson_id,
            started_at=entity.started_at,
            last_accessed_at=entity.last_accessed_at,
            state=entity.state,
        )


class LessonSummary(BaseModel):
    """Compact lesson entry for the course sidebar."""

    lesson_id: UUID
    title: str
    order_index: int
    duration_minutes: int = 0
    completed: bool = False


class ChapterSummary(BaseModel):
    """Chapter with its lessons in canonical order."""

    chapter_id: UUID | None = Field(None, description="None for unassigned lessons")
    title: str
    order_index: int | None = None
    lessons: list[LessonSummary] = Field(default_factory=list)


class CourseView(BaseModel):
    """Everything the learner page needs after opening a course."""

    course_id: UUID
    progress: ProgressResponse
    lessons: list[LessonSummary] = Field(
        default_factory=list, description="Canonical lesson sequence"
    )
    chapters: list[ChapterSummary] = Field(default_factory=list)
    unassigned: list[LessonSummary] = Field(default_factory=list)
    completed_lesson_ids: frozenset[UUID] = frozenset()
    current_lesson_id: UUID | None = None
    next_lesson_id: UUID | None = None


class CompletionResult(BaseModel):
    """Outcome of toggling a lesson, recomputed from stored completions."""

    lesson_id: UUID
    completed: bool
    completed_lesson_ids: frozenset[UUID]
    progress_percentage: int = Field(ge=0, le=100)
    state: ProgressState
    next_lesson_id: UUID | None = None
