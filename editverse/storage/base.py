"""Row storage interfaces used by the services.

Stores are passed into each component explicitly. Uniqueness of progress
rows per (user, course) and of completion rows per (user, lesson) is the
store's job; components never lock.
"""

from collections.abc import Mapping, Sequence
from typing import Any, Protocol, runtime_checkable
from uuid import UUID

from editverse.applications.models import Application
from editverse.core.exceptions import InvalidDataError
from editverse.courses.models import Chapter, Course, Lesson
from editverse.progress.models import ProgressRecord


# Progress fields a caller may change after creation
PROGRESS_UPDATABLE_FIELDS = frozenset(
    {"progress_percentage", "last_lesson_id", "last_accessed_at"}
)

COURSE_UPDATABLE_FIELDS = frozenset(
    {
        "title",
        "description",
        "category",
        "image_url",
        "difficulty",
        "duration_minutes",
        "lessons_count",
        "is_published",
        "order_index",
        "updated_at",
    }
)

LESSON_UPDATABLE_FIELDS = frozenset(
    {
        "title",
        "description",
        "video_url",
        "duration_minutes",
        "order_index",
        "chapter_id",
    }
)

CHAPTER_UPDATABLE_FIELDS = frozenset({"title", "order_index"})

APPLICATION_UPDATABLE_FIELDS = frozenset(
    {"status", "rejection_reason", "reviewed_at", "reviewed_by"}
)


@runtime_checkable
class ProgressStore(Protocol):
    """Progress records and lesson completions."""

    def fetch_progress_record(
        self, user_id: UUID, course_id: UUID
    ) -> ProgressRecord | None: ...

    def insert_progress_record(self, record: ProgressRecord) -> ProgressRecord:
        """Insert a new record; ConflictError if the pair already has one."""
        ...

    def update_progress_record(
        self, user_id: UUID, course_id: UUID, fields: Mapping[str, Any]
    ) -> ProgressRecord:
        """Apply a partial update; ProgressNotFoundError if absent."""
        ...

    def fetch_progress_records(self, user_id: UUID) -> Sequence[ProgressRecord]:
        """Every progress record of a learner, in no particular order."""
        ...

    def fetch_completions(self, user_id: UUID, course_id: UUID) -> frozenset[UUID]: ...

    def insert_completion(
        self, user_id: UUID, lesson_id: UUID, course_id: UUID
    ) -> None:
        """Record one completion; no-op if already present."""
        ...

    def delete_completion(self, user_id: UUID, lesson_id: UUID) -> None:
        """Remove one completion; no-op if absent."""
        ...

    def count_progress_records(self, course_id: UUID) -> int: ...

    def count_completed_progress_records(self, course_id: UUID) -> int: ...


@runtime_checkable
class ContentStore(Protocol):
    """Courses, chapters and lessons."""

    def fetch_course(self, course_id: UUID) -> Course | None: ...

    def list_courses(self) -> Sequence[Course]:
        """Every course, published or not, in no particular order."""
        ...

    def insert_course(self, course: Course) -> Course:
        """Insert a new course; ConflictError if the id is taken."""
        ...

    def update_course(self, course_id: UUID, fields: Mapping[str, Any]) -> Course: ...

    def delete_course(self, course_id: UUID) -> None: ...

    def fetch_lessons(self, course_id: UUID) -> Sequence[Lesson]: ...

    def fetch_chapters(self, course_id: UUID) -> Sequence[Chapter]: ...

    def insert_lesson(self, lesson: Lesson) -> Lesson: ...

    def update_lesson(
        self, course_id: UUID, lesson_id: UUID, fields: Mapping[str, Any]
    ) -> Lesson: ...

    def delete_lesson(self, course_id: UUID, lesson_id: UUID) -> None: ...

    def insert_chapter(self, chapter: Chapter) -> Chapter: ...

    def update_chapter(
        self, course_id: UUID, chapter_id: UUID, fields: Mapping[str, Any]
    ) -> Chapter: ...

    def delete_chapter(self, course_id: UUID, chapter_id: UUID) -> None: ...


@runtime_checkable
class ApplicationStore(Protocol):
    """Membership applications."""

    def insert_application(self, application: Application) -> Application: ...

    def fetch_application(self, application_id: UUID) -> Application | None: ...

    def fetch_applications(self, status: str | None = None) -> Sequence[Application]: ...

    def update_application(
        self, application_id: UUID, fields: Mapping[str, Any]
    ) -> Application: ...


def check_fields(fields: Mapping[str, Any], allowed: frozenset[str]) -> None:
    """Reject partial updates touching keys or unknown columns."""
    unknown = set(fields) - allowed
    if unknown:
        raise InvalidDataError(f"Cannot update fields: {', '.join(sorted(unknown))}")
