"""Learner progress service layer.

Business logic for:
- Opening a course (start tracking, resume lesson, chapter sidebar)
- Selecting a lesson (resume bookmark)
- Toggling lesson completion and advancing to the next lesson
- Recomputing the course percentage from stored completions
- Listing a learner's courses by last access

Every completion change is written as a single (user, lesson) insert or
delete, then the percentage is recomputed from the completions read back
from the store. Two sessions of the same learner toggling different lessons
therefore converge instead of overwriting each other.
"""

from collections.abc import Sequence
from datetime import UTC, datetime
from typing import TYPE_CHECKING
from uuid import UUID

import structlog

from editverse.core.context import ProgressContext
from editverse.core.exceptions import CourseNotFoundError, UnknownLessonError
from editverse.courses.models import Lesson
from editverse.courses.resolver import (
    UNASSIGNED,
    group_by_chapter,
    next_lesson,
    order_chapters,
    order_lessons,
    resume_lesson,
)
from editverse.progress.completion import percentage_for, toggle_completion
from editverse.progress.enrollment import (
    EnrollmentTracker,
    apply_completion_change,
    record_lesson_view,
)
from editverse.progress.models import ProgressRecord
from editverse.progress.schemas import (
    ChapterSummary,
    CompletionResult,
    CourseView,
    LessonSummary,
    ProgressResponse,
)


if TYPE_CHECKING:
    from editverse.storage.base import ContentStore, ProgressStore

logger = structlog.get_logger(__name__)


def _summary(lesson: Lesson, completions: frozenset[UUID]) -> LessonSummary:
    return LessonSummary(
        lesson_id=lesson.id,
        title=lesson.title,
        order_index=lesson.order_index,
        duration_minutes=lesson.duration_minutes,
        completed=lesson.id in completions,
    )


class ProgressService:
    """Service for learner course progress."""

    def __init__(self, progress_store: "ProgressStore", content_store: "ContentStore"):
        self.progress_store = progress_store
        self.content_store = content_store
        self.tracker = EnrollmentTracker(progress_store)

    # ==========================================================================
    # Helpers
    # ==========================================================================

    def _course_lessons(self, course_id: UUID) -> list[Lesson]:
        return order_lessons(self.content_store.fetch_lessons(course_id))

    @staticmethod
    def _require_lesson(lessons: Sequence[Lesson], lesson_id: UUID) -> Lesson:
        for lesson in lessons:
            if lesson.id == lesson_id:
                return lesson
        raise UnknownLessonError(f"Lesson {lesson_id} is not part of this course")

    def _stored_completions(
        self, user_id: UUID, course_id: UUID, lessons: Sequence[Lesson]
    ) -> frozenset[UUID]:
        """Completions read from the store, limited to current lessons.

        Completions of deleted lessons stay in storage but must not count.
        """
        roster = {lesson.id for lesson in lessons}
        return self.progress_store.fetch_completions(user_id, course_id) & roster

    def _reconcile(
        self,
        record: ProgressRecord,
        lessons: Sequence[Lesson],
    ) -> tuple[ProgressRecord, frozenset[UUID]]:
        """Recompute and persist the percentage from stored completions."""
        completions = self._stored_completions(record.user_id, record.course_id, lessons)
        percentage = percentage_for(completions, len(lessons))
        updated = apply_completion_change(record, percentage)

        persisted = self.progress_store.update_progress_record(
            record.user_id,
            record.course_id,
            {"progress_percentage": updated.progress_percentage},
        )
        return persisted, completions

    # ==========================================================================
    # Course Page
    # ==========================================================================

    def open_course(
        self,
        user_id: UUID,
        course_id: UUID,
        now: datetime | None = None,
    ) -> CourseView:
        """Start tracking if needed and build the learner's course view.

        Raises:
            CourseNotFoundError: If the course does not exist
        """
        with ProgressContext(user_id=user_id, course_id=course_id):
            if self.content_store.fetch_course(course_id) is None:
                raise CourseNotFoundError

            record = self.tracker.ensure_started(user_id, course_id, now=now)
            lessons = self._course_lessons(course_id)
            chapters = order_chapters(self.content_store.fetch_chapters(course_id))
            completions = self._stored_completions(user_id, course_id, lessons)

            grouped = group_by_chapter(lessons, chapters)
            current = resume_lesson(lessons, record.last_lesson_id)
            following = next_lesson(lessons, current.id) if current else None

            logger.debug(
                "course_opened",
                lessons=len(lessons),
                chapters=len(chapters),
                completed=len(completions),
            )

            return CourseView(
                course_id=course_id,
                progress=ProgressResponse.from_entity(record),
                lessons=[_summary(lesson, completions) for lesson in lessons],
                chapters=[
                    ChapterSummary(
                        chapter_id=chapter.id,
                        title=chapter.title,
                        order_index=chapter.order_index,
                        lessons=[_summary(lesson, completions) for lesson in grouped[chapter.id]],
                    )
                    for chapter in chapters
                ],
                unassigned=[_summary(lesson, completions) for lesson in grouped[UNASSIGNED]],
                completed_lesson_ids=completions,
                current_lesson_id=current.id if current else None,
                next_lesson_id=following.id if following else None,
            )

    def select_lesson(
        self,
        user_id: UUID,
        course_id: UUID,
        lesson_id: UUID,
        now: datetime | None = None,
    ) -> ProgressResponse:
        """Bookmark the lesson the learner just opened.

        Raises:
            UnknownLessonError: If the lesson is not part of the course
        """
        with ProgressContext(user_id=user_id, course_id=course_id):
            lessons = self._course_lessons(course_id)
            self._require_lesson(lessons, lesson_id)

            record = self.tracker.ensure_started(user_id, course_id, now=now)
            viewed = record_lesson_view(record, lesson_id, now or datetime.now(UTC))
            persisted = self.progress_store.update_progress_record(
                user_id,
                course_id,
                {
                    "last_lesson_id": viewed.last_lesson_id,
                    "last_accessed_at": viewed.last_accessed_at,
                },
            )

            logger.debug("lesson_selected", lesson_id=str(lesson_id))
            return ProgressResponse.from_entity(persisted)

    # ==========================================================================
    # Completion
    # ==========================================================================

    def toggle_lesson(
        self,
        user_id: UUID,
        course_id: UUID,
        lesson_id: UUID,
    ) -> CompletionResult:
        """Complete or un-complete one lesson.

        Raises:
            UnknownLessonError: If the lesson is not part of the course
        """
        with ProgressContext(user_id=user_id, course_id=course_id):
            lessons = self._course_lessons(course_id)
            roster = frozenset(lesson.id for lesson in lessons)
            self._require_lesson(lessons, lesson_id)

            record = self.tracker.ensure_started(user_id, course_id)
            current = self._stored_completions(user_id, course_id, lessons)
            toggled, provisional = toggle_completion(
                current, lesson_id, len(lessons), roster=roster
            )

            completed = lesson_id in toggled
            if completed:
                self.progress_store.insert_completion(user_id, lesson_id, course_id)
            else:
                self.progress_store.delete_completion(user_id, lesson_id)

            persisted, completions = self._reconcile(record, lessons)

            logger.info(
                "lesson_completion_toggled",
                lesson_id=str(lesson_id),
                completed=completed,
                provisional_percentage=provisional,
                progress_percentage=persisted.progress_percentage,
            )

            return CompletionResult(
                lesson_id=lesson_id,
                completed=completed,
                completed_lesson_ids=completions,
                progress_percentage=persisted.progress_percentage,
                state=persisted.state,
            )

    def complete_and_advance(
        self,
        user_id: UUID,
        course_id: UUID,
        lesson_id: UUID,
        now: datetime | None = None,
    ) -> CompletionResult:
        """Mark a lesson complete (never un-completes) and move to the next one.

        The bookmark moves only when a next lesson exists.

        Raises:
            UnknownLessonError: If the lesson is not part of the course
        """
        with ProgressContext(user_id=user_id, course_id=course_id):
            lessons = self._course_lessons(course_id)
            self._require_lesson(lessons, lesson_id)

            record = self.tracker.ensure_started(user_id, course_id, now=now)
            if lesson_id not in self._stored_completions(user_id, course_id, lessons):
                self.progress_store.insert_completion(user_id, lesson_id, course_id)

            persisted, completions = self._reconcile(record, lessons)

            following = next_lesson(lessons, lesson_id)
            if following is not None:
                viewed = record_lesson_view(
                    persisted, following.id, now or datetime.now(UTC)
                )
                persisted = self.progress_store.update_progress_record(
                    user_id,
                    course_id,
                    {
                        "last_lesson_id": viewed.last_lesson_id,
                        "last_accessed_at": viewed.last_accessed_at,
                    },
                )

            logger.info(
                "lesson_completed_and_advanced",
                lesson_id=str(lesson_id),
                next_lesson_id=str(following.id) if following else None,
                progress_percentage=persisted.progress_percentage,
            )

            return CompletionResult(
                lesson_id=lesson_id,
                completed=True,
                completed_lesson_ids=completions,
                progress_percentage=persisted.progress_percentage,
                state=persisted.state,
                next_lesson_id=following.id if following else None,
            )

    def recalculate(self, user_id: UUID, course_id: UUID) -> ProgressResponse:
        """Recompute the stored percentage from stored completions."""
        with ProgressContext(user_id=user_id, course_id=course_id):
            lessons = self._course_lessons(course_id)
            record = self.tracker.ensure_started(user_id, course_id)
            persisted, _ = self._reconcile(record, lessons)
            return ProgressResponse.from_entity(persisted)

    def get_progress(self, user_id: UUID, course_id: UUID) -> ProgressResponse | None:
        """Progress for a course, None when the learner never opened it."""
        record = self.progress_store.fetch_progress_record(user_id, course_id)
        return ProgressResponse.from_entity(record) if record else None

    def list_progress(self, user_id: UUID) -> list[ProgressResponse]:
        """Every course the learner opened, most recently accessed first."""
        records = sorted(
            self.progress_store.fetch_progress_records(user_id),
            key=lambda record: record.last_accessed_at,
            reverse=True,
        )
        return [ProgressResponse.from_entity(record) for record in records]
