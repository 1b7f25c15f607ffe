"""Course content administration service layer.

Business logic for:
- Course catalog (published, filtered) and course CRUD
- Chapter CRUD and reordering
- Lesson CRUD and reordering
- Keeping the course's denormalized lessons_count in sync
- Enrollment statistics per course
"""

from collections.abc import Sequence
from datetime import UTC, datetime
from typing import TYPE_CHECKING
from uuid import UUID

import structlog

from editverse.core.exceptions import (
    ChapterNotFoundError,
    CourseNotFoundError,
    EditverseError,
    LessonNotFoundError,
)
from editverse.courses.models import Chapter, Course, Lesson
from editverse.courses.resolver import next_order_index, order_chapters, order_lessons
from editverse.courses.schemas import (
    CourseFilters,
    CourseStats,
    CreateCourseRequest,
    CreateChapterRequest,
    CreateLessonRequest,
    UpdateChapterRequest,
    UpdateCourseRequest,
    UpdateLessonRequest,
)
from editverse.progress.completion import share_percentage


if TYPE_CHECKING:
    from editverse.storage.base import ContentStore, ProgressStore

logger = structlog.get_logger(__name__)


# ==============================================================================
# Custom Exceptions
# ==============================================================================


class InvalidReorderError(EditverseError):
    """Reorder list does not match the current items."""

    def __init__(self, message: str = "Ids do not match the course's items"):
        super().__init__(message, "invalid_reorder")


class OrderIndexTakenError(EditverseError):
    """Another lesson of the course already uses this order index."""

    def __init__(self, message: str = "Order index already used in this course"):
        super().__init__(message, "order_index_taken")


# ==============================================================================
# Course Content Service
# ==============================================================================


class CourseContentService:
    """Service for administering courses and their chapters and lessons."""

    def __init__(self, content_store: "ContentStore", progress_store: "ProgressStore"):
        self.content_store = content_store
        self.progress_store = progress_store

    def _require_course(self, course_id: UUID) -> Course:
        course = self.content_store.fetch_course(course_id)
        if course is None:
            raise CourseNotFoundError
        return course

    def _require_chapter(self, course_id: UUID, chapter_id: UUID) -> Chapter:
        for chapter in self.content_store.fetch_chapters(course_id):
            if chapter.id == chapter_id:
                return chapter
        raise ChapterNotFoundError(f"Chapter {chapter_id} is not part of this course")

    @staticmethod
    def _check_order_index_free(
        lessons: Sequence[Lesson], order_index: int, lesson_id: UUID | None = None
    ) -> None:
        for lesson in lessons:
            if lesson.order_index == order_index and lesson.id != lesson_id:
                raise OrderIndexTakenError(
                    f"Order index {order_index} is used by lesson {lesson.id}"
                )

    # ==========================================================================
    # Courses
    # ==========================================================================

    def get_course(self, course_id: UUID) -> Course:
        """Get a course by id.

        Raises:
            CourseNotFoundError: If the course does not exist
        """
        return self._require_course(course_id)

    def list_courses(self, filters: CourseFilters | None = None) -> list[Course]:
        """Published courses in catalog order, narrowed by the filters.

        Category and difficulty match exactly; search matches title or
        description, case-insensitively.
        """
        courses = [course for course in self.list_all_courses() if course.is_published]
        if filters is None:
            return courses

        if filters.category:
            courses = [c for c in courses if c.category == filters.category]
        if filters.difficulty is not None:
            courses = [c for c in courses if c.difficulty == filters.difficulty.value]
        if filters.search:
            needle = filters.search.casefold()
            courses = [
                c
                for c in courses
                if needle in c.title.casefold() or needle in c.description.casefold()
            ]
        return courses

    def list_all_courses(self) -> list[Course]:
        """Every course, drafts included, in catalog order."""
        return sorted(self.content_store.list_courses(), key=lambda c: c.order_index)

    def create_course(self, data: CreateCourseRequest) -> Course:
        """Create a course, appended after the last one by default."""
        order_index = data.order_index
        if order_index is None:
            order_index = next_order_index(self.content_store.list_courses())

        course = self.content_store.insert_course(
            Course(
                title=data.title,
                description=data.description,
                category=data.category,
                image_url=data.image_url,
                difficulty=data.difficulty.value,
                duration_minutes=data.duration_minutes,
                is_published=data.is_published,
                order_index=order_index,
            )
        )
        logger.info(
            "course_created",
            course_id=str(course.id),
            order_index=order_index,
            is_published=course.is_published,
        )
        return course

    def update_course(self, course_id: UUID, data: UpdateCourseRequest) -> Course:
        """Apply the fields set on the request and bump updated_at.

        An explicit ``image_url=None`` clears the cover image; other fields
        set to None are ignored.
        """
        self._require_course(course_id)

        fields = data.model_dump(exclude_unset=True)
        for name in list(fields):
            if name != "image_url" and fields[name] is None:
                del fields[name]
        if "difficulty" in fields:
            fields["difficulty"] = fields["difficulty"].value
        fields["updated_at"] = datetime.now(UTC)

        course = self.content_store.update_course(course_id, fields)
        logger.info("course_updated", course_id=str(course_id), fields=sorted(fields))
        return course

    def delete_course(self, course_id: UUID) -> None:
        """Delete a course with its lessons and chapters.

        Learner progress and completions are left in place and ignored.
        """
        self._require_course(course_id)

        lessons = self.content_store.fetch_lessons(course_id)
        for lesson in lessons:
            self.content_store.delete_lesson(course_id, lesson.id)
        chapters = self.content_store.fetch_chapters(course_id)
        for chapter in chapters:
            self.content_store.delete_chapter(course_id, chapter.id)
        self.content_store.delete_course(course_id)

        logger.info(
            "course_deleted",
            course_id=str(course_id),
            lessons_deleted=len(lessons),
            chapters_deleted=len(chapters),
        )

    # ==========================================================================
    # Reads
    # ==========================================================================

    def get_lessons(self, course_id: UUID) -> list[Lesson]:
        """Lessons of a course in canonical order."""
        return order_lessons(self.content_store.fetch_lessons(course_id))

    def get_chapters(self, course_id: UUID) -> list[Chapter]:
        """Chapters of a course in display order."""
        return order_chapters(self.content_store.fetch_chapters(course_id))

    # ==========================================================================
    # Chapters
    # ==========================================================================

    def add_chapter(self, course_id: UUID, data: CreateChapterRequest) -> Chapter:
        """Create a chapter, appended after the last one by default."""
        self._require_course(course_id)
        order_index = data.order_index
        if order_index is None:
            order_index = next_order_index(self.content_store.fetch_chapters(course_id))

        chapter = self.content_store.insert_chapter(
            Chapter(course_id=course_id, title=data.title, order_index=order_index)
        )
        logger.info(
            "chapter_created",
            course_id=str(course_id),
            chapter_id=str(chapter.id),
            order_index=order_index,
        )
        return chapter

    def update_chapter(
        self, course_id: UUID, chapter_id: UUID, data: UpdateChapterRequest
    ) -> Chapter:
        """Rename or move a chapter."""
        self._require_chapter(course_id, chapter_id)
        fields = data.model_dump(exclude_unset=True, exclude_none=True)
        return self.content_store.update_chapter(course_id, chapter_id, fields)

    def delete_chapter(self, course_id: UUID, chapter_id: UUID) -> int:
        """Delete a chapter; its lessons become unassigned, never deleted.

        Returns:
            Number of lessons unassigned
        """
        self._require_chapter(course_id, chapter_id)

        unassigned = 0
        for lesson in self.content_store.fetch_lessons(course_id):
            if lesson.chapter_id == chapter_id:
                self.content_store.update_lesson(course_id, lesson.id, {"chapter_id": None})
                unassigned += 1

        self.content_store.delete_chapter(course_id, chapter_id)
        logger.info(
            "chapter_deleted",
            course_id=str(course_id),
            chapter_id=str(chapter_id),
            lessons_unassigned=unassigned,
        )
        return unassigned

    def reorder_chapters(self, course_id: UUID, chapter_ids: list[UUID]) -> list[Chapter]:
        """Renumber chapters 0..n-1 in the given order."""
        current = self.content_store.fetch_chapters(course_id)
        if len(chapter_ids) != len(set(chapter_ids)) or set(chapter_ids) != {
            chapter.id for chapter in current
        }:
            raise InvalidReorderError("Chapter ids do not match the course's chapters")

        by_id = {chapter.id: chapter for chapter in current}
        for position, chapter_id in enumerate(chapter_ids):
            if by_id[chapter_id].order_index != position:
                self.content_store.update_chapter(
                    course_id, chapter_id, {"order_index": position}
                )

        return self.get_chapters(course_id)

    # ==========================================================================
    # Lessons
    # ==========================================================================

    def add_lesson(self, course_id: UUID, data: CreateLessonRequest) -> Lesson:
        """Create a lesson, appended after the last one by default.

        Raises:
            CourseNotFoundError: If the course does not exist
            ChapterNotFoundError: If the chapter is not part of the course
            OrderIndexTakenError: If the explicit order index is in use
        """
        self._require_course(course_id)
        if data.chapter_id is not None:
            self._require_chapter(course_id, data.chapter_id)

        existing = self.content_store.fetch_lessons(course_id)
        order_index = data.order_index
        if order_index is None:
            order_index = next_order_index(existing)
        else:
            self._check_order_index_free(existing, order_index)

        lesson = self.content_store.insert_lesson(
            Lesson(
                course_id=course_id,
                title=data.title,
                description=data.description,
                video_url=data.video_url,
                duration_minutes=data.duration_minutes,
                order_index=order_index,
                chapter_id=data.chapter_id,
            )
        )
        self.sync_lessons_count(course_id)

        logger.info(
            "lesson_created",
            course_id=str(course_id),
            lesson_id=str(lesson.id),
            order_index=order_index,
        )
        return lesson

    def update_lesson(
        self, course_id: UUID, lesson_id: UUID, data: UpdateLessonRequest
    ) -> Lesson:
        """Apply the fields set on the request to a lesson."""
        lessons = self.content_store.fetch_lessons(course_id)
        if not any(lesson.id == lesson_id for lesson in lessons):
            raise LessonNotFoundError

        fields = data.model_dump(exclude_unset=True)
        for required in ("title", "order_index"):
            if required in fields and fields[required] is None:
                del fields[required]
        if fields.get("chapter_id") is not None:
            self._require_chapter(course_id, fields["chapter_id"])
        if "order_index" in fields:
            self._check_order_index_free(lessons, fields["order_index"], lesson_id)

        return self.content_store.update_lesson(course_id, lesson_id, fields)

    def delete_lesson(self, course_id: UUID, lesson_id: UUID) -> None:
        """Delete a lesson and refresh the course's lessons_count."""
        lessons = self.content_store.fetch_lessons(course_id)
        if not any(lesson.id == lesson_id for lesson in lessons):
            raise LessonNotFoundError

        self.content_store.delete_lesson(course_id, lesson_id)
        self.sync_lessons_count(course_id)
        logger.info("lesson_deleted", course_id=str(course_id), lesson_id=str(lesson_id))

    def reorder_lessons(self, course_id: UUID, lesson_ids: list[UUID]) -> list[Lesson]:
        """Renumber lessons 0..n-1 in the given order.

        Raises:
            InvalidReorderError: If the ids are not exactly the course's lessons
        """
        current = self.content_store.fetch_lessons(course_id)
        if len(lesson_ids) != len(set(lesson_ids)) or set(lesson_ids) != {
            lesson.id for lesson in current
        }:
            raise InvalidReorderError("Lesson ids do not match the course's lessons")

        by_id = {lesson.id: lesson for lesson in current}
        for position, lesson_id in enumerate(lesson_ids):
            if by_id[lesson_id].order_index != position:
                self.content_store.update_lesson(
                    course_id, lesson_id, {"order_index": position}
                )

        logger.info("lessons_reordered", course_id=str(course_id), count=len(lesson_ids))
        return self.get_lessons(course_id)

    def sync_lessons_count(self, course_id: UUID) -> int:
        """Store the current number of lessons on the course."""
        count = len(self.content_store.fetch_lessons(course_id))
        self.content_store.update_course(
            course_id,
            {"lessons_count": count, "updated_at": datetime.now(UTC)},
        )
        return count

    # ==========================================================================
    # Statistics
    # ==========================================================================

    def course_stats(self, course_id: UUID) -> CourseStats:
        """Learners who opened the course and how many finished it."""
        enrollments = self.progress_store.count_progress_records(course_id)
        completions = self.progress_store.count_completed_progress_records(course_id)
        return CourseStats(
            course_id=course_id,
            enrollments=enrollments,
            completions=completions,
            completion_rate=share_percentage(completions, enrollments),
        )
