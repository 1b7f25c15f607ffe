"""In-memory row store.

Implements ProgressStore, ContentStore and ApplicationStore over dicts keyed
the same way as the Cassandra tables. Rows are stored as plain dicts and
rebuilt through ``from_row`` on every read, so callers never share mutable
state with the store and reads go through the same validation as Cassandra.
"""

import threading
from collections.abc import Callable, Mapping, Sequence
from typing import Any, TypeVar
from uuid import UUID

from editverse.applications.models import Application
from editverse.core.exceptions import (
    ApplicationNotFoundError,
    ChapterNotFoundError,
    ConflictError,
    CourseNotFoundError,
    LessonNotFoundError,
    ProgressNotFoundError,
)
from editverse.courses.models import Chapter, Course, Lesson
from editverse.progress.models import CompletionRecord, ProgressRecord
from editverse.storage.base import (
    APPLICATION_UPDATABLE_FIELDS,
    CHAPTER_UPDATABLE_FIELDS,
    COURSE_UPDATABLE_FIELDS,
    LESSON_UPDATABLE_FIELDS,
    PROGRESS_UPDATABLE_FIELDS,
    check_fields,
)


Entity = TypeVar("Entity")


class InMemoryStore:
    """Dict-backed store for tests and local runs."""

    def __init__(self) -> None:
        self._lock = threading.RLock()
        self._courses: dict[UUID, dict[str, Any]] = {}
        self._chapters: dict[tuple[UUID, UUID], dict[str, Any]] = {}
        self._lessons: dict[tuple[UUID, UUID], dict[str, Any]] = {}
        self._progress: dict[tuple[UUID, UUID], dict[str, Any]] = {}
        self._completions: dict[tuple[UUID, UUID], dict[str, Any]] = {}
        self._applications: dict[UUID, dict[str, Any]] = {}

    def _apply(
        self,
        table: dict[Any, dict[str, Any]],
        key: Any,
        fields: Mapping[str, Any],
        factory: Callable[[Any], Entity],
        not_found: type[Exception],
    ) -> Entity:
        """Validate a partial update against the full row, then commit it."""
        with self._lock:
            row = table.get(key)
            if row is None:
                raise not_found
            updated = {**row, **fields}
            entity = factory(updated)
            table[key] = updated
            return entity

    # ==========================================================================
    # Progress Records
    # ==========================================================================

    def fetch_progress_record(
        self, user_id: UUID, course_id: UUID
    ) -> ProgressRecord | None:
        row = self._progress.get((user_id, course_id))
        return ProgressRecord.from_row(row) if row else None

    def insert_progress_record(self, record: ProgressRecord) -> ProgressRecord:
        key = (record.user_id, record.course_id)
        row = record.to_dict()
        stored = ProgressRecord.from_row(row)
        with self._lock:
            if key in self._progress:
                raise ConflictError(
                    f"Progress record already exists for course {record.course_id}"
                )
            self._progress[key] = row
        return stored

    def update_progress_record(
        self, user_id: UUID, course_id: UUID, fields: Mapping[str, Any]
    ) -> ProgressRecord:
        check_fields(fields, PROGRESS_UPDATABLE_FIELDS)
        return self._apply(
            self._progress,
            (user_id, course_id),
            fields,
            ProgressRecord.from_row,
            ProgressNotFoundError,
        )

    def fetch_progress_records(self, user_id: UUID) -> Sequence[ProgressRecord]:
        with self._lock:
            rows = [row for (uid, _), row in self._progress.items() if uid == user_id]
        return [ProgressRecord.from_row(row) for row in rows]

    def count_progress_records(self, course_id: UUID) -> int:
        with self._lock:
            return sum(1 for _, cid in self._progress if cid == course_id)

    def count_completed_progress_records(self, course_id: UUID) -> int:
        with self._lock:
            return sum(
                1
                for (_, cid), row in self._progress.items()
                if cid == course_id and (row.get("progress_percentage") or 0) >= 100
            )

    # ==========================================================================
    # Lesson Completions
    # ==========================================================================

    def fetch_completions(self, user_id: UUID, course_id: UUID) -> frozenset[UUID]:
        with self._lock:
            rows = [row for (uid, _), row in self._completions.items() if uid == user_id]
        return frozenset(
            completion.lesson_id
            for completion in map(CompletionRecord.from_row, rows)
            if completion.course_id == course_id
        )

    def insert_completion(
        self, user_id: UUID, lesson_id: UUID, course_id: UUID
    ) -> None:
        row = CompletionRecord(
            user_id=user_id, lesson_id=lesson_id, course_id=course_id
        ).to_dict()
        CompletionRecord.from_row(row)
        with self._lock:
            self._completions.setdefault((user_id, lesson_id), row)

    def delete_completion(self, user_id: UUID, lesson_id: UUID) -> None:
        with self._lock:
            self._completions.pop((user_id, lesson_id), None)

    # ==========================================================================
    # Courses
    # ==========================================================================

    def insert_course(self, course: Course) -> Course:
        row = course.to_dict()
        stored = Course.from_row(row)
        with self._lock:
            if course.id in self._courses:
                raise ConflictError(f"Course {course.id} already exists")
            self._courses[course.id] = row
        return stored

    def fetch_course(self, course_id: UUID) -> Course | None:
        row = self._courses.get(course_id)
        return Course.from_row(row) if row else None

    def list_courses(self) -> Sequence[Course]:
        with self._lock:
            rows = list(self._courses.values())
        return [Course.from_row(row) for row in rows]

    def update_course(self, course_id: UUID, fields: Mapping[str, Any]) -> Course:
        check_fields(fields, COURSE_UPDATABLE_FIELDS)
        return self._apply(
            self._courses, course_id, fields, Course.from_row, CourseNotFoundError
        )

    def delete_course(self, course_id: UUID) -> None:
        with self._lock:
            self._courses.pop(course_id, None)

    # ==========================================================================
    # Chapters
    # ==========================================================================

    def fetch_chapters(self, course_id: UUID) -> Sequence[Chapter]:
        return [
            Chapter.from_row(row)
            for (cid, _), row in list(self._chapters.items())
            if cid == course_id
        ]

    def insert_chapter(self, chapter: Chapter) -> Chapter:
        key = (chapter.course_id, chapter.id)
        row = chapter.to_dict()
        stored = Chapter.from_row(row)
        with self._lock:
            if key in self._chapters:
                raise ConflictError(f"Chapter {chapter.id} already exists")
            self._chapters[key] = row
        return stored

    def update_chapter(
        self, course_id: UUID, chapter_id: UUID, fields: Mapping[str, Any]
    ) -> Chapter:
        check_fields(fields, CHAPTER_UPDATABLE_FIELDS)
        return self._apply(
            self._chapters,
            (course_id, chapter_id),
            fields,
            Chapter.from_row,
            ChapterNotFoundError,
        )

    def delete_chapter(self, course_id: UUID, chapter_id: UUID) -> None:
        with self._lock:
            self._chapters.pop((course_id, chapter_id), None)

    # ==========================================================================
    # Lessons
    # ==========================================================================

    def fetch_lessons(self, course_id: UUID) -> Sequence[Lesson]:
        return [
            Lesson.from_row(row)
            for (cid, _), row in list(self._lessons.items())
            if cid == course_id
        ]

    def insert_lesson(self, lesson: Lesson) -> Lesson:
        key = (lesson.course_id, lesson.id)
        row = lesson.to_dict()
        stored = Lesson.from_row(row)
        with self._lock:
            if key in self._lessons:
                raise ConflictError(f"Lesson {lesson.id} already exists")
            self._lessons[key] = row
        return stored

    def update_lesson(
        self, course_id: UUID, lesson_id: UUID, fields: Mapping[str, Any]
    ) -> Lesson:
        check_fields(fields, LESSON_UPDATABLE_FIELDS)
        return self._apply(
            self._lessons,
            (course_id, lesson_id),
            fields,
            Lesson.from_row,
            LessonNotFoundError,
        )

    def delete_lesson(self, course_id: UUID, lesson_id: UUID) -> None:
        with self._lock:
            self._lessons.pop((course_id, lesson_id), None)

    # ==========================================================================
    # Applications
    # ==========================================================================

    def insert_application(self, application: Application) -> Application:
        row = application.to_dict()
        stored = Application.from_row(row)
        with self._lock:
            if application.id in self._applications:
                raise ConflictError(f"Application {application.id} already exists")
            self._applications[application.id] = row
        return stored

    def fetch_application(self, application_id: UUID) -> Application | None:
        row = self._applications.get(application_id)
        return Application.from_row(row) if row else None

    def fetch_applications(self, status: str | None = None) -> Sequence[Application]:
        return [
            Application.from_row(row)
            for row in list(self._applications.values())
            if status is None or row["status"] == status
        ]

    def update_application(
        self, application_id: UUID, fields: Mapping[str, Any]
    ) -> Application:
        check_fields(fields, APPLICATION_UPDATABLE_FIELDS)
        return self._apply(
            self._applications,
            application_id,
            fields,
            Application.from_row,
            ApplicationNotFoundError,
        )
