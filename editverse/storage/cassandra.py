"""Cassandra-backed row store.

Uniqueness is enforced with lightweight transactions: progress records,
courses, lessons, chapters and applications are inserted with ``IF NOT EXISTS``
and partial updates use ``IF EXISTS``. Completions are plain writes on both
insert and delete: LWT and non-LWT writes are never mixed on one partition. Each completion is
its own row, so two sessions completing different lessons never overwrite
each other.
"""

from collections.abc import Mapping, Sequence
from enum import Enum
from typing import TYPE_CHECKING, Any
from uuid import UUID

import structlog

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


if TYPE_CHECKING:
    from cassandra.cluster import Session
    from cassandra.query import PreparedStatement

logger = structlog.get_logger(__name__)


def _as_mapping(row: Any) -> Any:
    """Driver rows are namedtuples; hand dicts to the row schemas."""
    return row._asdict() if hasattr(row, "_asdict") else row


def _db_value(value: Any) -> Any:
    return value.value if isinstance(value, Enum) else value


class CassandraStore:
    """Store implementation over a Cassandra session."""

    def __init__(self, session: "Session", keyspace: str):
        """Initialize with Cassandra session."""
        self.session = session
        self.keyspace = keyspace
        self._update_statements: dict[tuple[str, tuple[str, ...]], "PreparedStatement"] = {}
        self._prepare_statements()

    def _prepare_statements(self) -> None:
        """Prepare CQL statements for efficient execution."""
        ks = self.keyspace

        # Progress records
        self._get_progress = self.session.prepare(f"""
            SELECT * FROM {ks}.user_progress
            WHERE user_id = ? AND course_id = ?
        """)

        self._insert_progress = self.session.prepare(f"""
            INSERT INTO {ks}.user_progress
            (user_id, course_id, progress_percentage, last_lesson_id,
             started_at, last_accessed_at)
            VALUES (?, ?, ?, ?, ?, ?)
            IF NOT EXISTS
        """)

        self._upsert_progress_by_course = self.session.prepare(f"""
            INSERT INTO {ks}.user_progress_by_course
            (course_id, user_id, progress_percentage)
            VALUES (?, ?, ?)
        """)

        self._get_progress_by_course = self.session.prepare(f"""
            SELECT progress_percentage FROM {ks}.user_progress_by_course
            WHERE course_id = ?
        """)

        self._upsert_progress_by_user = self.session.prepare(f"""
            INSERT INTO {ks}.user_progress_by_user
            (user_id, course_id, progress_percentage, last_lesson_id,
             started_at, last_accessed_at)
            VALUES (?, ?, ?, ?, ?, ?)
        """)

        self._get_progress_by_user = self.session.prepare(f"""
            SELECT * FROM {ks}.user_progress_by_user WHERE user_id = ?
        """)

        # Completions (single-partition filter on course_id)
        self._get_completions = self.session.prepare(f"""
            SELECT * FROM {ks}.lesson_completions
            WHERE user_id = ? AND course_id = ?
            ALLOW FILTERING
        """)

        self._insert_completion = self.session.prepare(f"""
            INSERT INTO {ks}.lesson_completions
            (user_id, lesson_id, course_id, completed_at)
            VALUES (?, ?, ?, ?)
        """)

        self._delete_completion = self.session.prepare(f"""
            DELETE FROM {ks}.lesson_completions
            WHERE user_id = ? AND lesson_id = ?
        """)

        # Courses
        self._get_course = self.session.prepare(f"""
            SELECT * FROM {ks}.courses WHERE id = ?
        """)

        self._get_courses = self.session.prepare(f"""
            SELECT * FROM {ks}.courses
        """)

        self._delete_course = self.session.prepare(f"""
            DELETE FROM {ks}.courses WHERE id = ?
        """)

        self._insert_course = self.session.prepare(f"""
            INSERT INTO {ks}.courses
            (id, title, description, category, image_url, difficulty,
             duration_minutes, lessons_count, is_published, order_index,
             created_at, updated_at)
            VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
            IF NOT EXISTS
        """)

        # Chapters
        self._get_chapters = self.session.prepare(f"""
            SELECT * FROM {ks}.course_chapters WHERE course_id = ?
        """)

        self._get_chapter = self.session.prepare(f"""
            SELECT * FROM {ks}.course_chapters WHERE course_id = ? AND id = ?
        """)

        self._insert_chapter = self.session.prepare(f"""
            INSERT INTO {ks}.course_chapters (course_id, id, title, order_index)
            VALUES (?, ?, ?, ?)
            IF NOT EXISTS
        """)

        self._delete_chapter = self.session.prepare(f"""
            DELETE FROM {ks}.course_chapters WHERE course_id = ? AND id = ?
        """)

        # Lessons
        self._get_lessons = self.session.prepare(f"""
            SELECT * FROM {ks}.lessons WHERE course_id = ?
        """)

        self._get_lesson = self.session.prepare(f"""
            SELECT * FROM {ks}.lessons WHERE course_id = ? AND id = ?
        """)

        self._insert_lesson = self.session.prepare(f"""
            INSERT INTO {ks}.lessons
            (course_id, id, chapter_id, title, description, video_url,
             duration_minutes, order_index)
            VALUES (?, ?, ?, ?, ?, ?, ?, ?)
            IF NOT EXISTS
        """)

        self._delete_lesson = self.session.prepare(f"""
            DELETE FROM {ks}.lessons WHERE course_id = ? AND id = ?
        """)

        # Applications
        self._get_application = self.session.prepare(f"""
            SELECT * FROM {ks}.applications WHERE id = ?
        """)

        self._get_applications = self.session.prepare(f"""
            SELECT * FROM {ks}.applications
        """)

        self._get_applications_by_status = self.session.prepare(f"""
            SELECT * FROM {ks}.applications WHERE status = ?
        """)

        self._insert_application = self.session.prepare(f"""
            INSERT INTO {ks}.applications
            (id, user_id, full_name, age, experience_level, motivation,
             portfolio_url, social_links, status, rejection_reason,
             submitted_at, reviewed_at, reviewed_by)
            VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
            IF NOT EXISTS
        """)

    def _partial_update(
        self,
        table: str,
        key_columns: tuple[str, ...],
        key_values: list[Any],
        fields: Mapping[str, Any],
        allowed: frozenset[str],
    ) -> bool:
        """Run ``UPDATE ... IF EXISTS`` for the given columns.

        Column names come from the allowed set only. Statements are prepared
        once per (table, column set).

        Returns:
            True when the row existed and was updated
        """
        check_fields(fields, allowed)
        columns = tuple(sorted(fields))
        cache_key = (table, columns)
        statement = self._update_statements.get(cache_key)
        if statement is None:
            assignments = ", ".join(f"{column} = ?" for column in columns)
            conditions = " AND ".join(f"{column} = ?" for column in key_columns)
            statement = self.session.prepare(
                f"UPDATE {self.keyspace}.{table} SET {assignments} "
                f"WHERE {conditions} IF EXISTS"
            )
            self._update_statements[cache_key] = statement

        values = [_db_value(fields[column]) for column in columns]
        result = self.session.execute(statement, values + key_values)
        return bool(result.was_applied)

    # ==========================================================================
    # Progress Records
    # ==========================================================================

    def fetch_progress_record(
        self, user_id: UUID, course_id: UUID
    ) -> ProgressRecord | None:
        row = self.session.execute(self._get_progress, [user_id, course_id]).one()
        return ProgressRecord.from_row(_as_mapping(row)) if row else None

    def insert_progress_record(self, record: ProgressRecord) -> ProgressRecord:
        record = ProgressRecord.from_row(record.to_dict())
        result = self.session.execute(
            self._insert_progress,
            [
                record.user_id,
                record.course_id,
                record.progress_percentage,
                record.last_lesson_id,
                record.started_at,
                record.last_accessed_at,
            ],
        )
        if not result.was_applied:
            raise ConflictError(
                f"Progress record already exists for course {record.course_id}"
            )

        self.session.execute(
            self._upsert_progress_by_course,
            [record.course_id, record.user_id, record.progress_percentage],
        )
        self._write_progress_by_user(record)
        return record

    def update_progress_record(
        self, user_id: UUID, course_id: UUID, fields: Mapping[str, Any]
    ) -> ProgressRecord:
        if fields and not self._partial_update(
            "user_progress",
            ("user_id", "course_id"),
            [user_id, course_id],
            fields,
            PROGRESS_UPDATABLE_FIELDS,
        ):
            raise ProgressNotFoundError

        if "progress_percentage" in fields:
            self.session.execute(
                self._upsert_progress_by_course,
                [course_id, user_id, fields["progress_percentage"]],
            )

        record = self.fetch_progress_record(user_id, course_id)
        if record is None:
            raise ProgressNotFoundError
        self._write_progress_by_user(record)
        return record

    def fetch_progress_records(self, user_id: UUID) -> Sequence[ProgressRecord]:
        rows = self.session.execute(self._get_progress_by_user, [user_id])
        return [ProgressRecord.from_row(_as_mapping(row)) for row in rows]

    def _write_progress_by_user(self, record: ProgressRecord) -> None:
        self.session.execute(
            self._upsert_progress_by_user,
            [
                record.user_id,
                record.course_id,
                record.progress_percentage,
                record.last_lesson_id,
                record.started_at,
                record.last_accessed_at,
            ],
        )

    def count_progress_records(self, course_id: UUID) -> int:
        rows = self.session.execute(self._get_progress_by_course, [course_id])
        return sum(1 for _ in rows)

    def count_completed_progress_records(self, course_id: UUID) -> int:
        rows = self.session.execute(self._get_progress_by_course, [course_id])
        return sum(1 for row in rows if (row.progress_percentage or 0) >= 100)

    # ==========================================================================
    # Lesson Completions
    # ==========================================================================

    def fetch_completions(self, user_id: UUID, course_id: UUID) -> frozenset[UUID]:
        rows = self.session.execute(self._get_completions, [user_id, course_id])
        return frozenset(
            CompletionRecord.from_row(_as_mapping(row)).lesson_id for row in rows
        )

    def insert_completion(
        self, user_id: UUID, lesson_id: UUID, course_id: UUID
    ) -> None:
        completion = CompletionRecord.from_row(
            CompletionRecord(
                user_id=user_id, lesson_id=lesson_id, course_id=course_id
            ).to_dict()
        )
        # Re-completing overwrites completed_at only
        self.session.execute(
            self._insert_completion,
            [
                completion.user_id,
                completion.lesson_id,
                completion.course_id,
                completion.completed_at,
            ],
        )

    def delete_completion(self, user_id: UUID, lesson_id: UUID) -> None:
        self.session.execute(self._delete_completion, [user_id, lesson_id])

    # ==========================================================================
    # Courses
    # ==========================================================================

    def insert_course(self, course: Course) -> Course:
        course = Course.from_row(course.to_dict())
        result = self.session.execute(
            self._insert_course,
            [
                course.id,
                course.title,
                course.description,
                course.category,
                course.image_url,
                _db_value(course.difficulty),
                course.duration_minutes,
                course.lessons_count,
                course.is_published,
                course.order_index,
                course.created_at,
                course.updated_at,
            ],
        )
        if not result.was_applied:
            raise ConflictError(f"Course {course.id} already exists")
        return course

    def fetch_course(self, course_id: UUID) -> Course | None:
        row = self.session.execute(self._get_course, [course_id]).one()
        return Course.from_row(_as_mapping(row)) if row else None

    def list_courses(self) -> Sequence[Course]:
        rows = self.session.execute(self._get_courses)
        return [Course.from_row(_as_mapping(row)) for row in rows]

    def update_course(self, course_id: UUID, fields: Mapping[str, Any]) -> Course:
        if fields and not self._partial_update(
            "courses", ("id",), [course_id], fields, COURSE_UPDATABLE_FIELDS
        ):
            raise CourseNotFoundError
        course = self.fetch_course(course_id)
        if course is None:
            raise CourseNotFoundError
        return course

    def delete_course(self, course_id: UUID) -> None:
        self.session.execute(self._delete_course, [course_id])

    # ==========================================================================
    # Chapters
    # ==========================================================================

    def fetch_chapters(self, course_id: UUID) -> Sequence[Chapter]:
        rows = self.session.execute(self._get_chapters, [course_id])
        return [Chapter.from_row(_as_mapping(row)) for row in rows]

    def insert_chapter(self, chapter: Chapter) -> Chapter:
        chapter = Chapter.from_row(chapter.to_dict())
        result = self.session.execute(
            self._insert_chapter,
            [chapter.course_id, chapter.id, chapter.title, chapter.order_index],
        )
        if not result.was_applied:
            raise ConflictError(f"Chapter {chapter.id} already exists")
        return chapter

    def update_chapter(
        self, course_id: UUID, chapter_id: UUID, fields: Mapping[str, Any]
    ) -> Chapter:
        if fields and not self._partial_update(
            "course_chapters",
            ("course_id", "id"),
            [course_id, chapter_id],
            fields,
            CHAPTER_UPDATABLE_FIELDS,
        ):
            raise ChapterNotFoundError
        row = self.session.execute(self._get_chapter, [course_id, chapter_id]).one()
        if row is None:
            raise ChapterNotFoundError
        return Chapter.from_row(_as_mapping(row))

    def delete_chapter(self, course_id: UUID, chapter_id: UUID) -> None:
        self.session.execute(self._delete_chapter, [course_id, chapter_id])

    # ==========================================================================
    # Lessons
    # ==========================================================================

    def fetch_lessons(self, course_id: UUID) -> Sequence[Lesson]:
        rows = self.session.execute(self._get_lessons, [course_id])
        return [Lesson.from_row(_as_mapping(row)) for row in rows]

    def insert_lesson(self, lesson: Lesson) -> Lesson:
        lesson = Lesson.from_row(lesson.to_dict())
        result = self.session.execute(
            self._insert_lesson,
            [
                lesson.course_id,
                lesson.id,
                lesson.chapter_id,
                lesson.title,
                lesson.description,
                lesson.video_url,
                lesson.duration_minutes,
                lesson.order_index,
            ],
        )
        if not result.was_applied:
            raise ConflictError(f"Lesson {lesson.id} already exists")
        return lesson

    def update_lesson(
        self, course_id: UUID, lesson_id: UUID, fields: Mapping[str, Any]
    ) -> Lesson:
        if fields and not self._partial_update(
            "lessons",
            ("course_id", "id"),
            [course_id, lesson_id],
            fields,
            LESSON_UPDATABLE_FIELDS,
        ):
            raise LessonNotFoundError
        row = self.session.execute(self._get_lesson, [course_id, lesson_id]).one()
        if row is None:
            raise LessonNotFoundError
        return Lesson.from_row(_as_mapping(row))

    def delete_lesson(self, course_id: UUID, lesson_id: UUID) -> None:
        self.session.execute(self._delete_lesson, [course_id, lesson_id])

    # ==========================================================================
    # Applications
    # ==========================================================================

    def insert_application(self, application: Application) -> Application:
        application = Application.from_row(application.to_dict())
        result = self.session.execute(
            self._insert_application,
            [
                application.id,
                application.user_id,
                application.full_name,
                application.age,
                _db_value(application.experience_level),
                application.motivation,
                application.portfolio_url,
                application.social_links,
                _db_value(application.status),
                application.rejection_reason,
                application.submitted_at,
                application.reviewed_at,
                application.reviewed_by,
            ],
        )
        if not result.was_applied:
            raise ConflictError(f"Application {application.id} already exists")

        logger.debug("application_row_inserted", application_id=str(application.id))
        return application

    def fetch_application(self, application_id: UUID) -> Application | None:
        row = self.session.execute(self._get_application, [application_id]).one()
        return Application.from_row(_as_mapping(row)) if row else None

    def fetch_applications(self, status: str | None = None) -> Sequence[Application]:
        if status is None:
            rows = self.session.execute(self._get_applications)
        else:
            rows = self.session.execute(
                self._get_applications_by_status, [_db_value(status)]
            )
        return [Application.from_row(_as_mapping(row)) for row in rows]

    def update_application(
        self, application_id: UUID, fields: Mapping[str, Any]
    ) -> Application:
        if fields and not self._partial_update(
            "applications",
            ("id",),
            [application_id],
            fields,
            APPLICATION_UPDATABLE_FIELDS,
        ):
            raise ApplicationNotFoundError
        application = self.fetch_application(application_id)
        if application is None:
            raise ApplicationNotFoundError
        return application
