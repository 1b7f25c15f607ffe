"""Database models for course content.

Cassandra table definitions for:
- Courses: Catalog entries with denormalized lesson count
- Chapters: Optional grouping of a course's lessons
- Lessons: Ordered by a course-scoped order index

Lessons and chapters are partitioned by course_id so one read returns the
whole course structure. Chapters never own an order space of their own: the
lesson order_index is unique within the course.
"""

from datetime import UTC, datetime
from enum import Enum
from typing import Any
from uuid import UUID, uuid4

from pydantic import BaseModel, ConfigDict

from editverse.core.rows import ensure_utc_aware, parse_row


class Difficulty(str, Enum):
    """Course difficulty tier."""

    BEGINNER = "Beginner"
    INTERMEDIATE = "Intermediate"
    ADVANCED = "Advanced"


# ==============================================================================
# CQL Table Definitions
# ==============================================================================

COURSE_TABLE_CQL = """
CREATE TABLE IF NOT EXISTS {keyspace}.courses (
    id UUID PRIMARY KEY,
    title TEXT,
    description TEXT,
    category TEXT,
    image_url TEXT,
    difficulty TEXT,
    duration_minutes INT,
    lessons_count INT,
    is_published BOOLEAN,
    order_index INT,
    created_at TIMESTAMP,
    updated_at TIMESTAMP
)
"""

CHAPTER_TABLE_CQL = """
CREATE TABLE IF NOT EXISTS {keyspace}.course_chapters (
    course_id UUID,
    id UUID,
    title TEXT,
    order_index INT,
    PRIMARY KEY (course_id, id)
)
"""

LESSON_TABLE_CQL = """
CREATE TABLE IF NOT EXISTS {keyspace}.lessons (
    course_id UUID,
    id UUID,
    chapter_id UUID,
    title TEXT,
    description TEXT,
    video_url TEXT,
    duration_minutes INT,
    order_index INT,
    PRIMARY KEY (course_id, id)
)
"""

COURSES_TABLES_CQL = [
    COURSE_TABLE_CQL,
    CHAPTER_TABLE_CQL,
    LESSON_TABLE_CQL,
]


# ==============================================================================
# Row Schemas
# ==============================================================================


class CourseRow(BaseModel):
    """Validated shape of a stored course row."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    title: str
    description: str | None = None
    category: str | None = None
    image_url: str | None = None
    difficulty: Difficulty | None = None
    duration_minutes: int | None = None
    lessons_count: int | None = None
    is_published: bool | None = None
    order_index: int | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None


class ChapterRow(BaseModel):
    """Validated shape of a stored chapter row."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    course_id: UUID
    title: str
    order_index: int


class LessonRow(BaseModel):
    """Validated shape of a stored lesson row."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    course_id: UUID
    title: str
    order_index: int
    chapter_id: UUID | None = None
    description: str | None = None
    video_url: str | None = None
    duration_minutes: int | None = None


# ==============================================================================
# Entity Classes
# ==============================================================================


class Course:
    """Course entity.

    Attributes:
        id: Course UUID
        title: Display title
        description: Course description
        category: Free-form category label
        image_url: Cover image URL
        difficulty: Difficulty tier
        duration_minutes: Total duration in minutes
        lessons_count: Denormalized number of lessons
        is_published: Visible to learners
        order_index: Position in the catalog
        created_at: Creation timestamp
        updated_at: Last update timestamp
    """

    def __init__(
        self,
        title: str,
        id: UUID | None = None,
        description: str = "",
        category: str = "",
        image_url: str | None = None,
        difficulty: str = Difficulty.BEGINNER.value,
        duration_minutes: int = 0,
        lessons_count: int = 0,
        is_published: bool = False,
        order_index: int = 0,
        created_at: datetime | None = None,
        updated_at: datetime | None = None,
    ):
        self.id = id or uuid4()
        self.title = title
        self.description = description
        self.category = category
        self.image_url = image_url
        self.difficulty = difficulty
        self.duration_minutes = duration_minutes
        self.lessons_count = lessons_count
        self.is_published = is_published
        self.order_index = order_index
        self.created_at = ensure_utc_aware(created_at) or datetime.now(UTC)
        self.updated_at = ensure_utc_aware(updated_at)

    @classmethod
    def from_row(cls, row: Any) -> "Course":
        """Create Course instance from a storage row."""
        data = parse_row(CourseRow, row)
        return cls(
            id=data.id,
            title=data.title,
            description=data.description or "",
            category=data.category or "",
            image_url=data.image_url,
            difficulty=(data.difficulty or Difficulty.BEGINNER).value,
            duration_minutes=data.duration_minutes or 0,
            lessons_count=data.lessons_count or 0,
            is_published=bool(data.is_published),
            order_index=data.order_index or 0,
            created_at=data.created_at,
            updated_at=data.updated_at,
        )

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {
            "id": self.id,
            "title": self.title,
            "description": self.description,
            "category": self.category,
            "image_url": self.image_url,
            "difficulty": self.difficulty,
            "duration_minutes": self.duration_minutes,
            "lessons_count": self.lessons_count,
            "is_published": self.is_published,
            "order_index": self.order_index,
            "created_at": self.created_at,
            "updated_at": self.updated_at,
        }

    def __repr__(self) -> str:
        return f"<Course {self.id} {self.title!r} lessons={self.lessons_count}>"


class Chapter:
    """Chapter entity: a titled group of lessons inside a course."""

    def __init__(
        self,
        course_id: UUID,
        title: str,
        order_index: int = 0,
        id: UUID | None = None,
    ):
        self.id = id or uuid4()
        self.course_id = course_id
        self.title = title
        self.order_index = order_index

    @classmethod
    def from_row(cls, row: Any) -> "Chapter":
        """Create Chapter instance from a storage row."""
        data = parse_row(ChapterRow, row)
        return cls(
            id=data.id,
            course_id=data.course_id,
            title=data.title,
            order_index=data.order_index,
        )

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {
            "id": self.id,
            "course_id": self.course_id,
            "title": self.title,
            "order_index": self.order_index,
        }

    def __repr__(self) -> str:
        return f"<Chapter {self.id} #{self.order_index} {self.title!r}>"


class Lesson:
    """Lesson entity.

    Attributes:
        id: Lesson UUID
        course_id: Owning course UUID
        title: Display title
        description: Lesson description
        video_url: Media reference
        duration_minutes: Duration in minutes
        order_index: Position in the course-wide lesson sequence
        chapter_id: Chapter UUID, None when the lesson is unassigned
    """

    def __init__(
        self,
        course_id: UUID,
        title: str,
        order_index: int = 0,
        id: UUID | None = None,
        chapter_id: UUID | None = None,
        description: str = "",
        video_url: str | None = None,
        duration_minutes: int = 0,
    ):
        self.id = id or uuid4()
        self.course_id = course_id
        self.title = title
        self.order_index = order_index
        self.chapter_id = chapter_id
        self.description = description
        self.video_url = video_url
        self.duration_minutes = duration_minutes

    @classmethod
    def from_row(cls, row: Any) -> "Lesson":
        """Create Lesson instance from a storage row."""
        data = parse_row(LessonRow, row)
        return cls(
            id=data.id,
            course_id=data.course_id,
            title=data.title,
            order_index=data.order_index,
            chapter_id=data.chapter_id,
            description=data.description or "",
            video_url=data.video_url,
            duration_minutes=data.duration_minutes or 0,
        )

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {
            "id": self.id,
            "course_id": self.course_id,
            "title": self.title,
            "order_index": self.order_index,
            "chapter_id": self.chapter_id,
            "description": self.description,
            "video_url": self.video_url,
            "duration_minutes": self.duration_minutes,
        }

    def __repr__(self) -> str:
        return f"<Lesson {self.id} #{self.order_index} {self.title!r}>"
