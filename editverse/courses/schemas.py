"""Pydantic schemas for course content administration.

Request and response models for:
- Courses: create, update and catalog filters
- Chapters: create and rename
- Lessons: create and update
- Reordering
- Course statistics
"""

from uuid import UUID

from pydantic import BaseModel, Field, field_validator

from editverse.courses.models import Difficulty


# ==============================================================================
# Course Schemas
# ==============================================================================


class CreateCourseRequest(BaseModel):
    """Course creation request."""

    title: str = Field(..., min_length=1, max_length=200, description="Course title")
    description: str = Field("", max_length=5000)
    category: str = Field("", max_length=100)
    image_url: str | None = Field(None, max_length=1000, description="Cover image URL")
    difficulty: Difficulty = Difficulty.BEGINNER
    duration_minutes: int = Field(0, ge=0)
    is_published: bool = False
    order_index: int | None = Field(
        None, description="Catalog position (None = after the last course)"
    )

    @field_validator("title")
    @classmethod
    def strip_title(cls, v: str) -> str:
        """Reject blank titles."""
        v = v.strip()
        if not v:
            raise ValueError("Course title is required")
        return v


class UpdateCourseRequest(BaseModel):
    """Course update request; only fields explicitly set are applied."""

    title: str | None = Field(None, min_length=1, max_length=200)
    description: str | None = Field(None, max_length=5000)
    category: str | None = Field(None, max_length=100)
    image_url: str | None = Field(None, max_length=1000)
    difficulty: Difficulty | None = None
    duration_minutes: int | None = Field(None, ge=0)
    is_published: bool | None = None
    order_index: int | None = None

    @field_validator("title")
    @classmethod
    def strip_title(cls, v: str | None) -> str | None:
        """Reject blank titles; None leaves the title unchanged."""
        if v is None:
            return None
        v = v.strip()
        if not v:
            raise ValueError("Course title cannot be blank")
        return v


class CourseFilters(BaseModel):
    """Catalog filters for published courses."""

    category: str | None = None
    difficulty: Difficulty | None = None
    search: str | None = Field(None, description="Matched against title and description")


# ==============================================================================
# Chapter Schemas
# ==============================================================================


class CreateChapterRequest(BaseModel):
    """Chapter creation request."""

    title: str = Field(..., min_length=1, max_length=200, description="Chapter title")
    order_index: int | None = Field(
        None, description="Position among chapters (None = after the last one)"
    )

    @field_validator("title")
    @classmethod
    def strip_title(cls, v: str) -> str:
        """Reject blank titles."""
        v = v.strip()
        if not v:
            raise ValueError("Chapter title is required")
        return v


class UpdateChapterRequest(BaseModel):
    """Chapter update request."""

    title: str | None = Field(None, min_length=1, max_length=200)
    order_index: int | None = None

    @field_validator("title")
    @classmethod
    def strip_title(cls, v: str | None) -> str | None:
        """Reject blank titles; None leaves the title unchanged."""
        if v is None:
            return None
        v = v.strip()
        if not v:
            raise ValueError("Chapter title cannot be blank")
        return v


# ==============================================================================
# Lesson Schemas
# ==============================================================================


class CreateLessonRequest(BaseModel):
    """Lesson creation request."""

    title: str = Field(..., min_length=1, max_length=200, description="Lesson title")
    description: str = Field("", max_length=5000)
    video_url: str | None = Field(None, max_length=1000, description="Media URL")
    duration_minutes: int = Field(0, ge=0, description="Duration in minutes")
    order_index: int | None = Field(
        None, description="Course-wide position (None = after the last lesson)"
    )
    chapter_id: UUID | None = Field(None, description="Chapter, None = unassigned")

    @field_validator("title")
    @classmethod
    def strip_title(cls, v: str) -> str:
        """Reject blank titles."""
        v = v.strip()
        if not v:
            raise ValueError("Lesson title is required")
        return v


class UpdateLessonRequest(BaseModel):
    """Lesson update request.

    Only fields explicitly set are applied; pass ``chapter_id=None`` to
    unassign a lesson.
    """

    title: str | None = Field(None, min_length=1, max_length=200)
    description: str | None = Field(None, max_length=5000)
    video_url: str | None = Field(None, max_length=1000)
    duration_minutes: int | None = Field(None, ge=0)
    order_index: int | None = None
    chapter_id: UUID | None = None

    @field_validator("title")
    @classmethod
    def strip_title(cls, v: str | None) -> str | None:
        """Reject blank titles; None leaves the title unchanged."""
        if v is None:
            return None
        v = v.strip()
        if not v:
            raise ValueError("Lesson title cannot be blank")
        return v


# ==============================================================================
# Statistics
# ==============================================================================


class CourseStats(BaseModel):
    """Enrollment statistics for the admin dashboard."""

    course_id: UUID
    enrollments: int = 0
    completions: int = 0
    completion_rate: int = Field(0, ge=0, le=100, description="Percent of completions")
