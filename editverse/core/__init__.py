"""Core infrastructure: context, logging, errors and database access."""

from editverse.core.exceptions import (
    ApplicationNotFoundError,
    ChapterNotFoundError,
    ConflictError,
    CourseNotFoundError,
    EditverseError,
    InvalidDataError,
    LessonNotFoundError,
    NotFoundError,
    ProgressNotFoundError,
    UnknownLessonError,
)


__all__ = [
    "ApplicationNotFoundError",
    "ChapterNotFoundError",
    "ConflictError",
    "CourseNotFoundError",
    "EditverseError",
    "InvalidDataError",
    "LessonNotFoundError",
    "NotFoundError",
    "ProgressNotFoundError",
    "UnknownLessonError",
]
