"""Error taxonomy shared by every Editverse component.

All errors are local and recoverable by the caller. Nothing in the library
retries; the presentation layer decides what to do with them.
"""


class EditverseError(Exception):
    """Base library error."""

    def __init__(self, message: str, code: str = "editverse_error"):
        self.message = message
        self.code = code
        super().__init__(message)


class InvalidDataError(EditverseError):
    """Malformed input or stored row (e.g. non-numeric order index)."""

    def __init__(self, message: str = "Invalid data"):
        super().__init__(message, "invalid_data")


class UnknownLessonError(EditverseError):
    """Lesson id does not belong to the course being worked on."""

    def __init__(self, message: str = "Lesson does not belong to this course"):
        super().__init__(message, "unknown_lesson")


class ConflictError(EditverseError):
    """A row with the same unique key already exists."""

    def __init__(self, message: str = "Record already exists"):
        super().__init__(message, "conflict")


class NotFoundError(EditverseError):
    """Requested row does not exist."""

    def __init__(self, message: str = "Record not found", code: str = "not_found"):
        super().__init__(message, code)


class ProgressNotFoundError(NotFoundError):
    """No progress record for the (user, course) pair."""

    def __init__(self, message: str = "Progress record not found"):
        super().__init__(message, "progress_not_found")


class CourseNotFoundError(NotFoundError):
    """Course not found."""

    def __init__(self, message: str = "Course not found"):
        super().__init__(message, "course_not_found")


class ChapterNotFoundError(NotFoundError):
    """Chapter not found."""

    def __init__(self, message: str = "Chapter not found"):
        super().__init__(message, "chapter_not_found")


class LessonNotFoundError(NotFoundError):
    """Lesson not found."""

    def __init__(self, message: str = "Lesson not found"):
        super().__init__(message, "lesson_not_found")


class ApplicationNotFoundError(NotFoundError):
    """Membership application not found."""

    def __init__(self, message: str = "Application not found"):
        super().__init__(message, "application_not_found")
