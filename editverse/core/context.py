"""Progress context management using contextvars.

A learner session works on one user and one course at a time. Binding them
here lets every log line emitted below a service call carry the ids without
threading them through each function.
"""

from contextvars import ContextVar, Token
from typing import Any
from uuid import UUID, uuid4


session_id_var: ContextVar[str] = ContextVar("session_id", default="")
user_id_var: ContextVar[str | None] = ContextVar("user_id", default=None)
course_id_var: ContextVar[str | None] = ContextVar("course_id", default=None)


def generate_session_id() -> str:
    """Generate a new unique session ID."""
    return str(uuid4())


def get_session_id() -> str:
    """Get the current session ID."""
    return session_id_var.get()


def get_user_id() -> str | None:
    """Get the current user ID."""
    return user_id_var.get()


def get_course_id() -> str | None:
    """Get the current course ID."""
    return course_id_var.get()


def get_context() -> dict[str, Any]:
    """Get all bound context variables as a dictionary.

    Returns:
        Dictionary with whichever of session_id, user_id and course_id are set.
    """
    context: dict[str, Any] = {}

    session_id = get_session_id()
    if session_id:
        context["session_id"] = session_id

    user_id = get_user_id()
    if user_id:
        context["user_id"] = user_id

    course_id = get_course_id()
    if course_id:
        context["course_id"] = course_id

    return context


def clear_context() -> None:
    """Reset all context variables to their defaults."""
    session_id_var.set("")
    user_id_var.set(None)
    course_id_var.set(None)


class ProgressContext:
    """Context manager binding a learner session to the current context.

    Usage:
        with ProgressContext(user_id=user.id, course_id=course.id):
            service.toggle_lesson(...)  # log lines include user_id, course_id
    """

    def __init__(
        self,
        user_id: str | UUID | None = None,
        course_id: str | UUID | None = None,
        session_id: str | None = None,
    ) -> None:
        self.user_id = user_id
        self.course_id = course_id
        self.session_id = session_id
        self._tokens: list[tuple[ContextVar, Token]] = []

    def __enter__(self) -> "ProgressContext":
        """Enter context and set variables."""
        # Nested contexts keep the outer session id
        session_id = self.session_id or get_session_id() or generate_session_id()
        self._tokens.append((session_id_var, session_id_var.set(session_id)))
        if self.user_id is not None:
            self._tokens.append((user_id_var, user_id_var.set(str(self.user_id))))
        if self.course_id is not None:
            self._tokens.append((course_id_var, course_id_var.set(str(self.course_id))))
        return self

    def __exit__(self, *_: object) -> None:
        """Exit context and restore previous values."""
        for var, token in reversed(self._tokens):
            var.reset(token)
        self._tokens.clear()
