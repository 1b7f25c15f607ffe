"""Shared fixtures: an in-memory store seeded with one course."""

from collections.abc import Callable
from uuid import UUID, uuid4

import pytest

from editverse.courses.models import Chapter, Course, Lesson
from editverse.storage.memory import InMemoryStore


@pytest.fixture
def store() -> InMemoryStore:
    """Fresh in-memory store."""
    return InMemoryStore()


@pytest.fixture
def user_id() -> UUID:
    """Test learner ID."""
    return uuid4()


@pytest.fixture
def course(store: InMemoryStore) -> Course:
    """Published course with no lessons yet."""
    return store.insert_course(Course(title="Color Grading Basics", is_published=True))


@pytest.fixture
def make_lessons(
    store: InMemoryStore, course: Course
) -> Callable[..., list[Lesson]]:
    """Factory inserting ``count`` lessons numbered from ``start``."""

    def _make(count: int, start: int = 0, chapter_id: UUID | None = None) -> list[Lesson]:
        return [
            store.insert_lesson(
                Lesson(
                    course_id=course.id,
                    title=f"Lesson {position + 1}",
                    order_index=position,
                    chapter_id=chapter_id,
                )
            )
            for position in range(start, start + count)
        ]

    return _make


@pytest.fixture
def make_chapter(store: InMemoryStore, course: Course) -> Callable[..., Chapter]:
    """Factory inserting a chapter into the seeded course."""

    def _make(title: str, order_index: int = 0) -> Chapter:
        return store.insert_chapter(
            Chapter(course_id=course.id, title=title, order_index=order_index)
        )

    return _make
