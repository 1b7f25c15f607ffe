"""Course content structuring over already-fetched rows.

Pure functions only: no storage access, no logging of row contents. Lesson
order_index values are course-scoped, so the sorted lessons form one canonical
sequence whatever chapters they are grouped under. That sequence drives
"first lesson", resume, and next/previous navigation.
"""

import math
from collections.abc import Iterable, Sequence
from numbers import Real
from typing import Any, Protocol, TypeVar
from uuid import UUID

from editverse.core.exceptions import InvalidDataError
from editverse.courses.models import Chapter, Lesson


# Bucket key for lessons without a valid chapter
UNASSIGNED = "unassigned"


class Ordered(Protocol):
    order_index: Any


OrderedT = TypeVar("OrderedT", bound=Ordered)


def _order_key(item: Ordered) -> Real:
    """Return a validated order_index.

    Raises:
        InvalidDataError: If order_index is missing, boolean, non-numeric,
            or not finite
    """
    value = getattr(item, "order_index", None)
    if isinstance(value, bool) or not isinstance(value, Real):
        raise InvalidDataError(f"order_index must be a number, got {value!r}")
    if not math.isfinite(value):
        raise InvalidDataError(f"order_index must be finite, got {value!r}")
    return value


def _sorted_by_order(items: Iterable[OrderedT]) -> list[OrderedT]:
    items = list(items)
    keys = [_order_key(item) for item in items]
    # sorted() is stable: equal order_index keeps fetch order
    return [item for _, item in sorted(zip(keys, items, strict=True), key=lambda p: p[0])]


def order_lessons(lessons: Iterable[Lesson]) -> list[Lesson]:
    """Sort lessons ascending by order_index (stable)."""
    return _sorted_by_order(lessons)


def order_chapters(chapters: Iterable[Chapter]) -> list[Chapter]:
    """Sort chapters ascending by order_index (stable)."""
    return _sorted_by_order(chapters)


def group_by_chapter(
    lessons: Iterable[Lesson],
    chapters: Iterable[Chapter],
) -> dict[UUID | str, list[Lesson]]:
    """Group lessons under their chapters.

    Every chapter gets a key, even when empty, in chapter order, followed by
    the UNASSIGNED bucket. Lessons without a chapter, or pointing at a chapter
    that was not fetched, land in UNASSIGNED. Each bucket keeps the canonical
    lesson order.

    Returns:
        Mapping of chapter id (or UNASSIGNED) to ordered lessons
    """
    grouped: dict[UUID | str, list[Lesson]] = {
        chapter.id: [] for chapter in order_chapters(chapters)
    }
    grouped[UNASSIGNED] = []

    for lesson in order_lessons(lessons):
        if lesson.chapter_id in grouped and lesson.chapter_id != UNASSIGNED:
            grouped[lesson.chapter_id].append(lesson)
        else:
            grouped[UNASSIGNED].append(lesson)

    return grouped


def next_order_index(items: Iterable[Ordered]) -> int:
    """Order index that sorts a new item after every existing one.

    Returns ``max(order_index) + 1`` or ``0`` for an empty collection. Existing
    items are never renumbered.
    """
    keys = [_order_key(item) for item in items]
    if not keys:
        return 0
    return math.floor(max(keys)) + 1


# ==============================================================================
# Navigation
# ==============================================================================


def _index_of(ordered: Sequence[Lesson], lesson_id: UUID | None) -> int | None:
    if lesson_id is None:
        return None
    for position, lesson in enumerate(ordered):
        if lesson.id == lesson_id:
            return position
    return None


def first_lesson(lessons: Iterable[Lesson]) -> Lesson | None:
    """First lesson of the canonical sequence, or None for an empty course."""
    ordered = order_lessons(lessons)
    return ordered[0] if ordered else None


def next_lesson(lessons: Iterable[Lesson], current_id: UUID | None) -> Lesson | None:
    """Lesson following ``current_id``; None at the end or if unknown."""
    ordered = order_lessons(lessons)
    position = _index_of(ordered, current_id)
    if position is None or position + 1 >= len(ordered):
        return None
    return ordered[position + 1]


def previous_lesson(
    lessons: Iterable[Lesson], current_id: UUID | None
) -> Lesson | None:
    """Lesson preceding ``current_id``; None at the start or if unknown."""
    ordered = order_lessons(lessons)
    position = _index_of(ordered, current_id)
    if not position:
        return None
    return ordered[position - 1]


def resume_lesson(
    lessons: Iterable[Lesson], last_lesson_id: UUID | None
) -> Lesson | None:
    """Lesson to open when a learner returns to a course.

    The bookmarked lesson when it still belongs to the course, otherwise the
    first lesson.
    """
    ordered = order_lessons(lessons)
    position = _index_of(ordered, last_lesson_id)
    if position is not None:
        return ordered[position]
    return ordered[0] if ordered else None
