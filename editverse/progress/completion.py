"""Lesson completion sets and the course percentage derived from them.

Only the total lesson count is needed here, not the lesson roster, so this
module stays independent from course content. Percentages returned by
toggle_completion are provisional: after the single (user, lesson) change is
persisted, callers recompute with percentage_for over the set re-read from
storage, since another session may have changed it in the meantime.
"""

from collections.abc import Collection, Iterable
from decimal import ROUND_HALF_UP, Decimal
from uuid import UUID

from editverse.core.exceptions import InvalidDataError, UnknownLessonError


def _validate_total(total_lessons: int) -> None:
    if isinstance(total_lessons, bool) or not isinstance(total_lessons, int):
        raise InvalidDataError(f"total_lessons must be an integer, got {total_lessons!r}")
    if total_lessons < 0:
        raise InvalidDataError(f"total_lessons must not be negative, got {total_lessons}")


def share_percentage(part: int, whole: int) -> int:
    """``part`` as a whole percentage of ``whole``, rounded half up, in 0..100."""
    if whole <= 0:
        return 0
    ratio = Decimal(100 * part) / Decimal(whole)
    percentage = int(ratio.quantize(Decimal(1), rounding=ROUND_HALF_UP))
    return max(0, min(100, percentage))


def percentage_for(completions: Iterable[UUID], total_lessons: int) -> int:
    """Whole-number share of completed lessons, rounded half up.

    Args:
        completions: Completed lesson ids
        total_lessons: Number of lessons in the course

    Returns:
        0-100 percentage; 0 when the course has no lessons
    """
    _validate_total(total_lessons)
    return share_percentage(len(frozenset(completions)), total_lessons)


def toggle_completion(
    completions: Iterable[UUID],
    lesson_id: UUID,
    total_lessons: int,
    roster: Collection[UUID] | None = None,
) -> tuple[frozenset[UUID], int]:
    """Flip one lesson in the completion set.

    Completes the lesson when absent, un-completes it when present; applying
    it twice restores the original set.

    Args:
        completions: Current completed lesson ids
        lesson_id: Lesson to flip
        total_lessons: Number of lessons in the course
        roster: Lesson ids of the course, when the caller has them

    Returns:
        Tuple of (new completion set, provisional percentage)

    Raises:
        UnknownLessonError: If the lesson cannot belong to the course
        InvalidDataError: If lesson_id is missing or total_lessons is invalid
    """
    if lesson_id is None:
        raise InvalidDataError("lesson_id is required")
    _validate_total(total_lessons)

    if roster is not None and lesson_id not in roster:
        raise UnknownLessonError(f"Lesson {lesson_id} is not part of this course")

    current = frozenset(completions)

    if lesson_id in current:
        updated = current - {lesson_id}
    else:
        updated = current | {lesson_id}
        if len(updated) > total_lessons:
            raise UnknownLessonError(
                f"Lesson {lesson_id} exceeds the course's {total_lessons} lessons"
            )

    return updated, percentage_for(updated, total_lessons)
