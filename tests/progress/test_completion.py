"""Tests for completion toggling and percentage computation."""

from uuid import uuid4

import pytest

from editverse.core.exceptions import InvalidDataError, UnknownLessonError
from editverse.progress.completion import (
    percentage_for,
    share_percentage,
    toggle_completion,
)


class TestPercentageFor:
    """Tests for percentage_for."""

    def test_zero_lessons_is_zero_percent(self) -> None:
        assert percentage_for([], 0) == 0

    def test_all_completed_is_hundred(self) -> None:
        lessons = [uuid4() for _ in range(3)]
        assert percentage_for(lessons, 3) == 100

    @pytest.mark.parametrize(
        ("completed", "total", "expected"),
        [
            (1, 8, 13),  # 12.5
            (3, 8, 38),  # 37.5
            (1, 3, 33),
            (2, 3, 67),
            (1, 200, 1),  # 0.5
            (1, 201, 0),
        ],
    )
    def test_rounds_half_up(self, completed: int, total: int, expected: int) -> None:
        """Halves round up, never to even."""
        assert percentage_for([uuid4() for _ in range(completed)], total) == expected

    def test_duplicates_count_once(self) -> None:
        lesson_id = uuid4()
        assert percentage_for([lesson_id, lesson_id], 4) == 25

    @pytest.mark.parametrize("bad_total", [-1, 2.5, True, "4"])
    def test_rejects_invalid_total(self, bad_total) -> None:
        with pytest.raises(InvalidDataError):
            percentage_for([], bad_total)


class TestSharePercentage:
    """Tests for share_percentage."""

    def test_clamps_to_hundred(self) -> None:
        assert share_percentage(3, 2) == 100

    def test_empty_whole(self) -> None:
        assert share_percentage(5, 0) == 0


class TestToggleCompletion:
    """Tests for toggle_completion."""

    def test_adds_missing_lesson(self) -> None:
        lesson_id = uuid4()

        completions, percentage = toggle_completion(frozenset(), lesson_id, 4)

        assert completions == {lesson_id}
        assert percentage == 25

    def test_removes_present_lesson(self) -> None:
        lesson_id, other = uuid4(), uuid4()

        completions, percentage = toggle_completion({lesson_id, other}, lesson_id, 4)

        assert completions == {other}
        assert percentage == 25

    def test_toggling_twice_restores_the_set(self) -> None:
        """Toggle is its own inverse."""
        start = frozenset({uuid4(), uuid4()})
        lesson_id = uuid4()

        once, _ = toggle_completion(start, lesson_id, 5)
        twice, percentage = toggle_completion(once, lesson_id, 5)

        assert twice == start
        assert percentage == 40

    def test_input_is_not_mutated(self) -> None:
        current = {uuid4()}
        snapshot = set(current)

        toggle_completion(current, uuid4(), 3)

        assert current == snapshot

    def test_lesson_outside_roster_is_unknown(self) -> None:
        roster = {uuid4(), uuid4()}

        with pytest.raises(UnknownLessonError):
            toggle_completion(frozenset(), uuid4(), 2, roster=roster)

    def test_completed_lesson_outside_roster_is_unknown(self) -> None:
        """Un-completing is checked against the roster too."""
        stranger = uuid4()
        roster = {uuid4() for _ in range(4)}

        with pytest.raises(UnknownLessonError):
            toggle_completion({stranger}, stranger, 4, roster=roster)

    def test_more_completions_than_lessons_is_unknown(self) -> None:
        """Completing beyond the lesson count cannot be a course lesson."""
        with pytest.raises(UnknownLessonError):
            toggle_completion({uuid4()}, uuid4(), 1)

    def test_removing_without_roster(self) -> None:
        """Without a roster, a stale completion can still be un-completed."""
        stale = uuid4()

        completions, percentage = toggle_completion({stale}, stale, 0)

        assert completions == frozenset()
        assert percentage == 0

    def test_missing_lesson_id(self) -> None:
        with pytest.raises(InvalidDataError):
            toggle_completion(frozenset(), None, 3)
