"""Tests for the learner progress service."""

from collections.abc import Callable
from datetime import UTC, datetime, timedelta
from uuid import UUID, uuid4

import pytest

from editverse.core.exceptions import CourseNotFoundError, UnknownLessonError
from editverse.courses.models import Chapter, Course, Lesson
from editverse.progress.models import ProgressRecord, ProgressState
from editverse.progress.service import ProgressService
from editverse.storage.memory import InMemoryStore


NOW = datetime(2026, 5, 4, 9, 30, tzinfo=UTC)


@pytest.fixture
def service(store: InMemoryStore) -> ProgressService:
    return ProgressService(store, store)


@pytest.fixture
def lessons(make_lessons: Callable[..., list[Lesson]]) -> list[Lesson]:
    """Four lessons, order 0..3."""
    return make_lessons(4)


class TestOpenCourse:
    """Tests for open_course."""

    def test_unknown_course(self, service: ProgressService, user_id: UUID) -> None:
        with pytest.raises(CourseNotFoundError):
            service.open_course(user_id, uuid4())

    def test_first_open_starts_course(
        self,
        service: ProgressService,
        user_id: UUID,
        course: Course,
        lessons: list[Lesson],
    ) -> None:
        """Opening creates a 0% record and points at the first lesson."""
        assert service.get_progress(user_id, course.id) is None

        view = service.open_course(user_id, course.id, now=NOW)

        assert view.progress.progress_percentage == 0
        assert view.progress.state == ProgressState.IN_PROGRESS
        assert view.progress.started_at == NOW
        assert view.current_lesson_id == lessons[0].id
        assert view.next_lesson_id == lessons[1].id
        assert [item.lesson_id for item in view.lessons] == [item.id for item in lessons]

    def test_reopen_keeps_started_at(
        self, service: ProgressService, user_id: UUID, course: Course, lessons
    ) -> None:
        service.open_course(user_id, course.id, now=NOW)

        again = service.open_course(user_id, course.id)

        assert again.progress.started_at == NOW

    def test_groups_lessons_by_chapter(
        self,
        service: ProgressService,
        user_id: UUID,
        course: Course,
        make_lessons: Callable[..., list[Lesson]],
        make_chapter: Callable[..., Chapter],
    ) -> None:
        basics = make_chapter("Basics", order_index=0)
        make_lessons(2, chapter_id=basics.id)
        loose = make_lessons(1, start=2)

        view = service.open_course(user_id, course.id)

        assert [chapter.title for chapter in view.chapters] == ["Basics"]
        assert len(view.chapters[0].lessons) == 2
        assert [item.lesson_id for item in view.unassigned] == [loose[0].id]

    def test_empty_course(
        self, service: ProgressService, user_id: UUID, course: Course
    ) -> None:
        view = service.open_course(user_id, course.id)

        assert view.lessons == []
        assert view.current_lesson_id is None
        assert view.progress.progress_percentage == 0


class TestToggleLesson:
    """Tests for toggle_lesson."""

    def test_complete_one_of_four(
        self, service: ProgressService, user_id: UUID, course: Course, lessons
    ) -> None:
        result = service.toggle_lesson(user_id, course.id, lessons[0].id)

        assert result.completed is True
        assert result.progress_percentage == 25
        assert result.completed_lesson_ids == {lessons[0].id}

    def test_toggle_without_opening_starts_course(
        self, service: ProgressService, user_id: UUID, course: Course, lessons
    ) -> None:
        service.toggle_lesson(user_id, course.id, lessons[1].id)

        assert service.get_progress(user_id, course.id) is not None

    def test_untoggle_back_to_zero_stays_started(
        self, service: ProgressService, user_id: UUID, course: Course, lessons
    ) -> None:
        """Un-completing everything does not make the course not started."""
        service.toggle_lesson(user_id, course.id, lessons[0].id)
        result = service.toggle_lesson(user_id, course.id, lessons[0].id)

        assert result.completed is False
        assert result.progress_percentage == 0
        assert result.state == ProgressState.IN_PROGRESS
        assert service.get_progress(user_id, course.id).state == ProgressState.IN_PROGRESS

    def test_all_lessons_completes_course(
        self, service: ProgressService, user_id: UUID, course: Course, lessons
    ) -> None:
        for item in lessons:
            result = service.toggle_lesson(user_id, course.id, item.id)

        assert result.progress_percentage == 100
        assert result.state == ProgressState.COMPLETED

    def test_unknown_lesson_changes_nothing(
        self,
        service: ProgressService,
        store: InMemoryStore,
        user_id: UUID,
        course: Course,
        lessons,
    ) -> None:
        with pytest.raises(UnknownLessonError):
            service.toggle_lesson(user_id, course.id, uuid4())

        assert store.fetch_completions(user_id, course.id) == frozenset()

    def test_learners_are_independent(
        self, service: ProgressService, course: Course, lessons
    ) -> None:
        alice, bob = uuid4(), uuid4()

        service.toggle_lesson(alice, course.id, lessons[0].id)

        assert service.recalculate(bob, course.id).progress_percentage == 0


class _InterleavingStore(InMemoryStore):
    """Runs another session's toggle right before our first completion write."""

    def __init__(self) -> None:
        super().__init__()
        self.interleave: Callable[[], None] | None = None

    def insert_completion(self, user_id: UUID, lesson_id: UUID, course_id: UUID) -> None:
        if self.interleave is not None:
            interleave, self.interleave = self.interleave, None
            interleave()
        super().insert_completion(user_id, lesson_id, course_id)


class TestConcurrentSessions:
    """Two sessions of one learner toggling different lessons."""

    def test_concurrent_toggles_converge(self, user_id: UUID) -> None:
        """Both completions count: 2 of 4 lessons is 50%, not 25%."""
        store = _InterleavingStore()
        course = store.insert_course(Course(title="Audio Mixing"))
        lessons = [
            store.insert_lesson(Lesson(course_id=course.id, title=f"L{i}", order_index=i))
            for i in range(4)
        ]
        first_session = ProgressService(store, store)
        second_session = ProgressService(store, store)
        first_session.open_course(user_id, course.id)

        store.interleave = lambda: second_session.toggle_lesson(
            user_id, course.id, lessons[1].id
        )
        result = first_session.toggle_lesson(user_id, course.id, lessons[0].id)

        assert result.completed_lesson_ids == {lessons[0].id, lessons[1].id}
        assert result.progress_percentage == 50
        assert first_session.get_progress(user_id, course.id).progress_percentage == 50


class TestNavigationAndRecalculation:
    """Tests for select_lesson, complete_and_advance and recalculate."""

    def test_select_lesson_sets_resume_point(
        self, service: ProgressService, user_id: UUID, course: Course, lessons
    ) -> None:
        progress = service.select_lesson(user_id, course.id, lessons[2].id, now=NOW)

        assert progress.last_lesson_id == lessons[2].id
        assert progress.last_accessed_at == NOW
        view = service.open_course(user_id, course.id)
        assert view.current_lesson_id == lessons[2].id
        assert view.next_lesson_id == lessons[3].id

    def test_select_unknown_lesson(
        self, service: ProgressService, user_id: UUID, course: Course, lessons
    ) -> None:
        with pytest.raises(UnknownLessonError):
            service.select_lesson(user_id, course.id, uuid4())

    def test_complete_and_advance_moves_bookmark(
        self, service: ProgressService, user_id: UUID, course: Course, lessons
    ) -> None:
        result = service.complete_and_advance(user_id, course.id, lessons[0].id)

        assert result.completed is True
        assert result.next_lesson_id == lessons[1].id
        assert service.get_progress(user_id, course.id).last_lesson_id == lessons[1].id

    def test_complete_and_advance_never_uncompletes(
        self, service: ProgressService, user_id: UUID, course: Course, lessons
    ) -> None:
        service.complete_and_advance(user_id, course.id, lessons[0].id)
        result = service.complete_and_advance(user_id, course.id, lessons[0].id)

        assert result.completed_lesson_ids == {lessons[0].id}
        assert result.progress_percentage == 25

    def test_complete_last_lesson_keeps_bookmark(
        self, service: ProgressService, user_id: UUID, course: Course, lessons
    ) -> None:
        service.select_lesson(user_id, course.id, lessons[3].id)

        result = service.complete_and_advance(user_id, course.id, lessons[3].id)

        assert result.next_lesson_id is None
        assert service.get_progress(user_id, course.id).last_lesson_id == lessons[3].id

    def test_recalculate_ignores_deleted_lessons(
        self,
        service: ProgressService,
        store: InMemoryStore,
        user_id: UUID,
        course: Course,
        lessons,
    ) -> None:
        """Completions of removed lessons no longer count."""
        service.toggle_lesson(user_id, course.id, lessons[0].id)
        service.toggle_lesson(user_id, course.id, lessons[1].id)
        store.delete_lesson(course.id, lessons[1].id)

        progress = service.recalculate(user_id, course.id)

        assert progress.progress_percentage == 33

    def test_recalculate_after_new_lesson(
        self,
        service: ProgressService,
        user_id: UUID,
        course: Course,
        lessons,
        make_lessons: Callable[..., list[Lesson]],
    ) -> None:
        """A completed course drops below 100% when lessons are added."""
        for item in lessons:
            service.toggle_lesson(user_id, course.id, item.id)
        make_lessons(1, start=4)

        progress = service.recalculate(user_id, course.id)

        assert progress.progress_percentage == 80
        assert progress.state == ProgressState.IN_PROGRESS


class TestListProgress:
    """Tests for list_progress."""

    def test_most_recently_accessed_first(
        self, service: ProgressService, store: InMemoryStore, user_id: UUID
    ) -> None:
        courses = [store.insert_course(Course(title=f"Course {n}")) for n in range(3)]
        for hours, course in zip((2, 0, 5), courses, strict=True):
            store.insert_progress_record(
                ProgressRecord(
                    user_id=user_id,
                    course_id=course.id,
                    started_at=NOW,
                    last_accessed_at=NOW + timedelta(hours=hours),
                )
            )
        store.insert_progress_record(
            ProgressRecord(user_id=uuid4(), course_id=courses[0].id, started_at=NOW)
        )

        listed = service.list_progress(user_id)

        assert [p.course_id for p in listed] == [
            courses[2].id,
            courses[0].id,
            courses[1].id,
        ]
        assert all(p.user_id == user_id for p in listed)

    def test_no_courses_opened(self, service: ProgressService, user_id: UUID) -> None:
        assert service.list_progress(user_id) == []

    def test_reflects_toggles(
        self, service: ProgressService, user_id: UUID, course: Course, lessons
    ) -> None:
        service.toggle_lesson(user_id, course.id, lessons[0].id)

        (progress,) = service.list_progress(user_id)

        assert progress.course_id == course.id
        assert progress.progress_percentage == 25
