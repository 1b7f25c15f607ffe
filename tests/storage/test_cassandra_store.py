"""Tests for the Cassandra store with a mocked session."""

from collections import namedtuple
from datetime import UTC, datetime
from unittest.mock import MagicMock, Mock
from uuid import UUID, uuid4

import pytest
from cassandra.cluster import Session

from editverse.applications.models import Application
from editverse.core.exceptions import (
    ConflictError,
    InvalidDataError,
    ProgressNotFoundError,
)
from editverse.courses.models import Course
from editverse.progress.models import ProgressRecord
from editverse.storage.cassandra import CassandraStore


ProgressRowTuple = namedtuple(
    "ProgressRowTuple",
    [
        "user_id",
        "course_id",
        "progress_percentage",
        "last_lesson_id",
        "started_at",
        "last_accessed_at",
    ],
)
CompletionRowTuple = namedtuple(
    "CompletionRowTuple", ["user_id", "lesson_id", "course_id", "completed_at"]
)


def result(rows=(), applied=True) -> Mock:
    """Mock ResultSet: iterable, with one() and was_applied."""
    rows = list(rows)
    mock_result = MagicMock()
    mock_result.__iter__.side_effect = lambda: iter(rows)
    mock_result.one = Mock(return_value=rows[0] if rows else None)
    mock_result.was_applied = applied
    return mock_result


@pytest.fixture
def mock_session():
    """Mock Cassandra session; prepared statements are their CQL text."""
    session = Mock(spec=Session)
    session.prepare = Mock(side_effect=lambda cql: " ".join(cql.split()))
    session.execute = Mock(return_value=result())
    return session


@pytest.fixture
def cassandra_store(mock_session) -> CassandraStore:
    return CassandraStore(mock_session, "test_keyspace")


def executed_statements(mock_session) -> list[str]:
    return [call.args[0] for call in mock_session.execute.call_args_list]


class TestProgressRecords:
    """Tests for progress rows."""

    def test_insert_uses_lightweight_transaction(
        self, cassandra_store: CassandraStore, mock_session, user_id: UUID
    ) -> None:
        record = ProgressRecord(user_id=user_id, course_id=uuid4())

        cassandra_store.insert_progress_record(record)

        statements = executed_statements(mock_session)
        assert "IF NOT EXISTS" in statements[0]
        assert "user_progress_by_course" in statements[1]
        assert "user_progress_by_user" in statements[2]

    def test_insert_not_applied_is_conflict(
        self, cassandra_store: CassandraStore, mock_session, user_id: UUID
    ) -> None:
        mock_session.execute.return_value = result(applied=False)

        with pytest.raises(ConflictError):
            cassandra_store.insert_progress_record(
                ProgressRecord(user_id=user_id, course_id=uuid4())
            )

        assert mock_session.execute.call_count == 1

    def test_fetch_maps_row(
        self, cassandra_store: CassandraStore, mock_session, user_id: UUID
    ) -> None:
        """Naive driver timestamps come back UTC-aware."""
        course_id = uuid4()
        naive = datetime(2026, 2, 1, 10, 0)
        mock_session.execute.return_value = result(
            [ProgressRowTuple(user_id, course_id, 50, None, naive, naive)]
        )

        record = cassandra_store.fetch_progress_record(user_id, course_id)

        assert record.progress_percentage == 50
        assert record.started_at == naive.replace(tzinfo=UTC)

    def test_fetch_missing(
        self, cassandra_store: CassandraStore, user_id: UUID
    ) -> None:
        assert cassandra_store.fetch_progress_record(user_id, uuid4()) is None

    def test_partial_update_statement(
        self, cassandra_store: CassandraStore, mock_session, user_id: UUID
    ) -> None:
        """UPDATE lists columns sorted and is prepared once per column set."""
        course_id = uuid4()
        now = datetime.now(UTC)
        row = ProgressRowTuple(user_id, course_id, 0, None, now, now)
        mock_session.execute.return_value = result([row])
        fields = {"last_lesson_id": uuid4(), "last_accessed_at": now}

        cassandra_store.update_progress_record(user_id, course_id, fields)
        cassandra_store.update_progress_record(user_id, course_id, fields)

        updates = [s for s in executed_statements(mock_session) if s.startswith("UPDATE")]
        assert updates[0] == (
            "UPDATE test_keyspace.user_progress SET last_accessed_at = ?, "
            "last_lesson_id = ? WHERE user_id = ? AND course_id = ? IF EXISTS"
        )
        prepared = [call.args[0] for call in mock_session.prepare.call_args_list]
        assert sum(1 for cql in prepared if cql.startswith("UPDATE")) == 1

    def test_update_missing_record(
        self, cassandra_store: CassandraStore, mock_session, user_id: UUID
    ) -> None:
        mock_session.execute.return_value = result(applied=False)

        with pytest.raises(ProgressNotFoundError):
            cassandra_store.update_progress_record(
                user_id, uuid4(), {"progress_percentage": 10}
            )

    def test_update_refreshes_by_user_row(
        self, cassandra_store: CassandraStore, mock_session, user_id: UUID
    ) -> None:
        """The learner lookup row is rewritten from the re-read record."""
        course_id, lesson_id = uuid4(), uuid4()
        now = datetime.now(UTC)
        mock_session.execute.return_value = result(
            [ProgressRowTuple(user_id, course_id, 40, lesson_id, now, now)]
        )

        cassandra_store.update_progress_record(
            user_id, course_id, {"last_lesson_id": lesson_id}
        )

        by_user = mock_session.execute.call_args_list[-1]
        assert by_user.args[0].startswith("INSERT INTO test_keyspace.user_progress_by_user")
        assert by_user.args[1][:4] == [user_id, course_id, 40, lesson_id]

    def test_fetch_progress_records_reads_by_user(
        self, cassandra_store: CassandraStore, mock_session, user_id: UUID
    ) -> None:
        now = datetime.now(UTC)
        course_ids = [uuid4(), uuid4()]
        mock_session.execute.return_value = result(
            [ProgressRowTuple(user_id, cid, 0, None, now, now) for cid in course_ids]
        )

        records = cassandra_store.fetch_progress_records(user_id)

        assert [record.course_id for record in records] == course_ids
        statement, params = mock_session.execute.call_args.args
        assert statement == (
            "SELECT * FROM test_keyspace.user_progress_by_user WHERE user_id = ?"
        )
        assert params == [user_id]

    def test_count_completed(
        self, cassandra_store: CassandraStore, mock_session
    ) -> None:
        Row = namedtuple("Row", ["progress_percentage"])
        mock_session.execute.return_value = result([Row(100), Row(20), Row(None)])

        assert cassandra_store.count_completed_progress_records(uuid4()) == 1


class TestCompletions:
    """Tests for completion rows."""

    def test_fetch_completions(
        self, cassandra_store: CassandraStore, mock_session, user_id: UUID
    ) -> None:
        course_id = uuid4()
        lesson_ids = [uuid4(), uuid4()]
        now = datetime.now(UTC)
        mock_session.execute.return_value = result(
            [
                CompletionRowTuple(user_id, lesson_id, course_id, now)
                for lesson_id in lesson_ids
            ]
        )

        assert cassandra_store.fetch_completions(user_id, course_id) == set(lesson_ids)
        assert executed_statements(mock_session)[0].startswith(
            "SELECT * FROM test_keyspace.lesson_completions"
        )

    def test_fetch_completions_rejects_malformed_rows(
        self, cassandra_store: CassandraStore, mock_session, user_id: UUID
    ) -> None:
        mock_session.execute.return_value = result(
            [CompletionRowTuple(user_id, "not-a-uuid", uuid4(), None)]
        )

        with pytest.raises(InvalidDataError):
            cassandra_store.fetch_completions(user_id, uuid4())

    def test_insert_completion_is_plain_write(
        self, cassandra_store: CassandraStore, mock_session, user_id: UUID
    ) -> None:
        """Completion inserts and deletes share the non-LWT write path."""
        lesson_id, course_id = uuid4(), uuid4()

        cassandra_store.insert_completion(user_id, lesson_id, course_id)
        cassandra_store.delete_completion(user_id, lesson_id)

        insert, delete = executed_statements(mock_session)
        assert insert.startswith("INSERT INTO test_keyspace.lesson_completions")
        assert "IF NOT EXISTS" not in insert
        assert "IF EXISTS" not in delete
        params = mock_session.execute.call_args_list[0].args[1]
        assert params[:3] == [user_id, lesson_id, course_id]
        assert params[3].tzinfo is not None


class TestCourses:
    """Tests for course rows."""

    def test_list_courses(self, cassandra_store: CassandraStore, mock_session) -> None:
        rows = [
            Course(title="Sound Design", difficulty="Advanced").to_dict(),
            Course(title="Cutting Dialogue").to_dict(),
        ]
        mock_session.execute.return_value = result(rows)

        courses = cassandra_store.list_courses()

        assert [course.title for course in courses] == ["Sound Design", "Cutting Dialogue"]
        assert courses[0].difficulty == "Advanced"
        assert executed_statements(mock_session) == ["SELECT * FROM test_keyspace.courses"]

    def test_delete_course(self, cassandra_store: CassandraStore, mock_session) -> None:
        course_id = uuid4()

        cassandra_store.delete_course(course_id)

        statement, params = mock_session.execute.call_args.args
        assert statement == "DELETE FROM test_keyspace.courses WHERE id = ?"
        assert params == [course_id]


class TestApplications:
    """Tests for application rows."""

    def test_insert_stores_enum_values(
        self, cassandra_store: CassandraStore, mock_session, user_id: UUID
    ) -> None:
        application = Application(
            user_id=user_id,
            full_name="Jordan Reyes",
            age=27,
            experience_level="advanced",
            motivation="I cut short documentaries on weekends.",
        )

        cassandra_store.insert_application(application)

        params = mock_session.execute.call_args.args[1]
        assert params[4] == "advanced"
        assert params[8] == "pending"
