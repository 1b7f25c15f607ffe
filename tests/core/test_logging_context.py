"""Tests for learner context variables and structlog configuration."""

import json
import logging
from pathlib import Path
from uuid import uuid4

import pytest
import structlog

from editverse.config.settings import Settings
from editverse.core.context import (
    ProgressContext,
    clear_context,
    get_context,
    get_course_id,
    get_session_id,
    get_user_id,
)
from editverse.core.logging import (
    add_context_processor,
    configure_structlog,
    filter_sensitive_data,
)


@pytest.fixture(autouse=True)
def reset_context():
    """Start and end every test with an empty context."""
    clear_context()
    yield
    clear_context()


@pytest.fixture
def restore_logging():
    """Undo root handler and structlog changes made by a test."""
    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    yield
    for handler in root.handlers:
        if handler not in handlers:
            handler.close()
    root.handlers[:] = handlers
    root.setLevel(level)
    structlog.reset_defaults()


class TestProgressContext:
    """Tests for the ProgressContext context manager."""

    def test_binds_and_restores(self) -> None:
        user_id, course_id = uuid4(), uuid4()

        with ProgressContext(user_id=user_id, course_id=course_id):
            assert get_user_id() == str(user_id)
            assert get_course_id() == str(course_id)
            assert get_session_id()

        assert get_user_id() is None
        assert get_course_id() is None
        assert get_session_id() == ""

    def test_nested_context_keeps_session(self) -> None:
        """Inner service calls share the outer session id."""
        outer_course, inner_course = uuid4(), uuid4()

        with ProgressContext(course_id=outer_course, session_id="s-1"):
            with ProgressContext(course_id=inner_course):
                assert get_session_id() == "s-1"
                assert get_course_id() == str(inner_course)
            assert get_course_id() == str(outer_course)

    def test_get_context_only_set_values(self) -> None:
        assert get_context() == {}

        with ProgressContext(user_id="u-1", session_id="s-1"):
            assert get_context() == {"session_id": "s-1", "user_id": "u-1"}


class TestProcessors:
    """Tests for the custom structlog processors."""

    def test_add_context_processor(self) -> None:
        with ProgressContext(user_id="u-1", course_id="c-1", session_id="s-1"):
            event = add_context_processor(None, "info", {"event": "lesson_selected"})

        assert event == {
            "event": "lesson_selected",
            "session_id": "s-1",
            "user_id": "u-1",
            "course_id": "c-1",
        }

    def test_filter_sensitive_data(self) -> None:
        event = filter_sensitive_data(
            None,
            "info",
            {
                "event": "cassandra_connected",
                "cassandra_password": "hunter2hunter2",
                "api_key": "abc",
                "nested": {"token": "0123456789"},
                "lesson_id": "kept",
            },
        )

        assert event["cassandra_password"] == "hu**********r2"
        assert event["api_key"] == "***"
        assert event["nested"]["token"] == "01******89"
        assert event["lesson_id"] == "kept"


class TestConfigureStructlog:
    """Tests for configure_structlog."""

    def test_writes_json_log_files(self, tmp_path: Path, restore_logging) -> None:
        settings = Settings(log_to_file=True, log_dir=str(tmp_path), log_level="INFO")
        configure_structlog(settings)

        with ProgressContext(course_id="c-1"):
            structlog.get_logger("editverse.test").info("course_started", lessons=3)
        structlog.get_logger("editverse.test").error("cassandra_connection_failed")
        for handler in logging.getLogger().handlers:
            handler.flush()

        lines = (tmp_path / "editverse.log").read_text().splitlines()
        first = json.loads(lines[0])
        assert first["event"] == "course_started"
        assert first["course_id"] == "c-1"
        assert first["lessons"] == 3
        errors = (tmp_path / "editverse.error.log").read_text().splitlines()
        assert [json.loads(line)["event"] for line in errors] == [
            "cassandra_connection_failed"
        ]

    def test_console_only(self, tmp_path: Path, restore_logging) -> None:
        settings = Settings(log_to_file=False, log_dir=str(tmp_path / "logs"))

        configure_structlog(settings)

        assert len(logging.getLogger().handlers) == 1
        assert not (tmp_path / "logs").exists()
