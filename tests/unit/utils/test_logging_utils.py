"""Tests for logging configuration utilities."""

import json
import logging
import sys

import pytest

from gyrotone.core.utils.logging import (
    StructuredJSONFormatter,
    configure_logging,
    get_logger,
    get_trigger_logger,
    log_performance,
)


@pytest.fixture
def restore_root_logger():
    """Put the root logger back the way pytest set it up."""
    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    yield root
    for handler in root.handlers:
        if handler not in handlers:
            handler.close()
    root.handlers = handlers
    root.setLevel(level)


def _record(msg="Test message", level=logging.INFO, exc_info=None):
    record = logging.LogRecord(
        name="test.logger",
        level=level,
        pathname="/path/to/file.py",
        lineno=42,
        msg=msg,
        args=(),
        exc_info=exc_info,
    )
    record.funcName = "test_function"
    record.module = "test_module"
    return record


class TestStructuredJSONFormatter:
    """Test suite for StructuredJSONFormatter."""

    def test_basic_log_format(self):
        """Test basic log record formatting to JSON."""
        data = json.loads(StructuredJSONFormatter().format(_record()))

        assert data["level"] == "INFO"
        assert data["message"] == "Test message"
        assert "timestamp" in data
        assert data["context"]["logger_name"] == "test.logger"
        assert data["context"]["module"] == "test_module"
        assert data["context"]["function"] == "test_function"
        assert data["context"]["line"] == 42

    def test_log_with_extra_fields(self):
        """Extra fields such as layer_id end up in the context."""
        record = _record()
        record.layer_id = "outer"
        record.copy_index = 2

        data = json.loads(StructuredJSONFormatter().format(record))

        assert data["context"]["layer_id"] == "outer"
        assert data["context"]["copy_index"] == 2

    def test_log_with_exception(self):
        """Exception details are captured."""
        try:
            raise ValueError("bad spec")
        except ValueError:
            record = _record(level=logging.ERROR, exc_info=sys.exc_info())

        data = json.loads(StructuredJSONFormatter().format(record))

        assert data["context"]["error_type"] == "ValueError"
        assert data["context"]["error_message"] == "bad spec"
        assert "Traceback" in data["context"]["stack_trace"]


class TestConfigureLogging:
    def test_level_is_case_insensitive(self, restore_root_logger):
        configure_logging(level="debug")
        assert restore_root_logger.level == logging.DEBUG

    def test_file_output(self, tmp_path, restore_root_logger):
        log_file = tmp_path / "out.log"
        configure_logging(level="INFO", filename=str(log_file), format_string="%(message)s")

        logging.getLogger("gyrotone.test").info("hello")

        assert log_file.read_text().strip() == "hello"

    def test_structured_output(self, tmp_path, restore_root_logger):
        log_file = tmp_path / "out.jsonl"
        configure_logging(level="INFO", filename=str(log_file), structured=True)

        get_logger("gyrotone.test", layer_id="a").info("fired")

        data = json.loads(log_file.read_text().strip())
        assert data["message"] == "fired"
        assert data["context"]["layer_id"] == "a"


class TestGetLogger:
    def test_plain_logger(self):
        assert isinstance(get_logger("gyrotone.x"), logging.Logger)

    def test_adapter_with_context(self):
        adapter = get_logger("gyrotone.x", layer_id="a")

        assert isinstance(adapter, logging.LoggerAdapter)
        assert adapter.extra == {"layer_id": "a"}

    def test_trigger_logger_name(self):
        assert get_trigger_logger().name == "GYROTONE_TRIGGERS"


def test_log_performance_preserves_result_and_name(caplog):
    @log_performance
    def build(n):
        return n * 2

    with caplog.at_level(logging.DEBUG, logger="gyrotone.core.utils.logging"):
        assert build(21) == 42

    assert build.__name__ == "build"
    assert "'build' took" in caplog.text
