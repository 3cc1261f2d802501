"""Tests for logging setup, progress tracking and timing."""

import logging

import pytest

from cstruct_layout.infrastructure.logging import LoggerSetup, ProgressTracker, get_logger, log_timing


@pytest.fixture
def logger_setup():
    """Reset LoggerSetup before and after the test."""
    LoggerSetup.reset()
    yield LoggerSetup
    LoggerSetup.reset()


@pytest.mark.unit
class TestLoggerSetup:
    """Test handler installation."""

    def test_console_only(self, logger_setup):
        logger_setup.initialize(None)
        assert logger_setup.is_initialized()
        assert logger_setup.get_log_file_path() is None
        assert len(logging.getLogger().handlers) == 1

    def test_log_file_created(self, logger_setup, tmp_path):
        log_dir = tmp_path / "logs"
        logger_setup.initialize(log_dir, verbose=True)
        log_file = logger_setup.get_log_file_path()
        assert log_file is not None
        assert log_file.parent == log_dir
        assert log_file.name.startswith("cstruct_layout_")

        get_logger("cstruct_layout.test").debug("written to file")
        for handler in logging.getLogger().handlers:
            handler.flush()
        assert "written to file" in log_file.read_text(encoding="utf-8")

    def test_initialize_is_idempotent(self, logger_setup, tmp_path):
        logger_setup.initialize(tmp_path)
        first = logger_setup.get_log_file_path()
        handlers = list(logging.getLogger().handlers)
        logger_setup.initialize(tmp_path / "other", verbose=True)
        assert logger_setup.get_log_file_path() == first
        assert logging.getLogger().handlers == handlers

    def test_console_level(self, logger_setup):
        logger_setup.initialize(None, verbose=False)
        assert logging.getLogger().handlers[0].level == logging.INFO

    def test_reset(self, logger_setup, tmp_path):
        logger_setup.initialize(tmp_path)
        logger_setup.reset()
        assert not logger_setup.is_initialized()
        assert logger_setup.get_log_file_path() is None
        assert logging.getLogger().handlers == []


@pytest.mark.unit
class TestProgressTracker:
    """Test counters and operation tracking."""

    def test_counters(self):
        tracker = ProgressTracker(get_logger(__name__))
        with tracker.track_pass(pending=3, forced=False):
            tracker.count_resolved()
            tracker.count_resolved()
        with tracker.track_pass(pending=1, forced=True):
            tracker.count_failed()
        assert tracker.pass_count == 2
        assert tracker.resolved_count == 2
        assert tracker.failed_count == 1

    def test_track_operation_reraises(self, caplog):
        tracker = ProgressTracker(get_logger(__name__))
        with caplog.at_level(logging.ERROR):
            with pytest.raises(RuntimeError):
                with tracker.track_operation("Explode"):
                    raise RuntimeError("boom")
        assert tracker.operation_stack == []
        assert "Failed operation: Explode" in caplog.text

    def test_nested_operations(self):
        tracker = ProgressTracker(get_logger(__name__))
        with tracker.track_operation("outer"):
            with tracker.track_operation("inner"):
                assert [name for name, _ in tracker.operation_stack] == ["outer", "inner"]
        assert tracker.operation_stack == []

    def test_report_and_memory_logged(self, caplog):
        tracker = ProgressTracker(get_logger(__name__))
        with caplog.at_level(logging.DEBUG):
            tracker.count_resolved()
            tracker.report_summary()
            tracker.log_memory_usage()
        assert "1 resolved" in caplog.text
        assert "Memory usage" in caplog.text

    def test_reset(self):
        tracker = ProgressTracker(get_logger(__name__))
        tracker.count_resolved()
        tracker.count_failed()
        with tracker.track_pass(1, False):
            pass
        tracker.reset()
        assert (tracker.pass_count, tracker.resolved_count, tracker.failed_count) == (0, 0, 0)


@pytest.mark.unit
class TestLogTiming:
    """Test the timing decorator."""

    def test_returns_value_and_keeps_name(self, caplog):
        @log_timing
        def double(value):
            return value * 2

        with caplog.at_level(logging.DEBUG):
            assert double(21) == 42
        assert double.__name__ == "double"
        assert "double finished in" in caplog.text

    def test_reraises(self, caplog):
        @log_timing
        def broken():
            raise KeyError("missing")

        with caplog.at_level(logging.ERROR):
            with pytest.raises(KeyError):
                broken()
        assert "broken failed after" in caplog.text
