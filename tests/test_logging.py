"""Tests for the kernel logging system — the simulator's reporting sink."""

from py_osp.kernel import Kernel
from py_osp.logging import LogEntry, Logger, LogLevel
from py_osp.process.task import Task


class TestLogLevel:
    """Verify log level ordering."""

    def test_levels_are_ordered(self) -> None:
        """DEBUG < INFO < WARNING < ERROR."""
        assert LogLevel.DEBUG < LogLevel.INFO
        assert LogLevel.INFO < LogLevel.WARNING
        assert LogLevel.WARNING < LogLevel.ERROR


class TestLogEntry:
    """Verify log entry structure."""

    def test_entry_str(self) -> None:
        """String form includes level, source and message."""
        entry = LogEntry(level=LogLevel.WARNING, message="task full", source="threads")
        assert str(entry) == "[WARNING] threads: task full"

    def test_entry_str_with_context(self) -> None:
        """Context, when present, is appended in parentheses."""
        entry = LogEntry(
            level=LogLevel.ERROR, message="bad status", source="threads", context="Thread(tid=1)"
        )
        assert str(entry).endswith("(Thread(tid=1))")


class TestLogger:
    """Verify the logger."""

    def test_log_stores_entries(self) -> None:
        """Logged entries should be retrievable in order."""
        logger = Logger()
        logger.log(LogLevel.INFO, "first", source="kernel")
        logger.log(LogLevel.INFO, "second", source="kernel")
        assert [e.message for e in logger.entries] == ["first", "second"]

    def test_context_is_captured_as_repr(self) -> None:
        """The context object is stored as its repr at logging time."""
        logger = Logger()
        task = Task(name="shell")
        logger.log(LogLevel.DEBUG, "Create thread", source="threads", context=task)
        assert logger.entries[0].context == repr(task)

    def test_missing_context_is_empty(self) -> None:
        """Entries without context store an empty string."""
        logger = Logger()
        logger.log(LogLevel.DEBUG, "Dispatch new thread", source="threads")
        assert logger.entries[0].context == ""

    def test_filter_by_level(self) -> None:
        """Filtering returns only entries at or above the level."""
        logger = Logger()
        logger.log(LogLevel.DEBUG, "debug msg", source="test")
        logger.log(LogLevel.WARNING, "warn msg", source="test")
        logger.log(LogLevel.ERROR, "error msg", source="test")
        assert [e.message for e in logger.filter(min_level=LogLevel.WARNING)] == [
            "warn msg",
            "error msg",
        ]

    def test_filter_by_source(self) -> None:
        """Filtering by source returns matching entries."""
        logger = Logger()
        logger.log(LogLevel.INFO, "kernel event", source="kernel")
        logger.log(LogLevel.INFO, "thread event", source="threads")
        assert [e.source for e in logger.filter(source="threads")] == ["threads"]

    def test_filter_returns_a_copy(self) -> None:
        """Mutating a filter result leaves the log alone."""
        logger = Logger()
        logger.log(LogLevel.INFO, "x", source="test")
        logger.filter().clear()
        assert len(logger.entries) == 1

    def test_clear(self) -> None:
        """Clearing removes all entries."""
        logger = Logger()
        logger.log(LogLevel.INFO, "test", source="test")
        logger.clear()
        assert logger.entries == []


class TestKernelLogging:
    """Verify that the kernel and scheduler share one log."""

    def test_boot_is_logged(self) -> None:
        """Booting produces a kernel entry."""
        kernel = Kernel()
        kernel.boot()
        assert kernel.logger is not None
        assert any("boot" in e.message.lower() for e in kernel.logger.filter(source="kernel"))

    def test_scheduler_logs_to_kernel_logger(self) -> None:
        """Scheduler operations appear in the kernel's log."""
        kernel = Kernel()
        kernel.boot()
        task = kernel.create_task("shell")
        kernel.create_thread(task.task_id)
        assert kernel.logger is not None
        messages = [e.message for e in kernel.logger.filter(source="threads")]
        assert "Create thread" in messages
        assert "Dispatch new thread" in messages

    def test_logger_none_after_shutdown(self) -> None:
        """The logger is torn down after shutdown."""
        kernel = Kernel()
        kernel.boot()
        kernel.shutdown()
        assert kernel.logger is None
