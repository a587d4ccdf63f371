"""Tests for threads and their tagged status.

A thread's status is one of READY, RUNNING, WAITING (with a nesting
level) or KILLED.  Nested waits are counted with a level so that each
resume only peels off one suspension.
"""

import pytest

from py_osp.process.task import Task
from py_osp.process.threads import (
    KILLED,
    READY,
    RUNNING,
    WAITING,
    Thread,
    ThreadState,
    ThreadStatus,
)


class TestThreadStatus:
    """Verify the tagged status value."""

    def test_base_waiting_level_is_zero(self) -> None:
        """The WAITING constant is the base waiting level."""
        assert WAITING.state is ThreadState.WAITING
        assert WAITING.level == 0
        assert WAITING == ThreadStatus.waiting()

    def test_is_waiting_at_any_level(self) -> None:
        """Every WAITING level counts as waiting; nothing else does."""
        deep_level = 3
        assert ThreadStatus.waiting(deep_level).is_waiting
        assert not READY.is_waiting
        assert not RUNNING.is_waiting
        assert not KILLED.is_waiting

    def test_deeper_and_shallower(self) -> None:
        """Nesting adds a level; unwinding removes one."""
        nested = WAITING.deeper().deeper()
        expected_level = 2
        assert nested.level == expected_level
        assert nested.shallower() == ThreadStatus.waiting(1)

    def test_shallower_at_base_raises(self) -> None:
        """Level 0 cannot be unwound further — resume makes it READY instead."""
        with pytest.raises(RuntimeError, match="Cannot unwind"):
            WAITING.shallower()

    def test_deeper_on_non_waiting_raises(self) -> None:
        """Only waiting statuses can nest."""
        with pytest.raises(RuntimeError, match="Cannot nest"):
            RUNNING.deeper()

    def test_negative_level_rejected(self) -> None:
        """Levels are non-negative."""
        with pytest.raises(ValueError, match="negative"):
            ThreadStatus.waiting(-1)

    def test_level_on_non_waiting_rejected(self) -> None:
        """Only WAITING carries a level."""
        with pytest.raises(ValueError, match="Only waiting"):
            ThreadStatus(ThreadState.READY, 1)

    def test_str(self) -> None:
        """Statuses print as their tag, with the level when nested."""
        assert str(READY) == "ready"
        assert str(WAITING) == "waiting"
        assert str(ThreadStatus.waiting(2)) == "waiting+2"
        assert str(KILLED) == "killed"

    def test_statuses_are_immutable(self) -> None:
        """A status is a value; changing it means making a new one."""
        with pytest.raises(AttributeError):
            READY.level = 1  # type: ignore[misc]


class TestThread:
    """Verify the thread control block."""

    def test_creation(self) -> None:
        """A thread stores its tid and task and starts READY."""
        task = Task(name="shell")
        thread = Thread(tid=7, task=task)
        expected_tid = 7
        assert thread.tid == expected_tid
        assert thread.task is task
        assert thread.status == READY
        assert thread.state is ThreadState.READY

    def test_status_setter(self) -> None:
        """The scheduler records new statuses through the setter."""
        thread = Thread(tid=1, task=Task(name="shell"))
        thread.status = ThreadStatus.waiting(1)
        assert thread.state is ThreadState.WAITING
        assert thread.status.level == 1

    def test_repr(self) -> None:
        """The repr shows tid, task and status."""
        task = Task(name="shell")
        thread = Thread(tid=3, task=task)
        result = repr(thread)
        assert "tid=3" in result
        assert f"task={task.task_id}" in result
        assert "ready" in result
