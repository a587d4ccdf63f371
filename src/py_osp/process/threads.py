"""Threads — the units of execution the scheduler moves around.

A **thread** belongs to exactly one task and is always in one of four
states::

    create → READY ⇄ RUNNING → KILLED
               ↑       ↓
            WAITING ←──┘
             ↕ (nested)

WAITING is not a single state but a stack of them.  A thread that is
already blocked (say, on a page fault) can be suspended again on the
I/O request that brings the page in.  Each extra suspension adds a
**waiting level**; each resume peels one off.  Only a resume at the
base level (0) makes the thread READY again.

Rather than encoding "how deep" as an integer that happens to sit
above the other states, the status is a small tagged value::

    ThreadStatus(ThreadState.WAITING, level=2)

so "is this thread waiting at all?" is a tag check, never a numeric
comparison.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from py_osp.process.task import Task


class ThreadState(StrEnum):
    """The tag of a thread's status."""

    READY = "ready"
    RUNNING = "running"
    WAITING = "waiting"
    KILLED = "killed"


@dataclass(frozen=True)
class ThreadStatus:
    """A thread status: a state tag plus, for WAITING, a nesting level.

    Attributes:
        state: Which of the four states the thread is in.
        level: How many suspensions are stacked beyond the first.
            Always 0 for anything other than WAITING.

    """

    state: ThreadState
    level: int = 0

    def __post_init__(self) -> None:
        """Reject levels that make no sense for the state."""
        if self.level < 0:
            msg = f"Waiting level cannot be negative, got {self.level}"
            raise ValueError(msg)
        if self.level and self.state is not ThreadState.WAITING:
            msg = f"Only waiting threads have a level, got {self.state} with level {self.level}"
            raise ValueError(msg)

    @classmethod
    def waiting(cls, level: int = 0) -> ThreadStatus:
        """Return the WAITING status at the given nesting level."""
        return cls(ThreadState.WAITING, level)

    @property
    def is_waiting(self) -> bool:
        """Return True for WAITING at any level."""
        return self.state is ThreadState.WAITING

    def deeper(self) -> ThreadStatus:
        """Return this waiting status one level deeper.

        Raises:
            RuntimeError: If the status is not WAITING.

        """
        if not self.is_waiting:
            msg = f"Cannot nest a wait on a thread that is {self}"
            raise RuntimeError(msg)
        return ThreadStatus.waiting(self.level + 1)

    def shallower(self) -> ThreadStatus:
        """Return this waiting status one level shallower.

        Raises:
            RuntimeError: If the status is not WAITING above level 0.

        """
        if not self.is_waiting or self.level == 0:
            msg = f"Cannot unwind a wait on a thread that is {self}"
            raise RuntimeError(msg)
        return ThreadStatus.waiting(self.level - 1)

    def __str__(self) -> str:
        """Format as ``ready``, ``running``, ``waiting+2`` or ``killed``."""
        if self.level:
            return f"{self.state}+{self.level}"
        return str(self.state)


READY = ThreadStatus(ThreadState.READY)
RUNNING = ThreadStatus(ThreadState.RUNNING)
WAITING = ThreadStatus.waiting()
KILLED = ThreadStatus(ThreadState.KILLED)


class Thread:
    """A simulated thread control block.

    The thread itself enforces nothing about *which* transitions are
    legal — that is the scheduler's job, because most transitions also
    move the thread between queues.  The thread only records where it
    is.
    """

    def __init__(self, *, tid: int, task: Task) -> None:
        """Create a thread for *task*, initially READY.

        The scheduler decides whether the thread is actually admitted;
        a thread whose task refuses it is simply dropped.

        Args:
            tid: Thread ID (unique within one scheduler).
            task: The task that owns this thread.

        """
        self._tid = tid
        self._task = task
        self._status = READY

    @property
    def tid(self) -> int:
        """Return the thread ID."""
        return self._tid

    @property
    def task(self) -> Task:
        """Return the owning task."""
        return self._task

    @property
    def status(self) -> ThreadStatus:
        """Return the current status."""
        return self._status

    @status.setter
    def status(self, status: ThreadStatus) -> None:
        """Record a new status."""
        self._status = status

    @property
    def state(self) -> ThreadState:
        """Return the status tag (shortcut for ``status.state``)."""
        return self._status.state

    def __repr__(self) -> str:
        """Return a debug-friendly representation."""
        return f"Thread(tid={self._tid}, task={self._task.task_id}, status={self._status})"
