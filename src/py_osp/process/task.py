"""Tasks — the resource containers that own threads.

A **task** (a process, in Unix terms) owns an address space and one or
more threads.  The scheduler never schedules a task directly: it
schedules the task's threads, and only touches the task to

- attach and detach threads,
- record which of the task's threads is on the processor, and
- find the page table to load into the MMU.

When the last thread of a task is killed the scheduler kills the task.
Whoever manages the task table (the kernel) subscribes with
``on_kill`` to hear about it; subscribers run exactly once no matter
how many times ``kill`` is called.
"""

from __future__ import annotations

from enum import StrEnum
from itertools import count
from typing import TYPE_CHECKING

from py_osp.memory.mmu import PageTable

if TYPE_CHECKING:
    from collections.abc import Callable

    from py_osp.process.threads import Thread


class TaskState(StrEnum):
    """Lifecycle states of a task."""

    LIVE = "live"
    KILLED = "killed"


# Task IDs are global and monotonically increasing, like PIDs.
_task_counter = count(start=1)


class Task:
    """A simulated task control block."""

    def __init__(self, *, name: str) -> None:
        """Create a live task with an empty page table and no threads.

        Args:
            name: Human-readable label (e.g. "shell", "worker").

        """
        self._task_id: int = next(_task_counter)
        self._name = name
        self._state = TaskState.LIVE
        self._threads: list[Thread] = []
        self._current_thread: Thread | None = None
        self._page_table = PageTable(task=self)
        self._kill_callbacks: list[Callable[[Task], None]] = []

    @property
    def task_id(self) -> int:
        """Return the unique task identifier."""
        return self._task_id

    @property
    def name(self) -> str:
        """Return the task name."""
        return self._name

    @property
    def state(self) -> TaskState:
        """Return the task's lifecycle state."""
        return self._state

    @property
    def threads(self) -> list[Thread]:
        """Return a snapshot of the task's threads in creation order."""
        return list(self._threads)

    @property
    def thread_count(self) -> int:
        """Return the number of threads attached to the task."""
        return len(self._threads)

    @property
    def page_table(self) -> PageTable:
        """Return the task's page table."""
        return self._page_table

    @property
    def current_thread(self) -> Thread | None:
        """Return the task's thread that is on the processor, if any."""
        return self._current_thread

    @current_thread.setter
    def current_thread(self, thread: Thread | None) -> None:
        """Record which thread is on the processor (None when off it)."""
        self._current_thread = thread

    def add_thread(self, thread: Thread) -> bool:
        """Attach a thread to this task.

        Returns:
            False if the task has been killed or already holds the
            thread, True otherwise.

        """
        if self._state is TaskState.KILLED or thread in self._threads:
            return False
        self._threads.append(thread)
        return True

    def remove_thread(self, thread: Thread) -> None:
        """Detach a thread (no-op if it isn't attached)."""
        if thread in self._threads:
            self._threads.remove(thread)
        if self._current_thread is thread:
            self._current_thread = None

    def on_kill(self, callback: Callable[[Task], None]) -> None:
        """Register a callback to run when the task is killed."""
        self._kill_callbacks.append(callback)

    def kill(self) -> None:
        """Terminate the task.

        Drops all page mappings and notifies subscribers.  Killing an
        already killed task does nothing.
        """
        if self._state is TaskState.KILLED:
            return
        self._state = TaskState.KILLED
        self._page_table.clear()
        for callback in self._kill_callbacks:
            callback(self)

    def __repr__(self) -> str:
        """Return a debug-friendly representation."""
        return (
            f"Task(task_id={self._task_id}, name={self._name!r}, "
            f"threads={len(self._threads)}, state={self._state})"
        )
