"""Events — the points threads wait on.

An **event** is anything a thread can block on: an I/O request
finishing, a page arriving, a lock becoming free.  It owns a FIFO
queue of the threads waiting for it.  Suspending a thread puts it on
the queue; when the event happens, ``notify_threads`` drains the queue
and hands the waiters back so each one can be resumed.

Threads that were killed while waiting are dropped on the way out:
a killed thread has nothing left to resume.
"""

from __future__ import annotations

from collections import deque
from typing import TYPE_CHECKING

from py_osp.process.threads import ThreadState

if TYPE_CHECKING:
    from py_osp.process.threads import Thread


class Event:
    """A named wait point with a FIFO queue of blocked threads."""

    def __init__(self, *, name: str) -> None:
        """Create an event with nobody waiting."""
        self._name = name
        self._wait_queue: deque[Thread] = deque()

    @property
    def name(self) -> str:
        """Return the event name."""
        return self._name

    @property
    def waiters(self) -> list[Thread]:
        """Return the waiting threads in arrival order."""
        return list(self._wait_queue)

    @property
    def wait_queue_size(self) -> int:
        """Return the number of threads waiting."""
        return len(self._wait_queue)

    def add_thread(self, thread: Thread) -> None:
        """Enqueue a thread on this event."""
        self._wait_queue.append(thread)

    def remove_thread(self, thread: Thread) -> bool:
        """Take a thread off the queue.

        Returns:
            True if the thread was waiting here.

        """
        try:
            self._wait_queue.remove(thread)
        except ValueError:
            return False
        return True

    def notify_threads(self) -> list[Thread]:
        """Drain the queue.

        Returns:
            The live waiters in arrival order (killed threads dropped).

        """
        woken = [t for t in self._wait_queue if t.state is not ThreadState.KILLED]
        self._wait_queue.clear()
        return woken

    def __repr__(self) -> str:
        """Return a developer-friendly representation."""
        n = len(self._wait_queue)
        waiter_word = "waiter" if n == 1 else "waiters"
        return f"Event('{self._name}', {n} {waiter_word})"
