"""CPU scheduler — thread lifecycle and FIFO dispatch on one processor.

The scheduler owns the ready queue and the four lifecycle operations:

- **create**: attach a new thread to a task and queue it.
- **kill**: take a thread out of every queue, off the processor, out
  of its task, off every device, and make it give back its resources.
- **suspend**: park a thread on an event's wait queue.
- **resume**: undo one suspension.

and the pair that moves threads on and off the processor:

- **dispatch**: preempt whatever is running, then install the thread at
  the head of the ready queue.
- **preempt**: evict the running thread, giving it whatever status the
  caller asked for (READY by default, WAITING when it is suspending,
  KILLED when it is dying).

Scheduling is FIFO with no time slicing: a thread runs until something
(a creation, a suspension, a kill) makes the scheduler dispatch again.
Context switches are rare, so overhead is minimal, at the price of
fairness — a thread that never blocks delays everyone behind it.

The processor is modelled by the MMU's active-mapping register: the
loaded page table names the running task, and that task's
``current_thread`` names the running thread.  An empty register means
the processor is idle.

Error policy:
    Recoverable problems (task full, bad resume) are reported as
    warnings and the caller gets a sentinel back.  Broken invariants
    (nothing to dispatch, a "running" thread that isn't) are reported
    as errors and the operation returns False; the simulation carries
    on.  Misuse of the API itself (suspending a thread that is neither
    running nor waiting) raises, like any other illegal transition.
"""

from __future__ import annotations

from collections import deque
from itertools import count
from typing import TYPE_CHECKING

from py_osp.logging import Logger, LogLevel
from py_osp.process.threads import KILLED, READY, RUNNING, WAITING, Thread, ThreadState

if TYPE_CHECKING:
    from collections.abc import Iterator

    from py_osp.devices import DeviceManager
    from py_osp.memory.mmu import MMU
    from py_osp.process.task import Task
    from py_osp.process.threads import ThreadStatus
    from py_osp.sync.events import Event
    from py_osp.sync.resources import ResourceManager

DEFAULT_MAX_THREADS_PER_TASK = 10

_SOURCE = "threads"


class ReadyQueue:
    """FIFO queue of runnable threads, with no duplicates."""

    def __init__(self) -> None:
        """Create an empty ready queue."""
        self._queue: deque[Thread] = deque()

    def append(self, thread: Thread) -> None:
        """Add a thread at the tail.

        Raises:
            RuntimeError: If the thread is already queued.

        """
        if thread in self._queue:
            msg = f"Thread {thread.tid} is already in the ready queue"
            raise RuntimeError(msg)
        self._queue.append(thread)

    def popleft(self) -> Thread:
        """Remove and return the thread at the head.

        Raises:
            IndexError: If the queue is empty.

        """
        return self._queue.popleft()

    def discard(self, thread: Thread) -> bool:
        """Remove a thread wherever it is.

        Returns:
            True if the thread was queued.

        """
        try:
            self._queue.remove(thread)
        except ValueError:
            return False
        return True

    def __contains__(self, thread: object) -> bool:
        """Return True if *thread* is queued."""
        return thread in self._queue

    def __len__(self) -> int:
        """Return the number of queued threads."""
        return len(self._queue)

    def __iter__(self) -> Iterator[Thread]:
        """Iterate from head to tail."""
        return iter(list(self._queue))


class Scheduler:
    """Thread lifecycle and dispatch for a single processor.

    The scheduler holds no reference to "the running thread" of its
    own; it always reads it back from the MMU, so the processor has
    exactly one source of truth.
    """

    def __init__(
        self,
        *,
        mmu: MMU,
        devices: DeviceManager,
        resources: ResourceManager,
        logger: Logger | None = None,
        max_threads_per_task: int = DEFAULT_MAX_THREADS_PER_TASK,
    ) -> None:
        """Create a scheduler with an empty ready queue.

        Args:
            mmu: The processor's memory-management unit.
            devices: Device table walked when a thread is killed.
            resources: Resource manager that reclaims a killed thread's
                resources.
            logger: Reporting sink (a private one is made if omitted).
            max_threads_per_task: Creation fails once a task holds
                this many threads.

        """
        if max_threads_per_task < 1:
            msg = "max_threads_per_task must be at least 1"
            raise ValueError(msg)
        self._mmu = mmu
        self._devices = devices
        self._resources = resources
        self._logger = logger if logger is not None else Logger()
        self._max_threads_per_task = max_threads_per_task
        self._ready_queue = ReadyQueue()
        self._next_tid = count(start=1)
        self._context_switches = 0

    @property
    def ready_queue(self) -> ReadyQueue:
        """Return the ready queue."""
        return self._ready_queue

    @property
    def ready_threads(self) -> list[Thread]:
        """Return a snapshot of the ready queue, head first."""
        return list(self._ready_queue)

    @property
    def logger(self) -> Logger:
        """Return the reporting sink."""
        return self._logger

    @property
    def max_threads_per_task(self) -> int:
        """Return the per-task thread limit."""
        return self._max_threads_per_task

    @property
    def context_switches(self) -> int:
        """Return how many threads have been installed on the processor."""
        return self._context_switches

    @property
    def running(self) -> Thread | None:
        """Return the thread on the processor, or None when idle."""
        page_table = self._mmu.active_mapping
        if page_table is None:
            return None
        return page_table.task.current_thread

    # -- Lifecycle ------------------------------------------------------------

    def create(self, task: Task) -> Thread | None:
        """Create a thread in *task* and queue it.

        Dispatch runs exactly once whether or not creation succeeds, so
        an idle processor is never left idle by a refused creation.

        Returns:
            The new READY (or, if it was dispatched straight away,
            RUNNING) thread, or None if the task refused it.

        """
        self._report(LogLevel.DEBUG, "Create thread", task)
        if task.thread_count >= self._max_threads_per_task:
            self._report(LogLevel.WARNING, "Max thread count exceeded", task)
            self._reschedule(READY, "create")
            return None

        thread = Thread(tid=next(self._next_tid), task=task)
        if not task.add_thread(thread):
            self._report(LogLevel.WARNING, "Failed to add thread to task", task)
            self._reschedule(READY, "create")
            return None

        thread.status = READY
        self._ready_queue.append(thread)
        self._reschedule(READY, "create")
        return thread

    def kill(self, thread: Thread) -> bool:
        """Destroy *thread* and everything it holds.

        The status flips to KILLED first, so that by the time the
        processor is handed on, the preemptor sees a thread that is
        already dead.  Task, device and resource cleanup only happen
        once the thread is off the processor.

        A killed thread is never dispatched again, even when it was the
        only one ready.  Killing the last runnable thread is therefore
        an ordinary way to leave the processor idle, and it logs the
        same starvation errors as any other failed dispatch.

        Returns:
            The outcome of the dispatch the kill triggered: False only
            if the thread was running and nothing was left to run.

        """
        self._report(LogLevel.DEBUG, "Thread kill", thread)
        previous = thread.state
        if previous is ThreadState.KILLED:
            self._report(LogLevel.WARNING, "Thread is already killed", thread)
            return True

        thread.status = KILLED
        dispatched = True
        if previous is ThreadState.READY:
            self._ready_queue.discard(thread)
        elif previous is ThreadState.RUNNING:
            # A sole ready thread is also kept at the tail of the queue.
            self._ready_queue.discard(thread)
            dispatched = self._reschedule(KILLED, "kill")

        task = thread.task
        task.remove_thread(thread)
        for index in range(len(self._devices)):
            self._devices.get(index).cancel_pending_io(thread)
        self._resources.release_all(thread)

        if task.thread_count == 0:
            task.kill()
        return dispatched

    def suspend(self, thread: Thread, event: Event) -> bool:
        """Block *thread* on *event*.

        A running thread gives up the processor and becomes WAITING.  A
        thread that is already waiting goes one level deeper.

        Returns:
            The outcome of the dispatch a running thread's suspension
            triggers; True when no dispatch was needed.

        Raises:
            RuntimeError: If the thread is neither running nor waiting.

        """
        self._report(LogLevel.DEBUG, "Thread suspended by event", event)
        status = thread.status
        if status.state is not ThreadState.RUNNING and not status.is_waiting:
            msg = f"Cannot suspend: thread {thread.tid} is {status}, expected running or waiting"
            raise RuntimeError(msg)

        event.add_thread(thread)
        if status.state is ThreadState.RUNNING:
            self._ready_queue.discard(thread)
            return self._reschedule(WAITING, "suspend")
        thread.status = status.deeper()
        return True

    def resume(self, thread: Thread) -> bool:
        """Undo one suspension of *thread*.

        At the base waiting level the thread becomes READY and joins the
        tail of the ready queue; deeper down it just loses a level.
        Resuming never dispatches.

        Returns:
            False (with a warning) if the thread wasn't waiting.

        """
        self._report(LogLevel.DEBUG, "Thread resume", thread)
        status = thread.status
        if not status.is_waiting:
            self._report(
                LogLevel.WARNING, f"Attempt to resume thread {thread.tid}, which wasn't waiting", thread
            )
            return False
        if status.level == 0:
            thread.status = READY
            self._ready_queue.append(thread)
        else:
            thread.status = status.shallower()
        return True

    # -- Dispatch -------------------------------------------------------------

    def dispatch(self, *, switch_out: ThreadStatus = READY) -> bool:
        """Put the thread at the head of the ready queue on the processor.

        Args:
            switch_out: Status given to the thread being preempted.

        Returns:
            False (with an error) if no thread was ready to run.

        """
        self._report(LogLevel.DEBUG, "Dispatch new thread")
        self._preempt(switch_out)

        if not self._ready_queue:
            self._report(LogLevel.ERROR, "No ready thread to dispatch")
            return False

        thread = self._ready_queue.popleft()
        if not self._ready_queue:
            # Sole ready thread: keep it queued so it is rescheduled to itself.
            self._ready_queue.append(thread)

        thread.status = RUNNING
        task = thread.task
        self._mmu.active_mapping = task.page_table
        task.current_thread = thread
        self._context_switches += 1
        return True

    def _preempt(self, switch_out: ThreadStatus) -> None:
        """Take the running thread off the processor.

        A thread still RUNNING gets *switch_out*; if that is READY it
        rejoins the tail of the ready queue.  A thread whose status
        already equals a non-READY *switch_out* was flipped by its
        caller (kill) and is left alone.  Anything else is an inconsistency: it is
        reported, not repaired.  The processor is cleared regardless.
        """
        self._report(LogLevel.DEBUG, "Preempt thread")
        page_table = self._mmu.active_mapping
        if page_table is None:
            return

        task = page_table.task
        current = task.current_thread
        if current is None:
            self._report(LogLevel.ERROR, "Page table loaded with no current thread", task)
        elif current.state is ThreadState.RUNNING:
            current.status = switch_out
            if switch_out == READY and current not in self._ready_queue:
                self._ready_queue.append(current)
        elif switch_out == READY or current.status != switch_out:
            self._report(LogLevel.ERROR, "Erroneous status of current running thread", current)

        self._mmu.active_mapping = None
        task.current_thread = None

    # -- Private helpers ------------------------------------------------------

    def _reschedule(self, switch_out: ThreadStatus, action: str) -> bool:
        """Dispatch on behalf of *action*, reporting if it fails."""
        if self.dispatch(switch_out=switch_out):
            return True
        self._report(LogLevel.ERROR, f"Processor left idle after {action}")
        return False

    def _report(self, level: LogLevel, message: str, context: object = None) -> None:
        """Write one entry to the reporting sink."""
        self._logger.log(level, message, source=_SOURCE, context=context)
