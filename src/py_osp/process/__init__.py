"""Process subsystem — threads, tasks, and the scheduler.

Re-exports public symbols so callers can write::

    from py_osp.process import Scheduler, Task, Thread
"""

from py_osp.process.scheduler import DEFAULT_MAX_THREADS_PER_TASK, ReadyQueue, Scheduler
from py_osp.process.task import Task, TaskState
from py_osp.process.threads import (
    KILLED,
    READY,
    RUNNING,
    WAITING,
    Thread,
    ThreadState,
    ThreadStatus,
)

__all__ = [
    "DEFAULT_MAX_THREADS_PER_TASK",
    "KILLED",
    "READY",
    "RUNNING",
    "WAITING",
    "ReadyQueue",
    "Scheduler",
    "Task",
    "TaskState",
    "Thread",
    "ThreadState",
    "ThreadStatus",
]
