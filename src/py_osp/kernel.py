"""The kernel — wires the scheduler to the rest of the simulated machine.

The kernel manages the system lifecycle and owns every subsystem the
scheduler talks to:

    SHUTDOWN  →  BOOTING  →  RUNNING  →  SHUTTING_DOWN  →  SHUTDOWN

Boot sequence (order matters):
    0. Logger — capture events from the start.
    1. MMU — the processor's page table register.
    2. Device manager — register the configured devices.
    3. Resource manager — register the configured resource types.
    4. Scheduler — needs all of the above.

Shutdown runs the same list in reverse.

Beyond lifecycle, the kernel is the harness that drives the
simulation: it keeps the task and thread tables, turns names and ids
into objects, and plays the part of the event engine — I/O requests
suspend their thread on a completion event, device completions signal
it, and whenever a signal leaves the processor idle with work queued
the kernel dispatches.
"""

from collections.abc import Mapping, Sequence
from enum import StrEnum
from time import monotonic
from typing import Any

from py_osp.devices import DeviceManager, DiskDevice, IOOperation, IORequest, NullDevice
from py_osp.logging import Logger, LogLevel
from py_osp.memory.mmu import MMU
from py_osp.process.scheduler import DEFAULT_MAX_THREADS_PER_TASK, Scheduler
from py_osp.process.task import Task, TaskState
from py_osp.process.threads import Thread
from py_osp.sync.events import Event
from py_osp.sync.resources import ResourceManager

DEFAULT_DEVICES: tuple[str, ...] = ("disk0", "disk1")
DEFAULT_RESOURCES: Mapping[str, int] = {"printer": 2, "tape": 1}

_SOURCE = "kernel"


class KernelState(StrEnum):
    """Represent the lifecycle phases of the kernel."""

    SHUTDOWN = "shutdown"
    BOOTING = "booting"
    RUNNING = "running"
    SHUTTING_DOWN = "shutting_down"


class Kernel:
    """The central coordinator of the simulator.

    Subsystem references are None when the kernel is not running,
    and are initialised during boot.
    """

    def __init__(
        self,
        *,
        max_threads_per_task: int = DEFAULT_MAX_THREADS_PER_TASK,
        devices: Sequence[str] = DEFAULT_DEVICES,
        resources: Mapping[str, int] = DEFAULT_RESOURCES,
    ) -> None:
        """Create a kernel in the SHUTDOWN state.

        Args:
            max_threads_per_task: Thread limit handed to the scheduler.
            devices: Names of the disks to register at boot (a null
                device always takes slot 0).
            resources: Resource types and their instance counts.

        """
        self._state: KernelState = KernelState.SHUTDOWN
        self._max_threads_per_task = max_threads_per_task
        self._device_names = tuple(devices)
        self._resource_totals = dict(resources)
        self._boot_time: float | None = None
        self._logger: Logger | None = None
        self._mmu: MMU | None = None
        self._device_manager: DeviceManager | None = None
        self._resource_manager: ResourceManager | None = None
        self._scheduler: Scheduler | None = None
        self._tasks: dict[int, Task] = {}
        self._threads: dict[int, Thread] = {}
        self._events: dict[str, Event] = {}
        self._wait_stacks: dict[int, list[Event]] = {}
        self._boot_log: list[str] = []

    # -- Properties -----------------------------------------------------------

    @property
    def state(self) -> KernelState:
        """Return the current kernel state."""
        return self._state

    @property
    def uptime(self) -> float:
        """Return seconds elapsed since boot, or 0.0 if not running."""
        if self._boot_time is None:
            return 0.0
        return monotonic() - self._boot_time

    @property
    def logger(self) -> Logger | None:
        """Return the logger, or None if the kernel is not running."""
        return self._logger

    @property
    def mmu(self) -> MMU | None:
        """Return the MMU, or None if the kernel is not running."""
        return self._mmu

    @property
    def device_manager(self) -> DeviceManager | None:
        """Return the device table, or None if the kernel is not running."""
        return self._device_manager

    @property
    def resource_manager(self) -> ResourceManager | None:
        """Return the resource manager, or None if the kernel is not running."""
        return self._resource_manager

    @property
    def scheduler(self) -> Scheduler | None:
        """Return the scheduler, or None if the kernel is not running."""
        return self._scheduler

    @property
    def tasks(self) -> list[Task]:
        """Return live tasks in creation order."""
        return list(self._tasks.values())

    @property
    def threads(self) -> list[Thread]:
        """Return live threads in creation order."""
        return list(self._threads.values())

    @property
    def running_thread(self) -> Thread | None:
        """Return the thread on the processor, or None when idle."""
        return self._require_scheduler().running

    def dmesg(self) -> list[str]:
        """Return the boot log (like Linux dmesg)."""
        return list(self._boot_log)

    # -- Lifecycle ------------------------------------------------------------

    def boot(self) -> None:
        """Transition the kernel from SHUTDOWN → RUNNING.

        Raises:
            RuntimeError: If the kernel is not in the SHUTDOWN state.

        """
        if self._state is not KernelState.SHUTDOWN:
            msg = f"Cannot boot: kernel is {self._state}, expected shutdown"
            raise RuntimeError(msg)

        self._state = KernelState.BOOTING
        self._boot_time = monotonic()
        self._boot_log = []

        # 0. Logger: capture events from the start
        self._logger = Logger()
        self._boot_log.append("[OK] Logger")

        # 1. MMU: nothing loaded until the first dispatch
        self._mmu = MMU()
        self._boot_log.append("[OK] MMU")

        # 2. Devices: null device in slot 0, then the disks
        self._device_manager = DeviceManager()
        self._device_manager.register(NullDevice())
        for name in self._device_names:
            self._device_manager.register(DiskDevice(name=name))
        self._boot_log.append(f"[OK] Device table ({len(self._device_manager)} devices)")

        # 3. Resources
        self._resource_manager = ResourceManager()
        for name, total in self._resource_totals.items():
            self._resource_manager.add_resource(name, total=total)
        self._boot_log.append(f"[OK] Resource manager ({len(self._resource_totals)} types)")

        # 4. Scheduler
        self._scheduler = Scheduler(
            mmu=self._mmu,
            devices=self._device_manager,
            resources=self._resource_manager,
            logger=self._logger,
            max_threads_per_task=self._max_threads_per_task,
        )
        self._boot_log.append(f"[OK] Scheduler (FIFO, {self._max_threads_per_task} threads/task)")

        self._state = KernelState.RUNNING
        self._logger.log(LogLevel.INFO, "Kernel boot complete", source=_SOURCE)

    def shutdown(self) -> None:
        """Transition the kernel from RUNNING → SHUTDOWN.

        Raises:
            RuntimeError: If the kernel is not in the RUNNING state.

        """
        if self._state is not KernelState.RUNNING:
            msg = f"Cannot shutdown: kernel is {self._state}, expected running"
            raise RuntimeError(msg)

        self._state = KernelState.SHUTTING_DOWN
        if self._logger is not None:
            self._logger.log(LogLevel.INFO, "Kernel shutting down", source=_SOURCE)

        self._scheduler = None
        self._tasks.clear()
        self._threads.clear()
        self._events.clear()
        self._wait_stacks.clear()
        self._resource_manager = None
        self._device_manager = None
        self._mmu = None
        self._logger = None

        self._boot_time = None
        self._state = KernelState.SHUTDOWN

    # -- Tasks and threads ----------------------------------------------------

    def create_task(self, name: str) -> Task:
        """Create a task with no threads and add it to the task table."""
        self._require_running()
        task = Task(name=name)
        task.on_kill(self._forget_task)
        self._tasks[task.task_id] = task
        self._log(f"Created task {task.task_id} ({name})")
        return task

    def task(self, task_id: int) -> Task:
        """Return a live task by id.

        Raises:
            ValueError: If no such task exists.

        """
        task = self._tasks.get(task_id)
        if task is None:
            msg = f"Task {task_id} not found"
            raise ValueError(msg)
        return task

    def create_thread(self, task_id: int) -> Thread | None:
        """Create a thread in a task.

        Returns:
            The new thread, or None if the task refused it.

        Raises:
            ValueError: If the task doesn't exist.

        """
        scheduler = self._require_scheduler()
        thread = scheduler.create(self.task(task_id))
        if thread is not None:
            self._threads[thread.tid] = thread
        return thread

    def thread(self, tid: int) -> Thread:
        """Return a live thread by id.

        Raises:
            ValueError: If no such thread exists.

        """
        thread = self._threads.get(tid)
        if thread is None:
            msg = f"Thread {tid} not found"
            raise ValueError(msg)
        return thread

    def kill_thread(self, tid: int) -> bool:
        """Kill a thread and drop it from the thread table.

        Returns:
            The scheduler's dispatch outcome.

        """
        scheduler = self._require_scheduler()
        thread = self.thread(tid)
        dispatched = scheduler.kill(thread)
        for event in self._wait_stacks.pop(tid, []):
            event.remove_thread(thread)
        del self._threads[tid]
        return dispatched

    def suspend_thread(self, tid: int, event_name: str) -> bool:
        """Suspend a thread on a named event (created on first use)."""
        scheduler = self._require_scheduler()
        thread = self.thread(tid)
        event = self.event(event_name)
        dispatched = scheduler.suspend(thread, event)
        self._wait_stacks.setdefault(tid, []).append(event)
        return dispatched

    def resume_thread(self, tid: int) -> bool:
        """Resume a thread once, dispatching if the processor is idle.

        A direct resume unwinds the innermost suspension, so the thread
        also leaves the wait queue of the event it suspended on last.
        """
        scheduler = self._require_scheduler()
        thread = self.thread(tid)
        resumed = scheduler.resume(thread)
        if resumed:
            stack = self._wait_stacks.get(tid)
            if stack:
                stack.pop().remove_thread(thread)
                if not stack:
                    del self._wait_stacks[tid]
            self._dispatch_if_idle()
        return resumed

    # -- Events ---------------------------------------------------------------

    def event(self, name: str) -> Event:
        """Return the named event, creating it on first use."""
        self._require_running()
        event = self._events.get(name)
        if event is None:
            event = Event(name=name)
            self._events[name] = event
        return event

    def notify(self, event_name: str) -> list[int]:
        """Signal a named event: resume every waiter.

        Returns:
            TIDs of the threads that were resumed.

        Raises:
            ValueError: If nothing has ever waited on the event.

        """
        self._require_running()
        event = self._events.get(event_name)
        if event is None:
            msg = f"Event '{event_name}' not found"
            raise ValueError(msg)
        return self._signal(event)

    # -- Device I/O -----------------------------------------------------------

    def request_io(
        self,
        tid: int,
        *,
        device: str,
        block: int,
        operation: IOOperation = IOOperation.READ,
    ) -> IORequest:
        """Queue an I/O request on a disk and block the thread on it.

        Raises:
            ValueError: If the thread or disk doesn't exist.

        """
        scheduler = self._require_scheduler()
        thread = self.thread(tid)
        disk = self._disk(device)
        request = IORequest(
            thread=thread,
            block=block,
            operation=operation,
            event=Event(name=f"{device}:{operation}:{block}"),
        )
        scheduler.suspend(thread, request.event)
        self._wait_stacks.setdefault(tid, []).append(request.event)
        disk.submit(request)
        return request

    def complete_io(self, device: str) -> IORequest | None:
        """Finish the oldest request on a disk and wake its thread.

        Returns:
            The completed request, or None if the disk was idle.

        """
        self._require_running()
        request = self._disk(device).complete_next()
        if request is not None:
            self._signal(request.event)
        return request

    # -- Resources ------------------------------------------------------------

    def acquire(self, tid: int, resource: str, amount: int = 1) -> None:
        """Grant resource instances to a thread.

        Raises:
            ValueError: If the thread or resource doesn't exist or too
                few instances are free.

        """
        self._require_resources().acquire(self.thread(tid), resource, amount)

    def release(self, tid: int, resource: str, amount: int = 1) -> None:
        """Return resource instances held by a thread."""
        self._require_resources().release(self.thread(tid), resource, amount)

    # -- Introspection --------------------------------------------------------

    def snapshot(self) -> dict[str, Any]:
        """Return a JSON-ready view of the whole simulated machine."""
        scheduler = self._require_scheduler()
        running = scheduler.running
        devices = self._device_manager
        assert devices is not None  # noqa: S101
        resources = self._require_resources()
        return {
            "running": None if running is None else running.tid,
            "ready_queue": [t.tid for t in scheduler.ready_threads],
            "context_switches": scheduler.context_switches,
            "tasks": [
                {
                    "task_id": task.task_id,
                    "name": task.name,
                    "threads": [t.tid for t in task.threads],
                }
                for task in self._tasks.values()
            ],
            "threads": [
                {
                    "tid": t.tid,
                    "task_id": t.task.task_id,
                    "status": str(t.status),
                    "resources": resources.holdings(t),
                }
                for t in self._threads.values()
            ],
            "events": {
                name: [t.tid for t in event.waiters] for name, event in self._events.items()
            },
            "devices": {
                device.name: [r.thread.tid for r in device.pending]
                for device in devices
                if isinstance(device, DiskDevice)
            },
        }

    # -- Private helpers ------------------------------------------------------

    def _require_running(self) -> None:
        """Raise if the kernel is not in the RUNNING state."""
        if self._state is not KernelState.RUNNING:
            msg = f"Kernel is not running (state: {self._state})"
            raise RuntimeError(msg)

    def _require_scheduler(self) -> Scheduler:
        """Return the scheduler, raising if the kernel is not running."""
        self._require_running()
        assert self._scheduler is not None  # noqa: S101
        return self._scheduler

    def _require_resources(self) -> ResourceManager:
        """Return the resource manager, raising if the kernel is not running."""
        self._require_running()
        assert self._resource_manager is not None  # noqa: S101
        return self._resource_manager

    def _disk(self, name: str) -> DiskDevice:
        """Return the named disk.

        Raises:
            ValueError: If there is no disk by that name.

        """
        assert self._device_manager is not None  # noqa: S101
        device = self._device_manager.find(name)
        if not isinstance(device, DiskDevice):
            msg = f"Disk '{name}' not found"
            raise ValueError(msg)
        return device

    def _signal(self, event: Event) -> list[int]:
        """Resume every live waiter on *event*, then fill an idle processor."""
        scheduler = self._require_scheduler()
        woken: list[int] = []
        for thread in event.notify_threads():
            self._forget_wait(thread, event)
            if scheduler.resume(thread):
                woken.append(thread.tid)
        self._dispatch_if_idle()
        return woken

    def _forget_wait(self, thread: Thread, event: Event) -> None:
        """Drop the latest suspension of *thread* on *event*."""
        stack = self._wait_stacks.get(thread.tid, [])
        for i in range(len(stack) - 1, -1, -1):
            if stack[i] is event:
                del stack[i]
                break
        if not stack:
            self._wait_stacks.pop(thread.tid, None)

    def _dispatch_if_idle(self) -> None:
        """Dispatch when nothing is running and something is ready."""
        scheduler = self._require_scheduler()
        if scheduler.running is None and scheduler.ready_threads and not scheduler.dispatch():
            self._log("Processor still idle after dispatch", level=LogLevel.ERROR)

    def _forget_task(self, task: Task) -> None:
        """Drop a killed task from the task table."""
        if task.state is TaskState.KILLED:
            self._tasks.pop(task.task_id, None)
            self._log(f"Task {task.task_id} ({task.name}) terminated")

    def _log(self, message: str, *, level: LogLevel = LogLevel.INFO) -> None:
        """Write a kernel entry if the logger is up."""
        if self._logger is not None:
            self._logger.log(level, message, source=_SOURCE)

    def __repr__(self) -> str:
        """Return a debug-friendly representation."""
        return f"Kernel(state={self._state}, tasks={len(self._tasks)}, threads={len(self._threads)})"
