"""Device table and devices with I/O request queues.

A thread that wants to read a disk block doesn't talk to the disk
directly.  It fills in an **I/O request block** (IORB: who is asking,
which block, read or write) and hands it to the device, which queues it
behind everyone else's.  The thread is then suspended on the request's
completion **event** until the device gets round to it.

This module provides:

**Device** (Protocol) — what the scheduler needs from any device:
    ``name`` and ``cancel_pending_io(thread)``.  When a thread is
    killed its queued requests must be purged from every device, or
    the device would later complete I/O for a thread that no longer
    exists.

**DeviceManager** — the kernel's device table.  Devices are addressed
    by index (their slot in the table) as well as looked up by name.

**Concrete devices**:
    - ``DiskDevice``: a FIFO queue of ``IORequest`` objects.
    - ``NullDevice``: accepts no requests, so never has any to cancel.

Why a Protocol instead of an ABC?
    Structural typing — any class that has the right methods is a
    valid device, without needing to inherit from a base class.
"""

from __future__ import annotations

from collections import deque
from dataclasses import dataclass, field
from enum import StrEnum
from typing import TYPE_CHECKING, Protocol

from py_osp.sync.events import Event

if TYPE_CHECKING:
    from collections.abc import Iterator

    from py_osp.process.threads import Thread


class IOOperation(StrEnum):
    """Direction of an I/O request."""

    READ = "read"
    WRITE = "write"


@dataclass(frozen=True)
class IORequest:
    """An I/O request block.

    Attributes:
        thread: The thread that issued the request.
        block: The device block to transfer.
        operation: Read or write.
        event: Signalled when the transfer completes.

    """

    thread: Thread
    block: int
    operation: IOOperation = IOOperation.READ
    event: Event = field(default_factory=lambda: Event(name="iorb"))


class Device(Protocol):
    """Interface that every device must satisfy."""

    @property
    def name(self) -> str:
        """Return the device name (unique identifier)."""
        ...  # pragma: no cover

    def cancel_pending_io(self, thread: Thread) -> int:
        """Drop every queued request issued by *thread*.

        Returns:
            The number of requests removed.

        """
        ...  # pragma: no cover


class NullDevice:
    """The device that does nothing — ``/dev/null``."""

    @property
    def name(self) -> str:
        """Return 'null'."""
        return "null"

    def cancel_pending_io(self, thread: Thread) -> int:  # noqa: ARG002
        """Nothing is ever queued, so nothing is cancelled."""
        return 0


class DiskDevice:
    """A disk that services I/O requests strictly in arrival order."""

    def __init__(self, *, name: str) -> None:
        """Create an idle disk with an empty request queue."""
        self._name = name
        self._queue: deque[IORequest] = deque()
        self._completed = 0

    @property
    def name(self) -> str:
        """Return the device name."""
        return self._name

    @property
    def pending(self) -> list[IORequest]:
        """Return queued requests, oldest first."""
        return list(self._queue)

    @property
    def completed(self) -> int:
        """Return how many requests have been serviced."""
        return self._completed

    def submit(self, request: IORequest) -> None:
        """Queue a request behind any already waiting."""
        self._queue.append(request)

    def complete_next(self) -> IORequest | None:
        """Service the oldest request.

        Returns:
            The finished request, or None if the queue was empty.
            Signalling its event is the caller's job.

        """
        if not self._queue:
            return None
        self._completed += 1
        return self._queue.popleft()

    def cancel_pending_io(self, thread: Thread) -> int:
        """Drop every queued request issued by *thread*."""
        before = len(self._queue)
        self._queue = deque(r for r in self._queue if r.thread is not thread)
        return before - len(self._queue)

    def __repr__(self) -> str:
        """Return a developer-friendly representation."""
        return f"DiskDevice('{self._name}', pending={len(self._queue)})"


class DeviceManager:
    """The kernel's device table.

    Each registered device occupies the next free slot, so the table
    can be walked by index (``get(i)`` for ``i in range(len(table))``)
    the same way a driver table is walked in a real kernel.
    """

    def __init__(self) -> None:
        """Create an empty device table."""
        self._devices: list[Device] = []

    def register(self, device: Device) -> int:
        """Register a device.

        Returns:
            The slot index the device now occupies.

        Raises:
            ValueError: If a device with the same name is already registered.

        """
        if self.find(device.name) is not None:
            msg = f"Device '{device.name}' already registered"
            raise ValueError(msg)
        self._devices.append(device)
        return len(self._devices) - 1

    def get(self, index: int) -> Device:
        """Return the device in slot *index*.

        Raises:
            IndexError: If the slot is empty.

        """
        return self._devices[index]

    def find(self, name: str) -> Device | None:
        """Look up a device by name."""
        for device in self._devices:
            if device.name == name:
                return device
        return None

    def list_devices(self) -> list[str]:
        """Return the names of all registered devices, in slot order."""
        return [d.name for d in self._devices]

    def __len__(self) -> int:
        """Return the table size."""
        return len(self._devices)

    def __iter__(self) -> Iterator[Device]:
        """Iterate over devices in slot order."""
        return iter(list(self._devices))
