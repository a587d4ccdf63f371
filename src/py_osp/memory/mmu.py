"""Page tables and the MMU's active-mapping register.

Every task has its own **page table** mapping virtual page numbers to
physical frames.  The hardware MMU only ever looks at one of them: the
one whose address is loaded in the **page table base register** (PTBR
on x86, ``satp`` on RISC-V).  Switching the processor from one task's
thread to another's is, as far as memory is concerned, just a reload
of that register.

Address translation::

    page table[vpn]  →  physical frame number

The dispatcher loads the running thread's page table; the preemptor
clears the register.  An empty register means the processor is idle,
and any translation attempt then faults.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from py_osp.process.task import Task


class PageFaultError(Exception):
    """Raised when a virtual page has no physical mapping."""


class PageTable:
    """Map virtual page numbers to physical frame numbers for one task."""

    def __init__(self, *, task: Task) -> None:
        """Create an empty page table owned by *task*."""
        self._task = task
        self._entries: dict[int, int] = {}

    @property
    def task(self) -> Task:
        """Return the task that owns this address space."""
        return self._task

    def map(self, *, virtual_page: int, physical_frame: int) -> None:
        """Create a mapping from a virtual page to a physical frame."""
        self._entries[virtual_page] = physical_frame

    def unmap(self, *, virtual_page: int) -> None:
        """Remove a virtual page mapping (no-op if not mapped)."""
        self._entries.pop(virtual_page, None)

    def translate(self, virtual_page: int) -> int:
        """Translate a virtual page number to a physical frame number.

        Raises:
            PageFaultError: If the virtual page is not mapped.

        """
        frame = self._entries.get(virtual_page)
        if frame is None:
            msg = f"Virtual page {virtual_page} is not mapped"
            raise PageFaultError(msg)
        return frame

    def mappings(self) -> dict[int, int]:
        """Return all virtual→physical mappings."""
        return dict(self._entries)

    def clear(self) -> None:
        """Drop every mapping."""
        self._entries.clear()

    def __len__(self) -> int:
        """Return the number of mapped pages."""
        return len(self._entries)

    def __repr__(self) -> str:
        """Return a debug-friendly representation."""
        return f"PageTable(task={self._task.task_id}, pages={len(self._entries)})"


class MMU:
    """The memory-management unit of the single simulated processor."""

    def __init__(self) -> None:
        """Create an MMU with nothing loaded."""
        self._active: PageTable | None = None

    @property
    def active_mapping(self) -> PageTable | None:
        """Return the page table currently loaded, or None when idle."""
        return self._active

    @active_mapping.setter
    def active_mapping(self, page_table: PageTable | None) -> None:
        """Load a page table (or clear the register with None)."""
        self._active = page_table

    def translate(self, virtual_page: int) -> int:
        """Translate through the active page table.

        Raises:
            PageFaultError: If no page table is loaded or the page is
                not mapped.

        """
        if self._active is None:
            msg = f"No page table loaded to translate virtual page {virtual_page}"
            raise PageFaultError(msg)
        return self._active.translate(virtual_page)
