"""Memory subsystem — page tables and the MMU.

Re-exports public symbols so callers can write::

    from py_osp.memory import MMU, PageTable
"""

from py_osp.memory.mmu import MMU, PageFaultError, PageTable

__all__ = [
    "MMU",
    "PageFaultError",
    "PageTable",
]
