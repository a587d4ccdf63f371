"""Synchronization subsystem — events and resource bookkeeping.

Re-exports public symbols so callers can write::

    from py_osp.sync import Event, ResourceManager
"""

from py_osp.sync.events import Event
from py_osp.sync.resources import ResourceManager

__all__ = [
    "Event",
    "ResourceManager",
]
