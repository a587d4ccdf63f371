"""Tests for the resource manager.

Resources have a fixed number of instances.  Threads acquire and
release them; a killed thread has all of its holdings reclaimed at once.
"""

import pytest

from py_osp.process.task import Task
from py_osp.process.threads import Thread
from py_osp.sync.resources import ResourceManager

PRINTERS = 3


def _manager() -> ResourceManager:
    """Create a manager with printers and one tape drive."""
    manager = ResourceManager()
    manager.add_resource("printer", total=PRINTERS)
    manager.add_resource("tape", total=1)
    return manager


def _thread(tid: int = 1) -> Thread:
    """Create a thread in a throwaway task."""
    return Thread(tid=tid, task=Task(name="shell"))


class TestResourceManager:
    """Verify acquisition, release and bulk reclamation."""

    def test_registered_resources(self) -> None:
        """Every registered type is listed and fully available."""
        manager = _manager()
        assert manager.resources() == ["printer", "tape"]
        assert manager.available("printer") == PRINTERS

    def test_negative_total_rejected(self) -> None:
        """A resource cannot have a negative instance count."""
        with pytest.raises(ValueError, match="cannot have"):
            ResourceManager().add_resource("printer", total=-1)

    def test_acquire_and_release(self) -> None:
        """Acquiring reduces availability; releasing restores it."""
        manager = _manager()
        thread = _thread()
        manager.acquire(thread, "printer", 2)
        assert manager.allocation(thread, "printer") == 2  # noqa: PLR2004
        assert manager.available("printer") == 1
        manager.release(thread, "printer", 2)
        assert manager.available("printer") == PRINTERS

    def test_over_allocation_raises(self) -> None:
        """Asking for more than is free raises ValueError."""
        manager = _manager()
        with pytest.raises(ValueError, match="Cannot allocate"):
            manager.acquire(_thread(), "tape", 2)

    def test_unknown_resource_raises(self) -> None:
        """Only registered resources can be acquired."""
        with pytest.raises(ValueError, match="Unknown resource"):
            _manager().acquire(_thread(), "plotter")

    def test_over_release_raises(self) -> None:
        """A thread cannot give back more than it holds."""
        manager = _manager()
        thread = _thread()
        manager.acquire(thread, "printer")
        with pytest.raises(ValueError, match="Cannot release"):
            manager.release(thread, "printer", 2)

    @pytest.mark.parametrize("amount", [0, -3])
    def test_non_positive_acquire_rejected(self, amount: int) -> None:
        """Zero or negative requests cannot mint free instances."""
        manager = _manager()
        with pytest.raises(ValueError, match="at least 1"):
            manager.acquire(_thread(), "printer", amount)
        assert manager.available("printer") == PRINTERS

    @pytest.mark.parametrize("amount", [0, -1])
    def test_non_positive_release_rejected(self, amount: int) -> None:
        """Releasing zero or a negative amount leaves holdings alone."""
        manager = _manager()
        thread = _thread()
        manager.acquire(thread, "printer")
        with pytest.raises(ValueError, match="at least 1"):
            manager.release(thread, "printer", amount)
        assert manager.allocation(thread, "printer") == 1

    def test_release_all(self) -> None:
        """Everything one thread holds is reclaimed; others are untouched."""
        manager = _manager()
        victim = _thread(1)
        other = _thread(2)
        manager.acquire(victim, "printer", 2)
        manager.acquire(victim, "tape")
        manager.acquire(other, "printer")

        released = manager.release_all(victim)

        assert released == {"printer": 2, "tape": 1}
        assert manager.holdings(victim) == {}
        assert manager.available("printer") == PRINTERS - 1
        assert manager.available("tape") == 1

    def test_release_all_with_nothing_held(self) -> None:
        """Reclaiming from a thread that holds nothing is harmless."""
        assert _manager().release_all(_thread()) == {}
