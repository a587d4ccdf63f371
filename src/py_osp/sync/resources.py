"""Resource manager — who holds which instances of which resource.

Resources are things like printers or tape drives: a fixed number of
identical **instances** per type, handed out to threads on request and
given back on release.  The manager keeps one allocation table::

    allocation[thread][resource] = instances held

and derives everything else (what's free, who holds what) from it.

When a thread is killed it never gets the chance to give its resources
back, so the scheduler calls ``release_all`` on its behalf.
"""

from __future__ import annotations

from collections import defaultdict
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from py_osp.process.threads import Thread


class ResourceManager:
    """Track resource instances and the threads holding them."""

    def __init__(self) -> None:
        """Create an empty resource manager."""
        self._total: dict[str, int] = {}
        self._allocation: dict[Thread, dict[str, int]] = defaultdict(lambda: defaultdict(int))

    def add_resource(self, name: str, *, total: int) -> None:
        """Register a resource type with a fixed number of instances.

        Args:
            name: Resource name (e.g. "printer").
            total: Total instances available system-wide.

        Raises:
            ValueError: If *total* is negative.

        """
        if total < 0:
            msg = f"Resource '{name}' cannot have {total} instances"
            raise ValueError(msg)
        self._total[name] = total

    def resources(self) -> list[str]:
        """Return all registered resource names."""
        return list(self._total)

    def available(self, resource: str) -> int:
        """Return the number of free instances of a resource."""
        total = self._total.get(resource, 0)
        allocated = sum(held.get(resource, 0) for held in self._allocation.values())
        return total - allocated

    def allocation(self, thread: Thread, resource: str) -> int:
        """Return how many instances *thread* currently holds."""
        held = self._allocation.get(thread)
        return 0 if held is None else held.get(resource, 0)

    def holdings(self, thread: Thread) -> dict[str, int]:
        """Return every resource *thread* holds (zero counts omitted)."""
        held = self._allocation.get(thread, {})
        return {name: amount for name, amount in held.items() if amount}

    def acquire(self, thread: Thread, resource: str, amount: int = 1) -> None:
        """Grant *amount* instances of *resource* to *thread*.

        Raises:
            ValueError: If *amount* is not positive, the resource is
                unknown, or too few instances are free.

        """
        _check_amount(amount)
        if resource not in self._total:
            msg = f"Unknown resource '{resource}'"
            raise ValueError(msg)
        if amount > self.available(resource):
            msg = f"Cannot allocate {amount} {resource}: only {self.available(resource)} available"
            raise ValueError(msg)
        self._allocation[thread][resource] += amount

    def release(self, thread: Thread, resource: str, amount: int = 1) -> None:
        """Give *amount* instances of *resource* back to the pool.

        Raises:
            ValueError: If *amount* is not positive or exceeds what the
                thread holds.

        """
        _check_amount(amount)
        current = self.allocation(thread, resource)
        if amount > current:
            msg = f"Cannot release {amount} {resource}: only {current} allocated"
            raise ValueError(msg)
        self._allocation[thread][resource] -= amount

    def release_all(self, thread: Thread) -> dict[str, int]:
        """Release everything *thread* holds.

        Returns:
            What was released, by resource name.

        """
        released = self.holdings(thread)
        self._allocation.pop(thread, None)
        return released


def _check_amount(amount: int) -> None:
    """Reject requests for fewer than one instance."""
    if amount < 1:
        msg = f"Amount must be at least 1, got {amount}"
        raise ValueError(msg)
