"""PyOSP — a single-processor operating-system simulator.

The heart of the simulator is the thread scheduler in
``py_osp.process.scheduler``; the kernel in ``py_osp.kernel`` wires it
to a memory-management unit, a device table, and a resource manager.
"""

__version__ = "0.1.0"
