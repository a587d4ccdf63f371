"""Kernel logging — the simulator's reporting sink.

Every subsystem reports what it did through one append-only buffer,
much like the kernel ring buffer behind ``dmesg`` on Linux.  The
scheduler in particular uses it for three kinds of report:

- **log** (DEBUG) — a trace of each operation as it starts.
- **warning** — a recoverable problem: the operation was abandoned and
  the caller got a sentinel value back.
- **error** — an invariant was broken (no ready thread to dispatch, a
  "running" thread that isn't running).  The simulation keeps going;
  whoever drives it decides whether to stop.

Reporting is fire-and-forget: writing an entry never changes
scheduler state.

Design choices:
    - **IntEnum for levels** so they compare naturally with ``<``.
    - **Frozen dataclass for entries** — log records should be immutable.
    - **Context is a plain string** — the ``repr`` of whatever object the
      report is about (a thread, a task, an event), captured at the time
      of the report rather than a live reference.
"""

from dataclasses import dataclass
from enum import IntEnum


class LogLevel(IntEnum):
    """Severity levels for log entries."""

    DEBUG = 0
    INFO = 1
    WARNING = 2
    ERROR = 3


@dataclass(frozen=True)
class LogEntry:
    """A single structured log record.

    Attributes:
        level: The severity of this event.
        message: A human-readable description of what happened.
        source: The subsystem that generated the event (e.g. "threads").
        context: What the event is about, e.g. ``Thread(tid=3, ...)``.

    """

    level: LogLevel
    message: str
    source: str
    context: str = ""

    def __str__(self) -> str:
        """Format as ``[LEVEL] source: message (context)``."""
        text = f"[{self.level.name}] {self.source}: {self.message}"
        if self.context:
            text += f" ({self.context})"
        return text


class Logger:
    """Append-only log buffer with filtering."""

    def __init__(self) -> None:
        """Create an empty logger."""
        self._entries: list[LogEntry] = []

    @property
    def entries(self) -> list[LogEntry]:
        """Return all log entries in chronological order."""
        return list(self._entries)

    def log(
        self,
        level: LogLevel,
        message: str,
        *,
        source: str,
        context: object = None,
    ) -> None:
        """Append a new entry to the log.

        Args:
            level: Severity of the event.
            message: Human-readable event description.
            source: Subsystem that generated the event.
            context: Object the event is about; stored as its ``repr``.

        """
        text = "" if context is None else repr(context)
        self._entries.append(LogEntry(level=level, message=message, source=source, context=text))

    def filter(
        self,
        *,
        min_level: LogLevel | None = None,
        source: str | None = None,
    ) -> list[LogEntry]:
        """Return entries matching the given criteria.

        Args:
            min_level: If set, only return entries at or above this level.
            source: If set, only return entries from this source.

        Returns:
            A filtered list of log entries.

        """
        result = self._entries
        if min_level is not None:
            result = [e for e in result if e.level >= min_level]
        if source is not None:
            result = [e for e in result if e.source == source]
        return result if result is not self._entries else list(result)

    def clear(self) -> None:
        """Remove all log entries."""
        self._entries.clear()
