"""Storage interfaces for the execution log.

Appending, reading and administration are separate protocols so that the
dispatcher only depends on what it needs (appending), while the log viewer
depends on reading and the admin surface on clearing.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, List, Protocol, Tuple, runtime_checkable

if TYPE_CHECKING:
    from sheetpoet.schemas.log_entry import LogEntry, TaskLogSummary


@runtime_checkable
class LogAppender(Protocol):
    """Protocol for append-only execution log storage."""

    def append(self, entry: "LogEntry") -> int:
        """Append one entry.

        Args:
            entry: The entry to store. Its ``id`` is assigned by the storage.

        Returns:
            The assigned id.

        Raises:
            LoggingFailure: If the write fails.
        """
        ...


@runtime_checkable
class LogReader(Protocol):
    """Protocol for querying execution log entries."""

    def get_by_task(self, task_id: str) -> List["LogEntry"]:
        """All entries of one task, newest first."""
        ...

    def query(self, page: int = 1, per_page: int = 20) -> Tuple[List["LogEntry"], int]:
        """One page of entries, newest first, plus the total entry count."""
        ...

    def group_by_task(self, page: int = 1, per_page: int = 20) -> Tuple[List["TaskLogSummary"], int]:
        """One page of per-task summaries, newest first, plus the total task count."""
        ...

    def count(self) -> int:
        ...


@runtime_checkable
class LogAdmin(Protocol):
    """Protocol for destructive log administration."""

    def clear(self) -> int:
        """Delete every entry. Returns how many were removed."""
        ...


@runtime_checkable
class ExecutionLogStorage(LogAppender, LogReader, LogAdmin, Protocol):
    """Combined protocol implemented by the concrete backends."""
