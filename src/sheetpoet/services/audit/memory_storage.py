"""In-memory execution log storage for tests and embedding."""

import threading
from typing import List, Tuple

from sheetpoet.schemas.log_entry import LogEntry, TaskLogSummary
from sheetpoet.services.audit.summaries import newest_first, page_of, summarize_tasks


class InMemoryExecutionLogStorage:
    def __init__(self):
        self._entries: List[LogEntry] = []
        self._next_id = 1
        self._lock = threading.Lock()

    @property
    def entries(self) -> List[LogEntry]:
        return list(self._entries)

    def append(self, entry: LogEntry) -> int:
        with self._lock:
            entry.id = self._next_id
            self._next_id += 1
            self._entries.append(entry.model_copy())
            return entry.id

    def get_by_task(self, task_id: str) -> List[LogEntry]:
        return newest_first([e for e in self._entries if e.task_id == task_id])

    def query(self, page: int = 1, per_page: int = 20) -> Tuple[List[LogEntry], int]:
        return page_of(newest_first(self._entries), page, per_page)

    def group_by_task(self, page: int = 1, per_page: int = 20) -> Tuple[List[TaskLogSummary], int]:
        return page_of(summarize_tasks(self._entries), page, per_page)

    def count(self) -> int:
        return len(self._entries)

    def clear(self) -> int:
        with self._lock:
            removed = len(self._entries)
            self._entries = []
            return removed
