"""File-based execution log storage.

Entries are stored as one JSON object per line. Appends rewrite the file
through a temp file + rename so a crash never leaves a partial line.
"""

from __future__ import annotations

import json
import logging
import os
import threading
from pathlib import Path
from typing import List, Optional, Tuple

from pydantic import ValidationError

from sheetpoet.errors import LoggingFailure
from sheetpoet.schemas.log_entry import LogEntry, TaskLogSummary
from sheetpoet.services.audit.summaries import newest_first, page_of, summarize_tasks

logger = logging.getLogger(__name__)


class FileExecutionLogAppender:
    """Append-only JSONL writer with monotonically increasing integer ids."""

    def __init__(self, storage_path: Path, lock: Optional[threading.Lock] = None):
        self._path = Path(storage_path)
        self._lock = lock or threading.Lock()
        self._last_id: Optional[int] = None

    def _ensure_parent_dir(self) -> None:
        self._path.parent.mkdir(parents=True, exist_ok=True)

    def _scan_last_id(self) -> int:
        last_id = 0
        if not self._path.exists():
            return last_id
        with open(self._path, "r", encoding="utf-8") as f:
            for line in f:
                line = line.strip()
                if not line:
                    continue
                try:
                    last_id = max(last_id, int(json.loads(line).get("id") or 0))
                except (json.JSONDecodeError, TypeError, ValueError, AttributeError):
                    continue
        return last_id

    def reset(self) -> None:
        """Forget the cached id counter (after the file was cleared)."""
        self._last_id = None

    def append(self, entry: LogEntry) -> int:
        """Append an entry and return its assigned id.

        Raises:
            LoggingFailure: If the write fails.
        """
        with self._lock:
            self._ensure_parent_dir()
            if self._last_id is None:
                self._last_id = self._scan_last_id()

            entry_id = self._last_id + 1
            stored = entry.model_copy(update={"id": entry_id})
            line = json.dumps(stored.model_dump(mode="json"), ensure_ascii=False, default=str) + "\n"

            tmp_file = self._path.with_suffix(".jsonl.tmp")
            try:
                existing_content = ""
                if self._path.exists():
                    with open(self._path, "r", encoding="utf-8") as f:
                        existing_content = f.read()

                with open(tmp_file, "w", encoding="utf-8") as f:
                    f.write(existing_content)
                    f.write(line)
                    f.flush()
                    os.fsync(f.fileno())

                tmp_file.replace(self._path)
            except IOError as e:
                if tmp_file.exists():
                    tmp_file.unlink()
                raise LoggingFailure(f"Failed to append to execution log: {e}") from e

            self._last_id = entry_id
            entry.id = entry_id
            logger.debug(f"Logged execution {entry_id} for task {entry.task_id}")
            return entry_id


class FileExecutionLogReader:
    """Read-only queries over the JSONL execution log."""

    def __init__(self, storage_path: Path):
        self._path = Path(storage_path)

    def _read_all(self) -> List[LogEntry]:
        entries: List[LogEntry] = []
        if not self._path.exists():
            return entries

        try:
            with open(self._path, "r", encoding="utf-8") as f:
                for line in f:
                    line = line.strip()
                    if not line:
                        continue
                    try:
                        entries.append(LogEntry.model_validate(json.loads(line)))
                    except (json.JSONDecodeError, ValidationError):
                        continue
        except IOError as e:
            logger.error(f"Failed to read execution log: {e}")

        return entries

    def get_by_task(self, task_id: str) -> List[LogEntry]:
        return newest_first([e for e in self._read_all() if e.task_id == task_id])

    def query(self, page: int = 1, per_page: int = 20) -> Tuple[List[LogEntry], int]:
        return page_of(newest_first(self._read_all()), page, per_page)

    def group_by_task(self, page: int = 1, per_page: int = 20) -> Tuple[List[TaskLogSummary], int]:
        return page_of(summarize_tasks(self._read_all()), page, per_page)

    def count(self) -> int:
        return len(self._read_all())


class FileExecutionLogStorage:
    """Combined file-based execution log storage using composition.

    Usage:
        storage = FileExecutionLogStorage(Path("output/logs"))
        storage.append(entry)
        entries, total = storage.query(page=1, per_page=20)
    """

    def __init__(self, storage_dir: Path, filename: str = "executions.jsonl"):
        self._path = Path(storage_dir) / filename
        self._lock = threading.Lock()
        self._appender = FileExecutionLogAppender(self._path, lock=self._lock)
        self._reader = FileExecutionLogReader(self._path)

    @property
    def path(self) -> Path:
        return self._path

    def append(self, entry: LogEntry) -> int:
        return self._appender.append(entry)

    def get_by_task(self, task_id: str) -> List[LogEntry]:
        return self._reader.get_by_task(task_id)

    def query(self, page: int = 1, per_page: int = 20) -> Tuple[List[LogEntry], int]:
        return self._reader.query(page, per_page)

    def group_by_task(self, page: int = 1, per_page: int = 20) -> Tuple[List[TaskLogSummary], int]:
        return self._reader.group_by_task(page, per_page)

    def count(self) -> int:
        return self._reader.count()

    def clear(self) -> int:
        with self._lock:
            removed = self._reader.count()
            if self._path.exists():
                self._path.unlink()
            self._appender.reset()
        logger.info(f"Cleared {removed} execution log entries")
        return removed
