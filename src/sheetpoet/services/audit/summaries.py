"""Shared paging and grouping helpers for execution log backends."""

from typing import Dict, List, Sequence, Tuple, TypeVar

from sheetpoet.schemas.log_entry import LogEntry, LogStatus, TaskLogSummary

T = TypeVar("T")


def paginate(items: Sequence[T], page: int, per_page: int) -> List[T]:
    page = max(page, 1)
    per_page = max(per_page, 1)
    start = (page - 1) * per_page
    return list(items[start : start + per_page])


def newest_first(entries: Sequence[LogEntry]) -> List[LogEntry]:
    return sorted(entries, key=lambda e: (e.timestamp, e.id or 0), reverse=True)


def summarize_tasks(entries: Sequence[LogEntry]) -> List[TaskLogSummary]:
    """Collapse entries into one summary per task, newest task first."""
    grouped: Dict[str, List[LogEntry]] = {}
    for entry in newest_first(entries):
        grouped.setdefault(entry.task_id, []).append(entry)

    summaries = []
    for task_id, task_entries in grouped.items():
        summaries.append(
            TaskLogSummary(
                task_id=task_id,
                count=len(task_entries),
                latest_timestamp=task_entries[0].timestamp,
                function_names=_distinct(e.function_name for e in task_entries),
                function_labels=_distinct(e.function_label for e in task_entries),
                function_types=_distinct(e.function_type for e in task_entries),
                success=all(e.status != LogStatus.ERROR for e in task_entries),
            )
        )
    return summaries


def _distinct(values) -> str:
    seen: List[str] = []
    for value in values:
        if value and value not in seen:
            seen.append(value)
    return ", ".join(seen)


def page_of(items: Sequence[T], page: int, per_page: int) -> Tuple[List[T], int]:
    return paginate(items, page, per_page), len(items)
