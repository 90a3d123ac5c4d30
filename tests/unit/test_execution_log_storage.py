"""Tests for execution log storage backends."""

import pytest

from sheetpoet.schemas.log_entry import LogEntry, LogStatus
from sheetpoet.services.audit.file_storage import FileExecutionLogStorage
from sheetpoet.services.audit.interfaces import ExecutionLogStorage, LogAppender
from sheetpoet.services.audit.memory_storage import InMemoryExecutionLogStorage


def entry(task_id, name="double_qty", status=LogStatus.SUCCESS, timestamp="2026-01-01T00:00:00+00:00", **kwargs):
    return LogEntry(
        task_id=task_id,
        function_name=name,
        function_label=name.replace("_", " "),
        function_type="upload_to_website",
        status=status,
        timestamp=timestamp,
        **kwargs,
    )


@pytest.fixture(params=["file", "memory"])
def storage(request, tmp_path):
    if request.param == "file":
        return FileExecutionLogStorage(tmp_path / "logs")
    return InMemoryExecutionLogStorage()


class TestProtocols:
    def test_backends_satisfy_protocols(self, storage):
        assert isinstance(storage, LogAppender)
        assert isinstance(storage, ExecutionLogStorage)


class TestAppendAndQuery:
    def test_ids_increase(self, storage):
        first = entry("t1")
        assert storage.append(first) == 1
        assert first.id == 1
        assert storage.append(entry("t1")) == 2

    def test_get_by_task_newest_first(self, storage):
        storage.append(entry("t1", timestamp="2026-01-01T00:00:00+00:00"))
        storage.append(entry("t2"))
        storage.append(entry("t1", timestamp="2026-01-02T00:00:00+00:00"))

        entries = storage.get_by_task("t1")
        assert [e.id for e in entries] == [3, 1]
        assert storage.get_by_task("unknown") == []

    def test_query_paginates(self, storage):
        for i in range(5):
            storage.append(entry(f"t{i}", timestamp=f"2026-01-0{i + 1}T00:00:00+00:00"))

        page, total = storage.query(page=2, per_page=2)
        assert total == 5
        assert [e.task_id for e in page] == ["t2", "t1"]

    def test_payloads_are_kept(self, storage):
        storage.append(entry("t1", request_data=[{"identifier": "r1"}], response_data="boom",
                             status=LogStatus.ERROR))
        stored = storage.get_by_task("t1")[0]
        assert stored.request_data == [{"identifier": "r1"}]
        assert stored.response_data == "boom"
        assert stored.status == LogStatus.ERROR


class TestGrouping:
    def test_group_by_task(self, storage):
        storage.append(entry("t1", name="double_qty", timestamp="2026-01-01T00:00:00+00:00"))
        storage.append(entry("t1", name="fetch_page", status=LogStatus.ERROR, timestamp="2026-01-01T00:01:00+00:00"))
        storage.append(entry("t1", name="double_qty", timestamp="2026-01-01T00:02:00+00:00"))
        storage.append(entry("t2", timestamp="2026-01-03T00:00:00+00:00"))

        summaries, total = storage.group_by_task()
        assert total == 2
        assert [s.task_id for s in summaries] == ["t2", "t1"]

        t1 = summaries[1]
        assert t1.count == 3
        assert t1.function_names == "double_qty, fetch_page"
        assert t1.latest_timestamp == "2026-01-01T00:02:00+00:00"
        assert t1.success is False
        assert summaries[0].success is True


class TestClear:
    def test_clear_returns_removed_count(self, storage):
        storage.append(entry("t1"))
        storage.append(entry("t2"))

        assert storage.clear() == 2
        assert storage.count() == 0


class TestFileBackend:
    def test_persists_across_instances(self, tmp_path):
        FileExecutionLogStorage(tmp_path).append(entry("t1"))
        reopened = FileExecutionLogStorage(tmp_path)

        assert reopened.count() == 1
        assert reopened.append(entry("t2")) == 2

    def test_ids_restart_after_clear(self, tmp_path):
        storage = FileExecutionLogStorage(tmp_path)
        storage.append(entry("t1"))
        storage.clear()

        assert not storage.path.exists()
        assert storage.append(entry("t2")) == 1

    def test_corrupt_lines_are_skipped(self, tmp_path):
        storage = FileExecutionLogStorage(tmp_path)
        storage.append(entry("t1"))
        with open(storage.path, "a", encoding="utf-8") as f:
            f.write("{truncated\n")

        assert storage.count() == 1
        assert storage.append(entry("t2")) == 2
