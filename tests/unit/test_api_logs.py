"""Tests for the execution log endpoints."""

import pytest

from sheetpoet.schemas.log_entry import LogEntry, LogStatus

from tests.conftest import ADMIN_HEADERS


@pytest.fixture
def logged(engine):
    storage = engine.log_storage
    storage.append(LogEntry(task_id="t1", function_name="clean_row", status=LogStatus.SUCCESS,
                            timestamp="2026-01-01T00:00:00+00:00"))
    storage.append(LogEntry(task_id="t1", function_name="fetch_page", status=LogStatus.ERROR,
                            timestamp="2026-01-01T00:01:00+00:00"))
    storage.append(LogEntry(task_id="t2", function_name="clean_row", status=LogStatus.SUCCESS,
                            timestamp="2026-01-02T00:00:00+00:00"))
    return storage


class TestListLogs:
    def test_requires_admin(self, api_client):
        assert api_client.get("/api/logs").status_code == 403

    def test_paged_listing(self, api_client, logged):
        data = api_client.get("/api/logs", params={"per_page": 2}, headers=ADMIN_HEADERS).json()

        assert data["total"] == 3
        assert data["pages"] == 2
        assert data["grouped"] is False
        assert [e["id"] for e in data["logs"]] == [3, 2]

    def test_grouped(self, api_client, logged):
        data = api_client.get("/api/logs", params={"group_by_task_id": "true"}, headers=ADMIN_HEADERS).json()

        assert data["grouped"] is True
        assert data["total"] == 2
        t1 = next(s for s in data["logs"] if s["task_id"] == "t1")
        assert t1["count"] == 2
        assert t1["success"] is False
        assert t1["function_names"] == "fetch_page, clean_row"

    def test_by_task(self, api_client, logged):
        data = api_client.get("/api/logs", params={"task_id": "t1"}, headers=ADMIN_HEADERS).json()
        assert data["task_id"] == "t1"
        assert len(data["logs"]) == 2

    def test_unknown_task(self, api_client, logged):
        response = api_client.get("/api/logs", params={"task_id": "t9"}, headers=ADMIN_HEADERS)
        assert response.status_code == 404
        assert response.json() == {"error": "No logs found for task t9"}


class TestLogActions:
    def test_clear(self, api_client, logged):
        response = api_client.post("/api/logs/action", json={"action": "clear"}, headers=ADMIN_HEADERS)

        assert response.status_code == 200
        assert response.json() == {"message": "Logs cleared successfully", "removed": 3}
        assert logged.count() == 0

    def test_invalid_action(self, api_client):
        response = api_client.post("/api/logs/action", json={"action": "purge"}, headers=ADMIN_HEADERS)
        assert response.status_code == 400
        assert response.json() == {"error": "Invalid action"}
