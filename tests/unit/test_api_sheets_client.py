"""Tests for the spreadsheet client endpoints."""

import pytest

from sheetpoet.schemas.function_definition import FunctionSaveRequest

from tests.conftest import CLEAN_ROW_CODE, CLIENT_HEADERS


@pytest.fixture
def saved(engine):
    return engine.registry.save(FunctionSaveRequest(name="clean_row", label="Clean row", code=CLEAN_ROW_CODE))


def run(client, headers=CLIENT_HEADERS, **payload):
    body = {"task_id": "task-1", "method": "clean_row", "type": "upload_to_website", **payload}
    return client.post("/api/sheets-client/run-function", json=body, headers=headers)


class TestAuth:
    def test_missing_key(self, api_client):
        assert api_client.get("/api/sheets-client/functions").status_code == 401

    def test_unknown_key(self, api_client):
        response = api_client.get("/api/sheets-client/functions", headers={"X-API-Key": "nope"})
        assert response.status_code == 401
        assert response.json()["detail"] == "Not authorized"

    def test_plugin_disabled(self, api_client, engine, saved):
        """Run requests are refused when the feature flag is off."""
        engine.settings.plugin_enabled = False

        response = run(api_client, params=[{"identifier": "r1", "qty": 1}])
        assert response.status_code == 403
        assert response.json()["detail"] == "Functionality is disabled from the plugin settings."
        assert engine.log_storage.count() == 0

    def test_key_checked_before_flag(self, api_client, engine):
        engine.settings.plugin_enabled = False
        assert run(api_client, headers={}).status_code == 401

    def test_settings_available_when_disabled(self, api_client, engine):
        engine.settings.plugin_enabled = False
        response = api_client.get("/api/sheets-client/settings", headers=CLIENT_HEADERS)
        assert response.status_code == 200
        assert response.json() == {"plugin_enabled": False}


class TestCatalog:
    def test_functions_hide_source(self, api_client, saved):
        response = api_client.get("/api/sheets-client/functions", headers=CLIENT_HEADERS)
        assert response.json() == [{"name": "clean_row", "label": "Clean row", "type": "upload_to_website"}]


class TestRunFunction:
    def test_batch_success(self, api_client, engine, saved):
        """Per-record results come back under data with their identifiers."""
        response = run(api_client, params=[{"identifier": "r1", "qty": 2}, {"identifier": "r2", "qty": None}])

        assert response.status_code == 200
        body = response.json()
        assert body["success"] is True
        assert body["data"][0] == {"qty": 4, "identifier": "r1"}
        assert body["data"][1]["identifier"] == "r2"
        assert body["data"][1]["success"] is False
        assert engine.log_storage.count() == 1

    def test_request_error_is_400(self, api_client, saved):
        response = run(api_client, method="nope", params=[{"identifier": "r1"}])

        assert response.status_code == 400
        assert response.json() == {"success": False, "message": "Function 'nope' not found"}

    def test_missing_task_id(self, api_client, saved):
        response = run(api_client, task_id=None, params=[{"identifier": "r1"}])
        assert response.json()["message"] == "Missing required parameter: task_id"

    def test_meta_as_json_string(self, api_client, engine, saved):
        run(
            api_client,
            params=[{"identifier": "r1", "qty": 1}],
            meta='{"user": {"email": "ann@example.com", "profile": {"id": "u1", "name": "Ann"}}}',
        )
        entry = engine.log_storage.get_by_task("task-1")[0]
        assert entry.meta_data["user"]["email"] == "ann@example.com"

    def test_non_json_result_is_reported(self, api_client, engine):
        engine.registry.save(
            FunctionSaveRequest(
                name="ratio",
                code="def ratio(record):\n    return {'ratio': float('nan')}\n",
                type="one_time_trigger",
            )
        )

        response = run(api_client, method="ratio", type="one_time_trigger", params={})

        assert response.status_code == 400
        assert response.json() == {"success": False, "message": "Function ratio returned a non-serializable value"}
