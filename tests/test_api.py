"""Tests for the HTTP surface."""

import json
from unittest.mock import AsyncMock, patch

import httpx
import pytest
import respx
from fastapi.testclient import TestClient

from lmproxy.app.core.config import settings
from lmproxy.app.main import create_app

LM_URL = "https://acme.logicmonitor.com/santaba/rest"
CREDENTIALS = {"X-LM-Account": "acme", "X-LM-Bearer-Token": "secret-token"}


@pytest.fixture
def app():
    return create_app()


@pytest.fixture
def client(app):
    with TestClient(app) as test_client:
        yield test_client


class TestHealth:
    def test_health(self, client):
        response = client.get("/health")

        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "ok"
        assert data["service"] == "lmproxy"
        assert "version" in data

    def test_request_id_echoed(self, client):
        response = client.get("/health", headers={"X-Request-ID": "req-123"})

        assert response.headers["X-Request-ID"] == "req-123"

    def test_request_id_generated(self, client):
        response = client.get("/health")

        assert len(response.headers["X-Request-ID"]) == 36


class TestListTools:
    def test_lists_catalog(self, client):
        response = client.get("/tools")

        assert response.status_code == 200
        names = [tool["name"] for tool in response.json()["tools"]]
        assert len(names) == 26
        assert "lm_create_device" in names


class TestInvokeTool:
    """Test POST /tools/{name}."""

    @respx.mock
    def test_success_wrapped_as_text_content(self, client):
        respx.get(f"{LM_URL}/device/devices/5").mock(
            return_value=httpx.Response(200, json={"id": 5, "displayName": "web-05"})
        )

        response = client.post("/tools/lm_get_device", json={"deviceId": 5}, headers=CREDENTIALS)

        assert response.status_code == 200
        data = response.json()
        assert data["isError"] is False
        assert data["content"][0]["type"] == "text"
        assert json.loads(data["content"][0]["text"]) == {"id": 5, "displayName": "web-05"}

    @respx.mock
    def test_batch_create(self, client):
        route = respx.post(f"{LM_URL}/device/devices").mock(
            side_effect=[
                httpx.Response(200, json={"id": 1, "displayName": "a", "name": "10.0.0.1"}),
                httpx.Response(400, json={"errmsg": "Duplicate device"}),
            ]
        )

        response = client.post(
            "/tools/lm_create_device",
            json={
                "devices": [
                    {"displayName": "a", "name": "10.0.0.1", "hostGroupIds": [1], "preferredCollectorId": 1},
                    {"displayName": "b", "name": "10.0.0.2", "hostGroupIds": [1], "preferredCollectorId": 1},
                ],
                "batchOptions": {"maxConcurrent": 1},
            },
            headers=CREDENTIALS,
        )

        assert response.status_code == 200
        result = json.loads(response.json()["content"][0]["text"])
        assert result["summary"] == {"total": 2, "succeeded": 1, "failed": 1}
        assert result["devices"][1]["error"] == "LogicMonitor API error: Duplicate device (400)"
        assert route.call_count == 2

    def test_unknown_tool(self, client):
        response = client.post("/tools/lm_reboot", json={}, headers=CREDENTIALS)

        assert response.status_code == 404
        assert response.json() == {"error": "unknown_tool", "message": "Unknown tool: lm_reboot"}

    def test_missing_credentials(self, client):
        with patch.object(settings, "lm_account", ""), patch.object(settings, "lm_bearer_token", ""):
            response = client.post("/tools/lm_get_device", json={"deviceId": 1})

        assert response.status_code == 400
        assert response.json()["error"] == "credentials_missing"

    @respx.mock
    def test_settings_credentials_fallback(self, client):
        route = respx.get("https://fallback.logicmonitor.com/santaba/rest/device/devices/1").mock(
            return_value=httpx.Response(200, json={"id": 1})
        )

        with patch.object(settings, "lm_account", "fallback"), \
                patch.object(settings, "lm_bearer_token", "env-token"):
            response = client.post("/tools/lm_get_device", json={"deviceId": 1})

        assert response.status_code == 200
        assert route.calls.last.request.headers["Authorization"] == "Bearer env-token"

    def test_invalid_json(self, client):
        response = client.post(
            "/tools/lm_get_device",
            content=b"{not json",
            headers={**CREDENTIALS, "Content-Type": "application/json"},
        )

        assert response.status_code == 400
        assert response.json()["error"] == "validation_error"

    def test_validation_error(self, client):
        response = client.post("/tools/lm_get_device", json={}, headers=CREDENTIALS)

        assert response.status_code == 400
        body = response.json()
        assert body["error"] == "validation_error"
        assert body["message"].startswith("Validation error:")

    @respx.mock
    def test_upstream_error(self, client):
        respx.get(f"{LM_URL}/device/devices/9").mock(
            return_value=httpx.Response(404, json={"errmsg": "Device not found"})
        )

        response = client.post("/tools/lm_get_device", json={"deviceId": 9}, headers=CREDENTIALS)

        assert response.status_code == 502
        assert response.json() == {
            "error": "upstream_error",
            "message": "LogicMonitor API error: Device not found (404)",
        }

    @respx.mock
    def test_upstream_rate_limit(self, client):
        respx.get(f"{LM_URL}/device/devices/9").mock(
            return_value=httpx.Response(429, headers={"Retry-After": "30"})
        )

        response = client.post("/tools/lm_get_device", json={"deviceId": 9}, headers=CREDENTIALS)

        assert response.status_code == 429
        assert response.json()["error"] == "rate_limited"
        assert response.headers["Retry-After"] == "30"

    def test_single_item_failure(self, client):
        with patch(
            "lmproxy.app.providers.logicmonitor.LogicMonitorClient.delete_device",
            new_callable=AsyncMock,
            side_effect=RuntimeError("socket closed"),
        ):
            response = client.post("/tools/lm_delete_device", json={"deviceId": 3}, headers=CREDENTIALS)

        assert response.status_code == 422
        assert response.json() == {"error": "operation_failed", "message": "socket closed"}


class TestUnhandledErrors:
    def test_generic_500_hides_message(self, app):
        with patch("lmproxy.app.api.tools.call_tool", new_callable=AsyncMock, side_effect=RuntimeError("kaboom")), \
                patch.object(settings, "debug", False):
            with TestClient(app, raise_server_exceptions=False) as client:
                response = client.post(
                    "/tools/lm_get_device",
                    json={"deviceId": 1},
                    headers={**CREDENTIALS, "X-Request-ID": "req-500"},
                )

        assert response.status_code == 500
        assert response.json() == {
            "error": "internal_error",
            "message": "Internal server error",
            "request_id": "req-500",
        }

    def test_debug_mode_includes_message(self, app):
        with patch("lmproxy.app.api.tools.call_tool", new_callable=AsyncMock, side_effect=RuntimeError("kaboom")), \
                patch.object(settings, "debug", True):
            with TestClient(app, raise_server_exceptions=False) as client:
                response = client.post("/tools/lm_get_device", json={"deviceId": 1}, headers=CREDENTIALS)

        assert response.status_code == 500
        assert response.json()["message"] == "kaboom"
