"""
tests/integration/test_action_routes.py

Integration tests for routes/action_routes.py and the unexpected-stop alert.
Uses FastAPI's TestClient as a context manager so the lifespan starts and stops
cleanly for each test. Outbound calls are intercepted by respx.
"""

from __future__ import annotations

from types import SimpleNamespace
from unittest.mock import AsyncMock

import httpx
import pytest
from fastapi.testclient import TestClient

from app import ALERT_SUBJECT, build_stop_alert, create_app
from cloudflare.dns_provider import UpdateRecordResponse
from models import UpdateError, UpdateResult

_IP_URL = "https://api.ipify.org"
_CF_URL = "https://api.cloudflare.com/client/v4/zones/zone123/dns_records/rec1"


def _cf_ok(ip="1.2.3.4"):
    return {
        "success": True,
        "result": {"id": "rec1", "name": "home.example.com", "content": ip, "type": "A"},
        "errors": [],
        "messages": [],
    }


@pytest.fixture()
def cloudflare_ok(mock_http):
    """Routes the IP provider and the Cloudflare PATCH to happy responses."""
    mock_http.get(_IP_URL).mock(return_value=httpx.Response(200, text="1.2.3.4"))
    route = mock_http.patch(_CF_URL).mock(return_value=httpx.Response(200, json=_cf_ok()))
    return route


# ---------------------------------------------------------------------------
# POST /start-service, /stop-service
# ---------------------------------------------------------------------------


def test_start_service_is_idempotent(settings, cloudflare_ok):
    with TestClient(create_app(settings)) as client:
        first = client.post("/start-service")
        second = client.post("/start-service")
        status = client.get("/status").json()["status"]

    assert first.status_code == 200
    assert first.text == "Service started."
    assert second.text == "Service already running."
    assert status == "running"


def test_stop_service_is_idempotent(settings, cloudflare_ok):
    with TestClient(create_app(settings)) as client:
        client.post("/start-service")
        first = client.post("/stop-service")
        second = client.post("/stop-service")
        data = client.get("/status").json()

    assert first.text == "Service stopped."
    assert second.text == "Service already stopped."
    assert data["status"] == "stopped"
    assert data["next_update_in"] == "-"


def test_stop_service_before_start_reports_stopped(settings):
    with TestClient(create_app(settings)) as client:
        response = client.post("/stop-service")
        status = client.get("/status").json()["status"]
    assert response.text == "Service already stopped."
    assert status == "ready"


# ---------------------------------------------------------------------------
# POST /update
# ---------------------------------------------------------------------------


def test_forced_update_calls_cloudflare(settings, cloudflare_ok):
    with TestClient(create_app(settings)) as client:
        client.post("/start-service")
        response = client.post("/update", params={"force": "true"})

    assert response.status_code == 200
    body = response.json()
    assert body["message"] == "Update requested."
    assert body["result"]["status"] == "success"
    assert body["result"]["api_response"]["result"]["content"] == "1.2.3.4"
    assert cloudflare_ok.called


def test_unforced_update_skips_unchanged_ip(settings, cloudflare_ok):
    with TestClient(create_app(settings)) as client:
        client.post("/start-service")
        client.post("/update", params={"force": "true"})
        calls_before = cloudflare_ok.call_count
        response = client.post("/update")

    assert response.json()["result"] == {"status": "skipped", "ip": "1.2.3.4"}
    assert cloudflare_ok.call_count == calls_before


def test_update_reports_api_rejection(settings, mock_http):
    mock_http.get(_IP_URL).mock(return_value=httpx.Response(200, text="1.2.3.4"))
    mock_http.patch(_CF_URL).mock(
        return_value=httpx.Response(
            400,
            json={"success": False, "result": None, "errors": [{"code": 9005, "message": "Content invalid"}], "messages": []},
        )
    )
    with TestClient(create_app(settings)) as client:
        client.post("/start-service")
        response = client.post("/update", params={"force": "true"})

    result = response.json()["result"]
    assert result["status"] == "error"
    assert result["error"] == "api"
    assert result["api_response"]["errors"][0]["code"] == 9005


def test_update_when_not_running_returns_conflict(settings, cloudflare_ok):
    with TestClient(create_app(settings)) as client:
        response = client.post("/update", params={"force": "true"})

    assert response.status_code == 409
    assert response.json()["result"] is None
    assert not cloudflare_ok.called


# ---------------------------------------------------------------------------
# POST /update-async
# ---------------------------------------------------------------------------


def test_update_async_runs_without_starting_service(settings, cloudflare_ok):
    with TestClient(create_app(settings)) as client:
        response = client.post("/update-async")
        data = client.get("/status").json()

    assert response.status_code == 200
    assert response.json()["result"]["status"] == "success"
    assert data["status"] == "ready"
    assert data["last_result"]["status"] == "success"
    assert data["next_update_in"] == "-"


# ---------------------------------------------------------------------------
# Unexpected-stop alert hook
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
async def test_stop_alert_sent_on_unexpected_stop():
    response = UpdateRecordResponse(success=False, errors=[{"code": 9109, "message": "Invalid access token"}])
    scheduler = SimpleNamespace(
        state=SimpleNamespace(last_result=UpdateResult.failed(UpdateError.API, ip="1.2.3.4", api_response=response))
    )
    alert_service = AsyncMock()

    await build_stop_alert(scheduler, alert_service)(True)

    alert_service.send_alert.assert_awaited_once()
    subject, text = alert_service.send_alert.call_args.args
    assert subject == ALERT_SUBJECT
    assert "Last ip = 1.2.3.4" in text
    assert "Invalid access token" in text


@pytest.mark.asyncio
async def test_stop_alert_not_sent_on_explicit_stop():
    scheduler = SimpleNamespace(state=SimpleNamespace(last_result=None))
    alert_service = AsyncMock()

    await build_stop_alert(scheduler, alert_service)(False)

    alert_service.send_alert.assert_not_called()
