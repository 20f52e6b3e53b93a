"""Tests for the local web UI: session JSON API and HTML pages."""

import time
from datetime import datetime

import httpx
import pytest
from fastapi.testclient import TestClient

from ghosttransfer import session
from ghosttransfer.main import app
from ghosttransfer.services.api_client import GhostTransferClient
from ghosttransfer.services.form_controller import FormController
from ghosttransfer.services.validation import IP_INVALID, PASSWORD_INVALID

FIXED_NOW = datetime(2025, 9, 27, 15, 40, 59)
SHARE_URL = "https://ghosttransfer.tech/s/abc123"


@pytest.fixture
def web(fake_api):
    controller = FormController(
        GhostTransferClient(base_url="http://api.test", transport=httpx.MockTransport(fake_api)),
        progress_interval=0.001,
        success_display=10.0,
        now=lambda: FIXED_NOW,
    )
    session.init_session(controller)
    with TestClient(app) as client:
        yield client
    assert session._controller is None


def _wait_for_uploads(client: TestClient, timeout: float = 3.0) -> dict:
    deadline = time.monotonic() + timeout
    while True:
        state = client.get("/api/session").json()
        if all(e["status"] not in ("ready", "uploading") for e in state["entries"]):
            return state
        if time.monotonic() > deadline:
            raise AssertionError("uploads did not finish")
        time.sleep(0.01)


class TestSessionApi:
    def test_initial_state(self, web):
        state = web.get("/api/session").json()
        assert state["entries"] == []
        assert state["unlimited_views"] is True
        assert state["can_submit"] is False
        assert state["result"] is None

    def test_fields_update_and_live_password_error(self, web):
        resp = web.patch("/api/session/fields", json={"message": "hi", "password": "abc"})
        assert resp.status_code == 200
        state = resp.json()
        assert state["message"] == "hi"
        assert state["errors"] == {"password": PASSWORD_INVALID}
        assert state["can_submit"] is True

    def test_max_views_input_is_filtered(self, web):
        web.patch("/api/session/fields", json={"max_views": "25"})
        state = web.patch("/api/session/fields", json={"max_views": "2500"}).json()
        assert state["max_views"] == "25"
        assert state["unlimited_views"] is False

    def test_unknown_lifetime_rejected(self, web):
        resp = web.patch("/api/session/fields", json={"lifetime": "2w"})
        assert resp.status_code == 422

    def test_views_presets(self, web):
        state = web.post("/api/session/views", json={"views": 25}).json()
        assert state["max_views"] == "25"
        assert state["unlimited_views"] is False
        state = web.post("/api/session/views", json={"views": None}).json()
        assert state["max_views"] == ""
        assert state["unlimited_views"] is True

    def test_views_rejects_non_preset(self, web):
        resp = web.post("/api/session/views", json={"views": 7})
        assert resp.status_code == 400

    def test_unknown_file_returns_404(self, web):
        assert web.post("/api/session/files/nope/retry").status_code == 404
        resp = web.delete("/api/session/files/nope")
        assert resp.status_code == 404
        assert resp.json()["detail"] == "File not found"

    def test_upload_files_then_remove_one(self, web, fake_api):
        resp = web.post(
            "/api/session/files",
            files=[
                ("files", ("a.txt", b"aaa", "text/plain")),
                ("files", ("b.txt", b"bbbb", "text/plain")),
            ],
        )
        assert resp.status_code == 200
        assert [e["name"] for e in resp.json()["entries"]] == ["a.txt", "b.txt"]

        state = _wait_for_uploads(web)
        assert {e["status"] for e in state["entries"]} == {"success"}
        assert sorted(state["uploaded_urls"]) == ["https://cdn.test/a.txt", "https://cdn.test/b.txt"]
        assert state["can_submit"] is True

        first = next(e for e in state["entries"] if e["name"] == "a.txt")
        assert first["size_bytes"] == 3
        state = web.delete(f"/api/session/files/{first['id']}").json()
        assert state["uploaded_urls"] == ["https://cdn.test/b.txt"]

    def test_failed_upload_can_be_retried(self, web, fake_api):
        fake_api.upload_outcomes["c.txt"] = [503]
        web.post("/api/session/files", files=[("files", ("c.txt", b"c", "text/plain"))])
        state = _wait_for_uploads(web)
        entry = state["entries"][0]
        assert entry["status"] == "error"
        assert state["can_submit"] is False

        web.post(f"/api/session/files/{entry['id']}/retry")
        state = _wait_for_uploads(web)
        assert state["entries"][0]["status"] == "success"
        assert state["uploaded_urls"] == ["https://cdn.test/c.txt"]

    def test_submit_validation_errors(self, web, fake_api):
        web.patch("/api/session/fields", json={"message": "hi", "allowed_ip": "1.2.3"})
        state = web.post("/api/session/submit").json()
        assert state["errors"] == {"allowed_ip": IP_INVALID}
        assert state["result"] is None
        assert fake_api.share_requests == []


class TestPages:
    def test_compose_page(self, web):
        resp = web.get("/")
        assert resp.status_code == 200
        assert "Create Secret Link" in resp.text
        assert 'id="err-allowed_ip"' in resp.text
        assert '<option value="1h">1 Hour</option>' in resp.text

    def test_created_without_result_is_404(self, web):
        resp = web.get("/created")
        assert resp.status_code == 404
        assert "Nothing saved or it has expired." in resp.text
        assert "Go Home" in resp.text

    def test_submit_then_created_page(self, web, fake_api):
        web.patch("/api/session/fields", json={"message": "secret note", "lifetime": "5m"})
        state = web.post("/api/session/submit").json()
        assert state["result"]["id"] == "abc123"
        assert fake_api.share_requests[0]["expires_at"] == "2025-09-27T15:45:59"

        resp = web.get("/created")
        assert resp.status_code == 200
        assert f'value="{SHARE_URL}"' in resp.text
        encoded = "https%3A%2F%2Fghosttransfer.tech%2Fs%2Fabc123"
        assert f"size=240x240&amp;data={encoded}" in resp.text
        assert f"size=480x480&amp;data={encoded}" in resp.text

    def test_created_reset_redirects_home(self, web):
        web.patch("/api/session/fields", json={"message": "m"})
        web.post("/api/session/submit")

        resp = web.post("/created/reset", follow_redirects=False)
        assert resp.status_code == 303
        assert resp.headers["location"] == "/"
        assert web.get("/api/session").json()["result"] is None
        assert web.get("/created").status_code == 404

    def test_returning_home_starts_a_fresh_form(self, web):
        web.patch("/api/session/fields", json={"message": "m"})
        web.post("/api/session/submit")
        web.get("/")
        state = web.get("/api/session").json()
        assert state["result"] is None
        assert state["message"] == ""


def test_health(web):
    data = web.get("/api/health").json()
    assert data["status"] == "ok"
    assert data["api_base_url"] == "http://api.test"
