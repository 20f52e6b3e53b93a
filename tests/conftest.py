"""Shared test fixtures for all test modules."""

import asyncio
import json
import os
import random
import re
from datetime import datetime

import httpx
import pytest

# ── Environment overrides (must be set before importing ghosttransfer modules) ─
os.environ["GHOSTTRANSFER_API_BASE_URL"] = "http://api.test"
os.environ["GHOSTTRANSFER_FALLBACK_TIMEZONE"] = "Asia/Karachi"
os.environ["GHOSTTRANSFER_PROGRESS_INTERVAL_MS"] = "5"
os.environ["GHOSTTRANSFER_SUCCESS_DISPLAY_MS"] = "5"

from ghosttransfer.services.api_client import GhostTransferClient  # noqa: E402
from ghosttransfer.services.form_controller import FormController  # noqa: E402
from ghosttransfer.services.progress import ProgressSimulator  # noqa: E402

FIXED_NOW = datetime(2025, 9, 27, 15, 40, 59, 123456)

SHARE_URL = "https://ghosttransfer.tech/s/abc123"


class FakeShareApi:
    """In-memory stand-in for the media and file-share endpoints.

    ``upload_outcomes`` maps a filename to a list of outcomes consumed one per
    attempt: a URL string, or an int HTTP status for a failure. Files without
    outcomes get ``https://cdn.test/<filename>``. ``gates`` holds an upload
    until the event is set.
    """

    def __init__(self):
        self.upload_outcomes: dict[str, list] = {}
        self.gates: dict[str, asyncio.Event] = {}
        self.uploads: list[dict] = []
        self.share_requests: list[dict] = []
        self.share_status = 201
        self.share_body: object = {"id": "abc123", "url": SHARE_URL}

    async def __call__(self, request: httpx.Request) -> httpx.Response:
        if request.url.path == "/api/media/upload-file/":
            return await self._upload(request)
        if request.url.path == "/api/file-share/generate-url/":
            self.share_requests.append(json.loads(request.content))
            if isinstance(self.share_body, str):
                return httpx.Response(self.share_status, text=self.share_body)
            return httpx.Response(self.share_status, json=self.share_body)
        return httpx.Response(404, json={"detail": "Not found."})

    async def _upload(self, request: httpx.Request) -> httpx.Response:
        body = request.content
        filename = re.search(rb'filename="([^"]+)"', body).group(1).decode()
        public = re.search(rb'name="public"\r\n\r\n(\w+)', body).group(1).decode()
        self.uploads.append({"filename": filename, "public": public})

        gate = self.gates.get(filename)
        if gate is not None:
            await gate.wait()

        outcomes = self.upload_outcomes.get(filename)
        outcome = outcomes.pop(0) if outcomes else f"https://cdn.test/{filename}"
        if isinstance(outcome, int):
            return httpx.Response(outcome, json={"detail": "Upload failed."})
        return httpx.Response(201, json={"url": outcome, "public": public == "true"})


@pytest.fixture
def fake_api():
    return FakeShareApi()


@pytest.fixture
def api_client(fake_api):
    return GhostTransferClient(
        base_url="http://api.test",
        transport=httpx.MockTransport(fake_api),
    )


def make_controller(api_client, **kwargs) -> FormController:
    options = {
        "progress": ProgressSimulator(random.Random(7)),
        "progress_interval": 0.001,
        "success_display": 10.0,
        "now": lambda: FIXED_NOW,
    }
    options.update(kwargs)
    return FormController(api_client, **options)


@pytest.fixture
async def controller(api_client):
    ctl = make_controller(api_client)
    yield ctl
    await ctl.aclose()


@pytest.fixture
async def controller_factory(api_client):
    """Build extra controllers with custom timings; closed after the test."""
    created: list[FormController] = []

    def factory(**kwargs) -> FormController:
        ctl = make_controller(api_client, **kwargs)
        created.append(ctl)
        return ctl

    yield factory
    for ctl in created:
        await ctl.aclose()
