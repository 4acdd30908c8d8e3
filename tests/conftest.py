"""Shared fixtures for aws-creds-sync tests."""
import asyncio
import json
from pathlib import Path

import httpx
import pytest

from aws_creds_sync.sync.domains.config_loader import TargetSettings

CIRCLECI_URL = "https://circleci.com/api/v2/"
TERRAFORM_URL = "https://app.terraform.io/api/v2/"


class FakeApi:
    """Records requests and answers them from a route table.

    Routes map (method, raw path including query) to (status, json body).
    Unknown routes answer 404.
    """

    def __init__(self, routes=None):
        self.routes = dict(routes or {})
        self.requests = []

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        key = (request.method, request.url.raw_path.decode())
        if key not in self.routes:
            return httpx.Response(404, json={"message": "Not found"})
        status, body = self.routes[key]
        if body is None:
            return httpx.Response(status)
        return httpx.Response(status, json=body)

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handler)

    def calls(self, method: str):
        """Return (path, decoded body) for every request with the given method."""
        return [
            (r.url.path, json.loads(r.content) if r.content else None)
            for r in self.requests
            if r.method == method
        ]


@pytest.fixture(autouse=True)
def temp_home(tmp_path, monkeypatch):
    """Isolate config lookup from the real home directory."""
    fake_home = tmp_path / "home"
    fake_home.mkdir()
    monkeypatch.setenv("HOME", str(fake_home))
    monkeypatch.setattr(Path, "home", lambda: fake_home)
    monkeypatch.delenv("AWS_CREDS_SYNC_CONFIG", raising=False)
    return fake_home


@pytest.fixture
def full_env():
    """Environment with every credential and both API tokens set."""
    return {
        "CIRCLE_CI_API_TOKEN": "circle-token",
        "TF_API_TOKEN": "tf-token",
        "AWS_ACCESS_KEY_ID": "AKIAEXAMPLE",
        "AWS_SECRET_ACCESS_KEY": "secret-key",
        "AWS_SESSION_TOKEN": "session-token",
    }


@pytest.fixture
def circleci_settings():
    return TargetSettings(
        name="circleci",
        organization="acme",
        api_url=CIRCLECI_URL,
        api_token="circle-token",
        vcs="gh",
    )


@pytest.fixture
def terraform_settings():
    return TargetSettings(
        name="terraform",
        organization="acme",
        api_url=TERRAFORM_URL,
        api_token="tf-token",
    )


@pytest.fixture
def fake_api():
    """Empty FakeApi; tests add routes before making requests."""
    return FakeApi()


class SlowWriteApi(FakeApi):
    """FakeApi whose POST and PATCH responses are delayed.

    Tracks how many writes are in flight at once in `peak_in_flight`.
    """

    def __init__(self, routes=None, delay=0.05):
        super().__init__(routes)
        self.delay = delay
        self.in_flight = 0
        self.peak_in_flight = 0

    async def async_handler(self, request: httpx.Request) -> httpx.Response:
        if request.method not in ("POST", "PATCH"):
            return self.handler(request)
        self.in_flight += 1
        self.peak_in_flight = max(self.peak_in_flight, self.in_flight)
        try:
            await asyncio.sleep(self.delay)
            return self.handler(request)
        finally:
            self.in_flight -= 1

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.async_handler)


@pytest.fixture
def slow_write_api():
    """Empty SlowWriteApi; tests add routes before making requests."""
    return SlowWriteApi()
