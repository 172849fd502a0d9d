"""Shared fixtures: settings, a fake Redmine behind httpx.MockTransport, and an audit recorder."""

import json
from typing import Callable, Dict, List, Tuple, Union

import httpx
import pytest
from fastapi.testclient import TestClient

from redmine_gateway.config import Settings
from redmine_gateway.main import create_app
from redmine_gateway.services.redmine_client import RedmineClient

Responder = Union[httpx.Response, Callable[[httpx.Request], httpx.Response]]


class FakeRedmine:
    """Routes requests by (method, path) and records every request it sees."""

    def __init__(self):
        self.requests: List[httpx.Request] = []
        self.routes: Dict[Tuple[str, str], List[Responder]] = {}

    def add(self, method: str, path: str, status: int = 200, json_body=None, responder=None):
        """Queue a response; the last one queued for a route is reused once the queue drains."""
        response = responder or httpx.Response(status, json=json_body)
        self.routes.setdefault((method, path), []).append(response)

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        queue = self.routes.get((request.method, request.url.path))
        if not queue:
            return httpx.Response(404, json={"errors": ["Not found"]})
        responder = queue.pop(0) if len(queue) > 1 else queue[0]
        if callable(responder):
            return responder(request)
        return responder

    def calls_to(self, method: str, path: str) -> List[httpx.Request]:
        return [r for r in self.requests if r.method == method and r.url.path == path]

    def issue_body(self, index: int = 0) -> dict:
        return json.loads(self.calls_to("POST", "/issues.json")[index].content)

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handler)


class RecordingAuditSink:
    def __init__(self):
        self.events = []

    def record(self, event):
        self.events.append(event)


def make_settings(**overrides) -> Settings:
    values = dict(
        redmine_url="https://redmine.example.com",
        redmine_api_key="secret-key",
        default_project_id="7",
        require_requester_identity=False,
    )
    values.update(overrides)
    return Settings(_env_file=None, **values)


@pytest.fixture
def settings():
    return make_settings()


@pytest.fixture
def redmine():
    return FakeRedmine()


@pytest.fixture
def audit():
    return RecordingAuditSink()


@pytest.fixture
def redmine_client(settings, redmine):
    return RedmineClient(settings, transport=redmine.transport)


@pytest.fixture
def app_factory(redmine, audit):
    def factory(**overrides):
        app = create_app(make_settings(**overrides), transport=redmine.transport, audit=audit)
        return TestClient(app)
    return factory


@pytest.fixture
def api(app_factory):
    return app_factory()
