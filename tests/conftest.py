"""Shared fixtures for GoodDay MCP tests."""

import json
import os
import tempfile

# Keep logs and config.env lookups out of the real home directory
os.environ.setdefault("GOODDAY_DATA_DIR", tempfile.mkdtemp(prefix="goodday-mcp-tests-"))

import httpx
import pytest

from goodday_mcp.api.client import GoodDayClient
from goodday_mcp.tools import task_tools

BASE_URL = "https://goodday.example"


class FakeGoodDay:
    """Route table behind an httpx.MockTransport; records every request."""

    def __init__(self):
        self.routes = {}
        self.requests = []

    def add(self, method, path, json=None, status=200, content=None, headers=None):
        self.routes[(method, path)] = (status, json, content, headers)
        return self

    def fail(self, method, path, exc):
        self.routes[(method, path)] = exc
        return self

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        route = self.routes.get((request.method, request.url.path))
        if route is None:
            return httpx.Response(404, json={"error": "not found"})
        if isinstance(route, Exception):
            raise route
        status, json_body, content, headers = route
        if content is not None:
            return httpx.Response(status, content=content, headers=headers)
        if json_body is None:
            return httpx.Response(status, headers=headers)
        return httpx.Response(status, json=json_body, headers=headers)

    def paths(self):
        return [(r.method, r.url.path) for r in self.requests]

    def body(self, index=-1):
        return json.loads(self.requests[index].content)


@pytest.fixture
def fake():
    return FakeGoodDay()


@pytest.fixture
def client(fake):
    return GoodDayClient(
        "test-api-key",
        BASE_URL,
        default_from_user="default-user",
        transport=httpx.MockTransport(fake.handler),
    )


@pytest.fixture
def tools_client(client):
    """Inject the fake-backed client into the tool module."""
    task_tools.set_client(client)
    yield client
    task_tools.set_client(None)


@pytest.fixture
def tmp_data_dir(tmp_path, monkeypatch):
    """Point Config at an isolated data directory."""
    from goodday_mcp.config import Config

    data_dir = tmp_path / ".goodday-mcp"
    monkeypatch.setenv("GOODDAY_DATA_DIR", str(data_dir))
    monkeypatch.setattr(Config, "DATA_DIR", data_dir)
    monkeypatch.setattr(Config, "LOG_DIR", data_dir / "logs")
    yield data_dir


PROJECTS = [
    {"id": "1", "name": "Alpha Team", "status": "active", "progress": 40},
    {"id": "2", "name": "Beta", "description": "Second project"},
]

USERS = [
    {"id": "u1", "firstName": "John", "lastName": "Doe", "email": "john@example.com", "role": "Dev"},
    {"id": "u2", "firstName": "Jane", "lastName": "Smith", "email": "jane@example.com"},
]

TASKS = [
    {"id": "t1", "title": "Write docs", "status": "Open", "priority": "high", "assigneeName": "John Doe"},
    {"id": "t2", "title": "Fix bug", "status": "Done", "progress": 100},
]
