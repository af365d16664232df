"""
Gatekeeper — Test Configuration (conftest.py)
===============================================

What:  Shared pytest fixtures for the entire test suite.
Why:   Provides reusable test infrastructure (requests, rules, API client).
How:   pytest auto-discovers conftest.py and makes fixtures available to all tests.

Fixture Hierarchy:
    Function-scoped (created fresh for each test):
    ├── make_request: Factory for Starlette requests built from a raw scope
    ├── auth_header: Factory for Basic Authorization header values
    ├── basic_auth_rule: BasicAuthRule with the test credentials
    └── test_client: HTTPX AsyncClient for endpoint testing
"""

import base64
import os

# Credentials must be in the environment BEFORE any gatekeeper import:
# gatekeeper.main builds the chain at import time and fails fast without them.
os.environ["BASIC_AUTH_USERNAME"] = "admin"
os.environ["BASIC_AUTH_PASSWORD"] = "s3cret"
os.environ["LOG_LEVEL"] = "WARNING"

from typing import Dict, Optional

import pytest
import pytest_asyncio
from httpx import AsyncClient, ASGITransport
from starlette.requests import Request
from starlette.responses import Response

from gatekeeper.middleware.basic_auth import BasicAuthRule

TEST_USERNAME = "admin"
TEST_PASSWORD = "s3cret"


def build_request(
    path: str = "/",
    method: str = "GET",
    headers: Optional[Dict[str, str]] = None,
) -> Request:
    """Build a Starlette request without a server."""
    scope = {
        "type": "http",
        "http_version": "1.1",
        "method": method,
        "scheme": "http",
        "server": ("testserver", 80),
        "client": ("127.0.0.1", 50000),
        "path": path,
        "raw_path": path.encode("latin-1"),
        "root_path": "",
        "query_string": b"",
        "headers": [
            (key.lower().encode("latin-1"), value.encode("latin-1"))
            for key, value in (headers or {}).items()
        ],
    }
    return Request(scope)


def basic_credentials(username: str, password: str) -> str:
    """Authorization header value for the given username and password."""
    token = base64.b64encode(f"{username}:{password}".encode("utf-8")).decode("ascii")
    return f"Basic {token}"


class RecordingRule:
    """Test rule that records its invocation and continues."""

    def __init__(self, name: str, log: list):
        self.name = name
        self.log = log

    def process(self, request, call_next):
        self.log.append(self.name)
        return call_next()


class ShortCircuitRule:
    """Test rule that answers the request itself."""

    def __init__(self, response: Response, log: Optional[list] = None):
        self.response = response
        self.log = log if log is not None else []

    def process(self, request, call_next):
        self.log.append("short-circuit")
        return self.response


@pytest.fixture
def make_request():
    """Factory fixture: make_request(path, method, headers) → Request."""
    return build_request


@pytest.fixture
def auth_header():
    """Factory fixture: auth_header(username, password) → 'Basic ...'."""
    return basic_credentials


@pytest.fixture
def basic_auth_rule():
    """BasicAuthRule configured with the test credentials."""
    return BasicAuthRule(username=TEST_USERNAME, password=TEST_PASSWORD)


@pytest_asyncio.fixture
async def test_client():
    """
    Provides an async HTTP test client for endpoint testing.

    Usage:
        async def test_health(test_client):
            response = await test_client.get("/health")
            assert response.status_code == 200
    """
    from gatekeeper.main import app
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client
