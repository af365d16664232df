"""
Gatekeeper — Interception Endpoint Tests
==========================================

What:  HTTP-level tests of the pipeline mounted in the FastAPI app.
Why:   The Starlette adapter decides what "pass-through" means for real
       requests; unit tests of the chain cannot show that.
How:   HTTPX AsyncClient with ASGITransport, no server process.
"""

import pytest
from httpx import AsyncClient, ASGITransport

from conftest import TEST_PASSWORD, TEST_USERNAME, basic_credentials, build_request
from gatekeeper.config import Settings
from gatekeeper.exceptions import ConfigurationError
from gatekeeper.main import create_app
from gatekeeper.middleware.chain import Chain, FailurePolicy
from gatekeeper.middleware.interception import build_chain, get_chain, handler, is_intercepted
from gatekeeper.middleware.logging import LoggingRule


class HeaderRule:
    async def process(self, request, call_next):
        response = await call_next()
        response.headers["x-test"] = "test"
        return response


class ExplodingRule:
    def process(self, request, call_next):
        raise RuntimeError("boom")


def make_settings(**overrides):
    values = {
        "basic_auth_username": TEST_USERNAME,
        "basic_auth_password": TEST_PASSWORD,
    }
    values.update(overrides)
    return Settings(_env_file=None, **values)


def client_for(app, raise_app_exceptions=True):
    transport = ASGITransport(app=app, raise_app_exceptions=raise_app_exceptions)
    return AsyncClient(transport=transport, base_url="http://test")


class TestIsIntercepted:

    def test_root_is_intercepted(self):
        assert is_intercepted("/", ["/api", "/health"])

    def test_excluded_prefix_and_children(self):
        assert not is_intercepted("/api", ["/api"])
        assert not is_intercepted("/api/users/1", ["/api"])
        assert not is_intercepted("/favicon.ico", ["/favicon.ico"])

    def test_prefix_must_end_at_segment(self):
        """/apiary is not under /api."""
        assert is_intercepted("/apiary", ["/api"])

    def test_trailing_slash_in_prefix(self):
        assert not is_intercepted("/static/app.css", ["/static/"])

    def test_empty_prefix_ignored(self):
        assert is_intercepted("/", ["", "/"])


class TestApplication:
    """The default app: LoggingRule → BasicAuthRule in front of the routes."""

    @pytest.mark.asyncio
    async def test_protected_page_requires_credentials(self, test_client):
        response = await test_client.get("/")
        assert response.status_code == 401
        assert response.headers["www-authenticate"] == 'Basic realm="Authorization Required"'
        assert response.headers["cache-control"] == "no-store"
        assert response.text == "Unauthorized"

    @pytest.mark.asyncio
    async def test_wrong_password_rejected(self, test_client):
        response = await test_client.get(
            "/", headers={"Authorization": basic_credentials(TEST_USERNAME, "wrongpass")}
        )
        assert response.status_code == 401

    @pytest.mark.asyncio
    async def test_non_ascii_header_bytes_rejected(self, test_client):
        """Raw latin-1 bytes in the header end in a 401, not a 500."""
        response = await test_client.get(
            "/", headers=[(b"authorization", b"Basic \xe9\xe9\xe9\xe9")]
        )
        assert response.status_code == 401
        assert response.text == "Unauthorized"

    @pytest.mark.asyncio
    async def test_valid_credentials_reach_route(self, test_client):
        response = await test_client.get(
            "/", headers={"Authorization": basic_credentials(TEST_USERNAME, TEST_PASSWORD)}
        )
        assert response.status_code == 200
        assert "authenticated" in response.text
        assert "www-authenticate" not in response.headers

    @pytest.mark.asyncio
    async def test_health_is_not_intercepted(self, test_client):
        response = await test_client.get("/health")
        assert response.status_code == 200
        body = response.json()
        assert body["status"] == "healthy"
        assert body["rules"] == ["LoggingRule", "BasicAuthRule"]

    @pytest.mark.asyncio
    async def test_excluded_unknown_path_reaches_router(self, test_client):
        """Excluded paths skip auth entirely, so a missing route is a plain 404."""
        response = await test_client.get("/api/missing")
        assert response.status_code == 404


class TestPassThroughMerging:

    @pytest.mark.asyncio
    async def test_headers_on_pass_through_reach_client(self):
        app = create_app(make_settings(), chain=Chain([LoggingRule(), HeaderRule()]))
        async with client_for(app) as client:
            response = await client.get("/")

        assert response.status_code == 200
        assert response.headers["x-test"] == "test"
        assert response.headers["content-type"].startswith("text/plain")

    @pytest.mark.asyncio
    async def test_custom_excluded_paths(self):
        app = create_app(make_settings(excluded_paths="/"))
        async with client_for(app) as client:
            response = await client.get("/")
        # "/" is ignored as a prefix, so the root stays protected
        assert response.status_code == 401


class TestFailureHandling:

    @pytest.mark.asyncio
    async def test_rule_failure_surfaces_as_generic_500(self):
        app = create_app(make_settings(), chain=Chain([ExplodingRule()]))
        async with client_for(app, raise_app_exceptions=False) as client:
            response = await client.get("/")

        assert response.status_code == 500
        assert response.json()["error"] == "internal_server_error"
        assert "boom" not in response.text

    @pytest.mark.asyncio
    async def test_pass_through_policy_keeps_site_up(self):
        chain = Chain([ExplodingRule()], on_error=FailurePolicy.PASS_THROUGH)
        app = create_app(make_settings(), chain=chain)
        async with client_for(app) as client:
            response = await client.get("/")
        assert response.status_code == 200

    def test_missing_credentials_prevent_app_creation(self):
        config = Settings(_env_file=None, basic_auth_username="", basic_auth_password="")
        with pytest.raises(ConfigurationError):
            create_app(config)


class TestEntryPoints:

    def test_default_app_shares_handler_chain(self):
        """The app and handler() run one process-wide chain instance."""
        from gatekeeper.main import app
        assert app.state.chain is get_chain()

    def test_explicit_config_builds_own_chain(self):
        app = create_app(make_settings())
        assert app.state.chain is not get_chain()

    def test_build_chain_uses_configured_policy(self):
        chain = build_chain(make_settings(rule_failure_policy="server_error"))
        assert [type(rule).__name__ for rule in chain] == ["LoggingRule", "BasicAuthRule"]
        assert chain.on_error is FailurePolicy.SERVER_ERROR

    @pytest.mark.asyncio
    async def test_handler_runs_default_chain(self):
        response = await handler(build_request("/private"))
        assert response.status_code == 401

    @pytest.mark.asyncio
    async def test_handler_passes_valid_request(self):
        request = build_request(
            "/private",
            headers={"Authorization": basic_credentials(TEST_USERNAME, TEST_PASSWORD)},
        )
        response = await handler(request)
        assert response.status_code == 200
        assert "www-authenticate" not in response.headers
