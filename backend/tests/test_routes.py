"""Tests for API routes."""
from unittest.mock import AsyncMock, Mock

import httpx
import pytest
from fastapi.testclient import TestClient

from firecrawl_dashboard.config import Settings
from firecrawl_dashboard.dependencies import get_upstream
from firecrawl_dashboard.errors import UpstreamError, UpstreamTimeoutError
from firecrawl_dashboard.main import create_app
from firecrawl_dashboard.services import CredentialStore, FirecrawlClient, SessionAuthenticator

TOOLS = ["scrape", "crawl", "map", "extract", "agent"]

VALID_BODIES = {
    "scrape": {"url": "https://example.com", "formats": ["markdown"]},
    "crawl": {"url": "https://example.com", "limit": 5},
    "map": {"url": "https://example.com", "limit": 50},
    "extract": {"urls": ["https://example.com"], "prompt": "Extract the title"},
    "agent": {"prompt": "Find the company founding year"},
}


@pytest.fixture
def upstream():
    """Create a fake Firecrawl client."""
    fake = Mock(spec=FirecrawlClient)
    fake.scrape = AsyncMock(return_value={"success": True, "data": {"markdown": "# Example"}})
    fake.crawl = AsyncMock(
        return_value={"status": "completed", "creditsUsed": 2, "data": [{"markdown": "p1"}, {"markdown": "p2"}]}
    )
    fake.map = AsyncMock(return_value={"success": True, "links": ["https://example.com/a"]})
    fake.extract = AsyncMock(return_value={"success": True, "status": "completed", "data": {"title": "Example"}})
    fake.agent = AsyncMock(
        return_value={"success": True, "status": "completed", "data": "Founded in 2019", "creditsUsed": 9}
    )
    return fake


@pytest.fixture
def app(upstream):
    """Create an app with test users and the fake upstream."""
    config = Settings(session_secret="route-secret", firecrawl_api_key="fc-test")
    store = CredentialStore({"admin": "admin123", "alice": "Wonderland"})
    authenticator = SessionAuthenticator(store, secret="route-secret", ttl_seconds=600)
    application = create_app(config=config, store=store, authenticator=authenticator)
    application.dependency_overrides[get_upstream] = lambda: upstream
    return application


@pytest.fixture
def client(app):
    """Create a test client."""
    return TestClient(app)


def login(client: TestClient, username: str, password: str) -> dict:
    response = client.post("/login", json={"username": username, "password": password})
    assert response.status_code == 200
    return {"Authorization": f"Bearer {response.json()['token']}"}


@pytest.fixture
def admin_headers(client):
    return login(client, "admin", "admin123")


@pytest.fixture
def alice_headers(client):
    return login(client, "alice", "Wonderland")


class TestHealthEndpoints:
    """Tests for health and root endpoints."""

    def test_health_check(self, client):
        response = client.get("/health")
        assert response.status_code == 200
        assert response.json()["status"] == "healthy"

    def test_root_endpoint(self, client):
        response = client.get("/")
        assert response.status_code == 200
        assert "version" in response.json()


class TestAuthEndpoints:
    """Tests for login and session handling."""

    def test_login_success_sets_cookie(self, client):
        response = client.post("/login", json={"username": "alice", "password": "Wonderland"})
        assert response.status_code == 200
        data = response.json()
        assert data["username"] == "alice"
        assert data["token"]
        assert "session_token" in response.cookies

    def test_login_failures_are_indistinguishable(self, client):
        wrong_password = client.post("/login", json={"username": "alice", "password": "nope"})
        unknown_user = client.post("/login", json={"username": "mallory", "password": "Wonderland"})
        missing = client.post("/login", json={})

        for response in (wrong_password, unknown_user, missing):
            assert response.status_code == 401
            assert response.json() == {"success": False, "error": "Unauthorized"}

    def test_me(self, client, admin_headers, alice_headers):
        assert client.get("/api/me", headers=admin_headers).json()["is_admin"] is True
        me = client.get("/api/me", headers=alice_headers).json()
        assert me["username"] == "alice"
        assert me["is_admin"] is False

    def test_cookie_session(self, client, upstream):
        client.post("/login", json={"username": "alice", "password": "Wonderland"})
        response = client.post("/api/scrape", json=VALID_BODIES["scrape"])
        assert response.status_code == 200
        upstream.scrape.assert_awaited_once()

    def test_logout_clears_cookie(self, client):
        client.post("/login", json={"username": "alice", "password": "Wonderland"})
        client.post("/logout")
        assert client.get("/api/me").status_code == 401


class TestSessionGate:
    """Tool endpoints never reach the upstream without a valid session."""

    @pytest.mark.parametrize("tool", TOOLS)
    def test_no_session(self, client, upstream, tool):
        response = client.post(f"/api/{tool}", json=VALID_BODIES[tool])
        assert response.status_code == 401
        assert response.json()["error"] == "Unauthorized"
        getattr(upstream, tool).assert_not_awaited()

    @pytest.mark.parametrize("tool", TOOLS)
    def test_bad_token(self, client, upstream, tool):
        headers = {"Authorization": "Bearer not-a-token"}
        response = client.post(f"/api/{tool}", json=VALID_BODIES[tool], headers=headers)
        assert response.status_code == 401
        getattr(upstream, tool).assert_not_awaited()

    def test_no_session_wins_over_invalid_body(self, client, upstream):
        response = client.post("/api/agent", json={"prompt": "short"})
        assert response.status_code == 401
        upstream.agent.assert_not_awaited()

    @pytest.mark.parametrize("tool", TOOLS)
    def test_no_session_wins_over_malformed_json(self, client, upstream, tool):
        response = client.post(
            f"/api/{tool}", content=b"{not json", headers={"Content-Type": "application/json"}
        )
        assert response.status_code == 401
        assert response.json() == {"success": False, "error": "Unauthorized"}
        getattr(upstream, tool).assert_not_awaited()

    def test_bad_token_wins_over_wrong_field_type(self, client, upstream):
        headers = {"Authorization": "Bearer not-a-token"}
        response = client.post("/api/crawl", json={"url": "https://a.com", "limit": "lots"}, headers=headers)
        assert response.status_code == 401
        upstream.crawl.assert_not_awaited()

    def test_malformed_json_with_session_is_bad_request(self, client, alice_headers, upstream):
        headers = {**alice_headers, "Content-Type": "application/json"}
        response = client.post("/api/agent", content=b"{not json", headers=headers)
        assert response.status_code == 400
        assert response.json()["success"] is False
        upstream.agent.assert_not_awaited()

    def test_malformed_json_with_cookie_session_is_bad_request(self, client, upstream):
        client.post("/login", json={"username": "alice", "password": "Wonderland"})
        response = client.post(
            "/api/scrape", content=b"{not json", headers={"Content-Type": "application/json"}
        )
        assert response.status_code == 400
        upstream.scrape.assert_not_awaited()


class TestToolEndpoints:
    """Tests for the proxied tools."""

    def test_scrape(self, client, alice_headers, upstream):
        response = client.post("/api/scrape", json=VALID_BODIES["scrape"], headers=alice_headers)
        assert response.status_code == 200
        body = response.json()
        assert body["success"] is True
        assert body["data"]["markdown"] == "# Example"
        assert body["data"]["output"] == "# Example"
        assert "duration" in body
        request = upstream.scrape.await_args.args[0]
        assert request.url == "https://example.com"

    def test_crawl(self, client, alice_headers):
        response = client.post("/api/crawl", json=VALID_BODIES["crawl"], headers=alice_headers)
        body = response.json()
        assert response.status_code == 200
        assert [page["markdown"] for page in body["data"]["data"]] == ["p1", "p2"]
        assert body["creditsUsed"] == 2

    def test_map(self, client, alice_headers, upstream):
        response = client.post(
            "/api/map", json={"url": "https://example.com", "search": "", "limit": 50}, headers=alice_headers
        )
        assert response.status_code == 200
        assert response.json()["data"]["links"] == ["https://example.com/a"]
        assert upstream.map.await_args.args[0].search is None

    def test_extract_accepts_bare_url(self, client, alice_headers, upstream):
        response = client.post(
            "/api/extract",
            json={"urls": "https://example.com", "prompt": "Extract the title"},
            headers=alice_headers,
        )
        assert response.status_code == 200
        assert response.json()["data"]["output"] == {"title": "Example"}
        assert upstream.extract.await_args.args[0].urls == ["https://example.com"]

    def test_agent_success_envelope(self, client, alice_headers):
        response = client.post("/api/agent", json=VALID_BODIES["agent"], headers=alice_headers)
        assert response.status_code == 200
        body = response.json()
        assert body["success"] is True
        assert set(body["data"]) == {"output", "raw", "duration", "creditsUsed"}
        assert body["data"]["output"] == "Founded in 2019"
        assert body["data"]["creditsUsed"] == 9
        assert "error" not in body

    @pytest.mark.parametrize("prompt", ["", "   ", "too short", "123456789"])
    def test_agent_short_prompt_rejected(self, client, alice_headers, upstream, prompt):
        response = client.post("/api/agent", json={"prompt": prompt}, headers=alice_headers)
        assert response.status_code == 400
        assert response.json()["success"] is False
        upstream.agent.assert_not_awaited()

    def test_agent_missing_prompt(self, client, alice_headers, upstream):
        response = client.post("/api/agent", json={"urls": ["https://a.com"]}, headers=alice_headers)
        assert response.status_code == 400
        assert "prompt" in response.json()["error"]
        upstream.agent.assert_not_awaited()

    def test_agent_ten_character_prompt_proceeds(self, client, alice_headers, upstream):
        response = client.post("/api/agent", json={"prompt": "1234567890"}, headers=alice_headers)
        assert response.status_code == 200
        upstream.agent.assert_awaited_once()

    @pytest.mark.parametrize("urls", ["https://a.com", ["https://a.com", "  ", ""]])
    def test_agent_url_normalization(self, client, alice_headers, upstream, urls):
        body = {"prompt": "Find the company founding year", "urls": urls}
        response = client.post("/api/agent", json=body, headers=alice_headers)
        assert response.status_code == 200
        assert upstream.agent.await_args.args[0].urls == ["https://a.com"]

    def test_output_fallback_to_result(self, client, alice_headers, upstream):
        upstream.agent.return_value = {"result": "X"}
        response = client.post("/api/agent", json=VALID_BODIES["agent"], headers=alice_headers)
        assert response.json()["data"]["output"] == "X"

    @pytest.mark.parametrize("tool", ["scrape", "crawl", "map"])
    def test_missing_url(self, client, alice_headers, upstream, tool):
        response = client.post(f"/api/{tool}", json={}, headers=alice_headers)
        assert response.status_code == 400
        assert response.json()["error"] == "A URL is required"
        getattr(upstream, tool).assert_not_awaited()

    def test_invalid_field_type(self, client, alice_headers, upstream):
        body = {"url": "https://example.com", "limit": "many"}
        response = client.post("/api/crawl", json=body, headers=alice_headers)
        assert response.status_code == 400
        assert "limit" in response.json()["error"]
        upstream.crawl.assert_not_awaited()

    def test_upstream_error(self, client, alice_headers, upstream):
        upstream.scrape.side_effect = UpstreamError("HTTP 402: Payment required")
        response = client.post("/api/scrape", json=VALID_BODIES["scrape"], headers=alice_headers)
        assert response.status_code == 500
        body = response.json()
        assert body == {"success": False, "error": "HTTP 402: Payment required", "duration": body["duration"]}

    def test_structured_unexpected_error(self, client, alice_headers, upstream):
        upstream.extract.side_effect = RuntimeError({"code": "BAD_SCHEMA"})
        response = client.post("/api/extract", json=VALID_BODIES["extract"], headers=alice_headers)
        assert response.status_code == 500
        assert "BAD_SCHEMA" in response.json()["error"]

    def test_agent_timeout(self, client, alice_headers, upstream):
        upstream.agent.side_effect = UpstreamTimeoutError(
            "Firecrawl agent job job-1 timeout: not finished after 300s", elapsed=301.0
        )
        response = client.post("/api/agent", json=VALID_BODIES["agent"], headers=alice_headers)
        assert response.status_code == 500
        body = response.json()
        assert body["success"] is False
        assert "timeout" in body["error"].lower()
        assert "duration" in body


class TestAgentTimeoutEndToEnd:
    """The real adapter enforces its deadline instead of hanging."""

    def test_slow_agent_returns_timeout_envelope(self, app, client, alice_headers):
        def handler(request: httpx.Request) -> httpx.Response:
            if request.method == "POST":
                return httpx.Response(200, json={"success": True, "id": "slow"})
            return httpx.Response(200, json={"success": True, "status": "processing"})

        async def slow_upstream():
            async with FirecrawlClient(
                api_key="fc-test",
                base_url="https://api.firecrawl.test",
                poll_interval=0.01,
                agent_timeout=0.05,
                transport=httpx.MockTransport(handler),
            ) as real_client:
                yield real_client

        app.dependency_overrides[get_upstream] = slow_upstream
        response = client.post("/api/agent", json=VALID_BODIES["agent"], headers=alice_headers)

        assert response.status_code == 500
        body = response.json()
        assert body["success"] is False
        assert "timeout" in body["error"]
        assert body["duration"] < 5

    def test_read_timeout_returns_timeout_envelope(self, app, client, alice_headers):
        def handler(request: httpx.Request) -> httpx.Response:
            if request.method == "POST":
                return httpx.Response(200, json={"success": True, "id": "j"})
            raise httpx.ReadTimeout("read timed out", request=request)

        async def stalled_upstream():
            async with FirecrawlClient(
                api_key="fc-test",
                base_url="https://api.firecrawl.test",
                poll_interval=0.01,
                transport=httpx.MockTransport(handler),
            ) as real_client:
                yield real_client

        app.dependency_overrides[get_upstream] = stalled_upstream
        response = client.post("/api/agent", json=VALID_BODIES["agent"], headers=alice_headers)

        assert response.status_code == 500
        error = response.json()["error"]
        assert error.startswith("Request timeout after")
        assert "/v2/agent/j" in error


class TestUserEndpoints:
    """Tests for admin user management."""

    def test_list_users_idempotent(self, client, admin_headers):
        first = client.get("/api/users", headers=admin_headers)
        second = client.get("/api/users", headers=admin_headers)
        assert first.status_code == 200
        assert first.json() == second.json()
        assert [u["username"] for u in first.json()["users"]] == ["admin", "alice"]
        assert first.json()["persistent"] is False
        assert "password" not in first.json()["users"][0]

    def test_requires_session(self, client):
        assert client.get("/api/users").status_code == 401

    def test_requires_admin(self, client, alice_headers):
        response = client.get("/api/users", headers=alice_headers)
        assert response.status_code == 403

    def test_add_user(self, client, admin_headers):
        response = client.post(
            "/api/users", json={"username": "bob", "password": "builder"}, headers=admin_headers
        )
        assert response.status_code == 201
        assert [u["username"] for u in response.json()["users"]] == ["admin", "alice", "bob"]
        assert "memory" in response.json()["message"]

        login_response = client.post("/login", json={"username": "bob", "password": "builder"})
        assert login_response.status_code == 200

    def test_add_duplicate_user(self, client, admin_headers):
        response = client.post(
            "/api/users", json={"username": "alice", "password": "x"}, headers=admin_headers
        )
        assert response.status_code == 409

    def test_add_user_missing_fields(self, client, admin_headers):
        response = client.post("/api/users", json={"username": "bob"}, headers=admin_headers)
        assert response.status_code == 400

    def test_delete_user(self, client, admin_headers):
        response = client.delete("/api/users", params={"username": "alice"}, headers=admin_headers)
        assert response.status_code == 200
        assert [u["username"] for u in response.json()["users"]] == ["admin"]

    def test_delete_unknown_user(self, client, admin_headers):
        response = client.delete("/api/users", params={"username": "nobody"}, headers=admin_headers)
        assert response.status_code == 404

    def test_delete_admin_refused_for_admin(self, client, admin_headers):
        response = client.delete("/api/users?username=admin", headers=admin_headers)
        assert response.status_code == 409
        assert client.get("/api/me", headers=admin_headers).status_code == 200

    @pytest.mark.parametrize("headers", [None, {"Authorization": "Bearer junk"}])
    def test_delete_admin_refused_without_session(self, client, headers):
        response = client.delete("/api/users?username=admin", headers=headers)
        assert response.status_code == 401

    def test_delete_admin_refused_for_regular_user(self, client, alice_headers):
        response = client.delete("/api/users?username=admin", headers=alice_headers)
        assert response.status_code == 403

    def test_deleted_user_token_rejected(self, client, admin_headers, alice_headers):
        client.delete("/api/users", params={"username": "alice"}, headers=admin_headers)
        assert client.get("/api/me", headers=alice_headers).status_code == 401
