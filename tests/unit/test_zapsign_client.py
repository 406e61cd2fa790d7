"""Tests for the ZapSign HTTP client."""

import json

import httpx
import pytest

from zapsign_mcp.exceptions import AuthenticationError, ZapSignAPIError
from zapsign_mcp.services import AuthService, ZapSignClient
from zapsign_mcp.services.zapsign_client import USER_AGENT, describe_status

API_KEY = "test_key_" + "x" * 32
BASE_URL = "https://zapsign.test/api/v1"


def make_client(handler, api_key=API_KEY):
    auth = AuthService(api_key, BASE_URL)
    return ZapSignClient(auth, BASE_URL, transport=httpx.MockTransport(handler))


class TestRequest:
    """Test requests sent through ZapSignClient."""

    @pytest.mark.asyncio
    async def test_success_returns_decoded_body(self):
        seen = []

        def handler(request):
            seen.append(request)
            return httpx.Response(200, json={"token": "doc-1"})

        client = make_client(handler)
        result = await client.request("POST", "/docs/", json={"name": "Contract"})
        await client.aclose()

        assert result == {"token": "doc-1"}
        request = seen[0]
        assert request.method == "POST"
        assert str(request.url) == f"{BASE_URL}/docs/"
        assert request.headers["authorization"] == f"Bearer {API_KEY}"
        assert request.headers["user-agent"] == USER_AGENT
        assert json.loads(request.content) == {"name": "Contract"}

    @pytest.mark.asyncio
    async def test_query_parameters(self):
        seen = []

        def handler(request):
            seen.append(request.url)
            return httpx.Response(200, json={"results": []})

        client = make_client(handler)
        await client.get("/templates/", params={"page": 2})
        await client.aclose()

        assert seen[0].params["page"] == "2"

    @pytest.mark.asyncio
    async def test_empty_body_decodes_to_empty_dict(self):
        client = make_client(lambda request: httpx.Response(204))

        assert await client.request("DELETE", "/docs/abc/") == {}
        await client.aclose()

    @pytest.mark.asyncio
    async def test_non_json_body_is_returned_as_text(self):
        client = make_client(lambda request: httpx.Response(200, text="ok"))

        assert await client.get("/") == "ok"
        await client.aclose()

    @pytest.mark.asyncio
    async def test_error_status_raises_with_context(self):
        client = make_client(lambda request: httpx.Response(400, json={"message": "name is required"}))

        with pytest.raises(ZapSignAPIError) as exc_info:
            await client.request("POST", "/docs/", json={})
        await client.aclose()

        error = exc_info.value
        assert error.message == "Bad Request: name is required"
        assert error.status_code == 400
        assert error.response_data == {"message": "name is required"}
        assert error.context["method"] == "POST"
        assert error.context["endpoint"] == "/docs/"
        assert error.service_name == "ZapSign"

    @pytest.mark.asyncio
    async def test_transport_failure(self):
        def handler(request):
            raise httpx.ConnectError("connection refused", request=request)

        client = make_client(handler)

        with pytest.raises(ZapSignAPIError) as exc_info:
            await client.get("/docs/")
        await client.aclose()

        assert exc_info.value.message == "No response received from ZapSign API"
        assert exc_info.value.status_code is None

    @pytest.mark.asyncio
    async def test_missing_key_fails_before_sending(self):
        calls = []

        def handler(request):
            calls.append(request)
            return httpx.Response(200, json={})

        client = make_client(handler, api_key=None)

        with pytest.raises(AuthenticationError):
            await client.get("/docs/")
        await client.aclose()

        assert calls == []


class TestHealthCheck:
    @pytest.mark.asyncio
    async def test_healthy(self):
        client = make_client(lambda request: httpx.Response(200, json={}))

        assert await client.health_check() is True
        await client.aclose()

    @pytest.mark.asyncio
    async def test_unhealthy_on_error_status(self):
        client = make_client(lambda request: httpx.Response(503))

        assert await client.health_check() is False
        await client.aclose()


class TestDescribeStatus:
    @pytest.mark.parametrize(
        "status,data,expected",
        [
            (400, {}, "Bad Request: Invalid parameters"),
            (401, {}, "Unauthorized: Invalid API key or authentication failed"),
            (403, {}, "Forbidden: Insufficient permissions for this operation"),
            (404, {}, "Not Found: /docs/x/ endpoint not found"),
            (429, {}, "Rate Limited: Too many requests, please try again later"),
            (500, {}, "Internal Server Error: ZapSign service temporarily unavailable"),
            (502, {"message": "bad gateway"}, "HTTP 502: bad gateway"),
            (418, "teapot", "HTTP 418: Unknown error"),
        ],
    )
    def test_messages(self, status, data, expected):
        assert describe_status(status, "/docs/x/", data) == expected
