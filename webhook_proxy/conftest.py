from unittest.mock import AsyncMock, Mock

import httpx
import pytest
from fastapi import Request
from starlette.datastructures import Headers, QueryParams

from webhook_proxy.vars import ProxySettings

TEST_TARGET_URL = "https://hooks.example.com/webhook/dash"


@pytest.fixture
def proxy_settings():
    return ProxySettings(
        target_url=TEST_TARGET_URL,
        proxy_prefix="/api/proxy",
        timeout=None,
        service_name="webhook-proxy-test",
    )


@pytest.fixture
def mock_request():
    """Create a mock FastAPI Request object."""

    def _create_request(method="GET", query="", headers=None, body=b""):
        request = Mock(spec=Request)
        request.method = method
        request.url.path = "/api/proxy"
        request.query_params = QueryParams(query)
        if headers is None:
            headers = {"host": "proxy.example.com", "user-agent": "test-agent"}
        if isinstance(headers, list):
            # Pairs allow repeated header names
            request.headers = Headers(
                raw=[
                    (name.lower().encode("latin-1"), value.encode("latin-1"))
                    for name, value in headers
                ]
            )
        else:
            request.headers = Headers(headers)
        request.body = AsyncMock(return_value=body)
        return request

    return _create_request


@pytest.fixture
def upstream_response():
    """Create an httpx Response as returned by the webhook."""

    def _create_response(status_code=200, content=b"", headers=None, json=None):
        request = httpx.Request("GET", TEST_TARGET_URL)
        if json is not None:
            return httpx.Response(
                status_code, json=json, headers=headers, request=request
            )
        return httpx.Response(
            status_code, content=content, headers=headers, request=request
        )

    return _create_response
