from typing import Dict, Iterable, List, Tuple

from fastapi import Request
from starlette.responses import Response

ALLOWED_METHODS = "GET,POST,PUT,PATCH,DELETE,OPTIONS"
ALLOWED_HEADERS = "Content-Type, Authorization"
CORS_MAX_AGE = "86400"

JSON_CONTENT_TYPE = "application/json; charset=utf-8"

# Hop-by-hop headers that should NOT be forwarded (RFC 2616)
HOP_BY_HOP_HEADERS = {
    "connection",
    "keep-alive",
    "proxy-authenticate",
    "proxy-authorization",
    "te",
    "trailers",
    "transfer-encoding",
    "upgrade",
}

# Recomputed by httpx for the outbound request
REQUEST_HEADERS_TO_DROP = {"host", "content-length", "transfer-encoding", "accept-encoding"}

# The upstream body is decoded by httpx and re-sent whole, so headers
# describing the upstream transfer no longer apply.
RESPONSE_HEADERS_TO_DROP = HOP_BY_HOP_HEADERS | {"content-length", "content-encoding"}


def cors_headers(origin: str = "*") -> Dict[str, str]:
    return {
        "Access-Control-Allow-Origin": origin,
        "Access-Control-Allow-Methods": ALLOWED_METHODS,
        "Access-Control-Allow-Headers": ALLOWED_HEADERS,
        "Access-Control-Max-Age": CORS_MAX_AGE,
    }


def request_origin(request: Request) -> str:
    return request.headers.get("origin") or "*"


def prepare_headers(request: Request) -> List[Tuple[str, str]]:
    """
    Copy the client's headers for the upstream call, minus ``Host`` and framing headers.

    Returned as name/value pairs so repeated headers are forwarded as sent.
    """
    return [
        (name, value)
        for name, value in request.headers.items()
        if name.lower() not in REQUEST_HEADERS_TO_DROP
    ]


def copy_upstream_headers(response: Response, upstream_headers: Iterable[Tuple[str, str]]) -> None:
    """Append upstream headers to ``response``, keeping repeated ones such as ``Set-Cookie``."""
    for name, value in upstream_headers:
        if name.lower() in RESPONSE_HEADERS_TO_DROP:
            continue
        response.headers.append(name, value)


def apply_proxy_headers(response: Response, origin: str) -> None:
    """Overwrite CORS and caching headers on an outgoing response."""
    for name, value in cors_headers(origin).items():
        response.headers[name] = value
    response.headers["Cache-Control"] = "no-store"
