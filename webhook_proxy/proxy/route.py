import logging
from typing import List, Tuple

import httpx
from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse, Response
from opentelemetry import trace
from prometheus_client import Counter

from webhook_proxy.pagination import (
    PaginationDirective,
    extract_pagination,
    reshape_body,
    strip_pagination_params,
)
from webhook_proxy.utils import truncate_preview
from webhook_proxy.utils.exception_logging import (
    format_exception_message,
    log_exception_with_details,
)
from webhook_proxy.utils.traced_requests import traced_request
from webhook_proxy.vars import ProxySettings

from .headers import (
    JSON_CONTENT_TYPE,
    apply_proxy_headers,
    copy_upstream_headers,
    cors_headers,
    prepare_headers,
    request_origin,
)

tracer = trace.get_tracer(__name__)
logger = logging.getLogger("uvicorn.error")

PROXY_METHODS = ["GET", "HEAD", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"]
BODYLESS_METHODS = {"GET", "HEAD"}

GET_ERROR_MESSAGE = (
    "A chamada GET foi encaminhada ao webhook, mas ele retornou erro. "
    "É provável que o webhook espere um POST com body."
)

PAGINATION_OUTCOMES = Counter(
    "webhook_proxy_pagination_total",
    "Pagination attempts on upstream responses, by outcome",
    ["outcome"],
)


def get_settings(request: Request) -> ProxySettings:
    """Settings the application was created with."""
    return request.app.state.settings


def build_target_url(base_url: str, forwarded_params: List[Tuple[str, str]]) -> str:
    """
    Append the client's query parameters to the webhook URL.

    Parameters already on ``base_url`` are kept. ``type=json`` is added
    unless some parameter already sets ``type``.
    """
    url = httpx.URL(base_url)
    params = list(url.params.multi_items()) + list(forwarded_params)
    if not any(key == "type" for key, _ in params):
        params.append(("type", "json"))
    return str(url.copy_with(params=httpx.QueryParams(params)))


def upstream_failure_response(exc: Exception, origin: str) -> JSONResponse:
    return JSONResponse(
        status_code=502,
        content={
            "ok": False,
            "error": "upstream_fetch_failed",
            "detail": format_exception_message(exc),
        },
        headers=cors_headers(origin),
    )


def get_error_response(upstream: httpx.Response, origin: str) -> JSONResponse:
    """Explain an upstream error on GET, which webhooks commonly reject."""
    return JSONResponse(
        status_code=502,
        content={
            "ok": False,
            "proxy": True,
            "method": "GET",
            "upstream_status": upstream.status_code,
            "upstream_status_text": upstream.reason_phrase,
            "message": GET_ERROR_MESSAGE,
            "upstream_preview": truncate_preview(upstream.text),
        },
        headers=cors_headers(origin),
    )


def relay_response(upstream: httpx.Response, origin: str, content: bytes) -> Response:
    response = Response(content=content, status_code=upstream.status_code)
    copy_upstream_headers(response, upstream.headers.multi_items())
    apply_proxy_headers(response, origin)
    return response


def paginated_response(
    upstream: httpx.Response, directive: PaginationDirective, origin: str, span
) -> Response:
    """Reshape the upstream body into a page, or relay it unchanged when that is not possible."""
    result = reshape_body(upstream.text, directive)
    PAGINATION_OUTCOMES.labels(outcome=result.outcome).inc()
    span.set_attribute("proxy.pagination.outcome", result.outcome)

    if not result.paginated:
        logger.debug(f"Pagination skipped ({result.outcome}), relaying upstream body")
        return relay_response(upstream, origin, upstream.content)

    response = relay_response(upstream, origin, result.body)
    response.headers["Content-Type"] = JSON_CONTENT_TYPE
    return response


async def forward_to_target(request: Request, settings: ProxySettings) -> Response:
    """
    Forward a client request to the configured webhook.

    - OPTIONS is answered locally as a CORS preflight
    - pagination parameters are consumed here and never forwarded
    - successful GET responses are paginated when the client asked for it
    - upstream errors on GET are replaced by an explanatory 502
    """
    origin = request_origin(request)

    if request.method == "OPTIONS":
        return Response(status_code=204, headers=cors_headers(origin))

    directive = extract_pagination(request.query_params)
    target_url = build_target_url(
        settings.target_url, strip_pagination_params(request.query_params)
    )
    headers = prepare_headers(request)
    body = None if request.method in BODYLESS_METHODS else await request.body()

    with traced_request(
        tracer,
        "proxy_request",
        method=request.method,
        target_url=target_url,
        start_message=f"Proxying {request.method} {request.url.path} -> {target_url}",
        extra_attrs={"proxy.pagination.enabled": directive.enabled},
    ) as span:
        try:
            async with httpx.AsyncClient(
                timeout=httpx.Timeout(settings.timeout),
                follow_redirects=False,  # Redirects are relayed to the client as-is
            ) as client:
                upstream = await client.request(
                    method=request.method,
                    url=target_url,
                    headers=headers,
                    content=body,
                )
        except httpx.HTTPError as e:
            log_exception_with_details(logger, f"[Proxy] {target_url}", e)
            span.set_attribute("proxy.error", "upstream_fetch_failed")
            return upstream_failure_response(e, origin)

        span.set_attribute("proxy.status_code", upstream.status_code)

        if not upstream.is_success:
            logger.warning(
                f"Upstream returned {upstream.status_code} for {request.method} {target_url}"
            )
            if request.method == "GET":
                return get_error_response(upstream, origin)

        if directive.enabled and upstream.is_success and request.method == "GET":
            return paginated_response(upstream, directive, origin, span)

        return relay_response(upstream, origin, upstream.content)


def build_router(prefix: str) -> APIRouter:
    """Catch-all router for the proxy, mounted at ``prefix``."""
    router = APIRouter()

    async def proxy_all(
        request: Request, settings: ProxySettings = Depends(get_settings)
    ):
        """Proxy every request on the mount point to the configured webhook."""
        return await forward_to_target(request, settings)

    router.add_api_route(prefix or "/", proxy_all, methods=PROXY_METHODS)
    router.add_api_route(f"{prefix}/{{path:path}}", proxy_all, methods=PROXY_METHODS)
    return router
