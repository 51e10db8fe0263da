import logging
import os
from dataclasses import dataclass
from typing import Optional

logger = logging.getLogger("uvicorn.error")

SERVICE_NAME = os.getenv("SERVICE_NAME", "webhook-proxy")
TARGET_URL = os.getenv("TARGET_URL", "https://n8n.athenas.me/webhook/dash-revoltado")
PROXY_PREFIX = os.getenv("PROXY_PREFIX", "/api/proxy").rstrip("/")

OTLP_ENDPOINT = os.getenv("OTLP_ENDPOINT")
OTLP_HEADERS = os.getenv("OTLP_HEADERS", "")

HOST = os.getenv("HOST", "0.0.0.0")
PORT = int(os.getenv("PORT", "8000"))
RELOAD = os.getenv("RELOAD", "false").lower() == "true"


def _parse_timeout(raw: Optional[str]) -> Optional[float]:
    """Seconds to wait on the upstream; ``None`` means wait indefinitely."""
    if not raw:
        return None
    try:
        value = float(raw)
    except ValueError:
        logger.warning(f"Ignoring invalid PROXY_TIMEOUT value: {raw!r}")
        return None
    if value <= 0:
        logger.warning(f"Ignoring non-positive PROXY_TIMEOUT value: {raw!r}")
        return None
    return value


PROXY_TIMEOUT = _parse_timeout(os.getenv("PROXY_TIMEOUT"))


@dataclass(frozen=True)
class ProxySettings:
    """
    Process-wide proxy configuration, read once at startup.

    Attributes:
        target_url: Base URL of the upstream webhook. Query parameters already
            present on it are kept and the client's parameters are appended.
        proxy_prefix: Path the proxy route is mounted on.
        timeout: Optional upstream timeout in seconds.
        service_name: Name reported to tracing and metrics.
    """

    target_url: str = TARGET_URL
    proxy_prefix: str = PROXY_PREFIX
    timeout: Optional[float] = PROXY_TIMEOUT
    service_name: str = SERVICE_NAME


def load_settings() -> ProxySettings:
    return ProxySettings(
        target_url=TARGET_URL,
        proxy_prefix=PROXY_PREFIX,
        timeout=PROXY_TIMEOUT,
        service_name=SERVICE_NAME,
    )
