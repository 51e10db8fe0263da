import logging
from typing import Optional

from fastapi import FastAPI
from opentelemetry import trace
from opentelemetry.exporter.otlp.proto.grpc.trace_exporter import OTLPSpanExporter
from opentelemetry.instrumentation.fastapi import FastAPIInstrumentor
from opentelemetry.sdk.resources import Resource
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import BatchSpanProcessor
from prometheus_client import Info
from prometheus_fastapi_instrumentator import Instrumentator

from webhook_proxy.proxy import build_router
from webhook_proxy.vars import OTLP_ENDPOINT, OTLP_HEADERS, ProxySettings, load_settings

from .routes import router

logger = logging.getLogger("uvicorn.error")


def create_app(settings: Optional[ProxySettings] = None) -> FastAPI:
    """Build the proxy application around ``settings`` (read from the environment by default)."""
    settings = settings or load_settings()
    application = FastAPI(title=settings.service_name, redirect_slashes=False)
    application.state.settings = settings

    # Registered before the proxy so a root-mounted proxy cannot shadow it
    application.include_router(router)
    application.include_router(build_router(settings.proxy_prefix))

    logger.info(
        f"Proxying {settings.proxy_prefix or '/'} -> {settings.target_url}"
        f" (timeout: {settings.timeout or 'none'})"
    )
    return application


def configure_tracing(application: FastAPI, service_name: str) -> None:
    trace.set_tracer_provider(
        TracerProvider(resource=Resource.create({"service.name": service_name}))
    )
    tracer_provider = trace.get_tracer_provider()
    if OTLP_ENDPOINT:
        otlp_exporter = OTLPSpanExporter(
            endpoint=OTLP_ENDPOINT,
            headers=OTLP_HEADERS or None,
        )
        tracer_provider.add_span_processor(BatchSpanProcessor(otlp_exporter))

    FastAPIInstrumentor.instrument_app(application)


app = create_app()
instrumentator = Instrumentator()

instrumentator.instrument(app).expose(app)
configure_tracing(app, app.state.settings.service_name)

# Add app_name to the metrics
app_info = Info("fastapi_app_info", "Application Info")
app_info.info({"app_name": app.state.settings.service_name})
