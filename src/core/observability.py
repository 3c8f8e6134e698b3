"""Distributed tracing with OpenTelemetry and pluggable exporters.

Exporters:
- **console**: completed spans are written through Loguru (development)
- **otlp**: spans are shipped over gRPC to a collector (Jaeger, Tempo, ...)
- **none**: tracing provider is installed but nothing is exported
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Final

from loguru import logger
from opentelemetry import trace
from opentelemetry.exporter.otlp.proto.grpc.trace_exporter import OTLPSpanExporter
from opentelemetry.instrumentation.fastapi import FastAPIInstrumentor
from opentelemetry.sdk.resources import Resource
from opentelemetry.sdk.trace import ReadableSpan, TracerProvider
from opentelemetry.sdk.trace.export import (
    BatchSpanProcessor,
    SpanExporter,
    SpanExportResult,
)
from opentelemetry.sdk.trace.sampling import TraceIdRatioBased

from src.core.context import RequestContext

if TYPE_CHECKING:
    from collections.abc import Sequence

    from fastapi import FastAPI

    from src.core.config import Settings

SERVICE_NAME_KEY: Final[str] = "service.name"
SERVICE_VERSION_KEY: Final[str] = "service.version"
ENVIRONMENT_KEY: Final[str] = "deployment.environment"
DEFAULT_OTLP_ENDPOINT: Final[str] = "http://localhost:4317"
EXCLUDED_URLS: Final[str] = "/health,/docs,/redoc,/openapi.json"

# ASGI send/receive spans add noise without information
_NOISY_SPAN_NAMES: Final[frozenset[str]] = frozenset(
    {"http send", "http receive", "connect"}
)


class LoguruSpanExporter(SpanExporter):
    """Span exporter that writes completed spans through Loguru."""

    def export(self, spans: Sequence[ReadableSpan]) -> SpanExportResult:
        """Log each completed span at debug level."""
        for span in spans:
            span_context = span.get_span_context()
            if not span_context or span.name in _NOISY_SPAN_NAMES:
                continue

            attributes = dict(span.attributes or {})
            duration_ms = None
            if span.end_time and span.start_time:
                duration_ms = (span.end_time - span.start_time) // 1_000_000

            logger.bind(
                trace_id=f"0x{span_context.trace_id:032x}",
                span_id=f"0x{span_context.span_id:016x}",
                correlation_id=attributes.get("correlation_id"),
                span_name=span.name,
                duration_ms=duration_ms,
                status=span.status.status_code.name,
            ).debug("Trace span completed: {}", span.name)

        return SpanExportResult.SUCCESS


def get_span_exporter(settings: Settings) -> SpanExporter | None:
    """Build the exporter selected by configuration.

    Args:
        settings: Application settings.

    Returns:
        SpanExporter | None: Configured exporter, or None when exporting is off.
    """
    exporter_type = settings.observability_config.exporter_type

    if exporter_type == "console":
        logger.info("Using Loguru span exporter")
        return LoguruSpanExporter()

    if exporter_type == "otlp":
        endpoint = (
            settings.observability_config.exporter_endpoint or DEFAULT_OTLP_ENDPOINT
        )
        logger.info("Using OTLP exporter at {}", endpoint)
        return OTLPSpanExporter(
            endpoint=endpoint,
            insecure=settings.environment == "development",
        )

    logger.info("Trace export disabled")
    return None


def setup_tracing(settings: Settings) -> None:
    """Install a global tracer provider with the configured exporter.

    Args:
        settings: Application settings.
    """
    if not settings.observability_config.enable_tracing:
        logger.debug("Tracing disabled by configuration")
        return

    resource = Resource.create(
        {
            SERVICE_NAME_KEY: settings.app_name,
            SERVICE_VERSION_KEY: settings.app_version,
            ENVIRONMENT_KEY: settings.environment,
        }
    )
    tracer_provider = TracerProvider(
        resource=resource,
        sampler=TraceIdRatioBased(settings.observability_config.trace_sample_rate),
    )

    exporter = get_span_exporter(settings)
    if exporter:
        tracer_provider.add_span_processor(BatchSpanProcessor(exporter))

    trace.set_tracer_provider(tracer_provider)

    logger.info(
        "Tracing configured",
        exporter_type=settings.observability_config.exporter_type,
        sample_rate=settings.observability_config.trace_sample_rate,
    )


def instrument_app(app: FastAPI, settings: Settings) -> None:
    """Instrument the FastAPI application for tracing.

    Args:
        app: FastAPI application to instrument.
        settings: Application settings.
    """
    if not settings.observability_config.enable_tracing:
        return

    FastAPIInstrumentor.instrument_app(
        app,
        excluded_urls=EXCLUDED_URLS,
        server_request_hook=add_correlation_id_to_span,
    )
    logger.info("Application instrumented for tracing")


def add_correlation_id_to_span(span: trace.Span, scope: dict[str, Any]) -> None:
    """Attach the correlation ID to the server span.

    Args:
        span: The current span.
        scope: ASGI scope dict containing request information.
    """
    if not span or not span.is_recording():
        return

    headers = dict(scope.get("headers", []))
    correlation_id = RequestContext.get_correlation_id() or headers.get(
        b"x-correlation-id", b""
    ).decode("latin-1")
    if correlation_id:
        span.set_attribute("correlation_id", correlation_id)
