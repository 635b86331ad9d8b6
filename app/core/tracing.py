"""
OpenTelemetry tracing.

Disabled unless OTEL_ENABLED=true. When enabled, incoming requests, outgoing
httpx calls (the resumable upload endpoint) and the quote attachment saga
steps are traced. Spans go to OTEL_EXPORTER_OTLP_ENDPOINT when set, to the
console otherwise.

Usage:
    setup_tracing()
    instrument_app(app)

    tracer = get_tracer("RenoDesk.Attachments.Saga")
    with tracer.start_as_current_span("quote.save") as span:
        span.set_attribute("quote.id", quote_id)
"""

import logging
from typing import Optional

from opentelemetry import trace
from opentelemetry.exporter.otlp.proto.http.trace_exporter import OTLPSpanExporter
from opentelemetry.instrumentation.fastapi import FastAPIInstrumentor
from opentelemetry.instrumentation.httpx import HTTPXClientInstrumentor
from opentelemetry.sdk.resources import SERVICE_NAME, Resource
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import BatchSpanProcessor, ConsoleSpanExporter
from opentelemetry.trace import Tracer

from app.core.config import Config, settings as default_settings

logger = logging.getLogger("RenoDesk.Tracing")

_tracer_provider: Optional[TracerProvider] = None


def setup_tracing(settings: Config = default_settings) -> Optional[TracerProvider]:
    """Install the global TracerProvider; returns None when tracing is off."""
    global _tracer_provider

    if _tracer_provider is not None:
        return _tracer_provider

    if not settings.OTEL_ENABLED:
        logger.info("OpenTelemetry tracing is disabled (set OTEL_ENABLED=true to enable)")
        return None

    if settings.OTEL_EXPORTER_OTLP_ENDPOINT:
        exporter = OTLPSpanExporter(endpoint=settings.OTEL_EXPORTER_OTLP_ENDPOINT)
        logger.info(f"Using OTLP exporter with endpoint: {settings.OTEL_EXPORTER_OTLP_ENDPOINT}")
    else:
        exporter = ConsoleSpanExporter()

    provider = TracerProvider(resource=Resource.create({SERVICE_NAME: settings.SERVICE_NAME}))
    provider.add_span_processor(BatchSpanProcessor(exporter))
    trace.set_tracer_provider(provider)
    _tracer_provider = provider

    HTTPXClientInstrumentor().instrument()
    logger.info(f"OpenTelemetry tracing initialized for service: {settings.SERVICE_NAME}")
    return provider


def get_tracer(name: str) -> Tracer:
    """Tracer for custom spans; a no-op tracer while tracing is off."""
    return trace.get_tracer(name)


def instrument_app(app) -> None:
    if _tracer_provider is None:
        return
    FastAPIInstrumentor.instrument_app(app)
    logger.info("FastAPI instrumentation enabled")


def shutdown_tracing() -> None:
    """Flush pending spans."""
    global _tracer_provider

    if _tracer_provider is not None:
        _tracer_provider.shutdown()
        logger.info("OpenTelemetry tracing shut down")
    _tracer_provider = None
