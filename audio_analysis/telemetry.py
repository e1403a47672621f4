"""OpenTelemetry setup for request and model-call tracing.

Instruments the FastAPI app and provides ``trace_span`` for the two
slow edges of an analysis: fetching remote audio metadata and calling
the multimodal model.

Spans are exported via OTLP (gRPC) when OTEL_EXPORTER_OTLP_ENDPOINT is
set; otherwise the SDK provider only keeps local span context.
"""

from __future__ import annotations

import logging
import os
from contextlib import contextmanager
from typing import Any, Generator

from opentelemetry import trace
from opentelemetry.exporter.otlp.proto.grpc.trace_exporter import OTLPSpanExporter
from opentelemetry.instrumentation.fastapi import FastAPIInstrumentor
from opentelemetry.sdk.resources import Resource
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import BatchSpanProcessor

logger = logging.getLogger(__name__)

SERVICE_NAME = "audio-analysis"

_tracer: Any = None


def _init_tracer() -> Any:
    endpoint = os.getenv("OTEL_EXPORTER_OTLP_ENDPOINT")
    resource = Resource.create({
        "service.name": SERVICE_NAME,
        "service.version": "0.1.0",
    })
    provider = TracerProvider(resource=resource)

    if endpoint:
        provider.add_span_processor(BatchSpanProcessor(OTLPSpanExporter(endpoint=endpoint)))
        logger.info("OpenTelemetry: OTLP exporter -> %s", endpoint)
    else:
        logger.info("OpenTelemetry: local spans only (no OTEL_EXPORTER_OTLP_ENDPOINT)")

    trace.set_tracer_provider(provider)
    return trace.get_tracer("audio_analysis")


def get_tracer() -> Any:
    """Get the global tracer (lazy-initialized)."""
    global _tracer
    if _tracer is None:
        _tracer = _init_tracer()
    return _tracer


@contextmanager
def trace_span(
    name: str,
    attributes: dict[str, Any] | None = None,
) -> Generator[Any, None, None]:
    """Create a traced span with optional attributes.

    Usage:
        with trace_span("model.complete", {"media.count": 2}) as span:
            text = client.complete(...)
            span.set_attribute("response.chars", len(text))
    """
    tracer = get_tracer()
    with tracer.start_as_current_span(name) as span:
        if attributes:
            for key, value in attributes.items():
                span.set_attribute(key, value)
        try:
            yield span
        except Exception as exc:
            span.record_exception(exc)
            raise


def instrument_fastapi(app: Any) -> None:
    """Instrument a FastAPI app with automatic request tracing."""
    FastAPIInstrumentor.instrument_app(app)
    logger.info("OpenTelemetry: FastAPI auto-instrumentation enabled")
