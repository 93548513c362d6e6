from __future__ import annotations

import logging
import os
import sys

try:
    from opentelemetry import trace
    from opentelemetry.sdk.resources import Resource
    from opentelemetry.sdk.trace import TracerProvider
    from opentelemetry.sdk.trace.export import BatchSpanProcessor, ConsoleSpanExporter
    from opentelemetry.exporter.otlp.proto.http.trace_exporter import (
        OTLPSpanExporter,
    )
except Exception:  # pragma: no cover - optional dependency resolution
    trace = None
    TracerProvider = None


logger = logging.getLogger("feedletter.observability")


def _span_exporter():
    endpoint = os.getenv("OTEL_EXPORTER_OTLP_ENDPOINT")
    if endpoint:
        return OTLPSpanExporter(endpoint=endpoint)
    if os.getenv("OTEL_CONSOLE_EXPORT", "false").lower() == "true":
        return ConsoleSpanExporter()
    return None


def init_observability(service_name: str = "feedletter") -> bool:
    """Install a tracer provider for the API and LLM spans.

    Returns False when tracing stays off: under pytest, without the
    OpenTelemetry SDK, or when no exporter is configured.
    """
    if "pytest" in sys.modules or trace is None:
        return False
    if isinstance(trace.get_tracer_provider(), TracerProvider):
        return True

    exporter = _span_exporter()
    if exporter is None:
        logger.info("tracing_disabled reason=no_exporter")
        return False

    provider = TracerProvider(resource=Resource.create({"service.name": service_name}))
    provider.add_span_processor(BatchSpanProcessor(exporter))
    trace.set_tracer_provider(provider)
    logger.info("tracing_enabled exporter=%s", type(exporter).__name__)
    return True
