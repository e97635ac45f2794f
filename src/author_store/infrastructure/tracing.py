"""OpenTelemetry tracing for request handlers.

Handlers wrap their store calls in ``trace_span``. Until ``setup_tracing``
installs a provider, spans come from OpenTelemetry's no-op default and cost
nothing.
"""

from __future__ import annotations

from contextlib import contextmanager
from typing import Any, Generator

from opentelemetry import trace
from opentelemetry.exporter.otlp.proto.grpc.trace_exporter import OTLPSpanExporter
from opentelemetry.sdk.resources import Resource
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import BatchSpanProcessor, ConsoleSpanExporter

from author_store import __version__

TRACER_NAME = "author_store"

_tracer: trace.Tracer | None = None


def setup_tracing(
    service_name: str = TRACER_NAME,
    otlp_endpoint: str | None = None,
    console_export: bool = False,
) -> trace.Tracer:
    """
    Install the process tracer provider.

    With neither an endpoint nor console export, spans are recorded and
    dropped.

    Args:
        service_name: Reported as ``service.name``
        otlp_endpoint: gRPC collector address, e.g. "http://localhost:4317"
        console_export: Also print finished spans to stdout

    Returns:
        The service tracer
    """
    global _tracer

    resource = Resource.create({"service.name": service_name, "service.version": __version__})
    provider = TracerProvider(resource=resource)

    exporters = []
    if otlp_endpoint:
        exporters.append(OTLPSpanExporter(endpoint=otlp_endpoint, insecure=True))
    if console_export:
        exporters.append(ConsoleSpanExporter())
    for exporter in exporters:
        provider.add_span_processor(BatchSpanProcessor(exporter))

    trace.set_tracer_provider(provider)
    _tracer = trace.get_tracer(TRACER_NAME)
    return _tracer


def get_tracer() -> trace.Tracer:
    """Return the service tracer, creating it from the current provider."""
    global _tracer
    if _tracer is None:
        _tracer = trace.get_tracer(TRACER_NAME)
    return _tracer


@contextmanager
def trace_span(
    name: str,
    attributes: dict[str, Any] | None = None,
) -> Generator[trace.Span, None, None]:
    """Run the enclosed block inside a span named ``name``.

    An exception escaping the block is recorded on the span, marks it as an
    error, and propagates.
    """
    with get_tracer().start_as_current_span(name, attributes=attributes) as span:
        yield span
