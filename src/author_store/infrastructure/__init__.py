"""Infrastructure layer - cross-cutting concerns."""

from author_store.infrastructure.config import Config, get_config
from author_store.infrastructure.logging import (
    bind_request_context,
    clear_request_context,
    get_logger,
    setup_logging,
)
from author_store.infrastructure.metrics import MetricsRegistry, get_metrics, setup_metrics
from author_store.infrastructure.tracing import get_tracer, setup_tracing, trace_span

__all__ = [
    "Config",
    "get_config",
    "setup_logging",
    "get_logger",
    "bind_request_context",
    "clear_request_context",
    "setup_metrics",
    "get_metrics",
    "MetricsRegistry",
    "setup_tracing",
    "get_tracer",
    "trace_span",
]
