"""Observability module for OpenTelemetry-aligned tracing and structured logging."""

from docs_index.observability.context import get_trace_context, set_trace_context, trace_context
from docs_index.observability.logging import JsonFormatter, configure_logging
from docs_index.observability.tracing import create_span, get_tracer, init_tracing


__all__ = [
    "JsonFormatter",
    "configure_logging",
    "create_span",
    "get_trace_context",
    "get_tracer",
    "init_tracing",
    "set_trace_context",
    "trace_context",
]
