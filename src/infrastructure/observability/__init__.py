"""Observability: structlog configuration and OpenTelemetry tracing."""

from src.infrastructure.observability.setup import (
    configure_logging,
    init_observability,
    shutdown_observability,
)
from src.infrastructure.observability.structlog_processor import (
    add_trace_context,
    strip_output_line,
)
from src.infrastructure.observability.tracing import get_tracer, traced

__all__ = [
    "add_trace_context",
    "configure_logging",
    "get_tracer",
    "init_observability",
    "shutdown_observability",
    "strip_output_line",
    "traced",
]
