"""Convenience layer for starting and finalizing OpenTelemetry spans."""

from otelspan.tracing import (
    HookRegistry,
    Span,
    SpanAttributes,
    SpanEvent,
    SpanPanicError,
    new_attrs,
    new_span,
    traced,
)

__version__ = "0.1.0"

__all__ = [
    "Span",
    "SpanEvent",
    "SpanPanicError",
    "SpanAttributes",
    "HookRegistry",
    "new_span",
    "new_attrs",
    "traced",
]
