"""Span wrappers over the OpenTelemetry SDK."""

from .attributes import SpanAttributes, new_attrs
from .hooks import HookRegistry
from .instrument import traced
from .provider import get_tracer, init_tracing, shutdown_tracing
from .span import Span, SpanEvent, SpanPanicError, new_span, resolve_kind

__all__ = [
    "Span",
    "SpanEvent",
    "SpanPanicError",
    "SpanAttributes",
    "HookRegistry",
    "new_span",
    "new_attrs",
    "resolve_kind",
    "traced",
    "init_tracing",
    "get_tracer",
    "shutdown_tracing",
]
