"""Span wrapper over the OpenTelemetry SDK.

A ``Span`` starts an SDK span, collects typed attributes, and finalizes the
span with status and error semantics in one place:

    with Span.start("handle", kind="server", hooks=hooks) as span:
        span.attrs.str_kv("route", "/x").int_kv("status", 200)
        span.event("cache miss").attributes(new_attrs().str_kv("key", k)).add()
        ...

Leaving the ``with`` block normally flushes the attributes and ends the span.
Leaving it with an exception records the failure on the span, marks it as
an error, ends it, and absorbs the exception. That path is a last-resort
barrier for unexpected failures; expected errors go through ``error`` or
``s_error`` instead.
"""

from contextlib import contextmanager
from datetime import datetime
from typing import Dict, Iterator, Optional, Union

from loguru import logger
from opentelemetry import context as otel_context
from opentelemetry import trace
from opentelemetry.context import Context
from opentelemetry.trace import SpanKind, Status, StatusCode

from otelspan.tracing.attributes import SpanAttributes
from otelspan.tracing.hooks import HookRegistry
from otelspan.tracing.provider import get_tracer

SPAN_KINDS: Dict[str, SpanKind] = {
    "internal": SpanKind.INTERNAL,
    "server": SpanKind.SERVER,
    "client": SpanKind.CLIENT,
    "producer": SpanKind.PRODUCER,
    "consumer": SpanKind.CONSUMER,
}

Timestamp = Union[datetime, int]


class SpanPanicError(RuntimeError):
    """An exception intercepted by a span's failure barrier."""

    def __init__(self, payload: BaseException):
        super().__init__(f"recovered from panic: {payload}")
        self.payload = payload
        self.__cause__ = payload
        self.__traceback__ = payload.__traceback__


def resolve_kind(kind: Optional[str]) -> SpanKind:
    """Map a kind name to a SpanKind; unknown names are internal."""
    return SPAN_KINDS.get(kind, SpanKind.INTERNAL) if kind else SpanKind.INTERNAL


def _to_ns(value: Timestamp) -> int:
    if isinstance(value, datetime):
        return int(value.timestamp() * 1_000_000) * 1_000
    return int(value)


class SpanEvent:
    """Builder for one event, emitted on the span by ``add``."""

    def __init__(self, span: trace.Span, msg: str):
        self.msg = msg
        self._span = span
        self._attrs: Optional[SpanAttributes] = None
        self._timestamp: Optional[Timestamp] = None

    def timestamp(self, value: Timestamp) -> "SpanEvent":
        """Set an explicit time (datetime or ns since epoch)."""
        self._timestamp = value
        return self

    def attributes(self, attrs: SpanAttributes) -> "SpanEvent":
        self._attrs = attrs
        return self

    def add(self) -> None:
        attributes = dict(self._attrs.parse()) if self._attrs is not None else None
        timestamp = _to_ns(self._timestamp) if self._timestamp is not None else None
        self._span.add_event(self.msg, attributes=attributes, timestamp=timestamp)


class Span:
    """A started span plus the attributes waiting to be flushed onto it.

    Attributes:
        ctx: Context carrying the new span; pass it to child spans.
        span: The underlying SDK span.
        attrs: Attribute accumulator flushed by ``extract`` and ``end``.
        hooks: Optional error/panic hooks.
        invoke_hooks: Whether ``error`` and ``end`` call the hooks. Off by
            default: the hooks are then only carried for callers to use.
    """

    def __init__(
        self,
        ctx: Context,
        span: trace.Span,
        hooks: Optional[HookRegistry] = None,
        invoke_hooks: bool = False,
    ):
        self.ctx = ctx
        self.span = span
        self.attrs = SpanAttributes()
        self.hooks = hooks
        self.invoke_hooks = invoke_hooks
        self._ended = False
        self._token: Optional[object] = None

    @classmethod
    def start(
        cls,
        name: str,
        ctx: Optional[Context] = None,
        kind: Optional[str] = "internal",
        tracer_name: Optional[str] = None,
        hooks: Optional[HookRegistry] = None,
        tracer_provider: Optional[trace.TracerProvider] = None,
        invoke_hooks: bool = False,
    ) -> "Span":
        """Start a span under ``ctx`` (the current context when omitted).

        Args:
            name: Span name.
            ctx: Parent context.
            kind: One of internal, server, client, producer, consumer.
                Anything else is treated as internal.
            tracer_name: Instrumentation scope name, defaults to settings.
            hooks: Error/panic hooks used by this span.
            invoke_hooks: Call the hooks from ``error`` and ``end``.
            tracer_provider: Provider to use instead of the global one.
        """
        parent = ctx if ctx is not None else otel_context.get_current()
        tracer = get_tracer(tracer_name, tracer_provider=tracer_provider)
        sdk_span = tracer.start_span(name, context=parent, kind=resolve_kind(kind))
        logger.debug(f"Span started: {name}")
        return cls(
            trace.set_span_in_context(sdk_span, parent),
            sdk_span,
            hooks=hooks,
            invoke_hooks=invoke_hooks,
        )

    @property
    def ended(self) -> bool:
        return self._ended

    def trace_id(self) -> str:
        trace_id = self.span.get_span_context().trace_id
        return format(trace_id, "032x") if trace_id != trace.INVALID_TRACE_ID else ""

    def span_id(self) -> str:
        span_id = self.span.get_span_context().span_id
        return format(span_id, "016x") if span_id != trace.INVALID_SPAN_ID else ""

    def event(self, msg: str) -> SpanEvent:
        return SpanEvent(self.span, msg)

    def add_link(self, ctx: Context, attrs: Optional[SpanAttributes] = None) -> None:
        """Link the span active in ``ctx`` to this span."""
        linked = trace.get_current_span(ctx).get_span_context()
        attributes = dict(attrs.parse()) if attrs is not None else None
        self.span.add_link(linked, attributes=attributes)

    def extract(self) -> None:
        """Flush all collected attributes onto the SDK span."""
        for key, value in self.attrs.parse():
            self.span.set_attribute(key, value)

    def end(self, exc: Optional[BaseException] = None) -> None:
        """Finalize the span. Only the first call has an effect.

        With ``exc`` the span is closed as failed: the exception is wrapped in
        a SpanPanicError, recorded with its stack trace and the status is set
        to Error. The panic hook runs afterwards only when ``invoke_hooks`` is
        set; the error hook is never consulted here. Collected attributes are
        not flushed on that path. Without ``exc`` the attributes are flushed and
        the span ends.
        """
        if self._ended:
            return
        self._ended = True

        if exc is not None:
            err = SpanPanicError(exc)
            self.span.record_exception(err, escaped=True)
            self.span.set_status(Status(StatusCode.ERROR, str(err)))
            self.span.end()
            logger.debug(f"Span ended after panic: {err}")
            self._run_panic_hook(exc)
            return

        self.extract()
        self.span.end()

    def _run_panic_hook(self, exc: BaseException) -> None:
        if not self.invoke_hooks or self.hooks is None or self.hooks.panic_func is None:
            return
        try:
            self.hooks.panic_func(exc)
        except Exception:
            logger.opt(exception=True).error("Panic hook failed")

    def ok(self, description: str = "") -> None:
        self.span.set_status(Status(StatusCode.OK, description or None))

    def s_error(self, msg: str) -> None:
        if not msg:
            return
        self.span.set_status(Status(StatusCode.ERROR, msg))

    def error(self, err: Optional[BaseException], record_stack_trace: bool = False) -> None:
        """Mark the span as failed with ``err``; no-op for None.

        With ``invoke_hooks`` set, the error hook may replace the error or
        suppress it by returning None.
        """
        if err is None:
            return

        if self.invoke_hooks and self.hooks is not None and self.hooks.error_func is not None:
            err = self.hooks.error_func(err)
            if err is None:
                return

        if record_stack_trace:
            self.span.record_exception(err)
        self.span.set_status(Status(StatusCode.ERROR, str(err)))

    @contextmanager
    def activate(self) -> Iterator["Span"]:
        """Make the span current for the block without finalizing it."""
        token = otel_context.attach(self.ctx)
        try:
            yield self
        finally:
            otel_context.detach(token)

    def __enter__(self) -> "Span":
        self._token = otel_context.attach(self.ctx)
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> bool:
        if self._token is not None:
            otel_context.detach(self._token)
            self._token = None

        self.end(exc_val)
        # Only ordinary exceptions are absorbed; interrupts and exits still propagate
        return isinstance(exc_val, Exception)

    def __repr__(self) -> str:
        return f"Span(trace_id={self.trace_id()!r}, span_id={self.span_id()!r}, ended={self._ended})"


def new_span(
    name: str,
    ctx: Optional[Context] = None,
    kind: Optional[str] = "internal",
    tracer_name: Optional[str] = None,
    hooks: Optional[HookRegistry] = None,
    invoke_hooks: bool = False,
) -> Span:
    """Shortcut for ``Span.start``."""
    return Span.start(
        name,
        ctx=ctx,
        kind=kind,
        tracer_name=tracer_name,
        hooks=hooks,
        invoke_hooks=invoke_hooks,
    )
