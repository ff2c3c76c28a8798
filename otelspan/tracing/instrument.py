"""Decorators that run functions inside wrapped spans."""

import functools
from typing import Any, Callable, Optional, TypeVar

from otelspan.tracing.attributes import SpanAttributes
from otelspan.tracing.hooks import HookRegistry
from otelspan.tracing.span import Span

# Type variable for generic decorator
F = TypeVar("F", bound=Callable[..., Any])


def traced(
    name: Optional[str] = None,
    kind: str = "internal",
    attributes: Optional[SpanAttributes] = None,
    hooks: Optional[HookRegistry] = None,
    recover: bool = False,
) -> Callable[[F], F]:
    """Decorator to trace a function.

    Args:
        name: Span name. Defaults to function name.
        kind: Span kind name.
        attributes: Static attributes to add to every span.
        hooks: Error/panic hooks, called from the spans when given.
        recover: Absorb exceptions (the call then returns None) instead of
            recording and re-raising them. Interrupts and exits always
            close the span as failed and propagate.

    Example:
        @traced(name="process_data", attributes=new_attrs().str_kv("stage", "transform"))
        def process_data(df):
            ...
    """

    def decorator(func: F) -> F:
        span_name = name or func.__name__

        @functools.wraps(func)
        def wrapper(*args, **kwargs):
            span = Span.start(span_name, kind=kind, hooks=hooks, invoke_hooks=hooks is not None)
            span.attrs.str_kv("code.function", func.__name__)
            span.attrs.str_kv("code.namespace", func.__module__)
            if attributes is not None:
                for key, value in attributes.parse():
                    span.span.set_attribute(key, value)

            if recover:
                with span:
                    result = func(*args, **kwargs)
                    span.ok()
                    return result
                return None

            with span.activate():
                try:
                    result = func(*args, **kwargs)
                except Exception as e:
                    span.error(e, record_stack_trace=True)
                    span.end()
                    raise
                except BaseException as e:
                    span.end(e)
                    raise
            span.ok()
            span.end()
            return result

        return wrapper  # type: ignore

    return decorator
