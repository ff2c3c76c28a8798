"""Starlette middleware that wraps each HTTP request in a server span."""

import time
from typing import Callable, Optional

from loguru import logger
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response
from starlette.types import ASGIApp

from otelspan.tracing.hooks import HookRegistry
from otelspan.tracing.span import Span


class SpanMiddleware(BaseHTTPMiddleware):
    """Middleware that adds a span to all HTTP requests.

    Creates a server span for each request with:
    - HTTP method, route and scheme
    - Client IP and user agent
    - Status code and duration

    Failures raised by the app are recorded on the span and re-raised, so
    the framework's own error handling still runs.
    """

    def __init__(
        self,
        app: ASGIApp,
        hooks: Optional[HookRegistry] = None,
        tracer_name: Optional[str] = None,
    ):
        super().__init__(app)
        self.hooks = hooks
        self.tracer_name = tracer_name

    async def dispatch(
        self,
        request: Request,
        call_next: Callable,
    ) -> Response:
        """Process request inside a span."""
        method = request.method
        path = request.url.path

        span = Span.start(
            f"{method} {path}",
            kind="server",
            tracer_name=self.tracer_name,
            hooks=self.hooks,
            invoke_hooks=self.hooks is not None,
        )
        span.attrs.str_kv("http.method", method)
        span.attrs.str_kv("http.route", path)
        span.attrs.str_kv("http.scheme", request.url.scheme)
        span.attrs.str_kv("http.client_ip", request.client.host if request.client else "unknown")
        span.attrs.str_kv("http.user_agent", request.headers.get("user-agent", "unknown"))

        request.state.trace_id = span.trace_id()
        start_time = time.perf_counter()

        with span.activate():
            try:
                response = await call_next(request)
            except Exception as e:
                span.attrs.float_kv("http.duration_ms", (time.perf_counter() - start_time) * 1000)
                span.error(e, record_stack_trace=True)
                span.end()
                logger.warning(f"Request failed: {method} {path}: {e}")
                raise
            except BaseException as e:
                # Cancelled requests (client disconnects) still close the span
                span.end(e)
                raise

        span.attrs.int_kv("http.status_code", response.status_code)
        span.attrs.float_kv("http.duration_ms", (time.perf_counter() - start_time) * 1000)
        if response.status_code >= 500:
            span.s_error(f"HTTP {response.status_code}")

        trace_id = span.trace_id()
        if trace_id:
            response.headers["X-Trace-ID"] = trace_id

        span.end()
        return response


def add_span_middleware(app, hooks: Optional[HookRegistry] = None) -> None:
    """Add the span middleware to a Starlette/FastAPI application.

    Args:
        app: Application instance
        hooks: Error/panic hooks shared by the request spans
    """
    app.add_middleware(SpanMiddleware, hooks=hooks)
    logger.info("Span middleware added to app")
