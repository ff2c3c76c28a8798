"""Set-once error and panic hooks shared by spans, decorators and middleware."""

import threading
from typing import Callable, Optional

ErrorFunc = Callable[[BaseException], Optional[BaseException]]
PanicFunc = Callable[[BaseException], None]


class _Once:
    """Runs a callable the first time only; later calls are ignored."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._done = False

    def do(self, fn: Callable[[], None]) -> bool:
        if self._done:
            return False
        with self._lock:
            if self._done:
                return False
            fn()
            self._done = True
            return True


class HookRegistry:
    """Custom error and panic handling for spans.

    Build one at startup and hand it to ``Span.start``, ``traced`` or
    ``SpanMiddleware``. Spans only call the hooks when started with
    ``invoke_hooks=True``; ``traced`` and ``SpanMiddleware`` do so whenever
    they are given a registry. Each hook has its own gate: the first assignment of a
    hook wins and later assignments of that same hook are silently ignored.

    Hooks:
        error_func: called by ``Span.error`` with the error; the returned
            error replaces it, ``None`` suppresses it.
        panic_func: called after a span has absorbed an exception that
            escaped its ``with`` block.
    """

    def __init__(self) -> None:
        self._error_func: Optional[ErrorFunc] = None
        self._panic_func: Optional[PanicFunc] = None
        self._error_once = _Once()
        self._panic_once = _Once()

    def set_error_func(self, fn: ErrorFunc) -> bool:
        """Register the error-transform hook. Returns False if already set."""

        def assign() -> None:
            self._error_func = fn

        return self._error_once.do(assign)

    def set_panic_func(self, fn: PanicFunc) -> bool:
        """Register the panic hook. Returns False if already set."""

        def assign() -> None:
            self._panic_func = fn

        return self._panic_once.do(assign)

    @property
    def error_func(self) -> Optional[ErrorFunc]:
        return self._error_func

    @property
    def panic_func(self) -> Optional[PanicFunc]:
        return self._panic_func

    def __repr__(self) -> str:
        return (
            f"HookRegistry(error_func={self._error_func!r}, "
            f"panic_func={self._panic_func!r})"
        )
