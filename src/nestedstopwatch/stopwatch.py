"""Provide the stopwatch facade and its shared default instance.

This module exposes:

- ``StopWatch``: Aggregates spans from every execution context into one set
  of per-name totals and forwards start/stop notifications to a sink.
- ``default``: The process-wide instance, configured from the environment.
- ``start``, ``stop``, ``get_elapsed_time``, ``reset``, ``get_stats``,
  ``enable_logging``, ``disable_logging``, ``is_logging_enabled`` and
  ``set_logger``: Shortcuts operating on ``default``.
- ``timer``: A context manager timing one named span.
- ``timing``: A decorator timing every call of a function.
"""

from __future__ import annotations

import inspect
from collections.abc import Awaitable, Callable, Iterator
from contextlib import AbstractAsyncContextManager, AbstractContextManager, contextmanager
from contextvars import ContextVar
from functools import wraps
from types import TracebackType
from typing import Any, Literal, ParamSpec, TypeVar, cast, overload

import structlog

from .config import StopWatchConfig, load_config
from .core import TimingContext, TimingNode, current_owner
from .sinks import Sink, sink_from_name, structlog_sink
from .stats import TimingStats

logger = structlog.get_logger(__name__)

P = ParamSpec("P")
R = TypeVar("R")

STARTED = "Started"


def finished_message(elapsed_ms: int) -> str:
    return f"Finished - elapsed time: {elapsed_ms}ms"


class StopWatch:
    """Time nested operations per execution context and total them per name.

    Each thread and each asyncio task gets its own stack of spans the first
    time it touches the stopwatch. Totals and the logging configuration are
    shared by all of them.

    Example:
        watch = StopWatch()
        watch.start("request")
        watch.start("query")
        watch.stop()
        watch.stop()
        watch.get_stats()  # {"request": ..., "query": ...}
    """

    def __init__(
        self,
        *,
        logging_enabled: bool = False,
        sink: Sink | None = None,
        stats: TimingStats | None = None,
    ) -> None:
        """Initialize a stopwatch.

        Args:
            logging_enabled (bool):
                Whether start/stop notifications are sent to the sink.
            sink (Sink | None):
                Notification sink. Defaults to ``structlog_sink()``.
            stats (TimingStats | None):
                Totals to accumulate into. Defaults to a new, empty one.
        """
        self._logging_enabled = logging_enabled
        self._sink: Sink = sink if sink is not None else structlog_sink()
        self._stats = stats if stats is not None else TimingStats()
        self._contexts: ContextVar[TimingContext | None] = ContextVar(
            f"_nestedstopwatch_context_{id(self):x}",
            default=None,
        )

    @classmethod
    def from_config(cls, config: StopWatchConfig) -> StopWatch:
        """Build a stopwatch from a ``StopWatchConfig``."""
        return cls(logging_enabled=config.logging_enabled, sink=sink_from_name(config.sink))

    @property
    def stats(self) -> TimingStats:
        return self._stats

    @property
    def sink(self) -> Sink:
        return self._sink

    def context(self) -> TimingContext:
        """Return the calling execution context's stack, creating it if needed.

        A stack inherited from another thread or task (through a copied
        ``contextvars`` context) is never reused; the caller gets its own.
        """
        owner = current_owner()
        ctx = self._contexts.get()
        if ctx is None or ctx.owner != owner:
            ctx = TimingContext(owner)
            self._contexts.set(ctx)
        return ctx

    @contextmanager
    def isolated(self) -> Iterator[TimingContext]:
        """Run the block on a fresh stack, restoring the previous one after."""
        ctx = TimingContext(current_owner())
        token = self._contexts.set(ctx)
        try:
            yield ctx
        finally:
            self._contexts.reset(token)

    def enable_logging(self) -> None:
        self._logging_enabled = True

    def disable_logging(self) -> None:
        self._logging_enabled = False

    def is_logging_enabled(self) -> bool:
        return self._logging_enabled

    def set_logger(self, sink: Sink | None) -> None:
        """Replace the notification sink. ``None`` keeps the current sink."""
        if sink is None:
            logger.warning("sink_ignored", reason="sink must not be None")
            return
        self._sink = sink

    def start(self, name: str) -> StopWatch:
        """Start a span named ``name`` under the current one.

        Args:
            name (str):
                Operation name. Must not be blank.

        Returns:
            StopWatch:
                This stopwatch, for chaining.

        Raises:
            InvalidNameError:
                If ``name`` is not a string or is blank. Nothing is started or logged.
        """
        self.context().start(name)
        if self._logging_enabled:
            self._sink(name, STARTED)
        return self

    def stop(self) -> int:
        """Stop the current span and add its elapsed time to the totals.

        Returns:
            int:
                Elapsed milliseconds, or 0 if no span was active.
        """
        ctx = self.context()
        elapsed = ctx.stop()
        name = ctx.last_stopped_name
        if name is None:
            return 0

        self._stats.add(name, elapsed)
        if self._logging_enabled:
            self._sink(name, finished_message(elapsed))
        return elapsed

    def get_elapsed_time(self) -> int:
        """Return elapsed milliseconds of the current span, 0 if none."""
        return self.context().elapsed()

    def reset(self) -> None:
        """Drop the calling context's active spans. Totals are kept.

        Dropped spans are reported as a structlog ``debug`` event only while
        logging is enabled.
        """
        ctx = self.context()
        if self._logging_enabled and not ctx.idle:
            logger.debug("context_reset", dropped=ctx.active_names())
        ctx.reset()

    def get_stats(self) -> dict[str, int]:
        """Return a copy of the accumulated milliseconds per operation name."""
        return self._stats.snapshot()


default = StopWatch.from_config(load_config())


def start(name: str) -> StopWatch:
    return default.start(name)


def stop() -> int:
    return default.stop()


def get_elapsed_time() -> int:
    return default.get_elapsed_time()


def reset() -> None:
    default.reset()


def get_stats() -> dict[str, int]:
    return default.get_stats()


def enable_logging() -> None:
    default.enable_logging()


def disable_logging() -> None:
    default.disable_logging()


def is_logging_enabled() -> bool:
    return default.is_logging_enabled()


def set_logger(sink: Sink | None) -> None:
    default.set_logger(sink)


class Timer(
    AbstractContextManager["Timer"],
    AbstractAsyncContextManager["Timer"],
):
    """Time one named span for the duration of a ``with`` block.

    Use this via the ``timer()`` helper function.

    Spans the block leaves open are stopped when it exits, innermost
    first, before the timer's own span.

    Attributes:
        elapsed (int | None):
            Elapsed milliseconds, set when the block exits. Stays ``None``
            if the span was dropped by ``reset()`` inside the block.
    """

    __slots__ = ("_name", "_watch", "_node", "elapsed")

    def __init__(self, name: str, watch: StopWatch | None = None) -> None:
        """Initialize a timing region.

        Args:
            name (str):
                Name of the span.
            watch (StopWatch | None):
                Stopwatch to record into. Defaults to ``default``.
        """
        self._name = name
        self._watch = watch
        self._node: TimingNode | None = None
        self.elapsed: int | None = None

    def _resolve(self) -> StopWatch:
        return self._watch if self._watch is not None else default

    def __enter__(self) -> Timer:
        """Start the span."""
        watch = self._resolve()
        watch.start(self._name)
        self._node = watch.context().current
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> Literal[False]:
        """Stop the span, also when the block raised.

        Returns:
            Literal[False]:
                Always returns False to propagate exceptions.
        """
        watch = self._resolve()
        ctx = watch.context()
        if self._node is None or not ctx.is_active(self._node):
            return False
        while ctx.current is not self._node:
            watch.stop()
        self.elapsed = watch.stop()
        return False

    async def __aenter__(self) -> Timer:
        """Start the span in async context."""
        return self.__enter__()

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> Literal[False]:
        """Stop the span in async context."""
        return self.__exit__(exc_type, exc, tb)


def timer(name: str, watch: StopWatch | None = None) -> Timer:
    """Create a context manager timing the span ``name``.

    Args:
        name (str):
            Name of the span.
        watch (StopWatch | None):
            Stopwatch to record into. Defaults to ``default``.

    Returns:
        Timer:
            A context manager that measures the named span.
    """
    return Timer(name, watch)


@overload
def timing(func: Callable[P, R], /) -> Callable[P, R]: ...


@overload
def timing(
    func: None = None,
    /,
    *,
    name: str | None = None,
    watch: StopWatch | None = None,
) -> Callable[[Callable[P, R]], Callable[P, R]]: ...


def timing(
    func: Callable[..., Any] | None = None,
    /,
    *,
    name: str | None = None,
    watch: StopWatch | None = None,
) -> Any:
    """Decorate a function so every call is timed as one span.

    Works bare (``@timing``) or with arguments
    (``@timing(name="load", watch=my_watch)``). Coroutine functions are
    timed until the coroutine completes.

    Args:
        func (Callable[..., Any] | None):
            The function to wrap, when used bare.
        name (str | None):
            Span name. Defaults to the function's qualified name.
        watch (StopWatch | None):
            Stopwatch to record into. Defaults to ``default``.

    Returns:
        Any:
            The wrapped function, or a decorator when called with arguments.
    """

    def decorate(fn: Callable[..., Any]) -> Callable[..., Any]:
        span = fn.__qualname__ if name is None else name
        if inspect.iscoroutinefunction(fn):
            return _timing_async(cast(Callable[..., Awaitable[Any]], fn), span, watch)
        return _timing_sync(fn, span, watch)

    if func is None:
        return decorate
    return decorate(func)


def _timing_sync(
    func: Callable[P, R],
    span: str,
    watch: StopWatch | None,
) -> Callable[P, R]:
    """Wrap a synchronous function in a span.

    Args:
        func (Callable[P, R]):
            The synchronous function being wrapped.
        span (str):
            Name of the span.
        watch (StopWatch | None):
            Stopwatch to record into, resolved per call when ``None``.

    Returns:
        Callable[P, R]:
            A wrapped function with the original signature.
    """

    @wraps(func)
    def wrapper(*args: P.args, **kwargs: P.kwargs) -> R:
        with Timer(span, watch):
            return func(*args, **kwargs)

    return wrapper


def _timing_async(
    func: Callable[P, Awaitable[R]],
    span: str,
    watch: StopWatch | None,
) -> Callable[P, Awaitable[R]]:
    """Wrap an asynchronous function in a span.

    Args:
        func (Callable[P, Awaitable[R]]):
            The asynchronous function being wrapped.
        span (str):
            Name of the span.
        watch (StopWatch | None):
            Stopwatch to record into, resolved per call when ``None``.

    Returns:
        Callable[P, Awaitable[R]]:
            A wrapped coroutine function with the original signature.
    """

    @wraps(func)
    async def wrapper(*args: P.args, **kwargs: P.kwargs) -> R:
        async with Timer(span, watch):
            return await func(*args, **kwargs)

    return wrapper
