"""Public API for nestedstopwatch.

This module re-exports the primary public interfaces:

- ``start`` / ``stop`` / ``get_elapsed_time`` / ``reset`` / ``get_stats``:
  Operations on the shared stopwatch.
- ``enable_logging`` / ``disable_logging`` / ``is_logging_enabled`` /
  ``set_logger``: Control of start/stop notifications.
- ``StopWatch``: The facade class, for explicitly constructed instances.
- ``timer``: Context manager timing one named span.
- ``timing``: Decorator timing every call of a function.
- ``TimingNode`` / ``TimingContext``: The per-context span stack.
- ``InvalidNameError``: Raised by ``start`` for a blank name.

Import from this module rather than the submodules.
"""

from .config import StopWatchConfig, load_config
from .core import InvalidNameError, TimingContext, TimingNode
from .sinks import CollectingSink, Sink, logging_sink, print_sink, structlog_sink
from .stats import TimingStats
from .stopwatch import (
    StopWatch,
    Timer,
    default,
    disable_logging,
    enable_logging,
    get_elapsed_time,
    get_stats,
    is_logging_enabled,
    reset,
    set_logger,
    start,
    stop,
    timer,
    timing,
)

__all__ = [
    "start",
    "stop",
    "get_elapsed_time",
    "reset",
    "get_stats",
    "enable_logging",
    "disable_logging",
    "is_logging_enabled",
    "set_logger",
    "StopWatch",
    "default",
    "timer",
    "timing",
    "Timer",
    "TimingNode",
    "TimingContext",
    "TimingStats",
    "InvalidNameError",
    "Sink",
    "CollectingSink",
    "print_sink",
    "structlog_sink",
    "logging_sink",
    "StopWatchConfig",
    "load_config",
]
