"""Notification sinks for span start and stop events.

A sink is any callable taking ``(operation, message)``. The stopwatch calls
it with ``"Started"`` when a span starts and with
``"Finished - elapsed time: <n>ms"`` when a span stops.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable
from typing import Any

import structlog

Sink = Callable[[str, str], None]

SINK_NAMES = ("structlog", "print", "logging")


def print_sink(operation: str, message: str) -> None:
    """Write the notification to standard output."""
    print(f"[StopWatch] {operation}: {message}")


def structlog_sink(logger: Any | None = None) -> Sink:
    """Build a sink emitting one structlog ``info`` event per notification.

    Args:
        logger (Any | None):
            A structlog bound logger. Defaults to ``structlog.get_logger("nestedstopwatch")``.

    Returns:
        Sink:
            The sink callable.
    """
    log = logger if logger is not None else structlog.get_logger("nestedstopwatch")

    def sink(operation: str, message: str) -> None:
        log.info("stopwatch", operation=operation, message=message)

    return sink


def logging_sink(logger: logging.Logger | None = None, level: int = logging.INFO) -> Sink:
    """Build a sink writing to a standard library logger.

    Args:
        logger (logging.Logger | None):
            Target logger. Defaults to ``logging.getLogger("nestedstopwatch")``.
        level (int):
            Level of every emitted record.

    Returns:
        Sink:
            The sink callable.
    """
    log = logger if logger is not None else logging.getLogger("nestedstopwatch")

    def sink(operation: str, message: str) -> None:
        log.log(level, "[StopWatch] %s - %s", operation, message)

    return sink


def sink_from_name(name: str) -> Sink:
    """Return the built-in sink registered under ``name``.

    Raises:
        KeyError: If ``name`` is not one of ``SINK_NAMES``.
    """
    if name == "structlog":
        return structlog_sink()
    if name == "print":
        return print_sink
    if name == "logging":
        return logging_sink()
    raise KeyError(name)


class CollectingSink:
    """Keep every notification in memory, in arrival order.

    Safe to share between threads.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._events: list[tuple[str, str]] = []

    def __call__(self, operation: str, message: str) -> None:
        with self._lock:
            self._events.append((operation, message))

    def __len__(self) -> int:
        with self._lock:
            return len(self._events)

    @property
    def events(self) -> list[tuple[str, str]]:
        with self._lock:
            return list(self._events)

    @property
    def messages(self) -> list[str]:
        """Return the notifications formatted as ``"operation: message"``."""
        return [f"{operation}: {message}" for operation, message in self.events]

    def clear(self) -> None:
        with self._lock:
            self._events.clear()
