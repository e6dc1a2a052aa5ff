"""Provide the per-context timing stack.

This module exposes:

- ``TimingNode``: One started span within a timing stack.
- ``TimingContext``: The stack of active spans owned by one execution
  context (an OS thread or an asyncio task).
- ``InvalidNameError``: Raised when a span is started without a usable name.

Nothing here is shared between execution contexts, so nothing here locks.
Aggregation across contexts lives in ``nestedstopwatch.stats``.
"""

from __future__ import annotations

import asyncio
import threading
import time
import weakref
from dataclasses import dataclass, field

_NS_PER_MS = 1_000_000


def now_ns() -> int:
    """Return the monotonic clock reading used for every span."""
    return time.perf_counter_ns()


def current_owner() -> tuple[int, asyncio.Task[object] | None]:
    """Identify the calling execution context.

    Returns:
        tuple[int, asyncio.Task | None]:
            The calling thread's ident and the running asyncio task, if any.
    """
    try:
        task = asyncio.current_task()
    except RuntimeError:
        task = None
    return threading.get_ident(), task


class InvalidNameError(ValueError):
    """Raised by ``start`` when the span name is not a string or is blank."""


@dataclass(slots=True, weakref_slot=True, eq=False)
class TimingNode:
    """Represent one span in a timing stack.

    Attributes:
        name (str | None):
            Operation name. ``None`` only for the root sentinel.
        start_ns (int):
            Clock reading taken when the span started.
        end_ns (int | None):
            Clock reading taken when the span stopped, ``None`` while running.
        children (dict[str, TimingNode]):
            Spans started directly under this one, keyed by name. A later
            child replaces an earlier one of the same name.
    """

    name: str | None
    start_ns: int = field(default_factory=now_ns)
    end_ns: int | None = None
    children: dict[str, TimingNode] = field(default_factory=dict)
    _parent: weakref.ref[TimingNode] | None = field(default=None, repr=False)

    @property
    def parent(self) -> TimingNode | None:
        """Return the enclosing span, or ``None`` for the root sentinel."""
        return self._parent() if self._parent is not None else None

    @property
    def running(self) -> bool:
        return self.end_ns is None

    def add_child(self, name: str) -> TimingNode:
        """Create a running span under this one and return it."""
        child = TimingNode(name, _parent=weakref.ref(self))
        self.children[name] = child
        return child

    def stop(self) -> int:
        """Stop the span once and return its elapsed milliseconds."""
        if self.end_ns is None:
            self.end_ns = now_ns()
        return self.elapsed()

    def elapsed(self) -> int:
        """Return elapsed milliseconds, measured up to now while running."""
        end = now_ns() if self.end_ns is None else self.end_ns
        return max(end - self.start_ns, 0) // _NS_PER_MS


class TimingContext:
    """Hold the stack of active spans for a single execution context.

    The stack is the chain of ``parent`` links from ``current`` up to the
    nameless ``root`` sentinel. ``root`` is never started, stopped or
    reported.
    """

    __slots__ = ("owner", "root", "current", "last_stopped_name")

    def __init__(self, owner: tuple[int, asyncio.Task[object] | None] | None = None) -> None:
        self.owner = owner
        self.root = TimingNode(None)
        self.current = self.root
        self.last_stopped_name: str | None = None

    def __repr__(self) -> str:
        return f"TimingContext(active={self.active_names()!r})"

    @property
    def idle(self) -> bool:
        return self.current is self.root

    @property
    def depth(self) -> int:
        """Return the number of started spans not yet stopped."""
        depth = 0
        node = self.current
        while node is not self.root:
            depth += 1
            node = node.parent
        return depth

    @property
    def current_name(self) -> str | None:
        return None if self.idle else self.current.name

    def active_names(self) -> list[str]:
        """Return the names of the active spans, outermost first."""
        names: list[str] = []
        node = self.current
        while node is not self.root:
            names.append(node.name)
            node = node.parent
        names.reverse()
        return names

    def is_active(self, node: TimingNode) -> bool:
        """Return whether ``node`` is still on this stack."""
        current = self.current
        while current is not self.root:
            if current is node:
                return True
            current = current.parent
        return False

    def start(self, name: str) -> TimingNode:
        """Push a new span named ``name`` on top of the stack.

        Args:
            name (str):
                Operation name. Must contain something besides whitespace.

        Returns:
            TimingNode:
                The newly started span.

        Raises:
            InvalidNameError:
                If ``name`` is not a string or is blank. The stack is left unchanged.
        """
        if not isinstance(name, str) or not name.strip():
            raise InvalidNameError("span name must be a non-blank string")
        self.current = self.current.add_child(name)
        return self.current

    def stop(self) -> int:
        """Pop the top span and return its elapsed milliseconds.

        Stopping an idle context is a no-op that returns 0 and clears
        ``last_stopped_name``.
        """
        if self.idle:
            self.last_stopped_name = None
            return 0

        node = self.current
        self.last_stopped_name = node.name
        elapsed = node.stop()
        self.current = node.parent
        return elapsed

    def elapsed(self) -> int:
        """Return elapsed milliseconds of the top span, 0 when idle."""
        if self.idle:
            return 0
        return self.current.elapsed()

    def reset(self) -> None:
        """Drop every active span and start over from a fresh root."""
        self.root = TimingNode(None)
        self.current = self.root
        self.last_stopped_name = None
