"""Process-wide totals of elapsed milliseconds per operation name."""

from __future__ import annotations

import threading


class TimingStats:
    """Accumulate elapsed milliseconds per operation name.

    Every mutation and every read happens under one lock, so concurrent
    ``add`` calls for the same name never lose an update.
    """

    __slots__ = ("_lock", "_totals")

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._totals: dict[str, int] = {}

    def __len__(self) -> int:
        with self._lock:
            return len(self._totals)

    def __contains__(self, name: object) -> bool:
        with self._lock:
            return name in self._totals

    def add(self, name: str, elapsed_ms: int) -> int:
        """Add ``elapsed_ms`` to the total for ``name`` and return the new total."""
        with self._lock:
            total = self._totals.get(name, 0) + max(elapsed_ms, 0)
            self._totals[name] = total
            return total

    def get(self, name: str) -> int | None:
        with self._lock:
            return self._totals.get(name)

    def snapshot(self) -> dict[str, int]:
        """Return a copy of the totals that later updates cannot change."""
        with self._lock:
            return dict(self._totals)

    def clear(self) -> None:
        with self._lock:
            self._totals.clear()
