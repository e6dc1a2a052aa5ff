"""Environment driven defaults for the shared stopwatch."""

from __future__ import annotations

import os
from dataclasses import dataclass

from .sinks import SINK_NAMES

_DEFAULT_SINK = "structlog"


@dataclass(frozen=True)
class StopWatchConfig:
    """Immutable stopwatch configuration."""

    logging_enabled: bool = False
    sink: str = _DEFAULT_SINK


def _parse_bool(value: str | None, fallback: bool) -> bool:
    if value is None:
        return fallback
    return value.strip().lower() in {"1", "true", "yes", "on"}


def _parse_choice(value: str | None, fallback: str, choices: tuple[str, ...]) -> str:
    if value is None:
        return fallback
    parsed = value.strip().lower()
    return parsed if parsed in choices else fallback


def load_config() -> StopWatchConfig:
    """Load configuration from environment variables, applying defaults."""

    logging_enabled = _parse_bool(os.getenv("NESTEDSTOPWATCH_LOGGING"), False)
    sink = _parse_choice(os.getenv("NESTEDSTOPWATCH_SINK"), _DEFAULT_SINK, SINK_NAMES)

    return StopWatchConfig(logging_enabled=logging_enabled, sink=sink)
