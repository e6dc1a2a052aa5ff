from collections.abc import Iterator

import pytest

import nestedstopwatch
from nestedstopwatch import CollectingSink, StopWatch


@pytest.fixture()
def sink() -> CollectingSink:
    return CollectingSink()


@pytest.fixture()
def watch(sink: CollectingSink) -> StopWatch:
    return StopWatch(sink=sink)


@pytest.fixture()
def shared_watch() -> Iterator[StopWatch]:
    default = nestedstopwatch.default
    previous_sink = default.sink
    previous_enabled = default.is_logging_enabled()
    default.reset()
    yield default
    default.reset()
    default.set_logger(previous_sink)
    if previous_enabled:
        default.enable_logging()
    else:
        default.disable_logging()
