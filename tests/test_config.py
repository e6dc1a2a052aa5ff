import pytest

from nestedstopwatch import StopWatch, StopWatchConfig, load_config, print_sink


def test_defaults(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("NESTEDSTOPWATCH_LOGGING", raising=False)
    monkeypatch.delenv("NESTEDSTOPWATCH_SINK", raising=False)

    assert load_config() == StopWatchConfig(logging_enabled=False, sink="structlog")


@pytest.mark.parametrize(
    ("raw", "expected"),
    [("1", True), ("true", True), (" Yes ", True), ("on", True), ("0", False), ("nope", False)],
)
def test_logging_flag(monkeypatch: pytest.MonkeyPatch, raw: str, expected: bool) -> None:
    monkeypatch.setenv("NESTEDSTOPWATCH_LOGGING", raw)

    assert load_config().logging_enabled is expected


def test_unknown_sink_falls_back(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("NESTEDSTOPWATCH_SINK", "syslog")

    assert load_config().sink == "structlog"


def test_from_config() -> None:
    watch = StopWatch.from_config(StopWatchConfig(logging_enabled=True, sink="print"))

    assert watch.is_logging_enabled()
    assert watch.sink is print_sink


def test_from_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("NESTEDSTOPWATCH_LOGGING", "true")
    monkeypatch.setenv("NESTEDSTOPWATCH_SINK", "PRINT")

    watch = StopWatch.from_config(load_config())

    assert watch.is_logging_enabled()
    assert watch.sink is print_sink
