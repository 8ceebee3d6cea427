from __future__ import annotations

from typing import Any, List, Tuple

import pytest

from modal_engine import EngineOptions, VimSession
from modal_engine.runtime import telemetry


def test_defaults() -> None:
    options = EngineOptions()

    assert options.tab_size == 4
    assert options.insert_spaces is True
    assert options.indent_width == 4
    assert options.indent_unit() == "    "
    assert options.pending_timeout_ms == 1000


def test_shift_width_overrides_tab_size() -> None:
    options = EngineOptions(tab_size=8, shift_width=2)

    assert options.indent_width == 2
    assert options.with_changes(insert_spaces=False).indent_unit() == "\t"


@pytest.mark.parametrize(
    "changes",
    [{"tab_size": 0}, {"shift_width": -1}, {"pending_timeout_ms": 0}],
)
def test_invalid_values_rejected(changes: dict[str, int]) -> None:
    with pytest.raises(ValueError):
        EngineOptions(**changes)


def test_from_mapping_rejects_unknown_keys() -> None:
    assert EngineOptions.from_mapping({"tab_size": 2}).tab_size == 2

    with pytest.raises(ValueError, match="expand_tab"):
        EngineOptions.from_mapping({"expand_tab": True})


def test_from_env_reads_prefixed_variables(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("MODAL_ENGINE_TAB_SIZE", "2")
    monkeypatch.setenv("MODAL_ENGINE_AUTO_INDENT", "yes")
    monkeypatch.setenv("MODAL_ENGINE_INSERT_SPACES", "off")

    options = EngineOptions.from_env()

    assert options.tab_size == 2
    assert options.auto_indent is True
    assert options.insert_spaces is False
    assert options.shift_width is None


def test_from_env_rejects_malformed_values(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("MODAL_ENGINE_AUTO_INDENT", "maybe")
    with pytest.raises(ValueError, match="auto_indent"):
        EngineOptions.from_env()

    monkeypatch.delenv("MODAL_ENGINE_AUTO_INDENT")
    monkeypatch.setenv("MODAL_ENGINE_TAB_SIZE", "four")
    with pytest.raises(ValueError, match="tab_size"):
        EngineOptions.from_env()


def test_indent_operator_uses_shift_width() -> None:
    session = VimSession(lines=["foo"], options=EngineOptions(shift_width=2))

    session.handle_keys(">>")

    assert session.lines == ("  foo",)


class RecordingLogger:
    def __init__(self) -> None:
        self.records: List[Tuple[str, str, Any]] = []

    def info_with(self, message: str, pairs: Any) -> None:
        self.records.append(("info", message, pairs))

    def warning(self, message: str) -> None:
        self.records.append(("warning", message, None))


def test_record_event_prefers_structured_method(monkeypatch: pytest.MonkeyPatch) -> None:
    fake = RecordingLogger()
    monkeypatch.setitem(telemetry._LOGGER_CACHE, "tests.fake", fake)

    telemetry.record_event("unit", data={"keys": ("d", "w")}, logger_name="tests.fake")
    telemetry.record_event("plain", level="warning", logger_name="tests.fake")

    level, message, pairs = fake.records[0]
    assert (level, message) == ("info", "event::unit")
    assert ("keys", "('d', 'w')") in pairs
    assert fake.records[1][0] == "warning"
    assert fake.records[1][1].startswith("event::plain")


def test_record_event_unknown_level(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setitem(telemetry._LOGGER_CACHE, "tests.fake", RecordingLogger())

    with pytest.raises(ValueError):
        telemetry.record_event("x", level="trace", logger_name="tests.fake")


def test_configure_rejects_ambiguous_arguments() -> None:
    with pytest.raises(ValueError):
        telemetry.configure(preset="nonsense")
    with pytest.raises(ValueError):
        telemetry.configure(config=object(), preset="development")
