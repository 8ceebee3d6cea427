from __future__ import annotations

from typing import Dict, Optional

import pytest

from modal_engine.buffer import Buffer
from modal_engine.engine import VimSession
from modal_engine.keymaps import (
    Binding,
    KeySequence,
    KeymapRegistry,
    KeymapResolver,
    load_default_keymaps,
)
from modal_engine.modes import (
    CommandMode,
    InsertMode,
    KeyInput,
    ModeBus,
    ModeContext,
    NormalMode,
    VisualMode,
)
from modal_engine.modes import mode_manager as mode_manager_module
from modal_engine.modes.mode_manager import ModeManager
from modal_engine.runtime.options import EngineOptions


def make_manager(
    registry: Optional[KeymapRegistry] = None,
    *,
    buffer: Optional[Buffer] = None,
) -> ModeManager:
    if registry is None:
        registry = KeymapRegistry()
        load_default_keymaps(registry)
    buffer_obj = buffer or Buffer()
    context = ModeContext(
        buffer=buffer_obj,
        registers=buffer_obj.registers,
        bus=ModeBus(),
    )
    manager = ModeManager(
        context,
        keymap_registry=registry,
        keymap_resolver=KeymapResolver(registry),
        load_defaults=False,
    )
    manager.register_mode(NormalMode)
    manager.register_mode(InsertMode)
    manager.register_mode(VisualMode)
    manager.register_mode(CommandMode)
    return manager


def registry_with_xx(timeout_ms: int = 500) -> KeymapRegistry:
    """Defaults plus ``xx`` so that ``x`` alone becomes ambiguous."""

    registry = KeymapRegistry()
    load_default_keymaps(registry, default_sequence_timeout_ms=timeout_ms)
    registry.register_binding(
        Binding(
            id="normal:xx",
            mode="normal",
            sequence=KeySequence.from_strings("x", "x", timeout_ms=timeout_ms),
            action_id="core.insert_before",
        )
    )
    return registry


def test_normal_mode_uses_keymap_binding() -> None:
    manager = make_manager()

    result = manager.handle_key(KeyInput(key="i"))

    assert result.switch_to == "insert"
    assert result.consumed is True
    assert manager.active_mode is not None
    assert manager.active_mode.name == "insert"


def test_insert_mode_escape_binding() -> None:
    manager = make_manager()
    manager.handle_key(KeyInput(key="i"))

    result = manager.handle_key(KeyInput(key="ESC"))

    assert result.switch_to == "normal"
    assert result.consumed is True
    assert manager.context.session.mode.value == "normal"


def test_unbound_normal_key_is_not_consumed() -> None:
    manager = make_manager()

    result = manager.handle_key(KeyInput(key="q"))

    assert result.consumed is False
    assert result.status == "miss"
    assert manager.context.session.pending.is_empty


def test_normal_mode_pending_sequence() -> None:
    manager = make_manager(buffer=Buffer.from_lines(["one", "two", "three"]))
    manager.handle_key(KeyInput(key="G"))

    pending = manager.handle_key(KeyInput(key="g"))
    assert pending.status == "pending"
    assert pending.consumed is True
    assert pending.timeout_ms is None

    match = manager.handle_key(KeyInput(key="g"))
    assert match.status == "ok"
    assert manager.context.session.cursor.line == 0


def test_pending_sequence_timeout_via_mode_manager() -> None:
    session = VimSession(lines=["abc"], keymap_registry=registry_with_xx())

    pending = session.handle_key("x")
    assert pending.status == "pending"
    assert pending.timeout_ms == 500
    assert session.pending == ("x",)
    assert session.text == "abc"

    timeouts = session.force_timeout()
    assert "normal" in timeouts
    assert timeouts["normal"].status == "ok"
    assert session.text == "bc"
    assert session.pending == ()


def test_longer_binding_wins_before_timeout() -> None:
    session = VimSession(lines=["abc"], keymap_registry=registry_with_xx())

    session.handle_keys("xx")

    assert session.mode.value == "insert"
    assert session.text == "abc"


def test_ambiguous_prefix_fires_when_next_key_diverges() -> None:
    session = VimSession(lines=["abc"], keymap_registry=registry_with_xx())

    results = session.handle_keys("xl")

    assert results[-1].status == "ok"
    assert session.text == "bc"
    assert session.cursor.character == 1


def test_process_timeouts_waits_for_deadline(monkeypatch: pytest.MonkeyPatch) -> None:
    clock = {"now": 100.0}
    monkeypatch.setattr(mode_manager_module.time, "monotonic", lambda: clock["now"])
    session = VimSession(lines=["abc"], keymap_registry=registry_with_xx())

    session.handle_key("x")
    clock["now"] = 100.2
    assert session.process_timeouts() == {}

    clock["now"] = 100.6
    results = session.process_timeouts()

    assert results["normal"].status == "ok"
    assert session.text == "bc"
    assert session.process_timeouts() == {}


def test_timeout_option_reaches_default_bindings() -> None:
    session = VimSession(
        lines=["abc"], options=EngineOptions(pending_timeout_ms=250)
    )

    binding = session.manager.keymap_registry.get_binding("normal:gg")

    assert binding.sequence.timeout_ms == 250


def test_mode_manager_switches_to_visual_mode() -> None:
    manager = make_manager()
    starts: list[object] = []
    manager.context.bus.subscribe("visual.start", starts.append)

    result = manager.handle_key(KeyInput(key="v"))

    assert result.switch_to == "visual"
    assert manager.active_mode and manager.active_mode.name == "visual"
    assert starts == ["visual"]


def test_switch_to_unknown_mode_raises() -> None:
    manager = make_manager()

    with pytest.raises(KeyError):
        manager.switch_mode("visual_block")


def test_grammar_binding_in_wrong_mode_is_rejected() -> None:
    registry = KeymapRegistry()
    load_default_keymaps(registry)
    registry.register_binding(
        Binding(
            id="normal:zi",
            mode="normal",
            sequence=KeySequence.from_strings("z", "i"),
            action_id="insert.exit",
        )
    )
    manager = make_manager(registry)
    dispatcher = manager.dispatcher
    normal = manager.get_mode("normal")
    manager.switch_mode("insert")

    outcome = normal.matcher.feed("z")
    outcome = normal.matcher.feed("i")
    assert outcome.request is not None
    result = dispatcher.execute(outcome.request)

    assert result.status == "rejected"
    assert manager.context.session.mode.value == "insert"


def test_command_mode_text_entry_and_submit() -> None:
    manager = make_manager()
    submitted: list[str] = []
    manager.context.bus.subscribe("command.submit", submitted.append)
    manager.handle_key(KeyInput(key=":", text=":"))

    manager.handle_key(KeyInput(key="w", text="w"))
    manager.handle_key(KeyInput(key="q", text="q"))
    result = manager.handle_key(KeyInput(key="ENTER"))

    assert result.switch_to == "normal"
    assert submitted == ["wq"]


def test_visual_mode_selection_and_yank() -> None:
    manager = make_manager(buffer=Buffer.from_text("alpha"))
    context = manager.context
    manager.handle_key(KeyInput(key="v"))

    move = manager.handle_key(KeyInput(key="l"))

    assert move.status == "ok"
    assert context.buffer.state.selection == ((0, 0), (0, 1))

    manager.handle_key(KeyInput(key="y"))

    assert context.buffer.registers.get('"').text == "al"
    assert context.session.mode.value == "normal"
    assert context.buffer.state.selection is None


def test_command_mode_submit_binding_executes_action() -> None:
    manager = make_manager()
    bus = manager.context.bus
    submissions: list[str] = []
    writes: list[Dict[str, object]] = []
    quits: list[Dict[str, object]] = []
    bus.subscribe("command.submit", submissions.append)
    bus.subscribe("command.write", writes.append)
    bus.subscribe("command.quit", quits.append)
    manager.handle_key(KeyInput(key=":", text=":"))

    manager.handle_key(KeyInput(key="w", text="w"))
    manager.handle_key(KeyInput(key="q", text="q"))
    result = manager.handle_key(KeyInput(key="ENTER"))

    assert result.switch_to == "normal"
    assert result.status == "command_wq"
    assert submissions == ["wq"]
    assert len(writes) == 1
    assert writes[0]["force"] is False
    assert len(quits) == 1
    assert quits[0]["force"] is False


def test_visual_mode_swap_anchor() -> None:
    manager = make_manager(buffer=Buffer.from_text("abcd"))
    context = manager.context
    manager.handle_key(KeyInput(key="v"))

    manager.handle_key(KeyInput(key="l"))
    swap = manager.handle_key(KeyInput(key="o"))

    assert swap.status == "ok"
    assert context.buffer.state.cursor.to_host() == (0, 0)
    assert context.buffer.state.selection == ((0, 1), (0, 0))


def test_visual_mode_delete_selection_returns_to_normal() -> None:
    manager = make_manager(buffer=Buffer.from_text("alpha"))
    context = manager.context
    manager.handle_key(KeyInput(key="v"))
    manager.handle_key(KeyInput(key="l"))

    result = manager.handle_key(KeyInput(key="d"))

    assert result.switch_to == "normal"
    assert context.buffer.snapshot().text == "pha"
    assert context.buffer.registers.get('"').text == "al"


def test_visual_mode_change_selection_switches_to_insert() -> None:
    manager = make_manager(buffer=Buffer.from_text("alpha"))
    context = manager.context
    manager.handle_key(KeyInput(key="v"))
    manager.handle_key(KeyInput(key="l"))

    result = manager.handle_key(KeyInput(key="c"))

    assert result.switch_to == "insert"
    assert context.buffer.snapshot().text == "pha"
    assert context.session.mode.value == "insert"


def _submit(manager: ModeManager, command: str) -> None:
    manager.handle_key(KeyInput(key=":", text=":"))
    for key in command:
        manager.handle_key(KeyInput(key=key, text=key))
    manager.handle_key(KeyInput(key="ENTER"))


def test_command_mode_write_force_event() -> None:
    manager = make_manager()
    writes: list[Dict[str, object]] = []
    manager.context.bus.subscribe("command.write", writes.append)

    _submit(manager, "w!")

    assert writes and writes[0]["force"] is True


def test_command_mode_x_command_triggers_write_and_quit() -> None:
    manager = make_manager()
    writes: list[Dict[str, object]] = []
    quits: list[Dict[str, object]] = []
    manager.context.bus.subscribe("command.write", writes.append)
    manager.context.bus.subscribe("command.quit", quits.append)

    _submit(manager, "x")

    assert writes and writes[0]["force"] is False
    assert quits and quits[0]["force"] is False


def test_command_mode_edit_force_event() -> None:
    manager = make_manager()
    edits: list[Dict[str, object]] = []
    manager.context.bus.subscribe("command.edit", edits.append)

    _submit(manager, "edit!")

    assert edits and edits[0]["force"] is True
