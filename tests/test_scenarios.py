from __future__ import annotations

from typing import Callable

import pytest

from modal_engine import ModeName, Position, VimSession
from modal_engine.buffer import BufferCollaboratorError

Keys = Callable[..., VimSession]


def test_edit_session_end_to_end() -> None:
    session = VimSession(lines=["hello world", "second line", "third"])

    session.handle_keys("dw")
    session.handle_keys("iX<esc>")
    session.handle_keys("2j")

    assert session.lines == ("Xworld", "second line", "third")
    assert session.cursor.to_host() == (2, 0)
    assert session.mode is ModeName.NORMAL


def test_dot_repeats_operator(keys: Keys) -> None:
    keys(["|a b c d"], "dw.", ["|c d"])
    keys(["|abcdefg"], "3x.", ["|g"])


def test_dot_repeats_insert_session(keys: Keys) -> None:
    keys(["|x"], "ifoo<esc>.", ["fofo|oox"])
    keys(["|a", "b"], "A!<esc>j.", ["a!", "b|!"])


def test_dot_repeat_is_one_undo_step(keys: Keys) -> None:
    keys(["|x"], "ifoo<esc>.u", ["fo|ox"])


def test_dot_without_history_is_noop() -> None:
    session = VimSession(lines=["abc"])

    result = session.handle_key(".")

    assert result.status == "noop"
    assert session.text == "abc"


def test_motions_are_not_recorded_for_repeat(keys: Keys) -> None:
    keys(["|abcd"], "xl.", ["b|d"])


def test_failed_edit_rolls_back(monkeypatch: pytest.MonkeyPatch) -> None:
    session = VimSession(lines=["abc"])
    session.place_cursor(Position(0, 1))

    def broken_insert(text: str, position: Position) -> None:
        raise BufferCollaboratorError("host rejected edit")

    monkeypatch.setattr(session.buffer, "insert", broken_insert)

    result = session.handle_keys("rX")[-1]

    assert result.status == "failed"
    assert result.message == "host rejected edit"
    assert session.text == "abc"
    assert session.cursor.to_host() == (0, 1)
    assert session.mode is ModeName.NORMAL


def test_sessions_do_not_share_state() -> None:
    first = VimSession(lines=["abc"])
    second = VimSession(lines=["abc"], keymap_registry=first.manager.keymap_registry)

    first.handle_keys("yy")
    first.handle_keys("i")

    assert second.mode is ModeName.NORMAL
    assert second.registers.get().text == ""


def test_end_mode_check_can_be_skipped(keys: Keys) -> None:
    session = keys(["a|bc"], "a", ["ab|c"], mode=None)

    assert session.mode is ModeName.INSERT
    keys(["a|bc"], "v", ["a|bc"], mode=ModeName.VISUAL)
