from __future__ import annotations

from typing import Callable

from modal_engine import EngineOptions, ModeName, VimSession

Keys = Callable[..., VimSession]


def test_typing_and_backspace(keys: Keys) -> None:
    keys(["|"], "iab<bs>c<esc>", ["a|c"])


def test_enter_splits_line(keys: Keys) -> None:
    keys(["ab|c"], "i<cr><esc>", ["ab", "|c"])


def test_backspace_at_line_start_joins(keys: Keys) -> None:
    keys(["ab", "|c"], "i<bs><esc>", ["a|bc"])


def test_delete_word_and_line_before_cursor(keys: Keys) -> None:
    keys(["|foo bar"], "A<c-w><esc>", ["foo| "])
    keys(["|abc"], "A<c-u><esc>", ["|"])


def test_tab_follows_options(keys: Keys) -> None:
    keys(["|x"], "i<tab><esc>", ["   | x"])
    keys(["|x"], "a<tab><esc>", ["x|\t"], options=EngineOptions(insert_spaces=False))
    keys(["|xy"], "a<tab><esc>", ["x| y"], options=EngineOptions(tab_size=2))


def test_auto_indent_carries_leading_blanks(keys: Keys) -> None:
    options = EngineOptions(auto_indent=True)

    keys(["  |foo"], "ox<esc>", ["  foo", "  |x"], options=options)
    keys(["  |foo"], "A<cr>x<esc>", ["  foo", "  |x"], options=options)


def test_open_line_without_auto_indent(keys: Keys) -> None:
    keys(["  |foo"], "ox<esc>", ["  foo", "|x"])


def test_insert_arrow_keys_move_cursor(keys: Keys) -> None:
    keys(["|abc"], "i<right><right>X<esc>", ["ab|Xc"])


def test_insert_cursor_may_rest_past_end() -> None:
    session = VimSession(lines=["ab"])

    session.handle_keys("A")

    assert session.mode is ModeName.INSERT
    assert session.cursor.character == 2


def test_replace_overwrites(keys: Keys) -> None:
    keys(["|abc"], "Rxy<esc>", ["x|yc"])


def test_replace_backspace_restores_original(keys: Keys) -> None:
    keys(["|abc"], "Rxy<bs><esc>", ["|xbc"])


def test_replace_past_end_appends(keys: Keys) -> None:
    keys(["a|b"], "Rxyz<esc>", ["axy|z"])
    keys(["a|b"], "Rxy<bs><bs><esc>", ["|ab"])


def test_replace_session_is_one_undo_step(keys: Keys) -> None:
    keys(["|abc"], "Rxyz<esc>u", ["|abc"])
