from __future__ import annotations

from typing import Callable

from modal_engine import ModeName, VimSession

Keys = Callable[..., VimSession]


def test_charwise_selection_is_inclusive(keys: Keys) -> None:
    session = keys(["|foo bar"], "vl", ["f|oo bar"], mode=ModeName.VISUAL)

    assert session.buffer.state.selection == ((0, 0), (0, 1))


def test_charwise_operators(keys: Keys) -> None:
    keys(["|foo bar"], "veU", ["|FOO bar"])
    keys(["|foo bar"], "vex", ["| bar"])
    keys(["|abc"], "vlrx", ["|xxc"])


def test_text_object_extends_selection(keys: Keys) -> None:
    session = keys(["foo |bar baz"], "viwy", ["foo |bar baz"])

    assert session.registers.get().text == "bar"
    assert session.registers.get("0").text == "bar"


def test_linewise_delete(keys: Keys) -> None:
    session = keys(["one", "|two", "three"], "Vd", ["one", "|three"])

    assert session.registers.get().type == "line"


def test_linewise_yank_from_charwise(keys: Keys) -> None:
    session = keys(["o|ne", "two"], "vY", ["o|ne", "two"])

    assert session.registers.get().text == "one"
    assert session.registers.get().type == "line"


def test_block_delete(keys: Keys) -> None:
    session = keys(["|abc", "def"], "<c-v>jld", ["|c", "f"])

    assert session.registers.get().type == "block"


def test_switching_variants_keeps_anchor() -> None:
    session = VimSession(lines=["abc", "def"])

    session.handle_keys("vjV")

    assert session.mode is ModeName.VISUAL_LINE
    assert session.buffer.state.selection == ((0, 0), (1, 0))

    session.handle_keys("V")
    assert session.mode is ModeName.NORMAL
    assert session.buffer.state.selection is None


def test_visual_change_enters_insert(keys: Keys) -> None:
    keys(["|foo bar"], "vecX<esc>", ["|X bar"])


def test_escape_leaves_visual_without_edit(keys: Keys) -> None:
    keys(["|abc"], "vl<esc>", ["a|bc"])
