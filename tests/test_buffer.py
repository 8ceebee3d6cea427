from __future__ import annotations

import pytest

from modal_engine import VimSession
from modal_engine.buffer import (
    Buffer,
    BufferValidationError,
    Position,
    RegisterBank,
    RegisterValue,
    TextBuffer,
    UndoEntry,
    UndoTimeline,
)


def make_entry(label: str, before: str, after: str) -> UndoEntry:
    return UndoEntry(
        label=label,
        before_text=before,
        after_text=after,
        cursor_before=Position(),
        cursor_after=Position(),
    )


def test_position_clamps_to_snapshot() -> None:
    lines = ("abc", "")

    assert Position(5, 9).clamp(lines).to_host() == (1, 0)
    assert Position(0, 9).clamp(lines).to_host() == (0, 2)
    assert Position(0, 9).clamp(lines, past_end=True).to_host() == (0, 3)


def test_position_rejects_negative_coordinates() -> None:
    with pytest.raises(ValueError):
        Position(-1, 0)


def test_position_host_round_trip_one_based() -> None:
    position = Position(2, 4)

    assert position.to_host(one_based=True) == (3, 5)
    assert Position.from_host((3, 5), one_based=True) == position


def test_replace_range_across_lines() -> None:
    buffer = Buffer.from_lines(["abc", "def"])

    buffer.replace_range(Position(0, 1), Position(1, 2), "X", label="change")

    assert buffer.lines() == ("aXf",)
    assert buffer.document.dirty is True
    assert len(buffer.undo) == 1


def test_insert_rejects_out_of_range_position() -> None:
    buffer = Buffer.from_text("abc")

    with pytest.raises(BufferValidationError):
        buffer.insert("x", Position(0, 4))
    with pytest.raises(BufferValidationError):
        buffer.read_line_at(3)


def test_transaction_restores_document_on_error() -> None:
    buffer = Buffer.from_text("abc")

    with pytest.raises(RuntimeError):
        with buffer.transaction("edit", Position()):
            buffer.insert("x", Position(0, 0))
            raise RuntimeError("boom")

    assert buffer.text == "abc"
    assert len(buffer.undo) == 0


def test_nested_group_collapses_into_one_entry() -> None:
    buffer = Buffer.from_text("abc")

    buffer.begin_group("insert", Position(0, 1))
    buffer.insert("x", Position(0, 0))
    buffer.insert("y", Position(0, 0))
    buffer.end_group(Position(0, 2))

    assert buffer.text == "yxabc"
    assert len(buffer.undo) == 1
    assert buffer.undo_step() == Position(0, 1)
    assert buffer.text == "abc"
    assert buffer.redo_step() == Position(0, 1)
    assert buffer.text == "yxabc"


def test_group_without_changes_records_nothing() -> None:
    buffer = Buffer.from_text("abc")

    buffer.begin_group("noop", Position())
    buffer.end_group(Position())

    assert len(buffer.undo) == 0
    assert buffer.undo_step() is None


def test_undo_timeline_drops_redo_tail() -> None:
    timeline = UndoTimeline()
    timeline.push(make_entry("one", "", "a"))
    timeline.push(make_entry("two", "a", "ab"))

    assert timeline.undo() is not None
    timeline.push(make_entry("three", "a", "ac"))

    assert len(timeline) == 2
    assert timeline.can_redo() is False
    undone = timeline.undo()
    assert undone is not None and undone.label == "three"


def test_mirror_reports_host_coordinates() -> None:
    buffer = Buffer.from_lines(["abc", "def"])
    buffer.set_cursor(Position(1, 2))

    mirror = buffer.mirror(attributes={"mode": "normal"})

    assert mirror.text == "abc\ndef"
    assert mirror.cursor == (1, 2)
    assert mirror.attributes == {"mode": "normal"}


def test_uppercase_register_appends() -> None:
    bank = RegisterBank()
    bank.yank_to("a", RegisterValue("foo"))

    bank.yank_to("A", RegisterValue("bar"))

    assert bank.get("a").text == "foobar"
    assert bank.get().text == "foobar"


def test_uppercase_register_append_becomes_linewise() -> None:
    bank = RegisterBank()
    bank.set("a", RegisterValue("one", type="line"))

    bank.set("A", RegisterValue("two"))

    assert bank.get("a") == RegisterValue("one\ntwo", type="line")


def test_delete_to_shifts_numbered_registers() -> None:
    bank = RegisterBank()

    bank.delete_to(None, RegisterValue("first", type="line"))
    bank.delete_to(None, RegisterValue("second", type="line"))
    bank.delete_to(None, RegisterValue("word"))

    assert bank.get("1").text == "second"
    assert bank.get("2").text == "first"
    assert bank.get("-").text == "word"
    assert bank.get().text == "word"


def test_yank_fills_register_zero_only_when_unnamed() -> None:
    bank = RegisterBank()

    bank.yank_to(None, RegisterValue("plain"))
    bank.yank_to("b", RegisterValue("named"))

    assert bank.get("0").text == "plain"
    assert bank.get("b").text == "named"
    assert bank.get().text == "named"


def test_black_hole_register_discards() -> None:
    bank = RegisterBank()
    bank.yank_to(None, RegisterValue("keep"))

    bank.delete_to("_", RegisterValue("gone"))
    bank.yank_to("_", RegisterValue("gone"))

    assert bank.get().text == "keep"
    assert bank.get("_").text == ""


def test_buffer_satisfies_collaborator_contract() -> None:
    buffer = Buffer.from_lines(["abc", "def"])

    assert isinstance(buffer, TextBuffer)
    assert buffer.line_count() == 2
    assert buffer.read_line_at(1) == "def"

    buffer.insert("X\n", Position(0, 1))
    assert list(buffer.lines()) == ["aX", "bc", "def"]
    assert buffer.line_count() == 3

    buffer.delete(Position(0, 1), Position(1, 1))
    assert list(buffer.lines()) == ["ac", "def"]

    with pytest.raises(BufferValidationError):
        buffer.read_line_at(5)


def test_selection_round_trips_through_collaborator() -> None:
    buffer = Buffer.from_text("abc")

    assert buffer.get_selection() is None
    buffer.set_selection(((0, 0), (0, 2)))
    assert buffer.get_selection() == ((0, 0), (0, 2))
    buffer.set_selection(None)
    assert buffer.get_selection() is None


def test_visual_mode_publishes_selection_to_buffer() -> None:
    session = VimSession(lines=["abc", "def"])

    session.handle_keys("vjl")
    assert session.buffer.get_selection() == ((0, 0), (1, 1))

    session.handle_keys("<esc>")
    assert session.buffer.get_selection() is None
