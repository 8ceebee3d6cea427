from __future__ import annotations

from typing import List, Tuple

from modal_engine import ModeName, VimSession


def record_events(session: VimSession, *names: str) -> List[Tuple[str, object]]:
    seen: List[Tuple[str, object]] = []
    for name in names:
        session.bus.subscribe(name, lambda payload, name=name: seen.append((name, payload)))
    return seen


def test_line_number_jumps_to_first_non_blank() -> None:
    session = VimSession(lines=["one", "two", "  three"])

    result = session.handle_keys(":3<cr>")[-1]

    assert session.mode is ModeName.NORMAL
    assert session.cursor.to_host() == (2, 2)
    assert result.message == "line 3"


def test_dollar_jumps_to_last_line() -> None:
    session = VimSession(lines=["one", "two", "three"])

    session.handle_keys(":$<cr>")

    assert session.cursor.line == 2


def test_unknown_command_reports_error() -> None:
    session = VimSession(lines=["abc"])
    events = record_events(session, "command.error")

    result = session.handle_keys(":foo<cr>")[-1]

    assert result.status == "command_error"
    assert result.switch_to == "normal"
    assert events == [("command.error", "foo")]
    assert session.text == "abc"


def test_echo_carries_arguments() -> None:
    session = VimSession()
    events = record_events(session, "command.echo")

    result = session.handle_keys(":echo hi there<cr>")[-1]

    assert result.status == "command_echo"
    assert events == [("command.echo", "hi there")]


def test_write_event_carries_buffer_text() -> None:
    session = VimSession(lines=["one", "two"])
    events = record_events(session, "command.write")

    session.handle_keys(":w out.txt<cr>")

    name, payload = events[0]
    assert isinstance(payload, dict)
    assert payload["text"] == "one\ntwo"
    assert payload["args"] == ["out.txt"]


def test_command_text_tracks_typing() -> None:
    session = VimSession()

    session.handle_keys(":ab")
    assert session.command_text == "ab"

    session.handle_keys("<bs>")
    assert session.command_text == "a"

    session.handle_keys("<c-u>")
    assert session.command_text == ""
    assert session.mode is ModeName.COMMAND_LINE


def test_backspace_on_empty_line_leaves_command_mode() -> None:
    session = VimSession()

    session.handle_keys(":a<bs><bs>")

    assert session.mode is ModeName.NORMAL
    assert session.command_text == ""


def test_escape_cancels_without_running() -> None:
    session = VimSession(lines=["abc"])
    events = record_events(session, "command.cancel", "command.submit", "command.end")

    result = session.handle_keys(":w<esc>")[-1]

    assert result.message == "command_cancel"
    assert session.mode is ModeName.NORMAL
    assert ("command.cancel", "w") in events
    assert all(name != "command.submit" for name, _ in events)


def test_empty_submit_is_noop() -> None:
    session = VimSession()

    result = session.handle_keys(":<cr>")[-1]

    assert result.status == "noop"
    assert session.mode is ModeName.NORMAL


def test_command_line_keeps_cursor() -> None:
    session = VimSession(lines=["abc"])
    session.handle_keys("l")

    session.handle_keys(":q<cr>")

    assert session.cursor.to_host() == (0, 1)
