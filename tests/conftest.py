from __future__ import annotations

from typing import Callable, List, Optional, Sequence, Tuple

import pytest

from modal_engine import EngineOptions, ModeName, Position, VimSession

CURSOR = "|"


def parse_cursor(lines: Sequence[str]) -> Tuple[List[str], Position]:
    """Strip the ``|`` marker from ``lines`` and return where it stood."""

    clean: List[str] = []
    cursor: Optional[Position] = None
    for row, line in enumerate(lines):
        column = line.find(CURSOR)
        if column >= 0:
            if cursor is not None:
                raise ValueError("more than one cursor marker")
            cursor = Position(row, column)
            line = line[:column] + line[column + 1 :]
        clean.append(line)
    if cursor is None:
        raise ValueError("no cursor marker")
    return clean, cursor


def render_cursor(lines: Sequence[str], cursor: Position) -> List[str]:
    rows = list(lines)
    row = rows[cursor.line]
    rows[cursor.line] = row[: cursor.character] + CURSOR + row[cursor.character :]
    return rows


def start_session(
    lines: Sequence[str], *, options: Optional[EngineOptions] = None
) -> VimSession:
    """Session over ``lines`` with the cursor put on the marker by keystrokes."""

    clean, cursor = parse_cursor(lines)
    session = VimSession(lines=clean, options=options)
    session.handle_keys(f"{cursor.line + 1}G0")
    if cursor.character:
        session.handle_keys(f"{cursor.character + 1}|")
    assert session.cursor == cursor
    return session


def expect_keys(
    start: Sequence[str],
    keys: str,
    expected: Sequence[str],
    *,
    mode: Optional[ModeName] = ModeName.NORMAL,
    options: Optional[EngineOptions] = None,
) -> VimSession:
    session = start_session(start, options=options)
    session.handle_keys(keys)
    assert render_cursor(session.lines, session.cursor) == list(expected)
    if mode is not None:
        assert session.mode is mode
    return session


@pytest.fixture
def vim() -> Callable[..., VimSession]:
    return start_session


@pytest.fixture
def keys() -> Callable[..., VimSession]:
    return expect_keys
