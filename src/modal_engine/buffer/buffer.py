"""Buffer façade combining document, cursor mirror, registers and undo."""

from __future__ import annotations

from contextlib import AbstractContextManager
from dataclasses import dataclass
from typing import ContextManager, Iterable, Optional, Sequence

from modal_engine.runtime import telemetry

from .document import BufferDocument
from .position import Position
from .registers import RegisterBank
from .state import BufferState, Selection
from .sync import BufferMirror
from .undo import UndoEntry, UndoTimeline
from .validation import ensure_line_index, ensure_position


@dataclass(slots=True)
class BufferView:
    version: int
    text: str
    cursor: Position
    selection: Optional[Selection]


@dataclass(slots=True)
class _UndoGroup:
    label: str
    before_text: str
    cursor_before: Position
    depth: int = 1


class Buffer:
    """In-memory implementation of the ``TextBuffer`` collaborator.

    Edits made while an undo group is open collapse into a single undo
    entry once the outermost group closes.
    """

    def __init__(
        self,
        *,
        name: str = "default",
        document: Optional[BufferDocument] = None,
        state: Optional[BufferState] = None,
        registers: Optional[RegisterBank] = None,
        undo: Optional[UndoTimeline] = None,
    ) -> None:
        self.name = name
        self.document = document or BufferDocument()
        self.state = state or BufferState()
        self.registers = registers or RegisterBank()
        self.undo = undo or UndoTimeline()
        self._group: Optional[_UndoGroup] = None

    @classmethod
    def from_text(cls, text: str, *, name: str = "default") -> "Buffer":
        return cls(name=name, document=BufferDocument.from_text(text))

    @classmethod
    def from_lines(cls, lines: Iterable[str], *, name: str = "default") -> "Buffer":
        return cls(name=name, document=BufferDocument.from_lines(lines))

    @property
    def text(self) -> str:
        return self.document.text

    def lines(self) -> Sequence[str]:
        return self.document.snapshot()

    def snapshot(self) -> BufferView:
        return BufferView(
            version=self.document.version,
            text=self.document.text,
            cursor=self.state.cursor,
            selection=self.state.selection,
        )

    def mirror(self, *, attributes: Optional[dict[str, str]] = None) -> BufferMirror:
        return BufferMirror(
            text=self.document.text,
            cursor=self.state.cursor.to_host(),
            selection=self.state.selection,
            attributes=dict(attributes or {}),
        )

    # -- collaborator contract -------------------------------------------

    def line_count(self) -> int:
        return self.document.line_count

    def read_line_at(self, index: int) -> str:
        return self.document.get_line(ensure_line_index(self.document, index))

    def insert(self, text: str, position: Position) -> None:
        self.replace_range(position, position, text, label="insert")

    def delete(self, start: Position, end: Position) -> None:
        self.replace_range(start, end, "", label="delete")

    def get_selection(self) -> Optional[Selection]:
        return self.state.selection

    def set_selection(self, selection: Optional[Selection]) -> None:
        self.state.selection = selection

    def set_cursor(self, position: Position) -> None:
        self.state.set_cursor(position)

    # -- editing -----------------------------------------------------------

    def replace_range(
        self, start: Position, end: Position, text: str, *, label: str
    ) -> None:
        start = ensure_position(self.document, start)
        end = ensure_position(self.document, end)
        if end < start:
            start, end = end, start
        with self.transaction(label, self.state.cursor):
            before = self.document.text
            start_offset = offset_of(self.document.snapshot(), start)
            end_offset = offset_of(self.document.snapshot(), end)
            self.document = self.document.with_text(
                before[:start_offset] + text + before[end_offset:]
            )
            self.state.last_change_tick = self.document.version

    def get_text_range(self, start: Position, end: Position) -> str:
        start = ensure_position(self.document, start)
        end = ensure_position(self.document, end)
        if end < start:
            start, end = end, start
        lines = self.document.snapshot()
        return self.document.text[offset_of(lines, start) : offset_of(lines, end)]

    def transaction(self, label: str, cursor: Position) -> "Transaction":
        return Transaction(self, label, cursor)

    def begin_group(self, label: str, cursor: Position) -> None:
        if self._group is None:
            self._group = _UndoGroup(label, self.document.text, cursor)
        else:
            self._group.depth += 1

    def end_group(self, cursor: Position) -> None:
        group = self._group
        if group is None:
            return
        group.depth -= 1
        if group.depth > 0:
            return
        self._group = None
        after = self.document.text
        if after != group.before_text:
            self.undo.push(
                UndoEntry(
                    label=group.label,
                    before_text=group.before_text,
                    after_text=after,
                    cursor_before=group.cursor_before,
                    cursor_after=cursor,
                )
            )

    @property
    def in_group(self) -> bool:
        return self._group is not None

    def undo_step(self) -> Optional[Position]:
        entry = self.undo.undo()
        if entry is None:
            return None
        self.document = self.document.with_text(entry.before_text)
        return entry.cursor_before

    def redo_step(self) -> Optional[Position]:
        entry = self.undo.redo()
        if entry is None:
            return None
        self.document = self.document.with_text(entry.after_text)
        return entry.cursor_before


class Transaction(AbstractContextManager["Transaction"]):
    """Undo-grouped edit scope that restores the document on failure."""

    def __init__(self, buffer: Buffer, label: str, cursor: Position) -> None:
        self.buffer = buffer
        self.label = label
        self.cursor = cursor
        self._saved: Optional[BufferDocument] = None
        self._span_cm: Optional[ContextManager[object]] = None

    def __enter__(self) -> "Transaction":
        self._saved = self.buffer.document
        self._span_cm = telemetry.span(
            f"buffer::{self.label}",
            component="buffer",
            metadata={"buffer": self.buffer.name},
        )
        self._span_cm.__enter__()
        self.buffer.begin_group(self.label, self.cursor)
        return self

    def __exit__(self, exc_type, exc, tb) -> bool:
        if exc_type is not None and self._saved is not None:
            self.buffer.document = self._saved
        self.buffer.end_group(self.buffer.state.cursor)
        if self._span_cm is not None:
            self._span_cm.__exit__(exc_type, exc, tb)
        return False


def offset_of(lines: Sequence[str], position: Position) -> int:
    offset = sum(len(lines[i]) + 1 for i in range(position.line))
    return offset + position.character


def position_at(lines: Sequence[str], offset: int) -> Position:
    running = 0
    for row, line in enumerate(lines):
        if offset <= running + len(line):
            return Position(row, max(0, offset - running))
        running += len(line) + 1
    last = len(lines) - 1
    return Position(last, len(lines[last]))
