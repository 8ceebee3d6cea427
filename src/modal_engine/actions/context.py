"""Values exchanged between the dispatcher and command handlers.

Handlers never touch the buffer. They read a ``CommandContext`` snapshot and
describe what should happen in a ``CommandOutcome``; the dispatcher applies
the outcome in one transaction and only then updates registers, cursor and
mode. Motions return a ``MotionTarget`` and text objects a ``TextSpan``.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import Literal, Optional, Sequence, Tuple

from modal_engine.buffer.position import Position, first_non_blank
from modal_engine.buffer.registers import RegisterBank, RegisterValue
from modal_engine.runtime.options import EngineOptions
from modal_engine.session import EntryHints, FindRecord, ModeData, ModeName


@dataclass(frozen=True, slots=True)
class CommandContext:
    """Read-only view of the session a handler runs against."""

    lines: Tuple[str, ...]
    cursor: Position
    mode: ModeName
    options: EngineOptions = field(default_factory=EngineOptions)
    registers: RegisterBank = field(default_factory=RegisterBank)
    count: Optional[int] = None
    argument: Optional[str] = None
    register: Optional[str] = None
    desired_column: Optional[int] = None
    anchor: Optional[Position] = None
    operator_id: Optional[str] = None
    last_find: Optional[FindRecord] = None
    last_change: Tuple[str, ...] = ()
    mode_data: Optional[ModeData] = None

    @property
    def effective_count(self) -> int:
        return self.count or 1

    @property
    def line(self) -> str:
        return self.lines[self.cursor.line]

    @property
    def under_operator(self) -> bool:
        return self.operator_id is not None

    def with_cursor(self, cursor: Position) -> "CommandContext":
        return replace(self, cursor=cursor)


@dataclass(frozen=True, slots=True)
class MotionTarget:
    """Where a motion lands and how an operator should read the range.

    ``inclusive`` motions cover the character under the end position;
    ``keep_column`` leaves the desired column untouched (``j``/``k``).
    """

    position: Position
    linewise: bool = False
    inclusive: bool = False
    keep_column: bool = False
    desired_column: Optional[int] = None
    last_find: Optional[FindRecord] = None


@dataclass(frozen=True, slots=True)
class TextSpan:
    """Half-open range an operator acts on.

    Characterwise spans run from ``start`` up to (not including) ``end`` and
    may cross line breaks. Linewise spans cover whole rows
    ``start.line..end.line``. Block spans cover columns
    ``start.character..end.character`` (exclusive) on every row.
    """

    start: Position
    end: Position
    linewise: bool = False
    block: bool = False

    @property
    def is_empty(self) -> bool:
        if self.linewise:
            return False
        if self.block:
            return self.end.character <= self.start.character
        return self.end <= self.start

    @property
    def rows(self) -> range:
        return range(self.start.line, self.end.line + 1)


@dataclass(frozen=True, slots=True)
class BufferEdit:
    """Replace ``start..end`` (half-open) with ``text``."""

    start: Position
    end: Position
    text: str = ""


@dataclass(frozen=True, slots=True)
class RegisterWrite:
    name: Optional[str]
    value: RegisterValue
    kind: Literal["yank", "delete"] = "yank"


@dataclass(frozen=True, slots=True)
class CommandOutcome:
    """Everything a command wants done, applied all-or-nothing."""

    cursor: Optional[Position] = None
    edits: Tuple[BufferEdit, ...] = ()
    switch_to: Optional[ModeName] = None
    entry: Optional[EntryHints] = None
    register_write: Optional[RegisterWrite] = None
    desired_column: Optional[int] = None
    keep_column: bool = False
    last_find: Optional[FindRecord] = None
    anchor: Optional[Position] = None
    history: Optional[Literal["undo", "redo"]] = None
    replay: Tuple[str, ...] = ()
    events: Tuple[Tuple[str, object], ...] = ()
    command_text: Optional[str] = None
    status: str = "ok"
    message: Optional[str] = None
    repeatable: bool = False


NOOP = CommandOutcome(status="noop")


def noop(message: Optional[str] = None) -> CommandOutcome:
    return CommandOutcome(status="noop", message=message)


def apply_edits(lines: Sequence[str], edits: Sequence[BufferEdit]) -> Tuple[str, ...]:
    """Lines after applying ``edits``; later edits first so offsets stay valid."""

    text = "\n".join(lines)
    for edit in sorted(edits, key=lambda e: (e.start, e.end), reverse=True):
        start = _offset(lines, edit.start)
        end = _offset(lines, edit.end)
        text = text[:start] + edit.text + text[end:]
    return tuple(text.split("\n"))


def _offset(lines: Sequence[str], position: Position) -> int:
    return sum(len(lines[i]) + 1 for i in range(position.line)) + position.character


def span_from_target(
    lines: Sequence[str], origin: Position, target: MotionTarget
) -> TextSpan:
    """Turn a motion's landing point into the range an operator acts on."""

    start, end = sorted((origin, target.position))
    if target.linewise:
        return TextSpan(start, end, linewise=True)
    if target.inclusive:
        return TextSpan(start, Position(end.line, min(end.character + 1, len(lines[end.line]))))
    if end.character == 0 and end.line > start.line:
        # An exclusive motion that ends at column 0 stops at the previous line's end.
        previous = end.line - 1
        if start.character <= first_non_blank(lines[start.line]):
            return TextSpan(Position(start.line, 0), Position(previous, 0), linewise=True)
        end = Position(previous, len(lines[previous]))
    return TextSpan(start, end)


__all__ = [
    "BufferEdit",
    "CommandContext",
    "CommandOutcome",
    "MotionTarget",
    "NOOP",
    "RegisterWrite",
    "TextSpan",
    "apply_edits",
    "noop",
    "span_from_target",
]
