"""Cursor motions shared by the normal, visual and operator grammars.

Each motion takes a ``CommandContext`` and returns a ``MotionTarget`` (or
``None`` when it cannot move at all). Word motions work over the flat text
with a trailing newline appended, so every line end, including the last,
is a real offset and an empty line is a word of its own.
"""

from __future__ import annotations

from typing import Optional, Sequence

from modal_engine.buffer.buffer import position_at
from modal_engine.buffer.position import Position, first_non_blank, max_column
from modal_engine.session import END_OF_LINE, FindRecord

from .context import CommandContext, MotionTarget

CHANGE_OPERATOR = "operator.change"

_SPACE, _EMPTY, _PUNCT, _WORD = 0, 1, 2, 3


class _Flat:
    """Flat view of a buffer snapshot for offset-based scanning."""

    def __init__(self, lines: Sequence[str], big: bool = False) -> None:
        self.lines = lines
        self.text = "\n".join(lines) + "\n"
        self.big = big

    def __len__(self) -> int:
        return len(self.text)

    def offset(self, position: Position) -> int:
        return sum(len(self.lines[i]) + 1 for i in range(position.line)) + position.character

    def position(self, offset: int) -> Position:
        return position_at(self.lines, max(0, min(offset, len(self.text) - 1)))

    def kind(self, offset: int) -> int:
        ch = self.text[offset]
        if ch == "\n":
            if offset == 0 or self.text[offset - 1] == "\n":
                return _EMPTY
            return _SPACE
        if ch in " \t":
            return _SPACE
        if self.big or ch.isalnum() or ch == "_":
            return _WORD
        return _PUNCT

    def next_word_start(self, offset: int) -> int:
        end = len(self.text)
        if offset >= end:
            return end
        kind = self.kind(offset)
        if kind == _EMPTY:
            offset += 1
        elif kind != _SPACE:
            while offset < end and self.kind(offset) == kind:
                offset += 1
        while offset < end and self.kind(offset) == _SPACE:
            offset += 1
        return offset

    def word_end(self, offset: int, *, stay: bool = False) -> int:
        end = len(self.text) - 1
        if not stay or self.kind(offset) in (_SPACE, _EMPTY):
            offset += 1
            while offset < end and self.kind(offset) in (_SPACE, _EMPTY):
                offset += 1
        if offset >= end:
            return end
        kind = self.kind(offset)
        while offset + 1 < end and self.kind(offset + 1) == kind:
            offset += 1
        return offset

    def prev_word_start(self, offset: int) -> int:
        if offset <= 0:
            return 0
        offset -= 1
        while offset > 0 and self.kind(offset) == _SPACE:
            offset -= 1
        kind = self.kind(offset)
        if kind == _EMPTY:
            return offset
        while offset > 0 and self.kind(offset - 1) == kind:
            offset -= 1
        return offset

    def prev_word_end(self, offset: int) -> int:
        kind = self.kind(offset)
        if kind == _EMPTY:
            offset -= 1
        elif kind != _SPACE:
            while offset > 0 and self.kind(offset) == kind:
                offset -= 1
        while offset > 0 and self.kind(offset) == _SPACE:
            offset -= 1
        return max(offset, 0)


def _repeat(step, offset: int, count: int) -> int:
    for _ in range(count):
        offset = step(offset)
    return offset


def _column_limit(ctx: CommandContext, line: str) -> int:
    past_end = ctx.under_operator or ctx.mode.allows_past_end
    return max_column(line, past_end=past_end)


# -- characterwise -----------------------------------------------------------


def left(ctx: CommandContext) -> MotionTarget:
    column = max(0, ctx.cursor.character - ctx.effective_count)
    return MotionTarget(Position(ctx.cursor.line, column))


def right(ctx: CommandContext) -> MotionTarget:
    limit = _column_limit(ctx, ctx.line)
    column = min(ctx.cursor.character + ctx.effective_count, limit)
    return MotionTarget(Position(ctx.cursor.line, max(column, ctx.cursor.character)))


def _wrap_step(lines: Sequence[str], position: Position, forward: bool) -> Position:
    if forward:
        if position.character + 1 < len(lines[position.line]):
            return Position(position.line, position.character + 1)
        if position.line + 1 < len(lines):
            return Position(position.line + 1, 0)
        return position
    if position.character > 0:
        return Position(position.line, position.character - 1)
    if position.line > 0:
        above = position.line - 1
        return Position(above, max_column(lines[above]))
    return position


def space_forward(ctx: CommandContext) -> MotionTarget:
    position = ctx.cursor
    for _ in range(ctx.effective_count):
        position = _wrap_step(ctx.lines, position, True)
    return MotionTarget(position)


def space_backward(ctx: CommandContext) -> MotionTarget:
    position = ctx.cursor
    for _ in range(ctx.effective_count):
        position = _wrap_step(ctx.lines, position, False)
    return MotionTarget(position)


# -- linewise ------------------------------------------------------------------


def _vertical(ctx: CommandContext, delta: int) -> Optional[MotionTarget]:
    row = max(0, min(ctx.cursor.line + delta, len(ctx.lines) - 1))
    if row == ctx.cursor.line:
        return None
    wanted = ctx.desired_column
    if wanted is None:
        wanted = ctx.cursor.character
    column = min(wanted, _column_limit(ctx, ctx.lines[row]))
    return MotionTarget(Position(row, column), linewise=True, keep_column=True)


def down(ctx: CommandContext) -> Optional[MotionTarget]:
    return _vertical(ctx, ctx.effective_count)


def up(ctx: CommandContext) -> Optional[MotionTarget]:
    return _vertical(ctx, -ctx.effective_count)


def _line_start(ctx: CommandContext, row: int) -> MotionTarget:
    row = max(0, min(row, len(ctx.lines) - 1))
    return MotionTarget(
        Position(row, first_non_blank(ctx.lines[row])), linewise=True
    )


def next_line_start(ctx: CommandContext) -> Optional[MotionTarget]:
    if ctx.cursor.line + 1 >= len(ctx.lines):
        return None
    return _line_start(ctx, ctx.cursor.line + ctx.effective_count)


def prev_line_start(ctx: CommandContext) -> Optional[MotionTarget]:
    if ctx.cursor.line == 0:
        return None
    return _line_start(ctx, ctx.cursor.line - ctx.effective_count)


def goto_line(ctx: CommandContext) -> MotionTarget:
    """``G``: line ``count`` (one-based), or the last line."""

    row = len(ctx.lines) - 1 if ctx.count is None else ctx.count - 1
    return _line_start(ctx, row)


def goto_first_line(ctx: CommandContext) -> MotionTarget:
    return _line_start(ctx, (ctx.count or 1) - 1)


# -- within the line ---------------------------------------------------------


def line_begin(ctx: CommandContext) -> MotionTarget:
    return MotionTarget(Position(ctx.cursor.line, 0))


def first_non_blank_char(ctx: CommandContext) -> MotionTarget:
    return MotionTarget(Position(ctx.cursor.line, first_non_blank(ctx.line)))


def line_end(ctx: CommandContext) -> MotionTarget:
    row = min(ctx.cursor.line + ctx.effective_count - 1, len(ctx.lines) - 1)
    column = max_column(ctx.lines[row], past_end=ctx.mode.allows_past_end)
    return MotionTarget(
        Position(row, column), inclusive=True, desired_column=END_OF_LINE
    )


def column(ctx: CommandContext) -> MotionTarget:
    wanted = ctx.effective_count - 1
    target = min(wanted, _column_limit(ctx, ctx.line))
    return MotionTarget(Position(ctx.cursor.line, target), desired_column=wanted)


# -- words ---------------------------------------------------------------------


def _word_forward(ctx: CommandContext, big: bool) -> MotionTarget:
    flat = _Flat(ctx.lines, big)
    start = flat.offset(ctx.cursor)
    char = ctx.line[ctx.cursor.character : ctx.cursor.character + 1]

    if ctx.operator_id == CHANGE_OPERATOR and char and not char.isspace():
        offset = flat.word_end(start, stay=True)
        offset = _repeat(flat.word_end, offset, ctx.effective_count - 1)
        return MotionTarget(flat.position(offset), inclusive=True)

    offset = start
    last_from = start
    for _ in range(ctx.effective_count):
        if offset >= len(flat) - 1:
            break
        last_from = offset
        offset = flat.next_word_start(offset)
    target = flat.position(offset)
    if offset >= len(flat) - 1:
        last = len(ctx.lines) - 1
        target = Position(last, len(ctx.lines[last]))

    if ctx.under_operator:
        from_line = flat.position(last_from).line
        if target.line > from_line:
            # The last word moved over ends the operated text at its line's end.
            target = Position(from_line, len(ctx.lines[from_line]))
    return MotionTarget(target)


def word_forward(ctx: CommandContext) -> MotionTarget:
    return _word_forward(ctx, big=False)


def big_word_forward(ctx: CommandContext) -> MotionTarget:
    return _word_forward(ctx, big=True)


def _word_end(ctx: CommandContext, big: bool) -> MotionTarget:
    flat = _Flat(ctx.lines, big)
    offset = _repeat(flat.word_end, flat.offset(ctx.cursor), ctx.effective_count)
    return MotionTarget(flat.position(offset), inclusive=True)


def word_end(ctx: CommandContext) -> MotionTarget:
    return _word_end(ctx, big=False)


def big_word_end(ctx: CommandContext) -> MotionTarget:
    return _word_end(ctx, big=True)


def _word_backward(ctx: CommandContext, big: bool) -> MotionTarget:
    flat = _Flat(ctx.lines, big)
    offset = _repeat(flat.prev_word_start, flat.offset(ctx.cursor), ctx.effective_count)
    return MotionTarget(flat.position(offset))


def word_backward(ctx: CommandContext) -> MotionTarget:
    return _word_backward(ctx, big=False)


def big_word_backward(ctx: CommandContext) -> MotionTarget:
    return _word_backward(ctx, big=True)


def _word_end_backward(ctx: CommandContext, big: bool) -> MotionTarget:
    flat = _Flat(ctx.lines, big)
    offset = _repeat(flat.prev_word_end, flat.offset(ctx.cursor), ctx.effective_count)
    return MotionTarget(flat.position(offset), inclusive=True)


def word_end_backward(ctx: CommandContext) -> MotionTarget:
    return _word_end_backward(ctx, big=False)


def big_word_end_backward(ctx: CommandContext) -> MotionTarget:
    return _word_end_backward(ctx, big=True)


# -- character search --------------------------------------------------------


def _find(ctx: CommandContext, record: FindRecord, *, repeat: bool) -> Optional[MotionTarget]:
    line = ctx.line
    column = ctx.cursor.character
    found = column
    for index in range(ctx.effective_count):
        skip = 1 if (record.till and repeat and index == 0) else 0
        if record.forward:
            found = line.find(record.char, found + 1 + skip)
        else:
            start = found - 1 - skip
            found = line.rfind(record.char, 0, start + 1) if start >= 0 else -1
        if found < 0:
            return None
    if record.till:
        found = found - 1 if record.forward else found + 1
    return MotionTarget(
        Position(ctx.cursor.line, found),
        inclusive=record.forward,
        last_find=None if repeat else record,
    )


def _search_char(ctx: CommandContext, *, forward: bool, till: bool) -> Optional[MotionTarget]:
    char = ctx.argument
    if not char or len(char) != 1:
        return None
    return _find(ctx, FindRecord(char, forward, till), repeat=False)


def find_forward(ctx: CommandContext) -> Optional[MotionTarget]:
    return _search_char(ctx, forward=True, till=False)


def find_backward(ctx: CommandContext) -> Optional[MotionTarget]:
    return _search_char(ctx, forward=False, till=False)


def till_forward(ctx: CommandContext) -> Optional[MotionTarget]:
    return _search_char(ctx, forward=True, till=True)


def till_backward(ctx: CommandContext) -> Optional[MotionTarget]:
    return _search_char(ctx, forward=False, till=True)


def repeat_find(ctx: CommandContext) -> Optional[MotionTarget]:
    if ctx.last_find is None:
        return None
    return _find(ctx, ctx.last_find, repeat=True)


def repeat_find_reverse(ctx: CommandContext) -> Optional[MotionTarget]:
    record = ctx.last_find
    if record is None:
        return None
    return _find(ctx, FindRecord(record.char, not record.forward, record.till), repeat=True)


# -- brackets and paragraphs -------------------------------------------------

_PAIRS = {"(": ")", "[": "]", "{": "}"}
_CLOSERS = {close: open_ for open_, close in _PAIRS.items()}


def matching_pair(ctx: CommandContext) -> Optional[MotionTarget]:
    """``%``: jump to the partner of the next bracket on the line.

    With a count, ``N%`` goes to the line N percent of the way down instead.
    """

    if ctx.count is not None:
        if ctx.count > 100:
            return None
        row = (ctx.count * len(ctx.lines) + 99) // 100 - 1
        return _line_start(ctx, row)

    line = ctx.line
    start = ctx.cursor.character
    index = next(
        (i for i in range(start, len(line)) if line[i] in _PAIRS or line[i] in _CLOSERS),
        None,
    )
    if index is None:
        return None
    flat = _Flat(ctx.lines)
    offset = flat.offset(Position(ctx.cursor.line, index))
    char = flat.text[offset]
    if char in _PAIRS:
        match = _scan_pair(flat.text, offset, char, _PAIRS[char], 1)
    else:
        match = _scan_pair(flat.text, offset, char, _CLOSERS[char], -1)
    if match is None:
        return None
    return MotionTarget(flat.position(match), inclusive=True)


def _scan_pair(text: str, offset: int, this: str, other: str, step: int) -> Optional[int]:
    depth = 0
    index = offset
    while 0 <= index < len(text):
        ch = text[index]
        if ch == this:
            depth += 1
        elif ch == other:
            depth -= 1
            if depth == 0:
                return index
        index += step
    return None


def _is_blank(line: str) -> bool:
    return not line.strip()


def paragraph_forward(ctx: CommandContext) -> MotionTarget:
    lines = ctx.lines
    row = ctx.cursor.line
    last = len(lines) - 1
    for _ in range(ctx.effective_count):
        while row < last and _is_blank(lines[row]):
            row += 1
        while row < last and not _is_blank(lines[row]):
            row += 1
        if row == last and not _is_blank(lines[row]):
            return MotionTarget(Position(last, len(lines[last])), inclusive=False)
    return MotionTarget(Position(row, 0))


def paragraph_backward(ctx: CommandContext) -> MotionTarget:
    lines = ctx.lines
    row = ctx.cursor.line
    for _ in range(ctx.effective_count):
        while row > 0 and _is_blank(lines[row]):
            row -= 1
        while row > 0 and not _is_blank(lines[row]):
            row -= 1
    return MotionTarget(Position(row, 0))


__all__ = [
    "big_word_backward",
    "big_word_end",
    "big_word_end_backward",
    "big_word_forward",
    "column",
    "down",
    "find_backward",
    "find_forward",
    "first_non_blank_char",
    "goto_first_line",
    "goto_line",
    "left",
    "line_begin",
    "line_end",
    "matching_pair",
    "next_line_start",
    "paragraph_backward",
    "paragraph_forward",
    "prev_line_start",
    "repeat_find",
    "repeat_find_reverse",
    "right",
    "space_backward",
    "space_forward",
    "till_backward",
    "till_forward",
    "up",
    "word_backward",
    "word_end",
    "word_end_backward",
    "word_forward",
]
