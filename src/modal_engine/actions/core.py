"""Normal-mode actions: entering other modes, small edits, put, undo."""

from __future__ import annotations

from typing import List, Tuple

from modal_engine.buffer.position import Position, first_non_blank
from modal_engine.buffer.registers import RegisterValue
from modal_engine.session import EntryHints, ModeName

from . import motions, operators
from .context import (
    BufferEdit,
    CommandContext,
    CommandOutcome,
    TextSpan,
    noop,
)


def _enter_insert(
    ctx: CommandContext,
    cursor: Position,
    *,
    edits: Tuple[BufferEdit, ...] = (),
    repeat_prefix: str = "",
) -> CommandOutcome:
    return CommandOutcome(
        cursor=cursor,
        edits=edits,
        switch_to=ModeName.INSERT,
        entry=EntryHints(count=ctx.effective_count, repeat_prefix=repeat_prefix),
        repeatable=True,
    )


def insert_before(ctx: CommandContext) -> CommandOutcome:
    return _enter_insert(ctx, ctx.cursor)


def insert_after(ctx: CommandContext) -> CommandOutcome:
    column = min(ctx.cursor.character + 1, len(ctx.line))
    return _enter_insert(ctx, Position(ctx.cursor.line, column))


def insert_line_start(ctx: CommandContext) -> CommandOutcome:
    return _enter_insert(ctx, Position(ctx.cursor.line, first_non_blank(ctx.line)))


def append_line_end(ctx: CommandContext) -> CommandOutcome:
    return _enter_insert(ctx, Position(ctx.cursor.line, len(ctx.line)))


def _indent_of(ctx: CommandContext, line: str) -> str:
    if not ctx.options.auto_indent:
        return ""
    return line[: len(line) - len(line.lstrip(" \t"))]


def open_below(ctx: CommandContext) -> CommandOutcome:
    row = ctx.cursor.line
    indent = _indent_of(ctx, ctx.line)
    edit = BufferEdit(Position(row, len(ctx.line)), Position(row, len(ctx.line)), "\n" + indent)
    return _enter_insert(
        ctx, Position(row + 1, len(indent)), edits=(edit,), repeat_prefix="\n"
    )


def open_above(ctx: CommandContext) -> CommandOutcome:
    row = ctx.cursor.line
    indent = _indent_of(ctx, ctx.line)
    edit = BufferEdit(Position(row, 0), Position(row, 0), indent + "\n")
    return _enter_insert(ctx, Position(row, len(indent)), edits=(edit,), repeat_prefix="\n")


# -- shortcuts for operator + motion ----------------------------------------


def _char_span(ctx: CommandContext, start: int, end: int) -> TextSpan:
    row = ctx.cursor.line
    return TextSpan(Position(row, start), Position(row, end))


def delete_char(ctx: CommandContext) -> CommandOutcome:
    """``x``"""

    column = ctx.cursor.character
    if not ctx.line:
        return noop()
    return operators.delete(ctx, _char_span(ctx, column, min(len(ctx.line), column + ctx.effective_count)))


def delete_char_before(ctx: CommandContext) -> CommandOutcome:
    """``X``"""

    column = ctx.cursor.character
    if column == 0:
        return noop()
    return operators.delete(ctx, _char_span(ctx, max(0, column - ctx.effective_count), column))


def _to_line_end(ctx: CommandContext) -> TextSpan:
    target = motions.line_end(ctx)
    end_line = ctx.lines[target.position.line]
    return TextSpan(ctx.cursor, Position(target.position.line, len(end_line)))


def delete_to_end(ctx: CommandContext) -> CommandOutcome:
    """``D``"""

    span = _to_line_end(ctx)
    if span.is_empty:
        return noop()
    return operators.delete(ctx, span)


def change_to_end(ctx: CommandContext) -> CommandOutcome:
    """``C``"""

    return operators.change(ctx, _to_line_end(ctx))


def substitute_char(ctx: CommandContext) -> CommandOutcome:
    """``s``"""

    column = ctx.cursor.character
    end = min(len(ctx.line), column + ctx.effective_count)
    return operators.change(ctx, _char_span(ctx, column, end))


def _whole_lines(ctx: CommandContext) -> TextSpan:
    last = min(ctx.cursor.line + ctx.effective_count - 1, len(ctx.lines) - 1)
    return TextSpan(Position(ctx.cursor.line, 0), Position(last, 0), linewise=True)


def substitute_line(ctx: CommandContext) -> CommandOutcome:
    """``S``"""

    return operators.change(ctx, _whole_lines(ctx))


def yank_line(ctx: CommandContext) -> CommandOutcome:
    """``Y``"""

    return operators.yank(ctx, _whole_lines(ctx))


# -- single-key edits ----------------------------------------------------------


def replace_char(ctx: CommandContext) -> CommandOutcome:
    """``r{char}``: overwrite ``count`` characters."""

    char = ctx.argument
    column = ctx.cursor.character
    count = ctx.effective_count
    if char is None or column + count > len(ctx.line):
        return noop()
    row = ctx.cursor.line
    span_end = Position(row, column + count)
    if char == "<cr>":
        edit = BufferEdit(ctx.cursor, span_end, "\n")
        return CommandOutcome(cursor=Position(row + 1, 0), edits=(edit,), repeatable=True)
    if char == "<tab>":
        char = "\t"
    edit = BufferEdit(ctx.cursor, span_end, char * count)
    return CommandOutcome(
        cursor=Position(row, column + count - 1), edits=(edit,), repeatable=True
    )


def toggle_case(ctx: CommandContext) -> CommandOutcome:
    """``~``: swap case under the cursor and step right."""

    line = ctx.line
    if not line:
        return noop()
    column = ctx.cursor.character
    end = min(len(line), column + ctx.effective_count)
    original = line[column:end]
    swapped = original.swapcase()
    cursor = Position(ctx.cursor.line, min(end, len(line) - 1))
    if swapped == original:
        return CommandOutcome(cursor=cursor)
    edit = BufferEdit(ctx.cursor, Position(ctx.cursor.line, end), swapped)
    return CommandOutcome(cursor=cursor, edits=(edit,), repeatable=True)


def join_lines(ctx: CommandContext) -> CommandOutcome:
    """``J``: join ``count`` lines (at least two) with single spaces."""

    first = ctx.cursor.line
    last = min(first + max(ctx.effective_count, 2) - 1, len(ctx.lines) - 1)
    if last == first:
        return noop()
    return join_range(ctx, first, last)


def join_range(ctx: CommandContext, first: int, last: int) -> CommandOutcome:
    joined = ctx.lines[first]
    column = len(joined)
    for row in range(first + 1, last + 1):
        piece = ctx.lines[row].lstrip(" \t")
        if not piece:
            column = len(joined)
            continue
        if joined and not joined.endswith((" ", "\t")) and not piece.startswith(")"):
            column = len(joined)
            joined += " "
        else:
            column = max(len(joined) - 1, 0)
        joined += piece
    edit = BufferEdit(
        Position(first, 0), Position(last, len(ctx.lines[last])), joined
    )
    return CommandOutcome(
        cursor=Position(first, column), edits=(edit,), repeatable=True
    )


# -- put -----------------------------------------------------------------------


def _put(ctx: CommandContext, *, after: bool) -> CommandOutcome:
    value: RegisterValue = ctx.registers.get(ctx.register)
    if not value.text and value.type != "line":
        return noop("register empty")
    count = ctx.effective_count
    row = ctx.cursor.line
    line = ctx.line

    if value.type == "line":
        block = "\n".join([value.text] * count)
        if after:
            at = Position(row, len(line))
            edit = BufferEdit(at, at, "\n" + block)
            target = row + 1
        else:
            at = Position(row, 0)
            edit = BufferEdit(at, at, block + "\n")
            target = row
        first_row = value.rows[0]
        return CommandOutcome(
            cursor=Position(target, first_non_blank(first_row)),
            edits=(edit,),
            repeatable=True,
        )

    if value.type == "block":
        return _put_block(ctx, value, after=after)

    column = ctx.cursor.character
    if after and line:
        column += 1
    at = Position(row, column)
    text = value.text * count
    edit = BufferEdit(at, at, text)
    if "\n" in text:
        cursor = at
    else:
        cursor = Position(row, column + len(text) - 1)
    return CommandOutcome(cursor=cursor, edits=(edit,), repeatable=True)


def _put_block(ctx: CommandContext, value: RegisterValue, *, after: bool) -> CommandOutcome:
    column = ctx.cursor.character + (1 if after and ctx.line else 0)
    rows = value.rows
    width = max(len(piece) for piece in rows)
    edits: List[BufferEdit] = []
    appended: List[str] = []
    for index, piece in enumerate(rows):
        row = ctx.cursor.line + index
        text = piece.ljust(width) * ctx.effective_count
        if row >= len(ctx.lines):
            appended.append((" " * column + text).rstrip())
            continue
        line = ctx.lines[row]
        if len(line) <= column:
            # Nothing to the right: pad up to the column, no trailing blanks.
            at = Position(row, len(line))
            edits.append(BufferEdit(at, at, (" " * (column - len(line)) + text).rstrip()))
        else:
            at = Position(row, column)
            edits.append(BufferEdit(at, at, text))
    if appended:
        last = len(ctx.lines) - 1
        at = Position(last, len(ctx.lines[last]))
        edits.append(BufferEdit(at, at, "\n" + "\n".join(appended)))
    return CommandOutcome(
        cursor=Position(ctx.cursor.line, column), edits=tuple(edits), repeatable=True
    )


def put_after(ctx: CommandContext) -> CommandOutcome:
    return _put(ctx, after=True)


def put_before(ctx: CommandContext) -> CommandOutcome:
    return _put(ctx, after=False)


# -- history and mode switches ---------------------------------------------


def undo(ctx: CommandContext) -> CommandOutcome:
    del ctx
    return CommandOutcome(history="undo")


def redo(ctx: CommandContext) -> CommandOutcome:
    del ctx
    return CommandOutcome(history="redo")


def repeat_last_change(ctx: CommandContext) -> CommandOutcome:
    """``.``: replay the recorded key trail of the last change."""

    if not ctx.last_change:
        return noop("nothing to repeat")
    return CommandOutcome(replay=ctx.last_change, status="repeat")


def enter_visual(ctx: CommandContext) -> CommandOutcome:
    return CommandOutcome(switch_to=ModeName.VISUAL)


def enter_visual_line(ctx: CommandContext) -> CommandOutcome:
    return CommandOutcome(switch_to=ModeName.VISUAL_LINE)


def enter_visual_block(ctx: CommandContext) -> CommandOutcome:
    return CommandOutcome(switch_to=ModeName.VISUAL_BLOCK)


def enter_replace(ctx: CommandContext) -> CommandOutcome:
    return CommandOutcome(
        switch_to=ModeName.REPLACE,
        entry=EntryHints(count=ctx.effective_count),
        repeatable=True,
    )


def enter_command_line(ctx: CommandContext) -> CommandOutcome:
    return CommandOutcome(switch_to=ModeName.COMMAND_LINE)


def cancel(ctx: CommandContext) -> CommandOutcome:
    del ctx
    return noop()


__all__ = [
    "append_line_end",
    "cancel",
    "change_to_end",
    "delete_char",
    "delete_char_before",
    "delete_to_end",
    "enter_command_line",
    "enter_replace",
    "enter_visual",
    "enter_visual_block",
    "enter_visual_line",
    "insert_after",
    "insert_before",
    "insert_line_start",
    "join_lines",
    "join_range",
    "open_above",
    "open_below",
    "put_after",
    "put_before",
    "redo",
    "repeat_last_change",
    "replace_char",
    "substitute_char",
    "substitute_line",
    "toggle_case",
    "undo",
    "yank_line",
]
