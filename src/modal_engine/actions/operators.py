"""Operators: verbs applied to the ``TextSpan`` a motion or selection yields."""

from __future__ import annotations

from typing import Callable, List, Optional, Sequence, Tuple

from modal_engine.buffer.position import Position, first_non_blank
from modal_engine.buffer.registers import RegisterValue
from modal_engine.session import EntryHints, ModeName

from .context import (
    BufferEdit,
    CommandContext,
    CommandOutcome,
    RegisterWrite,
    TextSpan,
    apply_edits,
    noop,
)


def span_text(lines: Sequence[str], span: TextSpan) -> RegisterValue:
    """Register value holding the text ``span`` covers."""

    if span.linewise:
        return RegisterValue("\n".join(lines[span.start.line : span.end.line + 1]), "line")
    if span.block:
        rows = [
            lines[row][span.start.character : span.end.character] for row in span.rows
        ]
        return RegisterValue("\n".join(rows), "block")
    text = "\n".join(lines)
    start = _offset(lines, span.start)
    end = _offset(lines, span.end)
    return RegisterValue(text[start:end], "character")


def _offset(lines: Sequence[str], position: Position) -> int:
    return sum(len(lines[i]) + 1 for i in range(position.line)) + position.character


def _linewise_removal(lines: Sequence[str], first: int, last: int) -> Tuple[BufferEdit, int]:
    """Edit deleting rows ``first..last`` and the row the cursor lands on."""

    if last + 1 < len(lines):
        return BufferEdit(Position(first, 0), Position(last + 1, 0)), first
    if first > 0:
        above = first - 1
        return (
            BufferEdit(Position(above, len(lines[above])), Position(last, len(lines[last]))),
            above,
        )
    return BufferEdit(Position(0, 0), Position(last, len(lines[last]))), 0


def _block_edits(
    lines: Sequence[str],
    span: TextSpan,
    transform: Optional[Callable[[str], str]] = None,
) -> Tuple[BufferEdit, ...]:
    edits: List[BufferEdit] = []
    for row in span.rows:
        line = lines[row]
        start = span.start.character
        if start >= len(line):
            continue
        end = min(span.end.character, len(line))
        text = "" if transform is None else transform(line[start:end])
        edits.append(BufferEdit(Position(row, start), Position(row, end), text))
    return tuple(edits)


def delete(ctx: CommandContext, span: TextSpan) -> CommandOutcome:
    lines = ctx.lines
    value = span_text(lines, span)
    write = RegisterWrite(ctx.register, value, "delete")
    if span.linewise:
        edit, row = _linewise_removal(lines, span.start.line, span.end.line)
        after = apply_edits(lines, (edit,))
        cursor = Position(row, first_non_blank(after[row]))
        return CommandOutcome(
            cursor=cursor, edits=(edit,), register_write=write, repeatable=True
        )
    if span.block:
        return CommandOutcome(
            cursor=span.start,
            edits=_block_edits(lines, span),
            register_write=write,
            repeatable=True,
        )
    return CommandOutcome(
        cursor=span.start,
        edits=(BufferEdit(span.start, span.end),),
        register_write=write,
        repeatable=True,
    )


def change(ctx: CommandContext, span: TextSpan) -> CommandOutcome:
    lines = ctx.lines
    value = span_text(lines, span)
    write = RegisterWrite(ctx.register, value, "delete")
    entry = EntryHints(count=1)
    if span.linewise:
        first, last = span.start.line, span.end.line
        indent = ""
        if ctx.options.auto_indent:
            line = lines[first]
            indent = line[: len(line) - len(line.lstrip(" \t"))]
        edit = BufferEdit(Position(first, 0), Position(last, len(lines[last])), indent)
        return CommandOutcome(
            cursor=Position(first, len(indent)),
            edits=(edit,),
            register_write=write,
            switch_to=ModeName.INSERT,
            entry=entry,
            repeatable=True,
        )
    if span.block:
        return CommandOutcome(
            cursor=span.start,
            edits=_block_edits(lines, span),
            register_write=write,
            switch_to=ModeName.INSERT,
            entry=entry,
            repeatable=True,
        )
    edits = () if span.is_empty else (BufferEdit(span.start, span.end),)
    return CommandOutcome(
        cursor=span.start,
        edits=edits,
        register_write=None if span.is_empty else write,
        switch_to=ModeName.INSERT,
        entry=entry,
        repeatable=True,
    )


def yank(ctx: CommandContext, span: TextSpan) -> CommandOutcome:
    value = span_text(ctx.lines, span)
    if span.linewise:
        cursor = ctx.cursor
        if span.start.line < cursor.line:
            cursor = Position(span.start.line, cursor.character)
    elif span.block:
        cursor = span.start
    else:
        cursor = min(span.start, ctx.cursor)
    return CommandOutcome(
        cursor=cursor,
        register_write=RegisterWrite(ctx.register, value, "yank"),
        keep_column=span.linewise,
    )


def _leading_width(line: str, tab_size: int) -> Tuple[int, int]:
    """(visual width, character count) of ``line``'s indentation."""

    width = 0
    count = 0
    for ch in line:
        if ch == " ":
            width += 1
        elif ch == "\t":
            width += tab_size - width % tab_size
        else:
            break
        count += 1
    return width, count


def _reindent(ctx: CommandContext, span: TextSpan, levels: int) -> CommandOutcome:
    lines = ctx.lines
    options = ctx.options
    step = options.indent_width
    edits: List[BufferEdit] = []
    for row in span.rows:
        line = lines[row]
        if not line.strip() and levels > 0:
            continue
        width, count = _leading_width(line, options.tab_size)
        target = max(0, width + levels * step)
        if options.insert_spaces:
            indent = " " * target
        else:
            indent = "\t" * (target // options.tab_size) + " " * (target % options.tab_size)
        if indent != line[:count]:
            edits.append(BufferEdit(Position(row, 0), Position(row, count), indent))
    if not edits:
        return noop()
    after = apply_edits(lines, edits)
    row = span.start.line
    return CommandOutcome(
        cursor=Position(row, first_non_blank(after[row])),
        edits=tuple(edits),
        repeatable=True,
    )


def indent(ctx: CommandContext, span: TextSpan) -> CommandOutcome:
    levels = ctx.effective_count if ctx.mode.is_visual else 1
    return _reindent(ctx, _as_lines(span), levels)


def outdent(ctx: CommandContext, span: TextSpan) -> CommandOutcome:
    levels = ctx.effective_count if ctx.mode.is_visual else 1
    return _reindent(ctx, _as_lines(span), -levels)


def _as_lines(span: TextSpan) -> TextSpan:
    if span.linewise:
        return span
    return TextSpan(span.start, span.end, linewise=True)


def _transform(ctx: CommandContext, span: TextSpan, fn: Callable[[str], str]) -> CommandOutcome:
    lines = ctx.lines
    if span.block:
        edits = _block_edits(lines, span, fn)
        cursor = span.start
    elif span.linewise:
        edits = tuple(
            BufferEdit(Position(row, 0), Position(row, len(lines[row])), fn(lines[row]))
            for row in span.rows
            if lines[row]
        )
        cursor = Position(span.start.line, ctx.cursor.character)
        if span.start.line != ctx.cursor.line:
            cursor = Position(span.start.line, 0)
    else:
        original = span_text(lines, span).text
        edits = (BufferEdit(span.start, span.end, fn(original)),)
        cursor = span.start
    edits = tuple(edit for edit in edits if edit.text != _slice(lines, edit))
    if not edits:
        return CommandOutcome(cursor=cursor, status="noop")
    return CommandOutcome(cursor=cursor, edits=edits, repeatable=True)


def _slice(lines: Sequence[str], edit: BufferEdit) -> str:
    text = "\n".join(lines)
    return text[_offset(lines, edit.start) : _offset(lines, edit.end)]


def lowercase(ctx: CommandContext, span: TextSpan) -> CommandOutcome:
    return _transform(ctx, span, str.lower)


def uppercase(ctx: CommandContext, span: TextSpan) -> CommandOutcome:
    return _transform(ctx, span, str.upper)


def swap_case(ctx: CommandContext, span: TextSpan) -> CommandOutcome:
    return _transform(ctx, span, str.swapcase)


__all__ = [
    "change",
    "delete",
    "indent",
    "lowercase",
    "outdent",
    "span_text",
    "swap_case",
    "uppercase",
    "yank",
]
