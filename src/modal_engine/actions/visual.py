"""Actions dedicated to the visual modes and the selection they maintain."""

from __future__ import annotations

from dataclasses import replace
from typing import List

from modal_engine.buffer.position import Position
from modal_engine.session import END_OF_LINE, ModeName

from . import operators
from .context import BufferEdit, CommandContext, CommandOutcome, TextSpan, noop
from .core import join_range

_VARIANT_BY_KEY = {
    "v": ModeName.VISUAL,
    "V": ModeName.VISUAL_LINE,
    "<c-v>": ModeName.VISUAL_BLOCK,
}


def selection_span(ctx: CommandContext) -> TextSpan:
    """Range covered by the current selection, anchor and cursor inclusive."""

    anchor = ctx.anchor or ctx.cursor
    start, end = sorted((anchor, ctx.cursor))
    lines = ctx.lines
    if ctx.mode is ModeName.VISUAL_LINE:
        return TextSpan(start, end, linewise=True)
    if ctx.mode is ModeName.VISUAL_BLOCK:
        left = min(anchor.character, ctx.cursor.character)
        right = max(anchor.character, ctx.cursor.character) + 1
        if ctx.desired_column == END_OF_LINE:
            right = max(len(lines[row]) for row in range(start.line, end.line + 1))
        return TextSpan(
            Position(start.line, left), Position(end.line, right), block=True
        )
    end_line = lines[end.line]
    if end.character >= len(end_line):
        if end.line + 1 < len(lines):
            return TextSpan(start, Position(end.line + 1, 0))
        return TextSpan(start, Position(end.line, len(end_line)))
    return TextSpan(start, Position(end.line, end.character + 1))


def _back_to_normal(outcome: CommandOutcome) -> CommandOutcome:
    if outcome.switch_to is not None:
        return outcome
    return replace(outcome, switch_to=ModeName.NORMAL)


def _lines_span(ctx: CommandContext) -> TextSpan:
    span = selection_span(ctx)
    return TextSpan(span.start, span.end, linewise=True)


def _toggle(ctx: CommandContext, key: str) -> CommandOutcome:
    target = _VARIANT_BY_KEY[key]
    if ctx.mode is target:
        return CommandOutcome(switch_to=ModeName.NORMAL)
    return CommandOutcome(switch_to=target)


def toggle_charwise(ctx: CommandContext) -> CommandOutcome:
    return _toggle(ctx, "v")


def toggle_linewise(ctx: CommandContext) -> CommandOutcome:
    return _toggle(ctx, "V")


def toggle_blockwise(ctx: CommandContext) -> CommandOutcome:
    return _toggle(ctx, "<c-v>")


def exit_visual(ctx: CommandContext) -> CommandOutcome:
    return CommandOutcome(switch_to=ModeName.NORMAL)


def swap_anchor(ctx: CommandContext) -> CommandOutcome:
    """``o``: move the cursor to the other end of the selection."""

    anchor = ctx.anchor or ctx.cursor
    return CommandOutcome(cursor=anchor, anchor=ctx.cursor)


def delete_selection(ctx: CommandContext) -> CommandOutcome:
    return _back_to_normal(operators.delete(ctx, selection_span(ctx)))


def delete_lines(ctx: CommandContext) -> CommandOutcome:
    """``X``/``D``: delete every selected line (to line end in block mode)."""

    if ctx.mode is ModeName.VISUAL_BLOCK:
        span = selection_span(ctx)
        lines = ctx.lines
        right = max(len(lines[row]) for row in span.rows)
        span = TextSpan(span.start, Position(span.end.line, right), block=True)
        return _back_to_normal(operators.delete(ctx, span))
    return _back_to_normal(operators.delete(ctx, _lines_span(ctx)))


def yank_lines(ctx: CommandContext) -> CommandOutcome:
    return _back_to_normal(operators.yank(ctx, _lines_span(ctx)))


def change_selection(ctx: CommandContext) -> CommandOutcome:
    return operators.change(ctx, selection_span(ctx))


def change_lines(ctx: CommandContext) -> CommandOutcome:
    return operators.change(ctx, _lines_span(ctx))


def lowercase_selection(ctx: CommandContext) -> CommandOutcome:
    return _back_to_normal(operators.lowercase(ctx, selection_span(ctx)))


def uppercase_selection(ctx: CommandContext) -> CommandOutcome:
    return _back_to_normal(operators.uppercase(ctx, selection_span(ctx)))


def swap_case_selection(ctx: CommandContext) -> CommandOutcome:
    return _back_to_normal(operators.swap_case(ctx, selection_span(ctx)))


def join_selection(ctx: CommandContext) -> CommandOutcome:
    anchor = ctx.anchor or ctx.cursor
    first = min(anchor.line, ctx.cursor.line)
    last = max(anchor.line, ctx.cursor.line, min(first + 1, len(ctx.lines) - 1))
    if last == first:
        return CommandOutcome(switch_to=ModeName.NORMAL)
    return _back_to_normal(join_range(ctx, first, last))


def replace_selection(ctx: CommandContext) -> CommandOutcome:
    """``r{char}``: overwrite every selected character."""

    char = ctx.argument
    if char is None:
        return noop()
    if char == "<tab>":
        char = "\t"
    elif char == "<cr>":
        char = "\n"
    span = selection_span(ctx)
    lines = ctx.lines
    edits: List[BufferEdit] = []
    for row in span.rows:
        line = lines[row]
        if span.linewise:
            start, end = 0, len(line)
        elif span.block:
            start, end = span.start.character, min(span.end.character, len(line))
        else:
            start = span.start.character if row == span.start.line else 0
            end = span.end.character if row == span.end.line else len(line)
            end = min(end, len(line))
        if end > start:
            edits.append(
                BufferEdit(Position(row, start), Position(row, end), char * (end - start))
            )
    if not edits:
        return CommandOutcome(switch_to=ModeName.NORMAL)
    cursor = span.start if not span.linewise else Position(span.start.line, 0)
    return CommandOutcome(cursor=cursor, edits=tuple(edits), switch_to=ModeName.NORMAL)


__all__ = [
    "change_lines",
    "change_selection",
    "delete_lines",
    "delete_selection",
    "exit_visual",
    "join_selection",
    "lowercase_selection",
    "replace_selection",
    "selection_span",
    "swap_anchor",
    "swap_case_selection",
    "toggle_blockwise",
    "toggle_charwise",
    "toggle_linewise",
    "uppercase_selection",
    "yank_lines",
]
