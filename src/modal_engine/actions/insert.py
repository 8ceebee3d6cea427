"""Insert- and replace-mode actions."""

from __future__ import annotations

from typing import Iterable, Optional

from modal_engine.buffer.position import Position
from modal_engine.runtime.options import EngineOptions
from modal_engine.session import InsertState, ModeName, ReplaceState

from .context import BufferEdit, CommandContext, CommandOutcome, noop

# Keys that move the cursor start a fresh insert, as far as repeating goes.
_BREAKS_REPEAT = frozenset({"<left>", "<right>", "<up>", "<down>", "<home>", "<end>"})


def repeat_text(tokens: Iterable[str], options: EngineOptions) -> str:
    """Text typed by ``tokens`` since the last cursor jump."""

    text = ""
    for token in tokens:
        if token in _BREAKS_REPEAT:
            text = ""
        elif token in ("<bs>", "<c-h>"):
            text = text[:-1]
        elif token == "<cr>":
            text += "\n"
        elif token == "<tab>":
            text += options.tab_text(0)
        elif len(token) == 1:
            text += token
    return text


def _insert_at_cursor(ctx: CommandContext, text: str) -> CommandOutcome:
    edit = BufferEdit(ctx.cursor, ctx.cursor, text)
    rows = text.split("\n")
    if len(rows) == 1:
        cursor = Position(ctx.cursor.line, ctx.cursor.character + len(text))
    else:
        row = ctx.cursor.line + len(rows) - 1
        cursor = Position(row, len(rows[-1]))
    return CommandOutcome(cursor=cursor, edits=(edit,))


def insert_text(ctx: CommandContext) -> CommandOutcome:
    """Type ``ctx.argument`` at the cursor."""

    if not ctx.argument:
        return noop()
    return _insert_at_cursor(ctx, ctx.argument)


def insert_tab(ctx: CommandContext) -> CommandOutcome:
    return _insert_at_cursor(ctx, ctx.options.tab_text(ctx.cursor.character))


def insert_newline(ctx: CommandContext) -> CommandOutcome:
    indent = ""
    if ctx.options.auto_indent:
        line = ctx.line
        indent = line[: len(line) - len(line.lstrip(" \t"))]
        indent = indent[: ctx.cursor.character]
    return _insert_at_cursor(ctx, "\n" + indent)


def backspace(ctx: CommandContext) -> CommandOutcome:
    row, column = ctx.cursor.line, ctx.cursor.character
    if column > 0:
        start = Position(row, column - 1)
        return CommandOutcome(cursor=start, edits=(BufferEdit(start, ctx.cursor),))
    if row == 0:
        return noop()
    above = Position(row - 1, len(ctx.lines[row - 1]))
    return CommandOutcome(cursor=above, edits=(BufferEdit(above, ctx.cursor),))


def delete_forward(ctx: CommandContext) -> CommandOutcome:
    row, column = ctx.cursor.line, ctx.cursor.character
    if column < len(ctx.line):
        end = Position(row, column + 1)
    elif row + 1 < len(ctx.lines):
        end = Position(row + 1, 0)
    else:
        return noop()
    return CommandOutcome(cursor=ctx.cursor, edits=(BufferEdit(ctx.cursor, end),))


def delete_word_before(ctx: CommandContext) -> CommandOutcome:
    """``<c-w>``: delete the word (and blanks) before the cursor."""

    column = ctx.cursor.character
    if column == 0:
        return backspace(ctx)
    line = ctx.line
    start = column
    while start > 0 and line[start - 1] in " \t":
        start -= 1
    if start > 0:
        word = line[start - 1].isalnum() or line[start - 1] == "_"
        while start > 0 and line[start - 1] not in " \t" and (
            (line[start - 1].isalnum() or line[start - 1] == "_") == word
        ):
            start -= 1
    begin = Position(ctx.cursor.line, start)
    return CommandOutcome(cursor=begin, edits=(BufferEdit(begin, ctx.cursor),))


def delete_line_before(ctx: CommandContext) -> CommandOutcome:
    """``<c-u>``: delete everything before the cursor on this line."""

    if ctx.cursor.character == 0:
        return noop()
    begin = Position(ctx.cursor.line, 0)
    return CommandOutcome(cursor=begin, edits=(BufferEdit(begin, ctx.cursor),))


def _move(ctx: CommandContext, row: int, column: int) -> CommandOutcome:
    row = max(0, min(row, len(ctx.lines) - 1))
    column = max(0, min(column, len(ctx.lines[row])))
    return CommandOutcome(cursor=Position(row, column))


def move_left(ctx: CommandContext) -> CommandOutcome:
    return _move(ctx, ctx.cursor.line, ctx.cursor.character - 1)


def move_right(ctx: CommandContext) -> CommandOutcome:
    return _move(ctx, ctx.cursor.line, ctx.cursor.character + 1)


def move_up(ctx: CommandContext) -> CommandOutcome:
    wanted = ctx.desired_column if ctx.desired_column is not None else ctx.cursor.character
    outcome = _move(ctx, ctx.cursor.line - 1, wanted)
    return CommandOutcome(cursor=outcome.cursor, keep_column=True)


def move_down(ctx: CommandContext) -> CommandOutcome:
    wanted = ctx.desired_column if ctx.desired_column is not None else ctx.cursor.character
    outcome = _move(ctx, ctx.cursor.line + 1, wanted)
    return CommandOutcome(cursor=outcome.cursor, keep_column=True)


def move_home(ctx: CommandContext) -> CommandOutcome:
    return _move(ctx, ctx.cursor.line, 0)


def move_end(ctx: CommandContext) -> CommandOutcome:
    return _move(ctx, ctx.cursor.line, len(ctx.line))


def exit_insert(ctx: CommandContext) -> CommandOutcome:
    """Leave insert mode, typing the inserted text ``count - 1`` more times."""

    state = ctx.mode_data
    if not isinstance(state, InsertState) or state.count <= 1:
        return CommandOutcome(switch_to=ModeName.NORMAL)
    typed = repeat_text(state.typed, ctx.options)
    if not typed:
        return CommandOutcome(switch_to=ModeName.NORMAL)
    text = (state.repeat_prefix + typed) * (state.count - 1)
    outcome = _insert_at_cursor(ctx, text)
    return CommandOutcome(
        cursor=outcome.cursor, edits=outcome.edits, switch_to=ModeName.NORMAL
    )


# -- replace mode ----------------------------------------------------------------


def overwrite_char(ctx: CommandContext) -> CommandOutcome:
    """Replace the character under the cursor, appending at line end."""

    char = ctx.argument
    if not char:
        return noop()
    column = ctx.cursor.character
    end = ctx.cursor
    if column < len(ctx.line):
        end = Position(ctx.cursor.line, column + 1)
    edit = BufferEdit(ctx.cursor, end, char)
    return CommandOutcome(
        cursor=Position(ctx.cursor.line, column + 1), edits=(edit,)
    )


def replaced_original(ctx: CommandContext) -> Optional[str]:
    state = ctx.mode_data
    if isinstance(state, ReplaceState) and state.replaced:
        return state.replaced[-1] or ""
    return None


def restore_char(ctx: CommandContext) -> CommandOutcome:
    """Replace-mode ``<bs>``: step back, restoring what was overwritten."""

    original = replaced_original(ctx)
    column = ctx.cursor.character
    if original is None or column == 0:
        return _move(ctx, ctx.cursor.line, column - 1)
    start = Position(ctx.cursor.line, column - 1)
    edit = BufferEdit(start, ctx.cursor, original)
    return CommandOutcome(cursor=start, edits=(edit,))


def exit_replace(ctx: CommandContext) -> CommandOutcome:
    del ctx
    return CommandOutcome(switch_to=ModeName.NORMAL)


__all__ = [
    "backspace",
    "delete_forward",
    "delete_line_before",
    "delete_word_before",
    "exit_insert",
    "exit_replace",
    "insert_newline",
    "insert_tab",
    "insert_text",
    "move_down",
    "move_end",
    "move_home",
    "move_left",
    "move_right",
    "move_up",
    "overwrite_char",
    "repeat_text",
    "replaced_original",
    "restore_char",
]
