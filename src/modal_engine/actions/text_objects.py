"""Text objects: ranges around the cursor selected by ``i``/``a`` + a key."""

from __future__ import annotations

from typing import Callable, Optional, Tuple

from modal_engine.buffer.position import Position

from .context import CommandContext, TextSpan

_SPACE, _PUNCT, _WORD = 0, 1, 2


def _kind(ch: str, big: bool) -> int:
    if ch in " \t":
        return _SPACE
    if big or ch.isalnum() or ch == "_":
        return _WORD
    return _PUNCT


def _run(line: str, index: int, big: bool) -> Tuple[int, int]:
    """Half-open bounds of the run of same-kind characters around ``index``."""

    kind = _kind(line[index], big)
    start = index
    while start > 0 and _kind(line[start - 1], big) == kind:
        start -= 1
    end = index + 1
    while end < len(line) and _kind(line[end], big) == kind:
        end += 1
    return start, end


def _word_object(ctx: CommandContext, *, around: bool, big: bool) -> Optional[TextSpan]:
    line = ctx.line
    if not line:
        return None
    column = min(ctx.cursor.character, len(line) - 1)
    start, end = _run(line, column, big)
    on_space = _kind(line[column], big) == _SPACE

    for _ in range(ctx.effective_count - 1):
        if end >= len(line):
            break
        _, end = _run(line, end, big)

    if around:
        if on_space:
            if end < len(line):
                _, end = _run(line, end, big)
        elif end < len(line) and _kind(line[end], big) == _SPACE:
            _, end = _run(line, end, big)
        elif start > 0 and _kind(line[start - 1], big) == _SPACE:
            start, _ = _run(line, start - 1, big)

    row = ctx.cursor.line
    return TextSpan(Position(row, start), Position(row, end))


def inner_word(ctx: CommandContext) -> Optional[TextSpan]:
    return _word_object(ctx, around=False, big=False)


def a_word(ctx: CommandContext) -> Optional[TextSpan]:
    return _word_object(ctx, around=True, big=False)


def inner_big_word(ctx: CommandContext) -> Optional[TextSpan]:
    return _word_object(ctx, around=False, big=True)


def a_big_word(ctx: CommandContext) -> Optional[TextSpan]:
    return _word_object(ctx, around=True, big=True)


# -- brackets -------------------------------------------------------------------


def _offsets(ctx: CommandContext) -> Tuple[str, int]:
    text = "\n".join(ctx.lines)
    offset = sum(len(ctx.lines[i]) + 1 for i in range(ctx.cursor.line))
    return text, offset + ctx.cursor.character


def _to_position(ctx: CommandContext, offset: int) -> Position:
    row = 0
    while offset > len(ctx.lines[row]):
        offset -= len(ctx.lines[row]) + 1
        row += 1
    return Position(row, offset)


def _find_open(text: str, offset: int, open_ch: str, close_ch: str) -> Optional[int]:
    depth = 0
    index = offset
    while index >= 0:
        ch = text[index]
        if ch == close_ch and index != offset:
            depth += 1
        elif ch == open_ch:
            if depth == 0:
                return index
            depth -= 1
        index -= 1
    return None


def _find_close(text: str, offset: int, open_ch: str, close_ch: str) -> Optional[int]:
    depth = 0
    for index in range(offset + 1, len(text)):
        ch = text[index]
        if ch == open_ch:
            depth += 1
        elif ch == close_ch:
            if depth == 0:
                return index
            depth -= 1
    return None


def _bracket_object(
    open_ch: str, close_ch: str, *, around: bool
) -> Callable[[CommandContext], Optional[TextSpan]]:
    def select(ctx: CommandContext) -> Optional[TextSpan]:
        text, offset = _offsets(ctx)
        if offset >= len(text):
            offset = max(0, len(text) - 1)
        if not text:
            return None
        if text[offset] == close_ch:
            close = offset
            opening = _find_open(text, offset - 1, open_ch, close_ch) if offset else None
        else:
            opening = _find_open(text, offset, open_ch, close_ch)
            close = None if opening is None else _find_close(text, opening, open_ch, close_ch)
        for _ in range(ctx.effective_count - 1):
            if opening is None or opening == 0:
                return None
            opening = _find_open(text, opening - 1, open_ch, close_ch)
            close = None if opening is None else _find_close(text, opening, open_ch, close_ch)
        if opening is None or close is None:
            return None
        if around:
            return TextSpan(_to_position(ctx, opening), _to_position(ctx, close + 1))
        return TextSpan(_to_position(ctx, opening + 1), _to_position(ctx, close))

    select.__name__ = f"{'a' if around else 'inner'}_{open_ch}{close_ch}"
    return select


inner_paren = _bracket_object("(", ")", around=False)
a_paren = _bracket_object("(", ")", around=True)
inner_brace = _bracket_object("{", "}", around=False)
a_brace = _bracket_object("{", "}", around=True)
inner_bracket = _bracket_object("[", "]", around=False)
a_bracket = _bracket_object("[", "]", around=True)


# -- quotes --------------------------------------------------------------------


def _quote_object(quote: str, *, around: bool) -> Callable[[CommandContext], Optional[TextSpan]]:
    def select(ctx: CommandContext) -> Optional[TextSpan]:
        line = ctx.line
        column = ctx.cursor.character
        quotes = [
            i for i, ch in enumerate(line) if ch == quote and (i == 0 or line[i - 1] != "\\")
        ]
        pair: Optional[Tuple[int, int]] = None
        if column in quotes:
            index = quotes.index(column)
            if index % 2 == 0 and index + 1 < len(quotes):
                pair = (column, quotes[index + 1])
            elif index % 2 == 1:
                pair = (quotes[index - 1], column)
        else:
            before = [q for q in quotes if q < column]
            after = [q for q in quotes if q > column]
            if before and after and len(before) % 2 == 1:
                pair = (before[-1], after[0])
            elif len(after) >= 2 and len(before) % 2 == 0:
                pair = (after[0], after[1])
        if pair is None:
            return None

        opening, closing = pair
        start, end = opening + 1, closing
        if around:
            start, end = opening, closing + 1
            trailing = end
            while trailing < len(line) and line[trailing] in " \t":
                trailing += 1
            if trailing > end:
                end = trailing
            else:
                while start > 0 and line[start - 1] in " \t":
                    start -= 1
        row = ctx.cursor.line
        return TextSpan(Position(row, start), Position(row, end))

    select.__name__ = f"{'a' if around else 'inner'}_quote"
    return select


inner_double_quote = _quote_object('"', around=False)
a_double_quote = _quote_object('"', around=True)
inner_single_quote = _quote_object("'", around=False)
a_single_quote = _quote_object("'", around=True)
inner_backtick = _quote_object("`", around=False)
a_backtick = _quote_object("`", around=True)


__all__ = [
    "a_backtick",
    "a_big_word",
    "a_brace",
    "a_bracket",
    "a_double_quote",
    "a_paren",
    "a_single_quote",
    "a_word",
    "inner_backtick",
    "inner_big_word",
    "inner_brace",
    "inner_bracket",
    "inner_double_quote",
    "inner_paren",
    "inner_single_quote",
    "inner_word",
]
