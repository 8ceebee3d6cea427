"""Split raw key strings into tokens and canonicalize host key names.

``tokenize("abc<esc>d<c-c>")`` gives ``("a", "b", "c", "<esc>", "d", "<c-c>")``.
A ``<`` without a closing ``>`` (or with another ``<`` before it) is a plain
character, so malformed input never swallows the rest of the string.
"""

from __future__ import annotations

import re
from typing import Iterable, Tuple

_TOKEN_PATTERN = re.compile(r"<[^<>]*>|[\s\S]")

_NAMED_KEYS = {
    "esc": "<esc>",
    "escape": "<esc>",
    "cr": "<cr>",
    "enter": "<cr>",
    "return": "<cr>",
    "bs": "<bs>",
    "backspace": "<bs>",
    "del": "<del>",
    "delete": "<del>",
    "tab": "<tab>",
    "space": " ",
    "lt": "<",
    "gt": ">",
    "bar": "|",
    "bslash": "\\",
    "left": "<left>",
    "right": "<right>",
    "up": "<up>",
    "down": "<down>",
    "home": "<home>",
    "end": "<end>",
}

_CONTROL_CHARS = {
    "\x1b": "<esc>",
    "\r": "<cr>",
    "\n": "<cr>",
    "\t": "<tab>",
    "\x7f": "<bs>",
    "\b": "<bs>",
}

_CTRL_PREFIXES = ("c-", "ctrl+", "ctrl-")


def tokenize(keys: str) -> Tuple[str, ...]:
    return tuple(_TOKEN_PATTERN.findall(keys))


def join_tokens(tokens: Iterable[str]) -> str:
    return "".join(tokens)


def is_bracketed(token: str) -> bool:
    return len(token) >= 2 and token[0] == "<" and token[-1] == ">"


def normalize_key(raw: str) -> str:
    """Map a host key name or token onto the canonical token spelling."""

    if not raw:
        raise ValueError("key cannot be empty")
    if len(raw) == 1:
        return _CONTROL_CHARS.get(raw, raw)

    name = raw[1:-1] if is_bracketed(raw) else raw
    lowered = name.lower()
    for prefix in _CTRL_PREFIXES:
        if lowered.startswith(prefix) and len(lowered) > len(prefix):
            return f"<c-{lowered[len(prefix):]}>"
    named = _NAMED_KEYS.get(lowered)
    if named is not None:
        return named
    return f"<{lowered}>"


def is_literal(token: str) -> bool:
    """Whether ``token`` inserts itself as text."""

    return len(token) == 1 and token.isprintable()


__all__ = ["tokenize", "join_tokens", "normalize_key", "is_bracketed", "is_literal"]
