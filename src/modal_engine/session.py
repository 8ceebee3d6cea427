"""Per-session interpreter state: mode, cursor, pending input and history."""

from __future__ import annotations

import sys
from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, List, Optional, Tuple, Union

from modal_engine.buffer.position import Position

if TYPE_CHECKING:  # pragma: no cover
    from modal_engine.keymaps.resolver import ResolutionMatch, TrieNode

END_OF_LINE = sys.maxsize  # desired column after `$`


class ModeName(str, Enum):
    """Available editing modes."""

    NORMAL = "normal"
    INSERT = "insert"
    VISUAL = "visual"
    VISUAL_LINE = "visual_line"
    VISUAL_BLOCK = "visual_block"
    REPLACE = "replace"
    COMMAND_LINE = "command"

    @property
    def is_visual(self) -> bool:
        return self in _VISUAL_MODES

    @property
    def allows_past_end(self) -> bool:
        """Whether the cursor may rest one column past the last character."""

        return self in (ModeName.INSERT, ModeName.REPLACE)


_VISUAL_MODES = frozenset(
    {ModeName.VISUAL, ModeName.VISUAL_LINE, ModeName.VISUAL_BLOCK}
)


@dataclass(frozen=True, slots=True)
class NormalState:
    tag: str = "normal"


@dataclass(slots=True)
class InsertState:
    entry: Position
    count: int = 1
    repeat_prefix: str = ""
    typed: List[str] = field(default_factory=list)
    tag: str = "insert"


@dataclass(slots=True)
class ReplaceState:
    entry: Position
    replaced: List[Optional[str]] = field(default_factory=list)
    tag: str = "replace"


@dataclass(slots=True)
class VisualState:
    anchor: Position
    tag: str = "visual"


@dataclass(slots=True)
class CommandLineState:
    entry: Position
    text: str = ""
    tag: str = "command"


ModeData = Union[NormalState, InsertState, ReplaceState, VisualState, CommandLineState]


@dataclass(frozen=True, slots=True)
class EntryHints:
    """Extra data a command hands to the transition it requests."""

    count: int = 1
    repeat_prefix: str = ""


@dataclass(frozen=True, slots=True)
class FindRecord:
    """Last `f`/`t`/`F`/`T` search, replayed by `;` and `,`."""

    char: str
    forward: bool
    till: bool


@dataclass(slots=True)
class PendingOperator:
    match: "ResolutionMatch"
    tokens: Tuple[str, ...]


@dataclass(slots=True)
class PendingSequence:
    """Tokens and prefixes gathered since the last completed command."""

    tokens: List[str] = field(default_factory=list)
    count: Optional[int] = None
    register: Optional[str] = None
    operator: Optional[PendingOperator] = None
    motion_count: Optional[int] = None
    partial: List[str] = field(default_factory=list)
    node: Optional["TrieNode"] = None
    fallback: Optional["ResolutionMatch"] = None
    awaiting: Optional[str] = None  # "register" | "argument"
    argument_for: Optional["ResolutionMatch"] = None

    @property
    def is_empty(self) -> bool:
        return not self.tokens

    def clear(self) -> None:
        self.tokens.clear()
        self.count = None
        self.register = None
        self.operator = None
        self.motion_count = None
        self.partial.clear()
        self.node = None
        self.fallback = None
        self.awaiting = None
        self.argument_for = None


class SessionState:
    """State owned by exactly one interpreter.

    ``mode`` and ``mode_data`` are read-only here; only the mode manager's
    transition function replaces them, always together.
    """

    __slots__ = (
        "_mode",
        "_mode_data",
        "cursor",
        "pending",
        "desired_column",
        "last_find",
        "last_change",
    )

    def __init__(self, cursor: Position = Position()) -> None:
        self._mode = ModeName.NORMAL
        self._mode_data: ModeData = NormalState()
        self.cursor = cursor
        self.pending = PendingSequence()
        self.desired_column: Optional[int] = None
        self.last_find: Optional[FindRecord] = None
        self.last_change: Tuple[str, ...] = ()

    @property
    def mode(self) -> ModeName:
        return self._mode

    @property
    def mode_data(self) -> ModeData:
        return self._mode_data

    @property
    def anchor(self) -> Optional[Position]:
        data = self._mode_data
        if isinstance(data, VisualState):
            return data.anchor
        return None

    def apply_transition(self, mode: ModeName, data: ModeData, cursor: Position) -> None:
        self._mode = mode
        self._mode_data = data
        self.cursor = cursor
        self.pending.clear()

    def __repr__(self) -> str:
        return (
            f"SessionState(mode={self._mode.value!r}, cursor={self.cursor!r}, "
            f"pending={list(self.pending.tokens)!r})"
        )


__all__ = [
    "END_OF_LINE",
    "CommandLineState",
    "EntryHints",
    "FindRecord",
    "InsertState",
    "ModeData",
    "ModeName",
    "NormalState",
    "PendingOperator",
    "PendingSequence",
    "ReplaceState",
    "SessionState",
    "VisualState",
]
