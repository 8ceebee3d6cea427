"""Boundary types shared with host editors."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional, Protocol, runtime_checkable

from .position import Cursor, Position
from .state import Selection


@dataclass(slots=True)
class BufferMirror:
    """Host-friendly snapshot describing what the host should render."""

    text: str
    cursor: Cursor
    selection: Optional[Selection]
    attributes: dict[str, str] = field(default_factory=dict)


@runtime_checkable
class TextBuffer(Protocol):
    """Collaborator contract the interpreter edits through."""

    def line_count(self) -> int:
        ...

    def read_line_at(self, index: int) -> str:
        ...

    def insert(self, text: str, position: Position) -> None:
        ...

    def delete(self, start: Position, end: Position) -> None:
        ...

    def get_selection(self) -> Optional[Selection]:
        ...

    def set_selection(self, selection: Optional[Selection]) -> None:
        ...


class BufferValidationError(RuntimeError):
    """Raised when a caller hands the buffer an out-of-bounds position."""

    def __init__(self, message: str, *, position: Position | None = None) -> None:
        super().__init__(message)
        self.position = position


class BufferCollaboratorError(RuntimeError):
    """Raised by buffer implementations that cannot complete an edit."""
