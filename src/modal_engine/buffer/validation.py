"""Validation helpers shared across buffer services."""

from __future__ import annotations

from .document import BufferDocument
from .position import Position
from .sync import BufferValidationError


def ensure_position(document: BufferDocument, position: Position) -> Position:
    if position.line >= document.line_count:
        raise BufferValidationError("Line out of range", position=position)
    line = document.get_line(position.line)
    if position.character > len(line):
        raise BufferValidationError("Character out of range", position=position)
    return position


def ensure_line_index(document: BufferDocument, index: int) -> int:
    if index < 0 or index >= document.line_count:
        raise BufferValidationError(f"Line {index} out of range")
    return index
