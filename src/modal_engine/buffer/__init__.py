"""Buffer collaborator: positions, storage, registers and undo history."""

from .position import Cursor, Position, first_non_blank, max_column
from .buffer import Buffer, BufferView, Transaction, offset_of, position_at
from .document import BufferDocument
from .registers import RegisterBank, RegisterValue, is_register_name
from .state import BufferState, Selection
from .sync import (
    BufferCollaboratorError,
    BufferMirror,
    BufferValidationError,
    TextBuffer,
)
from .undo import UndoEntry, UndoTimeline
from .validation import ensure_position

__all__ = [
    "Buffer",
    "BufferCollaboratorError",
    "BufferDocument",
    "BufferMirror",
    "BufferState",
    "BufferValidationError",
    "BufferView",
    "Cursor",
    "Position",
    "RegisterBank",
    "RegisterValue",
    "Selection",
    "TextBuffer",
    "Transaction",
    "UndoEntry",
    "UndoTimeline",
    "ensure_position",
    "first_non_blank",
    "is_register_name",
    "max_column",
    "offset_of",
    "position_at",
]
