"""Cursor and selection mirror kept on the buffer for hosts to render."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Tuple

from .position import Cursor, Position

Selection = Tuple[Cursor, Cursor]  # (anchor, active end), host coordinates


@dataclass(slots=True)
class BufferState:
    """Last cursor/selection published by the interpreter."""

    cursor: Position = Position()
    selection: Optional[Selection] = None
    last_change_tick: int = 0

    def set_cursor(self, position: Position) -> None:
        self.cursor = position
