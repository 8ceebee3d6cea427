"""Immutable (line, character) coordinates clamped against buffer snapshots."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Sequence, Tuple

Cursor = Tuple[int, int]  # host (row, column)


def max_column(line: str, *, past_end: bool = False) -> int:
    """Last column the cursor may occupy on ``line``."""

    if past_end:
        return len(line)
    return max(0, len(line) - 1)


def first_non_blank(line: str) -> int:
    stripped = len(line) - len(line.lstrip(" \t"))
    return min(stripped, max_column(line))


@dataclass(frozen=True, slots=True, order=True)
class Position:
    """Zero-based buffer coordinate.

    Every operation that takes ``lines`` saturates to the bounds of that
    snapshot instead of failing. ``past_end`` allows the column one past the
    last character (Insert/Replace modes and range ends).
    """

    line: int = 0
    character: int = 0

    def __post_init__(self) -> None:
        if self.line < 0 or self.character < 0:
            raise ValueError(f"Position cannot be negative: {self.line}, {self.character}")

    def clamp(self, lines: Sequence[str], *, past_end: bool = False) -> "Position":
        return self.with_location(lines, self.line, self.character, past_end=past_end)

    def with_location(
        self,
        lines: Sequence[str],
        line: int,
        character: int,
        *,
        past_end: bool = False,
    ) -> "Position":
        if not lines:
            return Position(0, 0)
        row = max(0, min(line, len(lines) - 1))
        column = max(0, min(character, max_column(lines[row], past_end=past_end)))
        if row == self.line and column == self.character:
            return self
        return Position(row, column)

    def translate(
        self,
        lines: Sequence[str],
        line_delta: int = 0,
        char_delta: int = 0,
        *,
        past_end: bool = False,
    ) -> "Position":
        return self.with_location(
            lines,
            self.line + line_delta,
            self.character + char_delta,
            past_end=past_end,
        )

    def to_host(self, *, one_based: bool = False) -> Cursor:
        offset = 1 if one_based else 0
        return (self.line + offset, self.character + offset)

    @classmethod
    def from_host(cls, cursor: Cursor, *, one_based: bool = False) -> "Position":
        row, column = cursor
        offset = 1 if one_based else 0
        return cls(max(0, row - offset), max(0, column - offset))


ORIGIN = Position(0, 0)

__all__ = ["Cursor", "ORIGIN", "Position", "first_non_blank", "max_column"]
