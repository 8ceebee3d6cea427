"""List-of-lines text storage backing ``Buffer``."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable, List, Sequence


@dataclass(slots=True)
class BufferDocument:
    """Versioned text storage.

    Documents are treated as values: every edit returns a new document with
    a bumped ``version`` so snapshots handed out earlier stay valid.
    """

    _lines: List[str] = field(default_factory=lambda: [""])
    version: int = 0
    dirty: bool = False

    @classmethod
    def from_text(cls, text: str) -> "BufferDocument":
        return cls(_lines=text.split("\n"))

    @classmethod
    def from_lines(cls, lines: Iterable[str]) -> "BufferDocument":
        values = list(lines)
        if any("\n" in line for line in values):
            raise ValueError("lines must not contain newline characters")
        return cls(_lines=values or [""])

    @property
    def text(self) -> str:
        return "\n".join(self._lines)

    def snapshot(self) -> Sequence[str]:
        """Return the current lines without exposing internal mutability."""

        return tuple(self._lines)

    def replace(self, *, lines: Iterable[str]) -> "BufferDocument":
        """Return a new document holding ``lines`` with the version bumped."""

        values = list(lines) or [""]
        return BufferDocument(_lines=values, version=self.version + 1, dirty=True)

    def with_text(self, text: str) -> "BufferDocument":
        return self.replace(lines=text.split("\n"))

    @property
    def line_count(self) -> int:
        return len(self._lines)

    def get_line(self, index: int) -> str:
        return self._lines[index]
