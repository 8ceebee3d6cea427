"""Normal mode: counts, registers, operators and plain commands."""

from __future__ import annotations

from .keymap_mode import KeymapMode


class NormalMode(KeymapMode):
    name = "normal"
    grammar = "normal"


__all__ = ["NormalMode"]
