"""Command set: motions, text objects, operators and per-mode actions."""

from . import command, core, insert, motions, operators, text_objects, visual
from .context import (
    BufferEdit,
    CommandContext,
    CommandOutcome,
    MotionTarget,
    RegisterWrite,
    TextSpan,
    apply_edits,
    span_from_target,
)
from .visual import selection_span

__all__ = [
    "BufferEdit",
    "CommandContext",
    "CommandOutcome",
    "MotionTarget",
    "RegisterWrite",
    "TextSpan",
    "apply_edits",
    "command",
    "core",
    "insert",
    "motions",
    "operators",
    "selection_span",
    "span_from_target",
    "text_objects",
    "visual",
]
