"""UI-agnostic modal (Vim-style) key interpreter."""

from .buffer import Buffer, Position
from .engine import VimSession
from .modes import KeyInput, ModeResult
from .runtime.options import EngineOptions
from .session import ModeName

__all__ = [
    "Buffer",
    "EngineOptions",
    "KeyInput",
    "ModeName",
    "ModeResult",
    "Position",
    "VimSession",
    "actions",
    "adapters",
    "buffer",
    "keymaps",
    "modes",
    "runtime",
]

__version__ = "0.1.0"
