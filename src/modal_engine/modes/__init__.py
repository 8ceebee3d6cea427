"""Mode manager, sequence matcher, dispatcher and the concrete modes."""

from .base_mode import KeyInput, Mode, ModeBus, ModeContext, ModeResult
from .matcher import CommandRequest, MatchOutcome, MatchState, SequenceMatcher
from .dispatcher import CommandDispatcher
from .keymap_mode import KeymapMode
from .normal_mode import NormalMode
from .insert_mode import InsertMode, ReplaceMode
from .visual_mode import VisualBlockMode, VisualLineMode, VisualMode
from .command_mode import CommandMode
from .mode_manager import ModeManager

__all__ = [
    "KeyInput",
    "Mode",
    "ModeBus",
    "ModeContext",
    "ModeResult",
    "CommandRequest",
    "MatchOutcome",
    "MatchState",
    "SequenceMatcher",
    "CommandDispatcher",
    "KeymapMode",
    "ModeManager",
    "NormalMode",
    "InsertMode",
    "ReplaceMode",
    "VisualMode",
    "VisualLineMode",
    "VisualBlockMode",
    "CommandMode",
]
