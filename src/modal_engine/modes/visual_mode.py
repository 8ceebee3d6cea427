"""Visual modes: charwise, linewise and blockwise selections.

All three share the ``visual`` grammar. Operators do not wait for a target
here; they apply to the selection as soon as they are typed.
"""

from __future__ import annotations

from modal_engine.session import ModeName

from .keymap_helpers import update_flag
from .keymap_mode import KeymapMode


class VisualMode(KeymapMode):
    name = "visual"
    grammar = "visual"
    operators_pend = False

    def on_enter(self, previous: str | None) -> None:
        update_flag(self.context, "visual_active", True)
        if previous is None or not ModeName(previous).is_visual:
            self.context.bus.emit("visual.start", self.name)
        else:
            self.context.bus.emit("visual.change", self.name)

    def on_exit(self, next_mode: str | None) -> None:
        if next_mode is not None and ModeName(next_mode).is_visual:
            return
        update_flag(self.context, "visual_active", False)
        self.context.bus.emit("visual.end", self.name)


class VisualLineMode(VisualMode):
    name = "visual_line"


class VisualBlockMode(VisualMode):
    name = "visual_block"


__all__ = ["VisualBlockMode", "VisualLineMode", "VisualMode"]
