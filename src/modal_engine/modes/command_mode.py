"""Command-line mode with inline editing and keymap integration."""

from __future__ import annotations

from modal_engine.actions import command as command_actions
from modal_engine.keymaps import is_literal
from modal_engine.session import CommandLineState

from .base_mode import ModeResult
from .keymap_helpers import update_flag
from .keymap_mode import KeymapMode
from .matcher import MatchOutcome


class CommandMode(KeymapMode):
    name = "command"
    grammar = "command"
    allow_counts = False
    allow_register = False

    def on_enter(self, previous: str | None) -> None:
        del previous
        update_flag(self.context, "command_active", True)
        self.context.bus.emit("command.start", None)

    def on_exit(self, next_mode: str | None) -> None:
        del next_mode
        update_flag(self.context, "command_active", False)
        self.context.bus.emit("command.end", self.current_command)

    @property
    def current_command(self) -> str:
        state = self.context.session.mode_data
        if isinstance(state, CommandLineState):
            return state.text
        return ""

    def on_miss(self, outcome: MatchOutcome) -> ModeResult:
        text = "".join(token for token in outcome.tokens if is_literal(token))
        if not text:
            return super().on_miss(outcome)
        return self._dispatcher.run(
            command_actions.type_char,
            argument=text,
            tokens=outcome.tokens,
            label="command.type",
        )


__all__ = ["CommandMode"]
