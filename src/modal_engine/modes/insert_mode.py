"""Insert and replace modes: bound keys edit, everything printable is typed."""

from __future__ import annotations

from modal_engine.actions import insert as insert_actions
from modal_engine.keymaps import is_literal
from modal_engine.session import InsertState, ReplaceState

from .base_mode import ModeResult
from .keymap_helpers import update_flag
from .keymap_mode import KeymapMode
from .matcher import MatchOutcome, MatchState


def _literal_text(outcome: MatchOutcome) -> str:
    return "".join(token for token in outcome.tokens if is_literal(token))


class InsertMode(KeymapMode):
    name = "insert"
    grammar = "insert"
    allow_counts = False
    allow_register = False

    def on_enter(self, previous: str | None) -> None:
        del previous
        update_flag(self.context, "insert_active", True)

    def on_exit(self, next_mode: str | None) -> None:
        del next_mode
        update_flag(self.context, "insert_active", False)
        self.context.buffer.end_group(self.context.session.cursor)

    def handle_token(self, token: str) -> ModeResult:
        state = self.context.session.mode_data
        if isinstance(state, InsertState):
            state.typed.append(token)
        return super().handle_token(token)

    def on_miss(self, outcome: MatchOutcome) -> ModeResult:
        text = _literal_text(outcome)
        if not text:
            return super().on_miss(outcome)
        return self._dispatcher.run(
            insert_actions.insert_text,
            argument=text,
            tokens=outcome.tokens,
            label="insert.text",
        )


class ReplaceMode(KeymapMode):
    """Typed characters overwrite; ``<bs>`` puts the originals back."""

    name = "replace"
    grammar = "replace"
    allow_counts = False
    allow_register = False

    def on_enter(self, previous: str | None) -> None:
        del previous
        update_flag(self.context, "replace_active", True)

    def on_exit(self, next_mode: str | None) -> None:
        del next_mode
        update_flag(self.context, "replace_active", False)
        self.context.buffer.end_group(self.context.session.cursor)

    def on_miss(self, outcome: MatchOutcome) -> ModeResult:
        text = _literal_text(outcome)
        if not text:
            return super().on_miss(outcome)
        result = ModeResult(consumed=True, status="noop", tokens=outcome.tokens)
        for char in text:
            session = self.context.session
            line = self.context.buffer.read_line_at(session.cursor.line)
            column = session.cursor.character
            original = line[column] if column < len(line) else None
            result = self._dispatcher.run(
                insert_actions.overwrite_char,
                argument=char,
                tokens=outcome.tokens,
                label="replace.overwrite",
            )
            state = session.mode_data
            if result.status == "ok" and isinstance(state, ReplaceState):
                state.replaced.append(original)
        return result

    def _after_match(self, outcome: MatchOutcome) -> ModeResult:
        state = self.context.session.mode_data
        before = self.context.session.cursor
        result = super()._after_match(outcome)
        restored = (
            outcome.state is MatchState.COMPLETE
            and outcome.request is not None
            and outcome.request.action_id == "replace.restore"
        )
        if (
            restored
            and result.status == "ok"
            and isinstance(state, ReplaceState)
            and state.replaced
            and before.character > 0
        ):
            state.replaced.pop()
        return result


__all__ = ["InsertMode", "ReplaceMode"]
