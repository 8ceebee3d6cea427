"""Shared key handling for modes driven by a keymap grammar."""

from __future__ import annotations

from modal_engine.runtime import telemetry

from .base_mode import KeyInput, Mode, ModeContext, ModeResult
from .keymap_helpers import (
    key_to_token,
    keymap_flag_context,
    require_dispatcher,
    require_keymap_resolver,
)
from .matcher import MatchOutcome, MatchState, SequenceMatcher


class KeymapMode(Mode):
    """Feeds tokens to a ``SequenceMatcher`` and dispatches complete commands.

    Subclasses pick the grammar and which prefixes it accepts, and override
    ``on_miss`` to treat unbound keys as text.
    """

    allow_counts: bool = True
    allow_register: bool = True
    operators_pend: bool = True

    def __init__(self, context: ModeContext) -> None:
        super().__init__(context)
        self.logger = telemetry.get_logger(f"modal_engine.modes.{self.name}")
        self._resolver = require_keymap_resolver(context)
        self._dispatcher = require_dispatcher(context)
        self._flags = keymap_flag_context(context)
        self._matcher = SequenceMatcher(
            self._resolver,
            context.session,
            self.grammar,
            allow_counts=self.allow_counts,
            allow_register=self.allow_register,
            operators_pend=self.operators_pend,
            flags=self._flags,
            logger_name="modal_engine.keymaps",
        )

    @property
    def matcher(self) -> SequenceMatcher:
        return self._matcher

    def handle_key(self, key: KeyInput) -> ModeResult:
        return self.handle_token(key_to_token(key))

    def handle_token(self, token: str) -> ModeResult:
        return self._after_match(self._matcher.feed(token))

    def handle_timeout(self) -> ModeResult:
        outcome = self._matcher.flush()
        if outcome.state is MatchState.EMPTY:
            return ModeResult(consumed=False, status="timeout")
        return self._after_match(outcome)

    def on_miss(self, outcome: MatchOutcome) -> ModeResult:
        return ModeResult(
            consumed=False, status="miss", message="unhandled", tokens=outcome.tokens
        )

    def _after_match(self, outcome: MatchOutcome) -> ModeResult:
        if outcome.state is MatchState.COMPLETE:
            assert outcome.request is not None
            result = self._dispatcher.execute(outcome.request)
            if outcome.replay:
                result.replay = result.replay + outcome.replay
            return result
        if outcome.state is MatchState.ABORTED:
            return self.on_miss(outcome)
        return ModeResult(
            consumed=True,
            status="pending",
            message=outcome.state.value,
            timeout_ms=outcome.timeout_ms,
            tokens=outcome.tokens,
        )


__all__ = ["KeymapMode"]
