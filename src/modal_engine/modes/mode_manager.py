"""Mode manager: the single owner of mode transitions.

It routes keys to the active mode, applies the transitions they request,
keeps dot-repeat history and drives pending-sequence timeouts.
"""

from __future__ import annotations

from dataclasses import dataclass
import time
from typing import Dict, List, Optional, Type

from modal_engine.buffer import Position
from modal_engine.runtime import telemetry
from modal_engine.session import (
    CommandLineState,
    EntryHints,
    InsertState,
    ModeData,
    ModeName,
    NormalState,
    ReplaceState,
    VisualState,
)

from modal_engine.keymaps import KeymapRegistry, KeymapResolver, load_default_keymaps

from .base_mode import KeyInput, Mode, ModeContext, ModeResult
from .dispatcher import CommandDispatcher, sync_selection
from .keymap_helpers import key_to_token

_TYPING_MODES = (ModeName.INSERT, ModeName.REPLACE)


@dataclass
class PendingTimeout:
    deadline: float
    timeout_ms: int
    generation: int


class ModeManager:
    """Owns active mode, handles transitions, and dispatches key events.

    The active mode is always the one registered under ``session.mode``.
    """

    def __init__(
        self,
        context: ModeContext,
        *,
        keymap_registry: KeymapRegistry | None = None,
        keymap_resolver: KeymapResolver | None = None,
        load_defaults: bool = True,
    ) -> None:
        self.context = context
        self._modes: Dict[str, Mode] = {}
        self.logger = telemetry.get_logger("modal_engine.modes")
        self.keymap_registry = keymap_registry or KeymapRegistry(
            logger_name="modal_engine.keymaps"
        )
        if load_defaults and keymap_registry is None:
            load_default_keymaps(
                self.keymap_registry,
                default_sequence_timeout_ms=context.options.pending_timeout_ms,
            )
        self.keymap_resolver = keymap_resolver or KeymapResolver(
            self.keymap_registry, logger_name="modal_engine.keymaps"
        )
        self.dispatcher = CommandDispatcher(context, logger_name="modal_engine.dispatch")
        self.context.extras.setdefault("keymap_registry", self.keymap_registry)
        self.context.extras.setdefault("keymap_resolver", self.keymap_resolver)
        self.context.extras.setdefault("keymap_flags", {})
        self.context.extras.setdefault("dispatcher", self.dispatcher)
        self.context.extras.setdefault("mode_manager", self)
        self._pending_timeouts: Dict[str, PendingTimeout] = {}
        self._timer_counter = 0
        self._recording: Optional[List[str]] = None
        self._replaying = 0

    @property
    def active_mode(self) -> Optional[Mode]:
        return self._modes.get(self.context.session.mode.value)

    def register_mode(
        self,
        mode_cls: Type[Mode],
        /,
        *mode_args: object,
        **mode_kwargs: object,
    ) -> Mode:
        mode = mode_cls(self.context, *mode_args, **mode_kwargs)
        if mode.name in self._modes:
            raise ValueError(f"Mode '{mode.name}' already registered")
        self._modes[mode.name] = mode
        if mode.name == self.context.session.mode.value:
            mode.on_enter(None)
        return mode

    def get_mode(self, name: str) -> Mode:
        if name not in self._modes:
            raise KeyError(f"Unknown mode '{name}'")
        return self._modes[name]

    # -- transitions -------------------------------------------------------

    def switch_mode(self, name: str, entry: Optional[EntryHints] = None) -> None:
        if name not in self._modes:
            raise KeyError(f"Unknown mode '{name}'")
        target = ModeName(name)
        session = self.context.session
        buffer = self.context.buffer
        current = session.mode
        if target is current:
            return

        cursor = session.cursor
        if current in _TYPING_MODES and target not in _TYPING_MODES:
            cursor = Position(cursor.line, max(0, cursor.character - 1))
        cursor = cursor.clamp(buffer.lines(), past_end=target.allows_past_end)
        moved = cursor != session.cursor
        data = self._mode_data(target, current, cursor, entry)

        self.cancel_timeout(current.value)
        previous = self.active_mode
        if previous is not None:
            previous.on_exit(target.value)
        if target in _TYPING_MODES and not buffer.in_group:
            buffer.begin_group(target.value, cursor)
        session.apply_transition(target, data, cursor)
        if moved:
            session.desired_column = cursor.character
        buffer.set_cursor(cursor)
        sync_selection(self.context)
        self._modes[target.value].on_enter(current.value)
        self.cancel_timeout(target.value)
        telemetry.record_event(
            "mode.switch", data={"mode": target.value, "previous": current.value}
        )

    def _mode_data(
        self,
        target: ModeName,
        current: ModeName,
        cursor: Position,
        entry: Optional[EntryHints],
    ) -> ModeData:
        hints = entry or EntryHints()
        if target is ModeName.INSERT:
            return InsertState(
                entry=cursor, count=hints.count, repeat_prefix=hints.repeat_prefix
            )
        if target is ModeName.REPLACE:
            return ReplaceState(entry=cursor)
        if target.is_visual:
            anchor = self.context.session.anchor
            if not current.is_visual or anchor is None:
                anchor = cursor
            return VisualState(anchor=anchor)
        if target is ModeName.COMMAND_LINE:
            return CommandLineState(entry=cursor)
        return NormalState()

    def place_cursor(self, position: Position) -> Position:
        """Move the cursor directly, clamped to the active mode's bounds."""

        session = self.context.session
        cursor = position.clamp(
            self.context.buffer.lines(), past_end=session.mode.allows_past_end
        )
        session.cursor = cursor
        session.desired_column = cursor.character
        self.context.buffer.set_cursor(cursor)
        sync_selection(self.context)
        return cursor

    # -- keys --------------------------------------------------------------

    def handle_key(self, key: KeyInput) -> ModeResult:
        mode = self.active_mode
        if mode is None:
            raise RuntimeError("No active mode registered")
        if self._recording is not None and self.context.session.mode in _TYPING_MODES:
            self._recording.append(key_to_token(key))
        with telemetry.span(
            name=f"mode::{mode.name}",
            component=True,
            metadata={"key": key.key, "mode": mode.name},
        ):
            result = mode.handle_key(key)
        return self._after_mode_result(mode, result)

    def _after_mode_result(self, mode: Mode, result: ModeResult) -> ModeResult:
        if result.timeout_ms:
            self.arm_timeout(mode.name, result.timeout_ms)
        else:
            self.cancel_timeout(mode.name)
        self._track_change(result)
        if result.switch_to:
            self.switch_mode(result.switch_to, entry=result.entry)
        if result.replay:
            if result.status == "repeat":
                self._replay_change(result.replay)
            else:
                for token in result.replay:
                    self.handle_key(KeyInput(key=token))
        return result

    def _track_change(self, result: ModeResult) -> None:
        """Remember the keys of the last change for ``.``."""

        if self._replaying:
            return
        session = self.context.session
        current = session.mode
        target = ModeName(result.switch_to) if result.switch_to else current
        if current is ModeName.NORMAL:
            if result.repeatable and result.status == "ok" and result.tokens:
                if target in _TYPING_MODES:
                    self._recording = list(result.tokens)
                else:
                    session.last_change = result.tokens
        elif current in _TYPING_MODES and target not in _TYPING_MODES:
            if self._recording is not None:
                session.last_change = tuple(self._recording)
            self._recording = None

    def _replay_change(self, tokens: tuple[str, ...]) -> None:
        self._replaying += 1
        try:
            with telemetry.span(
                "mode::repeat", component=True, metadata={"keys": "".join(tokens)}
            ):
                for token in tokens:
                    self.handle_key(KeyInput(key=token))
        finally:
            self._replaying -= 1

    # -- timeouts ----------------------------------------------------------

    def arm_timeout(self, mode_name: str, timeout_ms: int) -> None:
        self._timer_counter += 1
        deadline = time.monotonic() + (timeout_ms / 1000.0)
        self._pending_timeouts[mode_name] = PendingTimeout(
            deadline=deadline,
            timeout_ms=timeout_ms,
            generation=self._timer_counter,
        )

    def cancel_timeout(self, mode_name: str) -> None:
        self._pending_timeouts.pop(mode_name, None)

    def process_timeouts(self) -> Dict[str, ModeResult]:
        now = time.monotonic()
        expired = {
            mode_name: timer
            for mode_name, timer in self._pending_timeouts.items()
            if timer.deadline <= now
        }
        results: Dict[str, ModeResult] = {}
        for mode_name, timer in expired.items():
            results[mode_name] = self._trigger_timeout(mode_name, timer.generation)
        return results

    def force_timeout(self, mode_name: Optional[str] = None) -> Dict[str, ModeResult]:
        if mode_name is not None:
            timer = self._pending_timeouts.get(mode_name)
            if not timer:
                return {}
            return {mode_name: self._trigger_timeout(mode_name, timer.generation)}

        current = list(self._pending_timeouts.items())
        results: Dict[str, ModeResult] = {}
        for name, timer in current:
            results[name] = self._trigger_timeout(name, timer.generation)
        return results

    def _trigger_timeout(self, mode_name: str, generation: int) -> ModeResult:
        timer = self._pending_timeouts.get(mode_name)
        if not timer or timer.generation != generation:
            return ModeResult(consumed=False, status="timeout")
        self._pending_timeouts.pop(mode_name, None)
        mode = self._modes.get(mode_name)
        if mode is None or mode is not self.active_mode:
            return ModeResult(consumed=False, status="timeout")
        with telemetry.span(
            name=f"mode_timeout::{mode_name}",
            component=True,
            metadata={"mode": mode_name},
        ):
            result = mode.handle_timeout()
        return self._after_mode_result(mode, result)


__all__ = ["ModeManager", "PendingTimeout"]
