"""``VimSession``: the public surface hosts and tests drive the engine through."""

from __future__ import annotations

from typing import Dict, Iterable, List, Optional, Sequence, Tuple, Union

from modal_engine.buffer import Buffer, Position, RegisterBank
from modal_engine.keymaps import KeymapRegistry, tokenize
from modal_engine.modes import (
    CommandMode,
    InsertMode,
    KeyInput,
    ModeBus,
    ModeContext,
    ModeResult,
    NormalMode,
    ReplaceMode,
    VisualBlockMode,
    VisualLineMode,
    VisualMode,
)
from modal_engine.modes.mode_manager import ModeManager
from modal_engine.runtime.options import EngineOptions
from modal_engine.session import ModeName, SessionState

Key = Union[str, KeyInput]

DEFAULT_MODES = (
    NormalMode,
    InsertMode,
    ReplaceMode,
    VisualMode,
    VisualLineMode,
    VisualBlockMode,
    CommandMode,
)


class VimSession:
    """One interpreter bound to one buffer.

    ``handle_keys("dw")`` is exactly ``handle_key("d")`` then
    ``handle_key("w")``. Sessions never share state; passing the same
    ``keymap_registry`` to several sessions only shares their bindings.
    """

    def __init__(
        self,
        buffer: Optional[Buffer] = None,
        *,
        lines: Optional[Sequence[str]] = None,
        text: Optional[str] = None,
        options: Optional[EngineOptions] = None,
        keymap_registry: Optional[KeymapRegistry] = None,
        bus: Optional[ModeBus] = None,
    ) -> None:
        if buffer is None:
            if lines is not None:
                buffer = Buffer.from_lines(lines)
            elif text is not None:
                buffer = Buffer.from_text(text)
            else:
                buffer = Buffer()
        self.buffer = buffer
        start = buffer.state.cursor.clamp(buffer.lines())
        self.context = ModeContext(
            buffer=buffer,
            registers=buffer.registers,
            bus=bus or ModeBus(),
            session=SessionState(start),
            options=options or EngineOptions(),
        )
        buffer.set_cursor(start)
        self.manager = ModeManager(self.context, keymap_registry=keymap_registry)
        for mode_cls in DEFAULT_MODES:
            self.manager.register_mode(mode_cls)

    # -- state -------------------------------------------------------------

    @property
    def state(self) -> SessionState:
        return self.context.session

    @property
    def mode(self) -> ModeName:
        return self.context.session.mode

    @property
    def cursor(self) -> Position:
        return self.context.session.cursor

    @property
    def lines(self) -> Tuple[str, ...]:
        return tuple(self.buffer.lines())

    @property
    def text(self) -> str:
        return self.buffer.text

    @property
    def registers(self) -> RegisterBank:
        return self.context.registers

    @property
    def bus(self) -> ModeBus:
        return self.context.bus

    @property
    def pending(self) -> Tuple[str, ...]:
        return tuple(self.context.session.pending.tokens)

    @property
    def command_text(self) -> str:
        mode = self.manager.active_mode
        if isinstance(mode, CommandMode):
            return mode.current_command
        return ""

    # -- input -------------------------------------------------------------

    def handle_key(self, key: Key) -> ModeResult:
        if isinstance(key, str):
            key = KeyInput(key=key)
        return self.manager.handle_key(key)

    def handle_keys(self, keys: Union[str, Iterable[Key]]) -> List[ModeResult]:
        """Feed several keys; a string is split with ``tokenize`` first."""

        sequence: Iterable[Key] = tokenize(keys) if isinstance(keys, str) else keys
        return [self.handle_key(key) for key in sequence]

    def place_cursor(self, position: Union[Position, Tuple[int, int]]) -> Position:
        if not isinstance(position, Position):
            position = Position(*position)
        return self.manager.place_cursor(position)

    def switch_mode(self, mode: Union[str, ModeName]) -> None:
        self.manager.switch_mode(ModeName(mode).value)

    def process_timeouts(self) -> Dict[str, ModeResult]:
        return self.manager.process_timeouts()

    def force_timeout(self) -> Dict[str, ModeResult]:
        return self.manager.force_timeout()

    def __repr__(self) -> str:
        return f"VimSession(mode={self.mode.value!r}, cursor={self.cursor!r})"


__all__ = ["DEFAULT_MODES", "VimSession"]
