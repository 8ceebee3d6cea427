"""Minimal Textual adapter that wires a VimSession's events into UI callbacks."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Dict, Iterable, Optional

from modal_engine.buffer import BufferMirror
from modal_engine.engine import VimSession
from modal_engine.modes import KeyInput, ModeResult


def _noop(*_args, **_kwargs) -> None:  # pragma: no cover - default hook
    return None


BUS_EVENTS = (
    "visual.start",
    "visual.change",
    "visual.end",
    "command.start",
    "command.end",
    "command.cancel",
    "command.submit",
    "command.write",
    "command.quit",
    "command.edit",
    "command.echo",
    "command.error",
)


@dataclass(slots=True)
class TextualUIHooks:
    """Callbacks invoked by the adapter to update Textual widgets."""

    update_buffer: Callable[[BufferMirror], None]
    update_status: Callable[[str], None] = _noop
    show_command: Callable[[str], None] = _noop
    handle_event: Callable[[str, object | None], None] = _noop
    log: Callable[[str], None] = _noop


class TextualVimAdapter:
    """Bridges a VimSession and its bus events to a Textual-friendly surface."""

    def __init__(self, session: VimSession, hooks: TextualUIHooks) -> None:
        self.session = session
        self.hooks = hooks
        self._subscribe_events()
        self._refresh_buffer()
        self._refresh_command_line()

    def handle_textual_key(
        self,
        key: str,
        *,
        text: Optional[str] = None,
        modifiers: Iterable[str] = (),
    ) -> ModeResult:
        """Translate a Textual key event into a KeyInput and dispatch it."""

        normalized_modifiers = tuple(str(mod).lower() for mod in modifiers)
        self._log_state("key ->", key=key, text=text, mods=normalized_modifiers)
        result = self.session.handle_key(
            KeyInput(key=key, text=text, modifiers=normalized_modifiers)
        )
        self._after_mode_result(result)
        self._log_state(
            "result <-",
            consumed=result.consumed,
            status=result.status,
            message=result.message,
            switch_to=result.switch_to,
            timeout_ms=result.timeout_ms,
        )
        return result

    def process_timeouts(self) -> Dict[str, ModeResult]:
        """Forward expired timers and surface results to the UI."""

        results = self.session.process_timeouts()
        for mode_name, outcome in results.items():
            self.hooks.update_status(f"{mode_name}:{outcome.status}")
            self._log_state("timeout ->", source_mode=mode_name, status=outcome.status)
        if results:
            self._refresh_buffer()
            self._refresh_command_line()
        return results

    def status_line(self, result: Optional[ModeResult] = None) -> str:
        mode = self.session.mode.value.replace("_", " ").upper()
        line, column = self.session.cursor.to_host(one_based=True)
        status = f"-- {mode} -- {line}:{column}"
        pending = "".join(self.session.pending)
        if pending:
            status += f" [{pending}]"
        if result is not None and result.message:
            status += f" {result.message}"
        return status

    def _after_mode_result(self, result: ModeResult) -> None:
        self.hooks.update_status(self.status_line(result))
        self._refresh_buffer()
        self._refresh_command_line()

    def _subscribe_events(self) -> None:
        bus = self.session.bus
        for event in BUS_EVENTS:
            bus.subscribe(
                event, lambda payload, name=event: self._handle_event(name, payload)
            )

    def _handle_event(self, name: str, payload: object | None) -> None:
        self._log_state("event ->", event=name, payload=payload)
        self.hooks.handle_event(name, payload)
        if name.startswith("command"):
            self._refresh_command_line()
        if name.startswith("visual"):
            self._refresh_buffer()

    def _refresh_buffer(self) -> None:
        self.hooks.update_buffer(
            self.session.buffer.mirror(attributes={"mode": self.session.mode.value})
        )

    def _refresh_command_line(self) -> None:
        self.hooks.show_command(self.session.command_text)

    def _log_state(self, prefix: str, **fields: object) -> None:
        snapshot = self._state_metadata()
        snapshot.update({k: v for k, v in fields.items() if v is not None})
        parts = [prefix]
        for key, value in snapshot.items():
            parts.append(f"{key}={value!r}")
        self.hooks.log(" ".join(parts))

    def _state_metadata(self) -> Dict[str, object]:
        buffer = self.session.buffer
        return {
            "mode": self.session.mode.value,
            "cursor": self.session.cursor,
            "selection": buffer.state.selection,
            "command": self.session.command_text,
            "pending": "".join(self.session.pending),
            "buffer": buffer.name,
            "buffer_version": buffer.document.version,
        }


__all__ = ["BUS_EVENTS", "TextualVimAdapter", "TextualUIHooks"]
