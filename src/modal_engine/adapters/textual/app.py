"""Executable Textual app that hosts the modal engine."""

from __future__ import annotations

import argparse
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Optional, Sequence, Tuple

try:  # pragma: no cover - imported only when demo is run
    from textual import events
    from textual.app import App, ComposeResult
    from textual.containers import Vertical
    from textual.widgets import Footer, Header, Static
except ModuleNotFoundError as exc:  # pragma: no cover - friendly error for missing dep
    raise RuntimeError(
        "Install the 'textual' extra to use modal_engine.adapters.textual.app"
    ) from exc

from modal_engine.buffer import Buffer, BufferMirror
from modal_engine.engine import VimSession
from modal_engine.runtime import telemetry
from modal_engine.runtime.options import EngineOptions

from .controller import TextualUIHooks, TextualVimAdapter

_CURSOR_MARK = "▌"


def create_default_session(text: str = "") -> VimSession:
    """Build a session with the standard modes and options from the environment."""

    return VimSession(Buffer.from_text(text), options=EngineOptions.from_env())


def render_mirror(mirror: BufferMirror) -> str:
    """Buffer text with a bar in front of the cursor cell."""

    rows = mirror.text.split("\n")
    line, column = mirror.cursor
    if 0 <= line < len(rows):
        row = rows[line]
        rows[line] = row[:column] + _CURSOR_MARK + row[column:]
    return "\n".join(rows)


@dataclass
class UIState:
    buffer_text: str = ""
    status_text: str = ""
    command_text: str = ""


class ModalEngineApp(App[None]):
    """Minimal Textual UI embedding the modal engine."""

    CSS = """
	Screen {
		layout: vertical;
	}

	#buffer-view {
		height: 1fr;
		border: round $accent;
		padding: 1 1;
		content-align: left top;
		overflow: auto;
	}

	#status-line {
		height: 1;
		background: $surface-darken-1;
		padding: 0 1;
	}

	#command-line {
		height: 1;
		background: $surface-darken-2;
		padding: 0 1;
	}
	"""

    BINDINGS = [
        ("ctrl+q", "quit", "Quit"),
    ]

    def __init__(self, *, text: str = "", path: Optional[Path] = None) -> None:
        super().__init__()
        self._state = UIState()
        self._initial_text = text
        self._path = path
        self.session: VimSession | None = None
        self.adapter: TextualVimAdapter | None = None
        self._buffer_widget: Static | None = None
        self._status_widget: Static | None = None
        self._command_widget: Static | None = None

    def compose(self) -> ComposeResult:
        yield Header(show_clock=True)
        with Vertical(id="buffer-area"):
            self._buffer_widget = Static("", id="buffer-view", markup=False)
            yield self._buffer_widget
        self._status_widget = Static("", id="status-line")
        self._command_widget = Static("", id="command-line")
        yield self._status_widget
        yield self._command_widget
        yield Footer()

    async def on_mount(self) -> None:
        self.session = create_default_session(self._initial_text)
        hooks = TextualUIHooks(
            update_buffer=self._update_buffer,
            update_status=self._update_status,
            show_command=self._show_command,
            handle_event=self._handle_event,
            log=self._log_line,
        )
        self.adapter = TextualVimAdapter(self.session, hooks)
        self.set_interval(0.1, self._process_timeouts)

    def _process_timeouts(self) -> None:
        if self.adapter:
            self.adapter.process_timeouts()

    async def on_key(self, event: events.Key) -> None:
        if not self.adapter:
            return
        normalized = self._normalize_key(event)
        if normalized is None:
            return
        key, text, modifiers = normalized
        self.adapter.handle_textual_key(key, text=text, modifiers=modifiers)
        event.stop()

    def _update_buffer(self, mirror: BufferMirror) -> None:
        self._state.buffer_text = render_mirror(mirror)
        if self._buffer_widget:
            self._buffer_widget.update(self._state.buffer_text)

    def _update_status(self, status: str) -> None:
        self._state.status_text = status
        if self._status_widget:
            self._status_widget.update(status)

    def _show_command(self, command: str) -> None:
        self._state.command_text = command
        if self._command_widget:
            active = self.session is not None and self.session.mode.value == "command"
            self._command_widget.update(f":{command}" if active else "")

    def _handle_event(self, name: str, payload: Any | None) -> None:
        if name == "command.write" and isinstance(payload, dict):
            self._write(str(payload.get("text", "")))
        elif name == "command.quit":
            self.exit()
        elif name in ("command.echo", "command.error") and isinstance(payload, str):
            self._update_status(payload if name == "command.echo" else f"E492: {payload}")

    def _write(self, text: str) -> None:
        if self._path is None:
            self._update_status("no file name")
            return
        self._path.write_text(text + "\n", encoding="utf-8")
        self._update_status(f'"{self._path}" written')

    def _log_line(self, line: str) -> None:
        telemetry.record_event(
            "textual.log",
            level="debug",
            data={"line": line},
            logger_name="modal_engine.adapters.textual",
        )

    @staticmethod
    def _normalize_key(
        event: events.Key,
    ) -> Optional[Tuple[str, Optional[str], Tuple[str, ...]]]:
        key = event.key
        if key == "ctrl+q":
            return None
        character = event.character
        if character and len(character) == 1 and character.isprintable():
            return (character, character, ())
        return (key, None, ())


def _parse_args(argv: Optional[Sequence[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Run the modal engine Textual demo.")
    parser.add_argument("path", nargs="?", help="File to open (written by :w)")
    parser.add_argument(
        "--telemetry-preset",
        choices=("development", "production", "performance"),
        help="Telelog preset to configure before starting",
    )
    return parser.parse_args(argv)


def main(argv: Optional[Sequence[str]] = None) -> None:
    args = _parse_args(argv)
    if args.telemetry_preset:
        telemetry.configure(preset=args.telemetry_preset)
    path = Path(args.path) if args.path else None
    text = path.read_text(encoding="utf-8").rstrip("\n") if path and path.exists() else ""
    app = ModalEngineApp(text=text, path=path)
    app.run()


if __name__ == "__main__":  # pragma: no cover - manual demo
    main()
