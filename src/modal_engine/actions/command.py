"""Command-line (``:``) editing and evaluation of Ex-style commands."""

from __future__ import annotations

from functools import partial
from typing import Callable, Dict, List, Tuple

from modal_engine.buffer.position import Position, first_non_blank
from modal_engine.session import CommandLineState, ModeName

from .context import CommandContext, CommandOutcome

CommandHandler = Callable[[CommandContext, List[str]], CommandOutcome]


def _current_text(ctx: CommandContext) -> str:
    state = ctx.mode_data
    if isinstance(state, CommandLineState):
        return state.text
    return ""


def type_char(ctx: CommandContext) -> CommandOutcome:
    return CommandOutcome(command_text=_current_text(ctx) + (ctx.argument or ""))


def backspace(ctx: CommandContext) -> CommandOutcome:
    text = _current_text(ctx)
    if not text:
        return CommandOutcome(switch_to=ModeName.NORMAL, message="command_cancel")
    return CommandOutcome(command_text=text[:-1])


def clear_line(ctx: CommandContext) -> CommandOutcome:
    del ctx
    return CommandOutcome(command_text="")


def cancel(ctx: CommandContext) -> CommandOutcome:
    return CommandOutcome(
        switch_to=ModeName.NORMAL,
        message="command_cancel",
        events=(("command.cancel", _current_text(ctx)),),
    )


def submit_command_line(ctx: CommandContext) -> CommandOutcome:
    """Evaluate the typed command and return to normal mode."""

    text = _current_text(ctx).strip()
    submitted: Tuple[str, object] = ("command.submit", text)
    if not text:
        return CommandOutcome(
            switch_to=ModeName.NORMAL, status="noop", events=(submitted,)
        )
    if text == "$" or text.isdigit():
        outcome = _goto_line(ctx, text)
    else:
        parts = text.split()
        handler = _COMMAND_HANDLERS.get(parts[0])
        if handler is None:
            outcome = _unknown_command(parts[0])
        else:
            outcome = handler(ctx, parts[1:])
    return CommandOutcome(
        cursor=outcome.cursor,
        switch_to=ModeName.NORMAL,
        status=outcome.status,
        message=outcome.message,
        events=(submitted,) + outcome.events,
    )


def _goto_line(ctx: CommandContext, text: str) -> CommandOutcome:
    last = len(ctx.lines) - 1
    row = last if text == "$" else max(0, min(int(text) - 1, last))
    position = Position(row, first_non_blank(ctx.lines[row]))
    return CommandOutcome(cursor=position, message=f"line {row + 1}")


def _unknown_command(command: str) -> CommandOutcome:
    return CommandOutcome(
        status="command_error",
        message=command,
        events=(("command.error", command),),
    )


def _handle_echo(ctx: CommandContext, args: List[str]) -> CommandOutcome:
    del ctx
    message = " ".join(args)
    return CommandOutcome(
        status="command_echo", message=message, events=(("command.echo", message),)
    )


def _write_event(ctx: CommandContext, args: List[str], force: bool) -> Tuple[str, object]:
    return (
        "command.write",
        {"force": force, "args": list(args), "text": "\n".join(ctx.lines)},
    )


def _quit_event(force: bool) -> Tuple[str, object]:
    return ("command.quit", {"force": force})


def _handle_write(ctx: CommandContext, args: List[str], *, force: bool = False) -> CommandOutcome:
    return CommandOutcome(
        status="command_write_force" if force else "command_write",
        message="write!" if force else "write",
        events=(_write_event(ctx, args, force),),
    )


def _handle_quit(ctx: CommandContext, args: List[str], *, force: bool = False) -> CommandOutcome:
    del ctx, args
    return CommandOutcome(
        status="command_quit_force" if force else "command_quit",
        message="quit!" if force else "quit",
        events=(_quit_event(force),),
    )


def _handle_write_quit(
    ctx: CommandContext, args: List[str], *, force: bool = False, name: str = "wq"
) -> CommandOutcome:
    return CommandOutcome(
        status=f"command_{name}_force" if force else f"command_{name}",
        message=f"{name}!" if force else name,
        events=(_write_event(ctx, args, force), _quit_event(force)),
    )


def _handle_edit(ctx: CommandContext, args: List[str], *, force: bool = False) -> CommandOutcome:
    return CommandOutcome(
        status="command_edit_force" if force else "command_edit",
        message="edit!" if force else "edit",
        events=(("command.edit", {"force": force, "args": list(args)}),),
    )


_COMMAND_HANDLERS: Dict[str, CommandHandler] = {
    "echo": _handle_echo,
    "write": _handle_write,
    "w": _handle_write,
    "write!": partial(_handle_write, force=True),
    "w!": partial(_handle_write, force=True),
    "quit": _handle_quit,
    "q": _handle_quit,
    "quit!": partial(_handle_quit, force=True),
    "q!": partial(_handle_quit, force=True),
    "wq": _handle_write_quit,
    "wq!": partial(_handle_write_quit, force=True),
    "x": partial(_handle_write_quit, name="x"),
    "x!": partial(_handle_write_quit, force=True, name="x"),
    "exit": partial(_handle_write_quit, name="x"),
    "exit!": partial(_handle_write_quit, force=True, name="x"),
    "edit": _handle_edit,
    "e": _handle_edit,
    "edit!": partial(_handle_edit, force=True),
    "e!": partial(_handle_edit, force=True),
}


__all__ = [
    "backspace",
    "cancel",
    "clear_line",
    "submit_command_line",
    "type_char",
]
