"""Executes matched commands against the session and buffer.

Handlers only describe changes. ``execute`` turns a ``CommandRequest`` into
a ``CommandOutcome`` (resolving motions and text objects into spans for
operators) and ``commit`` applies it: buffer edits inside one transaction
first, then registers, cursor, desired column and mode-local data. If the
buffer rejects an edit the transaction restores the document and nothing
else is touched.
"""

from __future__ import annotations

from dataclasses import replace
from typing import Callable, Dict, FrozenSet, Optional, Tuple

from modal_engine.actions.context import (
    CommandContext,
    CommandOutcome,
    MotionTarget,
    TextSpan,
    noop,
    span_from_target,
)
from modal_engine.actions.visual import selection_span
from modal_engine.buffer import BufferCollaboratorError, BufferValidationError, Position
from modal_engine.runtime import telemetry
from modal_engine.session import CommandLineState, ModeName, VisualState

from .base_mode import ModeContext, ModeResult
from .matcher import CommandRequest

Handler = Callable[[CommandContext], CommandOutcome]

_MODE_GRAMMARS: Dict[ModeName, FrozenSet[str]] = {
    ModeName.NORMAL: frozenset({"normal", "operator"}),
    ModeName.VISUAL: frozenset({"visual"}),
    ModeName.VISUAL_LINE: frozenset({"visual"}),
    ModeName.VISUAL_BLOCK: frozenset({"visual"}),
    ModeName.INSERT: frozenset({"insert"}),
    ModeName.REPLACE: frozenset({"replace"}),
    ModeName.COMMAND_LINE: frozenset({"command"}),
}

_TYPING_MODES = (ModeName.INSERT, ModeName.REPLACE)


def sync_selection(context: ModeContext) -> None:
    """Mirror the visual selection (or its absence) onto the buffer state."""

    session = context.session
    anchor = session.anchor
    if session.mode.is_visual and anchor is not None:
        context.buffer.set_selection((anchor.to_host(), session.cursor.to_host()))
    else:
        context.buffer.set_selection(None)


class CommandDispatcher:
    """Runs handlers and commits their outcomes apply-or-discard."""

    def __init__(self, context: ModeContext, *, logger_name: Optional[str] = None) -> None:
        self.context = context
        self._logger_name = logger_name

    def build_context(
        self,
        *,
        count: Optional[int] = None,
        argument: Optional[str] = None,
        register: Optional[str] = None,
        operator_id: Optional[str] = None,
    ) -> CommandContext:
        session = self.context.session
        return CommandContext(
            lines=tuple(self.context.buffer.lines()),
            cursor=session.cursor,
            mode=session.mode,
            options=self.context.options,
            registers=self.context.registers,
            count=count,
            argument=argument,
            register=register,
            desired_column=session.desired_column,
            anchor=session.anchor,
            operator_id=operator_id,
            last_find=session.last_find,
            last_change=session.last_change,
            mode_data=session.mode_data,
        )

    def execute(self, request: CommandRequest) -> ModeResult:
        session = self.context.session
        allowed = _MODE_GRAMMARS.get(session.mode, frozenset())
        for match in (request.command, request.operator):
            if match is not None and match.grammar not in allowed:
                return ModeResult(
                    consumed=True,
                    status="rejected",
                    message=f"'{match.binding.id}' is not valid in {session.mode.value} mode",
                    tokens=request.tokens,
                )

        with telemetry.span(
            f"dispatch::{request.action_id}",
            logger_name=self._logger_name,
            component="dispatch",
            metadata={"mode": session.mode.value, "keys": "".join(request.tokens)},
        ) as handle:
            outcome = self._resolve(request)
            result = self.commit(
                outcome,
                label=request.action_id,
                count=request.count or 1,
                tokens=request.tokens,
            )
            handle.add_metadata("status", result.status)
        return result

    def run(
        self,
        handler: Handler,
        *,
        argument: Optional[str] = None,
        tokens: Tuple[str, ...] = (),
        label: str = "run",
    ) -> ModeResult:
        """Run a handler outside the keymap, e.g. a typed character."""

        with telemetry.span(
            f"dispatch::{label}",
            logger_name=self._logger_name,
            component="dispatch",
            metadata={"mode": self.context.session.mode.value},
        ) as handle:
            outcome = handler(self.build_context(argument=argument))
            result = self.commit(outcome, label=label, tokens=tokens)
            handle.add_metadata("status", result.status)
        return result

    # -- resolution --------------------------------------------------------

    def _resolve(self, request: CommandRequest) -> CommandOutcome:
        command, operator = request.command, request.operator
        if operator is None:
            assert command is not None
            ctx = self.build_context(
                count=request.count, argument=request.argument, register=request.register
            )
            if command.kind == "motion":
                target = command.action(ctx)
                if target is None:
                    return noop()
                return _move(target)
            if command.kind == "text_object":
                return _select_object(ctx, command.action(ctx))
            if command.kind == "operator":
                return noop("operator needs a target")
            return command.action(ctx)

        ctx = self.build_context(
            count=request.count,
            argument=request.argument,
            register=request.register,
            operator_id=operator.action.id,
        )
        if command is None and not request.linewise_target:
            outcome = operator.action(ctx, selection_span(ctx))
            if outcome.switch_to is None:
                outcome = replace(outcome, switch_to=ModeName.NORMAL)
            return outcome

        span: Optional[TextSpan]
        if request.linewise_target:
            first = ctx.cursor.line
            last = min(first + ctx.effective_count - 1, len(ctx.lines) - 1)
            span = TextSpan(Position(first, 0), Position(last, 0), linewise=True)
        else:
            assert command is not None
            result = command.action(ctx)
            if command.kind == "motion":
                span = None if result is None else span_from_target(ctx.lines, ctx.cursor, result)
            else:
                span = result
        if span is None or span.is_empty:
            return noop()
        return operator.action(ctx, span)

    # -- commit ------------------------------------------------------------

    def commit(
        self,
        outcome: CommandOutcome,
        *,
        label: str = "command",
        count: int = 1,
        tokens: Tuple[str, ...] = (),
    ) -> ModeResult:
        session = self.context.session
        buffer = self.context.buffer
        current = session.mode
        status = outcome.status
        new_cursor = outcome.cursor

        if outcome.history is not None:
            step = buffer.undo_step if outcome.history == "undo" else buffer.redo_step
            moved: Optional[Position] = None
            for _ in range(max(1, count)):
                position = step()
                if position is None:
                    break
                moved = position
            if moved is None:
                status = "noop"
            new_cursor = moved

        opened_group = (
            outcome.switch_to in _TYPING_MODES and current not in _TYPING_MODES
        )
        try:
            if opened_group:
                buffer.begin_group(label, session.cursor)
            if outcome.edits:
                ordered = sorted(
                    outcome.edits, key=lambda edit: (edit.start, edit.end), reverse=True
                )
                with buffer.transaction(label, session.cursor):
                    for edit in ordered:
                        lines = buffer.lines()
                        start = edit.start.clamp(lines, past_end=True)
                        end = edit.end.clamp(lines, past_end=True)
                        if end > start:
                            buffer.delete(start, end)
                        if edit.text:
                            buffer.insert(edit.text, start)
        except (BufferValidationError, BufferCollaboratorError) as exc:
            if opened_group:
                buffer.end_group(session.cursor)
            telemetry.record_event(
                "dispatch.failed",
                level="error",
                data={"action": label, "error": str(exc)},
                logger_name=self._logger_name,
            )
            return ModeResult(consumed=True, status="failed", message=str(exc), tokens=tokens)

        write = outcome.register_write
        if write is not None:
            if write.kind == "yank":
                self.context.registers.yank_to(write.name, write.value)
            else:
                self.context.registers.delete_to(write.name, write.value)

        lines = buffer.lines()
        target_mode = outcome.switch_to or current
        past_end = target_mode.allows_past_end or current.allows_past_end
        previous = session.cursor
        cursor = (new_cursor or previous).clamp(lines, past_end=past_end)

        if new_cursor is not None:
            if outcome.keep_column:
                if session.desired_column is None:
                    session.desired_column = previous.character
            elif outcome.desired_column is not None:
                session.desired_column = outcome.desired_column
            else:
                session.desired_column = cursor.character

        if outcome.last_find is not None:
            session.last_find = outcome.last_find

        data = session.mode_data
        if outcome.anchor is not None and isinstance(data, VisualState):
            data.anchor = outcome.anchor.clamp(lines)
        if outcome.command_text is not None and isinstance(data, CommandLineState):
            data.text = outcome.command_text

        session.cursor = cursor
        buffer.set_cursor(cursor)
        sync_selection(self.context)

        for event, payload in outcome.events:
            self.context.bus.emit(event, payload)

        return ModeResult(
            consumed=True,
            switch_to=outcome.switch_to,
            status=status,
            message=outcome.message,
            entry=outcome.entry,
            replay=outcome.replay,
            tokens=tokens,
            repeatable=outcome.repeatable,
        )


def _move(target: MotionTarget) -> CommandOutcome:
    return CommandOutcome(
        cursor=target.position,
        keep_column=target.keep_column,
        desired_column=target.desired_column,
        last_find=target.last_find,
    )


def _select_object(ctx: CommandContext, span: Optional[TextSpan]) -> CommandOutcome:
    """Visual-mode text object: select ``span`` with the cursor on its last character."""

    if span is None or span.is_empty or not ctx.mode.is_visual:
        return noop()
    end = span.end
    if end.character > 0:
        last = Position(end.line, end.character - 1)
    elif end.line > span.start.line:
        row = end.line - 1
        last = Position(row, max(0, len(ctx.lines[row]) - 1))
    else:
        last = end
    return CommandOutcome(cursor=last, anchor=span.start)


__all__ = ["CommandDispatcher", "sync_selection"]
