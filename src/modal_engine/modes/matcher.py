"""Pending-input buffer that turns a token stream into complete commands.

The matcher walks the active grammar's trie one token at a time, collecting
count, register and operator prefixes on the way. Each ``feed`` reports one
of the ``MatchState`` values; only ``COMPLETE`` carries a request for the
dispatcher. Everything it accumulates lives in ``SessionState.pending`` so a
mode transition (which clears that buffer) also resets the matcher.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from enum import Enum
from typing import Mapping, Optional, Tuple

from modal_engine.buffer.registers import is_register_name
from modal_engine.keymaps import KeymapResolver, ResolutionMatch, is_literal
from modal_engine.runtime import telemetry
from modal_engine.session import PendingOperator, PendingSequence, SessionState

_ARGUMENT_TOKENS = frozenset({"<cr>", "<tab>"})


class MatchState(str, Enum):
    EMPTY = "empty"
    ACCUMULATING_COUNT = "accumulating_count"
    AWAITING_OPERATOR_TARGET = "awaiting_operator_target"
    ACCUMULATING = "accumulating"
    COMPLETE = "complete"
    ABORTED = "aborted"


@dataclass(frozen=True, slots=True)
class CommandRequest:
    """A fully typed command, ready for the dispatcher.

    ``command`` is the motion, text object or action that completed the
    sequence; it is ``None`` only for an operator applied to a visual
    selection. ``linewise_target`` marks a doubled operator (``dd``).
    """

    command: Optional[ResolutionMatch]
    operator: Optional[ResolutionMatch] = None
    count: Optional[int] = None
    argument: Optional[str] = None
    register: Optional[str] = None
    tokens: Tuple[str, ...] = ()
    linewise_target: bool = False

    @property
    def action_id(self) -> str:
        match = self.command or self.operator
        return match.action.id if match is not None else "none"


@dataclass(frozen=True, slots=True)
class MatchOutcome:
    state: MatchState
    request: Optional[CommandRequest] = None
    tokens: Tuple[str, ...] = ()
    replay: Tuple[str, ...] = ()
    timeout_ms: Optional[int] = None


class SequenceMatcher:
    """Accumulates tokens for one grammar until a command is recognised."""

    def __init__(
        self,
        resolver: KeymapResolver,
        session: SessionState,
        grammar: str,
        *,
        operator_grammar: str = "operator",
        allow_counts: bool = True,
        allow_register: bool = True,
        operators_pend: bool = True,
        flags: Optional[Mapping[str, bool]] = None,
        logger_name: Optional[str] = None,
    ) -> None:
        self._resolver = resolver
        self._session = session
        self.grammar = grammar
        self.operator_grammar = operator_grammar
        self.allow_counts = allow_counts
        self.allow_register = allow_register
        self.operators_pend = operators_pend
        self._flags = flags if flags is not None else {}
        self._logger_name = logger_name

    @property
    def pending(self) -> PendingSequence:
        return self._session.pending

    @property
    def state(self) -> MatchState:
        pending = self.pending
        if pending.is_empty:
            return MatchState.EMPTY
        if pending.awaiting is not None or pending.node is not None:
            return MatchState.ACCUMULATING
        if pending.operator is not None:
            if pending.motion_count is not None:
                return MatchState.ACCUMULATING_COUNT
            return MatchState.AWAITING_OPERATOR_TARGET
        if pending.count is not None:
            return MatchState.ACCUMULATING_COUNT
        return MatchState.ACCUMULATING

    def reset(self) -> None:
        self.pending.clear()

    def feed(self, token: str) -> MatchOutcome:
        pending = self.pending
        pending.tokens.append(token)

        if pending.awaiting == "argument":
            match = pending.argument_for
            if match is not None and (is_literal(token) or token in _ARGUMENT_TOKENS):
                return self._complete(match, argument=token)
            return self._abort("argument")

        if pending.awaiting == "register":
            pending.awaiting = None
            if is_register_name(token):
                pending.register = token
                return self._progress()
            return self._abort("register")

        if pending.node is None:
            if self.allow_counts and self._extends_count(token):
                return self._progress()
            if (
                self.allow_register
                and token == '"'
                and pending.operator is None
                and pending.register is None
            ):
                pending.awaiting = "register"
                return self._progress()

        operator = pending.operator
        if operator is not None and self._is_doubled(operator, token):
            return self._complete(None, linewise=True)

        node = pending.node
        if node is None:
            grammar = self.operator_grammar if operator is not None else self.grammar
            node = self._resolver.root(grammar)

        following = self._resolver.advance(node, token)
        if following is None:
            fallback = pending.fallback
            self._leave_trie()
            if fallback is None:
                return self._abort("miss")
            # The shorter binding fires; the token starts something new.
            pending.tokens.pop()
            outcome = self._accept(fallback)
            if outcome.state is MatchState.COMPLETE:
                return replace(outcome, replay=(token,))
            return self.feed(token)

        match = self._resolver.select(following, self._flags)
        if following.children:
            pending.node = following
            pending.partial.append(token)
            pending.fallback = match
            timeout_ms = None
            if match is not None:
                timeout_ms = self._resolver.pending_timeout(following)
            return MatchOutcome(
                MatchState.ACCUMULATING,
                tokens=tuple(pending.tokens),
                timeout_ms=timeout_ms,
            )

        self._leave_trie()
        if match is None:
            return self._abort("miss")
        return self._accept(match)

    def flush(self) -> MatchOutcome:
        """Resolve an ambiguous prefix after its timeout expired."""

        pending = self.pending
        fallback = pending.fallback
        if fallback is None:
            if pending.is_empty:
                return MatchOutcome(MatchState.EMPTY)
            return self._abort("timeout")
        self._leave_trie()
        return self._accept(fallback)

    # -- internals ---------------------------------------------------------

    def _extends_count(self, token: str) -> bool:
        if len(token) != 1 or not token.isdigit():
            return False
        pending = self.pending
        if pending.awaiting is not None:
            return False
        current = pending.motion_count if pending.operator is not None else pending.count
        if token == "0" and current is None:
            return False
        updated = (current or 0) * 10 + int(token)
        if pending.operator is not None:
            pending.motion_count = updated
        else:
            pending.count = updated
        return True

    def _is_doubled(self, operator: PendingOperator, token: str) -> bool:
        candidate = tuple(self.pending.partial) + (token,)
        if candidate == operator.tokens:
            return True
        return len(operator.tokens) > 1 and candidate == (operator.tokens[-1],)

    def _leave_trie(self) -> None:
        pending = self.pending
        pending.node = None
        pending.partial.clear()
        pending.fallback = None

    def _accept(self, match: ResolutionMatch) -> MatchOutcome:
        pending = self.pending
        if match.kind == "operator":
            if pending.operator is not None:
                return self._abort("operator")
            if not self.operators_pend:
                return self._complete(None, operator=match)
            pending.operator = PendingOperator(
                match=match, tokens=match.binding.sequence.tokens
            )
            return MatchOutcome(
                MatchState.AWAITING_OPERATOR_TARGET, tokens=tuple(pending.tokens)
            )
        if match.action.takes_argument:
            pending.awaiting = "argument"
            pending.argument_for = match
            return MatchOutcome(MatchState.ACCUMULATING, tokens=tuple(pending.tokens))
        return self._complete(match)

    def _complete(
        self,
        command: Optional[ResolutionMatch],
        *,
        operator: Optional[ResolutionMatch] = None,
        argument: Optional[str] = None,
        linewise: bool = False,
    ) -> MatchOutcome:
        pending = self.pending
        count = pending.count
        if pending.operator is not None:
            operator = pending.operator.match
            if pending.motion_count is not None:
                count = (count or 1) * pending.motion_count
        request = CommandRequest(
            command=command,
            operator=operator,
            count=count,
            argument=argument,
            register=pending.register,
            tokens=tuple(pending.tokens),
            linewise_target=linewise,
        )
        pending.clear()
        return MatchOutcome(MatchState.COMPLETE, request=request, tokens=request.tokens)

    def _abort(self, reason: str) -> MatchOutcome:
        pending = self.pending
        tokens = tuple(pending.tokens)
        pending.clear()
        telemetry.record_event(
            "matcher.abort",
            level="debug",
            data={"grammar": self.grammar, "reason": reason, "tokens": "".join(tokens)},
            logger_name=self._logger_name,
        )
        return MatchOutcome(MatchState.ABORTED, tokens=tokens)

    def _progress(self) -> MatchOutcome:
        return MatchOutcome(self.state, tokens=tuple(self.pending.tokens))


__all__ = ["CommandRequest", "MatchOutcome", "MatchState", "SequenceMatcher"]
