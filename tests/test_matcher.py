from __future__ import annotations

from modal_engine.keymaps import (
    Binding,
    KeySequence,
    KeymapRegistry,
    KeymapResolver,
    load_default_keymaps,
    tokenize,
)
from modal_engine.modes.matcher import MatchOutcome, MatchState, SequenceMatcher
from modal_engine.session import SessionState


def make_matcher(
    grammar: str = "normal",
    registry: KeymapRegistry | None = None,
    **kwargs: object,
) -> SequenceMatcher:
    if registry is None:
        registry = KeymapRegistry()
        load_default_keymaps(registry)
    return SequenceMatcher(KeymapResolver(registry), SessionState(), grammar, **kwargs)


def feed(matcher: SequenceMatcher, keys: str) -> list[MatchOutcome]:
    return [matcher.feed(token) for token in tokenize(keys)]


def test_count_then_motion_completes() -> None:
    matcher = make_matcher()

    first, last = feed(matcher, "3j")

    assert first.state is MatchState.ACCUMULATING_COUNT
    assert last.state is MatchState.COMPLETE
    assert last.request is not None
    assert last.request.count == 3
    assert last.request.action_id == "motion.down"
    assert last.request.tokens == ("3", "j")
    assert matcher.state is MatchState.EMPTY


def test_zero_is_a_motion_unless_count_pending() -> None:
    matcher = make_matcher()

    outcome = matcher.feed("0")
    assert outcome.state is MatchState.COMPLETE
    assert outcome.request is not None
    assert outcome.request.action_id == "motion.line_begin"

    feed(matcher, "10")
    assert matcher.state is MatchState.ACCUMULATING_COUNT
    assert matcher.pending.count == 10


def test_register_and_doubled_operator() -> None:
    matcher = make_matcher()

    outcomes = feed(matcher, '"add')

    assert outcomes[2].state is MatchState.AWAITING_OPERATOR_TARGET
    request = outcomes[-1].request
    assert request is not None
    assert request.register == "a"
    assert request.linewise_target is True
    assert request.command is None
    assert request.operator is not None
    assert request.operator.action.id == "operator.delete"


def test_invalid_register_aborts() -> None:
    matcher = make_matcher()

    outcomes = feed(matcher, '"<esc>')

    assert outcomes[-1].state is MatchState.ABORTED
    assert matcher.pending.is_empty


def test_two_key_operator_doubles_either_way() -> None:
    for keys in ("guu", "gugu"):
        matcher = make_matcher()

        outcome = feed(matcher, keys)[-1]

        assert outcome.request is not None
        assert outcome.request.linewise_target is True
        assert outcome.request.action_id == "operator.lowercase"


def test_operator_and_motion_counts_multiply() -> None:
    matcher = make_matcher()

    outcome = feed(matcher, "2d3w")[-1]

    assert outcome.request is not None
    assert outcome.request.count == 6
    assert outcome.request.action_id == "motion.word_forward"
    assert outcome.request.operator is not None


def test_operator_accepts_text_object() -> None:
    matcher = make_matcher()

    outcome = feed(matcher, "diw")[-1]

    assert outcome.request is not None
    assert outcome.request.command is not None
    assert outcome.request.command.kind == "text_object"


def test_miss_aborts_and_clears_pending() -> None:
    matcher = make_matcher()

    assert matcher.feed("q").state is MatchState.ABORTED
    assert matcher.pending.is_empty

    outcomes = feed(matcher, "dq")
    assert outcomes[-1].state is MatchState.ABORTED
    assert outcomes[-1].tokens == ("d", "q")
    assert matcher.pending.is_empty


def test_argument_is_taken_literally() -> None:
    matcher = make_matcher()

    first, last = feed(matcher, "fx")

    assert first.state is MatchState.ACCUMULATING
    assert last.request is not None
    assert last.request.argument == "x"
    assert last.request.action_id == "motion.find_forward"

    enter = feed(matcher, "r<cr>")[-1]
    assert enter.request is not None
    assert enter.request.argument == "<cr>"


def test_escape_aborts_argument() -> None:
    matcher = make_matcher()

    outcome = feed(matcher, "f<esc>")[-1]

    assert outcome.state is MatchState.ABORTED
    assert matcher.pending.is_empty


def _ambiguous_registry() -> KeymapRegistry:
    registry = KeymapRegistry()
    load_default_keymaps(registry, default_sequence_timeout_ms=500)
    registry.register_binding(
        Binding(
            id="normal:xx",
            mode="normal",
            sequence=KeySequence.from_strings("x", "x", timeout_ms=500),
            action_id="core.insert_before",
        )
    )
    return registry


def test_only_ambiguous_prefix_arms_timeout() -> None:
    matcher = make_matcher(registry=_ambiguous_registry())

    assert matcher.feed("x").timeout_ms == 500
    matcher.reset()
    assert matcher.feed("g").timeout_ms is None


def test_diverging_key_fires_fallback_and_replays() -> None:
    matcher = make_matcher(registry=_ambiguous_registry())

    matcher.feed("x")
    outcome = matcher.feed("l")

    assert outcome.state is MatchState.COMPLETE
    assert outcome.request is not None
    assert outcome.request.action_id == "core.delete_char"
    assert outcome.request.tokens == ("x",)
    assert outcome.replay == ("l",)


def test_flush_fires_fallback_or_aborts() -> None:
    matcher = make_matcher(registry=_ambiguous_registry())

    matcher.feed("x")
    fired = matcher.flush()
    assert fired.state is MatchState.COMPLETE
    assert fired.request is not None
    assert fired.request.action_id == "core.delete_char"

    matcher.feed("g")
    assert matcher.flush().state is MatchState.ABORTED
    assert matcher.flush().state is MatchState.EMPTY


def test_operator_applies_immediately_when_not_pending() -> None:
    matcher = make_matcher("visual", operators_pend=False)

    outcome = matcher.feed("d")

    assert outcome.state is MatchState.COMPLETE
    assert outcome.request is not None
    assert outcome.request.command is None
    assert outcome.request.action_id == "operator.delete"


def test_counts_disabled_send_digits_to_trie() -> None:
    matcher = make_matcher("insert", allow_counts=False, allow_register=False)

    assert matcher.feed("3").state is MatchState.ABORTED
    outcome = matcher.feed("<esc>")
    assert outcome.request is not None
    assert outcome.request.action_id == "insert.exit"
