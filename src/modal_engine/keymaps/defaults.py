"""Built-in actions and the bindings that seed every grammar.

Grammars: ``normal``, ``visual`` (shared by the three visual modes),
``operator`` (targets typed after an operator), ``insert``, ``replace`` and
``command``. Binding ids are ``"<grammar>:<keys>"``.
"""

from __future__ import annotations

from dataclasses import replace
from typing import Callable, Iterable, Mapping, Sequence

from modal_engine.actions import command as command_actions
from modal_engine.actions import core as core_actions
from modal_engine.actions import insert as insert_actions
from modal_engine.actions import motions, operators, text_objects
from modal_engine.actions import visual as visual_actions

from .models import ActionKind, ActionRef, Binding, KeySequence
from .registry import KeymapRegistry

NORMAL = "normal"
VISUAL = "visual"
OPERATOR = "operator"
INSERT = "insert"
REPLACE = "replace"
COMMAND = "command"

_ARGUMENT = {"argument": True}


def _action(
    action_id: str,
    handler: Callable[..., object],
    description: str,
    kind: ActionKind = "action",
    **metadata: object,
) -> ActionRef:
    return ActionRef(
        id=action_id,
        handler=handler,
        kind=kind,
        description=description,
        metadata=metadata,
    )


def _motion(action_id: str, handler: Callable[..., object], description: str, **metadata: object) -> ActionRef:
    return _action(action_id, handler, description, "motion", **metadata)


def _text_object(action_id: str, handler: Callable[..., object], description: str) -> ActionRef:
    return _action(action_id, handler, description, "text_object")


def _operator(action_id: str, handler: Callable[..., object], description: str) -> ActionRef:
    return _action(action_id, handler, description, "operator")


MOTION_ACTIONS: tuple[ActionRef, ...] = (
    _motion("motion.left", motions.left, "Left"),
    _motion("motion.right", motions.right, "Right"),
    _motion("motion.down", motions.down, "Down"),
    _motion("motion.up", motions.up, "Up"),
    _motion("motion.space_forward", motions.space_forward, "Right, wrapping lines"),
    _motion("motion.space_backward", motions.space_backward, "Left, wrapping lines"),
    _motion("motion.word_forward", motions.word_forward, "Next word start"),
    _motion("motion.big_word_forward", motions.big_word_forward, "Next WORD start"),
    _motion("motion.word_backward", motions.word_backward, "Previous word start"),
    _motion("motion.big_word_backward", motions.big_word_backward, "Previous WORD start"),
    _motion("motion.word_end", motions.word_end, "Next word end"),
    _motion("motion.big_word_end", motions.big_word_end, "Next WORD end"),
    _motion("motion.word_end_backward", motions.word_end_backward, "Previous word end"),
    _motion("motion.big_word_end_backward", motions.big_word_end_backward, "Previous WORD end"),
    _motion("motion.line_begin", motions.line_begin, "Column zero"),
    _motion("motion.first_non_blank", motions.first_non_blank_char, "First non-blank"),
    _motion("motion.line_end", motions.line_end, "End of line"),
    _motion("motion.column", motions.column, "Column N"),
    _motion("motion.goto_line", motions.goto_line, "Line N, default last"),
    _motion("motion.goto_first_line", motions.goto_first_line, "Line N, default first"),
    _motion("motion.next_line_start", motions.next_line_start, "First non-blank below"),
    _motion("motion.prev_line_start", motions.prev_line_start, "First non-blank above"),
    _motion("motion.find_forward", motions.find_forward, "Find char forward", **_ARGUMENT),
    _motion("motion.find_backward", motions.find_backward, "Find char backward", **_ARGUMENT),
    _motion("motion.till_forward", motions.till_forward, "Till char forward", **_ARGUMENT),
    _motion("motion.till_backward", motions.till_backward, "Till char backward", **_ARGUMENT),
    _motion("motion.repeat_find", motions.repeat_find, "Repeat last find"),
    _motion("motion.repeat_find_reverse", motions.repeat_find_reverse, "Repeat last find reversed"),
    _motion("motion.matching_pair", motions.matching_pair, "Matching bracket"),
    _motion("motion.paragraph_forward", motions.paragraph_forward, "Next paragraph"),
    _motion("motion.paragraph_backward", motions.paragraph_backward, "Previous paragraph"),
)

TEXT_OBJECT_ACTIONS: tuple[ActionRef, ...] = (
    _text_object("textobj.inner_word", text_objects.inner_word, "Inner word"),
    _text_object("textobj.a_word", text_objects.a_word, "A word"),
    _text_object("textobj.inner_big_word", text_objects.inner_big_word, "Inner WORD"),
    _text_object("textobj.a_big_word", text_objects.a_big_word, "A WORD"),
    _text_object("textobj.inner_paren", text_objects.inner_paren, "Inner ()"),
    _text_object("textobj.a_paren", text_objects.a_paren, "A ()"),
    _text_object("textobj.inner_brace", text_objects.inner_brace, "Inner {}"),
    _text_object("textobj.a_brace", text_objects.a_brace, "A {}"),
    _text_object("textobj.inner_bracket", text_objects.inner_bracket, "Inner []"),
    _text_object("textobj.a_bracket", text_objects.a_bracket, "A []"),
    _text_object("textobj.inner_double_quote", text_objects.inner_double_quote, 'Inner ""'),
    _text_object("textobj.a_double_quote", text_objects.a_double_quote, 'A ""'),
    _text_object("textobj.inner_single_quote", text_objects.inner_single_quote, "Inner ''"),
    _text_object("textobj.a_single_quote", text_objects.a_single_quote, "A ''"),
    _text_object("textobj.inner_backtick", text_objects.inner_backtick, "Inner ``"),
    _text_object("textobj.a_backtick", text_objects.a_backtick, "A ``"),
)

OPERATOR_ACTIONS: tuple[ActionRef, ...] = (
    _operator("operator.delete", operators.delete, "Delete"),
    _operator("operator.change", operators.change, "Change"),
    _operator("operator.yank", operators.yank, "Yank"),
    _operator("operator.indent", operators.indent, "Shift right"),
    _operator("operator.outdent", operators.outdent, "Shift left"),
    _operator("operator.lowercase", operators.lowercase, "Lowercase"),
    _operator("operator.uppercase", operators.uppercase, "Uppercase"),
    _operator("operator.swap_case", operators.swap_case, "Swap case"),
)

NORMAL_ACTIONS: tuple[ActionRef, ...] = (
    _action("core.insert_before", core_actions.insert_before, "Insert before cursor"),
    _action("core.insert_after", core_actions.insert_after, "Append after cursor"),
    _action("core.insert_line_start", core_actions.insert_line_start, "Insert at first non-blank"),
    _action("core.append_line_end", core_actions.append_line_end, "Append at line end"),
    _action("core.open_below", core_actions.open_below, "Open line below"),
    _action("core.open_above", core_actions.open_above, "Open line above"),
    _action("core.delete_char", core_actions.delete_char, "Delete character"),
    _action("core.delete_char_before", core_actions.delete_char_before, "Delete character before"),
    _action("core.delete_to_end", core_actions.delete_to_end, "Delete to line end"),
    _action("core.change_to_end", core_actions.change_to_end, "Change to line end"),
    _action("core.substitute_char", core_actions.substitute_char, "Substitute character"),
    _action("core.substitute_line", core_actions.substitute_line, "Substitute line"),
    _action("core.yank_line", core_actions.yank_line, "Yank line"),
    _action("core.replace_char", core_actions.replace_char, "Replace character", **_ARGUMENT),
    _action("core.put_after", core_actions.put_after, "Put after"),
    _action("core.put_before", core_actions.put_before, "Put before"),
    _action("core.join_lines", core_actions.join_lines, "Join lines"),
    _action("core.undo", core_actions.undo, "Undo"),
    _action("core.redo", core_actions.redo, "Redo"),
    _action("core.toggle_case", core_actions.toggle_case, "Toggle case"),
    _action("core.repeat", core_actions.repeat_last_change, "Repeat last change"),
    _action("core.enter_visual", core_actions.enter_visual, "Enter visual mode"),
    _action("core.enter_visual_line", core_actions.enter_visual_line, "Enter visual line mode"),
    _action("core.enter_visual_block", core_actions.enter_visual_block, "Enter visual block mode"),
    _action("core.enter_replace", core_actions.enter_replace, "Enter replace mode"),
    _action("core.enter_command", core_actions.enter_command_line, "Enter command-line mode"),
    _action("core.cancel", core_actions.cancel, "Cancel pending input"),
)

VISUAL_ACTIONS: tuple[ActionRef, ...] = (
    _action("visual.exit", visual_actions.exit_visual, "Leave visual mode"),
    _action("visual.toggle_charwise", visual_actions.toggle_charwise, "Charwise visual"),
    _action("visual.toggle_linewise", visual_actions.toggle_linewise, "Linewise visual"),
    _action("visual.toggle_blockwise", visual_actions.toggle_blockwise, "Blockwise visual"),
    _action("visual.swap_anchor", visual_actions.swap_anchor, "Swap selection anchor"),
    _action("visual.delete_selection", visual_actions.delete_selection, "Delete selection"),
    _action("visual.delete_lines", visual_actions.delete_lines, "Delete selected lines"),
    _action("visual.yank_lines", visual_actions.yank_lines, "Yank selected lines"),
    _action("visual.change_selection", visual_actions.change_selection, "Change selection"),
    _action("visual.change_lines", visual_actions.change_lines, "Change selected lines"),
    _action("visual.lowercase", visual_actions.lowercase_selection, "Lowercase selection"),
    _action("visual.uppercase", visual_actions.uppercase_selection, "Uppercase selection"),
    _action("visual.swap_case", visual_actions.swap_case_selection, "Swap selection case"),
    _action("visual.join", visual_actions.join_selection, "Join selected lines"),
    _action("visual.replace", visual_actions.replace_selection, "Replace selection", **_ARGUMENT),
)

INSERT_ACTIONS: tuple[ActionRef, ...] = (
    _action("insert.exit", insert_actions.exit_insert, "Leave insert mode"),
    _action("insert.text", insert_actions.insert_text, "Insert typed text"),
    _action("insert.backspace", insert_actions.backspace, "Delete before cursor"),
    _action("insert.delete", insert_actions.delete_forward, "Delete under cursor"),
    _action("insert.newline", insert_actions.insert_newline, "Split line"),
    _action("insert.tab", insert_actions.insert_tab, "Insert tab"),
    _action("insert.delete_word", insert_actions.delete_word_before, "Delete word before cursor"),
    _action("insert.delete_line", insert_actions.delete_line_before, "Delete line before cursor"),
    _action("insert.left", insert_actions.move_left, "Cursor left"),
    _action("insert.right", insert_actions.move_right, "Cursor right"),
    _action("insert.up", insert_actions.move_up, "Cursor up"),
    _action("insert.down", insert_actions.move_down, "Cursor down"),
    _action("insert.home", insert_actions.move_home, "Line start"),
    _action("insert.end", insert_actions.move_end, "Line end"),
    _action("replace.exit", insert_actions.exit_replace, "Leave replace mode"),
    _action("replace.overwrite", insert_actions.overwrite_char, "Overwrite character"),
    _action("replace.restore", insert_actions.restore_char, "Restore overwritten character"),
)

COMMAND_ACTIONS: tuple[ActionRef, ...] = (
    _action("command.type", command_actions.type_char, "Type into the command line"),
    _action("command.backspace", command_actions.backspace, "Delete last command character"),
    _action("command.clear", command_actions.clear_line, "Clear the command line"),
    _action("command.cancel", command_actions.cancel, "Cancel command line"),
    _action("command.submit_line", command_actions.submit_command_line, "Evaluate the command line"),
)

DEFAULT_ACTIONS: tuple[ActionRef, ...] = (
    MOTION_ACTIONS
    + TEXT_OBJECT_ACTIONS
    + OPERATOR_ACTIONS
    + NORMAL_ACTIONS
    + VISUAL_ACTIONS
    + INSERT_ACTIONS
    + COMMAND_ACTIONS
)

_MOTION_KEYS: tuple[tuple[str, str], ...] = (
    ("h", "motion.left"),
    ("<left>", "motion.left"),
    ("l", "motion.right"),
    ("<right>", "motion.right"),
    ("j", "motion.down"),
    ("<down>", "motion.down"),
    ("k", "motion.up"),
    ("<up>", "motion.up"),
    (" ", "motion.space_forward"),
    ("<bs>", "motion.space_backward"),
    ("w", "motion.word_forward"),
    ("W", "motion.big_word_forward"),
    ("b", "motion.word_backward"),
    ("B", "motion.big_word_backward"),
    ("e", "motion.word_end"),
    ("E", "motion.big_word_end"),
    ("ge", "motion.word_end_backward"),
    ("gE", "motion.big_word_end_backward"),
    ("0", "motion.line_begin"),
    ("<home>", "motion.line_begin"),
    ("^", "motion.first_non_blank"),
    ("$", "motion.line_end"),
    ("<end>", "motion.line_end"),
    ("|", "motion.column"),
    ("G", "motion.goto_line"),
    ("gg", "motion.goto_first_line"),
    ("+", "motion.next_line_start"),
    ("<cr>", "motion.next_line_start"),
    ("-", "motion.prev_line_start"),
    ("f", "motion.find_forward"),
    ("F", "motion.find_backward"),
    ("t", "motion.till_forward"),
    ("T", "motion.till_backward"),
    (";", "motion.repeat_find"),
    (",", "motion.repeat_find_reverse"),
    ("%", "motion.matching_pair"),
    ("}", "motion.paragraph_forward"),
    ("{", "motion.paragraph_backward"),
)

_TEXT_OBJECT_KEYS: tuple[tuple[str, str], ...] = (
    ("iw", "textobj.inner_word"),
    ("aw", "textobj.a_word"),
    ("iW", "textobj.inner_big_word"),
    ("aW", "textobj.a_big_word"),
    ("i(", "textobj.inner_paren"),
    ("i)", "textobj.inner_paren"),
    ("ib", "textobj.inner_paren"),
    ("a(", "textobj.a_paren"),
    ("a)", "textobj.a_paren"),
    ("ab", "textobj.a_paren"),
    ("i{", "textobj.inner_brace"),
    ("i}", "textobj.inner_brace"),
    ("iB", "textobj.inner_brace"),
    ("a{", "textobj.a_brace"),
    ("a}", "textobj.a_brace"),
    ("aB", "textobj.a_brace"),
    ("i[", "textobj.inner_bracket"),
    ("i]", "textobj.inner_bracket"),
    ("a[", "textobj.a_bracket"),
    ("a]", "textobj.a_bracket"),
    ('i"', "textobj.inner_double_quote"),
    ('a"', "textobj.a_double_quote"),
    ("i'", "textobj.inner_single_quote"),
    ("a'", "textobj.a_single_quote"),
    ("i`", "textobj.inner_backtick"),
    ("a`", "textobj.a_backtick"),
)

_OPERATOR_KEYS: tuple[tuple[str, str], ...] = (
    ("d", "operator.delete"),
    ("c", "operator.change"),
    ("y", "operator.yank"),
    (">", "operator.indent"),
    ("<lt>", "operator.outdent"),
    ("gu", "operator.lowercase"),
    ("gU", "operator.uppercase"),
    ("g~", "operator.swap_case"),
)

_NORMAL_KEYS: tuple[tuple[str, str], ...] = (
    ("i", "core.insert_before"),
    ("<insert>", "core.insert_before"),
    ("a", "core.insert_after"),
    ("I", "core.insert_line_start"),
    ("A", "core.append_line_end"),
    ("o", "core.open_below"),
    ("O", "core.open_above"),
    ("x", "core.delete_char"),
    ("<del>", "core.delete_char"),
    ("X", "core.delete_char_before"),
    ("D", "core.delete_to_end"),
    ("C", "core.change_to_end"),
    ("s", "core.substitute_char"),
    ("S", "core.substitute_line"),
    ("Y", "core.yank_line"),
    ("r", "core.replace_char"),
    ("p", "core.put_after"),
    ("P", "core.put_before"),
    ("J", "core.join_lines"),
    ("u", "core.undo"),
    ("<c-r>", "core.redo"),
    ("~", "core.toggle_case"),
    (".", "core.repeat"),
    ("v", "core.enter_visual"),
    ("V", "core.enter_visual_line"),
    ("<c-v>", "core.enter_visual_block"),
    ("R", "core.enter_replace"),
    (":", "core.enter_command"),
    ("<esc>", "core.cancel"),
)

_VISUAL_KEYS: tuple[tuple[str, str], ...] = (
    ("<esc>", "visual.exit"),
    ("<c-c>", "visual.exit"),
    ("v", "visual.toggle_charwise"),
    ("V", "visual.toggle_linewise"),
    ("<c-v>", "visual.toggle_blockwise"),
    ("o", "visual.swap_anchor"),
    ("O", "visual.swap_anchor"),
    ("x", "visual.delete_selection"),
    ("<del>", "visual.delete_selection"),
    ("X", "visual.delete_lines"),
    ("D", "visual.delete_lines"),
    ("Y", "visual.yank_lines"),
    ("s", "visual.change_selection"),
    ("S", "visual.change_lines"),
    ("R", "visual.change_lines"),
    ("u", "visual.lowercase"),
    ("U", "visual.uppercase"),
    ("~", "visual.swap_case"),
    ("J", "visual.join"),
    ("r", "visual.replace"),
)

_INSERT_KEYS: tuple[tuple[str, str], ...] = (
    ("<esc>", "insert.exit"),
    ("<c-c>", "insert.exit"),
    ("<c-[>", "insert.exit"),
    ("<bs>", "insert.backspace"),
    ("<c-h>", "insert.backspace"),
    ("<del>", "insert.delete"),
    ("<cr>", "insert.newline"),
    ("<tab>", "insert.tab"),
    ("<c-w>", "insert.delete_word"),
    ("<c-u>", "insert.delete_line"),
    ("<left>", "insert.left"),
    ("<right>", "insert.right"),
    ("<up>", "insert.up"),
    ("<down>", "insert.down"),
    ("<home>", "insert.home"),
    ("<end>", "insert.end"),
)

_REPLACE_KEYS: tuple[tuple[str, str], ...] = (
    ("<esc>", "replace.exit"),
    ("<c-c>", "replace.exit"),
    ("<c-[>", "replace.exit"),
    ("<bs>", "replace.restore"),
    ("<c-h>", "replace.restore"),
    ("<cr>", "insert.newline"),
    ("<left>", "insert.left"),
    ("<right>", "insert.right"),
)

_COMMAND_KEYS: tuple[tuple[str, str], ...] = (
    ("<esc>", "command.cancel"),
    ("<c-c>", "command.cancel"),
    ("<c-[>", "command.cancel"),
    ("<cr>", "command.submit_line"),
    ("<bs>", "command.backspace"),
    ("<c-h>", "command.backspace"),
    ("<c-u>", "command.clear"),
)

_GRAMMAR_TABLES: tuple[tuple[str, tuple[tuple[str, str], ...]], ...] = (
    (NORMAL, _MOTION_KEYS + _OPERATOR_KEYS + _NORMAL_KEYS),
    (VISUAL, _MOTION_KEYS + _TEXT_OBJECT_KEYS + _OPERATOR_KEYS + _VISUAL_KEYS),
    (OPERATOR, _MOTION_KEYS + _TEXT_OBJECT_KEYS),
    (INSERT, _INSERT_KEYS),
    (REPLACE, _REPLACE_KEYS),
    (COMMAND, _COMMAND_KEYS),
)


def _descriptions() -> Mapping[str, str]:
    return {action.id: action.description for action in DEFAULT_ACTIONS}


def _build_bindings() -> tuple[Binding, ...]:
    described = _descriptions()
    bindings: list[Binding] = []
    for grammar, table in _GRAMMAR_TABLES:
        for notation, action_id in table:
            bindings.append(
                Binding(
                    id=f"{grammar}:{notation}",
                    mode=grammar,
                    sequence=KeySequence.from_notation(notation),
                    action_id=action_id,
                    description=described.get(action_id, ""),
                    source="defaults",
                )
            )
    return tuple(bindings)


DEFAULT_BINDINGS: tuple[Binding, ...] = _build_bindings()


def load_default_keymaps(
    registry: KeymapRegistry,
    *,
    replace: bool = False,
    extra_bindings: Iterable[Binding] | None = None,
    default_sequence_timeout_ms: int | None = None,
    include_actions: Sequence[str] | None = None,
    exclude_actions: Sequence[str] | None = None,
    include_bindings: Sequence[str] | None = None,
    exclude_bindings: Sequence[str] | None = None,
    per_mode_overrides: Mapping[str, Iterable[Binding]] | None = None,
) -> None:
    """Register built-in actions and bindings for every grammar.

    Bindings whose action was filtered out are skipped rather than failing.
    """

    allowed_actions = _build_filters(include_actions, exclude_actions)
    allowed_bindings = _build_filters(include_bindings, exclude_bindings)

    for action in DEFAULT_ACTIONS:
        if _selected(action.id, allowed_actions):
            registry.register_action(action, replace=replace)

    for binding in DEFAULT_BINDINGS:
        if not _selected(binding.id, allowed_bindings):
            continue
        if not registry.has_action(binding.action_id):
            continue
        registry.register_binding(
            _binding_with_timeout(binding, default_sequence_timeout_ms),
            replace=replace,
        )

    for binding in extra_bindings or ():
        registry.register_binding(binding, replace=replace)

    for grammar, bindings in (per_mode_overrides or {}).items():
        for binding in bindings:
            if binding.mode != grammar:
                raise ValueError(
                    f"Override binding '{binding.id}' must target grammar '{grammar}'"
                )
            registry.register_binding(binding, replace=True)


def _binding_with_timeout(binding: Binding, timeout_ms: int | None) -> Binding:
    if timeout_ms is None:
        return binding
    return replace(binding, sequence=KeySequence(binding.sequence.strokes, timeout_ms=timeout_ms))


def _build_filters(
    include: Sequence[str] | None, exclude: Sequence[str] | None
) -> tuple[set[str] | None, set[str]]:
    return (set(include) if include else None), set(exclude or ())


def _selected(item_id: str, filters: tuple[set[str] | None, set[str]]) -> bool:
    include, exclude = filters
    if include is not None and item_id not in include:
        return False
    return item_id not in exclude


__all__ = [
    "COMMAND",
    "DEFAULT_ACTIONS",
    "DEFAULT_BINDINGS",
    "INSERT",
    "NORMAL",
    "OPERATOR",
    "REPLACE",
    "VISUAL",
    "load_default_keymaps",
]
