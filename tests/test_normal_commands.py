from __future__ import annotations

from typing import Callable

from modal_engine import ModeName, VimSession

Keys = Callable[..., VimSession]


# -- motions ---------------------------------------------------------------------


def test_word_motions(keys: Keys) -> None:
    keys(["|foo bar baz"], "w", ["foo |bar baz"])
    keys(["|foo bar baz"], "2w", ["foo bar |baz"])
    keys(["|foo bar baz"], "e", ["fo|o bar baz"])
    keys(["foo bar ba|z"], "b", ["foo bar |baz"])
    keys(["foo ba|r"], "ge", ["fo|o bar"])


def test_big_word_motion_skips_punctuation(keys: Keys) -> None:
    keys(["|a.b c"], "w", ["a|.b c"])
    keys(["|a.b c"], "W", ["a.b |c"])


def test_line_motions(keys: Keys) -> None:
    keys(["|abc"], "$", ["ab|c"])
    keys(["  ab|c"], "^", ["  |abc"])
    keys(["ab|c"], "0", ["|abc"])
    keys(["|abcdef"], "4|", ["abc|def"])


def test_count_may_contain_zero(keys: Keys) -> None:
    keys(["|abcdefghijkl"], "10l", ["abcdefghij|kl"])


def test_horizontal_motions_stop_at_line_edges(keys: Keys) -> None:
    keys(["|ab"], "h", ["|ab"])
    keys(["a|b"], "5l", ["a|b"])
    keys(["a|b", "cd"], " ", ["ab", "|cd"])


def test_vertical_motion_remembers_column(keys: Keys) -> None:
    keys(["ab|cd", "x", "abcd"], "jj", ["abcd", "x", "ab|cd"])
    keys(["|abc", "abcdef"], "$j", ["abc", "abcde|f"])


def test_file_motions(keys: Keys) -> None:
    keys(["one", "two", "|three"], "gg", ["|one", "two", "three"])
    keys(["|one", "two", "three"], "G", ["one", "two", "|three"])
    keys(["|one", "two", "three"], "2G", ["one", "|two", "three"])


def test_find_and_repeat_find(keys: Keys) -> None:
    keys(["|a,b,c"], "f,", ["a|,b,c"])
    keys(["|a,b,c"], "f,;", ["a,b|,c"])
    keys(["|a,b,c"], "f,;,", ["a|,b,c"])
    keys(["|a,b,c"], "t,", ["|a,b,c"])
    keys(["a,b,|c"], "F,", ["a,b|,c"])


def test_find_without_match_does_not_move(keys: Keys) -> None:
    session = keys(["|abc"], "fz", ["|abc"])

    assert session.pending == ()


def test_bracket_and_paragraph_motions(keys: Keys) -> None:
    keys(["|(a(b)c)"], "%", ["(a(b)c|)"])
    keys(["|a", "b", "", "c"], "}", ["a", "b", "|", "c"])
    keys(["a", "", "b", "|c"], "{", ["a", "|", "b", "c"])


# -- operators ---------------------------------------------------------------------


def test_delete_word(keys: Keys) -> None:
    session = keys(["|hello world"], "dw", ["|world"])

    assert session.registers.get().text == "hello "
    assert session.registers.get("-").text == "hello "


def test_delete_last_word_keeps_cursor_on_line(keys: Keys) -> None:
    keys(["foo |bar"], "dw", ["foo| "])


def test_counts_multiply(keys: Keys) -> None:
    keys(["|a b c d e"], "2dw", ["|c d e"])
    keys(["|a b c d e"], "d2w", ["|c d e"])
    keys(["|a b c d e"], "2d2w", ["|e"])


def test_delete_line_fills_numbered_register(keys: Keys) -> None:
    session = keys(["one", "|two", "three"], "dd", ["one", "|three"])

    value = session.registers.get("1")
    assert value.text == "two"
    assert value.type == "line"


def test_delete_last_line_moves_up(keys: Keys) -> None:
    keys(["one", "|two"], "dd", ["|one"])


def test_delete_with_linewise_motion(keys: Keys) -> None:
    keys(["|one", "two", "three"], "dj", ["|three"])
    keys(["one", "two", "|three"], "dk", ["|one"])


def test_delete_to_and_till_character(keys: Keys) -> None:
    keys(["|abc,def"], "dt,", ["|,def"])
    keys(["|abc,def"], "df,", ["|def"])


def test_delete_to_line_end(keys: Keys) -> None:
    keys(["ab|cdef"], "D", ["a|b"])
    keys(["ab|cdef"], "d$", ["a|b"])


def test_change_word_keeps_trailing_space(keys: Keys) -> None:
    keys(["|hello world"], "cwfoo<esc>", ["fo|o world"])


def test_change_line(keys: Keys) -> None:
    keys(["  |foo", "bar"], "ccx<esc>", ["|x", "bar"])
    keys(["  |foo", "bar"], "Sx<esc>", ["|x", "bar"])


def test_change_and_substitute_shortcuts(keys: Keys) -> None:
    keys(["a|bc"], "Cx<esc>", ["a|x"])
    keys(["|abc"], "sx<esc>", ["|xbc"])


def test_empty_change_still_enters_insert(keys: Keys) -> None:
    keys(["|"], "s", ["|"], mode=ModeName.INSERT)


def test_lowercase_text_object(keys: Keys) -> None:
    keys(["|HELLO world"], "guiw", ["|hello world"])


def test_uppercase_line(keys: Keys) -> None:
    keys(["ab|c", "def"], "gUU", ["AB|C", "def"])


def test_indent_and_outdent(keys: Keys) -> None:
    keys(["|foo"], ">>", ["    |foo"])
    keys(["    |foo"], "<lt><lt>", ["|foo"])


def test_unknown_target_cancels_operator(keys: Keys) -> None:
    session = keys(["|abc"], "dq", ["|abc"])

    assert session.pending == ()


def test_escape_cancels_pending_operator() -> None:
    session = VimSession(lines=["abc"])

    results = session.handle_keys("d<esc>")

    assert results[-1].consumed is False
    assert session.pending == ()
    assert session.text == "abc"


# -- small edits -------------------------------------------------------------------


def test_delete_characters(keys: Keys) -> None:
    session = keys(["|abcdef"], "3x", ["|def"])

    assert session.registers.get("-").text == "abc"
    keys(["ab|c"], "X", ["a|c"])


def test_replace_characters(keys: Keys) -> None:
    keys(["|abc"], "rx", ["|xbc"])
    keys(["|abcd"], "3rx", ["xx|xd"])
    keys(["|abc"], "5rx", ["|abc"])


def test_toggle_case_steps_right(keys: Keys) -> None:
    keys(["|ab"], "~", ["A|b"])


def test_join_lines(keys: Keys) -> None:
    keys(["|one", "  two"], "J", ["one| two"])


def test_insert_entries(keys: Keys) -> None:
    keys(["|ab"], "ax<esc>", ["a|xb"])
    keys(["|ab"], "Acd<esc>", ["abc|d"])
    keys(["  fo|o"], "Ix<esc>", ["  |xfoo"])
    keys(["|one", "two"], "onew<esc>", ["one", "ne|w", "two"])
    keys(["|one"], "Ozero<esc>", ["zer|o", "one"])


def test_insert_with_count_repeats_text(keys: Keys) -> None:
    keys(["|"], "3ia<esc>", ["aa|a"])


# -- registers and put -------------------------------------------------------------


def test_yank_line_and_put(keys: Keys) -> None:
    keys(["|one", "two"], "yyp", ["one", "|one", "two"])
    keys(["|one", "two"], "yyjP", ["one", "|one", "two"])
    keys(["|one", "two"], "Yjp", ["one", "two", "|one"])


def test_put_characters_after_cursor(keys: Keys) -> None:
    keys(["|ab"], "xp", ["b|a"])


def test_named_register(keys: Keys) -> None:
    session = keys(['|foo bar'], '"ayw', ["|foo bar"])

    assert session.registers.get("a").text == "foo "
    assert session.registers.get("0").text == ""

    keys(["|foo bar"], '"ayiw$"ap', ["foo barfo|o"])


def test_black_hole_register_keeps_unnamed(keys: Keys) -> None:
    session = keys(["|one", "two"], 'yyj"_dd', ["|one"])

    assert session.registers.get().text == "one"
    assert session.registers.get().type == "line"


# -- undo / redo -------------------------------------------------------------------


def test_undo_restores_text_and_cursor(keys: Keys) -> None:
    session = keys(["ab|cd"], "$x", ["ab|c"])

    session.handle_key("u")
    assert session.lines == ("abcd",)
    assert session.cursor.character == 3

    session.handle_keys("<c-r>")
    assert session.lines == ("abc",)
    assert session.cursor.character == 2


def test_undo_takes_whole_insert_session(keys: Keys) -> None:
    keys(["|x"], "iabc<esc>u", ["|x"])


def test_undo_with_count(keys: Keys) -> None:
    keys(["|abcd"], "xxx2u", ["|bcd"])


def test_undo_with_empty_history_is_noop() -> None:
    session = VimSession(lines=["abc"])

    result = session.handle_key("u")

    assert result.status == "noop"
    assert session.text == "abc"


# -- operator ranges -----------------------------------------------------------------


def test_delete_word_stops_at_line_end(keys: Keys) -> None:
    keys(["|foo", "bar"], "dw", ["|", "bar"])


def test_exclusive_motion_to_line_start_becomes_linewise(keys: Keys) -> None:
    keys(["|a", "b", "", "c"], "d}", ["|", "c"])


def test_repeated_delete_to_line_end(keys: Keys) -> None:
    keys(["a|bc", "abc"], "Dj0lD", ["a", "|a"])


def test_escape_from_insert_keeps_cursor_in_line(keys: Keys) -> None:
    keys(["|abc"], "A<esc>", ["ab|c"])
    keys(["|abc"], "i<esc>", ["|abc"])


def test_counted_word_motion_stops_at_buffer_end(keys: Keys) -> None:
    keys(["|abc def"], "5w", ["abc de|f"])
    keys(["|a b"], "5W", ["a |b"])
    keys(["|", "", ""], "3w", ["", "", "|"])


def test_counted_word_operator_stops_at_buffer_end(keys: Keys) -> None:
    keys(["|abc def"], "3dw", ["|"])
    keys(["abc", "|def"], "d3w", ["abc", "|"])
    keys(["|abc def"], "c3w<esc>", ["|"])
    keys(["|  ", " x "], "c3w<esc>", ["|"])
