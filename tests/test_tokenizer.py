from __future__ import annotations

import pytest

from modal_engine.keymaps import is_literal, join_tokens, normalize_key, tokenize


def test_tokenize_splits_named_keys() -> None:
    assert tokenize("abc<esc>d<c-c>") == ("a", "b", "c", "<esc>", "d", "<c-c>")


def test_tokenize_keeps_malformed_bracket_literal() -> None:
    assert tokenize("a<b") == ("a", "<", "b")
    assert tokenize("<<esc>") == ("<", "<esc>")


@pytest.mark.parametrize(
    "keys",
    [
        "",
        "d2w<esc>",
        "<",
        ">",
        "a<b",
        "<<esc>",
        "<a<b>>",
        "<c-v>x<",
        "iHello, world!<cr>\t<bs><esc>:wq<cr>",
        "  <>\n",
    ],
)
def test_join_tokens_round_trips_text(keys: str) -> None:
    assert join_tokens(tokenize(keys)) == keys


@pytest.mark.parametrize(
    ("raw", "expected"),
    [
        ("ESC", "<esc>"),
        ("Enter", "<cr>"),
        ("<BS>", "<bs>"),
        ("ctrl+r", "<c-r>"),
        ("<C-V>", "<c-v>"),
        ("space", " "),
        ("\x1b", "<esc>"),
        ("\t", "<tab>"),
        ("x", "x"),
        ("F5", "<f5>"),
    ],
)
def test_normalize_key(raw: str, expected: str) -> None:
    assert normalize_key(raw) == expected


def test_normalize_key_rejects_empty() -> None:
    with pytest.raises(ValueError):
        normalize_key("")


def test_is_literal() -> None:
    assert is_literal("a")
    assert is_literal(" ")
    assert not is_literal("<esc>")
    assert not is_literal("\x1b")
