"""Declarative keymap registry, key tokenizer and default bindings."""

from .models import ActionRef, Binding, KeySequence, KeyStroke, WhenClause
from .registry import KeymapConflictError, KeymapRegistry, RegistryStats
from .resolver import (
    KeymapResolver,
    KeymapTrie,
    ResolutionMatch,
    ResolutionResult,
    TrieNode,
)
from .tokenizer import is_literal, join_tokens, normalize_key, tokenize
from .defaults import DEFAULT_ACTIONS, DEFAULT_BINDINGS, load_default_keymaps

__all__ = [
    "ActionRef",
    "Binding",
    "DEFAULT_ACTIONS",
    "DEFAULT_BINDINGS",
    "KeySequence",
    "KeyStroke",
    "WhenClause",
    "KeymapRegistry",
    "KeymapConflictError",
    "KeymapTrie",
    "RegistryStats",
    "KeymapResolver",
    "ResolutionResult",
    "ResolutionMatch",
    "TrieNode",
    "is_literal",
    "join_tokens",
    "load_default_keymaps",
    "normalize_key",
    "tokenize",
]
