"""Per-grammar prefix trees over registered bindings.

Two ways in: ``resolve`` answers for a whole token sequence at once, while
``root``/``advance``/``select`` let the sequence matcher walk a trie one key
at a time without re-scanning what it has already seen.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, Literal, Mapping, Optional, Sequence

from modal_engine.runtime.telemetry import span

from .models import ActionRef, Binding
from .registry import KeymapRegistry


@dataclass(slots=True)
class TrieNode:
    """Single trie node tracking bindings and child transitions."""

    bindings: list[str] = field(default_factory=list)
    children: Dict[str, "TrieNode"] = field(default_factory=dict)

    def child(self, token: str) -> "TrieNode":
        return self.children.setdefault(token, TrieNode())

    def next_tokens(self) -> tuple[str, ...]:
        return tuple(sorted(self.children))

    @property
    def is_leaf(self) -> bool:
        return not self.children


@dataclass(slots=True)
class KeymapTrie:
    grammar: str
    root: TrieNode = field(default_factory=TrieNode)

    def add_binding(self, binding: Binding) -> None:
        node = self.root
        for token in binding.sequence.tokens:
            node = node.child(token)
        node.bindings.append(binding.id)


@dataclass(frozen=True, slots=True)
class ResolutionMatch:
    """Resolved binding paired with its action."""

    binding: Binding
    action: ActionRef

    @property
    def kind(self) -> str:
        return self.action.kind

    @property
    def grammar(self) -> str:
        return self.binding.mode


@dataclass(frozen=True, slots=True)
class ResolutionResult:
    """Outcome of resolving a complete token sequence.

    ``pending`` with a ``fallback`` means the tokens form a complete binding
    that is also the prefix of a longer one.
    """

    status: Literal["match", "pending", "miss"]
    match: Optional[ResolutionMatch] = None
    consumed: int = 0
    next_expected: tuple[str, ...] = ()
    timeout_ms: Optional[int] = None
    fallback: Optional[ResolutionMatch] = None


class KeymapResolver:
    """Builds grammar-specific tries and resolves sequences against them."""

    def __init__(
        self, registry: KeymapRegistry, *, logger_name: str | None = None
    ) -> None:
        self._registry = registry
        self._logger_name = logger_name
        self._cache: Dict[str, tuple[int, KeymapTrie]] = {}

    @property
    def registry(self) -> KeymapRegistry:
        return self._registry

    def root(self, grammar: str) -> TrieNode:
        return self._ensure_trie(grammar).root

    def advance(self, node: TrieNode, token: str) -> Optional[TrieNode]:
        return node.children.get(token)

    def select(
        self, node: TrieNode, context: Optional[Mapping[str, bool]] = None
    ) -> Optional[ResolutionMatch]:
        """Best binding ending at ``node``: highest priority, then lowest id."""

        ctx = context or {}
        matches: list[ResolutionMatch] = []
        for binding_id in node.bindings:
            binding = self._registry.get_binding(binding_id)
            if not binding.allows(ctx):
                continue
            matches.append(
                ResolutionMatch(
                    binding=binding, action=self._registry.get_action(binding.action_id)
                )
            )
        if not matches:
            return None
        matches.sort(key=lambda m: (-m.binding.priority, m.binding.id))
        return matches[0]

    def pending_timeout(self, node: TrieNode) -> Optional[int]:
        """Shortest sequence timeout among bindings reachable below ``node``."""

        timeouts: list[int] = []
        stack = list(node.children.values())
        while stack:
            current = stack.pop()
            timeouts.extend(
                self._registry.get_binding(binding_id).sequence.timeout_ms
                for binding_id in current.bindings
            )
            stack.extend(current.children.values())
        return min(timeouts) if timeouts else None

    def resolve(
        self,
        grammar: str,
        tokens: Sequence[str],
        *,
        context: Optional[Mapping[str, bool]] = None,
    ) -> ResolutionResult:
        normalized = tuple(tokens)
        with span(
            "keymaps::resolve",
            logger_name=self._logger_name,
            component="keymaps",
            metadata={"grammar": grammar, "length": len(normalized)},
        ) as handle:
            node: Optional[TrieNode] = self.root(grammar)
            consumed = 0
            for token in normalized:
                node = self.advance(node, token)  # type: ignore[arg-type]
                if node is None:
                    handle.add_metadata("status", "miss")
                    return ResolutionResult(status="miss", consumed=consumed)
                consumed += 1

            assert node is not None
            match = self.select(node, context)
            if match is not None and node.is_leaf:
                handle.add_metadata("status", "match")
                handle.add_metadata("binding_id", match.binding.id)
                return ResolutionResult(status="match", match=match, consumed=consumed)

            if not node.is_leaf:
                timeout_ms = self.pending_timeout(node)
                handle.add_metadata("status", "pending")
                if timeout_ms is not None:
                    handle.add_metadata("timeout_ms", timeout_ms)
                return ResolutionResult(
                    status="pending",
                    consumed=consumed,
                    next_expected=node.next_tokens(),
                    timeout_ms=timeout_ms,
                    fallback=match,
                )

            handle.add_metadata("status", "miss")
            return ResolutionResult(status="miss", consumed=consumed)

    def reset(self, grammar: Optional[str] = None) -> None:
        if grammar is None:
            self._cache.clear()
        else:
            self._cache.pop(grammar, None)

    def _ensure_trie(self, grammar: str) -> KeymapTrie:
        revision = self._registry.revision()
        cached = self._cache.get(grammar)
        if cached and cached[0] == revision:
            return cached[1]

        trie = KeymapTrie(grammar=grammar)
        for binding in self._registry.iter_bindings(grammar):
            trie.add_binding(binding)
        self._cache[grammar] = (revision, trie)
        return trie


__all__ = [
    "KeymapResolver",
    "KeymapTrie",
    "ResolutionMatch",
    "ResolutionResult",
    "TrieNode",
]
