"""Registry of actions and the bindings that reach them, indexed per grammar."""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Dict, Iterable, Iterator, Optional, Sequence

from modal_engine.runtime.telemetry import span

from .models import ActionRef, Binding, KeySequence


@dataclass(slots=True)
class RegistryStats:
    """Counts describing what a registry currently holds."""

    action_count: int
    binding_count: int
    grammars: tuple[str, ...]


class KeymapConflictError(RuntimeError):
    """Raised when a binding would shadow another one in the same grammar."""

    def __init__(self, binding: Binding, conflicts: Iterable[Binding]):
        self.binding = binding
        self.conflicts = tuple(conflicts)
        super().__init__(
            f"Binding '{binding.id}' ({binding.key_signature!r} in "
            f"'{binding.mode}') conflicts with {[b.id for b in self.conflicts]}"
        )


class KeymapRegistry:
    """Owns action references and binding metadata.

    Bindings are indexed by grammar and key signature so the resolver can
    rebuild a grammar's trie cheaply. Every change bumps ``revision()``,
    which is what invalidates resolver caches.
    """

    def __init__(self, *, logger_name: str | None = None) -> None:
        self._actions: Dict[str, ActionRef] = {}
        self._bindings: Dict[str, Binding] = {}
        self._by_grammar: Dict[str, Dict[str, set[str]]] = {}
        self._logger_name = logger_name
        self._revision = 0

    def revision(self) -> int:
        return self._revision

    def has_action(self, action_id: str) -> bool:
        return action_id in self._actions

    def get_action(self, action_id: str) -> ActionRef:
        try:
            return self._actions[action_id]
        except KeyError as exc:
            raise KeyError(f"Action '{action_id}' is not registered") from exc

    def get_binding(self, binding_id: str) -> Binding:
        try:
            return self._bindings[binding_id]
        except KeyError as exc:
            raise KeyError(f"Binding '{binding_id}' is not registered") from exc

    def register_action(self, action: ActionRef, *, replace: bool = False) -> ActionRef:
        with span(
            "keymaps::register_action",
            logger_name=self._logger_name,
            component="keymaps",
            metadata={"action_id": action.id, "kind": action.kind},
        ):
            if not replace and action.id in self._actions:
                raise ValueError(f"Action '{action.id}' already registered")
            self._actions[action.id] = action
            return action

    def register_binding(self, binding: Binding, *, replace: bool = False) -> Binding:
        with span(
            "keymaps::register_binding",
            logger_name=self._logger_name,
            component="keymaps",
            metadata={"binding_id": binding.id, "grammar": binding.mode},
        ) as handle:
            if binding.action_id not in self._actions:
                handle.add_metadata("missing_action", binding.action_id)
                raise KeyError(
                    f"Binding '{binding.id}' references unknown action "
                    f"'{binding.action_id}'"
                )

            conflicts = self.detect_conflicts(binding, ignore=(binding.id,))
            if conflicts and not replace:
                handle.add_metadata("conflicts", ",".join(c.id for c in conflicts))
                raise KeymapConflictError(binding, conflicts)

            existing = self._bindings.get(binding.id)
            if existing is not None and not replace:
                raise ValueError(f"Binding id '{binding.id}' already registered")
            for stale in conflicts + ([existing] if existing else []):
                self._unindex(stale)
                self._bindings.pop(stale.id, None)

            self._bindings[binding.id] = binding
            self._index(binding)
            self._touch()
            return binding

    def unregister_binding(self, binding_id: str) -> Optional[Binding]:
        with span(
            "keymaps::unregister_binding",
            logger_name=self._logger_name,
            component="keymaps",
            metadata={"binding_id": binding_id},
        ):
            binding = self._bindings.pop(binding_id, None)
            if binding is None:
                return None
            self._unindex(binding)
            self._touch()
            return binding

    def update_binding(self, binding_id: str, **changes: object) -> Binding:
        with span(
            "keymaps::update_binding",
            logger_name=self._logger_name,
            component="keymaps",
            metadata={"binding_id": binding_id},
        ) as handle:
            current = self._bindings.get(binding_id)
            if current is None:
                handle.fail("missing_binding")
                raise KeyError(f"Binding '{binding_id}' not found")

            updated = replace(current, **changes)
            if updated.action_id not in self._actions:
                handle.add_metadata("missing_action", updated.action_id)
                raise KeyError(
                    f"Binding '{binding_id}' references unknown action "
                    f"'{updated.action_id}'"
                )

            conflicts = self.detect_conflicts(updated, ignore=(binding_id,))
            if conflicts:
                handle.add_metadata("conflicts", ",".join(c.id for c in conflicts))
                raise KeymapConflictError(updated, conflicts)

            self._swap(current, updated)
            self._touch()
            return updated

    def iter_bindings(self, grammar: Optional[str] = None) -> Iterator[Binding]:
        if grammar is None:
            yield from self._bindings.values()
            return
        for bucket in self._by_grammar.get(grammar, {}).values():
            for binding_id in sorted(bucket):
                yield self._bindings[binding_id]

    def grammars(self) -> tuple[str, ...]:
        return tuple(sorted(self._by_grammar))

    def override_sequence_timeouts(
        self,
        *,
        timeout_ms: int,
        grammar: Optional[str] = None,
        binding_ids: Optional[Iterable[str]] = None,
    ) -> None:
        if timeout_ms <= 0:
            raise ValueError("timeout_ms must be positive")

        if binding_ids is not None:
            targets = [self.get_binding(binding_id) for binding_id in binding_ids]
        else:
            targets = list(self.iter_bindings(grammar))
        if not targets:
            return

        for binding in targets:
            sequence = KeySequence(binding.sequence.strokes, timeout_ms=timeout_ms)
            self._swap(binding, replace(binding, sequence=sequence))
        self._touch()

    def stats(self) -> RegistryStats:
        return RegistryStats(
            action_count=len(self._actions),
            binding_count=len(self._bindings),
            grammars=self.grammars(),
        )

    def detect_conflicts(
        self, binding: Binding, *, ignore: Sequence[str] | None = None
    ) -> list[Binding]:
        ignored = set(ignore or ())
        bucket = self._by_grammar.get(binding.mode, {}).get(binding.key_signature, ())
        return [
            self._bindings[other_id]
            for other_id in sorted(bucket)
            if other_id not in ignored
            and _contexts_overlap(binding, self._bindings[other_id])
        ]

    def _index(self, binding: Binding) -> None:
        signatures = self._by_grammar.setdefault(binding.mode, {})
        signatures.setdefault(binding.key_signature, set()).add(binding.id)

    def _unindex(self, binding: Binding) -> None:
        signatures = self._by_grammar.get(binding.mode)
        if not signatures:
            return
        bucket = signatures.get(binding.key_signature)
        if bucket is None:
            return
        bucket.discard(binding.id)
        if not bucket:
            del signatures[binding.key_signature]
        if not signatures:
            del self._by_grammar[binding.mode]

    def _swap(self, current: Binding, updated: Binding) -> None:
        self._unindex(current)
        self._bindings[current.id] = updated
        self._index(updated)

    def _touch(self) -> None:
        self._revision += 1


def _contexts_overlap(left: Binding, right: Binding) -> bool:
    """Two bindings overlap unless their ``when`` clauses disagree on a flag."""

    if not left.when and not right.when:
        return True
    if not left.when or not right.when:
        return False

    left_map = left.when_map
    right_map = right.when_map
    for flag, expected in left_map.items():
        if flag in right_map and right_map[flag] != expected:
            return False
    return dict(left_map) == dict(right_map)


__all__ = [
    "KeymapRegistry",
    "KeymapConflictError",
    "RegistryStats",
]
