"""Helper utilities for keymap-driven modes."""

from __future__ import annotations

from typing import Mapping, MutableMapping, cast

from modal_engine.keymaps import KeymapResolver, normalize_key

from .base_mode import KeyInput, ModeContext
from .dispatcher import CommandDispatcher


def key_to_token(key: KeyInput) -> str:
    """Canonical token for a host key event.

    A single ``ctrl`` modifier is folded into the token (``<c-r>``); other
    modifier sets are kept as ``<mod+key>`` so they still match nothing by
    accident.
    """

    if key.modifiers:
        modifiers = tuple(modifier.lower() for modifier in key.modifiers)
        if modifiers == ("ctrl",):
            return normalize_key(f"ctrl+{key.key}")
        name = key.key[1:-1] if len(key.key) > 2 and key.key.startswith("<") else key.key
        return f"<{'+'.join(modifiers)}+{name.lower()}>"
    if key.text is not None and len(key.text) == 1 and len(key.key) != 1:
        return normalize_key(key.text)
    return normalize_key(key.key)


def require_keymap_resolver(context: ModeContext) -> KeymapResolver:
    resolver = context.extras.get("keymap_resolver")
    if not isinstance(resolver, KeymapResolver):
        raise RuntimeError("ModeContext.extras missing 'keymap_resolver'")
    return resolver


def require_dispatcher(context: ModeContext) -> CommandDispatcher:
    dispatcher = context.extras.get("dispatcher")
    if not isinstance(dispatcher, CommandDispatcher):
        raise RuntimeError("ModeContext.extras missing 'dispatcher'")
    return dispatcher


def keymap_flag_context(context: ModeContext) -> Mapping[str, bool]:
    flags = context.extras.setdefault("keymap_flags", {})
    return cast(Mapping[str, bool], flags)


def update_flag(context: ModeContext, key: str, value: bool) -> None:
    flags = cast(
        MutableMapping[str, bool], context.extras.setdefault("keymap_flags", {})
    )
    flags[key] = value


__all__ = [
    "key_to_token",
    "require_dispatcher",
    "require_keymap_resolver",
    "keymap_flag_context",
    "update_flag",
]
