"""Host-supplied editing options."""

from __future__ import annotations

from dataclasses import dataclass, fields, replace
from typing import Any, Mapping, Optional

from .telemetry import env_value


def _parse_bool(name: str, raw: str) -> bool:
    value = raw.strip().lower()
    if value in {"1", "true", "yes", "on"}:
        return True
    if value in {"0", "false", "no", "off"}:
        return False
    raise ValueError(f"Option '{name}' expects a boolean, got {raw!r}")


def _parse_int(name: str, raw: str) -> int:
    try:
        return int(raw.strip())
    except ValueError as exc:
        raise ValueError(f"Option '{name}' expects an integer, got {raw!r}") from exc


@dataclass(frozen=True, slots=True)
class EngineOptions:
    """Options record the host passes to a session.

    ``shift_width`` falls back to ``tab_size`` when unset, mirroring how most
    editors derive indentation width.
    """

    tab_size: int = 4
    insert_spaces: bool = True
    shift_width: Optional[int] = None
    auto_indent: bool = False
    pending_timeout_ms: int = 1000

    def __post_init__(self) -> None:
        if self.tab_size <= 0:
            raise ValueError("tab_size must be positive")
        if self.shift_width is not None and self.shift_width <= 0:
            raise ValueError("shift_width must be positive")
        if self.pending_timeout_ms <= 0:
            raise ValueError("pending_timeout_ms must be positive")

    @property
    def indent_width(self) -> int:
        return self.shift_width or self.tab_size

    def indent_unit(self) -> str:
        if self.insert_spaces:
            return " " * self.indent_width
        return "\t"

    def tab_text(self, column: int) -> str:
        """Text a tab key inserts when the cursor sits at ``column``."""

        if not self.insert_spaces:
            return "\t"
        return " " * (self.tab_size - column % self.tab_size)

    def with_changes(self, **changes: Any) -> "EngineOptions":
        return replace(self, **changes)

    @classmethod
    def from_mapping(cls, values: Mapping[str, Any]) -> "EngineOptions":
        known = {f.name for f in fields(cls)}
        unknown = sorted(set(values) - known)
        if unknown:
            raise ValueError(f"Unknown options: {', '.join(unknown)}")
        return cls(**dict(values))

    @classmethod
    def from_env(cls) -> "EngineOptions":
        """Build options from ``MODAL_ENGINE_*`` environment variables."""

        values: dict[str, Any] = {}
        for option in fields(cls):
            raw = env_value(option.name.upper())
            if raw is None:
                continue
            if option.name in {"insert_spaces", "auto_indent"}:
                values[option.name] = _parse_bool(option.name, raw)
            else:
                values[option.name] = _parse_int(option.name, raw)
        return cls(**values)


__all__ = ["EngineOptions"]
