"""Register storage for yanks, deletes and puts."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Literal, Mapping, Optional

RegisterType = Literal["character", "line", "block"]

UNNAMED = '"'
BLACK_HOLE = "_"
YANK = "0"
SMALL_DELETE = "-"
_NUMBERED = tuple(str(n) for n in range(1, 10))


@dataclass(frozen=True, slots=True)
class RegisterValue:
    text: str
    type: RegisterType = "character"

    @property
    def rows(self) -> list[str]:
        return self.text.split("\n")


def is_register_name(name: str) -> bool:
    if len(name) != 1:
        return False
    return name.isalpha() or name in {UNNAMED, BLACK_HOLE, YANK, SMALL_DELETE, *_NUMBERED}


class RegisterBank:
    """Tracks unnamed, numbered, named and special registers.

    Writing a named register also fills the unnamed one; an uppercase name
    appends to its lowercase register.
    """

    def __init__(self) -> None:
        self._registers: Dict[str, RegisterValue] = {UNNAMED: RegisterValue(text="")}

    def get(self, name: Optional[str] = None) -> RegisterValue:
        key = (name or UNNAMED).lower()
        return self._registers.get(key, RegisterValue(text=""))

    def set(self, name: str, value: RegisterValue) -> None:
        if name == BLACK_HOLE:
            return
        if name.isupper():
            self.append(name.lower(), value)
            return
        self._registers[name] = value
        if name != UNNAMED:
            self._registers[UNNAMED] = value

    def append(self, name: str, value: RegisterValue) -> None:
        existing = self._registers.get(name)
        if existing is None or not existing.text:
            self.set(name, value)
            return
        if existing.type == "line" or value.type == "line":
            combined = RegisterValue(text=f"{existing.text}\n{value.text}", type="line")
        else:
            combined = RegisterValue(text=existing.text + value.text, type=existing.type)
        self.set(name, combined)

    def yank_to(self, name: Optional[str], value: RegisterValue) -> None:
        if name == BLACK_HOLE:
            return
        if name and name != UNNAMED:
            self.set(name, value)
            return
        self._registers[YANK] = value
        self._registers[UNNAMED] = value

    def delete_to(self, name: Optional[str], value: RegisterValue) -> None:
        if name == BLACK_HOLE:
            return
        if name and name != UNNAMED:
            self.set(name, value)
            return
        if value.type == "line" or "\n" in value.text:
            for index in range(len(_NUMBERED) - 1, 0, -1):
                previous = self._registers.get(_NUMBERED[index - 1])
                if previous is not None:
                    self._registers[_NUMBERED[index]] = previous
            self._registers[_NUMBERED[0]] = value
        else:
            self._registers[SMALL_DELETE] = value
        self._registers[UNNAMED] = value

    def serialize(self) -> Mapping[str, RegisterValue]:
        return dict(self._registers)

    def load(self, data: Mapping[str, RegisterValue]) -> None:
        self._registers.update(
            {k: RegisterValue(text=v.text, type=v.type) for k, v in data.items()}
        )


__all__ = [
    "RegisterBank",
    "RegisterType",
    "RegisterValue",
    "is_register_name",
    "UNNAMED",
    "BLACK_HOLE",
]
