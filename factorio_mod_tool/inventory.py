"""In-memory mod inventory."""

import re
from dataclasses import dataclass
from pathlib import Path
from typing import Iterator

BASE_MOD_NAME = "base"

_VERSION_RE = re.compile(r"^(\d+)\.(\d+)\.(\d+)$")


@dataclass(frozen=True, order=True)
class Version:
    """Three-component mod version. 0.0.0 stands in for unknown versions."""

    major: int = 0
    minor: int = 0
    patch: int = 0

    @classmethod
    def parse(cls, text: str | None) -> "Version":
        if not isinstance(text, str):
            return cls()
        match = _VERSION_RE.match(text.strip())
        if not match:
            return cls()
        return cls(*(int(part) for part in match.groups()))

    @property
    def is_null(self) -> bool:
        return self == Version()

    def __str__(self) -> str:
        return f"{self.major}.{self.minor}.{self.patch}"


class Mod:
    """A mod record. Two mods are the same mod when their names match."""

    def __init__(
        self,
        name: str,
        enabled: bool | None = None,
        archive_path: Path | None = None,
        version: Version | None = None,
    ):
        self.name = name
        self.enabled = enabled
        self.archive_path = archive_path
        self.version = version

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Mod):
            return NotImplemented
        return self.name == other.name

    def __hash__(self) -> int:
        return hash(self.name)

    def __repr__(self) -> str:
        return f"Mod(name={self.name!r}, enabled={self.enabled!r})"

    @property
    def is_base(self) -> bool:
        return self.name == BASE_MOD_NAME and self.archive_path is None


def base_mod() -> Mod:
    return Mod(BASE_MOD_NAME, enabled=True)


class Inventory:
    """
    Ordered mapping of mod name to Mod.

    The inventory owns its records: callers mutate ``inventory[name]``
    directly, never a copy. The base mod is always the first entry.
    """

    def __init__(self, mods: list[Mod] | None = None):
        self._mods: dict[str, Mod] = {BASE_MOD_NAME: base_mod()}
        for mod in mods or []:
            self.add(mod)

    def add(self, mod: Mod) -> bool:
        """Add a mod. Returns False if the name is already present."""
        if mod.name in self._mods:
            return False
        self._mods[mod.name] = mod
        return True

    def remove(self, name: str) -> Mod:
        if name == BASE_MOD_NAME:
            raise KeyError(f"{BASE_MOD_NAME} cannot be removed")
        return self._mods.pop(name)

    def get(self, name: str) -> Mod | None:
        return self._mods.get(name)

    def names(self) -> list[str]:
        return list(self._mods)

    def enabled_names(self) -> list[str]:
        return [name for name, mod in self._mods.items() if mod.enabled]

    def __getitem__(self, name: str) -> Mod:
        return self._mods[name]

    def __contains__(self, name: object) -> bool:
        return name in self._mods

    def __iter__(self) -> Iterator[Mod]:
        return iter(self._mods.values())

    def __len__(self) -> int:
        return len(self._mods)

    def __repr__(self) -> str:
        return f"Inventory({list(self._mods.values())!r})"
