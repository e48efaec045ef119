"""mod-list.json handling and merging against scanned archives."""

import json
from pathlib import Path
from typing import Any

from .inventory import BASE_MOD_NAME, Inventory

MOD_LIST_FILENAME = "mod-list.json"


class ModListError(Exception):
    """Raised when mod-list.json operations fail."""

    pass


class ModListEntry:
    """A persisted name/enabled pair."""

    def __init__(self, name: str, enabled: bool):
        self.name = name
        self.enabled = enabled

    def to_dict(self) -> dict[str, Any]:
        return {"name": self.name, "enabled": self.enabled}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "ModListEntry":
        name = data.get("name")
        if not isinstance(name, str):
            raise ModListError(f"Invalid mod list entry: {data}")
        return cls(name=name, enabled=bool(data.get("enabled", False)))

    def __repr__(self) -> str:
        return f"ModListEntry({self.name!r}, {self.enabled!r})"


class ModList:
    """The persisted list of known mods and whether they are enabled."""

    def __init__(self, entries: list[ModListEntry] | None = None):
        self.entries = entries or []

    def lookup(self) -> dict[str, bool]:
        """Map of name to enabled. Later duplicates win, as a reader would see them."""
        return {entry.name: entry.enabled for entry in self.entries}

    def to_dict(self) -> dict[str, Any]:
        return {"mods": [entry.to_dict() for entry in self.entries]}

    @classmethod
    def from_dict(cls, data: Any) -> "ModList":
        if not isinstance(data, dict) or not isinstance(data.get("mods"), list):
            raise ModListError("Expected an object with a 'mods' list")
        return cls([ModListEntry.from_dict(entry) for entry in data["mods"]])

    @classmethod
    def from_inventory(cls, inventory: Inventory) -> "ModList":
        return cls([ModListEntry(mod.name, bool(mod.enabled)) for mod in inventory])


def mod_list_path(mods_dir: Path) -> Path:
    return Path(mods_dir) / MOD_LIST_FILENAME


def load_mod_list(mods_dir: Path) -> ModList:
    """Load mod-list.json from the mods directory."""
    path = mod_list_path(mods_dir)
    if not path.exists():
        raise ModListError(f"Required file {MOD_LIST_FILENAME} is missing at {path}")

    try:
        with open(path, encoding="utf-8") as f:
            data = json.load(f)
    except json.JSONDecodeError as e:
        raise ModListError(f"Invalid {MOD_LIST_FILENAME}: {e}")
    except OSError as e:
        raise ModListError(f"Cannot read {path}: {e}")

    return ModList.from_dict(data)


def save_mod_list(mods_dir: Path, mod_list: ModList) -> Path:
    """Write mod-list.json, replacing the previous contents."""
    path = mod_list_path(mods_dir)
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "w", encoding="utf-8") as f:
        json.dump(mod_list.to_dict(), f, indent=2)
    return path


def merge_mod_list(raw: Inventory, mod_list: ModList | None) -> Inventory:
    """
    Apply persisted enabled flags to a freshly scanned inventory.

    Mods missing from the list start disabled. Names only found in the
    list are dropped. The base mod is always enabled afterwards.
    """
    if mod_list is None:
        raise ModListError(f"No {MOD_LIST_FILENAME} to merge against")

    persisted = mod_list.lookup()
    for name in raw.names():
        raw[name].enabled = persisted.get(name, False)
    raw[BASE_MOD_NAME].enabled = True
    return raw
