"""
Pytest configuration and shared fixtures.
"""

import json
import zipfile
from pathlib import Path

import pytest
from rich.console import Console

from factorio_mod_tool.errors import RunContext


def write_mod_zip(
    mods_dir: Path,
    name: str,
    version: str = "1.0.0",
    filename: str | None = None,
    nested: bool = True,
) -> Path:
    """Write a minimal mod archive with an info.json manifest."""
    mods_dir.mkdir(parents=True, exist_ok=True)
    path = mods_dir / (filename or f"{name}_{version}.zip")
    prefix = f"{name}_{version}/" if nested else ""
    with zipfile.ZipFile(path, "w") as zf:
        zf.writestr(f"{prefix}info.json", json.dumps({"name": name, "version": version}))
        zf.writestr(f"{prefix}data.lua", "-- data")
    return path


def write_mod_list(mods_dir: Path, entries: list[tuple[str, bool]]) -> Path:
    mods_dir.mkdir(parents=True, exist_ok=True)
    path = mods_dir / "mod-list.json"
    path.write_text(
        json.dumps({"mods": [{"name": n, "enabled": e} for n, e in entries]}, indent=2)
    )
    return path


def read_mod_list(mods_dir: Path) -> list[tuple[str, bool]]:
    data = json.loads((mods_dir / "mod-list.json").read_text())
    return [(m["name"], m["enabled"]) for m in data["mods"]]


# =============================================================================
# PATH FIXTURES
# =============================================================================

@pytest.fixture
def mods_dir(tmp_path):
    """Empty mods directory."""
    path = tmp_path / "mods"
    path.mkdir()
    return path


@pytest.fixture
def game_dir(tmp_path):
    """A read/write directory with player-data.json, mods/ and a settings file."""
    (tmp_path / "player-data.json").write_text(
        json.dumps({"service-username": "engineer", "service-token": "secret"})
    )
    (tmp_path / "bin").mkdir()
    (tmp_path / "bin" / "factorio.exe").write_text("")
    (tmp_path / "mods").mkdir()
    settings = tmp_path / "factoriomodtool.settings"
    settings.write_text(
        f"exePath\n{tmp_path / 'bin' / 'factorio.exe'}\n"
        f"readWritePath\n{tmp_path / 'player-data.json'}"
    )
    return tmp_path


# =============================================================================
# CONTEXT FIXTURES
# =============================================================================

@pytest.fixture
def ctx():
    """Run context printing to an in-memory console."""
    return RunContext(console=Console(record=True, quiet=True))
