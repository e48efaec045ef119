"""Discovery of installed mod archives."""

import json
import zipfile
from pathlib import Path, PurePosixPath

from .errors import ErrorKind, RunContext
from .inventory import Inventory, Mod, Version

ARCHIVE_SUFFIX = ".zip"
MANIFEST_NAME = "info.json"


class CorruptArchiveError(Exception):
    """Raised when an archive has no usable manifest."""

    pass


def find_archives(mods_dir: Path) -> list[Path]:
    """List mod archives directly inside mods_dir, sorted by filename."""
    if not mods_dir.is_dir():
        return []
    return sorted(
        (p for p in mods_dir.iterdir() if p.is_file() and p.suffix.lower() == ARCHIVE_SUFFIX),
        key=lambda p: p.name,
    )


def read_manifest(archive_path: Path) -> dict:
    """
    Read info.json from a mod archive.

    Mod archives usually nest everything under a ``<name>_<version>/``
    folder, so the shallowest entry named info.json is used.
    """
    try:
        with zipfile.ZipFile(archive_path, "r") as zf:
            candidates = [
                member
                for member in zf.namelist()
                if PurePosixPath(member).name == MANIFEST_NAME
            ]
            if not candidates:
                raise CorruptArchiveError(f"No {MANIFEST_NAME} in {archive_path.name}")
            member = min(candidates, key=lambda m: len(PurePosixPath(m).parts))
            raw = zf.read(member)
    except (zipfile.BadZipFile, OSError) as e:
        raise CorruptArchiveError(f"Cannot open {archive_path.name}: {e}")

    try:
        data = json.loads(raw.decode("utf-8-sig"))
    except (UnicodeDecodeError, json.JSONDecodeError) as e:
        raise CorruptArchiveError(f"Invalid {MANIFEST_NAME} in {archive_path.name}: {e}")

    if not isinstance(data, dict) or not isinstance(data.get("name"), str) or not data["name"]:
        raise CorruptArchiveError(f"{MANIFEST_NAME} in {archive_path.name} has no mod name")
    return data


def scan_mods_dir(
    mods_dir: Path, ctx: RunContext, already_reported: set[str] | None = None
) -> Inventory:
    """
    Build a raw inventory from the archives in mods_dir.

    Archives that cannot be read are reported as CorruptArchive and
    skipped, unless their file name is in already_reported. Discovered
    mods have ``enabled`` unset until merged.
    """
    inventory = Inventory()
    for archive_path in find_archives(Path(mods_dir)):
        try:
            manifest = read_manifest(archive_path)
        except CorruptArchiveError as e:
            if already_reported and archive_path.name in already_reported:
                continue
            ctx.report(ErrorKind.CORRUPT_ARCHIVE, archive_path.name, str(e))
            continue

        mod = Mod(
            name=manifest["name"],
            archive_path=archive_path,
            version=Version.parse(manifest.get("version")),
        )
        if not inventory.add(mod):
            ctx.console.print(
                f"[yellow]Warning:[/yellow] {archive_path.name} duplicates mod "
                f"'{mod.name}', ignoring it."
            )
    return inventory
