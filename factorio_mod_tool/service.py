"""Service layer - mod lifecycle operations extracted from CLI for programmatic use."""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable

from .api import ModPortalAPI, ModPortalError
from .downloader import DownloadError, Downloader, create_download_progress
from .errors import ErrorKind, ErrorRecord, RunContext
from .inventory import Inventory
from .modlist import (
    ModList,
    ModListError,
    load_mod_list,
    merge_mod_list,
    save_mod_list,
)
from .portal import ModIdentifierError, normalize_mod_identifier
from .scanner import scan_mods_dir
from .settings import ServiceCredentials


# progress callback: (event_type, percentage 0-1, message)
ProgressCallback = Callable[[str, float, str], None]


@dataclass
class RunPlan:
    """Everything one invocation asks for."""

    enable: list[str] = field(default_factory=list)
    disable: list[str] = field(default_factory=list)
    install: list[str] = field(default_factory=list)
    remove: list[str] = field(default_factory=list)
    redownload: list[str] = field(default_factory=list)
    disable_all: bool = False

    @property
    def is_empty(self) -> bool:
        return not (
            self.enable
            or self.disable
            or self.install
            or self.remove
            or self.redownload
            or self.disable_all
        )


@dataclass
class ModEntry:
    name: str
    enabled: bool
    version: str
    archive: str


@dataclass
class RunResult:
    mods: list[ModEntry]
    installed: list[str]
    removed: list[str]
    enabled: list[str]
    disabled: list[str]
    errors: list[dict]
    error_count: int
    mod_list_path: str = ""


def _noop_progress(event: str, pct: float, msg: str) -> None:
    pass


class ModToolService:
    """Business logic for managing the mods in one mods directory."""

    def __init__(
        self,
        mods_dir: Path,
        ctx: RunContext | None = None,
        credentials: ServiceCredentials | None = None,
        api: ModPortalAPI | None = None,
        downloader: Downloader | None = None,
        show_progress: bool = False,
    ):
        self.mods_dir = Path(mods_dir)
        self.ctx = ctx or RunContext()
        self.credentials = credentials or ServiceCredentials()
        self._api = api
        self._downloader = downloader
        self.show_progress = show_progress
        self.inventory: Inventory | None = None
        self.archives_changed = False
        self.installed: list[str] = []
        self.removed: list[str] = []
        self.enabled: list[str] = []
        self.disabled: list[str] = []
        self._removed_flags: dict[str, bool] = {}

    @property
    def api(self) -> ModPortalAPI:
        if self._api is None:
            self._api = ModPortalAPI()
        return self._api

    @property
    def downloader(self) -> Downloader:
        if self._downloader is None:
            self._downloader = Downloader(self.api)
        return self._downloader

    def _require_inventory(self) -> Inventory:
        if self.inventory is None:
            self.load()
        return self.inventory

    # -- Scan / merge --

    def _read_mod_list(self) -> ModList:
        try:
            return load_mod_list(self.mods_dir)
        except ModListError as e:
            # always fatal: report() raises FatalRunError
            self.ctx.report(ErrorKind.MISSING_PERSISTED_STATE, str(self.mods_dir), str(e))
            raise

    def load(self) -> Inventory:
        """Scan the archives and merge them with mod-list.json."""
        raw = scan_mods_dir(self.mods_dir, self.ctx)
        self.inventory = merge_mod_list(raw, self._read_mod_list())
        self.archives_changed = False
        return self.inventory

    def refresh(self) -> bool:
        """
        Re-scan after archives were added or deleted.

        The new scan is merged against mod-list.json again, so a reinstalled
        mod gets its persisted flag back. Mods removed earlier in this run
        keep the flag they had when removed. Returns True if a re-scan ran.
        """
        if not self.archives_changed:
            return False
        self.ctx.console.print("[dim]Mod archives changed, rescanning...[/dim]")
        reported = {r.subject for r in self.ctx.records if r.kind == ErrorKind.CORRUPT_ARCHIVE}
        raw = scan_mods_dir(self.mods_dir, self.ctx, already_reported=reported)
        inventory = merge_mod_list(raw, self._read_mod_list())
        for name, enabled in self._removed_flags.items():
            if name in inventory:
                inventory[name].enabled = enabled
        self.inventory = inventory
        self.archives_changed = False
        return True

    # -- Mutations --

    def enable(self, names: list[str]) -> list[str]:
        return self._set_enabled(names, True)

    def disable(self, names: list[str]) -> list[str]:
        return self._set_enabled(names, False)

    def _set_enabled(self, names: list[str], enabled: bool) -> list[str]:
        inventory = self._require_inventory()
        changed = []
        for name in names:
            if name not in inventory:
                self.ctx.report(
                    ErrorKind.UNKNOWN_MOD, name, f"There is no such mod as {name}."
                )
                continue
            inventory[name].enabled = enabled
            changed.append(name)
        (self.enabled if enabled else self.disabled).extend(changed)
        return changed

    def disable_all(self) -> list[str]:
        """Disable every mod. This includes the base mod."""
        inventory = self._require_inventory()
        names = inventory.names()
        for name in names:
            inventory[name].enabled = False
        self.disabled.extend(names)
        return names

    def install(
        self,
        identifiers: list[str],
        on_progress: ProgressCallback | None = None,
    ) -> list[Path]:
        """
        Download mods from the portal by name or mod page URL.

        Installed mods join the inventory on the next refresh().
        """
        progress = on_progress or _noop_progress
        inventory = self._require_inventory()
        downloaded: list[Path] = []
        total = len(identifiers)

        for i, identifier in enumerate(identifiers):
            try:
                name = normalize_mod_identifier(identifier)
            except ModIdentifierError as e:
                self.ctx.report(ErrorKind.UNKNOWN_MOD, identifier, str(e))
                continue

            if name in inventory or name in self.installed:
                self.ctx.report(
                    ErrorKind.LOCAL_MOD_EXISTS,
                    name,
                    f"Download request was called for mod {name}, but it was already fetched.",
                )
                continue

            if not self.credentials:
                self.ctx.report(
                    ErrorKind.MISSING_CREDENTIALS,
                    name,
                    "Service username and token are absent. "
                    "Please, open Factorio and log in into your Factorio account.",
                )
                continue

            progress("lookup", i / total, f"Looking up {name}...")
            try:
                release = self.api.get_latest_release(name)
            except ModPortalError as e:
                self.ctx.report(ErrorKind.REGISTRY_LOOKUP_FAILED, name, str(e))
                continue

            progress("download", i / total, f"Downloading {release['file_name']}...")
            try:
                path = self._download(release)
            except DownloadError as e:
                self.ctx.report(ErrorKind.DOWNLOAD_FAILED, name, str(e))
                continue

            downloaded.append(path)
            self.installed.append(name)
            self.archives_changed = True
            progress("download", (i + 1) / total, f"Installed {name}")

        return downloaded

    def _download(self, release: dict) -> Path:
        if not self.show_progress:
            return self.downloader.download_release(release, self.credentials, self.mods_dir)
        with create_download_progress(console=self.ctx.console) as progress:
            return self.downloader.download_with_progress(
                release, self.credentials, self.mods_dir, progress
            )

    def remove(self, names: list[str]) -> list[str]:
        """Delete the archives of the named mods."""
        inventory = self._require_inventory()
        removed = []
        for name in names:
            mod = inventory.get(name)
            if mod is None:
                self.ctx.report(
                    ErrorKind.UNKNOWN_MOD,
                    name,
                    f"An operation was requested for mod {name}, but it wasn't already fetched.",
                )
                continue
            if mod.archive_path is None:
                self.ctx.report(
                    ErrorKind.UNKNOWN_MOD, name, f"{name} is not a removable mod."
                )
                continue

            try:
                mod.archive_path.unlink()
            except OSError as e:
                self.ctx.report(
                    ErrorKind.REMOVE_FAILED, name, f"Could not delete {mod.archive_path}: {e}"
                )
                continue

            self._removed_flags[name] = bool(mod.enabled)
            inventory.remove(name)
            removed.append(name)
            self.archives_changed = True

        self.removed.extend(removed)
        return removed

    # -- Queries --

    def list_enabled(self) -> list[str]:
        return self._require_inventory().enabled_names()

    def entries(self) -> list[ModEntry]:
        return [
            ModEntry(
                name=mod.name,
                enabled=bool(mod.enabled),
                version=str(mod.version) if mod.version else "",
                archive=mod.archive_path.name if mod.archive_path else "",
            )
            for mod in self._require_inventory()
        ]

    # -- Persistence --

    def save(self) -> Path:
        return save_mod_list(self.mods_dir, ModList.from_inventory(self._require_inventory()))

    # -- Whole run --

    def apply(self, plan: RunPlan, on_progress: ProgressCallback | None = None) -> RunResult:
        """
        Run a plan end to end.

        Phases run in a fixed order: load, remove, install, rescan if
        archives changed, disable-all, disable, enable, save. A fatal
        error stops the run before anything is saved.
        """
        progress = on_progress or _noop_progress

        progress("scan", 0.0, "Scanning mods...")
        self.load()

        if plan.remove or plan.redownload:
            progress("remove", 0.1, "Removing mods...")
            self.remove(plan.remove)
            redownloads = self.remove(plan.redownload)
        else:
            redownloads = []

        if plan.install or redownloads:
            progress("install", 0.2, "Installing mods...")
            self.install(plan.install + redownloads, on_progress=on_progress)

        if self.refresh():
            progress("scan", 0.8, "Rescanned mods.")

        if plan.disable_all:
            self.disable_all()
        if plan.disable:
            self.disable(plan.disable)
        if plan.enable:
            self.enable(plan.enable)

        progress("save", 0.9, "Writing mod-list.json...")
        path = self.save()
        progress("done", 1.0, "Done.")

        return self.result(path)

    def result(self, mod_list_path: Path | None = None) -> RunResult:
        return RunResult(
            mods=self.entries(),
            installed=list(self.installed),
            removed=list(self.removed),
            enabled=list(self.enabled),
            disabled=list(self.disabled),
            errors=[record.to_dict() for record in self.ctx.records],
            error_count=self.ctx.error_count,
            mod_list_path=str(mod_list_path) if mod_list_path else "",
        )


def error_summary(records: list[ErrorRecord]) -> dict[str, int]:
    """Count non-suppressed errors per kind."""
    counts: dict[str, int] = {}
    for record in records:
        if not record.suppressed:
            counts[record.kind.label] = counts.get(record.kind.label, 0) + 1
    return counts
