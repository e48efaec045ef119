"""Settings file, game paths and mod portal credentials."""

import json
import os
from dataclasses import dataclass
from pathlib import Path

SETTINGS_FILENAME = "factoriomodtool.settings"
SETTINGS_ENV_VAR = "FACTORIO_MOD_TOOL_SETTINGS"

EXE_FILENAME = "factorio.exe"
PLAYER_DATA_FILENAME = "player-data.json"
MODS_DIRNAME = "mods"

_EXE_LABEL = "exePath"
_READ_WRITE_LABEL = "readWritePath"


class SettingsError(Exception):
    """Raised when settings are missing or incomplete."""

    pass


class InvalidPathError(SettingsError):
    """Raised when a setup path does not point at the expected file."""

    pass


def default_settings_path() -> Path:
    return Path(os.environ.get(SETTINGS_ENV_VAR) or SETTINGS_FILENAME)


@dataclass
class ServiceCredentials:
    """Mod portal login taken from player-data.json."""

    username: str = ""
    token: str = ""

    def __bool__(self) -> bool:
        return bool(self.username or self.token)

    def as_params(self) -> dict[str, str]:
        return {"username": self.username, "token": self.token}


@dataclass
class RuntimeSettings:
    """Paths to the game executable and its read/write data."""

    exe_path: str = ""
    read_write_path: str = ""

    @property
    def player_data_path(self) -> Path:
        if not self.read_write_path:
            raise SettingsError(
                f"Required path {_READ_WRITE_LABEL} is not specified. "
                "Please, launch setup: factorio-mod-tool setup"
            )
        return Path(self.read_write_path)

    @property
    def mods_path(self) -> Path:
        """The mods directory, next to player-data.json."""
        rw = self.read_write_path
        if not rw:
            raise SettingsError(
                f"Required path {_READ_WRITE_LABEL} is not specified. "
                "Please, launch setup: factorio-mod-tool setup"
            )
        if rw.endswith(PLAYER_DATA_FILENAME):
            rw = rw[: -len(PLAYER_DATA_FILENAME)]
        return Path(rw or ".") / MODS_DIRNAME

    def to_text(self) -> str:
        return f"{_EXE_LABEL}\n{self.exe_path}\n{_READ_WRITE_LABEL}\n{self.read_write_path}"


def read_settings(path: Path | None = None) -> RuntimeSettings:
    """Read the label/value settings file."""
    path = Path(path) if path else default_settings_path()
    if not path.exists():
        raise SettingsError(
            f"Settings file {path} is missing. Please, launch setup: factorio-mod-tool setup"
        )

    settings = RuntimeSettings()
    lines = path.read_text(encoding="utf-8").splitlines()
    i = 0
    while i < len(lines):
        label = lines[i].strip()
        value = lines[i + 1].strip() if i + 1 < len(lines) else ""
        if label == _EXE_LABEL:
            settings.exe_path = value
            i += 2
        elif label == _READ_WRITE_LABEL:
            settings.read_write_path = value
            i += 2
        else:
            i += 1
    return settings


def write_settings(settings: RuntimeSettings, path: Path | None = None) -> Path:
    path = Path(path) if path else default_settings_path()
    path.write_text(settings.to_text(), encoding="utf-8")
    return path


def validate_exe_path(value: str) -> str:
    return _validate_path(value, EXE_FILENAME)


def validate_read_write_path(value: str) -> str:
    return _validate_path(value, PLAYER_DATA_FILENAME)


def _validate_path(value: str, expected_name: str) -> str:
    value = value.strip()
    path = Path(value)
    if not value or path.name != expected_name or not path.is_file():
        raise InvalidPathError(
            f"Specified path {value or '(empty)'} does not end with expected {expected_name}."
        )
    return value


def read_credentials(player_data_path: Path) -> ServiceCredentials:
    """
    Read service credentials from player-data.json.

    A missing or unreadable file gives empty credentials.
    """
    try:
        with open(player_data_path, encoding="utf-8") as f:
            data = json.load(f)
    except (OSError, json.JSONDecodeError):
        return ServiceCredentials()

    if not isinstance(data, dict):
        return ServiceCredentials()

    username = data.get("service-username")
    token = data.get("service-token")
    return ServiceCredentials(
        username=username if isinstance(username, str) else "",
        token=token if isinstance(token, str) else "",
    )
