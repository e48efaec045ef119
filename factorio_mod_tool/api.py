"""Factorio mod portal API client."""

import os
from typing import Any
from urllib.parse import quote

import requests

from . import __version__

PORTAL_BASE_URL = "https://mods.factorio.com"


class ModPortalError(Exception):
    """Base exception for mod portal errors."""

    pass


class ModNotFound(ModPortalError):
    """Raised when the portal has no mod with the requested name."""

    pass


class ModPortalAPI:
    """Client for the mod portal's per-mod endpoints."""

    def __init__(self, base_url: str | None = None, session: requests.Session | None = None):
        self.base_url = (
            base_url or os.environ.get("FACTORIO_MOD_PORTAL_URL") or PORTAL_BASE_URL
        ).rstrip("/")
        self.session = session or requests.Session()
        self.session.headers.update({"User-Agent": f"factorio-mod-tool/{__version__}"})

    def _handle_response(self, response: requests.Response) -> dict[str, Any]:
        """Handle API response and raise appropriate errors."""
        if response.status_code == 404:
            raise ModNotFound(f"Mod not found: {response.url}")
        try:
            response.raise_for_status()
        except requests.HTTPError as e:
            raise ModPortalError(f"Portal request failed: {e}")
        try:
            data = response.json()
        except ValueError as e:
            raise ModPortalError(f"Invalid JSON from {response.url}: {e}")
        if not isinstance(data, dict):
            raise ModPortalError(f"Unexpected response from {response.url}: {data}")
        return data

    def url_for(self, path: str) -> str:
        """Join a portal-relative path onto the base URL with a single slash."""
        return f"{self.base_url}/{path.lstrip('/')}"

    def get_mod_full(self, name: str) -> dict[str, Any]:
        """
        Get full mod metadata, including every release.

        Returns the decoded JSON object of /api/mods/{name}/full.
        """
        url = self.url_for(f"api/mods/{quote(name, safe='')}/full")
        try:
            response = self.session.get(url)
        except requests.RequestException as e:
            raise ModPortalError(f"Could not reach mod portal for {name}: {e}")
        return self._handle_response(response)

    def latest_release(self, mod_data: dict[str, Any]) -> dict[str, Any]:
        """
        Pick the release to install.

        This is the last element of ``releases`` as the portal returns it;
        versions are not compared.
        """
        releases = mod_data.get("releases")
        if not isinstance(releases, list) or not releases:
            raise ModPortalError(f"No releases for {mod_data.get('name', 'mod')}")
        release = releases[-1]
        if (
            not isinstance(release, dict)
            or not release.get("download_url")
            or not release.get("file_name")
        ):
            raise ModPortalError(f"Malformed release entry: {release}")
        return release

    def get_latest_release(self, name: str) -> dict[str, Any]:
        return self.latest_release(self.get_mod_full(name))
