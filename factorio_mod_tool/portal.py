"""Mod portal URL parsing and identifier normalization."""

import re
from urllib.parse import unquote, urlparse

PORTAL_HOSTS = ("mods.factorio.com", "www.mods.factorio.com")
PORTAL_MOD_URL = "https://mods.factorio.com/mod/"


class ModIdentifierError(Exception):
    """Raised when a mod identifier cannot be turned into a mod name."""

    pass


def is_url(text: str) -> bool:
    return bool(re.match(r"^[a-zA-Z][a-zA-Z0-9+.-]*://", text))


def parse_mod_url(url: str) -> str:
    """
    Extract the mod name from a mod portal page URL.

    Supported formats:
        - https://mods.factorio.com/mod/{name}
        - Same with http, a trailing slash, ?query or #fragment,
          or an extra path segment such as /changelog

    Returns the URL-decoded mod name.
    """
    parsed = urlparse(url)

    if parsed.netloc.lower() not in PORTAL_HOSTS:
        raise ModIdentifierError(
            f"Invalid domain: {parsed.netloc}. Expected mods.factorio.com"
        )

    path_match = re.match(r"^/mod/([^/]+)", parsed.path)
    if not path_match:
        raise ModIdentifierError(
            f"Invalid mod URL format: {url}\n"
            f"Expected: {PORTAL_MOD_URL}{{name}}"
        )

    return unquote(path_match.group(1))


def normalize_mod_identifier(identifier: str) -> str:
    """Return the bare mod name for a name or a mod portal URL."""
    identifier = identifier.strip()
    if not identifier:
        raise ModIdentifierError("Empty mod identifier")
    if is_url(identifier):
        return parse_mod_url(identifier)
    return identifier
