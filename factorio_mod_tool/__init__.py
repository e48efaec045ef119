"""Factorio mod manager: install, remove, enable and disable mods."""

__version__ = "1.0.0"
