"""Paths utilities for versioned settings

- Resolves the user-scope configuration root for the current platform
- Provides the canonical ``<root>/<vendor>/<product>/<version>/settings`` layout
"""
from __future__ import annotations

import os
from pathlib import Path

SETTINGS_FILENAME = "settings"


def get_platform_config_root() -> Path:
    """Return the user-scope configuration root.

    Windows uses %APPDATA% (Roaming), falling back to ~/AppData/Roaming if
    unset. Other platforms use $XDG_CONFIG_HOME, falling back to ~/.config.
    """
    if os.name == "nt":
        appdata = os.getenv("APPDATA")
        if appdata:
            return Path(appdata)
        return Path.home() / "AppData" / "Roaming"
    xdg = os.getenv("XDG_CONFIG_HOME")
    if xdg:
        return Path(xdg)
    return Path.home() / ".config"


def settings_base_dir(vendor: str, product_title: str, root: Path | None = None) -> Path:
    """Return the directory holding one subdirectory per installed version."""
    base = root if root is not None else get_platform_config_root()
    return Path(base) / vendor / product_title


def versioned_settings_path(
    vendor: str,
    product_title: str,
    version: str,
    root: Path | None = None,
) -> Path:
    """Return the settings file path for one version of the product."""
    return settings_base_dir(vendor, product_title, root) / version / SETTINGS_FILENAME


__all__ = [
    "SETTINGS_FILENAME",
    "get_platform_config_root",
    "settings_base_dir",
    "versioned_settings_path",
]
