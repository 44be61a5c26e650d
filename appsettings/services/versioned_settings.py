from __future__ import annotations

import logging
import shutil
from pathlib import Path
from typing import TYPE_CHECKING, Callable, Optional

from appsettings.core.version import VersionToken
from appsettings.lib.paths import SETTINGS_FILENAME, settings_base_dir
from appsettings.services.settings_store import SettingsStore

if TYPE_CHECKING:
    from appsettings.services.app_identity import AppIdentity


class VersionedSettings(SettingsStore):
    """Settings stored per application version, carried over on upgrade.

    The file lives at ``<root>/<vendor>/<product>/<version>/settings``. The
    first time a version runs, the newest older version's file is copied in
    (when ``attempt_upgrade`` is set) and ``populate_defaults`` fills in
    whatever is still missing. ``populate_defaults`` should only use
    ``get_or_set_default``/``set_if_empty`` so it never clobbers migrated values.
    """

    def __init__(
        self,
        vendor: str,
        product_title: str,
        version: str,
        populate_defaults: Callable[["VersionedSettings"], None],
        attempt_upgrade: bool = True,
        *,
        config_root: Path | None = None,
    ) -> None:
        self._base_path = settings_base_dir(vendor, product_title, config_root)
        self._version = version
        super().__init__(self._base_path / version / SETTINGS_FILENAME)
        self._logger = logging.getLogger(__name__)

        context = {"operation": "open_settings", "path": str(self.path), "version": version}
        if self.path.exists():
            self.load()
            self._logger.info("Settings opened", extra=context)
            return

        self._logger.info("No settings for this version", extra=context)
        self.version_dir.mkdir(parents=True, exist_ok=True)
        if attempt_upgrade:
            self.upgrade(overwrite=False)
        populate_defaults(self)
        self.save()

    @classmethod
    def for_identity(
        cls,
        identity: "AppIdentity",
        populate_defaults: Callable[["VersionedSettings"], None],
        attempt_upgrade: bool = True,
        *,
        config_root: Path | None = None,
    ) -> "VersionedSettings":
        return cls(
            identity.vendor,
            identity.product_title,
            identity.version,
            populate_defaults,
            attempt_upgrade,
            config_root=config_root,
        )

    @property
    def base_path(self) -> Path:
        return self._base_path

    @property
    def version(self) -> str:
        return self._version

    @property
    def version_dir(self) -> Path:
        return self._base_path / self._version

    @property
    def settings_file(self) -> Path:
        return self.path

    def previous_versions(self) -> list[VersionToken]:
        """Return the sibling version directories older than this one, ascending."""
        return [version for version, _ in self._previous_version_dirs()]

    def _previous_version_dirs(self) -> list[tuple[VersionToken, Path]]:
        current = VersionToken.try_parse(self._version)
        if current is None or not self._base_path.is_dir():
            return []
        found: list[tuple[VersionToken, Path]] = []
        for entry in self._base_path.iterdir():
            if not entry.is_dir():
                continue
            version = VersionToken.try_parse(entry.name)
            if version is not None and version < current:
                found.append((version, entry))
        found.sort(key=lambda item: (item[0], item[1].name))
        return found

    def upgrade(self, overwrite: bool = False) -> bool:
        """Copy the newest older version's settings into this version.

        Returns True when a file was copied and reloaded. Never replaces an
        existing settings file unless ``overwrite`` is set.
        """
        context = {"operation": "upgrade", "path": str(self.path), "version": self._version}
        with self._io_lock:
            if not overwrite and self.path.exists():
                self._logger.debug("Settings already exist, upgrade skipped", extra=context)
                return False

            source = self._upgrade_source()
            if source is None:
                self._logger.info("No previous settings to upgrade from", extra=context)
                return False

            context["from_path"] = str(source)
            self._logger.info("Upgrading settings", extra=context)
            try:
                self.version_dir.mkdir(parents=True, exist_ok=True)
                shutil.copyfile(source, self.path)
            except OSError:
                self._logger.error("Settings upgrade failed", extra=context, exc_info=True)
                raise
            self.load()
        self._logger.info("Settings upgrade complete", extra=context)
        return True

    def _upgrade_source(self) -> Optional[Path]:
        previous = self._previous_version_dirs()
        if not previous:
            return None
        # Only the newest older version is considered; older ones are not a fallback.
        candidate = previous[-1][1] / SETTINGS_FILENAME
        if not candidate.is_file():
            return None
        return candidate


__all__ = ["VersionedSettings"]
