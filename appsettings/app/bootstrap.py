"""Settings wiring for the upload client.

The client builds one :class:`VersionedSettings` at startup and hands it to the
components that need it; nothing is reachable through a module-level global.
"""
from __future__ import annotations

import atexit
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import IO, Callable, Optional

from appsettings.core.codecs import DataclassCodec, ListOf
from appsettings.logging.config import configure_logging
from appsettings.services.app_identity import AppIdentity
from appsettings.services.settings_store import SettingsStore
from appsettings.services.versioned_settings import VersionedSettings

SERVERS_KEY = "servers.list"

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class UploadServer:
    url: str
    name: str
    connection_count: int = 0


SERVER_LIST = ListOf(DataclassCodec(UploadServer))

DEFAULT_SERVERS = (
    UploadServer(url="upload.dtronix.com", name="Dtronix Upload Test", connection_count=0),
)


def populate_upload_defaults(store: SettingsStore) -> None:
    store.get_or_set_default(SERVERS_KEY, list(DEFAULT_SERVERS), SERVER_LIST)


def build_settings(
    identity: AppIdentity,
    *,
    config_root: Path | None = None,
    attempt_upgrade: bool = True,
    populate_defaults: Callable[[VersionedSettings], None] = populate_upload_defaults,
) -> VersionedSettings:
    settings = VersionedSettings.for_identity(
        identity,
        populate_defaults,
        attempt_upgrade,
        config_root=config_root,
    )
    logger.info(
        "Settings ready",
        extra={
            "operation": "build_settings",
            "path": str(settings.path),
            "version": identity.version,
        },
    )
    return settings


def save_quietly(store: SettingsStore) -> bool:
    """Best-effort save for shutdown paths. Failures are logged, not raised."""
    try:
        return store.save()
    except OSError:
        logger.warning(
            "Settings could not be saved on exit",
            extra={"operation": "save_on_exit", "path": str(store.path)},
            exc_info=True,
        )
        return False


def register_exit_save(store: SettingsStore) -> Callable[[], None]:
    """Save ``store`` at interpreter exit. Returns a function that cancels it."""

    def _save() -> None:
        save_quietly(store)

    atexit.register(_save)
    return lambda: atexit.unregister(_save)


def start_client(
    distribution: str,
    *,
    config_root: Path | None = None,
    level: int = logging.INFO,
    log_stream: Optional[IO[str]] = None,
) -> VersionedSettings:
    """Startup sequence: logging, identity lookup, settings, exit-time save."""
    configure_logging(level=level, stream=log_stream)
    identity = AppIdentity.from_distribution(distribution)
    settings = build_settings(identity, config_root=config_root)
    register_exit_save(settings)
    return settings


__all__ = [
    "start_client",
    "SERVERS_KEY",
    "SERVER_LIST",
    "DEFAULT_SERVERS",
    "UploadServer",
    "populate_upload_defaults",
    "build_settings",
    "register_exit_save",
    "save_quietly",
]
