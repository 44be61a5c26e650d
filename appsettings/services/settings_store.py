from __future__ import annotations

import logging
import os
import threading
from pathlib import Path
from typing import Any, Callable, Optional, TypeVar

from appsettings.core.codecs import JSON, Codec
from appsettings.core.errors import CodecError
from appsettings.services.change_notifier import ChangeCallback, ChangeNotifier, Subscription

T = TypeVar("T")
S = TypeVar("S", bound="SettingsStore")

PopulateDefaults = Callable[[Any], None]


class SettingsStore:
    """Thread-safe key/value settings persisted to a flat ``key=value`` file.

    Keys are case-insensitive and stored lowercase. Values are kept in their
    serialized form and decoded on read with the codec the caller selects.
    """

    def __init__(self, path: Path | str) -> None:
        self._path = Path(path)
        self._entries: dict[str, str] = {}
        self._modified = False
        self._lock = threading.RLock()
        self._io_lock = threading.RLock()
        self._notifier = ChangeNotifier()
        self._logger = logging.getLogger(__name__)

    @classmethod
    def open(cls: type[S], path: Path | str, populate_defaults: PopulateDefaults) -> S:
        """Load ``path``, or populate defaults and save when it does not exist."""
        store = cls(path)
        if store.path.exists():
            store.load()
        else:
            populate_defaults(store)
            store.save()
        return store

    @property
    def path(self) -> Path:
        return self._path

    @property
    def modified(self) -> bool:
        return self._modified

    # File I/O ------------------------------------------------------------
    def load(self) -> None:
        """Replace in-memory state with the contents of the settings file."""
        context = {"operation": "load", "path": str(self._path)}
        with self._io_lock:
            entries: dict[str, str] = {}
            try:
                # A damaged byte only spoils its own value, not the whole file.
                with self._path.open("r", encoding="utf-8", errors="replace") as handle:
                    for line in handle:
                        line = line.rstrip("\r\n")
                        key, sep, raw = line.partition("=")
                        if not sep:
                            continue
                        entries[key.lower()] = raw
            except OSError:
                self._logger.error("Settings load failed", extra=context, exc_info=True)
                raise
            with self._lock:
                self._entries = entries
                self._modified = False
        self._logger.debug("Settings loaded", extra={**context, "entries": len(entries)})

    reload = load

    def save(self) -> bool:
        """Write the settings file if anything changed. Returns True if written."""
        context = {"operation": "save", "path": str(self._path)}
        with self._io_lock:
            with self._lock:
                if not self._modified:
                    return False
                snapshot = dict(self._entries)
                self._modified = False
            tmp = self._path.with_name(self._path.name + ".tmp")
            try:
                self._path.parent.mkdir(parents=True, exist_ok=True)
                with tmp.open("w", encoding="utf-8", newline="\n") as handle:
                    for key, raw in snapshot.items():
                        handle.write(f"{key}={raw}\n")
                os.replace(tmp, self._path)
            except OSError:
                tmp.unlink(missing_ok=True)
                with self._lock:
                    self._modified = True
                self._logger.error("Settings save failed", extra=context, exc_info=True)
                raise
        self._logger.debug("Settings saved", extra={**context, "entries": len(snapshot)})
        return True

    # Values --------------------------------------------------------------
    def keys(self) -> list[str]:
        with self._lock:
            return list(self._entries)

    def has(self, key: str) -> bool:
        with self._lock:
            return key.lower() in self._entries

    def get(self, key: str, codec: Codec[T] = JSON) -> T:
        """Return the decoded value, or ``codec.zero`` if absent or unreadable."""
        found, value = self._decode(key.lower(), codec)
        return value if found else codec.zero

    def get_or_set_default(self, key: str, default: T, codec: Codec[T] = JSON) -> T:
        """Return the stored value, storing ``default`` first if there is none."""
        name = key.lower()
        with self._lock:
            found, value = self._decode(name, codec)
            if found:
                return value
            self._put(name, default, codec)
        self._notifier.notify(name)
        return default

    def set_if_empty(self, key: str, value: Any, codec: Codec[Any] = JSON) -> bool:
        """Store ``value`` only when the key is absent. Returns True if stored."""
        name = key.lower()
        with self._lock:
            if name in self._entries:
                return False
            self._put(name, value, codec)
        self._notifier.notify(name)
        return True

    def set(self, key: str, value: Any, codec: Codec[Any] = JSON) -> None:
        name = key.lower()
        with self._lock:
            self._put(name, value, codec)
        self._notifier.notify(name)

    # Change notification -------------------------------------------------
    def subscribe(self, key: str, callback: ChangeCallback) -> Subscription:
        return self._notifier.subscribe(key.lower(), callback)

    def unsubscribe(self, subscription: Subscription) -> bool:
        return self._notifier.unsubscribe(subscription)

    # Internal helpers ----------------------------------------------------
    def _decode(self, name: str, codec: Codec[T]) -> tuple[bool, Optional[T]]:
        with self._lock:
            raw = self._entries.get(name)
        if raw is None:
            return False, None
        try:
            return True, codec.decode(raw)
        except CodecError:
            self._logger.debug("Stored value unreadable", extra={"operation": "get", "key": name})
            return False, None

    def _put(self, name: str, value: Any, codec: Codec[Any]) -> None:
        if "=" in name or "\n" in name or "\r" in name:
            raise ValueError(f"Setting names may not contain '=' or line breaks: {name!r}")
        raw = codec.encode(value)
        if "\n" in raw or "\r" in raw:
            raise ValueError(f"Encoded value for {name!r} spans multiple lines")
        self._entries[name] = raw
        self._modified = True


__all__ = ["SettingsStore", "PopulateDefaults"]
