from __future__ import annotations

from PySide6.QtCore import QObject, Signal

from appsettings.services.change_notifier import Subscription
from appsettings.services.settings_store import SettingsStore


class SettingsSignalBridge(QObject):
    """Re-emit settings store changes as a Qt signal.

    Store callbacks run on whichever thread called ``set``. Connect to
    ``value_changed`` with ``Qt.QueuedConnection`` to have the slot run on the
    thread that owns the receiver, typically the UI thread.
    """

    value_changed = Signal(str)

    def __init__(self, store: SettingsStore, parent: QObject | None = None) -> None:
        super().__init__(parent)
        self._store = store
        self._subscriptions: dict[str, Subscription] = {}

    def watch(self, key: str) -> None:
        name = key.lower()
        if name in self._subscriptions:
            return
        self._subscriptions[name] = self._store.subscribe(
            name, lambda: self.value_changed.emit(name)
        )

    def unwatch(self, key: str) -> bool:
        subscription = self._subscriptions.pop(key.lower(), None)
        if subscription is None:
            return False
        return self._store.unsubscribe(subscription)

    def watched_keys(self) -> list[str]:
        return list(self._subscriptions)

    def close(self) -> None:
        for subscription in self._subscriptions.values():
            self._store.unsubscribe(subscription)
        self._subscriptions.clear()


__all__ = ["SettingsSignalBridge"]
