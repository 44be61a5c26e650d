"""Per-key change notification for the settings store."""
from __future__ import annotations

import itertools
import logging
import threading
from dataclasses import dataclass
from typing import Callable

ChangeCallback = Callable[[], None]

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class Subscription:
    """Opaque handle returned by :meth:`ChangeNotifier.subscribe`."""

    key: str
    token: int


class ChangeNotifier:
    """Ordered zero-argument callbacks keyed by setting name.

    Callbacks registered on one key run in registration order. Dicts keep
    insertion order, so each key maps token -> callback and removal is O(1).
    """

    def __init__(self) -> None:
        self._callbacks: dict[str, dict[int, ChangeCallback]] = {}
        self._tokens = itertools.count(1)
        self._lock = threading.Lock()

    def subscribe(self, key: str, callback: ChangeCallback) -> Subscription:
        with self._lock:
            token = next(self._tokens)
            self._callbacks.setdefault(key, {})[token] = callback
        return Subscription(key=key, token=token)

    def unsubscribe(self, subscription: Subscription) -> bool:
        """Remove a subscription. Returns False if it was not registered."""
        with self._lock:
            callbacks = self._callbacks.get(subscription.key)
            if not callbacks or subscription.token not in callbacks:
                return False
            del callbacks[subscription.token]
            if not callbacks:
                del self._callbacks[subscription.key]
            return True

    def subscriber_count(self, key: str) -> int:
        with self._lock:
            return len(self._callbacks.get(key, ()))

    def notify(self, key: str) -> None:
        with self._lock:
            callbacks = list(self._callbacks.get(key, {}).values())
        for callback in callbacks:
            try:
                callback()
            except Exception:
                logger.error(
                    "Change callback failed",
                    extra={"operation": "notify", "key": key},
                    exc_info=True,
                )


__all__ = ["ChangeCallback", "ChangeNotifier", "Subscription"]
