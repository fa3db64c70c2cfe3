"""Ordered publish/subscribe registry.

Callbacks run synchronously on the publishing thread, in subscription
order.  A callback that raises is logged and skipped; the remaining
subscribers still receive the item.
"""

from __future__ import annotations

import itertools
import logging
import threading
from dataclasses import dataclass
from typing import Callable, Generic, TypeVar

log = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass(frozen=True, slots=True)
class Subscription:
    """Handle returned by ``subscribe``; ``cancel()`` detaches the callback."""

    token: int
    registry: SubscriberRegistry

    def cancel(self) -> bool:
        return self.registry.unsubscribe(self.token)


class SubscriberRegistry(Generic[T]):
    def __init__(self, name: str) -> None:
        self.name = name
        self._lock = threading.Lock()
        self._seq = itertools.count(1)
        self._callbacks: dict[int, Callable[[T], None]] = {}

    def subscribe(self, callback: Callable[[T], None]) -> Subscription:
        if not callable(callback):
            raise TypeError(f"{self.name} subscriber must be callable, got {callback!r}")
        with self._lock:
            token = next(self._seq)
            self._callbacks[token] = callback
        log.debug("%s subscriber #%d registered", self.name, token)
        return Subscription(token=token, registry=self)

    def unsubscribe(self, token: int) -> bool:
        with self._lock:
            return self._callbacks.pop(token, None) is not None

    def __len__(self) -> int:
        with self._lock:
            return len(self._callbacks)

    def publish(self, item: T) -> int:
        """Deliver *item* to every subscriber; return how many succeeded."""
        with self._lock:
            callbacks = list(self._callbacks.items())
        delivered = 0
        for token, callback in callbacks:
            try:
                callback(item)
            except Exception:
                log.exception("%s subscriber #%d failed", self.name, token)
                continue
            delivered += 1
        return delivered
