from __future__ import annotations

import logging
import threading
from typing import Callable, Dict, Generic, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")


class Broadcast(Generic[T]):
    """
    Holds the last published value and pushes every new one to subscribers.

    A new subscriber is called immediately with the current value.
    `subscribe` returns a function that ends the subscription.
    """

    def __init__(self, name: str, initial: T):
        self.name = name
        self._value = initial
        self._lock = threading.RLock()
        self._subscribers: Dict[int, Callable[[T], None]] = {}
        self._next_id = 0

    @property
    def value(self) -> T:
        with self._lock:
            return self._value

    def subscribe(self, callback: Callable[[T], None]) -> Callable[[], None]:
        with self._lock:
            sub_id = self._next_id
            self._next_id += 1
            self._subscribers[sub_id] = callback
            current = self._value
        self._notify(callback, current)

        def unsubscribe() -> None:
            with self._lock:
                self._subscribers.pop(sub_id, None)

        return unsubscribe

    def publish(self, value: T) -> None:
        with self._lock:
            self._value = value
            callbacks = list(self._subscribers.values())
        for callback in callbacks:
            self._notify(callback, value)

    def _notify(self, callback: Callable[[T], None], value: T) -> None:
        try:
            callback(value)
        except Exception:
            logger.exception("Subscriber of %s failed", self.name)
