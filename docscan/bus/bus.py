import threading
from collections import deque
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

from docscan.logging.logger import Log


@dataclass(frozen=True)
class Notification:
    """One published state change: the whole snapshot, never a diff."""

    sequence: int
    reason: str
    snapshot: Any


Subscriber = Callable[[Notification], None]
Unsubscribe = Callable[[], None]


class NotificationBus:
    """Fan-out of consistent snapshots to subscribers.

    The snapshot is taken by the bound provider at publish time, after the
    publishing mutation has completed. Notifications are delivered to each
    subscriber in publish order. A publish issued from inside a subscriber
    callback is queued behind the one being delivered.
    """

    def __init__(self, snapshot_provider: Callable[[], Any] | None = None) -> None:
        self._provider = snapshot_provider
        self._subscribers: dict[int, Subscriber] = {}
        self._next_token = 0
        self._sequence = 0
        self._pending: deque[Notification] = deque()
        self._lock = threading.RLock()
        self._delivering = False

    def bind(self, snapshot_provider: Callable[[], Any]) -> None:
        self._provider = snapshot_provider

    @property
    def subscriber_count(self) -> int:
        with self._lock:
            return len(self._subscribers)

    def subscribe(self, callback: Subscriber) -> Unsubscribe:
        """Register ``callback``; returns a function that detaches it."""
        with self._lock:
            token = self._next_token
            self._next_token += 1
            self._subscribers[token] = callback

        def unsubscribe() -> None:
            with self._lock:
                self._subscribers.pop(token, None)

        return unsubscribe

    def publish(self, reason: str) -> Notification:
        with self._lock:
            self._sequence += 1
            snapshot = self._provider() if self._provider is not None else None
            notification = Notification(self._sequence, reason, snapshot)
            self._pending.append(notification)
            if self._delivering:
                return notification
            self._delivering = True
            try:
                while self._pending:
                    self._deliver(self._pending.popleft())
            finally:
                self._delivering = False
        return notification

    def _deliver(self, notification: Notification) -> None:
        for callback in list(self._subscribers.values()):
            try:
                callback(notification)
            except Exception as exc:
                Log.exception(
                    f"Subscriber failed on notification {notification.sequence} "
                    f"({notification.reason}): {exc}"
                )
