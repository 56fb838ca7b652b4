"""
On-change notification channel.

Owners push snapshots, consumers subscribe:

    unsubscribe = session.changes.subscribe(lambda change: router.go(change.redirect))
    ...
    unsubscribe()
"""

from __future__ import annotations

from collections.abc import Callable

import structlog

logger = structlog.get_logger(__name__)

type Listener[T] = Callable[[T], None]


class Channel[T]:
    """Synchronous fan-out of events to subscribers, in subscription order."""

    __slots__ = ("_name", "_listeners")

    def __init__(self, name: str) -> None:
        self._name = name
        self._listeners: list[Listener[T]] = []

    def subscribe(self, listener: Listener[T]) -> Callable[[], None]:
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def emit(self, event: T) -> None:
        # A failing listener must not stop the owner's state transition
        for listener in tuple(self._listeners):
            try:
                listener(event)
            except Exception:
                logger.exception("listener_failed", channel=self._name)

    def __len__(self) -> int:
        return len(self._listeners)


__all__ = ("Channel", "Listener")
