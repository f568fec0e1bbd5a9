"""In-memory pub/sub signal bus with per-frame flush semantics.

Wave and event notifications are queued while the core runs and delivered
when the host flushes, so subscribers never observe a half-applied
transition.
"""
from __future__ import annotations

from typing import Any, Callable

_Handler = Callable[[str, dict[str, Any]], None]


class SignalBus:

    def __init__(self) -> None:
        self._subscribers: dict[str, list[_Handler]] = {}
        self._catch_all: list[_Handler] = []
        self._queue: list[tuple[str, dict[str, Any]]] = []
        self._delivered = 0

    def subscribe(self, signal_name: str, handler: _Handler) -> None:
        self._subscribers.setdefault(signal_name, []).append(handler)

    def subscribe_all(self, handler: _Handler) -> None:
        """Receive every signal, after the named subscribers of each."""
        self._catch_all.append(handler)

    def unsubscribe(self, signal_name: str, handler: _Handler) -> None:
        handlers = self._subscribers.get(signal_name)
        if handlers and handler in handlers:
            handlers.remove(handler)

    def unsubscribe_all(self, handler: _Handler) -> None:
        if handler in self._catch_all:
            self._catch_all.remove(handler)

    def publish(self, signal_name: str, **data: Any) -> None:
        self._queue.append((signal_name, data))

    def flush(self) -> int:
        """Deliver queued signals in publish order. Returns how many were sent.

        Signals published by handlers during the flush stay queued for the
        next one.
        """
        batch, self._queue = self._queue, []
        for signal_name, data in batch:
            handlers = self._subscribers.get(signal_name, []) + self._catch_all
            for handler in handlers:
                handler(signal_name, data)
        self._delivered += len(batch)
        return len(batch)

    def pending(self) -> int:
        return len(self._queue)

    @property
    def delivered(self) -> int:
        return self._delivered

    def clear(self) -> None:
        self._queue.clear()
