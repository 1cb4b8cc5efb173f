"""Zero-argument change notifications with disposable subscriptions."""

from __future__ import annotations

import logging
from typing import Callable, List

logger = logging.getLogger(__name__)

Listener = Callable[[], None]


class Subscription:
    """Handle returned by :meth:`ChangeSignal.subscribe`."""

    def __init__(self, signal: "ChangeSignal", listener: Listener) -> None:
        self._signal = signal
        self._listener = listener
        self._active = True

    @property
    def active(self) -> bool:
        return self._active

    def dispose(self) -> None:
        if not self._active:
            return
        self._active = False
        self._signal._remove(self._listener)


class ChangeSignal:
    """Fan-out of a parameterless event to any number of listeners."""

    def __init__(self) -> None:
        self._listeners: List[Listener] = []
        self._disposed = False

    @property
    def listener_count(self) -> int:
        return len(self._listeners)

    @property
    def disposed(self) -> bool:
        return self._disposed

    def subscribe(self, listener: Listener) -> Subscription:
        if self._disposed:
            raise RuntimeError("Cannot subscribe to a disposed signal")
        self._listeners.append(listener)
        return Subscription(self, listener)

    def fire(self) -> None:
        if self._disposed:
            return
        for listener in list(self._listeners):
            try:
                listener()
            except Exception:
                logger.exception("Change listener %r failed", listener)

    def dispose(self) -> None:
        self._listeners.clear()
        self._disposed = True

    def _remove(self, listener: Listener) -> None:
        try:
            self._listeners.remove(listener)
        except ValueError:
            pass
