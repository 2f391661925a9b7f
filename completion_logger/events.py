"""
Completion channel on a response: one-shot listeners for "finish" and "close".
"""

from __future__ import annotations

import threading
from typing import Callable, Dict, List

FINISH = "finish"
CLOSE = "close"

Listener = Callable[[], None]


class ResponseEvents:
    """
    Minimal one-shot event registry.

    Listeners are removed before they are called, so a listener fires at most
    once per registration. Exceptions raised by a listener propagate to the
    caller of emit().
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._listeners: Dict[str, List[Listener]] = {}

    def once(self, event: str, listener: Listener) -> None:
        with self._lock:
            self._listeners.setdefault(event, []).append(listener)

    def remove_listener(self, event: str, listener: Listener) -> None:
        with self._lock:
            listeners = self._listeners.get(event)
            if listeners and listener in listeners:
                listeners.remove(listener)

    def listener_count(self, event: str) -> int:
        with self._lock:
            return len(self._listeners.get(event, ()))

    def emit(self, event: str) -> bool:
        """
        Fire and drop every listener registered for the event.

        Returns True if there was at least one listener.
        """
        with self._lock:
            listeners = self._listeners.pop(event, [])
        for listener in listeners:
            listener()
        return bool(listeners)
