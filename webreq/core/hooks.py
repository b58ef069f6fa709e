from __future__ import annotations

import logging
from threading import Lock
from typing import Callable, List

from webreq.core.errors import WebReqError

log = logging.getLogger("webreq.client")

FailureListener = Callable[[WebReqError], None]


class FailureHooks:
    """Subscribers notified of every failed call on one client.

    Notification happens in addition to the call's own failure continuation,
    on the worker thread that observed the failure.

    - subscribe/unsubscribe: O(n)
    - notify: O(n) for n listeners
    """

    def __init__(self) -> None:
        self._listeners: List[FailureListener] = []
        self._lock = Lock()

    def subscribe(self, listener: FailureListener) -> FailureListener:
        """Add a listener. Returns it, so this also works as a decorator."""
        if not callable(listener):
            raise TypeError("failure listener must be callable")
        with self._lock:
            self._listeners.append(listener)
        return listener

    def unsubscribe(self, listener: FailureListener) -> bool:
        """Remove a listener; returns False if it was not subscribed."""
        with self._lock:
            try:
                self._listeners.remove(listener)
            except ValueError:
                return False
        return True

    def notify(self, error: WebReqError) -> int:
        """Deliver `error` to every listener; returns how many were called.

        A raising listener is logged and does not stop the others.
        """

        with self._lock:
            listeners = list(self._listeners)
        for listener in listeners:
            try:
                listener(error)
            except Exception:
                log.exception("failure_listener_error", extra={"error": type(error).__name__})
        return len(listeners)

    def __len__(self) -> int:
        with self._lock:
            return len(self._listeners)
