# snaphost/core/cancel.py
from __future__ import annotations

import threading
import time
from typing import Callable, List, Optional


class CancelToken:
    """
    Cancellation / deadline signal threaded through blocking waits.

    A token is "cancelled" once cancel() has been called or its optional
    deadline has passed. Firing the token only stops further waiting; an
    HTTP request that is already in flight is not aborted.

    Waiters that block on something other than the token itself (e.g. the
    motion gate's condition variable) register a wake-up callback so that
    cancel() reaches them without polling.
    """

    def __init__(self, timeout_s: Optional[float] = None):
        self._event = threading.Event()
        self._lock = threading.Lock()
        self._callbacks: List[Callable[[], None]] = []
        self._deadline = (time.monotonic() + float(timeout_s)) if timeout_s is not None else None

    @classmethod
    def with_timeout(cls, timeout_s: float) -> "CancelToken":
        return cls(timeout_s=timeout_s)

    @property
    def cancelled(self) -> bool:
        if self._event.is_set():
            return True
        return self._deadline is not None and time.monotonic() >= self._deadline

    def remaining(self) -> Optional[float]:
        """Seconds until the deadline (0 when passed), or None without one."""
        if self._deadline is None:
            return None
        return max(0.0, self._deadline - time.monotonic())

    def cancel(self) -> None:
        with self._lock:
            if self._event.is_set():
                return
            self._event.set()
            callbacks = list(self._callbacks)

        for cb in callbacks:
            cb()

    def wait(self, timeout: Optional[float] = None) -> bool:
        """
        Sleep up to `timeout` seconds (bounded by the deadline).
        Returns True if the token is cancelled when the wait ends.
        """
        remaining = self.remaining()
        if remaining is not None:
            timeout = remaining if timeout is None else min(timeout, remaining)
        self._event.wait(timeout)
        return self.cancelled

    def add_callback(self, cb: Callable[[], None]) -> Callable[[], None]:
        """
        Register `cb` to run when cancel() is called. Returns an unregister
        function. Runs `cb` immediately if the token already fired.
        """
        with self._lock:
            fired = self._event.is_set()
            if not fired:
                self._callbacks.append(cb)

        if fired:
            cb()

        def _remove() -> None:
            with self._lock:
                if cb in self._callbacks:
                    self._callbacks.remove(cb)

        return _remove
