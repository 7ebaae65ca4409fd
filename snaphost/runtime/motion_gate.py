# snaphost/runtime/motion_gate.py
from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import Iterator, Optional

from snaphost.core.cancel import CancelToken
from snaphost.core.errors import CanceledError, NotConnectedError
from .state import SessionState


class MotionGate:
    """
    Admission gate for physical actuation.

    The machine has no command queue, so at most one motion / laser /
    capture command may be in flight per session. acquire() blocks until
    the session is connected and not busy, then marks it busy; release()
    clears busy and wakes the next waiter.

    Waiters block on the session condition variable, which is notified
    on release, on disconnect, and when the caller's cancel token fires.
    """

    def __init__(self, state: SessionState, logger: Optional[logging.Logger] = None):
        self._state = state
        self._log = logger or logging.getLogger(__name__)

    def acquire(self, cancel: Optional[CancelToken] = None) -> None:
        state = self._state
        remove_cb = None
        if cancel is not None:
            if cancel.cancelled:
                raise CanceledError("Motion request canceled before admission.")
            remove_cb = cancel.add_callback(self._wake_all)

        try:
            with state.cond:
                while True:
                    if cancel is not None and cancel.cancelled:
                        raise CanceledError("Motion request canceled while waiting for the machine.")
                    if not state.connected or state.closing:
                        raise NotConnectedError("Session is not connected.")
                    if not state.busy:
                        state.busy = True
                        self._log.debug("GATE_ACQUIRED")
                        return
                    # Bounded by the token deadline (a passed deadline fires
                    # no callback).
                    state.cond.wait(cancel.remaining() if cancel is not None else None)
        finally:
            if remove_cb is not None:
                remove_cb()

    def release(self) -> None:
        with self._state.cond:
            self._state.busy = False
            self._state.cond.notify_all()
        self._log.debug("GATE_RELEASED")

    @contextmanager
    def hold(self, cancel: Optional[CancelToken] = None) -> Iterator[None]:
        self.acquire(cancel)
        try:
            yield
        finally:
            self.release()

    def _wake_all(self) -> None:
        with self._state.cond:
            self._state.cond.notify_all()
