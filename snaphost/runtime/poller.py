# snaphost/runtime/poller.py
from __future__ import annotations

import logging
import threading
from concurrent.futures import Future
from typing import Callable, Optional

from snaphost.core.errors import NotConnectedError


class BackgroundPoller(threading.Thread):
    """
    Periodically runs `refresh` until stopped.

    The outcome of the first refresh (None or the raised exception) is
    published once through `first_result`. Later failures are logged and
    the previous snapshots are left in place; polling continues.
    """

    def __init__(
        self,
        refresh: Callable[[], None],
        interval_s: float = 1.0,
        logger: Optional[logging.Logger] = None,
    ):
        super().__init__(daemon=True, name="snaphost-poller")
        self._refresh = refresh
        self._interval_s = float(interval_s)
        self._log = logger or logging.getLogger(__name__)
        self._stop_evt = threading.Event()
        self.first_result: Future = Future()
        self.failures = 0

    def stop(self, timeout: float = 2.0) -> None:
        self._stop_evt.set()
        if self.is_alive() and threading.current_thread() is not self:
            self.join(timeout=timeout)

    def run(self) -> None:
        self._log.debug("POLLER_START interval_s=%.3f", self._interval_s)
        try:
            self._loop()
        except BaseException as e:
            if not self.first_result.done():
                self.first_result.set_exception(e)
            raise
        self._log.debug("POLLER_STOP failures=%d", self.failures)

    def _loop(self) -> None:
        while not self._stop_evt.is_set():
            try:
                self._refresh()
            except Exception as e:
                if not self.first_result.done():
                    self.first_result.set_exception(e)
                elif self._stop_evt.is_set() or isinstance(e, NotConnectedError):
                    # Session is going away; not a refresh failure.
                    self._log.debug("POLL_REFRESH_SKIPPED err=%s", e)
                else:
                    self.failures += 1
                    self._log.warning("POLL_REFRESH_FAILED err=%s", e)
            else:
                if not self.first_result.done():
                    self.first_result.set_result(None)

            if self._stop_evt.wait(self._interval_s):
                break
