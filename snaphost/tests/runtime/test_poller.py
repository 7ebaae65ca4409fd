from __future__ import annotations

import logging
import time

import pytest

from snaphost.core.errors import NotConnectedError
from snaphost.runtime.poller import BackgroundPoller


class FakeRefresher:
    def __init__(self, fail_on=()):
        self.calls = 0
        self.fail_on = set(fail_on)

    def __call__(self):
        self.calls += 1
        if self.calls in self.fail_on:
            raise RuntimeError(f"boom {self.calls}")


def _wait_for(pred, timeout=1.0):
    deadline = time.time() + timeout
    while not pred() and time.time() < deadline:
        time.sleep(0.005)


def test_first_result_delivered():
    r = FakeRefresher()
    p = BackgroundPoller(r, interval_s=0.01)
    p.start()
    try:
        assert p.first_result.result(timeout=1.0) is None
    finally:
        p.stop()
    assert not p.is_alive()


def test_first_failure_delivered_as_exception():
    r = FakeRefresher(fail_on={1})
    p = BackgroundPoller(r, interval_s=0.01)
    p.start()
    try:
        with pytest.raises(RuntimeError, match="boom 1"):
            p.first_result.result(timeout=1.0)
    finally:
        p.stop()


def test_later_failures_logged_and_polling_continues(caplog):
    r = FakeRefresher(fail_on={2, 3})
    p = BackgroundPoller(r, interval_s=0.005, logger=logging.getLogger("test.poller"))

    with caplog.at_level(logging.WARNING, logger="test.poller"):
        p.start()
        _wait_for(lambda: r.calls >= 5)
        p.stop()

    assert r.calls >= 5
    assert p.failures == 2
    assert "POLL_REFRESH_FAILED" in caplog.text
    assert p.first_result.result(timeout=0) is None


def test_stop_terminates_promptly_during_long_interval():
    r = FakeRefresher()
    p = BackgroundPoller(r, interval_s=30.0)
    p.start()
    p.first_result.result(timeout=1.0)

    t0 = time.monotonic()
    p.stop(timeout=1.0)
    assert not p.is_alive()
    assert time.monotonic() - t0 < 1.0
    assert r.calls == 1


class Abort(BaseException):
    pass


@pytest.mark.filterwarnings("ignore::pytest.PytestUnhandledThreadExceptionWarning")
def test_base_exception_on_first_refresh_still_delivered():
    def refresh():
        raise Abort()

    p = BackgroundPoller(refresh, interval_s=0.01)
    p.start()
    with pytest.raises(Abort):
        p.first_result.result(timeout=1.0)
    p.join(timeout=1.0)
    assert not p.is_alive()


def test_not_connected_after_first_refresh_is_not_a_failure(caplog):
    calls = []

    def refresh():
        calls.append(1)
        if len(calls) > 1:
            raise NotConnectedError("gone")

    p = BackgroundPoller(refresh, interval_s=0.005, logger=logging.getLogger("test.poller"))
    with caplog.at_level(logging.WARNING, logger="test.poller"):
        p.start()
        _wait_for(lambda: len(calls) >= 3)
        p.stop()

    assert p.failures == 0
    assert "POLL_REFRESH_FAILED" not in caplog.text
