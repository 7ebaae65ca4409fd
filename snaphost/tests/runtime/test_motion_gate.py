from __future__ import annotations

import threading
import time

import pytest

from snaphost.core.cancel import CancelToken
from snaphost.core.errors import CanceledError, NotConnectedError
from snaphost.model.status import ConnectionResult
from snaphost.runtime.motion_gate import MotionGate
from snaphost.runtime.state import SessionState


def make_state() -> SessionState:
    conn = ConnectionResult(token="t", read_only=False, series="Snapmaker 2.0 A350", head_type=1, has_enclosure=False)
    return SessionState(base_url="http://fake:8080", token="t", conn=conn)


def _acquire_in_thread(gate: MotionGate, cancel=None):
    result = {}

    def run():
        try:
            gate.acquire(cancel)
            result["ok"] = True
        except Exception as e:
            result["err"] = e

    th = threading.Thread(target=run, daemon=True)
    th.start()
    return th, result


def test_acquire_marks_busy_and_release_clears():
    state = make_state()
    gate = MotionGate(state)

    gate.acquire()
    assert state.busy is True
    gate.release()
    assert state.busy is False


def test_second_acquire_blocks_until_release():
    state = make_state()
    gate = MotionGate(state)
    gate.acquire()

    th, result = _acquire_in_thread(gate)
    th.join(timeout=0.1)
    assert th.is_alive()
    assert result == {}

    gate.release()
    th.join(timeout=1.0)
    assert result == {"ok": True}
    assert state.busy is True


def test_only_one_holder_at_a_time():
    state = make_state()
    gate = MotionGate(state)
    holders = []
    max_holders = []
    lock = threading.Lock()

    def worker():
        for _ in range(20):
            with gate.hold():
                with lock:
                    holders.append(1)
                    max_holders.append(len(holders))
                time.sleep(0.0005)
                with lock:
                    holders.pop()

    threads = [threading.Thread(target=worker) for _ in range(4)]
    for t in threads:
        t.start()
    for t in threads:
        t.join(timeout=5.0)

    assert max(max_holders) == 1
    assert state.busy is False


def test_disconnect_wakes_waiter_with_not_connected():
    state = make_state()
    gate = MotionGate(state)
    gate.acquire()

    th, result = _acquire_in_thread(gate)
    time.sleep(0.02)
    state.mark_disconnected()
    th.join(timeout=1.0)

    assert isinstance(result.get("err"), NotConnectedError)


def test_cancel_wakes_waiter():
    state = make_state()
    gate = MotionGate(state)
    gate.acquire()
    cancel = CancelToken()

    th, result = _acquire_in_thread(gate, cancel)
    time.sleep(0.02)
    cancel.cancel()
    th.join(timeout=1.0)

    assert isinstance(result.get("err"), CanceledError)
    # the holder keeps the gate
    assert state.busy is True


def test_deadline_expires_while_waiting():
    state = make_state()
    gate = MotionGate(state)
    gate.acquire()

    t0 = time.monotonic()
    with pytest.raises(CanceledError):
        gate.acquire(CancelToken(timeout_s=0.05))
    assert time.monotonic() - t0 < 1.0


def test_already_cancelled_token_leaves_busy_untouched():
    state = make_state()
    gate = MotionGate(state)
    cancel = CancelToken()
    cancel.cancel()

    with pytest.raises(CanceledError):
        gate.acquire(cancel)
    assert state.busy is False


def test_cancel_checked_before_connection():
    state = make_state()
    state.mark_disconnected()
    gate = MotionGate(state)
    cancel = CancelToken()
    cancel.cancel()

    with pytest.raises(CanceledError):
        gate.acquire(cancel)


def test_disconnected_session_refuses_acquire():
    state = make_state()
    state.mark_disconnected()

    with pytest.raises(NotConnectedError):
        MotionGate(state).acquire()


def test_hold_releases_on_error():
    state = make_state()
    gate = MotionGate(state)

    with pytest.raises(RuntimeError):
        with gate.hold():
            raise RuntimeError("boom")
    assert state.busy is False


def test_closing_wakes_waiter_and_refuses_new_acquire():
    state = make_state()
    gate = MotionGate(state)
    gate.acquire()

    th, result = _acquire_in_thread(gate)
    time.sleep(0.02)
    assert state.begin_closing() is True
    th.join(timeout=1.0)

    assert isinstance(result.get("err"), NotConnectedError)
    assert state.begin_closing() is False
    gate.release()
    with pytest.raises(NotConnectedError):
        gate.acquire()
