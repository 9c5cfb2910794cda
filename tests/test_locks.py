from __future__ import annotations

import fcntl
import os
import threading
import time

import pytest

from config_store.errors import LockUnavailable
from config_store.locks import FlockLockFactory, PathLockRegistry, lock_key


def test_registry_returns_same_lock_per_key():
    registry = PathLockRegistry()
    assert registry.lock_for("a") is registry.lock_for("a")
    assert registry.lock_for("a") is not registry.lock_for("b")


def test_lock_key_normalizes_paths(tmp_path):
    assert lock_key(tmp_path / "x" / ".." / "satis.json") == lock_key(tmp_path / "satis.json")


def test_acquire_and_release(tmp_path):
    locks = FlockLockFactory(tmp_path / "locks", timeout=0)

    lock = locks.acquire("k")
    assert lock.held
    assert locks.lock_path("k").exists()
    lock.release()
    lock.release()
    assert not lock.held

    locks.acquire("k").release()


def test_busy_lock_fails_fast(tmp_path):
    locks = FlockLockFactory(tmp_path / "locks", timeout=0)

    with locks.locked("k"):
        with pytest.raises(LockUnavailable):
            locks.acquire("k")

    # other keys are independent
    with locks.locked("k"):
        locks.acquire("other").release()


def test_waiter_gets_lock_once_released(tmp_path):
    locks = FlockLockFactory(tmp_path / "locks", timeout=2.0, poll_interval=0.01)
    held = locks.acquire("k")

    def release_later():
        time.sleep(0.1)
        held.release()

    t = threading.Thread(target=release_later)
    t.start()
    started = time.monotonic()
    with locks.locked("k") as lock:
        assert lock.held
    t.join()
    assert time.monotonic() - started >= 0.05


def test_lock_held_by_another_process_times_out(tmp_path):
    locks = FlockLockFactory(tmp_path / "locks", timeout=0.2, poll_interval=0.01)
    path = locks.lock_path("k")
    path.parent.mkdir(parents=True)

    # a separate open file description conflicts the same way another process would
    fd = os.open(path, os.O_RDWR | os.O_CREAT)
    try:
        fcntl.flock(fd, fcntl.LOCK_EX)
        started = time.monotonic()
        with pytest.raises(LockUnavailable) as exc:
            locks.acquire("k")
        assert time.monotonic() - started >= 0.2
        assert exc.value.timeout == 0.2
    finally:
        fcntl.flock(fd, fcntl.LOCK_UN)
        os.close(fd)

    # the in-process lock was given back on timeout
    locks.acquire("k").release()


def test_locked_releases_on_error(tmp_path):
    locks = FlockLockFactory(tmp_path / "locks", timeout=0)

    with pytest.raises(RuntimeError):
        with locks.locked("k"):
            raise RuntimeError("boom")

    locks.acquire("k").release()


def test_interrupted_wait_gives_the_lock_back(tmp_path, monkeypatch):
    locks = FlockLockFactory(tmp_path / "locks", timeout=1.0, poll_interval=0.01)
    path = locks.lock_path("k")
    path.parent.mkdir(parents=True)

    def interrupted(seconds):
        raise KeyboardInterrupt

    fd = os.open(path, os.O_RDWR | os.O_CREAT)
    try:
        fcntl.flock(fd, fcntl.LOCK_EX)
        with monkeypatch.context() as m:
            m.setattr("config_store.locks.time.sleep", interrupted)
            with pytest.raises(KeyboardInterrupt):
                locks.acquire("k")
    finally:
        fcntl.flock(fd, fcntl.LOCK_UN)
        os.close(fd)

    FlockLockFactory(tmp_path / "locks", timeout=0).acquire("k").release()
