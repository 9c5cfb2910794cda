from __future__ import annotations

import fcntl
import hashlib
import logging
import os
import tempfile
import threading
import time
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path

from .errors import LockUnavailable

logger = logging.getLogger(__name__)

DEFAULT_LOCK_TIMEOUT = 5.0
DEFAULT_POLL_INTERVAL = 0.05


class PathLockRegistry:
    """
    Provides a stable in-process lock per key to avoid global contention.
    """

    def __init__(self) -> None:
        self._guard = threading.Lock()
        self._locks: dict[str, threading.Lock] = {}

    def lock_for(self, key: str) -> threading.Lock:
        with self._guard:
            lock = self._locks.get(key)
            if lock is None:
                lock = threading.Lock()
                self._locks[key] = lock
            return lock


GLOBAL_PATH_LOCKS = PathLockRegistry()


def lock_key(path: Path | str) -> str:
    return str(Path(path).resolve())


class FlockLock:
    """
    A held lock: the per-key thread lock plus an flock'ed file descriptor.

    release() is idempotent.
    """

    def __init__(self, key: str, thread_lock: threading.Lock, fd: int):
        self.key = key
        self._thread_lock = thread_lock
        self._fd: int | None = fd

    @property
    def held(self) -> bool:
        return self._fd is not None

    def release(self) -> None:
        fd, self._fd = self._fd, None
        if fd is None:
            return
        try:
            fcntl.flock(fd, fcntl.LOCK_UN)
        finally:
            os.close(fd)
            self._thread_lock.release()
            logger.debug("Released lock for %s", self.key)


class FlockLockFactory:
    """
    Cross-process exclusive locks keyed by string.

    Threads of one process queue on a shared threading.Lock; processes (and
    hosts sharing the lock directory) queue on fcntl.flock over a lock file
    named after the SHA-256 of the key. Acquisition gives up after `timeout`
    seconds; a timeout of 0 fails immediately when the lock is busy.
    """

    def __init__(
        self,
        lock_dir: Path | str | None = None,
        *,
        timeout: float = DEFAULT_LOCK_TIMEOUT,
        poll_interval: float = DEFAULT_POLL_INTERVAL,
        registry: PathLockRegistry | None = None,
    ):
        self.lock_dir = Path(lock_dir) if lock_dir is not None else Path(tempfile.gettempdir())
        self.timeout = max(0.0, float(timeout))
        self.poll_interval = poll_interval
        self._registry = registry or GLOBAL_PATH_LOCKS

    def lock_path(self, key: str) -> Path:
        digest = hashlib.sha256(key.encode("utf-8")).hexdigest()
        return self.lock_dir / f"config-store-{digest}.lock"

    def acquire(self, key: str) -> FlockLock:
        deadline = time.monotonic() + self.timeout
        thread_lock = self._registry.lock_for(key)
        if self.timeout:
            acquired = thread_lock.acquire(timeout=self.timeout)
        else:
            acquired = thread_lock.acquire(blocking=False)
        if not acquired:
            raise LockUnavailable(key, self.timeout)

        try:
            self.lock_dir.mkdir(parents=True, exist_ok=True)
            fd = os.open(self.lock_path(key), os.O_RDWR | os.O_CREAT, 0o666)
        except BaseException:
            thread_lock.release()
            raise

        try:
            while True:
                try:
                    fcntl.flock(fd, fcntl.LOCK_EX | fcntl.LOCK_NB)
                    break
                except BlockingIOError:
                    remaining = deadline - time.monotonic()
                    if remaining <= 0:
                        raise LockUnavailable(key, self.timeout) from None
                    time.sleep(min(self.poll_interval, remaining))
        except BaseException:
            os.close(fd)
            thread_lock.release()
            raise

        logger.debug("Acquired lock for %s", key)
        return FlockLock(key, thread_lock, fd)

    @contextmanager
    def locked(self, key: str) -> Iterator[FlockLock]:
        lock = self.acquire(key)
        try:
            yield lock
        finally:
            lock.release()
