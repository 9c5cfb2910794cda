from __future__ import annotations

from contextlib import AbstractContextManager
from pathlib import Path
from typing import Protocol


class Persister(Protocol):
    """
    What callers see: raw text in, raw text out.
    """

    @property
    def filename(self) -> Path: ...

    def load(self) -> str:
        """Return the trimmed document; raises MissingConfig when there is none."""
        ...

    def flush(self, content: str) -> None:
        """Replace the document atomically, under an exclusive lock."""
        ...


class Filesystem(Protocol):
    def exists(self, path: Path) -> bool: ...

    def is_writable(self, path: Path) -> bool: ...

    def read_text(self, path: Path) -> str: ...

    def write_atomic(self, path: Path, content: str) -> None: ...

    def copy(self, src: Path, dst: Path) -> None: ...


class HeldLock(Protocol):
    key: str

    def release(self) -> None: ...


class LockFactory(Protocol):
    def acquire(self, key: str) -> HeldLock:
        """Obtain the exclusive lock for `key` or raise LockUnavailable."""
        ...

    def locked(self, key: str) -> AbstractContextManager[HeldLock]: ...
