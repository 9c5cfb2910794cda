from __future__ import annotations

from pathlib import Path


class ConfigStoreError(Exception):
    """Base class for every error raised by config_store."""


class MissingConfig(ConfigStoreError):
    """
    The configuration file is absent, or holds only whitespace.

    Callers usually recover by offering to create a fresh document.
    """

    def __init__(self, path: Path | str, reason: str = "missing"):
        self.path = Path(path)
        self.reason = reason
        super().__init__(f'Config file "{self.path}" is {reason}')


class PersistenceFailure(ConfigStoreError):
    """
    Umbrella error for anything that went wrong reading or persisting the target.

    `cause` mirrors `__cause__` when the failure wraps a lower-level error.
    """

    def __init__(self, path: Path | str, message: str | None = None, cause: BaseException | None = None):
        self.path = Path(path)
        self.cause = cause
        super().__init__(message or f'Unable to persist the data to "{self.path}"')


class NotWritable(PersistenceFailure):
    def __init__(self, path: Path | str):
        super().__init__(path, f'Path "{path}" is not writable.')


class LockUnavailable(PersistenceFailure):
    def __init__(self, path: Path | str, timeout: float | None = None):
        self.timeout = timeout
        if timeout:
            message = f'Cannot acquire lock for file "{path}" within {timeout:g}s'
        else:
            message = f'Cannot acquire lock for file "{path}"'
        super().__init__(path, message)
