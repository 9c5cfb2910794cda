from __future__ import annotations

import logging
import re
from collections.abc import Callable
from datetime import datetime
from pathlib import Path

from pydantic import BaseModel

from .errors import MissingConfig, NotWritable, PersistenceFailure
from .filesystem import LocalFilesystem
from .interfaces import Filesystem, LockFactory, Persister
from .locks import FlockLockFactory, lock_key

logger = logging.getLogger(__name__)

BACKUP_TIMESTAMP_FORMAT = "%Y-%m-%d_%H%M%S"
BACKUP_NAME_RE = re.compile(r"^\d{4}-\d{2}-\d{2}_\d{6}\.json$")


class BackupSnapshot(BaseModel):
    path: Path
    created_at: datetime

    @classmethod
    def from_path(cls, path: Path) -> BackupSnapshot | None:
        if not path.is_file() or not BACKUP_NAME_RE.match(path.name):
            return None
        try:
            created = datetime.strptime(path.stem, BACKUP_TIMESTAMP_FORMAT)
        except ValueError:
            return None
        return cls(path=path, created_at=created)


class FilePersister(Persister):
    """
    Loads and flushes a single configuration file.

    flush() runs: permission check, lock, backup, atomic replace. The lock is
    scoped to one call and released on every exit path. Backups are written to
    `backup_dir` as `YYYY-MM-DD_HHMMSS.json`; two flushes within the same second
    share a name and the later copy wins.
    """

    def __init__(
        self,
        filename: Path | str,
        backup_dir: Path | str | None = None,
        *,
        filesystem: Filesystem | None = None,
        locks: LockFactory | None = None,
        clock: Callable[[], datetime] | None = None,
    ):
        self._filename = Path(filename)
        self._backup_dir = Path(backup_dir) if backup_dir is not None else None
        self._fs = filesystem or LocalFilesystem()
        self._locks = locks or FlockLockFactory()
        self._clock = clock or datetime.now

    @property
    def filename(self) -> Path:
        return self._filename

    @property
    def backup_dir(self) -> Path | None:
        return self._backup_dir

    def load(self) -> str:
        try:
            missing = not self._fs.exists(self._filename)
            content = "" if missing else self._fs.read_text(self._filename).strip()
        except (OSError, UnicodeDecodeError) as exc:
            raise PersistenceFailure(
                self._filename,
                f'Unable to load the data from "{self._filename}"',
                cause=exc,
            ) from exc

        if missing:
            raise MissingConfig(self._filename, "missing")
        if not content:
            raise MissingConfig(self._filename, "empty")
        return content

    def flush(self, content: str) -> None:
        try:
            self._check_permissions()
            with self._locks.locked(lock_key(self._filename)):
                self.create_backup()
                self._fs.write_atomic(self._filename, content)
        except PersistenceFailure:
            raise
        except Exception as exc:
            raise PersistenceFailure(self._filename, cause=exc) from exc
        logger.info("Persisted %d characters to %s", len(content), self._filename)

    def create_backup(self) -> Path | None:
        """
        Copy the current file into the backup directory.

        Returns the snapshot path, or None when there was nothing to copy, no
        usable backup directory, or the copy failed.
        """
        if not self._fs.exists(self._filename):
            return None
        if self._backup_dir is None:
            return None
        if not self._fs.exists(self._backup_dir) or not self._fs.is_writable(self._backup_dir):
            logger.debug("Skipping backup of %s: %s is not a writable directory", self._filename, self._backup_dir)
            return None

        target = self._backup_dir / f"{self._clock().strftime(BACKUP_TIMESTAMP_FORMAT)}.json"
        try:
            self._fs.copy(self._filename, target)
        except Exception:
            logger.warning("Backup of %s to %s failed", self._filename, target, exc_info=True)
            return None
        logger.info("Backed up %s to %s", self._filename, target)
        return target

    def backups(self) -> list[BackupSnapshot]:
        if self._backup_dir is None or not self._backup_dir.is_dir():
            return []
        snapshots = [s for s in map(BackupSnapshot.from_path, self._backup_dir.iterdir()) if s is not None]
        return sorted(snapshots, key=lambda s: (s.created_at, s.path.name))

    def _check_permissions(self) -> None:
        if self._fs.exists(self._filename) and not self._fs.is_writable(self._filename):
            raise NotWritable(self._filename)
        # the replace creates a temp file next to the target
        parent = self._filename.parent
        if not self._fs.is_writable(parent):
            raise NotWritable(parent)
