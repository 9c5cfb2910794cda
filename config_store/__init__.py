from __future__ import annotations

from .documents import JsonDocumentStore
from .errors import ConfigStoreError, LockUnavailable, MissingConfig, NotWritable, PersistenceFailure
from .file_persister import BackupSnapshot, FilePersister
from .filesystem import LocalFilesystem
from .interfaces import Filesystem, LockFactory, Persister
from .locks import FlockLockFactory
from .repositories import AsyncFilePersister
from .settings import Settings, create_persister, get_settings

__all__ = [
    "AsyncFilePersister",
    "BackupSnapshot",
    "ConfigStoreError",
    "FilePersister",
    "Filesystem",
    "FlockLockFactory",
    "JsonDocumentStore",
    "LocalFilesystem",
    "LockFactory",
    "LockUnavailable",
    "MissingConfig",
    "NotWritable",
    "PersistenceFailure",
    "Persister",
    "Settings",
    "create_persister",
    "get_settings",
]
