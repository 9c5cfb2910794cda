from __future__ import annotations

import asyncio
from pathlib import Path

from .file_persister import BackupSnapshot, FilePersister


class AsyncFilePersister:
    """
    Async wrapper around FilePersister.
    Uses asyncio.to_thread to avoid blocking the event loop on file I/O and lock waits.
    """

    def __init__(self, persister: FilePersister) -> None:
        self._persister = persister

    @property
    def filename(self) -> Path:
        return self._persister.filename

    async def load(self) -> str:
        return await asyncio.to_thread(self._persister.load)

    async def flush(self, content: str) -> None:
        await asyncio.to_thread(self._persister.flush, content)

    async def backups(self) -> list[BackupSnapshot]:
        return await asyncio.to_thread(self._persister.backups)
