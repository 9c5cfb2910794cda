from __future__ import annotations

from datetime import datetime, timedelta
from pathlib import Path
import sys


import pytest


# Ensure the repository root (parent of ./tests) is importable during pytest collection.
REPO_ROOT = Path(__file__).resolve().parents[1]
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))


class FakeClock:
    """
    Deterministic clock for backup names; advances only when told to.
    """

    def __init__(self, start: datetime):
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def tick(self, seconds: float = 1) -> None:
        self.now += timedelta(seconds=seconds)


@pytest.fixture
def config_file(tmp_path: Path) -> Path:
    d = tmp_path / "config"
    d.mkdir()
    return d / "satis.json"


@pytest.fixture
def backup_dir(tmp_path: Path) -> Path:
    d = tmp_path / "backups"
    d.mkdir()
    return d


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock(datetime(2024, 3, 9, 14, 5, 7))


@pytest.fixture
def lock_factory(tmp_path: Path):
    from config_store.locks import FlockLockFactory

    return FlockLockFactory(tmp_path / "locks", timeout=2.0, poll_interval=0.01)


@pytest.fixture
def persister(config_file: Path, backup_dir: Path, lock_factory, clock: FakeClock):
    from config_store.file_persister import FilePersister

    return FilePersister(config_file, backup_dir, locks=lock_factory, clock=clock)
