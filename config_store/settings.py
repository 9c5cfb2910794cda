from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv

from .file_persister import FilePersister
from .locks import DEFAULT_LOCK_TIMEOUT, FlockLockFactory


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        return float(raw)
    except ValueError:
        raise ValueError(f"{name} must be a number of seconds, got {raw!r}") from None


def _env_path(name: str) -> Path | None:
    raw = (os.getenv(name) or "").strip()
    return Path(raw) if raw else None


@dataclass(frozen=True)
class Settings:
    config_file: Path
    # None disables backups
    backup_dir: Path | None
    lock_timeout: float
    # None means the system temp dir
    lock_dir: Path | None


def get_settings(env_file: str | os.PathLike[str] | None = None) -> Settings:
    if env_file is not None:
        load_dotenv(env_file)

    config_file = _env_path("CONFIG_STORE_FILE") or Path("satis.json")

    return Settings(
        config_file=config_file,
        backup_dir=_env_path("CONFIG_STORE_BACKUP_DIR"),
        lock_timeout=_env_float("CONFIG_STORE_LOCK_TIMEOUT", DEFAULT_LOCK_TIMEOUT),
        lock_dir=_env_path("CONFIG_STORE_LOCK_DIR"),
    )


def create_persister(settings: Settings | None = None, *, env_file: str | os.PathLike[str] | None = None) -> FilePersister:
    s = settings or get_settings(env_file)
    locks = FlockLockFactory(s.lock_dir, timeout=s.lock_timeout)
    return FilePersister(s.config_file, s.backup_dir, locks=locks)
