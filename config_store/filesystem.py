from __future__ import annotations

import os
import shutil
import stat
import tempfile
from pathlib import Path

DEFAULT_FILE_MODE = 0o644


class LocalFilesystem:
    """
    Local-disk implementation of the Filesystem capability.

    Writes go through a temp file in the target's directory and are moved into
    place with os.replace, so readers see either the old file or the new one.
    """

    def __init__(self, encoding: str = "utf-8"):
        self.encoding = encoding

    def exists(self, path: Path) -> bool:
        return path.exists()

    def is_writable(self, path: Path) -> bool:
        return os.access(path, os.W_OK)

    def read_text(self, path: Path) -> str:
        return path.read_text(encoding=self.encoding)

    def write_atomic(self, path: Path, content: str) -> None:
        path = Path(path)
        # keep a symlinked config a link; replace the file it points at
        if path.is_symlink():
            path = path.resolve()
        mode = stat.S_IMODE(path.stat().st_mode) if path.exists() else DEFAULT_FILE_MODE
        fd, tmp = tempfile.mkstemp(dir=path.parent, prefix=f".{path.name}.", suffix=".tmp")
        try:
            with os.fdopen(fd, "w", encoding=self.encoding) as f:
                f.write(content)
                f.flush()
                os.fsync(f.fileno())
            os.chmod(tmp, mode)
            os.replace(tmp, path)
        except BaseException:
            try:
                os.unlink(tmp)
            except FileNotFoundError:
                pass
            raise

    def copy(self, src: Path, dst: Path) -> None:
        shutil.copyfile(src, dst)
