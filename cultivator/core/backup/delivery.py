from __future__ import annotations

import os
import time
from dataclasses import dataclass
from typing import List, Optional

from cultivator.core.config.io import atomic_write_bytes


@dataclass(frozen=True)
class BackupArtifact:
    path: str
    filename: str
    mime_type: str
    size_bytes: int


def backup_filename(*, prefix: str, extension: str, now: Optional[float] = None) -> str:
    day = time.strftime("%Y-%m-%d", time.gmtime(time.time() if now is None else now))
    return f"{prefix}-{day}{extension}"


def write_backup(*, out_dir: str, filename: str, data: bytes, mime_type: str) -> BackupArtifact:
    """
    Write the sealed container to out_dir/filename.
    The file only appears once fully written (temp file + os.replace).
    """
    path = os.path.join(out_dir, filename)
    atomic_write_bytes(path, data)
    return BackupArtifact(path=path, filename=filename, mime_type=mime_type, size_bytes=len(data))


def read_backup(path: str) -> bytes:
    with open(path, "rb") as f:
        return f.read()


def list_backup_files(directory: str, *, extension: str) -> List[str]:
    if not os.path.isdir(directory):
        return []
    items = [os.path.join(directory, f) for f in os.listdir(directory) if f.endswith(extension)]
    items.sort(key=lambda p: os.path.getmtime(p), reverse=True)
    return items
