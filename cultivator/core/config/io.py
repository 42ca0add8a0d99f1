from __future__ import annotations

import json
import os
import shutil
import tempfile
import time
from dataclasses import dataclass
from typing import Any, Dict, Optional, Tuple


@dataclass(frozen=True)
class ReadResult:
    ok: bool
    data: Dict[str, Any]
    error: Optional[str] = None


def _ts() -> str:
    return time.strftime("%Y%m%d_%H%M%S", time.gmtime())


def ensure_dirs(*dirs: str) -> None:
    for d in dirs:
        if d:
            os.makedirs(d, exist_ok=True)


def read_json_file(path: str) -> ReadResult:
    if not os.path.exists(path):
        return ReadResult(ok=False, data={}, error="missing")
    try:
        with open(path, "r", encoding="utf-8") as f:
            obj = json.load(f)
        if not isinstance(obj, dict):
            return ReadResult(ok=False, data={}, error="not_object")
        return ReadResult(ok=True, data=obj)
    except json.JSONDecodeError as e:
        return ReadResult(ok=False, data={}, error=f"corrupt_json:{e}")
    except OSError as e:
        return ReadResult(ok=False, data={}, error=str(e))


def atomic_write_bytes(path: str, data: bytes) -> None:
    ensure_dirs(os.path.dirname(path))
    fd, tmp = tempfile.mkstemp(prefix=".tmp_", dir=os.path.dirname(path) or ".")
    try:
        with os.fdopen(fd, "wb") as f:
            f.write(data)
            f.flush()
            os.fsync(f.fileno())
        os.replace(tmp, path)
    finally:
        try:
            if os.path.exists(tmp):
                os.remove(tmp)
        except OSError:
            pass


def atomic_write_json(path: str, data: Dict[str, Any]) -> None:
    body = json.dumps(data, indent=2, ensure_ascii=False, sort_keys=True) + "\n"
    atomic_write_bytes(path, body.encode("utf-8"))


def recover_from_corrupt(path: str, backups_dir: str, last_known_good_dir: str) -> Tuple[Dict[str, Any], bool]:
    """
    On corrupt JSON:
    - move corrupt file to backups/<name>.<ts>.corrupt.json
    - try restore from last_known_good/<name>.json
    Returns (data, recovered)
    """
    ensure_dirs(backups_dir, last_known_good_dir)
    if os.path.exists(path):
        base = os.path.basename(path)
        corrupt_path = os.path.join(backups_dir, f"{base}.{_ts()}.corrupt.json")
        shutil.move(path, corrupt_path)
    lkg_path = os.path.join(last_known_good_dir, os.path.basename(path))
    rr = read_json_file(lkg_path)
    if rr.ok:
        atomic_write_json(path, rr.data)
        return rr.data, True
    return {}, False


def snapshot_last_known_good(path: str, last_known_good_dir: str) -> None:
    ensure_dirs(last_known_good_dir)
    if os.path.isfile(path):
        shutil.copy2(path, os.path.join(last_known_good_dir, os.path.basename(path)))
