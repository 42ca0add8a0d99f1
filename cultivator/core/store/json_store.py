from __future__ import annotations

import copy
import threading
import uuid
from contextlib import contextmanager
from typing import Any, Dict, Iterator, List, Optional

from cultivator.core.backup.models import default_settings
from cultivator.core.config.io import atomic_write_json, read_json_file
from cultivator.core.store.interface import StoreWritesPausedError


STORE_VERSION = 1


def _empty() -> Dict[str, Any]:
    return {"store_version": STORE_VERSION, "batches": {}, "logs": {}, "settings": None}


def _record_id(rec: Dict[str, Any], kind: str) -> str:
    rid = rec.get("id") if isinstance(rec, dict) else None
    if not isinstance(rid, str) or not rid.strip():
        raise ValueError(f"{kind} record requires a non-empty string id.")
    return rid


class JsonRecordStore:
    """
    File-backed record store: one JSON document, rewritten atomically on every change.

    - batches/logs keyed by id (upsert overwrites)
    - settings fall back to the default grow setup, never None
    - transaction(): buffered writes, one atomic commit, rollback on exception
    - pause_writes()/resume_writes(token): reject writes from other threads while held
    """

    def __init__(self, path: str, *, logger=None):
        self.path = path
        self.logger = logger
        self._lock = threading.RLock()
        self._data: Optional[Dict[str, Any]] = None
        self._in_tx = False
        # pause token -> ident of the thread holding it
        self._pauses: Dict[str, int] = {}

    # ---- reads ----
    def list_batches(self) -> List[Dict[str, Any]]:
        with self._lock:
            return [copy.deepcopy(b) for b in self._loaded()["batches"].values()]

    def list_logs(self) -> List[Dict[str, Any]]:
        with self._lock:
            return [copy.deepcopy(x) for x in self._loaded()["logs"].values()]

    def get_logs(self, batch_id: Optional[str] = None) -> List[Dict[str, Any]]:
        logs = self.list_logs()
        if batch_id is None:
            return logs
        return [x for x in logs if x.get("plantBatchId") == batch_id]

    def get_latest_log(self, batch_id: str) -> Optional[Dict[str, Any]]:
        logs = self.get_logs(batch_id)
        if not logs:
            return None
        return max(logs, key=lambda x: x.get("timestamp") or 0)

    def get_settings(self) -> Dict[str, Any]:
        with self._lock:
            s = self._loaded().get("settings")
            return copy.deepcopy(s) if isinstance(s, dict) else default_settings()

    # ---- writes ----
    def upsert_batch(self, batch: Dict[str, Any]) -> None:
        rid = _record_id(batch, "batch")
        with self._write() as data:
            data["batches"][rid] = copy.deepcopy(batch)

    def upsert_log(self, log: Dict[str, Any]) -> None:
        rid = _record_id(log, "log")
        with self._write() as data:
            data["logs"][rid] = copy.deepcopy(log)

    def replace_settings(self, settings: Dict[str, Any]) -> None:
        if not isinstance(settings, dict):
            raise ValueError("settings must be an object.")
        with self._write() as data:
            data["settings"] = copy.deepcopy(settings)

    def delete_batch(self, batch_id: str) -> None:
        with self._write() as data:
            data["batches"].pop(batch_id, None)

    def delete_log(self, log_id: str) -> None:
        with self._write() as data:
            data["logs"].pop(log_id, None)

    # ---- coordination ----
    @contextmanager
    def transaction(self) -> Iterator["JsonRecordStore"]:
        with self._lock:
            if self._in_tx:
                raise RuntimeError("Nested transactions are not supported.")
            self._check_writable()
            before = copy.deepcopy(self._loaded())
            self._in_tx = True
            try:
                yield self
                self._in_tx = False
                self._persist()
            except BaseException:
                self._data = before
                if self.logger:
                    self.logger.warning(f"Record store transaction rolled back: {self.path}")
                raise
            finally:
                self._in_tx = False

    def pause_writes(self) -> str:
        """
        Block writes from every thread except the caller's until resume_writes(token).
        Pauses stack: writes reopen only after every token has been resumed.
        """
        with self._lock:
            tok = uuid.uuid4().hex
            self._pauses[tok] = threading.get_ident()
            return tok

    def resume_writes(self, token: str) -> None:
        with self._lock:
            self._pauses.pop(token, None)

    def writes_paused(self) -> bool:
        with self._lock:
            return bool(self._pauses)

    def reload(self) -> None:
        with self._lock:
            self._data = None
            self._loaded()

    # ---- internals ----
    def _loaded(self) -> Dict[str, Any]:
        if self._data is None:
            rr = read_json_file(self.path)
            if rr.ok:
                data = _empty()
                data["batches"] = dict(rr.data.get("batches") or {})
                data["logs"] = dict(rr.data.get("logs") or {})
                data["settings"] = rr.data.get("settings")
                self._data = data
            elif rr.error == "missing":
                self._data = _empty()
            else:
                raise OSError(f"Record store unreadable: {rr.error}")
        return self._data

    def _check_writable(self) -> None:
        me = threading.get_ident()
        if any(owner != me for owner in self._pauses.values()):
            raise StoreWritesPausedError("Record store writes are paused.")

    @contextmanager
    def _write(self) -> Iterator[Dict[str, Any]]:
        with self._lock:
            if not self._in_tx:
                self._check_writable()
            data = self._loaded()
            yield data
            if not self._in_tx:
                try:
                    self._persist()
                except OSError as e:
                    # memory ran ahead of disk; reread on next access
                    self._data = None
                    if self.logger:
                        self.logger.warning(f"Record store write failed ({type(e).__name__}): {self.path}")
                    raise

    def _persist(self) -> None:
        atomic_write_json(self.path, self._loaded())
