from __future__ import annotations

import os
import threading
import time
import uuid
from contextlib import contextmanager
from typing import Any, Callable, Dict, Iterator, List, Optional, Tuple, Union

from cultivator.core.backup.delivery import BackupArtifact, backup_filename, list_backup_files, read_backup, write_backup
from cultivator.core.backup.models import CURRENT_BACKUP_VERSION, BackupPayload
from cultivator.core.backup.quiesce import quiesce
from cultivator.core.backup.restorer import replay_payload
from cultivator.core.backup.verifier import verify_payload
from cultivator.core.config.models import BackupConfigFile
from cultivator.core.crypto import CryptoUnavailableError, InvalidPasswordOrCorruptFile, decrypt_data, encrypt_data
from cultivator.core.errors import BackupFailedError, BackupInProgressError, InvalidBackupFormatError, ReplayError, ValidationError


class BackupManager:
    """
    Encrypted backup/restore of the whole record store.

    create_backup raises on failure. restore_from_backup returns False for a wrong
    password, a damaged file or an unrecognised payload, and raises only for
    environment problems (CryptoUnavailableError), unreadable paths (OSError) and
    store write failures (ReplayError).
    """

    def __init__(
        self,
        *,
        cfg: Union[BackupConfigFile, Dict[str, Any], None],
        store: Any,
        root_dir: str = ".",
        logger=None,
        ops_logger: Any = None,
        clock: Callable[[], float] = time.time,
    ):
        if isinstance(cfg, BackupConfigFile):
            self.cfg = cfg
        else:
            self.cfg = BackupConfigFile.model_validate(cfg or {})
        self.store = store
        self.root_dir = root_dir
        self.logger = logger
        self.ops_logger = ops_logger
        self.clock = clock
        self._busy = threading.Lock()

    def default_dir(self) -> str:
        return os.path.join(self.root_dir, self.cfg.default_dir)

    def list_backups(self) -> List[str]:
        return list_backup_files(self.default_dir(), extension=self.cfg.file_extension)

    def build_payload(self) -> Dict[str, Any]:
        return self._snapshot()[0]

    def _snapshot(self) -> Tuple[Dict[str, Any], bool]:
        with quiesce(self.store) as qinfo:
            batches = list(self.store.list_batches())
            logs = list(self.store.list_logs())
            settings = self.store.get_settings()
        payload = BackupPayload(
            version=CURRENT_BACKUP_VERSION,
            timestamp=int(self.clock() * 1000),
            batches=batches,
            logs=logs,
            settings=settings,
        ).model_dump()
        return payload, bool(qinfo["store_paused"])

    def create_backup(self, password: str, *, out_dir: Optional[str] = None) -> BackupArtifact:
        if not self.cfg.enabled:
            raise ValidationError("Backups are disabled.")
        if not password:
            raise ValidationError("Password is required.")
        trace_id = uuid.uuid4().hex
        with self._exclusive("create"):
            t0 = time.time()
            try:
                payload, paused = self._snapshot()
                blob = encrypt_data(payload, password, iterations=self.cfg.kdf_iterations)
                del payload
                filename = backup_filename(prefix=self.cfg.filename_prefix, extension=self.cfg.file_extension, now=self.clock())
                artifact = write_backup(out_dir=out_dir or self.default_dir(), filename=filename, data=blob, mime_type=self.cfg.mime_type)
            except CryptoUnavailableError:
                self._ops(trace_id, "backup.create", "failed", {"reason": "crypto_unavailable"})
                raise
            except Exception as e:  # noqa: BLE001
                self._ops(trace_id, "backup.create", "failed", {"reason": "backup_failed", "error": type(e).__name__})
                if self.logger:
                    self.logger.error(f"Backup failed: {type(e).__name__}")
                raise BackupFailedError(error=type(e).__name__) from e

        self._ops(
            trace_id,
            "backup.create",
            "success",
            {"file": artifact.filename, "size_bytes": artifact.size_bytes, "store_paused": paused, "duration_ms": int((time.time() - t0) * 1000)},
        )
        if self.logger:
            self.logger.info(f"Backup written: {artifact.filename} ({artifact.size_bytes} bytes)")
        return artifact

    def restore_from_backup(self, file: Union[bytes, bytearray, str, "os.PathLike[str]"], password: str) -> bool:
        trace_id = uuid.uuid4().hex
        blob = bytes(file) if isinstance(file, (bytes, bytearray)) else read_backup(os.fspath(file))
        # Other writers stay paused from decrypt through reload; the replay runs on
        # this thread and passes through its own pause.
        with self._exclusive("restore"), quiesce(self.store) as qinfo:
            try:
                obj = decrypt_data(blob, password, iterations=self.cfg.kdf_iterations)
            except InvalidPasswordOrCorruptFile:
                self._ops(trace_id, "backup.restore", "failed", {"reason": "invalid_password_or_corrupt"})
                if self.logger:
                    self.logger.warning("Restore rejected: invalid password or corrupt file.")
                return False

            try:
                payload = self._verified(obj)
            except InvalidBackupFormatError as e:
                self._ops(trace_id, "backup.restore", "failed", {"reason": "invalid_format", "errors": e.context.get("errors")})
                if self.logger:
                    self.logger.warning("Restore rejected: invalid backup format.")
                return False

            try:
                res = replay_payload(self.store, payload, transactional=self.cfg.transactional_restore)
            except ReplayError as e:
                self._ops(trace_id, "backup.restore", "failed", {"reason": "replay_failed", **e.context})
                if self.logger:
                    self.logger.error(f"Restore failed during replay: {e.context}")
                raise

            if hasattr(self.store, "reload"):
                self.store.reload()
            paused = bool(qinfo["store_paused"])

        self._ops(
            trace_id,
            "backup.restore",
            "success",
            {
                "batches": res.batches,
                "logs": res.logs,
                "settings_replaced": res.settings_replaced,
                "transactional": res.transactional,
                "store_paused": paused,
            },
        )
        if self.logger:
            self.logger.info(f"Restore applied: {res.batches} batches, {res.logs} logs")
        return True

    # ---- helpers ----
    @staticmethod
    def _verified(obj: Any) -> Dict[str, Any]:
        vr = verify_payload(obj)
        if not vr.ok or vr.payload is None:
            raise InvalidBackupFormatError(errors=vr.errors[:10])
        return vr.payload

    @contextmanager
    def _exclusive(self, op: str) -> Iterator[None]:
        if not self._busy.acquire(blocking=False):
            raise BackupInProgressError(operation=op)
        try:
            yield
        finally:
            self._busy.release()

    def _ops(self, trace_id: str, event: str, outcome: str, details: Dict[str, Any]) -> None:
        if self.ops_logger is None:
            return
        try:
            self.ops_logger.log(trace_id=trace_id, event=event, outcome=outcome, details=details)
        except OSError:
            if self.logger:
                self.logger.warning(f"Ops log write failed for {event}")
