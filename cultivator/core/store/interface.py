from __future__ import annotations

from typing import Any, Dict, List, Protocol, runtime_checkable


@runtime_checkable
class RecordStore(Protocol):
    """
    Key-value persistence for batches, grow logs and settings.

    Batches and logs are upserted by their `id`. Optional extras detected by callers:
    transaction(), pause_writes()/resume_writes(token), reload().
    """

    def list_batches(self) -> List[Dict[str, Any]]: ...

    def list_logs(self) -> List[Dict[str, Any]]: ...

    def get_settings(self) -> Dict[str, Any]: ...

    def upsert_batch(self, batch: Dict[str, Any]) -> None: ...

    def upsert_log(self, log: Dict[str, Any]) -> None: ...

    def replace_settings(self, settings: Dict[str, Any]) -> None: ...

    def delete_batch(self, batch_id: str) -> None: ...

    def delete_log(self, log_id: str) -> None: ...


class StoreWritesPausedError(RuntimeError):
    pass
