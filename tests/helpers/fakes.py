from __future__ import annotations

import copy
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from cultivator.core.backup.models import default_settings


class FakeClock:
    def __init__(self, start: float = 1_700_000_000.0):
        self._t = float(start)

    def time(self) -> float:
        return self._t

    def advance(self, seconds: float) -> None:
        self._t += float(seconds)


@dataclass
class FakeRecordStore:
    """
    In-memory record store. No transaction() and no pause_writes(), so replay
    against it is the plain, non-transactional path.

    fail_on: {"upsert_log": 2} raises on the 2nd upsert_log call.
    """

    batches: Dict[str, Dict[str, Any]] = field(default_factory=dict)
    logs: Dict[str, Dict[str, Any]] = field(default_factory=dict)
    settings: Optional[Dict[str, Any]] = None
    fail_on: Dict[str, int] = field(default_factory=dict)
    fail_reads: bool = False
    calls: List[str] = field(default_factory=list)

    def _hit(self, op: str) -> None:
        self.calls.append(op)
        n = self.fail_on.get(op)
        if n is not None and self.calls.count(op) >= n:
            raise RuntimeError(f"{op} failed")

    @property
    def writes(self) -> int:
        return sum(1 for c in self.calls if not c.startswith(("list_", "get_", "pause_", "resume_")))

    def list_batches(self) -> List[Dict[str, Any]]:
        if self.fail_reads:
            raise OSError("store offline")
        self.calls.append("list_batches")
        return [copy.deepcopy(b) for b in self.batches.values()]

    def list_logs(self) -> List[Dict[str, Any]]:
        self.calls.append("list_logs")
        return [copy.deepcopy(x) for x in self.logs.values()]

    def get_settings(self) -> Dict[str, Any]:
        self.calls.append("get_settings")
        return copy.deepcopy(self.settings) if self.settings is not None else default_settings()

    def upsert_batch(self, batch: Dict[str, Any]) -> None:
        self._hit("upsert_batch")
        self.batches[batch["id"]] = copy.deepcopy(batch)

    def upsert_log(self, log: Dict[str, Any]) -> None:
        self._hit("upsert_log")
        self.logs[log["id"]] = copy.deepcopy(log)

    def replace_settings(self, settings: Dict[str, Any]) -> None:
        self._hit("replace_settings")
        self.settings = copy.deepcopy(settings)

    def delete_batch(self, batch_id: str) -> None:
        self._hit("delete_batch")
        self.batches.pop(batch_id, None)

    def delete_log(self, log_id: str) -> None:
        self._hit("delete_log")
        self.logs.pop(log_id, None)

    def snapshot(self) -> Dict[str, Any]:
        return {"batches": copy.deepcopy(self.batches), "logs": copy.deepcopy(self.logs), "settings": copy.deepcopy(self.settings)}


@dataclass
class PausingRecordStore(FakeRecordStore):
    """FakeRecordStore that records pause_writes/resume_writes in `calls`."""

    paused: List[str] = field(default_factory=list)

    def pause_writes(self) -> str:
        tok = f"pause-{len(self.calls)}"
        self.calls.append("pause_writes")
        self.paused.append(tok)
        return tok

    def resume_writes(self, token: str) -> None:
        self.calls.append("resume_writes")
        self.paused.remove(token)


def seeded_store(cls=FakeRecordStore) -> FakeRecordStore:
    store = cls()
    store.batches = {
        "blue-pheno": {"id": "blue-pheno", "batchTag": "B-01", "strain": "Blue Dream", "soilMix": "UCCR (Blue)", "startDate": 1699000000000, "currentStage": "Flowering", "isActive": True},
        "green-pheno": {"id": "green-pheno", "batchTag": "G-01", "strain": "Green Crack", "soilMix": "UCCR+FFOF (Green)", "startDate": 1699100000000, "currentStage": "Vegetative", "isActive": True},
    }
    store.logs = {
        "log-1": {"id": "log-1", "plantBatchId": "blue-pheno", "timestamp": 1699500000000, "actionType": "Water", "manualNotes": "1 gal, runoff pH 6.4"},
        "log-2": {"id": "log-2", "plantBatchId": "green-pheno", "timestamp": 1699600000000, "actionType": "Defoliate"},
        "log-3": {"id": "log-3", "plantBatchId": "blue-pheno", "timestamp": 1699700000000, "actionType": "Observation", "aiDiagnosis": {"healthScore": 92.5, "issues": ["slight tip burn"]}},
    }
    store.settings = {"environmentType": "Indoor"}
    store.calls.clear()
    return store
