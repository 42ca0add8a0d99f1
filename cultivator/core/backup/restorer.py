from __future__ import annotations

from contextlib import nullcontext
from dataclasses import dataclass
from typing import Any, Dict, Optional

from cultivator.core.errors import ReplayError


@dataclass(frozen=True)
class ReplayResult:
    batches: int
    logs: int
    settings_replaced: bool
    transactional: bool


def replay_payload(store: Any, payload: Dict[str, Any], *, transactional: bool = True) -> ReplayResult:
    """
    Write a verified payload into the store: batches, then logs, then settings.

    Upserts are keyed by id, so replaying the same payload twice is a no-op the second time.
    With transactional=True and a store exposing transaction(), a failure rolls every
    write back; otherwise earlier writes stay and ReplayError reports how far it got.
    """
    use_tx = bool(transactional) and hasattr(store, "transaction")
    done: Dict[str, int] = {"batches": 0, "logs": 0}
    stage: Optional[str] = None
    settings = payload.get("settings")
    try:
        with store.transaction() if use_tx else nullcontext():
            stage = "batches"
            for batch in payload.get("batches") or []:
                store.upsert_batch(batch)
                done["batches"] += 1
            stage = "logs"
            for log in payload.get("logs") or []:
                store.upsert_log(log)
                done["logs"] += 1
            stage = "settings"
            if settings:
                store.replace_settings(settings)
    except Exception as e:  # noqa: BLE001
        raise ReplayError(
            stage=stage,
            written_batches=done["batches"],
            written_logs=done["logs"],
            rolled_back=use_tx,
            error=type(e).__name__,
        ) from e
    return ReplayResult(batches=done["batches"], logs=done["logs"], settings_replaced=bool(settings), transactional=use_tx)
