from __future__ import annotations

from contextlib import contextmanager
from typing import Any, Dict, Iterator


@contextmanager
def quiesce(store: Any) -> Iterator[Dict[str, Any]]:
    """
    Best-effort write pause on the record store for a consistent snapshot.
    Stores without pause_writes/resume_writes are read as-is.
    """
    token = None
    info: Dict[str, Any] = {"store_paused": False}
    if hasattr(store, "pause_writes"):
        token = store.pause_writes()
        info["store_paused"] = True
    try:
        yield info
    finally:
        if token is not None and hasattr(store, "resume_writes"):
            store.resume_writes(token)
