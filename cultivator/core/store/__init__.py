from __future__ import annotations

"""
Record store collaborator used by backup/restore.

RecordStore is the protocol; JsonRecordStore is the file-backed implementation.
"""

from cultivator.core.store.interface import RecordStore, StoreWritesPausedError
from cultivator.core.store.json_store import JsonRecordStore

__all__ = ["JsonRecordStore", "RecordStore", "StoreWritesPausedError"]
