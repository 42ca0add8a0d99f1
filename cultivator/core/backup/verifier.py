from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Type

from pydantic import ValidationError

from cultivator.core.backup.models import CURRENT_BACKUP_VERSION, GrowLog, PlantBatch, _Record


@dataclass(frozen=True)
class VerifyResult:
    ok: bool
    errors: List[str]
    payload: Optional[Dict[str, Any]] = field(default=None, repr=False)


def _check_records(items: Any, kind: str, model: Type[_Record], errors: List[str]) -> None:
    if not isinstance(items, list):
        errors.append(f"{kind} must be a list")
        return
    seen = set()
    for i, rec in enumerate(items):
        if not isinstance(rec, dict):
            errors.append(f"{kind}[{i}] is not an object")
            continue
        try:
            rid = model.model_validate(rec).id
        except ValidationError:
            errors.append(f"{kind}[{i}] missing id")
            continue
        if rid in seen:
            errors.append(f"{kind}[{i}] duplicate id")
        seen.add(rid)


def verify_payload(obj: Any) -> VerifyResult:
    """
    Shape check on a decrypted backup before anything touches the store.

    Required: integer `version` in [1, CURRENT_BACKUP_VERSION] and a `batches` list.
    Optional but checked when present: `logs` list, `settings` object.
    """
    errors: List[str] = []
    if not isinstance(obj, dict):
        return VerifyResult(ok=False, errors=["payload is not an object"])

    version = obj.get("version")
    if isinstance(version, bool) or not isinstance(version, int):
        errors.append("missing or non-integer version")
    elif version < 1 or version > CURRENT_BACKUP_VERSION:
        errors.append(f"unsupported version {version}")

    if "batches" not in obj:
        errors.append("missing batches")
    else:
        _check_records(obj.get("batches"), "batches", PlantBatch, errors)

    logs = obj.get("logs")
    if logs is not None:
        _check_records(logs, "logs", GrowLog, errors)

    settings = obj.get("settings")
    if settings is not None and not isinstance(settings, dict):
        errors.append("settings must be an object")

    if errors:
        return VerifyResult(ok=False, errors=errors)
    normalized = {
        "version": version,
        "timestamp": obj.get("timestamp"),
        "batches": list(obj["batches"]),
        "logs": list(logs or []),
        "settings": settings,
    }
    return VerifyResult(ok=True, errors=[], payload=normalized)
