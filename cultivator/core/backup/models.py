from __future__ import annotations

import time
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, StrictInt, field_validator


CURRENT_BACKUP_VERSION = 1


class _Record(BaseModel):
    # Records are opaque apart from their id; unknown fields ride along untouched.
    model_config = ConfigDict(extra="allow")

    id: str

    @field_validator("id")
    @classmethod
    def _non_empty_id(cls, v: str) -> str:
        if not str(v).strip():
            raise ValueError("id must be a non-empty string")
        return v


class PlantBatch(_Record):
    pass


class GrowLog(_Record):
    plantBatchId: Optional[str] = None


class ArPreferences(BaseModel):
    model_config = ConfigDict(extra="allow")
    showColaCount: bool = True
    showBiomass: bool = True
    showHealth: bool = True


class GrowSetup(BaseModel):
    model_config = ConfigDict(extra="allow")

    environmentType: str = "Insulated Garage - 5x5 Tent"
    lightingType: str = "LED"
    medium: str = "Living soil"
    nutrients: str = ""
    targetVpd: str = "1.2 - 1.5 kPa"
    leafTempOffset: float = 0
    vpdNotifications: Optional[bool] = True
    lastConnectedDeviceId: Optional[str] = None
    arPreferences: Optional[ArPreferences] = Field(default_factory=ArPreferences)
    integrations: Optional[Dict[str, bool]] = None


def default_settings() -> Dict[str, Any]:
    return GrowSetup().model_dump(exclude_none=True)


class BackupPayload(BaseModel):
    model_config = ConfigDict(extra="allow")

    version: StrictInt = CURRENT_BACKUP_VERSION
    timestamp: int = Field(default_factory=lambda: int(time.time() * 1000))
    batches: List[Dict[str, Any]] = Field(default_factory=list)
    logs: List[Dict[str, Any]] = Field(default_factory=list)
    settings: Optional[Dict[str, Any]] = None
