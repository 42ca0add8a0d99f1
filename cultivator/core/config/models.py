from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from cultivator.core.crypto import KDF_ITERATIONS


class BackupConfigFile(BaseModel):
    model_config = ConfigDict(extra="forbid")
    enabled: bool = True
    default_dir: str = "backups"
    filename_prefix: str = "cultivator-backup"
    file_extension: str = ".ccbak"
    mime_type: str = "application/octet-stream"
    kdf_iterations: int = Field(default=KDF_ITERATIONS, ge=1)
    # Test-only escape hatch; production configs stay at or above KDF_ITERATIONS.
    allow_weak_kdf: bool = False
    transactional_restore: bool = True

    @field_validator("file_extension")
    @classmethod
    def _dotted_extension(cls, v: str) -> str:
        v = str(v).strip()
        if not v:
            raise ValueError("file_extension must not be empty")
        return v if v.startswith(".") else "." + v

    @model_validator(mode="after")
    def _kdf_floor(self) -> "BackupConfigFile":
        if not self.allow_weak_kdf and self.kdf_iterations < KDF_ITERATIONS:
            raise ValueError(f"kdf_iterations must be >= {KDF_ITERATIONS}")
        return self


class StoreConfigFile(BaseModel):
    model_config = ConfigDict(extra="forbid")
    records_path: str = "data/records.json"


class AppConfig(BaseModel):
    model_config = ConfigDict(extra="forbid")
    backup: BackupConfigFile = Field(default_factory=BackupConfigFile)
    store: StoreConfigFile = Field(default_factory=StoreConfigFile)
