from __future__ import annotations

import os
from typing import Any, Dict, Optional, Type

from pydantic import BaseModel, ValidationError

from cultivator.core.config.io import (
    atomic_write_json,
    ensure_dirs,
    read_json_file,
    recover_from_corrupt,
    snapshot_last_known_good,
)
from cultivator.core.config.models import AppConfig, BackupConfigFile, StoreConfigFile
from cultivator.core.config.paths import ConfigFsPaths


class ConfigError(RuntimeError):
    pass


_FILES: Dict[str, Type[BaseModel]] = {
    "backup.json": BackupConfigFile,
    "store.json": StoreConfigFile,
}


class ConfigManager:
    def __init__(self, *, fs: Optional[ConfigFsPaths] = None, logger=None, read_only: bool = False):
        self.fs = fs or ConfigFsPaths(".")
        self.logger = logger
        self.read_only = read_only
        self._cfg: Optional[AppConfig] = None

    # ---------- public API ----------
    def load_all(self) -> AppConfig:
        if not self.read_only:
            ensure_dirs(self.fs.config_dir, self.fs.backups_dir, self.fs.last_known_good_dir)

        raw: Dict[str, Dict[str, Any]] = {}
        for name, model in _FILES.items():
            raw[name] = self._load_one(name, model)

        try:
            cfg = AppConfig(backup=raw["backup.json"], store=raw["store.json"])
        except ValidationError as e:
            raise ConfigError(f"Config validation failed: {e}") from e

        if not self.read_only:
            for name in _FILES:
                snapshot_last_known_good(os.path.join(self.fs.config_dir, name), self.fs.last_known_good_dir)
        self._cfg = cfg
        return cfg

    def get(self) -> AppConfig:
        if self._cfg is None:
            return self.load_all()
        return self._cfg

    def save_non_sensitive(self, name: str, data: Dict[str, Any]) -> AppConfig:
        if self.read_only:
            raise ConfigError("Config is read-only.")
        model = _FILES.get(name)
        if model is None:
            raise ConfigError(f"Unknown config file: {name}")
        try:
            validated = model.model_validate(data)
        except ValidationError as e:
            raise ConfigError(f"Invalid {name}: {e}") from e
        atomic_write_json(os.path.join(self.fs.config_dir, name), validated.model_dump())
        return self.load_all()

    # ---------- internals ----------
    def _load_one(self, name: str, model: Type[BaseModel]) -> Dict[str, Any]:
        path = os.path.join(self.fs.config_dir, name)
        rr = read_json_file(path)
        if rr.ok:
            return rr.data
        if rr.error == "missing":
            data = model().model_dump()
            if not self.read_only:
                atomic_write_json(path, data)
                if self.logger:
                    self.logger.info(f"Created default config {name}")
            return data
        if self.logger:
            self.logger.warning(f"Config {name} unreadable ({rr.error}); recovering.")
        if self.read_only:
            return model().model_dump()
        data, recovered = recover_from_corrupt(path, self.fs.backups_dir, self.fs.last_known_good_dir)
        if not recovered:
            data = model().model_dump()
            atomic_write_json(path, data)
        return data


def get_config(*, root: str = ".", logger=None) -> ConfigManager:
    cm = ConfigManager(fs=ConfigFsPaths(root), logger=logger)
    cm.load_all()
    return cm
