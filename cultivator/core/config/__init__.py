from __future__ import annotations

from cultivator.core.config.manager import ConfigError, ConfigManager, get_config
from cultivator.core.config.models import AppConfig, BackupConfigFile, StoreConfigFile
from cultivator.core.config.paths import ConfigFsPaths

__all__ = ["AppConfig", "BackupConfigFile", "ConfigError", "ConfigFsPaths", "ConfigManager", "StoreConfigFile", "get_config"]
