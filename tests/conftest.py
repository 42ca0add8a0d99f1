from __future__ import annotations

import os

import pytest

from cultivator.core.config.models import BackupConfigFile
from cultivator.core.ops_log import OpsLogger

# Full-strength PBKDF2 makes every encrypt/decrypt take ~0.5s.
TEST_KDF_ITERATIONS = 1000


@pytest.fixture
def backup_cfg(tmp_path):
    return BackupConfigFile(kdf_iterations=TEST_KDF_ITERATIONS, allow_weak_kdf=True, default_dir="backups")


@pytest.fixture
def ops_logger(tmp_path):
    return OpsLogger(path=os.path.join(str(tmp_path), "logs", "ops.jsonl"))
