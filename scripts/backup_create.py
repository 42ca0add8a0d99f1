from __future__ import annotations

import argparse
import getpass
import logging
import os

from cultivator.core.backup.api import BackupManager
from cultivator.core.config.manager import get_config
from cultivator.core.config.paths import ConfigFsPaths
from cultivator.core.logger import setup_logging
from cultivator.core.ops_log import OpsLogger
from cultivator.core.store import JsonRecordStore


def main() -> int:
    ap = argparse.ArgumentParser(description="Cultivator encrypted backup create")
    ap.add_argument("--path", default=None, help="Output directory (defaults to config/backup.json default_dir)")
    ap.add_argument("--root", default=".", help="Data root (config/, data/, logs/)")
    ap.add_argument("--verbose", action="store_true", help="Debug-level file logging")
    args = ap.parse_args()

    fs = ConfigFsPaths(args.root)
    logger = setup_logging(fs.logs_dir, level=logging.DEBUG if args.verbose else logging.INFO)
    cm = get_config(root=args.root, logger=logger)
    cfg = cm.get()
    store = JsonRecordStore(os.path.join(args.root, cfg.store.records_path), logger=logger)

    password = getpass.getpass("Backup password: ")
    if password != getpass.getpass("Repeat password: "):
        print("Passwords do not match.")
        return 2

    mgr = BackupManager(
        cfg=cfg.backup,
        store=store,
        root_dir=args.root,
        logger=logger,
        ops_logger=OpsLogger(path=os.path.join(fs.logs_dir, "ops.jsonl")),
    )
    artifact = mgr.create_backup(password, out_dir=args.path)
    print(artifact.path)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
