from __future__ import annotations

import logging
import os
from logging.handlers import RotatingFileHandler


LOGGER_NAME = "cultivator"
LOG_FILENAME = "backup.log"


def setup_logging(log_dir: str, *, level: int = logging.INFO, console: bool = True) -> logging.Logger:
    """
    Text log for the backup scripts: rotating file under log_dir, optional stderr echo.
    Safe to call repeatedly; the level is updated, handlers are not duplicated.
    """
    os.makedirs(log_dir, exist_ok=True)

    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(level)
    logger.propagate = False

    if not any(isinstance(h, RotatingFileHandler) for h in logger.handlers):
        fh = RotatingFileHandler(os.path.join(log_dir, LOG_FILENAME), maxBytes=512_000, backupCount=3, encoding="utf-8")
        fh.setFormatter(logging.Formatter("%(asctime)s %(levelname)-7s [%(threadName)s] %(message)s", "%Y-%m-%dT%H:%M:%S"))
        logger.addHandler(fh)

    has_console = any(type(h) is logging.StreamHandler for h in logger.handlers)
    if console and not has_console:
        sh = logging.StreamHandler()
        sh.setLevel(logging.WARNING)
        sh.setFormatter(logging.Formatter("%(levelname)s: %(message)s"))
        logger.addHandler(sh)

    return logger
