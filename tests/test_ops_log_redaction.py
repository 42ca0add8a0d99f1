from __future__ import annotations

import json
import logging
import os
from logging.handlers import RotatingFileHandler

from cultivator.core.errors import ReplayError
from cultivator.core.logger import setup_logging
from cultivator.core.redaction import redact


def test_redact_masks_sensitive_keys_and_bytes():
    out = redact({"password": "hunter2", "nested": [{"salt": "aa"}], "blob": b"\x00" * 28, "file": "x.ccbak"})
    assert out["password"] == "***REDACTED***"
    assert out["nested"][0]["salt"] == "***REDACTED***"
    assert out["blob"] == "<28 bytes>"
    assert out["file"] == "x.ccbak"


def test_redact_masks_inline_assignments():
    assert "hunter2" not in redact("retry with password=hunter2 please")


def test_ops_logger_appends_jsonl(ops_logger):
    ops_logger.log(trace_id="t1", event="backup.restore", outcome="failed", details={"reason": "invalid_format", "password": "x"})
    ops_logger.log(trace_id="t2", event="backup.create", outcome="success")
    with open(ops_logger.path, "r", encoding="utf-8") as f:
        rows = [json.loads(line) for line in f if line.strip()]
    assert [r["trace_id"] for r in rows] == ["t1", "t2"]
    assert rows[0]["details"] == {"reason": "invalid_format", "password": "***REDACTED***"}
    assert rows[1]["details"] == {}


def test_error_to_dict_is_redacted():
    e = ReplayError(stage="logs", written_logs=3, password="oops")
    d = e.to_dict()
    assert d["code"] == "replay_failed"
    assert d["recoverable"] is False
    assert d["context"]["stage"] == "logs"
    assert d["context"]["password"] == "***REDACTED***"


def _clear(logger):
    for h in list(logger.handlers):
        logger.removeHandler(h)
        h.close()


def test_setup_logging_installs_handlers_once(tmp_path):
    logger = logging.getLogger("cultivator")
    _clear(logger)
    try:
        assert setup_logging(str(tmp_path)) is logger
        setup_logging(str(tmp_path))
        files = [h for h in logger.handlers if isinstance(h, RotatingFileHandler)]
        assert len(files) == 1
        assert files[0].baseFilename == os.path.join(str(tmp_path), "backup.log")
        assert len([h for h in logger.handlers if type(h) is logging.StreamHandler]) == 1
        assert logger.propagate is False
        assert logger.level == logging.INFO
    finally:
        _clear(logger)


def test_setup_logging_verbose_without_console(tmp_path):
    logger = logging.getLogger("cultivator")
    _clear(logger)
    try:
        setup_logging(str(tmp_path), level=logging.DEBUG, console=False)
        assert logger.level == logging.DEBUG
        assert not any(type(h) is logging.StreamHandler for h in logger.handlers)
        logger.debug("replay detail")
        for h in logger.handlers:
            h.flush()
        with open(os.path.join(str(tmp_path), "backup.log"), encoding="utf-8") as f:
            assert "DEBUG" in f.read()
    finally:
        _clear(logger)
