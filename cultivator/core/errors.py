from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict

from cultivator.core.redaction import redact


class Severity(str, Enum):
    INFO = "INFO"
    WARN = "WARN"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


@dataclass
class CultivatorError(Exception):
    code: str
    user_message: str
    severity: Severity = Severity.ERROR
    recoverable: bool = True
    context: Dict[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        super().__init__(self.code)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "code": self.code,
            "user_message": self.user_message,
            "severity": self.severity.value,
            "recoverable": bool(self.recoverable),
            "context": redact(self.context or {}),
        }


class ValidationError(CultivatorError):
    def __init__(self, user_message: str = "Invalid request.", **ctx: Any):
        super().__init__("validation_error", user_message, severity=Severity.WARN, recoverable=False, context=ctx)


class BackupFailedError(CultivatorError):
    def __init__(self, user_message: str = "Backup creation failed.", **ctx: Any):
        super().__init__("backup_failed", user_message, severity=Severity.ERROR, recoverable=True, context=ctx)


class InvalidBackupFormatError(CultivatorError):
    def __init__(self, user_message: str = "Backup file is not in a supported format.", **ctx: Any):
        super().__init__("invalid_backup_format", user_message, severity=Severity.WARN, recoverable=True, context=ctx)


class ReplayError(CultivatorError):
    """Backup decrypted fine but writing it into the record store failed part way."""

    def __init__(self, user_message: str = "Restore failed while writing records.", **ctx: Any):
        super().__init__("replay_failed", user_message, severity=Severity.CRITICAL, recoverable=False, context=ctx)


class BackupInProgressError(CultivatorError):
    def __init__(self, user_message: str = "Another backup or restore is already running.", **ctx: Any):
        super().__init__("backup_in_progress", user_message, severity=Severity.WARN, recoverable=True, context=ctx)
