from __future__ import annotations

import re
from typing import Any, Dict


REDACT_KEYS = {
    "password",
    "passphrase",
    "secret",
    "key",
    "derived_key",
    "salt",
    "iv",
    "nonce",
    "token",
}

_KV_RE = re.compile(r"(?i)\b(password|passphrase|token|key)\s*=\s*([^\s,;]+)")


def redact(obj: Any) -> Any:
    if isinstance(obj, dict):
        out: Dict[str, Any] = {}
        for k, v in obj.items():
            if str(k).lower() in REDACT_KEYS:
                out[k] = "***REDACTED***"
            else:
                out[k] = redact(v)
        return out
    if isinstance(obj, list):
        return [redact(x) for x in obj]
    if isinstance(obj, (bytes, bytearray)):
        return f"<{len(obj)} bytes>"
    if isinstance(obj, str):
        return redact_text(obj)
    return obj


def redact_text(text: str) -> str:
    s = _KV_RE.sub(r"\1=<redacted>", text)
    if len(s) > 2000:
        s = s[:2000] + "…"
    return s
