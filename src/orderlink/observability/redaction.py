"""Redaction helpers for safe logging.

Never in a log line: phone numbers, e-mail addresses, credentials (anything
JWT-shaped) and live short links, which are bearer capabilities until they
expire. All externally sourced values go through safe_log_context(); values
that must stay correlatable are logged as fingerprint() instead.
"""

import hashlib
import re
from typing import Any

_CREDENTIAL_PATTERN = re.compile(r"eyJ[A-Za-z0-9_-]*\.[A-Za-z0-9_-]+\.[A-Za-z0-9_-]*")
_SHORT_LINK_PATTERN = re.compile(r"/r/[A-Za-z0-9_-]+")
_PHONE_PATTERN = re.compile(r"\+?\d[\d\s\-()]{8,}\d")
_EMAIL_PATTERN = re.compile(r"[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}")

_REDACTED = "[REDACTED]"


def redact_string(value: str) -> str:
    # Credentials first: their base64 segments can contain digit runs
    result = _CREDENTIAL_PATTERN.sub(_REDACTED, value)
    result = _SHORT_LINK_PATTERN.sub(f"/r/{_REDACTED}", result)
    result = _PHONE_PATTERN.sub(_REDACTED, result)
    return _EMAIL_PATTERN.sub(_REDACTED, result)


def fingerprint(value: str) -> str:
    """Non-reversible 12-char identifier (sha256 prefix) for correlating logs."""
    return hashlib.sha256(value.encode()).hexdigest()[:12]


def redact_value(value: Any) -> str:
    """Loggable string form of value. Containers expose structure only."""
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (int, float)):
        return str(value)
    if isinstance(value, str):
        return redact_string(value)
    if isinstance(value, dict):
        return f"dict(keys={sorted(map(str, value))})"
    if isinstance(value, (list, tuple, set)):
        return f"list(len={len(value)})"
    return f"<{type(value).__name__}>"


def safe_log_context(**kwargs: Any) -> dict[str, str]:
    return {k: redact_value(v) for k, v in kwargs.items()}
