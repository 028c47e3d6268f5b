"""Scrub service account secrets out of error text before it leaves the process."""

from __future__ import annotations

import re
from typing import Any

# PEM blocks, including JSON-escaped newlines
_PEM_PATTERN = re.compile(
    r"-----BEGIN [A-Z ]*PRIVATE KEY-----.*?-----END [A-Z ]*PRIVATE KEY-----",
    re.DOTALL,
)
_PRIVATE_KEY_FIELD = re.compile(r"(['\"]?private_key(?:_id)?['\"]?\s*[:=]\s*)(['\"]).*?\2", re.DOTALL)
_BEARER_PATTERN = re.compile(r"Bearer\s+[A-Za-z0-9\-_\.]+")

REDACTED = "[REDACTED]"
_SENSITIVE_KEYS = {"private_key", "private_key_id", "access_token", "assertion"}


def sanitize_text(text: str, secrets: tuple[str, ...] = ()) -> str:
    """Redact PEM keys, key fields, bearer tokens and any explicit ``secrets``."""
    if not text:
        return text
    result = text
    for secret in secrets:
        if secret:
            result = result.replace(secret, REDACTED)
    result = _PEM_PATTERN.sub(REDACTED, result)
    result = _PRIVATE_KEY_FIELD.sub(lambda m: f"{m.group(1)}{m.group(2)}{REDACTED}{m.group(2)}", result)
    return _BEARER_PATTERN.sub(f"Bearer {REDACTED}", result)


def sanitize_value(value: Any, secrets: tuple[str, ...] = ()) -> Any:
    """Recursively sanitize strings inside dicts and lists."""
    if isinstance(value, str):
        return sanitize_text(value, secrets)
    if isinstance(value, dict):
        return {
            k: REDACTED if k in _SENSITIVE_KEYS else sanitize_value(v, secrets)
            for k, v in value.items()
        }
    if isinstance(value, list):
        return [sanitize_value(v, secrets) for v in value]
    return value
