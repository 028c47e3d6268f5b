"""Error types surfaced by delegate management."""

from __future__ import annotations

import json
from typing import Any

from googleapiclient.errors import HttpError


class DelegateError(Exception):
    """Base class — carries a user-facing message and optional diagnostic payload."""

    def __init__(self, message: str, details: Any = None):
        super().__init__(message)
        self.message = message
        self.details = details


class ValidationError(DelegateError):
    """Missing or malformed request input (HTTP 400)."""


class AuthenticationError(DelegateError):
    """Service account could not impersonate the mailbox."""


class ApiError(DelegateError):
    """A Gmail API call failed after retries."""

    def __init__(self, message: str, details: Any = None, status: int | None = None):
        super().__init__(message, details)
        self.status = status

    @classmethod
    def from_http_error(cls, exc: HttpError) -> ApiError:
        """Build from a googleapiclient HttpError, keeping the provider's error payload."""
        status = exc.resp.status if exc.resp is not None else None
        details: Any = None
        try:
            payload = json.loads(exc.content.decode("utf-8"))
            details = payload.get("error", payload) if isinstance(payload, dict) else payload
        except (AttributeError, UnicodeDecodeError, ValueError):
            details = {"code": status}

        message = ""
        if isinstance(details, dict):
            message = details.get("message", "")
        if not message:
            message = getattr(exc, "reason", "") or f"Gmail API returned HTTP {status}"
        return cls(message, details=details, status=status)
