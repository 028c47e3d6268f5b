"""Service account keys — loading, transient staging and delegated credentials."""

from __future__ import annotations

import json
import logging
import os
import uuid
from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from google.auth.exceptions import GoogleAuthError
from google.auth.transport.requests import Request
from google.oauth2 import service_account

from src.config import AuthConfig
from src.errors import AuthenticationError, ValidationError

logger = logging.getLogger(__name__)

REQUIRED_KEY_FIELDS = ("client_email", "private_key")


@dataclass(frozen=True)
class ServiceAccountKey:
    client_email: str
    private_key: str = field(repr=False)
    info: dict[str, Any] = field(default_factory=dict, repr=False)

    @classmethod
    def from_json(cls, raw: bytes | str) -> ServiceAccountKey:
        """Parse an uploaded service account JSON key."""
        try:
            info = json.loads(raw)
        except (UnicodeDecodeError, ValueError) as e:
            raise ValidationError("Service account file is not valid JSON") from e

        if not isinstance(info, dict):
            raise ValidationError("Service account file must contain a JSON object")

        missing = [k for k in REQUIRED_KEY_FIELDS if not info.get(k)]
        if missing:
            raise ValidationError(
                f"Service account file is missing required field(s): {', '.join(missing)}"
            )

        return cls(
            client_email=info["client_email"],
            private_key=info["private_key"],
            info=info,
        )

    @classmethod
    def from_file(cls, path: Path) -> ServiceAccountKey:
        return cls.from_json(Path(path).read_bytes())


@contextmanager
def staged_service_account(content: bytes, temp_dir: Path) -> Iterator[Path]:
    """Write an uploaded key to a private temp file that is removed on exit.

    The file name is random per call, so concurrent requests never collide.
    Removal is attempted on every exit path; a failure to remove is logged and
    does not replace the exception (or result) of the body.
    """
    temp_dir = Path(temp_dir)
    temp_dir.mkdir(parents=True, exist_ok=True)
    path = temp_dir / f"sa_{uuid.uuid4().hex}.json"

    fd = os.open(path, os.O_WRONLY | os.O_CREAT | os.O_EXCL, 0o600)
    try:
        with os.fdopen(fd, "wb") as f:
            f.write(content)
        yield path
    finally:
        try:
            path.unlink(missing_ok=True)
        except OSError as e:
            logger.error("Failed to remove staged service account file %s: %s", path, e)


class GmailAuth:
    """Delegated service account credentials for a single mailbox."""

    def __init__(self, config: AuthConfig):
        self.config = config

    def delegated_credentials(
        self, key: ServiceAccountKey, user_email: str
    ) -> service_account.Credentials:
        """Credentials impersonating ``user_email`` via domain-wide delegation."""
        info = {**key.info, "token_uri": key.info.get("token_uri") or self.config.token_uri}
        try:
            creds = service_account.Credentials.from_service_account_info(
                info, scopes=self.config.scopes
            )
        except (ValueError, TypeError) as e:
            raise AuthenticationError(
                f"Invalid service account key for {key.client_email}: {e}"
            ) from e
        return creds.with_subject(user_email)

    def fetch_token(self, creds: service_account.Credentials, user_email: str) -> None:
        """Exchange the signed JWT for an access token."""
        try:
            creds.refresh(Request())
        except (GoogleAuthError, OSError) as e:
            logger.warning("Token exchange failed for %s: %s", user_email, e)
            raise AuthenticationError(
                f"Could not obtain an access token for {user_email}. Check that domain-wide "
                "delegation is enabled for this service account with the required scopes.",
                details={"error": str(e)},
            ) from e
