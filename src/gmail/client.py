"""Gmail API client — delegate settings with per-mailbox impersonation."""

from __future__ import annotations

import logging
from typing import Any

import httplib2
from google.auth.exceptions import GoogleAuthError
from googleapiclient.discovery import build
from googleapiclient.errors import HttpError

from src.config import AppConfig
from src.errors import ApiError, AuthenticationError
from src.gmail.auth import GmailAuth, ServiceAccountKey
from src.gmail.models import Delegate
from src.gmail.retry import RetryPolicy, execute_with_retry

logger = logging.getLogger(__name__)


class GmailClientFactory:
    """Creates authenticated per-mailbox clients from an uploaded key.

    Holds configuration only; every call builds fresh credentials, so one
    factory is safely shared by concurrent requests.
    """

    def __init__(self, config: AppConfig):
        self.auth = GmailAuth(config.auth)
        self.retry = RetryPolicy.from_config(config.gmail)
        self.verify_access = config.auth.verify_access

    def for_user(self, key: ServiceAccountKey, user_email: str) -> UserGmailClient:
        """Build a client impersonating ``user_email``.

        Performs the token exchange and a profile fetch first so that a bad
        key or missing domain-wide delegation is reported here, as an
        AuthenticationError, rather than on the first delegate call.
        """
        creds = self.auth.delegated_credentials(key, user_email)
        if self.verify_access:
            self.auth.fetch_token(creds, user_email)

        service = build("gmail", "v1", credentials=creds, cache_discovery=False)
        client = UserGmailClient(service, user_email, retry=self.retry)

        if self.verify_access:
            try:
                client.get_profile()
            except ApiError as e:
                raise AuthenticationError(
                    f"Gmail API access check failed for {user_email}: {e.message}",
                    details=e.details,
                ) from e
        logger.debug("Gmail client ready for %s", user_email)
        return client


class UserGmailClient:
    """Delegate operations for a single impersonated mailbox."""

    def __init__(self, service: Any, user_email: str, retry: RetryPolicy | None = None):
        self.user_email = user_email
        self.retry = retry or RetryPolicy()
        self._gmail = service.users()

    def _exec(self, request: Any, operation: str = "API call") -> Any:
        """Execute a request with retry, normalising failures to ApiError."""
        try:
            return execute_with_retry(request, policy=self.retry, operation=operation)
        except HttpError as e:
            raise ApiError.from_http_error(e) from e
        except (GoogleAuthError, httplib2.HttpLib2Error, OSError) as e:
            raise ApiError(f"{operation} failed: {e}", details={"error": str(e)}) from e

    @property
    def _delegates(self) -> Any:
        return self._gmail.settings().delegates()

    def get_profile(self) -> dict[str, Any]:
        """Get the mailbox's Gmail profile (email address, historyId)."""
        return self._exec(self._gmail.getProfile(userId="me"), operation="getProfile")

    def list_delegates(self) -> list[Delegate]:
        result = self._exec(
            self._delegates.list(userId="me"),
            operation=f"delegates.list({self.user_email})",
        )
        return [Delegate.from_api(d) for d in (result or {}).get("delegates", [])]

    def create_delegate(self, delegate_email: str) -> dict[str, Any]:
        """Grant ``delegate_email`` access. Returns the API's delegate record."""
        result = self._exec(
            self._delegates.create(userId="me", body={"delegateEmail": delegate_email}),
            operation=f"delegates.create({self.user_email}, {delegate_email})",
        )
        return result or {}

    def delete_delegate(self, delegate_email: str) -> None:
        self._exec(
            self._delegates.delete(userId="me", delegateEmail=delegate_email),
            operation=f"delegates.delete({self.user_email}, {delegate_email})",
        )
