"""Network retry with exponential backoff for Gmail delegate API calls."""

from __future__ import annotations

import logging
import socket
import time
from dataclasses import dataclass
from typing import Any

import httplib2
from google.auth.exceptions import TransportError
from googleapiclient.errors import HttpError

from src.config import GmailConfig

logger = logging.getLogger(__name__)

# Transient error types that should trigger a retry
_TRANSIENT_EXCEPTIONS: tuple[type[BaseException], ...] = (
    socket.gaierror,
    socket.timeout,
    ConnectionError,
    TimeoutError,
    TransportError,
    httplib2.ServerNotFoundError,
)

# HTTP status codes worth retrying
_RETRYABLE_STATUS_CODES = {429, 500, 502, 503, 504}


@dataclass(frozen=True)
class RetryPolicy:
    max_retries: int = 3
    base_delay: float = 1.0  # seconds, doubled each retry

    @classmethod
    def from_config(cls, config: GmailConfig) -> RetryPolicy:
        return cls(max_retries=config.max_retries, base_delay=config.base_delay)

    def delay_for(self, attempt: int) -> float:
        return self.base_delay * (2**attempt)


DEFAULT_POLICY = RetryPolicy()


def _is_retryable(exc: BaseException) -> bool:
    """Check whether an exception is transient and worth retrying."""
    if isinstance(exc, _TRANSIENT_EXCEPTIONS):
        return True
    if isinstance(exc, HttpError) and exc.resp.status in _RETRYABLE_STATUS_CODES:
        return True
    # httplib2 wraps socket errors in its own exception hierarchy
    cause = exc.__cause__ or exc.__context__
    if cause and isinstance(cause, _TRANSIENT_EXCEPTIONS):
        return True
    return False


def execute_with_retry(
    request: Any,
    *,
    policy: RetryPolicy = DEFAULT_POLICY,
    operation: str = "API call",
) -> Any:
    """Execute a Google API request, retrying transient failures.

    Wraps ``request.execute()`` with exponential backoff. Network-level
    failures and 429/5xx responses are retried up to ``policy.max_retries``
    times; anything else (delegate already exists, not found, permission
    denied) is raised on the first attempt.

    Args:
        request: A Google API request object (has an ``.execute()`` method).
        policy: Retry count and base delay.
        operation: Human-readable label for log messages.

    Returns:
        The result of ``request.execute()``.
    """
    attempt = 0
    while True:
        try:
            return request.execute()
        except Exception as exc:
            if not _is_retryable(exc) or attempt >= policy.max_retries:
                if attempt:
                    logger.error("%s failed after %d attempts: %s", operation, attempt + 1, exc)
                raise
            delay = policy.delay_for(attempt)
            logger.warning(
                "%s failed (attempt %d/%d), retrying in %.1fs: %s",
                operation,
                attempt + 1,
                1 + policy.max_retries,
                delay,
                exc,
            )
            time.sleep(delay)
            attempt += 1
