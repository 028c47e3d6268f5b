"""Batch runner — sequential delegate operations across mailboxes."""

from __future__ import annotations

import csv
import io
import logging
from collections.abc import Iterable

from src.delegates.operations import run_operation
from src.delegates.sanitize import sanitize_text
from src.errors import DelegateError
from src.gmail.auth import ServiceAccountKey
from src.gmail.client import GmailClientFactory
from src.gmail.models import BatchResult, DelegateOperationRequest, Operation, OperationResult

logger = logging.getLogger(__name__)

MSG_INVALID_PARAMS = "Invalid operation parameters"


def request_problem(request: DelegateOperationRequest) -> str | None:
    """Describe why a request cannot be run, or None if it is complete."""
    op = request.parsed_operation
    if op is None:
        return f"Invalid operation: {request.operation}"
    if not request.mailbox_email:
        return MSG_INVALID_PARAMS
    if op is not Operation.LIST and not request.delegate_email:
        return MSG_INVALID_PARAMS
    return None


def _describe(exc: Exception) -> str:
    return sanitize_text(f"{type(exc).__name__}: {exc}")


class BatchRunner:
    """Run requests in input order, one result per request.

    A failure on one item (bad parameters, impersonation refused, API error)
    is recorded in that item's result and the loop moves on.
    """

    def __init__(self, client_factory: GmailClientFactory):
        self.client_factory = client_factory

    def run_one(self, key: ServiceAccountKey, request: DelegateOperationRequest) -> OperationResult:
        problem = request_problem(request)
        if problem:
            return OperationResult.failure(request, problem)

        try:
            client = self.client_factory.for_user(key, request.mailbox_email)
        except DelegateError as e:
            logger.warning("Could not build Gmail client for %s: %s", request.mailbox_email, e.message)
            return OperationResult.failure(request, e.message, details=e.details)
        except Exception as e:
            logger.exception("Unexpected error building Gmail client for %s", request.mailbox_email)
            return OperationResult.failure(request, _describe(e))

        try:
            return run_operation(client, request)
        except Exception as e:
            logger.exception("Unexpected error running %s for %s", request.operation, request.mailbox_email)
            return OperationResult.failure(request, _describe(e))

    def run(
        self, key: ServiceAccountKey, requests: Iterable[DelegateOperationRequest]
    ) -> BatchResult:
        batch = BatchResult()
        for request in requests:
            batch.results.append(self.run_one(key, request))
        logger.info(
            "Batch finished: %d operations, %d failed", len(batch.results), batch.failed
        )
        return batch


def parse_batch_csv(text: str) -> list[DelegateOperationRequest]:
    """Parse ``operation,userEmail,delegateEmail`` lines.

    Blank lines are skipped, fields are trimmed, and a leading header row
    (first field literally ``operation``) is ignored.
    """
    requests = []
    for row in csv.reader(io.StringIO(text)):
        fields = [f.strip() for f in row]
        if not any(fields):
            continue
        if not requests and fields[0].lower() == "operation":
            continue
        fields += [""] * (3 - len(fields))
        requests.append(
            DelegateOperationRequest(
                operation=fields[0],
                mailbox_email=fields[1],
                delegate_email=fields[2] or None,
            )
        )
    return requests


def split_emails(value: str | None) -> list[str]:
    """Split a comma-separated list of addresses, dropping blanks."""
    return [e.strip() for e in (value or "").split(",") if e.strip()]


def expand_operations(
    operation: str, mailboxes: list[str], delegates: list[str]
) -> list[DelegateOperationRequest]:
    """Every mailbox × delegate pair; ``list`` yields one request per mailbox."""
    if Operation.parse(operation) is Operation.LIST or not delegates:
        return [DelegateOperationRequest(operation, m) for m in mailboxes]
    return [DelegateOperationRequest(operation, m, d) for m in mailboxes for d in delegates]
