"""Delegate operations — list, add and remove with friendly pre-checks.

Each operation takes an already authenticated client and returns an
OperationResult; Gmail API failures become ``success=False`` results rather
than exceptions so callers can report them alongside successful ones.

The existence check before add/remove only produces a clearer message than
the API's own duplicate/not-found error. It is not atomic with the mutating
call that follows.
"""

from __future__ import annotations

import logging

from src.errors import ApiError
from src.gmail.client import UserGmailClient
from src.gmail.models import DelegateOperationRequest, Operation, OperationResult

logger = logging.getLogger(__name__)

MSG_LISTED = "Delegates retrieved successfully"
MSG_ADDED = "Delegate added successfully"
MSG_REMOVED = "Delegate removed successfully"
MSG_EXISTS = "Delegate already exists"
MSG_MISSING = "Delegate does not exist"


def _has_delegate(client: UserGmailClient, delegate_email: str) -> bool | None:
    """Exact match against the listed delegates; None if listing failed."""
    try:
        delegates = client.list_delegates()
    except ApiError as e:
        logger.warning("Pre-check listing failed for %s: %s", client.user_email, e.message)
        return None
    return any(d.delegate_email == delegate_email for d in delegates)


def list_delegates(client: UserGmailClient) -> OperationResult:
    try:
        delegates = client.list_delegates()
    except ApiError as e:
        logger.warning("Listing delegates failed for %s: %s", client.user_email, e.message)
        return OperationResult(
            success=False,
            mailbox_email=client.user_email,
            operation=Operation.LIST.value,
            message=e.message,
            details=e.details,
        )
    return OperationResult(
        success=True,
        mailbox_email=client.user_email,
        operation=Operation.LIST.value,
        message=MSG_LISTED,
        delegates=delegates,
    )


def add_delegate(client: UserGmailClient, delegate_email: str) -> OperationResult:
    result = OperationResult(
        success=False,
        mailbox_email=client.user_email,
        operation=Operation.ADD.value,
        message=MSG_EXISTS,
        delegate_email=delegate_email,
    )
    if _has_delegate(client, delegate_email):
        return result

    try:
        record = client.create_delegate(delegate_email)
    except ApiError as e:
        logger.warning(
            "Adding delegate %s to %s failed: %s", delegate_email, client.user_email, e.message
        )
        result.message = e.message
        result.details = e.details
        return result

    logger.info("Added delegate %s to %s", delegate_email, client.user_email)
    result.success = True
    result.message = MSG_ADDED
    result.details = record
    return result


def remove_delegate(client: UserGmailClient, delegate_email: str) -> OperationResult:
    result = OperationResult(
        success=False,
        mailbox_email=client.user_email,
        operation=Operation.REMOVE.value,
        message=MSG_MISSING,
        delegate_email=delegate_email,
    )
    if _has_delegate(client, delegate_email) is False:
        return result

    try:
        client.delete_delegate(delegate_email)
    except ApiError as e:
        logger.warning(
            "Removing delegate %s from %s failed: %s",
            delegate_email,
            client.user_email,
            e.message,
        )
        result.message = e.message
        result.details = e.details
        return result

    logger.info("Removed delegate %s from %s", delegate_email, client.user_email)
    result.success = True
    result.message = MSG_REMOVED
    return result


def run_operation(client: UserGmailClient, request: DelegateOperationRequest) -> OperationResult:
    """Dispatch a validated request to the matching operation."""
    op = request.parsed_operation
    if op is Operation.LIST:
        result = list_delegates(client)
    elif op is Operation.ADD:
        result = add_delegate(client, request.delegate_email or "")
    elif op is Operation.REMOVE:
        result = remove_delegate(client, request.delegate_email or "")
    else:
        return OperationResult.failure(request, f"Invalid operation: {request.operation}")

    # Report against the mailbox as requested, not as the client spells it
    result.mailbox_email = request.mailbox_email
    return result
