"""Delegate API routes — single and batch delegate operations.

Both endpoints take a multipart upload of the service account key. The key
is staged to a private temp file for the duration of the request and removed
before the response is returned, whatever the outcome.
"""

from __future__ import annotations

import asyncio
import json
import logging
from datetime import datetime, timezone
from typing import Any, Callable

from fastapi import APIRouter, File, Form, Request, UploadFile
from fastapi.responses import JSONResponse

from src.config import AppConfig
from src.delegates.batch import BatchRunner, request_problem
from src.delegates.operations import run_operation
from src.delegates.sanitize import sanitize_text, sanitize_value
from src.errors import AuthenticationError, ValidationError
from src.gmail.auth import ServiceAccountKey, staged_service_account
from src.gmail.client import GmailClientFactory
from src.gmail.models import DelegateOperationRequest, Operation

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api")


def _error(status_code: int, message: str, **extra: Any) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={"success": False, "message": message, **extra},
    )


def _parse_operations(raw: str | None) -> list[DelegateOperationRequest]:
    """Decode the ``operations`` form field into requests."""
    if not raw:
        raise ValidationError("Service account file and operations are required")
    try:
        items = json.loads(raw)
    except ValueError as e:
        raise ValidationError("Operations must be valid JSON") from e
    if not isinstance(items, list) or not items:
        raise ValidationError("Operations must be a non-empty array")

    # Non-object items become invalid requests and are reported per item
    return [
        DelegateOperationRequest.from_dict(item)
        if isinstance(item, dict)
        else DelegateOperationRequest(operation=str(item), mailbox_email="")
        for item in items
    ]


async def _read_key(upload: UploadFile | None, config: AppConfig) -> bytes:
    if upload is None or not upload.filename:
        raise ValidationError("Service account file is required")
    content = await upload.read(config.auth.max_key_bytes + 1)
    if len(content) > config.auth.max_key_bytes:
        raise ValidationError("Service account file is too large")
    if not content:
        raise ValidationError("Service account file is empty")
    return content


def _run_single(
    factory: GmailClientFactory,
    config: AppConfig,
    content: bytes,
    op_request: DelegateOperationRequest,
) -> dict[str, Any]:
    with staged_service_account(content, config.auth.temp_dir) as path:
        key = ServiceAccountKey.from_file(path)
        client = factory.for_user(key, op_request.mailbox_email)
        return run_operation(client, op_request).to_dict()


def _run_batch(
    factory: GmailClientFactory,
    config: AppConfig,
    content: bytes,
    op_requests: list[DelegateOperationRequest],
) -> dict[str, Any]:
    with staged_service_account(content, config.auth.temp_dir) as path:
        key = ServiceAccountKey.from_file(path)
        return BatchRunner(factory).run(key, op_requests).to_dict()


async def _respond(
    request: Request,
    work: Callable[..., dict[str, Any]],
    *args: Any,
    context: dict[str, Any] | None = None,
) -> JSONResponse:
    """Run blocking Google API work off the event loop and map failures to responses."""
    try:
        payload = await asyncio.to_thread(work, *args)
    except ValidationError as e:
        return _error(400, e.message)
    except AuthenticationError as e:
        return _error(500, e.message, **(context or {}), details=sanitize_value(e.details))
    except Exception as e:
        error = sanitize_text(f"{type(e).__name__}: {e}")
        logger.error("Unexpected error handling %s: %s", request.url.path, error)
        return _error(500, "An unexpected error occurred", error=error)
    return JSONResponse(status_code=200, content=sanitize_value(payload))


@router.get("/health")
async def health() -> dict:
    return {"status": "ok"}


@router.get("/delegates")
async def delegates_info() -> dict:
    return {
        "success": True,
        "message": "Delegates API is working. POST a service account file with operation details.",
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }


@router.post("/delegates")
async def delegates(
    request: Request,
    service_account: UploadFile | None = File(None, alias="serviceAccount"),
    operation: str = Form("list"),
    user_email: str | None = Form(None, alias="userEmail"),
    delegate_email: str | None = Form(None, alias="delegateEmail"),
    operations: str | None = Form(None),
) -> JSONResponse:
    """Run a single delegate operation, or a batch when ``operations`` is sent."""
    if operations is not None:
        return await _batch(request, service_account, operations)

    op_request = DelegateOperationRequest(
        operation=operation or Operation.LIST.value,
        mailbox_email=(user_email or "").strip(),
        delegate_email=(delegate_email or "").strip() or None,
    )
    if op_request.parsed_operation is None:
        return _error(400, f"Invalid operation: {op_request.operation}")
    if not op_request.mailbox_email:
        return _error(400, "User email is required")
    if request_problem(op_request):
        return _error(400, "Delegate email is required")

    config: AppConfig = request.app.state.config
    try:
        content = await _read_key(service_account, config)
    except ValidationError as e:
        return _error(400, e.message)

    return await _respond(
        request,
        _run_single,
        request.app.state.client_factory,
        config,
        content,
        op_request,
        context={"userEmail": op_request.mailbox_email, "operation": op_request.operation},
    )


@router.post("/delegates/batch")
async def delegates_batch(
    request: Request,
    service_account: UploadFile | None = File(None, alias="serviceAccount"),
    operations: str | None = Form(None),
) -> JSONResponse:
    """Run a list of delegate operations, one result per item in input order."""
    return await _batch(request, service_account, operations)


async def _batch(
    request: Request, service_account: UploadFile | None, operations: str | None
) -> JSONResponse:
    config: AppConfig = request.app.state.config
    try:
        op_requests = _parse_operations(operations)
        content = await _read_key(service_account, config)
    except ValidationError as e:
        return _error(400, e.message)

    return await _respond(
        request, _run_batch, request.app.state.client_factory, config, content, op_requests
    )
