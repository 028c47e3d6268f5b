"""Delegate data models — Delegate, operation requests and results."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class Operation(str, Enum):
    LIST = "list"
    ADD = "add"
    REMOVE = "remove"

    @classmethod
    def parse(cls, value: str | None) -> Operation | None:
        """Return the matching operation, or None for anything unrecognised."""
        try:
            return cls((value or "").strip().lower())
        except ValueError:
            return None


@dataclass
class Delegate:
    delegate_email: str
    verification_status: str | None = None

    @classmethod
    def from_api(cls, data: dict) -> Delegate:
        """Parse a Gmail API delegate resource."""
        return cls(
            delegate_email=data.get("delegateEmail", ""),
            verification_status=data.get("verificationStatus"),
        )

    def to_dict(self) -> dict[str, Any]:
        result: dict[str, Any] = {"delegateEmail": self.delegate_email}
        if self.verification_status is not None:
            result["verificationStatus"] = self.verification_status
        return result


@dataclass
class DelegateOperationRequest:
    """One requested operation against one mailbox.

    ``operation`` is kept as the raw string so an unrecognised value can be
    reported back verbatim.
    """

    operation: str
    mailbox_email: str
    delegate_email: str | None = None

    @classmethod
    def from_dict(cls, data: dict) -> DelegateOperationRequest:
        """Parse a batch item (``userEmail`` on the wire, ``mailboxEmail`` accepted)."""
        mailbox = data.get("userEmail") or data.get("mailboxEmail") or ""
        delegate = data.get("delegateEmail") or None
        return cls(
            operation=str(data.get("operation") or ""),
            mailbox_email=str(mailbox).strip(),
            delegate_email=str(delegate).strip() if delegate else None,
        )

    @property
    def parsed_operation(self) -> Operation | None:
        return Operation.parse(self.operation)


@dataclass
class OperationResult:
    success: bool
    mailbox_email: str
    operation: str
    message: str
    delegate_email: str | None = None
    delegates: list[Delegate] | None = None
    details: Any = None

    @classmethod
    def failure(
        cls,
        request: DelegateOperationRequest,
        message: str,
        details: Any = None,
    ) -> OperationResult:
        return cls(
            success=False,
            mailbox_email=request.mailbox_email or "unknown",
            operation=request.operation or "unknown",
            message=message,
            delegate_email=request.delegate_email,
            details=details,
        )

    def to_dict(self) -> dict[str, Any]:
        """Serialize for the JSON response; optional fields are omitted when unset."""
        result: dict[str, Any] = {
            "success": self.success,
            "userEmail": self.mailbox_email,
            "operation": self.operation,
            "message": self.message,
        }
        if self.delegate_email is not None:
            result["delegateEmail"] = self.delegate_email
        if self.delegates is not None:
            result["delegates"] = [d.to_dict() for d in self.delegates]
        if self.details is not None:
            result["details"] = self.details
        return result


@dataclass
class BatchResult:
    results: list[OperationResult] = field(default_factory=list)

    @property
    def failed(self) -> int:
        return sum(1 for r in self.results if not r.success)

    def to_dict(self) -> dict[str, Any]:
        return {"success": True, "results": [r.to_dict() for r in self.results]}
