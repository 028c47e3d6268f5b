"""Tests for delegate data models."""

from src.gmail.models import (
    Delegate,
    DelegateOperationRequest,
    Operation,
    OperationResult,
)


class TestDelegate:
    def test_from_api(self):
        d = Delegate.from_api({"delegateEmail": "alice@example.com", "verificationStatus": "accepted"})
        assert d.delegate_email == "alice@example.com"
        assert d.verification_status == "accepted"

    def test_to_dict_omits_missing_status(self):
        assert Delegate("bob@example.com").to_dict() == {"delegateEmail": "bob@example.com"}


class TestOperation:
    def test_parse_is_lenient_on_case_and_whitespace(self):
        assert Operation.parse(" Add ") is Operation.ADD

    def test_parse_unknown(self):
        assert Operation.parse("grant") is None
        assert Operation.parse(None) is None


class TestDelegateOperationRequest:
    def test_from_dict_wire_names(self):
        req = DelegateOperationRequest.from_dict(
            {"operation": "add", "userEmail": " shared@example.com ", "delegateEmail": "a@example.com"}
        )
        assert req.mailbox_email == "shared@example.com"
        assert req.delegate_email == "a@example.com"
        assert req.parsed_operation is Operation.ADD

    def test_from_dict_accepts_mailbox_email(self):
        req = DelegateOperationRequest.from_dict({"operation": "list", "mailboxEmail": "shared@example.com"})
        assert req.mailbox_email == "shared@example.com"
        assert req.delegate_email is None


class TestOperationResult:
    def test_to_dict_list(self):
        result = OperationResult(
            success=True,
            mailbox_email="shared@example.com",
            operation="list",
            message="Delegates retrieved successfully",
            delegates=[Delegate("a@example.com", "pending")],
        )
        assert result.to_dict() == {
            "success": True,
            "userEmail": "shared@example.com",
            "operation": "list",
            "message": "Delegates retrieved successfully",
            "delegates": [{"delegateEmail": "a@example.com", "verificationStatus": "pending"}],
        }

    def test_failure_fills_unknowns(self):
        result = OperationResult.failure(DelegateOperationRequest("", ""), "Invalid operation parameters")
        data = result.to_dict()
        assert data["userEmail"] == "unknown"
        assert data["operation"] == "unknown"
        assert "delegates" not in data
        assert "details" not in data
