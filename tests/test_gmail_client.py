"""Tests for the Gmail client factory and per-mailbox delegate client."""

from __future__ import annotations

from unittest.mock import MagicMock, patch

import pytest
from googleapiclient.errors import HttpError
from httplib2 import Response

from src.config import AppConfig
from src.errors import ApiError, AuthenticationError
from src.gmail.client import GmailClientFactory, UserGmailClient
from tests.conftest import FakeGmailService, http_error


@pytest.fixture
def factory() -> GmailClientFactory:
    return GmailClientFactory(AppConfig())


class TestGmailClientFactory:
    @patch("src.gmail.client.build")
    def test_verifies_token_and_profile(self, mock_build, factory, service_account_key):
        service = FakeGmailService("shared@example.com")
        mock_build.return_value = service
        creds = MagicMock()

        with patch.object(factory.auth, "delegated_credentials", return_value=creds) as mock_creds, \
                patch.object(factory.auth, "fetch_token") as mock_fetch:
            client = factory.for_user(service_account_key, "shared@example.com")

        mock_creds.assert_called_once_with(service_account_key, "shared@example.com")
        mock_fetch.assert_called_once_with(creds, "shared@example.com")
        mock_build.assert_called_once_with("gmail", "v1", credentials=creds, cache_discovery=False)
        assert client.user_email == "shared@example.com"

    @patch("src.gmail.client.build")
    def test_token_failure_skips_build(self, mock_build, factory, service_account_key):
        with patch.object(factory.auth, "delegated_credentials"), \
                patch.object(factory.auth, "fetch_token", side_effect=AuthenticationError("no token")):
            with pytest.raises(AuthenticationError, match="no token"):
                factory.for_user(service_account_key, "shared@example.com")
        mock_build.assert_not_called()

    @patch("src.gmail.client.build")
    def test_profile_failure_is_authentication_error(self, mock_build, factory, service_account_key):
        service = FakeGmailService("shared@example.com")
        service.profile_error = http_error(403, "Delegation denied for shared@example.com")
        mock_build.return_value = service

        with patch.object(factory.auth, "delegated_credentials"), patch.object(factory.auth, "fetch_token"):
            with pytest.raises(AuthenticationError) as exc_info:
                factory.for_user(service_account_key, "shared@example.com")

        assert "Delegation denied" in exc_info.value.message
        assert exc_info.value.details["code"] == 403

    @patch("src.gmail.client.build")
    def test_verification_can_be_disabled(self, mock_build, service_account_key):
        config = AppConfig()
        config.auth.verify_access = False
        factory = GmailClientFactory(config)

        with patch.object(factory.auth, "delegated_credentials"), \
                patch.object(factory.auth, "fetch_token") as mock_fetch:
            factory.for_user(service_account_key, "shared@example.com")
        mock_fetch.assert_not_called()


class TestUserGmailClient:
    def test_list_delegates_without_key(self, client):
        assert client.list_delegates() == []

    def test_create_sends_body(self):
        service = MagicMock()
        delegates = service.users.return_value.settings.return_value.delegates.return_value
        delegates.create.return_value.execute.return_value = {"delegateEmail": "a@example.com"}

        client = UserGmailClient(service, "shared@example.com")
        assert client.create_delegate("a@example.com") == {"delegateEmail": "a@example.com"}
        delegates.create.assert_called_once_with(userId="me", body={"delegateEmail": "a@example.com"})

    def test_delete_uses_delegate_email(self):
        service = MagicMock()
        delegates = service.users.return_value.settings.return_value.delegates.return_value
        delegates.delete.return_value.execute.return_value = ""

        UserGmailClient(service, "shared@example.com").delete_delegate("a@example.com")
        delegates.delete.assert_called_once_with(userId="me", delegateEmail="a@example.com")

    def test_http_error_becomes_api_error(self, client, gmail_service):
        gmail_service.delegates_api.errors["create"] = http_error(409, "Delegate already exists.")
        with pytest.raises(ApiError) as exc_info:
            client.create_delegate("a@example.com")
        assert exc_info.value.status == 409
        assert exc_info.value.message == "Delegate already exists."

    def test_network_error_becomes_api_error(self, client, gmail_service):
        gmail_service.delegates_api.errors["list"] = ConnectionResetError("reset by peer")
        with pytest.raises(ApiError, match="reset by peer"):
            client.list_delegates()


class TestApiErrorFromHttpError:
    def test_non_json_body(self):
        exc = HttpError(Response({"status": 502}), b"<html>Bad Gateway</html>")
        err = ApiError.from_http_error(exc)
        assert err.status == 502
        assert err.details == {"code": 502}
        assert err.message
