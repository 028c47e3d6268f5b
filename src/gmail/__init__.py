"""Gmail API integration — service account impersonation and delegate settings."""

from src.gmail.auth import GmailAuth, ServiceAccountKey, staged_service_account
from src.gmail.client import GmailClientFactory, UserGmailClient
from src.gmail.models import (
    BatchResult,
    Delegate,
    DelegateOperationRequest,
    Operation,
    OperationResult,
)

__all__ = [
    "GmailAuth",
    "ServiceAccountKey",
    "staged_service_account",
    "GmailClientFactory",
    "UserGmailClient",
    "BatchResult",
    "Delegate",
    "DelegateOperationRequest",
    "Operation",
    "OperationResult",
]
