"""Application configuration — env vars, YAML files, defaults."""

from __future__ import annotations

import tempfile
from pathlib import Path
from typing import Any

import yaml
from pydantic import Field
from pydantic_settings import BaseSettings


def _repo_root() -> Path:
    """Find the repository root (directory containing pyproject.toml)."""
    current = Path(__file__).resolve().parent.parent
    if (current / "pyproject.toml").exists():
        return current
    return Path.cwd()


REPO_ROOT = _repo_root()

DELEGATE_SCOPES = [
    "https://www.googleapis.com/auth/gmail.settings.sharing",
    "https://www.googleapis.com/auth/gmail.settings.basic",
    "https://www.googleapis.com/auth/gmail.modify",
]

GOOGLE_TOKEN_URI = "https://oauth2.googleapis.com/token"


class AuthConfig(BaseSettings):
    scopes: list[str] = Field(default_factory=lambda: list(DELEGATE_SCOPES))
    token_uri: str = GOOGLE_TOKEN_URI
    temp_dir: Path = Path(tempfile.gettempdir()) / "delegate-ease"
    max_key_bytes: int = 64 * 1024
    # Token exchange + getProfile before handing out a client
    verify_access: bool = True

    model_config = {"env_prefix": "DLG_AUTH_"}


class GmailConfig(BaseSettings):
    max_retries: int = 3
    base_delay: float = 1.0

    model_config = {"env_prefix": "DLG_GMAIL_"}


class ServerConfig(BaseSettings):
    host: str = "0.0.0.0"
    port: int = 8000
    log_level: str = "info"
    admin_user: str = ""
    admin_password: str = ""

    model_config = {"env_prefix": "DLG_SERVER_"}


class AppConfig(BaseSettings):
    """Top-level application configuration."""

    auth: AuthConfig = Field(default_factory=AuthConfig)
    gmail: GmailConfig = Field(default_factory=GmailConfig)
    server: ServerConfig = Field(default_factory=ServerConfig)

    # Environment & Sentry
    environment: str = "development"
    sentry_dsn: str = ""

    model_config = {"env_prefix": "DLG_"}

    @classmethod
    def from_yaml(cls, path: Path | None = None) -> AppConfig:
        """Load config from YAML file, with env var overrides."""
        if path is None:
            path = REPO_ROOT / "config" / "app.yml"

        values: dict[str, Any] = {}
        if path.exists():
            with open(path) as f:
                values = yaml.safe_load(f) or {}

        return cls(**values)
