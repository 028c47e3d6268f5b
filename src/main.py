"""Delegate Ease — FastAPI application entry point."""

from __future__ import annotations

import logging

import sentry_sdk
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse, RedirectResponse

from src.api.delegates import router as delegates_router
from src.config import AppConfig
from src.gmail.client import GmailClientFactory

logger = logging.getLogger(__name__)


def _validation_message(exc: RequestValidationError) -> str:
    """Describe a rejected request without repeating any submitted value."""
    fields = [str(err.get("loc", ())[-1]) for err in exc.errors() if err.get("loc")]
    if "serviceAccount" in fields:
        return "Service account file is required"
    if fields:
        return f"Invalid request field(s): {', '.join(sorted(set(fields)))}"
    return "Invalid request"


async def _validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    # The default 422 body echoes field input, which may be the uploaded key
    message = _validation_message(exc)
    logger.warning("Rejected request to %s: %s", request.url.path, message)
    return JSONResponse(status_code=400, content={"success": False, "message": message})


def _init_sentry(dsn: str, environment: str) -> None:
    """Initialize Sentry SDK if a DSN is configured and not in development.

    Request bodies and PII stay off: every POST carries a private key.
    """
    if not dsn or environment == "development":
        return
    sentry_sdk.init(
        dsn,
        environment=environment,
        send_default_pii=False,
        max_request_body_size="never",
        traces_sample_rate=0,
        send_client_reports=False,
        auto_session_tracking=False,
    )


def create_app(
    config: AppConfig | None = None,
    client_factory: GmailClientFactory | None = None,
) -> FastAPI:
    """Create and configure the FastAPI application."""
    if config is None:
        config = AppConfig.from_yaml()

    _init_sentry(config.sentry_dsn, config.environment)

    # Configure logging
    logging.basicConfig(
        level=getattr(logging, config.server.log_level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    app = FastAPI(
        title="Delegate Ease",
        version="1.0.0",
        description="Manage Gmail mailbox delegates with a service account",
        debug=config.environment == "development",
    )

    app.state.config = config
    app.state.client_factory = client_factory or GmailClientFactory(config)

    # Basic auth middleware (disabled when credentials not configured)
    if config.server.admin_user and config.server.admin_password:
        from src.middleware import BasicAuthMiddleware

        app.add_middleware(
            BasicAuthMiddleware,
            username=config.server.admin_user,
            password=config.server.admin_password,
        )

    app.add_exception_handler(RequestValidationError, _validation_error_handler)
    app.include_router(delegates_router)

    @app.get("/", include_in_schema=False)
    async def root():
        return RedirectResponse(url="/docs")

    logger.info("Delegate Ease ready (environment=%s)", config.environment)
    return app


def cli_entry() -> None:
    """CLI entry point for running the server."""
    import uvicorn

    config = AppConfig.from_yaml()
    app = create_app(config)

    uvicorn.run(
        app,
        host=config.server.host,
        port=config.server.port,
        log_level=config.server.log_level,
    )


# Default app instance for uvicorn
app = create_app()
