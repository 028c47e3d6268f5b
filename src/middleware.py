"""HTTP middleware — Basic Auth in front of the delegate API.

Uses pure ASGI middleware (not BaseHTTPMiddleware) so multipart uploads are
streamed straight through to the route.
"""

from __future__ import annotations

import base64
import binascii
import secrets

from starlette.responses import JSONResponse
from starlette.types import ASGIApp, Receive, Scope, Send

# Paths that never require authentication
PUBLIC_PATHS = frozenset({"/api/health"})


class BasicAuthMiddleware:
    """Require HTTP Basic Auth on every route except the health check."""

    def __init__(self, app: ASGIApp, username: str, password: str) -> None:
        self.app = app
        self._username = username
        self._password = password

    def _authorized(self, header: str) -> bool:
        scheme, _, encoded = header.partition(" ")
        if scheme.lower() != "basic" or not encoded:
            return False
        try:
            decoded = base64.b64decode(encoded, validate=True).decode("utf-8")
        except (binascii.Error, UnicodeDecodeError):
            return False
        user, _, pwd = decoded.partition(":")
        # Evaluate both comparisons so timing doesn't reveal which one failed
        user_ok = secrets.compare_digest(user.encode(), self._username.encode())
        pwd_ok = secrets.compare_digest(pwd.encode(), self._password.encode())
        return user_ok and pwd_ok

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http" or scope["path"] in PUBLIC_PATHS:
            await self.app(scope, receive, send)
            return

        headers = dict(scope.get("headers", []))
        auth = headers.get(b"authorization", b"").decode("latin-1")
        if self._authorized(auth):
            await self.app(scope, receive, send)
            return

        response = JSONResponse(
            status_code=401,
            content={"success": False, "message": "Authentication required"},
            headers={"WWW-Authenticate": 'Basic realm="Delegate Ease"'},
        )
        await response(scope, receive, send)
