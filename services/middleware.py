"""FastAPI middleware — request ID + access timing (pure ASGI)."""

from __future__ import annotations

import logging
import time
import uuid

from starlette.types import ASGIApp, Message, Receive, Scope, Send

logger = logging.getLogger(__name__)


class RequestLogMiddleware:
    """Tag every HTTP request with an ID and log its outcome and latency.

    Reuses an incoming ``X-Request-ID`` or generates a short UUID, stores it
    in ``scope["state"]`` and echoes it back in the response headers.  One
    INFO line per request records method, path, status and elapsed time;
    stage calls can run for tens of seconds, so the timing is what matters
    when reading logs.
    """

    def __init__(self, app: ASGIApp) -> None:
        self.app = app

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        headers = dict(scope.get("headers", []))
        request_id = headers.get(b"x-request-id", b"").decode() or uuid.uuid4().hex[:8]
        scope.setdefault("state", {})
        scope["state"]["request_id"] = request_id

        status_code = 500
        t0 = time.monotonic()

        async def send_wrapper(message: Message) -> None:
            nonlocal status_code
            if message["type"] == "http.response.start":
                status_code = message["status"]
                response_headers = list(message.get("headers", []))
                response_headers.append((b"x-request-id", request_id.encode()))
                message["headers"] = response_headers
            await send(message)

        try:
            await self.app(scope, receive, send_wrapper)
        finally:
            logger.info(
                "[%s] %s %s → %d (%.0fms)",
                request_id,
                scope.get("method", ""),
                scope.get("path", ""),
                status_code,
                (time.monotonic() - t0) * 1000,
            )
