"""HTTP client for the OpenAI-compatible upstream (LLM + TTS relay).

Wraps ``httpx.AsyncClient`` with:
- base URL + bearer auth resolved once from :class:`UpstreamConfig`
- a per-call deadline that surfaces as :class:`UpstreamTimeoutError`
- body parsing attempted regardless of status (JSON → text → bytes)
- non-2xx normalized into :class:`UpstreamError` with a bounded detail
- request timing logs
- connection-pool lifecycle tied to FastAPI lifespan

Retrying is not done here: callers wrap :meth:`UpstreamClient.send` with
:func:`services.retry.with_retry` and pick the budget per stage.
"""

from __future__ import annotations

import asyncio
import json
import logging
import time
from typing import Any

import httpx

from config.settings import UpstreamConfig, get_upstream_config
from errors.exceptions import UpstreamError, UpstreamTimeoutError

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Module-level singleton
# ---------------------------------------------------------------------------
_client: UpstreamClient | None = None

CHAT_COMPLETIONS_PATH = "chat/completions"
AUDIO_SPEECH_PATH = "audio/speech"
DEFAULT_TIMEOUT = 30.0  # seconds


def _is_textual(content_type: str) -> bool:
    ct = content_type.lower()
    return ct.startswith("text/") or "json" in ct or "xml" in ct


def parse_body(response: httpx.Response) -> Any:
    """Parse a response body as JSON, falling back to text, then raw bytes.

    Returns ``None`` for an empty body.
    """
    if not response.content:
        return None
    try:
        return response.json()
    except ValueError:
        pass
    content_type = response.headers.get("content-type", "")
    if not content_type:
        # Unlabelled bodies stay binary unless they are valid UTF-8.
        try:
            return response.content.decode("utf-8")
        except UnicodeDecodeError:
            return response.content
    if _is_textual(content_type):
        return response.text
    return response.content


def error_detail(body: Any, status_code: int) -> str:
    """Human-readable detail for a failed call (truncated by ``UpstreamError``)."""
    detail: Any
    if isinstance(body, dict) and body.get("error"):
        detail = body["error"]
    elif body:
        detail = body
    else:
        detail = f"HTTP {status_code}"

    if isinstance(detail, bytes):
        return detail.decode("utf-8", errors="replace")
    if isinstance(detail, str):
        return detail
    return json.dumps(detail, ensure_ascii=False)


def pick_content(response: Any) -> str:
    """Extract ``choices[0].message.content``; ``""`` for any other shape."""
    try:
        content = response["choices"][0]["message"]["content"]
    except (KeyError, IndexError, TypeError):
        return ""
    return content if isinstance(content, str) else ""


class UpstreamClient:
    """Async HTTP client for the upstream relay — one POST per call."""

    def __init__(
        self,
        config: UpstreamConfig,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._config = config
        self._base_url = config.base_url
        self._transport = transport
        self._http: httpx.AsyncClient | None = None

    @property
    def config(self) -> UpstreamConfig:
        return self._config

    # -- lifecycle -----------------------------------------------------------

    async def start(self) -> None:
        """Create the underlying ``httpx.AsyncClient`` connection pool."""
        if self._http is not None:
            return
        self._http = httpx.AsyncClient(
            base_url=self._base_url,
            headers=self._auth_headers(),
            timeout=httpx.Timeout(DEFAULT_TIMEOUT),
            transport=self._transport,
            limits=httpx.Limits(
                max_connections=self._config.max_connections,
                max_keepalive_connections=self._config.max_connections // 2 or 1,
                keepalive_expiry=30,
            ),
        )
        logger.info("UpstreamClient started — base_url=%s", self._base_url)

    async def close(self) -> None:
        """Gracefully close the connection pool."""
        if self._http is not None:
            await self._http.aclose()
            self._http = None
            logger.info("UpstreamClient closed")

    async def __aenter__(self) -> UpstreamClient:
        await self.start()
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.close()

    # -- public API ----------------------------------------------------------

    async def send(
        self,
        endpoint_path: str,
        payload: dict[str, Any],
        timeout: float = DEFAULT_TIMEOUT,
    ) -> Any:
        """POST *payload* to ``{base_url}/{endpoint_path}`` and return the parsed body.

        Raises :class:`UpstreamError` on non-2xx and
        :class:`UpstreamTimeoutError` when no response arrives within
        *timeout* seconds.  Other transport errors propagate unchanged.
        """
        path = "/" + endpoint_path.lstrip("/")
        url = f"{self._base_url}{path}"

        t0 = time.monotonic()
        response = await self._post(path, payload, timeout)
        elapsed_ms = (time.monotonic() - t0) * 1000
        logger.info("POST %s → %d (%.0fms)", path, response.status_code, elapsed_ms)

        body = parse_body(response)
        if not response.is_success:
            raise UpstreamError(
                status_code=response.status_code,
                detail=error_detail(body, response.status_code),
                url=url,
            )
        return body

    async def chat_completion(self, payload: dict[str, Any], timeout: float = DEFAULT_TIMEOUT) -> Any:
        return await self.send(CHAT_COMPLETIONS_PATH, payload, timeout)

    async def speech(self, payload: dict[str, Any], timeout: float = DEFAULT_TIMEOUT) -> Any:
        return await self.send(AUDIO_SPEECH_PATH, payload, timeout)

    async def forward(
        self,
        endpoint_path: str,
        payload: dict[str, Any],
        timeout: float = DEFAULT_TIMEOUT,
    ) -> httpx.Response:
        """POST without normalization; the raw response is returned as-is.

        Used by the pass-through proxy, which must hand non-2xx statuses
        back to its caller untouched.
        """
        path = "/" + endpoint_path.lstrip("/")
        t0 = time.monotonic()
        response = await self._post(path, payload, timeout)
        logger.info(
            "FORWARD %s → %d (%.0fms)",
            path, response.status_code, (time.monotonic() - t0) * 1000,
        )
        return response

    # -- internals -----------------------------------------------------------

    async def _post(self, path: str, payload: dict[str, Any], timeout: float) -> httpx.Response:
        """POST with *timeout* as a deadline over the whole exchange.

        httpx timeouts bound each phase separately, so a body that keeps
        trickling in would never trip them; ``wait_for`` caps the total.
        """
        client = await self._ensure_started()
        t0 = time.monotonic()
        try:
            return await asyncio.wait_for(
                client.post(path, json=payload, timeout=httpx.Timeout(timeout)),
                timeout,
            )
        except (httpx.TimeoutException, asyncio.TimeoutError) as exc:
            elapsed_ms = (time.monotonic() - t0) * 1000
            logger.warning("POST %s → timeout after %.0fms (limit %gs)", path, elapsed_ms, timeout)
            raise UpstreamTimeoutError(timeout, url=f"{self._base_url}{path}") from exc

    def _auth_headers(self) -> dict[str, str]:
        return {
            "Authorization": f"Bearer {self._config.api_key}",
            "Content-Type": "application/json",
        }

    async def _ensure_started(self) -> httpx.AsyncClient:
        if self._http is None:
            await self.start()
        assert self._http is not None
        return self._http


# ---------------------------------------------------------------------------
# Singleton accessor
# ---------------------------------------------------------------------------

def get_upstream_client() -> UpstreamClient:
    """Return the module-level UpstreamClient singleton (create if needed).

    Raises :class:`ConfigurationError` when the upstream is not configured.
    """
    global _client
    if _client is None:
        _client = UpstreamClient(get_upstream_config())
    return _client


def reset_upstream_client() -> None:
    """Drop the singleton (the caller is responsible for closing it first)."""
    global _client
    _client = None
