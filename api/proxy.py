"""Pass-through proxy endpoints for browser clients.

The browser never sees the API key: these routes attach server-side
credentials and forward the body to the configured upstream.  Upstream
statuses (including non-2xx) are handed back verbatim so the caller can
still tell a 401 from a 429 from a 504.
"""

from __future__ import annotations

import base64
import logging
from typing import Any

import httpx
from fastapi import APIRouter, Body, Depends
from fastapi.responses import JSONResponse, PlainTextResponse, Response

from models.request import ProxyRequest, TtsProxyRequest
from services.upstream_client import (
    AUDIO_SPEECH_PATH,
    CHAT_COMPLETIONS_PATH,
    UpstreamClient,
    get_upstream_client,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["proxy"])

PROXY_TIMEOUT = 60.0  # seconds


def _unwrap(body: dict[str, Any]) -> ProxyRequest:
    """Accept ``{endpoint, payload}`` or a bare provider payload."""
    if "payload" in body:
        return ProxyRequest.model_validate(body)
    return ProxyRequest(endpoint=CHAT_COMPLETIONS_PATH, payload=body)


@router.post("/llm")
async def forward_llm(
    body: dict[str, Any] = Body(...),
    client: UpstreamClient = Depends(get_upstream_client),
) -> Response:
    """Forward a chat (or any JSON) request upstream and relay the reply as-is."""
    req = _unwrap(body)
    try:
        upstream = await client.forward(req.endpoint, req.payload or {}, timeout=PROXY_TIMEOUT)
    except httpx.TransportError as exc:
        logger.warning("Proxy transport failure for %s: %s", req.endpoint, exc)
        return PlainTextResponse(f"Upstream unreachable: {exc}", status_code=502)

    return Response(
        content=upstream.content,
        status_code=upstream.status_code,
        media_type=upstream.headers.get("content-type", "application/json"),
    )


@router.post("/tts")
async def forward_tts(
    req: TtsProxyRequest,
    client: UpstreamClient = Depends(get_upstream_client),
) -> Response:
    """Synthesize speech upstream and return the audio re-encoded as base64 JSON."""
    if not req.text:
        return PlainTextResponse("Missing 'text' in request body.", status_code=400)

    config = client.config
    payload = {
        "model": req.model or config.tts_model,
        "voice": req.voice or config.tts_voice,
        "input": req.text,
        "format": req.format or config.tts_format,
    }
    try:
        upstream = await client.forward(AUDIO_SPEECH_PATH, payload, timeout=PROXY_TIMEOUT)
    except httpx.TransportError as exc:
        logger.warning("TTS proxy transport failure: %s", exc)
        return PlainTextResponse(f"Upstream unreachable: {exc}", status_code=502)

    if not upstream.is_success:
        return PlainTextResponse(upstream.text, status_code=upstream.status_code)

    return JSONResponse({
        "audio_base64": base64.b64encode(upstream.content).decode("ascii"),
        "format": payload["format"],
    })
