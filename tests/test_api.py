"""FastAPI endpoint tests using httpx.AsyncClient."""

from unittest.mock import AsyncMock, MagicMock, patch

import httpx
import pytest
from httpx import ASGITransport, AsyncClient

from agents.pipeline import get_pipeline
from config.settings import Settings, UpstreamConfig, load_upstream_config
from errors.exceptions import (
    ConfigurationError,
    EmptyContentError,
    UpstreamError,
    UpstreamTimeoutError,
)
from main import app, lifespan
from services.upstream_client import get_upstream_client, reset_upstream_client
from tests.upstream_stub import ScriptedUpstream, chat_reply


@pytest.fixture
def pipeline():
    p = MagicMock()
    p.audio_format = "mp3"
    for name in ("verify_problem", "solve_problem", "analyze_problem_history",
                 "generate_drills", "generate_speech"):
        setattr(p, name, AsyncMock())
    app.dependency_overrides[get_pipeline] = lambda: p
    yield p
    app.dependency_overrides.clear()


@pytest.fixture
def upstream_override(make_client):
    def _install(upstream: ScriptedUpstream):
        client = make_client(upstream)
        app.dependency_overrides[get_upstream_client] = lambda: client
        return client

    yield _install
    app.dependency_overrides.clear()


@pytest.fixture
async def client():
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


# ── Health ─────────────────────────────────────────────────────


@pytest.mark.asyncio
async def test_health(client):
    resp = await client.get("/api/health")
    assert resp.status_code == 200
    data = resp.json()
    assert data["status"] == "healthy"
    assert "upstreamConfigured" in data


@pytest.mark.asyncio
async def test_request_id_echoed(client):
    resp = await client.get("/api/health", headers={"X-Request-ID": "req-123"})
    assert resp.headers["x-request-id"] == "req-123"


# ── Stage endpoints ────────────────────────────────────────────


@pytest.mark.asyncio
async def test_verify_endpoint(client, pipeline):
    pipeline.verify_problem.return_value = "It often rains in summer."
    resp = await client.post(
        "/api/verify",
        json={"image": {"encodedBytes": "AAAA", "mimeType": "image/png"}, "text": "It often ____"},
    )

    assert resp.status_code == 200
    assert resp.json() == {"text": "It often rains in summer."}
    request = pipeline.verify_problem.await_args.args[0]
    assert request.image.encoded_bytes == "AAAA"
    assert request.supplementary_text == "It often ____"


@pytest.mark.asyncio
async def test_solve_endpoint(client, pipeline):
    pipeline.solve_problem.return_value = "<div>ok</div>"
    resp = await client.post("/api/solve", json={"text": "He ____ to school."})
    assert resp.status_code == 200
    assert resp.json() == {"html": "<div>ok</div>"}


@pytest.mark.asyncio
async def test_history_endpoint(client, pipeline):
    pipeline.analyze_problem_history.return_value = "<div>report</div>"
    resp = await client.post(
        "/api/history/analyze",
        json={"problems": [{"id": "p1", "questionText": "x", "tags": ["tense"], "custom": 1}]},
    )
    assert resp.status_code == 200
    problems = pipeline.analyze_problem_history.await_args.args[0]
    assert problems[0].question_text == "x"


@pytest.mark.asyncio
async def test_drills_endpoint(client, pipeline):
    pipeline.generate_drills.return_value = "<div>1</div>\n<div>2</div>"
    resp = await client.post(
        "/api/drills",
        json={"originalProblem": "It often ____", "solutionHtml": "<div>B</div>"},
    )
    assert resp.status_code == 200
    pipeline.generate_drills.assert_awaited_once_with("It often ____", "<div>B</div>")


@pytest.mark.asyncio
async def test_drills_requires_problem(client, pipeline):
    resp = await client.post("/api/drills", json={"solutionHtml": "<div/>"})
    assert resp.status_code == 422


@pytest.mark.asyncio
async def test_speech_endpoint_camel_case(client, pipeline):
    pipeline.generate_speech.return_value = "SUQz"
    resp = await client.post("/api/speech", json={"html": "<div>B</div>"})
    assert resp.status_code == 200
    assert resp.json() == {"audioBase64": "SUQz", "format": "mp3"}


# ── Error taxonomy → HTTP ──────────────────────────────────────


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "exc,status,kind",
    [
        (ConfigurationError("API_KEY"), 500, "configuration"),
        (UpstreamError(429, "rate limited"), 502, "upstream"),
        (UpstreamTimeoutError(30), 504, "timeout"),
        (EmptyContentError("solve"), 502, "empty_content"),
    ],
)
async def test_pipeline_errors_mapped(client, pipeline, exc, status, kind):
    pipeline.solve_problem.side_effect = exc
    resp = await client.post("/api/solve", json={"text": "x"})

    assert resp.status_code == status
    assert resp.json()["error"] == kind


@pytest.mark.asyncio
async def test_upstream_error_reports_upstream_status(client, pipeline):
    pipeline.solve_problem.side_effect = UpstreamError(401, "bad key")
    resp = await client.post("/api/solve", json={"text": "x"})
    assert resp.json()["upstreamStatus"] == 401


@pytest.mark.asyncio
async def test_unconfigured_dependency_is_configuration_error(client):
    def _unconfigured():
        raise ConfigurationError("API_BASE")

    app.dependency_overrides[get_pipeline] = _unconfigured
    try:
        resp = await client.post("/api/verify", json={"text": "x"})
    finally:
        app.dependency_overrides.clear()

    assert resp.status_code == 500
    assert resp.json()["setting"] == "API_BASE"


# ── Proxy ──────────────────────────────────────────────────────


@pytest.mark.asyncio
async def test_llm_proxy_wrapped_payload(client, upstream_override):
    upstream = ScriptedUpstream(chat_reply("hi"))
    upstream_override(upstream)

    resp = await client.post(
        "/api/llm",
        json={"endpoint": "/chat/completions", "payload": {"model": "m", "messages": []}},
    )

    assert resp.status_code == 200
    assert resp.json()["choices"][0]["message"]["content"] == "hi"
    assert upstream.bodies[0] == {"model": "m", "messages": []}
    assert upstream.requests[0].headers["Authorization"] == "Bearer sk-test"


@pytest.mark.asyncio
async def test_llm_proxy_bare_payload_defaults_to_chat(client, upstream_override):
    upstream = ScriptedUpstream(chat_reply("hi"))
    upstream_override(upstream)

    resp = await client.post("/api/llm", json={"model": "m", "messages": []})

    assert resp.status_code == 200
    assert str(upstream.requests[0].url).endswith("/chat/completions")
    assert upstream.bodies[0] == {"model": "m", "messages": []}


@pytest.mark.asyncio
async def test_llm_proxy_passes_non_2xx_through(client, upstream_override):
    upstream_override(ScriptedUpstream(httpx.Response(429, json={"error": "slow down"})))

    resp = await client.post("/api/llm", json={"payload": {}})

    assert resp.status_code == 429
    assert resp.json() == {"error": "slow down"}


@pytest.mark.asyncio
async def test_tts_proxy_encodes_audio(client, upstream_override):
    upstream = ScriptedUpstream(httpx.Response(200, content=b"ID3", headers={"content-type": "audio/mpeg"}))
    upstream_override(upstream)

    resp = await client.post("/api/tts", json={"text": "hello", "voice": "nova"})

    assert resp.status_code == 200
    assert resp.json() == {"audio_base64": "SUQz", "format": "mp3"}
    assert upstream.bodies[0] == {"model": "gpt-4o-mini-tts", "voice": "nova", "input": "hello", "format": "mp3"}


@pytest.mark.asyncio
async def test_tts_proxy_requires_text(client, upstream_override):
    upstream = ScriptedUpstream(httpx.Response(200))
    upstream_override(upstream)

    resp = await client.post("/api/tts", json={})

    assert resp.status_code == 400
    assert upstream.call_count == 0


@pytest.mark.asyncio
async def test_tts_proxy_passes_error_text_through(client, upstream_override):
    upstream_override(ScriptedUpstream(httpx.Response(404, text="no such route")))

    resp = await client.post("/api/tts", json={"text": "hello"})

    assert resp.status_code == 404
    assert resp.text == "no such route"


# ── Unconfigured startup ───────────────────────────────────────


@pytest.fixture
def unconfigured(monkeypatch):
    monkeypatch.setattr(
        "config.settings.get_settings",
        lambda: Settings(_env_file=None, api_base="", api_key=""),
    )
    load_upstream_config.cache_clear()
    reset_upstream_client()
    yield
    load_upstream_config.cache_clear()
    reset_upstream_client()


@pytest.mark.asyncio
async def test_unconfigured_start_validates_once(client, unconfigured):
    with patch.object(
        UpstreamConfig, "from_settings", wraps=UpstreamConfig.from_settings
    ) as from_settings:
        async with lifespan(app):
            health = await client.get("/api/health")
            responses = [await client.post("/api/verify", json={"text": "x"}) for _ in range(3)]

    assert from_settings.call_count == 1
    assert health.json()["upstreamConfigured"] is False
    for resp in responses:
        assert resp.status_code == 500
        assert resp.json()["error"] == "configuration"
        assert resp.json()["setting"] == "API_BASE"
