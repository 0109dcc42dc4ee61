"""Shared pytest fixtures for the grammar coach pipeline.

Provides:
- ``upstream_config``: a valid, immutable UpstreamConfig
- ``make_client``: build an UpstreamClient over a scripted transport
- ``make_pipeline``: build a GrammarPipeline over a scripted transport
- ``no_backoff`` (autouse): retry delays collapsed to zero
"""

from __future__ import annotations

import httpx
import pytest

from agents.pipeline import GrammarPipeline
from config.settings import UpstreamConfig
from services.upstream_client import UpstreamClient
from tests.upstream_stub import ScriptedUpstream


@pytest.fixture(autouse=True)
def no_backoff(monkeypatch):
    """Keep retry tests fast — delays become 0s."""
    monkeypatch.setattr("services.retry.RETRY_BASE_DELAY", 0)
    monkeypatch.setattr("services.retry.RETRY_MAX_DELAY", 0)


@pytest.fixture
def upstream_config() -> UpstreamConfig:
    return UpstreamConfig(
        base_url="https://relay.example.com/v1",
        api_key="sk-test",
        llm_model="gpt-4o-mini",
        tts_model="gpt-4o-mini-tts",
        tts_voice="alloy",
        tts_format="mp3",
    )


@pytest.fixture
def make_client(upstream_config):
    def _make(upstream: ScriptedUpstream) -> UpstreamClient:
        return UpstreamClient(upstream_config, transport=httpx.MockTransport(upstream))

    return _make


@pytest.fixture
def make_pipeline(make_client, upstream_config):
    def _make(upstream: ScriptedUpstream) -> GrammarPipeline:
        return GrammarPipeline(make_client(upstream), upstream_config)

    return _make
