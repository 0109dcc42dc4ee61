"""Pydantic Settings — typed configuration with .env auto-loading."""

from __future__ import annotations

from functools import lru_cache

from pydantic import BaseModel, ConfigDict
from pydantic_settings import BaseSettings, SettingsConfigDict

from errors.exceptions import ConfigurationError


class Settings(BaseSettings):
    """Application configuration loaded from environment / .env file."""

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    # ── Service ──────────────────────────────────────────────
    service_port: int = 5000
    cors_origins: list[str] = ["*"]
    debug: bool = False
    log_level: str = "INFO"

    # ── Upstream (OpenAI-compatible relay) ───────────────────
    api_base: str = ""
    api_key: str = ""
    upstream_max_connections: int = 20

    # ── Models ───────────────────────────────────────────────
    llm_model: str = "gpt-4o-mini"
    tts_model: str = "gpt-4o-mini-tts"
    tts_voice: str = "alloy"
    tts_format: str = "mp3"


class UpstreamConfig(BaseModel):
    """Immutable, validated view of everything the pipeline needs upstream.

    Built once at startup and handed to each component at construction so
    no call path ever reads the environment.
    """

    model_config = ConfigDict(frozen=True)

    base_url: str
    api_key: str
    llm_model: str = "gpt-4o-mini"
    tts_model: str = "gpt-4o-mini-tts"
    tts_voice: str = "alloy"
    tts_format: str = "mp3"
    max_connections: int = 20

    @classmethod
    def from_settings(cls, settings: Settings) -> UpstreamConfig:
        """Validate *settings* and raise :class:`ConfigurationError` on gaps."""
        base_url = settings.api_base.strip().rstrip("/")
        if not base_url:
            raise ConfigurationError("API_BASE")
        api_key = settings.api_key.strip()
        if not api_key:
            raise ConfigurationError("API_KEY")
        return cls(
            base_url=base_url,
            api_key=api_key,
            llm_model=settings.llm_model,
            tts_model=settings.tts_model,
            tts_voice=settings.tts_voice,
            tts_format=settings.tts_format,
            max_connections=settings.upstream_max_connections,
        )


@lru_cache
def get_settings() -> Settings:
    """Singleton accessor for application settings."""
    return Settings()


@lru_cache
def load_upstream_config() -> UpstreamConfig | ConfigurationError:
    """Validate the upstream settings once per process.

    The outcome is cached either way: a misconfigured process keeps
    reporting the startup error without re-reading its settings.
    """
    try:
        return UpstreamConfig.from_settings(get_settings())
    except ConfigurationError as exc:
        return exc


def get_upstream_config() -> UpstreamConfig:
    """Singleton accessor for the validated upstream configuration."""
    result = load_upstream_config()
    if isinstance(result, ConfigurationError):
        raise ConfigurationError(result.setting, str(result))
    return result
