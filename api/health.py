"""Health check endpoint."""

from __future__ import annotations

from fastapi import APIRouter

from config.settings import load_upstream_config
from errors.exceptions import ConfigurationError

router = APIRouter(prefix="/api", tags=["health"])


@router.get("/health")
async def health() -> dict:
    configured = not isinstance(load_upstream_config(), ConfigurationError)
    return {"status": "healthy", "upstreamConfigured": configured}
