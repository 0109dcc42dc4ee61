"""FastAPI entry point for Grammar Coach Agent service."""

import logging
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from config.settings import get_settings, load_upstream_config
from errors.exceptions import (
    ConfigurationError,
    EmptyContentError,
    UpstreamError,
    UpstreamTimeoutError,
)
from services.middleware import RequestLogMiddleware
from services.upstream_client import get_upstream_client, reset_upstream_client

settings = get_settings()

logging.basicConfig(
    level=settings.log_level.upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Validate configuration eagerly and own the upstream connection pool."""
    config = load_upstream_config()
    if isinstance(config, ConfigurationError):
        # The failure stays cached: /api/health reports it and stage calls
        # re-raise it without validating again.
        logger.error("Upstream not configured: %s", config)
        yield
        return

    client = get_upstream_client()
    await client.start()

    yield

    await client.close()
    reset_upstream_client()


app = FastAPI(
    title="Grammar Coach Agent",
    description="English grammar solving, drills and narration over an OpenAI-compatible relay",
    version="0.1.0",
    lifespan=lifespan,
)

# ── Middleware stack (outermost first) ─────────────────────────
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)
app.add_middleware(RequestLogMiddleware)


# ── Error taxonomy → HTTP ──────────────────────────────────────


def _error(status_code: int, kind: str, exc: Exception, **extra) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={"error": kind, "detail": str(exc), **extra},
    )


@app.exception_handler(ConfigurationError)
async def configuration_error_handler(request: Request, exc: ConfigurationError):
    logger.error("%s %s: %s", request.method, request.url.path, exc)
    return _error(500, "configuration", exc, setting=exc.setting)


@app.exception_handler(UpstreamTimeoutError)
async def timeout_error_handler(request: Request, exc: UpstreamTimeoutError):
    logger.warning("%s %s: %s", request.method, request.url.path, exc)
    return _error(504, "timeout", exc, timeout=exc.timeout)


@app.exception_handler(UpstreamError)
async def upstream_error_handler(request: Request, exc: UpstreamError):
    logger.warning("%s %s: %s", request.method, request.url.path, exc)
    return _error(502, "upstream", exc, upstreamStatus=exc.status_code)


@app.exception_handler(EmptyContentError)
async def empty_content_handler(request: Request, exc: EmptyContentError):
    logger.warning("%s %s: %s", request.method, request.url.path, exc)
    return _error(502, "empty_content", exc, stage=exc.stage)


# ── Register routers ────────────────────────────────────────
from api.health import router as health_router  # noqa: E402
from api.proxy import router as proxy_router  # noqa: E402
from api.stages import router as stages_router  # noqa: E402

app.include_router(health_router)
app.include_router(stages_router)
app.include_router(proxy_router)


if __name__ == "__main__":
    if settings.debug:
        # Development: single worker with reload
        uvicorn.run(
            "main:app",
            host="0.0.0.0",
            port=settings.service_port,
            reload=True,
        )
    else:
        # Production: prefer gunicorn main:app -c deploy/gunicorn.conf.py
        uvicorn.run(
            "main:app",
            host="0.0.0.0",
            port=settings.service_port,
            workers=4,
            timeout_keep_alive=120,
        )
