"""Failure taxonomy for the grammar coach pipeline.

Every stage raises one of these kinds so that callers (the API layer, or
any other collaborator) can tell a misconfigured deployment apart from a
transient upstream problem without parsing messages.
"""

from __future__ import annotations

MAX_ERROR_DETAIL = 1500


def truncate_detail(detail: str, limit: int = MAX_ERROR_DETAIL) -> str:
    """Bound an upstream error detail to *limit* characters."""
    if len(detail) <= limit:
        return detail
    return detail[:limit] + "..."


class PipelineError(Exception):
    """Base class for all pipeline failures."""


class ConfigurationError(PipelineError):
    """A required setting is missing.  Fatal, never retried."""

    def __init__(self, setting: str, message: str = "") -> None:
        self.setting = setting
        super().__init__(
            message or f"Missing required setting: {setting}. Set it in the environment or .env"
        )


class UpstreamError(PipelineError):
    """The upstream provider answered with a non-2xx status."""

    def __init__(self, status_code: int, detail: str, url: str = "") -> None:
        self.status_code = status_code
        self.detail = truncate_detail(detail)
        self.url = url
        super().__init__(f"Upstream {status_code}: {self.detail}")


class UpstreamTimeoutError(PipelineError, TimeoutError):
    """No upstream response arrived within the call's deadline."""

    def __init__(self, timeout: float, url: str = "") -> None:
        self.timeout = timeout
        self.url = url
        super().__init__(
            f"Upstream request timed out (>{timeout:g}s). "
            "Try shorter output, smaller batches or a faster relay"
        )


class EmptyContentError(PipelineError):
    """The transport succeeded but the payload carries no usable content."""

    def __init__(self, stage: str, message: str = "") -> None:
        self.stage = stage
        super().__init__(message or f"{stage}: upstream returned empty content")
