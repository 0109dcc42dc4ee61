"""Custom exception hierarchy for Grammar Coach Agent."""

from errors.exceptions import (
    ConfigurationError,
    EmptyContentError,
    PipelineError,
    UpstreamError,
    UpstreamTimeoutError,
)

__all__ = [
    "ConfigurationError",
    "EmptyContentError",
    "PipelineError",
    "UpstreamError",
    "UpstreamTimeoutError",
]
