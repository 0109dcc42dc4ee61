"""Reusable LLM generation parameters and per-stage profiles.

Each stage runs under one fixed :class:`LLMConfig` profile (the constants
below); fields left as ``None`` fall back to the module defaults.
"""

from __future__ import annotations

from pydantic import BaseModel, Field


class LLMConfig(BaseModel):
    """LLM call parameters: sampling, output bound, deadline, retry budget.

    All fields are optional.  ``None`` means "use the default".
    """

    model: str | None = Field(default=None, description="Upstream model identifier")
    temperature: float | None = Field(default=None, ge=0.0, le=2.0)
    max_tokens: int | None = Field(default=None, gt=0, description="Max tokens to generate")
    timeout: float | None = Field(default=None, gt=0, description="Per-call deadline in seconds")
    max_retries: int | None = Field(
        default=None, ge=0, description="Attempts allowed after the initial one"
    )

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def to_payload_kwargs(self) -> dict:
        """Convert to chat-completion body fields (sampling + output bound only)."""
        kw: dict = {}
        for field in ("temperature", "max_tokens"):
            val = getattr(self, field)
            if val is not None:
                kw[field] = val
        return kw


DEFAULT_TIMEOUT = 30.0
DEFAULT_MAX_RETRIES = 2


def retry_budget(profile: LLMConfig) -> int:
    """Attempts allowed after the first one for calls under *profile*."""
    return DEFAULT_MAX_RETRIES if profile.max_retries is None else profile.max_retries


def call_timeout(profile: LLMConfig) -> float:
    return profile.timeout or DEFAULT_TIMEOUT


# ── Stage profiles ───────────────────────────────────────────
# Repair profiles always run colder and with a smaller budget than the
# generation they correct.

VERIFY = LLMConfig(temperature=0.2, max_tokens=700, timeout=25, max_retries=2)

SOLVE = LLMConfig(temperature=0.25, max_tokens=1700, timeout=30, max_retries=2)
SOLVE_REPAIR = LLMConfig(temperature=0.1, max_tokens=1700, timeout=25, max_retries=1)

HISTORY = LLMConfig(temperature=0.4, max_tokens=1400, timeout=30, max_retries=2)
HISTORY_REPAIR = LLMConfig(temperature=0.1, max_tokens=1400, timeout=25, max_retries=1)

DRILLS = LLMConfig(temperature=0.55, max_tokens=1500, timeout=35, max_retries=3)
DRILLS_REPAIR = LLMConfig(temperature=0.1, max_tokens=1500, timeout=25, max_retries=2)

SPEECH = LLMConfig(timeout=35, max_retries=1)
