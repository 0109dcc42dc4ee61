"""Generate → validate → repair loop for HTML-producing stages.

One call moves through an explicit state machine::

    ATTEMPTING ──▶ RETRYING ──▶ ATTEMPTING ...      (inside with_retry)
        │
        ├──▶ FAILED           retry budget exhausted, last error propagates
        ├──▶ SUCCEEDED        output passes the detector
        └──▶ REPAIR_PENDING   output looks like Markdown
                 │
                 └──▶ SUCCEEDED  exactly one corrective call, result
                                 returned whether or not it is clean

The corrective call runs colder and with a smaller retry budget than the
generation it corrects.  Repair is best-effort: there is no
"repair exhausted" failure.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum

from config.llm_config import LLMConfig, call_timeout, retry_budget
from errors.exceptions import EmptyContentError
from models.generation import ChatMessage
from services.format_guard import MarkdownDetector, is_markdown_like, strip_code_fences
from services.message_builder import build_text_message
from services.retry import with_retry
from services.upstream_client import UpstreamClient, pick_content

logger = logging.getLogger(__name__)


def chat_payload(model: str, messages: list[ChatMessage], profile: LLMConfig) -> dict:
    """Chat-completion body: profile model (or *model*), messages, sampling params."""
    return {
        "model": profile.model or model,
        "messages": [m.to_payload() for m in messages],
        **profile.to_payload_kwargs(),
    }


class RepairState(str, Enum):
    ATTEMPTING = "attempting"
    RETRYING = "retrying"
    SUCCEEDED = "succeeded"
    REPAIR_PENDING = "repair_pending"
    FAILED = "failed"


@dataclass
class GenerationOutcome:
    """Final text of one repair-loop run and how it got there."""

    text: str
    state: RepairState
    repaired: bool = False
    attempts: int = 0


class RepairLoop:
    """Runs one HTML generation with at most one repair round."""

    def __init__(
        self,
        client: UpstreamClient,
        model: str,
        detector: MarkdownDetector = is_markdown_like,
    ) -> None:
        self._client = client
        self._model = model
        self._detector = detector
        self.state = RepairState.ATTEMPTING

    async def complete(
        self,
        stage: str,
        messages: list[ChatMessage],
        profile: LLMConfig,
    ) -> tuple[str, int]:
        """One retried chat completion, fence-stripped; blank output is a failure.

        Returns the text and the number of attempts it took.
        """
        attempts = 0

        async def _attempt() -> str:
            nonlocal attempts
            attempts += 1
            if attempts > 1:
                self.state = RepairState.RETRYING
            response = await self._client.chat_completion(
                chat_payload(self._model, messages, profile),
                timeout=call_timeout(profile),
            )
            self.state = RepairState.ATTEMPTING
            text = strip_code_fences(pick_content(response))
            if not text:
                raise EmptyContentError(stage)
            return text

        text = await with_retry(_attempt, retry_budget(profile), label=stage)
        return text, attempts

    async def run(
        self,
        stage: str,
        messages: list[ChatMessage],
        profile: LLMConfig,
        repair_profile: LLMConfig,
        repair_prompt: str,
    ) -> GenerationOutcome:
        """Generate, validate, and repair once if the detector flags the output.

        *repair_prompt* is a template with a ``{content}`` placeholder.
        Failures of either call propagate unchanged.
        """
        self.state = RepairState.ATTEMPTING
        try:
            first, attempts = await self.complete(stage, messages, profile)
        except Exception:
            self.state = RepairState.FAILED
            raise

        if not self._detector(first):
            self.state = RepairState.SUCCEEDED
            return GenerationOutcome(text=first, state=self.state, attempts=attempts)

        self.state = RepairState.REPAIR_PENDING
        logger.warning("%s: output looks like Markdown (%d chars), issuing one repair", stage, len(first))

        repair_stage = f"{stage}-repair"
        try:
            repaired, repair_attempts = await self.complete(
                repair_stage,
                build_text_message(repair_prompt.format(content=first)),
                repair_profile,
            )
        except Exception:
            self.state = RepairState.FAILED
            raise

        if self._detector(repaired):
            logger.warning("%s: repaired output still looks like Markdown; returning it anyway", stage)

        self.state = RepairState.SUCCEEDED
        return GenerationOutcome(
            text=repaired,
            state=self.state,
            repaired=True,
            attempts=attempts + repair_attempts,
        )
