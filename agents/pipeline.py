"""Grammar coach pipeline — verify → solve → drills, plus history and speech.

Every stage is a thin configuration of the shared primitives:

- Verify:  one retried call, plain text, no format check.
- Solve:   one call through :class:`RepairLoop` (HTML, one repair round).
- History: serialized problem library (bounded) through :class:`RepairLoop`.
- Drills:  two batches of three via :class:`BatchOrchestrator`.
- Speech:  HTML → capped plain text → ``audio/speech`` → base64 audio.

Stages never catch failures from the retry executor: configuration,
upstream, timeout and empty-content errors all reach the caller with their
original kind.
"""

from __future__ import annotations

import base64
import json
import logging
from typing import Any, Iterable

from agents.batch_orchestrator import (
    DEFAULT_BATCH_SIZE,
    DEFAULT_TOTAL_ITEMS,
    BatchOrchestrator,
    plan_batches,
    summarize_context,
)
from agents.repair import RepairLoop, chat_payload
from config import llm_config
from config.llm_config import call_timeout, retry_budget
from config.prompts.drills import DRILLS_PROMPT
from config.prompts.history import HISTORY_PROMPT
from config.prompts.repair import HTML_REPAIR_PROMPT, SOLVE_REPAIR_PROMPT
from config.prompts.solve import SOLVE_PROMPT
from config.prompts.speech import SPEECH_LEAD_IN
from config.prompts.verify import VERIFY_PROMPT
from config.settings import UpstreamConfig
from errors.exceptions import EmptyContentError
from models.generation import GenerationRequest
from models.history import SavedProblem
from services.format_guard import MarkdownDetector, html_to_text, is_markdown_like
from services.message_builder import build_text_message, build_user_message
from services.retry import with_retry
from services.upstream_client import UpstreamClient, get_upstream_client, pick_content

logger = logging.getLogger(__name__)

HISTORY_MAX_CHARS = 120_000
SPEECH_MAX_CHARS = 1200


def serialize_history(
    problems: Iterable[SavedProblem | dict[str, Any]],
    limit: int = HISTORY_MAX_CHARS,
) -> str:
    """JSON-encode the problem library (camelCase keys) and cap its length."""
    items = [
        p.model_dump(by_alias=True) if isinstance(p, SavedProblem) else p
        for p in problems
    ]
    return json.dumps(items, ensure_ascii=False)[:limit]


def decode_audio(audio_base64: str) -> bytes:
    """Decode a speech payload back to raw audio bytes."""
    return base64.b64decode(audio_base64)


class GrammarPipeline:
    """The five stages, bound to one upstream client and configuration."""

    def __init__(
        self,
        client: UpstreamClient,
        config: UpstreamConfig,
        detector: MarkdownDetector = is_markdown_like,
    ) -> None:
        self._client = client
        self._config = config
        self._detector = detector

    @property
    def audio_format(self) -> str:
        return self._config.tts_format

    def _repair_loop(self) -> RepairLoop:
        # One loop per invocation: its state belongs to that call only.
        return RepairLoop(self._client, self._config.llm_model, detector=self._detector)

    # ── Verify ───────────────────────────────────────────────

    async def verify_problem(self, request: GenerationRequest) -> str:
        """Repair OCR damage in the problem statement; returns plain text."""
        profile = llm_config.VERIFY
        messages = build_user_message(request.with_instruction(VERIFY_PROMPT))

        async def _attempt() -> str:
            response = await self._client.chat_completion(
                chat_payload(self._config.llm_model, messages, profile),
                timeout=call_timeout(profile),
            )
            text = pick_content(response).strip()
            if not text:
                raise EmptyContentError("verify", "verify: upstream returned empty content")
            return text

        text = await with_retry(_attempt, retry_budget(profile), label="verify")
        logger.info("verify: %d chars", len(text))
        return text

    # ── Solve ────────────────────────────────────────────────

    async def solve_problem(self, request: GenerationRequest) -> str:
        """Produce the styled HTML walkthrough for one problem."""
        outcome = await self._repair_loop().run(
            "solve",
            build_user_message(request.with_instruction(SOLVE_PROMPT)),
            llm_config.SOLVE,
            llm_config.SOLVE_REPAIR,
            SOLVE_REPAIR_PROMPT,
        )
        logger.info(
            "solve: %d chars (repaired=%s, attempts=%d)",
            len(outcome.text), outcome.repaired, outcome.attempts,
        )
        return outcome.text

    # ── History report ───────────────────────────────────────

    async def analyze_problem_history(
        self,
        problems: Iterable[SavedProblem | dict[str, Any]],
    ) -> str:
        """Write a diagnosis report over the learner's saved problems."""
        history = serialize_history(problems)
        logger.debug("analyze-history: serialized library is %d chars", len(history))
        outcome = await self._repair_loop().run(
            "analyze-history",
            build_text_message(HISTORY_PROMPT.format(history=history)),
            llm_config.HISTORY,
            llm_config.HISTORY_REPAIR,
            HTML_REPAIR_PROMPT,
        )
        return outcome.text

    # ── Drills ───────────────────────────────────────────────

    async def generate_drills(
        self,
        original_problem: str,
        solution_html: str = "",
        total_items: int = DEFAULT_TOTAL_ITEMS,
        batch_size: int = DEFAULT_BATCH_SIZE,
    ) -> str:
        """Generate practice items in sequential batches and join them in order."""
        context = summarize_context(solution_html)

        def _prompt(index: int, total: int, size: int) -> str:
            return DRILLS_PROMPT.format(
                size=size,
                index=index,
                total=total,
                problem=original_problem,
                context=context,
            )

        plan = plan_batches(_prompt, total_items=total_items, batch_size=batch_size)
        orchestrator = BatchOrchestrator(self._repair_loop())
        return await orchestrator.run(
            plan,
            llm_config.DRILLS,
            llm_config.DRILLS_REPAIR,
            HTML_REPAIR_PROMPT,
        )

    # ── Speech ───────────────────────────────────────────────

    async def generate_speech(self, solution_html: str) -> str:
        """Narrate an HTML explanation; returns base64-encoded audio."""
        profile = llm_config.SPEECH
        text = html_to_text(solution_html, SPEECH_MAX_CHARS)
        payload = {
            "model": self._config.tts_model,
            "voice": self._config.tts_voice,
            "input": f"{SPEECH_LEAD_IN}{text}",
            "format": self._config.tts_format,
        }

        async def _attempt() -> str:
            response = await self._client.speech(payload, timeout=call_timeout(profile))
            # Relays either re-encode to JSON or pass the raw audio through.
            if isinstance(response, (bytes, bytearray)) and response:
                return base64.b64encode(bytes(response)).decode("ascii")
            if isinstance(response, dict) and response.get("audio_base64"):
                return str(response["audio_base64"])
            raise EmptyContentError(
                "speech",
                "speech: response carries no audio_base64 (the relay may not support /audio/speech)",
            )

        return await with_retry(_attempt, retry_budget(profile), label="speech")


def get_pipeline() -> GrammarPipeline:
    """Build a pipeline over the process-wide client and configuration."""
    client = get_upstream_client()
    return GrammarPipeline(client, client.config)
