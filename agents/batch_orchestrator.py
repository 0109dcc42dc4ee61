"""Batch orchestrator — split one large generation into bounded batches.

Used by the drills stage: six practice items are requested as two batches
of three so no single upstream call runs long enough to hit a platform
timeout.  Batches run strictly one after another (batch 2 is sent only
once batch 1, including its repair round, has finished), each through the
full generate → validate → repair loop with its own retry budget.  If any
batch fails, the whole run fails; partial output is never returned.
"""

from __future__ import annotations

import logging
import math
from typing import Callable

from agents.repair import RepairLoop
from config.llm_config import LLMConfig
from models.batch import BatchPlan, BatchSpec
from services.format_guard import html_to_text
from services.message_builder import build_text_message

logger = logging.getLogger(__name__)

DEFAULT_TOTAL_ITEMS = 6
DEFAULT_BATCH_SIZE = 3
CONTEXT_SUMMARY_LIMIT = 900

PromptFactory = Callable[[int, int, int], str]
"""``(index, total, size) -> prompt`` for one batch."""


def summarize_context(html: str | None, limit: int = CONTEXT_SUMMARY_LIMIT) -> str:
    """Shrink upstream HTML to a short plain-text summary for batch prompts."""
    return html_to_text(html, limit)


def plan_batches(
    prompt_for: PromptFactory,
    total_items: int = DEFAULT_TOTAL_ITEMS,
    batch_size: int = DEFAULT_BATCH_SIZE,
) -> BatchPlan:
    """Split *total_items* into ``ceil(total / size)`` batches; the last takes the remainder."""
    if total_items < 1 or batch_size < 1:
        raise ValueError("total_items and batch_size must both be positive")

    count = math.ceil(total_items / batch_size)
    batches: list[BatchSpec] = []
    for i in range(count):
        index = i + 1
        size = min(batch_size, total_items - i * batch_size)
        batches.append(
            BatchSpec(index=index, total=count, size=size, prompt=prompt_for(index, count, size))
        )
    return BatchPlan(batches=batches)


class BatchOrchestrator:
    """Runs a :class:`BatchPlan` sequentially and concatenates the outputs."""

    def __init__(self, repair_loop: RepairLoop, separator: str = "\n") -> None:
        self._loop = repair_loop
        self._separator = separator

    async def run(
        self,
        plan: BatchPlan,
        profile: LLMConfig,
        repair_profile: LLMConfig,
        repair_prompt: str,
        stage: str = "drills",
    ) -> str:
        outputs: list[str] = []
        for batch in plan.batches:
            label = f"{stage}[{batch.index}/{batch.total}]"
            logger.info("%s: requesting %d item(s)", label, batch.size)
            outcome = await self._loop.run(
                label,
                build_text_message(batch.prompt),
                profile,
                repair_profile,
                repair_prompt,
            )
            outputs.append(outcome.text)
        logger.info("%s: %d batch(es) complete, %d item(s)", stage, len(plan), plan.total_items)
        return self._separator.join(outputs)
