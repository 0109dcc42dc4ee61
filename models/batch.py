"""Batch plan for the drills stage."""

from __future__ import annotations

from pydantic import BaseModel, Field


class BatchSpec(BaseModel):
    """One bounded-size sub-request within a drills run."""

    index: int = Field(..., ge=1, description="1-based position within the plan")
    total: int = Field(..., ge=1, description="Number of batches in the plan")
    size: int = Field(..., ge=1, description="Items requested from this batch")
    prompt: str


class BatchPlan(BaseModel):
    """Ordered batches; consumed immediately by the orchestrator, never stored."""

    batches: list[BatchSpec] = Field(default_factory=list)

    @property
    def total_items(self) -> int:
        return sum(b.size for b in self.batches)

    def __len__(self) -> int:
        return len(self.batches)
