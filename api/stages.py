"""Pipeline stage endpoints — one POST per stage.

Failures are not caught here: the exception handlers registered in
``main.py`` turn the pipeline's error taxonomy into HTTP responses.
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends

from agents.pipeline import GrammarPipeline, get_pipeline
from models.request import (
    DrillsRequest,
    HistoryRequest,
    HtmlResult,
    ProblemInput,
    SpeechRequest,
    SpeechResult,
    TextResult,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["pipeline"])


@router.post("/verify", response_model=TextResult)
async def verify_problem(
    req: ProblemInput,
    pipeline: GrammarPipeline = Depends(get_pipeline),
) -> TextResult:
    """Repair OCR damage in an uploaded problem; returns plain text."""
    text = await pipeline.verify_problem(req.to_generation_request())
    return TextResult(text=text)


@router.post("/solve", response_model=HtmlResult)
async def solve_problem(
    req: ProblemInput,
    pipeline: GrammarPipeline = Depends(get_pipeline),
) -> HtmlResult:
    html = await pipeline.solve_problem(req.to_generation_request())
    return HtmlResult(html=html)


@router.post("/history/analyze", response_model=HtmlResult)
async def analyze_history(
    req: HistoryRequest,
    pipeline: GrammarPipeline = Depends(get_pipeline),
) -> HtmlResult:
    logger.info("History report requested for %d problem(s)", len(req.problems))
    html = await pipeline.analyze_problem_history(req.problems)
    return HtmlResult(html=html)


@router.post("/drills", response_model=HtmlResult)
async def generate_drills(
    req: DrillsRequest,
    pipeline: GrammarPipeline = Depends(get_pipeline),
) -> HtmlResult:
    html = await pipeline.generate_drills(req.original_problem, req.solution_html)
    return HtmlResult(html=html)


@router.post("/speech", response_model=SpeechResult)
async def generate_speech(
    req: SpeechRequest,
    pipeline: GrammarPipeline = Depends(get_pipeline),
) -> SpeechResult:
    audio = await pipeline.generate_speech(req.html)
    return SpeechResult(audio_base64=audio, format=pipeline.audio_format)
