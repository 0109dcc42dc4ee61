"""API request / response models."""

from __future__ import annotations

from typing import Any

from pydantic import Field

from models.base import CamelModel
from models.generation import GenerationRequest, ImagePayload
from models.history import SavedProblem


class ProblemInput(CamelModel):
    """POST /api/verify and /api/solve — request body."""

    image: ImagePayload | None = None
    text: str | None = None

    def to_generation_request(self) -> GenerationRequest:
        return GenerationRequest(image=self.image, supplementary_text=self.text)


class HistoryRequest(CamelModel):
    """POST /api/history/analyze — request body."""

    problems: list[SavedProblem] = Field(default_factory=list)


class DrillsRequest(CamelModel):
    """POST /api/drills — request body."""

    original_problem: str = Field(..., min_length=1)
    solution_html: str = ""


class SpeechRequest(CamelModel):
    """POST /api/speech — request body."""

    html: str = Field(..., min_length=1)


class TextResult(CamelModel):
    text: str


class HtmlResult(CamelModel):
    html: str


class SpeechResult(CamelModel):
    audio_base64: str
    format: str = "mp3"


class ProxyRequest(CamelModel):
    """POST /api/llm — wrapped form ``{endpoint, payload}``."""

    endpoint: str = "chat/completions"
    payload: dict[str, Any] | None = None


class TtsProxyRequest(CamelModel):
    """POST /api/tts — request body."""

    text: str = ""
    model: str | None = None
    voice: str | None = None
    format: str | None = None
