"""Generation-side data model: the user's problem and the chat message schema.

Everything here is built fresh for one pipeline invocation and dropped at
its end; nothing is cached between requests.
"""

from __future__ import annotations

from typing import Literal, Union

from pydantic import BaseModel, Field

from models.base import CamelModel


class ImagePayload(CamelModel):
    """An uploaded image: base64 body (optionally data-URI prefixed) + MIME type."""

    encoded_bytes: str
    mime_type: str = "image/png"


class GenerationRequest(CamelModel):
    """One user request: instruction plus an image and/or supplementary text.

    At least one of ``image`` / ``supplementary_text`` should be present for
    meaningful output; the model does not enforce it.
    """

    instruction_text: str = ""
    image: ImagePayload | None = None
    supplementary_text: str | None = None

    def with_instruction(self, instruction_text: str) -> GenerationRequest:
        """Copy of this request carrying *instruction_text* as its instruction."""
        return self.model_copy(update={"instruction_text": instruction_text})


# ── Provider message schema ──────────────────────────────────


class TextPart(BaseModel):
    type: Literal["text"] = "text"
    text: str


class ImageUrl(BaseModel):
    url: str


class ImageUrlPart(BaseModel):
    type: Literal["image_url"] = "image_url"
    image_url: ImageUrl


ContentPart = Union[TextPart, ImageUrlPart]


class ChatMessage(BaseModel):
    """A role-tagged message in OpenAI chat-completion format."""

    role: Literal["system", "user", "assistant"] = "user"
    content: str | list[ContentPart] = Field(default_factory=list)

    def to_payload(self) -> dict:
        return self.model_dump()
