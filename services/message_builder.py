"""Message builder — assemble a multimodal user turn in chat-completion format.

Produces exactly one user message whose parts are, in order:

1. the instruction text,
2. an ``image_url`` part when an image is attached,
3. a labelled supplementary-text part when the text is not blank.

No size or MIME validation happens here; a malformed image only surfaces
as an upstream rejection.
"""

from __future__ import annotations

import logging

from models.generation import (
    ChatMessage,
    ContentPart,
    GenerationRequest,
    ImageUrl,
    ImageUrlPart,
    TextPart,
)

logger = logging.getLogger(__name__)

SUPPLEMENTARY_LABEL = "\n\n[Problem text]\n"


def to_data_url(encoded: str, mime_type: str) -> str:
    """Return ``data:<mime>;base64,<body>``, dropping any prefix already on *encoded*."""
    body = encoded.split(",", 1)[1] if "," in encoded else encoded
    return f"data:{mime_type};base64,{body}"


def build_user_message(request: GenerationRequest) -> list[ChatMessage]:
    """Build the single-message conversation for a multimodal stage call."""
    parts: list[ContentPart] = [TextPart(text=request.instruction_text)]

    image = request.image
    if image is not None and image.encoded_bytes and image.mime_type:
        parts.append(
            ImageUrlPart(image_url=ImageUrl(url=to_data_url(image.encoded_bytes, image.mime_type)))
        )

    text = (request.supplementary_text or "").strip()
    if text:
        parts.append(TextPart(text=f"{SUPPLEMENTARY_LABEL}{text}"))

    logger.debug(
        "Built user message: %d part(s), image=%s, text=%d chars",
        len(parts), image is not None, len(text),
    )
    return [ChatMessage(role="user", content=parts)]


def build_text_message(text: str) -> list[ChatMessage]:
    """Build a single plain-string user message (history, drills, repair)."""
    return [ChatMessage(role="user", content=text)]
