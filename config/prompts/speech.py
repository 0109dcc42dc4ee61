"""Narration lead-in for spoken explanations."""

from __future__ import annotations

SPEECH_LEAD_IN = "Let me explain: "
