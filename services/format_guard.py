"""Output-format policy for generated HTML fragments.

The upstream is asked for pure HTML but occasionally answers with Markdown.
``is_markdown_like`` is the default detector; anything matching
:class:`MarkdownDetector` can be injected into the repair loop instead.
"""

from __future__ import annotations

import re
from typing import Protocol

_FENCE_OPENER = re.compile(r"(```|~~~)html\s*", re.IGNORECASE)
_FENCE = re.compile(r"```|~~~")

_BOLD = re.compile(r"\*\*.+\*\*")
_ATX_HEADING = re.compile(r"^#{1,6}\s", re.MULTILINE)
_BULLET = re.compile(r"^[ \t]*[-*+][ \t]+", re.MULTILINE)

_SCRIPT_OR_STYLE = re.compile(r"<(script|style)\b[\s\S]*?</\1\s*>", re.IGNORECASE)
_TAG = re.compile(r"<[^>]*>")
_WHITESPACE = re.compile(r"\s+")


class MarkdownDetector(Protocol):
    def __call__(self, text: str) -> bool: ...


def is_markdown_like(text: str | None) -> bool:
    """True when *text* carries fences, bold, ATX headings or line-start bullets."""
    t = text or ""
    if "```" in t or "~~~" in t:
        return True
    if _BOLD.search(t):
        return True
    if _ATX_HEADING.search(t):
        return True
    if _BULLET.search(t):
        return True
    return False


def strip_code_fences(text: str | None) -> str:
    """Remove fence delimiters (with an optional ``html`` tag) and trim.

    Idempotent: removal repeats until no fence is left (deleting one can
    splice a new one out of its neighbours), so a second pass only trims.
    """
    t = text or ""
    while True:
        stripped = _FENCE.sub("", _FENCE_OPENER.sub("", t))
        if stripped == t:
            break
        t = stripped
    return t.strip()


def html_to_text(html: str | None, limit: int | None = None) -> str:
    """Drop script/style blocks and tags, collapse whitespace, optionally cap length."""
    t = _SCRIPT_OR_STYLE.sub(" ", html or "")
    t = _TAG.sub(" ", t)
    t = _WHITESPACE.sub(" ", t).strip()
    if limit is not None:
        t = t[:limit]
    return t
