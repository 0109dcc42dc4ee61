"""Corrective prompts used for the single repair round.

Each template takes ``{content}``: the markdown-tainted output to rewrite.
"""

from __future__ import annotations

from config.prompts.solve import SOLVE_SECTIONS

SOLVE_REPAIR_PROMPT = (
    "Your output contains Markdown traces (such as **, #, -, ```). "
    "Rewrite it as a pure HTML fragment:\n"
    "- It MUST start with <div and end with </div>\n"
    "- No Markdown symbols at all\n"
    f"- Keep the structure ({', '.join(SOLVE_SECTIONS)})\n"
    "- Blanks are not highlighted (underscores stay plain text)\n"
    "[Content to rewrite]:\n"
    "{content}"
)

HTML_REPAIR_PROMPT = """\
Your output contains Markdown traces. Rewrite it as a pure HTML fragment
and keep its structure and class names:
- No **, #, -, ```, ~~~ or similar
- Output HTML only
[Content to rewrite]:
{content}"""
