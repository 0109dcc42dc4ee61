"""Drills-stage prompt — one batch of same-pattern practice items."""

from __future__ import annotations

DRILL_CLASS_NAMES: tuple[str, ...] = ("drill-item", "drill-question", "drill-answer")

DRILLS_PROMPT = """\
You are a primary-school English grammar teacher for grades 5-6.
Based on the original problem, write {size} practice items of the same
pattern, each with an answer and explanation.
This is batch {index} of {total}.
Output a pure HTML fragment. Markdown is forbidden (**, #, -, ```, ~~~
are all not allowed).
Structure:
- Wrap every item in <div class="drill-item">
- Put the question in <div class="drill-question">
- Put the answer and explanation in <div class="drill-answer"><details>...</details></div>
- Give every item 4 options (A/B/C/D), as close to the original type as possible
- Explanations should not sound childish: rule → evidence → common trap
Original problem:
{problem}

Key points (condensed):
{context}"""
