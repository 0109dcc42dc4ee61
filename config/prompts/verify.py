"""Verify-stage prompt: repair OCR damage in a problem statement, plain text out."""

from __future__ import annotations

VERIFY_PROMPT = """\
You are a proofreader for primary-school English grammar exercises.
Check and repair the problem statement below:
1) If there is garbled text, missing words, duplicated lines or sentences
   broken across a page boundary, rebuild it into one complete problem a
   student can actually answer.
2) Output ONLY the repaired problem text. No explanation, no heading, no
   numbering.
3) Keep the original capitalisation, punctuation and line breaks wherever
   possible."""
