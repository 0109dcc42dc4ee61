"""Analyze-history prompt — a learning diagnosis report over saved problems."""

from __future__ import annotations

HISTORY_PROMPT = """\
You are a curriculum specialist. Write a learning diagnosis report as a
pure HTML fragment (Markdown is forbidden).
Cover: recurring mistakes, likely causes, suggested practice and what to
review next time. Write it for a parent to read. Output HTML only.
Problem library JSON:
{history}"""
