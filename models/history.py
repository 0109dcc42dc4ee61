"""Saved problem record as kept by the client-side problem library."""

from __future__ import annotations

from pydantic import ConfigDict

from models.base import CamelModel


class SavedProblem(CamelModel):
    """One entry of the learner's problem library.

    Only the fields the history report cares about are typed; anything else
    the library stores is kept and forwarded as-is.
    """

    model_config = ConfigDict(extra="allow")

    id: str = ""
    title: str = ""
    question_text: str = ""
    tags: list[str] = []
    is_favorite: bool = False
    timestamp: int = 0
    solution_html: str = ""
