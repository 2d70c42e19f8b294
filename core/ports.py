"""Core ports for pluggable similarity scoring and review agents."""

from __future__ import annotations

from typing import Any, Protocol, Sequence


class SimilarityScorer(Protocol):
    """Port for deciding how alike two category labels are."""

    def score(self, a: str, b: str) -> float:
        """Return a similarity in ``[0, 1]``; 1.0 means the same label."""
        ...


class ReviewAgentPort(Protocol):
    """Port for one independent review pass over a scoped file set."""

    async def review(self, *, files: Sequence[str]) -> list[dict[str, Any]]:
        ...
