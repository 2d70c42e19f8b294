"""Category similarity scorers used by the deduplicator."""

from __future__ import annotations

import difflib
import re

from .domain import ConfigurationError, SCORER_NAMES
from .ports import SimilarityScorer

_NON_WORD = re.compile(r"[\W_]+", re.UNICODE)


def normalize_label(label: str) -> str:
    """Case-fold, turn punctuation into spaces, and collapse whitespace.

    ``"Hard-coded  Credentials!"`` becomes ``"hard coded credentials"``.
    """
    return " ".join(_NON_WORD.sub(" ", label.casefold()).split())


class SequenceSimilarityScorer:
    """``difflib`` ratio over normalized labels.

    A label whose words all appear in the other label counts as a full match
    (``"Input Validation"`` vs ``"Missing Input Validation"``).  Matching is on
    whole words, so ``"Race"`` is not contained in ``"Stack Trace Exposure"``.
    """

    def score(self, a: str, b: str) -> float:
        left = normalize_label(a)
        right = normalize_label(b)
        if not left or not right:
            return 1.0 if left == right else 0.0
        left_words, right_words = set(left.split()), set(right.split())
        if left_words <= right_words or right_words <= left_words:
            return 1.0
        return difflib.SequenceMatcher(None, left, right, autojunk=False).ratio()


class ExactCategoryScorer:
    """Coarse taxonomy mode: labels match only when they normalize identically."""

    def score(self, a: str, b: str) -> float:
        return 1.0 if normalize_label(a) == normalize_label(b) else 0.0


_SCORERS = {
    "sequence": SequenceSimilarityScorer,
    "exact": ExactCategoryScorer,
}


def get_scorer(name: str) -> SimilarityScorer:
    """Resolve a configured scorer name to a scorer instance."""
    try:
        return _SCORERS[name]()
    except KeyError:
        valid = ", ".join(SCORER_NAMES)
        raise ConfigurationError(
            f"Unknown similarity scorer '{name}'. Valid scorers: {valid}", key="dedup.scorer"
        ) from None
