"""
Fuzzy catalog matcher.

Scores every catalog rate with the same unit as the BOQ row:
    2 points per description token found in the rate's item name
    1 point  per description token found in the rate's keywords

Highest positive score wins. Ties keep the first rate in catalog order.
No length normalization: wordy descriptions accumulate higher scores.
"""

from dataclasses import dataclass
from typing import Iterable, Optional

from .tokenizer import tokenize

NAME_WEIGHT = 2
KEYWORD_WEIGHT = 1


@dataclass(frozen=True)
class RateMatch:
    rate: object      # catalog record (models.Rate or anything with the same attributes)
    score: int

    @property
    def rate_value(self) -> float:
        return float(self.rate.rate_value)


class RateMatcher:
    """
    Matches BOQ descriptions against a fixed catalog snapshot.

    Catalog tokens are computed once per matcher, so build one matcher per
    estimation run and reuse it for every row.

    Usage:
        matcher = RateMatcher(db.query(models.Rate).all())
        match = matcher.match(tokenize("Brick masonry walls"), "m²")
        if match:
            rate = match.rate_value
    """

    def __init__(self, catalog: Iterable):
        self._candidates = [
            (rate, (rate.unit or "").lower(), tokenize(rate.item_name), tokenize(rate.keywords))
            for rate in catalog
        ]

    def candidates_for_unit(self, unit: str) -> list:
        wanted = (unit or "").lower()
        return [entry for entry in self._candidates if entry[1] == wanted]

    def match(self, tokens: set, unit: str) -> Optional[RateMatch]:
        """Best-scoring catalog rate for ``tokens`` in ``unit``, or None if nothing scores above 0."""
        best = None
        highest_score = 0
        for rate, _, name_tokens, keyword_tokens in self.candidates_for_unit(unit):
            score = score_tokens(tokens, name_tokens, keyword_tokens)
            if score > highest_score:
                highest_score = score
                best = rate
        if best is None:
            return None
        return RateMatch(rate=best, score=highest_score)


def score_tokens(tokens: set, name_tokens: set, keyword_tokens: set) -> int:
    return (
        NAME_WEIGHT * len(tokens & name_tokens)
        + KEYWORD_WEIGHT * len(tokens & keyword_tokens)
    )
