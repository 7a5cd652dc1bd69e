"""
Description tokenizer for catalog matching.

Lower-cases free text, strips punctuation, and keeps only the words that
carry meaning for rate lookup. Short words (2 chars or fewer) and generic
BOQ filler ("supply", "complete", "as per details") are dropped.
"""

import re

# Articles, prepositions and boilerplate that appears in nearly every BOQ line
STOP_WORDS = frozenset({
    "a", "an", "and", "the", "in", "on", "for", "with", "of", "to",
    "is", "are", "was", "were", "including", "supply", "providing", "all",
    "complete", "work", "as", "per", "details", "item", "rate", "charges",
    "fixing", "laying",
})

MIN_TOKEN_LENGTH = 3

_PUNCTUATION = re.compile(r"[^\w\s]")


def tokenize(text) -> set:
    """Return the set of meaningful lower-case words in ``text``.

    Non-string or empty input gives an empty set.
    """
    if not text or not isinstance(text, str):
        return set()
    cleaned = _PUNCTUATION.sub("", text.lower())
    return {
        word for word in cleaned.split()
        if len(word) >= MIN_TOKEN_LENGTH and word not in STOP_WORDS
    }
