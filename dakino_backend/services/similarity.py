"""Similarity scoring between two normalized product names."""

from __future__ import annotations

import re

_WHITESPACE = re.compile(r"\s+")


def _split_words(text: str) -> list[str]:
    return [word for word in _WHITESPACE.split(text) if word]


def similarity(a: str, b: str) -> float:
    """Return a score in ``[0, 1]`` for two already-normalized names.

    Containment of one name in the other scores the length ratio. Otherwise
    the score is the share of words in ``a`` that overlap (substring either
    way) with some word in ``b``, over the larger word count.
    """

    if len(b) > len(a):
        longer, shorter = b, a
    else:
        longer, shorter = a, b

    if not longer:
        return 1.0

    if shorter in longer or longer in shorter:
        return len(shorter) / len(longer)

    words1 = _split_words(a)
    words2 = _split_words(b)
    denominator = max(len(words1), len(words2))
    if denominator == 0:
        return 0.0

    common_count = sum(
        1 for word in words1 if any(word in other or other in word for other in words2)
    )
    return common_count / denominator
