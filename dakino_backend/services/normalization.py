"""Utilities for normalizing product names read from shopping tickets."""

from __future__ import annotations

import re
import unicodedata

_COMBINING_MARKS = re.compile(r"[\u0300-\u036f]")
_NON_ALNUM_SPACE = re.compile(r"[^a-z0-9\s]")


def normalize_product_name(raw_name: str) -> str:
    """Normalize a free-text product name into its comparison form.

    Lower-cases, strips accents, drops anything that is not an ASCII letter,
    digit or whitespace, then trims the ends. Internal whitespace runs are
    left alone; callers that tokenize split on runs anyway.
    """

    normalized = unicodedata.normalize("NFD", raw_name.lower())
    normalized = _COMBINING_MARKS.sub("", normalized)
    normalized = _NON_ALNUM_SPACE.sub("", normalized)
    return normalized.strip()
