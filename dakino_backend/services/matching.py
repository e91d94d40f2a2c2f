"""Match ticket line names against the household product catalog."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Generic, Optional, Protocol, Sequence, TypeVar

from dakino_backend.config import (
    DEFAULT_MATCH_ACCEPT_THRESHOLD,
    DEFAULT_MATCH_CANDIDATE_FLOOR,
)
from dakino_backend.services.normalization import normalize_product_name
from dakino_backend.services.similarity import similarity

logger = logging.getLogger(__name__)


class NamedRecord(Protocol):
    """Anything with a display name, e.g. a ``Product`` or ``Store`` row."""

    name: str


RecordT = TypeVar("RecordT", bound=NamedRecord)


class MatchConfidence(str, Enum):
    """How sure the matcher is about the product it picked."""

    EXACT = "exact"
    PARTIAL = "partial"
    NONE = "none"


@dataclass(frozen=True, slots=True)
class ProductMatch(Generic[RecordT]):
    """Outcome of matching one ticket line against the catalog."""

    product: Optional[RecordT]
    confidence: MatchConfidence

    @classmethod
    def no_match(cls) -> "ProductMatch[RecordT]":
        return cls(product=None, confidence=MatchConfidence.NONE)


def match_product(
    raw_name: str,
    catalog: Sequence[RecordT],
    *,
    candidate_floor: float = DEFAULT_MATCH_CANDIDATE_FLOOR,
    accept_threshold: float = DEFAULT_MATCH_ACCEPT_THRESHOLD,
) -> ProductMatch[RecordT]:
    """Find the catalog product that best matches a ticket line name.

    An identical normalized name wins outright, first in catalog order.
    Otherwise every product is scored with :func:`similarity`; only scores
    above ``candidate_floor`` can become the best candidate, ties keep the
    earlier product, and the best candidate is returned as a partial match
    only when it scores above ``accept_threshold``.
    """

    query = normalize_product_name(raw_name)
    normalized_names = [normalize_product_name(product.name) for product in catalog]

    for product, normalized_name in zip(catalog, normalized_names):
        if normalized_name == query:
            return ProductMatch(product=product, confidence=MatchConfidence.EXACT)

    best_match: Optional[RecordT] = None
    best_score = 0.0
    for product, normalized_name in zip(catalog, normalized_names):
        score = similarity(query, normalized_name)
        if score > best_score and score > candidate_floor:
            best_score = score
            best_match = product

    if best_match is not None and best_score > accept_threshold:
        logger.debug(
            "partial catalog match",
            extra={"query": query, "product": best_match.name, "score": best_score},
        )
        return ProductMatch(product=best_match, confidence=MatchConfidence.PARTIAL)

    return ProductMatch.no_match()


def match_store(
    store_name: str | None, stores: Sequence[RecordT]
) -> Optional[RecordT]:
    """Return the first known store whose name contains, or is contained in, the ticket's."""

    needle = (store_name or "").lower()
    if not needle:
        return None

    for store in stores:
        candidate = (store.name or "").lower()
        if not candidate:
            continue
        if needle in candidate or candidate in needle:
            return store
    return None
