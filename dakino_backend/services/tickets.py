"""Ticket data shapes and the catalog matching pass over scanned tickets."""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any, Mapping, Optional, Sequence

from dakino_backend.config import (
    DEFAULT_MATCH_ACCEPT_THRESHOLD,
    DEFAULT_MATCH_CANDIDATE_FLOOR,
)
from dakino_backend.services.matching import (
    MatchConfidence,
    NamedRecord,
    match_product,
    match_store,
)

DEFAULT_ITEM_QUANTITY = 1.0


class TicketFormatError(ValueError):
    """Raised when a ticket payload is not shaped like a ticket at all."""


@dataclass(frozen=True, slots=True)
class TicketLineItem:
    """One product line read off a ticket."""

    name: str
    quantity: float
    unit_price: float
    total: float


@dataclass(frozen=True, slots=True)
class Ticket:
    """Cleaned output of the ticket vision model."""

    store_name: Optional[str]
    date: Optional[str]
    items: list[TicketLineItem] = field(default_factory=list)
    total: float = 0.0


@dataclass(frozen=True, slots=True)
class MatchedLineItem:
    """A ticket line paired with its provisional catalog match."""

    name: str
    quantity: float
    unit_price: float
    total: float
    matched_product: Optional[Any]
    confidence: MatchConfidence


@dataclass(frozen=True, slots=True)
class ProcessedTicket:
    """A ticket ready for human review."""

    store_name: Optional[str]
    date: Optional[str]
    items: list[MatchedLineItem]
    total: float
    matched_store: Optional[Any] = None


def _parse_number(value: object) -> float | None:
    """Return a finite float for numeric-looking input, else ``None``."""

    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float, Decimal)):
        try:
            number = float(value)
        except OverflowError:
            return None
    elif isinstance(value, str):
        candidate = value.strip()
        if not candidate:
            return None
        try:
            number = float(candidate)
        except ValueError:
            return None
    else:
        return None
    return number if math.isfinite(number) else None


def _optional_text(value: object) -> str | None:
    if not value:
        return None
    return str(value)


def coerce_line_item(payload: Mapping[str, Any]) -> TicketLineItem:
    """Apply safe defaults to one raw line item from the vision model."""

    raw_name = payload.get("name")
    name = "" if raw_name is None else str(raw_name)

    quantity = _parse_number(payload.get("quantity"))
    if quantity is None or quantity <= 0:
        quantity = DEFAULT_ITEM_QUANTITY
    unit_price = _parse_number(payload.get("unit_price")) or 0.0
    total = _parse_number(payload.get("total")) or quantity * unit_price

    return TicketLineItem(
        name=name,
        quantity=quantity,
        unit_price=unit_price,
        total=total,
    )


def coerce_ticket(payload: object) -> Ticket:
    """Turn loosely-typed ticket JSON into a :class:`Ticket`.

    Missing or unusable fields fall back to defaults instead of failing:
    ``None`` for store and date, ``""`` for item names, ``1`` for quantities,
    ``0`` for prices, and ``quantity * unit_price`` for missing line totals.
    """

    if not isinstance(payload, Mapping):
        raise TicketFormatError("ticket must be a JSON object")

    raw_items = payload.get("items")
    if not isinstance(raw_items, list):
        raw_items = []

    items = [
        coerce_line_item(raw_item)
        for raw_item in raw_items
        if isinstance(raw_item, Mapping)
    ]

    return Ticket(
        store_name=_optional_text(payload.get("store_name")),
        date=_optional_text(payload.get("date")),
        items=items,
        total=_parse_number(payload.get("total")) or 0.0,
    )


def process_ticket(
    ticket: Ticket,
    catalog: Sequence[NamedRecord],
    stores: Sequence[NamedRecord] = (),
    *,
    candidate_floor: float = DEFAULT_MATCH_CANDIDATE_FLOOR,
    accept_threshold: float = DEFAULT_MATCH_ACCEPT_THRESHOLD,
) -> ProcessedTicket:
    """Match every ticket line against the catalog, keeping order and count."""

    matched_items: list[MatchedLineItem] = []
    for item in ticket.items:
        match = match_product(
            item.name,
            catalog,
            candidate_floor=candidate_floor,
            accept_threshold=accept_threshold,
        )
        matched_items.append(
            MatchedLineItem(
                name=item.name,
                quantity=item.quantity,
                unit_price=item.unit_price,
                total=item.total,
                matched_product=match.product,
                confidence=match.confidence,
            )
        )

    return ProcessedTicket(
        store_name=ticket.store_name,
        date=ticket.date,
        items=matched_items,
        total=ticket.total,
        matched_store=match_store(ticket.store_name, stores),
    )


def _json_scalar(value: Any) -> Any:
    if value is None:
        return None
    if isinstance(value, Decimal):
        return float(value)
    if isinstance(value, (str, int, float, bool)):
        return value
    return str(value)


def _serialize_record(record: Any, fields: Sequence[str]) -> dict[str, Any] | None:
    if record is None:
        return None
    return {name: _json_scalar(getattr(record, name, None)) for name in fields}


def serialize_ticket(ticket: Ticket) -> dict[str, object]:
    """Return the cleaned ticket as a JSON-safe dict."""

    return {
        "store_name": ticket.store_name,
        "date": ticket.date,
        "items": [
            {
                "name": item.name,
                "quantity": item.quantity,
                "unit_price": item.unit_price,
                "total": item.total,
            }
            for item in ticket.items
        ],
        "total": ticket.total,
    }


def serialize_processed_ticket(processed: ProcessedTicket) -> dict[str, object]:
    """Return a processed ticket as a JSON-safe dict for the review UI."""

    return {
        "store_name": processed.store_name,
        "date": processed.date,
        "items": [
            {
                "name": item.name,
                "quantity": item.quantity,
                "unit_price": item.unit_price,
                "total": item.total,
                "matched_product": _serialize_record(
                    item.matched_product,
                    ("id", "name", "default_price", "unit_type", "category"),
                ),
                "confidence": item.confidence.value,
            }
            for item in processed.items
        ],
        "total": processed.total,
        "matched_store": _serialize_record(processed.matched_store, ("id", "name")),
    }
