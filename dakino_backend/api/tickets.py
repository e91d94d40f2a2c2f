"""Endpoints for scanning shopping tickets and matching them to the catalog."""

from __future__ import annotations

import uuid

from flask import Blueprint, current_app, jsonify, request
from sqlalchemy.exc import SQLAlchemyError

from dakino_backend.api.deps import get_sessionmaker, get_vision_llm_client
from dakino_backend.services.catalog import (
    fetch_catalog_products,
    fetch_catalog_stores,
)
from dakino_backend.services.ticket_scanning import (
    TicketScanError,
    scan_ticket_image,
)
from dakino_backend.services.tickets import (
    Ticket,
    TicketFormatError,
    coerce_ticket,
    process_ticket,
    serialize_processed_ticket,
    serialize_ticket,
)

bp = Blueprint("tickets", __name__, url_prefix="/api")

_CORS_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Headers": (
        "authorization, x-client-info, apikey, content-type"
    ),
}


@bp.after_request
def _add_cors_headers(response):
    for header, value in _CORS_HEADERS.items():
        response.headers.setdefault(header, value)
    return response


def _json_payload() -> dict:
    payload = request.get_json(silent=True)
    return payload if isinstance(payload, dict) else {}


def _parse_household_id(raw_value: object) -> uuid.UUID | None:
    if raw_value in (None, ""):
        return None
    try:
        return uuid.UUID(str(raw_value))
    except ValueError as exc:
        raise ValueError("household_id must be a UUID") from exc


def _scan_from_payload(payload: dict) -> Ticket:
    image = payload.get("image")
    if not isinstance(image, str) or not image.strip():
        raise ValueError("image is required")

    mime_type = payload.get("mime_type")
    if not isinstance(mime_type, str):
        mime_type = None

    client = get_vision_llm_client()
    result = scan_ticket_image(client, image_base64=image, mime_type=mime_type)
    return result.ticket


def _match_against_catalog(ticket: Ticket, household_id: uuid.UUID | None):
    session_factory = get_sessionmaker()
    catalog = fetch_catalog_products(session_factory, household_id=household_id)
    stores = fetch_catalog_stores(session_factory, household_id=household_id)
    return process_ticket(
        ticket,
        catalog,
        stores,
        candidate_floor=current_app.config["MATCH_CANDIDATE_FLOOR"],
        accept_threshold=current_app.config["MATCH_ACCEPT_THRESHOLD"],
    )


@bp.post("/scan-ticket")
def scan_ticket():
    """Relay a base64 ticket photo to the vision model and return clean JSON."""

    payload = _json_payload()

    try:
        ticket = _scan_from_payload(payload)
    except ValueError as exc:
        return jsonify(error=str(exc)), 400
    except TicketScanError as exc:
        current_app.logger.warning("ticket scan failed: %s", exc)
        return jsonify(error=str(exc)), 502
    except RuntimeError as exc:
        return jsonify(error=str(exc)), 503

    return jsonify(serialize_ticket(ticket))


@bp.post("/tickets/match")
def match_ticket():
    """Match an already-scanned ticket against the household catalog."""

    payload = _json_payload()

    try:
        household_id = _parse_household_id(payload.get("household_id"))
        ticket = coerce_ticket(payload.get("ticket"))
    except (TicketFormatError, ValueError) as exc:
        return jsonify(error=str(exc)), 400

    try:
        processed = _match_against_catalog(ticket, household_id)
    except RuntimeError as exc:
        return jsonify(error=str(exc)), 503
    except SQLAlchemyError:
        current_app.logger.exception(
            "failed to load catalog for ticket match",
            extra={"household_id": str(household_id) if household_id else None},
        )
        return jsonify(error="failed to load product catalog"), 500

    return jsonify(serialize_processed_ticket(processed))


@bp.post("/tickets/scan")
def scan_and_match_ticket():
    """Scan a ticket photo and match its lines in a single round trip."""

    payload = _json_payload()

    try:
        household_id = _parse_household_id(payload.get("household_id"))
    except ValueError as exc:
        return jsonify(error=str(exc)), 400

    try:
        get_sessionmaker()
    except RuntimeError as exc:
        return jsonify(error=str(exc)), 503

    try:
        ticket = _scan_from_payload(payload)
    except ValueError as exc:
        return jsonify(error=str(exc)), 400
    except TicketScanError as exc:
        current_app.logger.warning("ticket scan failed: %s", exc)
        return jsonify(error=str(exc)), 502
    except RuntimeError as exc:
        return jsonify(error=str(exc)), 503

    try:
        processed = _match_against_catalog(ticket, household_id)
    except SQLAlchemyError:
        current_app.logger.exception(
            "failed to load catalog for ticket match",
            extra={"household_id": str(household_id) if household_id else None},
        )
        return jsonify(error="failed to load product catalog"), 500

    return jsonify(serialize_processed_ticket(processed))
