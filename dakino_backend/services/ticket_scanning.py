"""Ticket scan pipeline: image in, cleaned ticket out."""

from __future__ import annotations

import logging
from dataclasses import dataclass

from httpx import RequestError, TimeoutException

from dakino_backend.services.llm import VisionLLMClient
from dakino_backend.services.tickets import Ticket, coerce_ticket

logger = logging.getLogger(__name__)

MAX_RAW_LLM_OUTPUT_BYTES = 16_000
TRUNCATION_SUFFIX = " [truncated]"


class TicketScanError(RuntimeError):
    """Raised when a ticket scan fails."""


class TicketVisionError(TicketScanError):
    """Raised when the vision model fails or returns unusable output."""


@dataclass(frozen=True, slots=True)
class ScanResult:
    """Cleaned ticket plus the model text it was read from."""

    ticket: Ticket
    raw_text: str | None


def truncate_raw_llm_output(
    raw_text: str | None,
    *,
    limit_bytes: int = MAX_RAW_LLM_OUTPUT_BYTES,
) -> str | None:
    """Trim oversized LLM responses for logging and diagnostics."""
    if not raw_text:
        return None
    encoded = raw_text.encode("utf-8")
    if len(encoded) <= limit_bytes:
        return raw_text
    suffix_bytes = TRUNCATION_SUFFIX.encode("utf-8")
    if len(suffix_bytes) >= limit_bytes:
        return TRUNCATION_SUFFIX[:limit_bytes]
    truncated_bytes = encoded[: limit_bytes - len(suffix_bytes)]
    truncated_text = truncated_bytes.decode("utf-8", errors="ignore")
    return f"{truncated_text}{TRUNCATION_SUFFIX}"


def scan_ticket_image(
    llm_client: VisionLLMClient,
    *,
    image_base64: str | None = None,
    image_bytes: bytes | None = None,
    mime_type: str | None = None,
    prompt: str | None = None,
) -> ScanResult:
    """Run a ticket image through the vision model and clean its output.

    ``ValueError`` from an empty image propagates so callers can report a bad
    request; every model-side failure becomes :class:`TicketVisionError`.
    """

    if not image_bytes and not (image_base64 or "").strip():
        raise ValueError("image is required")

    try:
        llm_result = llm_client.extract_ticket(
            image_bytes=image_bytes,
            image_base64=image_base64,
            mime_type=mime_type,
            prompt=prompt,
        )
    except (TimeoutException, RequestError) as exc:
        raise TicketVisionError("vision model request failed") from exc
    except ValueError:
        raise
    except Exception as exc:
        raise TicketVisionError("vision model invocation failed") from exc

    raw_text = (llm_result.raw_text or "").strip()
    if not raw_text:
        raise TicketVisionError("vision model returned empty output")

    parsed_json = llm_result.parsed_json
    if not isinstance(parsed_json, dict):
        logger.warning(
            "vision model did not return a JSON object",
            extra={"raw_text": truncate_raw_llm_output(raw_text, limit_bytes=500)},
        )
        raise TicketVisionError("vision model did not return JSON output")

    ticket = coerce_ticket(parsed_json)
    logger.info(
        "ticket scanned",
        extra={"item_count": len(ticket.items), "store_name": ticket.store_name},
    )
    return ScanResult(ticket=ticket, raw_text=truncate_raw_llm_output(raw_text))
